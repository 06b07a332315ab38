"""Main entry point for the Prometheus alert check"""

import sys
import argparse

from prometheus_alert_check import __version__
from prometheus_alert_check.check import CheckResult, CheckStatus, run_check, CHECK_NAME
from prometheus_alert_check.config.settings import load_config, validate_config
from prometheus_alert_check.errors import ConfigError
from prometheus_alert_check.utils.logger import setup_logger


def key_value(argument):
    """Parse a NAME=REGEX filter argument"""
    name, sep, pattern = argument.partition('=')
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=REGEX, got '{argument}'")
    return name, pattern


def build_parser():
    """Build the command-line parser"""
    parser = argparse.ArgumentParser(
        prog=CHECK_NAME,
        description='A check for monitoring alerts in Prometheus.'
    )

    parser.add_argument(
        '--url', '-u',
        type=str,
        default=None,
        help='The base path of the Prometheus API (env: PROMETHEUS_URL, default: http://127.0.0.1:9090/)'
    )

    parser.add_argument(
        '--insecure-skip-verify', '-i',
        action='store_true',
        default=None,
        help='Skip TLS certificate verification (not recommended!) (env: PROMETHEUS_SKIP_VERIFY)'
    )

    parser.add_argument(
        '--trusted-ca-file', '-T',
        type=str,
        default=None,
        help='TLS CA certificate bundle in PEM format (env: PROMETHEUS_CACERT)'
    )

    parser.add_argument(
        '--timeout', '-t',
        type=int,
        default=None,
        help='Seconds to wait for a response from the host (env: PROMETHEUS_TIMEOUT, default: 15)'
    )

    parser.add_argument(
        '--firing', '-f',
        action='store_true',
        default=None,
        help='Only look for firing alerts'
    )

    parser.add_argument(
        '--pending', '-p',
        action='store_true',
        default=None,
        help='Only look for pending alerts'
    )

    parser.add_argument(
        '--label', '-l',
        type=key_value,
        action='append',
        default=[],
        metavar='NAME=REGEX',
        help="Filter alerts by label using a regex. Can be specified more than once. "
             "E.g. --label alertname='(Alert1|Alert2|^$)' matches 'Alert1', 'Alert2' "
             "and alerts with no 'alertname' label."
    )

    parser.add_argument(
        '--annotation', '-a',
        type=key_value,
        action='append',
        default=[],
        metavar='NAME=REGEX',
        help='Filter alerts by annotation using a regex. Can be specified more than once.'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        default=None,
        help='Log why each alert was ignored'
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        default=None,
        help='Path to configuration file (YAML)'
    )

    parser.add_argument(
        '--log-format',
        choices=['text', 'json'],
        default=None,
        help='Log output format'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'{CHECK_NAME} v{__version__}'
    )

    return parser


def apply_args(config, args):
    """Override configuration with command-line arguments"""
    prometheus = config['prometheus']
    filters = config['filters']

    if args.url is not None:
        prometheus['url'] = args.url
    if args.insecure_skip_verify:
        prometheus['insecure_skip_verify'] = True
    if args.trusted_ca_file is not None:
        prometheus['trusted_ca_file'] = args.trusted_ca_file
    if args.timeout is not None:
        prometheus['timeout'] = args.timeout

    if args.firing:
        filters['firing'] = True
    if args.pending:
        filters['pending'] = True

    # Command-line criteria are added on top of those from the config file
    if args.label:
        filters['labels'] = dict(filters.get('labels') or {}, **dict(args.label))
    if args.annotation:
        filters['annotations'] = dict(filters.get('annotations') or {}, **dict(args.annotation))

    if args.verbose:
        config['logging']['verbose'] = True
    if args.log_format is not None:
        config['logging']['format'] = args.log_format

    return config


def main(argv=None):
    """Main entry point, returns the check status code"""
    args = build_parser().parse_args(argv)

    try:
        config = apply_args(load_config(args.config), args)
        validate_config(config)
    except ConfigError as e:
        print(CheckResult(CheckStatus.WARNING, str(e), []).format_output())
        return CheckStatus.WARNING

    try:
        setup_logger(config)
        result = run_check(config)
    except Exception as e:
        print(f"{CHECK_NAME} UNKNOWN: {e}")
        import traceback
        traceback.print_exc()
        return CheckStatus.UNKNOWN

    print(result.format_output())
    return result.status


def cli():
    sys.exit(main())


if __name__ == '__main__':
    cli()
