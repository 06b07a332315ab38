"""Check orchestration: validate, fetch, filter and render a verdict"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence
from urllib.parse import urlparse

from prometheus_alert_check.alerts.alert import Alert
from prometheus_alert_check.alerts.alert_evaluator import AlertEvaluator, EvaluationConfig
from prometheus_alert_check.alerts.alert_source import AlertSource, TransportPolicy
from prometheus_alert_check.alerts.filters import FilterSet
from prometheus_alert_check.config.settings import validate_config
from prometheus_alert_check.errors import (
    CheckError,
    ConfigError,
    DecodeError,
    InvalidPattern,
    TransportError,
)
from prometheus_alert_check.utils.logger import get_logger

CHECK_NAME = 'prometheus-alert-check'

logger = get_logger('check')


class CheckStatus:
    """Check exit status constants"""
    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3

    NAMES = {OK: 'OK', WARNING: 'WARNING', CRITICAL: 'CRITICAL', UNKNOWN: 'UNKNOWN'}


@dataclass
class CheckResult:
    """Verdict of a single check run"""
    status: int
    output: str
    alerts: List[Alert]

    @property
    def status_name(self) -> str:
        return CheckStatus.NAMES.get(self.status, 'UNKNOWN')

    def format_output(self) -> str:
        """Output as printed by the check"""
        return f"{CHECK_NAME} {self.status_name}: {self.output}"


def check_args(config: Dict[str, Any]) -> None:
    """
    Validate configuration before any network call.

    Raises:
        ConfigError: If the configuration is missing or conflicting
    """
    validate_config(config)

    url = config['prometheus'].get('url')
    if not url or not str(url).strip():
        raise ConfigError("--url or PROMETHEUS_URL environment variable is required")

    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise ConfigError(f"failed to parse prometheus URL {url}: {e}") from e

    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise ConfigError(f"failed to parse prometheus URL {url}: expected http(s)://host[:port][/path]")

    filters = config['filters']
    if filters.get('firing') and filters.get('pending'):
        raise ConfigError("both --pending and --firing cannot be specified at the same time")


def render_alerts(alerts: Sequence[Alert]) -> str:
    """Serialize alerts to an indented JSON array"""
    return json.dumps([alert.to_dict() for alert in alerts], indent=2)


def execute_check(config: Dict[str, Any], session=None) -> CheckResult:
    """
    Compile filters, fetch alerts and evaluate them.

    Args:
        config: Validated configuration dictionary
        session: Optional requests session for the fetch

    Returns:
        CheckResult, CRITICAL if any alert matched

    Raises:
        InvalidPattern, TransportError, DecodeError
    """
    url = config['prometheus']['url']
    logger.info(f"Executing check with --url \"{url}\"")

    filters = FilterSet.compile(
        config['filters'].get('labels'),
        config['filters'].get('annotations'),
    )
    if filters.is_empty():
        logger.debug("No label or annotation filters configured")

    source = AlertSource(url, TransportPolicy.from_config(config), session=session)

    logger.info("Fetching alerts...")
    alerts = source.fetch_alerts()

    evaluator = AlertEvaluator(filters, EvaluationConfig.from_config(config))
    matched = evaluator.evaluate(alerts)

    if matched:
        logger.info(f"{len(matched)} FOUND ALERTS")
        return CheckResult(
            status=CheckStatus.CRITICAL,
            output=f"{len(matched)} FOUND ALERTS:\n{render_alerts(matched)}",
            alerts=matched,
        )

    logger.info("Check passed, no alerts found.")
    return CheckResult(status=CheckStatus.OK, output="Check passed, no alerts found.", alerts=[])


def run_check(config: Dict[str, Any], session=None) -> CheckResult:
    """
    Run the check end to end, mapping errors to a verdict.

    Configuration problems give WARNING; every other failure gives CRITICAL.
    """
    try:
        check_args(config)
    except ConfigError as e:
        logger.warning(f"Invalid configuration: {e}")
        return CheckResult(status=CheckStatus.WARNING, output=str(e), alerts=[])

    stages = (
        (InvalidPattern, "unable to compile filters"),
        (TransportError, "unable to fetch alerts"),
        (DecodeError, "unable to decode alerts"),
        (CheckError, "check failed"),
    )

    try:
        return execute_check(config, session=session)
    except CheckError as e:
        stage = next(label for kind, label in stages if isinstance(e, kind))
        logger.error(f"{stage}: {e}")
        return CheckResult(status=CheckStatus.CRITICAL, output=f"{stage}: {e}", alerts=[])
