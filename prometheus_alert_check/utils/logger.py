"""Logging configuration"""

import logging
import sys
from pythonjsonlogger import jsonlogger

ROOT_LOGGER = 'prometheus_alert_check'


def setup_logger(config, stream=None):
    """
    Setup logger with configuration

    Check output goes to stdout, so log records are written to stderr.

    Args:
        config: Configuration dictionary with logging settings
        stream: Stream for the handler (defaults to stderr)
    """
    logging_config = config.get('logging', {})
    log_level = str(logging_config.get('level', 'INFO')).upper()
    log_format = logging_config.get('format', 'text')

    # Verbose output shows why each alert was ignored
    if logging_config.get('verbose', False):
        log_level = 'DEBUG'

    level = getattr(logging, log_level, logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)

    if log_format == 'json':
        formatter = jsonlogger.JsonFormatter(
            '%(asctime)s %(levelname)s %(name)s %(message)s',
            rename_fields={'levelname': 'level', 'name': 'logger', 'asctime': 'timestamp'}
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s - %(message)s',
            datefmt='%Y-%m-%dT%H:%M:%S'
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def get_logger(name):
    """Get logger instance"""
    return logging.getLogger(f'{ROOT_LOGGER}.{name}')
