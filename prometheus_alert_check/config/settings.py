"""Configuration management"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any

from prometheus_alert_check.errors import ConfigError

TRUE_VALUES = ('1', 'true', 'yes', 'on')
FALSE_VALUES = ('', '0', 'false', 'no', 'off')

SECTIONS = ('prometheus', 'filters', 'logging')

BOOL_SETTINGS = (
    ('prometheus', 'insecure_skip_verify'),
    ('filters', 'firing'),
    ('filters', 'pending'),
    ('logging', 'verbose'),
)


def parse_bool(name: str, value: str) -> bool:
    """Parse a boolean environment value, rejecting anything unrecognised"""
    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid {name}: {value!r}. Must be true or false")


def get_default_config() -> Dict[str, Any]:
    """Get default configuration"""
    return {
        'prometheus': {
            'url': 'http://127.0.0.1:9090/',
            'insecure_skip_verify': False,
            'trusted_ca_file': None,
            'timeout': 15,
        },
        'filters': {
            'firing': False,
            'pending': False,
            'labels': {},
            'annotations': {},
        },
        'logging': {
            'level': 'INFO',
            'format': 'text',
            'verbose': False,
        },
    }


def load_config(config_path: str = None) -> Dict[str, Any]:
    """
    Load configuration from file and environment variables

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If the file can't be read or parsed
    """
    # Start with defaults
    config = get_default_config()

    # Load from YAML file if provided
    if config_path:
        if not Path(config_path).exists():
            raise ConfigError(f"Config file not found: {config_path}")
        try:
            with open(config_path, 'r') as f:
                yaml_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config from {config_path}: {e}") from e

        if yaml_config:
            if not isinstance(yaml_config, dict):
                raise ConfigError(f"Config file {config_path} must contain a mapping")
            config = merge_configs(config, yaml_config)
            validate_sections(config)

    # Override with environment variables
    config = override_from_env(config)

    return config


def merge_configs(base: Dict, override: Dict) -> Dict:
    """Recursively merge two configuration dictionaries"""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def override_from_env(config: Dict, environ=None) -> Dict:
    """Override configuration from environment variables"""
    env = os.environ if environ is None else environ

    # Prometheus settings
    if 'PROMETHEUS_URL' in env:
        config['prometheus']['url'] = env['PROMETHEUS_URL']
    if 'PROMETHEUS_SKIP_VERIFY' in env:
        config['prometheus']['insecure_skip_verify'] = parse_bool('PROMETHEUS_SKIP_VERIFY', env['PROMETHEUS_SKIP_VERIFY'])
    if 'PROMETHEUS_CACERT' in env:
        config['prometheus']['trusted_ca_file'] = env['PROMETHEUS_CACERT'] or None
    if 'PROMETHEUS_TIMEOUT' in env:
        try:
            config['prometheus']['timeout'] = int(env['PROMETHEUS_TIMEOUT'])
        except ValueError:
            raise ConfigError(f"Invalid PROMETHEUS_TIMEOUT: {env['PROMETHEUS_TIMEOUT']!r}")

    # Logging settings
    if 'LOG_LEVEL' in env:
        config['logging']['level'] = env['LOG_LEVEL'].upper()
    if 'LOG_FORMAT' in env:
        config['logging']['format'] = env['LOG_FORMAT'].lower()

    return config


def validate_sections(config: Dict):
    """
    Check that every configuration section is a mapping

    Raises:
        ConfigError: If a section is missing or not a mapping
    """
    for section in SECTIONS:
        if not isinstance(config.get(section), dict):
            raise ConfigError(f"'{section}' section must be a mapping, got {config.get(section)!r}")


def validate_config(config: Dict):
    """
    Validate configuration values

    Raises:
        ConfigError: If configuration is invalid
    """
    validate_sections(config)

    # Flags must be real booleans, not quoted strings
    for section, key in BOOL_SETTINGS:
        value = config[section].get(key, False)
        if not isinstance(value, bool):
            raise ConfigError(f"{section}.{key} must be true or false, got {value!r}")

    url = config['prometheus'].get('url')
    if url is not None and not isinstance(url, str):
        raise ConfigError(f"prometheus.url must be a string, got {url!r}")

    # Validate log level
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    log_level = str(config['logging']['level']).upper()
    if log_level not in valid_log_levels:
        raise ConfigError(f"Invalid log level: {log_level}. Must be one of {valid_log_levels}")

    valid_formats = ['text', 'json']
    log_format = config['logging']['format']
    if log_format not in valid_formats:
        raise ConfigError(f"Invalid log format: {log_format}. Must be one of {valid_formats}")

    # Validate timeout
    timeout = config['prometheus']['timeout']
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigError(f"Invalid timeout: {timeout}. Must be > 0")

    # Filters must be name -> pattern mappings
    for section in ('labels', 'annotations'):
        criteria = config['filters'].get(section) or {}
        if not isinstance(criteria, dict):
            raise ConfigError(f"filters.{section} must be a mapping of name to regex")
        for name, pattern in criteria.items():
            if not isinstance(pattern, str):
                raise ConfigError(f"filters.{section}.{name} must be a string regex, got {pattern!r}")
