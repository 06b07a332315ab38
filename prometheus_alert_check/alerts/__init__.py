"""
Alert retrieval, filtering and evaluation.
"""

from prometheus_alert_check.alerts.alert import Alert, AlertState
from prometheus_alert_check.alerts.filters import FilterSet, PatternMatcher, compile_filters
from prometheus_alert_check.alerts.alert_source import AlertSource, TransportPolicy, decode_alerts
from prometheus_alert_check.alerts.alert_evaluator import (
    AlertEvaluator,
    EvaluationConfig,
    evaluate_alerts,
    match_properties,
)

__all__ = [
    'Alert',
    'AlertState',
    'FilterSet',
    'PatternMatcher',
    'compile_filters',
    'AlertSource',
    'TransportPolicy',
    'decode_alerts',
    'AlertEvaluator',
    'EvaluationConfig',
    'evaluate_alerts',
    'match_properties',
]
