"""
Alert evaluator deciding which active alerts should fail the check.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from prometheus_alert_check.alerts.alert import Alert, AlertState
from prometheus_alert_check.alerts.filters import FilterSet, PatternMatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationConfig:
    """State selection flags"""
    only_firing: bool = False
    only_pending: bool = False

    @classmethod
    def from_config(cls, config: Dict) -> 'EvaluationConfig':
        """Build from the 'filters' section of the check configuration"""
        filters = config.get('filters', {})
        return cls(
            only_firing=bool(filters.get('firing', False)),
            only_pending=bool(filters.get('pending', False)),
        )


def match_properties(values: Mapping[str, str],
                     filters: Mapping[str, PatternMatcher]) -> Tuple[bool, Optional[str], Optional[str]]:
    """
    Test alert properties against compiled filters.

    A property missing from values is tested as the empty string.

    Args:
        values: Alert labels or annotations
        filters: Compiled filters keyed by property name

    Returns:
        (matched, name, value) where name and value identify the first
        failing criterion, or (True, None, None)
    """
    for name, matcher in filters.items():
        value = values.get(name, "")
        if not matcher.match(value):
            return False, name, value

    return True, None, None


class AlertEvaluator:
    """Filters alerts through the state, label and annotation gates"""

    def __init__(self, filters: FilterSet, config: EvaluationConfig):
        """
        Initialize alert evaluator.

        Args:
            filters: Compiled label and annotation filters
            config: State selection flags. With both flags set no
                alert can pass the state gate.
        """
        self.filters = filters
        self.config = config

    def evaluate(self, alerts: Sequence[Alert]) -> List[Alert]:
        """
        Return the alerts that pass every gate, in input order.

        Args:
            alerts: Alerts as retrieved from the backend

        Returns:
            Matching alerts (duplicates preserved)
        """
        result = []

        for alert in alerts:
            if self.is_match(alert):
                result.append(alert)

        logger.debug(f"{len(result)} of {len(alerts)} alerts matched")
        return result

    def is_match(self, alert: Alert) -> bool:
        """Run a single alert through the gates, stopping at the first failure"""
        if not self._state_matches(alert.state):
            logger.debug(f"Alert ignored due to state: {alert.state}")
            return False

        matched, name, value = match_properties(alert.labels, self.filters.labels)
        if not matched:
            logger.debug(f"Alert ignored due to label: {name}={value}")
            return False

        matched, name, value = match_properties(alert.annotations, self.filters.annotations)
        if not matched:
            logger.debug(f"Alert ignored due to annotation: {name}={value}")
            return False

        return True

    def _state_matches(self, state: str) -> bool:
        if self.config.only_firing and state != AlertState.FIRING:
            return False
        if self.config.only_pending and state != AlertState.PENDING:
            return False
        return True


def evaluate_alerts(alerts: Sequence[Alert], filters: FilterSet,
                    config: EvaluationConfig) -> List[Alert]:
    """Convenience wrapper around AlertEvaluator.evaluate"""
    return AlertEvaluator(filters, config).evaluate(alerts)
