"""
Compilation of label/annotation filter criteria into reusable matchers.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from prometheus_alert_check.errors import InvalidPattern

logger = logging.getLogger(__name__)


class PatternMatcher:
    """Compiled filter pattern exposing only a match test"""

    def __init__(self, pattern: str):
        """
        Compile a pattern.

        Args:
            pattern: Regular expression source

        Raises:
            re.error: If the pattern is not a valid regular expression
        """
        self.pattern = pattern
        self._regex = re.compile(pattern)

    def match(self, value: str) -> bool:
        """Return True if the pattern matches anywhere in value"""
        return self._regex.search(value) is not None

    def __repr__(self):
        return f"PatternMatcher({self.pattern!r})"


def compile_filters(criteria: Optional[Mapping[str, str]]) -> Dict[str, PatternMatcher]:
    """
    Compile a name -> pattern mapping into name -> matcher.

    Args:
        criteria: Filter criteria, may be empty or None

    Returns:
        Dict with one PatternMatcher per criterion

    Raises:
        InvalidPattern: On the first pattern that fails to compile
    """
    result = {}

    for name, pattern in (criteria or {}).items():
        logger.debug(f"Compiling filter {name}={pattern}")

        if not isinstance(pattern, str):
            raise InvalidPattern(name, pattern, TypeError("pattern must be a string"))

        try:
            result[name] = PatternMatcher(pattern)
        except re.error as e:
            raise InvalidPattern(name, pattern, e) from e

    return result


@dataclass(frozen=True)
class FilterSet:
    """Compiled label and annotation filters"""
    labels: Dict[str, PatternMatcher] = field(default_factory=dict)
    annotations: Dict[str, PatternMatcher] = field(default_factory=dict)

    @classmethod
    def compile(cls, labels: Optional[Mapping[str, str]] = None,
                annotations: Optional[Mapping[str, str]] = None) -> 'FilterSet':
        """Compile both criteria maps; fails as a whole on any bad pattern"""
        return cls(
            labels=compile_filters(labels),
            annotations=compile_filters(annotations),
        )

    def is_empty(self) -> bool:
        return not self.labels and not self.annotations
