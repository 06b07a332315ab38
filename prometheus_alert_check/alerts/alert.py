"""
Alert data structure as returned by the Prometheus alerts API.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping


class AlertState:
    """Alert state constants"""
    FIRING = 'firing'    # Condition held past its 'for' duration
    PENDING = 'pending'  # Condition true, still within the 'for' duration


@dataclass(frozen=True)
class Alert:
    """Active alert instance"""
    state: str
    active_at: str = ""
    value: str = ""
    labels: Mapping[str, str] = field(default_factory=dict)
    annotations: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # Read-only copies so a decoded alert can't be mutated afterwards
        object.__setattr__(self, 'labels', MappingProxyType(dict(self.labels)))
        object.__setattr__(self, 'annotations', MappingProxyType(dict(self.annotations)))

    def __hash__(self):
        return hash((
            self.state,
            self.active_at,
            self.value,
            frozenset(self.labels.items()),
            frozenset(self.annotations.items()),
        ))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the API's JSON shape for reporting"""
        return {
            'state': self.state,
            'activeAt': self.active_at,
            'value': self.value,
            'labels': dict(self.labels),
            'annotations': dict(self.annotations),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Alert':
        """Create Alert from an API record (no type checking)"""
        return cls(
            state=data.get('state', ''),
            active_at=data.get('activeAt', ''),
            value=data.get('value', ''),
            labels=data.get('labels') or {},
            annotations=data.get('annotations') or {},
        )
