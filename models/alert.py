"""
Alert Data Models

Defines alert records, alert types, severity tiers and the
per-channel disruption findings produced by the detector.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum

from utils.date_utils import parse_timestamp, to_iso


class AlertType(Enum):
    """Disruption signal channel"""
    WEATHER = "weather"
    CREW = "crew"
    MECHANICAL = "mechanical"
    AIRPORT = "airport"

    @classmethod
    def values(cls) -> List[str]:
        return [t.value for t in cls]


class Severity(Enum):
    """Ordered severity tiers"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other: 'Severity') -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: 'Severity') -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: 'Severity') -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: 'Severity') -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank

    def downgrade(self) -> 'Severity':
        """One tier lower for critical/high; low and medium unchanged"""
        if self is Severity.CRITICAL:
            return Severity.HIGH
        if self is Severity.HIGH:
            return Severity.MEDIUM
        return self


_SEVERITY_RANK = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


@dataclass
class Alert:
    """Operational alert attached to a flight"""
    flight_id: str
    type: AlertType
    message: str
    triggered_at: Optional[datetime] = None
    resolved: bool = False
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Alert':
        """Create from dictionary"""
        return cls(
            id=str(data['id']) if data.get('id') is not None else None,
            flight_id=str(data.get('flight_id', '')),
            type=AlertType(data.get('type')),
            message=data.get('message', '') or '',
            triggered_at=parse_timestamp(data.get('triggered_at')),
            resolved=bool(data.get('resolved', False))
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {
            'flight_id': self.flight_id,
            'type': self.type.value,
            'message': self.message,
            'triggered_at': to_iso(self.triggered_at),
            'resolved': self.resolved
        }
        if self.id is not None:
            data['id'] = self.id
        return data


@dataclass
class DisruptionCheck:
    """One finding from one signal channel for one flight"""
    flight_id: str
    type: AlertType
    severity: Severity
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'flight_id': self.flight_id,
            'type': self.type.value,
            'severity': self.severity.value,
            'message': self.message,
            'details': self.details
        }
