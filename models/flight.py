"""
Flight Data Models

Defines data structures for flight-related entities.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum

from utils.date_utils import parse_timestamp, to_iso


class FlightStatus(Enum):
    """Flight operational status"""
    SCHEDULED = "scheduled"
    DELAYED = "delayed"
    DIVERTED = "diverted"
    COMPLETED = "completed"

    @classmethod
    def from_string(cls, value: str) -> 'FlightStatus':
        """Parse status from string"""
        if not value:
            return cls.SCHEDULED
        try:
            return cls(value.lower().strip())
        except ValueError:
            return cls.SCHEDULED

    @classmethod
    def active(cls) -> List['FlightStatus']:
        """Statuses the monitoring loops evaluate"""
        return [cls.SCHEDULED, cls.DELAYED]


@dataclass
class Flight:
    """Charter flight record"""
    id: str
    tail_number: str
    origin: str
    destination: str
    departure_time: Optional[datetime] = None
    arrival_time: Optional[datetime] = None
    status: FlightStatus = FlightStatus.SCHEDULED
    crew_ids: List[str] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Flight':
        """Create from dictionary"""
        return cls(
            id=str(data.get('id', '')),
            tail_number=data.get('tail_number', '') or '',
            origin=(data.get('origin') or '').upper(),
            destination=(data.get('destination') or '').upper(),
            departure_time=parse_timestamp(data.get('departure_time')),
            arrival_time=parse_timestamp(data.get('arrival_time')),
            status=FlightStatus.from_string(data.get('status', '')),
            crew_ids=[str(c) for c in (data.get('crew_ids') or [])],
            issues=list(data.get('issues') or [])
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'id': self.id,
            'tail_number': self.tail_number,
            'origin': self.origin,
            'destination': self.destination,
            'departure_time': to_iso(self.departure_time),
            'arrival_time': to_iso(self.arrival_time),
            'status': self.status.value,
            'crew_ids': list(self.crew_ids),
            'issues': list(self.issues)
        }
