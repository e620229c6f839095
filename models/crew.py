"""
Crew Data Models

Defines data structures for crew members, duty/rest records
and compliance results.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from datetime import datetime

from utils.date_utils import parse_timestamp, to_iso


@dataclass
class CrewMember:
    """Crew member entity"""
    id: str
    name: str
    current_duty: float = 0.0
    rest_compliant: bool = True
    assigned_flight: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CrewMember':
        """Create from dictionary"""
        return cls(
            id=str(data.get('id', '')),
            name=data.get('name', '') or '',
            current_duty=float(data.get('current_duty') or 0),
            rest_compliant=bool(data.get('rest_compliant', False)),
            assigned_flight=data.get('assigned_flight')
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'id': self.id,
            'name': self.name,
            'current_duty': self.current_duty,
            'rest_compliant': self.rest_compliant,
            'assigned_flight': self.assigned_flight
        }

    @property
    def display_name(self) -> str:
        return self.name or self.id


@dataclass
class DutyRecord:
    """
    Duty or rest interval for a crew member

    Rest records carry rest_start_time; an open rest interval has
    rest_end_time = None until the rest period is ended.
    """
    crew_id: str
    start_time: datetime
    end_time: datetime
    duty_hours: float = 0.0
    flight_id: Optional[str] = None
    rest_start_time: Optional[datetime] = None
    rest_end_time: Optional[datetime] = None
    rest_hours: Optional[float] = None
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DutyRecord':
        """Create from dictionary"""
        rest_hours = data.get('rest_hours')
        return cls(
            id=str(data['id']) if data.get('id') is not None else None,
            crew_id=str(data.get('crew_id', '')),
            flight_id=data.get('flight_id') or None,
            start_time=parse_timestamp(data.get('start_time')),
            end_time=parse_timestamp(data.get('end_time')),
            duty_hours=float(data.get('duty_hours') or 0),
            rest_start_time=parse_timestamp(data.get('rest_start_time')),
            rest_end_time=parse_timestamp(data.get('rest_end_time')),
            rest_hours=float(rest_hours) if rest_hours is not None else None
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to row shape (id omitted until the store assigns it)"""
        data = {
            'crew_id': self.crew_id,
            'flight_id': self.flight_id,
            'start_time': to_iso(self.start_time),
            'end_time': to_iso(self.end_time),
            'duty_hours': self.duty_hours,
            'rest_start_time': to_iso(self.rest_start_time),
            'rest_end_time': to_iso(self.rest_end_time),
            'rest_hours': self.rest_hours
        }
        if self.id is not None:
            data['id'] = self.id
        return data


@dataclass
class ComplianceCheck:
    """Result of a crew duty/rest compliance evaluation"""
    crew_id: str
    is_compliant: bool
    duty_hours: float
    rest_compliant: bool
    rest_hours_required: float
    violations: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'crew_id': self.crew_id,
            'is_compliant': self.is_compliant,
            'duty_hours': round(self.duty_hours, 2),
            'rest_compliant': self.rest_compliant,
            'rest_hours_required': self.rest_hours_required,
            'violations': list(self.violations),
            'warnings': list(self.warnings)
        }
