"""
Backup Plan Data Models

Defines backup plans and the outcome of an activation attempt.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any


# Activation write steps, in execution order
STEP_PLAN_FLAG = 'plan_flag'
STEP_FLIGHT_UPDATE = 'flight_update'
STEP_ALERT_INSERT = 'alert_insert'

ACTIVATION_STEPS = [STEP_PLAN_FLAG, STEP_FLIGHT_UPDATE, STEP_ALERT_INSERT]


@dataclass
class BackupPlan:
    """Alternate crew/aircraft/destination for a flight"""
    flight_id: str
    aircraft_id: str
    crew_ids: List[str] = field(default_factory=list)
    fallback_airport: Optional[str] = None
    priority: int = 1
    activated: bool = False
    conditions: List[str] = field(default_factory=list)
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BackupPlan':
        """Create from dictionary"""
        return cls(
            id=str(data['id']) if data.get('id') is not None else None,
            flight_id=str(data.get('flight_id', '')),
            aircraft_id=data.get('aircraft_id', '') or '',
            crew_ids=[str(c) for c in (data.get('crew_ids') or [])],
            fallback_airport=data.get('fallback_airport') or None,
            priority=int(data.get('priority') or 1),
            activated=bool(data.get('activated', False)),
            conditions=list(data.get('conditions') or [])
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {
            'flight_id': self.flight_id,
            'crew_ids': list(self.crew_ids),
            'aircraft_id': self.aircraft_id,
            'fallback_airport': self.fallback_airport,
            'priority': self.priority,
            'activated': self.activated
        }
        if self.id is not None:
            data['id'] = self.id
        if self.conditions:
            data['conditions'] = list(self.conditions)
        return data

    def to_row(self) -> Dict[str, Any]:
        """Row shape for insertion into the backups table"""
        return {
            'flight_id': self.flight_id,
            'crew_ids': list(self.crew_ids),
            'aircraft_id': self.aircraft_id,
            'fallback_airport': self.fallback_airport,
            'priority': self.priority,
            'activated': self.activated
        }


@dataclass
class ActivationResult:
    """
    Outcome of activating a backup plan

    completed_steps and failed_step record how far the write sequence
    got, so a half-activated plan can be found and repaired.
    """
    success: bool
    flight_id: str
    backup_id: Optional[str] = None
    activated_crew: List[str] = field(default_factory=list)
    activated_aircraft: Optional[str] = None
    fallback_airport: Optional[str] = None
    message: str = ''
    errors: List[str] = field(default_factory=list)
    completed_steps: List[str] = field(default_factory=list)
    failed_step: Optional[str] = None

    @property
    def is_partial(self) -> bool:
        """Some writes succeeded before a later one failed"""
        return self.failed_step is not None and bool(self.completed_steps)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'success': self.success,
            'backup_id': self.backup_id,
            'flight_id': self.flight_id,
            'activated_crew': list(self.activated_crew),
            'activated_aircraft': self.activated_aircraft,
            'fallback_airport': self.fallback_airport,
            'message': self.message,
            'errors': list(self.errors),
            'completed_steps': list(self.completed_steps),
            'failed_step': self.failed_step
        }
