"""
Models Package - Data Models and Interfaces
"""

from models.crew import (
    CrewMember,
    DutyRecord,
    ComplianceCheck
)

from models.flight import (
    Flight,
    FlightStatus
)

from models.alert import (
    Alert,
    AlertType,
    Severity,
    DisruptionCheck
)

from models.backup import (
    BackupPlan,
    ActivationResult,
    ACTIVATION_STEPS
)

__all__ = [
    'CrewMember',
    'DutyRecord',
    'ComplianceCheck',
    'Flight',
    'FlightStatus',
    'Alert',
    'AlertType',
    'Severity',
    'DisruptionCheck',
    'BackupPlan',
    'ActivationResult',
    'ACTIVATION_STEPS'
]
