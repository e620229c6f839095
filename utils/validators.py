"""
Input Validation Utilities

Provides validation functions for payloads arriving from the API layer.
Each validator raises ValidationError with the offending field.
"""

import math
from typing import Any, Dict, List, Optional

from app.errors import ValidationError
from models.alert import AlertType

# One week; longer periods are data entry errors
MAX_LOGGED_DUTY_HOURS = 168


def require_fields(payload: Dict[str, Any], fields: List[str]):
    """Ensure required keys are present and non-empty"""
    missing = [f for f in fields if payload.get(f) in (None, '', [])]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            field=missing[0],
            details={'missing': missing}
        )


def validate_alert_type(value: Any) -> AlertType:
    """Parse an alert type, rejecting anything outside the known channels"""
    try:
        return AlertType(str(value).lower().strip())
    except ValueError:
        raise ValidationError(
            f"Invalid alert type: {value}",
            field='type',
            details={'allowed': AlertType.values()}
        )


def validate_duty_hours(value: Any) -> float:
    """
    Parse duty hours

    Values above the legal limit are accepted and surfaced later by the
    compliance check. Non-numeric or negative input is rejected, as is
    anything infinite or longer than a week.
    """
    try:
        hours = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Duty hours must be a number", field='duty_hours')

    if not math.isfinite(hours):
        raise ValidationError("Duty hours must be a finite number", field='duty_hours')

    if hours < 0:
        raise ValidationError("Duty hours cannot be negative", field='duty_hours')

    if hours > MAX_LOGGED_DUTY_HOURS:
        raise ValidationError(
            f"Duty hours cannot exceed {MAX_LOGGED_DUTY_HOURS}",
            field='duty_hours'
        )

    return hours


def validate_priority(value: Any) -> int:
    """Parse backup plan priority (defaults to 1)"""
    if value in (None, ''):
        return 1
    try:
        priority = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Priority must be an integer", field='priority')

    if priority < 1:
        raise ValidationError("Priority must be 1 or greater", field='priority')

    return priority


def validate_crew_ids(value: Any) -> List[str]:
    """Normalize a crew id list"""
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValidationError("crew_ids must be a list", field='crew_ids')
    return [str(v) for v in value if str(v).strip()]


def normalize_airport(value: Optional[str]) -> Optional[str]:
    """Uppercase an airport code, None for empty"""
    if value is None:
        return None
    code = str(value).strip().upper()
    return code or None
