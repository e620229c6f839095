"""
Alert Service - Operator-submitted alerts and resolution
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from app.errors import NotFoundError, ValidationError
from models import Alert, AlertType, FlightStatus
from supabase_client import CharterStore
from utils.date_utils import utc_now
from utils.validators import validate_alert_type

logger = logging.getLogger(__name__)


class AlertService:
    """Submit, resolve and list alerts"""

    def __init__(self, store: CharterStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def submit_alert(self, flight_id: str, alert_type, message: str) -> Alert:
        """
        Record an externally reported alert

        A mechanical alert delays the flight and is appended to its
        issue list. Other types leave the flight untouched.
        """
        alert_type = alert_type if isinstance(alert_type, AlertType) else validate_alert_type(alert_type)
        if not message or not str(message).strip():
            raise ValidationError("Alert message is required", field='message')

        flight = self.store.get_flight(flight_id)
        if flight is None:
            raise NotFoundError("Flight", flight_id)

        alert = self.store.insert_alert(Alert(
            flight_id=flight_id,
            type=alert_type,
            message=str(message).strip(),
            triggered_at=self.clock(),
            resolved=False
        ))

        if alert_type is AlertType.MECHANICAL:
            self.store.update_flight(flight_id, {
                'status': FlightStatus.DELAYED.value,
                'issues': flight.issues + [alert.message]
            })
            logger.warning(f"Mechanical issue reported for flight {flight_id}; status set to delayed")
        else:
            logger.info(f"{alert_type.value} alert submitted for flight {flight_id}")

        return alert

    def resolve_alert(self, alert_id: str) -> Alert:
        alert = self.store.get_alert(alert_id)
        if alert is None:
            raise NotFoundError("Alert", alert_id)

        if alert.resolved:
            return alert

        self.store.update_alert(alert_id, {'resolved': True})
        alert.resolved = True
        logger.info(f"Alert {alert_id} resolved")
        return alert

    def list_alerts(self, flight_id: Optional[str] = None, include_resolved: bool = False) -> List[Alert]:
        return self.store.list_alerts(flight_id=flight_id, include_resolved=include_resolved)
