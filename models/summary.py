"""
Monitoring Summary Models
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from datetime import datetime

from models.alert import Alert, Severity
from utils.date_utils import to_iso


@dataclass
class MonitoringStatus:
    """Snapshot of the monitor's state"""
    running: bool
    last_check_time: Optional[datetime]
    active_alert_count: int
    monitored_flight_count: int
    non_compliant_crew_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'running': self.running,
            'last_check_time': to_iso(self.last_check_time),
            'active_alert_count': self.active_alert_count,
            'monitored_flight_count': self.monitored_flight_count,
            'non_compliant_crew_count': self.non_compliant_crew_count
        }


@dataclass
class FlightDisruptionSummary:
    """Per-flight disruption picture used for severity ranking"""
    flight_id: str
    tail_number: str
    origin: str
    destination: str
    status: str
    alerts: List[Alert] = field(default_factory=list)
    crew_issues: List[str] = field(default_factory=list)
    has_backup_plans: bool = False
    severity: Severity = Severity.LOW

    @property
    def latest_alert_time(self) -> Optional[datetime]:
        times = [a.triggered_at for a in self.alerts if a.triggered_at is not None]
        return max(times) if times else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'flight_id': self.flight_id,
            'tail_number': self.tail_number,
            'origin': self.origin,
            'destination': self.destination,
            'status': self.status,
            'alerts': [a.to_dict() for a in self.alerts],
            'crew_issues': list(self.crew_issues),
            'has_backup_plans': self.has_backup_plans,
            'severity': self.severity.value
        }
