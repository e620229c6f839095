"""
Disruption Monitor - Orchestrates detection, compliance and backups

Runs two independent periodic jobs:
    - the disruption detector (fast cadence, default 30s)
    - a comprehensive sweep (slow cadence, default 60s) that suggests
      backups for disrupted flights without plans and refreshes the crew
      duty/rest cache

and answers the status, summary and flight detail queries.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Any

from app.config import MonitorConfig
from app.errors import AppError, NotFoundError
from models import Alert, AlertType, Flight, Severity
from models.summary import FlightDisruptionSummary, MonitoringStatus
from scheduler import IntervalTicker
from services.alert_service import AlertService
from services.backup_activator import BackupActivator
from services.base_service import RunReport
from services.disruption_detector import DisruptionDetector
from services.duty_tracker import DUTY_EXCEEDED_PREFIX, DutyTracker
from supabase_client import CharterStore
from utils.date_utils import UTC, utc_now

logger = logging.getLogger(__name__)

SUGGESTION_PREFIX = "Backup plans available"
DUTY_VIOLATION_MARKERS = (DUTY_EXCEEDED_PREFIX, "Duty violation")

_OLDEST = datetime.min.replace(tzinfo=UTC)


def calculate_severity(alerts: List[Alert], crew_issues: List[str], has_backup_plans: bool) -> Severity:
    """
    Aggregate a flight's severity tier

    Mechanical alerts are critical, crew alerts backed by compliance
    violations are high, weather alerts are at least medium. A duty
    violation among the crew issues is always critical. Registered
    backup plans lower critical and high by one tier.
    """
    severity = Severity.LOW

    for alert in alerts:
        if alert.type is AlertType.MECHANICAL:
            severity = Severity.CRITICAL
            break
        if alert.type is AlertType.CREW and crew_issues:
            severity = max(severity, Severity.HIGH)
        elif alert.type is AlertType.WEATHER:
            severity = max(severity, Severity.MEDIUM)

    if any(marker in issue for issue in crew_issues for marker in DUTY_VIOLATION_MARKERS):
        severity = Severity.CRITICAL
    elif crew_issues and severity is Severity.LOW:
        severity = Severity.HIGH

    if has_backup_plans:
        severity = severity.downgrade()

    return severity


class DisruptionMonitor:
    """
    Disruption monitoring orchestrator

    Usage:
        monitor = DisruptionMonitor(store, tracker, detector, activator, alerts, config.monitor)
        monitor.start()
        for item in monitor.summary():
            print(item.flight_id, item.severity.value)
    """

    def __init__(
        self,
        store: CharterStore,
        tracker: DutyTracker,
        detector: DisruptionDetector,
        activator: BackupActivator,
        alerts: AlertService,
        config: Optional[MonitorConfig] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store
        self.tracker = tracker
        self.detector = detector
        self.activator = activator
        self.alerts = alerts
        self.config = config or MonitorConfig()
        self.clock = clock
        self.last_check: Optional[datetime] = None
        self.ticker = IntervalTicker(
            self.run_sweep,
            self.config.sweep_interval_seconds,
            name='comprehensive_sweep'
        )

    # ==================== LIFECYCLE ====================

    @property
    def is_running(self) -> bool:
        return self.ticker.is_running

    def start(self):
        if self.is_running:
            logger.info("Monitoring already running")
            return

        logger.info("Starting comprehensive disruption monitoring...")
        self.detector.start()
        self.ticker.start()

    def stop(self):
        self.detector.stop()
        self.ticker.stop()
        logger.info("Stopped comprehensive disruption monitoring")

    def trigger_check(self) -> Dict[str, Any]:
        """Run one detector pass and one sweep synchronously"""
        detector_report = self.detector.trigger_check()
        sweep_report = self.ticker.run_once()
        return {
            'detector': detector_report.to_dict(),
            'sweep': sweep_report.to_dict()
        }

    # ==================== SWEEP ====================

    def run_sweep(self) -> RunReport:
        """Suggest backups where missing and refresh crew compliance"""
        self.last_check = self.clock()
        report = RunReport()

        for flight in self.store.get_active_flights():
            try:
                if self._check_flight(flight) is not None:
                    report.alerts_created += 1
            except AppError as e:
                logger.error(f"Comprehensive check failed for flight {flight.id}: {e.message}")
                report.errors.append(f"{flight.id}: {e.message}")
            report.flights_checked += 1

        logger.info(f"Comprehensive check completed: {report.flights_checked} flights")
        return report

    def _check_flight(self, flight: Flight) -> Optional[Alert]:
        created = None

        unresolved = self.store.get_unresolved_alerts(flight.id)
        if unresolved:
            created = self.suggest_backups_if_needed(flight, unresolved)

        for crew_id in flight.crew_ids:
            self.tracker.refresh_snapshot(crew_id)

        return created

    def suggest_backups_if_needed(self, flight: Flight, unresolved: List[Alert]) -> Optional[Alert]:
        """Post an informational alert when a disrupted flight has no backup plans"""
        if self.store.get_backup_plans(flight.id):
            return None

        if any(a.message.startswith(SUGGESTION_PREFIX) for a in unresolved):
            return None

        suggestions = self.activator.suggest_plans(flight.id)
        if not suggestions:
            return None

        alert = self.store.insert_alert(Alert(
            flight_id=flight.id,
            type=AlertType.MECHANICAL,
            message=f"{SUGGESTION_PREFIX}: {len(suggestions)} options suggested",
            triggered_at=self.clock(),
            resolved=False
        ))
        logger.info(f"Suggested {len(suggestions)} backup plans for flight {flight.id}")
        return alert

    # ==================== QUERIES ====================

    def resolve_alert(self, alert_id: str) -> Alert:
        return self.alerts.resolve_alert(alert_id)

    def status(self) -> MonitoringStatus:
        return MonitoringStatus(
            running=self.is_running,
            last_check_time=self.last_check,
            active_alert_count=len(self.store.get_unresolved_alerts()),
            monitored_flight_count=len(self.store.get_active_flights()),
            non_compliant_crew_count=self.store.count_non_compliant_crew()
        )

    def flight_summary(self, flight: Flight) -> FlightDisruptionSummary:
        alerts = self.store.get_unresolved_alerts(flight.id)
        crew_issues = [
            violation
            for check in self.tracker.flight_crew_compliance(flight)
            if not check.is_compliant
            for violation in check.violations
        ]
        has_backup_plans = bool(self.store.get_backup_plans(flight.id))

        return FlightDisruptionSummary(
            flight_id=flight.id,
            tail_number=flight.tail_number,
            origin=flight.origin,
            destination=flight.destination,
            status=flight.status.value,
            alerts=alerts,
            crew_issues=crew_issues,
            has_backup_plans=has_backup_plans,
            severity=calculate_severity(alerts, crew_issues, has_backup_plans)
        )

    def summary(self) -> List[FlightDisruptionSummary]:
        """Active flights ranked by severity, then by most recent alert"""
        summaries = [self.flight_summary(flight) for flight in self.store.get_active_flights()]
        summaries.sort(
            key=lambda s: (s.severity.rank, s.latest_alert_time or _OLDEST),
            reverse=True
        )
        return summaries

    def flight_details(self, flight_id: str) -> Dict[str, Any]:
        flight = self.store.get_flight(flight_id)
        if flight is None:
            raise NotFoundError("Flight", flight_id)

        return {
            'flight': flight.to_dict(),
            'alerts': [a.to_dict() for a in self.store.list_alerts(flight_id)],
            'crew_compliance': [c.to_dict() for c in self.tracker.flight_crew_compliance(flight)],
            'backup_plans': [p.to_dict() for p in self.activator.get_plans(flight_id)],
            'suggestions': [s.to_dict() for s in self.activator.suggest_plans(flight_id)]
        }
