"""
Disruption Detector - Per-flight rule evaluation

Evaluates three independent signal channels for every active flight:
    - weather: visibility, ceiling and wind at origin and destination
    - crew: duty and rest status of the assigned crew
    - airport: scheduled movements inside an airport curfew

Each channel yields at most one finding per flight per evaluation.
Findings become alerts only when no unresolved alert of the same type
exists for the flight. Evaluation of a single flight is serialized by a
per-flight lock so overlapping passes cannot insert duplicates.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from app.config import MonitorConfig
from app.errors import AppError
from models import Alert, AlertType, CrewMember, DisruptionCheck, Flight, Severity
from scheduler import IntervalTicker
from services.base_service import IWeatherProvider, RunReport
from supabase_client import CharterStore
from utils.date_utils import hour_in_window, local_hour, utc_now

logger = logging.getLogger(__name__)

LOW_VISIBILITY_SM = 1
LOW_CEILING_FT = 500
HIGH_WIND_KT = 25


class DisruptionDetector:
    """
    Periodic disruption detector

    Usage:
        detector = DisruptionDetector(store, weather, config.monitor)
        detector.start()            # background ticks every 30s
        report = detector.run_check()  # one synchronous pass
    """

    def __init__(
        self,
        store: CharterStore,
        weather: IWeatherProvider,
        config: Optional[MonitorConfig] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store
        self.weather = weather
        self.config = config or MonitorConfig()
        self.clock = clock
        self.ticker = IntervalTicker(
            self.run_check,
            self.config.detector_interval_seconds,
            name='disruption_detector'
        )
        self._flight_locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # ==================== LIFECYCLE ====================

    @property
    def is_running(self) -> bool:
        return self.ticker.is_running

    def start(self):
        if self.is_running:
            return
        logger.info("Starting disruption monitoring...")
        self.ticker.start()

    def stop(self):
        self.ticker.stop()

    def trigger_check(self) -> RunReport:
        """Run one evaluation pass synchronously"""
        return self.ticker.run_once()

    # ==================== EVALUATION ====================

    def _lock_for(self, flight_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._flight_locks.get(flight_id)
            if lock is None:
                lock = threading.Lock()
                self._flight_locks[flight_id] = lock
            return lock

    def _drop_stale_locks(self, active_ids):
        """Forget locks for flights that left the active set"""
        with self._locks_guard:
            for flight_id in [f for f in self._flight_locks if f not in active_ids]:
                del self._flight_locks[flight_id]

    def run_check(self) -> RunReport:
        """Evaluate every active flight and materialize new alerts"""
        report = RunReport()
        flights = self.store.get_active_flights()

        crew_ids = sorted({crew_id for flight in flights for crew_id in flight.crew_ids})
        crew_by_id = {member.id: member for member in self.store.list_crew(crew_ids)}

        for flight in flights:
            try:
                with self._lock_for(flight.id):
                    disruptions = self.check_flight(flight, crew_by_id)
                    report.disruptions_found += len(disruptions)
                    for disruption in disruptions:
                        if self.create_alert_if_new(disruption) is not None:
                            report.alerts_created += 1
            except AppError as e:
                logger.error(f"Disruption check failed for flight {flight.id}: {e.message}")
                report.errors.append(f"{flight.id}: {e.message}")
            report.flights_checked += 1

        self._drop_stale_locks({flight.id for flight in flights})

        logger.info(
            f"Disruption check completed: {report.flights_checked} flights, "
            f"{report.disruptions_found} disruptions, {report.alerts_created} new alerts"
        )
        return report

    def check_flight(self, flight: Flight, crew_by_id: Dict[str, CrewMember]) -> List[DisruptionCheck]:
        """Run all channel checks for one flight"""
        checks = [
            self.check_weather(flight),
            self.check_crew(flight, crew_by_id),
            self.check_airport(flight),
        ]
        return [c for c in checks if c is not None]

    def check_weather(self, flight: Flight) -> Optional[DisruptionCheck]:
        reasons: List[Tuple[Severity, str]] = []
        observations = {}

        for airport in (flight.origin, flight.destination):
            report = self.weather.get_weather(airport)
            if report is None:
                continue
            observations[airport] = report.to_dict()

            if report.visibility < LOW_VISIBILITY_SM:
                reasons.append((Severity.HIGH, f"Low visibility at {airport}: {report.visibility:g}SM"))
            if report.ceiling is not None and report.ceiling < LOW_CEILING_FT:
                reasons.append((Severity.HIGH, f"Low ceiling at {airport}: {report.ceiling:g}ft"))
            if report.wind_speed > HIGH_WIND_KT:
                reasons.append((Severity.MEDIUM, f"High winds at {airport}: {report.wind_speed:g}kt"))

        if not reasons:
            return None

        issues = [message for _, message in reasons]
        return DisruptionCheck(
            flight_id=flight.id,
            type=AlertType.WEATHER,
            severity=max(severity for severity, _ in reasons),
            message=f"Weather Alert: {', '.join(issues)}",
            details={'issues': issues, 'observations': observations}
        )

    def check_crew(self, flight: Flight, crew_by_id: Dict[str, CrewMember]) -> Optional[DisruptionCheck]:
        max_duty = self.config.max_duty_hours
        approaching = max_duty - self.config.duty_warning_margin
        reasons: List[Tuple[Severity, str]] = []
        flagged = []

        for crew_id in flight.crew_ids:
            member = crew_by_id.get(crew_id)
            if member is None:
                logger.debug(f"Crew {crew_id} on flight {flight.id} not found")
                continue

            member_reasons = []
            if member.current_duty > max_duty:
                member_reasons.append((
                    Severity.CRITICAL,
                    f"{member.display_name}: Duty violation ({member.current_duty:g}h > {max_duty:g}h limit)"
                ))
            elif member.current_duty > approaching:
                member_reasons.append((
                    Severity.HIGH,
                    f"{member.display_name}: Approaching duty limit ({member.current_duty:g}h)"
                ))

            if not member.rest_compliant:
                member_reasons.append((Severity.HIGH, f"{member.display_name}: Insufficient rest period"))

            if member_reasons:
                flagged.append(member.id)
                reasons.extend(member_reasons)

        if not reasons:
            return None

        issues = [message for _, message in reasons]
        return DisruptionCheck(
            flight_id=flight.id,
            type=AlertType.CREW,
            severity=max(severity for severity, _ in reasons),
            message=f"Crew Duty Alert: {', '.join(issues)}",
            details={'crew_issues': issues, 'crew_ids': flagged}
        )

    def _in_curfew(self, airport: str, when: Optional[datetime]) -> bool:
        window = self.config.curfews.get(airport)
        if window is None or when is None:
            return False
        hour = local_hour(when, self.config.airport_timezones.get(airport))
        return hour_in_window(hour, window[0], window[1])

    def check_airport(self, flight: Flight) -> Optional[DisruptionCheck]:
        issues = []

        if self._in_curfew(flight.origin, flight.departure_time):
            issues.append(f"Departure during curfew hours at {flight.origin}")
        if self._in_curfew(flight.destination, flight.arrival_time):
            issues.append(f"Arrival during curfew hours at {flight.destination}")

        if not issues:
            return None

        return DisruptionCheck(
            flight_id=flight.id,
            type=AlertType.AIRPORT,
            severity=Severity.HIGH,
            message=f"Airport Alert: {', '.join(issues)}",
            details={'issues': issues}
        )

    # ==================== ALERTS ====================

    def create_alert_if_new(self, disruption: DisruptionCheck) -> Optional[Alert]:
        """Insert an alert unless an unresolved one of the same type exists"""
        existing = self.store.get_unresolved_alerts(disruption.flight_id, disruption.type)
        if existing:
            return None

        alert = self.store.insert_alert(Alert(
            flight_id=disruption.flight_id,
            type=disruption.type,
            message=disruption.message,
            triggered_at=self.clock(),
            resolved=False
        ))
        logger.info(f"Created new {disruption.type.value} alert for flight {disruption.flight_id}")
        return alert
