"""
Duty Tracker - Crew duty and rest compliance

Duty records are the source of truth; the current_duty and rest_compliant
columns on the crew table are caches refreshed from them.

Each crew member alternates between two states:
    On-Duty --start_rest--> Resting --end_rest--> On-Duty
A crew member with an open rest record reads as not rest-compliant until
the rest period is ended.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from app.config import MonitorConfig
from app.errors import NotFoundError
from models import ComplianceCheck, CrewMember, DutyRecord, Flight
from supabase_client import CharterStore
from utils.date_utils import hours_between, to_iso, utc_now
from utils.validators import validate_duty_hours

logger = logging.getLogger(__name__)

DUTY_EXCEEDED_PREFIX = "Duty hours exceed maximum"
APPROACHING_LIMIT_PREFIX = "Approaching duty limit"
INSUFFICIENT_REST = "Insufficient rest period"


class DutyTracker:
    """
    Crew duty/rest compliance engine

    Usage:
        tracker = DutyTracker(store, config.monitor)
        check = tracker.compliance_check(crew_id)
        if not check.is_compliant:
            print(check.violations)
    """

    def __init__(
        self,
        store: CharterStore,
        config: Optional[MonitorConfig] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store
        self.config = config or MonitorConfig()
        self.clock = clock

    @property
    def max_duty_hours(self) -> float:
        return self.config.max_duty_hours

    @property
    def min_rest_hours(self) -> float:
        return self.config.min_rest_hours

    # ==================== READS ====================

    def duty_hours(self, crew_id: str, window_hours: Optional[float] = None) -> float:
        """Duty time falling inside the trailing window; records straddling its start are clipped"""
        window = self.config.duty_window_hours if window_hours is None else window_hours
        since = self.clock() - timedelta(hours=window)

        total = 0.0
        for record in self.store.get_duty_records_since(crew_id, since):
            start = record.start_time
            if start is not None and start < since:
                start = since
            total += max(0.0, hours_between(start, record.end_time))
        return total

    def is_resting(self, crew_id: str) -> bool:
        return self.store.get_open_rest(crew_id) is not None

    def rest_compliant(self, crew_id: str) -> bool:
        """Whether the most recent completed rest met the minimum"""
        if self.is_resting(crew_id):
            return False

        latest = self.store.get_latest_completed_rest(crew_id)
        if latest is None:
            return False

        rest_hours = latest.rest_hours
        if rest_hours is None:
            rest_hours = hours_between(latest.rest_start_time, latest.rest_end_time)
        return rest_hours >= self.min_rest_hours

    def compliance_check(self, crew_id: str) -> ComplianceCheck:
        """Evaluate duty and rest limits for one crew member"""
        duty = self.duty_hours(crew_id)
        rest_ok = self.rest_compliant(crew_id)

        violations = []
        warnings = []

        if duty > self.max_duty_hours:
            violations.append(f"{DUTY_EXCEEDED_PREFIX}: {duty:.1f}h > {self.max_duty_hours:g}h")
        elif duty > self.max_duty_hours - self.config.duty_warning_margin:
            warnings.append(f"{APPROACHING_LIMIT_PREFIX}: {duty:.1f}h")

        if not rest_ok:
            violations.append(INSUFFICIENT_REST)

        return ComplianceCheck(
            crew_id=crew_id,
            is_compliant=not violations,
            duty_hours=duty,
            rest_compliant=rest_ok,
            rest_hours_required=self.min_rest_hours,
            violations=violations,
            warnings=warnings
        )

    def flight_crew_compliance(self, flight: Flight) -> List[ComplianceCheck]:
        """Compliance check for every crew member assigned to a flight"""
        return [self.compliance_check(crew_id) for crew_id in flight.crew_ids]

    def available_crew(self) -> List[CrewMember]:
        """Rest-compliant crew with headroom below the duty warning threshold"""
        threshold = self.max_duty_hours - self.config.duty_warning_margin
        return self.store.get_available_crew(threshold)

    # ==================== WRITES ====================

    def _require_crew(self, crew_id: str) -> CrewMember:
        crew = self.store.get_crew_member(crew_id)
        if crew is None:
            raise NotFoundError("Crew member", crew_id)
        return crew

    def update_duty(self, crew_id: str, flight_id: Optional[str], hours) -> DutyRecord:
        """
        Log a duty period of `hours` ending now

        The crew cache takes the new duty figure as-is; values above the
        limit are recorded and only surface at the next compliance check.
        """
        hours = validate_duty_hours(hours)
        self._require_crew(crew_id)

        now = self.clock()
        record = DutyRecord(
            crew_id=crew_id,
            flight_id=flight_id or None,
            start_time=now - timedelta(hours=hours),
            end_time=now,
            duty_hours=hours
        )

        self.store.update_crew(crew_id, {
            'current_duty': hours,
            'rest_compliant': self.rest_compliant(crew_id)
        })
        record = self.store.insert_duty_record(record)

        if hours > self.max_duty_hours:
            logger.warning(f"Crew {crew_id} logged {hours:.1f}h duty, above the {self.max_duty_hours:g}h limit")
        else:
            logger.info(f"Crew {crew_id} duty updated to {hours:.1f}h")
        return record

    def start_rest(self, crew_id: str) -> DutyRecord:
        """Open a rest period; the crew member is unassigned and non-compliant until it ends"""
        self._require_crew(crew_id)

        existing = self.store.get_open_rest(crew_id)
        if existing is not None:
            logger.warning(f"Crew {crew_id} is already resting since {to_iso(existing.rest_start_time)}")
            return existing

        now = self.clock()
        self.store.update_crew(crew_id, {
            'rest_compliant': False,
            'assigned_flight': None
        })

        record = self.store.insert_duty_record(DutyRecord(
            crew_id=crew_id,
            flight_id=None,
            start_time=now,
            end_time=now,
            duty_hours=0.0,
            rest_start_time=now,
            rest_end_time=None,
            rest_hours=None
        ))

        logger.info(f"Rest period started for crew {crew_id}")
        return record

    def end_rest(self, crew_id: str) -> DutyRecord:
        """Close the open rest period and refresh the crew cache"""
        self._require_crew(crew_id)

        record = self.store.get_open_rest(crew_id)
        if record is None:
            raise NotFoundError("Open rest period", crew_id)

        now = self.clock()
        rest_hours = hours_between(record.rest_start_time, now)
        compliant = rest_hours >= self.min_rest_hours

        self.store.update_duty_record(record.id, {
            'rest_end_time': to_iso(now),
            'rest_hours': rest_hours
        })
        self.store.update_crew(crew_id, {
            'rest_compliant': compliant,
            'current_duty': 0
        })

        record.rest_end_time = now
        record.rest_hours = rest_hours

        if compliant:
            logger.info(f"Rest period ended for crew {crew_id} after {rest_hours:.1f}h")
        else:
            logger.warning(
                f"Rest period for crew {crew_id} ended after {rest_hours:.1f}h, "
                f"below the {self.min_rest_hours:g}h minimum"
            )
        return record

    def refresh_snapshot(self, crew_id: str) -> ComplianceCheck:
        """Write derived duty/rest figures back to the crew cache when non-compliant"""
        check = self.compliance_check(crew_id)
        if not check.is_compliant:
            self.store.update_crew(crew_id, {
                'rest_compliant': check.rest_compliant,
                'current_duty': round(check.duty_hours, 2)
            })
        return check
