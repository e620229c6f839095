"""
Backup Activator - Suggest, validate and activate backup plans

Activation tries the flight's non-activated plans in ascending priority
and stops at the first one that validates. A plan validates when:
    - at least one listed crew member is compliant and rest-compliant
      (non-compliant crew are dropped from the activation set)
    - its aircraft is in the available aircraft pool
    - its fallback airport, if any, is on the suitable airport list

Activating writes three records in sequence: the plan flag, the flight
update and a resolution alert. The writes are not transactional; when one
fails the result names the failed step and the steps already applied.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from app.config import MonitorConfig
from app.errors import DatabaseError, NotFoundError, ValidationError
from models import ActivationResult, Alert, AlertType, BackupPlan, CrewMember, Flight, FlightStatus
from models.backup import STEP_ALERT_INSERT, STEP_FLIGHT_UPDATE, STEP_PLAN_FLAG
from services.duty_tracker import DutyTracker
from supabase_client import CharterStore
from utils.date_utils import to_iso, utc_now
from utils.validators import normalize_airport, validate_crew_ids, validate_priority

logger = logging.getLogger(__name__)

NO_BACKUP_PLANS = "No available backup plans"


class BackupActivator:
    """
    Backup plan resolver

    Usage:
        activator = BackupActivator(store, tracker, config.monitor)
        result = activator.activate(flight_id)
        if not result.success:
            print(result.errors)
    """

    def __init__(
        self,
        store: CharterStore,
        tracker: DutyTracker,
        config: Optional[MonitorConfig] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store
        self.tracker = tracker
        self.config = config or MonitorConfig()
        self.clock = clock

    def _require_flight(self, flight_id: str) -> Flight:
        flight = self.store.get_flight(flight_id)
        if flight is None:
            raise NotFoundError("Flight", flight_id)
        return flight

    # ==================== PLANS ====================

    def get_plans(self, flight_id: str) -> List[BackupPlan]:
        return self.store.get_backup_plans(flight_id)

    def create_plan(
        self,
        flight_id: str,
        crew_ids: Optional[List[str]],
        aircraft_id: str,
        fallback_airport: Optional[str] = None,
        priority=1
    ) -> BackupPlan:
        """Register a backup plan for later activation"""
        if not aircraft_id or not str(aircraft_id).strip():
            raise ValidationError("Aircraft ID is required", field='aircraft_id')

        self._require_flight(flight_id)

        plan = self.store.insert_backup_plan(BackupPlan(
            flight_id=flight_id,
            crew_ids=validate_crew_ids(crew_ids),
            aircraft_id=str(aircraft_id).strip().upper(),
            fallback_airport=normalize_airport(fallback_airport),
            priority=validate_priority(priority),
            activated=False
        ))
        logger.info(f"Backup plan {plan.id} (priority {plan.priority}) created for flight {flight_id}")
        return plan

    def suggest_plans(self, flight_id: str) -> List[BackupPlan]:
        """
        Ranked, unsaved candidate plans

        1. Original aircraft with alternate crew
        2. Pool aircraft on the same route
        3. Original aircraft diverted to an alternate airport
        """
        flight = self._require_flight(flight_id)

        available = [c for c in self.tracker.available_crew() if c.id not in flight.crew_ids]
        if len(available) < 2:
            logger.info(f"Not enough available crew to suggest backups for flight {flight_id}")
            return []

        crew_ids = [c.id for c in available[:2]]
        suggestions = [
            BackupPlan(
                flight_id=flight_id,
                crew_ids=crew_ids,
                aircraft_id=flight.tail_number,
                priority=1,
                conditions=['Original aircraft available']
            )
        ]

        other_aircraft = [a for a in self.config.available_aircraft if a != flight.tail_number]
        if other_aircraft:
            suggestions.append(BackupPlan(
                flight_id=flight_id,
                crew_ids=crew_ids,
                aircraft_id=other_aircraft[0],
                priority=2,
                conditions=['Backup aircraft available']
            ))

        other_airports = [a for a in self.config.alternate_airports if a != flight.destination]
        if other_airports:
            suggestions.append(BackupPlan(
                flight_id=flight_id,
                crew_ids=crew_ids,
                aircraft_id=flight.tail_number,
                fallback_airport=other_airports[0],
                priority=3,
                conditions=['Alternative airport available']
            ))

        return suggestions

    # ==================== VALIDATION ====================

    def validate_crew(self, crew_ids: List[str]) -> List[CrewMember]:
        """Crew members that pass the compliance check and are rest-compliant"""
        valid = []
        for crew_id in crew_ids:
            member = self.store.get_crew_member(crew_id)
            if member is None:
                logger.warning(f"Backup crew {crew_id} not found")
                continue

            compliance = self.tracker.compliance_check(crew_id)
            if compliance.is_compliant and member.rest_compliant:
                valid.append(member)
            else:
                logger.info(f"Backup crew {crew_id} dropped: {', '.join(compliance.violations) or 'not rest-compliant'}")
        return valid

    def is_aircraft_available(self, aircraft_id: str) -> bool:
        return aircraft_id in self.config.available_aircraft

    def is_airport_suitable(self, airport_code: str) -> bool:
        return airport_code in self.config.suitable_airports

    def validate_plan(self, plan: BackupPlan) -> Tuple[List[CrewMember], List[str]]:
        """Return the usable crew and the validation errors for a plan"""
        errors = []

        crew = self.validate_crew(plan.crew_ids)
        if not crew:
            errors.append("No backup crew available or compliant")

        if not self.is_aircraft_available(plan.aircraft_id):
            errors.append(f"Backup aircraft {plan.aircraft_id} not available")

        if plan.fallback_airport and not self.is_airport_suitable(plan.fallback_airport):
            errors.append(f"Fallback airport {plan.fallback_airport} not suitable")

        return crew, errors

    # ==================== ACTIVATION ====================

    def activate(self, flight_id: str, backup_id: Optional[str] = None) -> ActivationResult:
        """Activate a specific plan, or the first valid plan by priority"""
        flight = self._require_flight(flight_id)

        if backup_id:
            plan = self.store.get_backup_plan(backup_id)
            if plan is None or plan.flight_id != flight_id:
                raise NotFoundError("Backup plan", backup_id)
            if plan.activated:
                return ActivationResult(
                    success=False,
                    flight_id=flight_id,
                    backup_id=backup_id,
                    message="Backup plan already activated",
                    errors=[f"Backup plan {backup_id} already activated"]
                )
            plans = [plan]
        else:
            plans = self.store.get_backup_plans(flight_id, only_available=True)

        if not plans:
            return ActivationResult(
                success=False,
                flight_id=flight_id,
                message=NO_BACKUP_PLANS,
                errors=[NO_BACKUP_PLANS]
            )

        collected = []
        for plan in plans:
            crew, errors = self.validate_plan(plan)
            if errors:
                logger.warning(f"Backup plan {plan.id} for flight {flight_id} rejected: {'; '.join(errors)}")
                collected.extend(f"Plan {plan.id}: {error}" for error in errors)
                continue
            return self._apply(flight, plan, crew)

        return ActivationResult(
            success=False,
            flight_id=flight_id,
            message="No backup plans could be activated",
            errors=collected
        )

    def _apply(self, flight: Flight, plan: BackupPlan, crew: List[CrewMember]) -> ActivationResult:
        crew_ids = [c.id for c in crew]
        now = self.clock()

        result = ActivationResult(
            success=False,
            flight_id=flight.id,
            backup_id=plan.id,
            activated_crew=crew_ids,
            activated_aircraft=plan.aircraft_id,
            fallback_airport=plan.fallback_airport
        )

        flight_fields = {
            'crew_ids': crew_ids,
            'status': FlightStatus.SCHEDULED.value
        }
        if plan.fallback_airport:
            flight_fields['destination'] = plan.fallback_airport

        names = ', '.join(c.display_name for c in crew)
        resolution = Alert(
            flight_id=flight.id,
            type=AlertType.MECHANICAL,
            message=f"Backup plan activated: {plan.aircraft_id} with crew {names}",
            triggered_at=now,
            resolved=False
        )

        steps = [
            (STEP_PLAN_FLAG, lambda: self.store.update_backup_plan(
                plan.id, {'activated': True, 'updated_at': to_iso(now)}
            )),
            (STEP_FLIGHT_UPDATE, lambda: self._reassign(flight.id, flight_fields, crew_ids)),
            (STEP_ALERT_INSERT, lambda: self.store.insert_alert(resolution)),
        ]

        for step, write in steps:
            try:
                write()
            except DatabaseError as e:
                result.failed_step = step
                result.message = f"Backup activation failed at {step}"
                result.errors.append(f"{step} failed: {e.message}")
                logger.error(
                    f"Backup plan {plan.id} for flight {flight.id} partially activated: "
                    f"completed={result.completed_steps}, failed={step}"
                )
                return result
            result.completed_steps.append(step)

        result.success = True
        result.message = f"Backup plan activated successfully with {plan.aircraft_id}"
        logger.info(f"Backup plan {plan.id} activated for flight {flight.id} with crew {crew_ids}")
        return result

    def _reassign(self, flight_id: str, flight_fields: dict, crew_ids: List[str]):
        """Point the flight at the backup crew and the crew at the flight"""
        self.store.update_flight(flight_id, flight_fields)
        for crew_id in crew_ids:
            self.store.update_crew(crew_id, {'assigned_flight': flight_id})
