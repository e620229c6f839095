"""
Supabase Client Module for Charter Ops
Typed access to the flights, crew, duty_records, alerts and backups tables.

Every failed read or write raises DatabaseError so callers can tell an
empty table from an unreachable one.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from supabase import create_client, Client

from app.config import SupabaseConfig
from app.errors import DatabaseError, ServiceUnavailableError
from models import Alert, AlertType, BackupPlan, CrewMember, DutyRecord, Flight, FlightStatus
from utils.date_utils import to_iso

logger = logging.getLogger(__name__)

FLIGHTS = 'flights'
CREW = 'crew'
DUTY_RECORDS = 'duty_records'
ALERTS = 'alerts'
BACKUPS = 'backups'

PAGE_SIZE = 1000


def init_supabase(config: Optional[SupabaseConfig]) -> Client:
    """Create a Supabase client from configuration"""
    if config is None or not config.is_valid():
        raise ServiceUnavailableError("Supabase", reason="SUPABASE_URL or SUPABASE_KEY not configured")

    try:
        return create_client(config.url, config.key)
    except Exception as e:
        raise ServiceUnavailableError("Supabase", reason=f"Failed to create Supabase client: {e}")


class CharterStore:
    """
    Store gateway over a Supabase client

    Usage:
        client = init_supabase(get_config().supabase)
        store = CharterStore(client)
        flights = store.get_active_flights()
    """

    def __init__(self, client: Client):
        self.client = client

    # ==================== QUERY HELPERS ====================

    def _execute(self, query, operation: str) -> List[Dict[str, Any]]:
        """Run a query, converting client failures to DatabaseError"""
        try:
            result = query.execute()
        except Exception as e:
            logger.error(f"Supabase {operation} failed: {e}")
            raise DatabaseError(operation, details={'reason': str(e)})
        return result.data if result.data else []

    def _fetch_all(self, query, operation: str) -> List[Dict[str, Any]]:
        """Fetch all records using pagination to bypass 1000-row limit"""
        all_data = []
        start = 0

        while True:
            # Use range for pagination: start to start + limit - 1
            data = self._execute(query.range(start, start + PAGE_SIZE - 1), operation)
            all_data.extend(data)

            # If we fetched fewer than limit, we're done
            if len(data) < PAGE_SIZE:
                break

            start += PAGE_SIZE

        return all_data

    def _first(self, query, operation: str) -> Optional[Dict[str, Any]]:
        rows = self._execute(query.limit(1), operation)
        return rows[0] if rows else None

    def check_connection(self):
        """Check if Supabase connection is working"""
        try:
            self._execute(self.client.table(FLIGHTS).select('id').limit(1), 'connection check')
            return True, "Connected successfully"
        except DatabaseError as e:
            return False, str(e.details.get('reason') if e.details else e.message)

    # ==================== FLIGHTS TABLE ====================

    def get_active_flights(self) -> List[Flight]:
        """Flights whose status is scheduled or delayed"""
        query = self.client.table(FLIGHTS).select('*').in_(
            'status', [s.value for s in FlightStatus.active()]
        ).order('departure_time')
        return [Flight.from_dict(r) for r in self._fetch_all(query, 'get active flights')]

    def list_flights(self) -> List[Flight]:
        query = self.client.table(FLIGHTS).select('*').order('departure_time')
        return [Flight.from_dict(r) for r in self._fetch_all(query, 'list flights')]

    def get_flight(self, flight_id: str) -> Optional[Flight]:
        row = self._first(self.client.table(FLIGHTS).select('*').eq('id', flight_id), 'get flight')
        return Flight.from_dict(row) if row else None

    def update_flight(self, flight_id: str, fields: Dict[str, Any]) -> None:
        self._execute(self.client.table(FLIGHTS).update(fields).eq('id', flight_id), 'update flight')

    # ==================== CREW TABLE ====================

    def get_crew_member(self, crew_id: str) -> Optional[CrewMember]:
        row = self._first(self.client.table(CREW).select('*').eq('id', crew_id), 'get crew member')
        return CrewMember.from_dict(row) if row else None

    def list_crew(self, crew_ids: Optional[List[str]] = None) -> List[CrewMember]:
        """All crew, or only the given ids"""
        query = self.client.table(CREW).select('*')
        if crew_ids is not None:
            if not crew_ids:
                return []
            query = query.in_('id', list(crew_ids))
        query = query.order('name')
        return [CrewMember.from_dict(r) for r in self._fetch_all(query, 'list crew')]

    def get_available_crew(self, max_current_duty: float) -> List[CrewMember]:
        """Rest-compliant crew below a duty threshold"""
        query = self.client.table(CREW).select('*').eq('rest_compliant', True).lt(
            'current_duty', max_current_duty
        ).order('current_duty')
        return [CrewMember.from_dict(r) for r in self._fetch_all(query, 'get available crew')]

    def count_non_compliant_crew(self) -> int:
        query = self.client.table(CREW).select('id').eq('rest_compliant', False)
        return len(self._fetch_all(query, 'count non-compliant crew'))

    def update_crew(self, crew_id: str, fields: Dict[str, Any]) -> None:
        self._execute(self.client.table(CREW).update(fields).eq('id', crew_id), 'update crew')

    # ==================== DUTY RECORDS TABLE ====================

    def insert_duty_record(self, record: DutyRecord) -> DutyRecord:
        rows = self._execute(self.client.table(DUTY_RECORDS).insert(record.to_dict()), 'insert duty record')
        return DutyRecord.from_dict(rows[0]) if rows else record

    def get_duty_records_since(self, crew_id: str, since: datetime) -> List[DutyRecord]:
        """Records for a crew member that end at or after `since`"""
        query = self.client.table(DUTY_RECORDS).select('*').eq('crew_id', crew_id).gte(
            'end_time', to_iso(since)
        ).order('start_time')
        return [DutyRecord.from_dict(r) for r in self._fetch_all(query, 'get duty records')]

    def get_latest_completed_rest(self, crew_id: str) -> Optional[DutyRecord]:
        """Most recent record carrying both rest start and rest end"""
        query = (
            self.client.table(DUTY_RECORDS).select('*')
            .eq('crew_id', crew_id)
            .not_.is_('rest_start_time', 'null')
            .not_.is_('rest_end_time', 'null')
            .order('rest_start_time', desc=True)
        )
        row = self._first(query, 'get latest rest record')
        return DutyRecord.from_dict(row) if row else None

    def get_open_rest(self, crew_id: str) -> Optional[DutyRecord]:
        """Rest record that has been started but not ended"""
        query = (
            self.client.table(DUTY_RECORDS).select('*')
            .eq('crew_id', crew_id)
            .not_.is_('rest_start_time', 'null')
            .is_('rest_end_time', 'null')
            .order('rest_start_time', desc=True)
        )
        row = self._first(query, 'get open rest record')
        return DutyRecord.from_dict(row) if row else None

    def update_duty_record(self, record_id: str, fields: Dict[str, Any]) -> None:
        self._execute(
            self.client.table(DUTY_RECORDS).update(fields).eq('id', record_id),
            'update duty record'
        )

    # ==================== ALERTS TABLE ====================

    def get_unresolved_alerts(
        self,
        flight_id: Optional[str] = None,
        alert_type: Optional[AlertType] = None
    ) -> List[Alert]:
        """Unresolved alerts, newest first, optionally per flight and type"""
        query = self.client.table(ALERTS).select('*').eq('resolved', False)
        if flight_id is not None:
            query = query.eq('flight_id', flight_id)
        if alert_type is not None:
            query = query.eq('type', alert_type.value)
        query = query.order('triggered_at', desc=True)
        return [Alert.from_dict(r) for r in self._fetch_all(query, 'get unresolved alerts')]

    def list_alerts(self, flight_id: Optional[str] = None, include_resolved: bool = True) -> List[Alert]:
        query = self.client.table(ALERTS).select('*')
        if flight_id is not None:
            query = query.eq('flight_id', flight_id)
        if not include_resolved:
            query = query.eq('resolved', False)
        query = query.order('triggered_at', desc=True)
        return [Alert.from_dict(r) for r in self._fetch_all(query, 'list alerts')]

    def get_alert(self, alert_id: str) -> Optional[Alert]:
        row = self._first(self.client.table(ALERTS).select('*').eq('id', alert_id), 'get alert')
        return Alert.from_dict(row) if row else None

    def insert_alert(self, alert: Alert) -> Alert:
        rows = self._execute(self.client.table(ALERTS).insert(alert.to_dict()), 'insert alert')
        return Alert.from_dict(rows[0]) if rows else alert

    def update_alert(self, alert_id: str, fields: Dict[str, Any]) -> None:
        self._execute(self.client.table(ALERTS).update(fields).eq('id', alert_id), 'update alert')

    # ==================== BACKUPS TABLE ====================

    def get_backup_plans(self, flight_id: str, only_available: bool = False) -> List[BackupPlan]:
        """Plans for a flight ordered by ascending priority"""
        query = self.client.table(BACKUPS).select('*').eq('flight_id', flight_id)
        if only_available:
            query = query.eq('activated', False)
        query = query.order('priority')
        return [BackupPlan.from_dict(r) for r in self._fetch_all(query, 'get backup plans')]

    def get_backup_plan(self, backup_id: str) -> Optional[BackupPlan]:
        row = self._first(self.client.table(BACKUPS).select('*').eq('id', backup_id), 'get backup plan')
        return BackupPlan.from_dict(row) if row else None

    def insert_backup_plan(self, plan: BackupPlan) -> BackupPlan:
        rows = self._execute(self.client.table(BACKUPS).insert(plan.to_row()), 'insert backup plan')
        return BackupPlan.from_dict(rows[0]) if rows else plan

    def update_backup_plan(self, backup_id: str, fields: Dict[str, Any]) -> None:
        self._execute(self.client.table(BACKUPS).update(fields).eq('id', backup_id), 'update backup plan')
