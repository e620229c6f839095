"""
Shared pytest fixtures for the charter disruption monitor test suite.

Provides:
    - fake_db: in-memory stand-in for the Supabase query builder
    - clock: controllable UTC clock injected into every service
    - store: CharterStore over fake_db
    - tracker / detector / activator / alert_service / monitor
    - client: Flask test client over the assembled monitor
"""

import copy
import itertools
from datetime import datetime, timedelta

import pytest

from api.index import create_app
from app.config import MonitorConfig
from services.alert_service import AlertService
from services.backup_activator import BackupActivator
from services.disruption_detector import DisruptionDetector
from services.disruption_monitor import DisruptionMonitor
from services.duty_tracker import DutyTracker
from services.weather_service import StaticWeatherProvider
from supabase_client import CharterStore
from utils.date_utils import UTC, to_iso


NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


# ── Fake Supabase ─────────────────────────────────────────────────────────


class FakeResponse:
    def __init__(self, data):
        self.data = data


class _Negated:
    """Mirror of the builder's `.not_` proxy"""

    def __init__(self, query):
        self._query = query

    def is_(self, column, value):
        return self._query._filter(lambda row: not _is_null_match(row, column, value))


def _is_null_match(row, column, value):
    if value == 'null':
        return row.get(column) is None
    return row.get(column) is value


def _sort_key(column):
    def key(row):
        value = row.get(column)
        return (value is None, value if value is not None else 0)
    return key


class FakeQuery:
    """Chainable query over one in-memory table"""

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.operation = 'select'
        self.payload = None
        self.filters = []
        self.orders = []
        self.row_limit = None
        self.row_range = None

    def select(self, columns='*'):
        self.operation = 'select'
        return self

    def insert(self, rows):
        self.operation = 'insert'
        self.payload = rows
        return self

    def update(self, fields):
        self.operation = 'update'
        self.payload = fields
        return self

    def _filter(self, predicate):
        self.filters.append(predicate)
        return self

    def eq(self, column, value):
        return self._filter(lambda row: row.get(column) == value)

    def in_(self, column, values):
        return self._filter(lambda row: row.get(column) in values)

    def lt(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row.get(column) < value)

    def gte(self, column, value):
        return self._filter(lambda row: row.get(column) is not None and row.get(column) >= value)

    def is_(self, column, value):
        return self._filter(lambda row: _is_null_match(row, column, value))

    @property
    def not_(self):
        return _Negated(self)

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def limit(self, count):
        self.row_limit = count
        return self

    def range(self, start, end):
        self.row_range = (start, end)
        return self

    def _matches(self):
        return [row for row in self.db.tables.setdefault(self.table, []) if all(f(row) for f in self.filters)]

    def execute(self):
        self.db.calls.append((self.table, self.operation))
        if (self.table, self.operation) in self.db.failures:
            raise ConnectionError(f"simulated {self.operation} failure on {self.table}")

        if self.operation == 'insert':
            rows = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = [self.db.add(self.table, row) for row in rows]
            return FakeResponse(copy.deepcopy(inserted))

        matches = self._matches()

        if self.operation == 'update':
            for row in matches:
                row.update(copy.deepcopy(self.payload))
            return FakeResponse(copy.deepcopy(matches))

        for column, desc in reversed(self.orders):
            matches = sorted(matches, key=_sort_key(column), reverse=desc)
        if self.row_range is not None:
            start, end = self.row_range
            matches = matches[start:end + 1]
        if self.row_limit is not None:
            matches = matches[:self.row_limit]
        return FakeResponse(copy.deepcopy(matches))


class FakeSupabase:
    """
    In-memory Supabase client

    failures holds (table, operation) pairs whose execute() raises.
    """

    def __init__(self):
        self.tables = {}
        self.failures = set()
        self.calls = []
        self._ids = itertools.count(1)

    def table(self, name):
        return FakeQuery(self, name)

    def add(self, table, row):
        row = copy.deepcopy(row)
        if row.get('id') is None:
            row['id'] = f"{table}-{next(self._ids)}"
        self.tables.setdefault(table, []).append(row)
        return row

    def seed(self, table, *rows):
        return [self.add(table, row) for row in rows]

    def rows(self, table):
        return self.tables.get(table, [])

    def row(self, table, row_id):
        return next((r for r in self.rows(table) if r['id'] == row_id), None)


class FakeClock:
    def __init__(self, start=NOW):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ── Core fixtures ─────────────────────────────────────────────────────────


@pytest.fixture
def fake_db():
    return FakeSupabase()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(fake_db):
    return CharterStore(fake_db)


@pytest.fixture
def monitor_config():
    return MonitorConfig()


@pytest.fixture
def weather():
    """Empty weather table; tests add the observations they need"""
    return StaticWeatherProvider({})


@pytest.fixture
def tracker(store, monitor_config, clock):
    return DutyTracker(store, monitor_config, clock=clock)


@pytest.fixture
def detector(store, weather, monitor_config, clock):
    return DisruptionDetector(store, weather, monitor_config, clock=clock)


@pytest.fixture
def activator(store, tracker, monitor_config, clock):
    return BackupActivator(store, tracker, monitor_config, clock=clock)


@pytest.fixture
def alert_service(store, clock):
    return AlertService(store, clock=clock)


@pytest.fixture
def monitor(store, tracker, detector, activator, alert_service, monitor_config, clock):
    m = DisruptionMonitor(store, tracker, detector, activator, alert_service, monitor_config, clock=clock)
    yield m
    m.stop()


@pytest.fixture
def client(monitor):
    app = create_app(monitor)
    app.config['TESTING'] = True
    return app.test_client()


# ── Seed helpers ──────────────────────────────────────────────────────────


@pytest.fixture
def add_flight(fake_db, clock):
    """Insert a flight departing three hours from now (daytime at KTEB/KLAX)"""
    def _add(flight_id='FL001', crew_ids=None, status='scheduled', tail_number='N550BA',
             origin='KTEB', destination='KLAX', departure=None, arrival=None):
        departure = departure or clock() + timedelta(hours=3)
        arrival = arrival or departure + timedelta(hours=6)
        return fake_db.add('flights', {
            'id': flight_id,
            'tail_number': tail_number,
            'origin': origin,
            'destination': destination,
            'departure_time': to_iso(departure),
            'arrival_time': to_iso(arrival),
            'status': status,
            'crew_ids': list(crew_ids or []),
            'issues': []
        })
    return _add


@pytest.fixture
def add_crew(fake_db, clock):
    """
    Insert a crew member

    rested=True also records a completed 12h rest that ended an hour ago,
    so the derived rest check passes.
    """
    def _add(crew_id, name=None, current_duty=0.0, rest_compliant=True, rested=True):
        row = fake_db.add('crew', {
            'id': crew_id,
            'name': name or f"Crew {crew_id}",
            'current_duty': current_duty,
            'rest_compliant': rest_compliant,
            'assigned_flight': None
        })
        if rested:
            rest_end = clock() - timedelta(hours=1)
            rest_start = rest_end - timedelta(hours=12)
            fake_db.add('duty_records', {
                'crew_id': crew_id,
                'flight_id': None,
                'start_time': to_iso(rest_start),
                'end_time': to_iso(rest_start),
                'duty_hours': 0.0,
                'rest_start_time': to_iso(rest_start),
                'rest_end_time': to_iso(rest_end),
                'rest_hours': 12.0
            })
        return row
    return _add


@pytest.fixture
def add_duty(fake_db, clock):
    """Record a duty period of `hours` ending `ended_ago` hours before now"""
    def _add(crew_id, hours, ended_ago=0.0):
        end = clock() - timedelta(hours=ended_ago)
        return fake_db.add('duty_records', {
            'crew_id': crew_id,
            'flight_id': None,
            'start_time': to_iso(end - timedelta(hours=hours)),
            'end_time': to_iso(end),
            'duty_hours': hours,
            'rest_start_time': None,
            'rest_end_time': None,
            'rest_hours': None
        })
    return _add
