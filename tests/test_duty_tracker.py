"""
Duty Tracker Tests

Tests cover:
  - Duty hours over the trailing window
  - Compliance violations and warnings
  - Rest period state machine (start_rest / end_rest)
  - Duty updates and the crew cache
"""

import pytest

from app.errors import NotFoundError, ValidationError
from models import Flight


class TestDutyHours:
    """Duty time derived from duty records"""

    def test_sums_records_inside_window(self, tracker, add_crew, add_duty):
        add_crew('C1')
        add_duty('C1', 4, ended_ago=10)
        add_duty('C1', 3)

        assert tracker.duty_hours('C1') == pytest.approx(7.0)

    def test_ignores_records_older_than_window(self, tracker, add_crew, add_duty):
        add_crew('C1')
        add_duty('C1', 5, ended_ago=30)
        add_duty('C1', 2)

        assert tracker.duty_hours('C1') == pytest.approx(2.0)

    def test_no_records_means_zero(self, tracker):
        assert tracker.duty_hours('nobody') == 0.0

    def test_record_straddling_window_start_is_clipped(self, tracker, add_crew, add_duty):
        add_crew('C1')
        add_duty('C1', 6, ended_ago=21)

        assert tracker.duty_hours('C1') == pytest.approx(3.0)

    def test_period_longer_than_window_counts_in_full_window(self, tracker, add_crew):
        add_crew('C1')

        tracker.update_duty('C1', None, 30)
        check = tracker.compliance_check('C1')

        assert tracker.duty_hours('C1') == pytest.approx(24.0)
        assert check.is_compliant is False
        assert check.violations[0].startswith("Duty hours exceed maximum")


class TestComplianceCheck:
    """Duty and rest limits"""

    def test_duty_over_limit_is_violation(self, tracker, add_crew, add_duty):
        add_crew('C1')
        add_duty('C1', 10.5)

        check = tracker.compliance_check('C1')

        assert check.is_compliant is False
        assert check.rest_compliant is True
        assert any("Duty hours exceed maximum" in v for v in check.violations)
        assert check.warnings == []

    def test_near_limit_is_warning_only(self, tracker, add_crew, add_duty):
        add_crew('C1')
        add_duty('C1', 9.5)

        check = tracker.compliance_check('C1')

        assert check.is_compliant is True
        assert check.violations == []
        assert check.warnings == ["Approaching duty limit: 9.5h"]

    def test_exactly_at_limit_is_not_a_violation(self, tracker, add_crew, add_duty):
        add_crew('C1')
        add_duty('C1', 10)

        check = tracker.compliance_check('C1')

        assert check.is_compliant is True
        assert check.warnings == ["Approaching duty limit: 10.0h"]

    def test_missing_rest_history_is_violation(self, tracker, add_crew):
        add_crew('C1', rested=False)

        check = tracker.compliance_check('C1')

        assert check.is_compliant is False
        assert check.violations == ["Insufficient rest period"]

    def test_flight_crew_compliance_checks_each_member(self, tracker, add_crew):
        add_crew('C1')
        add_crew('C2', rested=False)
        flight = Flight(id='FL001', tail_number='N550BA', origin='KTEB',
                        destination='KLAX', crew_ids=['C1', 'C2'])

        checks = tracker.flight_crew_compliance(flight)

        assert [c.crew_id for c in checks] == ['C1', 'C2']
        assert [c.is_compliant for c in checks] == [True, False]


class TestRestPeriods:
    """On-Duty <-> Resting transitions"""

    def test_full_rest_restores_compliance(self, tracker, fake_db, clock, add_crew):
        add_crew('C1', current_duty=9, rested=False)

        tracker.start_rest('C1')
        assert tracker.is_resting('C1') is True
        assert fake_db.row('crew', 'C1')['rest_compliant'] is False

        clock.advance(hours=10)
        record = tracker.end_rest('C1')

        assert record.rest_hours == pytest.approx(10.0)
        assert tracker.is_resting('C1') is False
        assert tracker.rest_compliant('C1') is True
        assert fake_db.row('crew', 'C1')['rest_compliant'] is True
        assert fake_db.row('crew', 'C1')['current_duty'] == 0

    def test_short_rest_is_not_compliant(self, tracker, fake_db, clock, add_crew):
        add_crew('C1', rested=False)

        tracker.start_rest('C1')
        clock.advance(hours=9)
        tracker.end_rest('C1')

        assert tracker.rest_compliant('C1') is False
        assert fake_db.row('crew', 'C1')['rest_compliant'] is False

    def test_resting_crew_is_not_rest_compliant(self, tracker, add_crew):
        add_crew('C1')

        tracker.start_rest('C1')

        assert tracker.rest_compliant('C1') is False

    def test_start_rest_twice_returns_open_record(self, tracker, fake_db, add_crew):
        add_crew('C1', rested=False)

        first = tracker.start_rest('C1')
        second = tracker.start_rest('C1')

        assert first.id == second.id
        open_records = [r for r in fake_db.rows('duty_records') if r['rest_end_time'] is None]
        assert len(open_records) == 1

    def test_end_rest_without_open_period(self, tracker, add_crew):
        add_crew('C1')

        with pytest.raises(NotFoundError):
            tracker.end_rest('C1')

    def test_start_rest_unknown_crew(self, tracker):
        with pytest.raises(NotFoundError):
            tracker.start_rest('missing')


class TestUpdateDuty:
    """Logging duty periods"""

    def test_records_period_ending_now(self, tracker, fake_db, clock, add_crew):
        add_crew('C1')

        record = tracker.update_duty('C1', 'FL001', 6)

        assert record.end_time == clock()
        assert record.duty_hours == 6
        assert tracker.duty_hours('C1') == pytest.approx(6.0)
        assert fake_db.row('crew', 'C1')['current_duty'] == 6

    def test_accepts_hours_above_limit(self, tracker, add_crew):
        add_crew('C1')

        tracker.update_duty('C1', None, 12)

        assert tracker.compliance_check('C1').is_compliant is False

    def test_rejects_negative_hours(self, tracker, add_crew):
        add_crew('C1')

        with pytest.raises(ValidationError):
            tracker.update_duty('C1', None, -1)

    def test_unknown_crew(self, tracker):
        with pytest.raises(NotFoundError):
            tracker.update_duty('missing', None, 2)

    @pytest.mark.parametrize('hours', ['inf', float('inf'), 'nan', 1e12, 169])
    def test_rejects_unbounded_hours_without_touching_cache(self, tracker, fake_db, add_crew, hours):
        add_crew('C1', current_duty=3.0)
        records_before = len(fake_db.rows('duty_records'))

        with pytest.raises(ValidationError):
            tracker.update_duty('C1', None, hours)

        assert fake_db.row('crew', 'C1')['current_duty'] == 3.0
        assert len(fake_db.rows('duty_records')) == records_before

    def test_returned_rest_record_carries_id(self, tracker, add_crew):
        add_crew('C1')

        record = tracker.start_rest('C1')

        assert record.to_dict()['id'] == record.id


class TestAvailableCrew:
    """Backup crew pool"""

    def test_filters_by_rest_and_duty_headroom(self, tracker, add_crew):
        add_crew('C1', current_duty=2)
        add_crew('C2', current_duty=8.5)
        add_crew('C3', current_duty=1, rest_compliant=False)
        add_crew('C4', current_duty=0)

        assert [c.id for c in tracker.available_crew()] == ['C4', 'C1']

    def test_refresh_snapshot_writes_non_compliant_figures(self, tracker, fake_db, add_crew, add_duty):
        add_crew('C1', current_duty=1)
        add_duty('C1', 11)

        check = tracker.refresh_snapshot('C1')

        assert check.is_compliant is False
        assert fake_db.row('crew', 'C1')['current_duty'] == 11
