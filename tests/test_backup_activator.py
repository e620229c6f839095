"""
Backup Activator Tests

Tests cover:
  - Plan suggestion ranking and the minimum crew rule
  - Plan registration and input validation
  - First-valid-plan activation by priority
  - Partial activation reporting when a write fails
"""

import pytest

from app.errors import NotFoundError, ValidationError
from models import ACTIVATION_STEPS
from services.backup_activator import NO_BACKUP_PLANS


@pytest.fixture
def disrupted_flight(add_flight, add_crew):
    add_crew('C1', name='Original Captain', current_duty=9.5)
    return add_flight('FL001', crew_ids=['C1'], status='delayed')


class TestSuggestPlans:
    """Ranked candidate plans"""

    def test_needs_two_available_crew(self, activator, disrupted_flight, add_crew):
        add_crew('B1', current_duty=1)
        add_crew('B2', current_duty=9)

        assert activator.suggest_plans('FL001') == []

    def test_ranked_suggestions(self, activator, disrupted_flight, add_crew):
        add_crew('B1', current_duty=3)
        add_crew('B2', current_duty=1)
        add_crew('B3', current_duty=2)

        plans = activator.suggest_plans('FL001')

        assert [p.priority for p in plans] == [1, 2, 3]
        assert all(p.crew_ids == ['B2', 'B3'] for p in plans)
        assert plans[0].aircraft_id == 'N550BA'
        assert plans[1].aircraft_id == 'N550BB'
        assert plans[2].aircraft_id == 'N550BA'
        assert plans[2].fallback_airport == 'KTEB'
        assert plans[2].conditions == ['Alternative airport available']
        assert all(p.id is None for p in plans)

    def test_current_crew_not_suggested(self, activator, add_flight, add_crew):
        add_crew('C1', current_duty=0)
        add_crew('C2', current_duty=0)
        add_crew('B1', current_duty=1)
        add_flight('FL001', crew_ids=['C1', 'C2'])

        assert activator.suggest_plans('FL001') == []

    def test_unknown_flight(self, activator):
        with pytest.raises(NotFoundError):
            activator.suggest_plans('missing')


class TestCreatePlan:
    """Registering backup plans"""

    def test_creates_plan(self, activator, fake_db, disrupted_flight):
        plan = activator.create_plan('FL001', ['B1', 'B2'], ' n550bb ', fallback_airport='ksfo', priority='2')

        assert plan.id is not None
        assert plan.aircraft_id == 'N550BB'
        assert plan.fallback_airport == 'KSFO'
        assert plan.priority == 2
        assert plan.activated is False
        assert fake_db.row('backups', plan.id)['crew_ids'] == ['B1', 'B2']

    def test_aircraft_required(self, activator, disrupted_flight):
        with pytest.raises(ValidationError):
            activator.create_plan('FL001', ['B1'], '')

    def test_priority_must_be_positive(self, activator, disrupted_flight):
        with pytest.raises(ValidationError):
            activator.create_plan('FL001', ['B1'], 'N550BB', priority=0)

    def test_unknown_flight(self, activator):
        with pytest.raises(NotFoundError):
            activator.create_plan('missing', ['B1'], 'N550BB')


class TestActivate:
    """Activation by priority"""

    def test_skips_plan_without_compliant_crew(self, activator, fake_db, store, disrupted_flight, add_crew):
        add_crew('B1', rested=False)
        add_crew('B2', name='Alex Kim')
        add_crew('B3', name='Jo Park')
        first = activator.create_plan('FL001', ['B1'], 'N550BA', priority=1)
        second = activator.create_plan('FL001', ['B2', 'B3'], 'N550BB', priority=2)

        result = activator.activate('FL001')

        assert result.success is True
        assert result.backup_id == second.id
        assert result.activated_crew == ['B2', 'B3']
        assert result.completed_steps == ACTIVATION_STEPS

        flight = store.get_flight('FL001')
        assert flight.crew_ids == ['B2', 'B3']
        assert flight.status.value == 'scheduled'
        assert fake_db.row('backups', second.id)['activated'] is True
        assert fake_db.row('backups', first.id)['activated'] is False

        messages = [a.message for a in store.list_alerts('FL001')]
        assert "Backup plan activated: N550BB with crew Alex Kim, Jo Park" in messages

    def test_non_compliant_members_are_dropped(self, activator, store, disrupted_flight, add_crew, add_duty):
        add_crew('B1')
        add_crew('B2')
        add_duty('B2', 11)
        activator.create_plan('FL001', ['B1', 'B2'], 'N550BB')

        result = activator.activate('FL001')

        assert result.success is True
        assert result.activated_crew == ['B1']

    def test_crew_over_limit_from_long_duty_is_rejected(self, activator, tracker, disrupted_flight, add_crew):
        add_crew('B1')
        tracker.update_duty('B1', None, 30)
        activator.create_plan('FL001', ['B1'], 'N550BB')

        result = activator.activate('FL001')

        assert result.success is False
        assert result.activated_crew == []
        assert any('No backup crew available or compliant' in error for error in result.errors)

    def test_backup_crew_is_assigned_to_flight(self, activator, fake_db, disrupted_flight, add_crew):
        add_crew('B1')
        add_crew('B2')
        activator.create_plan('FL001', ['B1', 'B2'], 'N550BB')

        activator.activate('FL001')

        assert fake_db.row('crew', 'B1')['assigned_flight'] == 'FL001'
        assert fake_db.row('crew', 'B2')['assigned_flight'] == 'FL001'

    def test_fallback_airport_replaces_destination(self, activator, store, disrupted_flight, add_crew):
        add_crew('B1')
        activator.create_plan('FL001', ['B1'], 'N550BA', fallback_airport='KSFO')

        result = activator.activate('FL001')

        assert result.success is True
        assert store.get_flight('FL001').destination == 'KSFO'

    def test_all_plans_rejected(self, activator, disrupted_flight, add_crew):
        add_crew('B1')
        bad_aircraft = activator.create_plan('FL001', ['B1'], 'N999ZZ', priority=1)
        bad_airport = activator.create_plan('FL001', ['B1'], 'N550BB', fallback_airport='EGLL', priority=2)

        result = activator.activate('FL001')

        assert result.success is False
        assert f"Plan {bad_aircraft.id}: Backup aircraft N999ZZ not available" in result.errors
        assert f"Plan {bad_airport.id}: Fallback airport EGLL not suitable" in result.errors

    def test_no_plans(self, activator, disrupted_flight):
        result = activator.activate('FL001')

        assert result.success is False
        assert result.errors == [NO_BACKUP_PLANS]

    def test_activated_plans_are_not_retried(self, activator, disrupted_flight, add_crew):
        add_crew('B1')
        plan = activator.create_plan('FL001', ['B1'], 'N550BB')
        activator.activate('FL001')

        again = activator.activate('FL001')
        explicit = activator.activate('FL001', plan.id)

        assert again.errors == [NO_BACKUP_PLANS]
        assert explicit.success is False
        assert "already activated" in explicit.message

    def test_plan_for_another_flight(self, activator, add_flight, disrupted_flight, add_crew):
        add_flight('FL002')
        plan = activator.create_plan('FL002', ['C1'], 'N550BB')

        with pytest.raises(NotFoundError):
            activator.activate('FL001', plan.id)

    def test_write_failure_reports_partial_activation(self, activator, fake_db, disrupted_flight, add_crew):
        add_crew('B1')
        plan = activator.create_plan('FL001', ['B1'], 'N550BB')
        fake_db.failures.add(('flights', 'update'))

        result = activator.activate('FL001')

        assert result.success is False
        assert result.failed_step == 'flight_update'
        assert result.completed_steps == ['plan_flag']
        assert result.is_partial is True
        assert fake_db.row('backups', plan.id)['activated'] is True
        assert fake_db.row('flights', 'FL001')['crew_ids'] == ['C1']
        assert fake_db.row('crew', 'B1')['assigned_flight'] is None
