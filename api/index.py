"""
Flask API for Charter Disruption Monitoring
JSON endpoints over the monitor, crew duty, alert and backup services.
"""

import logging

from flask import Flask, jsonify, request

from api.middleware import safe_endpoint, setup_error_handlers, setup_request_logging
from app.errors import BackupActivationError, NotFoundError, ValidationError
from services.disruption_monitor import DisruptionMonitor
from utils.validators import require_fields

logger = logging.getLogger(__name__)

TRUE_VALUES = ('1', 'true', 'yes')


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def _action(payload: dict, allowed) -> str:
    action = payload.get('action')
    if action not in allowed:
        raise ValidationError(
            f"Invalid action: {action}. Must be one of {', '.join(allowed)}",
            field='action'
        )
    return action


def _ok(data, status: int = 200):
    return jsonify({'success': True, 'data': data}), status


def create_app(monitor: DisruptionMonitor, debug: bool = False) -> Flask:
    """
    Build the Flask app around an assembled monitor

    Usage:
        app = create_app(monitor)
        app.run(port=5000)
    """
    app = Flask(__name__)
    app.debug = debug
    setup_error_handlers(app)
    setup_request_logging(app)

    store = monitor.store
    tracker = monitor.tracker
    activator = monitor.activator
    alerts = monitor.alerts

    # ==================== MONITOR ====================

    @app.route('/api/monitor', methods=['GET'])
    @safe_endpoint
    def get_monitor():
        action = request.args.get('action', 'status')

        if action == 'status':
            return _ok(monitor.status().to_dict())
        if action == 'summary':
            return _ok([item.to_dict() for item in monitor.summary()])
        if action == 'details':
            flight_id = request.args.get('flight_id')
            if not flight_id:
                raise ValidationError("flight_id is required", field='flight_id')
            return _ok(monitor.flight_details(flight_id))

        raise ValidationError(f"Invalid action: {action}", field='action')

    @app.route('/api/monitor', methods=['POST'])
    @safe_endpoint
    def post_monitor():
        payload = _json_body()
        action = _action(payload, ('start', 'stop', 'check', 'resolve_alert'))

        if action == 'start':
            monitor.start()
            return _ok({'message': 'Monitoring started', 'running': monitor.is_running})
        if action == 'stop':
            monitor.stop()
            return _ok({'message': 'Monitoring stopped', 'running': monitor.is_running})
        if action == 'check':
            return _ok(monitor.trigger_check())

        require_fields(payload, ['alert_id'])
        return _ok(monitor.resolve_alert(payload['alert_id']).to_dict())

    # ==================== ALERTS ====================

    @app.route('/api/alerts', methods=['GET'])
    @safe_endpoint
    def get_alerts():
        include_resolved = request.args.get('include_resolved', 'false').lower() in TRUE_VALUES
        items = alerts.list_alerts(
            flight_id=request.args.get('flight_id'),
            include_resolved=include_resolved
        )
        return _ok([a.to_dict() for a in items])

    @app.route('/api/alerts', methods=['POST'])
    @safe_endpoint
    def post_alert():
        payload = _json_body()
        require_fields(payload, ['flight_id', 'type', 'message'])
        alert = alerts.submit_alert(payload['flight_id'], payload['type'], payload['message'])
        return _ok(alert.to_dict(), 201)

    # ==================== CREW ====================

    @app.route('/api/crew', methods=['GET'])
    @safe_endpoint
    def get_crew():
        crew_id = request.args.get('id')
        if not crew_id:
            return _ok([c.to_dict() for c in store.list_crew()])

        member = store.get_crew_member(crew_id)
        if member is None:
            raise NotFoundError("Crew member", crew_id)

        return _ok({
            'crew': member.to_dict(),
            'compliance': tracker.compliance_check(crew_id).to_dict(),
            'is_resting': tracker.is_resting(crew_id)
        })

    @app.route('/api/crew', methods=['PATCH'])
    @safe_endpoint
    def patch_crew():
        payload = _json_body()
        action = _action(payload, ('update_duty', 'start_rest', 'end_rest'))
        require_fields(payload, ['crew_id'])
        crew_id = payload['crew_id']

        if action == 'update_duty':
            require_fields(payload, ['hours'])
            record = tracker.update_duty(crew_id, payload.get('flight_id'), payload['hours'])
        elif action == 'start_rest':
            record = tracker.start_rest(crew_id)
        else:
            record = tracker.end_rest(crew_id)

        return _ok(record.to_dict())

    # ==================== BACKUPS ====================

    @app.route('/api/backups', methods=['GET'])
    @safe_endpoint
    def get_backups():
        flight_id = request.args.get('flight_id')
        if not flight_id:
            raise ValidationError("flight_id is required", field='flight_id')

        if request.args.get('action') == 'suggest':
            plans = activator.suggest_plans(flight_id)
        else:
            plans = activator.get_plans(flight_id)
        return _ok([p.to_dict() for p in plans])

    @app.route('/api/backups', methods=['POST'])
    @safe_endpoint
    def post_backups():
        payload = _json_body()
        action = _action(payload, ('create', 'activate'))
        require_fields(payload, ['flight_id'])
        flight_id = payload['flight_id']

        if action == 'create':
            plan = activator.create_plan(
                flight_id,
                payload.get('crew_ids'),
                payload.get('aircraft_id'),
                fallback_airport=payload.get('fallback_airport'),
                priority=payload.get('priority', 1)
            )
            return _ok(plan.to_dict(), 201)

        result = activator.activate(flight_id, payload.get('backup_id'))
        if result.success:
            return _ok(result.to_dict())
        if result.failed_step is not None:
            return jsonify({'success': False, 'data': result.to_dict()}), 500
        raise BackupActivationError(flight_id, result.errors)

    # ==================== FLIGHTS ====================

    @app.route('/api/flights', methods=['GET'])
    @safe_endpoint
    def get_flights():
        flight_id = request.args.get('id')
        if not flight_id:
            return _ok([f.to_dict() for f in store.list_flights()])

        flight = store.get_flight(flight_id)
        if flight is None:
            raise NotFoundError("Flight", flight_id)
        return _ok(flight.to_dict())

    # ==================== HEALTH ====================

    @app.route('/api/health', methods=['GET'])
    def health_check():
        connected, message = store.check_connection()
        return jsonify({
            'status': 'ok' if connected else 'degraded',
            'database': message,
            'monitoring': monitor.is_running
        }), 200 if connected else 503

    return app
