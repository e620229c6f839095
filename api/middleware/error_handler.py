"""
Centralized Error Handling Middleware for Flask

Provides consistent error responses and logging across all endpoints.
"""

from flask import Flask, jsonify, request
from functools import wraps
import logging
import traceback
from typing import Tuple, Dict, Callable

from app.errors import (
    AppError,
    ValidationError,
    NotFoundError,
    DatabaseError,
    ServiceUnavailableError
)

logger = logging.getLogger(__name__)


def setup_error_handlers(app: Flask):
    """
    Register error handlers with Flask app

    Usage:
        from api.middleware.error_handler import setup_error_handlers

        app = Flask(__name__)
        setup_error_handlers(app)
    """

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError) -> Tuple[Dict, int]:
        logger.warning(f"App Error [{error.code}]: {error.message}")
        return jsonify(error.to_dict()), _get_status_code(error)

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError) -> Tuple[Dict, int]:
        logger.warning(f"Validation Error [{error.code}]: {error.message} (field: {error.field})")
        return jsonify(error.to_dict()), 400

    @app.errorhandler(NotFoundError)
    def handle_not_found_error(error: NotFoundError) -> Tuple[Dict, int]:
        logger.info(f"Not Found: {error.message}")
        return jsonify(error.to_dict()), 404

    @app.errorhandler(DatabaseError)
    def handle_database_error(error: DatabaseError) -> Tuple[Dict, int]:
        logger.error(f"Database Error: {error.message}")
        return jsonify(error.to_dict()), 500

    @app.errorhandler(ServiceUnavailableError)
    def handle_service_unavailable(error: ServiceUnavailableError) -> Tuple[Dict, int]:
        logger.error(f"Service Unavailable [{error.code}]: {error.message}")
        return jsonify(error.to_dict()), 503

    @app.errorhandler(404)
    def handle_flask_not_found(error) -> Tuple[Dict, int]:
        return jsonify({
            'error': True,
            'code': 'ENDPOINT_NOT_FOUND',
            'message': f"Endpoint not found: {request.path}",
            'details': {'method': request.method, 'path': request.path}
        }), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error) -> Tuple[Dict, int]:
        return jsonify({
            'error': True,
            'code': 'METHOD_NOT_ALLOWED',
            'message': f"Method {request.method} not allowed for {request.path}",
            'details': None
        }), 405

    @app.errorhandler(500)
    def handle_server_error(error) -> Tuple[Dict, int]:
        logger.error(f"Server Error: {error}")
        return jsonify({
            'error': True,
            'code': 'INTERNAL_ERROR',
            'message': 'An internal error occurred',
            'details': None
        }), 500


def _get_status_code(error: AppError) -> int:
    """Map error codes to HTTP status codes"""
    code_map = {
        'VALIDATION_ERROR': 400,
        'BACKUP_ACTIVATION_FAILED': 400,
        'NOT_FOUND': 404,
        'DATABASE_ERROR': 500,
        'SERVICE_UNAVAILABLE': 503,
        'WEATHER_SERVICE_ERROR': 503,
        'CONFIG_ERROR': 500,
    }
    return code_map.get(error.code, 500)


def safe_endpoint(func: Callable) -> Callable:
    """
    Decorator for safe endpoint execution with error handling

    Catches exceptions and converts them to proper API responses.

    Usage:
        @app.route('/api/data')
        @safe_endpoint
        def get_data():
            ...
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AppError:
            # Let the error handler deal with it
            raise
        except Exception as e:
            logger.error(f"Endpoint {func.__name__} failed: {e}")
            logger.error(traceback.format_exc())
            raise AppError(
                message=f"Operation failed: {str(e)}",
                code="ENDPOINT_ERROR"
            )
    return wrapper


def log_request():
    logger.debug(f"Request: {request.method} {request.path}")


def log_response(response):
    logger.debug(f"Response: {request.method} {request.path} -> {response.status_code}")
    return response


def setup_request_logging(app: Flask):
    """
    Setup request/response logging

    Usage:
        setup_request_logging(app)
    """
    app.before_request(log_request)
    app.after_request(log_response)
