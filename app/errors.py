"""
Custom Application Exceptions

Defines structured exception hierarchy for consistent error handling.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base application exception"""

    def __init__(
        self,
        message: str,
        code: str = "APP_ERROR",
        details: Any = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details

    def to_dict(self) -> dict:
        """Convert exception to dictionary for API responses"""
        return {
            'error': True,
            'code': self.code,
            'message': self.message,
            'details': self.details
        }


class ValidationError(AppError):
    """Input validation failed"""

    def __init__(self, message: str, field: Optional[str] = None, details: Any = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details={'field': field, **({'info': details} if details else {})}
        )
        self.field = field


class NotFoundError(AppError):
    """Resource not found"""

    def __init__(self, resource: str, identifier: Any = None):
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            details={'resource': resource, 'identifier': identifier}
        )
        self.resource = resource
        self.identifier = identifier


class DatabaseError(AppError):
    """Database operation failed"""

    def __init__(self, operation: str, details: Any = None):
        super().__init__(
            message=f"Database {operation} failed",
            code="DATABASE_ERROR",
            details=details
        )
        self.operation = operation


class ServiceUnavailableError(AppError):
    """External service unavailable"""

    def __init__(self, service: str, reason: Optional[str] = None):
        super().__init__(
            message=f"{service} is currently unavailable",
            code="SERVICE_UNAVAILABLE",
            details={'service': service, 'reason': reason}
        )


class WeatherServiceError(ServiceUnavailableError):
    """Weather provider request failed"""

    def __init__(self, reason: Optional[str] = None):
        super().__init__(service="Weather API", reason=reason)
        self.code = "WEATHER_SERVICE_ERROR"


class BackupActivationError(ValidationError):
    """No backup plan could be activated for a flight"""

    def __init__(self, flight_id: str, errors: list):
        super().__init__(
            message=f"No backup plan could be activated for flight {flight_id}",
            field="backup_id",
            details={'flight_id': flight_id, 'errors': errors}
        )
        self.code = "BACKUP_ACTIVATION_FAILED"
        self.errors = errors


class ConfigurationError(AppError):
    """Application configuration error"""

    def __init__(self, setting: str, reason: Optional[str] = None):
        super().__init__(
            message=f"Configuration error: {setting}",
            code="CONFIG_ERROR",
            details={'setting': setting, 'reason': reason}
        )
