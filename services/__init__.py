"""
Services Package - Business Logic Layer
"""

from services.base_service import IWeatherProvider, RunReport, ServiceResult
from services.weather_service import OpenWeatherService, StaticWeatherProvider
from services.duty_tracker import DutyTracker
from services.alert_service import AlertService
from services.disruption_detector import DisruptionDetector
from services.backup_activator import BackupActivator
from services.disruption_monitor import DisruptionMonitor, calculate_severity

__all__ = [
    'IWeatherProvider',
    'RunReport',
    'ServiceResult',
    'OpenWeatherService',
    'StaticWeatherProvider',
    'DutyTracker',
    'AlertService',
    'DisruptionDetector',
    'BackupActivator',
    'DisruptionMonitor',
    'calculate_severity'
]
