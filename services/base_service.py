"""
Base Service Interface

Defines the result wrapper shared by the services and the abstract
interface for weather data sources.
Both the live OpenWeatherMap service and the static table implement it.
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional, Generic, TypeVar
from dataclasses import dataclass, field

from models.weather import WeatherReport


T = TypeVar('T')


@dataclass
class ServiceResult(Generic[T]):
    """Standard service response wrapper"""
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def ok(cls, data: T, metadata: Dict[str, Any] = None) -> 'ServiceResult[T]':
        """Create successful result"""
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(cls, error: str, metadata: Dict[str, Any] = None) -> 'ServiceResult[T]':
        """Create failure result"""
        return cls(success=False, error=error, metadata=metadata)


@dataclass
class RunReport:
    """
    Outcome of one periodic evaluation pass

    Per-flight failures are collected in errors instead of aborting the
    pass, so callers can see partial coverage.
    """
    flights_checked: int = 0
    disruptions_found: int = 0
    alerts_created: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'flights_checked': self.flights_checked,
            'disruptions_found': self.disruptions_found,
            'alerts_created': self.alerts_created,
            'errors': list(self.errors)
        }


class IWeatherProvider(ABC):
    """
    Abstract interface for weather data sources

    Implemented by:
    - OpenWeatherService: Live lookups against OpenWeatherMap
    - StaticWeatherProvider: Fixed per-airport observations
    """

    @abstractmethod
    def get_weather(self, airport_code: str) -> Optional[WeatherReport]:
        """
        Get current weather at an airport

        Args:
            airport_code: ICAO airport code

        Returns:
            WeatherReport, or None if the airport is unknown to the provider
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if provider is available and configured"""
        pass
