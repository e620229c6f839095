"""
Weather Service - Airport conditions for disruption checks

Live data comes from the OpenWeatherMap current-weather endpoint.
When no API key is configured, or a lookup keeps failing, the service
answers from a static per-airport table instead.

Configuration (Environment Variables):
    OPENWEATHER_API_KEY: API key (live lookups disabled when unset)
    OPENWEATHER_TIMEOUT: Request timeout in seconds (default: 10)
    OPENWEATHER_MAX_RETRIES: Max retry attempts (default: 3)
"""

import logging
import time
from functools import wraps
from typing import Dict, Optional, Tuple

import requests
from requests import Session
from requests.exceptions import RequestException

from app.config import WeatherConfig
from app.errors import WeatherServiceError
from models.weather import WeatherReport
from services.base_service import IWeatherProvider, ServiceResult

logger = logging.getLogger(__name__)

METERS_PER_STATUTE_MILE = 1609.344
KNOTS_PER_MPH = 0.868976

# Observations used when live weather is unavailable
DEFAULT_OBSERVATIONS: Dict[str, WeatherReport] = {
    'KTEB': WeatherReport(airport='KTEB', visibility=10, ceiling=2500, wind_speed=15, conditions='VFR'),
    'KLAX': WeatherReport(airport='KLAX', visibility=0.5, ceiling=200, wind_speed=8, conditions='IFR, FOG'),
    'KJFK': WeatherReport(airport='KJFK', visibility=8, ceiling=1500, wind_speed=22, conditions='MVFR'),
}


def retry_on_failure(max_retries: int = 3, base_delay: float = 1.0):
    """Decorator for retry logic with exponential backoff"""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            last_exception = None
            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except RequestException as e:
                    last_exception = e
                    if attempt + 1 < max_retries:
                        delay = base_delay * (2 ** attempt)
                        logger.warning(f"Attempt {attempt + 1}/{max_retries} failed: {e}. Retrying in {delay}s...")
                        time.sleep(delay)
            logger.error(f"All {max_retries} attempts failed for {func.__name__}")
            raise last_exception
        return wrapper
    return decorator


def requires_api_key(func):
    """Decorator to route lookups to the fallback when no API key is set"""
    @wraps(func)
    def wrapper(self, airport_code, *args, **kwargs):
        if not self.is_available():
            return self._fallback_weather(airport_code)
        return func(self, airport_code, *args, **kwargs)
    return wrapper


class StaticWeatherProvider(IWeatherProvider):
    """Weather from a fixed airport table"""

    def __init__(self, observations: Optional[Dict[str, WeatherReport]] = None):
        self.observations = dict(DEFAULT_OBSERVATIONS if observations is None else observations)

    def get_weather(self, airport_code: str) -> Optional[WeatherReport]:
        return self.observations.get((airport_code or '').upper())

    def is_available(self) -> bool:
        return True

    def set_observation(self, report: WeatherReport):
        self.observations[report.airport.upper()] = report


class OpenWeatherService(IWeatherProvider):
    """
    OpenWeatherMap weather provider

    Usage:
        weather = OpenWeatherService(get_config().weather, coordinates,
                                     fallback=StaticWeatherProvider())
        report = weather.get_weather('KTEB')
    """

    def __init__(
        self,
        config: WeatherConfig,
        coordinates: Dict[str, Tuple[float, float]],
        fallback: Optional[IWeatherProvider] = None,
        session: Optional[Session] = None
    ):
        self.config = config
        self.coordinates = coordinates
        self.fallback = fallback
        self.session = session or requests.Session()

        if self.is_available():
            logger.info("OpenWeatherMap API configured - using live weather data")
        else:
            logger.info("No OpenWeatherMap API key - using static weather data")

    def is_available(self) -> bool:
        return self.config.is_ready()

    def test_connection(self) -> ServiceResult[Dict[str, str]]:
        """Report which weather source is active"""
        if not self.is_available():
            return ServiceResult.fail(
                "OpenWeatherMap API key not configured",
                {'source': 'static' if self.fallback else 'none'}
            )
        return ServiceResult.ok({'source': 'openweathermap', 'base_url': self.config.base_url})

    @requires_api_key
    def get_weather(self, airport_code: str) -> Optional[WeatherReport]:
        code = (airport_code or '').upper()
        coords = self.coordinates.get(code)
        if coords is None:
            logger.warning(f"No coordinates for {code}, using fallback weather")
            return self._fallback_weather(code)

        try:
            payload = self._fetch_current(coords[0], coords[1])
        except RequestException as e:
            if self.fallback is None:
                raise WeatherServiceError(str(e))
            logger.warning(f"Weather lookup for {code} failed ({e}), using fallback weather")
            return self.fallback.get_weather(code)

        return self._parse_weather(code, payload)

    def _fallback_weather(self, airport_code: str) -> Optional[WeatherReport]:
        if self.fallback is None:
            return None
        return self.fallback.get_weather(airport_code)

    def _fetch_current(self, lat: float, lon: float) -> dict:
        @retry_on_failure(max_retries=self.config.max_retries)
        def fetch():
            response = self.session.get(
                f"{self.config.base_url}/weather",
                params={'lat': lat, 'lon': lon, 'appid': self.config.api_key, 'units': 'imperial'},
                timeout=self.config.timeout
            )
            response.raise_for_status()
            return response.json()
        return fetch()

    def _parse_weather(self, airport_code: str, data: dict) -> WeatherReport:
        """Map an OpenWeatherMap payload to aviation units"""
        main = data.get('main') or {}
        wind = data.get('wind') or {}
        weather = (data.get('weather') or [{}])[0]
        rain = data.get('rain') or {}

        wind_knots = float(wind.get('speed') or 0) * KNOTS_PER_MPH
        conditions = weather.get('main') or 'Clear'

        return WeatherReport(
            airport=airport_code,
            visibility=round(float(data.get('visibility', 10000)) / METERS_PER_STATUTE_MILE, 2),
            wind_speed=round(wind_knots, 1),
            ceiling=None,
            temperature=main.get('temp'),
            precipitation=float(rain.get('1h') or 0),
            turbulence=self._estimate_turbulence(wind_knots, conditions),
            humidity=main.get('humidity'),
            pressure=main.get('pressure'),
            conditions=conditions
        )

    @staticmethod
    def _estimate_turbulence(wind_knots: float, conditions: str) -> float:
        """Rough 0-5 turbulence index from wind and weather"""
        turbulence = min(wind_knots / 10, 3)
        bumps = {
            'thunderstorm': 2,
            'snow': 1,
            'rain': 0.5,
            'drizzle': 0.5,
            'fog': 0.3,
            'mist': 0.3,
        }
        turbulence += bumps.get((conditions or '').lower(), 0)
        return round(min(5, max(0, turbulence)), 2)
