"""
Application Configuration

Centralized configuration management with validation.
Loads settings from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Curfew windows in airport local hours: (start, end). start == end means none.
DEFAULT_CURFEWS: Dict[str, Tuple[int, int]] = {
    'KTEB': (23, 6),
    'KJFK': (0, 0),
    'KLAX': (23, 6),
}

DEFAULT_AIRPORT_TIMEZONES: Dict[str, str] = {
    'KTEB': 'America/New_York',
    'KJFK': 'America/New_York',
    'KLAX': 'America/Los_Angeles',
    'KSFO': 'America/Los_Angeles',
    'KORD': 'America/Chicago',
    'KMIA': 'America/New_York',
}

DEFAULT_AIRPORT_COORDINATES: Dict[str, Tuple[float, float]] = {
    'KTEB': (40.8501, -74.0608),
    'KJFK': (40.6413, -73.7781),
    'KLAX': (33.9416, -118.4085),
    'KSFO': (37.6213, -122.3790),
    'KORD': (41.9786, -87.9048),
    'KMIA': (25.7932, -80.2906),
}

DEFAULT_AVAILABLE_AIRCRAFT = ['N550BA', 'N550BB', 'N550BC']
DEFAULT_SUITABLE_AIRPORTS = ['KTEB', 'KJFK', 'KLAX', 'KSFO', 'KORD', 'KMIA']
DEFAULT_ALTERNATE_AIRPORTS = ['KTEB', 'KJFK', 'KLAX', 'KSFO']


def _env_list(name: str, default: List[str]) -> List[str]:
    """Read a comma-separated list from the environment"""
    raw = os.environ.get(name)
    if not raw:
        return list(default)
    return [item.strip().upper() for item in raw.split(',') if item.strip()]


@dataclass
class SupabaseConfig:
    """Supabase database configuration"""
    url: str
    key: str

    @classmethod
    def from_env(cls) -> Optional['SupabaseConfig']:
        """Load Supabase config from environment"""
        url = os.environ.get('SUPABASE_URL')
        key = os.environ.get('SUPABASE_KEY')

        if not url or not key:
            logger.warning("SUPABASE_URL or SUPABASE_KEY not set")
            return None

        return cls(url=url, key=key)

    def is_valid(self) -> bool:
        """Check if config is valid"""
        return bool(self.url and self.key)


@dataclass
class WeatherConfig:
    """OpenWeatherMap API configuration"""
    api_key: Optional[str]
    base_url: str = 'https://api.openweathermap.org/data/2.5'
    timeout: int = 10
    max_retries: int = 3

    @classmethod
    def from_env(cls) -> 'WeatherConfig':
        """Load weather config from environment"""
        return cls(
            api_key=os.environ.get('OPENWEATHER_API_KEY') or None,
            base_url=os.environ.get('OPENWEATHER_BASE_URL', 'https://api.openweathermap.org/data/2.5'),
            timeout=int(os.environ.get('OPENWEATHER_TIMEOUT', '10')),
            max_retries=int(os.environ.get('OPENWEATHER_MAX_RETRIES', '3'))
        )

    def is_ready(self) -> bool:
        """Check if live weather lookups are possible"""
        return bool(self.api_key)


@dataclass
class MonitorConfig:
    """Disruption monitoring rules and cadences"""
    detector_interval_seconds: int = 30
    sweep_interval_seconds: int = 60
    max_duty_hours: float = 10.0
    min_rest_hours: float = 10.0
    duty_warning_margin: float = 2.0
    duty_window_hours: float = 24.0
    max_duty_hours_per_week: float = 60.0
    curfews: Dict[str, Tuple[int, int]] = field(default_factory=lambda: dict(DEFAULT_CURFEWS))
    airport_timezones: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_AIRPORT_TIMEZONES))
    airport_coordinates: Dict[str, Tuple[float, float]] = field(
        default_factory=lambda: dict(DEFAULT_AIRPORT_COORDINATES)
    )
    available_aircraft: List[str] = field(default_factory=lambda: list(DEFAULT_AVAILABLE_AIRCRAFT))
    suitable_airports: List[str] = field(default_factory=lambda: list(DEFAULT_SUITABLE_AIRPORTS))
    alternate_airports: List[str] = field(default_factory=lambda: list(DEFAULT_ALTERNATE_AIRPORTS))

    @classmethod
    def from_env(cls) -> 'MonitorConfig':
        """Load monitor config from environment"""
        return cls(
            detector_interval_seconds=int(os.environ.get('DETECTOR_INTERVAL_SECONDS', '30')),
            sweep_interval_seconds=int(os.environ.get('SWEEP_INTERVAL_SECONDS', '60')),
            available_aircraft=_env_list('AVAILABLE_AIRCRAFT', DEFAULT_AVAILABLE_AIRCRAFT),
            suitable_airports=_env_list('SUITABLE_AIRPORTS', DEFAULT_SUITABLE_AIRPORTS),
            alternate_airports=_env_list('ALTERNATE_AIRPORTS', DEFAULT_ALTERNATE_AIRPORTS)
        )

    def validate(self) -> list:
        """Return list of rule configuration issues"""
        issues = []

        if self.detector_interval_seconds <= 0 or self.sweep_interval_seconds <= 0:
            issues.append("Monitoring intervals must be positive")

        for airport, window in self.curfews.items():
            start, end = window
            if not (0 <= start <= 23 and 0 <= end <= 23):
                issues.append(f"Curfew hours for {airport} must be between 0 and 23")

        if not self.available_aircraft:
            issues.append("No aircraft configured in the available pool")

        if self.max_duty_hours_per_week < self.max_duty_hours:
            issues.append("Weekly duty limit is below the daily duty limit")

        return issues


@dataclass
class AppConfig:
    """Main application configuration"""
    debug: bool
    log_level: str
    supabase: Optional[SupabaseConfig]
    weather: WeatherConfig
    monitor: MonitorConfig

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """Load all configuration from environment"""
        return cls(
            debug=os.environ.get('DEBUG', 'false').lower() == 'true',
            log_level=os.environ.get('LOG_LEVEL', 'INFO'),
            supabase=SupabaseConfig.from_env(),
            weather=WeatherConfig.from_env(),
            monitor=MonitorConfig.from_env()
        )

    def validate(self) -> list:
        """Validate configuration and return list of issues"""
        issues = []

        if not self.supabase:
            issues.append("Supabase not configured - store operations will fail")

        if not self.weather.is_ready():
            issues.append("OPENWEATHER_API_KEY not set - using static weather table")

        issues.extend(self.monitor.validate())

        return issues


def configure_logging(level: str = 'INFO'):
    """Configure root logging once for the process"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT
    )


# Singleton config instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get or create application config singleton"""
    global _config
    if _config is None:
        _config = AppConfig.from_env()

        # Log configuration status
        issues = _config.validate()
        for issue in issues:
            logger.warning(f"Config: {issue}")

        logger.info(f"Config loaded - Debug: {_config.debug}, Live weather: {_config.weather.is_ready()}")

    return _config


def reload_config() -> AppConfig:
    """Force reload configuration from environment"""
    global _config
    _config = None
    return get_config()
