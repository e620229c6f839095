"""
Weather Data Models
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any


@dataclass
class WeatherReport:
    """
    Current conditions at an airport

    visibility is in statute miles, wind_speed in knots and ceiling in
    feet. ceiling is None when the source does not report one.
    """
    airport: str
    visibility: float
    wind_speed: float
    ceiling: Optional[float] = None
    temperature: Optional[float] = None
    precipitation: float = 0.0
    turbulence: float = 0.0
    humidity: Optional[float] = None
    pressure: Optional[float] = None
    conditions: str = 'Clear'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'airport': self.airport,
            'visibility': self.visibility,
            'ceiling': self.ceiling,
            'wind_speed': self.wind_speed,
            'temperature': self.temperature,
            'precipitation': self.precipitation,
            'turbulence': self.turbulence,
            'humidity': self.humidity,
            'pressure': self.pressure,
            'conditions': self.conditions
        }
