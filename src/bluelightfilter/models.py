"""Data model definitions: explicit boundaries between resolvers, the control loop, and the display layer."""

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from pathlib import Path


@dataclass(frozen=True)
class Coordinates:
    """Resolved location. Input to sun-times and weather lookups."""

    lat: float  # Latitude (decimal degrees)
    lon: float  # Longitude (decimal degrees)


@dataclass(frozen=True)
class SunTimes:
    """Sunrise/sunset for one calendar day, local 24-hour wall-clock."""

    date: date
    sunrise: time  # Second precision
    sunset: time  # Second precision

    def is_daytime(self, moment: time) -> bool:
        """Half-open interval: exactly at sunset is already night."""
        return self.sunrise <= moment < self.sunset


class WeatherState(Enum):
    """Simplified current conditions. UNKNOWN is degraded-but-safe, not an error."""

    CLEAR = "Clear"
    CLOUDS = "Clouds"
    UNKNOWN = "unknown"


class GammaPreset(Enum):
    """Fixed per-channel (red, green, blue) gamma multipliers."""

    NEUTRAL = (1.0, 1.0, 1.0)
    NIGHT = (1.0, 0.9, 0.8)  # Warm
    CLOUDY = (1.0, 0.95, 0.85)  # Intermediate

    @property
    def xrandr_value(self) -> str:
        """Render as the ``R:G:B`` argument of ``xrandr --gamma``."""
        return ":".join(str(channel) for channel in self.value)


@dataclass(frozen=True)
class Config:
    """Validated runtime configuration. Built from .env, environment, and CLI flags."""

    location: str  # Free-text location ("Santiago, Chile")
    cache_dir: Path
    log_file: Path
    no_fullscreen: bool = False
    no_weather: bool = False
    clean_cache: bool = False
    manual_sunrise: str | None = None  # "HH:MM", validated by the sun-times resolver
    manual_sunset: str | None = None
    verbose: bool = False


@dataclass
class LoopState:
    """Mutable state owned by the control loop, carried from one iteration to the next."""

    coordinates: Coordinates
    sun_times: SunTimes
    last_sun_check: datetime
    weather: WeatherState = WeatherState.UNKNOWN
    last_weather_check: datetime | None = None  # None until the first daytime check
    fullscreen_suppressed: bool = False
