"""Current weather from Open-Meteo (no API key), reduced to Clear / Clouds / Unknown."""

import logging

import httpx

from bluelightfilter.cache import WEATHER_TTL, CacheStore
from bluelightfilter.models import Coordinates, WeatherState

_LOGGER = logging.getLogger(__name__)

OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"
REQUEST_TIMEOUT_SECONDS = 5.0

_CACHE_KEY = "weather"
_CACHEABLE = {WeatherState.CLEAR.value, WeatherState.CLOUDS.value}


def classify_code(code: int) -> WeatherState:
    """Map a WMO weather code to a gamma-relevant category.

    0 is clear sky. 1-3 (mainly clear, partly cloudy, overcast) and every
    other code (fog, rain, snow, storms) count as clouds.
    """
    if code == 0:
        return WeatherState.CLEAR
    return WeatherState.CLOUDS


def _fetch_open_meteo(client: httpx.Client, coordinates: Coordinates) -> int:
    params = {
        "latitude": coordinates.lat,
        "longitude": coordinates.lon,
        "current_weather": "true",
    }
    resp = client.get(OPEN_METEO_URL, params=params, timeout=REQUEST_TIMEOUT_SECONDS)
    resp.raise_for_status()
    code = resp.json()["current_weather"]["weathercode"]
    if isinstance(code, bool) or not isinstance(code, (int, float)):
        raise ValueError(f"Invalid weather code: {code!r}")
    return int(code)


class WeatherClassifier:
    """Classify current weather, caching only successful classifications."""

    def __init__(
        self, client: httpx.Client, cache: CacheStore, enabled: bool = True
    ) -> None:
        self._client = client
        self._cache = cache
        self.enabled = enabled

    def _cached(self, coordinates: Coordinates) -> WeatherState | None:
        value, fresh = self._cache.get(_CACHE_KEY, WEATHER_TTL)
        if not fresh:
            return None
        try:
            state = value["state"]
            cached_at = (value["lat"], value["lon"])
            same_place = cached_at == (coordinates.lat, coordinates.lon)
        except (KeyError, TypeError):
            state, same_place = None, True
        if not same_place:
            _LOGGER.info("Cached weather is for another location, fetching new data")
            return None
        if not isinstance(state, str) or state not in _CACHEABLE:
            _LOGGER.warning("Invalid weather in cache, fetching new data")
            return None
        return WeatherState(state)

    def classify(self, coordinates: Coordinates) -> WeatherState:
        if not self.enabled:
            return WeatherState.UNKNOWN

        cached = self._cached(coordinates)
        if cached is not None:
            _LOGGER.info("Using cached weather: %s", cached.value)
            return cached

        try:
            code = _fetch_open_meteo(self._client, coordinates)
        except (httpx.HTTPError, KeyError, TypeError, ValueError, OverflowError) as err:
            _LOGGER.error("Failed to fetch weather data from Open-Meteo: %s", err)
            return WeatherState.UNKNOWN

        state = classify_code(code)
        self._cache.put(
            _CACHE_KEY,
            {"state": state.value, "lat": coordinates.lat, "lon": coordinates.lon},
        )
        _LOGGER.info("Fetched weather from Open-Meteo: %s (code: %s)", state.value, code)
        return state
