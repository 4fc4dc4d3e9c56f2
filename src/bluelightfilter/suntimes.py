"""Sunrise/sunset for today: manual overrides, a per-day cache, and sunrisesunset.io."""

import logging
import re
from collections.abc import Callable
from datetime import date, datetime, time

import httpx

from bluelightfilter.cache import SUN_TIMES_TTL, CacheStore
from bluelightfilter.models import Coordinates, SunTimes

_LOGGER = logging.getLogger(__name__)

SUNRISE_SUNSET_URL = "https://api.sunrisesunset.io/json"
REQUEST_TIMEOUT_SECONDS = 5.0

DEFAULT_SUNRISE = time(7, 0)
DEFAULT_SUNSET = time(20, 0)

_CACHE_KEY = "sun_times"
_MANUAL_TIME_RE = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")


def parse_manual_time(value: str | None, default: time, label: str) -> time | None:
    """Validate an operator-supplied ``HH:MM`` override.

    Args:
        value: Raw override, or None when the operator gave none.
        default: Replacement for a malformed value.
        label: "sunrise" or "sunset", for the log line.

    Returns:
        The override with ``:00`` seconds, ``default`` if malformed, None if absent.
    """
    if value is None or value == "":
        return None
    if not _MANUAL_TIME_RE.match(value):
        _LOGGER.error(
            "Invalid %s time format: %s, using default %s",
            label,
            value,
            default.strftime("%H:%M"),
        )
        return default
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def parse_api_time(value: str) -> time:
    """Convert the API's 12-hour ``h:MM:SS AM`` form to a 24-hour time."""
    if not isinstance(value, str):
        raise ValueError(f"Invalid time from API: {value!r}")
    return datetime.strptime(value.strip(), "%I:%M:%S %p").time()


def _fetch_sunrisesunset(
    client: httpx.Client, coordinates: Coordinates
) -> tuple[time, time]:
    """Single sunrisesunset.io call for today at ``coordinates``."""
    params = {"lat": coordinates.lat, "lng": coordinates.lon, "date": "today"}
    resp = client.get(
        SUNRISE_SUNSET_URL, params=params, timeout=REQUEST_TIMEOUT_SECONDS
    )
    resp.raise_for_status()
    results = resp.json()["results"]
    return parse_api_time(results["sunrise"]), parse_api_time(results["sunset"])


class SunTimesResolver:
    """Resolve today's sunrise and sunset with fallbacks at every stage."""

    def __init__(
        self,
        client: httpx.Client,
        cache: CacheStore,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._client = client
        self._cache = cache
        self._clock = clock

    def _cached(self, today: date, coordinates: Coordinates) -> tuple[time, time] | None:
        value, fresh = self._cache.get(_CACHE_KEY, SUN_TIMES_TTL, now=self._clock())
        if value is None:
            return None
        try:
            cache_date = date.fromisoformat(value["date"])
            sunrise = time.fromisoformat(value["sunrise"])
            sunset = time.fromisoformat(value["sunset"])
            cached_at = Coordinates(lat=float(value["lat"]), lon=float(value["lon"]))
        except (KeyError, TypeError, ValueError):
            _LOGGER.warning("Invalid sunrise/sunset cache record, fetching new data")
            return None
        if not fresh or cache_date != today:
            _LOGGER.info(
                "Cache outdated (date: %s), fetching new sunrise/sunset", cache_date
            )
            return None
        if cached_at != coordinates:
            _LOGGER.info(
                "Cached sunrise/sunset is for %s, %s, fetching new data",
                cached_at.lat,
                cached_at.lon,
            )
            return None
        return sunrise, sunset

    def resolve(
        self,
        coordinates: Coordinates,
        manual_sunrise: str | None = None,
        manual_sunset: str | None = None,
    ) -> SunTimes:
        """Return today's SunTimes.

        A full pair of overrides skips cache and network. A single override
        replaces only its own field. Values are cached only when both came
        from the network, so a removed override takes effect on the next call.
        """
        today = self._clock().date()
        sunrise = parse_manual_time(manual_sunrise, DEFAULT_SUNRISE, "sunrise")
        sunset = parse_manual_time(manual_sunset, DEFAULT_SUNSET, "sunset")

        if sunrise is not None and sunset is not None:
            _LOGGER.info("Using manual sunrise/sunset: %s, %s", sunrise, sunset)
            return self._finish(today, sunrise, sunset)

        cached = self._cached(today, coordinates)
        if cached is not None:
            _LOGGER.info(
                "Using cached sunrise/sunset: %s, %s (from %s)", *cached, today
            )
            return self._finish(today, sunrise or cached[0], sunset or cached[1])

        try:
            api_sunrise, api_sunset = _fetch_sunrisesunset(self._client, coordinates)
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as err:
            _LOGGER.error("Failed to fetch sunrise/sunset times, using defaults: %s", err)
            return self._finish(
                today, sunrise or DEFAULT_SUNRISE, sunset or DEFAULT_SUNSET
            )

        if sunrise is None and sunset is None:
            self._cache.put(
                _CACHE_KEY,
                {
                    "date": today.isoformat(),
                    "sunrise": api_sunrise.isoformat(),
                    "sunset": api_sunset.isoformat(),
                    "lat": coordinates.lat,
                    "lon": coordinates.lon,
                },
                now=self._clock(),
            )
        _LOGGER.info(
            "Fetched sunrise/sunset: %s, %s for %s", api_sunrise, api_sunset, today
        )
        return self._finish(today, sunrise or api_sunrise, sunset or api_sunset)

    @staticmethod
    def _finish(today: date, sunrise: time, sunset: time) -> SunTimes:
        if sunrise >= sunset:
            _LOGGER.warning(
                "Sunrise %s is not before sunset %s; every moment counts as night",
                sunrise,
                sunset,
            )
        return SunTimes(date=today, sunrise=sunrise, sunset=sunset)
