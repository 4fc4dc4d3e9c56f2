"""Location name → coordinates, via Nominatim (OpenStreetMap) with a 24h cache."""

import logging

import httpx

from bluelightfilter.cache import COORDINATES_TTL, CacheStore
from bluelightfilter.models import Coordinates

_LOGGER = logging.getLogger(__name__)

NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
USER_AGENT = "bluelightfilter/0.1"
REQUEST_TIMEOUT_SECONDS = 5.0

DEFAULT_COORDINATES = Coordinates(lat=-33.4489, lon=-70.6693)  # Santiago, Chile

_CACHE_KEY = "coordinates"


class GeocodingError(Exception):
    """Geocoder call failure."""


def normalize_location(location: str) -> str:
    return " ".join(location.split())


def _geocode_nominatim(client: httpx.Client, location: str) -> Coordinates:
    """Single Nominatim call. Raises GeocodingError when nothing usable comes back."""
    params = {"q": normalize_location(location), "format": "json", "limit": 1}
    headers = {"User-Agent": USER_AGENT}
    resp = client.get(
        NOMINATIM_URL, params=params, headers=headers, timeout=REQUEST_TIMEOUT_SECONDS
    )
    resp.raise_for_status()
    results = resp.json()
    if not results:
        raise GeocodingError(f"Location not found: {location}")
    try:
        return Coordinates(lat=float(results[0]["lat"]), lon=float(results[0]["lon"]))
    except (KeyError, TypeError, ValueError) as err:
        raise GeocodingError(f"Invalid coordinates for {location}") from err


class GeolocationResolver:
    """Resolve a location string once per run, never failing the daemon."""

    def __init__(self, client: httpx.Client, cache: CacheStore) -> None:
        self._client = client
        self._cache = cache

    def _cached(self, location: str) -> Coordinates | None:
        value, fresh = self._cache.get(_CACHE_KEY, COORDINATES_TTL)
        if not fresh:
            return None
        try:
            cached_location = value["location"]
            coords = Coordinates(lat=float(value["lat"]), lon=float(value["lon"]))
        except (KeyError, TypeError, ValueError):
            _LOGGER.warning("Invalid coordinates in cache, fetching new data")
            return None
        if cached_location != location:
            _LOGGER.info(
                "Cached coordinates are for %s, not %s, fetching new data",
                cached_location,
                location,
            )
            return None
        return coords

    def resolve(self, location: str) -> Coordinates:
        """Return coordinates for ``location``.

        Order: fresh cache entry for the same (whitespace-normalized) name,
        then Nominatim, then DEFAULT_COORDINATES. Only a successful lookup is
        written to the cache.
        """
        location = normalize_location(location)
        cached = self._cached(location)
        if cached is not None:
            _LOGGER.info("Using cached coordinates: %s, %s", cached.lat, cached.lon)
            return cached

        try:
            coords = _geocode_nominatim(self._client, location)
        except (httpx.HTTPError, ValueError, GeocodingError) as err:
            _LOGGER.error(
                "Failed to fetch coordinates for %s, using default: %s", location, err
            )
            return DEFAULT_COORDINATES

        self._cache.put(
            _CACHE_KEY, {"location": location, "lat": coords.lat, "lon": coords.lon}
        )
        _LOGGER.info("Fetched coordinates: %s, %s", coords.lat, coords.lon)
        return coords
