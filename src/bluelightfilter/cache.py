"""On-disk cache of resolver results, one JSON record file per key."""

import json
import logging
import os
import shutil
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

_LOGGER = logging.getLogger(__name__)

COORDINATES_TTL = timedelta(hours=24)
SUN_TIMES_TTL = timedelta(hours=24)  # Also bound to the calendar date by the resolver
WEATHER_TTL = timedelta(hours=1)


class CacheStore:
    """Key/value records with freshness decided by the caller's TTL at read time.

    Each record is ``{"timestamp": <epoch seconds>, "value": <json value>}``.
    Missing or corrupt records read as a miss; nothing here raises to the caller.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(
        self, key: str, ttl: timedelta, now: datetime | None = None
    ) -> tuple[Any, bool]:
        """Read a record.

        Args:
            key: Record name ("coordinates", "sun_times", "weather").
            ttl: Maximum age for the record to count as fresh.
            now: Reference time (defaults to the current time).

        Returns:
            ``(value, fresh)``. ``(None, False)`` when missing or corrupt.
        """
        path = self._path(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None, False
        except OSError as err:
            _LOGGER.warning("Cannot read cache record %s: %s", path, err)
            return None, False

        try:
            record = json.loads(raw)
            timestamp = float(record["timestamp"])
            value = record["value"]
        except (ValueError, KeyError, TypeError):
            _LOGGER.warning("Invalid cache record %s, ignoring", path)
            return None, False

        if now is None:
            now = datetime.now()
        age = now.timestamp() - timestamp
        return value, age < ttl.total_seconds()

    def put(self, key: str, value: Any, now: datetime | None = None) -> None:
        """Atomically overwrite a record. Write failures are logged, not raised."""
        if now is None:
            now = datetime.now()
        path = self._path(key)
        record = {"timestamp": now.timestamp(), "value": value}
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(
                prefix=path.name + ".", suffix=".tmp", dir=self.directory
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(record, f)
                os.replace(tmp, path)
            finally:
                if os.path.exists(tmp):
                    os.remove(tmp)
        except OSError as err:
            _LOGGER.warning("Cannot write cache record %s: %s", path, err)

    def clear(self) -> None:
        """Delete every record. Safe when the cache directory does not exist."""
        if not self.directory.exists():
            return
        shutil.rmtree(self.directory, ignore_errors=True)
        _LOGGER.info("Cleared cache directory: %s", self.directory)
