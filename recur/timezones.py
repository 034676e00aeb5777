"""
Timezone lookup and DST-safe localization.

Zones are pytz timezones. A process-wide MapTimeZoneCache backs the default
TimeZoneProvider; lookups are concurrent and each id is inserted at most once.
"""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, tzinfo
from typing import Dict, Optional

import pytz

from .errors import TimeZoneError

logger = logging.getLogger(__name__)

UTC_ALIASES = {"UTC", "Etc/UTC", "GMT", "Etc/GMT", "Z"}


class TimeZoneCache(ABC):
    """Storage for resolved timezones keyed by id."""

    @abstractmethod
    def get_timezone(self, tz_id: str) -> Optional[tzinfo]:
        pass

    @abstractmethod
    def put_if_absent(self, tz_id: str, zone: tzinfo) -> bool:
        """Store ``zone`` unless ``tz_id`` is present. Returns True if stored."""

    @abstractmethod
    def contains_id(self, tz_id: str) -> bool:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class MapTimeZoneCache(TimeZoneCache):
    """Dictionary-backed cache, safe for concurrent use."""

    def __init__(self):
        self._zones: Dict[str, tzinfo] = {}
        self._lock = threading.Lock()

    def get_timezone(self, tz_id: str) -> Optional[tzinfo]:
        return self._zones.get(tz_id)

    def put_if_absent(self, tz_id: str, zone: tzinfo) -> bool:
        with self._lock:
            if tz_id in self._zones:
                return False
            self._zones[tz_id] = zone
            return True

    def contains_id(self, tz_id: str) -> bool:
        return tz_id in self._zones

    def clear(self) -> None:
        with self._lock:
            self._zones.clear()

    def __len__(self):
        return len(self._zones)


class TimeZoneProvider:
    """Resolves timezone ids through a cache, loading from pytz on a miss."""

    def __init__(self, cache: Optional[TimeZoneCache] = None):
        self.cache = cache if cache is not None else MapTimeZoneCache()

    def get(self, tz_id: str) -> tzinfo:
        """Return the zone for ``tz_id``.

        Raises:
            TimeZoneError: If pytz does not know the id
        """
        zone = self.cache.get_timezone(tz_id)
        if zone is not None:
            return zone
        try:
            zone = pytz.timezone(tz_id)
        except pytz.exceptions.UnknownTimeZoneError:
            raise TimeZoneError(f"Unknown timezone: {tz_id}")
        if not self.cache.put_if_absent(tz_id, zone):
            # another thread won the insert; hand out the cached instance
            zone = self.cache.get_timezone(tz_id)
        logger.debug(f"Loaded timezone {tz_id}")
        return zone


default_timezone_cache = MapTimeZoneCache()
default_timezone_provider = TimeZoneProvider(default_timezone_cache)


def is_utc(zone: Optional[tzinfo]) -> bool:
    """True for the UTC zone under any of its common ids."""
    if zone is None:
        return False
    if zone is pytz.utc:
        return True
    return getattr(zone, 'zone', None) in UTC_ALIASES


def safe_localize(dt: datetime, tz: tzinfo, prefer_dst: bool = False) -> datetime:
    """Safely localize a naive datetime, handling DST transitions.

    Args:
        dt: Naive datetime to localize
        tz: Target timezone
        prefer_dst: Resolve a repeated fall-back hour to daylight time

    Returns:
        Timezone-aware datetime
    """
    if not hasattr(tz, 'localize'):
        return dt.replace(tzinfo=tz)
    try:
        return tz.localize(dt, is_dst=None)
    except pytz.AmbiguousTimeError:
        # During fall-back DST, choose standard time unless asked for daylight time
        logger.debug(f"Ambiguous time during DST fall-back, is_dst={prefer_dst}: {dt}")
        return tz.localize(dt, is_dst=prefer_dst)
    except pytz.NonExistentTimeError:
        # During spring-forward DST, advance by 1 hour
        logger.debug(f"Non-existent time during DST spring-forward, advancing 1 hour: {dt}")
        return tz.localize(dt + timedelta(hours=1), is_dst=True)


def to_zone(dt: datetime, tz: tzinfo) -> datetime:
    """Express an aware datetime in ``tz``."""
    converted = dt.astimezone(tz)
    if hasattr(tz, 'normalize'):
        converted = tz.normalize(converted)
    return converted
