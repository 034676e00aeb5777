"""
Tests for timezone caching, lookup and DST-safe localization.
"""

import threading
import pytest
from datetime import datetime, timedelta

import pytz

from recur.errors import TimeZoneError
from recur.timezones import (
    MapTimeZoneCache, TimeZoneProvider, is_utc, safe_localize, to_zone
)


class TestMapTimeZoneCache:
    """Test the dictionary-backed cache."""

    def test_put_if_absent(self):
        """Test the first insert wins."""
        cache = MapTimeZoneCache()
        first = pytz.timezone("Europe/Chisinau")
        assert cache.put_if_absent("Europe/Chisinau", first) is True
        assert cache.put_if_absent("Europe/Chisinau", pytz.utc) is False
        assert cache.get_timezone("Europe/Chisinau") is first
        assert cache.contains_id("Europe/Chisinau")

    def test_miss_and_clear(self):
        """Test unknown ids and clearing."""
        cache = MapTimeZoneCache()
        assert cache.get_timezone("Asia/Tokyo") is None
        cache.put_if_absent("Asia/Tokyo", pytz.timezone("Asia/Tokyo"))
        assert len(cache) == 1
        cache.clear()
        assert not cache.contains_id("Asia/Tokyo")
        assert len(cache) == 0

    def test_concurrent_inserts_store_once(self):
        """Test concurrent put_if_absent calls store a single zone."""
        cache = MapTimeZoneCache()
        zone = pytz.timezone("America/New_York")
        stored = []

        def worker():
            stored.append(cache.put_if_absent("America/New_York", zone))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert stored.count(True) == 1
        assert len(cache) == 1


class TestTimeZoneProvider:
    """Test zone lookup through a cache."""

    def test_loads_and_caches(self):
        """Test a miss loads from pytz and populates the cache."""
        cache = MapTimeZoneCache()
        provider = TimeZoneProvider(cache)
        zone = provider.get("Europe/Chisinau")
        assert zone.zone == "Europe/Chisinau"
        assert cache.contains_id("Europe/Chisinau")
        assert provider.get("Europe/Chisinau") is zone

    def test_prefers_cached_zone(self):
        """Test a cached entry is returned without consulting pytz."""
        cache = MapTimeZoneCache()
        cache.put_if_absent("Office/Local", pytz.timezone("Europe/Berlin"))
        assert TimeZoneProvider(cache).get("Office/Local").zone == "Europe/Berlin"

    def test_unknown_zone(self):
        """Test unknown ids raise TimeZoneError."""
        with pytest.raises(TimeZoneError):
            TimeZoneProvider().get("Mars/Olympus_Mons")


class TestZoneHelpers:
    """Test UTC detection, localization and conversion."""

    def test_is_utc(self):
        """Test UTC under its aliases."""
        assert is_utc(pytz.utc)
        assert is_utc(pytz.timezone("Etc/UTC"))
        assert is_utc(pytz.timezone("UTC"))
        assert not is_utc(pytz.timezone("Europe/London"))
        assert not is_utc(None)

    def test_localize_regular_time(self):
        """Test an unambiguous wall time."""
        zone = pytz.timezone("America/New_York")
        local = safe_localize(datetime(2024, 1, 15, 9, 0), zone)
        assert local.utcoffset() == timedelta(hours=-5)

    def test_localize_ambiguous_uses_standard_time(self):
        """Test the repeated hour at fall-back resolves to standard time."""
        zone = pytz.timezone("America/New_York")
        local = safe_localize(datetime(2024, 11, 3, 1, 30), zone)
        assert local.utcoffset() == timedelta(hours=-5)
        assert local.hour == 1

    def test_localize_ambiguous_prefer_daylight(self):
        """Test the repeated hour can be resolved to its daylight pass."""
        zone = pytz.timezone("America/New_York")
        local = safe_localize(datetime(2024, 11, 3, 1, 30), zone, prefer_dst=True)
        assert local.utcoffset() == timedelta(hours=-4)

    def test_localize_nonexistent_moves_forward(self):
        """Test the skipped hour at spring-forward moves one hour later."""
        zone = pytz.timezone("America/New_York")
        local = safe_localize(datetime(2024, 3, 10, 2, 30), zone)
        assert local.hour == 3
        assert local.minute == 30
        assert local.utcoffset() == timedelta(hours=-4)

    def test_to_zone(self):
        """Test conversion of an aware value into another zone."""
        utc_value = pytz.utc.localize(datetime(2024, 7, 1, 12, 0))
        local = to_zone(utc_value, pytz.timezone("Europe/Chisinau"))
        assert local.hour == 15
        assert local.utcoffset() == timedelta(hours=3)
