"""
Tests for Occurrence modes, ordering and OccurrenceList mode adoption.
"""

import pytest
from datetime import date, datetime

import pytz

from recur.errors import TimeZoneError
from recur.occurrence import Occurrence, OccurrenceList


class TestOccurrenceParsing:
    """Test the three RRULE date forms."""

    def test_date_only(self, occ):
        """Test yyyyMMdd parses as a date-only occurrence."""
        o = occ("20080401")
        assert o.date_only
        assert not o.utc
        assert o.zone is None
        assert o.value == datetime(2008, 4, 1)
        assert o.to_ical() == "20080401"

    def test_floating(self, occ):
        """Test yyyyMMddTHHmmss parses as floating local time."""
        o = occ("20081103T070000")
        assert o.is_floating
        assert o.value == datetime(2008, 11, 3, 7, 0)
        assert o.to_ical() == "20081103T070000"

    def test_utc(self, occ):
        """Test a trailing Z parses as a UTC instant."""
        o = occ("20081109T210000Z")
        assert o.utc
        assert o.zone is None
        assert o.value == pytz.utc.localize(datetime(2008, 11, 9, 21, 0))
        assert o.to_ical() == "20081109T210000Z"

    @pytest.mark.parametrize("text", ["2008-04-01", "20080401T0700", "200804", "20080401T070000+02", ""])
    def test_invalid(self, occ, text):
        """Test malformed date text."""
        with pytest.raises(ValueError):
            occ(text)


class TestOccurrenceModes:
    """Test mode invariants and mode changes."""

    def test_zoned_by_id(self):
        """Test zoned construction localizes the wall time."""
        o = Occurrence.zoned(datetime(2024, 7, 1, 9, 0), "Europe/Chisinau")
        assert o.zone.zone == "Europe/Chisinau"
        assert not o.utc
        assert o.instant == pytz.utc.localize(datetime(2024, 7, 1, 6, 0))

    def test_zoned_unknown_id(self):
        """Test unknown zone ids raise TimeZoneError."""
        with pytest.raises(TimeZoneError):
            Occurrence.zoned(datetime(2024, 7, 1, 9, 0), "Mars/Olympus_Mons")

    def test_utc_implies_no_zone(self):
        """Test setting UTC drops the zone and keeps the instant."""
        o = Occurrence.zoned(datetime(2024, 1, 15, 9, 0), "America/New_York")
        instant = o.instant
        o.set_utc(True)
        assert o.utc
        assert o.zone is None
        assert o.instant == instant

    def test_set_time_zone_none_means_utc(self):
        """Test clearing the zone makes the occurrence UTC."""
        o = Occurrence.zoned(datetime(2024, 1, 15, 9, 0), "Europe/London")
        o.set_time_zone(None)
        assert o.utc
        assert o.zone is None

    def test_set_time_zone_keeps_instant(self):
        """Test moving between zones keeps the instant."""
        o = Occurrence.in_utc(datetime(2024, 1, 15, 12, 0))
        moved = o.with_time_zone(pytz.timezone("Asia/Tokyo"))
        assert not moved.utc
        assert moved.value.hour == 21
        assert moved == o
        assert o.utc

    def test_date_only_ignores_zone_changes(self):
        """Test date-only occurrences carry no zone."""
        o = Occurrence.of_date(date(2024, 3, 1))
        o.set_time_zone(pytz.timezone("Europe/Paris"))
        o.set_utc(True)
        assert o.date_only
        assert o.zone is None
        assert not o.utc

    def test_like(self, occ):
        """Test building an occurrence in another occurrence's mode."""
        utc = occ("20080101T000000Z")
        o = Occurrence.like(datetime(2008, 5, 5, 10, 0), utc)
        assert o.utc
        assert o.to_ical() == "20080505T100000Z"

    def test_zoned_renders_as_utc(self):
        """Test zoned values render in UTC for RRULE text."""
        o = Occurrence.zoned(datetime(2024, 7, 1, 9, 0), "Europe/Chisinau")
        assert o.to_ical() == "20240701T060000Z"


class TestOccurrenceOrdering:
    """Test equality, hashing and the UTC ordering quirk."""

    def test_equality_by_instant(self, occ):
        """Test equality ignores the representation mode."""
        assert occ("20080401T000000") == occ("20080401T000000Z")
        assert occ("20080401") == occ("20080401T000000")
        assert hash(occ("20080401")) == hash(occ("20080401T000000Z"))

    def test_before_after_use_instants(self, occ):
        """Test before/after always compare instants."""
        assert occ("20080401T100000Z").before(occ("20080401T110000"))
        assert occ("20080402").after(occ("20080401T235959Z"))

    def test_utc_sorts_after_non_utc(self, occ):
        """Test a UTC value sorts after a non-UTC value even when earlier."""
        early_utc = occ("20080101T000000Z")
        late_floating = occ("20090101T000000")
        assert early_utc.compare_to(late_floating) == 1
        assert late_floating.compare_to(early_utc) == -1
        assert sorted([early_utc, late_floating]) == [late_floating, early_utc]

    def test_same_mode_sorts_by_instant(self, occ):
        """Test plain chronological ordering within one mode."""
        dates = [occ("20080103"), occ("20080101"), occ("20080102")]
        assert [d.to_ical() for d in sorted(dates)] == ["20080101", "20080102", "20080103"]


class TestOccurrenceList:
    """Test mode adoption and coercion."""

    def test_adopts_first_mode(self, occ):
        """Test an unconfigured list adopts the first element's mode."""
        dates = OccurrenceList()
        assert not dates.configured
        dates.append(occ("20080101T100000Z"))
        assert dates.configured
        assert dates.utc
        dates.append(occ("20080102T100000"))
        assert dates[1].utc
        assert dates[1].to_ical() == "20080102T100000Z"

    def test_insertion_does_not_mutate(self, occ):
        """Test coercion works on copies."""
        dates = OccurrenceList(utc=True)
        floating = occ("20080102T100000")
        dates.append(floating)
        assert floating.is_floating
        assert dates[0].utc

    def test_zone_coercion(self, occ):
        """Test timed values are moved into the list zone."""
        zone = pytz.timezone("Asia/Tokyo")
        dates = OccurrenceList(zone=zone)
        dates.extend([occ("20080101T000000Z")])
        assert dates[0].zone is zone
        assert dates[0].value.hour == 9

    def test_date_only_pass_through(self, occ):
        """Test date-only values are stored unchanged."""
        dates = OccurrenceList(utc=True)
        day = occ("20080101")
        dates.append(day)
        assert dates[0] is day

    def test_floating_list_keeps_floating(self, occ):
        """Test a floating list turns UTC input into floating wall time."""
        dates = OccurrenceList()
        dates.append(occ("20080101T090000"))
        dates.append(occ("20080101T100000Z"))
        assert dates[1].is_floating
        assert dates[1].value == datetime(2008, 1, 1, 10, 0)

    def test_like_and_for_seed(self, occ):
        """Test empty lists copying a mode."""
        utc_list = OccurrenceList.for_seed(occ("20080101T000000Z"))
        assert utc_list.utc and utc_list.configured
        assert OccurrenceList.like(utc_list).utc
        assert OccurrenceList.for_seed(occ("20080101")).date_only

    def test_sort_and_copy(self, occ):
        """Test sorting uses occurrence ordering and copies keep the mode."""
        dates = OccurrenceList([occ("20080103"), occ("20080101")])
        dates.sort()
        copy = dates.copy()
        assert isinstance(copy, OccurrenceList)
        assert copy.date_only
        assert [d.to_ical() for d in copy] == ["20080101", "20080103"]
