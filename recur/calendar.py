"""
Calendar arithmetic for the search cursor.

CalendarCursor is an immutable wall-clock position in an optional zone with
field get/set/add/roll operations and "actual maximum" queries (days in this
month, weeks in this year). Week numbering follows a configurable first day of
week and minimum days in the first week; RFC-5545 fixes the latter at 4.
"""

import calendar as _calendar
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum
from typing import TYPE_CHECKING, Optional

import pytz
from dateutil.relativedelta import relativedelta

from .timezones import safe_localize, to_zone

if TYPE_CHECKING:
    from .occurrence import Occurrence

RFC5545_MIN_DAYS_IN_FIRST_WEEK = 4


class Field(Enum):
    SECOND = "second"
    MINUTE = "minute"
    HOUR = "hour"
    DAY_OF_WEEK = "day_of_week"
    DAY_OF_MONTH = "day_of_month"
    DAY_OF_YEAR = "day_of_year"
    WEEK_OF_YEAR = "week_of_year"
    MONTH = "month"
    YEAR = "year"


_TIME_FIELDS = {Field.SECOND: 'seconds', Field.MINUTE: 'minutes', Field.HOUR: 'hours'}
_FIXED_MAXIMUM = {Field.SECOND: 59, Field.MINUTE: 59, Field.HOUR: 23,
                  Field.DAY_OF_WEEK: 6, Field.MONTH: 12, Field.YEAR: datetime.max.year}
_MINIMUM = {Field.SECOND: 0, Field.MINUTE: 0, Field.HOUR: 0, Field.DAY_OF_WEEK: 0,
            Field.DAY_OF_MONTH: 1, Field.DAY_OF_YEAR: 1, Field.WEEK_OF_YEAR: 1,
            Field.MONTH: 1, Field.YEAR: 1}


def days_in_year(year: int) -> int:
    return 366 if _calendar.isleap(year) else 365


def days_in_month(year: int, month: int) -> int:
    return _calendar.monthrange(year, month)[1]


@dataclass(frozen=True)
class CalendarCursor:
    """Immutable calendar position.

    ``wall`` is the naive wall-clock time; ``zone`` (a pytz zone) is only
    consulted for absolute-time arithmetic and when converting back to an
    Occurrence. ``week_start`` uses ``datetime.weekday()`` numbering.

    ``dst`` tells the two passes through a repeated fall-back hour apart. It
    is set by elapsed-time steps and kept by time-of-day changes; every other
    move clears it, so an ambiguous wall time reads as standard time.
    """

    wall: datetime
    zone: Optional[tzinfo] = None
    week_start: int = 0
    min_days_in_first_week: int = RFC5545_MIN_DAYS_IN_FIRST_WEEK
    lenient: bool = True
    dst: bool = False

    @classmethod
    def from_occurrence(cls, occurrence: "Occurrence", week_start: int = 0,
                        lenient: bool = True,
                        min_days_in_first_week: int = RFC5545_MIN_DAYS_IN_FIRST_WEEK) -> "CalendarCursor":
        """Cursor at an occurrence; date-only values start at midnight."""
        value = occurrence.value
        zone = occurrence.zone
        if occurrence.utc:
            zone = pytz.utc
        dst = False
        if value.tzinfo is not None:
            local = to_zone(value, zone or pytz.utc)
            dst = bool(local.dst())
            value = local.replace(tzinfo=None)
        if occurrence.date_only:
            value = value.replace(hour=0, minute=0, second=0, microsecond=0)
        return cls(value, zone, week_start, min_days_in_first_week, lenient, dst)

    def to_occurrence(self, like: "Occurrence") -> "Occurrence":
        """Occurrence at this position in the same mode as ``like``."""
        from .occurrence import Occurrence
        if like.date_only:
            return Occurrence(self.wall, date_only=True)
        if like.utc:
            return Occurrence(self.wall.replace(tzinfo=pytz.utc), utc=True)
        if like.zone is not None:
            return Occurrence(safe_localize(self.wall, like.zone, self.dst), zone=like.zone)
        return Occurrence(self.wall)

    def _moved(self, wall: datetime, dst: bool = False) -> "CalendarCursor":
        return replace(self, wall=wall, dst=dst)

    # -- week numbering ----------------------------------------------------

    def _first_week_start(self, year: int) -> date:
        jan1 = date(year, 1, 1)
        offset = (jan1.weekday() - self.week_start) % 7
        start = jan1 - timedelta(days=offset)
        if 7 - offset < self.min_days_in_first_week:
            start += timedelta(days=7)
        return start

    def weeks_in_year(self, year: Optional[int] = None) -> int:
        year = self.wall.year if year is None else year
        return (self._first_week_start(year + 1) - self._first_week_start(year)).days // 7

    def _week_of_year(self) -> int:
        day = self.wall.date()
        year = day.year
        first = self._first_week_start(year)
        if day < first:
            return self.weeks_in_year(year - 1)
        if day >= self._first_week_start(year + 1):
            return 1
        return (day - first).days // 7 + 1

    def _day_in_week(self) -> int:
        return (self.wall.weekday() - self.week_start) % 7

    # -- queries -----------------------------------------------------------

    def get(self, field: Field) -> int:
        wall = self.wall
        if field is Field.SECOND:
            return wall.second
        if field is Field.MINUTE:
            return wall.minute
        if field is Field.HOUR:
            return wall.hour
        if field is Field.DAY_OF_WEEK:
            return wall.weekday()
        if field is Field.DAY_OF_MONTH:
            return wall.day
        if field is Field.DAY_OF_YEAR:
            return wall.timetuple().tm_yday
        if field is Field.WEEK_OF_YEAR:
            return self._week_of_year()
        if field is Field.MONTH:
            return wall.month
        return wall.year

    def actual_max(self, field: Field) -> int:
        """Largest value ``field`` can take for the current date."""
        if field is Field.DAY_OF_MONTH:
            return days_in_month(self.wall.year, self.wall.month)
        if field is Field.DAY_OF_YEAR:
            return days_in_year(self.wall.year)
        if field is Field.WEEK_OF_YEAR:
            return self.weeks_in_year()
        return _FIXED_MAXIMUM[field]

    # -- transformations ---------------------------------------------------

    def with_field(self, field: Field, value: int) -> "CalendarCursor":
        """Set ``field``. Lenient cursors carry overflow into larger fields.

        Raises:
            ValueError: On an out-of-range value when not lenient
        """
        if not self.lenient:
            low = _MINIMUM[field]
            if value < low or value > self.actual_max(field):
                raise ValueError(f"{field.value} out of range: {value}")
        wall = self.wall
        if field in _TIME_FIELDS:
            current = self.get(field)
            return self._moved(wall + timedelta(**{_TIME_FIELDS[field]: value - current}), self.dst)
        if field is Field.DAY_OF_WEEK:
            return self._moved(wall + timedelta(days=(value - self.week_start) % 7 - self._day_in_week()))
        if field is Field.DAY_OF_MONTH:
            return self._moved(wall.replace(day=1) + timedelta(days=value - 1))
        if field is Field.DAY_OF_YEAR:
            return self._moved(wall.replace(month=1, day=1) + timedelta(days=value - 1))
        if field is Field.WEEK_OF_YEAR:
            start = self._first_week_start(wall.year) + timedelta(weeks=value - 1, days=self._day_in_week())
            return self._moved(datetime.combine(start, wall.time()))
        if field is Field.MONTH:
            first = wall.replace(day=1) + relativedelta(months=value - wall.month)
            return self._moved(first + timedelta(days=wall.day - 1))
        first = wall.replace(month=1, day=1) + relativedelta(years=value - wall.year)
        return self._moved(first + timedelta(days=wall.timetuple().tm_yday - 1))

    def plus(self, field: Field, amount: int) -> "CalendarCursor":
        """Add ``amount`` to ``field``, carrying into larger fields.

        Months and years keep the day of month where possible and otherwise
        pin it to the last day of the month. Hours, minutes and seconds are
        added as elapsed time, so zoned cursors step across DST correctly.
        """
        wall = self.wall
        if field in _TIME_FIELDS:
            delta = timedelta(**{_TIME_FIELDS[field]: amount})
            if self.zone is None:
                return self._moved(wall + delta)
            moved = to_zone(safe_localize(wall, self.zone, self.dst) + delta, self.zone)
            return self._moved(moved.replace(tzinfo=None), bool(moved.dst()))
        if field in (Field.DAY_OF_WEEK, Field.DAY_OF_MONTH, Field.DAY_OF_YEAR):
            return self._moved(wall + timedelta(days=amount))
        if field is Field.WEEK_OF_YEAR:
            return self._moved(wall + timedelta(weeks=amount))
        if field is Field.MONTH:
            return self._moved(wall + relativedelta(months=amount))
        return self._moved(wall + relativedelta(years=amount))

    def roll(self, field: Field, amount: int) -> "CalendarCursor":
        """Add ``amount`` to ``field`` wrapping within its range, without carrying."""
        if field is Field.YEAR:
            return self.plus(field, amount)
        if field is Field.MONTH:
            month = (self.wall.month - 1 + amount) % 12 + 1
            day = min(self.wall.day, days_in_month(self.wall.year, month))
            return self._moved(self.wall.replace(month=month, day=day))
        if field is Field.DAY_OF_WEEK:
            target = (self._day_in_week() + amount) % 7
            return self._moved(self.wall + timedelta(days=target - self._day_in_week()))
        low = _MINIMUM[field]
        span = self.actual_max(field) - low + 1
        value = (self.get(field) - low + amount) % span + low
        return replace(self, lenient=True).with_field(field, value)._with_lenient(self.lenient)

    def _with_lenient(self, lenient: bool) -> "CalendarCursor":
        return self if self.lenient == lenient else replace(self, lenient=lenient)
