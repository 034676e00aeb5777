"""
Occurrence values and homogeneous occurrence lists.

An Occurrence is a datetime tagged with how it is represented:

- date-only: a calendar date, time fields are meaningless
- floating: local wall-clock time with no zone
- zoned: wall-clock time in a pytz zone
- UTC: an absolute UTC instant

UTC values are stored as aware UTC datetimes and zoned values as aware
datetimes localized in their zone. Floating and date-only values are naive
and are read as UTC wall-clock time whenever an absolute instant is needed.
"""

import re
from datetime import date, datetime, tzinfo
from typing import Iterable, Optional, Union

import pytz
from dateutil.parser import isoparse

from .timezones import TimeZoneProvider, default_timezone_provider, safe_localize, to_zone

_ICAL_VALUE = re.compile(r'^\d{8}(T\d{6}Z?)?$')


class Occurrence:
    """A single recurrence instance.

    Equality and hashing use the instant only. Ordering is deliberately
    different: when exactly one side is UTC flagged, the UTC side sorts after
    the other whatever the instants; otherwise instants are compared.
    ``before``/``after`` always compare instants.
    """

    __slots__ = ('_value', '_zone', '_date_only', '_utc')

    def __init__(self, value: Union[datetime, date], zone: Optional[tzinfo] = None,
                 date_only: bool = False, utc: bool = False):
        if not isinstance(value, datetime):
            value = datetime(value.year, value.month, value.day)
        self._date_only = date_only
        self._value = value
        if date_only:
            self._utc = False
            self._zone = None
            self._value = value.replace(tzinfo=None)
        elif utc:
            self._assign(None, True)
        else:
            self._assign(zone, False)

    # -- factories ---------------------------------------------------------

    @classmethod
    def of_date(cls, value: Union[date, datetime]) -> "Occurrence":
        return cls(datetime(value.year, value.month, value.day), date_only=True)

    @classmethod
    def floating(cls, value: datetime) -> "Occurrence":
        return cls(value)

    @classmethod
    def in_utc(cls, value: datetime) -> "Occurrence":
        return cls(value, utc=True)

    @classmethod
    def zoned(cls, value: datetime, zone: Union[str, tzinfo],
              zones: Optional[TimeZoneProvider] = None) -> "Occurrence":
        """Occurrence in ``zone``, which may be a pytz zone or a zone id.

        Raises:
            TimeZoneError: If ``zone`` is an unknown id
        """
        if isinstance(zone, str):
            zone = (zones or default_timezone_provider).get(zone)
        return cls(value, zone=zone)

    @classmethod
    def like(cls, value: datetime, other: "Occurrence") -> "Occurrence":
        """Occurrence for ``value`` in the same mode as ``other``."""
        return cls(value, other.zone, other.date_only, other.utc)

    @classmethod
    def parse(cls, text: str) -> "Occurrence":
        """Parse ``yyyyMMdd``, ``yyyyMMdd'T'HHmmss`` or ``yyyyMMdd'T'HHmmss'Z'``.

        Raises:
            ValueError: If the text matches none of the forms
        """
        text = text.strip()
        if not _ICAL_VALUE.match(text):
            raise ValueError(f"Invalid date or date-time: {text}")
        parsed = isoparse(text)
        if 'T' not in text:
            return cls(parsed, date_only=True)
        if text.endswith('Z'):
            return cls(parsed, utc=True)
        return cls(parsed)

    # -- mode --------------------------------------------------------------

    def _assign(self, zone: Optional[tzinfo], utc: bool):
        value = self._value
        if utc:
            if value.tzinfo is None:
                value = value.replace(tzinfo=pytz.utc)
            else:
                value = value.astimezone(pytz.utc)
            zone = None
        elif zone is not None:
            if value.tzinfo is None:
                value = safe_localize(value, zone)
            else:
                value = to_zone(value, zone)
        elif value.tzinfo is not None:
            value = value.astimezone(pytz.utc).replace(tzinfo=None)
        self._value = value
        self._zone = zone
        self._utc = utc

    def set_time_zone(self, zone: Optional[tzinfo]):
        """Move to ``zone``; a None zone makes the occurrence UTC.

        Date-only occurrences carry no zone and ignore the call.
        """
        if self._date_only:
            return
        self._assign(zone, zone is None)

    def set_utc(self, utc: bool):
        """Flag the occurrence UTC (or floating when False), dropping any zone."""
        if self._date_only:
            return
        self._assign(None, utc)

    def with_time_zone(self, zone: Optional[tzinfo]) -> "Occurrence":
        copy = self._copy()
        copy.set_time_zone(zone)
        return copy

    def with_utc(self, utc: bool) -> "Occurrence":
        copy = self._copy()
        copy.set_utc(utc)
        return copy

    def _copy(self) -> "Occurrence":
        copy = Occurrence.__new__(Occurrence)
        copy._value = self._value
        copy._zone = self._zone
        copy._date_only = self._date_only
        copy._utc = self._utc
        return copy

    @property
    def value(self) -> datetime:
        return self._value

    @property
    def zone(self) -> Optional[tzinfo]:
        return self._zone

    @property
    def date_only(self) -> bool:
        return self._date_only

    @property
    def utc(self) -> bool:
        return self._utc

    @property
    def is_floating(self) -> bool:
        return not self._date_only and not self._utc and self._zone is None

    @property
    def instant(self) -> datetime:
        """Absolute instant as an aware UTC datetime."""
        if self._value.tzinfo is None:
            return self._value.replace(tzinfo=pytz.utc)
        return self._value.astimezone(pytz.utc)

    # -- comparison --------------------------------------------------------

    def before(self, other: "Occurrence") -> bool:
        return self.instant < other.instant

    def after(self, other: "Occurrence") -> bool:
        return self.instant > other.instant

    def compare_to(self, other: "Occurrence") -> int:
        if self._utc and not other._utc:
            return 1
        if not self._utc and other._utc:
            return -1
        mine, theirs = self.instant, other.instant
        return (mine > theirs) - (mine < theirs)

    def __lt__(self, other):
        return self.compare_to(other) < 0

    def __le__(self, other):
        return self.compare_to(other) <= 0

    def __gt__(self, other):
        return self.compare_to(other) > 0

    def __ge__(self, other):
        return self.compare_to(other) >= 0

    def __eq__(self, other):
        if not isinstance(other, Occurrence):
            return NotImplemented
        return self.instant == other.instant

    def __hash__(self):
        return hash(self.instant)

    # -- rendering ---------------------------------------------------------

    def to_ical(self) -> str:
        """RRULE form of the value; zoned values are rendered in UTC."""
        if self._date_only:
            return self._value.strftime('%Y%m%d')
        if self._utc or self._zone is not None:
            return self.instant.strftime('%Y%m%dT%H%M%SZ')
        return self._value.strftime('%Y%m%dT%H%M%S')

    def __str__(self):
        if self._zone is not None:
            return f"{self._value.strftime('%Y%m%dT%H%M%S')}[{self._zone}]"
        return self.to_ical()

    def __repr__(self):
        if self._date_only:
            mode = 'date'
        elif self._utc:
            mode = 'utc'
        elif self._zone is not None:
            mode = str(self._zone)
        else:
            mode = 'floating'
        return f"Occurrence({self._value.isoformat()}, {mode})"


class OccurrenceList(list):
    """List of occurrences sharing a single representation mode.

    Unless configured up front, the list adopts the mode of the first
    occurrence added. Later timed occurrences are stored as copies coerced to
    that mode; date-only occurrences are stored unchanged.
    """

    def __init__(self, values: Optional[Iterable[Occurrence]] = None,
                 date_only: bool = False, utc: bool = False,
                 zone: Optional[tzinfo] = None, configured: bool = False):
        super().__init__()
        self.date_only = date_only
        self.utc = utc
        self.zone = None if utc else zone
        self._configured = configured or utc or zone is not None
        if values is not None:
            self.extend(values)

    @classmethod
    def like(cls, other: "OccurrenceList") -> "OccurrenceList":
        """Empty list with the same mode as ``other``."""
        return cls(date_only=other.date_only, utc=other.utc, zone=other.zone,
                   configured=other._configured)

    @classmethod
    def for_seed(cls, seed: Occurrence) -> "OccurrenceList":
        """Empty list configured with the mode of ``seed``."""
        if seed.date_only:
            return cls(date_only=True, configured=True)
        return cls(utc=seed.utc, zone=seed.zone, configured=True)

    @property
    def configured(self) -> bool:
        return self._configured

    def _coerce(self, value: Occurrence) -> Occurrence:
        if not self._configured:
            self._configured = True
            self.date_only = value.date_only
            if not value.date_only:
                self.utc = value.utc
                self.zone = value.zone
        if value.date_only:
            return value
        if self.utc:
            return value if value.utc else value.with_utc(True)
        if self.zone is not None:
            return value if value.zone == self.zone else value.with_time_zone(self.zone)
        return value if value.is_floating else value.with_utc(False)

    def append(self, value: Occurrence):
        super().append(self._coerce(value))

    def insert(self, index: int, value: Occurrence):
        super().insert(index, self._coerce(value))

    def extend(self, values: Iterable[Occurrence]):
        for value in values:
            self.append(value)

    def __iadd__(self, values):
        self.extend(values)
        return self

    def copy(self) -> "OccurrenceList":
        copy = OccurrenceList.like(self)
        list.extend(copy, self)
        return copy

    def __repr__(self):
        return f"OccurrenceList({list.__repr__(self)})"
