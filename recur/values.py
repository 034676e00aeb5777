"""
Bounded value lists backing the BYxxx rule parts.

NumberList holds the integer parts (BYMONTH, BYMONTHDAY, BYSETPOS, ...) and
WeekDayList holds BYDAY tokens such as ``MO``, ``2TU`` or ``-1FR``. Both keep
insertion order, and an empty list means the part does not constrain the
recurrence.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Iterable, Optional, Union

from .errors import ConfigurationError

MAX_WEEKDAY_OFFSET = 53

_WEEKDAY_TOKEN = re.compile(r'^([+-]?\d{1,2})?([A-Z]{2})$')


class Day(IntEnum):
    """Weekday symbols, numbered like ``datetime.weekday()``."""
    MO = 0
    TU = 1
    WE = 2
    TH = 3
    FR = 4
    SA = 5
    SU = 6

    def __str__(self):
        return self.name

    @classmethod
    def parse(cls, token: str) -> "Day":
        try:
            return cls[token.strip().upper()]
        except KeyError:
            raise ConfigurationError(f"Invalid weekday: {token}")


@dataclass(frozen=True)
class WeekDay:
    """A weekday with an optional signed ordinal (``2MO``, ``-1FR``)."""

    day: Day
    offset: int = 0

    def __post_init__(self):
        if abs(self.offset) > MAX_WEEKDAY_OFFSET:
            raise ConfigurationError(
                f"Weekday ordinal out of range: {self.offset}{self.day}"
            )

    @classmethod
    def parse(cls, token: str) -> "WeekDay":
        match = _WEEKDAY_TOKEN.match(token.strip().upper())
        if not match:
            raise ConfigurationError(f"Invalid weekday in BYDAY: {token}")
        ordinal, symbol = match.groups()
        return cls(Day.parse(symbol), int(ordinal) if ordinal else 0)

    @classmethod
    def of(cls, value: datetime) -> "WeekDay":
        """Weekday (no ordinal) of a date or datetime."""
        return cls(Day(value.weekday()))

    def __str__(self):
        if self.offset:
            return f"{self.offset}{self.day}"
        return str(self.day)


class WeekDayList(list):
    """Ordered list of WeekDay tokens for the BYDAY part."""

    def __init__(self, values: Union[str, Iterable[Union[WeekDay, Day, str]], None] = None):
        super().__init__()
        if values is None:
            return
        if isinstance(values, str):
            tokens = values.split(',')
            if any(not t.strip() for t in tokens):
                raise ConfigurationError(f"Invalid BYDAY value: '{values}'")
            values = tokens
        for value in values:
            if isinstance(value, WeekDay):
                self.append(value)
            elif isinstance(value, Day):
                self.append(WeekDay(value))
            else:
                self.append(WeekDay.parse(value))

    def days(self) -> set:
        return {wd.day for wd in self}

    def __str__(self):
        return ','.join(str(wd) for wd in self)


class NumberList(list):
    """Ordered list of integers with a declared inclusive range.

    A value is accepted when ``minimum <= abs(value) <= maximum`` and it is
    non-negative unless ``allow_negative`` is set. Parts that count from the
    end of a period use ``minimum=1``, which also rules out zero. Lists
    without bounds are unchecked.

    Raises:
        ConfigurationError: On a malformed integer or an out-of-range value
    """

    def __init__(self, values: Union[str, Iterable[int], None] = None,
                 minimum: Optional[int] = None, maximum: Optional[int] = None,
                 allow_negative: bool = False):
        super().__init__()
        self.minimum = minimum
        self.maximum = maximum
        self.allow_negative = allow_negative
        if values is None:
            return
        if isinstance(values, str):
            tokens = [v.strip() for v in values.split(',')]
            if not values.strip() or any(not t for t in tokens):
                raise ConfigurationError(f"Invalid number list: '{values}'")
            for token in tokens:
                try:
                    self.append(int(token))
                except ValueError:
                    raise ConfigurationError(f"Invalid integer in number list: '{token}'")
        else:
            for value in values:
                self.append(value)

    def append(self, value: int):
        self._check(value)
        super().append(value)

    def extend(self, values: Iterable[int]):
        for value in values:
            self.append(value)

    def _check(self, value: int):
        if not isinstance(value, int) or isinstance(value, bool):
            raise ConfigurationError(f"Not an integer: {value!r}")
        if value < 0 and not self.allow_negative and self.minimum is not None:
            raise ConfigurationError(f"Negative value not allowed: {value}")
        magnitude = abs(value)
        if self.minimum is not None and magnitude < self.minimum:
            raise ConfigurationError(
                f"Value {value} outside range {self.minimum}..{self.maximum}"
            )
        if self.maximum is not None and magnitude > self.maximum:
            raise ConfigurationError(
                f"Value {value} outside range {self.minimum}..{self.maximum}"
            )

    def __str__(self):
        return ','.join(str(v) for v in self)
