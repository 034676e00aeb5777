"""Recurrence frequencies and the calendar field each one steps."""

from enum import Enum

from .calendar import Field


class Frequency(Enum):
    SECONDLY = "SECONDLY"
    MINUTELY = "MINUTELY"
    HOURLY = "HOURLY"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"

    def __str__(self):
        return self.value

    @property
    def increment_field(self) -> Field:
        """Calendar field the search cursor is advanced by."""
        return _INCREMENT_FIELDS[self]

    @property
    def is_sub_daily(self) -> bool:
        return self in (Frequency.SECONDLY, Frequency.MINUTELY, Frequency.HOURLY)


_INCREMENT_FIELDS = {
    Frequency.SECONDLY: Field.SECOND,
    Frequency.MINUTELY: Field.MINUTE,
    Frequency.HOURLY: Field.HOUR,
    Frequency.DAILY: Field.DAY_OF_YEAR,
    Frequency.WEEKLY: Field.WEEK_OF_YEAR,
    Frequency.MONTHLY: Field.MONTH,
    Frequency.YEARLY: Field.YEAR,
}
