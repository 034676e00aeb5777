"""
RFC-5545 recurrence rules.

A Rule is immutable once built: construction validates the parts, fixes the
BYDAY expansion mode and binds one stage per active BYxxx part. Rules can be
shared freely between threads; every search allocates its own cursor and
lists.
"""

from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple, Union

from .config import EvaluationConfig
from .errors import ConfigurationError
from .frequency import Frequency
from .occurrence import Occurrence, OccurrenceList
from .stages import (
    EVALUATION_ORDER, UNSUPPORTED, EvaluationContext, Part, Stage,
    build_stage, derive_byday_mode
)
from .values import Day, NumberList, WeekDay, WeekDayList

NumberValues = Union[str, Iterable[int], None]
UntilValue = Union[Occurrence, datetime, date, str, None]

# (minimum, maximum, allow_negative) per numeric part
PART_RANGES = {
    Part.BYSECOND: (0, 59, False),
    Part.BYMINUTE: (0, 59, False),
    Part.BYHOUR: (0, 23, False),
    Part.BYMONTHDAY: (1, 31, True),
    Part.BYYEARDAY: (1, 366, True),
    Part.BYWEEKNO: (1, 53, True),
    Part.BYMONTH: (1, 12, False),
    Part.BYSETPOS: (1, 366, True),
}


def number_list(part: Part, values: NumberValues) -> NumberList:
    """NumberList with the declared range of ``part``.

    Raises:
        ConfigurationError: On a malformed or out-of-range value
    """
    minimum, maximum, allow_negative = PART_RANGES[part]
    return NumberList(values, minimum, maximum, allow_negative)


def _as_frequency(value: Union[Frequency, str, None]) -> Frequency:
    if value is None:
        raise ConfigurationError("A recurrence must have a frequency")
    if isinstance(value, Frequency):
        return value
    try:
        return Frequency(str(value).strip().upper())
    except ValueError:
        raise ConfigurationError(f"Invalid frequency: {value}")


def _as_until(value: UntilValue) -> Optional[Occurrence]:
    if value is None or isinstance(value, Occurrence):
        return value
    if isinstance(value, str):
        try:
            return Occurrence.parse(value)
        except ValueError as e:
            raise ConfigurationError(str(e))
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return Occurrence.floating(value)
        return Occurrence.in_utc(value)
    return Occurrence.of_date(value)


def _as_day(value: Union[Day, str, None]) -> Optional[Day]:
    if value is None or isinstance(value, Day):
        return value
    return Day.parse(value)


def _as_int(name: str, value: Optional[int]) -> Optional[int]:
    if value is None:
        return None
    if not isinstance(value, int) or isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer: {value!r}")
    return value


class Rule:
    """An immutable recurrence rule.

    Args:
        frequency: FREQ, a Frequency or its name
        interval: INTERVAL; None or a value below 1 means 1
        count: COUNT; exclusive with ``until``, a value below 1 means no count
        until: UNTIL as an Occurrence, datetime, date or RRULE date text
        week_start: WKST; None means Monday
        second_list .. set_pos_list: BYxxx values as iterables or comma text

    Raises:
        ConfigurationError: If the frequency is missing or invalid, COUNT and
            UNTIL are both given, a value is out of range, or a part is not
            defined for the frequency
    """

    def __init__(self, frequency: Union[Frequency, str, None],
                 interval: Optional[int] = None,
                 count: Optional[int] = None,
                 until: UntilValue = None,
                 week_start: Union[Day, str, None] = None,
                 second_list: NumberValues = None,
                 minute_list: NumberValues = None,
                 hour_list: NumberValues = None,
                 day_list: Union[str, Iterable, None] = None,
                 month_day_list: NumberValues = None,
                 year_day_list: NumberValues = None,
                 week_no_list: NumberValues = None,
                 month_list: NumberValues = None,
                 set_pos_list: NumberValues = None):
        self._frequency = _as_frequency(frequency)
        self._interval = _as_int("INTERVAL", interval)
        self._count = _as_int("COUNT", count)
        self._until = _as_until(until)
        if self._count is not None and self._until is not None:
            raise ConfigurationError("COUNT and UNTIL cannot both be specified")
        self._week_start = _as_day(week_start)

        self._lists = {
            Part.BYSECOND: number_list(Part.BYSECOND, second_list),
            Part.BYMINUTE: number_list(Part.BYMINUTE, minute_list),
            Part.BYHOUR: number_list(Part.BYHOUR, hour_list),
            Part.BYDAY: WeekDayList(day_list),
            Part.BYMONTHDAY: number_list(Part.BYMONTHDAY, month_day_list),
            Part.BYYEARDAY: number_list(Part.BYYEARDAY, year_day_list),
            Part.BYWEEKNO: number_list(Part.BYWEEKNO, week_no_list),
            Part.BYMONTH: number_list(Part.BYMONTH, month_list),
            Part.BYSETPOS: number_list(Part.BYSETPOS, set_pos_list),
        }
        for part, frequencies in UNSUPPORTED.items():
            if self._lists[part] and self._frequency in frequencies:
                raise ConfigurationError(f"{part} is not supported with FREQ={self._frequency}")

        self._byday_mode = derive_byday_mode(
            self._frequency,
            year_days=self._lists[Part.BYYEARDAY],
            month_days=self._lists[Part.BYMONTHDAY],
            week_numbers=self._lists[Part.BYWEEKNO],
            months=self._lists[Part.BYMONTH],
        )
        self._context = EvaluationContext(self._frequency, self.week_start)
        self._stages = tuple(
            build_stage(part, self._lists[part], self._context,
                        self._byday_mode if part is Part.BYDAY else None)
            for part in EVALUATION_ORDER
        )

    # -- construction helpers ----------------------------------------------

    @classmethod
    def from_string(cls, text: str, relaxed: bool = False) -> "Rule":
        """Parse RRULE text, raising on failure.

        Raises:
            ParseError: If the text is not a valid rule
            ConfigurationError: If the parts do not form a valid rule
        """
        from .parser import parse_rule
        return parse_rule(text, relaxed=relaxed).unwrap()

    @classmethod
    def builder(cls, rule: Optional["Rule"] = None) -> "RuleBuilder":
        """Fluent builder, optionally seeded with the parts of ``rule``."""
        return RuleBuilder(rule)

    # -- accessors ---------------------------------------------------------

    @property
    def frequency(self) -> Frequency:
        return self._frequency

    @property
    def interval(self) -> int:
        """Effective interval; 1 when INTERVAL is unset or below 1."""
        return self._interval if self._interval is not None and self._interval >= 1 else 1

    @property
    def raw_interval(self) -> Optional[int]:
        return self._interval

    @property
    def count(self) -> Optional[int]:
        """Effective COUNT; None when unset or below 1."""
        return self._count if self._count is not None and self._count >= 1 else None

    @property
    def raw_count(self) -> Optional[int]:
        return self._count

    @property
    def until(self) -> Optional[Occurrence]:
        return self._until

    @property
    def week_start(self) -> Day:
        """Effective first day of the week; Monday when WKST is not set."""
        return self._week_start if self._week_start is not None else Day.MO

    @property
    def raw_week_start(self) -> Optional[Day]:
        return self._week_start

    @property
    def second_list(self) -> Tuple[int, ...]:
        return tuple(self._lists[Part.BYSECOND])

    @property
    def minute_list(self) -> Tuple[int, ...]:
        return tuple(self._lists[Part.BYMINUTE])

    @property
    def hour_list(self) -> Tuple[int, ...]:
        return tuple(self._lists[Part.BYHOUR])

    @property
    def day_list(self) -> Tuple[WeekDay, ...]:
        return tuple(self._lists[Part.BYDAY])

    @property
    def month_day_list(self) -> Tuple[int, ...]:
        return tuple(self._lists[Part.BYMONTHDAY])

    @property
    def year_day_list(self) -> Tuple[int, ...]:
        return tuple(self._lists[Part.BYYEARDAY])

    @property
    def week_no_list(self) -> Tuple[int, ...]:
        return tuple(self._lists[Part.BYWEEKNO])

    @property
    def month_list(self) -> Tuple[int, ...]:
        return tuple(self._lists[Part.BYMONTH])

    @property
    def set_pos_list(self) -> Tuple[int, ...]:
        return tuple(self._lists[Part.BYSETPOS])

    @property
    def byday_mode(self) -> Frequency:
        """Frequency governing BYDAY; DAILY means BYDAY limits."""
        return self._byday_mode

    @property
    def context(self) -> EvaluationContext:
        return self._context

    @property
    def stages(self) -> Tuple[Optional[Stage], ...]:
        """Active stages indexed by ``Part.value``; None where a part is unset."""
        return self._stages

    # -- searches ----------------------------------------------------------

    def enumerate(self, seed: Occurrence, period_start: Occurrence,
                  period_end: Optional[Occurrence] = None, max_count: int = -1,
                  config: Optional[EvaluationConfig] = None) -> OccurrenceList:
        """Occurrences in ``[period_start, period_end]`` of the series starting at ``seed``."""
        from .search import enumerate_occurrences
        return enumerate_occurrences(self, seed, period_start, period_end, max_count, config)

    def get_dates(self, period_start: Occurrence, period_end: Optional[Occurrence] = None,
                  seed: Optional[Occurrence] = None, max_count: int = -1,
                  config: Optional[EvaluationConfig] = None) -> OccurrenceList:
        """Like ``enumerate``, with the series seeded at ``period_start`` by default."""
        return self.enumerate(seed or period_start, period_start, period_end, max_count, config)

    def next_after(self, seed: Occurrence, start_date: Occurrence,
                   config: Optional[EvaluationConfig] = None) -> Optional[Occurrence]:
        """First occurrence strictly after ``start_date``, or None."""
        from .search import next_occurrence_after
        return next_occurrence_after(self, seed, start_date, config)

    # -- serialization -----------------------------------------------------

    def parts(self) -> List[Tuple[str, str]]:
        """(KEY, VALUE) pairs in canonical order, unset parts omitted."""
        parts = [("FREQ", str(self._frequency))]
        if self._week_start is not None:
            parts.append(("WKST", str(self._week_start)))
        if self._until is not None:
            parts.append(("UNTIL", self._until.to_ical()))
        if self._count is not None:
            parts.append(("COUNT", str(self._count)))
        if self._interval is not None:
            parts.append(("INTERVAL", str(self._interval)))
        for part in (Part.BYMONTH, Part.BYWEEKNO, Part.BYYEARDAY, Part.BYMONTHDAY,
                     Part.BYDAY, Part.BYHOUR, Part.BYMINUTE, Part.BYSECOND, Part.BYSETPOS):
            if self._lists[part]:
                parts.append((str(part), str(self._lists[part])))
        return parts

    def to_canonical_string(self) -> str:
        return ';'.join(f"{key}={value}" for key, value in self.parts())

    def __str__(self):
        return self.to_canonical_string()

    def __repr__(self):
        return f"Rule({self.to_canonical_string()!r})"

    def _key(self):
        return (
            self._frequency, self._interval, self._count,
            self._until.to_ical() if self._until is not None else None,
            self._week_start,
            tuple(tuple(self._lists[part]) for part in EVALUATION_ORDER),
        )

    def __eq__(self, other):
        if not isinstance(other, Rule):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())


class RuleBuilder:
    """Fluent construction of Rule instances."""

    def __init__(self, rule: Optional[Rule] = None):
        self._values = {}
        if rule is not None:
            self._values = {
                'frequency': rule.frequency,
                'interval': rule.raw_interval,
                'count': rule.raw_count,
                'until': rule.until,
                'week_start': rule.raw_week_start,
                'second_list': rule.second_list,
                'minute_list': rule.minute_list,
                'hour_list': rule.hour_list,
                'day_list': rule.day_list,
                'month_day_list': rule.month_day_list,
                'year_day_list': rule.year_day_list,
                'week_no_list': rule.week_no_list,
                'month_list': rule.month_list,
                'set_pos_list': rule.set_pos_list,
            }

    def _set(self, name, value) -> "RuleBuilder":
        self._values[name] = value
        return self

    def frequency(self, frequency: Union[Frequency, str]) -> "RuleBuilder":
        return self._set('frequency', frequency)

    def interval(self, interval: Optional[int]) -> "RuleBuilder":
        return self._set('interval', interval)

    def count(self, count: Optional[int]) -> "RuleBuilder":
        return self._set('count', count)

    def until(self, until: UntilValue) -> "RuleBuilder":
        return self._set('until', until)

    def week_start(self, day: Union[Day, str, None]) -> "RuleBuilder":
        return self._set('week_start', day)

    def second_list(self, values: NumberValues) -> "RuleBuilder":
        return self._set('second_list', values)

    def minute_list(self, values: NumberValues) -> "RuleBuilder":
        return self._set('minute_list', values)

    def hour_list(self, values: NumberValues) -> "RuleBuilder":
        return self._set('hour_list', values)

    def day_list(self, values) -> "RuleBuilder":
        return self._set('day_list', values)

    def month_day_list(self, values: NumberValues) -> "RuleBuilder":
        return self._set('month_day_list', values)

    def year_day_list(self, values: NumberValues) -> "RuleBuilder":
        return self._set('year_day_list', values)

    def week_no_list(self, values: NumberValues) -> "RuleBuilder":
        return self._set('week_no_list', values)

    def month_list(self, values: NumberValues) -> "RuleBuilder":
        return self._set('month_list', values)

    def set_pos_list(self, values: NumberValues) -> "RuleBuilder":
        return self._set('set_pos_list', values)

    def build(self) -> Rule:
        """Build the rule.

        Raises:
            ConfigurationError: If the collected parts do not form a valid rule
        """
        values = dict(self._values)
        return Rule(values.pop('frequency', None), **values)
