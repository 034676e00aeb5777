"""
BYxxx transformation stages.

Each stage is a pure function taking an OccurrenceList and returning a new
one. Depending on the rule frequency a stage either expands every input into
several candidates or limits the input to candidates whose calendar field is
listed. Stages run in a fixed order, independent of the order the parts are
written in:

    BYMONTH, BYWEEKNO, BYYEARDAY, BYMONTHDAY, BYDAY,
    BYHOUR, BYMINUTE, BYSECOND, BYSETPOS
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from .calendar import CalendarCursor, Field, RFC5545_MIN_DAYS_IN_FIRST_WEEK
from .frequency import Frequency
from .occurrence import Occurrence, OccurrenceList
from .values import Day, NumberList, WeekDay, WeekDayList

logger = logging.getLogger(__name__)

MAX_DAYS_PER_MONTH = 31
MAX_WEEKS_PER_YEAR = 53
MAX_DAYS_PER_YEAR = 366


class Part(Enum):
    """Rule parts in evaluation order."""
    BYMONTH = 0
    BYWEEKNO = 1
    BYYEARDAY = 2
    BYMONTHDAY = 3
    BYDAY = 4
    BYHOUR = 5
    BYMINUTE = 6
    BYSECOND = 7
    BYSETPOS = 8

    def __str__(self):
        return self.name


EVALUATION_ORDER = tuple(Part)

_ALL = frozenset(Frequency)
_DWMY = frozenset({Frequency.DAILY, Frequency.WEEKLY, Frequency.MONTHLY, Frequency.YEARLY})

# Frequencies for which a part expands; every other combination limits.
EXPANDING: Dict[Part, frozenset] = {
    Part.BYMONTH: frozenset({Frequency.YEARLY}),
    Part.BYWEEKNO: frozenset({Frequency.YEARLY}),
    Part.BYYEARDAY: frozenset({Frequency.YEARLY}),
    Part.BYMONTHDAY: frozenset({Frequency.MONTHLY, Frequency.YEARLY}),
    Part.BYDAY: frozenset({Frequency.WEEKLY, Frequency.MONTHLY, Frequency.YEARLY}),
    Part.BYHOUR: _DWMY,
    Part.BYMINUTE: _DWMY | {Frequency.HOURLY},
    Part.BYSECOND: _DWMY | {Frequency.HOURLY, Frequency.MINUTELY},
    Part.BYSETPOS: frozenset(),
}

# Combinations RFC-5545 does not define.
UNSUPPORTED: Dict[Part, frozenset] = {
    Part.BYWEEKNO: _ALL - {Frequency.YEARLY},
    Part.BYYEARDAY: frozenset({Frequency.DAILY, Frequency.WEEKLY, Frequency.MONTHLY}),
    Part.BYMONTHDAY: frozenset({Frequency.WEEKLY}),
}


def derive_byday_mode(frequency: Frequency, year_days: Sequence = (), month_days: Sequence = (),
                      week_numbers: Sequence = (), months: Sequence = ()) -> Frequency:
    """Frequency whose BYDAY behaviour applies to a rule.

    DAILY stands for limit mode. WEEKLY, MONTHLY and YEARLY expand over the
    week, month or year respectively.
    """
    if frequency.is_sub_daily or frequency is Frequency.DAILY or year_days or month_days:
        return Frequency.DAILY
    if frequency is Frequency.WEEKLY or week_numbers:
        return Frequency.WEEKLY
    if frequency is Frequency.MONTHLY or months:
        return Frequency.MONTHLY
    return Frequency.YEARLY


def expands(part: Part, frequency: Frequency) -> bool:
    return frequency in EXPANDING[part]


def is_supported(part: Part, frequency: Frequency) -> bool:
    return frequency not in UNSUPPORTED.get(part, frozenset())


@dataclass(frozen=True)
class EvaluationContext:
    """Settings every stage needs to build calendar cursors."""

    frequency: Frequency
    week_start: Day = Day.MO
    lenient: bool = True
    min_days_in_first_week: int = RFC5545_MIN_DAYS_IN_FIRST_WEEK

    def cursor(self, occurrence: Occurrence, lenient: Optional[bool] = None) -> CalendarCursor:
        return CalendarCursor.from_occurrence(
            occurrence,
            week_start=int(self.week_start),
            lenient=self.lenient if lenient is None else lenient,
            min_days_in_first_week=self.min_days_in_first_week,
        )


def _from_end(value: int, maximum: int) -> int:
    """Position of ``value`` counted from 1; negative values count back from ``maximum``."""
    return value if value > 0 else maximum + value + 1


def _matches(actual: int, values: Sequence[int], maximum: int) -> bool:
    return any(_from_end(v, maximum) == actual for v in values if v != 0)


def _expand_offsets(dates: OccurrenceList, values: Sequence[int], field: Field,
                    limit: int, ctx: EvaluationContext, name: str) -> OccurrenceList:
    """Set ``field`` to each value, resolving negatives against the actual maximum."""
    result = OccurrenceList.like(dates)
    for date in dates:
        cursor = ctx.cursor(date)
        actual_max = cursor.actual_max(field)
        for value in values:
            if value == 0 or value < -limit or value > limit:
                logger.debug(f"Invalid {name}: {value}")
                continue
            if abs(value) > actual_max:
                continue
            result.append(cursor.with_field(field, _from_end(value, actual_max)).to_occurrence(date))
    return result


def _limit(dates: OccurrenceList, accept: Callable[[CalendarCursor], bool],
           ctx: EvaluationContext) -> OccurrenceList:
    result = OccurrenceList.like(dates)
    for date in dates:
        if accept(ctx.cursor(date)):
            result.append(date)
    return result


def by_month(dates: OccurrenceList, months: NumberList, ctx: EvaluationContext,
             mode: Frequency) -> OccurrenceList:
    """BYMONTH: expands across the year for YEARLY, limits otherwise."""
    if not expands(Part.BYMONTH, mode):
        return _limit(dates, lambda c: c.get(Field.MONTH) in months, ctx)
    result = OccurrenceList.like(dates)
    for date in dates:
        cursor = ctx.cursor(date)
        for month in months:
            rolled = cursor.roll(Field.MONTH, month - cursor.get(Field.MONTH))
            result.append(rolled.to_occurrence(date))
    return result


def by_week_no(dates: OccurrenceList, weeks: NumberList, ctx: EvaluationContext,
               mode: Frequency) -> OccurrenceList:
    """BYWEEKNO: moves each date to the listed weeks of its year, keeping the weekday."""
    result = OccurrenceList.like(dates)
    if not dates:
        return result
    weeks_in_year = ctx.cursor(dates[0]).actual_max(Field.WEEK_OF_YEAR)
    for date in dates:
        cursor = ctx.cursor(date)
        for week in weeks:
            if week == 0 or week < -MAX_WEEKS_PER_YEAR or week > MAX_WEEKS_PER_YEAR:
                logger.debug(f"Invalid week of year: {week}")
                continue
            if abs(week) > weeks_in_year:
                continue
            if week > 0:
                moved = cursor.with_field(Field.WEEK_OF_YEAR, week)
            else:
                moved = cursor.with_field(Field.WEEK_OF_YEAR, weeks_in_year).plus(
                    Field.WEEK_OF_YEAR, week + 1)
            result.append(moved.to_occurrence(date))
    return result


def by_year_day(dates: OccurrenceList, year_days: NumberList, ctx: EvaluationContext,
                mode: Frequency) -> OccurrenceList:
    """BYYEARDAY: expands for YEARLY, limits otherwise; negatives count from year end."""
    if not expands(Part.BYYEARDAY, mode):
        return _limit(dates, lambda c: _matches(c.get(Field.DAY_OF_YEAR), year_days,
                                                c.actual_max(Field.DAY_OF_YEAR)), ctx)
    return _expand_offsets(dates, year_days, Field.DAY_OF_YEAR, MAX_DAYS_PER_YEAR, ctx,
                           "day of year")


def by_month_day(dates: OccurrenceList, month_days: NumberList, ctx: EvaluationContext,
                 mode: Frequency) -> OccurrenceList:
    """BYMONTHDAY: expands for MONTHLY and YEARLY, limits otherwise; negatives count from month end."""
    if not expands(Part.BYMONTHDAY, mode):
        return _limit(dates, lambda c: _matches(c.get(Field.DAY_OF_MONTH), month_days,
                                                c.actual_max(Field.DAY_OF_MONTH)), ctx)
    return _expand_offsets(dates, month_days, Field.DAY_OF_MONTH, MAX_DAYS_PER_MONTH, ctx,
                           "day of month")


def _select_offset(dates: List[Occurrence], offset: int) -> List[Occurrence]:
    if offset == 0:
        return dates
    size = len(dates)
    if 0 < offset <= size:
        return [dates[offset - 1]]
    if -size <= offset < 0:
        return [dates[size + offset]]
    return []


def _period_days(date: Occurrence, ctx: EvaluationContext, mode: Frequency) -> List[Occurrence]:
    """Every day of the week, month or year containing ``date``, at its time of day."""
    cursor = ctx.cursor(date)
    if mode is Frequency.WEEKLY:
        start = cursor.with_field(Field.DAY_OF_WEEK, int(ctx.week_start))
        return [start.plus(Field.DAY_OF_MONTH, i).to_occurrence(date) for i in range(7)]
    field = Field.DAY_OF_MONTH if mode is Frequency.MONTHLY else Field.DAY_OF_YEAR
    return [cursor.with_field(field, day).to_occurrence(date)
            for day in range(1, cursor.actual_max(field) + 1)]


def by_day(dates: OccurrenceList, week_days: WeekDayList, ctx: EvaluationContext,
           mode: Frequency) -> OccurrenceList:
    """BYDAY: expands over the week, month or year given by ``mode``, limits otherwise.

    An ordinal on a token keeps only the N-th (or N-th from last) matching
    day within the expanded period.
    """
    result = OccurrenceList.like(dates)
    for date in dates:
        if expands(Part.BYDAY, mode):
            period = _period_days(date, ctx, mode)
        else:
            period = [date]
        for week_day in week_days:
            matching = [d for d in period
                        if ctx.cursor(d).get(Field.DAY_OF_WEEK) == int(week_day.day)]
            result.extend(_select_offset(matching, week_day.offset))
    return result


def _expand_time(dates: OccurrenceList, values: NumberList, field: Field,
                 ctx: EvaluationContext) -> OccurrenceList:
    result = OccurrenceList.like(dates)
    for date in dates:
        cursor = ctx.cursor(date)
        for value in values:
            result.append(cursor.with_field(field, value).to_occurrence(date))
    return result


def by_hour(dates: OccurrenceList, hours: NumberList, ctx: EvaluationContext,
            mode: Frequency) -> OccurrenceList:
    if not expands(Part.BYHOUR, mode):
        return _limit(dates, lambda c: c.get(Field.HOUR) in hours, ctx)
    return _expand_time(dates, hours, Field.HOUR, ctx)


def by_minute(dates: OccurrenceList, minutes: NumberList, ctx: EvaluationContext,
              mode: Frequency) -> OccurrenceList:
    if not expands(Part.BYMINUTE, mode):
        return _limit(dates, lambda c: c.get(Field.MINUTE) in minutes, ctx)
    return _expand_time(dates, minutes, Field.MINUTE, ctx)


def by_second(dates: OccurrenceList, seconds: NumberList, ctx: EvaluationContext,
              mode: Frequency) -> OccurrenceList:
    if not expands(Part.BYSECOND, mode):
        return _limit(dates, lambda c: c.get(Field.SECOND) in seconds, ctx)
    return _expand_time(dates, seconds, Field.SECOND, ctx)


def by_set_pos(dates: OccurrenceList, positions: NumberList, ctx: EvaluationContext,
               mode: Frequency) -> OccurrenceList:
    """BYSETPOS: picks 1-based positions (negative from the end) of the sorted set."""
    ordered = sorted(dates)
    size = len(ordered)
    result = OccurrenceList.like(dates)
    for position in positions:
        if 0 < position <= size:
            result.append(ordered[position - 1])
        elif -size <= position < 0:
            result.append(ordered[size + position])
    return result


TRANSFORMS = {
    Part.BYMONTH: by_month,
    Part.BYWEEKNO: by_week_no,
    Part.BYYEARDAY: by_year_day,
    Part.BYMONTHDAY: by_month_day,
    Part.BYDAY: by_day,
    Part.BYHOUR: by_hour,
    Part.BYMINUTE: by_minute,
    Part.BYSECOND: by_second,
    Part.BYSETPOS: by_set_pos,
}


@dataclass(frozen=True)
class Stage:
    """One active rule part bound to its values and evaluation settings.

    ``mode`` is the frequency that decides expand versus limit; it is the
    rule frequency for every part except BYDAY, whose mode is derived from
    the other parts of the rule.
    """

    part: Part
    values: tuple
    context: EvaluationContext
    mode: Frequency

    def __call__(self, dates: OccurrenceList,
                 context: Optional[EvaluationContext] = None) -> OccurrenceList:
        if not self.values:
            return dates
        return TRANSFORMS[self.part](dates, self.values, context or self.context, self.mode)


def build_stage(part: Part, values: Sequence, context: EvaluationContext,
                mode: Optional[Frequency] = None) -> Optional[Stage]:
    """Stage for ``part``, or None when ``values`` is empty."""
    if not values:
        return None
    return Stage(part, tuple(values), context, mode or context.frequency)
