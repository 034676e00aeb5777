"""
Candidate generation and bounded occurrence search.

The search walks a calendar cursor forward one frequency step (times the
interval) at a time. At each position the rule's stages turn the cursor into
a set of candidates, which are then checked against the seed, the query
window, COUNT and UNTIL. A rule that stops producing candidates is abandoned
after ``EvaluationConfig.max_stall_increments`` empty steps, so impossible
rules end with an empty result instead of looping forever.
"""

import logging
import time
from typing import TYPE_CHECKING, Optional

from observability.logging import (
    search_logger, set_search_context, clear_search_context,
    get_search_context, generate_search_id
)
from observability.metrics import recurrence_metrics

from .calendar import CalendarCursor, Field
from .config import EvaluationConfig, get_default_config
from .frequency import Frequency
from .occurrence import Occurrence, OccurrenceList
from .stages import EVALUATION_ORDER, EvaluationContext, Part, Stage
from .values import Day, WeekDay

if TYPE_CHECKING:
    from .rule import Rule

logger = logging.getLogger(__name__)

ENUMERATE = "enumerate"
NEXT_AFTER = "next_after"


def _implicit_stage(rule: "Rule", part: Part, root_seed: CalendarCursor,
                    context: EvaluationContext) -> Optional[Stage]:
    """Stage standing in for an omitted BYMONTHDAY or BYDAY.

    Values missing from the rule are taken from the first occurrence, e.g.
    a monthly rule without BYMONTHDAY or BYDAY repeats on the seed's day of
    month.
    """
    frequency = rule.frequency
    if part is Part.BYMONTHDAY:
        if ((frequency is Frequency.MONTHLY and not rule.day_list)
                or (frequency is Frequency.YEARLY and not rule.year_day_list
                    and not rule.week_no_list and not rule.day_list)):
            return Stage(part, (root_seed.get(Field.DAY_OF_MONTH),), context, frequency)
    elif part is Part.BYDAY:
        if (frequency is Frequency.WEEKLY
                or (frequency is Frequency.YEARLY and not rule.year_day_list
                    and rule.week_no_list and not rule.month_day_list)):
            week_day = WeekDay(Day(root_seed.get(Field.DAY_OF_WEEK)))
            return Stage(part, (week_day,), context, rule.byday_mode)
    return None


def generate_candidates(rule: "Rule", root_seed: CalendarCursor, period_seed: Occurrence,
                        context: Optional[EvaluationContext] = None) -> OccurrenceList:
    """Candidates for the period starting at ``period_seed``.

    Args:
        rule: Rule whose stages are applied
        root_seed: Cursor at the first occurrence of the series
        period_seed: Start of the current frequency period
        context: Overrides the rule's evaluation context

    Returns:
        Unsorted candidates in the mode of ``period_seed``
    """
    context = context or rule.context
    dates = OccurrenceList()
    dates.append(period_seed)
    for part in EVALUATION_ORDER:
        stage = rule.stages[part.value]
        if stage is None:
            stage = _implicit_stage(rule, part, root_seed, context)
            if stage is None:
                continue
        dates = stage(dates, context)
        logger.debug(f"Dates after {part} processing: {dates}")
    return dates


class _Search:
    """Cursor bookkeeping shared by both search algorithms."""

    def __init__(self, rule: "Rule", seed: Occurrence, operation: str,
                 config: Optional[EvaluationConfig]):
        self.rule = rule
        self.seed = seed
        self.operation = operation
        self.config = config or get_default_config()
        self.context = rule.context
        if self.config.lenient != self.context.lenient:
            self.context = EvaluationContext(rule.frequency, rule.week_start,
                                             self.config.lenient)
        self.cursor = self.context.cursor(seed)
        self.root_seed = self.cursor
        self.stall_count = 0
        self.increments = 0
        self.stalled = False
        self.started = time.time()

    def position(self, cursor: CalendarCursor = None) -> Occurrence:
        return (cursor or self.cursor).to_occurrence(self.seed)

    def advance(self, cursor: CalendarCursor) -> CalendarCursor:
        return cursor.plus(self.rule.frequency.increment_field, self.rule.interval)

    def fast_forward(self, lower_bound: Occurrence):
        """Skip to the last period starting before ``lower_bound``.

        Only valid without COUNT, where skipped periods cannot consume slots.
        """
        if self.rule.count is not None:
            return
        scratch = self.cursor
        while self.position(scratch).before(lower_bound):
            self.cursor = scratch
            scratch = self.advance(scratch)

    def candidates(self) -> OccurrenceList:
        candidates = generate_candidates(self.rule, self.root_seed, self.position(), self.context)
        if candidates:
            self.stall_count = 0
            candidates.sort()
        else:
            self.stall_count += 1
            threshold = self.config.max_stall_increments
            if 0 <= threshold < self.stall_count:
                self.stalled = True
                search_logger.search_stalled(self.operation, str(self.rule.frequency),
                                             self.stall_count, threshold,
                                             cursor=str(self.position()))
        return candidates

    def step(self):
        self.cursor = self.advance(self.cursor)
        self.increments += 1

    def finish(self, outcome: str, results: int):
        duration = time.time() - self.started
        frequency = str(self.rule.frequency)
        search_logger.search_completed(self.operation, frequency, results,
                                       self.increments, duration * 1000, outcome)
        if self.config.metrics_enabled:
            recurrence_metrics.record_search(self.operation, frequency, outcome,
                                             results, self.increments, duration)


def _with_search_context(rule: "Rule", func, *args):
    previous = get_search_context()
    set_search_context(search_id=generate_search_id(), rule_text=str(rule))
    try:
        return func(*args)
    finally:
        clear_search_context()
        set_search_context(**previous)


def enumerate_occurrences(rule: "Rule", seed: Occurrence, period_start: Occurrence,
                          period_end: Optional[Occurrence] = None, max_count: int = -1,
                          config: Optional[EvaluationConfig] = None) -> OccurrenceList:
    """Occurrences of ``rule`` within ``[period_start, period_end]``.

    Every candidate at or after the seed consumes a COUNT slot, including
    those outside the window, so a window late in a counted series can be
    empty even though the series has occurrences there.

    Args:
        rule: The recurrence rule
        seed: First occurrence of the series; fixes the result mode and
            supplies defaults for omitted rule parts
        period_start: Inclusive lower bound of the window
        period_end: Inclusive upper bound, or None for no bound
        max_count: Stop once this many occurrences are held; negative for no limit
        config: Evaluation settings, defaults to ``get_default_config()``

    Returns:
        Sorted OccurrenceList in the mode of ``seed``
    """
    return _with_search_context(rule, _enumerate, rule, seed, period_start,
                                period_end, max_count, config)


def _enumerate(rule, seed, period_start, period_end, max_count, config):
    search = _Search(rule, seed, ENUMERATE, config)
    search.fast_forward(period_start)

    count = rule.count
    until = rule.until
    dates = OccurrenceList.for_seed(seed)
    rejected = set()
    candidate = None

    def count_reached():
        return count is not None and len(dates) + len(rejected) >= count

    def full():
        return 0 <= max_count <= len(dates)

    while not full():
        if until is not None and candidate is not None and candidate.after(until):
            break
        if period_end is not None and candidate is not None and candidate.after(period_end):
            break
        if count_reached():
            break

        candidates = search.candidates()
        if search.stalled:
            break
        for candidate in candidates:
            # candidates before the seed belong to no series position
            if candidate.before(seed):
                continue
            if candidate.before(period_start) or (period_end is not None and candidate.after(period_end)):
                rejected.add(candidate)
            elif count_reached() or full():
                break
            elif until is None or not candidate.after(until):
                dates.append(candidate)
        search.step()

    dates.sort()
    search.finish("stalled" if search.stalled else "completed", len(dates))
    return dates


def next_occurrence_after(rule: "Rule", seed: Occurrence, start_date: Occurrence,
                          config: Optional[EvaluationConfig] = None) -> Optional[Occurrence]:
    """First occurrence of ``rule`` strictly after ``start_date``.

    Candidates at or before ``start_date`` still consume COUNT slots.

    Returns:
        The occurrence, or None when COUNT, UNTIL or the stall guard ends
        the series first
    """
    return _with_search_context(rule, _next_after, rule, seed, start_date, config)


def _next_after(rule, seed, start_date, config):
    search = _Search(rule, seed, NEXT_AFTER, config)
    search.fast_forward(start_date)

    count = rule.count
    until = rule.until
    consumed = 0
    candidate = None

    while True:
        if until is not None and candidate is not None and candidate.after(until):
            break
        if count is not None and consumed >= count:
            break

        candidates = search.candidates()
        if search.stalled:
            break
        for candidate in candidates:
            if candidate.before(seed):
                continue
            if not candidate.after(start_date):
                consumed += 1
            elif count is not None and consumed >= count:
                break
            elif until is None or not candidate.after(until):
                search.finish("found", 1)
                return candidate
        search.step()

    search.finish("stalled" if search.stalled else "exhausted", 0)
    return None
