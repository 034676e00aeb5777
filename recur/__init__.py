"""
RFC-5545 recurrence rule evaluation.

Parse RRULE text into an immutable Rule and ask it for the occurrences in a
period or the next occurrence after a date:

    rule = Rule.from_string("FREQ=MONTHLY;BYDAY=FR;BYMONTHDAY=13")
    rule.next_after(Occurrence.parse("20240101"), Occurrence.parse("20240101"))
"""

from .config import EvaluationConfig, get_default_config
from .errors import (
    ConfigurationError, InvalidRulePartError, MalformedValueError,
    MissingValueError, ParseError, RecurrenceError, TimeZoneError
)
from .frequency import Frequency
from .occurrence import Occurrence, OccurrenceList
from .parser import ParseResult, ParseStatus, parse_rule, validate_rule_text
from .rule import Rule, RuleBuilder
from .timezones import MapTimeZoneCache, TimeZoneCache, TimeZoneProvider
from .values import Day, NumberList, WeekDay, WeekDayList

__version__ = "1.0.0"

__all__ = [
    "Rule",
    "RuleBuilder",
    "Frequency",
    "Occurrence",
    "OccurrenceList",
    "Day",
    "WeekDay",
    "WeekDayList",
    "NumberList",
    "parse_rule",
    "validate_rule_text",
    "ParseResult",
    "ParseStatus",
    "EvaluationConfig",
    "get_default_config",
    "TimeZoneCache",
    "MapTimeZoneCache",
    "TimeZoneProvider",
    "RecurrenceError",
    "ConfigurationError",
    "ParseError",
    "InvalidRulePartError",
    "MissingValueError",
    "MalformedValueError",
    "TimeZoneError",
]
