"""
RRULE text parsing.

Text is a ``;`` separated list of ``KEY=VALUE`` parts with an optional
``RRULE:`` prefix, e.g. ``FREQ=MONTHLY;INTERVAL=2;BYDAY=3MO``. Parsing never
raises: ``parse_rule`` returns a ParseResult whose status says what went
wrong, and ``ParseResult.unwrap()`` raises the carried error for callers
that prefer exceptions.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from observability.logging import parser_logger

from .errors import (
    ConfigurationError, InvalidRulePartError, MalformedValueError,
    MissingValueError, RecurrenceError
)
from .frequency import Frequency
from .occurrence import Occurrence
from .rule import Rule, RuleBuilder
from .values import Day, WeekDayList

logger = logging.getLogger(__name__)

PREFIX = "RRULE:"

_INTEGER = re.compile(r'^[+-]?\d+$')

# Rule part KEY -> RuleBuilder setter for the comma separated list parts
LIST_PARTS = {
    "BYSECOND": "second_list",
    "BYMINUTE": "minute_list",
    "BYHOUR": "hour_list",
    "BYMONTHDAY": "month_day_list",
    "BYYEARDAY": "year_day_list",
    "BYWEEKNO": "week_no_list",
    "BYMONTH": "month_list",
    "BYSETPOS": "set_pos_list",
}

KNOWN_PARTS = {"FREQ", "UNTIL", "COUNT", "INTERVAL", "BYDAY", "WKST"} | set(LIST_PARTS)


class ParseStatus(Enum):
    OK = "ok"
    INVALID_RULE_PART = "invalid_rule_part"
    MISSING_VALUE = "missing_value"
    MALFORMED_VALUE = "malformed_value"
    INVALID_CONFIGURATION = "invalid_configuration"


_STATUS_BY_ERROR = (
    (InvalidRulePartError, ParseStatus.INVALID_RULE_PART),
    (MissingValueError, ParseStatus.MISSING_VALUE),
    (MalformedValueError, ParseStatus.MALFORMED_VALUE),
    (ConfigurationError, ParseStatus.INVALID_CONFIGURATION),
)


@dataclass
class ParseResult:
    """Outcome of parsing one rule text."""

    status: ParseStatus
    rule: Optional[Rule] = None
    message: Optional[str] = None
    error: Optional[RecurrenceError] = None

    @property
    def ok(self) -> bool:
        return self.status is ParseStatus.OK

    def unwrap(self) -> Rule:
        """The parsed rule.

        Raises:
            RecurrenceError: The error that stopped parsing
        """
        if self.error is not None:
            raise self.error
        return self.rule


def _integer(key: str, value: str, position: int) -> int:
    if not _INTEGER.match(value):
        raise MalformedValueError(f"Invalid integer for {key}: {value}", token=value, position=position)
    return int(value)


def _integer_list(key: str, value: str, position: int) -> str:
    for token in value.split(','):
        if not _INTEGER.match(token.strip()):
            raise MalformedValueError(f"Invalid integer in {key}: '{token}'", token=token, position=position)
    return value


def _apply(builder: RuleBuilder, key: str, value: str, position: int):
    if key == "FREQ":
        try:
            builder.frequency(Frequency(value.upper()))
        except ValueError:
            raise MalformedValueError(f"Invalid frequency: {value}", token=value, position=position)
    elif key == "UNTIL":
        try:
            builder.until(Occurrence.parse(value))
        except ValueError:
            raise MalformedValueError(f"Invalid UNTIL value: {value}", token=value, position=position)
    elif key == "COUNT":
        builder.count(_integer(key, value, position))
    elif key == "INTERVAL":
        builder.interval(_integer(key, value, position))
    elif key == "BYDAY":
        try:
            builder.day_list(WeekDayList(value))
        except ConfigurationError as e:
            raise MalformedValueError(str(e), token=value, position=position)
    elif key == "WKST":
        try:
            builder.week_start(Day.parse(value))
        except ConfigurationError as e:
            raise MalformedValueError(str(e), token=value, position=position)
    else:
        getattr(builder, LIST_PARTS[key])(_integer_list(key, value, position))


def _parse(text: str, relaxed: bool) -> Rule:
    body = text.strip()
    offset = len(text) - len(text.lstrip())
    if body.upper().startswith(PREFIX):
        body = body[len(PREFIX):]
        offset += len(PREFIX)

    builder = Rule.builder()
    position = offset
    for segment in body.split(';'):
        segment_position = position
        position += len(segment) + 1
        if not segment.strip():
            continue
        key, separator, value = segment.partition('=')
        key = key.strip().upper()
        value = value.strip()
        if key not in KNOWN_PARTS:
            if relaxed:
                logger.debug(f"Skipping unknown rule part: {segment}")
                continue
            raise InvalidRulePartError(f"Invalid recurrence rule part: {segment.strip()}",
                                       token=key, position=segment_position)
        if not separator or not value:
            raise MissingValueError(f"Missing value for {key}", token=key, position=segment_position)
        _apply(builder, key, value, segment_position)
    return builder.build()


def parse_rule(text: str, relaxed: bool = False) -> ParseResult:
    """Parse RRULE text.

    Args:
        text: Rule text, with or without the ``RRULE:`` prefix
        relaxed: Skip unknown rule parts instead of failing

    Returns:
        ParseResult with status OK and the rule, or the failure status and error
    """
    try:
        rule = _parse(text or "", relaxed)
    except RecurrenceError as e:
        status = next(s for cls, s in _STATUS_BY_ERROR if isinstance(e, cls))
        parser_logger.rule_rejected(text, status.value, token=getattr(e, 'token', None),
                                    details={'error': str(e)})
        return ParseResult(status=status, message=str(e), error=e)
    return ParseResult(status=ParseStatus.OK, rule=rule)


def validate_rule_text(text: str) -> Dict[str, Any]:
    """Validate rule text and return a detailed report.

    Args:
        text: Rule text to validate

    Returns:
        Dictionary with validation results
    """
    report = {
        'valid': False,
        'status': None,
        'errors': [],
        'warnings': [],
        'components': {}
    }

    body = (text or "").strip()
    if body.upper().startswith(PREFIX):
        body = body[len(PREFIX):]
    for component in body.split(';'):
        if '=' in component:
            key, value = component.split('=', 1)
            report['components'][key.strip().upper()] = value.strip()

    result = parse_rule(text, relaxed=False)
    report['status'] = result.status.value
    if not result.ok:
        report['errors'].append(result.message)
        return report

    rule = result.rule
    report['valid'] = True
    report['canonical'] = rule.to_canonical_string()

    if any(day > 28 for day in rule.month_day_list):
        report['warnings'].append("BYMONTHDAY > 28 may skip months without that day")

    if rule.count is None and rule.until is None:
        report['warnings'].append("Rule is unbounded, searches are limited by the query window only")

    if not rule.hour_list and not rule.minute_list and not rule.frequency.is_sub_daily:
        report['warnings'].append("No time specified, will use the seed time")

    return report
