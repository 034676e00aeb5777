"""
Exception taxonomy for the recurrence engine.

Construction problems (rules, value lists) raise ConfigurationError, text
problems raise a ParseError subclass carrying the offending token. Searches
never raise for "no match": an exhausted or impossible rule simply yields
no occurrences.
"""

from typing import Optional


class RecurrenceError(Exception):
    """Base exception for recurrence processing errors."""
    pass


class ConfigurationError(RecurrenceError):
    """Exception for rules or rule parts that cannot be constructed."""
    pass


class TimeZoneError(RecurrenceError):
    """Exception for unknown or unusable timezone identifiers."""
    pass


class ParseError(RecurrenceError):
    """Exception for RRULE text that cannot be parsed.

    Args:
        message: Human readable description
        token: The offending token, when known
        position: Character offset of the token in the source text
    """

    def __init__(self, message: str, token: Optional[str] = None,
                 position: Optional[int] = None):
        super().__init__(message)
        self.token = token
        self.position = position


class InvalidRulePartError(ParseError):
    """Unknown KEY in strict parsing mode."""
    pass


class MissingValueError(ParseError):
    """A KEY with no VALUE after it."""
    pass


class MalformedValueError(ParseError):
    """A VALUE that is not a valid integer, date, frequency or weekday."""
    pass
