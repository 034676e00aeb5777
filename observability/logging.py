"""
Structured JSON logging for the recurrence engine.

Provides search correlation IDs and per-search performance records
embedded in JSON log lines.
"""

import json
import uuid
import logging
import time
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from contextvars import ContextVar
import functools

# Context variables for search correlation
SEARCH_ID: ContextVar[str] = ContextVar('search_id', default=None)
RULE_TEXT: ContextVar[str] = ContextVar('rule_text', default=None)


class StructuredLogger:
    """Structured JSON logger with correlation IDs and performance tracking."""

    def __init__(self, name: str, level: int = logging.INFO):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        # Remove any existing handlers to avoid duplicates
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        handler = logging.StreamHandler()
        handler.setFormatter(self.JSONFormatter())
        self.logger.addHandler(handler)

        self.logger.propagate = False

    class JSONFormatter(logging.Formatter):
        """JSON formatter with correlation IDs and structured fields."""

        def format(self, record):
            """Format log record as structured JSON."""
            log_entry = {
                'timestamp': datetime.now(timezone.utc).isoformat(),
                'level': record.levelname,
                'logger': record.name,
                'message': record.getMessage(),
                'module': record.module,
                'function': record.funcName,
                'line': record.lineno,
                'thread': record.thread,
                'process': record.process
            }

            if SEARCH_ID.get():
                log_entry['search_id'] = SEARCH_ID.get()
            if RULE_TEXT.get():
                log_entry['rule'] = RULE_TEXT.get()

            if hasattr(record, 'extra_fields'):
                log_entry.update(record.extra_fields)

            if hasattr(record, 'latency_ms'):
                log_entry['latency_ms'] = record.latency_ms

            if record.exc_info:
                log_entry['exception'] = self.formatException(record.exc_info)
                log_entry['exception_type'] = record.exc_info[0].__name__ if record.exc_info[0] else None

            return json.dumps(log_entry, default=str)

    def _log_with_extras(self, level: int, message: str, **extra_fields):
        """Log message with extra structured fields."""
        self.logger.log(level, message, extra={'extra_fields': extra_fields})

    def debug(self, message: str, **extra_fields):
        self._log_with_extras(logging.DEBUG, message, **extra_fields)

    def info(self, message: str, **extra_fields):
        self._log_with_extras(logging.INFO, message, **extra_fields)

    def warning(self, message: str, **extra_fields):
        self._log_with_extras(logging.WARNING, message, **extra_fields)

    def error(self, message: str, **extra_fields):
        self._log_with_extras(logging.ERROR, message, **extra_fields)

    def exception(self, message: str, **extra_fields):
        """Log exception with traceback and extra fields."""
        self.logger.exception(message, extra={'extra_fields': extra_fields})

    # Specialized logging methods for search events
    def search_completed(self, operation: str, frequency: str, results: int,
                         increments: int, duration_ms: float, outcome: str):
        """Log the end of an enumerate or next-after search."""
        self.debug(
            f"Recurrence search {operation} finished: {outcome}",
            operation=operation,
            frequency=frequency,
            results=results,
            increments=increments,
            latency_ms=duration_ms,
            outcome=outcome,
            event_type="search_completed"
        )

    def search_stalled(self, operation: str, frequency: str, stall_count: int,
                       threshold: int, cursor: Optional[str] = None):
        """Log a search abandoned because the rule stopped producing candidates."""
        self.info(
            f"Recurrence search stalled after {stall_count} empty increments (threshold: {threshold})",
            operation=operation,
            frequency=frequency,
            stall_count=stall_count,
            threshold=threshold,
            cursor=cursor,
            event_type="search_stalled"
        )

    def rule_rejected(self, text: str, status: str, token: Optional[str] = None,
                      details: Optional[Dict[str, Any]] = None):
        """Log a rule text that failed to parse."""
        self.info(
            f"Rule rejected: {status}",
            rule_text=text,
            status=status,
            token=token,
            details=details or {},
            event_type="rule_rejected"
        )


def set_search_context(search_id: str = None, rule_text: str = None):
    """Set search context for logging correlation."""
    if search_id:
        SEARCH_ID.set(search_id)
    if rule_text:
        RULE_TEXT.set(rule_text)


def clear_search_context():
    """Clear all search context variables."""
    for ctx_var in [SEARCH_ID, RULE_TEXT]:
        ctx_var.set(None)


def get_search_context() -> Dict[str, Optional[str]]:
    """Get current search context as dictionary."""
    return {
        'search_id': SEARCH_ID.get(),
        'rule_text': RULE_TEXT.get(),
    }


def generate_search_id() -> str:
    """Generate unique search ID."""
    return f"search-{uuid.uuid4().hex[:8]}"


def log_function_call(logger: StructuredLogger = None, level: int = logging.DEBUG):
    """Decorator to log function calls with timing."""
    def decorator(func):
        func_logger = logger or StructuredLogger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            func_name = func.__name__

            func_logger._log_with_extras(
                level, f"Function {func_name} started",
                function=func_name,
                args_count=len(args),
                kwargs_keys=list(kwargs.keys())
            )

            try:
                result = func(*args, **kwargs)
                duration_ms = (time.time() - start_time) * 1000

                func_logger._log_with_extras(
                    level, f"Function {func_name} completed successfully",
                    function=func_name,
                    latency_ms=duration_ms,
                    success=True
                )

                return result

            except Exception as e:
                duration_ms = (time.time() - start_time) * 1000

                func_logger._log_with_extras(
                    logging.ERROR, f"Function {func_name} failed: {e}",
                    function=func_name,
                    latency_ms=duration_ms,
                    success=False,
                    exception_type=e.__class__.__name__
                )

                raise

        return wrapper

    return decorator


# Pre-configured loggers for different components
search_logger = StructuredLogger("recur.search")
parser_logger = StructuredLogger("recur.parser")
cli_logger = StructuredLogger("recur.cli")
