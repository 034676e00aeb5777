"""
Observability package for the recurrence engine.

Provides Prometheus search metrics and structured JSON logging with
search correlation IDs.
"""

from .metrics import RecurrenceMetrics, metrics_registry, recurrence_metrics
from .logging import StructuredLogger, set_search_context, generate_search_id

__all__ = [
    "RecurrenceMetrics",
    "metrics_registry",
    "recurrence_metrics",
    "StructuredLogger",
    "set_search_context",
    "generate_search_id",
]
