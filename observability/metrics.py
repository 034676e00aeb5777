"""
Prometheus metrics collection for the recurrence engine.

Tracks search volume and outcome per operation and frequency, occurrences
produced, cursor increments per search, stalled searches, and search
latency.
"""

from typing import Optional
from prometheus_client import (
    Counter, Histogram, CollectorRegistry, generate_latest,
    CONTENT_TYPE_LATEST
)

# Global metrics registry
metrics_registry = CollectorRegistry()


class RecurrenceMetrics:
    """Search metrics for the recurrence engine."""

    def __init__(self, registry: CollectorRegistry = None):
        self.registry = registry or metrics_registry
        self._setup_metrics()

    def _setup_metrics(self):
        """Initialize all Prometheus metrics."""

        self.searches_total = Counter(
            'recur_searches_total',
            'Total recurrence searches',
            ['operation', 'frequency', 'outcome'],
            registry=self.registry
        )

        self.occurrences_total = Counter(
            'recur_occurrences_total',
            'Total occurrences returned by searches',
            ['operation'],
            registry=self.registry
        )

        self.stalled_searches_total = Counter(
            'recur_stalled_searches_total',
            'Searches stopped by the stall guard',
            ['frequency'],
            registry=self.registry
        )

        self.cursor_increments = Histogram(
            'recur_cursor_increments',
            'Cursor increments performed per search',
            ['operation'],
            buckets=(1, 5, 10, 50, 100, 500, 1000, 5000, 10000, float('inf')),
            registry=self.registry
        )

        self.search_duration = Histogram(
            'recur_search_duration_seconds',
            'Recurrence search duration in seconds',
            ['operation', 'frequency'],
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, float('inf')),
            registry=self.registry
        )

    def record_search(self, operation: str, frequency: str, outcome: str,
                      results: int, increments: int, duration: float):
        """Record a completed search."""
        self.searches_total.labels(
            operation=operation,
            frequency=frequency,
            outcome=outcome
        ).inc()

        if results:
            self.occurrences_total.labels(operation=operation).inc(results)

        self.cursor_increments.labels(operation=operation).observe(increments)

        self.search_duration.labels(
            operation=operation,
            frequency=frequency
        ).observe(duration)

        if outcome == "stalled":
            self.stalled_searches_total.labels(frequency=frequency).inc()


recurrence_metrics = RecurrenceMetrics()


def get_metrics_text(registry: Optional[CollectorRegistry] = None) -> str:
    """Prometheus text exposition of the registry."""
    if registry is None:
        registry = metrics_registry
    return generate_latest(registry).decode('utf-8')


def get_metrics_handler(registry: CollectorRegistry = None):
    """Get HTTP handler for Prometheus metrics endpoint."""
    if registry is None:
        registry = metrics_registry

    def metrics_handler():
        return generate_latest(registry), {"Content-Type": CONTENT_TYPE_LATEST}

    return metrics_handler
