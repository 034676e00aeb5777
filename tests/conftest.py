#!/usr/bin/env python3
"""
Pytest configuration for the recurrence engine tests.

Provides factories for occurrences and rules plus an isolated Prometheus
registry for metrics assertions.
"""

import os
import sys
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from prometheus_client import CollectorRegistry

from recur.config import EvaluationConfig, get_default_config
from recur.occurrence import Occurrence
from recur.rule import Rule
from observability.metrics import RecurrenceMetrics


@pytest.fixture
def occ():
    """Parse yyyyMMdd[THHmmss[Z]] text into an Occurrence."""
    return Occurrence.parse


@pytest.fixture
def rule():
    """Parse RRULE text into a Rule."""
    def _rule(text: str, relaxed: bool = False) -> Rule:
        return Rule.from_string(text, relaxed=relaxed)
    return _rule


@pytest.fixture
def config():
    """Default evaluation settings independent of the environment."""
    return EvaluationConfig()


@pytest.fixture
def icals():
    """Render an occurrence sequence as RRULE date strings."""
    def _icals(dates):
        return [d.to_ical() for d in dates]
    return _icals


@pytest.fixture
def isolated_metrics():
    """RecurrenceMetrics over a private registry."""
    return RecurrenceMetrics(CollectorRegistry())


@pytest.fixture(autouse=True)
def reset_default_config():
    """Ensure environment-driven defaults do not leak between tests."""
    get_default_config.cache_clear()
    yield
    get_default_config.cache_clear()
