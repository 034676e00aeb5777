# recur/config.py
"""
Configuration for recurrence evaluation.
Provides the per-call evaluation settings and logging setup.
"""

import os
import logging
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_MAX_STALL_INCREMENTS = 1000

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class EvaluationConfig:
    """Settings threaded through every search."""

    # Consecutive empty cursor increments tolerated before a search gives up;
    # negative disables the guard
    max_stall_increments: int = DEFAULT_MAX_STALL_INCREMENTS

    # Calendar cursor overflow handling
    lenient: bool = True

    metrics_enabled: bool = True

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @classmethod
    def from_environment(cls) -> "EvaluationConfig":
        """Create configuration from environment variables."""
        return cls(
            max_stall_increments=int(os.environ.get("RECUR_MAX_STALL_INCREMENTS",
                                                    str(DEFAULT_MAX_STALL_INCREMENTS))),
            lenient=_env_flag("RECUR_LENIENT", True),
            metrics_enabled=_env_flag("RECUR_METRICS_ENABLED", True),
            log_level=os.environ.get("RECUR_LOG_LEVEL", "INFO"),
        )

    @classmethod
    def from_dict(cls, config_dict: dict) -> "EvaluationConfig":
        """Create configuration from dictionary."""
        return cls(
            max_stall_increments=config_dict.get("max_stall_increments", DEFAULT_MAX_STALL_INCREMENTS),
            lenient=config_dict.get("lenient", True),
            metrics_enabled=config_dict.get("metrics_enabled", True),
            log_level=config_dict.get("log_level", "INFO"),
            log_format=config_dict.get("log_format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
        )


@lru_cache()
def get_default_config() -> EvaluationConfig:
    """Process-wide default configuration, read once from the environment.

    Clearing the cache while searches are running changes the defaults those
    searches see on their next call.
    """
    return EvaluationConfig.from_environment()


def setup_logging(config: EvaluationConfig) -> logging.Logger:
    """Setup logging for command line use."""
    level = getattr(logging, config.log_level.upper())
    logging.basicConfig(
        level=level,
        format=config.log_format,
        handlers=[
            logging.StreamHandler(),
        ]
    )

    logger = logging.getLogger("recur")
    logger.setLevel(level)
    return logger
