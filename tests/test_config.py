"""
Tests for evaluation configuration and logging setup.
"""

import logging

from recur.config import (
    DEFAULT_MAX_STALL_INCREMENTS, EvaluationConfig, get_default_config, setup_logging
)


class TestEvaluationConfig:
    """Test configuration sources."""

    def test_defaults(self, config):
        """Test default values."""
        assert config.max_stall_increments == DEFAULT_MAX_STALL_INCREMENTS == 1000
        assert config.lenient is True
        assert config.metrics_enabled is True
        assert config.log_level == "INFO"

    def test_from_environment(self, monkeypatch):
        """Test environment variables override defaults."""
        monkeypatch.setenv("RECUR_MAX_STALL_INCREMENTS", "-1")
        monkeypatch.setenv("RECUR_LENIENT", "false")
        monkeypatch.setenv("RECUR_METRICS_ENABLED", "0")
        monkeypatch.setenv("RECUR_LOG_LEVEL", "DEBUG")

        config = EvaluationConfig.from_environment()

        assert config.max_stall_increments == -1
        assert config.lenient is False
        assert config.metrics_enabled is False
        assert config.log_level == "DEBUG"

    def test_from_environment_flags(self, monkeypatch):
        """Test accepted spellings of true."""
        for value in ("1", "true", "YES", " on "):
            monkeypatch.setenv("RECUR_METRICS_ENABLED", value)
            assert EvaluationConfig.from_environment().metrics_enabled is True

    def test_from_dict(self):
        """Test building from a dictionary."""
        config = EvaluationConfig.from_dict({
            "max_stall_increments": 50,
            "lenient": False,
            "log_level": "WARNING",
        })
        assert config.max_stall_increments == 50
        assert config.lenient is False
        assert config.metrics_enabled is True
        assert config.log_level == "WARNING"

    def test_default_config_is_cached(self, monkeypatch):
        """Test the process default is read once until the cache is cleared."""
        first = get_default_config()
        monkeypatch.setenv("RECUR_MAX_STALL_INCREMENTS", "7")
        assert get_default_config() is first
        get_default_config.cache_clear()
        assert get_default_config().max_stall_increments == 7


class TestSetupLogging:
    """Test logging configuration."""

    def test_returns_package_logger(self):
        """Test the package logger is returned."""
        logger = setup_logging(EvaluationConfig(log_level="debug"))
        try:
            assert isinstance(logger, logging.Logger)
            assert logger.name == "recur"
            assert logger.level == logging.DEBUG
        finally:
            logger.setLevel(logging.NOTSET)
