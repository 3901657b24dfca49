"""
Tests for settings parsing and logging configuration.
"""

import json
import logging
from decimal import Decimal

import pytest

from analytics_engine.config.logging import (
    CustomJsonFormatter,
    build_logging_config,
    get_logger,
    setup_logging,
)
from analytics_engine.config.settings import DEFAULT_FORECAST_ACCURACY, Settings


@pytest.fixture
def restore_engine_logger():
    engine_logger = logging.getLogger("analytics_engine")
    handlers, level, propagate = list(engine_logger.handlers), engine_logger.level, engine_logger.propagate
    yield engine_logger
    for handler in engine_logger.handlers:
        handler.close()
    engine_logger.handlers = handlers
    engine_logger.setLevel(level)
    engine_logger.propagate = propagate


class TestSettings:
    """Defaults, validators and environment overrides."""

    def test_defaults(self):
        config = Settings()

        assert config.DECIMAL_PLACES == 4
        assert config.DEFAULT_FORECAST_PERIODS == 30
        assert config.MIN_CONFIDENCE_THRESHOLD == Decimal("0.6")
        assert config.FORECAST_ACCURACY_TABLE == DEFAULT_FORECAST_ACCURACY

    def test_accuracy_table_from_pairs(self):
        config = Settings(FORECAST_ACCURACY_TABLE="ensemble=0.9, ARIMA=0.5")

        assert config.FORECAST_ACCURACY_TABLE["ENSEMBLE"] == Decimal("0.9")
        assert config.FORECAST_ACCURACY_TABLE["ARIMA"] == Decimal("0.5")
        assert config.FORECAST_ACCURACY_TABLE["LINEAR_REGRESSION"] == Decimal("0.7")

    def test_accuracy_table_from_json(self):
        config = Settings(FORECAST_ACCURACY_TABLE='{"LINEAR_REGRESSION": 0.66}')

        assert config.FORECAST_ACCURACY_TABLE["LINEAR_REGRESSION"] == Decimal("0.66")

    def test_log_level_is_normalized(self):
        assert Settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"

    def test_environment_prefix(self, monkeypatch):
        monkeypatch.setenv("ANALYTICS_CURRENCY_CODE", "EUR")
        monkeypatch.setenv("ANALYTICS_MAX_WORKERS", "3")

        config = Settings()

        assert config.CURRENCY_CODE == "EUR"
        assert config.MAX_WORKERS == 3

    def test_environment_helpers(self):
        assert Settings(ENVIRONMENT="production").is_production()
        assert Settings().is_development()


class TestLogging:
    """dictConfig construction and JSON formatting."""

    def test_console_only_by_default(self):
        config = build_logging_config(Settings())

        assert list(config["handlers"]) == ["console"]
        assert config["handlers"]["console"]["formatter"] == "colored"
        assert config["loggers"]["analytics_engine"]["level"] == "INFO"

    def test_file_handlers(self, tmp_path):
        log_dir = tmp_path / "logs"
        config = build_logging_config(Settings(LOG_TO_FILE=True, LOG_DIR=str(log_dir)))

        assert set(config["handlers"]) == {"console", "file", "json_file"}
        assert log_dir.is_dir()

    def test_json_console(self):
        config = build_logging_config(Settings(LOG_JSON=True, ENVIRONMENT="production"))

        assert config["handlers"]["console"]["formatter"] == "json"

    def test_setup_logging(self, restore_engine_logger):
        logger = setup_logging(Settings(LOG_LEVEL="warning"))

        assert logger is restore_engine_logger
        assert logger.level == logging.WARNING

    def test_json_formatter_includes_context(self):
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(logger)s %(message)s")
        record = logging.LogRecord("analytics_engine.test", logging.INFO, __file__, 1, "calculated", None, None)
        record.metric_type = "ADR"

        payload = json.loads(formatter.format(record))

        assert payload["message"] == "calculated"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "analytics_engine.test"
        assert payload["metric_type"] == "ADR"

    def test_get_logger_namespaces(self):
        assert get_logger("Forecaster").name == "analytics_engine.Forecaster"
        assert get_logger("analytics_engine.core").name == "analytics_engine.core"
