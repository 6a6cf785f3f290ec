"""
Unit Tests - Logging Configuration
"""
import json
import logging
import logging.config

import pytest
import structlog
from uvicorn.config import LOGGING_CONFIG

from crm.config.settings import MonitoringSettings, Settings
from crm.config.logging import UVICORN_LOGGERS, configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    for name in UVICORN_LOGGERS:
        logging.getLogger(name).handlers = []
    structlog.reset_defaults()


@pytest.fixture
def json_settings() -> Settings:
    return Settings(
        app_name="crm-dashboard",
        app_env="testing",
        monitoring=MonitoringSettings(log_format="json"),
    )


class TestConfigureLogging:
    def test_uvicorn_lines_written_once(self, capsys, json_settings):
        logging.config.dictConfig(LOGGING_CONFIG)
        configure_logging(settings=json_settings)

        logging.getLogger("uvicorn.error").info("Application startup complete.")
        logging.getLogger("uvicorn").info("Started server process")

        out = capsys.readouterr().out
        assert out.count("Application startup complete.") == 1
        assert out.count("Started server process") == 1

    def test_events_carry_service_context(self, capsys, json_settings):
        configure_logging(settings=json_settings)

        structlog.get_logger("crm.tests").info("Dashboard loaded", products=3)

        lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
        event = next(line for line in lines if line["event"] == "Dashboard loaded")
        assert event["app"] == "crm-dashboard"
        assert event["env"] == "testing"
        assert event["products"] == 3
        assert event["level"] == "info"

    def test_level_override(self, json_settings):
        configure_logging("warning", settings=json_settings)

        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger("uvicorn.access").level == logging.WARNING
