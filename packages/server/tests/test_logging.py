"""
Tests for structlog configuration.
"""

from __future__ import annotations

import pytest
import structlog
from structlog.testing import capture_logs

from app.core.config import get_settings
from app.core.logging import configure_logging, short_identity


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)


class TestConfigureLogging:

    def test_level_filters_lower_events(self):
        configure_logging("warning", "json")
        log = structlog.get_logger()
        with capture_logs() as logs:
            log.info("ignored.event")
            log.warning("kept.event")
        assert [entry["event"] for entry in logs] == ["kept.event"]

    def test_level_name_is_case_insensitive(self):
        configure_logging("DEBUG", "text")
        log = structlog.get_logger()
        with capture_logs() as logs:
            log.debug("debug.event")
        assert [entry["event"] for entry in logs] == ["debug.event"]

    def test_unknown_level_falls_back_to_info(self):
        configure_logging("chatty", "json")
        log = structlog.get_logger()
        with capture_logs() as logs:
            log.debug("ignored.event")
            log.info("kept.event")
        assert [entry["event"] for entry in logs] == ["kept.event"]

    def test_app_module_imports(self):
        from app.main import app

        assert app.title == "Sign Directory"


def test_short_identity():
    assert short_identity("alice") == "alice"
    assert short_identity("auth0|1234567890abcdef") == "auth0|123456..."
