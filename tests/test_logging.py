"""Tests for the command-line logging setup."""

import logging
import sys
from collections.abc import Iterator

import pytest
import structlog

from tapi_client.logging import QUIET_LOGGERS, configure_logging


@pytest.fixture
def restore_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    quiet_levels = {name: logging.getLogger(name).level for name in QUIET_LOGGERS}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, quiet_level in quiet_levels.items():
        logging.getLogger(name).setLevel(quiet_level)
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_installs_single_stderr_handler(self, restore_logging):
        configure_logging("debug")
        configure_logging("debug")

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.handlers[0].stream is sys.stderr
        assert root.level == logging.DEBUG

    def test_transport_loggers_stay_quiet(self, restore_logging):
        configure_logging("debug")

        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_quiet_loggers_follow_a_stricter_level(self, restore_logging):
        configure_logging("error")

        assert logging.getLogger("httpx").level == logging.ERROR

    def test_falls_back_to_settings_level(self, restore_logging, monkeypatch):
        monkeypatch.setattr("tapi_client.logging.settings.log_level", "warning")

        configure_logging()

        assert logging.getLogger().level == logging.WARNING

    def test_unknown_level_means_info(self, restore_logging):
        configure_logging("chatty")

        assert logging.getLogger().level == logging.INFO
