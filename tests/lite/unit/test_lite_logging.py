"""Unit tests for freebusy_lite logging helpers."""

import logging

import pytest

from freebusy_lite.lite_logging import (
    MAX_LOG_MESSAGE_LENGTH,
    configure_lite_logging,
    get_logging_status,
    make_warning_callback,
    sanitize_log_message,
)

pytestmark = pytest.mark.unit

_TOUCHED_LOGGERS = (
    "",
    "freebusy_lite",
    "freebusy_lite.lite_parser",
    "freebusy_lite.lite_datetime_utils",
    "freebusy_lite.pipeline",
    "dateutil",
    "yaml",
)


@pytest.fixture
def restore_logging_levels():
    """Put logger levels back after configure_lite_logging changes them."""
    saved = {name: logging.getLogger(name).level for name in _TOUCHED_LOGGERS}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


class TestSanitizeLogMessage:
    def test_control_characters_become_spaces(self):
        assert sanitize_log_message("a\r\nb\tc\0d") == "a  b c d"

    def test_truncates_to_default_length(self):
        result = sanitize_log_message("x" * 500)

        assert len(result) == MAX_LOG_MESSAGE_LENGTH

    def test_custom_length(self):
        assert sanitize_log_message("abcdef", max_length=3) == "abc"

    @pytest.mark.parametrize("value", [None, 42, b"bytes", ["list"]])
    def test_non_strings_are_replaced(self, value):
        assert sanitize_log_message(value) == "<non-string>"


def test_warning_callback_logs_sanitized_warning(caplog):
    warn = make_warning_callback(logging.getLogger("freebusy_lite.test"))

    with caplog.at_level(logging.WARNING, logger="freebusy_lite.test"):
        warn("line one\nline two")

    assert len(caplog.records) == 1
    record = caplog.records[0]
    assert record.levelno == logging.WARNING
    assert record.getMessage() == "[freebusy] parse warning: line one line two"


@pytest.mark.usefixtures("restore_logging_levels")
class TestConfigureLiteLogging:
    def test_debug_mode(self):
        configure_lite_logging(debug_mode=True)

        assert logging.getLogger("freebusy_lite").level == logging.DEBUG
        assert logging.getLogger("dateutil").level == logging.WARNING

    def test_production_mode(self):
        configure_lite_logging(debug_mode=False)

        assert logging.getLogger("freebusy_lite").level == logging.INFO
        assert logging.getLogger().level == logging.INFO

    def test_level_name(self):
        configure_lite_logging(level_name="warning")

        assert logging.getLogger("freebusy_lite.pipeline").level == logging.WARNING

    def test_env_debug(self, monkeypatch):
        monkeypatch.setenv("FREEBUSY_DEBUG", "yes")

        configure_lite_logging()

        assert logging.getLogger("freebusy_lite").level == logging.DEBUG

    def test_force_debug_overrides_env(self, monkeypatch):
        monkeypatch.setenv("FREEBUSY_DEBUG", "1")

        configure_lite_logging(force_debug=False)

        assert logging.getLogger("freebusy_lite").level == logging.INFO

    def test_env_log_level_overrides(self, monkeypatch):
        monkeypatch.setenv("FREEBUSY_LOG_LEVEL", "error")

        configure_lite_logging()

        assert logging.getLogger().level == logging.ERROR

    def test_logging_status(self):
        configure_lite_logging(debug_mode=True)

        status = get_logging_status()

        assert status["freebusy_lite"] == "DEBUG"
        assert status["dateutil"] == "WARNING"
        assert "root" in status

    def test_debug_mode_logs_logger_levels(self, caplog):
        configure_lite_logging(debug_mode=True)

        messages = [record.getMessage() for record in caplog.records]
        assert any(
            message.startswith("Logger levels:") and "'freebusy_lite': 'DEBUG'" in message
            for message in messages
        )
