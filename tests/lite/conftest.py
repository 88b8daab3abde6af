from collections.abc import Generator
from datetime import UTC, datetime
from typing import Any

import pytest

from freebusy_lite.timezone_utils import TEST_TIME_ENV_VAR, load_zone


@pytest.fixture
def owner_timezone() -> str:
    """Return a deterministic owner timezone for tests.

    America/New_York has DST transitions in March and November, which the
    window and resolver tests rely on.
    """
    return "America/New_York"


@pytest.fixture
def owner_zone(owner_timezone: str):
    return load_zone(owner_timezone)


@pytest.fixture
def fixed_now() -> datetime:
    """Noon UTC on 2025-01-01 (07:00 in New York)."""
    return datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


class WarningCollector:
    """Callable warning sink that records every message it receives."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def __call__(self, message: str) -> None:
        self.messages.append(message)

    def contains(self, fragment: str) -> bool:
        return any(fragment in message for message in self.messages)


@pytest.fixture
def warnings_sink() -> WarningCollector:
    return WarningCollector()


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Ensure FREEBUSY_* environment variables do not leak between tests.

    Some tests set FREEBUSY_TEST_TIME to freeze time or FREEBUSY_* config
    variables for the environment loader.
    """
    for name in (
        TEST_TIME_ENV_VAR,
        "FREEBUSY_DEBUG",
        "FREEBUSY_LOG_LEVEL",
        "FREEBUSY_CALENDAR_TIMEZONE",
        "FREEBUSY_WINDOW_WEEKS",
        "FREEBUSY_WEEK_START_DAY",
        "FREEBUSY_WORKING_HOURS_JSON",
        "FREEBUSY_CACHE_TTL_SECONDS",
        "FREEBUSY_UPSTREAM_MAX_BYTES",
        "FREEBUSY_USE_DEFAULT_TIMEZONE",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
