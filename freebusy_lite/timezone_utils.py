"""Timezone lookup and local/UTC conversion utilities for freebusy_lite.

Conversions attach civil fields to a ``ZoneInfo`` with ``fold=0`` (PEP 495):

- an ambiguous local time (DST fall-back) resolves to its first occurrence,
  i.e. the pre-transition daylight offset;
- a nonexistent local time (DST spring-forward gap) is read with the
  pre-transition offset and therefore lands just after the gap.
"""

from __future__ import annotations

import datetime
import logging
import os
from functools import lru_cache
from typing import ClassVar
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import InvalidTimeZoneError, MalformedValueError
from .lite_models import ZonedCalendarDate

logger = logging.getLogger(__name__)

UTC_ZONE = ZoneInfo("UTC")

TEST_TIME_ENV_VAR = "FREEBUSY_TEST_TIME"


class TimezoneNormalizer:
    """Maps Windows and legacy timezone names to IANA identifiers."""

    # Windows timezone names as found in Outlook/Exchange exports
    WINDOWS_TZ_MAP: ClassVar[dict[str, str]] = {
        # US
        "Pacific Standard Time": "America/Los_Angeles",
        "Mountain Standard Time": "America/Denver",
        "Central Standard Time": "America/Chicago",
        "Eastern Standard Time": "America/New_York",
        "Alaskan Standard Time": "America/Anchorage",
        "Hawaiian Standard Time": "Pacific/Honolulu",
        "US Mountain Standard Time": "America/Phoenix",
        "Atlantic Standard Time": "America/Halifax",
        "Newfoundland Standard Time": "America/St_Johns",
        # Europe
        "GMT Standard Time": "Europe/London",
        "Central European Standard Time": "Europe/Warsaw",
        "W. Europe Standard Time": "Europe/Berlin",
        "Romance Standard Time": "Europe/Paris",
        "Central Europe Standard Time": "Europe/Budapest",
        "E. Europe Standard Time": "Europe/Chisinau",
        "FLE Standard Time": "Europe/Kiev",
        "GTB Standard Time": "Europe/Bucharest",
        "Russian Standard Time": "Europe/Moscow",
        # Asia
        "China Standard Time": "Asia/Shanghai",
        "Tokyo Standard Time": "Asia/Tokyo",
        "Korea Standard Time": "Asia/Seoul",
        "Singapore Standard Time": "Asia/Singapore",
        "India Standard Time": "Asia/Kolkata",
        "Arabian Standard Time": "Asia/Dubai",
        "Israel Standard Time": "Asia/Jerusalem",
        # Australia & Pacific
        "AUS Eastern Standard Time": "Australia/Sydney",
        "AUS Central Standard Time": "Australia/Darwin",
        "E. Australia Standard Time": "Australia/Brisbane",
        "W. Australia Standard Time": "Australia/Perth",
        "New Zealand Standard Time": "Pacific/Auckland",
        # South America & Africa
        "E. South America Standard Time": "America/Sao_Paulo",
        "Argentina Standard Time": "America/Buenos_Aires",
        "South Africa Standard Time": "Africa/Johannesburg",
        "Egypt Standard Time": "Africa/Cairo",
        # Explicit UTC spellings
        "UTC": "UTC",
        "Coordinated Universal Time": "UTC",
    }

    # Obsolete IANA names still seen in older feeds
    TZ_ALIAS_MAP: ClassVar[dict[str, str]] = {
        "US/Pacific": "America/Los_Angeles",
        "US/Mountain": "America/Denver",
        "US/Central": "America/Chicago",
        "US/Eastern": "America/New_York",
        "US/Alaska": "America/Anchorage",
        "US/Hawaii": "Pacific/Honolulu",
        "US/Arizona": "America/Phoenix",
        "GMT": "UTC",
        "Etc/UTC": "UTC",
        "Etc/GMT": "UTC",
        "Universal": "UTC",
        "Zulu": "UTC",
        "Z": "UTC",
    }

    def normalize(self, name: str) -> str:
        """Return the IANA identifier for ``name``.

        Surrounding whitespace and double quotes are stripped. Names with no
        mapping are returned unchanged for the timezone database to judge.
        """
        cleaned = name.strip().strip('"').strip()
        if cleaned in self.WINDOWS_TZ_MAP:
            return self.WINDOWS_TZ_MAP[cleaned]
        return self.TZ_ALIAS_MAP.get(cleaned, cleaned)


_normalizer = TimezoneNormalizer()


def normalize_timezone_name(name: str) -> str:
    """Normalize a Windows/legacy timezone name to IANA (convenience function)."""
    return _normalizer.normalize(name)


@lru_cache(maxsize=128)
def _zone_for(normalized: str) -> ZoneInfo:
    return ZoneInfo(normalized)


def load_zone(name: str, *, explicit: bool = True) -> ZoneInfo:
    """Resolve a timezone identifier to a ``ZoneInfo``.

    Args:
        name: IANA, Windows or legacy alias timezone name
        explicit: Whether the name came from the feed itself (TZID) rather
            than from the owner/default configuration

    Returns:
        ZoneInfo for the normalized identifier

    Raises:
        InvalidTimeZoneError: If the timezone database does not know the name
    """
    if not name or not name.strip():
        raise InvalidTimeZoneError(name, explicit=explicit)

    normalized = normalize_timezone_name(name)
    try:
        return _zone_for(normalized)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        # ValueError covers malformed keys such as absolute paths, OSError
        # directory names like "America"
        raise InvalidTimeZoneError(name, explicit=explicit) from e


def is_valid_timezone(name: str) -> bool:
    """Return True if ``name`` resolves to a known timezone."""
    try:
        load_zone(name)
    except InvalidTimeZoneError:
        return False
    return True


def local_to_instant(
    local_date: datetime.date,
    local_time: datetime.time,
    zone: datetime.tzinfo,
) -> datetime.datetime:
    """Convert a civil date and time in ``zone`` to a UTC instant.

    Identical wall-clock fields on different dates may map to different UTC
    offsets; see the module docstring for the DST boundary policy.
    """
    local = datetime.datetime.combine(local_date, local_time.replace(tzinfo=None, fold=0))
    return local.replace(tzinfo=zone).astimezone(datetime.UTC)


def local_midnight_to_instant(
    calendar_date: ZonedCalendarDate,
    zone: datetime.tzinfo,
) -> datetime.datetime:
    """Return the UTC instant of local midnight at the start of ``calendar_date``."""
    return local_to_instant(calendar_date.to_date(), datetime.time(0, 0), zone)


def instant_to_zoned_date(instant: datetime.datetime, zone: datetime.tzinfo) -> ZonedCalendarDate:
    """Return the civil date in ``zone`` at ``instant``.

    Naive instants are taken to be UTC.
    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=datetime.UTC)
    return ZonedCalendarDate.from_date(instant.astimezone(zone).date())


def add_days(calendar_date: ZonedCalendarDate, days: int) -> ZonedCalendarDate:
    """Add (or subtract) whole days to a calendar date, independent of timezone."""
    return ZonedCalendarDate.from_date(calendar_date.to_date() + datetime.timedelta(days=days))


def fixed_offset_to_instant(
    local_date: datetime.date,
    local_time: datetime.time,
    sign: str,
    hours: int,
    minutes: int,
) -> datetime.datetime:
    """Convert a date-time with a numeric ``±HHMM`` UTC offset to a UTC instant.

    Raises:
        MalformedValueError: If the sign is not +/- or the offset is out of range
    """
    if sign not in ("+", "-"):
        raise MalformedValueError(f"Invalid offset sign {sign!r}")
    if not 0 <= hours <= 23 or not 0 <= minutes <= 59:
        raise MalformedValueError(f"Offset out of range: {sign}{hours:02d}{minutes:02d}")

    delta = datetime.timedelta(hours=hours, minutes=minutes)
    offset = datetime.timezone(delta if sign == "+" else -delta)
    local = datetime.datetime.combine(local_date, local_time.replace(tzinfo=None))
    return local.replace(tzinfo=offset).astimezone(datetime.UTC)


class TimeProvider:
    """Provides current time with test time override support."""

    def __init__(self, env_var: str = TEST_TIME_ENV_VAR):
        self.env_var = env_var

    def now_utc(self) -> datetime.datetime:
        """Return current UTC time with tzinfo.

        Can be overridden for testing via the FREEBUSY_TEST_TIME environment
        variable holding an ISO 8601 datetime (e.g. "2025-10-27T08:20:00-07:00").
        A naive override is taken to be UTC.
        """
        test_time = os.environ.get(self.env_var)
        if test_time:
            try:
                from dateutil import parser as date_parser

                dt = date_parser.isoparse(test_time)
            except (ValueError, OverflowError) as e:
                logger.warning("Failed to parse %s=%r: %s", self.env_var, test_time, e)
            else:
                if dt.tzinfo is None:
                    return dt.replace(tzinfo=datetime.UTC)
                return dt.astimezone(datetime.UTC)

        return datetime.datetime.now(datetime.UTC)


_time_provider = TimeProvider()


def now_utc() -> datetime.datetime:
    """Get current UTC time (convenience function)."""
    return _time_provider.now_utc()
