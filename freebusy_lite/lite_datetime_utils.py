"""Date/time value resolution for iCalendar properties - freebusy_lite.

Turns the raw text of DTSTART/DTEND/FREEBUSY values into absolute UTC
instants. Handles four value shapes:

- ``20251224`` (date only, or any value flagged VALUE=DATE): all-day, local
  midnight in the TZID zone or the default zone;
- ``20251224T140000Z``: UTC, any TZID is ignored;
- ``20251224T090000-0500``: fixed numeric offset, any TZID is ignored;
- ``20251224T090000``: floating, read in the TZID zone, else the default
  zone, else UTC as a last resort.
"""

import logging
import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from typing import Optional

from .exceptions import MalformedValueError, MissingTimeZoneError
from .lite_models import AbsoluteInterval, IntervalKind
from .timezone_utils import fixed_offset_to_instant, load_zone, local_to_instant

logger = logging.getLogger(__name__)

MAX_DURATION = timedelta(days=366)

_VALUE_PATTERN = re.compile(
    r"^(\d{4})(\d{2})(\d{2})(?:T(\d{2})(\d{2})(\d{2})(Z|[+-]\d{4})?)?$"
)
_DURATION_PATTERN = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$")

# Any component this long already exceeds the cap, so skip int() on it
_MAX_COMPONENT_DIGITS = 9

DEFAULT_TIMED_DURATION = timedelta(hours=1)


@dataclass(frozen=True)
class RawIntervalDescriptor:
    """Unresolved start and end of one busy interval, as read from the feed.

    The end is given either as a value (``end``), a duration text
    (``duration``), or not at all, in which case a default applies.
    ``require_time`` rejects date-only bounds (FREEBUSY periods).
    """

    start: str
    start_tzid: Optional[str] = None
    start_date_only: bool = False
    end: Optional[str] = None
    end_tzid: Optional[str] = None
    end_date_only: bool = False
    duration: Optional[str] = None
    require_time: bool = False


@dataclass(frozen=True)
class ResolvedValue:
    """A date/time value resolved to a UTC instant.

    For date-only values ``local_date`` and ``zone`` record the civil date
    and the zone its midnight was taken in, so callers can step to the next
    local day.
    """

    instant: datetime
    date_only: bool = False
    local_date: Optional[date] = None
    zone: Optional[tzinfo] = None


def parse_duration(value: str) -> timedelta:
    """Parse an iCalendar duration of the form ``P[nD][T[nH][nM][nS]]``.

    ``P`` and ``PT`` alone are accepted as a zero duration. Week designators
    and signed durations are not supported. The result is clamped to
    366 days.

    Args:
        value: Duration text such as "PT1H30M" or "P1DT1H"

    Returns:
        Duration as a timedelta

    Raises:
        MalformedValueError: If the text does not match the grammar

    Examples:
        >>> parse_duration("PT1H30M")
        datetime.timedelta(seconds=5400)
        >>> parse_duration("P1DT1H")
        datetime.timedelta(days=1, seconds=3600)
    """
    match = _DURATION_PATTERN.match(value.strip().upper())
    if not match:
        raise MalformedValueError("Unsupported duration value")

    max_seconds = int(MAX_DURATION.total_seconds())
    total_seconds = 0
    for digits, unit_seconds in zip(match.groups(), (86400, 3600, 60, 1)):
        if not digits:
            continue
        if len(digits) > _MAX_COMPONENT_DIGITS:
            total_seconds = max_seconds
            break
        total_seconds += int(digits) * unit_seconds

    return timedelta(seconds=min(total_seconds, max_seconds))


def add_duration(instant: datetime, duration: timedelta) -> datetime:
    """Add a duration to an instant, treating calendar overflow as malformed input."""
    try:
        return instant + duration
    except OverflowError as e:
        raise MalformedValueError("Duration runs past the supported date range") from e


def next_local_day(value: ResolvedValue) -> datetime:
    """Return local midnight of the day after a date-only value, as a UTC instant.

    Falls back to adding 24 hours when the value carries no local date.
    """
    if value.local_date is None or value.zone is None:
        return add_duration(value.instant, timedelta(days=1))
    try:
        return local_to_instant(value.local_date + timedelta(days=1), time(0, 0), value.zone)
    except OverflowError as e:
        raise MalformedValueError("Date runs past the supported date range") from e


class LiteDateTimeResolver:
    """Resolves raw date/time property values against a default timezone.

    One resolver is created per feed parse; it counts floating values that
    had to be read as UTC so the caller can report them once.
    """

    def __init__(self, default_zone: Optional[tzinfo] = None):
        """Initialize resolver.

        Args:
            default_zone: Zone for floating and date-only values without a
                TZID, or None when no default applies
        """
        self.default_zone = default_zone
        self.floating_utc_values = 0

    def resolve(
        self,
        raw_value: str,
        tzid: Optional[str] = None,
        date_only: bool = False,
    ) -> ResolvedValue:
        """Resolve a raw value to a UTC instant.

        Args:
            raw_value: Value text, e.g. "20251224T090000"
            tzid: TZID parameter of the property, if any
            date_only: True when the property carries VALUE=DATE

        Returns:
            ResolvedValue with the UTC instant

        Raises:
            MalformedValueError: If the value cannot be parsed
            MissingTimeZoneError: If a date-only value has no zone to anchor it
            InvalidTimeZoneError: If an explicit TZID is needed and unknown
        """
        match = _VALUE_PATTERN.match(raw_value.strip().upper())
        if not match:
            raise MalformedValueError("Unrecognized date/time value")

        year, month, day, hour, minute, second, suffix = match.groups()
        try:
            local_date = date(int(year), int(month), int(day))
        except ValueError as e:
            raise MalformedValueError("Invalid calendar date") from e

        if date_only or hour is None:
            return self._resolve_date(local_date, tzid)

        try:
            local_time = time(int(hour), int(minute), int(second))
        except ValueError as e:
            raise MalformedValueError("Invalid time of day") from e

        try:
            return ResolvedValue(instant=self._resolve_date_time(local_date, local_time, suffix, tzid))
        except OverflowError as e:
            raise MalformedValueError("Date/time outside the supported range") from e

    def _resolve_date(self, local_date: date, tzid: Optional[str]) -> ResolvedValue:
        zone = load_zone(tzid, explicit=True) if tzid else self.default_zone
        if zone is None:
            raise MissingTimeZoneError("All-day value without a timezone")
        try:
            instant = local_to_instant(local_date, time(0, 0), zone)
        except OverflowError as e:
            raise MalformedValueError("Date outside the supported range") from e
        return ResolvedValue(instant=instant, date_only=True, local_date=local_date, zone=zone)

    def _resolve_date_time(
        self,
        local_date: date,
        local_time: time,
        suffix: Optional[str],
        tzid: Optional[str],
    ) -> datetime:
        if suffix == "Z":
            if tzid:
                logger.debug("Ignoring TZID on UTC-marked value")
            return datetime.combine(local_date, local_time, tzinfo=UTC)

        if suffix:
            if tzid:
                logger.debug("Ignoring TZID on value with numeric UTC offset")
            return fixed_offset_to_instant(
                local_date, local_time, suffix[0], int(suffix[1:3]), int(suffix[3:5])
            )

        if tzid:
            return local_to_instant(local_date, local_time, load_zone(tzid, explicit=True))

        if self.default_zone is not None:
            return local_to_instant(local_date, local_time, self.default_zone)

        self.floating_utc_values += 1
        logger.debug("Floating date-time without any timezone, assuming UTC")
        return datetime.combine(local_date, local_time, tzinfo=UTC)

    def resolve_interval(self, descriptor: RawIntervalDescriptor) -> Optional[AbsoluteInterval]:
        """Resolve a raw descriptor into an absolute interval.

        The end is taken, in order, from the explicit end value, from start
        plus duration, or from the default (one local day for all-day
        starts, one hour otherwise). An all-day interval whose end equals its
        start is stretched to the next local day.

        Returns:
            AbsoluteInterval, or None when the resolved end is not after the start

        Raises:
            FreeBusyError: Any resolution failure of either bound
        """
        if descriptor.require_time:
            self._require_time_component(descriptor.start)
            if descriptor.end is not None:
                self._require_time_component(descriptor.end)

        start = self.resolve(descriptor.start, descriptor.start_tzid, descriptor.start_date_only)
        all_day = start.date_only

        if descriptor.end is not None:
            end = self.resolve(descriptor.end, descriptor.end_tzid, descriptor.end_date_only).instant
        elif descriptor.duration is not None:
            end = add_duration(start.instant, parse_duration(descriptor.duration))
        elif all_day:
            end = next_local_day(start)
        else:
            end = add_duration(start.instant, DEFAULT_TIMED_DURATION)

        if all_day and end == start.instant:
            end = next_local_day(start)

        if end <= start.instant:
            logger.debug("Discarding interval with non-positive length")
            return None

        return AbsoluteInterval(
            start=start.instant,
            end=end,
            kind=IntervalKind.ALL_DAY if all_day else IntervalKind.TIMED,
        )

    @staticmethod
    def _require_time_component(raw_value: str) -> None:
        if "T" not in raw_value.upper():
            raise MalformedValueError("Date-only value where a date-time is required")


def resolve_value(
    raw_value: str,
    tzid: Optional[str] = None,
    date_only: bool = False,
    default_zone: Optional[tzinfo] = None,
) -> ResolvedValue:
    """Resolve a single raw value without keeping resolver state (convenience function)."""
    return LiteDateTimeResolver(default_zone).resolve(raw_value, tzid, date_only)
