"""Free/busy feed parser - freebusy_lite.

Ties the tokenizer, the two extractors and the value resolver together. The
parser is stateless between calls: every call builds its own resolver and
extractors and reports what it dropped.
"""

import logging
from datetime import tzinfo
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .exceptions import InvalidTimeZoneError, Recovery, recovery_for
from .lite_datetime_utils import LiteDateTimeResolver
from .lite_event_parser import LiteEventComponentParser
from .lite_freebusy_parser import LiteFreeBusyParser
from .lite_logging import WarningCallback, sanitize_log_message
from .lite_models import AbsoluteInterval
from .lite_tokenizer import unfold_lines
from .timezone_utils import UTC_ZONE, load_zone

logger = logging.getLogger(__name__)


class FeedParseReport(BaseModel):
    """Result of parsing one feed: busy intervals plus drop counters."""

    model_config = ConfigDict(frozen=True)

    intervals: tuple[AbsoluteInterval, ...] = ()
    dropped_periods: int = 0
    dropped_events: int = 0
    floating_utc_values: int = 0


def _emit(warn: Optional[WarningCallback], message: str) -> None:
    if warn is not None:
        warn(sanitize_log_message(message))


def resolve_default_zone(
    timezone_name: Optional[str],
    warn: Optional[WarningCallback] = None,
) -> Optional[tzinfo]:
    """Resolve the owner/default timezone, degrading to UTC if it is unknown.

    Args:
        timezone_name: Owner/default timezone name, or None for no default
        warn: Optional warning callback

    Returns:
        The zone, UTC if the name is invalid, or None if no name was given
    """
    if timezone_name is None:
        return None
    try:
        return load_zone(timezone_name, explicit=False)
    except InvalidTimeZoneError as e:
        if recovery_for(e) is not Recovery.FALLBACK_UTC:
            raise
        logger.warning("Default timezone is invalid, falling back to UTC")
        _emit(warn, "Configured timezone is not recognized; using UTC")
        return UTC_ZONE


class LiteFreeBusyFeedParser:
    """Parses calendar feed text into busy intervals."""

    def __init__(self, default_zone: Optional[tzinfo] = None):
        """Initialize feed parser.

        Args:
            default_zone: Zone for floating and all-day values without TZID
        """
        self.default_zone = default_zone

    def parse(self, text: str, warn: Optional[WarningCallback] = None) -> FeedParseReport:
        """Parse feed text.

        Malformed periods and events are dropped and counted; each kind of
        anomaly is reported through ``warn`` at most once.

        Args:
            text: Decoded feed text
            warn: Optional callback for sanitized, non-fatal diagnostics

        Returns:
            FeedParseReport with busy intervals in feed order

        Raises:
            InvalidTimeZoneError: If the feed names an unknown timezone explicitly
        """
        lines = unfold_lines(text)
        resolver = LiteDateTimeResolver(self.default_zone)
        freebusy_parser = LiteFreeBusyParser(resolver)
        event_parser = LiteEventComponentParser(resolver)

        intervals = freebusy_parser.parse(lines) + event_parser.parse(lines)

        report = FeedParseReport(
            intervals=tuple(intervals),
            dropped_periods=freebusy_parser.dropped_periods,
            dropped_events=event_parser.dropped_events,
            floating_utc_values=resolver.floating_utc_values,
        )

        if report.dropped_periods:
            _emit(warn, f"Dropped {report.dropped_periods} malformed FREEBUSY period(s)")
        if report.dropped_events:
            _emit(warn, f"Dropped {report.dropped_events} VEVENT block(s) with unusable times")
        if report.floating_utc_values:
            _emit(warn, f"Read {report.floating_utc_values} floating date-time value(s) as UTC")

        logger.info(
            "Parsed %d logical lines into %d busy intervals (dropped %d periods, %d events)",
            len(lines),
            len(report.intervals),
            report.dropped_periods,
            report.dropped_events,
        )
        return report


def parse_feed(
    text: str,
    default_zone: Optional[tzinfo] = None,
    *,
    warn: Optional[WarningCallback] = None,
) -> FeedParseReport:
    """Parse feed text into busy intervals (convenience function)."""
    return LiteFreeBusyFeedParser(default_zone).parse(text, warn)
