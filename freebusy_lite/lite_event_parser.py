"""Event component parsing for free/busy feeds - freebusy_lite.

Only the properties that decide when an event is busy are read: DTSTART,
DTEND and DURATION, with their TZID and VALUE=DATE parameters.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from .exceptions import FreeBusyError, Recovery, recovery_for
from .lite_datetime_utils import LiteDateTimeResolver, RawIntervalDescriptor
from .lite_models import AbsoluteInterval, ContentLine
from .lite_tokenizer import parse_content_line

logger = logging.getLogger(__name__)

_TIME_PROPERTIES = ("DTSTART", "DTEND", "DURATION")


@dataclass
class _EventTimes:
    """Time properties seen so far in the current VEVENT block."""

    start: Optional[ContentLine] = None
    end: Optional[ContentLine] = None
    duration: Optional[ContentLine] = None

    def to_descriptor(self) -> Optional[RawIntervalDescriptor]:
        if self.start is None:
            return None
        return RawIntervalDescriptor(
            start=self.start.value,
            start_tzid=self.start.params.tzid,
            start_date_only=self.start.params.is_date_value,
            end=self.end.value if self.end else None,
            end_tzid=self.end.params.tzid if self.end else None,
            end_date_only=self.end.params.is_date_value if self.end else False,
            duration=self.duration.value if self.duration else None,
        )


class LiteEventComponentParser:
    """Extracts one busy interval per VEVENT block."""

    def __init__(self, resolver: LiteDateTimeResolver):
        """Initialize event component parser.

        Args:
            resolver: Resolver used for DTSTART/DTEND values
        """
        self.resolver = resolver
        self.dropped_events = 0

    def parse(self, lines: Iterable[str]) -> list[AbsoluteInterval]:
        """Collect busy intervals from all VEVENT blocks.

        Properties of nested components (e.g. VALARM) are ignored. A block
        that is never closed contributes nothing.

        Args:
            lines: Unfolded logical lines of the feed

        Returns:
            Busy intervals in feed order (unclipped, unmerged)

        Raises:
            InvalidTimeZoneError: If an event names an unknown TZID
        """
        intervals: list[AbsoluteInterval] = []
        current: Optional[_EventTimes] = None
        nested_depth = 0

        for line in lines:
            upper = line.upper()

            if upper == "BEGIN:VEVENT" and current is None:
                current = _EventTimes()
                nested_depth = 0
                continue
            if current is None:
                continue

            if upper.startswith("BEGIN:"):
                nested_depth += 1
                continue
            if upper == "END:VEVENT" and nested_depth == 0:
                interval = self._finish_event(current)
                if interval is not None:
                    intervals.append(interval)
                current = None
                continue
            if upper.startswith("END:"):
                nested_depth = max(0, nested_depth - 1)
                continue
            if nested_depth or not upper.startswith(_TIME_PROPERTIES):
                continue

            content_line = parse_content_line(line)
            if content_line is None:
                continue
            if content_line.name == "DTSTART":
                current.start = content_line
            elif content_line.name == "DTEND":
                current.end = content_line
            elif content_line.name == "DURATION":
                current.duration = content_line

        return intervals

    def _finish_event(self, times: _EventTimes) -> Optional[AbsoluteInterval]:
        """Resolve the collected times of a closed VEVENT block."""
        descriptor = times.to_descriptor()
        if descriptor is None:
            logger.debug("Skipping VEVENT without DTSTART")
            return None

        try:
            return self.resolver.resolve_interval(descriptor)
        except FreeBusyError as e:
            if recovery_for(e) is Recovery.ABORT_FEED:
                raise
            self.dropped_events += 1
            logger.debug("Dropping VEVENT (%s)", e.kind.value if e.kind else "error")
            return None
