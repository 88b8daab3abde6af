"""FREEBUSY property parsing for VFREEBUSY components - freebusy_lite."""

import logging
from collections.abc import Iterable
from typing import Optional

from .exceptions import FreeBusyError, MalformedValueError, Recovery, recovery_for
from .lite_datetime_utils import LiteDateTimeResolver, RawIntervalDescriptor
from .lite_models import AbsoluteInterval, ContentLine
from .lite_tokenizer import parse_content_line

logger = logging.getLogger(__name__)


class LiteFreeBusyParser:
    """Extracts busy periods from FREEBUSY properties inside VFREEBUSY blocks."""

    def __init__(self, resolver: LiteDateTimeResolver):
        """Initialize free/busy parser.

        Args:
            resolver: Resolver used for period start/end values
        """
        self.resolver = resolver
        self.dropped_periods = 0

    def parse(self, lines: Iterable[str]) -> list[AbsoluteInterval]:
        """Collect busy intervals from all VFREEBUSY blocks.

        Args:
            lines: Unfolded logical lines of the feed

        Returns:
            Busy intervals in feed order (unclipped, unmerged)

        Raises:
            InvalidTimeZoneError: If a FREEBUSY line names an unknown TZID
        """
        intervals: list[AbsoluteInterval] = []
        in_component = False

        for line in lines:
            upper = line.upper()
            if upper == "BEGIN:VFREEBUSY":
                in_component = True
                continue
            if upper == "END:VFREEBUSY":
                in_component = False
                continue
            if not in_component or not upper.startswith("FREEBUSY"):
                continue

            content_line = parse_content_line(line)
            if content_line is None or content_line.name != "FREEBUSY":
                continue
            intervals.extend(self._parse_property(content_line))

        return intervals

    def _parse_property(self, content_line: ContentLine) -> list[AbsoluteInterval]:
        """Parse every period of one FREEBUSY line; its TZID applies to this line only."""
        intervals: list[AbsoluteInterval] = []
        tzid = content_line.params.tzid

        for period in content_line.value.split(","):
            try:
                interval = self._parse_period(period.strip(), tzid)
            except FreeBusyError as e:
                if recovery_for(e) is Recovery.ABORT_FEED:
                    raise
                self.dropped_periods += 1
                logger.debug("Dropping FREEBUSY period (%s)", e.kind.value if e.kind else "error")
                continue
            if interval is not None:
                intervals.append(interval)

        return intervals

    def _parse_period(self, period: str, tzid: Optional[str]) -> Optional[AbsoluteInterval]:
        """Parse ``start/end`` or ``start/duration``."""
        parts = period.split("/")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise MalformedValueError("Period is not start/end or start/duration")

        start_raw, end_raw = parts
        if end_raw.upper().startswith("P"):
            descriptor = RawIntervalDescriptor(
                start=start_raw, start_tzid=tzid, duration=end_raw, require_time=True
            )
        else:
            descriptor = RawIntervalDescriptor(
                start=start_raw,
                start_tzid=tzid,
                end=end_raw,
                end_tzid=tzid,
                require_time=True,
            )
        return self.resolver.resolve_interval(descriptor)
