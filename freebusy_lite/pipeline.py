"""End-to-end free/busy computation - freebusy_lite.

Parses a feed once, builds the owner's reporting window and reduces the
parsed intervals to the busy blocks inside it. Parsing does not depend on
``now``, so cached intervals can be re-windowed with ``busy_for_window``.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, tzinfo
from typing import Callable, Optional

from .exceptions import OversizedInputError
from .feed_cache import FeedCacheEntry, get_or_parse
from .lite_event_merger import clip_and_merge
from .lite_logging import WarningCallback
from .lite_models import AbsoluteInterval, FreeBusyResult
from .lite_parser import parse_feed, resolve_default_zone
from .lite_window import build_window
from .serialization import format_iso_in_timezone
from .timezone_utils import UTC_ZONE

logger = logging.getLogger(__name__)


def ensure_within_budget(raw: bytes, max_bytes: int) -> bytes:
    """Reject raw feed bytes larger than ``max_bytes``.

    Raises:
        OversizedInputError: If the input is over budget
    """
    if len(raw) > max_bytes:
        raise OversizedInputError(len(raw), max_bytes)
    return raw


def decode_feed(raw: bytes) -> str:
    """Decode feed bytes as UTF-8, replacing undecodable sequences."""
    return raw.decode("utf-8", errors="replace")


def busy_for_window(
    intervals: Iterable[AbsoluteInterval],
    owner_zone: tzinfo,
    weeks: int,
    now: datetime,
) -> FreeBusyResult:
    """Clip and merge already-parsed intervals into the current window."""
    window = build_window(weeks, now, owner_zone)
    logger.debug(
        "Reporting window %s .. %s",
        format_iso_in_timezone(window.start_instant, owner_zone),
        format_iso_in_timezone(window.end_instant_exclusive, owner_zone),
    )
    busy = clip_and_merge(intervals, window.start_instant, window.end_instant_exclusive)
    return FreeBusyResult(window=window, busy=tuple(busy))


def compute_free_busy(
    text: str,
    owner_timezone: str,
    weeks: int,
    now: datetime,
    *,
    warn: Optional[WarningCallback] = None,
    use_default_timezone: bool = True,
) -> FreeBusyResult:
    """Compute merged busy blocks for the owner's upcoming weeks.

    Args:
        text: Decoded feed text
        owner_timezone: Owner's IANA timezone; unknown names fall back to UTC
        weeks: Window length in weeks (1..104)
        now: Current instant
        warn: Optional callback for sanitized, non-fatal diagnostics
        use_default_timezone: Read floating and all-day values without TZID
            in the owner's timezone

    Returns:
        FreeBusyResult with the window and its busy intervals

    Raises:
        InvalidTimeZoneError: If the feed names an unknown timezone explicitly
        ValueError: If weeks is outside 1..104
    """
    owner_zone, default_zone = _zones(owner_timezone, use_default_timezone, warn)
    report = parse_feed(text, default_zone, warn=warn)
    result = busy_for_window(report.intervals, owner_zone, weeks, now)
    _log_result(result)
    return result


def cached_free_busy(
    entry: Optional[FeedCacheEntry],
    load_text: Callable[[], str],
    owner_timezone: str,
    weeks: int,
    now: datetime,
    *,
    ttl_seconds: int,
    warn: Optional[WarningCallback] = None,
    use_default_timezone: bool = True,
) -> tuple[FreeBusyResult, FeedCacheEntry]:
    """Like ``compute_free_busy`` but reuses the caller's parsed feed while fresh.

    ``load_text`` is called only when ``entry`` is missing or older than
    ``ttl_seconds``. Cached intervals are always re-windowed against ``now``.

    Returns:
        (result, entry) where entry is the one the caller should keep
    """
    owner_zone, default_zone = _zones(owner_timezone, use_default_timezone, warn)

    def load() -> tuple[AbsoluteInterval, ...]:
        return parse_feed(load_text(), default_zone, warn=warn).intervals

    intervals, new_entry = get_or_parse(entry, now, ttl_seconds, load)
    result = busy_for_window(intervals, owner_zone, weeks, now)
    _log_result(result)
    return result, new_entry


def _zones(
    owner_timezone: str, use_default_timezone: bool, warn: Optional[WarningCallback]
) -> tuple[tzinfo, Optional[tzinfo]]:
    owner_zone = resolve_default_zone(owner_timezone, warn) or UTC_ZONE
    return owner_zone, owner_zone if use_default_timezone else None


def _log_result(result: FreeBusyResult) -> None:
    logger.info(
        "Computed %d busy blocks for %s..%s",
        len(result.busy),
        result.window.start_date_local.isoformat(),
        result.window.end_date_local_inclusive.isoformat(),
    )
