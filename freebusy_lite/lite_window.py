"""Reporting window construction - freebusy_lite."""

import logging
from datetime import datetime, tzinfo

from .lite_models import ReportingWindow
from .timezone_utils import add_days, instant_to_zoned_date, local_midnight_to_instant

logger = logging.getLogger(__name__)

MAX_WINDOW_WEEKS = 104  # two years


def build_window(weeks: int, reference_instant: datetime, owner_zone: tzinfo) -> ReportingWindow:
    """Build a window of whole owner-local weeks starting today.

    The window starts at local midnight of the owner's current date and ends
    (exclusive) at local midnight after its last day, so its UTC length
    differs from ``weeks * 7 * 24h`` when a DST transition falls inside it.

    Args:
        weeks: Window length in weeks (1..104)
        reference_instant: The current instant; naive values are taken as UTC
        owner_zone: Owner's timezone

    Returns:
        ReportingWindow with local dates and UTC instants

    Raises:
        ValueError: If weeks is outside 1..104
    """
    if isinstance(weeks, bool) or not isinstance(weeks, int):
        raise ValueError("weeks must be an integer")
    if not 1 <= weeks <= MAX_WINDOW_WEEKS:
        raise ValueError(f"weeks must be between 1 and {MAX_WINDOW_WEEKS}")

    today = instant_to_zoned_date(reference_instant, owner_zone)
    last_day = add_days(today, weeks * 7 - 1)

    window = ReportingWindow(
        start_date_local=today,
        end_date_local_inclusive=last_day,
        start_instant=local_midnight_to_instant(today, owner_zone),
        end_instant_exclusive=local_midnight_to_instant(add_days(last_day, 1), owner_zone),
    )
    logger.debug(
        "Built %d-week window %s..%s",
        weeks,
        window.start_date_local.isoformat(),
        window.end_date_local_inclusive.isoformat(),
    )
    return window
