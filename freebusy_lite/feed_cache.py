"""Caller-owned cache record for parsed feeds - freebusy_lite.

There is no module-level cache. Callers hold a ``FeedCacheEntry`` (or None),
pass it in together with the current time and TTL, and keep whatever entry
comes back.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict

from .lite_models import AbsoluteInterval

logger = logging.getLogger(__name__)


class FeedCacheEntry(BaseModel):
    """Busy intervals parsed from a feed and the time they were fetched."""

    model_config = ConfigDict(frozen=True)

    fetched_at: datetime
    value: tuple[AbsoluteInterval, ...] = ()

    def age(self, now: datetime) -> timedelta:
        return now - self.fetched_at

    def is_fresh(self, now: datetime, ttl_seconds: int) -> bool:
        """True if the entry is younger than ``ttl_seconds`` at ``now``.

        A TTL of zero disables caching. Entries from the future (clock skew)
        are treated as stale.
        """
        if ttl_seconds <= 0:
            return False
        age = self.age(now)
        return timedelta(0) <= age < timedelta(seconds=ttl_seconds)


def get_or_parse(
    entry: Optional[FeedCacheEntry],
    now: datetime,
    ttl_seconds: int,
    load: Callable[[], tuple[AbsoluteInterval, ...]],
) -> tuple[tuple[AbsoluteInterval, ...], FeedCacheEntry]:
    """Return cached intervals when fresh, otherwise load and wrap new ones.

    Args:
        entry: The caller's current entry, or None
        now: Current time
        ttl_seconds: Freshness limit in seconds
        load: Fetches and parses the feed; errors propagate and leave the
            caller's entry untouched

    Returns:
        (intervals, entry) where entry is the one the caller should keep
    """
    if entry is not None and entry.is_fresh(now, ttl_seconds):
        logger.debug("Using cached feed (age %s)", entry.age(now))
        return entry.value, entry

    value = tuple(load())
    logger.debug("Cached %d busy intervals", len(value))
    new_entry = FeedCacheEntry(fetched_at=now, value=value)
    return new_entry.value, new_entry
