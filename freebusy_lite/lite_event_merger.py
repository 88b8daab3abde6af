"""Busy interval clipping and merging - freebusy_lite.

Reduces a list of busy intervals to the minimal sorted set of disjoint
intervals inside a reporting window. Touching intervals are merged, so
consecutive outputs are always separated by a positive gap.
"""

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Optional

from .lite_models import AbsoluteInterval, IntervalKind

logger = logging.getLogger(__name__)


def _merged_kind(first: IntervalKind, second: IntervalKind) -> IntervalKind:
    """All-day wins over timed when two intervals merge."""
    if IntervalKind.ALL_DAY in (first, second):
        return IntervalKind.ALL_DAY
    return IntervalKind.TIMED


def clip_interval(
    interval: AbsoluteInterval,
    window_start: datetime,
    window_end_exclusive: datetime,
) -> Optional[AbsoluteInterval]:
    """Clip an interval to ``[window_start, window_end_exclusive)``.

    Returns:
        The clipped interval (the same object if already inside), or None if
        nothing of it lies inside the window
    """
    start = max(interval.start, window_start)
    end = min(interval.end, window_end_exclusive)
    if end <= start:
        return None
    if start == interval.start and end == interval.end:
        return interval
    return AbsoluteInterval(start=start, end=end, kind=interval.kind)


class LiteEventMerger:
    """Clips busy intervals to a window and merges overlapping or touching ones."""

    def clip_and_merge(
        self,
        intervals: Iterable[AbsoluteInterval],
        window_start: datetime,
        window_end_exclusive: datetime,
    ) -> list[AbsoluteInterval]:
        """Clip, sort and merge busy intervals.

        Args:
            intervals: Busy intervals in any order
            window_start: Inclusive window start (UTC)
            window_end_exclusive: Exclusive window end (UTC)

        Returns:
            Intervals sorted by start, pairwise disjoint and non-adjacent,
            each within the window
        """
        clipped = [
            c
            for c in (clip_interval(i, window_start, window_end_exclusive) for i in intervals)
            if c is not None
        ]
        clipped.sort(key=lambda interval: interval.start)

        merged: list[AbsoluteInterval] = []
        for interval in clipped:
            if merged and interval.start <= merged[-1].end:
                last = merged[-1]
                merged[-1] = AbsoluteInterval(
                    start=last.start,
                    end=max(last.end, interval.end),
                    kind=_merged_kind(last.kind, interval.kind),
                )
            else:
                merged.append(interval)

        logger.debug("Merged %d clipped intervals into %d", len(clipped), len(merged))
        return merged


_merger = LiteEventMerger()


def clip_and_merge(
    intervals: Iterable[AbsoluteInterval],
    window_start: datetime,
    window_end_exclusive: datetime,
) -> list[AbsoluteInterval]:
    """Clip and merge busy intervals (convenience function)."""
    return _merger.clip_and_merge(intervals, window_start, window_end_exclusive)
