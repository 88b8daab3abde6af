"""Unit tests for reporting window construction."""

from datetime import UTC, datetime, timedelta

import pytest

from freebusy_lite.lite_window import MAX_WINDOW_WEEKS, build_window
from freebusy_lite.timezone_utils import load_zone

pytestmark = pytest.mark.unit


class TestBuildWindow:
    def test_one_week_new_york(self, fixed_now, owner_zone):
        window = build_window(1, fixed_now, owner_zone)

        assert window.start_date_local.isoformat() == "2025-01-01"
        assert window.end_date_local_inclusive.isoformat() == "2025-01-07"
        assert window.start_instant == datetime(2025, 1, 1, 5, 0, tzinfo=UTC)
        assert window.end_instant_exclusive == datetime(2025, 1, 8, 5, 0, tzinfo=UTC)
        assert window.day_count == 7

    def test_today_is_owner_local(self, owner_zone):
        # 03:00 UTC on Jan 2nd is 22:00 on Jan 1st in New York
        window = build_window(1, datetime(2025, 1, 2, 3, 0, tzinfo=UTC), owner_zone)

        assert window.start_date_local.isoformat() == "2025-01-01"

    def test_window_across_spring_forward_is_one_hour_short(self, owner_zone):
        window = build_window(1, datetime(2025, 3, 5, 12, 0, tzinfo=UTC), owner_zone)

        assert window.start_instant == datetime(2025, 3, 5, 5, 0, tzinfo=UTC)
        assert window.end_instant_exclusive == datetime(2025, 3, 12, 4, 0, tzinfo=UTC)
        assert window.end_instant_exclusive - window.start_instant == timedelta(days=7, hours=-1)

    def test_maximum_window(self, fixed_now):
        window = build_window(MAX_WINDOW_WEEKS, fixed_now, load_zone("UTC"))

        assert window.day_count == MAX_WINDOW_WEEKS * 7

    def test_naive_reference_is_utc(self):
        window = build_window(1, datetime(2025, 1, 1, 12, 0), load_zone("Asia/Tokyo"))

        assert window.start_date_local.isoformat() == "2025-01-01"
        assert window.start_instant == datetime(2024, 12, 31, 15, 0, tzinfo=UTC)

    @pytest.mark.parametrize("weeks", [0, -1, MAX_WINDOW_WEEKS + 1, True, 1.5, "2"])
    def test_invalid_weeks_raise(self, weeks, fixed_now, owner_zone):
        with pytest.raises(ValueError):
            build_window(weeks, fixed_now, owner_zone)
