"""Unit tests for FREEBUSY property extraction."""

from datetime import UTC, datetime

import pytest

from freebusy_lite.exceptions import InvalidTimeZoneError
from freebusy_lite.lite_datetime_utils import LiteDateTimeResolver
from freebusy_lite.lite_freebusy_parser import LiteFreeBusyParser
from freebusy_lite.lite_models import IntervalKind
from freebusy_lite.lite_tokenizer import unfold_lines

pytestmark = pytest.mark.unit


def _parse(text: str, resolver: LiteDateTimeResolver | None = None):
    parser = LiteFreeBusyParser(resolver or LiteDateTimeResolver())
    return parser, parser.parse(unfold_lines(text))


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=UTC)


class TestLiteFreeBusyParser:
    def test_end_and_duration_periods(self):
        text = (
            "BEGIN:VCALENDAR\r\n"
            "BEGIN:VFREEBUSY\r\n"
            "FREEBUSY:20250102T140000Z/20250102T150000Z,20250103T140000Z/PT30M\r\n"
            "END:VFREEBUSY\r\n"
            "END:VCALENDAR\r\n"
        )

        parser, intervals = _parse(text)

        assert [(i.start, i.end) for i in intervals] == [
            (_utc(2025, 1, 2, 14, 0), _utc(2025, 1, 2, 15, 0)),
            (_utc(2025, 1, 3, 14, 0), _utc(2025, 1, 3, 14, 30)),
        ]
        assert all(i.kind is IntervalKind.TIMED for i in intervals)
        assert parser.dropped_periods == 0

    def test_malformed_period_is_dropped_individually(self):
        text = (
            "BEGIN:VFREEBUSY\n"
            "FREEBUSY:bad/20250102T150000Z,20250105T140000Z/20250105T150000Z,a/b/c\n"
            "END:VFREEBUSY\n"
        )

        parser, intervals = _parse(text)

        assert [(i.start, i.end) for i in intervals] == [
            (_utc(2025, 1, 5, 14, 0), _utc(2025, 1, 5, 15, 0)),
        ]
        assert parser.dropped_periods == 2

    def test_tzid_scopes_to_its_own_line(self):
        text = (
            "BEGIN:VFREEBUSY\n"
            "FREEBUSY;TZID=America/New_York:20250104T090000/20250104T100000\n"
            "FREEBUSY:20250104T090000/20250104T100000\n"
            "END:VFREEBUSY\n"
        )
        resolver = LiteDateTimeResolver()

        _, intervals = _parse(text, resolver)

        assert intervals[0].start == _utc(2025, 1, 4, 14, 0)
        assert intervals[1].start == _utc(2025, 1, 4, 9, 0)
        assert resolver.floating_utc_values == 2

    def test_date_only_period_bounds_are_malformed(self):
        text = "BEGIN:VFREEBUSY\nFREEBUSY:20250102/20250103\nEND:VFREEBUSY\n"

        parser, intervals = _parse(text)

        assert intervals == []
        assert parser.dropped_periods == 1

    def test_unknown_tzid_aborts(self):
        text = (
            "BEGIN:VFREEBUSY\n"
            "FREEBUSY;TZID=Bogus/Zone:20250104T090000/20250104T100000\n"
            "END:VFREEBUSY\n"
        )

        with pytest.raises(InvalidTimeZoneError):
            _parse(text)

    def test_lines_outside_block_are_ignored(self):
        text = (
            "FREEBUSY:20250101T140000Z/20250101T150000Z\n"
            "begin:vfreebusy\n"
            "freebusy:20250102T140000Z/PT1H\n"
            "end:vfreebusy\n"
            "FREEBUSY:20250106T140000Z/20250106T150000Z\n"
        )

        _, intervals = _parse(text)

        assert [i.start for i in intervals] == [_utc(2025, 1, 2, 14, 0)]

    def test_other_properties_with_similar_names_are_ignored(self):
        text = (
            "BEGIN:VFREEBUSY\n"
            "FREEBUSY-X:20250102T140000Z/PT1H\n"
            "DTSTART:20250101T000000Z\n"
            "END:VFREEBUSY\n"
        )

        _, intervals = _parse(text)

        assert intervals == []

    def test_fbtype_free_still_counts_as_busy(self):
        text = (
            "BEGIN:VFREEBUSY\n"
            "FREEBUSY;FBTYPE=FREE:20250102T140000Z/PT1H\n"
            "END:VFREEBUSY\n"
        )

        _, intervals = _parse(text)

        assert len(intervals) == 1

    def test_folded_period_list(self):
        text = (
            "BEGIN:VFREEBUSY\r\n"
            "FREEBUSY:20250102T140000Z/PT1H,\r\n"
            " 20250103T140000Z/PT1H\r\n"
            "END:VFREEBUSY\r\n"
        )

        _, intervals = _parse(text)

        assert len(intervals) == 2

    def test_inverted_period_is_skipped_without_counting(self):
        text = (
            "BEGIN:VFREEBUSY\n"
            "FREEBUSY:20250102T150000Z/20250102T140000Z\n"
            "END:VFREEBUSY\n"
        )

        parser, intervals = _parse(text)

        assert intervals == []
        assert parser.dropped_periods == 0
