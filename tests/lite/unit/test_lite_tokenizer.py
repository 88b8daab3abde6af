"""Unit tests for lite_tokenizer line unfolding and content-line splitting."""

import pytest

from freebusy_lite.lite_models import ValueType
from freebusy_lite.lite_tokenizer import parse_content_line, unfold_lines

pytestmark = pytest.mark.unit


class TestUnfoldLines:
    def test_crlf_continuation_with_space(self):
        assert unfold_lines("A:1\r\n B\r\nC:2") == ["A:1B", "C:2"]

    def test_lf_continuation_with_tab(self):
        assert unfold_lines("A:1\n\tB\nC:2") == ["A:1B", "C:2"]

    def test_only_first_whitespace_character_is_removed(self):
        assert unfold_lines("SUMMARY:a\r\n  b") == ["SUMMARY:a b"]

    def test_leading_continuation_is_dropped(self):
        assert unfold_lines(" orphan\r\nA:1") == ["A:1"]

    def test_trailing_whitespace_is_trimmed(self):
        assert unfold_lines("A:1  \r\nB:2\t") == ["A:1", "B:2"]

    def test_multiple_continuations(self):
        text = "FREEBUSY:20250102T140000Z/\r\n 20250102T150000Z,\r\n 20250103T140000Z/PT1H"

        assert unfold_lines(text) == [
            "FREEBUSY:20250102T140000Z/20250102T150000Z,20250103T140000Z/PT1H"
        ]


class TestParseContentLine:
    def test_name_and_value(self):
        line = parse_content_line("DTSTART:20251224T090000Z")

        assert line is not None
        assert line.name == "DTSTART"
        assert line.value == "20251224T090000Z"
        assert line.params.tzid is None

    def test_tzid_parameter(self):
        line = parse_content_line("DTSTART;TZID=America/New_York:20251224T090000")

        assert line is not None
        assert line.params.tzid == "America/New_York"
        assert line.value == "20251224T090000"

    def test_quoted_parameter_may_contain_separators(self):
        line = parse_content_line('DTSTART;TZID="Odd:Zone;Name":20251224T090000')

        assert line is not None
        assert line.params.tzid == "Odd:Zone;Name"
        assert line.value == "20251224T090000"

    def test_names_are_case_insensitive(self):
        line = parse_content_line("dtstart;value=date:20251224")

        assert line is not None
        assert line.name == "DTSTART"
        assert line.params.value_type is ValueType.DATE
        assert line.params.is_date_value

    def test_repeated_parameter_keeps_last_value(self):
        line = parse_content_line("DTSTART;TZID=Europe/London;TZID=Asia/Tokyo:20251224T090000")

        assert line is not None
        assert line.params.tzid == "Asia/Tokyo"

    def test_parameter_value_list_keeps_first_entry(self):
        line = parse_content_line("DTSTART;TZID=Europe/London,Asia/Tokyo:20251224T090000")

        assert line is not None
        assert line.params.tzid == "Europe/London"

    def test_fbtype_is_upper_cased(self):
        line = parse_content_line("FREEBUSY;FBTYPE=busy-tentative:20250102T140000Z/PT1H")

        assert line is not None
        assert line.params.fbtype == "BUSY-TENTATIVE"

    def test_unknown_parameters_are_recorded(self):
        line = parse_content_line("DTSTART;VALUE=RECUR;X-FOO=1:20251224")

        assert line is not None
        assert line.params.value_type is None
        assert line.params.unrecognized == ("VALUE", "X-FOO")

    def test_parameter_without_value_makes_line_unparseable(self):
        assert parse_content_line("DTSTART;BROKEN:20251224T090000Z") is None

    def test_colon_only_inside_quotes_is_not_a_separator(self):
        assert parse_content_line('DTSTART;TZID="America/New_York:x"') is None

    @pytest.mark.parametrize("text", ["NO SEPARATOR", ":20251224", "", "DTSTART;:20251224"])
    def test_lines_without_name_or_separator_return_none(self, text):
        assert parse_content_line(text) is None
