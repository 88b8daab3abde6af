"""Tests for the exception hierarchy and failure policy."""

import pytest

from freebusy_lite.exceptions import (
    FAILURE_POLICY,
    ConfigError,
    FailureKind,
    FreeBusyError,
    InvalidTimeZoneError,
    MalformedValueError,
    MissingTimeZoneError,
    OversizedInputError,
    Recovery,
    recovery_for,
)

pytestmark = pytest.mark.unit


class TestExceptionHierarchy:
    """Test the exception hierarchy is properly structured."""

    def test_all_exceptions_inherit_from_base(self):
        for exc_class in (
            MalformedValueError,
            MissingTimeZoneError,
            InvalidTimeZoneError,
            OversizedInputError,
            ConfigError,
        ):
            assert issubclass(exc_class, FreeBusyError)

    def test_malformed_value_is_a_value_error(self):
        assert issubclass(MalformedValueError, ValueError)

    def test_message_is_preserved(self):
        error = MalformedValueError("Unsupported duration value")

        assert error.message == "Unsupported duration value"
        assert str(error) == "Unsupported duration value"

    def test_oversized_input_carries_sizes(self):
        error = OversizedInputError(2000, 1000)

        assert (error.size, error.limit) == (2000, 1000)

    def test_config_error_defaults_to_empty_field_lists(self):
        error = ConfigError("bad")

        assert error.missing == []
        assert error.invalid == []


class TestFailurePolicy:
    def test_every_kind_has_a_recovery(self):
        assert set(FAILURE_POLICY) == set(FailureKind)

    @pytest.mark.parametrize(
        "error,expected",
        [
            (MalformedValueError("x"), Recovery.DROP_ITEM),
            (MissingTimeZoneError("x"), Recovery.DROP_ITEM),
            (InvalidTimeZoneError("Bogus/Zone"), Recovery.ABORT_FEED),
            (InvalidTimeZoneError("Bogus/Zone", explicit=False), Recovery.FALLBACK_UTC),
            (OversizedInputError(10, 5), Recovery.ABORT_FEED),
        ],
    )
    def test_recovery_for(self, error, expected):
        assert recovery_for(error) is expected

    def test_error_without_kind_aborts(self):
        assert recovery_for(FreeBusyError("unclassified")) is Recovery.ABORT_FEED
        assert recovery_for(ConfigError("bad config")) is Recovery.ABORT_FEED

    def test_invalid_timezone_kind_follows_origin(self):
        assert InvalidTimeZoneError("X").kind is FailureKind.EXPLICIT_TIMEZONE_INVALID
        assert (
            InvalidTimeZoneError("X", explicit=False).kind
            is FailureKind.DEFAULT_TIMEZONE_INVALID
        )
