"""Exception hierarchy and failure policy for free/busy feed processing.

Every failure raised while parsing a feed maps to a ``FailureKind``. What the
parser does about it is looked up in ``FAILURE_POLICY`` rather than decided
at each call site: a malformed period or event only shrinks the output, while
an explicitly named but unknown timezone fails the whole feed.
"""

from enum import Enum
from typing import Optional


class FailureKind(str, Enum):
    """Classification of feed processing failures."""

    MALFORMED_VALUE = "malformed_value"
    MISSING_TIMEZONE = "missing_timezone"
    EXPLICIT_TIMEZONE_INVALID = "explicit_timezone_invalid"
    DEFAULT_TIMEZONE_INVALID = "default_timezone_invalid"
    OVERSIZED_INPUT = "oversized_input"


class Recovery(str, Enum):
    """What the parser does when a failure of a given kind occurs."""

    DROP_ITEM = "drop_item"
    ABORT_FEED = "abort_feed"
    FALLBACK_UTC = "fallback_utc"


FAILURE_POLICY: dict[FailureKind, Recovery] = {
    FailureKind.MALFORMED_VALUE: Recovery.DROP_ITEM,
    FailureKind.MISSING_TIMEZONE: Recovery.DROP_ITEM,
    FailureKind.EXPLICIT_TIMEZONE_INVALID: Recovery.ABORT_FEED,
    FailureKind.DEFAULT_TIMEZONE_INVALID: Recovery.FALLBACK_UTC,
    FailureKind.OVERSIZED_INPUT: Recovery.ABORT_FEED,
}


class FreeBusyError(Exception):
    """Base exception for all free/busy processing errors."""

    kind: Optional[FailureKind] = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedValueError(FreeBusyError, ValueError):
    """A single date, date-time, offset or duration value could not be parsed."""

    kind = FailureKind.MALFORMED_VALUE


class MissingTimeZoneError(FreeBusyError):
    """An all-day value needs a timezone but neither TZID nor a default is available."""

    kind = FailureKind.MISSING_TIMEZONE


class InvalidTimeZoneError(FreeBusyError):
    """A timezone identifier is not known to the timezone database.

    ``explicit`` is True when the identifier came from a TZID parameter in the
    feed and False when it is the owner/default timezone.
    """

    def __init__(self, timezone_name: str, explicit: bool = True):
        super().__init__(f"Unknown timezone: {timezone_name!r}")
        self.timezone_name = timezone_name
        self.explicit = explicit

    @property
    def kind(self) -> FailureKind:  # type: ignore[override]
        if self.explicit:
            return FailureKind.EXPLICIT_TIMEZONE_INVALID
        return FailureKind.DEFAULT_TIMEZONE_INVALID


class OversizedInputError(FreeBusyError):
    """Raw feed exceeds the configured byte budget."""

    kind = FailureKind.OVERSIZED_INPUT

    def __init__(self, size: int, limit: int):
        super().__init__(f"Feed is {size} bytes, limit is {limit}")
        self.size = size
        self.limit = limit


class ConfigError(FreeBusyError):
    """Configuration is missing required fields or has invalid values.

    Only field names are reported, never the offending values, so the error
    can be logged without leaking secrets.
    """

    def __init__(
        self,
        message: str,
        missing: Optional[list[str]] = None,
        invalid: Optional[list[str]] = None,
    ):
        super().__init__(message)
        self.missing = missing or []
        self.invalid = invalid or []


def recovery_for(error: FreeBusyError) -> Recovery:
    """Look up the recovery action for a raised error.

    Errors without a kind are treated as fatal.
    """
    if error.kind is None:
        return Recovery.ABORT_FEED
    return FAILURE_POLICY[error.kind]
