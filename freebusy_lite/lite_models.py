"""Data models for free/busy feed processing - freebusy_lite."""

from datetime import UTC, date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class IntervalKind(str, Enum):
    """Granularity of a busy interval."""

    TIMED = "time"
    ALL_DAY = "allDay"


class ValueType(str, Enum):
    """Recognized VALUE= parameter types for date properties."""

    DATE = "DATE"
    DATE_TIME = "DATE-TIME"
    PERIOD = "PERIOD"


def _require_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        raise ValueError("instant must be timezone-aware")
    return value.astimezone(UTC)


class AbsoluteInterval(BaseModel):
    """A busy interval between two absolute UTC instants."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    kind: IntervalKind = IntervalKind.TIMED

    @field_validator("start", "end")
    @classmethod
    def _normalize_instant(cls, value: datetime) -> datetime:
        return _require_utc(value)

    @model_validator(mode="after")
    def _check_positive_length(self) -> "AbsoluteInterval":
        if self.end <= self.start:
            raise ValueError("interval end must be after start")
        return self

    @property
    def is_all_day(self) -> bool:
        """True when the interval came from (or was merged with) an all-day event."""
        return self.kind == IntervalKind.ALL_DAY


class ZonedCalendarDate(BaseModel):
    """A civil calendar date, independent of any timezone."""

    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)
    day: int = Field(..., ge=1, le=31)

    @model_validator(mode="after")
    def _check_real_date(self) -> "ZonedCalendarDate":
        # Raises ValueError for e.g. February 30th
        date(self.year, self.month, self.day)
        return self

    @classmethod
    def from_date(cls, value: date) -> "ZonedCalendarDate":
        return cls(year=value.year, month=value.month, day=value.day)

    def to_date(self) -> date:
        return date(self.year, self.month, self.day)

    def isoformat(self) -> str:
        """Format as YYYY-MM-DD."""
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


class ReportingWindow(BaseModel):
    """Forward-looking reporting window in owner-local days and UTC instants.

    The instant range is half-open: ``start_instant`` is included,
    ``end_instant_exclusive`` is not.
    """

    model_config = ConfigDict(frozen=True)

    start_date_local: ZonedCalendarDate
    end_date_local_inclusive: ZonedCalendarDate
    start_instant: datetime
    end_instant_exclusive: datetime

    @field_validator("start_instant", "end_instant_exclusive")
    @classmethod
    def _normalize_instant(cls, value: datetime) -> datetime:
        return _require_utc(value)

    @model_validator(mode="after")
    def _check_ordering(self) -> "ReportingWindow":
        if self.start_instant >= self.end_instant_exclusive:
            raise ValueError("window start must be before window end")
        if self.start_date_local.to_date() > self.end_date_local_inclusive.to_date():
            raise ValueError("window start date must not be after end date")
        return self

    @property
    def day_count(self) -> int:
        """Number of owner-local calendar days covered by the window."""
        delta = self.end_date_local_inclusive.to_date() - self.start_date_local.to_date()
        return delta.days + 1


class PropertyParams(BaseModel):
    """Parameters of a content line, reduced to the ones the parser acts on.

    Built once from the raw ``;NAME=VALUE`` list by ``from_pairs``; unknown
    parameter names are kept only for diagnostics.
    """

    model_config = ConfigDict(frozen=True)

    tzid: Optional[str] = None
    value_type: Optional[ValueType] = None
    fbtype: Optional[str] = None
    unrecognized: tuple[str, ...] = ()

    @classmethod
    def from_pairs(cls, pairs: list[tuple[str, str]]) -> "PropertyParams":
        """Build params from (NAME, value) pairs, names already upper-cased.

        A repeated parameter keeps its first value. A VALUE= type this parser
        does not know is recorded as unrecognized.
        """
        tzid: Optional[str] = None
        value_type: Optional[ValueType] = None
        fbtype: Optional[str] = None
        unrecognized: list[str] = []

        for name, raw_value in pairs:
            value = raw_value.strip()
            if name == "TZID":
                if tzid is None and value:
                    tzid = value
            elif name == "VALUE":
                if value_type is None:
                    try:
                        value_type = ValueType(value.upper())
                    except ValueError:
                        unrecognized.append(name)
            elif name == "FBTYPE":
                if fbtype is None:
                    fbtype = value.upper()
            else:
                unrecognized.append(name)

        return cls(
            tzid=tzid,
            value_type=value_type,
            fbtype=fbtype,
            unrecognized=tuple(unrecognized),
        )

    @property
    def is_date_value(self) -> bool:
        return self.value_type == ValueType.DATE


class ContentLine(BaseModel):
    """A logical line split into property name, parameters and value."""

    model_config = ConfigDict(frozen=True)

    name: str
    params: PropertyParams = Field(default_factory=PropertyParams)
    value: str = ""


class FreeBusyResult(BaseModel):
    """Busy intervals for a feed together with the window they were clipped to."""

    model_config = ConfigDict(frozen=True)

    window: ReportingWindow
    busy: tuple[AbsoluteInterval, ...] = ()
