"""Wire-format rendering of free/busy results - freebusy_lite.

Instants are rendered as UTC ISO 8601 strings with millisecond precision and
a ``Z`` marker. Response models use camelCase aliases for the JSON body.
"""

from collections.abc import Iterable
from datetime import UTC, datetime, tzinfo
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from . import __version__
from .config_loader import FreeBusyConfig
from .lite_models import AbsoluteInterval, FreeBusyResult


def format_utc_iso(instant: datetime) -> str:
    """Format an instant as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.") + f"{instant.microsecond // 1000:03d}Z"


def format_iso_in_timezone(instant: datetime, zone: tzinfo) -> str:
    """Format an instant as local time in ``zone`` with a ``±HH:MM`` offset."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(zone).isoformat(timespec="milliseconds")


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class BusyBlockResponse(_WireModel):
    start: str
    end: str
    kind: str


class WindowResponse(_WireModel):
    start_date: str
    end_date_inclusive: str
    start_utc: str
    end_utc_exclusive: str


class CalendarResponse(_WireModel):
    time_zone: str
    week_start_day: int


class WorkingHoursEntryResponse(_WireModel):
    day_of_week: int
    start: str
    end: str


class WorkingHoursResponse(_WireModel):
    weekly: list[WorkingHoursEntryResponse]


class FreeBusyResponse(_WireModel):
    version: str
    generated_at_utc: str
    calendar: CalendarResponse
    window: WindowResponse
    working_hours: Optional[WorkingHoursResponse] = None
    busy: list[BusyBlockResponse]


def _busy_blocks(intervals: Iterable[AbsoluteInterval]) -> list[BusyBlockResponse]:
    return [
        BusyBlockResponse(
            start=format_utc_iso(interval.start),
            end=format_utc_iso(interval.end),
            kind=interval.kind.value,
        )
        for interval in intervals
    ]


def to_response_busy(intervals: Iterable[AbsoluteInterval]) -> list[dict[str, str]]:
    """Render busy intervals as ``{"start", "end", "kind"}`` records."""
    return [block.model_dump(by_alias=True) for block in _busy_blocks(intervals)]


def build_response(
    result: FreeBusyResult,
    config: FreeBusyConfig,
    generated_at: datetime,
) -> dict:
    """Build the JSON body for a free/busy result.

    Args:
        result: Window and merged busy intervals
        config: Configuration the result was computed with
        generated_at: Time the response is generated

    Returns:
        JSON-serializable dict with camelCase keys
    """
    working_hours = None
    if config.working_hours is not None:
        working_hours = WorkingHoursResponse(
            weekly=[
                WorkingHoursEntryResponse(
                    day_of_week=entry.day_of_week, start=entry.start, end=entry.end
                )
                for entry in config.working_hours.weekly
            ]
        )

    window = result.window
    response = FreeBusyResponse(
        version=__version__,
        generated_at_utc=format_utc_iso(generated_at),
        calendar=CalendarResponse(
            time_zone=config.calendar_timezone,
            week_start_day=config.week_start_day,
        ),
        window=WindowResponse(
            start_date=window.start_date_local.isoformat(),
            end_date_inclusive=window.end_date_local_inclusive.isoformat(),
            start_utc=format_utc_iso(window.start_instant),
            end_utc_exclusive=format_utc_iso(window.end_instant_exclusive),
        ),
        working_hours=working_hours,
        busy=_busy_blocks(result.busy),
    )
    return response.model_dump(by_alias=True, exclude_none=True)
