"""freebusy_lite.config_loader

Configuration for freebusy_lite.

- Loads from a YAML (PyYAML) or JSON file, or from FREEBUSY_* environment
  variables.
- Validates everything eagerly into a frozen pydantic model; failures are
  reported as a single ``ConfigError`` naming the missing and invalid fields.
"""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    ValidationError,
    field_validator,
    model_validator,
)

from .exceptions import ConfigError
from .lite_window import MAX_WINDOW_WEEKS
from .timezone_utils import is_valid_timezone

logger = logging.getLogger(__name__)

MAX_CACHE_TTL_SECONDS = 3600
MAX_UPSTREAM_BYTES = 10_000_000
DEFAULT_UPSTREAM_MAX_BYTES = 1_500_000

ENV_PREFIX = "FREEBUSY_"

_HH_MM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class WorkingHoursEntry(BaseModel):
    """Working hours for one ISO weekday (1 = Monday .. 7 = Sunday)."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    day_of_week: StrictInt = Field(..., ge=1, le=7, alias="dayOfWeek")
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def _check_clock_time(cls, value: str) -> str:
        if not _HH_MM.match(value):
            raise ValueError("must be HH:MM (24-hour)")
        return value

    @model_validator(mode="after")
    def _check_order(self) -> WorkingHoursEntry:
        # Zero-padded HH:MM strings order the same way as the times they name
        if self.start >= self.end:
            raise ValueError("start must be before end")
        return self


class WorkingHours(BaseModel):
    """Weekly working hours schedule; at most one entry per weekday."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    weekly: list[WorkingHoursEntry] = Field(..., min_length=1)

    @field_validator("weekly")
    @classmethod
    def _check_unique_days(cls, entries: list[WorkingHoursEntry]) -> list[WorkingHoursEntry]:
        days = [entry.day_of_week for entry in entries]
        if len(days) != len(set(days)):
            raise ValueError("each dayOfWeek may appear only once")
        return entries


class FreeBusyConfig(BaseModel):
    """Typed configuration for freebusy_lite.

    Fields:
        calendar_timezone: owner IANA timezone (required)
        window_weeks: reporting window length in weeks (1..104, larger values clamp)
        week_start_day: ISO weekday the owner's week starts on (1..7)
        working_hours: optional weekly working hours, passed through to responses
        cache_ttl_seconds: how long a parsed feed stays fresh (0..3600)
        upstream_max_bytes: byte budget for raw feed text (1..10,000,000)
        use_default_timezone: read floating/all-day values in calendar_timezone
        log_level: logging level name
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    calendar_timezone: str
    window_weeks: int = 4
    week_start_day: int = Field(default=1, ge=1, le=7)
    working_hours: Optional[WorkingHours] = None
    cache_ttl_seconds: int = Field(default=60, ge=0)
    upstream_max_bytes: int = Field(default=DEFAULT_UPSTREAM_MAX_BYTES, ge=1)
    use_default_timezone: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("calendar_timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        value = value.strip()
        if not is_valid_timezone(value):
            raise ValueError("unknown timezone")
        return value

    @field_validator("window_weeks")
    @classmethod
    def _clamp_window_weeks(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        if value > MAX_WINDOW_WEEKS:
            logger.warning("window_weeks %d above maximum; coercing to %d", value, MAX_WINDOW_WEEKS)
            return MAX_WINDOW_WEEKS
        return value

    @field_validator("cache_ttl_seconds")
    @classmethod
    def _clamp_cache_ttl(cls, value: int) -> int:
        if value > MAX_CACHE_TTL_SECONDS:
            logger.warning(
                "cache_ttl_seconds %d above maximum; coercing to %d", value, MAX_CACHE_TTL_SECONDS
            )
            return MAX_CACHE_TTL_SECONDS
        return value

    @field_validator("upstream_max_bytes")
    @classmethod
    def _clamp_upstream_max_bytes(cls, value: int) -> int:
        if value > MAX_UPSTREAM_BYTES:
            logger.warning(
                "upstream_max_bytes %d above maximum; coercing to %d", value, MAX_UPSTREAM_BYTES
            )
            return MAX_UPSTREAM_BYTES
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FreeBusyConfig:
        """Validate a plain mapping into a config.

        Raises:
            ConfigError: Listing missing and invalid field names
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise _config_error(e) from e


def _config_error(error: ValidationError) -> ConfigError:
    missing: list[str] = []
    invalid: list[str] = []
    for detail in error.errors():
        field = str(detail["loc"][0]) if detail["loc"] else "<root>"
        target = missing if detail["type"] == "missing" else invalid
        if field not in target:
            target.append(field)
    parts = []
    if missing:
        parts.append(f"missing {', '.join(missing)}")
    if invalid:
        parts.append(f"invalid {', '.join(invalid)}")
    return ConfigError("Configuration error: " + "; ".join(parts), missing=missing, invalid=invalid)


def _load_yaml_or_json(path: Path) -> Any:
    """Load a YAML or JSON document; ``.json`` files are parsed as JSON."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Config file {path.name} could not be read") from e
    try:
        if path.suffix.lower() == ".json":
            return json.loads(text)
        loaded = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Config file {path.name} could not be parsed") from e
    # safe_load returns None for empty files
    return {} if loaded is None else loaded


def load_config(
    path: str | Path, overrides: Optional[Mapping[str, Any]] = None
) -> FreeBusyConfig:
    """Load configuration from a YAML/JSON file.

    Values in ``overrides`` replace the file's values before validation.

    Raises:
        ConfigError: If the file is missing, unparseable, not a mapping, or
            fails validation
    """
    p = Path(path)
    logger.debug("Attempting to load config from %s", p)
    if not p.exists():
        raise ConfigError(f"Config file {p} not found")

    raw = _load_yaml_or_json(p)
    if not isinstance(raw, dict):
        raise ConfigError("Config file must contain a mapping at top level")

    cfg = FreeBusyConfig.from_mapping({**raw, **(overrides or {})})
    logger.info("Loaded configuration from %s", p)
    return cfg


def config_from_env(
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> FreeBusyConfig:
    """Build configuration from FREEBUSY_* environment variables.

    ``FREEBUSY_WORKING_HOURS_JSON`` holds the working hours document as JSON.
    Unset variables fall back to field defaults; ``overrides`` replace
    variable values before validation.

    Raises:
        ConfigError: If required variables are missing or any value is invalid
    """
    env = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    for field in (
        "calendar_timezone",
        "window_weeks",
        "week_start_day",
        "cache_ttl_seconds",
        "upstream_max_bytes",
        "use_default_timezone",
        "log_level",
    ):
        raw = env.get(ENV_PREFIX + field.upper())
        if raw is not None and raw.strip() != "":
            data[field] = raw.strip()

    working_hours_raw = env.get(ENV_PREFIX + "WORKING_HOURS_JSON")
    if working_hours_raw:
        try:
            data["working_hours"] = json.loads(working_hours_raw)
        except json.JSONDecodeError as e:
            raise ConfigError(
                "Configuration error: invalid working_hours", invalid=["working_hours"]
            ) from e

    data.update(overrides or {})
    return FreeBusyConfig.from_mapping(data)
