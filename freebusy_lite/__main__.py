"""Command-line entry for freebusy_lite.

Reads a calendar feed from a file, computes the owner's busy blocks and
prints the JSON response to stdout. Configuration comes from ``--config`` or
FREEBUSY_* environment variables.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import NoReturn, Optional

from dateutil import parser as date_parser

from . import _init_logging
from .config_loader import FreeBusyConfig, config_from_env, load_config
from .exceptions import ConfigError, FreeBusyError
from .lite_logging import configure_lite_logging, make_warning_callback
from .pipeline import cached_free_busy, decode_feed, ensure_within_budget
from .serialization import build_response
from .timezone_utils import TimeProvider

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UPSTREAM_ERROR = 1
EXIT_MISCONFIGURED = 2


def _parse_now(value: str) -> datetime:
    try:
        parsed = date_parser.isoparse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid ISO 8601 timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for freebusy_lite CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="freebusy_lite",
        description="freebusy_lite - busy blocks from an iCalendar feed",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m freebusy_lite feed.ics --timezone America/New_York
  python -m freebusy_lite feed.ics --config freebusy.yaml --weeks 2
        """,
    )
    parser.add_argument("feed", metavar="FEED", help="Path to the calendar feed file")
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="YAML or JSON config file (default: FREEBUSY_* environment variables)",
    )
    parser.add_argument("--timezone", metavar="TZ", help="Owner timezone (overrides config)")
    parser.add_argument(
        "--weeks", type=int, metavar="N", help="Window length in weeks (overrides config)"
    )
    parser.add_argument(
        "--now",
        type=_parse_now,
        metavar="ISO",
        help="Current time as ISO 8601 (default: system clock)",
    )
    parser.add_argument(
        "--no-default-timezone",
        action="store_true",
        help="Read floating date-times as UTC instead of in the owner timezone",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def _load_config(args: argparse.Namespace) -> FreeBusyConfig:
    overrides: dict[str, object] = {}
    if args.timezone is not None:
        overrides["calendar_timezone"] = args.timezone
    if args.weeks is not None:
        overrides["window_weeks"] = args.weeks
    if args.no_default_timezone:
        overrides["use_default_timezone"] = False

    if args.config:
        return load_config(args.config, overrides)
    return config_from_env(overrides=overrides)


def _print_error(code: str) -> None:
    print(json.dumps({"error": code}))


def run(argv: Optional[list[str]] = None) -> int:
    """Run the CLI and return its exit code."""
    args = _create_parser().parse_args(argv)
    _init_logging("DEBUG" if args.debug else None)

    try:
        config = _load_config(args)
    except ConfigError as e:
        logger.error("%s", e.message)
        _print_error("misconfigured")
        return EXIT_MISCONFIGURED

    configure_lite_logging(debug_mode=args.debug, level_name=config.log_level)
    now = args.now or TimeProvider().now_utc()

    def load_text() -> str:
        raw = Path(args.feed).read_bytes()
        return decode_feed(ensure_within_budget(raw, config.upstream_max_bytes))

    try:
        result, _ = cached_free_busy(
            None,
            load_text,
            config.calendar_timezone,
            config.window_weeks,
            now,
            ttl_seconds=config.cache_ttl_seconds,
            warn=make_warning_callback(logger),
            use_default_timezone=config.use_default_timezone,
        )
    except OSError:
        logger.error("Could not read feed file %s", args.feed)
        _print_error("upstream_error")
        return EXIT_UPSTREAM_ERROR
    except FreeBusyError as e:
        logger.error("Feed processing failed: %s", type(e).__name__)
        _print_error("upstream_error")
        return EXIT_UPSTREAM_ERROR

    body = build_response(result, config, generated_at=now)
    print(json.dumps(body, indent=2))
    return EXIT_OK


def main() -> NoReturn:
    """Run the freebusy_lite CLI."""
    sys.exit(run())


if __name__ == "__main__":
    main()
