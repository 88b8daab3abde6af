"""
Central logging configuration for freebusy_lite.

Keeps third-party libraries quiet, lets debug logging be switched on from the
environment, and sanitizes diagnostic messages so feed content never reaches
the logs verbatim.
"""

import logging
import os
import re
from typing import Any, Callable, Optional

MAX_LOG_MESSAGE_LENGTH = 200

_CONTROL_CHARS = re.compile(r"[\r\n\t\0]")

WarningCallback = Callable[[str], None]


def sanitize_log_message(value: Any, max_length: int = MAX_LOG_MESSAGE_LENGTH) -> str:
    """Make a diagnostic string safe to log.

    Control characters become spaces and the result is truncated to
    ``max_length`` characters. Non-string input is replaced by a marker.
    """
    if not isinstance(value, str):
        return "<non-string>"
    return _CONTROL_CHARS.sub(" ", value)[:max_length]


def make_warning_callback(logger: logging.Logger) -> WarningCallback:
    """Return a warning callback that sanitizes messages and logs them at WARNING."""

    def warn(message: str) -> None:
        logger.warning("[freebusy] parse warning: %s", sanitize_log_message(message))

    return warn


def configure_lite_logging(
    debug_mode: bool = False,
    force_debug: Optional[bool] = None,
    level_name: Optional[str] = None,
) -> None:
    """
    Configure logging levels for freebusy_lite.

    Args:
        debug_mode: Whether to enable debug logging for freebusy_lite modules
        force_debug: Override debug mode setting (None to use env var detection)
        level_name: Base level name when debug is off (defaults to INFO)

    Environment Variables:
        FREEBUSY_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        FREEBUSY_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("FREEBUSY_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("FREEBUSY_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    base_level = logging.INFO
    if level_name and level_name.upper() in ("DEBUG", "INFO", "WARNING", "ERROR"):
        base_level = getattr(logging, level_name.upper())
    root_level = logging.DEBUG if final_debug else base_level
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] %(levelname)s - %(name)s - %(message)s")
        )
        root_logger.addHandler(handler)

    logger_config: dict[str, int] = {
        "dateutil": logging.WARNING,
        "yaml": logging.WARNING,
    }

    package_level = logging.DEBUG if final_debug else root_level
    for module in (
        "freebusy_lite",
        "freebusy_lite.lite_parser",
        "freebusy_lite.lite_datetime_utils",
        "freebusy_lite.pipeline",
    ):
        logger_config[module] = package_level

    for logger_name, level in logger_config.items():
        logging.getLogger(logger_name).setLevel(level)

    if final_debug:
        root_logger.info("Debug logging enabled for freebusy_lite modules")
    else:
        root_logger.debug("Production logging configuration applied")
    root_logger.debug("Logger levels: %s", get_logging_status())


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in ("freebusy_lite", "freebusy_lite.lite_parser", "dateutil"):
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
