"""
StateMigrator - schema-versioned upgrades for persisted resource state.

This module owns the package-wide Loguru configuration. Logging is
initialised once on import (console sink only) unless running under pytest,
where tests configure sinks explicitly through ``configure_test_logging``.
"""

__version__ = "0.1.0"

import os
import sys
import warnings
from typing import Any, Dict, List, Optional, TextIO

from loguru import logger


class LoggingConfigError(Exception):
    """Exception raised when logging configuration fails validation or setup."""
    pass


class LoggerState:
    """Tracks which sinks this package added so they can be removed again."""

    def __init__(self):
        self._initialized = False
        self._test_mode = False
        self._sink_ids: List[int] = []

    def is_initialized(self) -> bool:
        return self._initialized

    def is_test_mode(self) -> bool:
        return self._test_mode

    def mark_initialized(self, test_mode: bool = False):
        self._initialized = True
        self._test_mode = test_mode

    def add_sink_id(self, sink_id: int):
        self._sink_ids.append(sink_id)

    @property
    def sink_ids(self) -> List[int]:
        return list(self._sink_ids)

    def reset(self):
        self._initialized = False
        self._test_mode = False
        self._sink_ids.clear()


_logger_state = LoggerState()

VALID_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")

DEFAULT_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{module}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def validate_log_level(level: str) -> str:
    """
    Validate and normalise a Loguru level name.

    Args:
        level: Log level string to validate

    Returns:
        Upper-cased log level string

    Raises:
        LoggingConfigError: If log level is invalid
    """
    if not isinstance(level, str):
        raise LoggingConfigError(f"Log level must be a string, got {type(level).__name__}")

    level_upper = level.strip().upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise LoggingConfigError(
            f"Invalid log level '{level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )
    return level_upper


def configure_console_logging(
    level: str = "INFO",
    format_template: Optional[str] = None,
    colorize: bool = True,
    destination: TextIO = sys.stderr
) -> int:
    """
    Add a console sink.

    Args:
        level: Log level for console output
        format_template: Custom format template (uses default if None)
        colorize: Enable colored console output
        destination: Console destination (default: sys.stderr)

    Returns:
        Sink ID for tracking and cleanup

    Raises:
        LoggingConfigError: If configuration fails
    """
    validated_level = validate_log_level(level)
    try:
        sink_id = logger.add(
            destination,
            level=validated_level,
            format=format_template or DEFAULT_CONSOLE_FORMAT,
            colorize=colorize
        )
    except (TypeError, ValueError) as e:
        raise LoggingConfigError(f"Failed to configure console logging: {e}") from e

    _logger_state.add_sink_id(sink_id)
    return sink_id


def configure_test_logging(
    console_level: str = "DEBUG",
    console_destination: Optional[TextIO] = None,
) -> Dict[str, int]:
    """
    Configure logging for test scenarios: removes every sink and adds one
    uncoloured console sink.

    Returns:
        Dictionary mapping sink types to sink IDs
    """
    reset_logging()

    sink_ids = {
        'console': configure_console_logging(
            level=console_level,
            destination=console_destination if console_destination is not None else sys.stderr,
            colorize=False,
        )
    }

    _logger_state.mark_initialized(test_mode=True)
    return sink_ids


def reset_logging():
    """Remove every Loguru sink and forget the tracked state."""
    logger.remove()
    _logger_state.reset()


def initialize_logging(settings: Optional[Any] = None) -> Dict[str, int]:
    """
    Initialise console logging from a ``MigratorSettings`` instance.

    Args:
        settings: Settings object; defaults to ``MigratorSettings.from_env()``

    Returns:
        Dictionary mapping sink types to sink IDs

    Raises:
        LoggingConfigError: If initialisation fails
    """
    if settings is None:
        from statemigrator.config import MigratorSettings
        settings = MigratorSettings.from_env()

    logger.remove()
    _logger_state.reset()

    sink_ids = {
        'console': configure_console_logging(
            level=settings.log_level,
            colorize=settings.colorize_logs,
        )
    }

    _logger_state.mark_initialized(test_mode=False)
    logger.debug("--- StateMigrator Logger Initialized ---")
    return sink_ids


def get_logger_state() -> LoggerState:
    """Get current logger state for test inspection."""
    return _logger_state


def is_logging_initialized() -> bool:
    return _logger_state.is_initialized()


def _is_pytest_running() -> bool:
    return "pytest" in sys.modules or "PYTEST_CURRENT_TEST" in os.environ


def _auto_initialize_logging():
    """Initialise logging on import unless running under pytest."""
    if _logger_state.is_initialized() or _is_pytest_running():
        return

    try:
        initialize_logging()
    except (LoggingConfigError, ValueError) as e:
        # Settings from the environment were unusable; keep a plain stderr sink
        warnings.warn(f"Failed to initialize logging: {e}. Using basic stderr logging.")
        logger.remove()
        _logger_state.add_sink_id(logger.add(sys.stderr, level="INFO"))
        _logger_state.mark_initialized(test_mode=False)


_auto_initialize_logging()


__all__ = [
    "__version__",
    "logger",
    "LoggingConfigError",
    "LoggerState",
    "VALID_LOG_LEVELS",
    "validate_log_level",
    "configure_console_logging",
    "configure_test_logging",
    "reset_logging",
    "initialize_logging",
    "get_logger_state",
    "is_logging_initialized",
]
