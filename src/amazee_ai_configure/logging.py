"""
Logging Configuration for amazee-ai-configure

Provides structured logging with:
- File logging to data_dir/logs/
- Optional console logging for debugging
- Debug mode for development
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from amazee_ai_configure.config import get_data_dir

ROOT_LOGGER_NAME = "amazee_ai_configure"

# Module loggers
_loggers: dict[str, logging.Logger] = {}


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger below the package root logger.

    Usage:
        from amazee_ai_configure.logging import get_logger
        logger = get_logger("cli")
        logger.error("Failed to save configuration")
    """
    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
    _loggers[name] = logger
    return logger


def get_log_path() -> Path:
    """Path of today's log file."""
    date_str = datetime.now().strftime("%Y-%m-%d")
    return get_data_dir() / "logs" / f"configure_{date_str}.log"


def setup_logging(
    level: str = "INFO",
    log_file: bool = True,
    console: bool = False,
    debug_mode: bool = False,
) -> None:
    """
    Configure logging for the application.

    The wizard talks to the user through rich, so console logging is off
    unless explicitly requested.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Whether to log to file
        console: Whether to log to the console
        debug_mode: Enable verbose debug logging (implies console)
    """
    if debug_mode:
        level = "DEBUG"
        console = True

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, level.upper()))

    # Clear existing handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    if debug_mode:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
            datefmt="%H:%M:%S"
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(message)s",
            datefmt="%H:%M:%S"
        )

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, level.upper()))
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = get_log_path()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)  # Always log everything to file
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        root_logger.addHandler(file_handler)

    root_logger.debug(f"Logging initialized (level={level}, debug={debug_mode})")
