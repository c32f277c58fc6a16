"""
Logging configuration with Rich console output.

Usage:
    from serieswatch.utils.logging import configure_logging

    configure_logging(level="debug", file_path="logs/serieswatch.log")

    logger = logging.getLogger(__name__)
    logger.info("[bold cyan]Starting sweep...[/bold cyan]")
"""

import logging
import sys
from pathlib import Path
from typing import Any, Literal

from rich.logging import RichHandler
from rich.traceback import install as install_rich_traceback

from .ui import console as rich_console

LogLevel = Literal["debug", "info", "warning", "error", "critical", "notset"]

LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "notset": logging.NOTSET,
}

PACKAGE_LOGGER_NAME = "serieswatch"

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Third-party loggers that log every request at INFO
HTTP_LOGGERS = ("httpx", "httpcore")


def get_level(level: LogLevel | str | int) -> int:
    """Convert string level to logging constant."""
    if isinstance(level, int):
        return level
    return LEVEL_MAP.get(level.lower(), logging.INFO)


def silence_http_loggers(level: int = logging.WARNING) -> None:
    """Raise the level of the HTTP client loggers."""
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(level)


def configure_logging(
    level: LogLevel | str | int = "info",
    file_path: str | Path | None = None,
    file_level: LogLevel | str | int | None = None,
    use_rich: bool = True,
    rich_tracebacks: bool = False,
    show_path: bool = False,
) -> logging.Logger:
    """
    Configure logging for the serieswatch package.

    Console output goes through a RichHandler (markup enabled) unless
    use_rich is False; an optional file handler always uses plain formatting.

    Args:
        level: Console log level
        file_path: Optional file path for file logging
        file_level: Log level for file (defaults to level)
        use_rich: Use RichHandler for console output
        rich_tracebacks: Install Rich's global traceback handler
        show_path: Show file path in console logs

    Returns:
        The package logger
    """
    log_level = get_level(level)
    file_log_level = get_level(file_level) if file_level else log_level

    if use_rich and rich_tracebacks:
        install_rich_traceback(console=rich_console, show_locals=False, word_wrap=True)

    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    logger.setLevel(min(log_level, file_log_level) if file_path else log_level)
    logger.handlers.clear()

    console_handler: logging.Handler
    if use_rich:
        console_handler = RichHandler(
            level=log_level,
            console=rich_console,
            show_time=True,
            show_path=show_path,
            rich_tracebacks=rich_tracebacks,
            markup=True,
            log_time_format="[%X]",
            keywords=["ASIN", "sweep", "series", "release", "cache"],
        )
    else:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(console_handler)

    if file_path:
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(file_path, encoding="utf-8")
        file_handler.setLevel(file_log_level)
        file_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    if log_level > logging.DEBUG:
        silence_http_loggers()

    return logger


# =============================================================================
# Markup helpers
# =============================================================================


def _resolve(logger: logging.Logger | None, logger_name: str | None) -> logging.Logger:
    if logger is not None:
        return logger
    return logging.getLogger(logger_name or PACKAGE_LOGGER_NAME)


def log_success(
    message: str,
    *args: Any,
    logger_name: str | None = None,
    logger: logging.Logger | None = None,
) -> None:
    """Log a success message with green checkmark."""
    _resolve(logger, logger_name).info("[green]✓[/green] " + message, *args)
