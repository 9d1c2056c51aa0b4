"""Centralized logging configuration using loguru."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"

# Remove default handler
logger.remove()

_console_handler_id = logger.add(
    sys.stderr,
    level="INFO",
    format=CONSOLE_FORMAT,
    colorize=True,
)
_file_handler_ids: list[int] = []


def configure_logging(
    level: str = "INFO",
    logs_dir: Optional[Union[str, Path]] = None,
) -> None:
    """Reconfigure console level and optionally add rotating file sinks.

    Safe to call more than once; previous sinks added here are replaced.

    Args:
        level: Console log level
        logs_dir: Directory for log files, or None to log to console only
    """
    global _console_handler_id

    logger.remove(_console_handler_id)
    _console_handler_id = logger.add(
        sys.stderr,
        level=level,
        format=CONSOLE_FORMAT,
        colorize=True,
    )

    while _file_handler_ids:
        logger.remove(_file_handler_ids.pop())

    if logs_dir is None:
        return

    logs_path = Path(logs_dir)
    logs_path.mkdir(parents=True, exist_ok=True)

    _file_handler_ids.append(
        logger.add(
            logs_path / "gosnow_{time}.log",
            rotation="10 MB",
            retention="10 days",
            level="DEBUG",
            format=FILE_FORMAT,
            enqueue=True,  # Thread-safe logging
        )
    )

    # Add error-specific log file
    _file_handler_ids.append(
        logger.add(
            logs_path / "errors_{time}.log",
            rotation="5 MB",
            retention="30 days",
            level="ERROR",
            format=FILE_FORMAT,
            enqueue=True,
        )
    )


def get_logger(name: Optional[str] = None):
    """Get a logger instance with the given name.

    Args:
        name: Module name for the logger (usually __name__)

    Returns:
        Configured logger instance
    """
    if name:
        return logger.bind(name=name)
    return logger


# Performance logging helper
def log_performance(operation: str, duration_ms: float, threshold_ms: float = 100.0) -> None:
    """Log performance metrics with warnings for slow operations.

    Args:
        operation: Description of the operation
        duration_ms: Duration in milliseconds
        threshold_ms: Threshold for warning (default: 100ms)
    """
    if duration_ms > threshold_ms:
        logger.warning(f"Slow operation: {operation} took {duration_ms:.2f}ms (threshold: {threshold_ms}ms)")
    else:
        logger.debug(f"Performance: {operation} took {duration_ms:.2f}ms")


# Export configured logger
__all__ = ["logger", "configure_logging", "get_logger", "log_performance"]
