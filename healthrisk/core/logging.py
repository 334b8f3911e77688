"""
HealthRisk Logging

loguru sinks for the CLI and the dashboard service
"""

import sys
from typing import Optional

from loguru import logger

from .config import AppSettings, get_config

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]}:{line} - {message}"

# (file name pattern, minimum level, retention); None level means the configured one
FILE_SINKS = (
    ("healthrisk_{time:YYYY-MM-DD}.log", None, "30 days"),
    ("error_{time:YYYY-MM-DD}.log", "ERROR", "90 days"),
)

_logging_initialized = False


def setup_logging(settings: Optional[AppSettings] = None) -> None:
    """Install the stderr sink and, with `log_to_file`, the rotated file sinks. Runs once."""
    global _logging_initialized

    if _logging_initialized:
        return

    settings = settings or get_config()

    logger.remove()
    logger.configure(extra={"name": "healthrisk"})
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=settings.log_level,
        colorize=True,
        diagnose=settings.debug,
    )

    if settings.log_to_file:
        settings.log_dir.mkdir(parents=True, exist_ok=True)
        for pattern, level, retention in FILE_SINKS:
            logger.add(
                settings.log_dir / pattern,
                format=FILE_FORMAT,
                level=level or settings.log_level,
                rotation="00:00",
                retention=retention,
                compression="zip",
                enqueue=True,
                diagnose=False,
            )

    _logging_initialized = True


def get_logger(name: str):
    """loguru logger with `name` bound, setting up sinks on first use"""
    if not _logging_initialized:
        setup_logging()
    return logger.bind(name=name)
