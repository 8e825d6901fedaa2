"""
Logging configuration.

Configures loguru sinks for the application.
"""

import sys

from loguru import logger

from orderflow.config.settings import settings


def setup_logging(level: str | None = None, log_file: str | None = None) -> None:
    """Configure stderr sink and optional rotating file sink."""
    level = (level or settings.log_level).upper()
    log_file = log_file or settings.log_file

    logger.remove()
    logger.add(sys.stderr, level=level)

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            level=level,
            encoding="utf-8",
        )

    logger.info(
        "Logging configured",
        extra={"level": level, "log_file": log_file},
    )
