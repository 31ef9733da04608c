"""
Logging setup.

Configures loguru sinks: stderr for the console and a rotated file.
"""

import sys

from loguru import logger

from app.config.settings import settings


def setup_logging(service_name: str = "staking", log_file: str | None = None) -> None:
    """
    Configure logger with file rotation.

    Args:
        service_name: Name logged on startup
        log_file: File sink path, defaults to settings.log_file
    """
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    logger.add(
        log_file or settings.log_file,
        rotation="1 day",
        retention="7 days",
        level=settings.log_level,
        encoding="utf-8",
    )

    logger.info(f"Starting {service_name}...")
