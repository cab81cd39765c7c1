"""
Logging setup.

Configures the loguru logger: a stderr sink plus an optional rotating
file sink.
"""

import sys

from loguru import logger

from hierarchy_ledger.config.settings import Settings, settings as default_settings


def setup_logging(
    level: str | None = None,
    log_file: str | None = None,
    settings: Settings | None = None,
) -> None:
    """
    Configure logger.

    Args:
        level: Minimum level (defaults to settings.log_level)
        log_file: Optional log file path (defaults to settings.log_file)
        settings: Settings override
    """
    settings = settings or default_settings
    level = level or settings.log_level
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
