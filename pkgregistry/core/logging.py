# pkgregistry/core/logging.py
import os
import sys

from loguru import logger

from .config import Settings


def configure_logging(settings: Settings) -> None:
    """Route loguru output to stderr and, when LOG_FILE is set, a rotating file."""
    logger.remove()
    logger.add(sys.stderr, level=settings.LOG_LEVEL.upper())
    if settings.LOG_FILE:
        log_dir = os.path.dirname(os.path.abspath(settings.LOG_FILE))
        os.makedirs(log_dir, exist_ok=True)
        logger.add(
            settings.LOG_FILE,
            level=settings.LOG_LEVEL.upper(),
            rotation="10 MB",
            retention="10 days",
        )
