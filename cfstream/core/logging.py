"""Logging helpers for cfstream."""

import logging
from typing import Iterable

PACKAGE_LOGGER = 'cfstream'

LOGGER_NAMES = (
    'cfstream',
    'cfstream.api',
    'cfstream.client',
    'cfstream.settings',
    'cfstream.upload.coordinator',
    'cfstream.upload.file',
    'cfstream.upload.multipart',
    'cfstream.upload.session',
    'cfstream.upload.progress',
)

DEBUG_FORMAT = '%(asctime)s %(name)s %(levelname)s: %(message)s'


def get_logger(name: str) -> logging.Logger:
    """Return a package logger.

    Records propagate to the root logger, so a plain basicConfig() is enough
    to see them. While the root logger has no handlers the level defaults
    to WARNING.

    Args:
        name: Logger name, e.g. 'cfstream.upload.session'; names outside
            the package are nested under it

    Returns:
        Logger instance
    """
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + '.'):
        name = f"{PACKAGE_LOGGER}.{name}"

    logger = logging.getLogger(name)
    logger.propagate = True

    if not logging.getLogger().handlers:
        logger.setLevel(logging.WARNING)

    return logger


def set_level(level: int, names: Iterable[str] = LOGGER_NAMES) -> None:
    """Set the level of every package logger."""
    for name in names:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.propagate = True


def enable_debug_logging() -> None:
    """Send package debug output to stderr (CLI --verbose)."""
    logging.basicConfig(level=logging.DEBUG, format=DEBUG_FORMAT)
    set_level(logging.DEBUG)
