"""Logging setup for cdpctl."""

import logging

from cdpctl.config import CONFIG

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str | int | None = None) -> logging.Logger:
    """Configure the root handler and the cdpctl loggers.

    Args:
        level: Level for the ``cdpctl`` logger. Defaults to CDPCTL_LOGGING_LEVEL.
            Protocol traffic (``cdpctl.connection``) follows CDP_LOGGING_LEVEL
            unless ``level`` is DEBUG.

    Returns:
        The ``cdpctl`` package logger.
    """
    if level is None:
        level = CONFIG.LOGGING_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT)

    package_logger = logging.getLogger('cdpctl')
    package_logger.setLevel(level)

    cdp_level = logging.DEBUG if level <= logging.DEBUG else CONFIG.CDP_LOGGING_LEVEL
    logging.getLogger('cdpctl.connection').setLevel(cdp_level)

    # Suppress noisy logs
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('websockets').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)

    return package_logger
