"""Logging setup for DocReview.

The package logger is configured once at application startup from
``Settings``: level, optional rotating file under ``log_dir`` and a console
handler. Module loggers (``docreview.services.documents`` and so on)
propagate to it.
"""

import logging
import logging.handlers
import os
from typing import Optional

from docreview.core.config import Settings, get_settings

LOGGER_NAME = "docreview"
LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _level_from(value: str) -> int:
    level = value.strip().upper()
    if level not in _VALID_LEVELS:
        raise ValueError(f"Invalid log level: {value}. Must be one of: {', '.join(_VALID_LEVELS)}")
    return getattr(logging, level)


def setup_logger(
    settings: Optional[Settings] = None,
    name: str = LOGGER_NAME,
    console_logging: bool = True,
) -> logging.Logger:
    """Configure the package logger from settings.

    Handlers installed by an earlier call are replaced, so calling this again
    with different settings (tests, reloads) reconfigures instead of stacking
    duplicate output.

    Args:
        settings: Application settings; defaults to ``get_settings()``
        name: Logger name
        console_logging: Attach a stderr handler

    Returns:
        The configured logger

    Raises:
        ValueError: ``settings.log_level`` is not a standard level name
    """
    settings = settings or get_settings()
    logger = logging.getLogger(name)
    logger.setLevel(_level_from(settings.log_level))

    for handler in list(logger.handlers):
        if getattr(handler, "_docreview", False):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = []

    if settings.log_to_file:
        os.makedirs(settings.log_dir, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            os.path.join(settings.log_dir, f"{name}.log"),
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
        ))

    if console_logging:
        handlers.append(logging.StreamHandler())

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._docreview = True
        logger.addHandler(handler)

    logger.debug(
        "Logging configured (level=%s, file=%s)",
        settings.log_level.upper(),
        settings.log_to_file and os.path.join(settings.log_dir, f"{name}.log"),
    )
    return logger
