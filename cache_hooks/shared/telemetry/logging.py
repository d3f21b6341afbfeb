"""Logging for cache-hooks.

Modules log through get_logger(__name__), so every record lands under the
"cache_hooks" logger. setup_logging() tunes that subtree only and leaves
the host application's root configuration alone.
"""

import logging
import sys

from cache_hooks.core.config import Settings, get_settings

PACKAGE_LOGGER = "cache_hooks"
_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(settings: Settings | None = None) -> logging.Logger:
    """Set the package log level from settings.

    Level is DEBUG when settings.debug is True, otherwise INFO (so the
    per-call lines of a controller with log=True are emitted). A stdout
    handler is attached only when no handler exists anywhere up the
    hierarchy; otherwise records propagate to the host's handlers.

    Returns:
        The "cache_hooks" logger.
    """
    settings = settings or get_settings()
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)
    if not logger.hasHandlers():
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
