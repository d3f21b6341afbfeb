"""Core: config and constants.

Single place for settings and shared literals.
"""

from cache_hooks.core.config import Settings, get_settings
from cache_hooks.core.constants import (
    ALL_FIELDS,
    CACHE_KEY_SEP,
    COMPLETE_FIELD,
    COMPLETE_MARKER,
    DEFAULT_TTL_SECONDS,
)

__all__ = [
    "ALL_FIELDS",
    "CACHE_KEY_SEP",
    "COMPLETE_FIELD",
    "COMPLETE_MARKER",
    "DEFAULT_TTL_SECONDS",
    "Settings",
    "get_settings",
]
