"""Cache key builders. Single place for namespaced key format (DRY).

A key is `prefix + separator + key`; an empty or missing key addresses the
prefix itself. Components are not escaped, so a component containing the
separator produces the same key as the equivalent split prefix.
"""

from collections.abc import Sequence

from cache_hooks.core.constants import ALL_FIELDS
from cache_hooks.domain.value_objects import AllFields, Key


def namespaced_key(prefix: str, separator: str, key: Key | None = None) -> str:
    """Return the backend key for `key` under `prefix`.

    Args:
        prefix: Controller prefix ("" at the root).
        separator: Delimiter between prefix and key.
        key: Entity key; None or "" returns the prefix.

    Returns:
        Namespaced key string.
    """
    if key is None or key == "":
        return prefix
    if not prefix:
        return str(key)
    return f"{prefix}{separator}{key}"


def join_prefix(prefix: str, separator: str, parts: Sequence[Key]) -> str:
    """Extend a prefix with additional components."""
    for part in parts:
        prefix = namespaced_key(prefix, separator, part)
    return prefix


def field_names(fields: Sequence[Key] | AllFields) -> list[str] | AllFields:
    """Normalize hash field ids to the strings stored in the backend."""
    if fields == ALL_FIELDS:
        return ALL_FIELDS
    return [str(f) for f in fields]
