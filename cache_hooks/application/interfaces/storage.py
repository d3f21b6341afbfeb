"""Storage capability protocol (port) for cache backends.

Every key passed in is already namespaced by the controller. A `fields`
argument is either an explicit list of field ids or "*" for all fields.
Implementations may raise freely; the controller converts failures into
misses. Programmer errors (CacheProgrammingError) are the exception and
propagate to the caller.
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping, Sequence
from typing import Any, Protocol, TypeVar

from cache_hooks.domain.value_objects import AllFields, IncrementResult, Key

T = TypeVar("T")

MaybeAwaitable = T | Awaitable[T]


class IStorageClient(Protocol):
    """Protocol for key and hash-field storage backends (DIP)."""

    name: str

    async def exists_key(self, key: str) -> bool:
        """Return True if a scalar value is stored under key."""
        ...

    async def exists_hash_fields(
        self, key: str, fields: Sequence[Key] | AllFields
    ) -> dict[str, bool]:
        """Return presence per field; for "*" only the present fields are listed."""
        ...

    async def read_key(self, key: str) -> Any | None:
        """Return the stored scalar value or None."""
        ...

    async def read_hash_fields(
        self, key: str, fields: Sequence[Key] | AllFields
    ) -> dict[str, Any]:
        """Return the present fields of the hash; missing fields are omitted."""
        ...

    async def write_key(
        self, key: str, value: MaybeAwaitable[Any], ttl: float
    ) -> None:
        """Store value (or the result of an awaitable) and reset expiry. ttl <= 0 never expires."""
        ...

    async def write_hash_fields(
        self,
        key: str,
        value: MaybeAwaitable[Mapping[Key, MaybeAwaitable[Any]]],
        ttl: float,
    ) -> None:
        """Set the given fields of the hash and reset its expiry."""
        ...

    async def remove_key(self, key: str) -> None:
        """Delete a scalar key."""
        ...

    async def remove_hash_fields(
        self, key: str, fields: Sequence[Key] | AllFields
    ) -> None:
        """Delete the named fields, or the whole hash for "*"."""
        ...

    async def increment_key(
        self, key: str, incr_by: int, max_limit: int, ttl: float
    ) -> IncrementResult:
        """Add incr_by to the counter unless the result would exceed max_limit."""
        ...

    async def increment_hash_field(
        self, key: str, field: Key, incr_by: int, max_limit: int, ttl: float
    ) -> IncrementResult:
        """Bounded increment of a single hash field."""
        ...

    async def dispose(self) -> None:
        """Release timers, connections, and stored data."""
        ...
