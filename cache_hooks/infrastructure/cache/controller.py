"""Cache controller: namespacing, access-mode gating, and failure isolation.

Wraps an IStorageClient. Every operation namespaces its key with the
controller prefix, checks the access mode, and converts backend failures
into the same miss value a gated call returns. Builders (add_prefix,
set_mode, set_ttl, set_logging) return a new controller; the original is
never mutated, so one blueprint can be specialized per call site.
"""

from __future__ import annotations

import copy
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, TypeVar

from cache_hooks.application.interfaces.storage import IStorageClient
from cache_hooks.core.constants import ALL_FIELDS, CACHE_KEY_SEP, DEFAULT_TTL_SECONDS
from cache_hooks.domain.enums import AccessMode
from cache_hooks.domain.exceptions import CacheProgrammingError
from cache_hooks.domain.value_objects import AllFields, IncrementResult, Key
from cache_hooks.infrastructure.cache.keys import join_prefix, namespaced_key
from cache_hooks.shared.telemetry import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_DENIED = IncrementResult(allowed=False, value=0)


def _describe_fields(fields: Sequence[Key] | AllFields) -> str:
    return ALL_FIELDS if fields == ALL_FIELDS else f"[{', '.join(map(str, fields))}]"


class CacheController:
    """Policy wrapper around a storage client.

    Example:
        cache = CacheController(MemoryCacheClient(), name="users", expiry=300)
        user_cache = cache.add_prefix("UserId", 42)
        await user_cache.write_key(value={"name": "Ada"})
        await user_cache.read_key()  # {"name": "Ada"}
    """

    def __init__(
        self,
        client: IStorageClient,
        *,
        name: str = "cache",
        separator: str = CACHE_KEY_SEP,
        prefix: str = "",
        expiry: float = DEFAULT_TTL_SECONDS,
        mode: AccessMode | str = AccessMode.READ_WRITE,
        log: bool = False,
    ) -> None:
        """Initialize controller.

        Args:
            client: Storage backend (memory, Redis, or any IStorageClient).
            name: Label used in log lines.
            separator: Delimiter between prefix components and keys.
            prefix: Initial namespace.
            expiry: Default TTL in seconds for writes; <= 0 never expires.
            mode: Access mode gating which operations reach the client.
            log: Log every call with its duration.
        """
        self.client = client
        self.name = name
        self.separator = separator
        self.prefix = prefix
        self.expiry = expiry
        self.mode = AccessMode(mode)
        self.log = log

    def __repr__(self) -> str:
        return (
            f"CacheController(name={self.name!r}, prefix={self.prefix!r}, "
            f"mode={self.mode.value!r}, expiry={self.expiry!r})"
        )

    # ---- builders ----

    def _clone(self) -> CacheController:
        return copy.copy(self)

    def add_prefix(self, *parts: Key) -> CacheController:
        """Return a controller whose namespace is extended by parts."""
        clone = self._clone()
        clone.prefix = join_prefix(self.prefix, self.separator, parts)
        return clone

    def set_mode(self, mode: AccessMode | str) -> CacheController:
        clone = self._clone()
        clone.mode = AccessMode(mode)
        return clone

    def set_ttl(self, expiry: float) -> CacheController:
        clone = self._clone()
        clone.expiry = expiry
        return clone

    def set_logging(self, log: bool) -> CacheController:
        clone = self._clone()
        clone.log = log
        return clone

    def configure(
        self,
        *,
        mode: AccessMode | str | None = None,
        expiry: float | None = None,
        log: bool | None = None,
    ) -> CacheController:
        """Return a controller with any of mode, expiry, log replaced."""
        clone = self._clone()
        if mode is not None:
            clone.mode = AccessMode(mode)
        if expiry is not None:
            clone.expiry = expiry
        if log is not None:
            clone.log = log
        return clone

    # ---- internals ----

    def key(self, key: Key | None = None) -> str:
        """Return the namespaced backend key."""
        return namespaced_key(self.prefix, self.separator, key)

    def _ttl(self, ttl: float | None) -> float:
        return self.expiry if ttl is None else ttl

    async def _call(
        self,
        op: str,
        target: str,
        run: Callable[[], Awaitable[T]],
        miss: T,
    ) -> T:
        """Run a client call; failures become `miss`, programmer errors propagate."""
        start = time.perf_counter()
        try:
            result = await run()
        except CacheProgrammingError:
            raise
        except Exception:
            logger.exception("Cache %s.%s(%s) failed", self.name, op, target)
            return miss
        if self.log:
            logger.info(
                "(%.2f ms) %s.%s(%s)",
                (time.perf_counter() - start) * 1000,
                self.name,
                op,
                target,
            )
        return result

    # ---- exists ----

    async def exists_key(self, key: Key | None = None) -> bool:
        if not self.mode.can_read:
            return False
        k = self.key(key)
        return await self._call(
            "exists", k, lambda: self.client.exists_key(k), False
        )

    async def exists_hash_fields(
        self, key: Key | None = None, fields: Sequence[Key] | AllFields = ALL_FIELDS
    ) -> dict[str, bool]:
        if not self.mode.can_read:
            return {}
        k = self.key(key)
        return await self._call(
            "exists",
            f"{k}, {_describe_fields(fields)}",
            lambda: self.client.exists_hash_fields(k, fields),
            {},
        )

    # ---- read ----

    async def read_key(self, key: Key | None = None) -> Any | None:
        if not self.mode.can_read:
            return None
        k = self.key(key)
        return await self._call("read", k, lambda: self.client.read_key(k), None)

    async def read_hash_fields(
        self, key: Key | None = None, fields: Sequence[Key] | AllFields = ALL_FIELDS
    ) -> dict[str, Any]:
        if not self.mode.can_read:
            return {}
        k = self.key(key)
        return await self._call(
            "read",
            f"{k}, {_describe_fields(fields)}",
            lambda: self.client.read_hash_fields(k, fields),
            {},
        )

    # ---- write ----

    async def write_key(
        self, key: Key | None = None, *, value: Any, ttl: float | None = None
    ) -> None:
        if not self.mode.can_write:
            return
        k = self.key(key)
        await self._call(
            "write", k, lambda: self.client.write_key(k, value, self._ttl(ttl)), None
        )

    async def write_hash_fields(
        self,
        key: Key | None = None,
        *,
        value: Mapping[Key, Any] | Awaitable[Mapping[Key, Any]],
        ttl: float | None = None,
    ) -> None:
        if not self.mode.can_write:
            return
        k = self.key(key)
        await self._call(
            "write",
            k,
            lambda: self.client.write_hash_fields(k, value, self._ttl(ttl)),
            None,
        )

    # ---- remove ----

    async def remove_key(self, key: Key | None = None) -> None:
        if not self.mode.can_write:
            return
        k = self.key(key)
        await self._call("remove", k, lambda: self.client.remove_key(k), None)

    async def remove_hash_fields(
        self, key: Key | None = None, fields: Sequence[Key] | AllFields = ALL_FIELDS
    ) -> None:
        if not self.mode.can_write:
            return
        k = self.key(key)
        await self._call(
            "remove",
            f"{k}, {_describe_fields(fields)}",
            lambda: self.client.remove_hash_fields(k, fields),
            None,
        )

    # ---- increment ----

    async def increment_key(
        self,
        key: Key | None = None,
        *,
        incr_by: int = 1,
        max_limit: int,
        ttl: float | None = None,
    ) -> IncrementResult:
        if not self.mode.can_increment:
            return _DENIED
        k = self.key(key)
        return await self._call(
            "increment",
            k,
            lambda: self.client.increment_key(k, incr_by, max_limit, self._ttl(ttl)),
            _DENIED,
        )

    async def increment_hash_field(
        self,
        key: Key | None = None,
        *,
        field: Key,
        incr_by: int = 1,
        max_limit: int,
        ttl: float | None = None,
    ) -> IncrementResult:
        if not self.mode.can_increment:
            return _DENIED
        k = self.key(key)
        return await self._call(
            "increment",
            f"{k}, {field}",
            lambda: self.client.increment_hash_field(
                k, field, incr_by, max_limit, self._ttl(ttl)
            ),
            _DENIED,
        )

    async def dispose(self) -> None:
        """Dispose the underlying client (shared by every derived controller)."""
        await self.client.dispose()
