"""In-process TTL storage engine (reference implementation of IStorageClient).

Scalar keys hold a future; hash keys hold a dict of futures. Awaitable
values are settled in a background task, so a producer that fails after
the write is observed as "never written" instead of an error on read.
Expiry timers are loop.call_later handles owned by the instance.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Mapping, Sequence
from typing import Any

from cache_hooks.core.constants import ALL_FIELDS
from cache_hooks.domain.exceptions import StorageShapeException
from cache_hooks.domain.value_objects import AllFields, IncrementResult, Key
from cache_hooks.infrastructure.cache.keys import field_names
from cache_hooks.shared.telemetry import get_logger

logger = get_logger(__name__)

_Slot = asyncio.Future
_HashSlot = dict[str, asyncio.Future]


async def _settle(value: Awaitable[Any]) -> Any | None:
    """Await a deferred value; a failure resolves to None (a miss)."""
    try:
        return await value
    except Exception as e:
        logger.debug("Deferred cache value failed, stored as miss: %s", e)
        return None


def _deferred(value: Any) -> asyncio.Future:
    if inspect.isawaitable(value):
        return asyncio.ensure_future(_settle(value))
    future = asyncio.get_running_loop().create_future()
    future.set_result(value)
    return future


class MemoryCacheClient:
    """Map-backed storage with per-key expiry timers.

    Use for tests, single-process services, or as the fallback when no
    network cache is configured. Call dispose() to cancel pending timers.
    """

    def __init__(self, name: str = "memory") -> None:
        self.name = name
        self._memo: dict[str, _Slot | _HashSlot] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}

    # ---- slot helpers ----

    def _scalar(self, key: str) -> _Slot | None:
        slot = self._memo.get(key)
        if isinstance(slot, dict):
            raise StorageShapeException(key, "scalar")
        return slot

    def _hash(self, key: str) -> _HashSlot | None:
        slot = self._memo.get(key)
        if slot is not None and not isinstance(slot, dict):
            raise StorageShapeException(key, "hash")
        return slot

    def _cancel_timer(self, key: str) -> None:
        handle = self._timers.pop(key, None)
        if handle is not None:
            handle.cancel()

    def _schedule(self, key: str, ttl: float) -> None:
        self._cancel_timer(key)
        if ttl > 0:
            loop = asyncio.get_running_loop()
            self._timers[key] = loop.call_later(ttl, self._expire, key)

    def _expire(self, key: str) -> None:
        self._memo.pop(key, None)
        self._timers.pop(key, None)

    def _drop(self, key: str) -> None:
        self._memo.pop(key, None)
        self._cancel_timer(key)

    # ---- exists ----

    async def exists_key(self, key: str) -> bool:
        slot = self._scalar(key)
        if slot is None:
            return False
        return (await slot) is not None

    async def exists_hash_fields(
        self, key: str, fields: Sequence[Key] | AllFields
    ) -> dict[str, bool]:
        slot = self._hash(key)
        names = field_names(fields)
        if slot is None:
            return {} if names == ALL_FIELDS else {f: False for f in names}
        if names == ALL_FIELDS:
            values = await self._read_all(slot)
            return {f: True for f in values}
        result: dict[str, bool] = {}
        for f in names:
            value = await slot[f] if f in slot else None
            result[f] = value is not None
        return result

    # ---- read ----

    async def read_key(self, key: str) -> Any | None:
        slot = self._scalar(key)
        if slot is None:
            return None
        return await slot

    async def _read_all(self, slot: _HashSlot) -> dict[str, Any]:
        # Snapshot: the hash may be mutated while awaiting pending fields.
        items = list(slot.items())
        values = await asyncio.gather(*(future for _, future in items))
        return {
            f: value for (f, _), value in zip(items, values) if value is not None
        }

    async def read_hash_fields(
        self, key: str, fields: Sequence[Key] | AllFields
    ) -> dict[str, Any]:
        slot = self._hash(key)
        if slot is None:
            return {}
        names = field_names(fields)
        if names == ALL_FIELDS:
            return await self._read_all(slot)
        return await self._read_all({f: slot[f] for f in names if f in slot})

    # ---- write ----

    async def write_key(self, key: str, value: Any, ttl: float) -> None:
        self._scalar(key)
        self._memo[key] = _deferred(value)
        self._schedule(key, ttl)

    async def write_hash_fields(
        self,
        key: str,
        value: Mapping[Key, Any] | Awaitable[Mapping[Key, Any]],
        ttl: float,
    ) -> None:
        self._hash(key)
        if inspect.isawaitable(value):
            resolved = await _settle(value)
            if resolved is None:
                return
            value = resolved
        if not value:
            return
        # Re-check after the await: another writer may have changed the slot.
        slot = self._hash(key)
        if slot is None:
            slot = self._memo[key] = {}
        for f, v in value.items():
            slot[str(f)] = _deferred(v)
        self._schedule(key, ttl)

    # ---- remove ----

    async def remove_key(self, key: str) -> None:
        if self._scalar(key) is not None:
            self._drop(key)

    async def remove_hash_fields(
        self, key: str, fields: Sequence[Key] | AllFields
    ) -> None:
        slot = self._hash(key)
        if slot is None:
            return
        names = field_names(fields)
        if names == ALL_FIELDS:
            self._drop(key)
            return
        for f in names:
            slot.pop(f, None)
        if not slot:
            self._drop(key)

    # ---- increment ----

    async def increment_key(
        self, key: str, incr_by: int, max_limit: int, ttl: float
    ) -> IncrementResult:
        slot = self._scalar(key)
        current = int((await slot if slot is not None else None) or 0)
        updated = current + incr_by
        if updated > max_limit:
            return IncrementResult(allowed=False, value=current)
        self._memo[key] = _deferred(updated)
        if key not in self._timers:
            self._schedule(key, ttl)
        return IncrementResult(allowed=True, value=updated)

    async def increment_hash_field(
        self, key: str, field: Key, incr_by: int, max_limit: int, ttl: float
    ) -> IncrementResult:
        slot = self._hash(key)
        name = str(field)
        future = slot.get(name) if slot is not None else None
        current = int((await future if future is not None else None) or 0)
        updated = current + incr_by
        if updated > max_limit:
            return IncrementResult(allowed=False, value=current)
        slot = self._hash(key)
        if slot is None:
            slot = self._memo[key] = {}
        slot[name] = _deferred(updated)
        if key not in self._timers:
            self._schedule(key, ttl)
        return IncrementResult(allowed=True, value=updated)

    async def dispose(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        self._memo.clear()

    def __len__(self) -> int:
        return len(self._memo)

    def __contains__(self, key: object) -> bool:
        return key in self._memo
