"""Object hooks: one-to-one cache entries (one scalar key per entity).

Example:
    hook = SingleObject(cache.add_prefix("UserId", user_id), schema=User)
    result = await hook.get(safe=True)
    if hook.is_incomplete(result.info):
        user = await load_user(user_id)
        await hook.set(user)
        result.val = hook.merge(result.val, user)

    # invalidate elsewhere
    await SingleObject(cache.add_prefix("UserId", user_id)).delete()
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Iterable
from typing import TYPE_CHECKING, Any

from cache_hooks.application.hooks.base import (
    Hook,
    bundle_cached,
    detach,
    resolve,
    unique_by_name,
)
from cache_hooks.domain.value_objects import (
    HookResult,
    Key,
    MultipleObjectInfo,
    SingleObjectInfo,
)

if TYPE_CHECKING:
    from cache_hooks.infrastructure.cache.controller import CacheController


class SingleObject(Hook[SingleObjectInfo, Any]):
    """Hook over the controller's own key (the prefix identifies the entity)."""

    def is_incomplete(self, info: SingleObjectInfo) -> bool:
        return not info.found

    async def exists(self) -> SingleObjectInfo:
        return SingleObjectInfo(found=await self.cache.exists_key())

    async def get(self, safe: bool = False) -> HookResult[Any, SingleObjectInfo]:
        val = await self.cache.read_key()
        if safe:
            val = self._validate(val)
        return HookResult(val=val, info=SingleObjectInfo(found=val is not None))

    async def _encode_later(self, output: Awaitable[Any]) -> Any:
        return self._encode(await output)

    async def set(self, output: Any | Awaitable[Any], if_exists: bool = False) -> None:
        if if_exists and not (await self.exists()).found:
            return
        if inspect.isawaitable(output):
            # Stored deferred: the backend settles it, a failure reads as a miss.
            await self.cache.write_key(value=detach(self._encode_later(output)))
            return
        if output is None:
            return
        await self.cache.write_key(value=self._encode(output))

    async def delete(self) -> None:
        await self.cache.remove_key()

    def merge(self, target: Any, extension: Any) -> Any:
        return target if target is not None else extension


class MultipleObject(Hook[MultipleObjectInfo, dict[Key, Any]]):
    """Hook over many ids, each its own scalar key under the controller prefix.

    Ids with the same string form are collapsed (1 and "1" address one
    key); the first spelling and order of first appearance are kept.
    """

    def __init__(
        self, cache: CacheController, ids: Iterable[Key], schema: Any = None
    ) -> None:
        super().__init__(cache, schema)
        self.ids: list[Key] = unique_by_name(ids)

    def is_incomplete(self, info: MultipleObjectInfo) -> bool:
        return len(info.not_found) != 0

    async def exists(self) -> MultipleObjectInfo:
        flags = await asyncio.gather(*(self.cache.exists_key(i) for i in self.ids))
        return MultipleObjectInfo(
            found=[i for i, ok in zip(self.ids, flags) if ok],
            not_found=[i for i, ok in zip(self.ids, flags) if not ok],
        )

    async def get(
        self, safe: bool = False
    ) -> HookResult[dict[Key, Any], MultipleObjectInfo]:
        values = await asyncio.gather(*(self.cache.read_key(i) for i in self.ids))
        val = bundle_cached(self.ids, values)
        if safe:
            validated = {i: self._validate(v) for i, v in val.items()}
            val = {i: v for i, v in validated.items() if v is not None}
        return HookResult(
            val=val,
            info=MultipleObjectInfo(
                found=[i for i in self.ids if i in val],
                not_found=[i for i in self.ids if i not in val],
            ),
        )

    async def set(
        self,
        output: dict[Key, Any] | Awaitable[dict[Key, Any]],
        if_exists: bool = False,
    ) -> None:
        record = {
            str(i): v for i, v in (await resolve(output)).items() if v is not None
        }
        if if_exists:
            # Never cache an id the snapshot reported absent; it may have been deleted.
            for i in (await self.exists()).not_found:
                record.pop(str(i), None)
        await asyncio.gather(
            *(self.cache.write_key(i, value=self._encode(v)) for i, v in record.items())
        )

    async def delete(self) -> None:
        await asyncio.gather(*(self.cache.remove_key(i) for i in self.ids))

    def merge(
        self, target: dict[Key, Any], extension: dict[Key, Any]
    ) -> dict[Key, Any]:
        return {**target, **extension}
