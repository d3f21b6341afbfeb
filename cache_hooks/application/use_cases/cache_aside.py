"""Cache-aside use case: serve cached data, produce only what is missing.

CacheAside drives one hook per call:

    get -> (if incomplete) update_input -> producer -> merge -> set

The producer runs at most once per call, with the request narrowed to the
missing ids. The merged value is returned; its write is awaited, or issued
as a detached task when detach_writes is on. Producer errors propagate and
nothing is written. Two concurrent calls for the same key are not
de-duplicated: both may run the producer and the later write wins.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from functools import update_wrapper
from typing import Any, Generic, TypeVar

from cache_hooks.application.hooks.base import Hook
from cache_hooks.core.config import get_settings
from cache_hooks.domain.value_objects import HookResult
from cache_hooks.shared.telemetry import (
    add_span_attributes,
    add_span_event,
    get_logger,
    traced,
)

logger = get_logger(__name__)

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")

Producer = Callable[[InputT], Awaitable[OutputT]]


def _keep_input(input: Any, _info: Any) -> Any:
    return input


class CacheAside(Generic[InputT, OutputT]):
    """Cache-aside wrapper around an async producer.

    Args:
        producer: Async callable computing authoritative data for an input.
        get_hook: Builds the hook addressing the cache entries for an input.
        update_input: Narrows the input to the missing part given the hook
            info (e.g. `lambda inp, info: info.not_found` for MultipleObject).
            Defaults to passing the input through unchanged.
        detach_writes: Write results in a background task instead of awaiting
            the write. Defaults to settings.cache_detach_writes.
        safe: Validate cached values against the hook schema on read.
    """

    def __init__(
        self,
        producer: Producer[InputT, OutputT],
        *,
        get_hook: Callable[[InputT], Hook[Any, OutputT]],
        update_input: Callable[[InputT, Any], InputT] | None = None,
        detach_writes: bool | None = None,
        safe: bool = False,
    ) -> None:
        self.producer = producer
        self.get_hook = get_hook
        self.update_input = update_input or _keep_input
        self.detach_writes = (
            get_settings().cache_detach_writes if detach_writes is None else detach_writes
        )
        self.safe = safe
        self._pending: set[asyncio.Task[None]] = set()

    @traced("cache_aside.call")
    async def __call__(self, input: InputT) -> OutputT:
        hook = self.get_hook(input)
        result = await hook.get(safe=self.safe)
        add_span_attributes(**{"cache.hook": type(hook).__name__})
        if not hook.is_incomplete(result.info):
            add_span_attributes(**{"cache.hit": True})
            return result.val
        add_span_attributes(**{"cache.hit": False})
        narrowed = self.update_input(input, result.info)
        add_span_event("cache_aside.produce")
        output = await self.producer(narrowed)
        merged = hook.merge(result.val, output)
        await self._write(hook, merged)
        return merged

    async def _write(self, hook: Hook[Any, OutputT], value: OutputT) -> None:
        if not self.detach_writes:
            await hook.set(value)
            return
        task = asyncio.create_task(hook.set(value))
        self._pending.add(task)
        task.add_done_callback(self._on_detached_done)

    def _on_detached_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Detached cache write failed: %s", error, exc_info=error)

    async def drain(self) -> None:
        """Wait for every detached write issued so far."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    # ---- direct cache access for other call sites ----

    async def get(self, input: InputT) -> HookResult[OutputT, Any]:
        """Read the cache for input without invoking the producer."""
        return await self.get_hook(input).get(safe=self.safe)

    async def set(self, input: InputT, output: OutputT, if_exists: bool = False) -> None:
        """Write output for input (e.g. after an update elsewhere)."""
        await self.get_hook(input).set(output, if_exists=if_exists)

    async def delete(self, input: InputT) -> None:
        """Invalidate the cache entries addressed by input."""
        await self.get_hook(input).delete()


def cache_aside(
    *,
    get_hook: Callable[[InputT], Hook[Any, OutputT]],
    update_input: Callable[[InputT, Any], InputT] | None = None,
    detach_writes: bool | None = None,
    safe: bool = False,
) -> Callable[[Producer[InputT, OutputT]], CacheAside[InputT, OutputT]]:
    """Decorator form of CacheAside.

    Example:
        @cache_aside(
            get_hook=lambda ids: MultipleObject(users_cache, ids),
            update_input=lambda ids, info: info.not_found,
        )
        async def get_users(ids: list[int]) -> dict[int, dict]:
            ...
    """

    def decorator(producer: Producer[InputT, OutputT]) -> CacheAside[InputT, OutputT]:
        wrapper = CacheAside(
            producer,
            get_hook=get_hook,
            update_input=update_input,
            detach_writes=detach_writes,
            safe=safe,
        )
        update_wrapper(wrapper, producer)
        return wrapper

    return decorator
