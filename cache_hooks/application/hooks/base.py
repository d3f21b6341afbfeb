"""Cache-aside hook protocol and helpers shared by every hook.

A hook binds a CacheController to one request (a key, a set of ids, or an
owner's members) and exposes the read/compute/write cycle as discrete
steps: exists, get, set, delete, merge, is_incomplete. Hooks never touch a
storage client directly.
"""

from __future__ import annotations

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Iterable, Sequence
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

from cache_hooks.core.constants import ALL_FIELDS, COMPLETE_FIELD
from cache_hooks.domain.exceptions import (
    CacheProgrammingError,
    DuplicateIdException,
    ReservedFieldException,
)
from cache_hooks.domain.value_objects import AllFields, HookResult, Key

if TYPE_CHECKING:
    from cache_hooks.infrastructure.cache.controller import CacheController

InfoT = TypeVar("InfoT")
ValT = TypeVar("ValT")
T = TypeVar("T")


def bundle_cached(ids: Sequence[Key], values: Sequence[T | None]) -> dict[Key, T]:
    """Zip ids with read results, dropping misses."""
    return {i: v for i, v in zip(ids, values) if v is not None}


async def resolve(value: T | Awaitable[T]) -> T:
    """Await value if it is awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value


def _retrieve_exception(task: asyncio.Future[Any]) -> None:
    if not task.cancelled():
        task.exception()


def detach(value: Awaitable[T]) -> asyncio.Future[T]:
    """Schedule an awaitable as a task whose failure is never reported as unretrieved.

    Used for deferred writes: the storage client settles the task, and a
    gated or failed write leaves nothing behind.
    """
    task = asyncio.ensure_future(value)
    task.add_done_callback(_retrieve_exception)
    return task


def unique_by_name(ids: Iterable[Key]) -> list[Key]:
    """Drop ids whose string form was already seen (1 and "1" share a storage key)."""
    seen: dict[str, Key] = {}
    for i in ids:
        seen.setdefault(str(i), i)
    return list(seen.values())


def check_sub_ids(
    sub_ids: Sequence[Key] | AllFields, owner: Key | None = None
) -> list[Key] | AllFields:
    """Validate a member-id request.

    Raises:
        ReservedFieldException: The completeness field is requested as a member.
        DuplicateIdException: A member id appears more than once.
    """
    if sub_ids == ALL_FIELDS:
        return ALL_FIELDS
    if isinstance(sub_ids, str):
        raise CacheProgrammingError(
            f"Sub ids must be a sequence or {ALL_FIELDS!r}, got {sub_ids!r}"
        )
    seen: set[str] = set()
    duplicates: list[Key] = []
    for sub_id in sub_ids:
        name = str(sub_id)
        if name == COMPLETE_FIELD:
            raise ReservedFieldException(name)
        if name in seen:
            duplicates.append(sub_id)
        seen.add(name)
    if duplicates:
        raise DuplicateIdException(duplicates, owner)
    return list(sub_ids)


class Hook(ABC, Generic[InfoT, ValT]):
    """Abstract cache-aside hook.

    Args:
        cache: Controller already namespaced for this hook's entity.
        schema: Optional type (pydantic model, TypedDict, builtin) of one
            cached element. Used to validate on `get(safe=True)` and to
            dump values to JSON-compatible data on `set`.
    """

    def __init__(self, cache: CacheController, schema: Any = None) -> None:
        self.cache = cache
        self.schema = schema
        self._adapter: TypeAdapter[Any] | None = (
            TypeAdapter(schema) if schema is not None else None
        )

    def _validate(self, value: Any) -> Any | None:
        """Return the validated element, or None when it does not match the schema."""
        if self._adapter is None:
            raise CacheProgrammingError("A schema is required for safe reads")
        if value is None:
            return None
        try:
            return self._adapter.validate_python(value)
        except ValidationError:
            return None

    def _encode(self, value: Any) -> Any:
        if self._adapter is None or value is None:
            return value
        return self._adapter.dump_python(value, mode="json")

    @abstractmethod
    def is_incomplete(self, info: InfoT) -> bool:
        """True when the producer must be invoked to satisfy the request."""

    @abstractmethod
    async def exists(self) -> InfoT:
        """Classify the request as found/not found without transferring values."""

    @abstractmethod
    async def get(self, safe: bool = False) -> HookResult[ValT, InfoT]:
        """Read cached values and their classification."""

    @abstractmethod
    async def set(self, output: ValT | Awaitable[ValT], if_exists: bool = False) -> None:
        """Persist producer output; with if_exists only already-cached entries are written."""

    @abstractmethod
    async def delete(self) -> None:
        """Remove cached state for the addressed entities."""

    @abstractmethod
    def merge(self, target: ValT, extension: ValT) -> ValT:
        """Combine a cached partial value with freshly produced data."""
