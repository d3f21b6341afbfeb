"""Domain value objects for cache-hooks.

Immutable result and classification types returned by storage clients and
hooks. A `not_found` of "*" means the whole collection is unknown; an empty
list means everything requested was cached.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar

Key = str | int
AllFields = Literal["*"]

InfoT = TypeVar("InfoT")
ValT = TypeVar("ValT")


@dataclass(frozen=True)
class IncrementResult:
    """Outcome of a bounded increment. `value` is the stored counter after the call."""

    allowed: bool
    value: int


@dataclass(frozen=True)
class SingleObjectInfo:
    found: bool


@dataclass(frozen=True)
class MultipleObjectInfo:
    found: list[Key] = field(default_factory=list)
    not_found: list[Key] = field(default_factory=list)


@dataclass(frozen=True)
class CollectionInfo:
    """Member classification for one owner's hash."""

    found: list[Key] = field(default_factory=list)
    not_found: list[Key] | AllFields = field(default_factory=list)

    @property
    def is_incomplete(self) -> bool:
        return self.not_found == "*" or len(self.not_found) != 0


@dataclass(frozen=True)
class OwnerCollectionInfo(CollectionInfo):
    """CollectionInfo tagged with the owner id, used by multi-owner hooks."""

    id: Key = ""


@dataclass
class HookResult(Generic[ValT, InfoT]):
    """Cached value plus its found/not-found classification."""

    val: ValT
    info: InfoT


MultipleCollectionInfo = list[OwnerCollectionInfo]

__all__ = [
    "AllFields",
    "CollectionInfo",
    "HookResult",
    "IncrementResult",
    "Key",
    "MultipleCollectionInfo",
    "MultipleObjectInfo",
    "OwnerCollectionInfo",
    "SingleObjectInfo",
]
