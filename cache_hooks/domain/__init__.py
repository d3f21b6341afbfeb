"""Domain layer: enums, value objects, and exceptions.

No dependencies on infrastructure. Used by application and infrastructure
layers.
"""

from cache_hooks.domain.enums import AccessMode
from cache_hooks.domain.exceptions import (
    CacheHooksException,
    CacheProgrammingError,
    CacheUnavailableException,
    DuplicateIdException,
    ReservedFieldException,
    StorageShapeException,
)
from cache_hooks.domain.value_objects import (
    AllFields,
    CollectionInfo,
    HookResult,
    IncrementResult,
    Key,
    MultipleCollectionInfo,
    MultipleObjectInfo,
    OwnerCollectionInfo,
    SingleObjectInfo,
)

__all__ = [
    # Enums
    "AccessMode",
    # Exceptions
    "CacheHooksException",
    "CacheProgrammingError",
    "CacheUnavailableException",
    "DuplicateIdException",
    "ReservedFieldException",
    "StorageShapeException",
    # Value objects
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
