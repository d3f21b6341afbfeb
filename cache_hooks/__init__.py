"""cache-hooks: cache-aside orchestration over an unreliable key/hash store.

Build a CacheController over a storage client, namespace it per entity,
and drive a hook (SingleObject, MultipleObject, SingleCollection,
MultipleCollection) through CacheAside or by hand.
"""

from cache_hooks.application.hooks import (
    Hook,
    MultipleCollection,
    MultipleObject,
    SingleCollection,
    SingleObject,
)
from cache_hooks.application.interfaces import IStorageClient
from cache_hooks.application.use_cases import CacheAside, cache_aside
from cache_hooks.core import ALL_FIELDS, COMPLETE_FIELD, Settings, get_settings
from cache_hooks.domain import (
    AccessMode,
    CacheHooksException,
    CacheProgrammingError,
    CacheUnavailableException,
    CollectionInfo,
    DuplicateIdException,
    HookResult,
    IncrementResult,
    MultipleObjectInfo,
    OwnerCollectionInfo,
    ReservedFieldException,
    SingleObjectInfo,
    StorageShapeException,
)
from cache_hooks.infrastructure.cache import (
    CacheController,
    MemoryCacheClient,
    RedisCacheClient,
    build_cache_controller,
)

__version__ = "1.0.0"

__all__ = [
    "ALL_FIELDS",
    "COMPLETE_FIELD",
    "AccessMode",
    "CacheAside",
    "CacheController",
    "CacheHooksException",
    "CacheProgrammingError",
    "CacheUnavailableException",
    "CollectionInfo",
    "DuplicateIdException",
    "Hook",
    "HookResult",
    "IStorageClient",
    "IncrementResult",
    "MemoryCacheClient",
    "MultipleCollection",
    "MultipleObject",
    "MultipleObjectInfo",
    "OwnerCollectionInfo",
    "RedisCacheClient",
    "ReservedFieldException",
    "Settings",
    "SingleCollection",
    "SingleObject",
    "SingleObjectInfo",
    "StorageShapeException",
    "build_cache_controller",
    "cache_aside",
    "get_settings",
]
