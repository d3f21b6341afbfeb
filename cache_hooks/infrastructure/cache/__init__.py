"""Cache infrastructure: controller, storage clients, and key utilities.

CacheController wraps any IStorageClient; MemoryCacheClient is the
in-process TTL engine and RedisCacheClient the network backend. Key
format lives in keys.py (DRY).
"""

from cache_hooks.infrastructure.cache.controller import CacheController
from cache_hooks.infrastructure.cache.factory import (
    build_cache_controller,
    build_storage_client,
)
from cache_hooks.infrastructure.cache.keys import join_prefix, namespaced_key
from cache_hooks.infrastructure.cache.memory_client import MemoryCacheClient
from cache_hooks.infrastructure.cache.redis_client import RedisCacheClient

__all__ = [
    "CacheController",
    "MemoryCacheClient",
    "RedisCacheClient",
    "build_cache_controller",
    "build_storage_client",
    "join_prefix",
    "namespaced_key",
]
