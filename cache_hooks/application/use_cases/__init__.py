"""Use cases: the cache-aside call cycle."""

from cache_hooks.application.use_cases.cache_aside import CacheAside, cache_aside

__all__ = ["CacheAside", "cache_aside"]
