"""Build a CacheController from settings (backend selection and defaults)."""

from cache_hooks.application.interfaces.storage import IStorageClient
from cache_hooks.core.config import Settings, get_settings
from cache_hooks.infrastructure.cache.controller import CacheController
from cache_hooks.infrastructure.cache.memory_client import MemoryCacheClient
from cache_hooks.infrastructure.cache.redis_client import RedisCacheClient
from cache_hooks.shared.telemetry import setup_logging


def build_storage_client(settings: Settings | None = None) -> IStorageClient:
    """Return the storage client selected by settings.cache_backend.

    A Redis client is returned unconnected; call `await client.connect()`
    during startup. Until then every operation is a miss.
    """
    settings = settings or get_settings()
    if settings.cache_backend == "redis":
        return RedisCacheClient(settings=settings)
    return MemoryCacheClient()


def build_cache_controller(
    settings: Settings | None = None, client: IStorageClient | None = None
) -> CacheController:
    """Return a root controller configured from settings.

    Args:
        settings: Settings; defaults to get_settings().
        client: Optional client overriding the configured backend.

    Returns:
        CacheController with the configured name, prefix, separator, TTL, mode, log.
    """
    settings = settings or get_settings()
    if settings.debug or settings.cache_log:
        setup_logging(settings)
    return CacheController(
        client or build_storage_client(settings),
        name=settings.cache_name,
        separator=settings.cache_separator,
        prefix=settings.cache_prefix,
        expiry=settings.cache_default_ttl,
        mode=settings.cache_mode,
        log=settings.cache_log,
    )
