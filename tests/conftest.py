"""Pytest configuration and fixtures for cache-hooks.

Every fixture builds on a fresh MemoryCacheClient so timers and stored
data never leak between tests. RecordingClient wraps the memory engine and
counts calls per operation for round-trip assertions.
"""

import logging
from collections import Counter
from typing import Any

import pytest

from cache_hooks.core.config import get_settings
from cache_hooks.infrastructure.cache import CacheController, MemoryCacheClient
from cache_hooks.shared.telemetry.logging import PACKAGE_LOGGER


class RecordingClient(MemoryCacheClient):
    """MemoryCacheClient that records (operation, key, fields) for each call."""

    def __init__(self) -> None:
        super().__init__(name="recording")
        self.calls: list[tuple[str, str, Any]] = []

    def count(self, op: str) -> int:
        return Counter(name for name, _, _ in self.calls)[op]

    async def exists_key(self, key):
        self.calls.append(("exists_key", key, None))
        return await super().exists_key(key)

    async def exists_hash_fields(self, key, fields):
        self.calls.append(("exists_hash_fields", key, fields))
        return await super().exists_hash_fields(key, fields)

    async def read_key(self, key):
        self.calls.append(("read_key", key, None))
        return await super().read_key(key)

    async def read_hash_fields(self, key, fields):
        self.calls.append(("read_hash_fields", key, fields))
        return await super().read_hash_fields(key, fields)

    async def write_key(self, key, value, ttl):
        self.calls.append(("write_key", key, None))
        return await super().write_key(key, value, ttl)

    async def write_hash_fields(self, key, value, ttl):
        self.calls.append(("write_hash_fields", key, None))
        return await super().write_hash_fields(key, value, ttl)

    async def remove_key(self, key):
        self.calls.append(("remove_key", key, None))
        return await super().remove_key(key)

    async def remove_hash_fields(self, key, fields):
        self.calls.append(("remove_hash_fields", key, fields))
        return await super().remove_hash_fields(key, fields)


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Drop cached settings so env overrides in one test do not leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
async def memory_client() -> MemoryCacheClient:
    """In-process storage engine; disposed (timers cancelled) after the test."""
    client = MemoryCacheClient()
    yield client
    await client.dispose()


@pytest.fixture
async def recording_client() -> RecordingClient:
    client = RecordingClient()
    yield client
    await client.dispose()


@pytest.fixture
def cache(memory_client: MemoryCacheClient) -> CacheController:
    """Root read-write controller over the memory engine."""
    return CacheController(memory_client, name="test", expiry=60)


@pytest.fixture
def recording_cache(recording_client: RecordingClient) -> CacheController:
    return CacheController(recording_client, name="test", expiry=60)


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """Undo setup_logging() level and handler changes made by a test."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    level, handlers = logger.level, list(logger.handlers)
    yield logger
    logger.setLevel(level)
    logger.handlers[:] = handlers
