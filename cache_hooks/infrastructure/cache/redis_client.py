"""Redis-backed storage client (network implementation of IStorageClient).

Values are JSON-serialized. Connection and timeout errors trigger one
reconnect and retry; anything else is raised for the controller to turn
into a miss. WRONGTYPE replies are programmer errors and are mapped to
StorageShapeException.
"""

from __future__ import annotations

import inspect
import json
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, TypeVar

import redis.asyncio as redis

from cache_hooks.core.config import Settings, get_settings
from cache_hooks.core.constants import ALL_FIELDS
from cache_hooks.domain.exceptions import (
    CacheUnavailableException,
    StorageShapeException,
)
from cache_hooks.domain.value_objects import AllFields, IncrementResult, Key
from cache_hooks.infrastructure.cache.keys import field_names
from cache_hooks.shared.telemetry import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# KEYS[1] key; ARGV incr_by, max_limit, ttl_ms. Returns {allowed, value}.
_INCR_KEY_LUA = """
local current = tonumber(redis.call('GET', KEYS[1]) or '0')
local updated = current + tonumber(ARGV[1])
if updated > tonumber(ARGV[2]) then
  return {0, current}
end
local existed = redis.call('EXISTS', KEYS[1])
redis.call('SET', KEYS[1], updated, 'KEEPTTL')
if existed == 0 and tonumber(ARGV[3]) > 0 then
  redis.call('PEXPIRE', KEYS[1], ARGV[3])
end
return {1, updated}
"""

# KEYS[1] key; ARGV field, incr_by, max_limit, ttl_ms.
_INCR_FIELD_LUA = """
local current = tonumber(redis.call('HGET', KEYS[1], ARGV[1]) or '0')
local updated = current + tonumber(ARGV[2])
if updated > tonumber(ARGV[3]) then
  return {0, current}
end
local existed = redis.call('EXISTS', KEYS[1])
redis.call('HSET', KEYS[1], ARGV[1], updated)
if existed == 0 and tonumber(ARGV[4]) > 0 then
  redis.call('PEXPIRE', KEYS[1], ARGV[4])
end
return {1, updated}
"""


def _dumps(value: Any) -> str:
    return json.dumps(value)


def _loads(raw: str | bytes | None) -> Any | None:
    if raw is None:
        return None
    return json.loads(raw)


def _ttl_ms(ttl: float) -> int:
    return int(ttl * 1000)


class RedisCacheClient:
    """Async Redis storage client with TTL support.

    Call connect() at startup and disconnect() (or dispose()) at shutdown.
    A client injected through the constructor is treated as connected.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        settings: Settings | None = None,
        name: str = "redis",
    ) -> None:
        """Initialize the client.

        Args:
            redis_client: Optional Redis client for testing or DI.
            settings: Connection settings; defaults to get_settings().
            name: Label used in log lines.
        """
        self.name = name
        self.redis = redis_client
        self.settings = settings or get_settings()
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Establish Redis connection. Failure leaves the client unavailable."""
        if self.redis is not None:
            return
        password = self.settings.redis_password
        try:
            self.redis = redis.Redis(
                host=self.settings.redis_host,
                port=self.settings.redis_port,
                db=self.settings.redis_db,
                password=password.get_secret_value() if password else None,
                decode_responses=True,
                socket_connect_timeout=self.settings.redis_connect_timeout,
                socket_keepalive=True,
            )
            await self.redis.ping()
            self._connected = True
            logger.info(
                "Redis cache connected: %s:%s",
                self.settings.redis_host,
                self.settings.redis_port,
            )
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Redis connection failed: %s. Cache disabled.", e)
            self._connected = False
            self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
            self._connected = False
            logger.info("Redis cache disconnected")

    async def _reconnect(self) -> bool:
        """Drop the current connection and connect again. Returns True on success."""
        if self.redis is None:
            return False
        try:
            await self.redis.aclose()
        except redis.RedisError as e:
            logger.debug("Ignoring close error during reconnect: %s", e)
        self.redis = None
        self._connected = False
        await self.connect()
        return self._connected

    def is_available(self) -> bool:
        """Return True if Redis is connected and usable."""
        return self._connected and self.redis is not None

    async def _execute(
        self,
        key: str,
        run: Callable[[redis.Redis], Awaitable[T]],
        shape: str = "scalar",
    ) -> T:
        """Run a command against the connection, retrying once after reconnect."""
        if not self.is_available() or self.redis is None:
            raise CacheUnavailableException(self.name)
        try:
            return await run(self.redis)
        except (redis.ConnectionError, redis.TimeoutError):
            if not await self._reconnect() or self.redis is None:
                raise CacheUnavailableException(self.name, "disconnected") from None
            return await run(self.redis)
        except redis.ResponseError as e:
            if "WRONGTYPE" in str(e):
                raise StorageShapeException(key, shape) from e
            raise

    # ---- exists ----

    async def exists_key(self, key: str) -> bool:
        return bool(await self._execute(key, lambda r: r.exists(key)))

    async def exists_hash_fields(
        self, key: str, fields: Sequence[Key] | AllFields
    ) -> dict[str, bool]:
        names = field_names(fields)
        if names == ALL_FIELDS:
            present = await self._execute(key, lambda r: r.hkeys(key), "hash")
            return {f: True for f in present}
        if not names:
            return {}
        raw = await self._execute(key, lambda r: r.hmget(key, names), "hash")
        return {f: v is not None for f, v in zip(names, raw)}

    # ---- read ----

    async def read_key(self, key: str) -> Any | None:
        raw = await self._execute(key, lambda r: r.get(key))
        return _loads(raw)

    async def read_hash_fields(
        self, key: str, fields: Sequence[Key] | AllFields
    ) -> dict[str, Any]:
        names = field_names(fields)
        if names == ALL_FIELDS:
            raw = await self._execute(key, lambda r: r.hgetall(key), "hash")
            items = raw.items()
        elif not names:
            return {}
        else:
            values = await self._execute(key, lambda r: r.hmget(key, names), "hash")
            items = zip(names, values)
        return {f: _loads(v) for f, v in items if v is not None}

    # ---- write ----

    async def write_key(self, key: str, value: Any, ttl: float) -> None:
        if inspect.isawaitable(value):
            value = await value
        if value is None:
            return
        payload = _dumps(value)
        px = _ttl_ms(ttl) if ttl > 0 else None
        await self._execute(key, lambda r: r.set(key, payload, px=px))
        logger.debug("Cache SET: %s (TTL: %ss)", key, ttl)

    async def write_hash_fields(
        self,
        key: str,
        value: Mapping[Key, Any] | Awaitable[Mapping[Key, Any]],
        ttl: float,
    ) -> None:
        if inspect.isawaitable(value):
            value = await value
        mapping: dict[str, str] = {}
        for f, v in value.items():
            if inspect.isawaitable(v):
                v = await v
            if v is not None:
                mapping[str(f)] = _dumps(v)
        if not mapping:
            return
        await self._execute(key, lambda r: r.hset(key, mapping=mapping), "hash")
        if ttl > 0:
            await self._execute(key, lambda r: r.pexpire(key, _ttl_ms(ttl)))
        else:
            await self._execute(key, lambda r: r.persist(key))
        logger.debug("Cache HSET: %s [%s] (TTL: %ss)", key, ", ".join(mapping), ttl)

    # ---- remove ----

    async def remove_key(self, key: str) -> None:
        await self._execute(key, lambda r: r.delete(key))
        logger.debug("Cache DELETE: %s", key)

    async def remove_hash_fields(
        self, key: str, fields: Sequence[Key] | AllFields
    ) -> None:
        names = field_names(fields)
        if names == ALL_FIELDS:
            await self._execute(key, lambda r: r.delete(key))
        elif names:
            await self._execute(key, lambda r: r.hdel(key, *names), "hash")

    # ---- increment ----

    async def increment_key(
        self, key: str, incr_by: int, max_limit: int, ttl: float
    ) -> IncrementResult:
        allowed, value = await self._execute(
            key,
            lambda r: r.eval(_INCR_KEY_LUA, 1, key, incr_by, max_limit, _ttl_ms(ttl)),
        )
        return IncrementResult(allowed=bool(allowed), value=int(value))

    async def increment_hash_field(
        self, key: str, field: Key, incr_by: int, max_limit: int, ttl: float
    ) -> IncrementResult:
        allowed, value = await self._execute(
            key,
            lambda r: r.eval(
                _INCR_FIELD_LUA, 1, key, str(field), incr_by, max_limit, _ttl_ms(ttl)
            ),
            "hash",
        )
        return IncrementResult(allowed=bool(allowed), value=int(value))

    async def dispose(self) -> None:
        await self.disconnect()
