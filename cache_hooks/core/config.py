"""Library configuration (settings and environment).

Single source of truth for cache configuration. Uses pydantic-settings
with .env support. Invalid backend or access mode values are rejected at
load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cache_hooks.core.constants import CACHE_KEY_SEP, DEFAULT_TTL_SECONDS
from cache_hooks.domain.enums import AccessMode

_BACKENDS = ("memory", "redis")


class Settings(BaseSettings):
    """Cache settings loaded from environment and .env.

    Every field has a default; the in-process memory backend is used unless
    CACHE_BACKEND=redis is set.
    """

    # App
    app_name: str = "cache-hooks"
    debug: bool = False

    # Controller defaults
    cache_backend: str = "memory"
    cache_name: str = "cache"
    cache_prefix: str = ""
    cache_separator: str = CACHE_KEY_SEP
    cache_default_ttl: float = DEFAULT_TTL_SECONDS
    cache_mode: AccessMode = AccessMode.READ_WRITE
    cache_log: bool = False
    # Issue hook writes as background tasks instead of awaiting them
    cache_detach_writes: bool = False

    # Redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    redis_connect_timeout: float = 5.0

    # OpenTelemetry
    telemetry_enabled: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_backend(self) -> "Settings":
        """Validate backend name and separator."""
        if self.cache_backend not in _BACKENDS:
            raise ValueError(
                f"cache_backend must be one of {_BACKENDS}, got: {self.cache_backend!r}"
            )
        if not self.cache_separator:
            raise ValueError("cache_separator must be a non-empty string")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached settings (single instance per process).

    In tests, call get_settings.cache_clear() before overriding env vars so
    the next get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
