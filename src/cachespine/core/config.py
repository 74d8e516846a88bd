"""CacheSpine configuration.

``CacheConfig`` describes one cache adapter: which engine to use, the
consistency flag and the engine's connection parameters. ``Settings`` loads
the same fields from environment variables with the CACHESPINE_ prefix.

Example:
    >>> from cachespine.core.config import CacheConfig, get_settings
    >>> config = CacheConfig(engine="none", namespace="tests")
    >>> config.consistency_mode.value
    'strict'
    >>> settings = get_settings(engine="memcached", servers="a:11211, b:11211")
    >>> settings.servers
    ['a:11211', 'b:11211']
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from cachespine.core.exceptions import ConfigurationError
from cachespine.models.base import CacheEngine, CacheSpineModel, ConsistencyMode

DEFAULT_TTL_SECONDS = 86400


def _split_servers(value: Any) -> Any:
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, (list, tuple)):
        return [str(server).strip() for server in value if str(server).strip()]
    return value


def _consistent_flag(value: Any) -> Any:
    # Unset means strict; "0" is the only spelling of lenient in older configs.
    if value is None or value == "":
        return True
    return value


class CacheConfig(CacheSpineModel):
    """Configuration for a single cache adapter.

    Example:
        >>> from cachespine.core.config import CacheConfig
        >>> c = CacheConfig(engine="redis", host="Localhost", port=6379, consistent_behavior="0")
        >>> c.consistent_behavior
        False
        >>> c.default_ttl
        86400
    """

    engine: CacheEngine = Field(..., description="Cache engine: redis, memcached or none")
    consistent_behavior: bool = Field(default=True, description="Force the strict cross-engine contract")
    default_ttl: int = Field(default=DEFAULT_TTL_SECONDS, ge=1, description="TTL used when none is given")

    # Redis
    host: str | None = Field(default=None, description="Redis host")
    port: int | None = Field(default=None, ge=1, le=65535, description="Redis port")
    password: str | None = Field(default=None, description="Redis password")
    enable_tls: bool = Field(default=False, description="Connect to Redis over TLS")
    redis_socket_timeout: float | None = Field(default=None, gt=0)

    # Memcached
    servers: list[str] = Field(default_factory=list, description="Memcached host:port entries")
    memcached_timeout: float = Field(default=0.5, gt=0)
    memcached_connect_timeout: float = Field(default=0.5, gt=0)
    memcached_retry_attempts: int = Field(default=5, ge=0)
    memcached_retry_timeout: float = Field(default=0.5, ge=0)
    memcached_dead_timeout: float = Field(default=10.0, ge=0)
    memcached_max_pool_size: int = Field(default=200, ge=1)

    # In-memory
    namespace: str = Field(default="", description="Namespace separating in-memory instances")

    normalize_servers = field_validator("servers", mode="before")(_split_servers)
    normalize_consistent_behavior = field_validator("consistent_behavior", mode="before")(_consistent_flag)

    @property
    def consistency_mode(self) -> ConsistencyMode:
        return ConsistencyMode.from_flag(self.consistent_behavior)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CacheConfig:
        """Validate a plain mapping, raising ConfigurationError on bad input.

        Example:
            >>> from cachespine.core.config import CacheConfig
            >>> CacheConfig.from_mapping({"engine": "none"}).engine.value
            'none'
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid cache configuration: {e}") from e


class Settings(BaseSettings):
    """Application settings.

    Loads from environment variables with CACHESPINE_ prefix.

    Example:
        >>> from cachespine.core.config import Settings
        >>> s = Settings(engine="none")
        >>> s.log_level
        'INFO'
        >>> s.to_cache_config().engine.value
        'none'
    """

    model_config = SettingsConfigDict(
        env_prefix="CACHESPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    engine: CacheEngine = Field(default=CacheEngine.NONE, description="Cache engine")
    consistent_behavior: bool = Field(default=True)
    default_ttl: int = Field(default=DEFAULT_TTL_SECONDS, ge=1)

    host: str | None = Field(default=None)
    port: int | None = Field(default=None, ge=1, le=65535)
    password: str | None = Field(default=None)
    enable_tls: bool = Field(default=False)
    redis_socket_timeout: float | None = Field(default=None, gt=0)

    servers: Annotated[list[str], NoDecode] = Field(default_factory=list)
    memcached_timeout: float = Field(default=0.5, gt=0)
    memcached_connect_timeout: float = Field(default=0.5, gt=0)
    memcached_retry_attempts: int = Field(default=5, ge=0)
    memcached_retry_timeout: float = Field(default=0.5, ge=0)
    memcached_dead_timeout: float = Field(default=10.0, ge=0)
    memcached_max_pool_size: int = Field(default=200, ge=1)

    namespace: str = Field(default="")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    normalize_servers = field_validator("servers", mode="before")(_split_servers)
    normalize_consistent_behavior = field_validator("consistent_behavior", mode="before")(_consistent_flag)

    def to_cache_config(self) -> CacheConfig:
        """Build the adapter configuration described by these settings."""
        data = self.model_dump(exclude={"log_level"})
        return CacheConfig.model_validate(data)


def get_settings(**overrides: Any) -> Settings:
    """Get settings with optional overrides.

    Example:
        >>> from cachespine.core.config import get_settings
        >>> get_settings(default_ttl=60).default_ttl
        60
    """
    return Settings(**overrides)
