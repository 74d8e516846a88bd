"""Engine selection and adapter registry.

``create_cache`` turns a ``CacheConfig`` into the matching adapter.
``CacheRegistry`` memoizes adapters by fingerprint, so every caller that
asks for the same engine, consistency mode and endpoint shares one adapter
and its connection pool.

Example:
    >>> import asyncio
    >>> from cachespine.cache.factory import CacheRegistry
    >>> registry = CacheRegistry()
    >>> async def demo():
    ...     cache = await registry.get({"engine": "none", "namespace": "docs"})
    ...     return cache is await registry.get({"engine": "none", "namespace": "docs"})
    >>> asyncio.run(demo())
    True
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from cachespine.cache.base import BaseCache
from cachespine.cache.memcached import MemcachedCache
from cachespine.cache.memory import MemoryCache
from cachespine.cache.redis import RedisCache
from cachespine.core.config import CacheConfig
from cachespine.core.exceptions import ConfigurationError
from cachespine.models.base import CacheEngine

logger = logging.getLogger(__name__)


def _as_config(config: CacheConfig | Mapping[str, Any]) -> CacheConfig:
    if isinstance(config, CacheConfig):
        return config
    return CacheConfig.from_mapping(config)


def _endpoint(config: CacheConfig) -> str:
    if config.engine == CacheEngine.REDIS:
        host = (config.host or "").lower()
        return f"{host}:{config.port}:{str(config.enable_tls).lower()}"
    if config.engine == CacheEngine.MEMCACHED:
        return ",".join(sorted(server.lower() for server in config.servers))
    return config.namespace


def fingerprint(config: CacheConfig) -> str:
    """Identify the adapter a configuration resolves to.

    Example:
        >>> from cachespine.core.config import CacheConfig
        >>> fingerprint(CacheConfig(engine="redis", host="Cache.local", port=6379))
        'redis-true-cache.local:6379:false'
        >>> fingerprint(CacheConfig(engine="memcached", servers="b:11211,a:11211", consistent_behavior=False))
        'memcached-false-a:11211,b:11211'
    """
    consistent = str(config.consistent_behavior).lower()
    return f"{config.engine.value}-{consistent}-{_endpoint(config)}"


def create_cache(config: CacheConfig) -> BaseCache:
    """Build a new adapter for ``config``.

    Raises:
        ConfigurationError: If the engine's connection parameters are missing.
    """
    mode = config.consistency_mode

    if config.engine == CacheEngine.REDIS:
        missing = [name for name in ("host", "port") if not getattr(config, name)]
        if missing:
            raise ConfigurationError(f"Redis cache requires: {', '.join(missing)}")
        cache: BaseCache = RedisCache(
            host=config.host,
            port=config.port,
            password=config.password,
            enable_tls=config.enable_tls,
            mode=mode,
            default_ttl=config.default_ttl,
            socket_timeout=config.redis_socket_timeout,
        )
    elif config.engine == CacheEngine.MEMCACHED:
        if not config.servers:
            raise ConfigurationError("Memcached cache requires at least one server")
        cache = MemcachedCache(
            servers=config.servers,
            mode=mode,
            default_ttl=config.default_ttl,
            timeout=config.memcached_timeout,
            connect_timeout=config.memcached_connect_timeout,
            retry_attempts=config.memcached_retry_attempts,
            retry_timeout=config.memcached_retry_timeout,
            dead_timeout=config.memcached_dead_timeout,
            max_pool_size=config.memcached_max_pool_size,
        )
    elif config.engine == CacheEngine.NONE:
        cache = MemoryCache(mode=mode, default_ttl=config.default_ttl, namespace=config.namespace)
    else:
        raise ConfigurationError(f"Unknown cache engine: {config.engine!r}")

    logger.info(f"Created {cache!r}")
    return cache


class CacheRegistry:
    """Memoized adapters keyed by fingerprint.

    Owned by the application's composition root. A new adapter is
    initialized before it is handed out, which writes the Memcached
    warm-up key. ``close`` releases every adapter and empties the registry.

    Example:
        >>> import asyncio
        >>> from cachespine.cache.factory import CacheRegistry
        >>> registry = CacheRegistry()
        >>> lenient = asyncio.run(registry.get({"engine": "none", "consistent_behavior": False}))
        >>> strict = asyncio.run(registry.get({"engine": "none"}))
        >>> lenient is strict
        False
        >>> len(registry), {"engine": "none"} in registry
        (2, True)
    """

    def __init__(self) -> None:
        self._caches: dict[str, BaseCache] = {}

    async def get(self, config: CacheConfig | Mapping[str, Any]) -> BaseCache:
        """Return the adapter for ``config``, creating it on first use.

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        config = _as_config(config)

        key = fingerprint(config)
        cache = self._caches.get(key)
        if cache is None:
            cache = create_cache(config)
            # Registered before the first await so concurrent callers share it.
            self._caches[key] = cache
            await cache.initialize()
        return cache

    def __contains__(self, config: object) -> bool:
        if isinstance(config, str):
            return config in self._caches
        if isinstance(config, (CacheConfig, Mapping)):
            try:
                return fingerprint(_as_config(config)) in self._caches
            except ConfigurationError:
                return False
        return False

    def __len__(self) -> int:
        return len(self._caches)

    async def close(self) -> None:
        """Close every adapter."""
        caches = list(self._caches.values())
        self._caches.clear()
        for cache in caches:
            await cache.close()
        logger.debug(f"Closed {len(caches)} cache adapter(s)")
