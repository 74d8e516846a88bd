"""Memcached cache backend.

Wraps ``pymemcache.client.hash.HashClient``, which spreads keys over the
server list with consistent hashing and handles pooling, retries and dead
servers. pymemcache is blocking, so each call runs in a worker thread via
``asyncio.to_thread`` and the event loop never waits on the network.

Example:
    >>> from cachespine.cache.memcached import MemcachedCache
    >>> cache = MemcachedCache(servers=["127.0.0.1:11211"])
    >>> cache.servers
    ['127.0.0.1:11211']

Note:
    Memcached counters are unsigned: decrement stops at zero in both
    consistency modes.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Callable, Sequence
from typing import Any

from pymemcache.client.hash import HashClient
from pymemcache.exceptions import MemcacheClientError, MemcacheError

from cachespine.cache.base import LOCK_VALUE, BaseCache
from cachespine.core.config import DEFAULT_TTL_SECONDS
from cachespine.core.errors import CacheErrorCode
from cachespine.models.base import CacheEngine, ConsistencyMode
from cachespine.models.result import CacheResult

logger = logging.getLogger(__name__)

# Memcached reads relative expiries above 30 days as Unix timestamps.
MAX_RELATIVE_EXPIRY = 60 * 60 * 24 * 30

WARMUP_KEY = "cachespine:init"

BackendErrors = (MemcacheError, OSError)


class FlagSerde:
    """pymemcache serde tagging each value with a type flag.

    Integers are stored as plain ASCII digits so the server-side INCR and
    DECR commands can operate on them.

    Example:
        >>> serde = FlagSerde()
        >>> serde.serialize("k", 42)
        (b'42', 2)
        >>> serde.deserialize("k", b'{"a":1}', FlagSerde.FLAG_JSON)
        {'a': 1}
    """

    FLAG_STR = 1
    FLAG_INT = 2
    FLAG_JSON = 3

    def serialize(self, key: str, value: Any) -> tuple[bytes, int]:
        if isinstance(value, str):
            return value.encode("utf-8"), self.FLAG_STR
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value).encode("ascii"), self.FLAG_INT
        return json.dumps(value, separators=(",", ":")).encode("utf-8"), self.FLAG_JSON

    def deserialize(self, key: str, value: bytes, flags: int) -> Any:
        # DECR may leave trailing spaces when the number gets shorter.
        if flags == self.FLAG_STR:
            text = value.decode("utf-8")
            digits = text.rstrip(" ")
            return digits if digits.isascii() and digits.isdigit() else text
        if flags == self.FLAG_INT:
            return int(value.strip())
        if flags == self.FLAG_JSON:
            return json.loads(value)
        return value


def parse_server(server: str) -> tuple[str, int]:
    """Split a ``host:port`` entry. The port defaults to 11211.

    Example:
        >>> parse_server("cache-1:11212")
        ('cache-1', 11212)
        >>> parse_server("cache-2")
        ('cache-2', 11211)
    """
    host, _, port = server.strip().rpartition(":")
    if not host:
        return port, 11211
    return host, int(port)


def to_expire(ttl: int) -> int:
    """Convert a relative TTL to the value Memcached expects.

    Example:
        >>> to_expire(60)
        60
        >>> to_expire(MAX_RELATIVE_EXPIRY + 1) > MAX_RELATIVE_EXPIRY
        True
    """
    if ttl > MAX_RELATIVE_EXPIRY:
        return int(time.time()) + ttl
    return ttl


class MemcachedCache(BaseCache):
    """Memcached cache engine.

    Args:
        servers: ``host:port`` entries of the cluster.
        mode: Consistency mode.
        default_ttl: Seconds used when an operation gets no valid TTL.
        timeout: Socket timeout in seconds.
        connect_timeout: Connect timeout in seconds.
        retry_attempts: Failures before a server is marked dead.
        retry_timeout: Seconds between retries of a failing server.
        dead_timeout: Seconds before a dead server is tried again.
        max_pool_size: Connections per server.
        client: Pre-built client, mainly for tests.
    """

    engine = CacheEngine.MEMCACHED
    id_prefix = "c_m"

    def __init__(
        self,
        servers: Sequence[str],
        mode: ConsistencyMode = ConsistencyMode.STRICT,
        default_ttl: int = DEFAULT_TTL_SECONDS,
        timeout: float = 0.5,
        connect_timeout: float = 0.5,
        retry_attempts: int = 5,
        retry_timeout: float = 0.5,
        dead_timeout: float = 10.0,
        max_pool_size: int = 200,
        client: Any | None = None,
    ) -> None:
        super().__init__(mode=mode, default_ttl=default_ttl)
        self.servers = [server.strip() for server in servers]
        self._client = client if client is not None else HashClient(
            [parse_server(server) for server in self.servers],
            serde=FlagSerde(),
            timeout=timeout,
            connect_timeout=connect_timeout,
            retry_attempts=retry_attempts,
            retry_timeout=retry_timeout,
            dead_timeout=dead_timeout,
            use_pooling=True,
            max_pool_size=max_pool_size,
            allow_unicode_keys=True,
            default_noreply=False,
        )

    async def initialize(self) -> None:
        """Write a warm-up key; the first write to a fresh pool can fail."""
        result = await self.set(WARMUP_KEY, 1)
        if result.is_failure:
            logger.warning(f"Memcached warm-up write failed: {result.error.debug.get('error')!r}")
        await super().initialize()

    async def close(self) -> None:
        """Close every server connection."""
        await self._call(self._client.close)
        await super().close()

    async def get(self, key: str) -> CacheResult:
        if failure := self._check_key("g_1", key):
            return failure

        try:
            value = await self._call(self._client.get, key)
        except BackendErrors as e:
            return self._backend_failure("g_2", e, key=key)
        return CacheResult.ok(value)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> CacheResult:
        if failure := self._check_key("s_1", key, value=value, ttl=ttl):
            return failure
        if failure := self._check_value("s_2", "s_3", key, value, ttl):
            return failure
        ttl = self._resolve_ttl(ttl)

        try:
            stored = await self._call(self._client.set, key, value, expire=to_expire(ttl))
        except BackendErrors as e:
            return self._backend_failure("s_4", e, key=key, value=value, ttl=ttl)
        if not stored:
            return self._fail("s_5", CacheErrorCode.SOMETHING_WENT_WRONG, key=key, value=value, ttl=ttl)
        return CacheResult.ok(True)

    async def delete(self, key: str) -> CacheResult:
        if failure := self._check_key("d_1", key):
            return failure

        try:
            await self._call(self._client.delete, key)
        except BackendErrors as e:
            return self._backend_failure("d_2", e, key=key)
        return CacheResult.ok(True)

    async def delete_all(self) -> CacheResult:
        try:
            await self._call(self._client.flush_all)
        except BackendErrors as e:
            return self._backend_failure("da_1", e, code=CacheErrorCode.FLUSH_ALL_KEYS_FAILED)
        return CacheResult.ok(True)

    async def multi_get(self, keys: Sequence[str]) -> CacheResult:
        if failure := self._check_keys("mg", keys):
            return failure

        keys = list(keys)
        try:
            found = await self._call(self._client.get_many, keys)
        except BackendErrors as e:
            return self._backend_failure("mg_3", e, keys=keys)
        return CacheResult.ok(self._scalars_only({key: found.get(key) for key in keys}))

    async def increment(self, key: str, by_value: int = 1) -> CacheResult:
        return await self._apply_delta("i", self._client.incr, key, by_value)

    async def decrement(self, key: str, by_value: int = 1) -> CacheResult:
        return await self._apply_delta("dc", self._client.decr, key, by_value)

    async def touch(self, key: str, lifetime: int) -> CacheResult:
        """Change the expiry of a key.

        Memcached reads an expiry of 0 as "never expire". Strict mode sends
        -1 instead so that 0 expires the key, as on the other engines.
        """
        if failure := self._check_key("t_1", key, lifetime=lifetime):
            return failure
        if failure := self._check_lifetime("t_2", key, lifetime):
            return failure
        lifetime = int(lifetime)
        expire = -1 if lifetime == 0 and self.is_strict else to_expire(lifetime)

        try:
            found = await self._call(self._client.touch, key, expire)
        except BackendErrors as e:
            return self._backend_failure("t_3", e, key=key, lifetime=lifetime)
        if not found:
            return self._fail("t_4", CacheErrorCode.MISSING_CACHE_KEY, key=key, lifetime=lifetime)
        return CacheResult.ok(True)

    async def acquire_lock(self, key: str, ttl: int | None = None) -> CacheResult:
        if failure := self._check_key("al_1", key, ttl=ttl):
            return failure
        ttl = self._resolve_ttl(ttl)

        try:
            added = await self._call(self._client.add, key, LOCK_VALUE, expire=to_expire(ttl))
        except BackendErrors as e:
            return self._backend_failure("al_2", e, key=key, ttl=ttl)
        if not added:
            return self._fail("al_3", CacheErrorCode.ACQUIRE_LOCK_FAILED, key=key, ttl=ttl)
        return CacheResult.ok(True)

    async def _apply_delta(
        self,
        site: str,
        command: Callable[..., int | None],
        key: str,
        by_value: Any,
    ) -> CacheResult:
        """Run INCR/DECR, creating the counter first in lenient mode."""
        if failure := self._check_key(f"{site}_1", key, by_value=by_value):
            return failure
        if failure := self._check_by_value(f"{site}_2", key, by_value):
            return failure
        by_value = int(by_value)

        try:
            updated = await self._call(command, key, by_value)
            if updated is None and not self.is_strict:
                # ADD loses quietly if another client created the counter first.
                await self._call(self._client.add, key, 0, expire=to_expire(self.default_ttl))
                updated = await self._call(command, key, by_value)
        except MemcacheClientError as e:
            return self._backend_failure(
                f"{site}_4", e, code=CacheErrorCode.NON_NUMERIC_CACHE_VALUE, key=key, by_value=by_value
            )
        except BackendErrors as e:
            return self._backend_failure(f"{site}_5", e, key=key, by_value=by_value)

        if updated is None:
            return self._fail(f"{site}_3", CacheErrorCode.MISSING_CACHE_KEY, key=key, by_value=by_value)
        return CacheResult.ok(updated)

    async def _call(self, method: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        return await asyncio.to_thread(method, *args, **kwargs)

    def __repr__(self) -> str:
        return f"MemcachedCache(servers={self.servers!r}, mode={self.mode.value})"
