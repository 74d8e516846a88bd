"""Redis cache backend.

Wraps ``redis.asyncio.Redis``. Connection pooling, reconnection and
retries belong to redis-py; this adapter only normalizes behavior.

Redis is the least capable engine and defines the strict contract:
plain values must be scalars, objects live in hashes written by
``set_object``, counters never auto-create.

Example:
    >>> from cachespine.cache.redis import RedisCache
    >>> cache = RedisCache(host="localhost", port=6379)
    >>> cache.engine.value
    'redis'

Note:
    Values read back through ``get`` are strings, as Redis stores them.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import RedisError, ResponseError

from cachespine.cache.base import LOCK_VALUE, BaseCache
from cachespine.core.config import DEFAULT_TTL_SECONDS
from cachespine.core.errors import CacheErrorCode
from cachespine.models.base import CacheEngine, ConsistencyMode
from cachespine.models.result import CacheResult
from cachespine.utils.validation import is_structured, validate_value

logger = logging.getLogger(__name__)


def _encode(value: Any) -> Any:
    # redis-py refuses booleans; store them the way JSON spells them.
    if isinstance(value, bool):
        return json.dumps(value)
    return value


def _decode_field(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError:
        return raw


class RedisCache(BaseCache):
    """Redis cache engine.

    Args:
        host: Redis host.
        port: Redis port.
        password: Redis password, if any.
        enable_tls: Connect over TLS.
        mode: Consistency mode.
        default_ttl: Seconds used when an operation gets no valid TTL.
        socket_timeout: Per-command socket timeout in seconds.
        client: Pre-built client, mainly for tests.
    """

    engine = CacheEngine.REDIS
    id_prefix = "c_r"

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        password: str | None = None,
        enable_tls: bool = False,
        mode: ConsistencyMode = ConsistencyMode.STRICT,
        default_ttl: int = DEFAULT_TTL_SECONDS,
        socket_timeout: float | None = None,
        client: Redis | None = None,
    ) -> None:
        super().__init__(mode=mode, default_ttl=default_ttl)
        self.host = host
        self.port = port
        self.enable_tls = enable_tls
        self._client = client if client is not None else Redis(
            host=host,
            port=port,
            password=password or None,
            ssl=enable_tls,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=socket_timeout,
            retry_on_timeout=True,
            retry=Retry(ExponentialBackoff(), 3),
        )

    async def close(self) -> None:
        """Close the connection pool."""
        await self._client.aclose()
        await super().close()

    async def get(self, key: str) -> CacheResult:
        if failure := self._check_key("g_1", key):
            return failure

        try:
            value = await self._client.get(key)
        except RedisError as e:
            return self._backend_failure("g_2", e, key=key)
        return CacheResult.ok(value)

    async def get_object(self, key: str) -> CacheResult:
        """Read an object written by set_object. An absent hash reads as None."""
        if failure := self._check_key("go_1", key):
            return failure

        try:
            fields = await self._client.hgetall(key)
        except RedisError as e:
            return self._backend_failure("go_2", e, key=key)
        if not fields:
            return CacheResult.ok(None)
        return CacheResult.ok({name: _decode_field(raw) for name, raw in fields.items()})

    async def set(self, key: str, value: Any, ttl: int | None = None) -> CacheResult:
        if failure := self._check_key("s_1", key, value=value, ttl=ttl):
            return failure
        if is_structured(value) or not validate_value(value):
            return self._fail("s_2", CacheErrorCode.INVALID_CACHE_VALUE, key=key, value=value, ttl=ttl)
        ttl = self._resolve_ttl(ttl)

        try:
            await self._client.set(key, _encode(value), ex=ttl)
        except RedisError as e:
            return self._backend_failure("s_3", e, key=key, value=value, ttl=ttl)
        return CacheResult.ok(True)

    async def set_object(self, key: str, obj: Any, ttl: int | None = None) -> CacheResult:
        """Store a mapping as a hash of JSON-encoded fields.

        HSET merges into an existing hash and never clears stale fields, so
        the key is deleted first. DEL, HSET and EXPIRE run in one MULTI/EXEC
        block, so readers never see the key missing in between.
        """
        if failure := self._check_key("so_1", key, object=obj, ttl=ttl):
            return failure
        if not isinstance(obj, Mapping) or not validate_value(obj):
            return self._fail("so_2", CacheErrorCode.INVALID_CACHE_VALUE, key=key, object=obj, ttl=ttl)
        ttl = self._resolve_ttl(ttl)
        fields = {str(name): json.dumps(value) for name, value in obj.items()}

        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.delete(key)
                if fields:
                    pipe.hset(key, mapping=fields)
                    pipe.expire(key, ttl)
                await pipe.execute()
        except RedisError as e:
            return self._backend_failure("so_3", e, key=key, object=obj, ttl=ttl)
        return CacheResult.ok(True)

    async def delete(self, key: str) -> CacheResult:
        if failure := self._check_key("d_1", key):
            return failure

        try:
            await self._client.delete(key)
        except RedisError as e:
            return self._backend_failure("d_2", e, key=key)
        return CacheResult.ok(True)

    async def delete_all(self) -> CacheResult:
        try:
            await self._client.flushdb()
        except RedisError as e:
            return self._backend_failure("da_1", e, code=CacheErrorCode.FLUSH_ALL_KEYS_FAILED)
        return CacheResult.ok(True)

    async def multi_get(self, keys: Sequence[str]) -> CacheResult:
        """Get many keys. Hashes written by set_object read as None."""
        if failure := self._check_keys("mg", keys):
            return failure

        keys = list(keys)
        try:
            values = await self._client.mget(keys)
        except RedisError as e:
            return self._backend_failure("mg_3", e, keys=keys)
        return CacheResult.ok(self._scalars_only(dict(zip(keys, values))))

    async def increment(self, key: str, by_value: int = 1) -> CacheResult:
        return await self._apply_delta("i", key, by_value, sign=1)

    async def decrement(self, key: str, by_value: int = 1) -> CacheResult:
        return await self._apply_delta("dc", key, by_value, sign=-1)

    async def touch(self, key: str, lifetime: int) -> CacheResult:
        """Change the expiry of a key. A lifetime of 0 removes it."""
        if failure := self._check_key("t_1", key, lifetime=lifetime):
            return failure
        if failure := self._check_lifetime("t_2", key, lifetime):
            return failure

        try:
            found = await self._client.expire(key, int(lifetime))
        except RedisError as e:
            return self._backend_failure("t_3", e, key=key, lifetime=lifetime)
        if not found:
            return self._fail("t_4", CacheErrorCode.MISSING_CACHE_KEY, key=key, lifetime=lifetime)
        return CacheResult.ok(True)

    async def acquire_lock(self, key: str, ttl: int | None = None) -> CacheResult:
        if failure := self._check_key("al_1", key, ttl=ttl):
            return failure
        ttl = self._resolve_ttl(ttl)

        try:
            acquired = await self._client.set(key, LOCK_VALUE, nx=True, ex=ttl)
        except RedisError as e:
            return self._backend_failure("al_2", e, key=key, ttl=ttl)
        if not acquired:
            return self._fail("al_3", CacheErrorCode.ACQUIRE_LOCK_FAILED, key=key, ttl=ttl)
        return CacheResult.ok(True)

    async def _apply_delta(self, site: str, key: str, by_value: Any, sign: int) -> CacheResult:
        """Read the counter, then apply INCRBY/DECRBY.

        INCRBY would silently create a missing key, so the current value is
        read first in both modes. The read and the write are separate round
        trips; a concurrent writer can slip in between.
        """
        if failure := self._check_key(f"{site}_1", key, by_value=by_value):
            return failure
        if failure := self._check_by_value(f"{site}_2", key, by_value):
            return failure
        by_value = int(by_value)

        try:
            raw = await self._client.get(key)
            if raw is None:
                return self._fail(f"{site}_3", CacheErrorCode.MISSING_CACHE_KEY, key=key, by_value=by_value)
            try:
                current = int(raw)
            except ValueError:
                return self._fail(
                    f"{site}_4", CacheErrorCode.NON_NUMERIC_CACHE_VALUE, key=key, by_value=by_value
                )

            if sign > 0:
                updated = await self._client.incrby(key, by_value)
            else:
                delta = by_value
                if self.is_strict:
                    # Unsigned counter semantics: never go below zero.
                    delta = current - max(current - by_value, 0)
                updated = await self._client.decrby(key, delta)
        except ResponseError as e:
            return self._backend_failure(
                f"{site}_5", e, code=CacheErrorCode.NON_NUMERIC_CACHE_VALUE, key=key, by_value=by_value
            )
        except RedisError as e:
            return self._backend_failure(f"{site}_6", e, key=key, by_value=by_value)
        return CacheResult.ok(updated)

    def __repr__(self) -> str:
        return f"RedisCache(host={self.host!r}, port={self.port}, tls={self.enable_tls}, mode={self.mode.value})"
