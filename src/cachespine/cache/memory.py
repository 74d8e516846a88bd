"""In-memory cache backend with TTL support.

Implements the full CacheBackend contract on a plain dict, useful for
tests and single-process development. Every worker process holds its own
copy, so it must not be used where several processes share a cache.

Expired records are removed lazily when they are next accessed. There is
no background sweeper: keys that are never read again stay in memory.

Example:
    >>> import asyncio
    >>> from cachespine.cache.memory import MemoryCache
    >>> cache = MemoryCache()
    >>> asyncio.run(cache.set("key1", "value1")).response
    True
    >>> asyncio.run(cache.get("key1")).response
    'value1'
"""

from __future__ import annotations

import copy
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from cachespine.cache.base import LOCK_VALUE, BaseCache
from cachespine.core.config import DEFAULT_TTL_SECONDS
from cachespine.core.errors import CacheErrorCode
from cachespine.models.base import CacheEngine, ConsistencyMode
from cachespine.models.result import CacheResult

FAR_FUTURE = timedelta(days=365 * 20)


def _far_future() -> datetime:
    return datetime.now(UTC) + FAR_FUTURE


def _as_number(value: Any) -> int | float | None:
    """Return the numeric form of a stored value, or None if it has none."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


@dataclass
class Record:
    """A cached value with its expiry.

    Records without an explicit lifetime expire about 20 years from now.

    Example:
        >>> from cachespine.cache.memory import Record
        >>> record = Record(value="data")
        >>> record.has_expired
        False
        >>> record.set_expiry(0)
        >>> record.has_expired
        True
    """

    value: Any
    expires_at: datetime = field(default_factory=_far_future)

    @classmethod
    def create(cls, value: Any, ttl: int | None = None) -> Record:
        record = cls(value=value)
        if ttl:
            record.set_expiry(ttl)
        return record

    def set_value(self, value: Any) -> None:
        self.value = value

    def set_expiry(self, ttl_seconds: float) -> None:
        """Expire ``ttl_seconds`` from now. Zero or less expires immediately."""
        now = datetime.now(UTC)
        if ttl_seconds <= 0:
            self.expires_at = now
        else:
            self.expires_at = now + timedelta(seconds=ttl_seconds)

    @property
    def has_expired(self) -> bool:
        return datetime.now(UTC) >= self.expires_at


class MemoryCache(BaseCache):
    """In-memory cache engine.

    Operations never suspend: all work is synchronous inside the coroutine,
    so a single event loop never interleaves two operations on one key.

    Values are copied on write and on read, so callers never share state
    with the cache, as with the remote engines.

    Example:
        >>> import asyncio
        >>> from cachespine.cache.memory import MemoryCache
        >>> cache = MemoryCache()
        >>> asyncio.run(cache.increment("hits")).error_code
        'missing_cache_key'
        >>> lenient = MemoryCache(mode=ConsistencyMode.LENIENT)
        >>> asyncio.run(lenient.increment("hits")).response
        1
    """

    engine = CacheEngine.NONE
    id_prefix = "c_im"

    def __init__(
        self,
        mode: ConsistencyMode = ConsistencyMode.STRICT,
        default_ttl: int = DEFAULT_TTL_SECONDS,
        namespace: str = "",
    ) -> None:
        """Initialize the cache.

        Args:
            mode: Consistency mode.
            default_ttl: Seconds used when an operation gets no valid TTL.
            namespace: Label separating otherwise identical instances.
        """
        super().__init__(mode=mode, default_ttl=default_ttl)
        self.namespace = namespace
        self._records: dict[str, Record] = {}

    async def get(self, key: str) -> CacheResult:
        if failure := self._check_key("g_1", key):
            return failure

        record = self._get_record(key)
        return CacheResult.ok(copy.deepcopy(record.value) if record else None)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> CacheResult:
        if failure := self._check_key("s_1", key, value=value, ttl=ttl):
            return failure
        if failure := self._check_value("s_2", "s_3", key, value, ttl):
            return failure

        self._store(key, value, self._resolve_ttl(ttl))
        return CacheResult.ok(True)

    async def delete(self, key: str) -> CacheResult:
        if failure := self._check_key("d_1", key):
            return failure

        self._records.pop(key, None)
        return CacheResult.ok(True)

    async def delete_all(self) -> CacheResult:
        return self._fail("da_1", CacheErrorCode.FLUSH_ALL_NOT_SUPPORTED)

    async def multi_get(self, keys: Sequence[str]) -> CacheResult:
        if failure := self._check_keys("mg", keys):
            return failure

        values = {}
        for key in keys:
            record = self._get_record(key)
            values[key] = record.value if record else None
        return CacheResult.ok(self._scalars_only(values))

    async def increment(self, key: str, by_value: int = 1) -> CacheResult:
        return self._apply_delta("i", key, by_value, sign=1)

    async def decrement(self, key: str, by_value: int = 1) -> CacheResult:
        return self._apply_delta("dc", key, by_value, sign=-1)

    async def touch(self, key: str, lifetime: int) -> CacheResult:
        if failure := self._check_key("t_1", key, lifetime=lifetime):
            return failure
        if failure := self._check_lifetime("t_2", key, lifetime):
            return failure

        record = self._get_record(key)
        if record is None:
            return self._fail("t_3", CacheErrorCode.MISSING_CACHE_KEY, key=key, lifetime=lifetime)

        if lifetime == 0:
            del self._records[key]
        else:
            record.set_expiry(lifetime)
        return CacheResult.ok(True)

    async def acquire_lock(self, key: str, ttl: int | None = None) -> CacheResult:
        if failure := self._check_key("al_1", key, ttl=ttl):
            return failure

        ttl = self._resolve_ttl(ttl)
        if self._get_record(key) is not None:
            return self._fail("al_2", CacheErrorCode.ACQUIRE_LOCK_FAILED, key=key, ttl=ttl)

        self._store(key, LOCK_VALUE, ttl)
        return CacheResult.ok(True)

    # --- Internals ---

    def _apply_delta(self, site: str, key: str, by_value: Any, sign: int) -> CacheResult:
        if failure := self._check_key(f"{site}_1", key, by_value=by_value):
            return failure
        if failure := self._check_by_value(f"{site}_2", key, by_value):
            return failure
        by_value = int(by_value)

        record = self._get_record(key)
        if record is None:
            if self.is_strict:
                return self._fail(f"{site}_3", CacheErrorCode.MISSING_CACHE_KEY, key=key, by_value=by_value)
            # Memcached-style auto-create.
            record = self._store(key, 0, self.default_ttl)

        current = _as_number(record.value)
        if current is None:
            return self._fail(f"{site}_4", CacheErrorCode.NON_NUMERIC_CACHE_VALUE, key=key, by_value=by_value)

        updated = current + sign * by_value
        if sign < 0 and self.is_strict:
            # Unsigned counter semantics.
            updated = max(updated, 0)
        record.set_value(updated)
        return CacheResult.ok(updated)

    def _store(self, key: str, value: Any, ttl: int) -> Record:
        record = self._get_record(key)
        if record is None:
            record = Record.create(copy.deepcopy(value), ttl)
            self._records[key] = record
        else:
            record.set_value(copy.deepcopy(value))
            record.set_expiry(ttl)
        return record

    def _get_record(self, key: str) -> Record | None:
        """Return the live record for ``key``, dropping it if expired."""
        record = self._records.get(key)
        if record is None:
            return None
        if record.has_expired:
            del self._records[key]
            return None
        return record

    def __len__(self) -> int:
        """Return number of records (including expired ones not yet accessed).

        Example:
            >>> import asyncio
            >>> from cachespine.cache.memory import MemoryCache
            >>> cache = MemoryCache()
            >>> len(cache)
            0
            >>> _ = asyncio.run(cache.set("a", 1))
            >>> len(cache)
            1
        """
        return len(self._records)

    def __repr__(self) -> str:
        return f"MemoryCache(mode={self.mode.value}, namespace={self.namespace!r})"
