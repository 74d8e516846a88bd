"""Base cache adapter.

Holds what every engine shares: input validation, TTL defaulting, the
consistency mode and result construction. Engines only implement the
storage-specific work.

Example:
    >>> from cachespine.cache.base import BaseCache
    >>> hasattr(BaseCache, "release_lock")
    True
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from types import TracebackType
from typing import Any, ClassVar

from cachespine.core.config import DEFAULT_TTL_SECONDS
from cachespine.core.errors import CacheErrorCode, build_error
from cachespine.models.base import CacheEngine, ConsistencyMode
from cachespine.models.result import CacheResult
from cachespine.utils.validation import (
    is_array,
    is_non_negative_int,
    is_positive_int,
    is_structured,
    validate_key,
    validate_ttl,
    validate_value,
)

logger = logging.getLogger(__name__)

LOCK_VALUE = "LOCKED"


class BaseCache(ABC):
    """Base class for cache adapters.

    Subclasses set ``engine`` and ``id_prefix`` and implement the abstract
    operations. ``id_prefix`` namespaces the internal identifiers of
    failures so each one points at a single failure site.
    """

    engine: ClassVar[CacheEngine]
    id_prefix: ClassVar[str]

    def __init__(
        self,
        mode: ConsistencyMode = ConsistencyMode.STRICT,
        default_ttl: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        """Initialize the adapter.

        Args:
            mode: Strict forces the Redis-like contract; lenient lets
                native engine behavior through.
            default_ttl: Seconds used when an operation gets no valid TTL.
        """
        self.mode = mode
        self.default_ttl = default_ttl
        self._initialized = False

    @property
    def is_strict(self) -> bool:
        return self.mode.is_strict

    # --- Lifecycle ---

    async def initialize(self) -> None:
        """Prepare the adapter for use."""
        self._initialized = True

    async def close(self) -> None:
        """Clean up resources."""
        self._initialized = False

    async def __aenter__(self) -> BaseCache:
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # --- Operations ---

    @abstractmethod
    async def get(self, key: str) -> CacheResult: ...

    async def get_object(self, key: str) -> CacheResult:
        """Get a value stored with set_object.

        Engines without a separate object representation read it like any
        other value.
        """
        return await self.get(key)

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> CacheResult: ...

    async def set_object(self, key: str, obj: Any, ttl: int | None = None) -> CacheResult:
        """Store an object.

        Non-structured values are rejected. Arrays are rejected in strict
        mode because the Redis engine cannot represent them.
        """
        if failure := self._check_key("so_1", key, object=obj, ttl=ttl):
            return failure
        if not is_structured(obj):
            return self._fail("so_2", CacheErrorCode.INVALID_CACHE_VALUE, key=key, object=obj, ttl=ttl)
        if self.is_strict and is_array(obj):
            return self._fail("so_3", CacheErrorCode.ARRAY_IS_INVALID_CACHE_VALUE, key=key, object=obj, ttl=ttl)
        return await self.set(key, obj, ttl)

    @abstractmethod
    async def delete(self, key: str) -> CacheResult: ...

    @abstractmethod
    async def delete_all(self) -> CacheResult: ...

    @abstractmethod
    async def multi_get(self, keys: Sequence[str]) -> CacheResult: ...

    @abstractmethod
    async def increment(self, key: str, by_value: int = 1) -> CacheResult: ...

    @abstractmethod
    async def decrement(self, key: str, by_value: int = 1) -> CacheResult: ...

    @abstractmethod
    async def touch(self, key: str, lifetime: int) -> CacheResult: ...

    @abstractmethod
    async def acquire_lock(self, key: str, ttl: int | None = None) -> CacheResult: ...

    async def release_lock(self, key: str) -> CacheResult:
        """Release a lock. Locks carry no owner, so this is a plain delete."""
        return await self.delete(key)

    # --- Validation helpers ---

    def _fail(self, site: str, code: CacheErrorCode, **debug: Any) -> CacheResult:
        return build_error(f"{self.id_prefix}_{site}", code, **debug)

    def _backend_failure(
        self,
        site: str,
        error: Exception,
        code: CacheErrorCode = CacheErrorCode.SOMETHING_WENT_WRONG,
        **debug: Any,
    ) -> CacheResult:
        logger.error(f"{self.engine.value} cache error at {self.id_prefix}_{site}: {error!r}")
        return self._fail(site, code, error=error, **debug)

    def _resolve_ttl(self, ttl: Any) -> int:
        """Return ``ttl`` in whole seconds, or the default when missing, zero or negative.

        Example:
            >>> from cachespine.cache.memory import MemoryCache
            >>> cache = MemoryCache(default_ttl=60)
            >>> cache._resolve_ttl(None), cache._resolve_ttl(0), cache._resolve_ttl(2.2)
            (60, 60, 3)
        """
        if validate_ttl(ttl) and ttl > 0:
            return int(math.ceil(ttl))
        return self.default_ttl

    def _check_key(self, site: str, key: Any, **debug: Any) -> CacheResult | None:
        if validate_key(key):
            return None
        return self._fail(site, CacheErrorCode.INVALID_CACHE_KEY, key=key, **debug)

    def _check_value(
        self, value_site: str, array_site: str, key: str, value: Any, ttl: Any
    ) -> CacheResult | None:
        """Reject absent or oversized values, and arrays in strict mode."""
        if not validate_value(value):
            return self._fail(value_site, CacheErrorCode.INVALID_CACHE_VALUE, key=key, value=value, ttl=ttl)
        if self.is_strict and is_array(value):
            return self._fail(
                array_site, CacheErrorCode.ARRAY_IS_INVALID_CACHE_VALUE, key=key, value=value, ttl=ttl
            )
        return None

    def _check_keys(self, site: str, keys: Any) -> CacheResult | None:
        if not isinstance(keys, Sequence) or isinstance(keys, (str, bytes)) or len(keys) == 0:
            return self._fail(f"{site}_1", CacheErrorCode.CACHE_KEYS_NON_ARRAY, keys=keys)
        for key in keys:
            if not validate_key(key):
                return self._fail(f"{site}_2", CacheErrorCode.INVALID_CACHE_KEY, invalid_key=key)
        return None

    def _check_by_value(self, site: str, key: str, by_value: Any) -> CacheResult | None:
        if is_positive_int(by_value):
            return None
        return self._fail(site, CacheErrorCode.NON_INT_CACHE_VALUE, key=key, by_value=by_value)

    def _check_lifetime(self, site: str, key: str, lifetime: Any) -> CacheResult | None:
        if is_non_negative_int(lifetime):
            return None
        return self._fail(site, CacheErrorCode.CACHE_EXPIRY_NAN, key=key, lifetime=lifetime)

    @staticmethod
    def _scalars_only(values: Mapping[str, Any]) -> dict[str, Any]:
        """Hide structured values from multi_get results.

        Redis cannot read hashes through MGET, so every engine reports
        objects and arrays as None there.
        """
        return {key: None if is_structured(value) else value for key, value in values.items()}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(mode={self.mode.value}, default_ttl={self.default_ttl})"
