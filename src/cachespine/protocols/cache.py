"""Cache backend protocol.

Defines the operation set shared by every cache engine (Redis, Memcached,
in-memory). Every operation is async and resolves to a ``CacheResult``;
domain failures are returned, never raised.

Example:
    >>> from cachespine.protocols.cache import CacheBackend
    >>> hasattr(CacheBackend, "acquire_lock")
    True
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from cachespine.models.base import CacheEngine, ConsistencyMode
from cachespine.models.result import CacheResult


@runtime_checkable
class CacheBackend(Protocol):
    """Cache backend protocol.

    Implementations validate inputs before any I/O and wrap every outcome
    in a CacheResult.
    """

    engine: CacheEngine
    mode: ConsistencyMode
    default_ttl: int

    async def get(self, key: str) -> CacheResult:
        """Get a value. Response is None when absent or expired."""
        ...

    async def get_object(self, key: str) -> CacheResult:
        """Get a value stored with set_object."""
        ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> CacheResult:
        """Store a value. Response is True."""
        ...

    async def set_object(self, key: str, obj: Any, ttl: int | None = None) -> CacheResult:
        """Store an object (mapping). Response is True."""
        ...

    async def delete(self, key: str) -> CacheResult:
        """Delete a key. Succeeds whether or not it existed."""
        ...

    async def delete_all(self) -> CacheResult:
        """Delete every key of the backend."""
        ...

    async def multi_get(self, keys: Sequence[str]) -> CacheResult:
        """Get many keys. Response maps each key to its scalar value or None."""
        ...

    async def increment(self, key: str, by_value: int = 1) -> CacheResult:
        """Increment a counter. Response is the new value."""
        ...

    async def decrement(self, key: str, by_value: int = 1) -> CacheResult:
        """Decrement a counter. Response is the new value."""
        ...

    async def touch(self, key: str, lifetime: int) -> CacheResult:
        """Change the expiry of an existing key."""
        ...

    async def acquire_lock(self, key: str, ttl: int | None = None) -> CacheResult:
        """Create ``key`` only if absent. Fails if another holder owns it."""
        ...

    async def release_lock(self, key: str) -> CacheResult:
        """Release a lock. Same as delete."""
        ...

    async def close(self) -> None:
        """Clean up resources."""
        ...
