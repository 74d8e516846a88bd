"""Base models and shared types.

This module provides the foundational models and enums used throughout CacheSpine.

Example:
    >>> from cachespine.models.base import CacheEngine, ConsistencyMode
    >>> CacheEngine.REDIS.value
    'redis'
    >>> ConsistencyMode.from_flag(True)
    <ConsistencyMode.STRICT: 'strict'>
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class CacheEngine(str, Enum):
    """Storage engine behind a cache adapter.

    Example:
        >>> list(CacheEngine)
        [<CacheEngine.REDIS: 'redis'>, <CacheEngine.MEMCACHED: 'memcached'>, <CacheEngine.NONE: 'none'>]
    """

    REDIS = "redis"  # Single-node key-value store
    MEMCACHED = "memcached"  # Distributed object cache cluster
    NONE = "none"  # In-process memory, dev only


class ConsistencyMode(str, Enum):
    """How much native backend behavior an adapter lets through.

    STRICT forces the lowest-common-denominator (Redis-like) contract on
    every engine. LENIENT lets each engine's native laxity show.

    Example:
        >>> ConsistencyMode.STRICT.is_strict
        True
        >>> ConsistencyMode.from_flag(False).value
        'lenient'
    """

    STRICT = "strict"
    LENIENT = "lenient"

    @classmethod
    def from_flag(cls, consistent_behavior: bool) -> ConsistencyMode:
        """Map the ``consistent_behavior`` configuration flag to a mode."""
        return cls.STRICT if consistent_behavior else cls.LENIENT

    @property
    def is_strict(self) -> bool:
        return self is ConsistencyMode.STRICT


class CacheSpineModel(BaseModel):
    """Base model with standard configuration.

    Strings are never stripped: cache keys and values must round-trip exactly.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        validate_assignment=True,
        extra="forbid",
    )
