"""Data models."""

from cachespine.models.base import CacheEngine, CacheSpineModel, ConsistencyMode
from cachespine.models.result import CacheError, CacheResult

__all__ = [
    "CacheEngine",
    "CacheError",
    "CacheResult",
    "CacheSpineModel",
    "ConsistencyMode",
]
