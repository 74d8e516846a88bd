"""Protocol definitions."""

from cachespine.protocols.cache import CacheBackend

__all__ = [
    "CacheBackend",
]
