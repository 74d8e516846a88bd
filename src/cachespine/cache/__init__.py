"""Cache engines and adapter registry."""

from cachespine.cache.base import LOCK_VALUE, BaseCache
from cachespine.cache.factory import CacheRegistry, create_cache, fingerprint
from cachespine.cache.memcached import MemcachedCache
from cachespine.cache.memory import MemoryCache, Record
from cachespine.cache.redis import RedisCache

__all__ = [
    "BaseCache",
    "CacheRegistry",
    "LOCK_VALUE",
    "MemcachedCache",
    "MemoryCache",
    "Record",
    "RedisCache",
    "create_cache",
    "fingerprint",
]
