"""
CacheSpine - One Cache Interface, Three Engines.

CacheSpine exposes a single asynchronous cache API over Redis, Memcached
and an in-process dictionary. Every operation resolves to a CacheResult
instead of raising, and a consistency flag decides whether engines are
forced to behave like Redis or allowed to show their native behavior.

Key Features:
- Protocol-based design (swap engines without code changes)
- Strict or lenient cross-engine semantics
- Structured failures with stable error codes and internal ids
- Adapters shared per engine, mode and endpoint

Quick Start:
    >>> from cachespine import CacheRegistry
    >>> registry = CacheRegistry()
    >>> cache = await registry.get({"engine": "none"})
    >>> result = await cache.set("greeting", "hello", ttl=60)
    >>> (await cache.get("greeting")).response
    'hello'

Architecture:
    Engines: RedisCache, MemcachedCache, MemoryCache
    Registry: CacheRegistry, create_cache, fingerprint
    Results: CacheResult, CacheError, CacheErrorCode
"""

# Core configuration and errors
from cachespine.core import (
    ERROR_MESSAGES,
    CacheConfig,
    CacheErrorCode,
    CacheSpineError,
    ConfigurationError,
    Settings,
    build_error,
    get_settings,
)

# Models
from cachespine.models import CacheEngine, CacheError, CacheResult, ConsistencyMode

# Protocols
from cachespine.protocols import CacheBackend

# Engines and registry
from cachespine.cache import (
    BaseCache,
    CacheRegistry,
    MemcachedCache,
    MemoryCache,
    Record,
    RedisCache,
    create_cache,
    fingerprint,
)

# Validation
from cachespine.utils import validate_key, validate_ttl, validate_value

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Core
    "CacheConfig",
    "CacheErrorCode",
    "CacheSpineError",
    "ConfigurationError",
    "ERROR_MESSAGES",
    "Settings",
    "build_error",
    "get_settings",
    # Models
    "CacheEngine",
    "CacheError",
    "CacheResult",
    "ConsistencyMode",
    # Protocols
    "CacheBackend",
    # Engines
    "BaseCache",
    "CacheRegistry",
    "MemcachedCache",
    "MemoryCache",
    "Record",
    "RedisCache",
    "create_cache",
    "fingerprint",
    # Validation
    "validate_key",
    "validate_ttl",
    "validate_value",
]
