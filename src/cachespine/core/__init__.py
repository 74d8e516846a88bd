"""Core configuration, errors and exceptions."""

from cachespine.core.errors import ERROR_MESSAGES, CacheErrorCode, build_error
from cachespine.core.exceptions import CacheSpineError, ConfigurationError
from cachespine.core.config import CacheConfig, Settings, get_settings

__all__ = [
    # Errors
    "CacheErrorCode",
    "ERROR_MESSAGES",
    "build_error",
    # Exceptions
    "CacheSpineError",
    "ConfigurationError",
    # Configuration
    "CacheConfig",
    "Settings",
    "get_settings",
]
