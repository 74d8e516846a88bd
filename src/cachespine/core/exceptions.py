"""Custom exceptions.

Cache operations never raise for data problems; they return failed
results. Exceptions are reserved for programmer errors detected while
constructing adapters.

Example:
    >>> from cachespine.core.exceptions import ConfigurationError, CacheSpineError
    >>> isinstance(ConfigurationError("missing host"), CacheSpineError)
    True
"""

from __future__ import annotations


class CacheSpineError(Exception):
    """Base exception for CacheSpine.

    Example:
        >>> from cachespine.core.exceptions import CacheSpineError
        >>> e = CacheSpineError("something went wrong")
        >>> str(e)
        'something went wrong'
    """


class ConfigurationError(CacheSpineError):
    """Configuration is invalid.

    Raised when mandatory connection parameters for the selected engine
    are missing.

    Example:
        >>> from cachespine.core.exceptions import ConfigurationError
        >>> raise ConfigurationError("servers missing")  # doctest: +IGNORE_EXCEPTION_DETAIL
        Traceback (most recent call last):
        ConfigurationError: servers missing
    """
