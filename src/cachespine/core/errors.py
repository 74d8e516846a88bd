"""Error taxonomy for cache operations.

Every domain failure maps to one ``CacheErrorCode``. Failures are returned
as ``CacheResult`` objects, never raised.

Example:
    >>> from cachespine.core.errors import CacheErrorCode, build_error
    >>> result = build_error("c_im_g_1", CacheErrorCode.INVALID_CACHE_KEY, key="a b")
    >>> result.is_failure
    True
    >>> result.error.debug
    {'key': 'a b'}
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cachespine.models.result import CacheResult


class CacheErrorCode(str, Enum):
    """Public error identifiers.

    Example:
        >>> CacheErrorCode.ACQUIRE_LOCK_FAILED.value
        'acquire_lock_failed'
    """

    INVALID_CACHE_KEY = "invalid_cache_key"
    INVALID_CACHE_VALUE = "invalid_cache_value"
    ARRAY_IS_INVALID_CACHE_VALUE = "array_is_invalid_cache_value"
    NON_INT_CACHE_VALUE = "non_int_cache_value"
    NON_NUMERIC_CACHE_VALUE = "non_numeric_cache_value"
    CACHE_EXPIRY_NAN = "cache_expiry_nan"
    MISSING_CACHE_KEY = "missing_cache_key"
    ACQUIRE_LOCK_FAILED = "acquire_lock_failed"
    CACHE_KEYS_NON_ARRAY = "cache_keys_non_array"
    FLUSH_ALL_NOT_SUPPORTED = "flush_all_not_supported"
    FLUSH_ALL_KEYS_FAILED = "flush_all_keys_failed"
    SOMETHING_WENT_WRONG = "something_went_wrong"


ERROR_MESSAGES: dict[CacheErrorCode, str] = {
    CacheErrorCode.INVALID_CACHE_KEY: "Cache key must be a non-empty string of at most 250 bytes without whitespace.",
    CacheErrorCode.INVALID_CACHE_VALUE: "Cache value is missing, unsupported by this engine, or larger than 1 MiB.",
    CacheErrorCode.ARRAY_IS_INVALID_CACHE_VALUE: "Arrays cannot be cached when consistent behavior is enabled.",
    CacheErrorCode.NON_INT_CACHE_VALUE: "Value must be a positive integer.",
    CacheErrorCode.NON_NUMERIC_CACHE_VALUE: "Cached value is not numeric.",
    CacheErrorCode.CACHE_EXPIRY_NAN: "Expiry must be a non-negative integer number of seconds.",
    CacheErrorCode.MISSING_CACHE_KEY: "Cache key does not exist.",
    CacheErrorCode.ACQUIRE_LOCK_FAILED: "Lock is already held.",
    CacheErrorCode.CACHE_KEYS_NON_ARRAY: "Cache keys must be a non-empty list.",
    CacheErrorCode.FLUSH_ALL_NOT_SUPPORTED: "Flushing all keys is not supported by this engine.",
    CacheErrorCode.FLUSH_ALL_KEYS_FAILED: "Flushing all keys failed.",
    CacheErrorCode.SOMETHING_WENT_WRONG: "Something went wrong while talking to the cache backend.",
}


def build_error(internal_id: str, code: CacheErrorCode, **debug: Any) -> CacheResult:
    """Build a failure result.

    Args:
        internal_id: Stable identifier of the failure site, for correlation.
        code: Public error code.
        **debug: Inputs that caused the failure.

    Returns:
        Failed CacheResult.
    """
    from cachespine.models.result import CacheError, CacheResult

    return CacheResult.fail(CacheError(internal_id=internal_id, code=code, debug=debug))
