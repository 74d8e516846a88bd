"""Key, value and TTL validation shared by every cache adapter.

All checks are pure functions. They return booleans and never raise, so
adapters can turn a rejection into a failed result before any I/O.

Example:
    >>> from cachespine.utils.validation import validate_key, validate_value
    >>> validate_key("user:42")
    True
    >>> validate_key("user 42")
    False
    >>> validate_value({"a": 1})
    True
    >>> validate_value(None)
    False
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

logger = logging.getLogger(__name__)

MAX_KEY_BYTES = 250
MAX_VALUE_BYTES = 1024 * 1024

_WHITESPACE = re.compile(r"\s")


def serialized_size(value: Any) -> int | None:
    """Return the UTF-8 byte length of the compact JSON form of ``value``.

    Returns None when the value has no JSON representation.

    Example:
        >>> serialized_size("abc")
        5
        >>> serialized_size({"a": 1})
        7
        >>> serialized_size(object()) is None
        True
    """
    try:
        encoded = json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError):
        return None
    return len(encoded.encode("utf-8"))


def validate_key(key: Any) -> bool:
    """Check a cache key is a non-empty string of <= 250 bytes with no whitespace.

    Example:
        >>> validate_key("")
        False
        >>> validate_key(10)
        False
        >>> validate_key("x" * 250)
        True
        >>> validate_key("x" * 251)
        False
    """
    if not isinstance(key, str):
        logger.warning(f"Cache key not a string: {key!r}")
        return False
    if key == "":
        logger.warning("Cache key should not be blank")
        return False
    size = len(key.encode("utf-8"))
    if size > MAX_KEY_BYTES:
        logger.warning(f"Cache key byte size should not be > {MAX_KEY_BYTES}. Key: {key}. Size: {size}")
        return False
    if _WHITESPACE.search(key):
        logger.warning(f"Cache key has unsupported chars: {key!r}")
        return False
    return True


def validate_value(value: Any) -> bool:
    """Check a value is present and serializes to at most 1 MiB of JSON.

    Example:
        >>> validate_value(0)
        True
        >>> validate_value("x" * (1024 * 1024))
        False
    """
    if value is None:
        return False
    size = serialized_size(value)
    return size is not None and size <= MAX_VALUE_BYTES


def validate_ttl(ttl: Any) -> bool:
    """Check a TTL is a finite number.

    Integer and sign checks are left to the operations that need them.

    Example:
        >>> validate_ttl(10)
        True
        >>> validate_ttl(-1.5)
        True
        >>> validate_ttl("10")
        False
        >>> validate_ttl(True)
        False
    """
    if isinstance(ttl, bool) or not isinstance(ttl, (int, float)):
        return False
    return math.isfinite(ttl)


def is_strict_int(value: Any) -> bool:
    """Check a value is an integer number (bools excluded, integral floats allowed).

    Example:
        >>> is_strict_int(5), is_strict_int(5.0), is_strict_int(1.5), is_strict_int("5")
        (True, True, False, False)
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def is_positive_int(value: Any) -> bool:
    """Check a value is a strict integer >= 1 that also passes the value-size check.

    Example:
        >>> is_positive_int(1), is_positive_int(0), is_positive_int(-1)
        (True, False, False)
    """
    return is_strict_int(value) and value >= 1 and validate_value(value)


def is_non_negative_int(value: Any) -> bool:
    """Check a value is a strict integer >= 0 that also passes the value-size check.

    Example:
        >>> is_non_negative_int(0), is_non_negative_int(-1), is_non_negative_int(2.5)
        (True, False, False)
    """
    return is_strict_int(value) and value >= 0 and validate_value(value)


def is_structured(value: Any) -> bool:
    """Check a value is an object or array rather than a scalar.

    Example:
        >>> is_structured({"a": 1}), is_structured([1]), is_structured("a")
        (True, True, False)
    """
    return isinstance(value, (dict, list, tuple))


def is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))
