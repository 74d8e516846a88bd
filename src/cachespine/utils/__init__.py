"""CacheSpine utilities.

Validation helpers shared by every cache adapter.
"""

from cachespine.utils.validation import (
    MAX_KEY_BYTES,
    MAX_VALUE_BYTES,
    is_array,
    is_non_negative_int,
    is_positive_int,
    is_strict_int,
    is_structured,
    serialized_size,
    validate_key,
    validate_ttl,
    validate_value,
)

__all__ = [
    "MAX_KEY_BYTES",
    "MAX_VALUE_BYTES",
    "is_array",
    "is_non_negative_int",
    "is_positive_int",
    "is_strict_int",
    "is_structured",
    "serialized_size",
    "validate_key",
    "validate_ttl",
    "validate_value",
]
