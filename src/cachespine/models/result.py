"""Result envelope returned by every cache operation.

Domain failures are never raised. Each operation resolves to a
``CacheResult`` that is either a success carrying ``response`` or a failure
carrying a ``CacheError``.

Example:
    >>> from cachespine.models.result import CacheResult
    >>> result = CacheResult.ok(15)
    >>> result.is_success
    True
    >>> result.response
    15
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from cachespine.core.errors import ERROR_MESSAGES, CacheErrorCode
from cachespine.models.base import CacheSpineModel


class CacheError(CacheSpineModel):
    """Structured failure details.

    Example:
        >>> from cachespine.core.errors import CacheErrorCode
        >>> err = CacheError(internal_id="c_im_g_1", code=CacheErrorCode.INVALID_CACHE_KEY)
        >>> err.code.value
        'invalid_cache_key'
    """

    internal_id: str = Field(..., description="Stable identifier of the failure site")
    code: CacheErrorCode = Field(..., description="Public error code")
    message: str = Field(default="", description="Human-readable description")
    debug: dict[str, Any] = Field(default_factory=dict, description="Inputs that caused the failure")

    def model_post_init(self, __context: Any) -> None:
        if not self.message:
            self.message = ERROR_MESSAGES[self.code]


class CacheResult(CacheSpineModel):
    """Success/failure envelope shared by every backend.

    Example:
        >>> from cachespine.core.errors import CacheErrorCode
        >>> failed = CacheResult.fail(
        ...     CacheError(internal_id="x", code=CacheErrorCode.MISSING_CACHE_KEY)
        ... )
        >>> failed.is_failure
        True
        >>> failed.error_code
        'missing_cache_key'
    """

    response: Any = Field(default=None, description="Operation payload on success")
    error: CacheError | None = Field(default=None, description="Failure details")

    @classmethod
    def ok(cls, response: Any = None) -> CacheResult:
        """Build a success result."""
        return cls(response=response)

    @classmethod
    def fail(cls, error: CacheError) -> CacheResult:
        """Build a failure result."""
        return cls(error=error)

    @property
    def is_success(self) -> bool:
        """Check if the operation succeeded."""
        return self.error is None

    @property
    def is_failure(self) -> bool:
        """Check if the operation failed."""
        return self.error is not None

    @property
    def error_code(self) -> str | None:
        """Public error code of a failure, None on success."""
        return self.error.code.value if self.error else None
