"""Tests for the result envelope, enums and error taxonomy."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cachespine.core.errors import ERROR_MESSAGES, CacheErrorCode, build_error
from cachespine.models.base import CacheEngine, ConsistencyMode
from cachespine.models.result import CacheError, CacheResult


class TestCacheResult:
    """Tests for CacheResult."""

    def test_ok(self) -> None:
        """Success carries the response and no error."""
        result = CacheResult.ok(15)

        assert result.is_success is True
        assert result.is_failure is False
        assert result.response == 15
        assert result.error is None
        assert result.error_code is None

    def test_ok_without_response(self) -> None:
        """Response defaults to None."""
        assert CacheResult.ok().response is None

    def test_fail(self) -> None:
        """Failure carries the error."""
        error = CacheError(internal_id="c_im_g_1", code=CacheErrorCode.INVALID_CACHE_KEY)
        result = CacheResult.fail(error)

        assert result.is_failure is True
        assert result.response is None
        assert result.error_code == "invalid_cache_key"
        assert result.error.internal_id == "c_im_g_1"


class TestCacheError:
    """Tests for CacheError."""

    def test_message_filled_from_table(self) -> None:
        """Message defaults to the code's table entry."""
        error = CacheError(internal_id="x", code=CacheErrorCode.MISSING_CACHE_KEY)

        assert error.message == ERROR_MESSAGES[CacheErrorCode.MISSING_CACHE_KEY]

    def test_explicit_message_kept(self) -> None:
        """An explicit message wins."""
        error = CacheError(internal_id="x", code=CacheErrorCode.MISSING_CACHE_KEY, message="gone")

        assert error.message == "gone"

    def test_code_from_string(self) -> None:
        """Codes validate from their string values."""
        error = CacheError(internal_id="x", code="acquire_lock_failed")

        assert error.code is CacheErrorCode.ACQUIRE_LOCK_FAILED

    def test_unknown_code_rejected(self) -> None:
        """Codes outside the taxonomy fail validation."""
        with pytest.raises(ValidationError):
            CacheError(internal_id="x", code="not_a_code")

    def test_extra_fields_forbidden(self) -> None:
        """Models reject unknown fields."""
        with pytest.raises(ValidationError):
            CacheError(internal_id="x", code=CacheErrorCode.MISSING_CACHE_KEY, extra=1)


class TestErrorTaxonomy:
    """Tests for error codes and build_error."""

    def test_every_code_has_message(self) -> None:
        """Message table covers the whole taxonomy."""
        assert set(ERROR_MESSAGES) == set(CacheErrorCode)

    def test_code_values(self) -> None:
        """Public identifiers are stable strings."""
        assert {code.value for code in CacheErrorCode} == {
            "invalid_cache_key",
            "invalid_cache_value",
            "array_is_invalid_cache_value",
            "non_int_cache_value",
            "non_numeric_cache_value",
            "cache_expiry_nan",
            "missing_cache_key",
            "acquire_lock_failed",
            "cache_keys_non_array",
            "flush_all_not_supported",
            "flush_all_keys_failed",
            "something_went_wrong",
        }

    def test_build_error(self) -> None:
        """build_error returns a failed result with debug context."""
        result = build_error("c_r_s_1", CacheErrorCode.INVALID_CACHE_KEY, key="a b", ttl=5)

        assert result.is_failure
        assert result.error.internal_id == "c_r_s_1"
        assert result.error.debug == {"key": "a b", "ttl": 5}


class TestEnums:
    """Tests for CacheEngine and ConsistencyMode."""

    def test_engine_values(self) -> None:
        """Engines parse from their config names."""
        assert CacheEngine("redis") is CacheEngine.REDIS
        assert CacheEngine("memcached") is CacheEngine.MEMCACHED
        assert CacheEngine("none") is CacheEngine.NONE

    def test_mode_from_flag(self) -> None:
        """True is strict, False is lenient."""
        assert ConsistencyMode.from_flag(True) is ConsistencyMode.STRICT
        assert ConsistencyMode.from_flag(False) is ConsistencyMode.LENIENT
        assert ConsistencyMode.STRICT.is_strict is True
        assert ConsistencyMode.LENIENT.is_strict is False
