"""Tests for the Memcached cache engine.

The pymemcache client is replaced with MagicMock; calls still run through
asyncio.to_thread like they do against a real cluster.
"""

from __future__ import annotations

import time
from unittest.mock import MagicMock

import pytest
from pymemcache.exceptions import MemcacheClientError, MemcacheUnexpectedCloseError

from cachespine.cache.base import LOCK_VALUE
from cachespine.cache.memcached import (
    MAX_RELATIVE_EXPIRY,
    WARMUP_KEY,
    FlagSerde,
    MemcachedCache,
    parse_server,
    to_expire,
)
from cachespine.models.base import ConsistencyMode
from cachespine.protocols.cache import CacheBackend

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def client() -> MagicMock:
    """Mock pymemcache HashClient."""
    client = MagicMock()
    client.set.return_value = True
    client.add.return_value = True
    client.touch.return_value = True
    return client


@pytest.fixture
def cache(client: MagicMock) -> MemcachedCache:
    return MemcachedCache(servers=["a:11211"], client=client, default_ttl=100)


@pytest.fixture
def lenient(client: MagicMock) -> MemcachedCache:
    return MemcachedCache(servers=["a:11211"], client=client, mode=ConsistencyMode.LENIENT, default_ttl=100)


# =============================================================================
# Helpers
# =============================================================================


class TestHelpers:
    """Tests for serde, server parsing and expiry conversion."""

    @pytest.mark.parametrize(
        ("value", "flags"),
        [("text", FlagSerde.FLAG_STR), (42, FlagSerde.FLAG_INT), ({"a": 1}, FlagSerde.FLAG_JSON), (True, FlagSerde.FLAG_JSON)],
    )
    def test_serde_round_trip(self, value: object, flags: int) -> None:
        """Each type gets its own flag and reads back unchanged."""
        serde = FlagSerde()

        data, flag = serde.serialize("k", value)

        assert flag == flags
        assert serde.deserialize("k", data, flag) == value

    def test_serde_int_is_ascii_digits(self) -> None:
        """Integers are stored so INCR/DECR can work on them."""
        assert FlagSerde().serialize("k", 10) == (b"10", FlagSerde.FLAG_INT)

    def test_serde_reads_padded_counters(self) -> None:
        """DECR can leave trailing spaces."""
        assert FlagSerde().deserialize("k", b"9 ", FlagSerde.FLAG_INT) == 9

    def test_serde_strips_padding_from_decremented_strings(self) -> None:
        """Counters stored as digit strings lose the DECR padding."""
        assert FlagSerde().deserialize("k", b"9 ", FlagSerde.FLAG_STR) == "9"

    def test_serde_keeps_trailing_spaces_in_text(self) -> None:
        """Non-numeric strings are returned untouched."""
        assert FlagSerde().deserialize("k", b"a ", FlagSerde.FLAG_STR) == "a "

    def test_parse_server(self) -> None:
        """Host and port are split, port defaults to 11211."""
        assert parse_server(" cache-1:11212 ") == ("cache-1", 11212)
        assert parse_server("cache-2") == ("cache-2", 11211)

    def test_to_expire(self) -> None:
        """Long TTLs become absolute timestamps."""
        assert to_expire(60) == 60
        assert to_expire(MAX_RELATIVE_EXPIRY) == MAX_RELATIVE_EXPIRY
        assert to_expire(MAX_RELATIVE_EXPIRY + 1) >= int(time.time()) + MAX_RELATIVE_EXPIRY


# =============================================================================
# Lifecycle
# =============================================================================


class TestMemcachedCacheLifecycle:
    """Tests for construction, initialize and close."""

    def test_servers_trimmed(self, client: MagicMock) -> None:
        """Server entries are whitespace-trimmed."""
        cache = MemcachedCache(servers=[" a:1 ", "b:2"], client=client)

        assert cache.servers == ["a:1", "b:2"]

    def test_satisfies_protocol(self, cache: MemcachedCache) -> None:
        """MemcachedCache implements CacheBackend."""
        assert isinstance(cache, CacheBackend)

    async def test_initialize_writes_warmup_key(self, cache: MemcachedCache, client: MagicMock) -> None:
        """initialize writes the warm-up key."""
        await cache.initialize()

        client.set.assert_called_once_with(WARMUP_KEY, 1, expire=100)
        assert cache._initialized is True

    async def test_initialize_tolerates_failed_warmup(
        self, cache: MemcachedCache, client: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A failed warm-up is logged, not raised."""
        client.set.side_effect = MemcacheUnexpectedCloseError()

        await cache.initialize()

        assert cache._initialized is True
        assert "warm-up" in caplog.text

    async def test_close(self, cache: MemcachedCache, client: MagicMock) -> None:
        """close() closes the client."""
        await cache.close()

        client.close.assert_called_once()


# =============================================================================
# get / set / delete
# =============================================================================


class TestMemcachedCacheBasicOps:
    """Tests for get/set/delete/delete_all."""

    async def test_get(self, cache: MemcachedCache, client: MagicMock) -> None:
        """get returns the deserialized value."""
        client.get.return_value = {"a": 1}

        assert (await cache.get("k")).response == {"a": 1}
        client.get.assert_called_once_with("k")

    async def test_get_backend_error(self, cache: MemcachedCache, client: MagicMock) -> None:
        """Socket errors become something_went_wrong."""
        client.get.side_effect = ConnectionRefusedError()

        result = await cache.get("k")

        assert result.error_code == "something_went_wrong"
        assert result.error.internal_id == "c_m_g_2"

    async def test_set(self, cache: MemcachedCache, client: MagicMock) -> None:
        """set writes with the given expiry."""
        assert (await cache.set("k", "v", ttl=30)).response is True
        client.set.assert_called_once_with("k", "v", expire=30)

    async def test_set_long_ttl_absolute(self, cache: MemcachedCache, client: MagicMock) -> None:
        """TTLs beyond 30 days are sent as timestamps."""
        ttl = MAX_RELATIVE_EXPIRY * 2

        await cache.set("k", "v", ttl=ttl)

        assert client.set.call_args.kwargs["expire"] >= int(time.time()) + ttl - 1

    async def test_set_not_stored(self, cache: MemcachedCache, client: MagicMock) -> None:
        """A refused write is a failure."""
        client.set.return_value = False

        assert (await cache.set("k", "v")).error_code == "something_went_wrong"

    async def test_strict_set_rejects_array(self, cache: MemcachedCache, client: MagicMock) -> None:
        """Arrays are refused in strict mode."""
        assert (await cache.set("k", [1])).error_code == "array_is_invalid_cache_value"
        client.set.assert_not_called()

    async def test_lenient_set_accepts_array(self, lenient: MemcachedCache, client: MagicMock) -> None:
        """Arrays are stored natively in lenient mode."""
        assert (await lenient.set("k", [1])).response is True

    async def test_set_object(self, cache: MemcachedCache, client: MagicMock) -> None:
        """set_object is a checked set."""
        assert (await cache.set_object("k", {"a": 1}, 10)).response is True
        client.set.assert_called_once_with("k", {"a": 1}, expire=10)

    async def test_delete(self, cache: MemcachedCache, client: MagicMock) -> None:
        """delete succeeds for absent keys too."""
        client.delete.return_value = False

        assert (await cache.delete("k")).response is True

    async def test_delete_all(self, cache: MemcachedCache, client: MagicMock) -> None:
        """delete_all flushes every server."""
        assert (await cache.delete_all()).response is True
        client.flush_all.assert_called_once()

    async def test_delete_all_failure(self, cache: MemcachedCache, client: MagicMock) -> None:
        """Flush failures have their own code."""
        client.flush_all.side_effect = MemcacheUnexpectedCloseError()

        assert (await cache.delete_all()).error_code == "flush_all_keys_failed"

    async def test_multi_get(self, cache: MemcachedCache, client: MagicMock) -> None:
        """Missing keys and structures read as None."""
        client.get_many.return_value = {"a": 1, "b": {"x": 1}}

        result = await cache.multi_get(["a", "b", "c"])

        assert result.response == {"a": 1, "b": None, "c": None}


# =============================================================================
# Counters
# =============================================================================


class TestMemcachedCacheCounters:
    """Tests for increment/decrement."""

    async def test_increment(self, cache: MemcachedCache, client: MagicMock) -> None:
        """INCR result is returned."""
        client.incr.return_value = 15

        assert (await cache.increment("k", 5)).response == 15
        client.incr.assert_called_once_with("k", 5)

    async def test_strict_increment_missing(self, cache: MemcachedCache, client: MagicMock) -> None:
        """Strict mode does not create counters."""
        client.incr.return_value = None

        result = await cache.increment("missing-key", 5)

        assert result.error_code == "missing_cache_key"
        assert result.error.internal_id == "c_m_i_3"
        client.add.assert_not_called()

    async def test_lenient_increment_creates_counter(self, lenient: MemcachedCache, client: MagicMock) -> None:
        """Lenient mode adds a zero counter then retries."""
        client.incr.side_effect = [None, 5]

        assert (await lenient.increment("hits", 5)).response == 5
        client.add.assert_called_once_with("hits", 0, expire=100)
        assert client.incr.call_count == 2

    async def test_decrement(self, cache: MemcachedCache, client: MagicMock) -> None:
        """DECR result is returned; the server clamps at zero."""
        client.decr.return_value = 0

        assert (await cache.decrement("k", 10)).response == 0
        client.decr.assert_called_once_with("k", 10)

    async def test_non_numeric(self, cache: MemcachedCache, client: MagicMock) -> None:
        """CLIENT_ERROR from INCR means a non-numeric value."""
        client.incr.side_effect = MemcacheClientError("cannot increment or decrement non-numeric value")

        assert (await cache.increment("k")).error_code == "non_numeric_cache_value"

    async def test_invalid_step(self, cache: MemcachedCache, client: MagicMock) -> None:
        """Step must be a positive integer."""
        assert (await cache.decrement("k", 0)).error_code == "non_int_cache_value"
        client.decr.assert_not_called()


# =============================================================================
# Touch and locks
# =============================================================================


class TestMemcachedCacheTouchAndLocks:
    """Tests for touch and locks."""

    async def test_strict_touch_zero_expires(self, cache: MemcachedCache, client: MagicMock) -> None:
        """Strict mode sends -1 so the key expires."""
        assert (await cache.touch("k", 0)).response is True
        client.touch.assert_called_once_with("k", -1)

    async def test_lenient_touch_zero_is_native(self, lenient: MemcachedCache, client: MagicMock) -> None:
        """Lenient mode passes 0 through (never expire)."""
        await lenient.touch("k", 0)

        client.touch.assert_called_once_with("k", 0)

    async def test_touch_missing(self, cache: MemcachedCache, client: MagicMock) -> None:
        """NOT_FOUND is a missing key."""
        client.touch.return_value = False

        assert (await cache.touch("k", 10)).error_code == "missing_cache_key"

    async def test_acquire_lock(self, cache: MemcachedCache, client: MagicMock) -> None:
        """Locks use ADD."""
        assert (await cache.acquire_lock("lock", 5)).response is True
        client.add.assert_called_once_with("lock", LOCK_VALUE, expire=5)

    async def test_acquire_held_lock(self, cache: MemcachedCache, client: MagicMock) -> None:
        """ADD refusing means the lock is held."""
        client.add.return_value = False

        assert (await cache.acquire_lock("lock", 5)).error_code == "acquire_lock_failed"

    async def test_release_lock(self, cache: MemcachedCache, client: MagicMock) -> None:
        """release_lock deletes the key."""
        assert (await cache.release_lock("lock")).response is True
        client.delete.assert_called_once_with("lock")
