"""Unit tests for cache manager."""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from serenity.cache.connection import RedisCache
from serenity.cache.manager import DELETE_BATCH_SIZE, CacheManager


class TestCacheManager:
    """Test suite for CacheManager store operations."""

    @pytest.mark.asyncio
    async def test_get_cache_hit(self, cache_manager, fake_redis):
        """Test get() returns the stored value deserialized."""
        await fake_redis.setex("test_key", 300, json.dumps({"results": [{"id": "123"}]}))

        result = await cache_manager.get("test_key")

        assert result == {"results": [{"id": "123"}]}

    @pytest.mark.asyncio
    async def test_get_cache_miss(self, cache_manager):
        """Test get() returns None on cache miss."""
        assert await cache_manager.get("missing_key") is None

    @pytest.mark.asyncio
    async def test_set_then_get_roundtrip_types(self, cache_manager):
        """Test values come back exactly as written (lists, ints, nested)."""
        value = {"count": 0, "items": [1, "two", None, {"three": 3.5}], "flag": False}

        assert await cache_manager.set("k", value, ttl=60) is True
        assert await cache_manager.get("k") == value

    @pytest.mark.asyncio
    async def test_get_invalid_json(self, cache_manager, fake_redis):
        """Test get() handles invalid JSON gracefully and drops the entry."""
        await fake_redis.set("test_key", "invalid json {")

        result = await cache_manager.get("test_key")

        assert result is None
        assert await fake_redis.exists("test_key") == 0

    @pytest.mark.asyncio
    async def test_set_with_ttl(self, cache_manager, fake_redis):
        """Test set() applies the TTL."""
        await cache_manager.set("test_key", {"a": 1}, ttl=300)

        assert await fake_redis.ttl("test_key") == 300

    @pytest.mark.asyncio
    async def test_set_without_ttl(self, cache_manager, fake_redis):
        """Test set() without TTL stores a persistent key."""
        await cache_manager.set("test_key", {"a": 1})

        assert await fake_redis.ttl("test_key") == -1

    @pytest.mark.asyncio
    async def test_set_replaces_prior_value(self, cache_manager):
        """Test set() replaces the whole entry."""
        await cache_manager.set("test_key", {"a": 1, "b": 2}, ttl=60)
        await cache_manager.set("test_key", {"c": 3}, ttl=60)

        assert await cache_manager.get("test_key") == {"c": 3}

    @pytest.mark.asyncio
    async def test_set_non_serializable_data(self, cache_manager, fake_redis):
        """Test set() handles non-serializable data gracefully."""
        non_serializable = {"func": lambda x: x}

        result = await cache_manager.set("test_key", non_serializable, ttl=300)

        assert result is False
        assert await fake_redis.exists("test_key") == 0
        # Serialization errors are not connection failures
        assert cache_manager.connection.is_available()

    @pytest.mark.asyncio
    async def test_ttl_expiry(self, cache_manager, fake_redis):
        """Test entries disappear once their TTL has elapsed."""
        await cache_manager.set("test_key", {"a": 1}, ttl=300)

        fake_redis.advance(299)
        assert await cache_manager.get("test_key") == {"a": 1}

        fake_redis.advance(1)
        assert await cache_manager.get("test_key") is None

    @pytest.mark.asyncio
    async def test_expire_and_ttl(self, cache_manager):
        """Test expire() updates the remaining TTL."""
        await cache_manager.set("test_key", {"a": 1}, ttl=300)

        assert await cache_manager.expire("test_key", 30) is True
        assert await cache_manager.ttl("test_key") == 30
        assert await cache_manager.ttl("missing") == -2

    @pytest.mark.asyncio
    async def test_exists(self, cache_manager):
        await cache_manager.set("test_key", {"a": 1}, ttl=60)

        assert await cache_manager.exists("test_key") is True
        assert await cache_manager.exists("other_key") is False

    @pytest.mark.asyncio
    async def test_delete_success(self, cache_manager):
        """Test delete() removes cached data."""
        await cache_manager.set("test_key", {"a": 1}, ttl=60)

        assert await cache_manager.delete("test_key") is True
        assert await cache_manager.get("test_key") is None

    @pytest.mark.asyncio
    async def test_delete_nonexistent_key(self, cache_manager):
        """Test delete() with nonexistent key."""
        assert await cache_manager.delete("test_key") is False

    @pytest.mark.asyncio
    async def test_delete_pattern(self, cache_manager):
        """Test delete_pattern() removes matching keys only."""
        for key in ("tracks:list:a", "tracks:list:b", "tracks:featured", "programs:list:a"):
            await cache_manager.set(key, 1, ttl=60)

        deleted = await cache_manager.delete_pattern("tracks:list:*")

        assert deleted == 2
        assert await cache_manager.exists("tracks:featured") is True
        assert await cache_manager.exists("programs:list:a") is True

    @pytest.mark.asyncio
    async def test_delete_pattern_no_match(self, cache_manager):
        """Test delete_pattern() with zero matches is a no-op, not an error."""
        assert await cache_manager.delete_pattern("nothing:*") == 0

    @pytest.mark.asyncio
    async def test_delete_pattern_batches(self, cache_manager, fake_redis):
        """Test large matches are deleted in several DEL calls."""
        total = DELETE_BATCH_SIZE * 2 + 5
        for i in range(total):
            await fake_redis.set(f"search:results:{i}", "1")

        delete_spy = AsyncMock(wraps=fake_redis.delete)
        fake_redis.delete = delete_spy

        assert await cache_manager.delete_pattern("search:*") == total
        assert delete_spy.await_count == 3

    @pytest.mark.asyncio
    async def test_flush_all(self, cache_manager, fake_redis):
        await cache_manager.set("a", 1)
        await cache_manager.set("b", 2)

        assert await cache_manager.flush_all() is True
        assert fake_redis.keys() == []


class TestCacheManagerDisabled:
    """Test suite for a disabled cache (no client at all)."""

    @pytest.fixture
    def disabled_manager(self, tasks):
        return CacheManager(RedisCache(enabled=False), tasks=tasks)

    @pytest.mark.asyncio
    async def test_get_with_no_redis(self, disabled_manager):
        """Test get() returns None when Redis is not available."""
        assert await disabled_manager.get("test_key") is None

    @pytest.mark.asyncio
    async def test_set_with_no_redis(self, disabled_manager):
        """Test set() returns False when Redis is not available."""
        assert await disabled_manager.set("test_key", {"data": "test"}, ttl=300) is False

    @pytest.mark.asyncio
    async def test_delete_with_no_redis(self, disabled_manager):
        """Test delete() returns False when Redis is not available."""
        assert await disabled_manager.delete("test_key") is False
        assert await disabled_manager.delete_pattern("tracks:*") == 0


class TestCacheManagerOutage:
    """Test suite for soft failure when the store is unreachable."""

    @pytest.mark.asyncio
    async def test_get_returns_miss(self, broken_cache_manager):
        """Test a failing get() is reported as a miss, never raised."""
        assert await broken_cache_manager.get("test_key") is None

    @pytest.mark.asyncio
    async def test_writes_return_false(self, broken_cache_manager):
        """Test failing writes return False / 0 instead of raising."""
        assert await broken_cache_manager.set("test_key", {"a": 1}, ttl=60) is False
        assert await broken_cache_manager.delete("test_key") is False
        assert await broken_cache_manager.delete_pattern("tracks:*") == 0
        assert await broken_cache_manager.exists("test_key") is False
        assert await broken_cache_manager.ttl("test_key") == -1

    @pytest.mark.asyncio
    async def test_failure_short_circuits_later_calls(self, broken_cache_manager, broken_redis):
        """Test that after a connection failure the store is not hit again."""
        await broken_cache_manager.get("test_key")
        assert broken_redis.calls == 1

        await broken_cache_manager.get("test_key")
        await broken_cache_manager.set("test_key", 1, ttl=60)

        assert broken_redis.calls == 1
        assert broken_cache_manager.redis is None

    @pytest.mark.asyncio
    async def test_get_or_fetch_still_fetches(self, broken_cache_manager):
        """Test get_or_fetch() serves fresh data when Redis is unavailable."""
        fetch_func = AsyncMock(return_value={"results": [{"id": "789"}]})

        result = await broken_cache_manager.get_or_fetch("test_key", fetch_func, ttl=300)

        assert result.cached is False
        assert result.value == {"results": [{"id": "789"}]}
        fetch_func.assert_awaited_once()


class TestGetOrFetch:
    """Test suite for the cache-aside read path."""

    @pytest.mark.asyncio
    async def test_cache_hit(self, cache_manager):
        """Test get_or_fetch() returns cached data without calling fetch."""
        await cache_manager.set("test_key", {"results": [{"id": "123"}]}, ttl=300)
        fetch_func = AsyncMock()

        result = await cache_manager.get_or_fetch("test_key", fetch_func, ttl=300)

        assert result.cached is True
        assert result.value == {"results": [{"id": "123"}]}
        fetch_func.assert_not_called()

    @pytest.mark.asyncio
    async def test_cache_miss(self, cache_manager, fake_redis):
        """Test get_or_fetch() calls fetch function on miss and writes the result."""
        fetch_func = AsyncMock(return_value={"results": [{"id": "456"}]})

        result = await cache_manager.get_or_fetch("test_key", fetch_func, ttl=300)

        assert result.cached is False
        assert result.value == {"results": [{"id": "456"}]}
        fetch_func.assert_awaited_once()
        assert await fake_redis.ttl("test_key") == 300

    @pytest.mark.asyncio
    async def test_second_call_hits(self, cache_manager):
        """Test the second read of a key is served from cache."""
        fetch_func = AsyncMock(return_value={"n": 1})

        first = await cache_manager.get_or_fetch("test_key", fetch_func, ttl=300)
        second = await cache_manager.get_or_fetch("test_key", fetch_func, ttl=300)

        assert (first.cached, second.cached) == (False, True)
        assert second.value == first.value
        fetch_func.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_refetch_after_expiry(self, cache_manager, fake_redis):
        """Test an expired entry is recomputed."""
        fetch_func = AsyncMock(side_effect=[{"n": 1}, {"n": 2}])

        await cache_manager.get_or_fetch("test_key", fetch_func, ttl=60)
        fake_redis.advance(61)
        result = await cache_manager.get_or_fetch("test_key", fetch_func, ttl=60)

        assert result.cached is False
        assert result.value == {"n": 2}

    @pytest.mark.asyncio
    async def test_fetch_error(self, cache_manager, fake_redis):
        """Test get_or_fetch() propagates fetch function errors and caches nothing."""
        fetch_func = AsyncMock(side_effect=Exception("Fetch failed"))

        with pytest.raises(Exception) as exc_info:
            await cache_manager.get_or_fetch("test_key", fetch_func, ttl=300)

        assert "Fetch failed" in str(exc_info.value)
        assert fake_redis.keys() == []

    @pytest.mark.asyncio
    async def test_none_not_cached(self, cache_manager, fake_redis):
        """Test a None result is returned but not stored."""
        result = await cache_manager.get_or_fetch("test_key", AsyncMock(return_value=None), ttl=300)

        assert result.value is None
        assert fake_redis.keys() == []

    @pytest.mark.asyncio
    async def test_falsy_values_are_hits(self, cache_manager):
        """Test cached 0 and empty list are served as hits."""
        await cache_manager.set("zero", 0, ttl=60)
        await cache_manager.set("empty", [], ttl=60)
        fetch_func = AsyncMock(return_value=99)

        zero = await cache_manager.get_or_fetch("zero", fetch_func, ttl=60)
        empty = await cache_manager.get_or_fetch("empty", fetch_func, ttl=60)

        assert (zero.value, zero.cached) == (0, True)
        assert (empty.value, empty.cached) == ([], True)
        fetch_func.assert_not_called()

    @pytest.mark.asyncio
    async def test_write_behind(self, cache_manager, tasks, fake_redis):
        """Test write_behind returns before the cache write and writes afterwards."""
        result = await cache_manager.get_or_fetch(
            "test_key", AsyncMock(return_value={"a": 1}), ttl=300, write_behind=True
        )
        assert result.cached is False

        await tasks.wait()

        assert await fake_redis.get("test_key") == json.dumps({"a": 1})

    @pytest.mark.asyncio
    async def test_concurrent_cold_miss(self, cache_manager, fake_redis):
        """Test concurrent misses each compute; the cache ends with one valid value."""
        calls = 0

        async def fetch():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0)
            return {"n": calls}

        results = await asyncio.gather(
            *(cache_manager.get_or_fetch("test_key", fetch, ttl=300) for _ in range(5))
        )

        assert calls == 5
        assert all(r.cached is False for r in results)
        stored = await cache_manager.get("test_key")
        assert stored in [r.value for r in results]
