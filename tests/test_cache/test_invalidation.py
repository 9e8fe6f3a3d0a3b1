"""Unit tests for pattern-based invalidation."""

import pytest

from serenity.cache.invalidation import INVALIDATION_MAP, CacheInvalidator, patterns_for
from serenity.cache.keys import CacheKeys


async def _seed(cache_manager, keys):
    for key in keys:
        await cache_manager.set(key, {"k": key}, ttl=300)


class TestPatternsFor:
    """Test suite for pattern template expansion."""

    def test_track_patterns_with_id(self):
        patterns = patterns_for("track", "t1")

        assert "track:t1:*" in patterns
        assert "tracks:list:*" in patterns
        assert "category:*:tracks:*" in patterns

    def test_id_templates_skipped_without_id(self):
        """Test that {id} templates are dropped when no id is given."""
        patterns = patterns_for("track")

        assert all("{id}" not in p for p in patterns)
        assert not any(p.startswith("track:") for p in patterns)

    def test_id_is_escaped(self):
        """Test that an id made of glob characters only matches itself."""
        assert patterns_for("track", "*")[0] == "track:\\*:*"

    def test_unknown_resource_class(self):
        with pytest.raises(ValueError):
            patterns_for("unknown")

    def test_every_class_has_patterns(self):
        for resource_class, templates in INVALIDATION_MAP.items():
            assert templates, resource_class


class TestCacheInvalidator:
    """Test suite for CacheInvalidator against a populated cache."""

    @pytest.mark.asyncio
    async def test_track_write_removes_every_track_shape(self, cache_manager, invalidator, fake_redis):
        """Test invalidation completeness for the track resource class."""
        track_keys = [
            CacheKeys.tracks_list({"page": 1}, None),
            CacheKeys.tracks_list({"page": 2, "category": "sleep"}, "alice"),
            CacheKeys.track_detail("t1", None),
            CacheKeys.track_detail("t1", "alice"),
            CacheKeys.tracks_featured(),
            CacheKeys.tracks_search({"q": "rain"}),
            CacheKeys.tracks_popular(7, 10),
            CacheKeys.category_tracks("cat-sleep", {"page": 1}),
        ]
        unrelated = [
            CacheKeys.track_detail("t2", None),
            CacheKeys.categories_all(),
            CacheKeys.category_detail("cat-sleep"),
            CacheKeys.programs_list({"page": 1}, None),
            CacheKeys.user_stats("alice"),
        ]
        await _seed(cache_manager, track_keys + unrelated)

        results = await invalidator.invalidate("track", "t1")

        assert sum(results.values()) == len(track_keys)
        assert fake_redis.keys() == sorted(unrelated)

    @pytest.mark.asyncio
    async def test_category_write_is_exact_on_id(self, cache_manager, invalidator, fake_redis):
        """Test category:{id} does not touch a category whose id shares a prefix."""
        await _seed(
            cache_manager,
            [
                CacheKeys.category_detail("c1"),
                CacheKeys.category_tracks("c1", {"page": 1}),
                CacheKeys.category_detail("c10"),
                CacheKeys.categories_all(),
            ],
        )

        await invalidator.invalidate("category", "c1")

        assert fake_redis.keys() == [CacheKeys.category_detail("c10")]

    @pytest.mark.asyncio
    async def test_program_write(self, cache_manager, invalidator, fake_redis):
        keep = CacheKeys.tracks_list({"page": 1}, None)
        await _seed(
            cache_manager,
            [
                CacheKeys.programs_list({"page": 1}, "bob"),
                CacheKeys.program_detail("p1", "bob"),
                CacheKeys.programs_featured(),
                CacheKeys.category_programs("cat-sleep", {"page": 1}),
                keep,
            ],
        )

        await invalidator.invalidate("program", "p1")

        assert fake_redis.keys() == [keep]

    @pytest.mark.asyncio
    async def test_favorite_scoped_to_user(self, cache_manager, invalidator, fake_redis):
        """Test favorite changes invalidate only that user's read shapes."""
        alice = [
            CacheKeys.tracks_list({"page": 1}, "alice"),
            CacheKeys.track_detail("t1", "alice"),
            CacheKeys.programs_list({"page": 1}, "alice"),
            CacheKeys.program_detail("p1", "alice"),
            CacheKeys.search_results("all", {"q": "rain"}, "alice"),
        ]
        others = [
            CacheKeys.tracks_list({"page": 1}, "bob"),
            CacheKeys.track_detail("t1", None),
            CacheKeys.search_results("all", {"q": "rain"}, "malice"),
        ]
        await _seed(cache_manager, alice + others)

        await invalidator.invalidate("favorite", "alice")

        assert fake_redis.keys() == sorted(others)

    @pytest.mark.asyncio
    async def test_invalidate_with_nothing_cached(self, invalidator):
        """Test invalidation with zero matches succeeds."""
        results = await invalidator.invalidate("package")

        assert results == {"subscription:packages:*": 0}

    @pytest.mark.asyncio
    async def test_clear_search(self, cache_manager, invalidator, fake_redis):
        keep = CacheKeys.tracks_search({"q": "rain"})
        await _seed(
            cache_manager,
            [
                CacheKeys.search_results("track", {"q": "rain"}, None),
                CacheKeys.search_suggestions("ra"),
                CacheKeys.search_popular(7, 10),
                keep,
            ],
        )

        assert await invalidator.clear_search() == 3
        assert fake_redis.keys() == [keep]

    @pytest.mark.asyncio
    async def test_invalidate_key(self, cache_manager, invalidator):
        key = CacheKeys.notification_unread("alice")
        await cache_manager.set(key, 3, ttl=60)

        assert await invalidator.invalidate_key(key) is True
        assert await cache_manager.get(key) is None

    @pytest.mark.asyncio
    async def test_invalidate_during_outage(self, broken_cache_manager):
        """Test invalidation never raises when the store is down."""
        results = await CacheInvalidator(broken_cache_manager).invalidate("track", "t1")

        assert set(results.values()) == {0}
