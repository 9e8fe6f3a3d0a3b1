"""Shared fixtures: in-memory Redis stand-in, repository and services."""

import math
import re
from typing import Any, Dict, Optional, Tuple

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from serenity.cache import CacheInvalidator, CacheManager, RedisCache, ReconnectPolicy
from serenity.data import InMemoryRepository
from serenity.models.content import Category, Package, Program, Track
from serenity.services import (
    CategoryService,
    FavoriteService,
    NotificationService,
    PackageService,
    ProgramService,
    SearchCapability,
    SearchService,
    TrackService,
    UserStatsService,
)
from serenity.utils.background import DetachedTasks


def glob_to_regex(pattern: str) -> "re.Pattern[str]":
    """Translate a Redis glob (``*``, ``?``, ``[...]``, ``\\`` escapes)."""
    out = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\" and i + 1 < len(pattern):
            out.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if char == "*":
            out.append(".*")
        elif char == "?":
            out.append(".")
        elif char == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                out.append(re.escape(char))
            else:
                out.append("[" + re.escape(pattern[i + 1:end]) + "]")
                i = end
        else:
            out.append(re.escape(char))
        i += 1
    return re.compile("".join(out), re.DOTALL)


class FakeRedis:
    """
    Minimal asyncio Redis stand-in holding string values.

    Time is controlled by the test through :meth:`advance`, so TTL expiry
    is deterministic.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def _live(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self.now:
            del self._data[key]
            return None
        return value

    def keys(self) -> list:
        return sorted(k for k in list(self._data) if self._live(k) is not None)

    async def get(self, key: str) -> Optional[str]:
        return self._live(key)

    async def set(self, key: str, value: str) -> bool:
        self._data[key] = (value, None)
        return True

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self._data[key] = (value, self.now + ttl)
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._live(key) is not None:
                del self._data[key]
                removed += 1
        return removed

    async def exists(self, *keys: str) -> int:
        return sum(1 for key in keys if self._live(key) is not None)

    async def ttl(self, key: str) -> int:
        if self._live(key) is None:
            return -2
        expires_at = self._data[key][1]
        if expires_at is None:
            return -1
        return math.ceil(expires_at - self.now)

    async def expire(self, key: str, seconds: int) -> bool:
        value = self._live(key)
        if value is None:
            return False
        self._data[key] = (value, self.now + seconds)
        return True

    async def scan_iter(self, match: Optional[str] = None, count: Optional[int] = None):
        regex = glob_to_regex(match) if match else None
        for key in self.keys():
            if regex is None or regex.fullmatch(key):
                yield key

    async def ping(self) -> bool:
        return True

    async def flushdb(self) -> bool:
        self._data.clear()
        return True

    async def aclose(self) -> None:
        return None


class BrokenRedis:
    """Redis stand-in whose every command fails with a connection error."""

    def __init__(self) -> None:
        self.calls = 0

    def _fail(self, *args: Any, **kwargs: Any):
        self.calls += 1
        raise RedisConnectionError("Connection refused")

    async def get(self, *args, **kwargs):
        self._fail()

    async def set(self, *args, **kwargs):
        self._fail()

    async def setex(self, *args, **kwargs):
        self._fail()

    async def delete(self, *args, **kwargs):
        self._fail()

    async def exists(self, *args, **kwargs):
        self._fail()

    async def ttl(self, *args, **kwargs):
        self._fail()

    async def expire(self, *args, **kwargs):
        self._fail()

    async def flushdb(self, *args, **kwargs):
        self._fail()

    async def scan_iter(self, *args, **kwargs):
        self._fail()
        yield  # pragma: no cover

    async def ping(self):
        self._fail()

    async def aclose(self) -> None:
        return None


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def broken_redis():
    return BrokenRedis()


@pytest.fixture
def tasks():
    return DetachedTasks()


@pytest.fixture
def connection(fake_redis):
    """RedisCache over FakeRedis that never retries after a failure."""
    return RedisCache(client=fake_redis, reconnect_policy=ReconnectPolicy(max_attempts=0))


@pytest.fixture
def broken_connection(broken_redis):
    return RedisCache(client=broken_redis, reconnect_policy=ReconnectPolicy(max_attempts=0))


@pytest.fixture
def cache_manager(connection, tasks):
    return CacheManager(connection, tasks=tasks)


@pytest.fixture
def broken_cache_manager(broken_connection, tasks):
    return CacheManager(broken_connection, tasks=tasks)


@pytest.fixture
def invalidator(cache_manager):
    return CacheInvalidator(cache_manager)


@pytest.fixture
def repository():
    return InMemoryRepository()


@pytest.fixture
def catalog(repository):
    """Seed one category with two tracks, one program and one package."""
    sleep = Category(id="cat-sleep", name="Sleep", display_order=1)
    focus = Category(id="cat-focus", name="Focus", display_order=2)
    rain = Track(
        id="t-rain",
        title="Rain Sounds",
        description="Gentle rain for deep sleep",
        category_id="cat-sleep",
        duration_seconds=600,
        is_featured=True,
    )
    ocean = Track(
        id="t-ocean",
        title="Ocean Waves",
        description="Waves on a quiet beach",
        category_id="cat-sleep",
        level="intermediate",
        duration_seconds=1200,
    )
    program = Program(
        id="p-sleep",
        title="Sleep Better in 7 Days",
        description="A week of rain and ocean sessions",
        category_id="cat-sleep",
        track_ids=["t-rain", "t-ocean"],
        is_featured=True,
    )
    monthly = Package(id="pkg-monthly", name="Monthly", price=9.99, duration_days=30, display_order=1)

    for category in (sleep, focus):
        repository.categories[category.id] = category
    for track in (rain, ocean):
        repository.tracks[track.id] = track
    repository.programs[program.id] = program
    repository.packages[monthly.id] = monthly

    return repository


@pytest.fixture
def always_ranked():
    async def probe() -> bool:
        return True

    return SearchCapability(probe)


@pytest.fixture
def services(catalog, cache_manager, invalidator, always_ranked, tasks):
    """Every service over the seeded repository and FakeRedis-backed cache."""
    shared = (catalog, cache_manager, invalidator)
    return {
        "tracks": TrackService(*shared),
        "programs": ProgramService(*shared),
        "categories": CategoryService(*shared),
        "search": SearchService(*shared, capability=always_ranked, tasks=tasks),
        "notifications": NotificationService(*shared),
        "user_stats": UserStatsService(*shared),
        "packages": PackageService(*shared),
        "favorites": FavoriteService(*shared),
    }
