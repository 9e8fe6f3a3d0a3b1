"""Cache manager for Redis operations with fail-open error handling.

This module provides the CacheManager class which implements the store
operations and the cache-aside read path, with graceful degradation when
Redis is unavailable: reads become misses, writes become no-ops, and no
cache error ever reaches the caller.
"""

import json
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

import structlog

from serenity.cache.connection import RedisCache
from serenity.utils.background import DetachedTasks, detached_tasks

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Keys deleted per DEL call during pattern invalidation
DELETE_BATCH_SIZE = 500


class CacheResult(Generic[T]):
    """Value returned by :meth:`CacheManager.get_or_fetch`."""

    __slots__ = ("value", "cached")

    def __init__(self, value: T, cached: bool) -> None:
        self.value = value
        self.cached = cached

    def __repr__(self) -> str:
        return f"CacheResult(cached={self.cached!r}, value={self.value!r})"


class CacheManager:
    """
    Main cache operations manager with fail-open behavior.

    Values are stored as JSON and returned deserialized, exactly as they
    were written. Every operation logs and swallows store errors.

    Attributes:
        connection: RedisCache wrapper holding the client and its health
    """

    def __init__(
        self,
        connection: RedisCache,
        tasks: Optional[DetachedTasks] = None,
    ) -> None:
        """
        Initialize cache manager.

        Args:
            connection: Redis connection manager
            tasks: Registry for write-behind cache writes
        """
        self.connection = connection
        self.tasks = tasks or detached_tasks

    @property
    def redis(self) -> Optional[Any]:
        """Redis client, or None while the store is unavailable."""
        if not self.connection.is_available():
            return None
        return self.connection.client

    def _fail(self, event: str, error: Exception, **context: Any) -> None:
        logger.error(
            event,
            error=str(error),
            error_type=type(error).__name__,
            **context,
        )
        self.connection.report_failure(error)

    async def get(self, key: str) -> Optional[Any]:
        """
        Retrieve a cached value by key.

        Args:
            key: Cache key to retrieve

        Returns:
            The stored value, or None on miss or any store error

        Example:
            >>> cached = await manager.get("categories:all")
            >>> if cached is None:
            ...     print("miss")
        """
        client = self.redis
        if client is None:
            logger.debug("cache_get_skipped", reason="redis_not_available", key=key)
            return None

        try:
            raw = await client.get(key)

            if raw is None:
                logger.debug("cache_miss", key=key)
                return None

            value = json.loads(raw)
            logger.debug("cache_hit", key=key)
            return value

        except json.JSONDecodeError as e:
            logger.error("cache_get_json_decode_error", key=key, error=str(e))
            # Invalid cached data - delete it
            await self.delete(key)
            return None

        except Exception as e:
            # Fail open - treat as a miss
            self._fail("cache_get_error", e, key=key)
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Store a value, replacing any prior entry in full.

        Args:
            key: Cache key
            value: JSON-serializable data
            ttl: Time to live in seconds; None stores without expiry

        Returns:
            True if cached successfully, False otherwise
        """
        client = self.redis
        if client is None:
            logger.debug("cache_set_skipped", reason="redis_not_available", key=key)
            return False

        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.error(
                "cache_set_serialization_error",
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        try:
            if ttl:
                await client.setex(key, ttl, payload)
            else:
                await client.set(key, payload)

            logger.debug("cache_set", key=key, ttl=ttl, data_size=len(payload))
            return True

        except Exception as e:
            # Cache write failures shouldn't break requests
            self._fail("cache_set_error", e, key=key)
            return False

    async def delete(self, key: str) -> bool:
        """
        Delete a cached value by key.

        Returns:
            True if a key was removed, False if absent or on error
        """
        client = self.redis
        if client is None:
            logger.debug("cache_delete_skipped", reason="redis_not_available", key=key)
            return False

        try:
            result = await client.delete(key)
            logger.debug("cache_delete", key=key, deleted=bool(result))
            return bool(result)

        except Exception as e:
            self._fail("cache_delete_error", e, key=key)
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """
        Delete every key matching a glob pattern.

        Two steps: enumerate matching keys with SCAN, then delete them in
        batches. This is not atomic: a matching key written while the scan
        is running may survive, and then expires with its TTL.

        Args:
            pattern: Redis glob pattern, e.g. "tracks:list:*"

        Returns:
            Number of keys removed (0 on no match or error)
        """
        client = self.redis
        if client is None:
            logger.debug("cache_delete_pattern_skipped", reason="redis_not_available", pattern=pattern)
            return 0

        try:
            keys = [key async for key in client.scan_iter(match=pattern, count=DELETE_BATCH_SIZE)]

            if not keys:
                logger.debug("cache_delete_pattern", pattern=pattern, deleted=0)
                return 0

            deleted = 0
            for start in range(0, len(keys), DELETE_BATCH_SIZE):
                deleted += await client.delete(*keys[start:start + DELETE_BATCH_SIZE])

            logger.info("cache_delete_pattern", pattern=pattern, matched=len(keys), deleted=deleted)
            return deleted

        except Exception as e:
            self._fail("cache_delete_pattern_error", e, pattern=pattern)
            return 0

    async def exists(self, key: str) -> bool:
        """Return True if the key is present (False on error)."""
        client = self.redis
        if client is None:
            return False

        try:
            return await client.exists(key) == 1
        except Exception as e:
            self._fail("cache_exists_error", e, key=key)
            return False

    async def ttl(self, key: str) -> int:
        """
        Remaining time to live of a key.

        Returns:
            Seconds left, -1 for no expiry or on error, -2 if the key is missing
        """
        client = self.redis
        if client is None:
            return -1

        try:
            return int(await client.ttl(key))
        except Exception as e:
            self._fail("cache_ttl_error", e, key=key)
            return -1

    async def expire(self, key: str, seconds: int) -> bool:
        """Set a new expiry on an existing key."""
        client = self.redis
        if client is None:
            return False

        try:
            return bool(await client.expire(key, seconds))
        except Exception as e:
            self._fail("cache_expire_error", e, key=key)
            return False

    async def flush_all(self) -> bool:
        """Remove every key of the configured database. Admin use only."""
        client = self.redis
        if client is None:
            return False

        try:
            await client.flushdb()
            logger.warning("cache_flushed")
            return True
        except Exception as e:
            self._fail("cache_flush_error", e)
            return False

    async def get_or_fetch(
        self,
        key: str,
        fetch_func: Callable[[], Awaitable[T]],
        ttl: int,
        write_behind: bool = False,
    ) -> CacheResult[T]:
        """
        Get from cache or fetch and cache (cache-aside pattern).

        On a hit ``fetch_func`` is not called. On a miss the authoritative
        result is computed, written with ``ttl`` and returned. Concurrent
        misses on the same key each compute and write; the last write wins.

        Args:
            key: Cache key
            fetch_func: Async function computing the authoritative result
            ttl: Time to live in seconds
            write_behind: Write the cache as a detached task instead of
                awaiting it before returning

        Returns:
            CacheResult with the value and whether it came from cache

        Raises:
            Exception: Whatever ``fetch_func`` raises (never a cache error)

        Example:
            >>> async def load_categories():
            ...     return await repository.list_categories()
            >>>
            >>> result = await manager.get_or_fetch("categories:all", load_categories, ttl=600)
            >>> print(f"Cached: {result.cached}")
        """
        cached = await self.get(key)

        if cached is not None:
            logger.info("cache_hit_get_or_fetch", key=key)
            return CacheResult(cached, cached=True)

        logger.info("cache_miss_fetching", key=key)

        try:
            data = await fetch_func()
        except Exception as e:
            logger.error(
                "fetch_function_error",
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            # Re-raise the fetch error (don't swallow it)
            raise

        if data is not None:
            if write_behind:
                self.tasks.spawn(self.set(key, data, ttl), name=f"cache-set:{key}")
            else:
                await self.set(key, data, ttl)

        return CacheResult(data, cached=False)
