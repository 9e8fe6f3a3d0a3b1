"""Shared plumbing for services that serve cached reads."""

import time
from typing import Any, Awaitable, Callable, Dict

from serenity.cache import CacheInvalidator, CacheManager
from serenity.data import ContentRepository
from serenity.utils.logger import log_endpoint_execution


class CachedReadService:
    """
    Base for controllers over the document store.

    Read endpoints go through :meth:`cached_read`, which caches the response
    body (without the ``cached`` flag) and returns it with the flag set.
    Write endpoints commit to the repository first, then invalidate.
    """

    def __init__(
        self,
        repository: ContentRepository,
        cache: CacheManager,
        invalidator: CacheInvalidator,
    ) -> None:
        self.repository = repository
        self.cache = cache
        self.invalidator = invalidator

    async def cached_read(
        self,
        endpoint: str,
        cache_key: str,
        ttl: int,
        build: Callable[[], Awaitable[Dict[str, Any]]],
        write_behind: bool = False,
    ) -> Dict[str, Any]:
        """
        Serve a read through the cache.

        Args:
            endpoint: Logical endpoint name for logs
            cache_key: Key from CacheKeys
            ttl: TTL in seconds
            build: Computes the response body from the repository
            write_behind: Populate the cache as a detached task

        Returns:
            Response body with ``cached`` set
        """
        start_time = time.time()

        try:
            result = await self.cache.get_or_fetch(cache_key, build, ttl, write_behind=write_behind)
        except Exception as e:
            log_endpoint_execution(
                endpoint=endpoint,
                duration_ms=(time.time() - start_time) * 1000,
                cached=False,
                error=str(e),
            )
            raise

        log_endpoint_execution(
            endpoint=endpoint,
            duration_ms=(time.time() - start_time) * 1000,
            cached=result.cached,
            cache_key=cache_key,
        )

        return {**result.value, "cached": result.cached}


def envelope(data: Any, message: str, **extra: Any) -> Dict[str, Any]:
    """Standard success body."""
    return {"success": True, "message": message, "data": data, **extra}
