"""Pattern-based cache invalidation.

Every resource class lists, exhaustively, the key patterns that reads of
that resource can produce. Mutations call :meth:`CacheInvalidator.invalidate`
after the write is committed; the deletions are best-effort and never
raise (a missed deletion is bounded by the entry's TTL).
"""

import asyncio
from typing import Dict, List, Optional, Tuple

import structlog

from serenity.cache.keys import escape_glob
from serenity.cache.manager import CacheManager

logger = structlog.get_logger(__name__)

# Pattern templates per resource class. "{id}" is replaced by the escaped
# resource id; templates containing "{id}" are skipped when no id is given.
INVALIDATION_MAP: Dict[str, Tuple[str, ...]] = {
    "track": (
        "track:{id}:*",
        "tracks:list:*",
        "tracks:featured",
        "tracks:search:*",
        "tracks:popular:*",
        "category:*:tracks:*",
    ),
    "program": (
        "program:{id}:*",
        "programs:list:*",
        "programs:featured",
        "category:*:programs:*",
    ),
    "category": (
        "category:{id}",
        "category:{id}:*",
        "categories:*",
    ),
    "search": (
        "search:*",
    ),
    "package": (
        "subscription:packages:*",
    ),
    # "{id}" is the user id: favorites only change that user's read shapes
    "favorite": (
        "tracks:list:*:u:{id}",
        "track:*:u:{id}",
        "programs:list:*:u:{id}",
        "program:*:u:{id}",
        "search:results:*:u:{id}",
    ),
}


def patterns_for(resource_class: str, resource_id: Optional[str] = None) -> List[str]:
    """
    Expand the pattern templates of a resource class.

    Args:
        resource_class: Key of INVALIDATION_MAP
        resource_id: Specific resource id, if the write targeted one

    Returns:
        Concrete glob patterns to delete

    Raises:
        ValueError: If the resource class is not registered
    """
    try:
        templates = INVALIDATION_MAP[resource_class]
    except KeyError:
        raise ValueError(f"Unknown resource class for invalidation: {resource_class}") from None

    patterns = []
    for template in templates:
        if "{id}" in template:
            if resource_id is None:
                continue
            patterns.append(template.replace("{id}", escape_glob(resource_id)))
        else:
            patterns.append(template)
    return patterns


class CacheInvalidator:
    """
    Deletes every cached read shape of a resource class after a write.

    Usage:
        invalidator = CacheInvalidator(cache_manager)

        # after the update is committed
        await invalidator.invalidate("track", track_id)
    """

    def __init__(self, cache_manager: CacheManager) -> None:
        self.cache = cache_manager

    async def invalidate(
        self,
        resource_class: str,
        resource_id: Optional[str] = None,
    ) -> Dict[str, int]:
        """
        Delete all patterns registered for the resource class, concurrently.

        Returns:
            Mapping of pattern to number of keys removed
        """
        patterns = patterns_for(resource_class, resource_id)

        counts = await asyncio.gather(*(self.cache.delete_pattern(p) for p in patterns))
        results = dict(zip(patterns, counts))

        logger.info(
            "cache_invalidated",
            resource_class=resource_class,
            resource_id=resource_id,
            deleted=sum(counts),
            patterns=results,
        )
        return results

    async def invalidate_key(self, key: str) -> bool:
        """Delete a single, non-query-shaped key (e.g. a counter)."""
        return await self.cache.delete(key)

    async def clear_search(self) -> int:
        """Admin-triggered clear of every search result, suggestion and aggregate."""
        results = await self.invalidate("search")
        return sum(results.values())
