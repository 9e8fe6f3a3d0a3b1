"""TTL (Time To Live) policies for each cached resource class.

This module defines cache expiration policies based on how often each
resource changes and whether writes invalidate it explicitly.
"""

from enum import Enum

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_TTL = 300


class CacheTTL(Enum):
    """
    Cache TTL policies for the content platform.

    Resources with explicit invalidation on write can use moderate TTLs;
    aggregates that are never invalidated rely on time decay alone.

    Values are in seconds.
    """

    # Catalog reads, invalidated on write
    CATEGORY_LIST = 600  # 10 minutes
    CATEGORY_DETAIL = 600
    FEATURED = 600
    TRACK_LIST = 300  # 5 minutes
    TRACK_DETAIL = 300
    PROGRAM_LIST = 300
    PROGRAM_DETAIL = 300
    CATEGORY_CONTENT = 300

    # Search, cleared by admins only
    SEARCH_RESULTS = 300
    SEARCH_SUGGESTIONS = 300

    # Aggregates, time decay only
    POPULAR = 1800  # 30 minutes
    USER_STATS = 3600  # 1 hour

    # Ephemeral counters
    UNREAD_COUNT = 60

    # Subscription packages
    PACKAGES = 3600

    @staticmethod
    def for_resource(resource: str) -> int:
        """
        Look up the TTL for a named read shape.

        Args:
            resource: Read shape name, e.g. "tracks.list" or "search.popular"

        Returns:
            TTL in seconds (DEFAULT_TTL for unknown names)

        Example:
            >>> CacheTTL.for_resource("categories.all")
            600
        """
        name = RESOURCE_TTLS.get(resource)

        if name is None:
            logger.warning(
                "unknown_resource_using_default_ttl",
                resource=resource,
                default_ttl=DEFAULT_TTL,
            )
            return DEFAULT_TTL

        return name.value


RESOURCE_TTLS = {
    "categories.all": CacheTTL.CATEGORY_LIST,
    "categories.detail": CacheTTL.CATEGORY_DETAIL,
    "categories.tracks": CacheTTL.CATEGORY_CONTENT,
    "categories.programs": CacheTTL.CATEGORY_CONTENT,
    "tracks.list": CacheTTL.TRACK_LIST,
    "tracks.detail": CacheTTL.TRACK_DETAIL,
    "tracks.featured": CacheTTL.FEATURED,
    "tracks.search": CacheTTL.SEARCH_RESULTS,
    "tracks.popular": CacheTTL.POPULAR,
    "programs.list": CacheTTL.PROGRAM_LIST,
    "programs.detail": CacheTTL.PROGRAM_DETAIL,
    "programs.featured": CacheTTL.FEATURED,
    "search.results": CacheTTL.SEARCH_RESULTS,
    "search.suggestions": CacheTTL.SEARCH_SUGGESTIONS,
    "search.popular": CacheTTL.POPULAR,
    "users.stats": CacheTTL.USER_STATS,
    "notifications.unread": CacheTTL.UNREAD_COUNT,
    "subscriptions.packages": CacheTTL.PACKAGES,
}
