"""
Track endpoints.

Reads are cache-aside (list and detail are user-scoped because they carry
the caller's favorite flags). Every mutation commits first, then
invalidates the "track" resource class.
"""

from typing import Any, Dict, List, Optional

import structlog

from serenity.cache import CacheKeys, CacheTTL
from serenity.exceptions import NotFoundError
from serenity.models.content import Track
from serenity.models.requests import TrackCreate, TrackFilters, TrackUpdate
from serenity.models.responses import Pagination
from serenity.services.base import CachedReadService, envelope

logger = structlog.get_logger(__name__)

FEATURED_LIMIT = 10


def track_filters_query(filters: TrackFilters) -> Dict[str, Any]:
    """Translate list filters into a repository query."""
    query: Dict[str, Any] = {}
    if filters.category:
        query["category_id"] = filters.category
    if filters.level:
        query["level"] = filters.level
    if filters.relaxation_type:
        query["relaxation_type"] = filters.relaxation_type
    if filters.is_premium is not None:
        query["is_premium"] = filters.is_premium
    return query


class TrackService(CachedReadService):
    """Track catalog reads and admin mutations."""

    async def _with_favorites(self, tracks: List[Track], user_id: Optional[str]) -> List[Dict[str, Any]]:
        favorites = await self.repository.favorite_ids(user_id, "track") if user_id else set()
        return [
            {**track.model_dump(mode="json"), "is_favorite": track.id in favorites}
            for track in tracks
        ]

    async def list_tracks(self, filters: TrackFilters, user_id: Optional[str] = None) -> Dict[str, Any]:
        """
        List active tracks with filtering and pagination.

        Text queries are ranked by relevance, other listings by newest first.

        Cache Strategy:
            - TTL: 300 seconds
            - Key pattern: tracks:list:{params}:{u:user or anonymous}
        """
        cache_key = CacheKeys.tracks_list(filters.cache_params(), user_id)

        async def fetch_tracks() -> Dict[str, Any]:
            tracks, total = await self.repository.find_tracks(
                track_filters_query(filters),
                filters.skip,
                filters.limit,
                text=filters.q,
                ranked=bool(filters.q),
            )
            return envelope(
                await self._with_favorites(tracks, user_id),
                "Tracks retrieved successfully",
                pagination=Pagination.build(filters.page, filters.limit, total).model_dump(),
            )

        return await self.cached_read("tracks.list", cache_key, CacheTTL.TRACK_LIST.value, fetch_tracks)

    async def get_track(self, track_id: str, user_id: Optional[str] = None) -> Dict[str, Any]:
        """Get one active track. Raises NotFoundError (never cached)."""
        cache_key = CacheKeys.track_detail(track_id, user_id)

        async def fetch_track() -> Dict[str, Any]:
            track = await self.repository.get_track(track_id)
            if track is None:
                raise NotFoundError("track", track_id)
            [data] = await self._with_favorites([track], user_id)
            return envelope(data, "Track retrieved successfully")

        return await self.cached_read("tracks.detail", cache_key, CacheTTL.TRACK_DETAIL.value, fetch_track)

    async def get_featured(self) -> Dict[str, Any]:
        """Featured tracks (global, not user-scoped)."""

        async def fetch_featured() -> Dict[str, Any]:
            tracks = await self.repository.featured_tracks(FEATURED_LIMIT)
            return envelope(
                [t.model_dump(mode="json") for t in tracks],
                "Featured tracks retrieved successfully",
            )

        return await self.cached_read(
            "tracks.featured", CacheKeys.tracks_featured(), CacheTTL.FEATURED.value, fetch_featured
        )

    async def search_tracks(self, filters: TrackFilters) -> Dict[str, Any]:
        """Relevance-ranked text search over tracks (not user-scoped)."""
        cache_key = CacheKeys.tracks_search(filters.cache_params())

        async def fetch_results() -> Dict[str, Any]:
            tracks, total = await self.repository.find_tracks(
                track_filters_query(filters),
                filters.skip,
                filters.limit,
                text=filters.q,
                ranked=True,
            )
            return envelope(
                [t.model_dump(mode="json") for t in tracks],
                "Search results retrieved successfully",
                pagination=Pagination.build(filters.page, filters.limit, total).model_dump(),
            )

        return await self.cached_read("tracks.search", cache_key, CacheTTL.SEARCH_RESULTS.value, fetch_results)

    async def get_popular(self, days: int = 7, limit: int = 10) -> Dict[str, Any]:
        """Most played tracks over a window. Cleared by track writes."""
        limit = min(limit, 50)
        cache_key = CacheKeys.tracks_popular(days, limit)

        async def fetch_popular() -> Dict[str, Any]:
            ranked = await self.repository.popular_tracks(days, limit)
            return envelope(
                [
                    {**entry["track"].model_dump(mode="json"), "plays": entry["plays"]}
                    for entry in ranked
                ],
                "Popular tracks retrieved successfully",
            )

        return await self.cached_read("tracks.popular", cache_key, CacheTTL.POPULAR.value, fetch_popular)

    async def create_track(self, payload: TrackCreate) -> Dict[str, Any]:
        track = await self.repository.insert_track(Track(**payload.model_dump()))

        await self.invalidator.invalidate("track", track.id)

        logger.info("track_created", track_id=track.id, category_id=track.category_id)
        return envelope(track.model_dump(mode="json"), "Track created successfully")

    async def update_track(self, track_id: str, payload: TrackUpdate) -> Dict[str, Any]:
        changes = payload.model_dump(exclude_unset=True)
        track = await self.repository.update_track(track_id, changes)
        if track is None:
            raise NotFoundError("track", track_id)

        await self.invalidator.invalidate("track", track_id)

        logger.info("track_updated", track_id=track_id, fields=sorted(changes))
        return envelope(track.model_dump(mode="json"), "Track updated successfully")

    async def delete_track(self, track_id: str) -> Dict[str, Any]:
        """Soft delete: the track stays in the store but disappears from reads."""
        if not await self.repository.deactivate_track(track_id):
            raise NotFoundError("track", track_id)

        await self.invalidator.invalidate("track", track_id)

        logger.info("track_deleted", track_id=track_id)
        return envelope(None, "Track deleted successfully")
