"""
Search endpoints.

Search results are user-scoped (favorite flags) and are only invalidated by
an admin clear or by the user's own favorite changes; otherwise they age out
with their TTL. Results are written to the cache write-behind, and every
computed search is recorded for analytics as a detached task.
"""

from typing import Any, Dict, List, Optional, Tuple

import structlog

from serenity.cache import CacheInvalidator, CacheKeys, CacheManager, CacheTTL
from serenity.data import ContentRepository
from serenity.models.content import Program, SearchLog, Track
from serenity.models.requests import SearchParams
from serenity.services.base import CachedReadService, envelope
from serenity.services.search_capability import SearchCapability
from serenity.utils.background import DetachedTasks, detached_tasks

logger = structlog.get_logger(__name__)

SUGGESTION_LIMIT = 10


class SearchService(CachedReadService):
    """Combined track/program search, suggestions and search analytics."""

    def __init__(
        self,
        repository: ContentRepository,
        cache: CacheManager,
        invalidator: CacheInvalidator,
        capability: SearchCapability,
        tasks: Optional[DetachedTasks] = None,
    ) -> None:
        super().__init__(repository, cache, invalidator)
        self.capability = capability
        self.tasks = tasks or detached_tasks

    async def _search_tracks(self, params: SearchParams, ranked: bool) -> Tuple[List[Track], int]:
        filters: Dict[str, Any] = {}
        if params.category:
            filters["category_id"] = params.category
        if params.level:
            filters["level"] = params.level
        if params.relaxation_type:
            filters["relaxation_type"] = params.relaxation_type
        if params.is_premium is not None:
            filters["is_premium"] = params.is_premium
        # Duration filters arrive in minutes
        if params.min_duration is not None:
            filters["min_duration_seconds"] = params.min_duration * 60
        if params.max_duration is not None:
            filters["max_duration_seconds"] = params.max_duration * 60

        return await self.repository.find_tracks(
            filters, params.skip, params.limit, text=params.q or None, ranked=ranked
        )

    async def _search_programs(self, params: SearchParams, ranked: bool) -> Tuple[List[Program], int]:
        filters: Dict[str, Any] = {}
        if params.category:
            filters["category_id"] = params.category
        if params.level:
            filters["level"] = params.level
        if params.is_premium is not None:
            filters["is_premium"] = params.is_premium

        programs, total = await self.repository.find_programs(
            filters, params.skip, params.limit, text=params.q or None, ranked=ranked
        )

        if params.min_sessions is not None or params.max_sessions is not None:
            low = params.min_sessions or 0
            high = params.max_sessions if params.max_sessions is not None else float("inf")
            programs = [p for p in programs if low <= len(p.track_ids) <= high]
            total = len(programs)

        return programs, total

    async def search(self, params: SearchParams, user_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Search tracks and/or programs.

        Cache Strategy:
            - TTL: 300 seconds, written write-behind
            - Key pattern: search:results:{type}:{params}:{u:user or anonymous}
        """
        cache_params = params.cache_params()
        cache_params.pop("type", None)
        cache_key = CacheKeys.search_results(params.type, cache_params, user_id)

        async def fetch_results() -> Dict[str, Any]:
            ranked = await self.capability.check()
            favorites_t = await self.repository.favorite_ids(user_id, "track") if user_id else set()
            favorites_p = await self.repository.favorite_ids(user_id, "program") if user_id else set()

            tracks: List[Track] = []
            programs: List[Program] = []
            tracks_total = programs_total = 0

            if params.type in ("all", "track"):
                tracks, tracks_total = await self._search_tracks(params, ranked)
            if params.type in ("all", "program"):
                programs, programs_total = await self._search_programs(params, ranked)

            total = tracks_total + programs_total

            self.tasks.spawn(
                self._record_search(params, user_id, total),
                name="search-log",
            )

            return envelope(
                {
                    "tracks": [
                        {**t.model_dump(mode="json"), "is_favorite": t.id in favorites_t}
                        for t in tracks
                    ],
                    "programs": [
                        {**p.model_dump(mode="json"), "is_favorite": p.id in favorites_p}
                        for p in programs
                    ],
                    "pagination": {
                        "page": params.page,
                        "limit": params.limit,
                        "total_tracks": tracks_total,
                        "total_programs": programs_total,
                        "total": total,
                        "pages": -(-total // params.limit),
                    },
                },
                "Search completed successfully",
            )

        return await self.cached_read(
            "search.results", cache_key, CacheTTL.SEARCH_RESULTS.value, fetch_results, write_behind=True
        )

    async def _record_search(self, params: SearchParams, user_id: Optional[str], result_count: int) -> None:
        filters = params.model_dump(exclude={"q", "type", "page", "limit"}, exclude_none=True)
        await self.repository.insert_search_log(
            SearchLog(
                query=params.q,
                user_id=user_id,
                type=params.type,
                filters=filters,
                result_count=result_count,
            )
        )
        logger.debug("search_logged", query=params.q[:50], result_count=result_count)

    async def suggestions(self, q: str) -> Dict[str, Any]:
        """Title prefix suggestions across tracks and programs."""
        query = (q or "").replace("\x00", "").strip()
        if not query:
            return {**envelope({"suggestions": []}, "No query given"), "cached": False}

        async def fetch_suggestions() -> Dict[str, Any]:
            titles = await self.repository.title_suggestions(query, SUGGESTION_LIMIT)
            return envelope({"suggestions": titles}, "Suggestions retrieved successfully")

        return await self.cached_read(
            "search.suggestions",
            CacheKeys.search_suggestions(query),
            CacheTTL.SEARCH_SUGGESTIONS.value,
            fetch_suggestions,
        )

    async def popular(self, days: int = 7, limit: int = 10) -> Dict[str, Any]:
        """Most frequent queries over a window. Time decay only."""
        limit = min(limit, 50)

        async def fetch_popular() -> Dict[str, Any]:
            searches = await self.repository.popular_searches(days, limit)
            return envelope(searches, "Popular searches retrieved successfully")

        return await self.cached_read(
            "search.popular", CacheKeys.search_popular(days, limit), CacheTTL.POPULAR.value, fetch_popular
        )

    async def clear_cache(self) -> Dict[str, Any]:
        """Admin: drop every cached search result, suggestion and aggregate."""
        deleted = await self.invalidator.clear_search()
        logger.info("search_cache_cleared", deleted=deleted)
        return envelope({"deleted": deleted}, "Search cache cleared successfully")
