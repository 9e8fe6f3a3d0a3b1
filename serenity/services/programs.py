"""
Program endpoints.

Program documents reference their tracks by id only, so program cache
entries do not depend on track writes.
"""

from typing import Any, Dict, List, Optional

import structlog

from serenity.cache import CacheKeys, CacheTTL
from serenity.exceptions import NotFoundError, ValidationError
from serenity.models.content import Program
from serenity.models.requests import ProgramCreate, ProgramFilters, ProgramUpdate
from serenity.models.responses import Pagination
from serenity.services.base import CachedReadService, envelope

logger = structlog.get_logger(__name__)

FEATURED_LIMIT = 10


class ProgramService(CachedReadService):
    """Program catalog reads and admin mutations."""

    async def _with_favorites(self, programs: List[Program], user_id: Optional[str]) -> List[Dict[str, Any]]:
        favorites = await self.repository.favorite_ids(user_id, "program") if user_id else set()
        return [
            {
                **program.model_dump(mode="json"),
                "track_count": len(program.track_ids),
                "is_favorite": program.id in favorites,
            }
            for program in programs
        ]

    async def list_programs(self, filters: ProgramFilters, user_id: Optional[str] = None) -> Dict[str, Any]:
        """
        List active programs.

        Cache Strategy:
            - TTL: 300 seconds
            - Key pattern: programs:list:{params}:{u:user or anonymous}
        """
        cache_key = CacheKeys.programs_list(filters.cache_params(), user_id)

        async def fetch_programs() -> Dict[str, Any]:
            query: Dict[str, Any] = {}
            if filters.category:
                query["category_id"] = filters.category
            if filters.level:
                query["level"] = filters.level
            if filters.is_premium is not None:
                query["is_premium"] = filters.is_premium

            programs, total = await self.repository.find_programs(query, filters.skip, filters.limit)
            return envelope(
                await self._with_favorites(programs, user_id),
                "Programs retrieved successfully",
                pagination=Pagination.build(filters.page, filters.limit, total).model_dump(),
            )

        return await self.cached_read("programs.list", cache_key, CacheTTL.PROGRAM_LIST.value, fetch_programs)

    async def get_program(self, program_id: str, user_id: Optional[str] = None) -> Dict[str, Any]:
        cache_key = CacheKeys.program_detail(program_id, user_id)

        async def fetch_program() -> Dict[str, Any]:
            program = await self.repository.get_program(program_id)
            if program is None:
                raise NotFoundError("program", program_id)
            [data] = await self._with_favorites([program], user_id)
            return envelope(data, "Program retrieved successfully")

        return await self.cached_read("programs.detail", cache_key, CacheTTL.PROGRAM_DETAIL.value, fetch_program)

    async def get_featured(self) -> Dict[str, Any]:
        async def fetch_featured() -> Dict[str, Any]:
            programs = await self.repository.featured_programs(FEATURED_LIMIT)
            return envelope(
                [p.model_dump(mode="json") for p in programs],
                "Featured programs retrieved successfully",
            )

        return await self.cached_read(
            "programs.featured", CacheKeys.programs_featured(), CacheTTL.FEATURED.value, fetch_featured
        )

    async def _check_tracks(self, track_ids: List[str]) -> None:
        for track_id in track_ids:
            if await self.repository.get_track(track_id) is None:
                raise ValidationError(f"unknown track '{track_id}'", field="track_ids")

    async def create_program(self, payload: ProgramCreate) -> Dict[str, Any]:
        await self._check_tracks(payload.track_ids)
        program = await self.repository.insert_program(Program(**payload.model_dump()))

        await self.invalidator.invalidate("program", program.id)

        logger.info("program_created", program_id=program.id, tracks=len(program.track_ids))
        return envelope(program.model_dump(mode="json"), "Program created successfully")

    async def update_program(self, program_id: str, payload: ProgramUpdate) -> Dict[str, Any]:
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("track_ids"):
            await self._check_tracks(changes["track_ids"])

        program = await self.repository.update_program(program_id, changes)
        if program is None:
            raise NotFoundError("program", program_id)

        await self.invalidator.invalidate("program", program_id)

        logger.info("program_updated", program_id=program_id, fields=sorted(changes))
        return envelope(program.model_dump(mode="json"), "Program updated successfully")

    async def delete_program(self, program_id: str) -> Dict[str, Any]:
        if not await self.repository.deactivate_program(program_id):
            raise NotFoundError("program", program_id)

        await self.invalidator.invalidate("program", program_id)

        logger.info("program_deleted", program_id=program_id)
        return envelope(None, "Program deleted successfully")
