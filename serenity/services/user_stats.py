"""User listening statistics. Cached for an hour and never invalidated."""

from typing import Any, Dict, Optional

import structlog

from serenity.cache import CacheKeys, CacheTTL
from serenity.exceptions import AuthenticationError, NotFoundError
from serenity.models.content import ListeningSession
from serenity.services.base import CachedReadService, envelope

logger = structlog.get_logger(__name__)


class UserStatsService(CachedReadService):

    async def get_stats(self, user_id: Optional[str]) -> Dict[str, Any]:
        """
        Aggregate listening totals of one user.

        Cache Strategy:
            - TTL: 3600 seconds
            - Key pattern: user:stats:{user}
            - Stale by up to an hour after new sessions
        """
        if not user_id:
            raise AuthenticationError()

        async def fetch_stats() -> Dict[str, Any]:
            sessions = await self.repository.sessions_for_user(user_id)
            total_seconds = sum(s.duration_seconds for s in sessions)
            completed = [s for s in sessions if s.completed]

            stats = {
                "total_sessions": len(sessions),
                "completed_sessions": len(completed),
                "total_minutes": total_seconds // 60,
                "total_tracks": len({s.track_id for s in sessions}),
                "total_programs": len({s.program_id for s in sessions if s.program_id}),
                "last_session_at": (
                    max(s.started_at for s in sessions).isoformat() if sessions else None
                ),
            }
            return envelope(stats, "User stats retrieved successfully")

        return await self.cached_read(
            "users.stats", CacheKeys.user_stats(user_id), CacheTTL.USER_STATS.value, fetch_stats
        )

    async def record_session(
        self,
        user_id: Optional[str],
        track_id: str,
        duration_seconds: int,
        completed: bool = False,
        program_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Store a listening session. The cached stats catch up on expiry."""
        if not user_id:
            raise AuthenticationError()
        if await self.repository.get_track(track_id) is None:
            raise NotFoundError("track", track_id)

        session = await self.repository.insert_session(
            ListeningSession(
                user_id=user_id,
                track_id=track_id,
                program_id=program_id,
                duration_seconds=duration_seconds,
                completed=completed,
            )
        )

        logger.info("session_recorded", user_id=user_id, track_id=track_id, completed=completed)
        return envelope(session.model_dump(mode="json"), "Session recorded successfully")
