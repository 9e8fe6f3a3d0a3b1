"""
Favorite endpoints.

Favorite flags are baked into the user-scoped read shapes (track and
program lists and details, search results), so every change invalidates
the "favorite" class for that user only.
"""

from typing import Any, Dict, Literal, Optional

import structlog

from serenity.exceptions import AuthenticationError, NotFoundError
from serenity.services.base import CachedReadService, envelope

logger = structlog.get_logger(__name__)

FavoriteKind = Literal["track", "program"]


class FavoriteService(CachedReadService):

    async def _require_item(self, kind: FavoriteKind, item_id: str) -> None:
        if kind == "track":
            found = await self.repository.get_track(item_id)
        else:
            found = await self.repository.get_program(item_id)
        if found is None:
            raise NotFoundError(kind, item_id)

    async def list(self, user_id: Optional[str]) -> Dict[str, Any]:
        if not user_id:
            raise AuthenticationError()

        data = {
            "tracks": sorted(await self.repository.favorite_ids(user_id, "track")),
            "programs": sorted(await self.repository.favorite_ids(user_id, "program")),
        }
        return envelope(data, "Favorites retrieved successfully")

    async def add(self, user_id: Optional[str], kind: FavoriteKind, item_id: str) -> Dict[str, Any]:
        if not user_id:
            raise AuthenticationError()
        await self._require_item(kind, item_id)

        added = await self.repository.add_favorite(user_id, kind, item_id)
        if added:
            await self.invalidator.invalidate("favorite", user_id)

        logger.info("favorite_added", user_id=user_id, kind=kind, item_id=item_id, changed=added)
        return envelope({"is_favorite": True}, "Added to favorites")

    async def remove(self, user_id: Optional[str], kind: FavoriteKind, item_id: str) -> Dict[str, Any]:
        if not user_id:
            raise AuthenticationError()

        removed = await self.repository.remove_favorite(user_id, kind, item_id)
        if removed:
            await self.invalidator.invalidate("favorite", user_id)

        logger.info("favorite_removed", user_id=user_id, kind=kind, item_id=item_id, changed=removed)
        return envelope({"is_favorite": False}, "Removed from favorites")
