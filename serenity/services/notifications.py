"""
Notification endpoints.

The unread count is an ephemeral per-user counter: read with a plain
``get``, recomputed and stored for 60 seconds on a miss, and deleted by
every mutation that can change it.
"""

from typing import Any, Dict, Optional

import structlog

from serenity.cache import CacheKeys, CacheTTL
from serenity.exceptions import AuthenticationError, NotFoundError
from serenity.models.content import Notification
from serenity.models.requests import NotificationCreate
from serenity.services.base import CachedReadService, envelope

logger = structlog.get_logger(__name__)


def _require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise AuthenticationError()
    return user_id


class NotificationService(CachedReadService):
    """Per-user notifications and their unread counter."""

    async def unread_count(self, user_id: Optional[str]) -> Dict[str, Any]:
        user_id = _require_user(user_id)
        cache_key = CacheKeys.notification_unread(user_id)

        count = await self.cache.get(cache_key)
        # 0 is a valid cached count
        if count is not None:
            return {**envelope({"count": count}, "Unread count retrieved successfully"), "cached": True}

        count = await self.repository.count_unread(user_id)
        await self.cache.set(cache_key, count, CacheTTL.UNREAD_COUNT.value)

        return {**envelope({"count": count}, "Unread count retrieved successfully"), "cached": False}

    async def _reset_counter(self, user_id: str) -> None:
        await self.invalidator.invalidate_key(CacheKeys.notification_unread(user_id))

    async def create(self, user_id: str, payload: NotificationCreate) -> Dict[str, Any]:
        notification = await self.repository.insert_notification(
            Notification(user_id=user_id, **payload.model_dump())
        )

        await self._reset_counter(user_id)

        logger.info("notification_created", user_id=user_id, notification_id=notification.id)
        return envelope(notification.model_dump(mode="json"), "Notification created successfully")

    async def mark_read(self, user_id: Optional[str], notification_id: str) -> Dict[str, Any]:
        user_id = _require_user(user_id)
        if not await self.repository.mark_read(user_id, notification_id):
            raise NotFoundError("notification", notification_id)

        await self._reset_counter(user_id)

        logger.info("notification_read", user_id=user_id, notification_id=notification_id)
        return envelope(None, "Notification marked as read")

    async def mark_all_read(self, user_id: Optional[str]) -> Dict[str, Any]:
        user_id = _require_user(user_id)
        changed = await self.repository.mark_all_read(user_id)

        await self._reset_counter(user_id)

        logger.info("notifications_all_read", user_id=user_id, changed=changed)
        return envelope({"updated": changed}, "All notifications marked as read")
