"""Notification endpoints."""

from fastapi import APIRouter, status

from serenity.api.deps import Container, CurrentUser
from serenity.models.requests import NotificationCreate

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/unread-count")
async def unread_count(container: Container, user_id: CurrentUser):
    return await container.notifications.unread_count(user_id)


@router.post("/users/{target_user_id}", status_code=status.HTTP_201_CREATED)
async def create_notification(target_user_id: str, payload: NotificationCreate, container: Container):
    return await container.notifications.create(target_user_id, payload)


@router.patch("/read-all")
async def mark_all_read(container: Container, user_id: CurrentUser):
    return await container.notifications.mark_all_read(user_id)


@router.patch("/{notification_id}/read")
async def mark_read(notification_id: str, container: Container, user_id: CurrentUser):
    return await container.notifications.mark_read(user_id, notification_id)
