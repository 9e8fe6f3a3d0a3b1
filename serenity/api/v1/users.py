"""Current user's listening stats and sessions."""

from fastapi import APIRouter, status

from serenity.api.deps import Container, CurrentUser
from serenity.models.requests import SessionCreate

router = APIRouter(prefix="/users/me", tags=["Users"])


@router.get("/stats")
async def user_stats(container: Container, user_id: CurrentUser):
    return await container.user_stats.get_stats(user_id)


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def record_session(payload: SessionCreate, container: Container, user_id: CurrentUser):
    return await container.user_stats.record_session(
        user_id,
        payload.track_id,
        payload.duration_seconds,
        completed=payload.completed,
        program_id=payload.program_id,
    )
