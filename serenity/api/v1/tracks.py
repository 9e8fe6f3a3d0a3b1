"""Track endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from serenity.api.deps import Container, CurrentUser
from serenity.models.requests import TrackCreate, TrackFilters, TrackUpdate

router = APIRouter(prefix="/tracks", tags=["Tracks"])


@router.get("")
async def list_tracks(filters: Annotated[TrackFilters, Query()], container: Container, user_id: CurrentUser):
    return await container.tracks.list_tracks(filters, user_id)


@router.get("/featured")
async def featured_tracks(container: Container):
    return await container.tracks.get_featured()


@router.get("/search")
async def search_tracks(filters: Annotated[TrackFilters, Query()], container: Container):
    return await container.tracks.search_tracks(filters)


@router.get("/popular")
async def popular_tracks(
    container: Container,
    days: Annotated[int, Query(ge=1, le=365)] = 7,
    limit: Annotated[int, Query(ge=1)] = 10,
):
    return await container.tracks.get_popular(days, limit)


@router.get("/{track_id}")
async def get_track(track_id: str, container: Container, user_id: CurrentUser):
    return await container.tracks.get_track(track_id, user_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_track(payload: TrackCreate, container: Container):
    return await container.tracks.create_track(payload)


@router.put("/{track_id}")
async def update_track(track_id: str, payload: TrackUpdate, container: Container):
    return await container.tracks.update_track(track_id, payload)


@router.delete("/{track_id}")
async def delete_track(track_id: str, container: Container):
    return await container.tracks.delete_track(track_id)
