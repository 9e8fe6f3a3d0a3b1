"""Favorite endpoints."""

from typing import Literal

from fastapi import APIRouter

from serenity.api.deps import Container, CurrentUser

router = APIRouter(prefix="/favorites", tags=["Favorites"])


@router.get("")
async def list_favorites(container: Container, user_id: CurrentUser):
    return await container.favorites.list(user_id)


@router.post("/{kind}/{item_id}")
async def add_favorite(kind: Literal["track", "program"], item_id: str, container: Container, user_id: CurrentUser):
    return await container.favorites.add(user_id, kind, item_id)


@router.delete("/{kind}/{item_id}")
async def remove_favorite(kind: Literal["track", "program"], item_id: str, container: Container, user_id: CurrentUser):
    return await container.favorites.remove(user_id, kind, item_id)
