"""Category endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from serenity.api.deps import Container
from serenity.models.requests import CategoryCreate, CategoryUpdate, PageParams

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("")
async def list_categories(container: Container):
    return await container.categories.list_categories()


@router.get("/{category_id}")
async def get_category(category_id: str, container: Container):
    return await container.categories.get_category(category_id)


@router.get("/{category_id}/tracks")
async def category_tracks(category_id: str, params: Annotated[PageParams, Query()], container: Container):
    return await container.categories.category_tracks(category_id, params)


@router.get("/{category_id}/programs")
async def category_programs(category_id: str, params: Annotated[PageParams, Query()], container: Container):
    return await container.categories.category_programs(category_id, params)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(payload: CategoryCreate, container: Container):
    return await container.categories.create_category(payload)


@router.put("/{category_id}")
async def update_category(category_id: str, payload: CategoryUpdate, container: Container):
    return await container.categories.update_category(category_id, payload)


@router.delete("/{category_id}")
async def delete_category(category_id: str, container: Container):
    return await container.categories.delete_category(category_id)
