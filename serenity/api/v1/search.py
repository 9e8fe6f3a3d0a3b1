"""Search endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from serenity.api.deps import Container, CurrentUser
from serenity.models.requests import SearchParams

router = APIRouter(prefix="/search", tags=["Search"])


@router.get("")
async def search(params: Annotated[SearchParams, Query()], container: Container, user_id: CurrentUser):
    return await container.search.search(params, user_id)


@router.get("/suggestions")
async def suggestions(container: Container, q: Annotated[str, Query(max_length=200)] = ""):
    return await container.search.suggestions(q)


@router.get("/popular")
async def popular_searches(
    container: Container,
    days: Annotated[int, Query(ge=1, le=365)] = 7,
    limit: Annotated[int, Query(ge=1)] = 10,
):
    return await container.search.popular(days, limit)


@router.delete("/cache")
async def clear_search_cache(container: Container):
    return await container.search.clear_cache()
