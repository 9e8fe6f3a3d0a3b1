"""Category endpoints."""

from typing import Any, Dict

import structlog

from serenity.cache import CacheKeys, CacheTTL
from serenity.exceptions import NotFoundError
from serenity.models.content import Category
from serenity.models.requests import CategoryCreate, CategoryUpdate, PageParams
from serenity.models.responses import Pagination
from serenity.services.base import CachedReadService, envelope

logger = structlog.get_logger(__name__)


class CategoryService(CachedReadService):
    """Category listings, per-category content and admin mutations."""

    async def list_categories(self) -> Dict[str, Any]:
        async def fetch_categories() -> Dict[str, Any]:
            categories = await self.repository.list_categories()
            return envelope(
                [c.model_dump(mode="json") for c in categories],
                "Categories retrieved successfully",
            )

        return await self.cached_read(
            "categories.all", CacheKeys.categories_all(), CacheTTL.CATEGORY_LIST.value, fetch_categories
        )

    async def get_category(self, category_id: str) -> Dict[str, Any]:
        async def fetch_category() -> Dict[str, Any]:
            category = await self.repository.get_category(category_id)
            if category is None:
                raise NotFoundError("category", category_id)
            return envelope(category.model_dump(mode="json"), "Category retrieved successfully")

        return await self.cached_read(
            "categories.detail",
            CacheKeys.category_detail(category_id),
            CacheTTL.CATEGORY_DETAIL.value,
            fetch_category,
        )

    async def _require_category(self, category_id: str) -> None:
        if await self.repository.get_category(category_id) is None:
            raise NotFoundError("category", category_id)

    async def category_tracks(self, category_id: str, params: PageParams) -> Dict[str, Any]:
        """
        Tracks of one category.

        Invalidated by both category writes (category:{id}:*) and track
        writes (category:*:tracks:*).
        """
        cache_key = CacheKeys.category_tracks(category_id, params.cache_params())

        async def fetch_tracks() -> Dict[str, Any]:
            await self._require_category(category_id)
            tracks, total = await self.repository.find_tracks(
                {"category_id": category_id}, params.skip, params.limit
            )
            return envelope(
                [t.model_dump(mode="json") for t in tracks],
                "Category tracks retrieved successfully",
                pagination=Pagination.build(params.page, params.limit, total).model_dump(),
            )

        return await self.cached_read(
            "categories.tracks", cache_key, CacheTTL.CATEGORY_CONTENT.value, fetch_tracks
        )

    async def category_programs(self, category_id: str, params: PageParams) -> Dict[str, Any]:
        cache_key = CacheKeys.category_programs(category_id, params.cache_params())

        async def fetch_programs() -> Dict[str, Any]:
            await self._require_category(category_id)
            programs, total = await self.repository.find_programs(
                {"category_id": category_id}, params.skip, params.limit
            )
            return envelope(
                [p.model_dump(mode="json") for p in programs],
                "Category programs retrieved successfully",
                pagination=Pagination.build(params.page, params.limit, total).model_dump(),
            )

        return await self.cached_read(
            "categories.programs", cache_key, CacheTTL.CATEGORY_CONTENT.value, fetch_programs
        )

    async def create_category(self, payload: CategoryCreate) -> Dict[str, Any]:
        category = await self.repository.insert_category(Category(**payload.model_dump()))

        await self.invalidator.invalidate("category", category.id)

        logger.info("category_created", category_id=category.id, name=category.name)
        return envelope(category.model_dump(mode="json"), "Category created successfully")

    async def update_category(self, category_id: str, payload: CategoryUpdate) -> Dict[str, Any]:
        changes = payload.model_dump(exclude_unset=True)
        category = await self.repository.update_category(category_id, changes)
        if category is None:
            raise NotFoundError("category", category_id)

        await self.invalidator.invalidate("category", category_id)

        logger.info("category_updated", category_id=category_id, fields=sorted(changes))
        return envelope(category.model_dump(mode="json"), "Category updated successfully")

    async def delete_category(self, category_id: str) -> Dict[str, Any]:
        if not await self.repository.deactivate_category(category_id):
            raise NotFoundError("category", category_id)

        await self.invalidator.invalidate("category", category_id)

        logger.info("category_deleted", category_id=category_id)
        return envelope(None, "Category deleted successfully")
