"""Subscription package endpoints."""

from typing import Any, Dict

import structlog

from serenity.cache import CacheKeys, CacheTTL
from serenity.exceptions import NotFoundError
from serenity.models.requests import PackageUpdate
from serenity.services.base import CachedReadService, envelope

logger = structlog.get_logger(__name__)


class PackageService(CachedReadService):
    """Active subscription packages (rarely changing, cached for an hour)."""

    async def list_active(self) -> Dict[str, Any]:
        async def fetch_packages() -> Dict[str, Any]:
            packages = await self.repository.active_packages()
            return envelope(
                [p.model_dump(mode="json") for p in packages],
                "Packages retrieved successfully",
            )

        return await self.cached_read(
            "subscriptions.packages", CacheKeys.packages_active(), CacheTTL.PACKAGES.value, fetch_packages
        )

    async def update_package(self, package_id: str, payload: PackageUpdate) -> Dict[str, Any]:
        changes = payload.model_dump(exclude_unset=True)
        package = await self.repository.update_package(package_id, changes)
        if package is None:
            raise NotFoundError("package", package_id)

        await self.invalidator.invalidate("package")

        logger.info("package_updated", package_id=package_id, fields=sorted(changes))
        return envelope(package.model_dump(mode="json"), "Package updated successfully")
