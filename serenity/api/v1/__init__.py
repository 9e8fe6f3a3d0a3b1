"""
API version 1 router.

Aggregates all v1 endpoints.
"""
from fastapi import APIRouter

from serenity.api.v1.categories import router as categories_router
from serenity.api.v1.favorites import router as favorites_router
from serenity.api.v1.notifications import router as notifications_router
from serenity.api.v1.packages import router as packages_router
from serenity.api.v1.programs import router as programs_router
from serenity.api.v1.search import router as search_router
from serenity.api.v1.tracks import router as tracks_router
from serenity.api.v1.users import router as users_router

router = APIRouter()

router.include_router(tracks_router)
router.include_router(programs_router)
router.include_router(categories_router)
router.include_router(search_router)
router.include_router(notifications_router)
router.include_router(users_router)
router.include_router(favorites_router)
router.include_router(packages_router)
