"""Business logic for the content endpoints."""

from serenity.services.base import CachedReadService, envelope
from serenity.services.categories import CategoryService
from serenity.services.favorites import FavoriteService
from serenity.services.notifications import NotificationService
from serenity.services.packages import PackageService
from serenity.services.programs import ProgramService
from serenity.services.search import SearchService
from serenity.services.search_capability import SearchCapability, hosted_search_probe
from serenity.services.tracks import TrackService
from serenity.services.user_stats import UserStatsService

__all__ = [
    "CachedReadService",
    "envelope",
    # Content
    "TrackService",
    "ProgramService",
    "CategoryService",
    # Search
    "SearchService",
    "SearchCapability",
    "hosted_search_probe",
    # Per-user
    "NotificationService",
    "UserStatsService",
    "FavoriteService",
    # Subscriptions
    "PackageService",
]
