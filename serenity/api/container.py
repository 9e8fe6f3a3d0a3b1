"""Wiring of the repository, cache and services for one application."""

from typing import Optional

from serenity.cache import CacheInvalidator, CacheManager, RedisCache
from serenity.config import get_settings
from serenity.data import ContentRepository, InMemoryRepository
from serenity.services import (
    CategoryService,
    FavoriteService,
    NotificationService,
    PackageService,
    ProgramService,
    SearchCapability,
    SearchService,
    TrackService,
    UserStatsService,
    hosted_search_probe,
)
from serenity.utils.background import DetachedTasks


class ServiceContainer:
    """
    Holds the collaborators shared by every request.

    Each argument defaults to the production object built from settings;
    tests pass in-memory replacements.
    """

    def __init__(
        self,
        repository: Optional[ContentRepository] = None,
        connection: Optional[RedisCache] = None,
        capability: Optional[SearchCapability] = None,
        tasks: Optional[DetachedTasks] = None,
    ) -> None:
        settings = get_settings()

        self.repository = repository or InMemoryRepository()
        self.connection = connection or RedisCache.from_settings()
        self.capability = capability or SearchCapability(hosted_search_probe(settings.mongodb_uri))
        self.tasks = tasks or DetachedTasks()

        self.cache = CacheManager(self.connection, tasks=self.tasks)
        self.invalidator = CacheInvalidator(self.cache)

        shared = (self.repository, self.cache, self.invalidator)
        self.tracks = TrackService(*shared)
        self.programs = ProgramService(*shared)
        self.categories = CategoryService(*shared)
        self.search = SearchService(*shared, capability=self.capability, tasks=self.tasks)
        self.notifications = NotificationService(*shared)
        self.user_stats = UserStatsService(*shared)
        self.packages = PackageService(*shared)
        self.favorites = FavoriteService(*shared)
