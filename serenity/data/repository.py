"""
Authoritative document store access.

Services depend on the ContentRepository protocol only. InMemoryRepository
implements it for local development and tests; a database-backed
implementation plugs in behind the same methods.
"""
from datetime import timedelta
from typing import Any, Iterable, Optional, Protocol, TypeVar

from serenity.models.content import (
    Category,
    ListeningSession,
    Notification,
    Package,
    Program,
    SearchLog,
    Track,
    utcnow,
)

DocT = TypeVar("DocT", Track, Program, Category, Notification, Package)


class ContentRepository(Protocol):
    """Operations the services need from the document store."""

    # Tracks
    async def find_tracks(self, filters: dict[str, Any], skip: int, limit: int, text: Optional[str] = None, ranked: bool = False) -> tuple[list[Track], int]: ...
    async def get_track(self, track_id: str) -> Optional[Track]: ...
    async def featured_tracks(self, limit: int) -> list[Track]: ...
    async def insert_track(self, track: Track) -> Track: ...
    async def update_track(self, track_id: str, changes: dict[str, Any]) -> Optional[Track]: ...
    async def deactivate_track(self, track_id: str) -> bool: ...
    async def popular_tracks(self, days: int, limit: int) -> list[dict[str, Any]]: ...

    # Programs
    async def find_programs(self, filters: dict[str, Any], skip: int, limit: int, text: Optional[str] = None, ranked: bool = False) -> tuple[list[Program], int]: ...
    async def get_program(self, program_id: str) -> Optional[Program]: ...
    async def featured_programs(self, limit: int) -> list[Program]: ...
    async def insert_program(self, program: Program) -> Program: ...
    async def update_program(self, program_id: str, changes: dict[str, Any]) -> Optional[Program]: ...
    async def deactivate_program(self, program_id: str) -> bool: ...

    # Categories
    async def list_categories(self) -> list[Category]: ...
    async def get_category(self, category_id: str) -> Optional[Category]: ...
    async def insert_category(self, category: Category) -> Category: ...
    async def update_category(self, category_id: str, changes: dict[str, Any]) -> Optional[Category]: ...
    async def deactivate_category(self, category_id: str) -> bool: ...

    # Search
    async def title_suggestions(self, prefix: str, limit: int) -> list[str]: ...
    async def insert_search_log(self, entry: SearchLog) -> None: ...
    async def popular_searches(self, days: int, limit: int) -> list[dict[str, Any]]: ...

    # Notifications
    async def count_unread(self, user_id: str) -> int: ...
    async def insert_notification(self, notification: Notification) -> Notification: ...
    async def mark_read(self, user_id: str, notification_id: str) -> bool: ...
    async def mark_all_read(self, user_id: str) -> int: ...

    # Favorites
    async def favorite_ids(self, user_id: str, kind: str) -> set[str]: ...
    async def add_favorite(self, user_id: str, kind: str, item_id: str) -> bool: ...
    async def remove_favorite(self, user_id: str, kind: str, item_id: str) -> bool: ...

    # Listening sessions
    async def sessions_for_user(self, user_id: str) -> list[ListeningSession]: ...
    async def insert_session(self, session: ListeningSession) -> ListeningSession: ...

    # Packages
    async def active_packages(self) -> list[Package]: ...
    async def update_package(self, package_id: str, changes: dict[str, Any]) -> Optional[Package]: ...


def _matches(doc: Any, filters: dict[str, Any]) -> bool:
    for field, expected in filters.items():
        if field == "min_duration_seconds":
            if doc.duration_seconds < expected:
                return False
        elif field == "max_duration_seconds":
            if doc.duration_seconds > expected:
                return False
        elif getattr(doc, field) != expected:
            return False
    return True


def _text_score(doc: Any, text: str) -> int:
    haystack = f"{doc.title} {getattr(doc, 'description', '')}".lower()
    return sum(haystack.count(term) for term in text.lower().split())


class InMemoryRepository:
    """
    Dictionary-backed document store.

    Soft-deleted documents (``is_active=False``) are invisible to reads,
    as in the production store.
    """

    def __init__(self) -> None:
        self.tracks: dict[str, Track] = {}
        self.programs: dict[str, Program] = {}
        self.categories: dict[str, Category] = {}
        self.notifications: dict[str, Notification] = {}
        self.sessions: dict[str, ListeningSession] = {}
        self.search_logs: list[SearchLog] = []
        self.packages: dict[str, Package] = {}
        self.favorites: set[tuple[str, str, str]] = set()

    # Generic helpers

    @staticmethod
    def _find(
        docs: Iterable[DocT],
        filters: dict[str, Any],
        skip: int,
        limit: int,
        text: Optional[str],
        ranked: bool,
    ) -> tuple[list[DocT], int]:
        matched = [d for d in docs if d.is_active and _matches(d, filters)]

        if text:
            scored = [(d, _text_score(d, text)) for d in matched]
            scored = [(d, s) for d, s in scored if s > 0]
            if ranked:
                scored.sort(key=lambda pair: (-pair[1], -pair[0].created_at.timestamp()))
            else:
                scored.sort(key=lambda pair: pair[0].created_at, reverse=True)
            matched = [d for d, _ in scored]
        else:
            matched.sort(key=lambda d: d.created_at, reverse=True)

        return [d.model_copy() for d in matched[skip:skip + limit]], len(matched)

    @staticmethod
    def _get(store: dict[str, DocT], doc_id: str) -> Optional[DocT]:
        doc = store.get(doc_id)
        if doc is None or not doc.is_active:
            return None
        return doc.model_copy()

    @staticmethod
    def _update(store: dict[str, DocT], doc_id: str, changes: dict[str, Any]) -> Optional[DocT]:
        doc = store.get(doc_id)
        if doc is None or not doc.is_active:
            return None
        updated = doc.model_copy(update=changes)
        store[doc_id] = updated
        return updated.model_copy()

    @staticmethod
    def _deactivate(store: dict[str, DocT], doc_id: str) -> bool:
        doc = store.get(doc_id)
        if doc is None or not doc.is_active:
            return False
        store[doc_id] = doc.model_copy(update={"is_active": False})
        return True

    # Tracks

    async def find_tracks(self, filters, skip, limit, text=None, ranked=False):
        return self._find(self.tracks.values(), filters, skip, limit, text, ranked)

    async def get_track(self, track_id):
        return self._get(self.tracks, track_id)

    async def featured_tracks(self, limit):
        featured, _ = self._find(self.tracks.values(), {"is_featured": True}, 0, limit, None, False)
        return featured

    async def insert_track(self, track):
        self.tracks[track.id] = track.model_copy()
        return track

    async def update_track(self, track_id, changes):
        return self._update(self.tracks, track_id, changes)

    async def deactivate_track(self, track_id):
        return self._deactivate(self.tracks, track_id)

    async def popular_tracks(self, days, limit):
        since = utcnow() - timedelta(days=days)
        plays: dict[str, int] = {}
        for session in self.sessions.values():
            if session.started_at >= since:
                plays[session.track_id] = plays.get(session.track_id, 0) + 1

        ranked = []
        for track_id, count in sorted(plays.items(), key=lambda item: -item[1]):
            track = self._get(self.tracks, track_id)
            if track is not None:
                ranked.append({"track": track, "plays": count})
        return ranked[:limit]

    # Programs

    async def find_programs(self, filters, skip, limit, text=None, ranked=False):
        return self._find(self.programs.values(), filters, skip, limit, text, ranked)

    async def get_program(self, program_id):
        return self._get(self.programs, program_id)

    async def featured_programs(self, limit):
        featured, _ = self._find(self.programs.values(), {"is_featured": True}, 0, limit, None, False)
        return featured

    async def insert_program(self, program):
        self.programs[program.id] = program.model_copy()
        return program

    async def update_program(self, program_id, changes):
        return self._update(self.programs, program_id, changes)

    async def deactivate_program(self, program_id):
        return self._deactivate(self.programs, program_id)

    # Categories

    async def list_categories(self):
        active = [c.model_copy() for c in self.categories.values() if c.is_active]
        return sorted(active, key=lambda c: (c.display_order, c.name))

    async def get_category(self, category_id):
        return self._get(self.categories, category_id)

    async def insert_category(self, category):
        self.categories[category.id] = category.model_copy()
        return category

    async def update_category(self, category_id, changes):
        return self._update(self.categories, category_id, changes)

    async def deactivate_category(self, category_id):
        return self._deactivate(self.categories, category_id)

    # Search

    async def title_suggestions(self, prefix, limit):
        needle = prefix.lower()
        titles: list[str] = []
        for doc in [*self.tracks.values(), *self.programs.values()]:
            if doc.is_active and doc.title.lower().startswith(needle) and doc.title not in titles:
                titles.append(doc.title)
        return titles[:limit]

    async def insert_search_log(self, entry):
        self.search_logs.append(entry)

    async def popular_searches(self, days, limit):
        since = utcnow() - timedelta(days=days)
        counts: dict[str, int] = {}
        for entry in self.search_logs:
            if entry.created_at >= since and entry.query:
                key = entry.query.lower()
                counts[key] = counts.get(key, 0) + 1
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return [{"query": query, "count": count} for query, count in ranked[:limit]]

    # Notifications

    async def count_unread(self, user_id):
        return sum(1 for n in self.notifications.values() if n.user_id == user_id and not n.is_read)

    async def insert_notification(self, notification):
        self.notifications[notification.id] = notification.model_copy()
        return notification

    async def mark_read(self, user_id, notification_id):
        notification = self.notifications.get(notification_id)
        if notification is None or notification.user_id != user_id:
            return False
        self.notifications[notification_id] = notification.model_copy(update={"is_read": True})
        return True

    async def mark_all_read(self, user_id):
        changed = 0
        for notification_id, notification in list(self.notifications.items()):
            if notification.user_id == user_id and not notification.is_read:
                self.notifications[notification_id] = notification.model_copy(update={"is_read": True})
                changed += 1
        return changed

    # Favorites

    async def favorite_ids(self, user_id, kind):
        return {item_id for (uid, k, item_id) in self.favorites if uid == user_id and k == kind}

    async def add_favorite(self, user_id, kind, item_id):
        entry = (user_id, kind, item_id)
        if entry in self.favorites:
            return False
        self.favorites.add(entry)
        return True

    async def remove_favorite(self, user_id, kind, item_id):
        entry = (user_id, kind, item_id)
        if entry not in self.favorites:
            return False
        self.favorites.discard(entry)
        return True

    # Listening sessions

    async def sessions_for_user(self, user_id):
        return [s.model_copy() for s in self.sessions.values() if s.user_id == user_id]

    async def insert_session(self, session):
        self.sessions[session.id] = session.model_copy()
        return session

    # Packages

    async def active_packages(self):
        active = [p.model_copy() for p in self.packages.values() if p.is_active]
        return sorted(active, key=lambda p: p.display_order)

    async def update_package(self, package_id, changes):
        package = self.packages.get(package_id)
        if package is None:
            return None
        updated = package.model_copy(update=changes)
        self.packages[package_id] = updated
        return updated.model_copy()
