"""Cache key generation for consistent, deterministic cache keys.

This module provides the CacheKeyBuilder class for turning a logical read
(resource prefix, query parameters, subject identity) into a single key,
and the CacheKeys namespace listing every key shape the services read.
"""

import json
import re
from typing import Any, Dict, Mapping, Optional

import structlog

logger = structlog.get_logger(__name__)

ANONYMOUS = "anonymous"

# Real user ids are namespaced so none of them can equal ANONYMOUS
USER_SUBJECT_PREFIX = "u:"

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


class CacheKeyBuilder:
    """
    Build cache keys of the form ``{prefix}:{params}:{subject}``.

    The params segment is canonical JSON: keys sorted at every level,
    compact separators and ``None`` values dropped, so two parameter
    mappings carrying the same pairs in any insertion order produce the same
    key. The JSON object is self-delimiting, which keeps keys for different
    parameter sets or subjects from colliding under the same prefix.

    Because the prefix always comes first, ``{prefix}:*`` matches every
    variant built from that prefix.

    Attributes:
        DELIMITER: Segment separator
    """

    DELIMITER = ":"

    @staticmethod
    def canonical_params(params: Optional[Mapping[str, Any]]) -> str:
        """
        Serialize query parameters canonically.

        Args:
            params: Query parameters (may be nested)

        Returns:
            Compact JSON with sorted keys and ``None`` values removed

        Example:
            >>> CacheKeyBuilder.canonical_params({"page": 1, "category": "sleep"})
            '{"category":"sleep","page":1}'
        """
        cleaned = _drop_none(dict(params or {}))
        return json.dumps(cleaned, sort_keys=True, separators=(",", ":"), default=str)

    @classmethod
    def build(
        cls,
        prefix: str,
        params: Optional[Mapping[str, Any]] = None,
        subject: Optional[str] = None,
    ) -> str:
        """
        Build a cache key.

        Args:
            prefix: Resource class prefix (e.g. "tracks:list", "track:42")
            params: Query parameters; omitted entirely when None
            subject: Subject identity (see subject_of); omitted when None

        Returns:
            Cache key string

        Example:
            >>> CacheKeyBuilder.build("tracks:list", {"category": "sleep"}, "anonymous")
            'tracks:list:{"category":"sleep"}:anonymous'
        """
        parts = [prefix]

        if params is not None:
            parts.append(cls.canonical_params(params))

        if subject is not None:
            parts.append(str(subject))

        cache_key = cls.DELIMITER.join(parts)

        logger.debug("cache_key_generated", prefix=prefix, cache_key=cache_key)

        return cache_key

    @classmethod
    def pattern(cls, *parts: str, wildcard: bool = True) -> str:
        """
        Build a glob pattern from literal parts.

        Glob metacharacters inside the parts are escaped so an id such as
        ``"*"`` only ever matches itself.

        Args:
            *parts: Literal key segments
            wildcard: Append ``:*`` to match every key below the parts

        Example:
            >>> CacheKeyBuilder.pattern("track", "42")
            'track:42:*'
        """
        literal = cls.DELIMITER.join(escape_glob(part) for part in parts)
        return f"{literal}{cls.DELIMITER}*" if wildcard else literal


def escape_glob(value: str) -> str:
    """Escape Redis glob metacharacters in a literal key segment."""
    return _GLOB_SPECIAL.sub(r"\\\1", str(value))


def _drop_none(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _drop_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [_drop_none(v) for v in value]
    return value


def subject_of(user_id: Optional[str]) -> str:
    """Subject segment for user-scoped reads: ``u:{id}`` or ANONYMOUS."""
    return f"{USER_SUBJECT_PREFIX}{user_id}" if user_id else ANONYMOUS


class CacheKeys:
    """Every cache key shape read by the services, grouped by resource class."""

    # Tracks
    @staticmethod
    def tracks_list(params: Dict[str, Any], user_id: Optional[str]) -> str:
        return CacheKeyBuilder.build("tracks:list", params, subject_of(user_id))

    @staticmethod
    def track_detail(track_id: str, user_id: Optional[str]) -> str:
        return CacheKeyBuilder.build(f"track:{track_id}", subject=subject_of(user_id))

    @staticmethod
    def tracks_featured() -> str:
        return "tracks:featured"

    @staticmethod
    def tracks_search(params: Dict[str, Any]) -> str:
        return CacheKeyBuilder.build("tracks:search", params)

    @staticmethod
    def tracks_popular(days: int, limit: int) -> str:
        return f"tracks:popular:{days}:{limit}"

    # Programs
    @staticmethod
    def programs_list(params: Dict[str, Any], user_id: Optional[str]) -> str:
        return CacheKeyBuilder.build("programs:list", params, subject_of(user_id))

    @staticmethod
    def program_detail(program_id: str, user_id: Optional[str]) -> str:
        return CacheKeyBuilder.build(f"program:{program_id}", subject=subject_of(user_id))

    @staticmethod
    def programs_featured() -> str:
        return "programs:featured"

    # Categories
    @staticmethod
    def categories_all() -> str:
        return "categories:all"

    @staticmethod
    def category_detail(category_id: str) -> str:
        return f"category:{category_id}"

    @staticmethod
    def category_tracks(category_id: str, params: Dict[str, Any]) -> str:
        return CacheKeyBuilder.build(f"category:{category_id}:tracks", params)

    @staticmethod
    def category_programs(category_id: str, params: Dict[str, Any]) -> str:
        return CacheKeyBuilder.build(f"category:{category_id}:programs", params)

    # Search
    @staticmethod
    def search_results(search_type: str, params: Dict[str, Any], user_id: Optional[str]) -> str:
        return CacheKeyBuilder.build(f"search:results:{search_type}", params, subject_of(user_id))

    @staticmethod
    def search_suggestions(query: str) -> str:
        return CacheKeyBuilder.build("search:suggestions", {"q": query})

    @staticmethod
    def search_popular(days: int, limit: int) -> str:
        return f"search:popular:{days}:{limit}"

    # Per-user aggregates and counters
    @staticmethod
    def user_stats(user_id: str) -> str:
        return f"user:stats:{user_id}"

    @staticmethod
    def notification_unread(user_id: str) -> str:
        return f"notification:unread:{user_id}"

    # Subscriptions
    @staticmethod
    def packages_active() -> str:
        return "subscription:packages:active"
