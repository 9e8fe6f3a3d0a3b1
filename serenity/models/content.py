"""
Document models for the content catalog and user activity.

These mirror the documents held by the authoritative store. Cached
payloads are always their JSON form (``model_dump(mode="json")``).
"""
from datetime import datetime, timezone
from typing import Any, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

Level = Literal["beginner", "intermediate", "advanced"]


def new_id() -> str:
    """Generate a document id."""
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Category(BaseModel):
    """Content category (sleep, focus, anxiety relief, ...)."""

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=100)
    name_ar: Optional[str] = None
    emoji: Optional[str] = None
    display_order: int = 0
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)


class Track(BaseModel):
    """Single audio track."""

    id: str = Field(default_factory=new_id)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    category_id: str
    level: Level = "beginner"
    relaxation_type: Optional[str] = None
    duration_seconds: int = Field(0, ge=0)
    is_premium: bool = False
    is_featured: bool = False
    is_active: bool = True
    play_count: int = Field(0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)


class Program(BaseModel):
    """Ordered collection of tracks."""

    id: str = Field(default_factory=new_id)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    category_id: str
    level: Level = "beginner"
    track_ids: list[str] = Field(default_factory=list)
    is_premium: bool = False
    is_featured: bool = False
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)


class Notification(BaseModel):
    """In-app notification."""

    id: str = Field(default_factory=new_id)
    user_id: str
    title: str
    message: str
    type: str = "general"
    is_read: bool = False
    created_at: datetime = Field(default_factory=utcnow)


class ListeningSession(BaseModel):
    """One listening session of a user on a track."""

    id: str = Field(default_factory=new_id)
    user_id: str
    track_id: str
    program_id: Optional[str] = None
    duration_seconds: int = Field(0, ge=0)
    completed: bool = False
    started_at: datetime = Field(default_factory=utcnow)


class SearchLog(BaseModel):
    """Analytics record of one search request."""

    id: str = Field(default_factory=new_id)
    query: str
    user_id: Optional[str] = None
    type: Literal["all", "track", "program"] = "all"
    filters: dict[str, Any] = Field(default_factory=dict)
    result_count: int = 0
    created_at: datetime = Field(default_factory=utcnow)


class Package(BaseModel):
    """Subscription package offered for purchase."""

    id: str = Field(default_factory=new_id)
    name: str
    price: float = Field(..., ge=0)
    currency: str = "USD"
    duration_days: int = Field(..., gt=0)
    display_order: int = 0
    is_active: bool = True
