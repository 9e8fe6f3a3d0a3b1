"""
Input schemas for list, search and mutation requests.

Query models are what the cache keys are built from: each model dumps
to the canonical parameter set of its read (``cache_params``).
"""
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from serenity.models.content import Level


def _sanitize(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    # Remove null bytes and strip whitespace
    sanitized = value.replace("\x00", "").strip()
    return sanitized or None


class PageParams(BaseModel):
    """Pagination shared by every list endpoint."""

    page: int = Field(1, ge=1, description="1-based page number")
    limit: int = Field(20, ge=1, le=100, description="Page size")

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def cache_params(self) -> dict[str, Any]:
        """Parameters identifying this read in its cache key."""
        return self.model_dump(exclude_none=True)


class TrackFilters(PageParams):
    """Filters for listing tracks."""

    q: Optional[str] = Field(None, max_length=200, description="Free-text query")
    category: Optional[str] = None
    level: Optional[Level] = None
    relaxation_type: Optional[str] = None
    is_premium: Optional[bool] = None

    @field_validator("q")
    @classmethod
    def sanitize_query(cls, v: Optional[str]) -> Optional[str]:
        return _sanitize(v)


class ProgramFilters(PageParams):
    """Filters for listing programs."""

    category: Optional[str] = None
    level: Optional[Level] = None
    is_premium: Optional[bool] = None


class SearchParams(PageParams):
    """
    Combined track and program search.

    Durations are in minutes; session bounds apply to the number of
    tracks in a program.
    """

    q: str = Field("", max_length=200)
    type: Literal["all", "track", "program"] = "all"
    category: Optional[str] = None
    level: Optional[Level] = None
    relaxation_type: Optional[str] = None
    min_duration: Optional[int] = Field(None, ge=0)
    max_duration: Optional[int] = Field(None, ge=0)
    min_sessions: Optional[int] = Field(None, ge=0)
    max_sessions: Optional[int] = Field(None, ge=0)
    is_premium: Optional[bool] = None

    @field_validator("q")
    @classmethod
    def sanitize_query(cls, v: str) -> str:
        return _sanitize(v) or ""


class TrackCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    category_id: str
    level: Level = "beginner"
    relaxation_type: Optional[str] = None
    duration_seconds: int = Field(0, ge=0)
    is_premium: bool = False
    is_featured: bool = False


class TrackUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    category_id: Optional[str] = None
    level: Optional[Level] = None
    relaxation_type: Optional[str] = None
    duration_seconds: Optional[int] = Field(None, ge=0)
    is_premium: Optional[bool] = None
    is_featured: Optional[bool] = None


class ProgramCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    category_id: str
    level: Level = "beginner"
    track_ids: list[str] = Field(default_factory=list)
    is_premium: bool = False
    is_featured: bool = False


class ProgramUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    category_id: Optional[str] = None
    level: Optional[Level] = None
    track_ids: Optional[list[str]] = None
    is_premium: Optional[bool] = None
    is_featured: Optional[bool] = None


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    name_ar: Optional[str] = None
    emoji: Optional[str] = None
    display_order: int = 0


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    name_ar: Optional[str] = None
    emoji: Optional[str] = None
    display_order: Optional[int] = None


class NotificationCreate(BaseModel):
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    type: str = "general"


class PackageUpdate(BaseModel):
    name: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    duration_days: Optional[int] = Field(None, gt=0)
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


class SessionCreate(BaseModel):
    track_id: str
    program_id: Optional[str] = None
    duration_seconds: int = Field(..., ge=0)
    completed: bool = False
