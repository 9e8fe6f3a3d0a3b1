"""
Pydantic response models for the HTTP API.

Defines the pagination block, error responses and the health check
payload. Success bodies are plain envelopes built by the services.
"""
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Pagination(BaseModel):
    """
    Pagination block of list responses.
    """

    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = -(-total // limit) if total else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


class ErrorResponse(BaseModel):
    """
    Standardized error response structure.

    Attributes:
        success: Always False
        message: Human-readable error message
        data: Optional additional error context
    """

    success: bool = False
    message: str = Field(
        ...,
        min_length=1,
        description="Human-readable error message",
    )
    data: dict[str, Any] | None = Field(
        None,
        description="Additional error context",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": False,
                "message": "Track 'abc123' not found",
                "data": {"resource_type": "track"},
            }
        }
    )


class HealthCheckResponse(BaseModel):
    """
    Health check response.

    Used to verify the server is running and components are healthy.
    """

    status: str = Field(
        ...,
        description="Overall health status (healthy, degraded, unhealthy)",
    )
    version: str = Field(
        ...,
        description="Server version",
    )
    components: dict[str, str] = Field(
        ...,
        description="Health status of individual components",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "version": "1.0.0",
                "components": {
                    "redis": "healthy",
                    "search": "basic",
                },
            }
        }
    )
