"""HTTP API (FastAPI)."""

from serenity.api.app import create_app
from serenity.api.container import ServiceContainer

__all__ = ["create_app", "ServiceContainer"]
