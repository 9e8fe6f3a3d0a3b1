"""Authoritative document store access."""

from serenity.data.repository import ContentRepository, InMemoryRepository

__all__ = ["ContentRepository", "InMemoryRepository"]
