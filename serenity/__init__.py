"""Serenity meditation content backend with a Redis query cache."""

__version__ = "1.0.0"
