"""Logging and background task helpers."""
