"""
Structured logging for the Serenity backend.

All modules log snake_case events through structlog. Output is one JSON
object per line, except in the development environment where the
colored console renderer is used instead.
"""
import logging
import sys
from typing import Any, List

import structlog

DEVELOPMENT = "development"


def build_processors(environment: str) -> List[Any]:
    """Processor chain for an environment; the renderer is always last."""
    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if environment == DEVELOPMENT:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.JSONRenderer())
    return processors


def setup_logging(level: str = "INFO", environment: str = "production") -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL);
            unknown names fall back to INFO
        environment: Deployment environment from Settings; "development"
            selects the console renderer
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    # uvicorn and redis log through the standard library
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    structlog.configure(
        processors=build_processors(environment),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("tracks_listed", count=20, cached=False)
    """
    return structlog.get_logger(name)


def log_endpoint_execution(
    endpoint: str,
    duration_ms: float,
    cached: bool,
    error: str | None = None,
    **extra: Any,
) -> None:
    """
    Record one cached read: which endpoint, how long, and whether the
    cache served it.

    Example:
        >>> log_endpoint_execution("tracks.list", 12.5, cached=True, cache_key="tracks:list:{}:anonymous")
    """
    logger = get_logger("endpoint_execution")

    fields = {"endpoint": endpoint, "duration_ms": round(duration_ms, 2), "cached": cached, **extra}

    if error:
        logger.error("endpoint_execution_failed", error=error, **fields)
    else:
        logger.info("endpoint_execution_success", **fields)
