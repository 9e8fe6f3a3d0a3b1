"""Redis connection, pooling and reconnection management.

This module provides the RedisCache class for managing the long-lived Redis
connection with connection pooling, bounded reconnection and graceful
(fail-open) error handling.
"""

import asyncio
from typing import Any, Optional

import redis.asyncio as redis
import structlog
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from serenity.config import get_settings

logger = structlog.get_logger(__name__)

# Errors that mean the store itself is unreachable (as opposed to a bad command)
CONNECTION_ERRORS = (RedisConnectionError, RedisTimeoutError, ConnectionError, OSError)


class ReconnectPolicy:
    """
    Bounded linear-then-capped backoff for reconnect attempts.

    Attempt ``n`` waits ``min(n * step_ms, cap_ms)`` milliseconds. Once
    ``max_attempts`` attempts have failed, reconnection is abandoned.
    """

    def __init__(self, max_attempts: int = 10, step_ms: int = 100, cap_ms: int = 3000) -> None:
        self.max_attempts = max_attempts
        self.step_ms = step_ms
        self.cap_ms = cap_ms

    def delay(self, attempt: int) -> float:
        """Return the wait before ``attempt`` (1-based), in seconds."""
        return min(attempt * self.step_ms, self.cap_ms) / 1000


class RedisCache:
    """
    Redis cache connection manager with connection pooling.

    Tracks whether the store is currently usable. A connection failure
    reported by an operation marks the store unavailable and starts a single
    background reconnect loop; operations short-circuit to a miss while the
    store is unavailable instead of waiting on the network. When the
    reconnect ceiling is reached the store stays unavailable for the rest of
    the process lifetime, unless :meth:`reset` is called.

    Attributes:
        pool: Redis connection pool
        client: Redis client instance
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        *,
        enabled: bool = True,
        max_connections: int = 20,
        socket_timeout: float = 5.0,
        reconnect_policy: Optional[ReconnectPolicy] = None,
        client: Optional[Any] = None,
    ) -> None:
        """
        Initialize Redis cache.

        Args:
            redis_url: Redis connection URL
            enabled: When False no client is created and every operation misses
            max_connections: Connection pool size
            socket_timeout: Socket and connect timeout in seconds
            reconnect_policy: Backoff policy for reconnect attempts
            client: Pre-built client (skips pool creation)
        """
        self.redis_url = redis_url or "redis://localhost:6379/0"
        self.max_connections = max_connections
        self.socket_timeout = socket_timeout
        self.reconnect_policy = reconnect_policy or ReconnectPolicy()

        self.pool: Optional[ConnectionPool] = None
        self.client: Optional[Any] = client

        self._healthy = True
        self._gave_up = False
        self._reconnect_task: Optional[asyncio.Task] = None

        if client is None and enabled:
            self._initialize_pool()
        elif not enabled:
            logger.info("redis_cache_disabled")

    @classmethod
    def from_settings(cls) -> "RedisCache":
        """Build a RedisCache from application settings."""
        settings = get_settings()
        return cls(
            settings.resolved_redis_url,
            enabled=settings.cache_enabled,
            max_connections=settings.redis_max_connections,
            socket_timeout=settings.redis_socket_timeout,
            reconnect_policy=ReconnectPolicy(
                max_attempts=settings.redis_reconnect_max_attempts,
                step_ms=settings.redis_reconnect_step_ms,
                cap_ms=settings.redis_reconnect_cap_ms,
            ),
        )

    def _initialize_pool(self) -> None:
        """Create the connection pool and client (no network I/O yet)."""
        try:
            self.pool = ConnectionPool.from_url(
                self.redis_url,
                max_connections=self.max_connections,
                decode_responses=True,
                socket_timeout=self.socket_timeout,
                socket_connect_timeout=self.socket_timeout,
            )

            self.client = redis.Redis(connection_pool=self.pool)

            logger.info(
                "redis_pool_initialized",
                max_connections=self.max_connections,
                redis_url=self.redis_url.split("@")[-1],  # Don't log credentials
            )

        except Exception as e:
            logger.error(
                "redis_pool_initialization_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            # Fail open - cache unavailable but the service continues
            self.client = None
            self.pool = None

    def is_available(self) -> bool:
        """
        Check if the store should be used for the next operation.

        Note:
            This does not touch the network. Use ping() for a real health check.
        """
        return self.client is not None and self._healthy and not self._gave_up

    @property
    def gave_up(self) -> bool:
        """True once the reconnect ceiling has been reached."""
        return self._gave_up

    async def connect(self) -> bool:
        """
        Verify the connection at startup.

        Returns:
            True if Redis answered PING; otherwise a reconnect loop is started
            and False is returned.
        """
        if self.client is None:
            return False

        if await self.ping():
            self._healthy = True
            logger.info("redis_connected", redis_url=self.redis_url.split("@")[-1])
            return True

        self.report_failure(RedisConnectionError("initial ping failed"))
        return False

    async def ping(self) -> bool:
        """
        Check Redis connection health.

        Returns:
            True if Redis is healthy, False otherwise
        """
        if not self.client:
            logger.warning("redis_ping_failed", reason="client_not_initialized")
            return False

        try:
            result = await self.client.ping()
            logger.debug("redis_ping_success", result=result)
            return bool(result)

        except Exception as e:
            logger.error(
                "redis_ping_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    def report_failure(self, error: BaseException) -> None:
        """
        Record an operation failure.

        Connection-level failures mark the store unavailable and start the
        reconnect loop. Other errors (bad command, serialization) leave the
        connection state alone.
        """
        if not isinstance(error, CONNECTION_ERRORS):
            return

        if self._gave_up:
            return

        self._healthy = False

        if self._reconnect_task is None or self._reconnect_task.done():
            logger.warning("redis_connection_lost", error=str(error))
            self._reconnect_task = asyncio.create_task(
                self._reconnect_loop(), name="redis-reconnect"
            )

    async def _reconnect_loop(self) -> None:
        policy = self.reconnect_policy

        for attempt in range(1, policy.max_attempts + 1):
            delay = policy.delay(attempt)
            logger.warning("redis_reconnecting", attempt=attempt, delay_seconds=delay)
            await asyncio.sleep(delay)

            if await self.ping():
                self._healthy = True
                logger.info("redis_reconnected", attempt=attempt)
                return

        self._gave_up = True
        logger.error(
            "redis_reconnect_abandoned",
            attempts=policy.max_attempts,
            reason="too many reconnection attempts",
        )

    async def reset(self) -> bool:
        """
        Forget a previous give-up and re-check the connection.

        Returns:
            Result of the fresh connection check
        """
        if self._reconnect_task is not None and not self._reconnect_task.done():
            self._reconnect_task.cancel()
        self._reconnect_task = None
        self._gave_up = False
        self._healthy = True

        logger.info("redis_connection_reset")
        return await self.connect()

    async def close(self) -> None:
        """
        Close Redis connection pool gracefully.

        Should be called during application shutdown to ensure
        all connections are properly closed.
        """
        if self._reconnect_task is not None and not self._reconnect_task.done():
            self._reconnect_task.cancel()

        try:
            if self.client:
                await self.client.aclose()
                logger.info("redis_client_closed")

            if self.pool:
                await self.pool.disconnect()
                logger.info("redis_pool_disconnected")

        except Exception as e:
            logger.error(
                "redis_close_error",
                error=str(e),
                error_type=type(e).__name__,
            )
