"""Detached (fire-and-forget) task tracking.

Side effects such as write-behind cache population or search analytics
logging run as detached asyncio tasks: the request that spawned them does
not wait for completion and never observes their failure. Failures are
logged. Tests assert on the detached effect through :meth:`DetachedTasks.wait`.
"""

import asyncio
from typing import Any, Coroutine, Set

import structlog

logger = structlog.get_logger(__name__)


class DetachedTasks:
    """
    Registry of in-flight detached tasks.

    Keeps a strong reference to every spawned task until it finishes so
    the event loop does not garbage-collect it mid-flight.
    """

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
        """
        Schedule ``coro`` on the running loop without awaiting it.

        Args:
            coro: Coroutine to run
            name: Short label used in logs

        Returns:
            The created task
        """
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

        logger.debug("detached_task_spawned", task=name, in_flight=len(self._tasks))
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)

        if task.cancelled():
            logger.warning("detached_task_cancelled", task=task.get_name())
            return

        error = task.exception()
        if error is not None:
            logger.error(
                "detached_task_failed",
                task=task.get_name(),
                error=str(error),
                error_type=type(error).__name__,
            )

    @property
    def pending(self) -> int:
        """Number of detached tasks still running."""
        return len(self._tasks)

    async def wait(self, timeout: float | None = None) -> None:
        """
        Wait until every currently tracked task has finished.

        Task failures are not re-raised here; they were already logged.
        """
        while self._tasks:
            await asyncio.wait(set(self._tasks), timeout=timeout)
            if timeout is not None:
                break

    async def cancel_all(self) -> None:
        """Cancel outstanding tasks (used at shutdown)."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


# Global detached task registry (singleton pattern)
detached_tasks = DetachedTasks()
