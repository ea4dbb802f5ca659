"""Tracked fire-and-forget tasks.

Event handlers and console commands are synchronous entry points that
sometimes need to start async work (an eat sequence, a respawn, a chat
send). ``BackgroundTasks`` keeps a strong reference to each task until
it finishes and routes unexpected exceptions to a single error handler,
so a failing task is reported instead of vanishing with "Task exception
was never retrieved".

Usage:
    tasks = BackgroundTasks(on_error=lambda name, exc: console.echo(...))
    tasks.spawn(policy.run(), name="auto-eat")
    ...
    tasks.cancel_all()
"""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[str, BaseException], None]


class BackgroundTasks:
    """Owns a set of running tasks and reports their failures."""

    def __init__(self, *, on_error: ErrorHandler | None = None) -> None:
        self._on_error = on_error
        self._tasks: set[asyncio.Task[Any]] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(
        self, coro: Coroutine[Any, Any, Any], *, name: str = "task"
    ) -> asyncio.Task[Any]:
        """Schedule *coro* on the running loop and track it."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def cancel_all(self) -> None:
        """Cancel every task still running."""
        for task in list(self._tasks):
            task.cancel()

    async def join(self) -> None:
        """Wait for every tracked task to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _finished(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        logger.error(
            "Background task %s failed", task.get_name(), exc_info=exc
        )
        if self._on_error is not None:
            self._on_error(task.get_name(), exc)
