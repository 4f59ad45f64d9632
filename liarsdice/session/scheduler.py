"""
Scheduler - Runs deferred callbacks after a delay.

The engine never sleeps. When it wants the scripted opponent to move or
the next round to begin, it hands a Deferred back to the game loop, which
submits a callback here. The callback re-enters the session's serialized
command path when it fires.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Awaitable, Callable
import asyncio
import logging

logger = logging.getLogger(__name__)

Callback = Callable[[], Awaitable[None]]


class Scheduler(ABC):
    """Interface for delayed execution."""

    @abstractmethod
    def schedule(self, delay: float, callback: Callback) -> None:
        """Run ``callback`` once, ``delay`` seconds from now."""
        pass

    async def shutdown(self) -> None:
        """Drop anything still pending."""
        pass


class AsyncioScheduler(Scheduler):
    """Scheduler backed by tasks on the running event loop."""

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, delay: float, callback: Callback) -> None:
        task = asyncio.get_running_loop().create_task(self._run(delay, callback))
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    async def _run(self, delay: float, callback: Callback) -> None:
        await asyncio.sleep(delay)
        await callback()

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Deferred task failed", exc_info=error)

    async def shutdown(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
