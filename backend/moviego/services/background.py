"""
MovieGo API: Background Task Supervisor
=======================================

What:  Runs fire-and-forget coroutines (welcome mail) off the request path
       while keeping track of every one of them.
Why:   An untracked `asyncio.create_task` can be garbage-collected mid-flight,
       hides its exception, and is silently killed at shutdown. The
       supervisor holds a strong reference to each task, logs failures with
       their stack, bounds concurrency and lets shutdown wait for the rest.
Who:   Created by `create_app()`; UserService spawns onto it; the lifespan
       calls `shutdown()`.

Lifecycle:
    open      → spawn() accepted
    closing   → spawn() raises RuntimeError; shutdown() waits for in-flight
                tasks up to its timeout, then cancels stragglers
"""

import asyncio
import logging
from typing import Any, Coroutine, Optional, Set

logger = logging.getLogger(__name__)


class BackgroundTaskSupervisor:
    def __init__(self, max_concurrency: int = 16):
        self._tasks: Set[asyncio.Task] = set()
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._max_concurrency = max_concurrency
        self._closing = False

    @property
    def closing(self) -> bool:
        return self._closing

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str = "background") -> asyncio.Task:
        """
        Schedule `coro` on the running loop. Failures are logged, never raised.

        Raises:
            RuntimeError: the supervisor is shutting down
        """
        if self._closing:
            coro.close()
            raise RuntimeError("background supervisor is shutting down")
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self._max_concurrency)
        task = asyncio.create_task(self._guard(coro, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guard(self, coro: Coroutine[Any, Any, Any], name: str) -> None:
        assert self._semaphore is not None
        async with self._semaphore:
            try:
                await coro
            except asyncio.CancelledError:
                logger.warning("Background task %s cancelled", name)
                raise
            except Exception:
                logger.error("Background task %s failed", name, exc_info=True)

    async def shutdown(self, timeout: float) -> None:
        """Stop accepting work and wait up to `timeout` seconds for in-flight tasks."""
        self._closing = True
        if not self._tasks:
            return
        logger.info("Waiting for %d background task(s) to finish", len(self._tasks))
        _, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        if pending:
            logger.warning("Cancelling %d background task(s) after %.1fs", len(pending), timeout)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
