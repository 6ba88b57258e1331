"""Timer-based scheduling of deferred replies."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class DeferredReplyScheduler:
    """Runs callbacks after a delay as asyncio tasks keyed by request id.

    Scheduled work is fire-and-forget relative to the request that created
    it. Tasks can be cancelled one at a time or all at once on shutdown.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[None]] = {}

    def schedule(
        self,
        key: str,
        delay_seconds: float,
        callback: Callable[[], Awaitable[None]],
    ) -> asyncio.Task[None]:
        """Run ``callback`` once ``delay_seconds`` have passed.

        Scheduling an already pending key replaces the earlier task.
        """
        self.cancel(key)
        task = asyncio.get_running_loop().create_task(
            self._run(delay_seconds, callback), name=f"deferred-reply:{key}",
        )
        self._tasks[key] = task
        task.add_done_callback(lambda t: self._on_done(key, t))
        return task

    @staticmethod
    async def _run(delay_seconds: float, callback: Callable[[], Awaitable[None]]) -> None:
        await asyncio.sleep(delay_seconds)
        await callback()

    def _on_done(self, key: str, task: asyncio.Task[None]) -> None:
        if self._tasks.get(key) is task:
            del self._tasks[key]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            # Hand unexpected failures to the loop's exception handler.
            task.get_loop().call_exception_handler({
                "message": f"Deferred reply {key} failed",
                "exception": exc,
                "task": task,
            })

    def cancel(self, key: str) -> bool:
        task = self._tasks.pop(key, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def cancel_all(self) -> int:
        """Cancel every pending task and wait for them to finish."""
        tasks = self.pending_tasks()
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Dropped %d pending deferred replies", len(tasks))
        return len(tasks)

    def pending_tasks(self) -> list[asyncio.Task[None]]:
        return list(self._tasks.values())

    def is_pending(self, key: str) -> bool:
        return key in self._tasks

    @property
    def pending_count(self) -> int:
        return len(self._tasks)
