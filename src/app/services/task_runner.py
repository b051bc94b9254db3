"""Background task runner

Owns asyncio tasks that must outlive the request that started them (the
payment polling loop) and drains them on shutdown.
"""

import asyncio
import logging
from typing import Any, Awaitable, Optional, Set

logger = logging.getLogger(__name__)


class BackgroundTaskRunner:

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Awaitable[Any], name: Optional[str] = None) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        if name:
            task.set_name(name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def run(self, coro: Awaitable[Any], name: Optional[str] = None) -> Any:
        """
        Run `coro` as an owned task and wait for it

        Cancelling the caller (client disconnect) does not cancel the task.
        """
        task = self.spawn(coro, name=name)
        return await asyncio.shield(task)

    async def drain(self, timeout: float) -> None:
        """Wait up to `timeout` seconds for owned tasks, then cancel the rest"""
        if not self._tasks:
            return
        tasks = list(self._tasks)
        logger.info(f"Draining {len(tasks)} background task(s) (timeout={timeout}s)")
        done, still_running = await asyncio.wait(tasks, timeout=timeout)
        for task in still_running:
            logger.warning(f"Cancelling background task {task.get_name()} on shutdown")
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
