"""
Fixed-interval polling on the event loop.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Run a coroutine function every ``interval`` seconds until stopped.

    The first call happens one interval after ``start()``. A callback that
    raises is logged and the schedule carries on. ``stop()`` cancels the
    task, including a call in flight, and waits for it to finish.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], Awaitable[None]],
        name: Optional[str] = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._callback = callback
        self._name = name or "periodic-task"
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self._name)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self._callback()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning("%s tick failed", self._name, exc_info=True)
