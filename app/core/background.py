# app/core/background.py
import asyncio
from typing import Awaitable, Callable, Optional

import structlog

logger = structlog.get_logger(__name__)


class PeriodicTask:
    """
    Handle for a coroutine run every `interval` seconds.
    Owned by whoever starts it; stop() cancels the loop and waits for it.
    """

    def __init__(self, name: str, interval: float, job: Callable[[], Awaitable[None]]):
        self.name = name
        self.interval = interval
        self.job = job
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=self.name)
        logger.info("background_task_started", task=self.name, interval=self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("background_task_stopped", task=self.name)

    async def _loop(self) -> None:
        while True:
            try:
                await self.job()
            except asyncio.CancelledError:
                raise
            except Exception:
                # one bad run must not kill the loop
                logger.exception("background_task_failed", task=self.name)
            await asyncio.sleep(self.interval)
