# crowdwatch/scheduling.py
import asyncio
from contextlib import suppress
from typing import Callable, Optional

from crowdwatch.logger import setup_logger

logger = setup_logger(__name__)


class PeriodicTask:
    """
    Runs `callback` every `interval_s` seconds on the running event loop.
    The task owns its asyncio handle; cancel() is the only way to stop it.
    """

    def __init__(self, name: str, interval_s: float, callback: Callable[[], None]):
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self.name = name
        self.interval_s = interval_s
        self.callback = callback
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        logger.debug(f"Started periodic task {self.name} every {self.interval_s}s")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            try:
                self.callback()
            except Exception as e:
                logger.error(f"Periodic task {self.name} failed: {e}", exc_info=True)

    async def cancel(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.debug(f"Cancelled periodic task {self.name}")
