# File: sitetracker/services/scheduler.py

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """
    Runs an async callback every ``interval`` seconds until stopped.

    Must be started from inside a running event loop. Stopping cancels the
    pending sleep; a callback already in flight is allowed to finish unless
    ``force`` is set, and no further run is scheduled after it.
    """

    def __init__(self, callback: Callable[[], Awaitable[object]], interval: float):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.callback = callback
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        # Task currently inside the callback, if any
        self._in_callback: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug("[AUTH] Refresh scheduled every %.0fs", self.interval)

    def stop(self, force: bool = False) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        # _run exits on its own once the callback returns
        if self._in_callback is task and (not force or task is asyncio.current_task()):
            return
        task.cancel()
        logger.debug("[AUTH] Refresh schedule stopped")

    async def _run(self) -> None:
        current = asyncio.current_task()
        while True:
            await asyncio.sleep(self.interval)
            self._in_callback = current
            try:
                await self.callback()
            except Exception:
                logger.exception("[AUTH] Scheduled refresh raised")
            finally:
                if self._in_callback is current:
                    self._in_callback = None
            if self._task is not current:
                return
