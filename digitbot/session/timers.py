"""asyncio timers owned by the session controller."""

import asyncio
from typing import Callable, Optional

import structlog

logger = structlog.get_logger(__name__)


class OneShotTimer:
    """Calls a function once after a delay unless cancelled first."""

    def __init__(self, name: str):
        self.name = name
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    def start(self, delay: float, callback: Callable[[], None]) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(delay, self._fire, callback)
        logger.debug("Timer armed", timer=self.name, delay_seconds=delay)

    def _fire(self, callback: Callable[[], None]) -> None:
        self._handle = None
        logger.debug("Timer fired", timer=self.name)
        callback()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.debug("Timer cancelled", timer=self.name)


class RepeatingTimer:
    """Calls a function every interval until cancelled."""

    def __init__(self, name: str):
        self.name = name
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, interval: float, callback: Callable[[], None]) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run(interval, callback))
        logger.debug("Repeating timer armed", timer=self.name, interval_seconds=interval)

    async def _run(self, interval: float, callback: Callable[[], None]) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                callback()
            except Exception as e:
                logger.error("Timer callback failed", timer=self.name,
                             error=str(e), error_type=type(e).__name__)

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.debug("Repeating timer cancelled", timer=self.name)
