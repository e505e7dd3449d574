"""Cancellable periodic asyncio task.

The callback is awaited to completion before the next interval starts, so runs
never overlap and a slow run delays the schedule instead of piling it up.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from loguru import logger


class PeriodicTask:
    def __init__(
        self,
        fn: Callable[[], Awaitable[None]],
        interval: float,
        *,
        name: str = "periodic",
        run_immediately: bool = False,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be > 0 (got {interval})")
        self._fn = fn
        self.interval = float(interval)
        self.name = name
        self._run_immediately = run_immediately
        self._sleep = sleep or asyncio.sleep
        self._task: asyncio.Task | None = None
        self.runs = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the loop on the running event loop. No-op if already running."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._loop(), name=self.name)
        logger.debug(f"Periodic task started: name={self.name} interval={self.interval}")

    def cancel(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            logger.debug(f"Periodic task cancelled: name={self.name}")
        self._task = None

    async def _loop(self) -> None:
        try:
            if not self._run_immediately:
                await self._sleep(self.interval)
            while True:
                try:
                    await self._fn()
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.error(f"Periodic task run failed: name={self.name} error={e!s}")
                self.runs += 1
                await self._sleep(self.interval)
        except asyncio.CancelledError:
            pass
