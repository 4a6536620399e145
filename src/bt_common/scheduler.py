"""Cooperative periodic tasks on the running asyncio loop.

One PeriodicTask per responsibility (sample, purge, top-N snapshot). The body
runs to completion before the next sleep starts, so runs of the same task
never overlap. A failing body is logged and the loop keeps going.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class PeriodicTask:
    def __init__(
        self,
        name: str,
        body: Callable[[], Awaitable[Any]],
        interval_seconds: float,
        initial_delay_seconds: float = 0.0,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.name = name
        self._body = body
        self.interval_seconds = interval_seconds
        self.initial_delay_seconds = max(0.0, initial_delay_seconds)
        self._task: asyncio.Task[None] | None = None
        self.run_count = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            logger.warning("Periodic task %s already running", self.name)
            return
        self._task = asyncio.create_task(self._loop(), name=f"periodic:{self.name}")
        logger.info(
            "Periodic task %s started (interval=%ss, first run in %.0fs)",
            self.name,
            self.interval_seconds,
            self.initial_delay_seconds,
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Periodic task %s stopped", self.name)

    async def _loop(self) -> None:
        if self.initial_delay_seconds:
            await asyncio.sleep(self.initial_delay_seconds)
        while True:
            try:
                await self._body()
            except Exception:
                logger.exception("Periodic task %s failed", self.name)
            self.run_count += 1
            await asyncio.sleep(self.interval_seconds)
