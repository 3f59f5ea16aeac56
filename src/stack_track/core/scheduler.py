# src/stack_track/core/scheduler.py

from __future__ import annotations

"""
Update scheduler.

A small polling loop that calls QuestionCache.update() every `period` seconds.
Ticks are independent: a tick never waits for the fetches of the previous one,
so slow replies from one cycle may overlap with the next (merge is idempotent).
"""

import asyncio
import contextlib
import logging
from typing import Protocol

from .question_cache import UPDATE_INTERVAL_SECONDS, UPDATE_QUANTITY

logger = logging.getLogger(__name__)


class Updatable(Protocol):
    def update(self, quantity: int | None = None) -> object: ...


async def run_update_loop(
        cache: Updatable,
        *,
        period_seconds: float = UPDATE_INTERVAL_SECONDS,
        quantity: int = UPDATE_QUANTITY,
) -> None:
    """
    Every period_seconds: cache.update(quantity).

    The first update happens one period after start. To stop, cancel the task.
    """
    sleep_s = max(0.0, float(period_seconds))

    while True:
        await asyncio.sleep(sleep_s)
        try:
            cache.update(quantity)
        except Exception:
            logger.exception("Scheduled update failed quantity=%s", quantity)


class UpdateScheduler:
    """Owns the asyncio task running run_update_loop() for one cache."""

    def __init__(self, cache: Updatable) -> None:
        self._cache = cache
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(
            self,
            period: float = UPDATE_INTERVAL_SECONDS,
            quantity: int = UPDATE_QUANTITY,
    ) -> asyncio.Task[None]:
        """
        Begin periodic updates. Must be called from inside a running event loop.

        Starting again replaces the previous loop.
        """
        if self._task is not None and not self._task.done():
            logger.info("Update scheduler restarted; cancelling previous loop")
            self._task.cancel()

        self._task = asyncio.create_task(
            run_update_loop(self._cache, period_seconds=period, quantity=quantity),
            name="stack_track-update-loop",
        )
        logger.info("Update scheduler started period=%.1fs quantity=%d", period, quantity)
        return self._task

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish. Safe to call when not running."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Update scheduler stopped")
