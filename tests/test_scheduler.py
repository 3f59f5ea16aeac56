# tests/test_scheduler.py

from __future__ import annotations

import asyncio

import pytest

from stack_track.core.scheduler import UpdateScheduler, run_update_loop


class RecordingCache:
    """Stands in for QuestionCache; records update() calls only."""

    def __init__(self, fail: bool = False) -> None:
        self.quantities: list[int | None] = []
        self.fail = fail

    def update(self, quantity: int | None = None) -> list:
        self.quantities.append(quantity)
        if self.fail:
            raise RuntimeError("no event loop for you")
        return []


@pytest.mark.asyncio
async def test_scheduler_ticks_with_quantity_until_stopped() -> None:
    cache = RecordingCache()
    scheduler = UpdateScheduler(cache)

    scheduler.start(period=0.01, quantity=3)
    assert scheduler.running

    await asyncio.sleep(0.08)
    await scheduler.stop()

    assert not scheduler.running
    assert len(cache.quantities) >= 2
    assert set(cache.quantities) == {3}

    ticks = len(cache.quantities)
    await asyncio.sleep(0.03)
    assert len(cache.quantities) == ticks


@pytest.mark.asyncio
async def test_scheduler_first_tick_waits_one_period() -> None:
    cache = RecordingCache()
    scheduler = UpdateScheduler(cache)

    scheduler.start(period=10.0, quantity=5)
    await asyncio.sleep(0.02)
    await scheduler.stop()

    assert cache.quantities == []


@pytest.mark.asyncio
async def test_scheduler_restart_replaces_previous_loop() -> None:
    cache = RecordingCache()
    scheduler = UpdateScheduler(cache)

    first = scheduler.start(period=0.01, quantity=1)
    second = scheduler.start(period=0.01, quantity=2)
    await asyncio.sleep(0.05)
    await scheduler.stop()

    assert first.cancelled()
    assert second.done()
    assert 1 not in cache.quantities


@pytest.mark.asyncio
async def test_scheduler_stop_when_not_running_is_noop() -> None:
    scheduler = UpdateScheduler(RecordingCache())
    await scheduler.stop()
    assert not scheduler.running


@pytest.mark.asyncio
async def test_update_loop_survives_failing_update() -> None:
    cache = RecordingCache(fail=True)

    runner = asyncio.create_task(run_update_loop(cache, period_seconds=0.01, quantity=4))
    await asyncio.sleep(0.05)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert len(cache.quantities) >= 2
