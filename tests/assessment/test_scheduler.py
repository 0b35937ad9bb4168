from __future__ import annotations

import asyncio

from competency_assessment.assessment.scheduler import (
    AsyncioScheduler,
    ManualScheduler,
)


def test_manual_scheduler_fires_in_deadline_order() -> None:
    scheduler = ManualScheduler()
    fired: list[str] = []
    scheduler.call_later(2, lambda: fired.append("late"))
    scheduler.call_later(1, lambda: fired.append("early"))

    assert scheduler.advance(1.5) == 1
    assert fired == ["early"]
    assert scheduler.now() == 1.5
    assert scheduler.pending == 1
    assert scheduler.next_deadline() == 2.0

    scheduler.advance(10)
    assert fired == ["early", "late"]
    assert scheduler.pending == 0
    assert scheduler.next_deadline() is None


def test_manual_scheduler_skips_cancelled() -> None:
    scheduler = ManualScheduler()
    fired: list[int] = []
    handle = scheduler.call_later(1, lambda: fired.append(1))
    handle.cancel()

    assert handle.cancelled()
    assert scheduler.pending == 0
    assert scheduler.advance(5) == 0
    assert fired == []


def test_manual_scheduler_runs_callbacks_scheduled_during_advance() -> None:
    scheduler = ManualScheduler(start=10.0)
    seen: list[float] = []

    def tick() -> None:
        seen.append(scheduler.now())
        scheduler.call_later(1, tick)

    scheduler.call_later(1, tick)
    assert scheduler.advance(3) == 3
    assert seen == [11.0, 12.0, 13.0]
    assert scheduler.now() == 13.0
    assert scheduler.pending == 1


def test_asyncio_scheduler_uses_running_loop() -> None:
    async def scenario() -> list[str]:
        scheduler = AsyncioScheduler()
        fired: list[str] = []
        scheduler.call_later(0, lambda: fired.append("now"))
        cancelled = scheduler.call_later(0, lambda: fired.append("never"))
        cancelled.cancel()
        assert scheduler.now() <= asyncio.get_running_loop().time()
        await asyncio.sleep(0.01)
        return fired

    assert asyncio.run(scenario()) == ["now"]
