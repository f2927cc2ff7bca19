"""Tests for the refresh ticker."""

from __future__ import annotations

import asyncio
from datetime import datetime

import pytest

from morningquest.ticker import run_ticker

NOW = datetime(2024, 5, 13, 7, 0)


class TestRunTicker:
    @pytest.mark.asyncio
    async def test_stops_when_event_set(self) -> None:
        stop = asyncio.Event()
        seen: list[datetime] = []

        def on_tick(now: datetime) -> None:
            seen.append(now)
            if len(seen) == 3:
                stop.set()

        ticks = await run_ticker(on_tick, clock=lambda: NOW, interval=0.01, stop=stop)
        assert ticks == 3
        assert seen == [NOW, NOW, NOW]

    @pytest.mark.asyncio
    async def test_stop_interrupts_wait(self) -> None:
        stop = asyncio.Event()
        task = asyncio.create_task(run_ticker(lambda now: None, clock=lambda: NOW, interval=60, stop=stop))
        await asyncio.sleep(0.01)
        stop.set()
        ticks = await asyncio.wait_for(task, timeout=1)
        assert ticks == 1

    @pytest.mark.asyncio
    async def test_pre_set_event_never_ticks(self) -> None:
        stop = asyncio.Event()
        stop.set()
        assert await run_ticker(lambda now: None, stop=stop) == 0

    @pytest.mark.asyncio
    async def test_failing_tick_is_reported_and_loop_continues(self) -> None:
        stop = asyncio.Event()
        errors: list[Exception] = []
        calls = 0

        def on_tick(now: datetime) -> None:
            nonlocal calls
            calls += 1
            if calls == 3:
                stop.set()
            raise RuntimeError(f"tick {calls}")

        ticks = await run_ticker(on_tick, clock=lambda: NOW, interval=0.01, stop=stop, on_error=errors.append)
        assert ticks == 3
        assert [str(e) for e in errors] == ["tick 1", "tick 2", "tick 3"]

    @pytest.mark.asyncio
    async def test_failing_tick_propagates_without_handler(self) -> None:
        def on_tick(now: datetime) -> None:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await run_ticker(on_tick, clock=lambda: NOW, interval=0.01)
