"""Periodic refresh loop for an active run."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import suppress
from datetime import datetime

from morningquest.clock import Clock, system_clock


async def run_ticker(
    on_tick: Callable[[datetime], None],
    clock: Clock = system_clock,
    interval: float = 1.0,
    stop: asyncio.Event | None = None,
    on_error: Callable[[Exception], None] | None = None,
) -> int:
    """Call ``on_tick`` with a fresh clock reading every ``interval`` seconds.

    Ticks only trigger re-derivation; callers compute everything from the
    timestamp they receive, so a late or missed tick (process suspended,
    machine asleep) leaves nothing out of sync. A failing tick is handed to
    ``on_error`` and the loop keeps going; without ``on_error`` it propagates.
    Returns the number of ticks.
    """
    stop = stop or asyncio.Event()
    ticks = 0
    while not stop.is_set():
        try:
            on_tick(clock())
        except Exception as e:
            if on_error is None:
                raise
            on_error(e)
        ticks += 1
        with suppress(TimeoutError):
            await asyncio.wait_for(stop.wait(), timeout=interval)
    return ticks
