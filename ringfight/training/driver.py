"""Fixed-cadence driver for a started SimulationLoop."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .loop import SimulationLoop, TickResult


def run_fixed_interval(
    loop: SimulationLoop,
    interval_s: float = 0.1,
    max_ticks: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """Tick ``loop`` until it ends (or ``max_ticks`` is reached), one tick per interval.

    Ticks are never overlapped: the next one starts only after the previous
    returns, and a stop requested in between is honoured before ticking again.
    ``interval_s=0`` runs flat out. Returns the number of ticks executed.
    """
    if interval_s < 0:
        raise ValueError(f"interval_s must be >= 0, got {interval_s!r}")
    ticks = 0
    next_deadline = clock()
    while loop.is_running and (max_ticks is None or ticks < max_ticks):
        result: TickResult = loop.tick()
        ticks += 1
        if result.ended or interval_s == 0:
            continue
        next_deadline += interval_s
        delay = next_deadline - clock()
        if delay > 0:
            sleep(delay)
        else:
            # Fell behind; re-anchor instead of bursting to catch up.
            next_deadline = clock()
    return ticks
