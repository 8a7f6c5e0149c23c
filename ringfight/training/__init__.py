"""Training loop, run statistics and the fixed-interval driver."""

from .driver import run_fixed_interval
from .loop import LoopState, Mode, SimulationLoop, TickResult
from .stats import EpisodeStats, winner_slot

__all__ = [
    "EpisodeStats",
    "LoopState",
    "Mode",
    "SimulationLoop",
    "TickResult",
    "run_fixed_interval",
    "winner_slot",
]
