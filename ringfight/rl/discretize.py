"""State keys for tabular lookup.

Observations are rounded to a coarse grid and joined into a comma-separated
string. Rounding is half-up (``floor(x / step + 0.5) * step``) so that keys do
not depend on banker's rounding, and every rounded value is printed with one
decimal, which is exact for both the 0.5 and 0.2 grids.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from ..config import DiscretizationMode
from ..env.observations import (
    OBS_DIM,
    OBS_DISTANCE,
    OBS_OPP_HEALTH,
    OBS_REL_X,
    OBS_REL_Z,
    OBS_RING_EDGE,
    OBS_SELF_HEALTH,
)

POSITION_STEPS = 2  # 0.5 grid
HEALTH_STEPS = 5  # 0.2 grid

COARSE_FEATURES: tuple[tuple[int, int], ...] = (
    (OBS_REL_X, POSITION_STEPS),
    (OBS_REL_Z, POSITION_STEPS),
    (OBS_DISTANCE, POSITION_STEPS),
    (OBS_RING_EDGE, POSITION_STEPS),
    (OBS_SELF_HEALTH, HEALTH_STEPS),
    (OBS_OPP_HEALTH, HEALTH_STEPS),
)


def round_to_grid(value: float, steps_per_unit: int) -> float:
    rounded = math.floor(float(value) * steps_per_unit + 0.5) / steps_per_unit
    return rounded + 0.0  # folds -0.0 into 0.0


def _encode(values: Sequence[float]) -> str:
    return ",".join(f"{v:.1f}" for v in values)


def coarse_key(observation: Sequence[float]) -> str:
    return _encode([round_to_grid(observation[idx], steps) for idx, steps in COARSE_FEATURES])


def full_key(observation: Sequence[float]) -> str:
    return _encode([round_to_grid(v, HEALTH_STEPS) for v in observation])


def state_key(observation: Sequence[float], mode: DiscretizationMode) -> str:
    if len(observation) != OBS_DIM:
        raise ValueError(f"observation has {len(observation)} features, expected {OBS_DIM}")
    if mode is DiscretizationMode.COARSE:
        return coarse_key(observation)
    if mode is DiscretizationMode.FULL:
        return full_key(observation)
    raise ValueError(f"Unknown discretization mode: {mode!r}")
