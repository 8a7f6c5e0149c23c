from __future__ import annotations

import math
import numbers
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class DiscretizationMode(str, Enum):
    COARSE = "coarse"  # relative position, distance, ring edge, both healths
    FULL = "full"  # every observation feature


@dataclass(frozen=True)
class PhysicsConfig:
    gravity: float = 9.8  # m/s^2, applied on the vertical (y) axis
    friction: float = 0.3  # horizontal damping per second while grounded
    ring_radius: float = 5.0
    ring_height: float = 0.2  # ground plane sits on top of the ring platform
    dt: float = 0.1
    restitution: float = 0.2
    penetration_correction: float = 0.2  # fraction of overlap pushed apart per step
    boundary_damping: float = 0.8  # horizontal speed kept after bouncing off the ring edge

    def ground_height(self, body_height: float) -> float:
        return body_height / 2.0 + self.ring_height


@dataclass(frozen=True)
class AgentSpec:
    height: float = 1.5
    width: float = 1.0
    depth: float = 0.8
    mass: float = 80.0  # kg
    radius: float = 0.5  # collision sphere
    move_speed: float = 2.0
    retreat_scale: float = 0.7
    strafe_scale: float = 0.8
    spawn_offset: float = 2.0  # agents start at +/- this on the x axis, facing each other


@dataclass(frozen=True)
class StrikeSpec:
    name: str
    range_m: float
    energy_cost: float
    damage: float
    blocked_damage: float
    stun_ticks: int
    hit_reward: float
    blocked_reward: float
    miss_penalty: float
    knockback: float = 0.0  # impulse along the attacker's forward vector on a clean hit
    arc_rad: float = math.pi / 2  # half-angle of the forward cone


STRIKE_SHORT = StrikeSpec(
    name="strike_short",
    range_m=1.5,
    energy_cost=5.0,
    damage=10.0,
    blocked_damage=5.0,
    stun_ticks=2,
    hit_reward=15.0,
    blocked_reward=5.0,
    miss_penalty=2.0,
)

STRIKE_LONG = StrikeSpec(
    name="strike_long",
    range_m=2.0,
    energy_cost=10.0,
    damage=20.0,
    blocked_damage=10.0,
    stun_ticks=3,
    hit_reward=25.0,
    blocked_reward=10.0,
    miss_penalty=5.0,
    knockback=5.0,
)


# Wire names used by the outside world (start requests, saved snapshots).
_CAMEL_KEYS: dict[str, str] = {
    "learning_rate": "learningRate",
    "discount_factor": "discountFactor",
    "exploration_rate": "explorationRate",
    "exploration_decay": "explorationDecay",
    "min_exploration_rate": "minExplorationRate",
    "discretization_mode": "discretizationMode",
    "num_episodes": "numEpisodes",
    "max_steps": "maxSteps",
}
_FLOAT_FIELDS = (
    "learning_rate",
    "discount_factor",
    "exploration_rate",
    "exploration_decay",
    "min_exploration_rate",
)


@dataclass(frozen=True)
class SimulationParameters:
    learning_rate: float = 0.1
    discount_factor: float = 0.95
    exploration_rate: float = 1.0
    exploration_decay: float = 0.995
    min_exploration_rate: float = 0.01
    discretization_mode: DiscretizationMode = DiscretizationMode.COARSE
    num_episodes: int = 100
    max_steps: int = 500
    extra: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def validate(self) -> SimulationParameters:
        """Raise ValueError if any field is out of range; returns self for chaining."""
        for name in ("max_steps", "num_episodes"):
            if _as_int(name, getattr(self, name)) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)!r}")
        if not isinstance(self.discretization_mode, DiscretizationMode):
            raise ValueError(f"Unknown discretization mode: {self.discretization_mode!r}")
        for name in ("learning_rate", "discount_factor", "exploration_rate", "min_exploration_rate"):
            value = float(getattr(self, name))
            if not math.isfinite(value) or not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value!r}")
        if not 0.0 < float(self.exploration_decay) <= 1.0:
            raise ValueError(f"exploration_decay must be in (0, 1], got {self.exploration_decay!r}")
        if self.min_exploration_rate > self.exploration_rate:
            raise ValueError(
                f"min_exploration_rate ({self.min_exploration_rate}) exceeds "
                f"exploration_rate ({self.exploration_rate})"
            )
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, matching the start/snapshot payloads."""
        d = asdict(self)
        d.pop("extra")
        d["discretization_mode"] = self.discretization_mode.value
        return {_CAMEL_KEYS[k]: v for k, v in d.items()}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SimulationParameters:
        """Build from camelCase or snake_case keys; missing keys use defaults.

        Unknown keys are kept in ``extra`` rather than rejected so that records
        carrying bookkeeping fields (names, ratings) can be passed through.
        """
        snake_of = {camel: snake for snake, camel in _CAMEL_KEYS.items()}
        kwargs: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in d.items():
            name = snake_of.get(key, key)
            if name in _CAMEL_KEYS:
                kwargs[name] = value
            else:
                extra[key] = value

        if "discretization_mode" in kwargs:
            mode = kwargs["discretization_mode"]
            try:
                kwargs["discretization_mode"] = DiscretizationMode(mode)
            except ValueError:
                raise ValueError(f"Unknown discretization mode: {mode!r}") from None
        for name in ("num_episodes", "max_steps"):
            if name in kwargs:
                kwargs[name] = _as_int(name, kwargs[name])
        for name in _FLOAT_FIELDS:
            if name in kwargs:
                kwargs[name] = _as_float(name, kwargs[name])
        return cls(**kwargs, extra=extra).validate()


def _as_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if not math.isfinite(value) or int(value) != value:
        raise ValueError(f"{name} must be an integer, got {value!r}")
    return int(value)


def _as_float(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValueError(f"{name} must be a number, got {value!r}")
    return float(value)
