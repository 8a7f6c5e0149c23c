from __future__ import annotations

from dataclasses import dataclass, field, replace

import numpy as np


def _vec3(values) -> np.ndarray:
    return np.asarray(values, dtype=np.float64).reshape(3).copy()


@dataclass
class RigidBody:
    pos: np.ndarray  # float64[3], (x, y, z) with y vertical
    vel: np.ndarray  # float64[3]
    mass: float
    radius: float
    height: float
    is_static: bool = False
    is_grounded: bool = False

    def __post_init__(self) -> None:
        self.pos = _vec3(self.pos)
        self.vel = _vec3(self.vel)

    @property
    def inv_mass(self) -> float:
        # Static bodies behave as immovable: zero inverse mass.
        if self.is_static or self.mass <= 0.0:
            return 0.0
        return 1.0 / float(self.mass)

    def validate(self) -> None:
        if not self.radius > 0.0:
            raise ValueError(f"radius must be positive, got {self.radius!r}")
        if not self.is_static and not self.mass > 0.0:
            raise ValueError(f"dynamic body needs positive mass, got {self.mass!r}")
        if not (np.all(np.isfinite(self.pos)) and np.all(np.isfinite(self.vel))):
            raise ValueError("body position and velocity must be finite")

    def copy(self) -> RigidBody:
        return replace(self, pos=self.pos.copy(), vel=self.vel.copy())


@dataclass(frozen=True)
class Collision:
    body_a: int
    body_b: int
    distance: float
    resolved: bool = field(default=True)  # False when the pair was already separating
