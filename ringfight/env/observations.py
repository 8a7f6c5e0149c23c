"""Observation vector for one agent facing its opponent.

Layout (23 floats):

    0..8    self:      x, z, vx, vz, sin(yaw), cos(yaw), health, energy, stunned
    9..17   opponent:  same nine features
    18, 19  relative x, z to the opponent
    20      horizontal distance to the opponent
    21      own distance to the ring edge
    22      opponent distance to the ring edge

Positions are divided by the ring radius, velocities by VELOCITY_NORM,
offsets and separation by SEPARATION_NORM; health/energy are fractions of 100.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from ..constants import MAX_ENERGY, MAX_HEALTH, SEPARATION_NORM, VELOCITY_NORM

if TYPE_CHECKING:
    from ..sim.agent import Agent

OBS_DIM = 23
SELF_DIM = 9

OBS_SELF_HEALTH = 6
OBS_OPP_HEALTH = SELF_DIM + 6
OBS_REL_X = 18
OBS_REL_Z = 19
OBS_DISTANCE = 20
OBS_RING_EDGE = 21
OBS_OPP_RING_EDGE = 22


def _self_features(agent: Agent, ring_radius: float) -> list[float]:
    return [
        float(agent.pos[0]) / ring_radius,
        float(agent.pos[2]) / ring_radius,
        float(agent.vel[0]) / VELOCITY_NORM,
        float(agent.vel[2]) / VELOCITY_NORM,
        math.sin(agent.orientation),
        math.cos(agent.orientation),
        agent.health / MAX_HEALTH,
        agent.energy / MAX_ENERGY,
        1.0 if agent.stunned > 0 else 0.0,
    ]


def ring_edge_fraction(agent: Agent, ring_radius: float) -> float:
    """Fraction of the ring radius left between the agent and the edge (negative outside)."""
    return (ring_radius - math.hypot(float(agent.pos[0]), float(agent.pos[2]))) / ring_radius


def build_observation(agent: Agent, opponent: Agent, ring_radius: float) -> np.ndarray:
    dx = float(opponent.pos[0] - agent.pos[0])
    dz = float(opponent.pos[2] - agent.pos[2])
    features = [
        *_self_features(agent, ring_radius),
        *_self_features(opponent, ring_radius),
        dx / SEPARATION_NORM,
        dz / SEPARATION_NORM,
        math.hypot(dx, dz) / SEPARATION_NORM,
        ring_edge_fraction(agent, ring_radius),
        ring_edge_fraction(opponent, ring_radius),
    ]
    obs = np.asarray(features, dtype=np.float64)
    assert obs.shape == (OBS_DIM,)
    return obs
