"""Fixed-timestep rigid-body integrator for a circular ring arena.

Bodies are spheres for collision purposes (radius) with a height used only
for resting on the ground plane. The world owns every body; callers hold an
integer handle and go through ``get_body``/``set_body`` for any mutation.
"""

from __future__ import annotations

import math

import numpy as np

from ..config import PhysicsConfig
from .body import Collision, RigidBody


class PhysicsWorld:
    def __init__(self, config: PhysicsConfig | None = None):
        self.config = config or PhysicsConfig()
        self.time_s = 0.0
        self.tick = 0
        self._bodies: list[RigidBody] = []
        self.collisions: list[Collision] = []

    def reset(self) -> None:
        self.time_s = 0.0
        self.tick = 0
        self._bodies = []
        self.collisions = []

    @property
    def num_bodies(self) -> int:
        return len(self._bodies)

    def has_body(self, handle: int) -> bool:
        return 0 <= int(handle) < len(self._bodies)

    def _check(self, handle: int) -> int:
        h = int(handle)
        if not 0 <= h < len(self._bodies):
            raise IndexError(f"Unknown body handle {handle!r} ({len(self._bodies)} bodies)")
        return h

    def add_body(self, body: RigidBody) -> int:
        body.validate()
        self._bodies.append(body.copy())
        return len(self._bodies) - 1

    def get_body(self, handle: int) -> RigidBody:
        """Return a copy of the body; edits only take effect through ``set_body``."""
        return self._bodies[self._check(handle)].copy()

    def set_body(self, handle: int, body: RigidBody) -> RigidBody:
        """Replace the body behind ``handle`` wholesale and return the stored copy."""
        h = self._check(handle)
        body.validate()
        self._bodies[h] = body.copy()
        return self._bodies[h].copy()

    def ground_height(self, handle: int) -> float:
        return self.config.ground_height(self._bodies[self._check(handle)].height)

    def distance_from_center(self, handle: int) -> float:
        pos = self._bodies[self._check(handle)].pos
        return math.hypot(float(pos[0]), float(pos[2]))

    def is_out_of_ring(self, handle: int) -> bool:
        return self.distance_from_center(handle) > self.config.ring_radius

    def step(self, dt: float | None = None) -> list[Collision]:
        dt = self.config.dt if dt is None else float(dt)
        self.tick += 1
        self.time_s += dt
        for body in self._bodies:
            self._integrate(body, dt)
        self.collisions = self._resolve_collisions()
        return list(self.collisions)

    def _integrate(self, body: RigidBody, dt: float) -> None:
        cfg = self.config
        ground = cfg.ground_height(body.height)

        if not body.is_static and body.mass > 0.0:
            body.vel[1] -= cfg.gravity * dt

        if body.pos[1] <= ground:
            damp = 1.0 - cfg.friction * dt
            body.vel[0] *= damp
            body.vel[2] *= damp

        if body.is_static:
            body.is_grounded = bool(body.pos[1] <= ground)
            return

        body.pos += body.vel * dt

        if body.pos[1] < ground:
            body.pos[1] = ground
            body.vel[1] = 0.0
            body.is_grounded = True
        else:
            body.is_grounded = False

        self._apply_ring_boundary(body)

    def _apply_ring_boundary(self, body: RigidBody) -> None:
        cfg = self.config
        limit = cfg.ring_radius - body.radius
        dist = math.hypot(float(body.pos[0]), float(body.pos[2]))
        if dist <= limit:
            return

        angle = math.atan2(float(body.pos[2]), float(body.pos[0]))
        nx = math.cos(angle)
        nz = math.sin(angle)
        body.pos[0] = limit * nx
        body.pos[2] = limit * nz

        # Mirror the horizontal velocity about the boundary normal, then lose some of it.
        dot = float(body.vel[0]) * nx + float(body.vel[2]) * nz
        body.vel[0] = (body.vel[0] - 2.0 * dot * nx) * cfg.boundary_damping
        body.vel[2] = (body.vel[2] - 2.0 * dot * nz) * cfg.boundary_damping

    def _resolve_collisions(self) -> list[Collision]:
        collisions: list[Collision] = []
        n = len(self._bodies)
        for i in range(n):
            for j in range(i + 1, n):
                hit = self._resolve_pair(i, j)
                if hit is not None:
                    collisions.append(hit)
        return collisions

    def _resolve_pair(self, i: int, j: int) -> Collision | None:
        cfg = self.config
        a = self._bodies[i]
        b = self._bodies[j]

        delta = b.pos - a.pos
        distance = float(np.linalg.norm(delta))
        min_distance = float(a.radius + b.radius)
        # Coincident centres have no usable normal.
        if distance >= min_distance or distance == 0.0:
            return None

        normal = delta / distance
        vel_along_normal = float(np.dot(b.vel - a.vel, normal))
        if vel_along_normal >= 0.0:
            return Collision(i, j, distance, resolved=False)

        inv_a = a.inv_mass
        inv_b = b.inv_mass
        inv_sum = inv_a + inv_b
        if inv_sum <= 0.0:
            return Collision(i, j, distance, resolved=False)

        impulse = -(1.0 + cfg.restitution) * vel_along_normal / inv_sum
        if not a.is_static:
            a.vel -= normal * (impulse * inv_a)
        if not b.is_static:
            b.vel += normal * (impulse * inv_b)

        correction = (min_distance - distance) * cfg.penetration_correction
        if not a.is_static:
            a.pos -= normal * (correction * inv_a / inv_sum)
        if not b.is_static:
            b.pos += normal * (correction * inv_b / inv_sum)

        return Collision(i, j, distance)
