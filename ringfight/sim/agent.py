from __future__ import annotations

import math
from typing import Any

import numpy as np

from ..actions import ENERGY_COST, ActionIndex, parse_action
from ..config import STRIKE_LONG, STRIKE_SHORT, AgentSpec, StrikeSpec
from ..constants import IDLE_ENERGY_REGEN, MAX_ENERGY, MAX_HEALTH
from ..env.observations import build_observation
from ..env.rewards import RewardComponents, RewardComputer
from .body import RigidBody
from .world import PhysicsWorld


def _wrap_pi(angle: float) -> float:
    return (angle + math.pi) % (2 * math.pi) - math.pi


def _yaw_to_forward_right(yaw: float) -> tuple[np.ndarray, np.ndarray]:
    # Ground plane is x/z; yaw 0 faces +x, right-hand side is +z.
    c = math.cos(yaw)
    s = math.sin(yaw)
    forward = np.asarray([c, 0.0, s], dtype=np.float64)
    right = np.asarray([-s, 0.0, c], dtype=np.float64)
    return forward, right


class Agent:
    """One fighter: a physics body handle plus combat state.

    Position, velocity and grounded flag are local mirrors of the body owned by
    the world; they are refreshed by ``sync_from_physics`` and every write goes
    back through ``PhysicsWorld.set_body``.
    """

    def __init__(
        self,
        agent_id: int,
        world: PhysicsWorld,
        spec: AgentSpec | None = None,
        reward_computer: RewardComputer | None = None,
    ):
        if agent_id not in (0, 1):
            raise ValueError(f"agent_id must be 0 or 1, got {agent_id!r}")
        self.agent_id = int(agent_id)
        self.world = world
        self.spec = spec or AgentSpec()
        self.rewards = reward_computer or RewardComputer()

        self.pos = np.zeros(3, dtype=np.float64)
        self.vel = np.zeros(3, dtype=np.float64)
        self.is_grounded = True
        self.orientation = self._spawn_orientation()
        self.health = MAX_HEALTH
        self.energy = MAX_ENERGY
        self.stunned = 0  # ticks of skipped actions remaining
        self.blocking = False
        self.last_action: ActionIndex | None = None
        self.last_reward = RewardComponents()

        self.handle = world.add_body(self._spawn_body())
        self.sync_from_physics()

    def _spawn_orientation(self) -> float:
        return 0.0 if self.agent_id == 0 else math.pi

    def _spawn_body(self) -> RigidBody:
        x = self.spec.spawn_offset if self.agent_id == 0 else -self.spec.spawn_offset
        y = self.world.config.ground_height(self.spec.height)
        return RigidBody(
            pos=[x, y, 0.0],
            vel=[0.0, 0.0, 0.0],
            mass=self.spec.mass,
            radius=self.spec.radius,
            height=self.spec.height,
            is_grounded=True,
        )

    def reset(self) -> None:
        """Respawn with full health/energy; the handle stays the same.

        After ``PhysicsWorld.reset`` the body table is empty, so the body is
        re-registered; agents must be reset in id order to get their handles back.
        """
        body = self._spawn_body()
        if self.world.has_body(self.handle):
            self.world.set_body(self.handle, body)
        else:
            handle = self.world.add_body(body)
            if handle != self.handle:
                raise RuntimeError(
                    f"agent {self.agent_id} re-registered as body {handle}, expected {self.handle}; "
                    "reset agents in id order after a world reset"
                )
        self.orientation = self._spawn_orientation()
        self.health = MAX_HEALTH
        self.energy = MAX_ENERGY
        self.stunned = 0
        self.blocking = False
        self.last_action = None
        self.last_reward = RewardComponents()
        self.sync_from_physics()

    def sync_from_physics(self) -> None:
        body = self.world.get_body(self.handle)
        self.pos = body.pos
        self.vel = body.vel
        self.is_grounded = body.is_grounded

    def observe(self, opponent: Agent) -> np.ndarray:
        return build_observation(self, opponent, self.world.config.ring_radius)

    def distance_to(self, opponent: Agent) -> float:
        return math.hypot(float(opponent.pos[0] - self.pos[0]), float(opponent.pos[2] - self.pos[2]))

    def in_range(self, opponent: Agent, reach: float) -> bool:
        return self.distance_to(opponent) <= reach

    def in_front(self, opponent: Agent, half_arc: float = math.pi / 2) -> bool:
        dx = float(opponent.pos[0] - self.pos[0])
        dz = float(opponent.pos[2] - self.pos[2])
        diff = _wrap_pi(math.atan2(dz, dx) - self.orientation)
        return abs(diff) <= half_arc

    def _add_velocity(self, delta: np.ndarray) -> None:
        body = self.world.get_body(self.handle)
        body.vel = body.vel + delta
        stored = self.world.set_body(self.handle, body)
        self.vel = stored.vel

    def receive_hit(self, damage: float, stun_ticks: int = 0, impulse: np.ndarray | None = None) -> None:
        self.health = max(0.0, self.health - float(damage))
        if stun_ticks > 0:
            self.stunned = int(stun_ticks)
        if impulse is not None:
            self._add_velocity(impulse)

    def _strike(self, strike: StrikeSpec, opponent: Agent, forward: np.ndarray) -> float:
        if not (self.in_range(opponent, strike.range_m) and self.in_front(opponent, strike.arc_rad)):
            return -strike.miss_penalty
        if opponent.blocking:
            opponent.receive_hit(strike.blocked_damage)
            return strike.blocked_reward
        impulse = forward * strike.knockback if strike.knockback > 0.0 else None
        opponent.receive_hit(strike.damage, strike.stun_ticks, impulse)
        return strike.hit_reward

    def apply_action(self, action_index: int, opponent: Agent) -> float:
        """Carry out one discrete action against ``opponent`` and return this tick's reward.

        A stunned agent burns one stun tick instead of acting and earns nothing.
        """
        action = parse_action(action_index)
        if self.stunned > 0:
            self.stunned -= 1
            self.last_action = None
            self.last_reward = RewardComponents()
            return 0.0

        self.last_action = action
        self.energy = float(np.clip(self.energy - ENERGY_COST[action], 0.0, MAX_ENERGY))
        if action is ActionIndex.IDLE:
            self.energy = min(MAX_ENERGY, self.energy + IDLE_ENERGY_REGEN)

        spec = self.spec
        forward, right = _yaw_to_forward_right(self.orientation)
        action_reward = 0.0

        if action is ActionIndex.ADVANCE:
            self._add_velocity(forward * spec.move_speed)
        elif action is ActionIndex.RETREAT:
            self._add_velocity(-forward * spec.move_speed * spec.retreat_scale)
        elif action is ActionIndex.STRAFE_LEFT:
            self._add_velocity(-right * spec.move_speed * spec.strafe_scale)
        elif action is ActionIndex.STRAFE_RIGHT:
            self._add_velocity(right * spec.move_speed * spec.strafe_scale)
        elif action is ActionIndex.STRIKE_SHORT:
            action_reward = self._strike(STRIKE_SHORT, opponent, forward)
        elif action is ActionIndex.STRIKE_LONG:
            action_reward = self._strike(STRIKE_LONG, opponent, forward)

        # Guard holds until this agent's next non-guard action.
        self.blocking = action is ActionIndex.GUARD

        out_of_ring = self.world.is_out_of_ring(self.handle)
        if out_of_ring:
            self.health = 0.0

        self.last_reward = self.rewards.compute(
            action_reward=action_reward,
            own_health=self.health,
            opponent_health=opponent.health,
            own_energy=self.energy,
            distance=self.distance_to(opponent),
            out_of_ring=out_of_ring,
        )
        return self.last_reward.total()

    def state(self) -> dict[str, Any]:
        return {
            "id": self.agent_id,
            "position": [float(v) for v in self.pos],
            "velocity": [float(v) for v in self.vel],
            "orientation": float(self.orientation),
            "health": float(self.health),
            "energy": float(self.energy),
            "stunned": self.stunned > 0,
            "isGrounded": bool(self.is_grounded),
        }
