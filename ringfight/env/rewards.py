"""Per-tick reward for one agent.

The reward is the sum of an action term (strike hit/miss) and four terms
evaluated every tick from the post-action state:

- damage dealt so far: +0.1 per missing opponent health point
- damage taken so far: -0.1 per missing own health point
- energy conservation: +0.01 per remaining energy point
- engagement: +0.5 per metre closer than 3 m to the opponent

Leaving the ring adds a flat -50. The weights are kept exactly as tuned;
their relative scale is not normalised.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..constants import MAX_HEALTH


@dataclass
class RewardWeights:
    damage_dealt: float = 0.1
    damage_taken: float = 0.1
    energy: float = 0.01
    proximity: float = 0.5
    proximity_range: float = 3.0  # metres; no engagement bonus beyond this
    ring_out: float = -50.0


@dataclass
class RewardComponents:
    """Breakdown of one tick's reward, summed in the order it accrues."""

    action: float = 0.0
    ring_out: float = 0.0
    damage_dealt: float = 0.0
    damage_taken: float = 0.0
    energy: float = 0.0
    proximity: float = 0.0

    def total(self) -> float:
        return (
            self.action + self.ring_out + self.damage_dealt + self.damage_taken + self.energy + self.proximity
        )

    def to_dict(self) -> dict[str, float]:
        return {
            "action": self.action,
            "ring_out": self.ring_out,
            "damage_dealt": self.damage_dealt,
            "damage_taken": self.damage_taken,
            "energy": self.energy,
            "proximity": self.proximity,
        }


class RewardComputer:
    """Stateless reward computation; one instance can serve both agents."""

    def __init__(self, weights: RewardWeights | None = None):
        self.weights = weights or RewardWeights()

    def compute(
        self,
        *,
        action_reward: float,
        own_health: float,
        opponent_health: float,
        own_energy: float,
        distance: float,
        out_of_ring: bool,
    ) -> RewardComponents:
        w = self.weights
        parts = RewardComponents(action=float(action_reward))
        if out_of_ring:
            parts.ring_out = w.ring_out
        parts.damage_dealt = (MAX_HEALTH - opponent_health) * w.damage_dealt
        parts.damage_taken = -(MAX_HEALTH - own_health) * w.damage_taken
        parts.energy = own_energy * w.energy
        if distance < w.proximity_range:
            parts.proximity = (w.proximity_range - distance) * w.proximity
        return parts
