"""Run statistics accumulated across the episodes of one training run."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from ..constants import DRAW_SLOT, NUM_AGENTS, WIN_TALLY_SIZE


def winner_slot(rewards: Sequence[float]) -> int:
    """Tally slot for an episode decided on the final tick's rewards: 0, 1, or DRAW_SLOT."""
    if rewards[0] > rewards[1]:
        return 0
    if rewards[1] > rewards[0]:
        return 1
    return DRAW_SLOT


@dataclass
class EpisodeStats:
    episode_index: int = 0
    win_tally: list[int] = field(default_factory=lambda: [0] * WIN_TALLY_SIZE)  # [agent 0, agent 1, draw]
    exploration_rate: float = 1.0
    current_step: int = 0
    rewards: list[float] = field(default_factory=lambda: [0.0] * NUM_AGENTS)
    episode_lengths: list[int] = field(default_factory=list)

    @property
    def episodes_completed(self) -> int:
        return len(self.episode_lengths)

    def record_step(self, step: int, rewards: Sequence[float]) -> None:
        self.current_step = int(step)
        self.rewards = [float(r) for r in rewards]

    def record_outcome(self, rewards: Sequence[float], steps: int) -> int:
        slot = winner_slot(rewards)
        self.win_tally[slot] += 1
        self.episode_lengths.append(int(steps))
        return slot

    def to_dict(self) -> dict[str, Any]:
        return {
            "episodeIndex": self.episode_index,
            "winTally": list(self.win_tally),
            "explorationRate": self.exploration_rate,
            "currentStep": self.current_step,
            "rewards": list(self.rewards),
            "episodeLengths": list(self.episode_lengths),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> EpisodeStats:
        return cls(
            episode_index=d.get("episodeIndex", 0),
            win_tally=list(d.get("winTally", [0] * WIN_TALLY_SIZE)),
            exploration_rate=d.get("explorationRate", 1.0),
            current_step=d.get("currentStep", 0),
            rewards=list(d.get("rewards", [0.0] * NUM_AGENTS)),
            episode_lengths=list(d.get("episodeLengths", [])),
        )
