"""Tabular Q-learning with one action-value table per agent."""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any

import numpy as np

from ..actions import ACTION_DIM
from ..config import SimulationParameters
from ..constants import NUM_AGENTS
from ..payloads import SnapshotPayload
from .discretize import state_key

logger = logging.getLogger(__name__)


class QLearner:
    """Epsilon-greedy action selection and one-step Q updates for every agent.

    Tables map a discretized state key to an ``ACTION_DIM`` vector of values.
    Rows are created (all zeros) the first time a key is touched. Tables
    persist across episodes and are only replaced by ``import_snapshot``.
    """

    def __init__(
        self,
        params: SimulationParameters | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.tables: list[dict[str, np.ndarray]] = [{} for _ in range(NUM_AGENTS)]
        self.training = True
        self.params = SimulationParameters()
        self.exploration_rate = self.params.exploration_rate
        self.configure(params or SimulationParameters())

    def configure(self, params: SimulationParameters) -> None:
        params.validate()
        self.params = params
        self.exploration_rate = float(params.exploration_rate)
        if not self.training:
            self.exploration_rate = float(params.min_exploration_rate)
        logger.debug(f"Learner configured: {params.to_dict()}")

    def set_training_mode(self, training: bool) -> None:
        self.training = bool(training)
        if not self.training:
            self.exploration_rate = float(self.params.min_exploration_rate)

    def state_key(self, observation) -> str:
        return state_key(observation, self.params.discretization_mode)

    def q_values(self, agent_index: int, key: str) -> np.ndarray:
        """Return the live row for ``key``, creating a zero row if absent."""
        table = self.tables[agent_index]
        row = table.get(key)
        if row is None:
            row = np.zeros(ACTION_DIM, dtype=np.float64)
            table[key] = row
        return row

    def table_size(self, agent_index: int) -> int:
        return len(self.tables[agent_index])

    def choose_action(self, agent_index: int, observation) -> int:
        row = self.q_values(agent_index, self.state_key(observation))
        if self.training and self.rng.random() < self.exploration_rate:
            return int(self.rng.integers(ACTION_DIM))
        # argmax returns the lowest index among ties
        return int(np.argmax(row))

    def update(self, agent_index: int, observation, action: int, reward: float, next_observation) -> None:
        if not self.training:
            return
        row = self.q_values(agent_index, self.state_key(observation))
        next_row = self.q_values(agent_index, self.state_key(next_observation))
        a = int(action)
        q = float(row[a])
        target = float(reward) + self.params.discount_factor * float(np.max(next_row))
        row[a] = q + self.params.learning_rate * (target - q)

    def decay_exploration(self) -> float:
        if self.training:
            self.exploration_rate = max(
                self.params.min_exploration_rate, self.exploration_rate * self.params.exploration_decay
            )
        return self.exploration_rate

    def export_snapshot(self) -> dict[str, Any]:
        """Tables plus parameters (with the current exploration rate) as JSON-safe data."""
        params = replace(self.params, exploration_rate=self.exploration_rate)
        snapshot = {
            "qTables": [{key: [float(v) for v in row] for key, row in table.items()} for table in self.tables],
            "parameters": params.to_dict(),
        }
        logger.info(f"Exported snapshot ({', '.join(str(len(t)) for t in self.tables)} states)")
        return snapshot

    def import_snapshot(self, data: dict[str, Any]) -> None:
        """Replace every table and re-apply the stored parameters.

        Raises ValueError (pydantic ValidationError) if the snapshot is malformed;
        nothing is modified in that case.
        """
        payload = SnapshotPayload.model_validate(data)
        params = SimulationParameters.from_dict(payload.parameters)
        tables = [
            {key: np.asarray(row, dtype=np.float64) for key, row in table.items()} for table in payload.q_tables
        ]
        self.tables = tables
        self.configure(params)
        logger.info(f"Imported snapshot ({', '.join(str(len(t)) for t in self.tables)} states)")


def save_snapshot(path: Path | str, snapshot: dict[str, Any]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(snapshot, f)


def load_snapshot(path: Path | str) -> dict[str, Any]:
    with open(path) as f:
        return json.load(f)
