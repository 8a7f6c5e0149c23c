"""Pydantic models for everything that crosses the simulation boundary.

The simulation core works with plain dicts and numpy arrays; these models
define (and validate) the wire shapes used by whoever transports or stores
them: start requests, per-tick updates, episode boundaries, end-of-run stats
and learner snapshots. Field aliases carry the camelCase wire names.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .actions import ACTION_DIM
from .constants import NUM_AGENTS, WIN_TALLY_SIZE


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class AgentStatePayload(_WireModel):
    """Public state of one agent for a viewer."""

    id: int
    position: list[float] = Field(min_length=3, max_length=3)
    velocity: list[float] = Field(min_length=3, max_length=3)
    orientation: float
    health: float = Field(ge=0.0, le=100.0)
    energy: float = Field(ge=0.0, le=100.0)
    stunned: bool
    is_grounded: bool = Field(alias="isGrounded")


class TickPayload(_WireModel):
    """Emitted once per simulation tick ("simulationUpdate")."""

    agent_states: list[AgentStatePayload] = Field(alias="agentStates", min_length=NUM_AGENTS, max_length=NUM_AGENTS)
    step_index: int = Field(alias="stepIndex", ge=1)
    rewards: list[float] = Field(min_length=NUM_AGENTS, max_length=NUM_AGENTS)


class EpisodePayload(_WireModel):
    """Emitted at each training episode boundary ("episodeComplete")."""

    episode_index: int = Field(alias="episodeIndex", ge=0)
    win_tally: list[int] = Field(alias="winTally", min_length=WIN_TALLY_SIZE, max_length=WIN_TALLY_SIZE)
    exploration_rate: float = Field(alias="explorationRate", ge=0.0, le=1.0)


class EndPayload(_WireModel):
    """Emitted once when a run ends ("simulationEnded")."""

    final_stats: dict[str, Any] | None = Field(default=None, alias="finalStats")
    message: str | None = None


class StartRequest(_WireModel):
    """Inbound start signal: a parameter record plus a mode flag."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    parameters: dict[str, Any] = Field(default_factory=dict)
    mode: str = "train"

    @field_validator("mode")
    @classmethod
    def _known_mode(cls, v: str) -> str:
        if v not in ("train", "evaluate"):
            raise ValueError(f"mode must be 'train' or 'evaluate', got {v!r}")
        return v


class SnapshotPayload(_WireModel):
    """A learner snapshot: one action-value table per agent plus its parameters."""

    q_tables: list[dict[str, list[float]]] = Field(alias="qTables", min_length=NUM_AGENTS, max_length=NUM_AGENTS)
    parameters: dict[str, Any]

    @field_validator("q_tables")
    @classmethod
    def _rows_are_complete(cls, tables: list[dict[str, list[float]]]) -> list[dict[str, list[float]]]:
        for agent_index, table in enumerate(tables):
            for key, row in table.items():
                if len(row) != ACTION_DIM:
                    raise ValueError(
                        f"table {agent_index} row {key!r} has {len(row)} values, expected {ACTION_DIM}"
                    )
                if not all(math.isfinite(v) for v in row):
                    raise ValueError(f"table {agent_index} row {key!r} has non-finite values")
        return tables
