"""Episode/training state machine driving two agents and their learner.

One call to ``tick`` is one decision step::

    sync -> observe -> choose -> act (agent 0, then 1) -> physics step
         -> sync -> observe -> learn -> decay exploration

States::

    IDLE --start--> RUNNING --episode ends--> EPISODE_BOUNDARY --> RUNNING
                       |                            |
                       +------- last episode -------+--> ENDED
    stop() from any state --> ENDED

Listeners registered with ``add_listener`` receive ``(kind, payload)`` for the
three outbound events: "simulationUpdate", "episodeComplete" and
"simulationEnded". Payloads are plain dicts shaped by ``ringfight.payloads``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np

from ..config import AgentSpec, PhysicsConfig, SimulationParameters
from ..env.rewards import RewardComputer, RewardWeights
from ..payloads import EndPayload, EpisodePayload, TickPayload
from ..rl.qlearning import QLearner
from ..sim.agent import Agent
from ..sim.body import Collision
from ..sim.world import PhysicsWorld
from .stats import EpisodeStats

logger = logging.getLogger(__name__)

Listener = Callable[[str, dict[str, Any]], None]

STOPPED_MESSAGE = "Simulation stopped by user"


class LoopState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    EPISODE_BOUNDARY = "episode_boundary"
    ENDED = "ended"


class Mode(str, Enum):
    TRAIN = "train"
    EVALUATE = "evaluate"


@dataclass
class TickResult:
    step_index: int
    actions: tuple[int, int]
    rewards: tuple[float, float]
    agent_states: list[dict[str, Any]]
    collisions: list[Collision] = field(default_factory=list)
    episode_done: bool = False
    ended: bool = False

    def to_payload(self) -> dict[str, Any]:
        return TickPayload(
            agent_states=self.agent_states,
            step_index=self.step_index,
            rewards=list(self.rewards),
        ).model_dump(by_alias=True)


class SimulationLoop:
    def __init__(
        self,
        physics_config: PhysicsConfig | None = None,
        agent_spec: AgentSpec | None = None,
        reward_weights: RewardWeights | None = None,
        seed: int | None = None,
    ):
        self.world = PhysicsWorld(physics_config)
        rewards = RewardComputer(reward_weights)
        self.agents = [Agent(i, self.world, agent_spec, rewards) for i in range(2)]
        self.learner = QLearner(rng=np.random.default_rng(seed))
        self.state = LoopState.IDLE
        self.mode = Mode.TRAIN
        self.params: SimulationParameters | None = None
        self.stats = EpisodeStats()
        self.step_count = 0
        self._listeners: list[Listener] = []
        self._in_tick = False
        self._stop_requested = False

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    def _emit(self, kind: str, payload: dict[str, Any]) -> None:
        for listener in list(self._listeners):
            listener(kind, payload)

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    @property
    def training(self) -> bool:
        return self.mode is Mode.TRAIN

    @property
    def is_running(self) -> bool:
        return self.state in (LoopState.RUNNING, LoopState.EPISODE_BOUNDARY)

    def start(self, parameters: SimulationParameters | dict[str, Any], mode: Mode | str = Mode.TRAIN) -> None:
        """Begin a new run; raises ValueError for invalid parameters or mode."""
        if self._in_tick:
            raise RuntimeError("start() called from inside a tick")
        if isinstance(parameters, SimulationParameters):
            params = parameters.validate()
        else:
            params = SimulationParameters.from_dict(parameters)
        try:
            mode = Mode(mode)
        except ValueError:
            raise ValueError(f"mode must be 'train' or 'evaluate', got {mode!r}") from None

        self.params = params
        self.mode = mode
        self.learner.set_training_mode(self.training)
        self.learner.configure(params)
        self._reset_episode()
        self.stats = EpisodeStats(exploration_rate=self.learner.exploration_rate)
        self._stop_requested = False
        self.state = LoopState.RUNNING
        logger.info(
            f"Simulation started: mode={mode.value} episodes={params.num_episodes} "
            f"max_steps={params.max_steps} discretization={params.discretization_mode.value}"
        )

    def stop(self) -> None:
        """End the run. Inside a tick the stop takes effect once the tick returns."""
        if self._in_tick:
            self._stop_requested = True
            return
        if self.state is LoopState.ENDED:
            return
        self._end(message=STOPPED_MESSAGE)

    def _reset_episode(self) -> None:
        # Tables are owned by the learner and survive this.
        self.world.reset()
        for agent in self.agents:
            agent.reset()
        self.step_count = 0

    def _end(self, message: str | None = None) -> None:
        self.state = LoopState.ENDED
        if message:
            logger.info(f"Simulation ended: {message}")
        else:
            logger.info(
                f"Simulation finished after {self.stats.episodes_completed} episode(s): "
                f"tally={self.stats.win_tally}"
            )
        payload = EndPayload(final_stats=self.stats.to_dict(), message=message)
        self._emit("simulationEnded", payload.model_dump(by_alias=True))

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def tick(self) -> TickResult:
        if self.state is not LoopState.RUNNING or self.params is None:
            raise RuntimeError(f"tick() requires a running simulation (state={self.state.value}); call start() first")
        self._in_tick = True
        try:
            result = self._tick()
        finally:
            self._in_tick = False
        if self._stop_requested:
            self._stop_requested = False
            if self.state is not LoopState.ENDED:
                self._end(message=STOPPED_MESSAGE)
        result.ended = self.state is LoopState.ENDED
        return result

    def _tick(self) -> TickResult:
        params = self.params
        assert params is not None
        learner = self.learner
        a0, a1 = self.agents

        for agent in self.agents:
            agent.sync_from_physics()
        obs = [a0.observe(a1), a1.observe(a0)]
        actions = (learner.choose_action(0, obs[0]), learner.choose_action(1, obs[1]))

        rewards = (a0.apply_action(actions[0], a1), a1.apply_action(actions[1], a0))

        collisions = self.world.step()
        for agent in self.agents:
            agent.sync_from_physics()
        next_obs = [a0.observe(a1), a1.observe(a0)]

        for i in range(2):
            learner.update(i, obs[i], actions[i], rewards[i], next_obs[i])
        if self.training:
            learner.decay_exploration()

        self.step_count += 1
        self.stats.record_step(self.step_count, rewards)

        done = any(agent.health <= 0.0 for agent in self.agents) or self.step_count >= params.max_steps
        result = TickResult(
            step_index=self.step_count,
            actions=actions,
            rewards=rewards,
            agent_states=[agent.state() for agent in self.agents],
            collisions=collisions,
            episode_done=done,
        )
        self._emit("simulationUpdate", result.to_payload())

        if done and not self._stop_requested:
            self._finish_episode(rewards)
        return result

    def _finish_episode(self, rewards: tuple[float, float]) -> None:
        params = self.params
        assert params is not None
        slot = self.stats.record_outcome(rewards, self.step_count)

        if self.training and self.stats.episode_index < params.num_episodes - 1:
            self.state = LoopState.EPISODE_BOUNDARY
            self.stats.episode_index += 1
            self.stats.exploration_rate = self.learner.exploration_rate
            self._reset_episode()
            logger.info(
                f"Episode {self.stats.episode_index}/{params.num_episodes} starting: "
                f"last winner slot={slot} tally={self.stats.win_tally} "
                f"epsilon={self.stats.exploration_rate:.4f}"
            )
            payload = EpisodePayload(
                episode_index=self.stats.episode_index,
                win_tally=self.stats.win_tally,
                exploration_rate=self.stats.exploration_rate,
            )
            self._emit("episodeComplete", payload.model_dump(by_alias=True))
            self.state = LoopState.RUNNING
        else:
            self.stats.exploration_rate = self.learner.exploration_rate
            self._end()

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def export_snapshot(self) -> dict[str, Any]:
        if self._in_tick:
            raise RuntimeError("export_snapshot() called from inside a tick")
        return self.learner.export_snapshot()

    def import_snapshot(self, data: dict[str, Any]) -> None:
        if self._in_tick:
            raise RuntimeError("import_snapshot() called from inside a tick")
        self.learner.import_snapshot(data)
