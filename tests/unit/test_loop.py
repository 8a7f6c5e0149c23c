import numpy as np
import pytest

from ringfight.config import SimulationParameters
from ringfight.constants import MAX_ENERGY, MAX_HEALTH
from ringfight.training.loop import STOPPED_MESSAGE, LoopState, Mode, SimulationLoop


@pytest.fixture
def loop():
    return SimulationLoop(seed=7)


@pytest.fixture
def events(loop):
    seen = []
    loop.add_listener(lambda kind, payload: seen.append((kind, payload)))
    return seen


def _kinds(events, kind):
    return [payload for k, payload in events if k == kind]


def test_tick_before_start_raises(loop):
    assert loop.state is LoopState.IDLE
    with pytest.raises(RuntimeError):
        loop.tick()


@pytest.mark.parametrize(
    ("params", "mode"),
    [({"maxSteps": 0}, "train"), ({"discretizationMode": "medium"}, "train"), ({}, "watch")],
)
def test_invalid_start_leaves_loop_idle(loop, params, mode):
    with pytest.raises(ValueError):
        loop.start(params, mode)
    assert loop.state is LoopState.IDLE
    assert loop.params is None


def test_training_runs_every_episode(loop, events, short_params):
    loop.start(short_params, Mode.TRAIN)
    ticks = 0
    while loop.is_running:
        loop.tick()
        ticks += 1

    assert ticks == 15
    assert loop.state is LoopState.ENDED
    assert len(_kinds(events, "simulationUpdate")) == 15
    assert [p["episodeIndex"] for p in _kinds(events, "episodeComplete")] == [1, 2]
    ended = _kinds(events, "simulationEnded")
    assert len(ended) == 1
    assert ended[0]["message"] is None
    final = ended[0]["finalStats"]
    assert final["episodeLengths"] == [5, 5, 5]
    assert sum(final["winTally"]) == 3
    assert final["episodeIndex"] == 2


def test_step_index_restarts_each_episode(loop, events, short_params):
    loop.start(short_params, "train")
    while loop.is_running:
        loop.tick()
    steps = [p["stepIndex"] for p in _kinds(events, "simulationUpdate")]
    assert steps == [1, 2, 3, 4, 5] * 3


def test_tick_after_end_raises(loop, short_params):
    loop.start(short_params)
    while loop.is_running:
        loop.tick()
    with pytest.raises(RuntimeError):
        loop.tick()


def test_evaluation_runs_one_episode_without_learning(loop, events):
    loop.start(SimulationParameters(num_episodes=10, max_steps=8, min_exploration_rate=0.0), Mode.EVALUATE)
    ticks = 0
    while loop.is_running:
        loop.tick()
        ticks += 1

    assert ticks == 8
    assert _kinds(events, "episodeComplete") == []
    assert len(_kinds(events, "simulationEnded")) == 1
    assert loop.learner.exploration_rate == 0.0
    for table in loop.learner.tables:
        for row in table.values():
            assert not np.any(row)


def test_exploration_decays_monotonically_to_floor(loop):
    params = SimulationParameters(num_episodes=2, max_steps=40, exploration_decay=0.9, min_exploration_rate=0.05)
    loop.start(params)
    rates = [loop.learner.exploration_rate]
    while loop.is_running:
        loop.tick()
        rates.append(loop.learner.exploration_rate)
    assert all(b <= a for a, b in zip(rates, rates[1:]))
    assert min(rates) >= 0.05
    assert rates[-1] == pytest.approx(0.05)


def test_stop_between_ticks(loop, events, short_params):
    loop.start(short_params)
    loop.tick()
    loop.stop()
    assert loop.state is LoopState.ENDED
    ended = _kinds(events, "simulationEnded")
    assert len(ended) == 1
    assert ended[0]["message"] == STOPPED_MESSAGE
    with pytest.raises(RuntimeError):
        loop.tick()
    loop.stop()
    assert len(_kinds(events, "simulationEnded")) == 1


def test_stop_from_listener_takes_effect_after_tick(loop, events, short_params):
    def stop_on_second(kind, payload):
        if kind == "simulationUpdate" and payload["stepIndex"] == 2:
            loop.stop()

    loop.add_listener(stop_on_second)
    loop.start(short_params)
    first = loop.tick()
    assert not first.ended
    second = loop.tick()
    assert second.ended
    assert loop.state is LoopState.ENDED
    ended = _kinds(events, "simulationEnded")
    assert len(ended) == 1
    assert ended[0]["message"] == STOPPED_MESSAGE


def test_stop_on_final_tick_skips_episode_bookkeeping(loop, events):
    def stop_on_last(kind, payload):
        if kind == "simulationUpdate" and payload["stepIndex"] == 3:
            loop.stop()

    loop.add_listener(stop_on_last)
    loop.start(SimulationParameters(num_episodes=5, max_steps=3))
    while loop.is_running:
        loop.tick()
    assert _kinds(events, "episodeComplete") == []
    assert loop.stats.episode_lengths == []
    assert [p["message"] for p in _kinds(events, "simulationEnded")] == [STOPPED_MESSAGE]


def test_knockout_ends_episode_early(loop, events):
    loop.start(SimulationParameters(num_episodes=2, max_steps=50))
    loop.agents[1].health = 0.0
    result = loop.tick()
    assert result.episode_done
    assert result.step_index == 1
    assert loop.stats.episode_lengths == [1]
    assert len(_kinds(events, "episodeComplete")) == 1
    # New episode starts with fresh agents.
    assert loop.agents[1].health == MAX_HEALTH
    assert loop.step_count == 0


def test_bounds_hold_over_many_ticks(loop):
    loop.start(SimulationParameters(num_episodes=4, max_steps=60))
    while loop.is_running:
        result = loop.tick()
        for state in result.agent_states:
            assert 0.0 <= state["health"] <= MAX_HEALTH
            assert 0.0 <= state["energy"] <= MAX_ENERGY
            assert np.all(np.isfinite(state["position"]))


def test_tables_persist_across_episodes(loop):
    loop.start(SimulationParameters(num_episodes=2, max_steps=5))
    for _ in range(5):
        loop.tick()
    assert loop.stats.episode_index == 1
    size_after_first = loop.learner.table_size(0)
    assert size_after_first > 0
    while loop.is_running:
        loop.tick()
    assert loop.learner.table_size(0) >= size_after_first


def test_tick_payload_shape(loop, events):
    loop.start(SimulationParameters(num_episodes=1, max_steps=3))
    result = loop.tick()
    payload = _kinds(events, "simulationUpdate")[0]
    assert set(payload) == {"agentStates", "stepIndex", "rewards"}
    assert [s["id"] for s in payload["agentStates"]] == [0, 1]
    assert payload["rewards"] == list(result.rewards)
    assert result.to_payload() == payload


def test_removed_listener_is_not_called(loop, short_params):
    seen = []

    def listener(kind, payload):
        seen.append(kind)

    loop.add_listener(listener)
    loop.remove_listener(listener)
    loop.start(short_params)
    loop.tick()
    assert seen == []


def test_same_seed_same_run(short_params):
    def run(seed):
        loop = SimulationLoop(seed=seed)
        loop.start(short_params)
        payloads = []
        while loop.is_running:
            payloads.append(loop.tick().to_payload())
        return payloads, loop.stats.to_dict()

    assert run(11) == run(11)


def test_restart_after_end_begins_fresh_run(loop, short_params):
    loop.start(short_params)
    while loop.is_running:
        loop.tick()
    loop.start(SimulationParameters(num_episodes=1, max_steps=2), "evaluate")
    assert loop.state is LoopState.RUNNING
    assert loop.stats.episode_lengths == []
    assert loop.step_count == 0


def test_snapshot_refused_inside_tick(loop, short_params):
    errors = []

    def grab(kind, payload):
        try:
            loop.export_snapshot()
        except RuntimeError as exc:
            errors.append(exc)

    loop.add_listener(grab)
    loop.start(short_params)
    loop.tick()
    assert errors
    assert "qTables" in loop.export_snapshot()


def test_training_after_evaluation_restores_exploration(loop):
    loop.start(SimulationParameters(num_episodes=1, max_steps=2, min_exploration_rate=0.05), "evaluate")
    assert loop.learner.exploration_rate == 0.05
    loop.stop()
    loop.start(SimulationParameters(num_episodes=1, max_steps=2, exploration_rate=0.8), "train")
    assert loop.learner.exploration_rate == 0.8
