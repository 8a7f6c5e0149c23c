import pytest
from pydantic import ValidationError

from ringfight.payloads import AgentStatePayload, EndPayload, EpisodePayload, StartRequest, TickPayload


def _state(**overrides):
    state = {
        "id": 0,
        "position": [2.0, 0.95, 0.0],
        "velocity": [0.0, 0.0, 0.0],
        "orientation": 0.0,
        "health": 100.0,
        "energy": 100.0,
        "stunned": False,
        "isGrounded": True,
    }
    state.update(overrides)
    return state


def test_tick_payload_uses_wire_names(agents):
    a0, a1 = agents
    payload = TickPayload(agent_states=[a0.state(), a1.state()], step_index=1, rewards=[0.5, -0.5])
    d = payload.model_dump(by_alias=True)
    assert set(d) == {"agentStates", "stepIndex", "rewards"}
    assert d["agentStates"][1]["id"] == 1
    assert "isGrounded" in d["agentStates"][0]


def test_tick_payload_accepts_wire_names():
    payload = TickPayload.model_validate({"agentStates": [_state(), _state(id=1)], "stepIndex": 3, "rewards": [0, 0]})
    assert payload.step_index == 3


@pytest.mark.parametrize("overrides", [{"health": -1.0}, {"energy": 101.0}, {"position": [0.0, 0.0]}])
def test_agent_state_bounds(overrides):
    with pytest.raises(ValidationError):
        AgentStatePayload.model_validate(_state(**overrides))


def test_tick_payload_requires_two_agents():
    with pytest.raises(ValidationError):
        TickPayload.model_validate({"agentStates": [_state()], "stepIndex": 1, "rewards": [0.0, 0.0]})


def test_episode_payload():
    d = EpisodePayload(episode_index=2, win_tally=[1, 0, 1], exploration_rate=0.4).model_dump(by_alias=True)
    assert d == {"episodeIndex": 2, "winTally": [1, 0, 1], "explorationRate": 0.4}
    with pytest.raises(ValidationError):
        EpisodePayload(episode_index=2, win_tally=[1, 0], exploration_rate=0.4)


def test_end_payload_optional_fields():
    d = EndPayload(message="bye").model_dump(by_alias=True)
    assert d == {"finalStats": None, "message": "bye"}


def test_start_request_mode():
    req = StartRequest.model_validate({"parameters": {"maxSteps": 5}, "mode": "evaluate", "socketId": "x"})
    assert req.mode == "evaluate"
    with pytest.raises(ValidationError):
        StartRequest.model_validate({"mode": "watch"})
