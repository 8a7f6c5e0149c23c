import numpy as np
import pytest

from ringfight.config import DiscretizationMode
from ringfight.env.observations import OBS_DIM, OBS_REL_X
from ringfight.rl.discretize import coarse_key, full_key, round_to_grid, state_key


@pytest.mark.parametrize(
    ("value", "steps", "expected"),
    [
        (0.25, 2, 0.5),
        (-0.25, 2, 0.0),
        (0.75, 2, 1.0),
        (-0.75, 2, -0.5),
        (0.5, 5, 0.6),
        (-0.5, 5, -0.4),
        (1.0, 5, 1.0),
        (0.0, 5, 0.0),
    ],
)
def test_round_half_up(value, steps, expected):
    assert round_to_grid(value, steps) == pytest.approx(expected)


def test_coarse_key_of_spawn_observation(agents):
    a0, a1 = agents
    key = coarse_key(a0.observe(a1))
    assert key == "-0.5,0.0,0.5,0.5,1.0,1.0"


def test_full_key_covers_every_feature(agents):
    a0, a1 = agents
    key = full_key(a0.observe(a1))
    parts = key.split(",")
    assert len(parts) == OBS_DIM
    assert parts[0] == "0.4"
    assert parts[14] == "-1.0"


def test_nearby_observations_share_a_key(agents):
    a0, a1 = agents
    obs = a0.observe(a1)
    nudged = obs.copy()
    nudged[OBS_REL_X] += 0.01
    assert coarse_key(obs) == coarse_key(nudged)
    far = obs.copy()
    far[OBS_REL_X] = 1.0
    assert coarse_key(obs) != coarse_key(far)


def test_key_is_order_sensitive():
    obs = np.zeros(OBS_DIM)
    swapped = obs.copy()
    obs[18] = 1.0
    swapped[19] = 1.0
    assert state_key(obs, DiscretizationMode.COARSE) != state_key(swapped, DiscretizationMode.COARSE)


def test_negative_zero_is_folded():
    obs = np.zeros(OBS_DIM)
    obs[:] = -0.0
    assert "-" not in full_key(obs)


def test_wrong_length_is_rejected():
    with pytest.raises(ValueError):
        state_key(np.zeros(OBS_DIM - 1), DiscretizationMode.FULL)
