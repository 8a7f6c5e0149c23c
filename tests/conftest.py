import numpy as np
import pytest

from ringfight.config import PhysicsConfig, SimulationParameters
from ringfight.sim.agent import Agent
from ringfight.sim.body import RigidBody
from ringfight.sim.world import PhysicsWorld


@pytest.fixture
def world():
    return PhysicsWorld(PhysicsConfig())


@pytest.fixture
def frictionless_world():
    return PhysicsWorld(PhysicsConfig(friction=0.0))


@pytest.fixture
def make_body():
    def _make(pos, vel=(0.0, 0.0, 0.0), mass=80.0, radius=0.5, height=1.5, is_static=False) -> RigidBody:
        return RigidBody(
            pos=np.array(pos, dtype=np.float64),
            vel=np.array(vel, dtype=np.float64),
            mass=mass,
            radius=radius,
            height=height,
            is_static=is_static,
        )

    return _make


@pytest.fixture
def agents(world):
    return Agent(0, world), Agent(1, world)


@pytest.fixture
def place():
    """Move an agent's body to (x, z) on the ground and refresh its local mirror."""

    def _place(agent: Agent, x: float, z: float, vel=(0.0, 0.0, 0.0)) -> None:
        body = agent.world.get_body(agent.handle)
        body.pos = np.array([x, body.pos[1], z], dtype=np.float64)
        body.vel = np.array(vel, dtype=np.float64)
        agent.world.set_body(agent.handle, body)
        agent.sync_from_physics()

    return _place


@pytest.fixture
def short_params() -> SimulationParameters:
    return SimulationParameters(num_episodes=3, max_steps=5)
