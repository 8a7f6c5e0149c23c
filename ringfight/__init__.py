from .actions import ACTION_DIM, ActionIndex
from .config import AgentSpec, DiscretizationMode, PhysicsConfig, SimulationParameters
from .rl.qlearning import QLearner
from .sim.agent import Agent
from .sim.world import PhysicsWorld
from .training.loop import LoopState, Mode, SimulationLoop

__all__ = [
    "ACTION_DIM",
    "ActionIndex",
    "Agent",
    "AgentSpec",
    "DiscretizationMode",
    "LoopState",
    "Mode",
    "PhysicsConfig",
    "PhysicsWorld",
    "QLearner",
    "SimulationLoop",
    "SimulationParameters",
]
