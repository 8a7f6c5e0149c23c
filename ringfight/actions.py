from __future__ import annotations

from enum import IntEnum

from .config import STRIKE_LONG, STRIKE_SHORT

ACTION_DIM = 8


class ActionIndex(IntEnum):
    ADVANCE = 0
    RETREAT = 1
    STRAFE_LEFT = 2
    STRAFE_RIGHT = 3
    STRIKE_SHORT = 4  # Short range, small stun
    STRIKE_LONG = 5  # Longer reach, bigger stun and knockback
    GUARD = 6  # Halves incoming strike damage until the next non-guard action
    IDLE = 7  # Regenerates energy


MOVEMENT_ACTIONS = frozenset(
    {ActionIndex.ADVANCE, ActionIndex.RETREAT, ActionIndex.STRAFE_LEFT, ActionIndex.STRAFE_RIGHT}
)

# Energy spent per action, before idle regeneration.
ENERGY_COST: dict[ActionIndex, float] = {
    ActionIndex.ADVANCE: 1.0,
    ActionIndex.RETREAT: 1.0,
    ActionIndex.STRAFE_LEFT: 1.0,
    ActionIndex.STRAFE_RIGHT: 1.0,
    ActionIndex.STRIKE_SHORT: STRIKE_SHORT.energy_cost,
    ActionIndex.STRIKE_LONG: STRIKE_LONG.energy_cost,
    ActionIndex.GUARD: 2.0,
    ActionIndex.IDLE: 0.0,
}


def parse_action(action: int) -> ActionIndex:
    """Coerce an integer action index, rejecting anything outside the action set."""
    if isinstance(action, bool):
        raise ValueError(f"Unknown action index: {action!r}")
    try:
        return ActionIndex(int(action))
    except (TypeError, ValueError):
        raise ValueError(f"Unknown action index: {action!r} (expected 0..{ACTION_DIM - 1})") from None
