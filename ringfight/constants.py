from __future__ import annotations

# ==============================================================================
# Match Composition
# ==============================================================================

# Two agents per match; agent 0 spawns on +x, agent 1 on -x.
NUM_AGENTS = 2

# Win tally slots: [agent 0 wins, agent 1 wins, draws]
DRAW_SLOT = 2
WIN_TALLY_SIZE = 3

# ==============================================================================
# Combat State
# ==============================================================================

MAX_HEALTH = 100.0
MAX_ENERGY = 100.0

# Energy restored by the idle action on top of its zero cost.
IDLE_ENERGY_REGEN = 2.0

# ==============================================================================
# Observation Normalisation
# ==============================================================================

# Velocities are divided by this before entering the observation.
VELOCITY_NORM = 10.0

# Relative offsets and agent separation are divided by this (ring diameter).
SEPARATION_NORM = 10.0
