"""Grid geometry primitives for FairSim."""

from .grid_utils import CARDINAL_DELTAS, adjacent_positions, are_adjacent, find_agent_at, is_valid_position
from .obstacles import (
    DEFAULT_OBSTACLE_POSITIONS,
    DEFAULT_RECRUITER_POSITIONS,
    DEFAULT_STUDENT_POSITIONS,
    obstacle_id,
)

__all__ = [
    "CARDINAL_DELTAS",
    "adjacent_positions",
    "are_adjacent",
    "find_agent_at",
    "is_valid_position",
    "DEFAULT_OBSTACLE_POSITIONS",
    "DEFAULT_RECRUITER_POSITIONS",
    "DEFAULT_STUDENT_POSITIONS",
    "obstacle_id",
]
