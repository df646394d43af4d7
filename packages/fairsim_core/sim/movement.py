"""Random-walk movement with obstacle/agent collision and conversation lock."""

from __future__ import annotations

import random
from typing import Callable

from .state import Agent, SpatialGrid

BusyCheck = Callable[[Agent], bool]


def _is_busy(agent: Agent) -> bool:
    return bool(agent.in_conversation)


def move_agent(
    grid: SpatialGrid,
    agent: Agent,
    new_x: int,
    new_y: int,
    *,
    is_busy: BusyCheck = _is_busy,
) -> bool:
    # target may be stale by the time the move is committed
    if is_busy(agent):
        return False
    if not grid.is_valid_position(new_x, new_y):
        return False
    if not grid.is_walkable(new_x, new_y):
        return False
    grid.relocate(agent, new_x, new_y)
    agent.distance_traveled += 1
    return True


def walkable_neighbors(grid: SpatialGrid, agent: Agent) -> list[tuple[int, int]]:
    return [(x, y) for x, y in grid.adjacent_positions(agent.x, agent.y) if grid.is_walkable(x, y)]


def move_agent_randomly(
    grid: SpatialGrid,
    agent: Agent,
    *,
    rng: random.Random | None = None,
    is_busy: BusyCheck = _is_busy,
) -> bool:
    if is_busy(agent):
        return False
    options = walkable_neighbors(grid, agent)
    if not options:
        return False
    chooser = rng or random
    x, y = options[chooser.randrange(len(options))]
    return move_agent(grid, agent, x, y, is_busy=is_busy)
