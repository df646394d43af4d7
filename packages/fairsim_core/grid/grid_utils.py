"""Coordinate helpers shared by the grid, movement and conversation modules."""

from __future__ import annotations

from typing import Any, Sequence

# up, down, left, right
CARDINAL_DELTAS: tuple[tuple[int, int], ...] = ((0, -1), (0, 1), (-1, 0), (1, 0))


def is_valid_position(size: int, x: int, y: int) -> bool:
    return 0 <= x < size and 0 <= y < size


def adjacent_positions(size: int, x: int, y: int) -> list[tuple[int, int]]:
    """Cardinal neighbours of ``(x, y)`` in scan order, clipped to the grid."""
    out: list[tuple[int, int]] = []
    for dx, dy in CARDINAL_DELTAS:
        nx, ny = x + dx, y + dy
        if not is_valid_position(size, nx, ny):
            continue
        out.append((nx, ny))
    return out


def are_adjacent(a: tuple[int, int], b: tuple[int, int]) -> bool:
    dx = abs(a[0] - b[0])
    dy = abs(a[1] - b[1])
    return (dx == 1 and dy == 0) or (dx == 0 and dy == 1)


def find_agent_at(grid: Sequence[Sequence[Any]], size: int, x: int, y: int) -> Any | None:
    if not is_valid_position(size, x, y):
        return None
    return grid[y][x].agent
