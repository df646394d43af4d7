"""Default obstacle layout for the career fair floor."""

from __future__ import annotations

DEFAULT_OBSTACLE_POSITIONS: tuple[tuple[int, int], ...] = (
    (2, 3),
    (4, 1),
    (7, 6),
    (1, 8),
    (8, 2),
    (5, 7),
    (3, 5),
    (9, 4),
    (6, 9),
    (0, 5),
)

DEFAULT_STUDENT_POSITIONS: tuple[tuple[int, int], ...] = ((0, 0), (9, 9), (5, 2), (3, 7))
DEFAULT_RECRUITER_POSITIONS: tuple[tuple[int, int], ...] = ((8, 1), (1, 6), (7, 8))


def obstacle_id(x: int, y: int) -> str:
    return f"obstacle_{x}_{y}"
