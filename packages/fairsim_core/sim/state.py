"""Spatial grid and agent store for the FairSim floor."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any

from packages.fairsim_core.grid.grid_utils import adjacent_positions, find_agent_at, is_valid_position
from packages.fairsim_core.grid.obstacles import obstacle_id

logger = logging.getLogger("fairsim_core.sim.state")

STUDENT = "student"
RECRUITER = "recruiter"
AGENT_KINDS = (STUDENT, RECRUITER)

CELL_WALKABLE = "walkable"
CELL_OBSTACLE = "obstacle"
CELL_AGENT = "agent"


@dataclass(frozen=True)
class Obstacle:
    obstacle_id: str
    x: int
    y: int
    obstacle_type: str = "wall"

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.obstacle_id, "x": self.x, "y": self.y, "type": self.obstacle_type}


@dataclass(frozen=True)
class Cell:
    """One grid square. Exactly one of walkable / obstacle / agent."""

    kind: str = CELL_WALKABLE
    agent: Agent | None = None
    obstacle: Obstacle | None = None

    @property
    def walkable(self) -> bool:
        return self.kind == CELL_WALKABLE

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "agent_id": self.agent.agent_id if self.agent is not None else None,
            "obstacle_id": self.obstacle.obstacle_id if self.obstacle is not None else None,
            "in_conversation": bool(self.agent.in_conversation) if self.agent is not None else False,
        }


WALKABLE_CELL = Cell()


@dataclass(eq=False)
class Agent:
    """Live state for one student or recruiter on the floor.

    ``position`` is replaced as a whole tuple on every move; ``x`` and ``y`` are
    read-only views of it. Conversation fields are written only by the
    conversation lifecycle manager.
    """

    agent_id: int
    kind: str
    position: tuple[int, int]
    stats: dict[str, Any] = field(default_factory=dict)
    in_conversation: bool = False
    conversation_partner: int | None = None
    conversation_id: str | None = None
    cooldown_ticks: int = 0
    job_offers: int = 0
    recruiters_spoken_to: int = 0
    distance_traveled: int = 0
    total_interaction_score: float = 0.0
    interaction_history: list[dict[str, Any]] = field(default_factory=list)

    @property
    def x(self) -> int:
        return self.position[0]

    @property
    def y(self) -> int:
        return self.position[1]

    @property
    def is_student(self) -> bool:
        return self.kind == STUDENT

    @property
    def display_name(self) -> str:
        name = str(self.stats.get("name") or "").strip()
        if name:
            return name
        return f"Student {self.agent_id}" if self.is_student else f"Recruiter {self.agent_id}"

    def clear_conversation(self) -> None:
        self.in_conversation = False
        self.conversation_partner = None
        self.conversation_id = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.agent_id,
            "kind": self.kind,
            "is_student": self.is_student,
            "name": self.display_name,
            "position": [self.x, self.y],
            "in_conversation": self.in_conversation,
            "conversation_partner": self.conversation_partner,
            "conversation_id": self.conversation_id,
            "cooldown_ticks": self.cooldown_ticks,
            "job_offers": self.job_offers,
            "recruiters_spoken_to": self.recruiters_spoken_to,
            "distance_traveled": self.distance_traveled,
            "total_interaction_score": round(self.total_interaction_score, 1),
            "stats": dict(self.stats),
        }


class SpatialGrid:
    """Owns the cell array and the agent collection.

    Agents are kept in insertion order, which is also ascending id order.
    """

    def __init__(self, size: int = 10) -> None:
        if int(size) <= 0:
            raise ValueError("Grid size must be positive")
        self.size = int(size)
        self.cells: list[list[Cell]] = [[WALKABLE_CELL for _ in range(self.size)] for _ in range(self.size)]
        self.agents: list[Agent] = []
        self._agents_by_id: dict[int, Agent] = {}
        self._next_agent_id = 1

    def is_valid_position(self, x: int, y: int) -> bool:
        return is_valid_position(self.size, x, y)

    def adjacent_positions(self, x: int, y: int) -> list[tuple[int, int]]:
        return adjacent_positions(self.size, x, y)

    def get_cell(self, x: int, y: int) -> Cell | None:
        if not self.is_valid_position(x, y):
            return None
        return self.cells[y][x]

    def find_agent_at(self, x: int, y: int) -> Agent | None:
        return find_agent_at(self.cells, self.size, x, y)

    def is_walkable(self, x: int, y: int) -> bool:
        cell = self.get_cell(x, y)
        return cell is not None and cell.walkable

    def get_agent(self, agent_id: int | None) -> Agent | None:
        if agent_id is None:
            return None
        return self._agents_by_id.get(int(agent_id))

    def add_obstacle(self, x: int, y: int, *, obstacle_type: str = "wall") -> Obstacle | None:
        if not self.is_walkable(x, y):
            logger.debug("[GRID] Rejected obstacle placement at (%s, %s)", x, y)
            return None
        obstacle = Obstacle(obstacle_id=obstacle_id(x, y), x=x, y=y, obstacle_type=obstacle_type)
        self.cells[y][x] = Cell(kind=CELL_OBSTACLE, obstacle=obstacle)
        return obstacle

    def add_agent(self, x: int, y: int, kind: str, *, stats: dict[str, Any] | None = None) -> Agent | None:
        normalized = str(kind or "").strip().lower()
        if normalized not in AGENT_KINDS:
            raise ValueError(f"Unknown agent kind: {kind}")
        if not self.is_walkable(x, y):
            logger.debug("[GRID] Rejected %s placement at (%s, %s)", normalized, x, y)
            return None
        agent = Agent(
            agent_id=self._next_agent_id,
            kind=normalized,
            position=(x, y),
            stats=dict(stats or {}),
        )
        self._next_agent_id += 1
        self.cells[y][x] = Cell(kind=CELL_AGENT, agent=agent)
        self.agents.append(agent)
        self._agents_by_id[agent.agent_id] = agent
        return agent

    def relocate(self, agent: Agent, x: int, y: int) -> None:
        """Move ``agent``'s occupancy to ``(x, y)``. Callers validate first."""
        old_x, old_y = agent.position
        self.cells[old_y][old_x] = WALKABLE_CELL
        self.cells[y][x] = Cell(kind=CELL_AGENT, agent=agent)
        agent.position = (x, y)

    def obstacles(self) -> list[Obstacle]:
        return [cell.obstacle for row in self.cells for cell in row if cell.obstacle is not None]

    def cells_snapshot(self) -> list[list[dict[str, Any]]]:
        return [[cell.to_dict() for cell in row] for row in self.cells]
