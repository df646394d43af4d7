"""In-memory career fair simulation and its process-wide runtime."""

from __future__ import annotations

from contextlib import contextmanager
import logging
import random
import threading
from typing import Any, Iterator, Optional

from packages.fairsim_core.grid.obstacles import (
    DEFAULT_OBSTACLE_POSITIONS,
    DEFAULT_RECRUITER_POSITIONS,
    DEFAULT_STUDENT_POSITIONS,
)

from .conversations import Clock, Conversation, ConversationManager, DialogueLauncher, _now_ms
from .leaderboard import build_leaderboard
from .movement import move_agent_randomly
from .settings import SimulationSettings
from .state import RECRUITER, STUDENT, Agent, Obstacle, SpatialGrid
from .stats import generate_agent_stats

logger = logging.getLogger("fairsim_core.sim.runner")


class SimulationBusyError(RuntimeError):
    """The runtime lock could not be acquired in time."""


class FairSimulation:
    """One fair floor: grid, agents, conversations and the frame loop.

    Not re-entrant. A frame runs cooldown decay, pairing, conversation upkeep
    and movement to completion before the next one may start.
    """

    def __init__(
        self,
        *,
        size: int | None = None,
        settings: SimulationSettings | None = None,
        dialogue: Optional[DialogueLauncher] = None,
        clock: Clock = _now_ms,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings or SimulationSettings()
        self.grid = SpatialGrid(size if size is not None else self.settings.grid_size)
        self._rng = rng
        self.conversations = ConversationManager(
            self.grid,
            settings=self.settings,
            dialogue=dialogue,
            clock=clock,
            rng=rng,
        )
        self.frame_count = 0

    @property
    def size(self) -> int:
        return self.grid.size

    @property
    def agents(self) -> list[Agent]:
        return self.grid.agents

    def add_obstacle(self, x: int, y: int) -> Obstacle | None:
        return self.grid.add_obstacle(x, y)

    def add_agent(self, x: int, y: int, kind: str, *, stats: dict[str, Any] | None = None) -> Agent | None:
        if stats is None:
            stats = generate_agent_stats(str(kind).strip().lower(), self._rng)
        agent = self.grid.add_agent(x, y, kind, stats=stats)
        if agent is not None:
            logger.debug("[SIM] Placed %s %s at (%s, %s)", agent.kind, agent.agent_id, x, y)
        return agent

    def seed_default_world(self) -> None:
        placed = [self.add_obstacle(x, y) for x, y in DEFAULT_OBSTACLE_POSITIONS]
        for x, y in DEFAULT_STUDENT_POSITIONS:
            self.add_agent(x, y, STUDENT)
        for x, y in DEFAULT_RECRUITER_POSITIONS:
            self.add_agent(x, y, RECRUITER)
        logger.info(
            "[SIM] Seeded default floor: %d obstacles, %d agents",
            len([o for o in placed if o is not None]),
            len(self.agents),
        )

    def process_frame(self) -> dict[str, Any]:
        self.frame_count += 1
        self.conversations.decay_cooldowns()
        started = self.conversations.check_for_conversations()
        closed = self.conversations.handle_conversations(self.frame_count)
        moved = 0
        for agent in self.agents:
            if move_agent_randomly(self.grid, agent, rng=self._rng, is_busy=self.conversations.is_busy):
                moved += 1
        return {
            "frame": self.frame_count,
            "started": [c.conversation_id for c in started],
            "closed": closed,
            "moved": moved,
        }

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        return self.conversations.get_conversation(conversation_id)

    def leaderboard(self) -> dict[str, Any]:
        return build_leaderboard(self.agents)

    def snapshot(self) -> dict[str, Any]:
        conversation_state = self.conversations.snapshot()
        return {
            "size": self.size,
            "frame_count": self.frame_count,
            "grid": self.grid.cells_snapshot(),
            "agents": [agent.to_dict() for agent in self.agents],
            "obstacles": [obstacle.to_dict() for obstacle in self.grid.obstacles()],
            "active_conversations": conversation_state["active_conversations"],
            "conversation_stats": conversation_state["stats"],
        }


def _default_dialogue() -> DialogueLauncher:
    from packages.fairsim_core.llm.dialogue import DialogueGenerator

    return DialogueGenerator()


def build_simulation(
    *,
    size: int | None = None,
    seed_default_world: bool | None = None,
    settings: SimulationSettings | None = None,
    dialogue: Optional[DialogueLauncher] = None,
) -> FairSimulation:
    resolved = settings or SimulationSettings.from_env()
    simulation = FairSimulation(size=size, settings=resolved, dialogue=dialogue or _default_dialogue())
    seed = resolved.seed_default_world if seed_default_world is None else seed_default_world
    if seed:
        simulation.seed_default_world()
    return simulation


_SIMULATION: FairSimulation | None = None
_RUNNER_LOCK = threading.RLock()


@contextmanager
def _acquire_or_raise(timeout: float | None = None) -> Iterator[None]:
    wait = SimulationSettings.from_env().lock_timeout_seconds if timeout is None else timeout
    if not _RUNNER_LOCK.acquire(timeout=max(0.0, float(wait))):
        raise SimulationBusyError("Simulation is busy, retry shortly")
    try:
        yield
    finally:
        _RUNNER_LOCK.release()


def _current() -> FairSimulation:
    global _SIMULATION
    if _SIMULATION is None:
        _SIMULATION = build_simulation()
    return _SIMULATION


def reset_simulation(
    *,
    size: int | None = None,
    seed_default_world: bool | None = None,
    dialogue: Optional[DialogueLauncher] = None,
) -> dict[str, Any]:
    global _SIMULATION
    with _acquire_or_raise():
        previous = _SIMULATION
        _SIMULATION = build_simulation(size=size, seed_default_world=seed_default_world, dialogue=dialogue)
        if previous is not None:
            shutdown = getattr(previous.conversations.dialogue, "shutdown", None)
            if callable(shutdown):
                shutdown(wait=False)
        return _SIMULATION.snapshot()


def reset_simulation_for_tests(*, dialogue: Optional[DialogueLauncher] = None) -> None:
    """Empty floor; with no dialogue, conversations complete as soon as they start."""
    global _SIMULATION
    with _RUNNER_LOCK:
        _SIMULATION = FairSimulation(settings=SimulationSettings.from_env(), dialogue=dialogue)


def get_simulation_state() -> dict[str, Any]:
    with _acquire_or_raise():
        return _current().snapshot()


def tick_simulation(*, frames: int = 1) -> dict[str, Any]:
    with _acquire_or_raise():
        simulation = _current()
        results = [simulation.process_frame() for _ in range(max(1, int(frames)))]
        return {
            "frames": len(results),
            "started": [cid for r in results for cid in r["started"]],
            "closed": [cid for r in results for cid in r["closed"]],
            "state": simulation.snapshot(),
        }


def place_agent(*, x: int, y: int, kind: str, stats: dict[str, Any] | None = None) -> dict[str, Any] | None:
    with _acquire_or_raise():
        agent = _current().add_agent(x, y, kind, stats=stats)
        return agent.to_dict() if agent is not None else None


def place_obstacle(*, x: int, y: int) -> dict[str, Any] | None:
    with _acquire_or_raise():
        obstacle = _current().add_obstacle(x, y)
        return obstacle.to_dict() if obstacle is not None else None


def get_conversation_detail(conversation_id: str) -> dict[str, Any] | None:
    with _acquire_or_raise():
        conversation = _current().get_conversation(conversation_id)
        return conversation.to_dict(include_messages=True) if conversation is not None else None


def get_conversation_stats() -> dict[str, Any]:
    with _acquire_or_raise():
        return _current().conversations.get_stats()


def get_leaderboard() -> dict[str, Any]:
    with _acquire_or_raise():
        return _current().leaderboard()
