"""Conversation lifecycle: pairing, completion hand-off, close, cooldown and cleanup."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import random
import time
from typing import Any, Callable, Mapping, Optional, Protocol

from packages.fairsim_core.grid.grid_utils import are_adjacent

from .scoring.ending import conversation_type_for
from .scoring.interaction import InteractionScore, _as_float, _string_list, score_interaction
from .settings import SimulationSettings
from .state import Agent, SpatialGrid

logger = logging.getLogger("fairsim_core.sim.conversations")

SAME_KIND_QUALITY = 0.3

Clock = Callable[[], int]
Scorer = Callable[..., tuple[InteractionScore, bool, dict[str, Any]]]


def _now_ms() -> int:
    return int(time.time() * 1000)


class ConversationInvariantError(AssertionError):
    """Raised when the matcher produces an impossible pairing."""


@dataclass
class Conversation:
    """One pairing of two agents.

    The dialogue collaborator only appends messages and flips ``is_complete``;
    every other field is written by :class:`ConversationManager` on the tick.
    """

    conversation_id: str
    participants: tuple[int, int]
    conversation_type: str
    start_time_ms: int
    quality: float
    duration_ms: int = 0
    end_time_ms: int | None = None
    is_active: bool = True
    is_complete: bool = False
    ending_scheduled: bool = False
    close_due_ms: int | None = None
    messages: list[dict[str, Any]] = field(default_factory=list)
    score: dict[str, Any] | None = None
    job_offer: bool | None = None

    def __post_init__(self) -> None:
        a, b = self.participants
        if a == b:
            raise ConversationInvariantError(f"Conversation {self.conversation_id} pairs agent {a} with itself")

    @property
    def message_count(self) -> int:
        return len(self.messages)

    def involves(self, agent_id: int) -> bool:
        return agent_id in self.participants

    def partner_for(self, agent_id: int) -> int | None:
        a, b = self.participants
        if agent_id == a:
            return b
        if agent_id == b:
            return a
        return None

    def add_message(self, speaker: Agent, text: str, *, timestamp_ms: int | None = None) -> None:
        self.messages.append(
            {
                "speaker_id": speaker.agent_id,
                "speaker_name": speaker.display_name,
                "text": str(text),
                "timestamp_ms": int(timestamp_ms if timestamp_ms is not None else _now_ms()),
            }
        )

    def mark_complete(self) -> None:
        self.is_complete = True

    def to_dict(self, *, include_messages: bool = False) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.conversation_id,
            "participants": list(self.participants),
            "conversation_type": self.conversation_type,
            "start_time_ms": self.start_time_ms,
            "end_time_ms": self.end_time_ms,
            "duration_ms": self.duration_ms,
            "quality": round(self.quality, 3),
            "is_active": self.is_active,
            "is_complete": self.is_complete,
            "ending_scheduled": self.ending_scheduled,
            "message_count": self.message_count,
            "score": self.score,
            "job_offer": self.job_offer,
        }
        if include_messages:
            out["messages"] = [dict(m) for m in self.messages]
        return out


class DialogueLauncher(Protocol):
    def launch(self, conversation: Conversation, agent_a: Agent, agent_b: Agent) -> Any:
        """Start producing turns; must never raise and must eventually mark the conversation complete."""


def student_recruiter_compatibility(student: Agent, recruiter: Agent) -> float:
    compatibility = 0.5
    skills = _string_list(student.stats.get("skills"))
    requirements = _string_list(recruiter.stats.get("requirements"))
    overlap = len([skill for skill in skills if skill in requirements])
    max_skills = max(len(skills), len(requirements))
    if max_skills > 0:
        compatibility += (overlap / max_skills) * 0.3

    experience = _as_float(student.stats.get("experience"))
    required = _as_float(recruiter.stats.get("experience_required"))
    if required <= 0 or experience >= required:
        compatibility += 0.2
    else:
        compatibility += max(0.0, experience / required) * 0.2
    return min(compatibility, 1.0)


def conversation_quality(a: Agent, b: Agent) -> float:
    if a.is_student == b.is_student:
        return SAME_KIND_QUALITY
    if a.is_student:
        return student_recruiter_compatibility(a, b)
    return student_recruiter_compatibility(b, a)


class ConversationManager:
    """Sole writer of agents' conversation fields.

    ``conversations`` keeps closed conversations until :meth:`cleanup` evicts
    them; ``agent_conversations`` indexes only the active ones.
    """

    def __init__(
        self,
        grid: SpatialGrid,
        *,
        settings: SimulationSettings | None = None,
        dialogue: Optional[DialogueLauncher] = None,
        scorer: Scorer = score_interaction,
        clock: Clock = _now_ms,
        rng: random.Random | None = None,
    ) -> None:
        self.grid = grid
        self.settings = settings or SimulationSettings()
        self.dialogue = dialogue
        self._scorer = scorer
        self._clock = clock
        self._rng = rng
        self.conversations: dict[str, Conversation] = {}
        self.agent_conversations: dict[int, str] = {}
        self._next_conversation_id = 0

    # -- lookups -----------------------------------------------------------

    def is_agent_in_conversation(self, agent_id: int) -> bool:
        return agent_id in self.agent_conversations

    def is_busy(self, agent: Agent) -> bool:
        return agent.in_conversation or self.is_agent_in_conversation(agent.agent_id)

    def is_eligible(self, agent: Agent) -> bool:
        return not self.is_busy(agent) and agent.cooldown_ticks <= 0

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        return self.conversations.get(str(conversation_id))

    def get_agent_conversation(self, agent_id: int) -> Conversation | None:
        conversation_id = self.agent_conversations.get(agent_id)
        if not conversation_id:
            return None
        return self.conversations.get(conversation_id)

    def get_active_conversations(self) -> list[Conversation]:
        return [c for c in self.conversations.values() if c.is_active]

    # -- pairing -----------------------------------------------------------

    def check_for_conversations(self) -> list[Conversation]:
        """Greedy single pass: ascending agent id, neighbours up/down/left/right."""
        created: list[Conversation] = []
        for agent in self.grid.agents:
            if not self.is_eligible(agent):
                continue
            for x, y in self.grid.adjacent_positions(agent.x, agent.y):
                other = self.grid.find_agent_at(x, y)
                if other is None or not self.is_eligible(other):
                    continue
                created.append(self.create_conversation(agent, other))
                break
        return created

    def create_conversation(self, agent_a: Agent, agent_b: Agent) -> Conversation:
        for agent in (agent_a, agent_b):
            if self.is_agent_in_conversation(agent.agent_id):
                raise ConversationInvariantError(
                    f"Agent {agent.agent_id} is already in {self.agent_conversations[agent.agent_id]}"
                )
        if not are_adjacent(agent_a.position, agent_b.position):
            raise ConversationInvariantError(
                f"Agents {agent_a.agent_id} and {agent_b.agent_id} are not orthogonally adjacent"
            )
        conversation = Conversation(
            conversation_id=f"conv_{self._next_conversation_id}",
            participants=(agent_a.agent_id, agent_b.agent_id),
            conversation_type=conversation_type_for(agent_a.is_student, agent_b.is_student),
            start_time_ms=self._clock(),
            quality=conversation_quality(agent_a, agent_b),
        )
        self._next_conversation_id += 1
        self.conversations[conversation.conversation_id] = conversation
        self.agent_conversations[agent_a.agent_id] = conversation.conversation_id
        self.agent_conversations[agent_b.agent_id] = conversation.conversation_id
        self._engage(agent_a, agent_b, conversation.conversation_id)
        self._engage(agent_b, agent_a, conversation.conversation_id)
        logger.info(
            "[CONVO] %s started: %s <-> %s (%s, quality=%.2f)",
            conversation.conversation_id,
            agent_a.display_name,
            agent_b.display_name,
            conversation.conversation_type,
            conversation.quality,
        )

        if self.dialogue is None:
            conversation.mark_complete()
        else:
            self.dialogue.launch(conversation, agent_a, agent_b)
        return conversation

    @staticmethod
    def _engage(agent: Agent, partner: Agent, conversation_id: str) -> None:
        agent.in_conversation = True
        agent.conversation_partner = partner.agent_id
        agent.conversation_id = conversation_id

    # -- per-frame upkeep --------------------------------------------------

    def handle_conversations(self, frame_count: int = 0) -> list[str]:
        """Advance active conversations; returns ids closed during this call."""
        now = self._clock()
        closed: list[str] = []
        for conversation in self.get_active_conversations():
            conversation.duration_ms = now - conversation.start_time_ms
            if conversation.is_complete and not conversation.ending_scheduled:
                conversation.ending_scheduled = True
                conversation.close_due_ms = now + self.settings.ending_delay_ms
                logger.debug("[CONVO] %s complete, closing at %s", conversation.conversation_id, conversation.close_due_ms)
            if conversation.ending_scheduled and conversation.close_due_ms is not None and now >= conversation.close_due_ms:
                if self.end_conversation(conversation.conversation_id):
                    closed.append(conversation.conversation_id)

        self.synchronize_agent_states()

        interval = max(1, self.settings.cleanup_interval_frames)
        if frame_count and frame_count % interval == 0:
            self.cleanup(self.settings.conversation_retention_ms)
        return closed

    def synchronize_agent_states(self) -> None:
        for agent in self.grid.agents:
            agent.clear_conversation()
        for conversation in self.get_active_conversations():
            a_id, b_id = conversation.participants
            agent_a = self.grid.get_agent(a_id)
            agent_b = self.grid.get_agent(b_id)
            if agent_a is None or agent_b is None:
                continue
            self._engage(agent_a, agent_b, conversation.conversation_id)
            self._engage(agent_b, agent_a, conversation.conversation_id)

    def decay_cooldowns(self) -> None:
        for agent in self.grid.agents:
            if agent.cooldown_ticks > 0 and not self.is_busy(agent):
                agent.cooldown_ticks -= 1

    def end_conversation(self, conversation_id: str) -> bool:
        conversation = self.conversations.get(str(conversation_id))
        if conversation is None or not conversation.is_active:
            return False

        conversation.is_active = False
        conversation.end_time_ms = self._clock()
        conversation.duration_ms = conversation.end_time_ms - conversation.start_time_ms

        participants = [self.grid.get_agent(agent_id) for agent_id in conversation.participants]
        present = [agent for agent in participants if agent is not None]
        if len(present) == 2 and present[0].is_student != present[1].is_student:
            student, recruiter = (present[0], present[1]) if present[0].is_student else (present[1], present[0])
            score, offered, _ = self._scorer(
                student,
                recruiter,
                self._conversation_meta(conversation),
                rng=self._rng,
                timestamp_ms=conversation.end_time_ms,
            )
            conversation.score = score.as_dict()
            conversation.job_offer = offered

        for agent_id in conversation.participants:
            agent = self.grid.get_agent(agent_id)
            if agent is not None:
                agent.clear_conversation()
                agent.cooldown_ticks = self.settings.cooldown_ticks
            if self.agent_conversations.get(agent_id) == conversation.conversation_id:
                self.agent_conversations.pop(agent_id, None)

        logger.info(
            "[CONVO] %s closed after %sms (%s messages)",
            conversation.conversation_id,
            conversation.duration_ms,
            conversation.message_count,
        )
        return True

    @staticmethod
    def _conversation_meta(conversation: Conversation) -> Mapping[str, Any]:
        return {
            "duration_ms": conversation.duration_ms,
            "message_count": conversation.message_count,
        }

    def cleanup(self, max_age_ms: int = 60_000) -> int:
        now = self._clock()
        stale = [
            conversation_id
            for conversation_id, conversation in self.conversations.items()
            if not conversation.is_active
            and conversation.end_time_ms is not None
            and now - conversation.end_time_ms > max_age_ms
        ]
        for conversation_id in stale:
            self.conversations.pop(conversation_id, None)
        if stale:
            logger.debug("[CONVO] Evicted %d closed conversations", len(stale))
        return len(stale)

    # -- reporting ---------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        active = self.get_active_conversations()
        every = list(self.conversations.values())
        average_duration = sum(c.duration_ms for c in every) / len(every) if every else 0.0
        average_quality = sum(c.quality for c in active) / len(active) if active else 0.0
        return {
            "active_count": len(active),
            "total_count": self._next_conversation_id,
            "retained_count": len(every),
            "average_duration_ms": round(average_duration, 1),
            "average_quality": round(average_quality, 3),
        }

    def snapshot(self) -> dict[str, Any]:
        return {
            "active_conversations": [
                {
                    "id": c.conversation_id,
                    "participants": list(c.participants),
                    "conversation_type": c.conversation_type,
                    "duration_ms": c.duration_ms,
                    "quality": round(c.quality, 3),
                    "is_complete": c.is_complete,
                }
                for c in self.get_active_conversations()
            ],
            "stats": self.get_stats(),
        }
