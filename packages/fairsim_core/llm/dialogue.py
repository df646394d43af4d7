"""Turn-by-turn dialogue generation for paired agents.

Each conversation runs on a worker thread. Turns alternate between the two
agents until the ending model or the hard turn ceiling closes the exchange;
the worker then marks the conversation complete. Provider failures fall back
to scripted lines, so a launched conversation always completes.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
import logging
import os
import random
import threading
import time
from typing import Any, Callable

from packages.fairsim_core.sim.conversations import Conversation
from packages.fairsim_core.sim.scoring.ending import (
    RECRUITER_RECRUITER,
    STUDENT_RECRUITER,
    STUDENT_STUDENT,
    get_ending_guidance,
    should_conversation_end,
    should_force_end,
)
from packages.fairsim_core.sim.state import Agent

from .providers import ProviderError, ProviderExecutionResult, execute_chat_completion

logger = logging.getLogger("fairsim_core.llm.dialogue")

CompletionFn = Callable[..., ProviderExecutionResult]
SleepFn = Callable[[float], None]

DEFAULT_TURN_DELAY_MS = 1000
SYSTEM_PROMPT = (
    "You are simulating a conversation between students and recruiters at a hackathon career fair. "
    "Generate realistic, single-sentence responses only. Be conversational and appropriate for a "
    "networking event. Keep responses short and natural."
)


def _default_turn_delay_ms() -> int:
    try:
        return max(0, int(os.environ.get("FAIRSIM_TURN_DELAY_MS") or DEFAULT_TURN_DELAY_MS))
    except ValueError:
        return DEFAULT_TURN_DELAY_MS


def _string_items(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item) for item in value]


def _looking_for(agent: Agent) -> dict[str, Any]:
    value = agent.stats.get("looking_for")
    return value if isinstance(value, dict) else {}


def _student_profile(agent: Agent) -> str:
    stats = agent.stats
    return (
        f"- GPA: {stats.get('gpa', 'n/a')}\n"
        f"- Skills: {', '.join(_string_items(stats.get('skills'))) or 'n/a'}\n"
        f"- Experience: {stats.get('experience', 0)} years\n"
        f"- Major: {stats.get('major', 'n/a')}\n"
        f"- Pitch: {stats.get('summary') or 'n/a'}\n"
        f"- Buzzwords: {', '.join(_string_items(stats.get('buzzwords'))) or 'n/a'}"
    )


def _recruiter_profile(agent: Agent) -> str:
    stats = agent.stats
    return (
        f"- Company: {stats.get('company', 'n/a')}\n"
        f"- Role: {stats.get('position', 'n/a')}\n"
        f"- Requirements: {', '.join(_string_items(stats.get('requirements'))) or 'n/a'}\n"
        f"- Experience required: {stats.get('experience_required', 'n/a')} years\n"
        f"- Preferences: {_looking_for(agent).get('preferences', 'n/a')}"
    )


def _profile(agent: Agent) -> str:
    return _student_profile(agent) if agent.is_student else _recruiter_profile(agent)


def build_prompt(
    speaker: Agent,
    listener: Agent,
    conversation_type: str,
    *,
    previous_message: str | None,
    message_count: int,
) -> str:
    if conversation_type == STUDENT_STUDENT:
        tone = (
            "This is casual student-to-student conversation. Be friendly, funny, and relatable. "
            "Talk about hackathon experiences, coding struggles, or student life."
        )
    elif conversation_type == RECRUITER_RECRUITER:
        tone = (
            "This is recruiter-to-recruiter conversation. Be professional but candid about recruiting "
            "challenges, hiring needs, or industry trends."
        )
    elif speaker.is_student:
        tone = "Be professional, enthusiastic, and show interest in their company and opportunities."
    else:
        tone = "Be professional, friendly, and interested in learning about the student's background."

    prompt = (
        "You are at a hackathon networking event. "
        f"You are {speaker.display_name} with:\n{_profile(speaker)}\n\n"
        f"You're talking to {listener.display_name} who has:\n{_profile(listener)}\n\n"
        f"{tone} Respond with only ONE sentence.\n"
        f"{get_ending_guidance(message_count + 1, conversation_type, not speaker.is_student)}"
    )
    if previous_message is None:
        prompt += "\n\nStart the conversation with a greeting in ONE sentence."
    else:
        prompt += f'\n\n{listener.display_name} just said: "{previous_message}"\n\nRespond naturally in ONE sentence.'
    return prompt


def fallback_message(speaker: Agent, listener: Agent, conversation_type: str, *, is_starter: bool) -> str:
    name = speaker.display_name
    other = listener.display_name
    if conversation_type == STUDENT_STUDENT:
        if is_starter:
            return f"Hey! I'm {name}, a {speaker.stats.get('major', 'CS')} student. How's the hackathon going for you?"
        skill = (_string_items(speaker.stats.get("skills")) or ["coding"])[0]
        return f"{name} here, pretty good! I'm working on some {skill} stuff."
    if conversation_type == RECRUITER_RECRUITER:
        if is_starter:
            return f"Hey, {name} from {speaker.stats.get('company', 'my company')} here. These students get more competitive every year!"
        role = _looking_for(speaker).get("role") or "engineering"
        return f"{name} agrees. Finding great talent for {role} is tougher every season."
    if conversation_type == STUDENT_RECRUITER:
        if is_starter and speaker.is_student:
            return f"Hi! I'm {name}, and I'd love to learn more about opportunities at your company."
        if is_starter:
            return f"Hello! I'm {name} from {speaker.stats.get('company', 'our team')}, and we're looking for talented developers like you."
        if speaker.is_student:
            focus = (_string_items(speaker.stats.get("skills")) or ["software development"])[0]
            return f"That sounds great, {other}! I'm especially interested in {focus}."
        interest = (_string_items(listener.stats.get("skills")) or ["programming"])[0]
        return f"Excellent, {other}! I'd love to hear more about your experience with {interest}."
    if is_starter:
        return f"Hello! {name} here, nice to meet you."
    return f"Thanks, {other}! {name} enjoyed chatting with you."


class DialogueGenerator:
    """Launches one background turn loop per conversation."""

    def __init__(
        self,
        *,
        completion_fn: CompletionFn | None = None,
        max_workers: int = 4,
        turn_delay_ms: int | None = None,
        rng: random.Random | None = None,
        sleep_fn: SleepFn = time.sleep,
    ) -> None:
        self._completion_fn = completion_fn or execute_chat_completion
        self._max_workers = max(1, int(max_workers))
        self._turn_delay_ms = _default_turn_delay_ms() if turn_delay_ms is None else max(0, int(turn_delay_ms))
        self._rng = rng or random.Random()
        self._sleep = sleep_fn
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = threading.Lock()

    def _pool(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix="fairsim-dialogue",
                )
            return self._executor

    def launch(self, conversation: Conversation, agent_a: Agent, agent_b: Agent) -> Future:
        return self._pool().submit(self.run_conversation, conversation, agent_a, agent_b)

    def shutdown(self, *, wait: bool = False) -> None:
        with self._executor_lock:
            executor = self._executor
            self._executor = None
        if executor is not None:
            executor.shutdown(wait=wait)

    def run_conversation(self, conversation: Conversation, agent_a: Agent, agent_b: Agent) -> None:
        conversation_type = conversation.conversation_type
        try:
            speaker, listener = (agent_a, agent_b) if self._rng.random() < 0.5 else (agent_b, agent_a)
            previous: str | None = None
            count = 0
            while True:
                text = self.generate_message(
                    speaker,
                    listener,
                    conversation_type,
                    previous_message=previous,
                    message_count=count,
                )
                conversation.add_message(speaker, text)
                count += 1
                logger.debug("[DIALOGUE] %s %s: %s", conversation.conversation_id, speaker.display_name, text)
                if should_force_end(count, conversation_type):
                    break
                if should_conversation_end(count, conversation_type, not speaker.is_student, rng=self._rng):
                    break
                if self._turn_delay_ms:
                    self._sleep(self._turn_delay_ms / 1000.0)
                previous = text
                speaker, listener = listener, speaker
        except Exception as exc:
            logger.exception("[DIALOGUE] %s failed: %s", conversation.conversation_id, exc)
            if conversation.message_count == 0:
                conversation.add_message(agent_a, fallback_message(agent_a, agent_b, conversation_type, is_starter=True))
                conversation.add_message(agent_b, fallback_message(agent_b, agent_a, conversation_type, is_starter=False))
        finally:
            conversation.mark_complete()
            logger.info(
                "[DIALOGUE] %s finished with %d messages",
                conversation.conversation_id,
                conversation.message_count,
            )

    def generate_message(
        self,
        speaker: Agent,
        listener: Agent,
        conversation_type: str,
        *,
        previous_message: str | None,
        message_count: int,
    ) -> str:
        is_starter = previous_message is None
        prompt = build_prompt(
            speaker,
            listener,
            conversation_type,
            previous_message=previous_message,
            message_count=message_count,
        )
        try:
            result = self._completion_fn(
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except ProviderError as exc:
            log = logger.debug if exc.error_code in {"missing_api_key", "disabled"} else logger.warning
            log("[LLM] Dialogue provider unavailable (%s), using scripted line", exc.error_code)
            return fallback_message(speaker, listener, conversation_type, is_starter=is_starter)
        return result.text or fallback_message(speaker, listener, conversation_type, is_starter=is_starter)
