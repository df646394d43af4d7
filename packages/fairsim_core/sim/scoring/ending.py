"""Stochastic conversation-ending model with hard turn ceilings."""

from __future__ import annotations

import logging
import math
import random

logger = logging.getLogger("fairsim_core.sim.scoring.ending")

STUDENT_STUDENT = "student-student"
RECRUITER_RECRUITER = "recruiter-recruiter"
STUDENT_RECRUITER = "student-recruiter"
CONVERSATION_TYPES = (STUDENT_STUDENT, RECRUITER_RECRUITER, STUDENT_RECRUITER)

MAX_ENDING_PROBABILITY = 0.9
FORCE_END_LIMITS = {
    STUDENT_STUDENT: 8,
    RECRUITER_RECRUITER: 10,
    STUDENT_RECRUITER: 15,
}
DEFAULT_FORCE_END_LIMIT = 10


def conversation_type_for(a_is_student: bool, b_is_student: bool) -> str:
    if a_is_student and b_is_student:
        return STUDENT_STUDENT
    if not a_is_student and not b_is_student:
        return RECRUITER_RECRUITER
    return STUDENT_RECRUITER


def _curve(message_count: int, conversation_type: str) -> tuple[float, float]:
    if conversation_type == STUDENT_STUDENT:
        return (0.0 if message_count <= 2 else 0.1), 0.3
    if conversation_type == RECRUITER_RECRUITER:
        return (0.0 if message_count <= 3 else 0.05), 0.25
    if conversation_type == STUDENT_RECRUITER:
        return (0.0 if message_count <= 5 else 0.1), 0.2
    return (0.0 if message_count <= 2 else 0.1), 0.2


def calculate_ending_probability(
    message_count: int,
    conversation_type: str,
    is_recruiter: bool = False,
) -> float:
    """Probability in [0, 0.9] that the conversation should close after this turn.

    Only the recruiter side may close a student-recruiter conversation.
    """
    if conversation_type == STUDENT_RECRUITER and not is_recruiter:
        return 0.0
    count = int(message_count)
    base, rate = _curve(count, conversation_type)
    probability = base + (1.0 - base) * (1.0 - math.exp(-rate * (count - 1)))
    return max(0.0, min(probability, MAX_ENDING_PROBABILITY))


def should_conversation_end(
    message_count: int,
    conversation_type: str,
    is_recruiter: bool = False,
    *,
    rng: random.Random | None = None,
) -> bool:
    probability = calculate_ending_probability(message_count, conversation_type, is_recruiter)
    draw = (rng or random).random()
    should_end = draw < probability
    logger.debug(
        "[ENDING] %s messages, %s, %s speaking | p=%.3f draw=%.3f -> %s",
        message_count,
        conversation_type,
        "recruiter" if is_recruiter else "non-recruiter",
        probability,
        draw,
        "ending" if should_end else "continuing",
    )
    return should_end


def force_end_limit(conversation_type: str) -> int:
    return FORCE_END_LIMITS.get(conversation_type, DEFAULT_FORCE_END_LIMIT)


def should_force_end(message_count: int, conversation_type: str) -> bool:
    limit = force_end_limit(conversation_type)
    if int(message_count) >= limit:
        logger.info("[ENDING] Conversation reached %s message limit (%s total), forcing end", limit, message_count)
        return True
    return False


def get_ending_guidance(message_count: int, conversation_type: str, is_recruiter: bool = False) -> str:
    """Prompt hint steering the speaker toward (or away from) wrapping up."""
    probability = calculate_ending_probability(message_count, conversation_type, is_recruiter)
    if probability == 0 and not (conversation_type == STUDENT_RECRUITER and not is_recruiter):
        return "Keep the conversation going naturally."

    if conversation_type == STUDENT_RECRUITER:
        if not is_recruiter:
            return "Answer the recruiter's questions thoroughly and professionally."
        if message_count >= 6:
            return (
                "You should wrap up the interview soon and make your hiring decision. "
                "Say you want to 'offer' them the position or 'decline'."
            )
        if message_count >= 4:
            return (
                "Consider whether you have enough information to make a hiring decision. "
                "If so, conclude by saying 'offer' or 'unfortunately we'll pass'."
            )
        return "Continue the interview to gather more information about the candidate."

    if probability > 0.7:
        return "This conversation has gone on long enough. Consider ending it naturally with [end]."
    if probability > 0.4:
        return "The conversation could naturally end soon. Look for a good stopping point and use [end] if appropriate."
    if probability > 0.1:
        return "Continue the conversation but keep it concise."
    return "Keep the conversation going naturally."
