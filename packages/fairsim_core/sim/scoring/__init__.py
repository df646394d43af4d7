"""Scoring models: interaction outcomes and conversation ending odds."""

from .ending import (
    CONVERSATION_TYPES,
    RECRUITER_RECRUITER,
    STUDENT_RECRUITER,
    STUDENT_STUDENT,
    calculate_ending_probability,
    conversation_type_for,
    force_end_limit,
    get_ending_guidance,
    should_conversation_end,
    should_force_end,
)
from .interaction import (
    InteractionScore,
    calculate_interaction_score,
    create_interaction_record,
    determine_job_offer,
    determine_student_personality,
    generate_recruiter_preferences,
    score_interaction,
)

__all__ = [
    "CONVERSATION_TYPES",
    "RECRUITER_RECRUITER",
    "STUDENT_RECRUITER",
    "STUDENT_STUDENT",
    "calculate_ending_probability",
    "conversation_type_for",
    "force_end_limit",
    "get_ending_guidance",
    "should_conversation_end",
    "should_force_end",
    "InteractionScore",
    "calculate_interaction_score",
    "create_interaction_record",
    "determine_job_offer",
    "determine_student_personality",
    "generate_recruiter_preferences",
    "score_interaction",
]
