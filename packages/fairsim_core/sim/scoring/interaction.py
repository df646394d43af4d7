"""Student/recruiter interaction scoring and job-offer decisions.

A score is a weighted blend of six components on a 0-100 scale. Two of them
(networking visibility and luck) and the recruiter's personality weights are
drawn at random on every call, so repeated scoring of the same pair differs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import random
import time
from typing import Any, Mapping

from ..state import Agent

logger = logging.getLogger("fairsim_core.sim.scoring.interaction")

DEFAULT_CONVERSATION_LENGTH_MS = 5000
DEFAULT_MESSAGE_COUNT = 3
SUCCESS_THRESHOLD = 60.0

COMPONENT_WEIGHTS: dict[str, float] = {
    "experience": 0.20,
    "networking": 0.20,
    "skills": 0.25,
    "energy": 0.10,
    "luck": 0.15,
    "personality": 0.10,
}

QUANT_COMPANIES = ("Jane Street", "Citadel", "Two Sigma", "D.E. Shaw")


@dataclass(frozen=True)
class PersonalityType:
    name: str
    base_multiplier: float
    description: str


GENUINE = PersonalityType("genuine", 1.0, "Authentic and straightforward communication")
SNARKY = PersonalityType("snarky", 0.8, "Witty but potentially abrasive communication")
PROFESSIONAL = PersonalityType("professional", 1.1, "Highly polished and corporate communication")
CASUAL = PersonalityType("casual", 0.9, "Relaxed and informal communication style")

PERSONALITY_TYPES: dict[str, PersonalityType] = {
    p.name: p for p in (GENUINE, SNARKY, PROFESSIONAL, CASUAL)
}

BASE_PERSONALITY_PREFERENCES: dict[str, float] = {
    "genuine": 0.7,
    "snarky": 0.4,
    "professional": 0.8,
    "casual": 0.5,
}

# company -> (preferred personality, weight)
COMPANY_CULTURES: dict[str, tuple[str, float]] = {
    "Jane Street": ("snarky", 1.4),
    "Google": ("professional", 1.2),
    "Netflix": ("genuine", 1.3),
    "Stripe": ("professional", 1.1),
    "Airbnb": ("casual", 1.2),
    "Facebook": ("professional", 1.0),
    "Amazon": ("professional", 1.1),
    "Apple": ("professional", 1.2),
    "Startup": ("casual", 1.1),
    "Consulting": ("professional", 1.3),
}
DEFAULT_CULTURE = ("professional", 1.0)


@dataclass(frozen=True)
class StudentPersonality:
    personality: PersonalityType
    confidence: float
    reason: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "type": self.personality.name,
            "confidence": round(self.confidence, 3),
            "reason": self.reason,
        }


@dataclass(frozen=True)
class RecruiterPreferences:
    personality_weights: dict[str, float]
    preferred_personality: str
    company_factor: float

    def as_dict(self) -> dict[str, Any]:
        return {
            "personality_weights": {k: round(v, 3) for k, v in self.personality_weights.items()},
            "preferred_personality": self.preferred_personality,
            "company_factor": self.company_factor,
        }


@dataclass(frozen=True)
class InteractionScore:
    total_score: float
    component_scores: dict[str, float]
    student_personality: StudentPersonality
    recruiter_preferences: RecruiterPreferences
    conversation_length_ms: int
    message_count: int
    quality_multiplier: float
    weights: dict[str, float] = field(default_factory=lambda: dict(COMPONENT_WEIGHTS))

    def as_dict(self) -> dict[str, Any]:
        return {
            "total_score": self.total_score,
            "component_scores": {k: round(v, 2) for k, v in self.component_scores.items()},
            "weights": dict(self.weights),
            "student_personality": self.student_personality.as_dict(),
            "recruiter_preferences": self.recruiter_preferences.as_dict(),
            "conversation_length_ms": self.conversation_length_ms,
            "message_count": self.message_count,
            "quality_multiplier": round(self.quality_multiplier, 3),
        }


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item) for item in value]


def total_experience(stats: Mapping[str, Any]) -> float:
    return _as_float(stats.get("experience")) + _as_float(stats.get("internships"))


def determine_student_personality(student: Agent) -> StudentPersonality:
    stats = student.stats
    experience = total_experience(stats)
    previous = [c.lower() for c in _string_list(stats.get("previous_companies"))]

    if any(quant.lower() in company for company in previous for quant in QUANT_COMPANIES):
        return StudentPersonality(SNARKY, 0.8, "Experience at high-pressure quantitative firms")
    if experience >= 3:
        return StudentPersonality(PROFESSIONAL, 0.7 + experience * 0.05, "High experience level")
    if experience <= 1 and _as_float(stats.get("gpa")) >= 3.5:
        return StudentPersonality(GENUINE, 0.6, "Low experience but strong academics")
    return StudentPersonality(CASUAL, 0.5, "Moderate experience level")


def generate_recruiter_preferences(recruiter: Agent, *, rng: random.Random | None = None) -> RecruiterPreferences:
    chooser = rng or random
    company = str(recruiter.stats.get("company") or "Generic Corp")
    preferred, weight = COMPANY_CULTURES.get(company, DEFAULT_CULTURE)

    weights = dict(BASE_PERSONALITY_PREFERENCES)
    weights[preferred] *= weight
    for name in weights:
        variation = (chooser.random() - 0.5) * 0.3
        weights[name] = max(0.1, weights[name] + variation)
    return RecruiterPreferences(
        personality_weights=weights,
        preferred_personality=preferred,
        company_factor=weight,
    )


def experience_score(student: Agent) -> float:
    base = min(85.0, 30.0 + total_experience(student.stats) * 11.0)
    bonus = len(_string_list(student.stats.get("previous_companies"))) * 5.0
    return min(100.0, base + bonus)


def networking_score(student: Agent, conversation_length_ms: float, *, rng: random.Random | None = None) -> float:
    score = 20.0 + _as_float(student.stats.get("networking")) * 10.0
    length_bonus = min(20.0, (conversation_length_ms / 1000.0) * 2.0)
    visibility_bonus = (rng or random).random() * 10.0
    return min(100.0, score + length_bonus + visibility_bonus)


def skills_score(student: Agent, recruiter: Agent) -> float:
    skills = _string_list(student.stats.get("skills"))
    requirements = _string_list(recruiter.stats.get("requirements"))
    if not requirements:
        return 60.0
    matching = [skill for skill in skills if skill in requirements]
    match_score = len(matching) / len(requirements) * 70.0
    overflow_bonus = min(15.0, max(0, len(skills) - len(requirements)) * 3.0)
    gpa_bonus = max(0.0, (_as_float(student.stats.get("gpa"), 3.0) - 3.0) * 10.0)
    return min(100.0, match_score + overflow_bonus + gpa_bonus)


def energy_score(student: Agent) -> float:
    raw = student.stats.get("energy_score")
    value = _as_float(raw, 70.0) if raw is not None else 70.0
    return max(0.0, min(100.0, value))


def luck_score(*, rng: random.Random | None = None) -> float:
    return (rng or random).random() * 100.0


def personality_score(personality: StudentPersonality, preferences: RecruiterPreferences) -> float:
    weight = preferences.personality_weights.get(personality.personality.name, 0.5)
    base = min(100.0, weight * 100.0)
    confidence_modifier = 0.8 + personality.confidence * 0.4
    return min(100.0, base * confidence_modifier)


def calculate_interaction_score(
    student: Agent,
    recruiter: Agent,
    conversation_meta: Mapping[str, Any] | None = None,
    *,
    rng: random.Random | None = None,
) -> InteractionScore:
    meta = dict(conversation_meta or {})
    length_ms = int(_as_float(meta.get("duration_ms"), 0) or DEFAULT_CONVERSATION_LENGTH_MS)
    message_count = int(_as_float(meta.get("message_count"), 0) or DEFAULT_MESSAGE_COUNT)

    personality = determine_student_personality(student)
    preferences = generate_recruiter_preferences(recruiter, rng=rng)
    components = {
        "experience": experience_score(student),
        "networking": networking_score(student, length_ms, rng=rng),
        "skills": skills_score(student, recruiter),
        "energy": energy_score(student),
        "luck": luck_score(rng=rng),
        "personality": personality_score(personality, preferences),
    }

    total = sum(components[name] * weight for name, weight in COMPONENT_WEIGHTS.items())
    quality_multiplier = min(1.2, 1.0 + (message_count - 1) * 0.05)
    total = max(0.0, min(100.0, total * quality_multiplier))

    return InteractionScore(
        total_score=round(total, 1),
        component_scores=components,
        student_personality=personality,
        recruiter_preferences=preferences,
        conversation_length_ms=length_ms,
        message_count=message_count,
        quality_multiplier=quality_multiplier,
    )


def offer_probability(score: InteractionScore, student: Agent) -> float:
    total = score.total_score
    if total >= 85:
        probability = 0.4
    elif total >= 75:
        probability = 0.2
    elif total >= 65:
        probability = 0.1
    else:
        probability = 0.02
    probability *= 1.0 + _as_float(student.stats.get("experience")) * 0.1
    probability *= 0.5 + (score.component_scores["luck"] / 100.0) * 0.5
    return probability


def determine_job_offer(score: InteractionScore, student: Agent, *, rng: random.Random | None = None) -> bool:
    return (rng or random).random() < offer_probability(score, student)


def create_interaction_record(
    student: Agent,
    recruiter: Agent,
    score: InteractionScore,
    *,
    job_offer: bool,
    timestamp_ms: int | None = None,
) -> dict[str, Any]:
    return {
        "student_id": student.agent_id,
        "recruiter_id": recruiter.agent_id,
        "timestamp_ms": int(timestamp_ms if timestamp_ms is not None else time.time() * 1000),
        "score": score.total_score,
        "component_scores": {k: round(v, 2) for k, v in score.component_scores.items()},
        "student_personality": score.student_personality.as_dict(),
        "recruiter_company": str(recruiter.stats.get("company") or "Unknown"),
        "conversation_length_ms": score.conversation_length_ms,
        "message_count": score.message_count,
        "was_successful": score.total_score >= SUCCESS_THRESHOLD,
        "job_offer": bool(job_offer),
    }


def score_interaction(
    student: Agent,
    recruiter: Agent,
    conversation_meta: Mapping[str, Any] | None = None,
    *,
    rng: random.Random | None = None,
    timestamp_ms: int | None = None,
) -> tuple[InteractionScore, bool, dict[str, Any]]:
    """Score one finished conversation and apply the outcome to the student.

    This is the single offer-decision path: it bumps ``recruiters_spoken_to``
    for every scored conversation and ``job_offers`` when an offer is drawn.
    """
    score = calculate_interaction_score(student, recruiter, conversation_meta, rng=rng)
    offered = determine_job_offer(score, student, rng=rng)
    record = create_interaction_record(student, recruiter, score, job_offer=offered, timestamp_ms=timestamp_ms)

    student.recruiters_spoken_to += 1
    if offered:
        student.job_offers += 1
    student.interaction_history.append(record)
    student.total_interaction_score += score.total_score

    logger.info(
        "[SCORE] %s x %s (%s): score=%.1f offer=%s",
        student.display_name,
        recruiter.display_name,
        recruiter.stats.get("company") or "Unknown",
        score.total_score,
        offered,
    )
    return score, offered, record
