#!/usr/bin/env python3

from __future__ import annotations

import dataclasses
import random
import unittest

from packages.fairsim_core.sim.scoring.interaction import (
    COMPONENT_WEIGHTS,
    calculate_interaction_score,
    determine_student_personality,
    experience_score,
    generate_recruiter_preferences,
    offer_probability,
    score_interaction,
    skills_score,
)
from packages.fairsim_core.sim.state import RECRUITER, STUDENT, Agent


class ConstantRandom(random.Random):
    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


def _student(**stats) -> Agent:
    return Agent(agent_id=1, kind=STUDENT, position=(0, 0), stats=stats)


def _recruiter(**stats) -> Agent:
    return Agent(agent_id=2, kind=RECRUITER, position=(0, 1), stats=stats)


class ComponentScoreTests(unittest.TestCase):
    def test_weights_sum_to_one(self) -> None:
        self.assertAlmostEqual(sum(COMPONENT_WEIGHTS.values()), 1.0)

    def test_skills_match_with_overflow_and_gpa_bonus(self) -> None:
        student = _student(skills=["Python", "React", "SQL"], gpa=3.5)
        recruiter = _recruiter(requirements=["Python", "React"])
        self.assertAlmostEqual(skills_score(student, recruiter), 78.0)

    def test_skills_full_match_without_overflow(self) -> None:
        student = _student(experience=5, skills=["Python", "SQL"], gpa=3.8)
        recruiter = _recruiter(requirements=["Python", "SQL"], experience_required=3)
        # 70 for the full match, no overflow, 8 from the GPA
        self.assertAlmostEqual(skills_score(student, recruiter), 78.0)

    def test_skills_without_requirements_is_neutral(self) -> None:
        self.assertEqual(skills_score(_student(skills=["Go"]), _recruiter()), 60.0)

    def test_experience_counts_internships_and_previous_companies(self) -> None:
        student = _student(experience=2, internships=1, previous_companies=["Stripe"])
        self.assertAlmostEqual(experience_score(student), 30 + 3 * 11 + 5)
        self.assertEqual(experience_score(_student(experience=10)), 85.0)


class PersonalityTests(unittest.TestCase):
    def test_quant_background_is_snarky(self) -> None:
        result = determine_student_personality(_student(previous_companies=["Jane Street"], experience=5))
        self.assertEqual(result.personality.name, "snarky")

    def test_experienced_student_is_professional(self) -> None:
        result = determine_student_personality(_student(experience=2, internships=1))
        self.assertEqual(result.personality.name, "professional")
        self.assertAlmostEqual(result.confidence, 0.85)

    def test_strong_academics_without_experience_is_genuine(self) -> None:
        result = determine_student_personality(_student(experience=0, gpa=3.8))
        self.assertEqual(result.personality.name, "genuine")

    def test_everyone_else_is_casual(self) -> None:
        result = determine_student_personality(_student(experience=2, gpa=3.0))
        self.assertEqual(result.personality.name, "casual")

    def test_company_culture_boosts_preferred_personality(self) -> None:
        preferences = generate_recruiter_preferences(_recruiter(company="Netflix"), rng=ConstantRandom(0.5))
        self.assertEqual(preferences.preferred_personality, "genuine")
        self.assertAlmostEqual(preferences.personality_weights["genuine"], 0.7 * 1.3)
        self.assertAlmostEqual(preferences.personality_weights["snarky"], 0.4)

    def test_unknown_company_uses_professional_default(self) -> None:
        preferences = generate_recruiter_preferences(_recruiter(company="Nowhere"), rng=ConstantRandom(0.5))
        self.assertEqual(preferences.preferred_personality, "professional")
        self.assertEqual(preferences.company_factor, 1.0)


class InteractionScoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.student = _student(
            skills=["Python", "React", "SQL"],
            gpa=3.5,
            experience=0,
            networking=2,
            energy_score=80,
        )
        self.recruiter = _recruiter(company="Netflix", requirements=["Python", "React"])

    def test_weighted_total_with_quality_multiplier(self) -> None:
        score = calculate_interaction_score(
            self.student,
            self.recruiter,
            {"duration_ms": 4000, "message_count": 3},
            rng=ConstantRandom(0.5),
        )
        self.assertAlmostEqual(score.component_scores["experience"], 30.0)
        self.assertAlmostEqual(score.component_scores["networking"], 53.0)
        self.assertAlmostEqual(score.component_scores["skills"], 78.0)
        self.assertAlmostEqual(score.component_scores["energy"], 80.0)
        self.assertAlmostEqual(score.component_scores["luck"], 50.0)
        self.assertAlmostEqual(score.component_scores["personality"], 91.0 * 1.04)
        self.assertAlmostEqual(score.quality_multiplier, 1.1)
        self.assertAlmostEqual(score.total_score, 67.2)

    def test_missing_meta_uses_defaults(self) -> None:
        score = calculate_interaction_score(self.student, self.recruiter, None, rng=ConstantRandom(0.5))
        self.assertEqual(score.conversation_length_ms, 5000)
        self.assertEqual(score.message_count, 3)

    def test_total_stays_in_range(self) -> None:
        rng = random.Random(11)
        for _ in range(50):
            score = calculate_interaction_score(self.student, self.recruiter, {"message_count": 20}, rng=rng)
            self.assertGreaterEqual(score.total_score, 0.0)
            self.assertLessEqual(score.total_score, 100.0)

    def test_offer_probability_bands(self) -> None:
        base = calculate_interaction_score(self.student, self.recruiter, None, rng=ConstantRandom(0.5))

        def at(total: float, luck: float) -> float:
            components = dict(base.component_scores, luck=luck)
            return offer_probability(dataclasses.replace(base, total_score=total, component_scores=components), self.student)

        self.assertAlmostEqual(at(90, 100), 0.4)
        self.assertAlmostEqual(at(80, 100), 0.2)
        self.assertAlmostEqual(at(70, 100), 0.1)
        self.assertAlmostEqual(at(40, 100), 0.02)
        self.assertAlmostEqual(at(90, 0), 0.2)

        veteran = _student(experience=2)
        components = dict(base.component_scores, luck=100.0)
        boosted = offer_probability(dataclasses.replace(base, total_score=90, component_scores=components), veteran)
        self.assertAlmostEqual(boosted, 0.48)

    def test_score_interaction_updates_student(self) -> None:
        score, offered, record = score_interaction(
            self.student,
            self.recruiter,
            {"duration_ms": 4000, "message_count": 3},
            rng=ConstantRandom(0.5),
            timestamp_ms=1234,
        )
        self.assertFalse(offered)
        self.assertEqual(self.student.recruiters_spoken_to, 1)
        self.assertEqual(self.student.job_offers, 0)
        self.assertEqual(self.student.interaction_history, [record])
        self.assertAlmostEqual(self.student.total_interaction_score, score.total_score)
        self.assertEqual(record["timestamp_ms"], 1234)
        self.assertEqual(record["recruiter_company"], "Netflix")
        self.assertTrue(record["was_successful"])
        self.assertFalse(record["job_offer"])

    def test_lucky_draw_produces_offer(self) -> None:
        _, offered, record = score_interaction(self.student, self.recruiter, None, rng=ConstantRandom(0.0))
        self.assertTrue(offered)
        self.assertEqual(self.student.job_offers, 1)
        self.assertTrue(record["job_offer"])


if __name__ == "__main__":
    unittest.main()
