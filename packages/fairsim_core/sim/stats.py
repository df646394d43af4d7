"""Random attribute bags for newly placed students and recruiters."""

from __future__ import annotations

import random
from typing import Any, Sequence

from .state import STUDENT

BASE_SKILLS = ("JavaScript", "Python", "React", "Node.js", "TypeScript", "SQL", "Java", "Go", "Rust", "C++")
MAJORS = (
    "Computer Science",
    "Software Engineering",
    "Data Science",
    "Information Systems",
    "Computer Engineering",
)
STUDENT_SUMMARIES = (
    "Full-stack student who thrives on hackathon sprints and rapid prototyping.",
    "Backend-focused engineer blending data pipelines with distributed systems side projects.",
    "Product-minded developer pairing UX empathy with scalable web architecture.",
    "Machine learning tinkerer combining research with automation in real-world projects.",
)
STUDENT_FIRST_NAMES = ("Avery", "Jordan", "Taylor", "Riley", "Morgan", "Casey", "Elliot", "Hayden", "Parker", "Quinn")
STUDENT_LAST_NAMES = ("Nguyen", "Patel", "Garcia", "O'Neil", "Kim", "Rivera", "Chen", "Johnson", "Williams", "Martinez")
RECRUITER_FIRST_NAMES = ("Alex", "Sam", "Jamie", "Harper", "Logan", "Emerson", "Drew", "Skyler", "Rowan", "Blake")
RECRUITER_LAST_NAMES = ("Brooks", "Henderson", "Lopez", "Mehta", "Fischer", "Khan", "Bennett", "Sawyer", "Diaz", "Coleman")
BUZZWORDS = (
    "cloud-native",
    "AI",
    "open source",
    "automation",
    "cross-functional",
    "microservices",
    "data-driven",
    "team leadership",
    "devops",
    "observability",
)
COMPANIES = (
    "Jane Street", "Google", "Netflix", "Stripe", "Airbnb",
    "Facebook", "Amazon", "Apple", "Microsoft", "Tesla",
    "Uber", "Lyft", "Palantir", "Databricks", "OpenAI",
    "Consulting", "Startup", "Tech Corp", "StartupXYZ", "Big Tech Inc", "Innovation Labs",
)
PREVIOUS_COMPANIES = (
    "Jane Street", "Citadel", "Two Sigma", "D.E. Shaw", "Goldman Sachs",
    "Google", "Facebook", "Amazon", "Microsoft", "Apple",
    "Netflix", "Uber", "Airbnb", "Stripe", "Palantir",
    "Local Startup", "Consulting Firm", "Research Lab",
)
POSITIONS = ("Software Engineer", "Frontend Developer", "Backend Developer", "Full Stack Developer")
PREFERENCES = (
    "Looking for candidates with strong problem-solving skills",
    "Seeking developers with experience in modern frameworks",
    "Interested in candidates with leadership potential",
    "Want developers who can work in fast-paced environments",
    "Looking for team players with good communication skills",
)


def _full_name(rng: random.Random, first: Sequence[str], last: Sequence[str]) -> str:
    return f"{rng.choice(first)} {rng.choice(last)}"


def _pick_subset(rng: random.Random, pool: Sequence[str], count: int) -> list[str]:
    return rng.sample(list(pool), min(max(0, count), len(pool)))


def build_student_stats(rng: random.Random | None = None) -> dict[str, Any]:
    r = rng or random.Random()
    skills = _pick_subset(r, BASE_SKILLS, r.randint(2, 5))
    internships = r.randint(0, 3)
    previous = _pick_subset(r, PREVIOUS_COMPANIES, min(internships, 2)) if internships else []
    return {
        "name": _full_name(r, STUDENT_FIRST_NAMES, STUDENT_LAST_NAMES),
        "gpa": round(r.random() * 1.2 + 2.6, 2),
        "skills": skills,
        "experience": r.randint(0, 4),
        "major": r.choice(MAJORS),
        "networking": r.randint(0, 5),
        "energy_score": r.randint(45, 95),
        "internships": internships,
        "previous_companies": previous,
        "buzzwords": _pick_subset(r, BUZZWORDS, r.randint(1, 3)),
        "summary": r.choice(STUDENT_SUMMARIES),
    }


def build_recruiter_stats(rng: random.Random | None = None) -> dict[str, Any]:
    r = rng or random.Random()
    return {
        "name": _full_name(r, RECRUITER_FIRST_NAMES, RECRUITER_LAST_NAMES),
        "company": r.choice(COMPANIES),
        "position": r.choice(POSITIONS),
        "requirements": _pick_subset(r, BASE_SKILLS, r.randint(2, 4)),
        "experience_required": r.randint(1, 5),
        "looking_for": {
            "company": r.choice(COMPANIES),
            "role": r.choice(POSITIONS),
            "preferences": r.choice(PREFERENCES),
        },
    }


def generate_agent_stats(kind: str, rng: random.Random | None = None) -> dict[str, Any]:
    if kind == STUDENT:
        return build_student_stats(rng)
    return build_recruiter_stats(rng)
