"""Student ranking by offers, recruiter contacts and distance walked."""

from __future__ import annotations

from typing import Any, Iterable

from .state import Agent


def rank_students(agents: Iterable[Agent]) -> list[Agent]:
    students = [agent for agent in agents if agent.is_student]
    return sorted(
        students,
        key=lambda a: (-a.job_offers, -a.recruiters_spoken_to, -a.distance_traveled, a.agent_id),
    )


def build_leaderboard(agents: Iterable[Agent]) -> dict[str, Any]:
    ranked = rank_students(agents)
    rows = []
    for rank, student in enumerate(ranked, start=1):
        interactions = len(student.interaction_history)
        rows.append(
            {
                "rank": rank,
                "agent_id": student.agent_id,
                "name": student.display_name,
                "job_offers": student.job_offers,
                "recruiters_spoken_to": student.recruiters_spoken_to,
                "distance_traveled": student.distance_traveled,
                "average_score": round(student.total_interaction_score / interactions, 1) if interactions else 0.0,
            }
        )
    return {
        "students": rows,
        "totals": {
            "students": len(rows),
            "job_offers": sum(r["job_offers"] for r in rows),
            "conversations": sum(r["recruiters_spoken_to"] for r in rows),
            "distance": sum(r["distance_traveled"] for r in rows),
        },
    }
