"""
models/reasons.py
─────────────────
Turns a ScoreBreakdown into the short, ordered list of human-readable reasons
shown next to a match. Categories are evaluated in a fixed order
(language → availability → goals → location → activity) and the list stops
at `policy.max_reasons`.
"""

from __future__ import annotations

from models.profile import MatchingProfile, ScoreBreakdown, ScoringPolicy
from models.subscores import (
    shared_availability,
    shared_goal_tags,
    shared_learning_languages,
    teaches,
)


def _language_reason(
    viewer: MatchingProfile,
    candidate: MatchingProfile,
    score: int,
    policy: ScoringPolicy,
) -> str | None:
    if score >= policy.reason_language_reciprocal:
        you_teach = teaches(viewer, candidate)
        they_teach = teaches(candidate, viewer)
        if you_teach and they_teach:
            return (
                f"You speak {you_teach[0]} natively, which {candidate.name} is learning, "
                f"and {candidate.name} speaks {they_teach[0]} natively, which you're learning"
            )
        return None

    if score >= policy.reason_language_shared:
        common = shared_learning_languages(viewer, candidate)
        if common:
            return f"Both learning {', '.join(common)}"
    return None


def generate_reasons(
    viewer: MatchingProfile,
    candidate: MatchingProfile,
    breakdown: ScoreBreakdown,
    policy: ScoringPolicy | None = None,
) -> tuple[str, ...]:
    policy = policy or ScoringPolicy()
    n_items = policy.max_reason_items
    reasons: list[str] = []

    language = _language_reason(viewer, candidate, breakdown.language_compatibility, policy)
    if language:
        reasons.append(language)

    if breakdown.availability_match >= policy.reason_availability:
        slots = shared_availability(viewer, candidate)
        if slots:
            reasons.append(f"Both available: {', '.join(slots[:n_items])}")

    if breakdown.goals_alignment >= policy.reason_goals:
        goals = shared_goal_tags(viewer, candidate)
        if goals:
            reasons.append(f"Similar goals: {', '.join(goals[:n_items])}")

    if breakdown.location_bonus >= policy.reason_location:
        reasons.append("Located in the same area")

    if breakdown.activity_level >= policy.reason_activity:
        reasons.append("Both active learners")

    return tuple(reasons[: policy.max_reasons])
