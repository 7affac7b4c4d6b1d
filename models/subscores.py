"""
models/subscores.py
═══════════════════
The six dimension scorers. Each one is a pure function of two
MatchingProfiles and returns an integer in [0, 100].

  Dimension                 Weight   Neutral value (missing data)
  ───────────────────────   ──────   ────────────────────────────
  language_compatibility     0.40    —
  availability_match         0.25    50
  goals_alignment            0.15    50
  experience_level           0.10    70
  activity_level             0.05    —  (no sessions scores 20)
  location_bonus             0.05    50

All dimensions are symmetric: score(a, b) == score(b, a).
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Callable

from models.profile import MatchingProfile

NEUTRAL_AVAILABILITY = 50
NEUTRAL_GOALS = 50
NEUTRAL_EXPERIENCE = 70
NEUTRAL_LOCATION = 50

GOALS_OVERLAP_BOOST = Decimal("1.5")


def round_half_up(value: Decimal | float | int) -> int:
    """Round .5 away from zero (Python's round() would send 30.5 to 30)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _ordered_intersection(first: tuple[str, ...], second: tuple[str, ...]) -> list[str]:
    other = set(second)
    return [item for item in first if item in other]


# ── language ──────────────────────────────────────────────────────────────────

def teaches(speaker: MatchingProfile, learner: MatchingProfile) -> list[str]:
    """Languages `speaker` speaks natively that `learner` is learning."""
    return _ordered_intersection(speaker.native_languages, learner.learning_languages)


def shared_learning_languages(a: MatchingProfile, b: MatchingProfile) -> list[str]:
    return _ordered_intersection(a.learning_languages, b.learning_languages)


def language_compatibility(a: MatchingProfile, b: MatchingProfile) -> int:
    a_teaches_b = bool(teaches(a, b))
    b_teaches_a = bool(teaches(b, a))

    if a_teaches_b and b_teaches_a:
        return 100          # reciprocal exchange
    if a_teaches_b or b_teaches_a:
        return 70           # one-way
    if shared_learning_languages(a, b):
        return 50           # co-learners
    return 0


# ── availability ──────────────────────────────────────────────────────────────

def shared_availability(a: MatchingProfile, b: MatchingProfile) -> list[str]:
    return _ordered_intersection(a.availability, b.availability)


def availability_match(a: MatchingProfile, b: MatchingProfile) -> int:
    if not a.availability or not b.availability:
        return NEUTRAL_AVAILABILITY

    n = len(shared_availability(a, b))
    if n == 0:
        return 0
    if n == 1:
        return 50
    if n == 2:
        return 75
    return 100


# ── goals ─────────────────────────────────────────────────────────────────────

def shared_goal_tags(a: MatchingProfile, b: MatchingProfile) -> list[str]:
    """Goal tags both learners pursue for the same language, sorted."""
    shared: set[str] = set()
    for goal_a in a.learning_goals:
        for goal_b in b.learning_goals:
            if goal_a.language == goal_b.language:
                shared |= goal_a.goals & goal_b.goals
    return sorted(shared)


def _all_goal_tags(profile: MatchingProfile) -> set[str]:
    tags: set[str] = set()
    for goal in profile.learning_goals:
        tags |= goal.goals
    return tags


def goals_alignment(a: MatchingProfile, b: MatchingProfile) -> int:
    tags_a = _all_goal_tags(a)
    tags_b = _all_goal_tags(b)
    if not tags_a or not tags_b:
        return NEUTRAL_GOALS

    union = tags_a | tags_b
    shared = shared_goal_tags(a, b)
    score = Decimal(len(shared)) * 100 * GOALS_OVERLAP_BOOST / Decimal(len(union))
    return min(100, round_half_up(score))


# ── experience ────────────────────────────────────────────────────────────────

def experience_level(a: MatchingProfile, b: MatchingProfile) -> int:
    common = sorted(set(a.proficiency_by_language) & set(b.proficiency_by_language))
    if not common:
        return NEUTRAL_EXPERIENCE

    total_diff = sum(
        abs(a.proficiency_by_language[lang].ordinal - b.proficiency_by_language[lang].ordinal)
        for lang in common
    )
    # Bucket on the exact mean; anything above 3 levels apart scores 30
    diff = Decimal(total_diff) / Decimal(len(common))

    if diff == 0:
        return 100
    if diff <= 1:
        return 85
    if diff <= 2:
        return 70
    if diff <= 3:
        return 50
    return 30


# ── activity ──────────────────────────────────────────────────────────────────

def activity_level(a: MatchingProfile, b: MatchingProfile) -> int:
    avg_sessions = (max(a.activity_stats, 0) + max(b.activity_stats, 0)) / 2

    if avg_sessions >= 20:
        return 100
    if avg_sessions >= 10:
        return 80
    if avg_sessions >= 5:
        return 60
    if avg_sessions >= 1:
        return 40
    return 20


# ── location ──────────────────────────────────────────────────────────────────

def _country(location: str) -> str:
    return location.split(",")[-1].strip().lower()


def location_bonus(a: MatchingProfile, b: MatchingProfile) -> int:
    loc_a = a.location.strip()
    loc_b = b.location.strip()
    if not loc_a or not loc_b:
        return NEUTRAL_LOCATION

    if loc_a.lower() == loc_b.lower():
        return 100
    if _country(loc_a) == _country(loc_b):
        return 75
    return 50


SUBSCORES: dict[str, Callable[[MatchingProfile, MatchingProfile], int]] = {
    "language_compatibility": language_compatibility,
    "availability_match":     availability_match,
    "goals_alignment":        goals_alignment,
    "experience_level":       experience_level,
    "activity_level":         activity_level,
    "location_bonus":         location_bonus,
}
