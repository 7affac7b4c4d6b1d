"""
models/profile.py
═════════════════
Value objects shared by the matching engine.

  MatchingProfile     — read-only snapshot of one learner, built per request
  ScoreBreakdown      — the six dimension scores (0–100 each)
  CompatibilityResult — overall score + breakdown + ordered reasons
  ScoringPolicy       — weights / thresholds / caps the pure scorers apply

None of these own external resources; they are created per request and
thrown away.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Mapping


# ─────────────────────────────────────────────────────────────────────────────
#  Proficiency scale
# ─────────────────────────────────────────────────────────────────────────────

CEFR_LEVELS: dict[str, int] = {
    "A1": 1, "A2": 2, "B1": 3, "B2": 4, "C1": 5, "C2": 6,
}

# Coarse scale used by the onboarding form
COARSE_LEVELS: dict[str, str] = {
    "beginner":     "A1",
    "intermediate": "B1",
    "advanced":     "C1",
    "native":       "C2",
}

DEFAULT_LEVEL = "B1"


# ─────────────────────────────────────────────────────────────────────────────
#  Profile
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class LanguageProficiency:
    level: str
    started_at: datetime | None = None

    @property
    def ordinal(self) -> int:
        return CEFR_LEVELS.get(self.level, CEFR_LEVELS[DEFAULT_LEVEL])


@dataclass(frozen=True)
class LearningGoal:
    language: str | None
    goals: frozenset[str]
    priority: int = 0


@dataclass(frozen=True)
class MatchingProfile:
    id: str
    native_languages: tuple[str, ...] = ()
    learning_languages: tuple[str, ...] = ()
    proficiency_by_language: Mapping[str, LanguageProficiency] = field(
        default_factory=lambda: MappingProxyType({})
    )
    learning_goals: tuple[LearningGoal, ...] = ()
    availability: tuple[str, ...] = ()
    location: str = ""
    last_active: datetime | None = None
    activity_stats: int = 0
    display_name: str | None = None

    def __post_init__(self) -> None:
        # Freeze the mapping so a profile cannot be mutated mid-batch
        if not isinstance(self.proficiency_by_language, MappingProxyType):
            object.__setattr__(
                self,
                "proficiency_by_language",
                MappingProxyType(dict(self.proficiency_by_language)),
            )

    @property
    def name(self) -> str:
        return self.display_name or "your partner"

    def public_summary(self) -> dict[str, Any]:
        return {
            "id":                 self.id,
            "display_name":       self.display_name,
            "native_languages":   list(self.native_languages),
            "learning_languages": list(self.learning_languages),
            "location":           self.location,
            "learning_goals":     sorted({tag for g in self.learning_goals for tag in g.goals}),
            "availability":       list(self.availability),
        }


# ─────────────────────────────────────────────────────────────────────────────
#  Results
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScoreBreakdown:
    language_compatibility: int
    availability_match: int
    goals_alignment: int
    experience_level: int
    activity_level: int
    location_bonus: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class CompatibilityResult:
    viewer_id: str
    candidate_id: str
    overall_score: int
    score_breakdown: ScoreBreakdown
    reasons: tuple[str, ...]
    tier: str
    # Scored profile, carried for display only
    candidate: MatchingProfile | None = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "viewer_id":       self.viewer_id,
            "candidate_id":    self.candidate_id,
            "overall_score":   self.overall_score,
            "score_breakdown": self.score_breakdown.to_dict(),
            "reasons":         list(self.reasons),
            "tier":            self.tier,
        }


def match_tier(score: int) -> str:
    if score >= 80: return "excellent"
    if score >= 60: return "great"
    if score >= 40: return "good"
    return "fair"


# ─────────────────────────────────────────────────────────────────────────────
#  Policy
# ─────────────────────────────────────────────────────────────────────────────

DEFAULT_WEIGHTS: dict[str, float] = {
    "language_compatibility": 0.40,
    "availability_match":     0.25,
    "goals_alignment":        0.15,
    "experience_level":       0.10,
    "activity_level":         0.05,
    "location_bonus":         0.05,
}


@dataclass(frozen=True)
class ScoringPolicy:
    weights: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    min_match_score: int = 30
    max_reasons: int = 4
    reason_language_reciprocal: int = 90
    reason_language_shared: int = 40
    reason_availability: int = 75
    reason_goals: int = 60
    reason_location: int = 75
    reason_activity: int = 80
    max_reason_items: int = 2
