"""
backend/schemas.py
──────────────────
Pydantic v2 request / response models for all FastAPI endpoints.

Sections
────────
  1. Core match models         — ScoreBreakdownModel, MatchScore, MatchResponse
  2. Explanation models        — LearnerSummary, ExplanationResponse
  3. In-memory sort models     — LearnerProfileIn, SortRequest, SortResponse
  4. Shared / util models      — HealthResponse, RefreshResponse, LearnerListResponse
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from models.profile import (
    CompatibilityResult,
    LanguageProficiency,
    LearningGoal,
    MatchingProfile,
)
from models.aggregator import build_goals, normalise_level, parse_timestamp
from utils.data_processor import as_tag_list


# ─────────────────────────────────────────────────────────────────────────────
#  1. Core match models
# ─────────────────────────────────────────────────────────────────────────────

class ScoreBreakdownModel(BaseModel):
    """The six dimension scores (each 0–100)."""
    language_compatibility: int = Field(..., ge=0, le=100, description="Weight 0.40")
    availability_match:     int = Field(..., ge=0, le=100, description="Weight 0.25")
    goals_alignment:        int = Field(..., ge=0, le=100, description="Weight 0.15")
    experience_level:       int = Field(..., ge=0, le=100, description="Weight 0.10")
    activity_level:         int = Field(..., ge=0, le=100, description="Weight 0.05")
    location_bonus:         int = Field(..., ge=0, le=100, description="Weight 0.05")


class LearnerSummary(BaseModel):
    """Public view of a learner shown next to a score."""
    id:                 str
    display_name:       Optional[str] = None
    native_languages:   list[str] = Field(default_factory=list)
    learning_languages: list[str] = Field(default_factory=list)
    location:           str = ""
    learning_goals:     list[str] = Field(default_factory=list)
    availability:       list[str] = Field(default_factory=list)


class MatchScore(BaseModel):
    """Single viewer–candidate compatibility result."""
    viewer_id:       str
    candidate_id:    str
    overall_score:   int = Field(..., ge=0, le=100, description="Weighted total score out of 100")
    tier:            str = Field(..., description="excellent | great | good | fair")
    score_breakdown: ScoreBreakdownModel
    reasons:         list[str] = Field(default_factory=list, description="At most 4 human-readable reasons")
    user:            Optional[LearnerSummary] = Field(None, description="The scored candidate")

    @classmethod
    def from_result(cls, result: CompatibilityResult) -> "MatchScore":
        user = None
        if result.candidate is not None:
            user = LearnerSummary(**result.candidate.public_summary())
        return cls(**result.to_dict(), user=user)


class MatchResponse(BaseModel):
    """Response envelope for the partner recommendation endpoint."""
    viewer_id:     str
    total_matches: int
    matches:       list[MatchScore]


# ─────────────────────────────────────────────────────────────────────────────
#  2. Explanation models
# ─────────────────────────────────────────────────────────────────────────────

class ExplanationResponse(BaseModel):
    """Why two learners were matched."""
    user:      LearnerSummary
    score:     int
    tier:      str
    reasons:   list[str]
    breakdown: ScoreBreakdownModel


# ─────────────────────────────────────────────────────────────────────────────
#  3. In-memory sort models
# ─────────────────────────────────────────────────────────────────────────────

class GoalIn(BaseModel):
    language: Optional[str] = None
    goals:    list[str] = Field(default_factory=list)
    priority: int = 0


class LearnerProfileIn(BaseModel):
    """An already-fetched learner profile supplied by the caller."""
    id:                      str
    display_name:            Optional[str] = None
    native_languages:        list[str] = Field(default_factory=list)
    learning_languages:      list[str] = Field(default_factory=list)
    proficiency_by_language: dict[str, str] = Field(
        default_factory=dict,
        description="language → CEFR (A1…C2) or beginner / intermediate / advanced / native",
    )
    learning_goals:          list[GoalIn | str] = Field(default_factory=list)
    availability:            list[str] = Field(default_factory=list)
    location:                str = ""
    last_active:             Optional[datetime] = None
    activity_stats:          int = Field(0, ge=0)

    def to_profile(self) -> MatchingProfile:
        goals: tuple[LearningGoal, ...] = build_goals(
            [g.model_dump() if isinstance(g, GoalIn) else g for g in self.learning_goals]
        )
        return MatchingProfile(
            id=self.id,
            native_languages=tuple(as_tag_list(self.native_languages)),
            learning_languages=tuple(as_tag_list(self.learning_languages)),
            proficiency_by_language={
                lang: LanguageProficiency(level=normalise_level(level))
                for lang, level in self.proficiency_by_language.items()
            },
            learning_goals=goals,
            availability=tuple(as_tag_list(self.availability)),
            location=self.location.strip(),
            last_active=parse_timestamp(self.last_active),
            activity_stats=self.activity_stats,
            display_name=self.display_name,
        )


class SortRequest(BaseModel):
    """Body for POST /api/matching/sort."""
    viewer:            LearnerProfileIn
    profiles:          list[LearnerProfileIn] = Field(default_factory=list, max_length=1000)
    active_users_only: bool = Field(False, description="Keep only learners active in the last 7 days")


class SortResponse(BaseModel):
    viewer_id: str
    total:     int
    matches:   list[MatchScore]


# ─────────────────────────────────────────────────────────────────────────────
#  4. Shared / utility models
# ─────────────────────────────────────────────────────────────────────────────

class RefreshResponse(BaseModel):
    success: bool = True
    message: str
    count:   int


class LearnerListResponse(BaseModel):
    total:     int
    page:      int
    page_size: int
    data:      list[str]


class HealthResponse(BaseModel):
    """Response for GET /health."""
    status:          str
    learners_loaded: int
    engine_ready:    bool
    version:         str = "1.0.0"
