"""
backend/routers/match.py
────────────────────────
FastAPI router for the practice-partner matching endpoints.

Endpoints
─────────
GET  /api/matching/partners/{viewer_id}                  — Ranked recommended partners
GET  /api/matching/compatibility/{viewer_id}/{target_id} — Full compatibility result
GET  /api/matching/explanation/{viewer_id}/{target_id}   — "Why are we matched" view
POST /api/matching/refresh/{viewer_id}                   — Recompute recommendations
POST /api/matching/sort                                  — Sort caller-supplied profiles
GET  /api/learners                                       — List learner ids (paginated)
"""

from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, Query

from backend.schemas import (
    ExplanationResponse,
    LearnerListResponse,
    LearnerSummary,
    MatchResponse,
    MatchScore,
    RefreshResponse,
    ScoreBreakdownModel,
    SortRequest,
    SortResponse,
)
from config.settings import Settings, get_settings
from models.exceptions import ComputationError, ProfileNotFound, SelfMatchError
from models.matchmaker import MatchingEngine, filter_by_preferences, sort_by_match_score
from models.repository import DataFrameProfileRepository
from utils.data_loader import load_all_sets
from utils.data_processor import load_and_process
from utils.logger import logger

router = APIRouter(prefix="/api", tags=["matching"])


# ── engine factory (singleton per process) ────────────────────────────────────

@lru_cache(maxsize=1)
def _get_engine() -> MatchingEngine:
    logger.info("Initialising MatchingEngine …")
    settings = get_settings()
    data = load_and_process(load_all_sets())
    return MatchingEngine(
        repo=DataFrameProfileRepository(data),
        policy=settings.scoring_policy(),
        pool_cap=settings.candidate_pool_cap,
        max_workers=settings.match_workers,
    )


def _engine_dep() -> MatchingEngine:
    return _get_engine()


def _settings_dep() -> Settings:
    return get_settings()


# ── helpers ───────────────────────────────────────────────────────────────────

def _explain_or_raise(engine: MatchingEngine, viewer_id: str, target_id: str):
    try:
        return engine.explain(viewer_id, target_id)
    except SelfMatchError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except ProfileNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ComputationError as exc:
        logger.error(f"Compatibility failed for {viewer_id} → {target_id}: {exc}")
        raise HTTPException(status_code=500, detail="Failed to calculate compatibility")


# ── endpoints ─────────────────────────────────────────────────────────────────

@router.get("/matching/partners/{viewer_id}", response_model=MatchResponse)
def get_recommended_partners(
    viewer_id: str,
    limit: int | None = Query(None, ge=1, description="Max partners to return"),
    engine: MatchingEngine = Depends(_engine_dep),
    settings: Settings = Depends(_settings_dep),
):
    limit = min(limit or settings.default_match_limit, settings.max_match_limit)
    try:
        results = engine.find_matches(viewer_id, limit=limit)
    except ProfileNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    matches = [MatchScore.from_result(r) for r in results]
    return MatchResponse(viewer_id=viewer_id, total_matches=len(matches), matches=matches)


@router.get("/matching/compatibility/{viewer_id}/{target_id}", response_model=MatchScore)
def get_compatibility(
    viewer_id: str,
    target_id: str,
    engine: MatchingEngine = Depends(_engine_dep),
):
    return MatchScore.from_result(_explain_or_raise(engine, viewer_id, target_id))


@router.get("/matching/explanation/{viewer_id}/{target_id}", response_model=ExplanationResponse)
def get_match_explanation(
    viewer_id: str,
    target_id: str,
    engine: MatchingEngine = Depends(_engine_dep),
):
    result = _explain_or_raise(engine, viewer_id, target_id)
    return ExplanationResponse(
        user=LearnerSummary(**result.candidate.public_summary()),
        score=result.overall_score,
        tier=result.tier,
        reasons=list(result.reasons),
        breakdown=ScoreBreakdownModel(**result.score_breakdown.to_dict()),
    )


@router.post("/matching/refresh/{viewer_id}", response_model=RefreshResponse)
def refresh_matches(
    viewer_id: str,
    engine: MatchingEngine = Depends(_engine_dep),
    settings: Settings = Depends(_settings_dep),
):
    try:
        results = engine.find_matches(viewer_id, limit=settings.refresh_match_limit)
    except ProfileNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return RefreshResponse(message="Matches refreshed successfully", count=len(results))


@router.post("/matching/sort", response_model=SortResponse)
def sort_profiles(
    body: SortRequest,
    engine: MatchingEngine = Depends(_engine_dep),
    settings: Settings = Depends(_settings_dep),
):
    viewer = body.viewer.to_profile()
    profiles = filter_by_preferences(
        (p.to_profile() for p in body.profiles),
        active_users_only=body.active_users_only,
        active_days_window=settings.active_days_window,
    )
    results = sort_by_match_score(viewer, profiles, engine.policy)
    matches = [MatchScore.from_result(r) for r in results]
    return SortResponse(viewer_id=viewer.id, total=len(matches), matches=matches)


@router.get("/learners", response_model=LearnerListResponse)
def list_learners(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    engine: MatchingEngine = Depends(_engine_dep),
):
    ids = engine.repo.list_learner_ids()
    start = (page - 1) * page_size
    end   = start + page_size
    return LearnerListResponse(total=len(ids), page=page, page_size=page_size, data=ids[start:end])
