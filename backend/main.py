"""
backend/main.py
═══════════════
FastAPI application for the LinguaMatch practice-partner matching service.

Endpoints
─────────
  GET  /health                                          — Liveness / readiness probe
  GET  /api/matching/partners/{viewer_id}               — Ranked practice partners
  GET  /api/matching/compatibility/{viewer_id}/{target} — One pair, full breakdown
  GET  /api/matching/explanation/{viewer_id}/{target}   — Why two learners match
  POST /api/matching/refresh/{viewer_id}                — Recompute recommendations
  POST /api/matching/sort                               — Sort caller-held profiles
  GET  /api/learners                                    — List learner ids

  Run with:
      uvicorn backend.main:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.routers.match import _get_engine, router as match_router
from backend.schemas import HealthResponse
from utils.logger import logger

# ─────────────────────────────────────────────────────────────────────────────
#  App initialisation
# ─────────────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="LinguaMatch — Practice Partner Matching API",
    description=(
        "Explainable compatibility scoring between language learners and "
        "ranked practice-partner recommendations."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],      # tighten in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(match_router)


# ─────────────────────────────────────────────────────────────────────────────
#  Health check
# ─────────────────────────────────────────────────────────────────────────────

@app.get("/health", response_model=HealthResponse, tags=["Meta"])
def health_check() -> HealthResponse:
    """
    Liveness & readiness probe.
    Returns the number of learners loaded and whether the engine is ready.
    """
    try:
        engine = _get_engine()
        return HealthResponse(
            status="ok",
            learners_loaded=len(engine.repo.list_learner_ids()),
            engine_ready=True,
        )
    except Exception as exc:
        logger.error(f"Engine unavailable: {exc}")
        return HealthResponse(
            status=f"degraded: {exc}",
            learners_loaded=0,
            engine_ready=False,
        )
