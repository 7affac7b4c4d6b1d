"""
models/matchmaker.py
════════════════════
MatchingEngine — explainable compatibility scoring (0–100) between language
learners, and ranked practice-partner recommendations.

Six Scoring Dimensions
──────────────────────
  Language compatibility   40 %   reciprocal 100 · one-way 70 · co-learners 50
  Availability match       25 %   shared time slots (neutral 50 when unknown)
  Goals alignment          15 %   shared goal tags vs all tags, ×1.5
  Experience level         10 %   CEFR distance on shared languages (neutral 70)
  Activity level            5 %   average completed sessions
  Location bonus            5 %   same place 100 · same country 75 · else 50

Entry points
────────────
  engine.find_matches(viewer_id, limit)     — bulk recommendation over the
                                              candidate pool (self, connections
                                              and weak matches removed)
  engine.explain(viewer_id, candidate_id)   — one pair, full breakdown + reasons
  sort_by_match_score(viewer, profiles)     — in-memory sort of profiles the
                                              caller already holds

Usage
─────
  from models.matchmaker import MatchingEngine
  from models.repository import DataFrameProfileRepository

  engine  = MatchingEngine(DataFrameProfileRepository(data))
  matches = engine.find_matches("u_001", limit=10)
  detail  = engine.explain("u_001", "u_042")
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Sequence

from models.aggregator import ProfileAggregator
from models.exceptions import ComputationError, ProfileNotFound, SelfMatchError
from models.profile import (
    CompatibilityResult,
    MatchingProfile,
    ScoreBreakdown,
    ScoringPolicy,
    match_tier,
)
from models.reasons import generate_reasons
from models.repository import ProfileRepository
from models.subscores import SUBSCORES, round_half_up
from utils.logger import logger


# ─────────────────────────────────────────────────────────────────────────────
#  Pure scoring
# ─────────────────────────────────────────────────────────────────────────────

def compute_breakdown(a: MatchingProfile, b: MatchingProfile) -> ScoreBreakdown:
    return ScoreBreakdown(**{name: fn(a, b) for name, fn in SUBSCORES.items()})


def combine(breakdown: ScoreBreakdown, weights: dict[str, float]) -> int:
    """Weighted sum of the sub-scores, rounded half-up to an integer."""
    scores = breakdown.to_dict()
    total = sum(
        (Decimal(str(weights[name])) * scores[name] for name in SUBSCORES),
        Decimal(0),
    )
    return max(0, min(100, round_half_up(total)))


def score_pair(
    viewer: MatchingProfile,
    candidate: MatchingProfile,
    policy: ScoringPolicy | None = None,
) -> CompatibilityResult:
    policy = policy or ScoringPolicy()
    breakdown = compute_breakdown(viewer, candidate)
    overall = combine(breakdown, dict(policy.weights))

    return CompatibilityResult(
        viewer_id=viewer.id,
        candidate_id=candidate.id,
        overall_score=overall,
        score_breakdown=breakdown,
        reasons=generate_reasons(viewer, candidate, breakdown, policy),
        tier=match_tier(overall),
        candidate=candidate,
    )


def rank_results(
    results: Iterable[CompatibilityResult],
    limit: int,
    min_score: int = 30,
) -> list[CompatibilityResult]:
    """Drop scores ≤ min_score, sort by score desc then candidate id, truncate."""
    kept = [r for r in results if r.overall_score > min_score]
    kept.sort(key=lambda r: (-r.overall_score, r.candidate_id))
    return kept[: max(limit, 0)]


# ─────────────────────────────────────────────────────────────────────────────
#  In-memory list sorting
# ─────────────────────────────────────────────────────────────────────────────

def sort_by_match_score(
    viewer: MatchingProfile,
    profiles: Sequence[MatchingProfile],
    policy: ScoringPolicy | None = None,
) -> list[CompatibilityResult]:
    """
    Score profiles the caller already holds against `viewer` and return them
    best-first. No pool cap and no threshold; the viewer itself is skipped.
    """
    results = [score_pair(viewer, p, policy) for p in profiles if p.id != viewer.id]
    results.sort(key=lambda r: (-r.overall_score, r.candidate_id))
    return results


def filter_by_preferences(
    profiles: Iterable[MatchingProfile],
    active_users_only: bool = False,
    active_days_window: int = 7,
    now: datetime | None = None,
) -> list[MatchingProfile]:
    profiles = list(profiles)
    if not active_users_only:
        return profiles

    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=active_days_window)
    return [p for p in profiles if p.last_active is not None and p.last_active >= cutoff]


# ─────────────────────────────────────────────────────────────────────────────
#  Main Engine
# ─────────────────────────────────────────────────────────────────────────────

class MatchingEngine:
    """
    Parameters
    ----------
    repo          : profile / account service (see models/repository.py)
    policy        : weights, thresholds and reason rules
    pool_cap      : max candidates considered per viewer
    max_workers   : threads used to fetch + score candidates (1 = sequential)
    """

    def __init__(
        self,
        repo: ProfileRepository,
        policy: ScoringPolicy | None = None,
        pool_cap: int = 100,
        max_workers: int = 4,
    ) -> None:
        self.repo = repo
        self.aggregator = ProfileAggregator(repo)
        self.policy = policy or ScoringPolicy()
        self.pool_cap = pool_cap
        self.max_workers = max(1, max_workers)

    # ── public match API ──────────────────────────────────────────────────────

    def explain(self, viewer_id: str, candidate_id: str) -> CompatibilityResult:
        """
        Full compatibility result for one pair.
        Raises SelfMatchError, ProfileNotFound or ComputationError.
        """
        if str(viewer_id) == str(candidate_id):
            raise SelfMatchError(viewer_id)

        viewer = self.aggregator.get_matching_profile(viewer_id)
        candidate = self.aggregator.get_matching_profile(candidate_id)
        return score_pair(viewer, candidate, self.policy)

    def find_matches(self, viewer_id: str, limit: int = 10) -> list[CompatibilityResult]:
        """
        Ranked recommendations for `viewer_id`.
        Raises ProfileNotFound when the viewer does not resolve; candidates
        that fail to resolve are logged and skipped.
        """
        viewer = self.aggregator.get_matching_profile(viewer_id)
        pool = self.build_candidate_pool(viewer.id)
        logger.info(f"Scoring {len(pool)} candidates for viewer {viewer.id}")

        results = self._score_pool(viewer, pool)
        ranked = rank_results(results, limit=limit, min_score=self.policy.min_match_score)
        logger.info(
            f"  → {len(ranked)} matches returned for {viewer.id} "
            f"({len(results)} scored, {len(pool) - len(results)} skipped)"
        )
        return ranked

    def build_candidate_pool(self, viewer_id: str) -> list[str]:
        connections = self.repo.get_connections(viewer_id)
        exclude = {str(viewer_id), *map(str, connections)}
        pool = self.repo.list_eligible_candidates(exclude, self.pool_cap)
        # The repository is external; enforce the exclusions here as well
        return [cid for cid in pool if str(cid) not in exclude][: self.pool_cap]

    # ── scoring core ──────────────────────────────────────────────────────────

    def _score_pool(self, viewer: MatchingProfile, pool: list[str]) -> list[CompatibilityResult]:
        if self.max_workers == 1 or len(pool) <= 1:
            outcomes = [self._score_candidate(viewer, cid) for cid in pool]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                outcomes = list(executor.map(lambda cid: self._score_candidate(viewer, cid), pool))
        return [r for r in outcomes if r is not None]

    def _score_candidate(self, viewer: MatchingProfile, candidate_id: str) -> CompatibilityResult | None:
        try:
            candidate = self.aggregator.get_matching_profile(candidate_id)
        except ProfileNotFound as exc:
            logger.warning(f"Skipping candidate {candidate_id}: {exc}")
            return None
        except ComputationError as exc:
            logger.warning(f"Skipping candidate {candidate_id}: {exc}")
            return None
        return score_pair(viewer, candidate, self.policy)
