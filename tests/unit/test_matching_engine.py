"""
tests/unit/test_matching_engine.py

Candidate pool building, ranking, failure skipping and the pairwise
explanation path of MatchingEngine.
"""
from datetime import datetime, timedelta, timezone

import pytest

from models.exceptions import ComputationError, ProfileNotFound, SelfMatchError
from models.matchmaker import MatchingEngine, filter_by_preferences, rank_results, score_pair
from models.profile import CompatibilityResult, ScoreBreakdown


def _result(cid: str, score: int) -> CompatibilityResult:
    return CompatibilityResult(
        viewer_id="v",
        candidate_id=cid,
        overall_score=score,
        score_breakdown=ScoreBreakdown(0, 0, 0, 0, 0, 0),
        reasons=(),
        tier="fair",
    )


# ------------------------------------------------------------------
# rank_results
# ------------------------------------------------------------------

def test_rank_results_threshold_is_exclusive():
    ranked = rank_results([_result("a", 30), _result("b", 31), _result("c", 29)], limit=10)
    assert [r.candidate_id for r in ranked] == ["b"]


def test_rank_results_breaks_ties_by_candidate_id():
    results = [_result("zed", 60), _result("amy", 60), _result("bob", 90), _result("cat", 60)]
    ranked = rank_results(results, limit=3)
    assert [r.candidate_id for r in ranked] == ["bob", "amy", "cat"]


def test_rank_results_limit_zero():
    assert rank_results([_result("a", 90)], limit=0) == []


# ------------------------------------------------------------------
# find_matches
# ------------------------------------------------------------------

def test_find_matches_excludes_self_connections_and_not_onboarded(memory_repo):
    engine = MatchingEngine(memory_repo, max_workers=1)
    ids = [r.candidate_id for r in engine.find_matches("viewer")]

    assert "viewer" not in ids
    assert "friend" not in ids
    assert "c_new" not in ids
    assert ids[0] == "c_en"


def test_find_matches_results_all_pass_threshold(memory_repo):
    engine = MatchingEngine(memory_repo)
    results = engine.find_matches("viewer", limit=50)
    assert results
    assert all(r.overall_score > 30 for r in results)
    assert all(len(r.reasons) <= 4 for r in results)


def test_find_matches_respects_limit(memory_repo):
    engine = MatchingEngine(memory_repo)
    assert len(engine.find_matches("viewer", limit=1)) == 1


def test_find_matches_unknown_viewer_raises(memory_repo):
    with pytest.raises(ProfileNotFound):
        MatchingEngine(memory_repo).find_matches("ghost")


def test_twin_profile_never_matches_itself(repo_factory):
    twin = {
        "id": "twin", "native_languages": ["Spanish"], "learning_languages": ["English"],
        "availability": ["Evenings", "Weekends", "Mornings"], "location": "Madrid, Spain",
        "is_onboarded": True,
    }
    other = {**twin, "id": "other", "native_languages": ["English"], "learning_languages": ["Spanish"]}
    # A misbehaving repository that hands the viewer back as a candidate
    repo = repo_factory({"twin": twin, "other": other}, extra_candidates=["twin"])

    ids = [r.candidate_id for r in MatchingEngine(repo).find_matches("twin")]
    assert ids == ["other"]


def test_candidate_failing_mid_batch_is_skipped(repo_factory, accounts):
    repo = repo_factory(accounts, broken=["c_fr"], extra_candidates=["vanished"])
    engine = MatchingEngine(repo, max_workers=4)

    results = engine.find_matches("viewer", limit=50)
    ids = {r.candidate_id for r in results}

    assert "c_en" in ids
    assert "c_fr" not in ids
    assert "vanished" not in ids


def test_pool_cap_limits_candidates(repo_factory):
    accounts = {
        f"c{i:03d}": {"id": f"c{i:03d}", "native_languages": ["English"],
                      "learning_languages": ["Spanish"], "is_onboarded": True}
        for i in range(10)
    }
    accounts["viewer"] = {"id": "viewer", "native_languages": ["Spanish"],
                          "learning_languages": ["English"], "is_onboarded": True}
    engine = MatchingEngine(repo_factory(accounts), pool_cap=3)

    assert engine.build_candidate_pool("viewer") == ["c000", "c001", "c002"]
    assert [r.candidate_id for r in engine.find_matches("viewer")] == ["c000", "c001", "c002"]


def test_parallel_and_sequential_scoring_agree(memory_repo):
    sequential = MatchingEngine(memory_repo, max_workers=1).find_matches("viewer")
    parallel = MatchingEngine(memory_repo, max_workers=8).find_matches("viewer")
    assert sequential == parallel


# ------------------------------------------------------------------
# explain
# ------------------------------------------------------------------

def test_explain_returns_full_result(memory_repo):
    result = MatchingEngine(memory_repo).explain("viewer", "c_en")

    assert result.viewer_id == "viewer"
    assert result.candidate_id == "c_en"
    assert result.score_breakdown.language_compatibility == 100
    assert result.reasons[0].startswith("You speak Spanish natively, which Ella is learning")


def test_explain_includes_connections(memory_repo):
    # Pairwise view is not filtered by the connection set or the threshold
    result = MatchingEngine(memory_repo).explain("viewer", "friend")
    assert result.candidate_id == "friend"


def test_explain_is_deterministic(memory_repo):
    engine = MatchingEngine(memory_repo)
    assert engine.explain("viewer", "c_en") == engine.explain("viewer", "c_en")


def test_explain_self_pair_rejected(memory_repo):
    with pytest.raises(SelfMatchError, match="yourself"):
        MatchingEngine(memory_repo).explain("viewer", "viewer")


def test_explain_unknown_target(memory_repo):
    with pytest.raises(ProfileNotFound):
        MatchingEngine(memory_repo).explain("viewer", "ghost")


def test_explain_propagates_computation_error(repo_factory, accounts):
    repo = repo_factory(accounts, broken=["c_en"])
    with pytest.raises(ComputationError):
        MatchingEngine(repo).explain("viewer", "c_en")


# ------------------------------------------------------------------
# filter_by_preferences
# ------------------------------------------------------------------

def test_filter_by_preferences_active_only(profile_factory):
    now = datetime(2026, 10, 18, tzinfo=timezone.utc)
    fresh = profile_factory(id="fresh", last_active=now - timedelta(days=2))
    stale = profile_factory(id="stale", last_active=now - timedelta(days=30))
    never = profile_factory(id="never")

    kept = filter_by_preferences([fresh, stale, never], active_users_only=True, now=now)
    assert [p.id for p in kept] == ["fresh"]
    assert len(filter_by_preferences([fresh, stale, never])) == 3


def test_score_pair_feeds_tier(profile_factory):
    a = profile_factory(native=["Spanish"], learning=["English"], availability=["A", "B", "C"],
                        goals={None: ["Travel"]}, location="Madrid, Spain", sessions=25,
                        levels={"English": "B1"})
    b = profile_factory(id="u_b", native=["English"], learning=["Spanish"], availability=["A", "B", "C"],
                        goals={None: ["Travel"]}, location="Madrid, Spain", sessions=25,
                        levels={"English": "B1"})
    result = score_pair(a, b)
    assert result.overall_score == 100
    assert result.tier == "excellent"


def test_account_service_fault_for_one_candidate_is_skipped(repo_factory, accounts):
    repo = repo_factory(accounts, broken_accounts=["c_fr"])
    ids = [r.candidate_id for r in MatchingEngine(repo, max_workers=1).find_matches("viewer")]

    assert "c_en" in ids
    assert "c_fr" not in ids


def test_result_carries_scored_candidate(memory_repo):
    result = MatchingEngine(memory_repo).explain("viewer", "c_en")
    assert result.candidate.id == "c_en"
    assert result.candidate.name == "Ella"
