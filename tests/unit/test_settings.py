"""
tests/unit/test_settings.py

Settings defaults, environment overrides and weight validation.
"""
import pytest
from pydantic import ValidationError

from config.settings import Settings
from models.profile import DEFAULT_WEIGHTS


def test_defaults_match_scoring_policy():
    settings = Settings(_env_file=None)
    policy = settings.scoring_policy()

    assert dict(policy.weights) == DEFAULT_WEIGHTS
    assert policy.min_match_score == 30
    assert policy.max_reasons == 4
    assert settings.candidate_pool_cap == 100
    assert settings.dataset_path.name == "learners.json"


def test_env_override(monkeypatch):
    monkeypatch.setenv("MIN_MATCH_SCORE", "45")
    monkeypatch.setenv("DATASET_FILE", "other.json")
    settings = Settings(_env_file=None)

    assert settings.scoring_policy().min_match_score == 45
    assert settings.dataset_path.name == "other.json"


def test_weights_must_sum_to_one():
    with pytest.raises(ValidationError, match="sum to 1.0"):
        Settings(_env_file=None, weight_language=0.5)


def test_weights_must_be_non_negative():
    with pytest.raises(ValidationError, match="non-negative"):
        Settings(_env_file=None, weight_language=0.50, weight_location=-0.05)


def test_rebalanced_weights_accepted():
    settings = Settings(_env_file=None, weight_language=0.35, weight_location=0.10)
    assert settings.weights["location_bonus"] == 0.10


def test_pool_cap_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, candidate_pool_cap=0)
