"""
config/settings.py
──────────────────
Centralised settings loaded from .env via pydantic-settings.

Every weight, threshold and cap the matching engine applies lives here so the
scoring rules can be audited and overridden without touching the engine.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from models.profile import ScoringPolicy


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Server
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"

    # Data
    data_dir: Path = Path("./data")
    dataset_file: str = "learners.json"

    # Sub-score weights (must sum to 1.0)
    weight_language: float = 0.40
    weight_availability: float = 0.25
    weight_goals: float = 0.15
    weight_experience: float = 0.10
    weight_activity: float = 0.05
    weight_location: float = 0.05

    # Ranking
    min_match_score: int = 30
    candidate_pool_cap: int = 100
    default_match_limit: int = 10
    max_match_limit: int = 50
    refresh_match_limit: int = 20
    match_workers: int = 4

    # Reasons
    max_reasons: int = 4
    reason_language_reciprocal: int = 90
    reason_language_shared: int = 40
    reason_availability: int = 75
    reason_goals: int = 60
    reason_location: int = 75
    reason_activity: int = 80
    max_reason_items: int = 2

    # Preference filter
    active_days_window: int = 7

    # Logging
    log_level: str = "INFO"
    log_file: Path = Path("./logs/app.log")
    log_to_file: bool = True

    @model_validator(mode="after")
    def _check_weights(self) -> "Settings":
        weights = self.weights
        negative = [k for k, v in weights.items() if v < 0]
        if negative:
            raise ValueError(f"weights must be non-negative: {negative}")
        total = round(sum(weights.values()), 6)
        if total != 1.0:
            raise ValueError(f"weights must sum to 1.0, got {total}")
        if self.max_reasons < 0 or self.candidate_pool_cap < 1:
            raise ValueError("max_reasons must be >= 0 and candidate_pool_cap >= 1")
        return self

    @property
    def weights(self) -> dict[str, float]:
        return {
            "language_compatibility": self.weight_language,
            "availability_match":     self.weight_availability,
            "goals_alignment":        self.weight_goals,
            "experience_level":       self.weight_experience,
            "activity_level":         self.weight_activity,
            "location_bonus":         self.weight_location,
        }

    @property
    def dataset_path(self) -> Path:
        return self.data_dir / self.dataset_file

    def scoring_policy(self) -> ScoringPolicy:
        return ScoringPolicy(
            weights=self.weights,
            min_match_score=self.min_match_score,
            max_reasons=self.max_reasons,
            reason_language_reciprocal=self.reason_language_reciprocal,
            reason_language_shared=self.reason_language_shared,
            reason_availability=self.reason_availability,
            reason_goals=self.reason_goals,
            reason_location=self.reason_location,
            reason_activity=self.reason_activity,
            max_reason_items=self.max_reason_items,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
