import os

# Keep test runs from writing ./logs/app.log
os.environ.setdefault("LOG_TO_FILE", "false")

from typing import Any, Iterable

import pandas as pd
import pytest

from models.profile import LanguageProficiency, LearningGoal, MatchingProfile
from utils.data_processor import load_and_process


def make_profile(
    id: str = "u_a",
    native: Iterable[str] = (),
    learning: Iterable[str] = (),
    availability: Iterable[str] = (),
    goals: dict[str | None, Iterable[str]] | None = None,
    levels: dict[str, str] | None = None,
    location: str = "",
    sessions: int = 0,
    name: str | None = None,
    last_active=None,
) -> MatchingProfile:
    return MatchingProfile(
        id=id,
        native_languages=tuple(native),
        learning_languages=tuple(learning),
        proficiency_by_language={
            lang: LanguageProficiency(level=lvl) for lang, lvl in (levels or {}).items()
        },
        learning_goals=tuple(
            LearningGoal(language=lang, goals=frozenset(tags))
            for lang, tags in (goals or {}).items()
        ),
        availability=tuple(availability),
        location=location,
        activity_stats=sessions,
        display_name=name,
        last_active=last_active,
    )


class InMemoryRepository:
    """ProfileRepository backed by plain dicts; lets tests inject faults."""

    def __init__(
        self,
        accounts: dict[str, dict[str, Any]],
        progress: dict[str, list[dict[str, Any]]] | None = None,
        preferences: dict[str, dict[str, Any]] | None = None,
        broken: Iterable[str] = (),
        extra_candidates: Iterable[str] = (),
        broken_accounts: Iterable[str] = (),
    ) -> None:
        self.accounts = accounts
        self.progress = progress or {}
        self.preferences = preferences or {}
        self.broken = set(broken)
        self.extra_candidates = list(extra_candidates)
        self.broken_accounts = set(broken_accounts)

    def get_account(self, learner_id):
        if learner_id in self.broken_accounts:
            raise RuntimeError("account service unavailable")
        return self.accounts.get(learner_id)

    def get_progress(self, learner_id):
        if learner_id in self.broken:
            raise RuntimeError("progress service unavailable")
        return list(self.progress.get(learner_id, []))

    def get_preferences(self, learner_id):
        return self.preferences.get(learner_id)

    def get_connections(self, learner_id):
        account = self.accounts.get(learner_id) or {}
        return set(account.get("friends") or [])

    def list_eligible_candidates(self, exclude_ids, cap):
        excluded = set(exclude_ids)
        ids = sorted(
            i for i, acc in self.accounts.items()
            if acc.get("is_onboarded")
            and (acc.get("native_languages") or acc.get("learning_languages"))
            and i not in excluded
        )
        return (ids + self.extra_candidates)[:cap]

    def list_learner_ids(self):
        return sorted(self.accounts)


@pytest.fixture
def profile_factory():
    return make_profile


@pytest.fixture
def scenario_pair():
    """Spanish/English reciprocal pair, same country, no progress data."""
    a = make_profile(
        id="u_a",
        native=["Spanish"],
        learning=["English"],
        availability=["Evenings", "Weekends"],
        goals={"Spanish": ["Conversation", "Travel"]},
        location="Madrid, Spain",
        name="Lucía",
    )
    b = make_profile(
        id="u_b",
        native=["English"],
        learning=["Spanish"],
        availability=["Evenings"],
        goals={"Spanish": ["Conversation"]},
        location="Barcelona, Spain",
        name="James",
    )
    return a, b


@pytest.fixture
def accounts():
    return {
        "viewer": {
            "id": "viewer", "full_name": "Viewer", "native_languages": ["Spanish"],
            "learning_languages": ["English"], "availability": ["Evenings"],
            "location": "Madrid, Spain", "is_onboarded": True, "friends": ["friend"],
        },
        "friend": {
            "id": "friend", "native_languages": ["English"], "learning_languages": ["Spanish"],
            "is_onboarded": True, "friends": ["viewer"],
        },
        "c_en": {
            "id": "c_en", "full_name": "Ella", "native_languages": ["English"],
            "learning_languages": ["Spanish"], "availability": ["Evenings"],
            "location": "Seville, Spain", "is_onboarded": True,
        },
        "c_fr": {
            "id": "c_fr", "native_languages": ["French"], "learning_languages": ["German"],
            "is_onboarded": True,
        },
        "c_new": {
            "id": "c_new", "native_languages": ["English"], "learning_languages": ["Spanish"],
            "is_onboarded": False,
        },
    }


@pytest.fixture
def repo_factory():
    return InMemoryRepository


@pytest.fixture
def memory_repo(accounts):
    return InMemoryRepository(accounts)


@pytest.fixture
def raw_sets():
    return {
        "accounts": pd.DataFrame.from_records([
            {
                "_id": "u_2", "fullName": "Bea", "nativeLanguages": ["English"],
                "learningLanguages": ["Spanish"], "location": "Leeds, UK",
                "isOnboarded": "true", "friends": None,
            },
            {
                "_id": "u_1", "fullName": "Ana", "nativeLanguages": "Spanish",
                "learningLanguages": ["English"], "location": "Madrid, Spain",
                "availability": ["Evenings"], "isOnboarded": True, "friends": ["u_3"],
            },
            {
                "_id": "u_3", "nativeLanguages": ["German"], "learningLanguages": ["English"],
                "isOnboarded": True, "friends": ["u_1"],
            },
            {
                "_id": "u_4", "nativeLanguages": [], "learningLanguages": [],
                "isOnboarded": True,
            },
            {
                "_id": "u_1", "fullName": "Duplicate", "isOnboarded": False,
            },
        ]),
        "progress": pd.DataFrame.from_records([
            {"userId": "u_1", "language": "English", "currentLevel": "B2",
             "stats": {"totalSessionsCompleted": 6}},
            {"userId": "u_2", "language": "Spanish", "currentLevel": {"level": "b1"},
             "stats": {"totalSessionsCompleted": 3}},
        ]),
        "preferences": pd.DataFrame.from_records([
            {"userId": "u_2", "learningGoals": ["Travel"],
             "availableSlots": [{"day": "Monday", "timeSlots": ["Evening"]}]},
        ]),
    }


@pytest.fixture
def processed(raw_sets):
    return load_and_process(raw_sets)
