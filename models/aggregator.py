"""
models/aggregator.py
────────────────────
Builds one MatchingProfile per learner from the account record plus any
learning-progress and preference records the repository holds.

Key transformations
───────────────────
1. Language fields given as a single tag or a list → ordered tuple
2. Proficiency given as "B1", {"level": "B1"} or beginner/intermediate/
   advanced/native → CEFR level (A1…C2)
3. Goals given as plain tags or {language, goals, priority} objects →
   LearningGoal entries (plain tags share one entry with language=None)
4. Availability given as flat tags, or as preference time slots
   [{day, timeSlots}] → flat tags ("Monday Evening")
5. Session counts summed across every progress record → activity_stats

Absent auxiliary records leave the matching fields empty; the sub-score
calculators turn that into their neutral values.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable

import pandas as pd

from models.exceptions import ComputationError, ProfileNotFound
from models.profile import (
    CEFR_LEVELS,
    COARSE_LEVELS,
    DEFAULT_LEVEL,
    LanguageProficiency,
    LearningGoal,
    MatchingProfile,
)
from models.repository import ProfileRepository
from utils.data_processor import as_tag_list, is_missing


# ── internal helpers ──────────────────────────────────────────────────────────

def _val(record: dict[str, Any] | None, *candidates: str, default: Any = None) -> Any:
    """First non-missing value among snake_case / camelCase key variants."""
    if not record:
        return default
    for key in candidates:
        if key in record and not is_missing(record[key]):
            return record[key]
    return default


def normalise_level(raw: Any) -> str:
    """Map any supported proficiency shape onto a CEFR level."""
    if isinstance(raw, dict):
        raw = _val(raw, "level", "proficiency_level", "proficiencyLevel", "current_level")
    if is_missing(raw):
        return DEFAULT_LEVEL

    tag = str(raw).strip()
    if tag.upper() in CEFR_LEVELS:
        return tag.upper()
    if tag.lower() in COARSE_LEVELS:
        return COARSE_LEVELS[tag.lower()]
    return DEFAULT_LEVEL


def parse_timestamp(raw: Any) -> datetime | None:
    if is_missing(raw) or raw == "":
        return None
    if isinstance(raw, pd.Timestamp):
        ts = raw.to_pydatetime()
    elif isinstance(raw, datetime):
        ts = raw
    else:
        parsed = pd.to_datetime(raw, errors="coerce", utc=True)
        if pd.isna(parsed):
            return None
        ts = parsed.to_pydatetime()
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _session_count(progress: dict[str, Any]) -> int:
    stats = _val(progress, "stats", default={}) or {}
    raw = _val(stats, "total_sessions_completed", "totalSessionsCompleted", default=0)
    try:
        return max(int(raw), 0)
    except (TypeError, ValueError):
        return 0


def build_goals(*sources: Any) -> tuple[LearningGoal, ...]:
    """
    Merge goal lists from several records. Structured entries for the same
    language are unioned; plain tags are collected under language=None.
    """
    by_language: dict[str | None, tuple[set[str], int]] = {}

    def _add(language: str | None, tags: Iterable[str], priority: int) -> None:
        tags = set(tags)
        if not tags:
            return
        current, best = by_language.get(language, (set(), priority))
        by_language[language] = (current | tags, min(best, priority))

    for source in sources:
        for item in as_goal_items(source):
            if isinstance(item, dict):
                language = _val(item, "language")
                tags = as_tag_list(_val(item, "goals", default=[]))
                raw_priority = _val(item, "priority", default=0)
                try:
                    priority = int(raw_priority)
                except (TypeError, ValueError):
                    priority = 0
                _add(str(language).strip() if language else None, tags, priority)
            else:
                _add(None, as_tag_list(item), 0)

    ordered = sorted(by_language.items(), key=lambda kv: (kv[0] is None, kv[0] or ""))
    return tuple(
        LearningGoal(language=lang, goals=frozenset(tags), priority=priority)
        for lang, (tags, priority) in ordered
    )


def as_goal_items(value: Any) -> list[Any]:
    if is_missing(value):
        return []
    if isinstance(value, (str, dict)):
        return [value]
    return list(value)


def slots_to_tags(slots: Any) -> list[str]:
    """[{day: "Monday", timeSlots: ["Evening"]}] → ["Monday Evening"]."""
    tags: list[str] = []
    for slot in as_goal_items(slots):
        if not isinstance(slot, dict):
            tags.extend(as_tag_list(slot))
            continue
        day = _val(slot, "day", default="")
        for part in as_tag_list(_val(slot, "time_slots", "timeSlots", default=[])):
            tags.append(f"{day} {part}".strip())
    return as_tag_list(tags)


# ── public API ────────────────────────────────────────────────────────────────

class ProfileAggregator:
    """Resolves learner ids into MatchingProfiles through a ProfileRepository."""

    def __init__(self, repo: ProfileRepository) -> None:
        self.repo = repo

    def get_matching_profile(self, learner_id: str) -> MatchingProfile:
        """
        Raises ProfileNotFound when the account does not exist and
        ComputationError when a lookup fails or the records cannot be merged.
        """
        try:
            account = self.repo.get_account(learner_id)
        except Exception as exc:
            raise ComputationError(learner_id, str(exc)) from exc
        if account is None:
            raise ProfileNotFound(learner_id)

        try:
            progress = self.repo.get_progress(learner_id)
            preferences = self.repo.get_preferences(learner_id)
            return self._merge(str(learner_id), account, progress, preferences)
        except ProfileNotFound:
            raise
        except Exception as exc:
            raise ComputationError(learner_id, str(exc)) from exc

    # ── merging ───────────────────────────────────────────────────────────────

    def _merge(
        self,
        learner_id: str,
        account: dict[str, Any],
        progress: list[dict[str, Any]],
        preferences: dict[str, Any] | None,
    ) -> MatchingProfile:
        native = as_tag_list(_val(account, "native_languages", "nativeLanguages"))
        learning = as_tag_list(_val(account, "learning_languages", "learningLanguages"))

        # Preference records may list languages the account form did not
        for entry in as_goal_items(_val(preferences, "languages", default=[])):
            if not isinstance(entry, dict):
                continue
            language = _val(entry, "language")
            kind = str(_val(entry, "type", default="")).lower()
            if not language:
                continue
            if kind == "native" and language not in native:
                native.append(language)
            elif kind == "learning" and language not in learning:
                learning.append(language)

        availability = as_tag_list(_val(account, "availability"))
        if not availability:
            availability = slots_to_tags(_val(preferences, "available_slots", "availableSlots"))

        goals = build_goals(
            _val(account, "learning_goals", "learningGoals"),
            _val(preferences, "learning_goals", "learningGoals"),
        )

        location = _val(account, "location", default="")

        return MatchingProfile(
            id=learner_id,
            native_languages=tuple(native),
            learning_languages=tuple(learning),
            proficiency_by_language=self._proficiency(progress),
            learning_goals=goals,
            availability=tuple(availability),
            location=" ".join(str(location).split()),
            last_active=parse_timestamp(_val(account, "last_active", "lastActive")),
            activity_stats=sum(_session_count(p) for p in progress),
            display_name=_val(account, "full_name", "fullName"),
        )

    @staticmethod
    def _proficiency(progress: list[dict[str, Any]]) -> dict[str, LanguageProficiency]:
        """Only languages with a progress record carry a level."""
        levels: dict[str, LanguageProficiency] = {}
        for record in progress:
            language = _val(record, "language")
            if not language:
                continue
            levels[str(language).strip()] = LanguageProficiency(
                level=normalise_level(_val(record, "current_level", "currentLevel")),
                started_at=parse_timestamp(_val(record, "start_date", "startDate")),
            )
        return levels
