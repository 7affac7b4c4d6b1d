"""
models/repository.py
────────────────────
The profile / account service the matching engine reads from.

`ProfileRepository` is the seam: anything that can answer these calls (a
database gateway, an HTTP client, the in-process DataFrame store below) can
drive the engine. Every method returns plain dicts / lists; turning them into
a MatchingProfile is models/aggregator.py's job.
"""

from __future__ import annotations

from typing import Any, Iterable, Protocol

import pandas as pd

from utils.data_processor import ProcessedData, as_tag_list


class ProfileRepository(Protocol):
    def get_account(self, learner_id: str) -> dict[str, Any] | None:
        ...

    def get_progress(self, learner_id: str) -> list[dict[str, Any]]:
        ...

    def get_preferences(self, learner_id: str) -> dict[str, Any] | None:
        ...

    def get_connections(self, learner_id: str) -> set[str]:
        ...

    def list_eligible_candidates(self, exclude_ids: Iterable[str], cap: int) -> list[str]:
        """Onboarded learners with at least one native or learning language."""
        ...

    def list_learner_ids(self) -> list[str]:
        ...


class DataFrameProfileRepository:
    """
    Read-only repository over the cleaned DataFrames from utils/data_processor.py.

    Lookups are served from dict indexes built once at construction, so the
    repository can be shared by the engine's worker threads without locking.
    """

    def __init__(self, data: ProcessedData) -> None:
        self.accounts_df = data.accounts.sort_values("id").reset_index(drop=True)

        self._accounts: dict[str, dict[str, Any]] = {
            rec["id"]: rec for rec in self.accounts_df.to_dict(orient="records")
        }
        self._progress: dict[str, list[dict[str, Any]]] = {}
        for rec in data.progress.to_dict(orient="records"):
            self._progress.setdefault(rec["user_id"], []).append(rec)
        self._preferences: dict[str, dict[str, Any]] = {
            rec["user_id"]: rec for rec in data.preferences.to_dict(orient="records")
        }

        has_language = self.accounts_df.apply(
            lambda row: bool(as_tag_list(row["native_languages"]) or as_tag_list(row["learning_languages"])),
            axis=1,
        ) if not self.accounts_df.empty else pd.Series(dtype=bool)
        self._eligible_mask = (self.accounts_df["is_onboarded"] == True) & has_language  # noqa: E712

    # ── lookups ───────────────────────────────────────────────────────────────

    def get_account(self, learner_id: str) -> dict[str, Any] | None:
        return self._accounts.get(str(learner_id))

    def get_progress(self, learner_id: str) -> list[dict[str, Any]]:
        return list(self._progress.get(str(learner_id), []))

    def get_preferences(self, learner_id: str) -> dict[str, Any] | None:
        return self._preferences.get(str(learner_id))

    def get_connections(self, learner_id: str) -> set[str]:
        account = self.get_account(learner_id)
        if account is None:
            return set()
        return {str(f) for f in account.get("friends") or []}

    # ── candidate queries ─────────────────────────────────────────────────────

    def list_eligible_candidates(self, exclude_ids: Iterable[str], cap: int) -> list[str]:
        if self.accounts_df.empty or cap <= 0:
            return []
        excluded = {str(i) for i in exclude_ids}
        mask = self._eligible_mask & ~self.accounts_df["id"].isin(excluded)
        return self.accounts_df.loc[mask, "id"].head(cap).tolist()

    def list_learner_ids(self) -> list[str]:
        return self.accounts_df["id"].tolist()
