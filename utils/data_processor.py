"""
utils/data_processor.py
───────────────────────
LearnerDataProcessor — cleans the three record sets of the learner dataset
before the profile repository queries them:

  • accounts     — core account rows (languages, location, friends, onboarding)
  • progress     — one row per (learner, language) learning-progress record
  • preferences  — optional learner-preference record (goals, time slots)

Key responsibilities
────────────────────
1. snake_case every column name (camelCase aware: fullName → full_name).
2. Coerce learner ids and foreign keys to str, `is_onboarded` to bool.
3. Replace NaN cells with None so rows become plain JSON-like dicts.
4. Drop exact duplicate ids and report data quality.

Shape normalisation of the values themselves (a language given as "Spanish"
vs ["Spanish"], a level given as "B1" vs {"level": "B1"}) happens later, in
models/aggregator.py; the helpers it shares live at the bottom of this module.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable

import pandas as pd

from utils.logger import logger

# ── record-set names inside the dataset file ─────────────────────────────────
SET_ACCOUNTS    = "accounts"
SET_PROGRESS    = "progress"
SET_PREFERENCES = "preferences"

_ACCOUNT_COLUMNS = [
    "id", "full_name", "native_languages", "learning_languages", "location",
    "availability", "learning_goals", "is_onboarded",
    "friends", "last_active",
]
_PROGRESS_COLUMNS = ["user_id", "language", "current_level", "start_date", "stats"]
_PREFERENCE_COLUMNS = ["user_id", "languages", "learning_goals", "available_slots"]


# ── return dataclass ──────────────────────────────────────────────────────────

@dataclass
class ProcessedData:
    accounts:    pd.DataFrame
    progress:    pd.DataFrame
    preferences: pd.DataFrame
    quality_report: dict[str, Any] = field(default_factory=dict)

    def summary(self) -> str:
        lines = [
            "═══ ProcessedData Summary ═══",
            f"  Accounts    : {len(self.accounts):,} rows × {len(self.accounts.columns)} cols",
            f"  Progress    : {len(self.progress):,} rows × {len(self.progress.columns)} cols",
            f"  Preferences : {len(self.preferences):,} rows × {len(self.preferences.columns)} cols",
        ]
        for name, rpt in self.quality_report.items():
            lines.append(f"\n  [{name}] quality")
            for k, v in rpt.items():
                lines.append(f"    {k}: {v}")
        return "\n".join(lines)


# ── main class ────────────────────────────────────────────────────────────────

class LearnerDataProcessor:
    """
    Parameters
    ----------
    raw     : dict of record-set name → raw DataFrame (see utils/data_loader.py)
    verbose : log progress messages at INFO instead of DEBUG
    """

    def __init__(self, raw: dict[str, pd.DataFrame], verbose: bool = False) -> None:
        self._raw = raw
        self.verbose = verbose

    def run(self) -> ProcessedData:
        accounts, acc_qr = self._process_accounts(self._frame(SET_ACCOUNTS, _ACCOUNT_COLUMNS))
        progress, prog_qr = self._process_progress(self._frame(SET_PROGRESS, _PROGRESS_COLUMNS))
        preferences, pref_qr = self._process_preferences(
            self._frame(SET_PREFERENCES, _PREFERENCE_COLUMNS)
        )

        result = ProcessedData(
            accounts=accounts,
            progress=progress,
            preferences=preferences,
            quality_report={
                SET_ACCOUNTS:    acc_qr,
                SET_PROGRESS:    prog_qr,
                SET_PREFERENCES: pref_qr,
            },
        )
        self._log(result.summary())
        return result

    # ── record sets ───────────────────────────────────────────────────────────

    def _frame(self, name: str, expected: list[str]) -> pd.DataFrame:
        df = self._raw.get(name)
        if df is None:
            df = pd.DataFrame()
        df = self._standardise_columns(df.copy())
        for col in expected:
            if col not in df.columns:
                df[col] = None
        return df

    def _process_accounts(self, df: pd.DataFrame) -> tuple[pd.DataFrame, dict]:
        self._log("Processing accounts …")
        qr = self._quality_report(df, label="accounts (raw)")

        df = self._drop_missing_ids(df, "id")
        df["id"] = df["id"].astype(str).str.strip()
        df["is_onboarded"] = df["is_onboarded"].apply(_as_bool)
        df["friends"] = df["friends"].apply(lambda v: [str(f) for f in as_tag_list(v)])
        df = self._nan_to_none(df)
        df = self._drop_duplicate_ids(df, "id")

        self._log(f"  Accounts ready: {len(df):,} rows")
        return df, qr

    def _process_progress(self, df: pd.DataFrame) -> tuple[pd.DataFrame, dict]:
        self._log("Processing progress records …")
        qr = self._quality_report(df, label="progress (raw)")

        df = self._drop_missing_ids(df, "user_id")
        df["user_id"] = df["user_id"].astype(str).str.strip()
        df = self._nan_to_none(df)

        self._log(f"  Progress ready: {len(df):,} rows")
        return df.reset_index(drop=True), qr

    def _process_preferences(self, df: pd.DataFrame) -> tuple[pd.DataFrame, dict]:
        self._log("Processing preference records …")
        qr = self._quality_report(df, label="preferences (raw)")

        df = self._drop_missing_ids(df, "user_id")
        df["user_id"] = df["user_id"].astype(str).str.strip()
        df = self._nan_to_none(df)
        df = self._drop_duplicate_ids(df, "user_id")

        self._log(f"  Preferences ready: {len(df):,} rows")
        return df, qr

    # ── shared transforms ─────────────────────────────────────────────────────

    @staticmethod
    def _standardise_columns(df: pd.DataFrame) -> pd.DataFrame:
        """snake_case column names; `_id` → `id`."""
        df.columns = [snake_case(str(c)) for c in df.columns]
        return df

    @staticmethod
    def _drop_missing_ids(df: pd.DataFrame, id_col: str) -> pd.DataFrame:
        return df[df[id_col].notna()].copy()

    @staticmethod
    def _nan_to_none(df: pd.DataFrame) -> pd.DataFrame:
        return df.astype(object).where(pd.notna(df), None)

    def _drop_duplicate_ids(self, df: pd.DataFrame, id_col: str) -> pd.DataFrame:
        before = len(df)
        df = df.drop_duplicates(subset=[id_col], keep="first")
        diff = before - len(df)
        if diff:
            logger.warning(f"Removed {diff} duplicate '{id_col}' row(s)")
        return df.reset_index(drop=True)

    # ── reporting helpers ─────────────────────────────────────────────────────

    @staticmethod
    def _quality_report(df: pd.DataFrame, label: str = "") -> dict:
        total = len(df)
        missing = df.isna().sum()
        pct_missing = (missing / total * 100).round(2) if total else missing * 0
        return {
            "total_rows": total,
            "total_cols": len(df.columns),
            "missing_by_col": {
                col: f"{int(cnt)} ({pct_missing[col]:.1f}%)"
                for col, cnt in missing.items()
                if cnt > 0
            },
        }

    def _log(self, msg: str) -> None:
        if self.verbose:
            logger.info(msg)
        else:
            logger.debug(msg)


# ── value helpers (shared with models/aggregator.py) ──────────────────────────

def snake_case(name: str) -> str:
    name = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", name.strip())
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and value != value:   # NaN
        return True
    return False


def as_tag_list(value: Any) -> list[str]:
    """
    Accepts None, a single tag, or any iterable of tags.
    Returns trimmed, non-empty tags in first-seen order with duplicates removed.
    """
    if is_missing(value):
        return []
    items: Iterable[Any]
    if isinstance(value, str):
        items = [value]
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = sorted(value) if isinstance(value, (set, frozenset)) else value
    else:
        items = [value]

    seen: dict[str, None] = {}
    for item in items:
        if is_missing(item):
            continue
        tag = " ".join(str(item).split())
        if tag:
            seen.setdefault(tag, None)
    return list(seen)


def _as_bool(value: Any) -> bool:
    if is_missing(value):
        return False
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "y")
    return bool(value)


# ── convenience function ──────────────────────────────────────────────────────

def load_and_process(raw: dict[str, pd.DataFrame], verbose: bool = False) -> ProcessedData:
    """
    One-liner convenience wrapper.

    >>> from utils.data_loader import load_all_sets
    >>> data = load_and_process(load_all_sets())
    >>> data.accounts.head()
    """
    return LearnerDataProcessor(raw, verbose=verbose).run()
