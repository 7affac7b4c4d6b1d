"""
utils/data_loader.py
────────────────────
Loads and caches the learner dataset file.

The file is a single JSON document with three record sets:
  - accounts      (one object per learner account)
  - progress      (language-progress records, keyed by userId)
  - preferences   (learner-preference records, keyed by userId)
"""

import json
from functools import lru_cache
from pathlib import Path

import pandas as pd

from config.settings import get_settings
from utils.data_processor import SET_ACCOUNTS, SET_PREFERENCES, SET_PROGRESS
from utils.logger import logger


def read_dataset(path: Path) -> dict[str, pd.DataFrame]:
    """Read one dataset file into a dict of raw DataFrames."""
    if not path.exists():
        raise FileNotFoundError(
            f"Dataset not found at {path}. "
            "Place learners.json inside the ./data/ folder or set DATA_DIR / DATASET_FILE."
        )

    logger.info(f"Loading learner dataset from {path}")
    payload = json.loads(path.read_text(encoding="utf-8"))

    sets = {
        name: pd.DataFrame.from_records(payload.get(name) or [])
        for name in (SET_ACCOUNTS, SET_PROGRESS, SET_PREFERENCES)
    }
    for name, df in sets.items():
        logger.info(f"Record set '{name}': {len(df)} rows × {len(df.columns)} columns")

    return sets


@lru_cache(maxsize=1)
def load_all_sets() -> dict[str, pd.DataFrame]:
    """
    Read all three record sets from the configured dataset file.
    Results are cached so the file is only read once per process.
    """
    return read_dataset(get_settings().dataset_path)
