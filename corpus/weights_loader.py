"""
Weight index loader.

The weight index is a JSON array of ``{"game", "ply", "weight"}`` rows.
Rows are checked with pandas: integer game and ply, non-negative, and a
strictly positive weight.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, List, Mapping, Optional

import pandas as pd

from quiz.errors import CorpusLoadError
from quiz.quiz_types import WeightEntry

from .sources import read_text

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("game", "ply", "weight")


def parse_weight_rows(rows: Iterable[Mapping[str, Any]]) -> List[WeightEntry]:
    """
    Validate raw rows and convert them to WeightEntry objects, keeping order.

    Raises:
        ValueError: If a column is missing or a value is out of range
    """
    rows = list(rows)
    if not rows:
        return []
    bad_rows = [i for i, row in enumerate(rows) if not isinstance(row, Mapping)]
    if bad_rows:
        raise ValueError(f"Weight rows must be objects; bad rows at positions {bad_rows[:5]}")

    df = pd.DataFrame.from_records(rows)
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Weight rows are missing columns: {', '.join(missing)}")

    numeric = df[list(REQUIRED_COLUMNS)].apply(pd.to_numeric, errors="coerce")
    if numeric.isna().any().any():
        bad = numeric[numeric.isna().any(axis=1)].index.tolist()
        raise ValueError(f"Non-numeric weight rows at positions {bad[:5]}")

    for col in ("game", "ply"):
        if ((numeric[col] % 1) != 0).any():
            raise ValueError(f"Column '{col}' must hold integers")
        if (numeric[col] < 0).any():
            raise ValueError(f"Column '{col}' must not be negative")
    if (numeric["weight"] <= 0).any():
        raise ValueError("Every weight must be positive")

    return [
        WeightEntry(game=int(g), ply=int(p), weight=float(w))
        for g, p, w in numeric.itertuples(index=False, name=None)
    ]


def load_weight_index(source: str, timeout: float = 10.0) -> Optional[List[WeightEntry]]:
    """
    Load the weight index at ``source``.

    Returns:
        The parsed entries, or None when the file cannot be fetched or parsed
    """
    try:
        rows = json.loads(read_text(source, timeout=timeout))
        if not isinstance(rows, list):
            raise ValueError("Weight index must be a JSON array")
        weights = parse_weight_rows(rows)
    except (CorpusLoadError, ValueError) as e:
        logger.error("Failed to load game weights: %s", e)
        return None

    logger.info("Loaded %d weight rows", len(weights))
    return weights
