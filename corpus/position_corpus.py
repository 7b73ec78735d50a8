"""
Position Corpus

The read-only set of source games plus the weight index of admissible
sampling points. Created once at session start; creation failures are
fatal to the session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence, Tuple

import pandas as pd

from quiz.errors import CorpusLoadError
from quiz.quiz_types import WeightEntry

from .pgn_loader import load_games, split_transcripts
from .weights_loader import load_weight_index, parse_weight_rows

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionCorpus:
    """Game transcripts and their weight index."""
    games: Tuple[str, ...]
    weight_index: Tuple[WeightEntry, ...]

    def __post_init__(self) -> None:
        if not self.games:
            raise CorpusLoadError("Corpus contains no games")
        if not self.weight_index:
            raise CorpusLoadError("Corpus weight index is empty")
        n_games = len(self.games)
        for entry in self.weight_index:
            if not 0 <= entry.game < n_games:
                raise CorpusLoadError(
                    f"Weight entry refers to game {entry.game}, corpus has {n_games} games"
                )

    @property
    def game_count(self) -> int:
        return len(self.games)

    @classmethod
    def from_data(
        cls,
        games: Sequence[str],
        weight_rows: Iterable[Mapping[str, Any]] | Iterable[WeightEntry],
    ) -> PositionCorpus:
        """Build a corpus from in-memory transcripts and weight rows."""
        rows = list(weight_rows)
        if rows and isinstance(rows[0], WeightEntry):
            entries = rows
        else:
            try:
                entries = parse_weight_rows(rows)
            except ValueError as e:
                raise CorpusLoadError(str(e)) from e
        return cls(games=tuple(games), weight_index=tuple(entries))

    @classmethod
    def from_pgn_text(cls, pgn_text: str, weight_rows: Iterable[Mapping[str, Any]]) -> PositionCorpus:
        return cls.from_data(split_transcripts(pgn_text), weight_rows)

    @classmethod
    def load(cls, games_source: str, weights_source: str, timeout: float = 10.0) -> PositionCorpus:
        """
        Load games and weights from files or URLs.

        Raises:
            CorpusLoadError: If either file fails to load or holds no data
        """
        games = load_games(games_source, timeout=timeout)
        if not games:
            raise CorpusLoadError(f"No games found in {games_source}")

        weights = load_weight_index(weights_source, timeout=timeout)
        if weights is None:
            raise CorpusLoadError(f"Failed to load weight index from {weights_source}")

        corpus = cls(games=tuple(games), weight_index=tuple(weights))
        logger.info("Corpus ready: %d games, %d weight rows", corpus.game_count, len(corpus.weight_index))
        return corpus

    def stats(self) -> dict:
        """Entry counts and total weight per side to move."""
        df = pd.DataFrame([e.to_dict() for e in self.weight_index])
        df["side"] = df["ply"].mod(2).map({0: "white", 1: "black"})
        grouped = df.groupby("side")["weight"].agg(["count", "sum"])

        def _side(name: str) -> dict:
            if name not in grouped.index:
                return {"entries": 0, "total_weight": 0.0}
            row = grouped.loc[name]
            return {"entries": int(row["count"]), "total_weight": float(row["sum"])}

        return {
            "games": self.game_count,
            "weight_rows": len(self.weight_index),
            "games_referenced": int(df["game"].nunique()),
            "white_to_move": _side("white"),
            "black_to_move": _side("black"),
        }
