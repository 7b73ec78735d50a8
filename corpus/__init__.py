"""
Corpus Loading

Fetches the PGN game corpus and its weight index from local files or
URLs and assembles the read-only PositionCorpus.
"""

from .pgn_loader import load_games, split_transcripts
from .position_corpus import PositionCorpus
from .sources import read_text
from .weights_loader import load_weight_index, parse_weight_rows

__all__ = [
    "PositionCorpus",
    "load_games",
    "load_weight_index",
    "parse_weight_rows",
    "read_text",
    "split_transcripts",
]
