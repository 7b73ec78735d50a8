"""
PGN corpus loader.

Splits a concatenation of PGN games into individual transcripts. Sections
are separated by blank lines; a section starting with ``[`` opens a new
game (its header block) and any other section is appended to the current
game (its movetext).
"""

from __future__ import annotations

import logging
from typing import List

from .sources import read_text

logger = logging.getLogger(__name__)


def split_transcripts(pgn_text: str) -> List[str]:
    """Return the ordered list of game transcripts found in ``pgn_text``."""
    text = pgn_text.replace("\r\n", "\n")
    sections = [s for s in text.split("\n\n") if s.strip() != ""]

    games: List[str] = []
    current = ""
    for section in sections:
        if section.startswith("["):
            if current:
                games.append(current.strip())
            current = section
        else:
            current += "\n\n" + section

    if current:
        games.append(current.strip())
    return games


def load_games(source: str, timeout: float = 10.0) -> List[str]:
    """
    Load and split the PGN corpus at ``source``.

    An empty result is logged; the caller decides whether it is fatal.
    """
    text = read_text(source, timeout=timeout)
    logger.debug("Raw PGN text length: %d", len(text))

    games = split_transcripts(text)
    logger.info("Number of games found: %d", len(games))
    if not games:
        logger.error("Error with PGN file: no games found in %s", source)
    return games
