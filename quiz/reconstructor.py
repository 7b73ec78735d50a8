"""
Game Reconstructor

Replays a recorded game from the standard starting position up to an
arbitrary half-move. Positions are always reached by applying recorded
moves one at a time, never loaded from a stored FEN, so every
materialized position is reachable and legal by construction.
"""

from __future__ import annotations

import io
import logging
from typing import Dict, Sequence, Tuple

import chess
import chess.pgn

from .errors import ReplayError
from .quiz_types import Position

logger = logging.getLogger(__name__)


class GameReconstructor:
    """
    Materializes positions from PGN transcripts.

    Each transcript is parsed at most once; its SAN history is cached.

    Args:
        games: Ordered PGN transcripts (index = game reference)
    """

    def __init__(self, games: Sequence[str]):
        self._games = games
        self._history_cache: Dict[int, Tuple[str, ...]] = {}

    def history(self, game_index: int) -> Tuple[str, ...]:
        """SAN notation of every mainline move of the game."""
        cached = self._history_cache.get(game_index)
        if cached is not None:
            return cached

        if not 0 <= game_index < len(self._games):
            raise ReplayError(game_index, None, f"no such game (corpus has {len(self._games)})")

        game = chess.pgn.read_game(io.StringIO(self._games[game_index]))
        if game is None:
            raise ReplayError(game_index, None, "transcript does not contain a game")
        if game.errors:
            raise ReplayError(game_index, None, f"transcript failed to parse: {game.errors[0]}")

        san_moves = []
        board = game.board()
        for move in game.mainline_moves():
            san_moves.append(board.san(move))
            board.push(move)

        history = tuple(san_moves)
        self._history_cache[game_index] = history
        return history

    def _replay(self, game_index: int, ply: int) -> chess.Board:
        history = self.history(game_index)
        if ply < 0 or ply > len(history):
            raise ReplayError(
                game_index, ply, f"ply out of range (game has {len(history)} half-moves)"
            )

        board = chess.Board()
        for i in range(ply):
            try:
                board.push_san(history[i])
            except ValueError as e:
                logger.error("Replay failed at game %d, half-move %d (%s): %s",
                             game_index, i, history[i], e)
                raise ReplayError(game_index, ply, f"move {i} ({history[i]}) cannot be applied") from e
        return board

    def materialize(self, game_index: int, ply: int) -> Position:
        """
        Position after the first ``ply`` half-moves of the game.

        Raises:
            ReplayError: transcript corrupt, unknown game, or ply out of range
        """
        board = self._replay(game_index, ply)
        return Position(fen=board.fen(), game_index=game_index, ply=ply)

    def preview(self, game_index: int, ply: int, ply_ahead: int) -> Position:
        """Position ``ply_ahead`` half-moves before ``ply``, clamped at the start."""
        return self.materialize(game_index, max(0, ply - ply_ahead))

    def preview_moves(self, game_index: int, ply: int, ply_ahead: int) -> Tuple[str, ...]:
        """Moves leading from the preview position to the scored position."""
        history = self.history(game_index)
        return history[max(0, ply - ply_ahead):ply]
