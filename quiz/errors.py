"""
Quiz Errors

Exception hierarchy for the count quiz. Corpus and replay failures are
fatal to the puzzle (or the session) they occur in; question-type errors
indicate a programming mistake.
"""

from __future__ import annotations


class QuizError(Exception):
    """Base class for every error raised by the quiz core."""


class CorpusLoadError(QuizError, RuntimeError):
    """The game transcripts or the weight index could not be loaded."""


class EmptyPartitionError(QuizError, ValueError):
    """No weight entries (or no positive weight) for the requested side to move."""

    def __init__(self, require_white_to_move: bool, message: str = ""):
        self.require_white_to_move = require_white_to_move
        side = "white" if require_white_to_move else "black"
        super().__init__(message or f"No weight entries available for {side} to move")


class ReplayError(QuizError, RuntimeError):
    """A transcript failed to parse or could not be replayed to the requested ply."""

    def __init__(self, game_index: int, ply: int | None, message: str):
        self.game_index = game_index
        self.ply = ply
        where = f"game {game_index}" if ply is None else f"game {game_index}, ply {ply}"
        super().__init__(f"{where}: {message}")


class InvalidQuestionTypeError(QuizError, ValueError):
    """A question type carries a perspective or kind outside the known set."""


class PuzzleLoadInProgressError(QuizError, RuntimeError):
    """A puzzle load was requested while another one was still running."""
