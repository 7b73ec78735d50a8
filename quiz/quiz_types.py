"""
Quiz Data Types

Defines the data structures shared by the sampler, the reconstructor,
the answer engine and the session.
All types are immutable except the live session state.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

import chess

from .errors import InvalidQuestionTypeError


class Perspective(str, Enum):
    """
    Whose moves a question counts.

    - MOVER: the side actually to move at the scored position
    - OPPONENT: the other side, as if it were their turn
    """
    MOVER = "mover"
    OPPONENT = "opponent"


class MoveKind(str, Enum):
    """Which subset of the legal moves a question counts."""
    ALL_LEGAL = "all_legal"
    CHECKS = "checks"
    CAPTURES = "captures"


class QuizPhase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    ACTIVE = "active"
    ENDED = "ended"


@dataclass(frozen=True)
class QuestionType:
    """A (perspective, kind) pair identifying one count question."""
    perspective: Perspective
    kind: MoveKind

    @property
    def tag(self) -> str:
        """Stable string form used by settings, e.g. ``mover_checks``."""
        return f"{self.perspective.value}_{self.kind.value}"

    @classmethod
    def from_tag(cls, tag: str) -> QuestionType:
        """Parse a tag produced by :attr:`tag`."""
        text = (tag or "").strip().lower()
        head, _, tail = text.partition("_")
        try:
            return cls(Perspective(head), MoveKind(tail))
        except ValueError as e:
            raise InvalidQuestionTypeError(f"Unknown question type tag: {tag!r}") from e

    def __str__(self) -> str:
        return self.tag


ALL_QUESTION_TYPES: Tuple[QuestionType, ...] = tuple(
    QuestionType(p, k) for p in Perspective for k in MoveKind
)


@dataclass(frozen=True)
class WeightEntry:
    """
    One admissible sampling point of the corpus.

    ``ply`` is the half-move count from the start of the game:
    even means White to move, odd means Black to move.
    """
    game: int
    ply: int
    weight: float

    @property
    def white_to_move(self) -> bool:
        return self.ply % 2 == 0

    def to_dict(self) -> dict:
        return {"game": self.game, "ply": self.ply, "weight": self.weight}


@dataclass(frozen=True)
class Position:
    """
    A materialized position: FEN plus where it came from.

    Derived from a transcript replay, never stored in the corpus.
    """
    fen: str
    game_index: int
    ply: int

    @property
    def turn(self) -> chess.Color:
        return chess.WHITE if self.fen.split(" ")[1] == "w" else chess.BLACK

    def board(self) -> chess.Board:
        """Fresh board for this position (safe to mutate)."""
        return chess.Board(self.fen)

    def flipped(self) -> Position:
        """Same position with the side-to-move field switched."""
        return Position(fen=flip_side_to_move(self.fen), game_index=self.game_index, ply=self.ply)


def flip_side_to_move(fen: str) -> str:
    """Switch the side-to-move field of a FEN, leaving every other field as is."""
    parts = fen.split(" ")
    parts[1] = "b" if parts[1] == "w" else "w"
    return " ".join(parts)


@dataclass(frozen=True)
class MoveTarget:
    """Destination square name and lowercase piece symbol of a move."""
    square: str
    piece: str

    def to_dict(self) -> dict:
        return {"to": self.square, "piece": self.piece}


@dataclass(frozen=True)
class AnswerRecord:
    """Ground truth for one question on one puzzle."""
    count: int
    moves: Tuple[str, ...] = ()
    targets: Tuple[MoveTarget, ...] = ()

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "moves": list(self.moves),
            "targets": [t.to_dict() for t in self.targets],
        }


@dataclass
class QuizSessionState:
    """
    Live state of one quiz session.

    Owned and mutated only by ``QuizSession``.
    ``correctness`` always has exactly the keys of ``active_question_types``.
    """
    active_question_types: Tuple[QuestionType, ...] = ()
    ply_ahead: int = 0
    score: int = 0
    time_remaining: float = math.inf
    answers: Dict[QuestionType, AnswerRecord] = field(default_factory=dict)
    correctness: Dict[QuestionType, bool] = field(default_factory=dict)
    position: Optional[Position] = None
    preview: Optional[Position] = None
    preview_moves: Tuple[str, ...] = ()
    phase: QuizPhase = QuizPhase.IDLE
    ended: bool = False
    puzzles_loaded: int = 0

    @property
    def all_correct(self) -> bool:
        return all(self.correctness.values())

    def get_stats(self) -> dict:
        """Get session statistics."""
        return {
            "score": self.score,
            "time_remaining": self.time_remaining,
            "phase": self.phase.value,
            "ended": self.ended,
            "puzzles_loaded": self.puzzles_loaded,
            "correct": sum(1 for v in self.correctness.values() if v),
            "questions": len(self.active_question_types),
        }
