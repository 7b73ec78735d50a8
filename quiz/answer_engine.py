"""
Answer Engine - Ground-Truth Move Counts

Counts and lists the legal moves, checking moves and capturing moves of a
position, for the side to move or (with a side-to-move flip) for the other
side.

All logic is deterministic: moves are reported in python-chess generation
order and duplicate (square, piece) targets are kept.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List

import chess

from .errors import InvalidQuestionTypeError
from .quiz_types import AnswerRecord, MoveKind, MoveTarget, Perspective, Position, QuestionType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MoveDetail:
    """One legal move with the details the classifiers need."""
    move: chess.Move
    san: str
    to_square: str
    piece: str
    is_capture: bool
    is_en_passant: bool


def enumerate_moves(board: chess.Board) -> List[MoveDetail]:
    """All legal moves of the side to move, in generation order."""
    details = []
    for move in board.legal_moves:
        piece_type = board.piece_type_at(move.from_square)
        details.append(MoveDetail(
            move=move,
            san=board.san(move),
            to_square=chess.square_name(move.to_square),
            piece=chess.piece_symbol(piece_type),
            is_capture=board.is_capture(move),
            is_en_passant=board.is_en_passant(move),
        ))
    return details


def _gives_check_by_trial(board: chess.Board, move: chess.Move) -> bool:
    trial = board.copy(stack=False)
    trial.push(move)
    return trial.is_check()


def _record(details: Iterable[MoveDetail]) -> AnswerRecord:
    details = list(details)
    return AnswerRecord(
        count=len(details),
        moves=tuple(d.san for d in details),
        targets=tuple(MoveTarget(d.to_square, d.piece) for d in details),
    )


# =============================================================================
# COUNTING
# =============================================================================


def count_all_legal(board: chess.Board) -> AnswerRecord:
    """Every legal move."""
    return _record(enumerate_moves(board))


def count_captures(board: chess.Board) -> AnswerRecord:
    """Standard captures and en-passant captures."""
    return _record(d for d in enumerate_moves(board) if d.is_capture or d.is_en_passant)


def count_checks(board: chess.Board) -> AnswerRecord:
    """
    Moves that leave the opponent in check.

    Each candidate is applied to a stackless copy of the board and the
    resulting position is asked whether its side to move is in check.
    """
    return _record(d for d in enumerate_moves(board) if _gives_check_by_trial(board, d.move))


_COUNTERS = {
    MoveKind.ALL_LEGAL: count_all_legal,
    MoveKind.CHECKS: count_checks,
    MoveKind.CAPTURES: count_captures,
}


def question_type_for(color: chess.Color, kind: MoveKind, mover_color: chess.Color) -> QuestionType:
    """Question type that counts ``kind`` moves for the absolute ``color``."""
    perspective = Perspective.MOVER if color == mover_color else Perspective.OPPONENT
    return QuestionType(perspective, kind)


def board_for_perspective(position: Position, perspective: Perspective) -> chess.Board:
    """
    Board to evaluate for a perspective.

    OPPONENT flips the side to move; nothing else in the position changes.
    """
    if perspective == Perspective.MOVER:
        return position.board()
    if perspective == Perspective.OPPONENT:
        board = position.board()
        board.turn = not board.turn
        if board.was_into_check():
            # The side that now waits is in check: not a reachable position,
            # but move generation is still well defined.
            logger.warning(
                "Flipped position has the waiting side in check (game %d, ply %d): %s",
                position.game_index, position.ply, board.fen(),
            )
        return board
    raise InvalidQuestionTypeError(f"Unknown perspective: {perspective!r}")


class AnswerEngine:
    """Computes the ground-truth answer for (position, question type) pairs."""

    def answer(self, position: Position, question_type: QuestionType) -> AnswerRecord:
        """
        Count, notations and targets for one question.

        Raises:
            InvalidQuestionTypeError: perspective or kind outside the known set
        """
        if not isinstance(question_type, QuestionType):
            raise InvalidQuestionTypeError(f"Not a question type: {question_type!r}")
        counter = _COUNTERS.get(question_type.kind)
        if counter is None or not isinstance(question_type.kind, MoveKind):
            raise InvalidQuestionTypeError(f"Unknown move kind: {question_type.kind!r}")
        if not isinstance(question_type.perspective, Perspective):
            raise InvalidQuestionTypeError(f"Unknown perspective: {question_type.perspective!r}")

        board = board_for_perspective(position, question_type.perspective)
        return counter(board)

    def answer_all(
        self,
        position: Position,
        question_types: Iterable[QuestionType],
    ) -> Dict[QuestionType, AnswerRecord]:
        """Answers for several question types, keyed by type."""
        return {qt: self.answer(position, qt) for qt in question_types}
