"""
Display helpers for the count quiz.

Pure functions that turn session data into what the front end shows:
fixed question ordering, input labels, the preview move table, the
revealed answers and the per-square highlight markers.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

import chess

from .answer_engine import question_type_for
from .quiz_types import AnswerRecord, MoveKind, MoveTarget, Perspective, QuestionType

# Fixed display order: White then Black, Moves -> Checks -> Captures
DISPLAY_ORDER: Tuple[Tuple[chess.Color, MoveKind], ...] = (
    (chess.WHITE, MoveKind.ALL_LEGAL),
    (chess.WHITE, MoveKind.CHECKS),
    (chess.WHITE, MoveKind.CAPTURES),
    (chess.BLACK, MoveKind.ALL_LEGAL),
    (chess.BLACK, MoveKind.CHECKS),
    (chess.BLACK, MoveKind.CAPTURES),
)

KIND_LABELS = {
    MoveKind.ALL_LEGAL: "Moves",
    MoveKind.CHECKS: "Checks",
    MoveKind.CAPTURES: "Captures",
}


def color_of(question_type: QuestionType, mover_color: chess.Color) -> chess.Color:
    """Absolute colour a question type asks about."""
    return mover_color if question_type.perspective == Perspective.MOVER else not mover_color


def display_order(
    active: Iterable[QuestionType],
    mover_color: chess.Color,
) -> List[QuestionType]:
    """Active question types in the fixed display order."""
    active_set = set(active)
    out = []
    for color, kind in DISPLAY_ORDER:
        qt = question_type_for(color, kind, mover_color)
        if qt in active_set:
            out.append(qt)
    return out


def question_label(question_type: QuestionType, mover_color: chess.Color) -> str:
    """Input label such as ``White's\\nChecks:``."""
    who = "White's" if color_of(question_type, mover_color) == chess.WHITE else "Black's"
    return f"{who}\n{KIND_LABELS[question_type.kind]}:"


def format_time(seconds: float) -> str:
    """``Time: MM:SS``; ``Time: --:--`` for an unbounded clock."""
    if math.isinf(seconds):
        return "Time: --:--"
    whole = max(0, int(seconds))
    return f"Time: {whole // 60:02d}:{whole % 60:02d}"


def pair_moves(moves: Sequence[str], black_to_move: bool) -> List[Tuple[str, str]]:
    """
    Arrange preview moves into (white, black) rows.

    When Black moves first, the first row has an empty White cell.
    """
    rows: List[Tuple[str, str]] = []
    start = 0
    if black_to_move and moves:
        rows.append(("", moves[0]))
        start = 1
    for i in range(start, len(moves), 2):
        white = moves[i]
        black = moves[i + 1] if i + 1 < len(moves) else ""
        rows.append((white, black))
    return rows


def reveal_lines(
    answers: Mapping[QuestionType, AnswerRecord],
    ordered: Sequence[QuestionType],
    mover_color: chess.Color,
) -> List[Tuple[str, int, str]]:
    """(label, count, comma-separated moves) for each ordered question with an answer."""
    lines = []
    for qt in ordered:
        record = answers.get(qt)
        if record is None:
            continue
        label = question_label(qt, mover_color).replace("\n", " ")
        lines.append((label, record.count, ", ".join(record.moves)))
    return lines


# =============================================================================
# HIGHLIGHT MARKERS
# =============================================================================


@dataclass(frozen=True)
class SquareMarker:
    """
    Highlight of one target square.

    - pieces: distinct pieces reaching the square (one mini marker each)
    - solid: pieces reaching it two or more times
    - big: the piece symbol when one distinct piece, else the side ("w"/"b")
    """
    square: str
    pieces: Tuple[str, ...]
    solid: Tuple[str, ...]
    big: str


def build_markers(targets: Iterable[MoveTarget], side: chess.Color) -> List[SquareMarker]:
    """Group move targets by square, counting how often each piece reaches it."""
    by_square: Dict[str, Dict[str, int]] = {}
    for target in targets:
        if not target.square or not target.piece:
            continue
        counts = by_square.setdefault(target.square, {})
        counts[target.piece] = counts.get(target.piece, 0) + 1

    markers = []
    for square, counts in by_square.items():
        pieces = tuple(counts)
        solid = tuple(p for p, n in counts.items() if n >= 2)
        if len(pieces) == 1:
            big = pieces[0]
        else:
            big = "w" if side == chess.WHITE else "b"
        markers.append(SquareMarker(square=square, pieces=pieces, solid=solid, big=big))
    return markers
