"""
Tests for ground-truth move counting.

All positions are fixed FENs or replayed from fixed transcripts.
"""

import unittest

import chess

from quiz.answer_engine import (
    AnswerEngine,
    board_for_perspective,
    count_all_legal,
    count_captures,
    count_checks,
    question_type_for,
)
from quiz.errors import InvalidQuestionTypeError
from quiz.quiz_types import (
    ALL_QUESTION_TYPES,
    MoveKind,
    MoveTarget,
    Perspective,
    Position,
    QuestionType,
)
from quiz.reconstructor import GameReconstructor

ROOK_CHECK_FEN = "4k3/8/8/8/8/8/8/R3K3 w - - 0 1"
EN_PASSANT_FEN = "4k3/8/8/3pP3/8/8/8/4K3 w - d6 0 2"
TWO_KNIGHTS_FEN = "4k3/8/8/8/8/8/8/1N2KN2 w - - 0 1"

ITALIAN = (
    "1. e4 e5 2. Nf3 Nc6 3. Bc4 Bc5 4. c3 Nf6 5. d4 exd4 6. cxd4 Bb4+ "
    "7. Bd2 Bxd2+ 8. Nbxd2 d5 9. exd5 Nxd5 10. Qb3 Nce7 *"
)
SCHOLARS_MATE = "1. e4 e5 2. Bc4 Nc6 3. Qh5 Nf6 4. Qxf7# *"


def _pos(fen):
    return Position(fen=fen, game_index=0, ply=0)


MOVER_ALL = QuestionType(Perspective.MOVER, MoveKind.ALL_LEGAL)
MOVER_CHECKS = QuestionType(Perspective.MOVER, MoveKind.CHECKS)
MOVER_CAPTURES = QuestionType(Perspective.MOVER, MoveKind.CAPTURES)
OPP_ALL = QuestionType(Perspective.OPPONENT, MoveKind.ALL_LEGAL)
OPP_CHECKS = QuestionType(Perspective.OPPONENT, MoveKind.CHECKS)


class TestStartingPosition(unittest.TestCase):
    """The standard opening position."""

    def setUp(self):
        self.engine = AnswerEngine()
        self.pos = _pos(chess.STARTING_FEN)

    def test_twenty_legal_moves(self):
        self.assertEqual(self.engine.answer(self.pos, MOVER_ALL).count, 20)

    def test_no_checks_or_captures(self):
        self.assertEqual(self.engine.answer(self.pos, MOVER_CHECKS).count, 0)
        self.assertEqual(self.engine.answer(self.pos, MOVER_CAPTURES).count, 0)

    def test_opponent_also_has_twenty(self):
        self.assertEqual(self.engine.answer(self.pos, OPP_ALL).count, 20)

    def test_moves_and_targets_align(self):
        record = self.engine.answer(self.pos, MOVER_ALL)
        self.assertEqual(len(record.moves), record.count)
        self.assertEqual(len(record.targets), record.count)
        self.assertIn("e4", record.moves)
        self.assertIn(MoveTarget("f3", "n"), record.targets)


class TestChecks(unittest.TestCase):
    """Check detection by trial application."""

    def setUp(self):
        self.engine = AnswerEngine()
        self.pos = _pos(ROOK_CHECK_FEN)

    def test_single_check(self):
        record = self.engine.answer(self.pos, MOVER_CHECKS)
        self.assertEqual(record.count, 1)
        self.assertEqual(record.moves, ("Ra8+",))
        self.assertEqual(record.targets, (MoveTarget("a8", "r"),))

    def test_all_legal_count(self):
        self.assertEqual(self.engine.answer(self.pos, MOVER_ALL).count, 15)

    def test_no_captures(self):
        self.assertEqual(self.engine.answer(self.pos, MOVER_CAPTURES).count, 0)

    def test_opponent_side(self):
        self.assertEqual(self.engine.answer(self.pos, OPP_ALL).count, 5)
        self.assertEqual(self.engine.answer(self.pos, OPP_CHECKS).count, 0)

    def test_mate_counts_as_check(self):
        rec = GameReconstructor([SCHOLARS_MATE])
        pos = rec.materialize(0, 6)
        checks = self.engine.answer(pos, MOVER_CHECKS)
        captures = self.engine.answer(pos, MOVER_CAPTURES)
        self.assertIn("Qxf7#", checks.moves)
        self.assertIn("Qxf7#", captures.moves)


class TestCaptures(unittest.TestCase):
    """Captures include en passant."""

    def test_en_passant_is_a_capture(self):
        board = chess.Board(EN_PASSANT_FEN)
        record = count_captures(board)
        self.assertEqual(record.count, 1)
        self.assertEqual(record.moves, ("exd6",))
        self.assertEqual(record.targets, (MoveTarget("d6", "p"),))

    def test_en_passant_position_totals(self):
        board = chess.Board(EN_PASSANT_FEN)
        self.assertEqual(count_all_legal(board).count, 7)
        self.assertEqual(count_checks(board).count, 0)


class TestDuplicateTargets(unittest.TestCase):
    """Distinct moves to the same square are all reported."""

    def test_duplicates_kept(self):
        record = count_all_legal(chess.Board(TWO_KNIGHTS_FEN))
        self.assertEqual(record.count, 11)
        self.assertEqual(record.targets.count(MoveTarget("d2", "n")), 2)
        self.assertEqual(record.targets.count(MoveTarget("d2", "k")), 1)


class TestContainment(unittest.TestCase):
    """Checks and captures are subsets of all legal moves."""

    def test_subsets_for_every_ply(self):
        engine = AnswerEngine()
        rec = GameReconstructor([ITALIAN])
        for ply in range(len(rec.history(0)) + 1):
            pos = rec.materialize(0, ply)
            perspectives = [Perspective.MOVER]
            if not pos.board().is_check():
                perspectives.append(Perspective.OPPONENT)
            for perspective in perspectives:
                all_moves = set(engine.answer(pos, QuestionType(perspective, MoveKind.ALL_LEGAL)).moves)
                for kind in (MoveKind.CHECKS, MoveKind.CAPTURES):
                    record = engine.answer(pos, QuestionType(perspective, kind))
                    self.assertTrue(set(record.moves) <= all_moves, msg=f"ply={ply} {perspective} {kind}")
                    self.assertLessEqual(record.count, len(all_moves))

    def test_recomputation_is_stable(self):
        engine = AnswerEngine()
        pos = GameReconstructor([ITALIAN]).materialize(0, 12)
        first = engine.answer_all(pos, ALL_QUESTION_TYPES)
        second = engine.answer_all(pos, ALL_QUESTION_TYPES)
        self.assertEqual(first, second)


class TestPerspective(unittest.TestCase):
    """Opponent questions evaluate the position with the turn flipped."""

    def test_opponent_equals_mover_of_flipped(self):
        engine = AnswerEngine()
        for fen in (chess.STARTING_FEN, ROOK_CHECK_FEN, TWO_KNIGHTS_FEN):
            pos = _pos(fen)
            for kind in MoveKind:
                self.assertEqual(
                    engine.answer(pos, QuestionType(Perspective.OPPONENT, kind)),
                    engine.answer(pos.flipped(), QuestionType(Perspective.MOVER, kind)),
                )

    def test_flip_changes_only_turn(self):
        pos = _pos(ROOK_CHECK_FEN)
        board = board_for_perspective(pos, Perspective.OPPONENT)
        self.assertEqual(board.turn, chess.BLACK)
        self.assertEqual(board.board_fen(), chess.Board(ROOK_CHECK_FEN).board_fen())

    def test_question_type_for(self):
        self.assertEqual(question_type_for(chess.WHITE, MoveKind.CHECKS, chess.WHITE), MOVER_CHECKS)
        self.assertEqual(question_type_for(chess.BLACK, MoveKind.CHECKS, chess.WHITE), OPP_CHECKS)
        self.assertEqual(question_type_for(chess.BLACK, MoveKind.ALL_LEGAL, chess.BLACK), MOVER_ALL)


class TestInvalidQuestionType(unittest.TestCase):
    """Unknown perspectives or kinds are rejected."""

    def setUp(self):
        self.engine = AnswerEngine()
        self.pos = _pos(chess.STARTING_FEN)

    def test_plain_string_rejected(self):
        with self.assertRaises(InvalidQuestionTypeError):
            self.engine.answer(self.pos, "mover_checks")

    def test_unknown_kind_rejected(self):
        with self.assertRaises(InvalidQuestionTypeError):
            self.engine.answer(self.pos, QuestionType(Perspective.MOVER, "promotions"))

    def test_unknown_perspective_rejected(self):
        with self.assertRaises(InvalidQuestionTypeError):
            self.engine.answer(self.pos, QuestionType("sideways", MoveKind.CHECKS))

    def test_tag_round_trip(self):
        for qt in ALL_QUESTION_TYPES:
            self.assertEqual(QuestionType.from_tag(qt.tag), qt)

    def test_bad_tag(self):
        with self.assertRaises(InvalidQuestionTypeError):
            QuestionType.from_tag("wm_checks")


if __name__ == "__main__":
    unittest.main()
