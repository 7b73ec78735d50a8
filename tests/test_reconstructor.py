"""
Tests for game replay and position materialization.
"""

import unittest

import chess

from quiz.errors import ReplayError
from quiz.reconstructor import GameReconstructor

RUY_LOPEZ = "1. e4 e5 2. Nf3 Nc6 3. Bb5 a6 *"
WITH_HEADERS = '[Event "Test"]\n[Result "*"]\n\n1. d4 d5 2. c4 *'
CORRUPT = "1. e4 e5 2. Ke3 *"


def _board_after(*sans):
    board = chess.Board()
    for san in sans:
        board.push_san(san)
    return board


class TestMaterialize(unittest.TestCase):
    """Tests for materializing positions by replay."""

    def setUp(self):
        self.rec = GameReconstructor([RUY_LOPEZ, WITH_HEADERS])

    def test_ply_zero_is_starting_position(self):
        pos = self.rec.materialize(0, 0)
        self.assertEqual(pos.fen, chess.STARTING_FEN)
        self.assertEqual(pos.turn, chess.WHITE)

    def test_even_ply_white_to_move(self):
        pos = self.rec.materialize(0, 2)
        self.assertEqual(pos.fen, _board_after("e4", "e5").fen())
        self.assertEqual(pos.turn, chess.WHITE)

    def test_odd_ply_black_to_move(self):
        pos = self.rec.materialize(0, 5)
        self.assertEqual(pos.fen, _board_after("e4", "e5", "Nf3", "Nc6", "Bb5").fen())
        self.assertEqual(pos.turn, chess.BLACK)

    def test_final_ply_is_allowed(self):
        pos = self.rec.materialize(0, 6)
        self.assertEqual(pos.ply, 6)
        self.assertEqual(pos.game_index, 0)

    def test_headers_are_ignored(self):
        pos = self.rec.materialize(1, 3)
        self.assertEqual(pos.fen, _board_after("d4", "d5", "c4").fen())

    def test_each_ply_adds_one_recorded_move(self):
        for game_index in (0, 1):
            history = self.rec.history(game_index)
            for k in range(len(history)):
                board = self.rec.materialize(game_index, k).board()
                board.push_san(history[k])
                self.assertEqual(
                    self.rec.materialize(game_index, k + 1).fen,
                    board.fen(),
                    msg=f"game={game_index} k={k}",
                )

    def test_materialize_is_deterministic(self):
        other = GameReconstructor([RUY_LOPEZ])
        self.assertEqual(self.rec.materialize(0, 4), other.materialize(0, 4))


class TestPreview(unittest.TestCase):
    """Tests for the preview position and its lead-in moves."""

    def setUp(self):
        self.rec = GameReconstructor([RUY_LOPEZ])

    def test_preview_is_earlier_position(self):
        self.assertEqual(self.rec.preview(0, 4, 2), self.rec.materialize(0, 2))

    def test_preview_clamps_at_start(self):
        self.assertEqual(self.rec.preview(0, 1, 3).fen, chess.STARTING_FEN)

    def test_preview_moves(self):
        self.assertEqual(self.rec.preview_moves(0, 4, 2), ("Nf3", "Nc6"))

    def test_preview_moves_clamped(self):
        self.assertEqual(self.rec.preview_moves(0, 1, 3), ("e4",))

    def test_no_lookahead(self):
        self.assertEqual(self.rec.preview_moves(0, 4, 0), ())
        self.assertEqual(self.rec.preview(0, 4, 0), self.rec.materialize(0, 4))


class TestReplayErrors(unittest.TestCase):
    """Tests for failure modes of replay."""

    def test_ply_past_end(self):
        rec = GameReconstructor([RUY_LOPEZ])
        with self.assertRaises(ReplayError) as ctx:
            rec.materialize(0, 7)
        self.assertEqual(ctx.exception.game_index, 0)
        self.assertEqual(ctx.exception.ply, 7)

    def test_negative_ply(self):
        with self.assertRaises(ReplayError):
            GameReconstructor([RUY_LOPEZ]).materialize(0, -1)

    def test_unknown_game(self):
        with self.assertRaises(ReplayError):
            GameReconstructor([RUY_LOPEZ]).materialize(3, 0)

    def test_illegal_move_in_transcript(self):
        rec = GameReconstructor([CORRUPT])
        with self.assertRaises(ReplayError) as ctx:
            rec.materialize(0, 4)
        self.assertEqual(ctx.exception.game_index, 0)

    def test_history_is_cached(self):
        rec = GameReconstructor([RUY_LOPEZ])
        self.assertIs(rec.history(0), rec.history(0))
        self.assertEqual(len(rec.history(0)), 6)


if __name__ == "__main__":
    unittest.main()
