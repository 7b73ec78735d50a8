"""
QuizSession - the count quiz state machine.

Coordinates: PositionSampler, GameReconstructor, AnswerEngine and a tick
source. Owns the single QuizSessionState of a session.

States: IDLE -> LOADING -> ACTIVE -> ENDED, with ACTIVE -> LOADING -> ACTIVE
for each new puzzle. ENDED is a latch: only ``start()`` leaves it.

Thread-safety: every public method runs under one re-entrant lock, so tick
callbacks delivered on a ticker thread are serialized with user commands.
"""

from __future__ import annotations

import logging
import random
import re
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Tuple

import chess

from .answer_engine import AnswerEngine, question_type_for
from .config import SessionConfig
from .display import SquareMarker, build_markers, display_order
from .errors import PuzzleLoadInProgressError, QuizError
from .quiz_types import AnswerRecord, MoveKind, QuestionType, QuizPhase, QuizSessionState
from .reconstructor import GameReconstructor
from .sampler import PositionSampler
from .timer import ThreadedTicker, Ticker, TimerHandle

if TYPE_CHECKING:
    from corpus.position_corpus import PositionCorpus

logger = logging.getLogger(__name__)

PhaseCallback = Callable[[QuizPhase], None]
TickCallback = Callable[[float], None]
PuzzleCallback = Callable[[QuizSessionState], None]

_COUNT_RE = re.compile(r"\+?\d+")


@dataclass
class QuizEvents:
    """Observable callbacks. Multiple handlers per event."""
    on_phase_changed: List[PhaseCallback] = field(default_factory=list)
    on_tick: List[TickCallback] = field(default_factory=list)
    on_puzzle_loaded: List[PuzzleCallback] = field(default_factory=list)


@dataclass
class SubmissionResult:
    """Outcome of one ``submit()`` call."""
    accepted: bool
    feedback: Dict[QuestionType, bool] = field(default_factory=dict)
    score_gained: int = 0
    penalties: int = 0
    advanced: bool = False
    ended: bool = False


def parse_count(value: Any) -> Optional[int]:
    """User input as a non-negative count, or None when malformed."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        return int(value) if value.is_integer() and value >= 0 else None
    if isinstance(value, str):
        text = value.strip()
        if _COUNT_RE.fullmatch(text):
            return int(text)
    return None


class QuizSession:
    """
    Runs one timed count quiz over a corpus.

    Args:
        corpus: Loaded PositionCorpus (games + weight index)
        config: Resolved session options
        ticker: Tick source; defaults to a one-second ThreadedTicker
        rng: Random source for position sampling
        engine: Answer engine (injectable for tests)
    """

    def __init__(
        self,
        corpus: PositionCorpus,
        config: SessionConfig,
        ticker: Optional[Ticker] = None,
        rng: Optional[random.Random] = None,
        engine: Optional[AnswerEngine] = None,
    ):
        self._corpus = corpus
        self._config = config
        self._ticker = ticker if ticker is not None else ThreadedTicker(1.0)
        self._sampler = PositionSampler(rng)
        self._reconstructor = GameReconstructor(corpus.games)
        self._engine = engine if engine is not None else AnswerEngine()
        self._state = self._fresh_state()
        self._timer: Optional[TimerHandle] = None
        self._timer_gen = 0
        self._loading = False
        self._lock = threading.RLock()
        self.events = QuizEvents()

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def state(self) -> QuizSessionState:
        return self._state

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def phase(self) -> QuizPhase:
        return self._state.phase

    @property
    def mover_color(self) -> chess.Color:
        """Side to move at the scored position."""
        if self._state.position is not None:
            return self._state.position.turn
        return self._config.side_to_move_after

    @property
    def display_question_types(self) -> List[QuestionType]:
        return display_order(self._state.active_question_types, self.mover_color)

    @property
    def timer_active(self) -> bool:
        return self._timer is not None and self._timer.active

    # ── Commands ─────────────────────────────────────────────────────────

    def reconfigure(self, config: SessionConfig) -> None:
        """Apply new settings; the session returns to IDLE until ``start()``."""
        with self._lock:
            self._cancel_timer()
            self._config = config
            self._state = self._fresh_state()
            self._emit_phase(QuizPhase.IDLE)

    def start(self) -> None:
        """
        Start (or restart) the session: score 0, first puzzle, fresh countdown.

        Raises:
            EmptyPartitionError, ReplayError: the first puzzle could not be
                built; the session stays IDLE
        """
        with self._lock:
            if self._loading:
                raise PuzzleLoadInProgressError("Cannot restart while a puzzle is loading")
            self._cancel_timer()
            self._state = self._fresh_state()
            self._set_phase(QuizPhase.LOADING)
            try:
                self._load_puzzle()
            except QuizError:
                self._set_phase(QuizPhase.IDLE)
                raise

            self._state.time_remaining = self._config.initial_time
            self._set_phase(QuizPhase.ACTIVE)
            gen = self._timer_gen
            self._timer = self._ticker.schedule(lambda: self._tick_from(gen))
            logger.info("Session started (time=%s, questions=%s)",
                        self._state.time_remaining,
                        [qt.tag for qt in self._state.active_question_types])

    def tick(self) -> None:
        """One elapsed time unit. Ignored unless ACTIVE."""
        with self._lock:
            if self._state.phase != QuizPhase.ACTIVE:
                return
            self._state.time_remaining = max(0.0, self._state.time_remaining - 1)
            for cb in list(self.events.on_tick):
                cb(self._state.time_remaining)
            if self._state.time_remaining <= 0:
                self._end("time is up")

    def submit(self, user_counts: Mapping[Any, Any]) -> SubmissionResult:
        """
        Check the user's counts for every active question.

        ``user_counts`` maps QuestionType (or its tag) to the entered value.
        Missing or malformed values count as incorrect.
        """
        with self._lock:
            state = self._state
            if state.phase != QuizPhase.ACTIVE:
                return SubmissionResult(accepted=False, ended=state.ended)

            result = SubmissionResult(accepted=True)
            for qt in self.display_question_types:
                raw = user_counts.get(qt, user_counts.get(qt.tag))
                is_correct = parse_count(raw) == state.answers[qt].count
                result.feedback[qt] = is_correct

                if is_correct and not state.correctness[qt]:
                    state.correctness[qt] = True
                    state.score += 1
                    result.score_gained += 1

                if not is_correct:
                    result.penalties += 1
                    self._penalize()

            if not state.ended and state.all_correct:
                self._set_phase(QuizPhase.LOADING)
                try:
                    self._load_puzzle()
                except QuizError:
                    self._set_phase(QuizPhase.ACTIVE)
                    raise
                self._set_phase(QuizPhase.ACTIVE)
                result.advanced = True

            result.ended = state.ended
            return result

    def reveal(self) -> bool:
        """End the session and expose every answer. Returns False if already ended."""
        with self._lock:
            if self._state.ended:
                return False
            self._end("answers revealed")
            return True

    def highlight(self, color: chess.Color, kind: MoveKind) -> List[SquareMarker]:
        """
        Highlight markers for ``kind`` moves of the absolute ``color``.

        The answer is computed on demand when it is not cached yet.
        """
        with self._lock:
            position = self._state.position
            if position is None:
                return []
            qt = question_type_for(color, kind, position.turn)
            record = self._state.answers.get(qt)
            if record is None:
                record = self._engine.answer(position, qt)
                self._state.answers[qt] = record
            return build_markers(record.targets, color)

    def revealed_answers(self) -> List[Tuple[QuestionType, AnswerRecord]]:
        """Answers of the active questions in display order; empty until ENDED."""
        with self._lock:
            if not self._state.ended:
                return []
            return [(qt, self._state.answers[qt]) for qt in self.display_question_types]

    def close(self) -> None:
        with self._lock:
            self._cancel_timer()

    # ── Internal ─────────────────────────────────────────────────────────

    def _fresh_state(self) -> QuizSessionState:
        return QuizSessionState(
            active_question_types=tuple(self._config.question_types),
            ply_ahead=self._config.ply_ahead,
            time_remaining=self._config.initial_time,
        )

    def _load_puzzle(self) -> None:
        if self._loading:
            raise PuzzleLoadInProgressError("A puzzle load is already in progress")
        self._loading = True
        cfg = self._config
        try:
            game, ply = self._sampler.sample(
                self._corpus.weight_index,
                require_white_to_move=cfg.side_to_move_after == chess.WHITE,
            )
            position = self._reconstructor.materialize(game, ply)
            preview = self._reconstructor.preview(game, ply, cfg.ply_ahead)
            preview_moves = self._reconstructor.preview_moves(game, ply, cfg.ply_ahead)

            wanted = list(self._state.active_question_types)
            for color in (chess.WHITE, chess.BLACK):
                qt = question_type_for(color, MoveKind.ALL_LEGAL, position.turn)
                if qt not in wanted:
                    wanted.append(qt)
            answers = self._engine.answer_all(position, wanted)
        except QuizError as e:
            logger.error("Puzzle load failed: %s", e)
            raise
        finally:
            self._loading = False

        state = self._state
        state.position = position
        state.preview = preview
        state.preview_moves = preview_moves
        state.answers = answers
        state.correctness = {
            qt: False for qt in display_order(state.active_question_types, position.turn)
        }
        state.puzzles_loaded += 1
        logger.debug("Puzzle %d: game=%d ply=%d fen=%s",
                     state.puzzles_loaded, game, ply, position.fen)
        for cb in list(self.events.on_puzzle_loaded):
            cb(state)

    def _penalize(self) -> None:
        self._state.time_remaining = max(0.0, self._state.time_remaining - self._config.penalty)
        if self._state.time_remaining <= 0:
            self._end("time is up after penalty")

    def _end(self, reason: str) -> None:
        if self._state.ended:
            return
        self._state.ended = True
        self._cancel_timer()
        self._set_phase(QuizPhase.ENDED)
        logger.info("Session ended (%s), score=%d", reason, self._state.score)

    def _tick_from(self, gen: int) -> None:
        # A tick can be delivered after its handle was cancelled while this
        # thread waited for the lock; only the current handle may count down.
        with self._lock:
            if gen != self._timer_gen:
                return
            self.tick()

    def _cancel_timer(self) -> None:
        self._timer_gen += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _set_phase(self, phase: QuizPhase) -> None:
        if self._state.phase == phase:
            return
        self._state.phase = phase
        self._emit_phase(phase)

    def _emit_phase(self, phase: QuizPhase) -> None:
        for cb in list(self.events.on_phase_changed):
            cb(phase)
