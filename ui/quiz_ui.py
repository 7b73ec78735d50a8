"""
Count Quiz UI Components for Streamlit

Board rendering, answer inputs, highlight buttons and the settings form.
Uses python-chess SVG rendering; all quiz logic lives in ``quiz.session``.

Streamlit has no background timer, so the countdown is driven by a
ManualTicker that is advanced by the wall-clock seconds elapsed since the
previous rerun.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import chess
import chess.svg
import pandas as pd
import streamlit as st
from pydantic import ValidationError

from corpus.position_corpus import PositionCorpus
from quiz.config import QuizSettings, SideToMoveMode
from quiz.display import (
    SquareMarker,
    format_time,
    pair_moves,
    question_label,
    reveal_lines,
)
from quiz.errors import QuizError
from quiz.quiz_types import ALL_QUESTION_TYPES, MoveKind, QuestionType, QuizPhase
from quiz.session import QuizSession, SubmissionResult
from quiz.timer import ManualTicker


# =============================================================================
# CONSTANTS
# =============================================================================

BOARD_SIZE = 400

HIGHLIGHT_TARGET = "#ef444488"     # Red for highlighted target squares
HIGHLIGHT_DUPLICATE = "#b91c1cbb"  # Darker red when one piece kind reaches it twice

HIGHLIGHT_BUTTONS = [
    ("White's moves", chess.WHITE, MoveKind.ALL_LEGAL),
    ("Black's moves", chess.BLACK, MoveKind.ALL_LEGAL),
    ("White's checks", chess.WHITE, MoveKind.CHECKS),
    ("Black's checks", chess.BLACK, MoveKind.CHECKS),
    ("White's captures", chess.WHITE, MoveKind.CAPTURES),
    ("Black's captures", chess.BLACK, MoveKind.CAPTURES),
]

QUESTION_TYPE_LABELS = {
    "mover_all_legal": "Side to move: all moves",
    "mover_checks": "Side to move: checks",
    "mover_captures": "Side to move: captures",
    "opponent_all_legal": "Other side: all moves",
    "opponent_checks": "Other side: checks",
    "opponent_captures": "Other side: captures",
}


# =============================================================================
# UI STATE MANAGEMENT
# =============================================================================


@dataclass
class QuizUIState:
    """Per-browser-session objects kept in ``st.session_state``."""
    session: QuizSession
    ticker: ManualTicker
    settings: QuizSettings
    last_tick_at: float = field(default_factory=time.monotonic)
    last_result: Optional[SubmissionResult] = None
    markers: List[SquareMarker] = field(default_factory=list)
    error: Optional[str] = None


_STATE_KEY = "count_quiz_state_v1"


def _new_state(corpus: PositionCorpus, settings: QuizSettings) -> QuizUIState:
    rng = random.Random(settings.seed)
    ticker = ManualTicker()
    session = QuizSession(corpus, settings.resolve(rng), ticker=ticker, rng=rng)
    ui_state = QuizUIState(session=session, ticker=ticker, settings=settings)
    _start(ui_state)
    return ui_state


def _get_state(corpus: PositionCorpus, settings: QuizSettings) -> QuizUIState:
    existing = st.session_state.get(_STATE_KEY)
    if isinstance(existing, QuizUIState):
        return existing
    ui_state = _new_state(corpus, settings)
    st.session_state[_STATE_KEY] = ui_state
    return ui_state


def _start(ui_state: QuizUIState) -> None:
    ui_state.last_result = None
    ui_state.markers = []
    ui_state.error = None
    try:
        ui_state.session.start()
    except QuizError as e:
        ui_state.error = str(e)
    ui_state.last_tick_at = time.monotonic()


def _catch_up_ticks(ui_state: QuizUIState) -> None:
    """Advance the ticker by the whole seconds elapsed since the last rerun."""
    now = time.monotonic()
    elapsed = int(now - ui_state.last_tick_at)
    if elapsed > 0:
        ui_state.ticker.advance(elapsed)
        ui_state.last_tick_at += elapsed


# =============================================================================
# CHESSBOARD RENDERING
# =============================================================================


def render_board_svg(
    board: chess.Board,
    flipped: bool = False,
    markers: Optional[List[SquareMarker]] = None,
    size: int = BOARD_SIZE,
) -> str:
    """Render the board as SVG with highlight fills for marker squares."""
    fill: Dict[int, str] = {}
    for marker in markers or []:
        color = HIGHLIGHT_DUPLICATE if marker.solid else HIGHLIGHT_TARGET
        fill[chess.parse_square(marker.square)] = color
    return chess.svg.board(board, size=size, flipped=flipped, fill=fill)


def _display_board(ui_state: QuizUIState) -> None:
    state = ui_state.session.state
    if state.preview is None:
        return
    svg = render_board_svg(
        state.preview.board(),
        flipped=ui_state.session.config.player_to_move == chess.BLACK,
        markers=ui_state.markers,
    )
    st.markdown(
        f'<div style="display: flex; justify-content: center; margin: 1rem 0;">{svg}</div>',
        unsafe_allow_html=True,
    )
    if ui_state.markers:
        st.caption(" | ".join(
            f"{m.square}: {' '.join(m.pieces)}" + (f" (x2+: {' '.join(m.solid)})" if m.solid else "")
            for m in ui_state.markers
        ))


def _display_preview_moves(ui_state: QuizUIState) -> None:
    state = ui_state.session.state
    if state.ply_ahead == 0 or not state.preview_moves:
        return
    black_first = state.preview is not None and state.preview.turn == chess.BLACK
    rows = pair_moves(state.preview_moves, black_to_move=black_first)
    st.write("**Compute counts after these moves:**")
    st.table(pd.DataFrame(rows, columns=["White", "Black"]))


# =============================================================================
# ANSWER INPUTS AND COMMANDS
# =============================================================================


def _render_answer_form(ui_state: QuizUIState) -> None:
    session = ui_state.session
    state = session.state
    ended = state.ended
    ordered = session.display_question_types
    feedback = ui_state.last_result.feedback if ui_state.last_result else {}

    with st.form(key=f"count_form_{state.puzzles_loaded}"):
        values: Dict[QuestionType, int] = {}
        for qt in ordered:
            values[qt] = st.number_input(
                question_label(qt, session.mover_color).replace("\n", " "),
                min_value=0,
                step=1,
                value=0,
                key=f"count_{qt.tag}_{state.puzzles_loaded}",
                disabled=ended,
            )
        submitted = st.form_submit_button("Submit", disabled=ended)

    if feedback:
        marks = []
        for qt, ok in feedback.items():
            label = question_label(qt, session.mover_color).replace("\n", " ")
            marks.append(f"{label} {'✓' if ok else '✗'}")
        st.caption("  ".join(marks))

    if submitted:
        try:
            ui_state.last_result = session.submit(values)
        except QuizError as e:
            ui_state.error = str(e)
            st.rerun()
        if ui_state.last_result.advanced:
            ui_state.markers = []
            ui_state.last_result = None
        st.rerun()


def _render_commands(ui_state: QuizUIState) -> None:
    session = ui_state.session
    cols = st.columns(2)
    with cols[0]:
        if st.button("Show Moves", disabled=session.state.ended, use_container_width=True):
            session.reveal()
            st.rerun()
    with cols[1]:
        if st.button("New Game", use_container_width=True):
            _start(ui_state)
            st.rerun()

    st.write("**Highlight**")
    hl_cols = st.columns(3)
    for i, (label, color, kind) in enumerate(HIGHLIGHT_BUTTONS):
        with hl_cols[i % 3]:
            if st.button(label, key=f"hl_{i}", use_container_width=True):
                ui_state.markers = session.highlight(color, kind)
                st.rerun()
    if st.button("Clear", key="hl_clear"):
        ui_state.markers = []
        st.rerun()


def _render_revealed(ui_state: QuizUIState) -> None:
    session = ui_state.session
    answers = dict(session.revealed_answers())
    if not answers:
        return
    for label, count, moves in reveal_lines(answers, list(answers), session.mover_color):
        st.markdown(f"**{label}** <span style='font-size:1.4em; font-weight:700'>{count}</span>"
                    + (f" ({moves})" if moves else ""), unsafe_allow_html=True)


@st.fragment(run_every=1.0)
def _render_timer(ui_state: QuizUIState) -> None:
    was_ended = ui_state.session.state.ended
    _catch_up_ticks(ui_state)
    stats = ui_state.session.state.get_stats()
    if ui_state.session.config.show_timer:
        st.subheader(format_time(stats["time_remaining"]))
    st.write(f"Score: {stats['score']}  |  Puzzle {stats['puzzles_loaded']}")
    if stats["ended"] and not was_ended:
        st.rerun()


# =============================================================================
# SETTINGS
# =============================================================================


def _render_settings(ui_state: QuizUIState) -> None:
    current = ui_state.settings
    with st.sidebar.form("count_quiz_settings"):
        st.write("**Questions**")
        chosen = []
        for qt in ALL_QUESTION_TYPES:
            if st.checkbox(QUESTION_TYPE_LABELS[qt.tag], value=qt.tag in current.question_types, key=f"opt_{qt.tag}"):
                chosen.append(qt.tag)

        modes = [m.value for m in SideToMoveMode]
        side = st.radio("Player to move", modes, index=modes.index(current.side_to_move.value))
        ply_ahead = st.number_input("Plies ahead", min_value=0, step=1, value=current.ply_ahead)
        show_timer = st.checkbox("Show timer", value=current.show_timer)
        time_budget = st.number_input("Time (seconds)", min_value=10, step=10, value=int(current.time_budget))
        saved = st.form_submit_button("Save Settings")

    if not saved:
        return
    try:
        settings = QuizSettings(
            games_source=current.games_source,
            weights_source=current.weights_source,
            request_timeout=current.request_timeout,
            question_types=chosen,
            side_to_move=side,
            ply_ahead=int(ply_ahead),
            show_timer=show_timer,
            time_budget=float(time_budget),
            penalty=current.penalty,
            seed=current.seed,
        )
    except ValidationError as e:
        st.sidebar.error(f"Invalid settings: {e.errors()[0]['msg']}")
        return

    ui_state.settings = settings
    ui_state.session.reconfigure(settings.resolve())
    _start(ui_state)
    st.rerun()


# =============================================================================
# PAGE
# =============================================================================


def render_quiz_page(corpus: PositionCorpus, settings: QuizSettings) -> None:
    """Render the full count quiz page."""
    ui_state = _get_state(corpus, settings)
    _render_settings(ui_state)
    stats = corpus.stats()
    st.sidebar.caption(
        f"{stats['games']} games, {stats['white_to_move']['entries']} white-to-move and "
        f"{stats['black_to_move']['entries']} black-to-move positions"
    )

    if ui_state.error:
        st.error(f"Could not load a puzzle: {ui_state.error}")
        if st.button("Try again"):
            _start(ui_state)
            st.rerun()
        return

    col1, col2 = st.columns([2, 1])
    with col1:
        _display_board(ui_state)
        _display_preview_moves(ui_state)
    with col2:
        _render_timer(ui_state)
        if ui_state.session.phase == QuizPhase.ACTIVE or ui_state.session.state.ended:
            _render_answer_form(ui_state)
        _render_revealed(ui_state)
        _render_commands(ui_state)
