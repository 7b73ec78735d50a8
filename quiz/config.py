"""
Count Quiz - Configuration

Loads quiz settings from environment variables with Pydantic validation,
and resolves them into the immutable options a session runs with.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import List, Optional, Tuple

import chess
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from .quiz_types import QuestionType

DEFAULT_QUESTION_TYPES = [
    "mover_checks",
    "mover_captures",
    "opponent_checks",
    "opponent_captures",
]


class SideToMoveMode(str, Enum):
    """Which side is to move on the displayed (preview) board."""
    WHITE = "white"
    BLACK = "black"
    RANDOM = "random"


@dataclass(frozen=True)
class SessionConfig:
    """Resolved settings, read by a session at (re)start."""
    question_types: Tuple[QuestionType, ...]
    ply_ahead: int
    player_to_move: chess.Color
    time_budget: float
    show_timer: bool
    penalty: float = 10.0

    @property
    def side_to_move_after(self) -> chess.Color:
        """Side to move at the scored position, ``ply_ahead`` half-moves later."""
        if self.ply_ahead % 2 == 0:
            return self.player_to_move
        return not self.player_to_move

    @property
    def initial_time(self) -> float:
        return self.time_budget if self.show_timer else math.inf


class QuizSettings(BaseSettings):
    """Quiz settings loaded from ``COUNT_QUIZ_*`` environment variables."""

    # ─── Corpus ───
    games_source: str = "data/selected_games.pgn"
    weights_source: str = "data/selected_weights.json"
    request_timeout: float = 10.0

    # ─── Questions ───
    question_types: List[str] = Field(default_factory=lambda: list(DEFAULT_QUESTION_TYPES))
    ply_ahead: int = Field(default=0, ge=0)
    side_to_move: SideToMoveMode = SideToMoveMode.RANDOM

    # ─── Timer ───
    time_budget: float = Field(default=180.0, gt=0)
    show_timer: bool = True
    penalty: float = Field(default=10.0, ge=0)

    # ─── Randomness ───
    seed: Optional[int] = None

    @field_validator("question_types")
    @classmethod
    def _check_question_types(cls, tags: List[str]) -> List[str]:
        seen: List[str] = []
        for tag in tags:
            normalized = QuestionType.from_tag(tag).tag
            if normalized not in seen:
                seen.append(normalized)
        if not seen:
            raise ValueError("At least one question type must be active")
        return seen

    @property
    def parsed_question_types(self) -> Tuple[QuestionType, ...]:
        return tuple(QuestionType.from_tag(t) for t in self.question_types)

    def resolve(self, rng: Optional[random.Random] = None) -> SessionConfig:
        """Resolve the side-to-move mode (drawing for RANDOM) into a SessionConfig."""
        rng = rng if rng is not None else random.Random()
        if self.side_to_move == SideToMoveMode.WHITE:
            player = chess.WHITE
        elif self.side_to_move == SideToMoveMode.BLACK:
            player = chess.BLACK
        elif rng.random() < 0.5:
            player = chess.WHITE
        else:
            player = chess.BLACK

        return SessionConfig(
            question_types=self.parsed_question_types,
            ply_ahead=self.ply_ahead,
            player_to_move=player,
            time_budget=self.time_budget,
            show_timer=self.show_timer,
            penalty=self.penalty,
        )

    model_config = {
        "env_prefix": "COUNT_QUIZ_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> QuizSettings:
    return QuizSettings()
