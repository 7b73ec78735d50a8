"""
Chess Count Quiz Engine

Samples positions from real games, computes how many legal moves, checks
and captures each side has, and runs the timed quiz session that scores
the user's counts.

Move generation and PGN replay are delegated to python-chess.
"""

from .quiz_types import (
    ALL_QUESTION_TYPES,
    AnswerRecord,
    MoveKind,
    MoveTarget,
    Perspective,
    Position,
    QuestionType,
    QuizPhase,
    QuizSessionState,
    WeightEntry,
)
from .errors import (
    CorpusLoadError,
    EmptyPartitionError,
    InvalidQuestionTypeError,
    PuzzleLoadInProgressError,
    QuizError,
    ReplayError,
)
from .sampler import PositionSampler
from .reconstructor import GameReconstructor
from .answer_engine import (
    AnswerEngine,
    count_all_legal,
    count_captures,
    count_checks,
    question_type_for,
)
from .config import QuizSettings, SessionConfig, SideToMoveMode, get_settings
from .timer import ManualTicker, ThreadedTicker, TimerHandle
from .session import QuizSession, SubmissionResult

__all__ = [
    # Types
    "ALL_QUESTION_TYPES",
    "AnswerRecord",
    "MoveKind",
    "MoveTarget",
    "Perspective",
    "Position",
    "QuestionType",
    "QuizPhase",
    "QuizSessionState",
    "WeightEntry",
    # Errors
    "CorpusLoadError",
    "EmptyPartitionError",
    "InvalidQuestionTypeError",
    "PuzzleLoadInProgressError",
    "QuizError",
    "ReplayError",
    # Components
    "PositionSampler",
    "GameReconstructor",
    "AnswerEngine",
    "QuizSession",
    "SubmissionResult",
    # Functions
    "count_all_legal",
    "count_captures",
    "count_checks",
    "question_type_for",
    # Config
    "QuizSettings",
    "SessionConfig",
    "SideToMoveMode",
    "get_settings",
    # Timers
    "ManualTicker",
    "ThreadedTicker",
    "TimerHandle",
]
