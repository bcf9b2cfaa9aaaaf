"""
Space Mission Classroom - Runtime components for playing the mission.

This module provides:
- ApiClient: Async access to the mission backend
- CatalogClient: Planets, levels, exercises and achievements
- QuizSession / QuizRunner: One question at a time, with countdown
- SubmissionDispatcher: Send answers, collect granted achievements
- ProgressTracker: Progress snapshots and dashboard aggregation
- Navigator: Level unlocking and sequencing
- MissionController: The planet -> level -> exercise flow
"""

from .api import (
    ApiClient,
    ApiResult,
    CONNECTION_ERROR_MESSAGE,
)

from .loader import (
    CatalogClient,
    parse_exercise,
    parse_level,
    parse_planet,
    parse_achievement,
)

from .scoring import (
    ScoreResult,
    evaluate,
    normalize_answer,
)

from .navigator import (
    Step,
    StepKind,
    LEVEL_COMPLETE,
    SequenceNavigator,
    resolve_unlocks,
    current_level_id,
    is_level_playable,
    first_exercise,
    next_exercise,
    next_level,
    next_planet,
)

from .session import (
    SessionStatus,
    AnswerCause,
    Idle,
    Active,
    Answered,
    SessionSnapshot,
    QuizSession,
    Countdown,
)

from .dispatcher import (
    DispatchResult,
    AchievementCatalog,
    SubmissionDispatcher,
    dedupe_achievements,
)

from .progress import (
    ProgressTracker,
    aggregate,
    progress_map,
    summarize_level,
)

from .runner import (
    Notification,
    NotificationKind,
    QuizRunner,
)

from .mission import (
    MissionController,
    LevelMap,
    LevelCompletion,
    UnlockSource,
)

__all__ = [
    # API
    "ApiClient",
    "ApiResult",
    "CONNECTION_ERROR_MESSAGE",
    # Loader
    "CatalogClient",
    "parse_exercise",
    "parse_level",
    "parse_planet",
    "parse_achievement",
    # Scoring
    "ScoreResult",
    "evaluate",
    "normalize_answer",
    # Navigator
    "Step",
    "StepKind",
    "LEVEL_COMPLETE",
    "SequenceNavigator",
    "resolve_unlocks",
    "current_level_id",
    "is_level_playable",
    "first_exercise",
    "next_exercise",
    "next_level",
    "next_planet",
    # Session
    "SessionStatus",
    "AnswerCause",
    "Idle",
    "Active",
    "Answered",
    "SessionSnapshot",
    "QuizSession",
    "Countdown",
    # Dispatcher
    "DispatchResult",
    "AchievementCatalog",
    "SubmissionDispatcher",
    "dedupe_achievements",
    # Progress
    "ProgressTracker",
    "aggregate",
    "progress_map",
    "summarize_level",
    # Runner
    "Notification",
    "NotificationKind",
    "QuizRunner",
    # Mission
    "MissionController",
    "LevelMap",
    "LevelCompletion",
    "UnlockSource",
]
