"""
Space Mission Schemas - Pydantic models for the quiz progression engine.

This module exports all schema classes for:
- Catalog: planets, levels, exercises, achievements
- Progress: attempt records, level progress, unlock views, dashboard summary
"""

# Catalog schemas
from .catalog import (
    OPTION_LETTERS,
    ExerciseType,
    Planet,
    Level,
    Exercise,
    Achievement,
)

# Progress schemas
from .progress import (
    LevelAvailability,
    AttemptRecord,
    LevelProgress,
    LevelUnlockView,
    ProgressSummary,
)

__all__ = [
    # Catalog
    'OPTION_LETTERS',
    'ExerciseType',
    'Planet',
    'Level',
    'Exercise',
    'Achievement',
    # Progress
    'LevelAvailability',
    'AttemptRecord',
    'LevelProgress',
    'LevelUnlockView',
    'ProgressSummary',
]
