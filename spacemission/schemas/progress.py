"""
Progress tracking schemas for the space mission.

Defines Pydantic models for student progress including:
- Attempt records built once per answered question
- Per-level progress snapshots served by the API
- Level unlock view derived for rendering a planet's level map
- Dashboard summary
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from .catalog import Level


class LevelAvailability(str, Enum):
    """Level status for UI display."""
    LOCKED = "locked"           # Previous level not completed
    UNLOCKED = "unlocked"       # Playable
    CURRENT = "current"         # First unlocked level not yet completed


class AttemptRecord(BaseModel):
    student_id: Optional[int] = None
    exercise_id: int
    chosen_answer: Optional[str] = None  # None when the countdown expired
    is_correct: bool
    score_awarded: int = Field(default=0, ge=0)
    time_taken_seconds: int = Field(default=0, ge=0)
    hints_used: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class LevelProgress(BaseModel):
    student_id: Optional[int] = None
    level_id: int
    total_exercises: int = Field(default=0, ge=0)
    completed_exercises: int = Field(default=0, ge=0)  # correct answers
    score: int = 0
    time_spent_seconds: int = Field(default=0, ge=0)
    completion_percentage: float = Field(default=0.0, ge=0, le=100)
    is_completed: bool = False


class LevelUnlockView(BaseModel):
    """A level annotated with its lock state for one student."""
    level: Level
    is_unlocked: bool
    is_locked: bool
    is_current: bool = False

    @model_validator(mode="after")
    def check_consistency(self) -> "LevelUnlockView":
        if self.is_unlocked == self.is_locked:
            raise ValueError("a level is either unlocked or locked")
        if self.is_current and not self.is_unlocked:
            raise ValueError("a locked level cannot be current")
        return self

    @property
    def availability(self) -> LevelAvailability:
        if self.is_current:
            return LevelAvailability.CURRENT
        if self.is_unlocked:
            return LevelAvailability.UNLOCKED
        return LevelAvailability.LOCKED


class ProgressSummary(BaseModel):
    total_planets: int = 0
    total_levels: int = 0
    completed_levels: int = 0
    overall_percent: float = 0.0
