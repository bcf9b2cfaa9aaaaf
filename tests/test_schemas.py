"""
Schema validation tests for Space Mission.

Tests all Pydantic models to ensure they validate correctly.
"""

import pytest
from datetime import datetime

from spacemission.schemas import (
    # Catalog
    ExerciseType,
    Planet,
    Level,
    Exercise,
    Achievement,
    # Progress
    LevelAvailability,
    AttemptRecord,
    LevelProgress,
    LevelUnlockView,
    ProgressSummary,
)

from conftest import make_exercise, make_level


class TestExercise:
    """Test Exercise model and its playability checks."""

    def test_valid_exercise(self):
        ex = make_exercise()
        assert ex.option_letters == ["A", "B", "C", "D"]
        assert ex.problems() == []
        assert ex.is_playable

    def test_blank_options_dropped(self):
        ex = make_exercise(options=["True", "False", "", "  "])
        assert ex.options == ["True", "False"]
        assert ex.option_letters == ["A", "B"]

    def test_too_many_options(self):
        with pytest.raises(ValueError):
            make_exercise(options=["a", "b", "c", "d", "e"])

    def test_points_must_be_positive(self):
        with pytest.raises(ValueError):
            make_exercise(points=0)

    def test_negative_time_limit(self):
        with pytest.raises(ValueError):
            make_exercise(time_limit_seconds=-1)

    def test_is_timed(self):
        assert not make_exercise(time_limit_seconds=0).is_timed
        assert make_exercise(time_limit_seconds=30).is_timed

    def test_missing_prompt(self):
        ex = make_exercise(prompt="  ")
        assert "missing prompt" in ex.problems()
        assert not ex.is_playable

    def test_missing_options(self):
        ex = make_exercise(options=[])
        assert "missing options" in ex.problems()

    def test_numeric_needs_no_options(self):
        ex = make_exercise(type=ExerciseType.NUMERIC, options=[], correct_answer="42")
        assert ex.problems() == []

    def test_missing_correct_answer(self):
        ex = make_exercise(correct_answer=None)
        assert "missing correct answer" in ex.problems()

    def test_correct_answer_outside_options(self):
        ex = make_exercise(options=["True", "False"], correct_answer="C")
        assert len(ex.problems()) == 1


class TestCatalog:
    """Test Planet, Level and Achievement models."""

    def test_planet(self):
        planet = Planet(id=1, title="Mercury", order_index=1)
        assert planet.description == ""

    def test_level_requires_planet(self):
        with pytest.raises(ValueError):
            Level(id=1, order_index=1)

    def test_achievement(self):
        achievement = Achievement(id=3, code="FIRST_ANSWER", name="First answer", points=5)
        assert achievement.icon is None


class TestAttemptRecord:
    """Test AttemptRecord model."""

    def test_timeout_attempt(self):
        attempt = AttemptRecord(exercise_id=1, chosen_answer=None, is_correct=False,
                                time_taken_seconds=15)
        assert attempt.score_awarded == 0
        assert isinstance(attempt.created_at, datetime)

    def test_negative_score_rejected(self):
        with pytest.raises(ValueError):
            AttemptRecord(exercise_id=1, is_correct=False, score_awarded=-1)


class TestLevelProgress:
    """Test LevelProgress model."""

    def test_defaults(self):
        progress = LevelProgress(level_id=4)
        assert progress.completion_percentage == 0.0
        assert progress.is_completed is False

    def test_percentage_bounds(self):
        with pytest.raises(ValueError):
            LevelProgress(level_id=4, completion_percentage=120)


class TestLevelUnlockView:
    """Test LevelUnlockView consistency rules."""

    def test_availability(self):
        level = make_level(1, 1)
        assert LevelUnlockView(level=level, is_unlocked=True, is_locked=False,
                               is_current=True).availability == LevelAvailability.CURRENT
        assert LevelUnlockView(level=level, is_unlocked=True,
                               is_locked=False).availability == LevelAvailability.UNLOCKED
        assert LevelUnlockView(level=level, is_unlocked=False,
                               is_locked=True).availability == LevelAvailability.LOCKED

    def test_locked_and_unlocked_are_exclusive(self):
        with pytest.raises(ValueError):
            LevelUnlockView(level=make_level(1, 1), is_unlocked=True, is_locked=True)

    def test_locked_level_cannot_be_current(self):
        with pytest.raises(ValueError):
            LevelUnlockView(level=make_level(1, 1), is_unlocked=False, is_locked=True,
                            is_current=True)


class TestProgressSummary:
    def test_defaults(self):
        summary = ProgressSummary()
        assert summary.total_levels == 0
        assert summary.overall_percent == 0.0
