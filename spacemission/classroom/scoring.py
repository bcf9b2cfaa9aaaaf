"""
Scoring - Answer normalization and per-question scoring.

Scoring rules:
- correct answer: exercise points plus a time bonus of the raw remaining
  countdown seconds (timed exercises only)
- wrong answer: 0
- timeout: 0, and evaluate() is not called at all
"""

from dataclasses import dataclass
from typing import Optional

from spacemission.schemas import OPTION_LETTERS, Exercise, ExerciseType


@dataclass(frozen=True)
class ScoreResult:
    is_correct: bool
    score: int


def normalize_answer(
    exercise_type: ExerciseType,
    raw: Optional[str],
    options: Optional[list[str]] = None,
) -> Optional[str]:
    """
    Normalize an answer into the form stored as an exercise's answer key.

    Option-based exercises use upper-case letters. An answer given as the
    option's text (e.g. "True" for a true/false question) is mapped to that
    option's letter. Numeric answers are kept as trimmed literals.
    """
    if raw is None:
        return None
    value = str(raw).strip()
    if not value:
        return None

    if exercise_type == ExerciseType.NUMERIC:
        return value

    upper = value.upper()
    if upper in OPTION_LETTERS:
        return upper
    for letter, text in zip(OPTION_LETTERS, options or []):
        if text.strip().lower() == value.lower():
            return letter
    return upper


def time_bonus(exercise: Exercise, remaining_seconds: Optional[int]) -> int:
    """Raw remaining seconds for timed exercises, 0 otherwise."""
    if not exercise.is_timed or remaining_seconds is None:
        return 0
    return max(0, remaining_seconds)


def evaluate(
    exercise: Exercise,
    chosen_answer: Optional[str],
    remaining_seconds: Optional[int],
) -> ScoreResult:
    """
    Score one answer.

    Pure: no I/O, no hidden state, same inputs always give the same result.

    Args:
        exercise: Exercise being answered (answer key already normalized)
        chosen_answer: Student's answer, raw or normalized
        remaining_seconds: Countdown value at submission (None if untimed)

    Returns:
        ScoreResult with correctness and awarded score
    """
    chosen = normalize_answer(exercise.type, chosen_answer, exercise.options)
    is_correct = chosen is not None and chosen == exercise.correct_answer
    if not is_correct:
        return ScoreResult(is_correct=False, score=0)
    return ScoreResult(
        is_correct=True,
        score=exercise.points + time_bonus(exercise, remaining_seconds),
    )
