"""
Catalog schemas for the space mission.

Defines Pydantic models for the content served by the remote API:
- Planets and their ordered levels
- Exercises (multiple choice, true/false, numeric)
- Achievements that a submission may grant
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


OPTION_LETTERS = ("A", "B", "C", "D")


class ExerciseType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    NUMERIC = "numeric"


class Planet(BaseModel):
    id: int
    title: str
    description: str = ""
    order_index: int = 0


class Level(BaseModel):
    id: int
    planet_id: int
    order_index: int = 0
    title: str = ""
    description: Optional[str] = None


class Exercise(BaseModel):
    """
    One gradable question inside a level.

    Options are stored in display order; option i is answered with
    OPTION_LETTERS[i]. correct_answer holds the normalized answer key:
    an option letter for multiple_choice/true_false, a literal for numeric.
    """
    id: int
    level_id: int
    order_index: int = 0
    type: ExerciseType = ExerciseType.MULTIPLE_CHOICE
    unsupported_type: Optional[str] = None
    prompt: str = ""
    options: list[str] = Field(default_factory=list, max_length=len(OPTION_LETTERS))
    correct_answer: Optional[str] = None
    points: int = Field(default=10, ge=1)
    time_limit_seconds: int = Field(default=0, ge=0)
    explanation: Optional[str] = None

    @field_validator("options")
    @classmethod
    def drop_blank_options(cls, v: list[str]) -> list[str]:
        return [opt for opt in v if opt and opt.strip()]

    @property
    def option_letters(self) -> list[str]:
        """Letters that are valid answers for this exercise's options."""
        return list(OPTION_LETTERS[:len(self.options)])

    @property
    def is_timed(self) -> bool:
        return self.time_limit_seconds > 0

    def problems(self) -> list[str]:
        """
        List reasons this exercise cannot be played.

        Returns an empty list for a playable exercise.
        """
        issues = []
        if self.unsupported_type is not None:
            issues.append(f"unsupported exercise type {self.unsupported_type!r}")
        if not self.prompt.strip():
            issues.append("missing prompt")
        if self.type != ExerciseType.NUMERIC and not self.options:
            issues.append("missing options")
        if not self.correct_answer:
            issues.append("missing correct answer")
        elif self.type != ExerciseType.NUMERIC and self.correct_answer not in self.option_letters:
            issues.append(f"correct answer {self.correct_answer!r} is not an option")
        return issues

    @property
    def is_playable(self) -> bool:
        return not self.problems()


class Achievement(BaseModel):
    id: int
    code: str
    name: str = ""
    description: str = ""
    points: Optional[int] = None
    icon: Optional[str] = None
