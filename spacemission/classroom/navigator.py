"""
Navigator - Level unlocking and exercise/level/planet sequencing.

Provides:
- Level lock/unlock/current resolution from progress snapshots
- Next exercise within a level, or level completion
- Next level within a planet and next planet in the mission
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Iterable, Mapping, Optional, Protocol, TypeVar

from spacemission.schemas import Exercise, Level, LevelProgress, LevelUnlockView, Planet


class Ordered(Protocol):
    id: int
    order_index: int


ItemT = TypeVar("ItemT", bound=Ordered)


class StepKind(str, Enum):
    EXERCISE = "exercise"
    LEVEL_COMPLETE = "level_complete"


@dataclass(frozen=True)
class Step:
    """Where the student goes after the current exercise."""
    kind: StepKind
    exercise: Optional[Exercise] = None

    @property
    def is_level_complete(self) -> bool:
        return self.kind == StepKind.LEVEL_COMPLETE


LEVEL_COMPLETE = Step(kind=StepKind.LEVEL_COMPLETE)


# -----------------------------------------------------------------------------
# Unlock resolution
# -----------------------------------------------------------------------------

def _is_completed(progress: Mapping[int, LevelProgress], level_id: int) -> bool:
    # No record means 0% complete
    record = progress.get(level_id)
    return record is not None and record.is_completed is True


def resolve_unlocks(
    levels: Iterable[Level],
    progress: Mapping[int, LevelProgress],
) -> list[LevelUnlockView]:
    """
    Compute lock status for a planet's levels.

    The first level (by order_index) is always unlocked; every other level
    is unlocked only when the level before it is completed. The first
    unlocked level that is not completed is marked current.

    Args:
        levels: Levels of one planet, any order
        progress: LevelProgress by level id; missing entries count as 0%

    Returns:
        One LevelUnlockView per level, sorted by order_index
    """
    ordered = sorted(levels, key=lambda level: level.order_index)
    views = []
    current_assigned = False

    for idx, level in enumerate(ordered):
        unlocked = idx == 0 or _is_completed(progress, ordered[idx - 1].id)
        is_current = False
        if unlocked and not current_assigned and not _is_completed(progress, level.id):
            is_current = True
            current_assigned = True

        views.append(LevelUnlockView(
            level=level,
            is_unlocked=unlocked,
            is_locked=not unlocked,
            is_current=is_current,
        ))

    return views


def current_level_id(views: Iterable[LevelUnlockView]) -> Optional[int]:
    """ID of the level marked current, if any."""
    for view in views:
        if view.is_current:
            return view.level.id
    return None


def is_level_playable(views: Iterable[LevelUnlockView], level_id: int) -> bool:
    """Check if a level can be entered."""
    return any(view.level.id == level_id and view.is_unlocked for view in views)


# -----------------------------------------------------------------------------
# Sequencing
# -----------------------------------------------------------------------------

class SequenceNavigator(Generic[ItemT]):
    """
    Navigate an ordered sequence of planets, levels or exercises.

    Items are sorted by order_index once; lookups go through an id index.
    """

    def __init__(self, items: Iterable[ItemT]):
        self._order: list[ItemT] = sorted(items, key=lambda item: item.order_index)
        self._index: dict[int, int] = {item.id: idx for idx, item in enumerate(self._order)}

    @property
    def total(self) -> int:
        return len(self._order)

    @property
    def items(self) -> list[ItemT]:
        return list(self._order)

    def first(self) -> Optional[ItemT]:
        return self._order[0] if self._order else None

    def get(self, item_id: int) -> Optional[ItemT]:
        idx = self._index.get(item_id)
        return self._order[idx] if idx is not None else None

    def next(self, current_id: int) -> Optional[ItemT]:
        """Item after current_id; None at the end or if current_id is unknown."""
        idx = self._index.get(current_id)
        if idx is None or idx + 1 >= len(self._order):
            return None
        return self._order[idx + 1]

    def previous(self, current_id: int) -> Optional[ItemT]:
        idx = self._index.get(current_id)
        if idx is None or idx <= 0:
            return None
        return self._order[idx - 1]

    def position(self, item_id: int) -> tuple[int, int]:
        """
        Get item position as (current, total), 1-based.

        Returns (0, total) if item not found.
        """
        if item_id not in self._index:
            return (0, len(self._order))
        return (self._index[item_id] + 1, len(self._order))


def first_exercise(exercises: Iterable[Exercise]) -> Step:
    """Opening step of a level; an empty level is already complete."""
    exercise = SequenceNavigator(exercises).first()
    if exercise is None:
        return LEVEL_COMPLETE
    return Step(kind=StepKind.EXERCISE, exercise=exercise)


def next_exercise(exercises: Iterable[Exercise], current_exercise_id: int) -> Step:
    """
    Step after the current exercise.

    An unknown id (e.g. an exercise deleted mid-session) resolves to
    level completion, not an error.
    """
    exercise = SequenceNavigator(exercises).next(current_exercise_id)
    if exercise is None:
        return LEVEL_COMPLETE
    return Step(kind=StepKind.EXERCISE, exercise=exercise)


def next_level(levels: Iterable[Level], current_level_id: int) -> Optional[Level]:
    return SequenceNavigator(levels).next(current_level_id)


def next_planet(planets: Iterable[Planet], current_planet_id: int) -> Optional[Planet]:
    return SequenceNavigator(planets).next(current_planet_id)
