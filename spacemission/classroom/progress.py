"""
ProgressTracker - Student progress snapshots and dashboard aggregation.

Progress is owned by the backend, which updates it from submitted
attempts. This module only reads snapshots, plus:
- Reduces a local attempt history into a LevelProgress
- Aggregates per-level progress into a dashboard summary
- Supplies the level_id -> LevelProgress map used for unlocking
"""

import logging
from typing import Iterable, Optional

from pydantic import ValidationError

from spacemission.schemas import (
    AttemptRecord,
    Level,
    LevelProgress,
    Planet,
    ProgressSummary,
)

from .api import ApiClient, ApiResult, unwrap
from .loader import pick_field


logger = logging.getLogger(__name__)


def parse_level_progress(raw: dict) -> LevelProgress:
    return LevelProgress(
        student_id=pick_field(raw, "userId", "studentId", "user_id", "student_id"),
        level_id=pick_field(raw, "levelId", "level_id"),
        total_exercises=pick_field(raw, "totalExercises", "total_exercises", default=0),
        completed_exercises=pick_field(raw, "completedExercises", "completed_exercises", default=0),
        score=pick_field(raw, "score", "totalScore", default=0),
        time_spent_seconds=pick_field(raw, "timeSpent", "timeSpentSeconds", "time_spent_seconds", default=0),
        completion_percentage=float(pick_field(raw, "completionPercentage", "completion_percentage", default=0)),
        is_completed=bool(pick_field(raw, "isCompleted", "is_completed", default=False)),
    )


def progress_map(records: Iterable[LevelProgress]) -> dict[int, LevelProgress]:
    """Index progress by level id; later records win."""
    return {record.level_id: record for record in records}


def is_level_done(record: LevelProgress) -> bool:
    return record.is_completed or record.completion_percentage >= 100


def aggregate(
    records: Iterable[LevelProgress],
    levels: Optional[Iterable[Level]] = None,
    planets: Optional[Iterable[Planet]] = None,
) -> ProgressSummary:
    """
    Reduce per-level progress into dashboard totals.

    overall_percent is the plain mean of completion_percentage over all
    known levels, not weighted by exercise count. Levels with no record
    contribute 0.

    Args:
        records: LevelProgress snapshots for one student
        levels: All known levels; defaults to the levels seen in records
        planets: All known planets; defaults to none

    Returns:
        ProgressSummary
    """
    by_level = progress_map(records)
    level_ids = {level.id for level in levels} if levels is not None else set(by_level)
    total_levels = len(level_ids)
    total_planets = len(list(planets)) if planets is not None else 0

    completed = sum(1 for lid in level_ids if lid in by_level and is_level_done(by_level[lid]))
    percent_sum = sum(by_level[lid].completion_percentage for lid in level_ids if lid in by_level)

    return ProgressSummary(
        total_planets=total_planets,
        total_levels=total_levels,
        completed_levels=completed,
        overall_percent=round(percent_sum / total_levels, 1) if total_levels > 0 else 0.0,
    )


def summarize_level(
    student_id: Optional[int],
    level_id: int,
    total_exercises: int,
    attempts: Iterable[AttemptRecord],
) -> LevelProgress:
    """
    Reduce an attempt history for one level into a LevelProgress.

    An exercise counts as completed once any attempt on it was correct.
    Score keeps the best attempt per exercise; time adds up every attempt.
    """
    best_scores: dict[int, int] = {}
    solved: set[int] = set()
    time_spent = 0

    for attempt in attempts:
        time_spent += attempt.time_taken_seconds
        best_scores[attempt.exercise_id] = max(
            best_scores.get(attempt.exercise_id, 0), attempt.score_awarded
        )
        if attempt.is_correct:
            solved.add(attempt.exercise_id)

    completed = min(len(solved), total_exercises) if total_exercises else len(solved)
    percent = round(completed / total_exercises * 100, 1) if total_exercises > 0 else 0.0

    return LevelProgress(
        student_id=student_id,
        level_id=level_id,
        total_exercises=total_exercises,
        completed_exercises=completed,
        score=sum(best_scores.values()),
        time_spent_seconds=time_spent,
        completion_percentage=percent,
        is_completed=total_exercises > 0 and completed >= total_exercises,
    )


class ProgressTracker:
    """
    Cache one student's progress snapshots.

    Snapshots come from the API; locally summarized levels can be merged
    in when a refresh is not possible, so a finished level still unlocks
    the next one.
    """

    def __init__(self, api: ApiClient, student_id: int):
        """
        Initialize progress tracker.

        Args:
            api: ApiClient for progress endpoints
            student_id: Student whose progress is tracked
        """
        self.api = api
        self.student_id = student_id
        self._levels: dict[int, LevelProgress] = {}

    # -------------------------------------------------------------------------
    # Remote snapshots
    # -------------------------------------------------------------------------

    async def refresh(self) -> ApiResult[list[LevelProgress]]:
        """Replace the cache with the backend's current snapshot."""
        path = f"/api/progress/{self.student_id}"
        result = await self.api.get(path, default_error="Error fetching user progress")
        if not result.success:
            return ApiResult.fail(result.message, result.status_code)

        data = unwrap(result.data)
        if not isinstance(data, list):
            return ApiResult.fail("Error fetching user progress: unexpected payload")
        try:
            records = [parse_level_progress(item) for item in data]
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning(f"Malformed progress payload: {e}")
            return ApiResult.fail("Error fetching user progress: malformed data")

        self._levels = progress_map(records)
        return ApiResult.ok(records)

    async def fetch_level_progress(self, level_id: int) -> ApiResult[LevelProgress]:
        """Fetch and cache a single level's snapshot."""
        path = f"/api/progress/{self.student_id}/{level_id}"
        result = await self.api.get(path, default_error="Error fetching level progress")
        if not result.success:
            return ApiResult.fail(result.message, result.status_code)

        data = unwrap(result.data)
        if not isinstance(data, dict):
            return ApiResult.fail("Error fetching level progress: unexpected payload")
        try:
            record = parse_level_progress({"levelId": level_id, **data})
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning(f"Malformed level progress payload: {e}")
            return ApiResult.fail("Error fetching level progress: malformed data")

        self._levels[record.level_id] = record
        return ApiResult.ok(record)

    # -------------------------------------------------------------------------
    # Local state
    # -------------------------------------------------------------------------

    def merge(self, record: LevelProgress) -> None:
        """
        Merge a locally summarized level.

        Never downgrades a level the backend already reports as completed.
        """
        existing = self._levels.get(record.level_id)
        if existing is not None and existing.is_completed and not record.is_completed:
            return
        self._levels[record.level_id] = record

    def get_level_progress(self, level_id: int) -> LevelProgress:
        """Get progress for a level; unknown levels report 0%."""
        return self._levels.get(
            level_id, LevelProgress(student_id=self.student_id, level_id=level_id)
        )

    def get_progress_map(self) -> dict[int, LevelProgress]:
        return dict(self._levels)

    def get_completion_stats(
        self,
        levels: Optional[Iterable[Level]] = None,
        planets: Optional[Iterable[Planet]] = None,
    ) -> ProgressSummary:
        return aggregate(self._levels.values(), levels, planets)
