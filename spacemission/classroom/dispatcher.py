"""
SubmissionDispatcher - Send answered questions to the backend.

One dispatch per (session, exercise): duplicates are refused locally and
never reach the network. Failures are reported, not retried; scoring has
already happened client-side and stands either way.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from pydantic import ValidationError

from spacemission.schemas import Achievement

from .api import ApiClient, ApiResult, unwrap
from .loader import CatalogClient, parse_achievement, pick_field


logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Outcome of one submission."""
    accepted: bool
    correct: Optional[bool] = None  # backend's verdict, when it sends one
    newly_granted_achievements: list[Achievement] = field(default_factory=list)
    message: str = ""
    duplicate: bool = False


class AchievementCatalog:
    """Locally cached achievements, looked up by code or id."""

    def __init__(self, achievements: Iterable[Achievement] = ()):
        self._by_code: dict[str, Achievement] = {}
        self._by_id: dict[int, Achievement] = {}
        self.update(achievements)

    def __len__(self) -> int:
        return len(self._by_code)

    def update(self, achievements: Iterable[Achievement]) -> None:
        for achievement in achievements:
            self._by_code[achievement.code] = achievement
            self._by_id[achievement.id] = achievement

    async def refresh(self, catalog: CatalogClient) -> ApiResult[list[Achievement]]:
        """Reload from the backend; the old cache is kept on failure."""
        result = await catalog.get_achievements()
        if result.success:
            self._by_code.clear()
            self._by_id.clear()
            self.update(result.data)
        return result

    def lookup(self, raw: dict) -> Optional[Achievement]:
        """Match a granted-achievement payload by code, then by achievement id."""
        code = raw.get("code")
        if code in self._by_code:
            return self._by_code[code]
        achievement_id = pick_field(raw, "achievementId", "achievement_id", "id")
        return self._by_id.get(achievement_id)


def dedupe_achievements(raw_items: Iterable, catalog: AchievementCatalog) -> list[Achievement]:
    """
    Resolve granted achievements against the catalog, each code at most once.

    Entries missing from the catalog are parsed from the payload itself;
    unparseable entries are skipped.
    """
    seen: set[str] = set()
    resolved = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        achievement = catalog.lookup(raw)
        if achievement is None:
            try:
                achievement = parse_achievement(raw)
            except (ValidationError, KeyError, TypeError) as e:
                logger.debug(f"Skipping unrecognized achievement {raw!r}: {e}")
                continue
        if achievement.code in seen:
            continue
        seen.add(achievement.code)
        resolved.append(achievement)
    return resolved


class SubmissionDispatcher:
    """
    Submit answers at most once per (session_id, exercise_id).

    The key is recorded before the request is awaited, so a second
    request for the same question is refused even while the first is
    still in flight.
    """

    def __init__(
        self,
        api: ApiClient,
        catalog: Optional[AchievementCatalog] = None,
        student_id: Optional[int] = None,
    ):
        self.api = api
        self.catalog = catalog or AchievementCatalog()
        self.student_id = student_id
        self._dispatched: set[tuple[str, int]] = set()

    def has_dispatched(self, session_id: str, exercise_id: int) -> bool:
        return (session_id, exercise_id) in self._dispatched

    def reset(self) -> None:
        """
        Forget dispatched keys, e.g. when a new level pass starts.

        Session ids are never reused, so keys of finished sessions can
        only ever match a replayed call from the same finished session.
        """
        self._dispatched.clear()

    async def submit(
        self,
        session_id: str,
        exercise_id: int,
        chosen_answer: Optional[str],
        time_taken_seconds: int,
        hints_used: int = 0,
    ) -> DispatchResult:
        """
        Send one answer.

        Args:
            session_id: Identity of the quiz session that produced the answer
            exercise_id: Exercise answered
            chosen_answer: Normalized answer, None when the countdown expired
            time_taken_seconds: Seconds spent on the question
            hints_used: Hints consumed

        Returns:
            DispatchResult; never raises for network or backend errors
        """
        key = (session_id, exercise_id)
        if key in self._dispatched:
            logger.info(f"Ignoring duplicate submission for exercise {exercise_id} in session {session_id}")
            return DispatchResult(accepted=False, duplicate=True, message="Answer already submitted")
        self._dispatched.add(key)

        body = {
            "userAnswer": chosen_answer,
            "timeTaken": time_taken_seconds,
            "hintsUsed": hints_used,
        }
        if self.student_id is not None:
            body["userId"] = self.student_id

        result = await self.api.post(
            f"/api/exercises/{exercise_id}/submit",
            json=body,
            default_error="Error submitting answer",
        )
        if not result.success:
            logger.warning(f"Submission for exercise {exercise_id} failed: {result.message}")
            return DispatchResult(accepted=False, message=result.message)

        data = unwrap(result.data)
        if not isinstance(data, dict):
            data = {}
        granted = pick_field(data, "newlyGrantedAchievements", "newly_granted_achievements", default=[])
        message = result.data.get("message", "") if isinstance(result.data, dict) else ""

        return DispatchResult(
            accepted=True,
            correct=data.get("correct"),
            newly_granted_achievements=dedupe_achievements(granted, self.catalog),
            message=message,
        )
