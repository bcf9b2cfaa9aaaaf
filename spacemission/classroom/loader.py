"""
CatalogClient - Load mission content from the remote API.

Provides read-only access to:
- Planets and levels (ordered by order_index)
- Exercises of a level, and single exercises
- Backend-computed level unlock status
- Achievement catalog and per-user achievements

Raw payloads are normalized into schema models here; nothing past this
module sees backend field names.
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from spacemission.schemas import (
    OPTION_LETTERS,
    Achievement,
    Exercise,
    ExerciseType,
    Level,
    LevelUnlockView,
    Planet,
)

from .api import ApiClient, ApiResult, unwrap
from .scoring import normalize_answer


logger = logging.getLogger(__name__)


def pick_field(raw: dict, *keys: str, default: Any = None) -> Any:
    """First present, non-None value among several spellings of a field."""
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return default


# -----------------------------------------------------------------------------
# Normalization
# -----------------------------------------------------------------------------

def parse_planet(raw: dict) -> Planet:
    return Planet(
        id=raw["id"],
        title=pick_field(raw, "title", "name", default=""),
        description=pick_field(raw, "description", default=""),
        order_index=pick_field(raw, "orderIndex", "order_index", "order", default=0),
    )


def parse_level(raw: dict) -> Level:
    return Level(
        id=raw["id"],
        planet_id=pick_field(raw, "planetId", "planet_id"),
        order_index=pick_field(raw, "orderIndex", "order_index", "order", "levelNumber", default=0),
        title=pick_field(raw, "title", "name", default=""),
        description=raw.get("description"),
    )


def parse_exercise(raw: dict) -> Exercise:
    """
    Normalize an exercise payload.

    Options arrive either as a list or as optionA..optionD fields; blank
    options are dropped. The answer key is normalized to an option letter
    for option-based types. Missing or non-positive points default to 10.
    An unknown type still parses, but the exercise reports itself as
    unplayable so the rest of the level stays usable.
    """
    options = raw.get("options")
    if not isinstance(options, list):
        options = [raw.get(f"option{letter}") for letter in OPTION_LETTERS]
    options = [str(opt) for opt in options if opt is not None and str(opt).strip()]

    raw_type = pick_field(raw, "type", default=ExerciseType.MULTIPLE_CHOICE.value)
    unsupported_type = None
    try:
        exercise_type = ExerciseType(raw_type)
    except ValueError:
        logger.warning(f"Exercise {raw.get('id')} has unsupported type {raw_type!r}")
        exercise_type = ExerciseType.MULTIPLE_CHOICE
        unsupported_type = str(raw_type)
    correct = pick_field(raw, "correctAnswer", "correct_answer")

    points = raw.get("points")
    if not points or (isinstance(points, (int, float)) and points <= 0):
        points = 10

    return Exercise(
        id=raw["id"],
        level_id=pick_field(raw, "levelId", "level_id"),
        order_index=pick_field(raw, "orderIndex", "order_index", "order", default=0),
        type=exercise_type,
        unsupported_type=unsupported_type,
        prompt=pick_field(raw, "question", "prompt", default=""),
        options=options,
        correct_answer=normalize_answer(exercise_type, correct, options),
        points=points,
        time_limit_seconds=pick_field(raw, "timeLimit", "timeLimitSeconds", "time_limit_seconds", default=0),
        explanation=raw.get("explanation"),
    )


def parse_achievement(raw: dict) -> Achievement:
    return Achievement(
        id=pick_field(raw, "id", "achievementId", "achievement_id"),
        code=raw["code"],
        name=pick_field(raw, "name", "title", default=""),
        description=pick_field(raw, "description", default=""),
        points=raw.get("points"),
        icon=raw.get("icon"),
    )


def sort_by_order(items: list) -> list:
    """Stable sort on order_index."""
    return sorted(items, key=lambda item: item.order_index)


# -----------------------------------------------------------------------------
# Client
# -----------------------------------------------------------------------------

class CatalogClient:
    """
    Fetch and normalize catalog content.

    Each method returns an ApiResult; malformed payloads become failed
    results rather than exceptions.
    """

    def __init__(self, api: ApiClient):
        """
        Initialize the catalog client.

        Args:
            api: ApiClient used for all requests
        """
        self.api = api

    async def _fetch_list(self, path: str, parser, default_error: str,
                          params: Optional[dict] = None) -> ApiResult[list]:
        result = await self.api.get(path, params=params, default_error=default_error)
        if not result.success:
            return ApiResult.fail(result.message, result.status_code)

        data = unwrap(result.data)
        if not isinstance(data, list):
            return ApiResult.fail(f"{default_error}: unexpected payload")
        try:
            return ApiResult.ok([parser(item) for item in data])
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Malformed payload from {path}: {e}")
            return ApiResult.fail(f"{default_error}: malformed data")

    async def _fetch_one(self, path: str, parser, default_error: str) -> ApiResult:
        result = await self.api.get(path, default_error=default_error)
        if not result.success:
            return ApiResult.fail(result.message, result.status_code)

        data = unwrap(result.data)
        if not isinstance(data, dict):
            return ApiResult.fail(f"{default_error}: unexpected payload")
        try:
            return ApiResult.ok(parser(data))
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Malformed payload from {path}: {e}")
            return ApiResult.fail(f"{default_error}: malformed data")

    # -------------------------------------------------------------------------
    # Planets and levels
    # -------------------------------------------------------------------------

    async def get_planets(self) -> ApiResult[list[Planet]]:
        result = await self._fetch_list("/api/planets", parse_planet, "Error fetching planets")
        if result.success:
            result.data = sort_by_order(result.data)
        return result

    async def get_levels_by_planet(self, planet_id: int) -> ApiResult[list[Level]]:
        result = await self._fetch_list(
            "/api/levels", parse_level, "Error fetching levels",
            params={"planetId": planet_id},
        )
        if result.success:
            result.data = sort_by_order(result.data)
        return result

    async def get_all_levels(self) -> ApiResult[list[Level]]:
        result = await self._fetch_list("/api/levels", parse_level, "Error fetching levels")
        if result.success:
            result.data = sorted(result.data, key=lambda level: (level.planet_id, level.order_index))
        return result

    async def get_levels_with_unlock_status(self, planet_id: int) -> ApiResult[list[LevelUnlockView]]:
        """
        Fetch the backend's own unlock computation for a planet.

        The payload is {"levels": [...], "currentLevelId": id}; each level
        carries an isUnlocked flag.
        """
        path = f"/api/levels/planet/{planet_id}/unlock-status"
        default_error = "Error fetching level unlock status"
        result = await self.api.get(path, default_error=default_error)
        if not result.success:
            return ApiResult.fail(result.message, result.status_code)

        data = unwrap(result.data)
        if not isinstance(data, dict) or not isinstance(data.get("levels"), list):
            return ApiResult.fail(f"{default_error}: unexpected payload")

        current_id = pick_field(data, "currentLevelId", "current_level_id")
        try:
            views = []
            for raw in data["levels"]:
                level = parse_level(raw)
                unlocked = bool(pick_field(raw, "isUnlocked", "is_unlocked", default=False))
                views.append(LevelUnlockView(
                    level=level,
                    is_unlocked=unlocked,
                    is_locked=not unlocked,
                    is_current=unlocked and level.id == current_id,
                ))
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Malformed payload from {path}: {e}")
            return ApiResult.fail(f"{default_error}: malformed data")

        return ApiResult.ok(sorted(views, key=lambda v: v.level.order_index))

    # -------------------------------------------------------------------------
    # Exercises
    # -------------------------------------------------------------------------

    async def get_exercises_by_level(self, level_id: int) -> ApiResult[list[Exercise]]:
        result = await self._fetch_list(
            f"/api/exercises/level/{level_id}", parse_exercise, "Error fetching exercises",
        )
        if result.success:
            result.data = sort_by_order(result.data)
        return result

    async def get_exercise_by_id(self, exercise_id: int) -> ApiResult[Exercise]:
        return await self._fetch_one(
            f"/api/exercises/{exercise_id}", parse_exercise, "Error fetching exercise",
        )

    # -------------------------------------------------------------------------
    # Achievements
    # -------------------------------------------------------------------------

    async def get_achievements(self) -> ApiResult[list[Achievement]]:
        return await self._fetch_list(
            "/api/achievements", parse_achievement, "Error fetching achievements",
        )

    async def get_user_achievements(self, user_id: int) -> ApiResult[list[Achievement]]:
        return await self._fetch_list(
            f"/api/achievements/users/{user_id}", parse_achievement,
            "Error fetching user achievements",
        )
