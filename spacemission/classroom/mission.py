"""
MissionController - Planet -> level -> exercise flow for one student.

Combines:
- CatalogClient: planets, levels, exercises
- ProgressTracker: progress snapshots and the dashboard
- QuizRunner: the question currently on screen

Level maps come from the backend's unlock-status endpoint when it
answers; otherwise they are computed locally from progress snapshots.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import httpx

from spacemission.schemas import Exercise, Level, LevelProgress, LevelUnlockView, Planet, ProgressSummary
from spacemission.utils import Settings

from .api import ApiClient, ApiResult
from .dispatcher import AchievementCatalog, SubmissionDispatcher
from .loader import CatalogClient
from .navigator import (
    Step,
    current_level_id,
    first_exercise,
    next_exercise,
    next_level,
    next_planet,
    resolve_unlocks,
)
from .progress import ProgressTracker, summarize_level
from .runner import Listener, NotificationKind, QuizRunner
from .session import SessionStatus


logger = logging.getLogger(__name__)


class UnlockSource(str, Enum):
    BACKEND = "backend"
    LOCAL = "local"


@dataclass
class LevelMap:
    """Unlock views for one planet's levels."""
    planet_id: int
    views: list[LevelUnlockView] = field(default_factory=list)
    source: UnlockSource = UnlockSource.BACKEND

    @property
    def levels(self) -> list[Level]:
        return [view.level for view in self.views]

    @property
    def current_level_id(self) -> Optional[int]:
        return current_level_id(self.views)

    def view(self, level_id: int) -> Optional[LevelUnlockView]:
        for view in self.views:
            if view.level.id == level_id:
                return view
        return None


@dataclass
class LevelCompletion:
    """Outcome of finishing a level pass."""
    level_id: int
    progress: LevelProgress
    next_level: Optional[Level] = None
    next_planet: Optional[Planet] = None


class MissionController:
    """
    Sequence one student through the mission.

    Example:
        async with ApiClient.from_settings(settings) as api:
            mission = MissionController.from_api(api, student_id=7)
            await mission.load_planets()
            level_map = (await mission.level_map(planet_id)).data
            await mission.enter_level(level_map.current_level_id)
    """

    def __init__(self, catalog: CatalogClient, progress: ProgressTracker, runner: QuizRunner):
        self.catalog = catalog
        self.progress = progress
        self.runner = runner

        self._planets: list[Planet] = []
        self._level_maps: dict[int, LevelMap] = {}
        self._level: Optional[Level] = None
        self._level_id: Optional[int] = None
        self._exercises: list[Exercise] = []
        self.last_completion: Optional[LevelCompletion] = None

    @classmethod
    def from_api(
        cls,
        api: ApiClient,
        student_id: int,
        tick_interval: float = 1.0,
        listener: Optional[Listener] = None,
    ) -> "MissionController":
        catalog = CatalogClient(api)
        dispatcher = SubmissionDispatcher(api, AchievementCatalog(), student_id=student_id)
        runner = QuizRunner(dispatcher, student_id=student_id,
                            tick_interval=tick_interval, listener=listener)
        return cls(catalog, ProgressTracker(api, student_id), runner)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        listener: Optional[Listener] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "MissionController":
        """
        Build a controller and its ApiClient from Settings.

        Raises:
            ValueError: If settings carry no student_id
        """
        if settings.student_id is None:
            raise ValueError("student_id is required to run a mission")
        api = ApiClient.from_settings(settings, transport=transport)
        return cls.from_api(api, settings.student_id, settings.tick_interval, listener)

    @property
    def planets(self) -> list[Planet]:
        return list(self._planets)

    @property
    def level(self) -> Optional[Level]:
        return self._level

    @property
    def exercises(self) -> list[Exercise]:
        return list(self._exercises)

    # -------------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------------

    async def load_planets(self) -> ApiResult[list[Planet]]:
        result = await self.catalog.get_planets()
        if result.success:
            self._planets = result.data
        return result

    async def load_achievements(self) -> ApiResult:
        return await self.runner.dispatcher.catalog.refresh(self.catalog)

    async def level_map(self, planet_id: int) -> ApiResult[LevelMap]:
        """
        Lock status for a planet's levels.

        Falls back to resolving unlocks locally when the unlock-status
        endpoint fails. A failed progress refresh in the fallback uses the
        cached snapshots.
        """
        backend = await self.catalog.get_levels_with_unlock_status(planet_id)
        if backend.success:
            level_map = LevelMap(planet_id, backend.data, UnlockSource.BACKEND)
            self._level_maps[planet_id] = level_map
            return ApiResult.ok(level_map)

        logger.info(f"Unlock status unavailable for planet {planet_id} ({backend.message}), resolving locally")
        levels = await self.catalog.get_levels_by_planet(planet_id)
        if not levels.success:
            return ApiResult.fail(levels.message, levels.status_code)

        refreshed = await self.progress.refresh()
        if not refreshed.success:
            logger.warning(f"Using cached progress for planet {planet_id}: {refreshed.message}")

        views = resolve_unlocks(levels.data, self.progress.get_progress_map())
        level_map = LevelMap(planet_id, views, UnlockSource.LOCAL)
        self._level_maps[planet_id] = level_map
        return ApiResult.ok(level_map)

    def _find_view(self, level_id: int) -> Optional[LevelUnlockView]:
        for level_map in self._level_maps.values():
            view = level_map.view(level_id)
            if view is not None:
                return view
        return None

    async def _resolve_view(self, level_id: int) -> ApiResult[LevelUnlockView]:
        view = self._find_view(level_id)
        if view is not None:
            return ApiResult.ok(view)

        levels = await self.catalog.get_all_levels()
        if not levels.success:
            return ApiResult.fail(levels.message, levels.status_code)
        level = next((lvl for lvl in levels.data if lvl.id == level_id), None)
        if level is None:
            return ApiResult.fail(f"Level {level_id} not found", 404)

        loaded = await self.level_map(level.planet_id)
        if not loaded.success:
            return ApiResult.fail(loaded.message, loaded.status_code)
        view = loaded.data.view(level_id)
        if view is None:
            return ApiResult.fail(f"Level {level_id} not found", 404)
        return ApiResult.ok(view)

    # -------------------------------------------------------------------------
    # Playing
    # -------------------------------------------------------------------------

    async def enter_level(self, level_id: int) -> ApiResult[Step]:
        """
        Load a level's exercises and begin the first one.

        Locked levels are refused; the planet's level map is loaded first
        when the level is not on any known map. An empty level is complete
        at once.
        """
        found = await self._resolve_view(level_id)
        if not found.success:
            self.runner.notify(NotificationKind.ERROR, found.message)
            return ApiResult.fail(found.message, found.status_code)
        view = found.data
        if view.is_locked:
            return ApiResult.fail(f"Level {level_id} is locked")

        result = await self.catalog.get_exercises_by_level(level_id)
        if not result.success:
            self.runner.notify(NotificationKind.ERROR, result.message)
            return ApiResult.fail(result.message, result.status_code)

        self.runner.leave()
        self.runner.take_attempts()
        self.runner.dispatcher.reset()
        self._level = view.level
        self._level_id = level_id
        self._exercises = result.data
        self.last_completion = None

        return await self._go_to(first_exercise(self._exercises))

    async def advance(self) -> ApiResult[Step]:
        """Move past the answered question to the next exercise or level completion."""
        session = self.runner.session
        if session is None or session.status != SessionStatus.ANSWERED:
            return ApiResult.fail("Answer the current question first")
        return await self._go_to(next_exercise(self._exercises, session.exercise.id))

    async def skip_unusable(self) -> ApiResult[Step]:
        """Skip an exercise that could not be started."""
        session = self.runner.session
        if session is None or session.status != SessionStatus.IDLE:
            return ApiResult.fail("No unusable exercise to skip")
        return await self._go_to(next_exercise(self._exercises, session.exercise.id))

    async def _go_to(self, step: Step) -> ApiResult[Step]:
        if step.is_level_complete:
            await self._complete_level()
            self.runner.leave()
            self.runner.notify(NotificationKind.LEVEL_COMPLETE, f"Level {self._level_id} complete")
            return ApiResult.ok(step)

        begun = self.runner.begin(step.exercise)
        if not begun.success:
            return ApiResult.fail(begun.message)
        return ApiResult.ok(step)

    async def _complete_level(self) -> None:
        # Backend progress must see the last attempt before it is re-read
        await self.runner.drain()
        local = summarize_level(
            self.progress.student_id,
            self._level_id,
            len(self._exercises),
            self.runner.take_attempts(),
        )

        refreshed = await self.progress.refresh()
        if not refreshed.success:
            logger.warning(f"Progress refresh failed after level {self._level_id}: {refreshed.message}")
            self.progress.merge(local)

        following_level, following_planet = self.next_destination()
        self.last_completion = LevelCompletion(
            level_id=self._level_id,
            progress=self.progress.get_level_progress(self._level_id),
            next_level=following_level,
            next_planet=following_planet,
        )

    def next_destination(self) -> tuple[Optional[Level], Optional[Planet]]:
        """
        Where to go after the current level.

        Returns (next level in the same planet, None), or (None, next
        planet) once the planet is exhausted, or (None, None) at the end
        of the mission or before any level was entered.
        """
        if self._level is None:
            return None, None
        level_map = self._level_maps.get(self._level.planet_id)
        if level_map is not None:
            following = next_level(level_map.levels, self._level.id)
            if following is not None:
                return following, None
        return None, next_planet(self._planets, self._level.planet_id)

    def leave(self) -> None:
        """Leave the quiz; the level's attempts so far are kept."""
        self.runner.leave()

    # -------------------------------------------------------------------------
    # Dashboard
    # -------------------------------------------------------------------------

    async def dashboard(self) -> ApiResult[ProgressSummary]:
        """Overall progress across every planet and level."""
        progress = await self.progress.refresh()
        if not progress.success:
            logger.warning(f"Dashboard uses cached progress: {progress.message}")

        levels = await self.catalog.get_all_levels()
        if not levels.success:
            return ApiResult.fail(levels.message, levels.status_code)
        if not self._planets:
            planets = await self.load_planets()
            if not planets.success:
                return ApiResult.fail(planets.message, planets.status_code)

        return ApiResult.ok(self.progress.get_completion_stats(levels.data, self._planets))
