"""
QuizRunner - Drives the current quiz session.

Owns one QuizSession at a time together with its Countdown, hands
finished questions to the SubmissionDispatcher and reports state changes
to a listener (the UI).

Countdown ticks are checked against the current session before they are
applied. A dispatch response is applied when it arrives, even after the
next question has begun, unless the student left the quiz meanwhile.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from spacemission.schemas import Achievement, AttemptRecord, Exercise

from .api import ApiResult
from .dispatcher import DispatchResult, SubmissionDispatcher
from .loader import CatalogClient
from .session import Answered, Countdown, QuizSession, SessionSnapshot


logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    STATE = "state"
    ACHIEVEMENT = "achievement"
    WARNING = "warning"
    ERROR = "error"
    LEVEL_COMPLETE = "level_complete"


@dataclass(frozen=True)
class Notification:
    """Event for the UI layer."""
    kind: NotificationKind
    message: str = ""
    snapshot: Optional[SessionSnapshot] = None
    achievement: Optional[Achievement] = None


Listener = Callable[[Notification], None]


class QuizRunner:
    """
    Run quiz sessions one after another.

    Answers and timed exercises schedule work on the running event loop,
    so the runner is driven from async code.

    Example:
        runner = QuizRunner(dispatcher, student_id=7, listener=ui.show)
        runner.begin(exercise)
        runner.select_answer("B")
    """

    def __init__(
        self,
        dispatcher: SubmissionDispatcher,
        student_id: Optional[int] = None,
        tick_interval: float = 1.0,
        listener: Optional[Listener] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.dispatcher = dispatcher
        self.student_id = student_id
        self.tick_interval = tick_interval
        self.listener = listener
        self._clock = clock
        self._session: Optional[QuizSession] = None
        self._countdown: Optional[Countdown] = None
        self._pending: dict[str, asyncio.Task] = {}
        self._discarded: set[str] = set()
        self._attempts: list[AttemptRecord] = []

    @property
    def session(self) -> Optional[QuizSession]:
        return self._session

    @property
    def attempts(self) -> list[AttemptRecord]:
        """Attempts recorded since the last take_attempts()."""
        return list(self._attempts)

    def take_attempts(self) -> list[AttemptRecord]:
        attempts, self._attempts = self._attempts, []
        return attempts

    def notify(self, kind: NotificationKind, message: str = "", **kwargs) -> None:
        if self.listener is not None:
            self.listener(Notification(kind=kind, message=message, **kwargs))

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------

    def begin(self, exercise: Exercise) -> ApiResult[SessionSnapshot]:
        """
        Replace the current session with a fresh one for exercise.

        A malformed exercise leaves the new session idle and is reported
        as unusable. Timed exercises need a running event loop.
        """
        self._release()
        session = QuizSession(exercise, clock=self._clock)
        self._session = session

        problems = session.start()
        if problems:
            message = f"Exercise {exercise.id} is unusable: {'; '.join(problems)}"
            logger.warning(message)
            self.notify(NotificationKind.ERROR, message, snapshot=session.snapshot())
            return ApiResult.fail(message)

        if exercise.is_timed:
            self._countdown = Countdown(
                interval=self.tick_interval,
                on_tick=lambda _remaining: self._on_tick(session),
                on_expire=lambda: self._on_expire(session),
            )
            self._countdown.start(exercise.time_limit_seconds)

        logger.debug(f"Session {session.session_id} started for exercise {exercise.id}")
        snapshot = session.snapshot()
        self.notify(NotificationKind.STATE, snapshot=snapshot)
        return ApiResult.ok(snapshot)

    async def open(self, catalog: CatalogClient, exercise_id: int) -> ApiResult[SessionSnapshot]:
        """
        Fetch an exercise and begin it.

        On a failed fetch the runner stays idle and the error is reported
        so the UI can offer a retry.
        """
        result = await catalog.get_exercise_by_id(exercise_id)
        if not result.success:
            self._release()
            self.notify(NotificationKind.ERROR, result.message)
            return ApiResult.fail(result.message, result.status_code)
        return self.begin(result.data)

    def select_answer(self, answer: Optional[str]) -> Optional[Answered]:
        """Selecting an option submits it; later selections are ignored."""
        session = self._session
        if session is None:
            return None
        answered = session.submit(answer)
        if answered is not None:
            self._finish(session, answered)
        return answered

    def use_hint(self) -> bool:
        if self._session is None or not self._session.use_hint():
            return False
        self.notify(NotificationKind.STATE, snapshot=self._session.snapshot())
        return True

    def leave(self) -> None:
        """
        Navigate away from the quiz.

        The countdown stops immediately. In-flight dispatches still
        complete on the backend, but their responses are not applied.
        """
        self._discarded.update(self._pending)
        self._release()

    def _release(self) -> None:
        if self._countdown is not None:
            self._countdown.stop()
            self._countdown = None
        self._session = None

    async def drain(self) -> list[DispatchResult]:
        """Wait for in-flight dispatches."""
        if not self._pending:
            return []
        return list(await asyncio.gather(*self._pending.values()))

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _on_tick(self, session: QuizSession) -> None:
        if session is not self._session:
            logger.debug(f"Dropping tick for stale session {session.session_id}")
            return
        answered = session.tick()
        if answered is not None:
            self._finish(session, answered)
        else:
            self.notify(NotificationKind.STATE, snapshot=session.snapshot())

    def _on_expire(self, session: QuizSession) -> None:
        if session is not self._session:
            return
        answered = session.expire()
        if answered is not None:
            self._finish(session, answered)

    def _finish(self, session: QuizSession, answered: Answered) -> None:
        if self._countdown is not None:
            self._countdown.stop()
            self._countdown = None

        self._attempts.append(session.to_attempt(self.student_id))
        self.notify(NotificationKind.STATE, snapshot=session.snapshot())

        session_id = session.session_id
        task = asyncio.get_running_loop().create_task(self._dispatch(session, answered))
        self._pending[session_id] = task
        task.add_done_callback(lambda _task: self._settle(session_id))

    def _settle(self, session_id: str) -> None:
        self._pending.pop(session_id, None)
        self._discarded.discard(session_id)

    async def _dispatch(self, session: QuizSession, answered: Answered) -> DispatchResult:
        result = await self.dispatcher.submit(
            session.session_id,
            session.exercise.id,
            answered.selected_answer,
            answered.time_taken_seconds,
            session.hints_used,
        )
        if session.session_id in self._discarded:
            logger.debug(f"Discarding dispatch result for abandoned session {session.session_id}")
            return result
        if result.duplicate:
            return result
        if not result.accepted:
            self.notify(NotificationKind.WARNING, f"Your answer could not be saved: {result.message}")
            return result

        for achievement in result.newly_granted_achievements:
            self.notify(
                NotificationKind.ACHIEVEMENT,
                f"Achievement unlocked: {achievement.name or achievement.code}",
                achievement=achievement,
            )
        return result
