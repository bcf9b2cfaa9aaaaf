"""
QuizSession - Lifecycle of a single question.

States:
- Idle: exercise loaded, not started (or unusable)
- Active: accepting an answer; timed exercises count down once per tick
- Answered: terminal, scoring fixed

A submission and a countdown expiry both request Active -> Answered.
Each request checks the current state first, so whichever arrives first
wins and the other is a no-op.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, ClassVar, Optional, Union
from uuid import uuid4

from pydantic import BaseModel

from spacemission.schemas import AttemptRecord, Exercise

from .scoring import evaluate, normalize_answer


logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    ANSWERED = "answered"


class AnswerCause(str, Enum):
    SUBMITTED = "submitted"
    TIMED_OUT = "timed_out"


# -----------------------------------------------------------------------------
# State variants
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Idle:
    status: ClassVar[SessionStatus] = SessionStatus.IDLE


@dataclass(frozen=True)
class Active:
    status: ClassVar[SessionStatus] = SessionStatus.ACTIVE
    remaining_seconds: Optional[int]  # None for untimed exercises


@dataclass(frozen=True)
class Answered:
    status: ClassVar[SessionStatus] = SessionStatus.ANSWERED
    cause: AnswerCause
    selected_answer: Optional[str]
    is_correct: bool
    score: int
    remaining_seconds: Optional[int]
    time_taken_seconds: int

    @property
    def timed_out(self) -> bool:
        return self.cause == AnswerCause.TIMED_OUT


SessionState = Union[Idle, Active, Answered]


class SessionSnapshot(BaseModel):
    """Read-only view of a session for rendering."""
    session_id: str
    exercise_id: int
    status: SessionStatus
    selected_answer: Optional[str] = None
    remaining_seconds: Optional[int] = None
    awarded_score: int = 0
    is_correct: bool = False
    timed_out: bool = False
    hints_used: int = 0
    explanation: Optional[str] = None  # only once answered, never after a timeout


# -----------------------------------------------------------------------------
# Session
# -----------------------------------------------------------------------------

class QuizSession:
    """
    State machine for answering one exercise.

    A session is never reused: the next exercise gets a new session with
    a new session_id.
    """

    def __init__(self, exercise: Exercise, clock: Callable[[], float] = time.monotonic):
        """
        Create an idle session.

        Args:
            exercise: Exercise to answer
            clock: Monotonic clock, used to time untimed exercises
        """
        self.session_id = uuid4().hex
        self.exercise = exercise
        self._state: SessionState = Idle()
        self._clock = clock
        self._started_at: Optional[float] = None
        self._hints_used = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def hints_used(self) -> int:
        return self._hints_used

    @property
    def remaining_seconds(self) -> Optional[int]:
        if isinstance(self._state, (Active, Answered)):
            return self._state.remaining_seconds
        return None

    @property
    def selected_answer(self) -> Optional[str]:
        return self._state.selected_answer if isinstance(self._state, Answered) else None

    @property
    def awarded_score(self) -> int:
        return self._state.score if isinstance(self._state, Answered) else 0

    @property
    def is_correct(self) -> bool:
        return isinstance(self._state, Answered) and self._state.is_correct

    @property
    def timed_out(self) -> bool:
        return isinstance(self._state, Answered) and self._state.timed_out

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def start(self) -> list[str]:
        """
        Move idle -> active.

        Returns:
            Problems that make the exercise unusable; when non-empty the
            session stays idle.

        Raises:
            RuntimeError: If the session was already started
        """
        if not isinstance(self._state, Idle):
            raise RuntimeError(f"Session {self.session_id} already started")

        problems = self.exercise.problems()
        if problems:
            return problems

        remaining = self.exercise.time_limit_seconds if self.exercise.is_timed else None
        self._state = Active(remaining_seconds=remaining)
        self._started_at = self._clock()
        return []

    def submit(self, answer: Optional[str]) -> Optional[Answered]:
        """
        Submit the student's choice.

        Selecting an option submits immediately. Only the first submission
        of an active session counts; later calls return None. An empty
        answer is not a submission.

        Returns:
            The Answered state if this call ended the question, else None
        """
        if not isinstance(self._state, Active):
            return None
        chosen = normalize_answer(self.exercise.type, answer, self.exercise.options)
        if chosen is None:
            return None

        remaining = self._state.remaining_seconds
        result = evaluate(self.exercise, chosen, remaining)
        self._state = Answered(
            cause=AnswerCause.SUBMITTED,
            selected_answer=chosen,
            is_correct=result.is_correct,
            score=result.score,
            remaining_seconds=remaining,
            time_taken_seconds=self._time_taken(remaining),
        )
        return self._state

    def tick(self) -> Optional[Answered]:
        """
        Count down one second.

        Reaching zero times the question out. Ticks on an untimed or
        non-active session are ignored.
        """
        if not isinstance(self._state, Active) or self._state.remaining_seconds is None:
            return None
        remaining = max(0, self._state.remaining_seconds - 1)
        self._state = Active(remaining_seconds=remaining)
        if remaining == 0:
            return self.expire()
        return None

    def expire(self) -> Optional[Answered]:
        """
        Time the question out.

        The answer is discarded and the evaluator is not consulted. Untimed
        exercises never time out.
        """
        if not isinstance(self._state, Active) or self._state.remaining_seconds is None:
            return None
        self._state = Answered(
            cause=AnswerCause.TIMED_OUT,
            selected_answer=None,
            is_correct=False,
            score=0,
            remaining_seconds=0,
            time_taken_seconds=self.exercise.time_limit_seconds,
        )
        return self._state

    def use_hint(self) -> bool:
        """Count a hint; only while active."""
        if not isinstance(self._state, Active):
            return False
        self._hints_used += 1
        return True

    def _time_taken(self, remaining: Optional[int]) -> int:
        if remaining is not None:
            return self.exercise.time_limit_seconds - remaining
        if self._started_at is None:
            return 0
        return max(0, int(self._clock() - self._started_at))

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def snapshot(self) -> SessionSnapshot:
        state = self._state
        explanation = None
        if isinstance(state, Answered) and not state.timed_out:
            explanation = self.exercise.explanation
        return SessionSnapshot(
            session_id=self.session_id,
            exercise_id=self.exercise.id,
            status=self.status,
            selected_answer=self.selected_answer,
            remaining_seconds=self.remaining_seconds,
            awarded_score=self.awarded_score,
            is_correct=self.is_correct,
            timed_out=self.timed_out,
            hints_used=self._hints_used,
            explanation=explanation,
        )

    def to_attempt(self, student_id: Optional[int] = None) -> AttemptRecord:
        """
        Build the attempt record for an answered session.

        Raises:
            RuntimeError: If the question is not answered yet
        """
        state = self._state
        if not isinstance(state, Answered):
            raise RuntimeError(f"Session {self.session_id} is not answered")
        return AttemptRecord(
            student_id=student_id,
            exercise_id=self.exercise.id,
            chosen_answer=state.selected_answer,
            is_correct=state.is_correct,
            score_awarded=state.score,
            time_taken_seconds=state.time_taken_seconds,
            hints_used=self._hints_used,
        )


# -----------------------------------------------------------------------------
# Countdown
# -----------------------------------------------------------------------------

class Countdown:
    """
    Per-session countdown running on the asyncio loop.

    Calls on_tick(remaining) once per interval and on_expire() when it
    reaches zero. stop() makes any pending tick a no-op, including a tick
    already scheduled on the loop.
    A failing callback is logged and the countdown keeps running.
    """

    def __init__(
        self,
        interval: float = 1.0,
        on_tick: Optional[Callable[[int], None]] = None,
        on_expire: Optional[Callable[[], None]] = None,
    ):
        self.interval = interval
        self.on_tick = on_tick
        self.on_expire = on_expire
        self._remaining = 0
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, seconds: int) -> None:
        """Start (or restart) from seconds; must be called with a running loop."""
        self.stop()
        if seconds <= 0:
            return
        self._remaining = seconds
        self._task = asyncio.get_running_loop().create_task(self._run(self._generation))

    def stop(self) -> None:
        self._generation += 1
        if self._task is not None and not self._task.done():
            # A countdown stopped from its own callback must not cancel itself
            if self._task is not asyncio.current_task():
                self._task.cancel()
        self._task = None

    async def _run(self, generation: int) -> None:
        while self._remaining > 0:
            await asyncio.sleep(self.interval)
            if generation != self._generation:
                return
            self._remaining -= 1
            if self.on_tick is not None:
                try:
                    self.on_tick(self._remaining)
                except Exception as e:
                    logger.error(f"Countdown tick callback failed at {self._remaining}s: {e}")
            if generation != self._generation:
                return
        if self.on_expire is not None:
            try:
                self.on_expire()
            except Exception as e:
                logger.error(f"Countdown expire callback failed: {e}")
