from __future__ import annotations
import datetime
import threading
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from db import WorkoutRepository
from models import Exercise, WorkoutSession, WorkoutTemplate


class SessionPhase(str, Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    RESTING = "resting"
    COMPLETED = "completed"
    EXITED = "exited"


class SessionTimer(threading.Thread):
    """Background thread ticking a controller once per interval."""

    def __init__(self, controller: "ActiveSessionController", interval: float = 1.0) -> None:
        super().__init__(daemon=True)
        self.controller = controller
        self.interval = interval
        self._stopped = threading.Event()

    def run(self) -> None:
        while not self._stopped.wait(self.interval):
            self.controller.tick()

    def stop(self) -> None:
        self._stopped.set()


class ActiveSessionController:
    """Track progress through a running workout session.

    The controller moves between ``active`` and ``resting`` phases while sets
    are completed and ends in ``completed`` (session appended to history)
    or ``exited`` (session discarded unless saved explicitly). Calls that
    make no sense in the current phase are logged and ignored.
    """

    def __init__(
        self,
        workout_repo: WorkoutRepository,
        clock: Callable[[], datetime.datetime] | None = None,
        use_timer: bool = False,
        timer_interval: float = 1.0,
    ) -> None:
        self.workouts = workout_repo
        self._clock = clock or datetime.datetime.now
        self.use_timer = use_timer
        self.timer_interval = timer_interval
        self._lock = threading.RLock()
        self._timer: SessionTimer | None = None
        self.last_session: WorkoutSession | None = None
        self._clear()

    def _clear(self) -> None:
        self.session: WorkoutSession | None = None
        self.phase = SessionPhase.NOT_STARTED
        self.exercise_index = 0
        self.current_set = 1
        self.time_remaining = 0
        self.elapsed_seconds = 0
        self.paused = False

    # timer

    def _start_timer(self) -> None:
        if not self.use_timer or self._timer is not None:
            return
        self._timer = SessionTimer(self, self.timer_interval)
        self._timer.start()

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer = None

    def close(self) -> None:
        """Stop the timer; call on teardown."""
        with self._lock:
            self._stop_timer()

    # derived state

    @property
    def is_active(self) -> bool:
        return self.phase in (SessionPhase.ACTIVE, SessionPhase.RESTING)

    @property
    def is_resting(self) -> bool:
        return self.phase is SessionPhase.RESTING

    @property
    def exercise_count(self) -> int:
        return len(self.session.exercises) if self.session is not None else 0

    @property
    def current_exercise(self) -> Optional[Exercise]:
        if self.session is None or self.exercise_index >= self.exercise_count:
            return None
        return self.session.exercises[self.exercise_index]

    @property
    def can_finish(self) -> bool:
        exercise = self.current_exercise
        if not self.is_active or exercise is None:
            return False
        return (
            self.exercise_index >= self.exercise_count - 1
            and self.current_set >= exercise.sets
        )

    @property
    def main_action_title(self) -> str:
        exercise = self.current_exercise
        if exercise is None:
            return "Complete"
        if self.current_set < exercise.sets:
            return "Complete Set"
        if self.exercise_index < self.exercise_count - 1:
            return "Next Exercise"
        return "Finish Workout"

    @property
    def progress(self) -> float:
        if not self.exercise_count:
            return 0.0
        done = self.exercise_index + (1 if self.current_set > 1 else 0)
        return min(1.0, done / self.exercise_count)

    def state(self) -> dict:
        exercise = self.current_exercise
        return {
            "phase": self.phase.value,
            "session_id": str(self.session.id) if self.session else None,
            "name": self.session.name if self.session else None,
            "exercise_index": self.exercise_index,
            "exercise_count": self.exercise_count,
            "exercise": exercise.name if exercise else None,
            "current_set": self.current_set,
            "target_sets": exercise.sets if exercise else 0,
            "time_remaining": self.time_remaining,
            "elapsed_seconds": self.elapsed_seconds,
            "paused": self.paused,
            "can_finish": self.can_finish,
            "main_action_title": self.main_action_title,
            "progress": round(self.progress, 3),
        }

    # transitions

    def start(self, template: WorkoutTemplate) -> WorkoutSession:
        with self._lock:
            if self.is_active:
                logger.warning(f"Discarding unfinished workout {self.session.name!r}")
            self._stop_timer()
            self._clear()
            self.session = WorkoutSession.from_template(template, self._clock())
            self.phase = SessionPhase.ACTIVE
            self._start_timer()
            logger.info(f"Started workout {template.name!r}")
            return self.session

    def _move_to(self, index: int) -> None:
        self.exercise_index = index
        self.current_set = 1
        self.time_remaining = 0
        self.phase = SessionPhase.ACTIVE

    def _begin_rest(self, seconds: int) -> None:
        if seconds <= 0:
            self.phase = SessionPhase.ACTIVE
            return
        self.phase = SessionPhase.RESTING
        self.time_remaining = seconds

    def _end_rest(self) -> None:
        self.phase = SessionPhase.ACTIVE
        self.time_remaining = 0

    def complete_set(self) -> SessionPhase:
        with self._lock:
            exercise = self.current_exercise
            if not self.is_active or exercise is None:
                logger.warning("complete_set ignored: no active exercise")
                return self.phase
            if self.can_finish:
                self._finish()
            elif self.is_resting:
                self._end_rest()
            elif self.current_set < exercise.sets:
                exercise.completed_sets = self.current_set
                self.current_set += 1
                self._begin_rest(exercise.rest_time)
            else:
                exercise.completed_sets = exercise.sets
                exercise.is_completed = True
                self._move_to(self.exercise_index + 1)
            return self.phase

    def next_exercise(self) -> bool:
        with self._lock:
            if not self.is_active or self.exercise_index >= self.exercise_count - 1:
                logger.warning("next_exercise ignored: already at the last exercise")
                return False
            self._move_to(self.exercise_index + 1)
            return True

    def previous_exercise(self) -> bool:
        with self._lock:
            if not self.is_active or self.exercise_index <= 0:
                logger.warning("previous_exercise ignored: already at the first exercise")
                return False
            self._move_to(self.exercise_index - 1)
            return True

    def tick(self) -> None:
        """Advance the session by one second."""
        with self._lock:
            if not self.is_active or self.paused:
                return
            self.elapsed_seconds += 1
            if self.is_resting:
                self.time_remaining = max(0, self.time_remaining - 1)
                if self.time_remaining == 0:
                    self._end_rest()

    def advance(self, seconds: int) -> None:
        for _ in range(seconds):
            self.tick()

    def pause(self) -> None:
        with self._lock:
            if self.is_active:
                self.paused = True

    def resume(self) -> None:
        with self._lock:
            self.paused = False

    def set_notes(self, text: str) -> None:
        with self._lock:
            if self.session is None:
                logger.warning("set_notes ignored: no current workout")
                return
            self.session.notes = text

    def _finish(self) -> WorkoutSession:
        session = self.session
        exercise = self.current_exercise
        if exercise is not None:
            exercise.completed_sets = exercise.sets
            exercise.is_completed = True
        self._stop_timer()
        session.end_time = self._clock()
        session.is_completed = True
        self.workouts.append(session)
        self.phase = SessionPhase.COMPLETED
        self.session = None
        self.last_session = session
        logger.info(f"Completed workout {session.name!r} in {session.duration_at(session.end_time)} min")
        return session

    def finish(self) -> Optional[WorkoutSession]:
        with self._lock:
            if not self.can_finish:
                logger.warning("finish ignored: workout cannot be finished yet")
                return None
            return self._finish()

    def exit(self, save: bool = False) -> Optional[WorkoutSession]:
        """Abandon the running session, appending it to history when ``save``."""
        with self._lock:
            if not self.is_active:
                logger.warning("exit ignored: no current workout")
                return None
            self._stop_timer()
            session = self.session
            self.phase = SessionPhase.EXITED
            self.session = None
            if not save:
                logger.info(f"Discarded workout {session.name!r}")
                return None
            session.end_time = self._clock()
            session.is_completed = False
            self.workouts.append(session)
            self.last_session = session
            return session

    def reset(self) -> None:
        with self._lock:
            self._stop_timer()
            self._clear()
            self.last_session = None
