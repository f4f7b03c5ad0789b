from __future__ import annotations
import datetime
from typing import Callable, Dict, Iterable, List, Optional

from loguru import logger

from algorithms import CalendarTools
from db import SettingsRepository, WorkoutRepository
from models import MonthlyStats, PeriodStats, WeeklyStats, WorkoutSession


class StatisticsService:
    """Compute progress statistics over the workout history.

    Results are cached and recomputed whenever the repository reports a
    history change.
    """

    def __init__(
        self,
        workout_repo: WorkoutRepository,
        settings_repo: SettingsRepository | None = None,
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        self.workouts = workout_repo
        self.settings = settings_repo
        self._clock = clock or datetime.datetime.now
        self._cache: dict[str, object] = {}
        self._cache_day: datetime.date | None = None
        self.workouts.subscribe(self._on_history_changed)
        self.refresh()

    def _on_history_changed(self, history: List[WorkoutSession]) -> None:
        self.refresh(history)

    def clear_cache(self) -> None:
        """Clear any cached statistics."""
        self._cache.clear()
        self._cache_day = None

    def _first_weekday(self) -> int:
        if self.settings is None:
            return 0
        return self.settings.get_int("first_weekday", 0)

    @staticmethod
    def completed(history: Iterable[WorkoutSession]) -> List[WorkoutSession]:
        return [s for s in history if s.is_completed]

    @staticmethod
    def total_time(
        history: Iterable[WorkoutSession], now: datetime.datetime
    ) -> int:
        """Sum actual minutes over completed sessions."""
        return sum(s.duration_at(now) for s in history if s.is_completed)

    @staticmethod
    def period_stats(
        history: Iterable[WorkoutSession],
        start: datetime.datetime,
        end: datetime.datetime,
        now: datetime.datetime,
        stats_cls: type[PeriodStats] = PeriodStats,
    ) -> PeriodStats:
        durations = [
            s.duration_at(now)
            for s in history
            if s.is_completed and start <= s.start_time < end
        ]
        return stats_cls.from_durations(durations)

    @staticmethod
    def workout_days(history: Iterable[WorkoutSession]) -> set[datetime.date]:
        return {s.start_time.date() for s in history if s.is_completed}

    @classmethod
    def current_streak_for(
        cls, history: Iterable[WorkoutSession], today: datetime.date
    ) -> int:
        """Consecutive workout days ending today; 0 when today has none."""
        return CalendarTools.trailing_run(cls.workout_days(history), today)

    @classmethod
    def longest_streak_for(cls, history: Iterable[WorkoutSession]) -> int:
        return CalendarTools.longest_run(cls.workout_days(history))

    def refresh(self, history: Optional[List[WorkoutSession]] = None) -> dict:
        """Recompute every aggregate and replace the cache.

        The snapshot belongs to the calendar day it was computed on and is
        recomputed on first access after the clock moves to another day.
        """
        if history is None:
            history = self.workouts.fetch_history()
        now = self._clock()
        week_start, week_end = CalendarTools.week_bounds(now.date(), self._first_weekday())
        month_start, month_end = CalendarTools.month_bounds(now.date())
        self._cache = {
            "total_workouts": len(self.completed(history)),
            "total_time": self.total_time(history, now),
            "current_streak": self.current_streak_for(history, now.date()),
            "longest_streak": self.longest_streak_for(history),
            "weekly": self.period_stats(history, week_start, week_end, now, WeeklyStats),
            "monthly": self.period_stats(history, month_start, month_end, now, MonthlyStats),
        }
        self._cache_day = now.date()
        logger.debug(
            f"Stats refreshed: {self._cache['total_workouts']} workouts, "
            f"streak {self._cache['current_streak']}"
        )
        return dict(self._cache)

    def _cached(self, name: str):
        if not self._cache or self._cache_day != self._clock().date():
            self.refresh()
        return self._cache[name]

    @property
    def total_workouts(self) -> int:
        return self._cached("total_workouts")

    @property
    def total_workout_time(self) -> int:
        return self._cached("total_time")

    @property
    def current_streak(self) -> int:
        return self._cached("current_streak")

    @property
    def longest_streak(self) -> int:
        return self._cached("longest_streak")

    @property
    def weekly_stats(self) -> WeeklyStats:
        return self._cached("weekly")

    @property
    def monthly_stats(self) -> MonthlyStats:
        return self._cached("monthly")

    def overview(self) -> Dict[str, object]:
        total = self.total_workouts
        minutes = self.total_workout_time
        return {
            "total_workouts": total,
            "total_time": minutes,
            "average_time": minutes / total if total else 0.0,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "weekly": self.weekly_stats.model_dump(),
            "monthly": self.monthly_stats.model_dump(),
        }

    def daily_minutes(self, days: int = 7) -> List[Dict[str, object]]:
        """Return completed minutes per day for the last ``days`` days, oldest first."""
        now = self._clock()
        history = self.workouts.fetch_history()
        result: List[Dict[str, object]] = []
        for offset in range(days - 1, -1, -1):
            day = now.date() - datetime.timedelta(days=offset)
            start, end = CalendarTools.day_bounds(day)
            stats = self.period_stats(history, start, end, now)
            result.append({"date": day.isoformat(), "minutes": stats.total_time})
        return result

    def weekly_frequency(self, weeks: int = 7) -> List[Dict[str, object]]:
        """Return completed session counts per calendar week, oldest first."""
        now = self._clock()
        history = self.workouts.fetch_history()
        current_start, _ = CalendarTools.week_bounds(now.date(), self._first_weekday())
        result: List[Dict[str, object]] = []
        for offset in range(weeks - 1, -1, -1):
            start = current_start - datetime.timedelta(weeks=offset)
            stats = self.period_stats(history, start, start + datetime.timedelta(days=7), now)
            result.append(
                {"week_start": start.date().isoformat(), "workouts": stats.workouts_completed}
            )
        return result

    def recent_sessions(self, limit: int = 5) -> List[WorkoutSession]:
        history = sorted(
            self.workouts.fetch_history(), key=lambda s: s.start_time, reverse=True
        )
        return history[:limit]
