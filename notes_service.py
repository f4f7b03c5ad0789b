from __future__ import annotations
import datetime
from typing import Callable, List

from algorithms import WeightConverter
from db import NoteRepository, SettingsRepository
from models import DailyNote, MeasurementUnit


class NotesService:
    """Weekly wellness summaries over the daily notes."""

    WINDOW_DAYS = 7

    def __init__(
        self,
        note_repo: NoteRepository,
        settings_repo: SettingsRepository | None = None,
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        self.notes = note_repo
        self.settings = settings_repo
        self._clock = clock or datetime.datetime.now

    def _today(self) -> datetime.date:
        return self._clock().date()

    def recent_notes(self) -> List[DailyNote]:
        """Notes dated within the last seven days, today included."""
        cutoff = self._today() - datetime.timedelta(days=self.WINDOW_DAYS - 1)
        return [n for n in self.notes.fetch_notes() if n.date >= cutoff]

    def weekly_mood_average(self) -> float:
        recent = self.recent_notes()
        if not recent:
            return 0.0
        return sum(n.mood.score for n in recent) / len(recent)

    def weekly_sleep_average(self) -> float:
        recent = [n for n in self.recent_notes() if n.sleep_hours > 0]
        if not recent:
            return 0.0
        return sum(n.sleep_hours for n in recent) / len(recent)

    def weekly_water_average(self) -> float:
        recent = self.recent_notes()
        if not recent:
            return 0.0
        return sum(n.water_intake for n in recent) / len(recent)

    def current_streak(self) -> int:
        """Consecutive journaled days back from today.

        A day counts when its note has general or workout notes. This is
        separate from the workout streak and never creates notes.
        """
        streak = 0
        day = self._today()
        while True:
            note = self.notes.get(day)
            if note is None or not note.has_journal:
                return streak
            streak += 1
            day -= datetime.timedelta(days=1)

    def units(self) -> MeasurementUnit:
        if self.settings is None:
            return MeasurementUnit.METRIC
        return self.settings.get_units()

    def display_weight(self, note: DailyNote) -> float | None:
        return WeightConverter.for_unit(note.weight, self.units().value)

    def summary(self) -> dict:
        units = self.units().value
        return {
            "mood_average": round(self.weekly_mood_average(), 2),
            "sleep_average": round(self.weekly_sleep_average(), 2),
            "water_average": round(self.weekly_water_average(), 2),
            "streak": self.current_streak(),
            "units": units,
            "weight_label": WeightConverter.label(units),
        }
