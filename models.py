from __future__ import annotations
import datetime
import uuid
from enum import Enum
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field, TypeAdapter


class WorkoutDifficulty(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class Mood(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    NEUTRAL = "Neutral"
    BAD = "Bad"
    TERRIBLE = "Terrible"

    @property
    def score(self) -> int:
        """Return the mood on a 1 (terrible) to 5 (excellent) scale."""
        return _MOOD_SCORES[self]


_MOOD_SCORES = {
    Mood.EXCELLENT: 5,
    Mood.GOOD: 4,
    Mood.NEUTRAL: 3,
    Mood.BAD: 2,
    Mood.TERRIBLE: 1,
}


class MeasurementUnit(str, Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"


class Exercise(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str
    sets: int = Field(ge=1)
    reps: int = Field(ge=0)
    rest_time: int = Field(default=60, ge=0)
    completed_sets: int = 0
    is_completed: bool = False

    def fresh_copy(self) -> "Exercise":
        """Return a copy with a new identity and no recorded progress."""
        return self.model_copy(
            update={"id": uuid.uuid4(), "completed_sets": 0, "is_completed": False}
        )


class WorkoutTemplate(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str
    description: str = ""
    exercises: List[Exercise] = Field(default_factory=list)
    estimated_duration: int = 0
    difficulty: WorkoutDifficulty = WorkoutDifficulty.BEGINNER
    is_custom: bool = False


class WorkoutSession(BaseModel):
    """One performed instance of a template with live progress."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str
    template_id: Optional[uuid.UUID] = None
    exercises: List[Exercise] = Field(default_factory=list)
    start_time: datetime.datetime
    estimated_duration: int = 0
    end_time: Optional[datetime.datetime] = None
    is_completed: bool = False
    notes: str = ""

    @classmethod
    def from_template(
        cls, template: WorkoutTemplate, start_time: datetime.datetime
    ) -> "WorkoutSession":
        return cls(
            name=template.name,
            template_id=template.id,
            exercises=[ex.fresh_copy() for ex in template.exercises],
            start_time=start_time,
            estimated_duration=template.estimated_duration,
        )

    def duration_at(self, now: datetime.datetime) -> int:
        """Return whole minutes between start and end (or ``now``), at least 1."""
        end = self.end_time or now
        seconds = (end - self.start_time).total_seconds()
        return max(1, int(seconds / 60))

    @property
    def actual_duration(self) -> int:
        return self.duration_at(datetime.datetime.now())


class DailyNote(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    date: datetime.date
    mood: Mood = Mood.NEUTRAL
    sleep_hours: float = Field(default=8.0, ge=0, le=24)
    energy_level: int = Field(default=5, ge=1, le=10)
    nutrition: str = ""
    workout_notes: str = ""
    general_notes: str = ""
    water_intake: int = Field(default=8, ge=0)
    weight: Optional[float] = None
    body_fat: Optional[float] = None
    muscle_mass: Optional[float] = None

    @property
    def has_journal(self) -> bool:
        """Whether the general or workout notes contain any text."""
        return bool(self.general_notes or self.workout_notes)

    def matches(self, text: str) -> bool:
        needle = text.casefold()
        return any(
            needle in field.casefold()
            for field in (
                self.nutrition,
                self.workout_notes,
                self.general_notes,
                self.mood.value,
            )
        )


class PeriodStats(BaseModel):
    workouts_completed: int = 0
    total_time: int = 0
    average_time: float = 0.0

    @classmethod
    def from_durations(cls, durations: Iterable[int]):
        minutes = list(durations)
        total = sum(minutes)
        count = len(minutes)
        return cls(
            workouts_completed=count,
            total_time=total,
            average_time=total / count if count > 0 else 0.0,
        )


class WeeklyStats(PeriodStats):
    pass


class MonthlyStats(PeriodStats):
    pass


SessionList = TypeAdapter(List[WorkoutSession])
NoteList = TypeAdapter(List[DailyNote])
TemplateList = TypeAdapter(List[WorkoutTemplate])
