import datetime
import uuid
from contextlib import asynccontextmanager
from typing import Callable, List, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Header, HTTPException, Query
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from db import KeyValueStore, NoteRepository, SettingsRepository, WorkoutRepository
from gamification_service import GamificationService
from log_config import setup_logger
from models import DailyNote, Exercise, Mood, WorkoutDifficulty
from notes_service import NotesService
from reachability import LaunchGate, resolve_gate
from session_service import ActiveSessionController
from stats_service import StatisticsService


class ExerciseDraft(BaseModel):
    name: str
    sets: int = Field(ge=1)
    reps: int = Field(ge=0)
    rest_time: int = Field(default=60, ge=0)


class TemplateDraft(BaseModel):
    name: str
    description: str = ""
    difficulty: WorkoutDifficulty = WorkoutDifficulty.BEGINNER
    exercises: List[ExerciseDraft]
    estimated_duration: Optional[int] = None


class NoteUpdate(BaseModel):
    mood: Optional[Mood] = None
    sleep_hours: Optional[float] = None
    energy_level: Optional[int] = None
    nutrition: Optional[str] = None
    workout_notes: Optional[str] = None
    general_notes: Optional[str] = None
    water_intake: Optional[int] = None
    weight: Optional[float] = None
    body_fat: Optional[float] = None
    muscle_mass: Optional[float] = None


class ZenGymAPI:
    """Builds the services once and exposes them over REST."""

    def __init__(
        self,
        db_path: str = "zengym.db",
        yaml_path: str = "settings.yaml",
        *,
        start_timer: bool = False,
        clock: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        self.db_path = db_path
        self.settings = SettingsRepository(db_path, yaml_path)
        self.store = KeyValueStore(db_path)
        self.workouts = WorkoutRepository(db_path)
        self.notes = NoteRepository(db_path)
        self.statistics = StatisticsService(self.workouts, self.settings, clock=clock)
        self.notes_service = NotesService(self.notes, self.settings, clock=clock)
        self.gamification = GamificationService(self.statistics)
        self.session = ActiveSessionController(
            self.workouts, clock=clock, use_timer=start_timer
        )
        self.app = FastAPI(
            title="ZenGym API",
            description="REST API for workout sessions, daily notes and progress",
            dependencies=[Depends(self._check_api_key)],
            lifespan=self._lifespan,
        )
        self._setup_routes()

    @asynccontextmanager
    async def _lifespan(self, _app: FastAPI):
        yield
        self.session.close()
        logger.info("Session timer stopped")

    def _check_api_key(self, x_api_key: str | None = Header(default=None)) -> None:
        expected = self.settings.get_text("api_key", "")
        if expected and x_api_key != expected:
            raise HTTPException(status_code=401, detail="invalid api key")

    def reset_all_data(self) -> None:
        """Wipe every stored key and return all services to their defaults."""
        self.session.reset()
        self.store.clear_all()
        self.settings.reset()
        self.notes.reset_all()
        self.workouts.reset_all()
        logger.info("All data reset")

    def launch_gate(self) -> LaunchGate:
        url = self.settings.get_text("reachability_url", "")
        timeout = self.settings.get_float("reachability_timeout", 0.0)
        return resolve_gate(url, timeout or None)

    def _template_or_404(self, template_id: uuid.UUID):
        try:
            return self.workouts.get_template(template_id)
        except ValueError as e:
            raise HTTPException(status_code=404, detail=str(e))

    def _setup_routes(self) -> None:
        templates_router = APIRouter(prefix="/templates", tags=["Templates"])
        history_router = APIRouter(prefix="/history", tags=["History"])
        session_router = APIRouter(prefix="/session", tags=["Session"])
        stats_router = APIRouter(prefix="/stats", tags=["Statistics"])
        notes_router = APIRouter(prefix="/notes", tags=["Notes"])
        settings_router = APIRouter(prefix="/settings", tags=["Settings"])

        @self.app.get(
            "/health",
            summary="Health check",
            description="Verify API and database connectivity.",
        )
        def health():
            """Return API and database connection status."""
            try:
                # simple query to verify database connectivity
                self.store.keys()
                return {"status": "ok"}
            except Exception as e:  # pragma: no cover - connectivity failure
                raise HTTPException(status_code=500, detail=str(e))

        @self.app.get("/gate")
        def gate():
            return {"gate": self.launch_gate().value}

        @templates_router.get("")
        def list_templates(difficulty: Optional[WorkoutDifficulty] = None):
            templates = self.workouts.search_templates(difficulty=difficulty)
            return [t.model_dump(mode="json") for t in templates]

        @templates_router.get("/search")
        def search_templates(query: str, difficulty: Optional[WorkoutDifficulty] = None):
            templates = self.workouts.search_templates(query, difficulty)
            return [t.model_dump(mode="json") for t in templates]

        @templates_router.post("")
        def create_template(draft: TemplateDraft = Body(...)):
            try:
                template = self.workouts.add_template(
                    draft.name,
                    [Exercise(**ex.model_dump()) for ex in draft.exercises],
                    description=draft.description,
                    difficulty=draft.difficulty,
                    estimated_duration=draft.estimated_duration,
                )
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"id": str(template.id), "estimated_duration": template.estimated_duration}

        @templates_router.get("/{template_id}")
        def get_template(template_id: uuid.UUID):
            return self._template_or_404(template_id).model_dump(mode="json")

        @history_router.get("")
        def list_history(limit: Optional[int] = Query(None, ge=0)):
            sessions = self.statistics.recent_sessions(
                len(self.workouts.history) if limit is None else limit
            )
            return [s.model_dump(mode="json") for s in sessions]

        @history_router.get("/{session_id}")
        def get_history_entry(session_id: uuid.UUID):
            session = self.workouts.get(session_id)
            if session is None:
                raise HTTPException(status_code=404, detail="workout not found")
            return session.model_dump(mode="json")

        @history_router.delete("/{session_id}")
        def delete_history_entry(session_id: uuid.UUID):
            if not self.workouts.delete(session_id):
                raise HTTPException(status_code=404, detail="workout not found")
            return {"status": "deleted"}

        @session_router.post("/start")
        def start_session(template_id: uuid.UUID):
            self.session.start(self._template_or_404(template_id))
            return self.session.state()

        @session_router.get("")
        def session_state():
            return self.session.state()

        @session_router.post("/complete_set")
        def complete_set():
            self.session.complete_set()
            return self.session.state()

        @session_router.post("/next")
        def next_exercise():
            self.session.next_exercise()
            return self.session.state()

        @session_router.post("/previous")
        def previous_exercise():
            self.session.previous_exercise()
            return self.session.state()

        @session_router.post("/tick")
        def tick(seconds: int = 1):
            self.session.advance(seconds)
            return self.session.state()

        @session_router.post("/pause")
        def pause():
            self.session.pause()
            return self.session.state()

        @session_router.post("/resume")
        def resume():
            self.session.resume()
            return self.session.state()

        @session_router.put("/notes")
        def session_notes(text: str):
            self.session.set_notes(text)
            return self.session.state()

        @session_router.post("/finish")
        def finish():
            session = self.session.finish()
            if session is None:
                raise HTTPException(status_code=400, detail="workout cannot be finished yet")
            return session.model_dump(mode="json")

        @session_router.post("/exit")
        def exit_session(save: bool = False):
            session = self.session.exit(save=save)
            return {
                "status": "saved" if session is not None else "discarded",
                "state": self.session.state(),
            }

        @stats_router.get("")
        def stats_overview():
            return self.statistics.overview()

        @stats_router.get("/weekly")
        def stats_weekly():
            return self.statistics.weekly_stats.model_dump()

        @stats_router.get("/monthly")
        def stats_monthly():
            return self.statistics.monthly_stats.model_dump()

        @stats_router.get("/streak")
        def stats_streak():
            return {
                "current": self.statistics.current_streak,
                "longest": self.statistics.longest_streak,
            }

        @stats_router.get("/daily_minutes")
        def stats_daily_minutes(days: int = 7):
            return self.statistics.daily_minutes(days)

        @stats_router.get("/weekly_frequency")
        def stats_weekly_frequency(weeks: int = 7):
            return self.statistics.weekly_frequency(weeks)

        @self.app.get("/achievements")
        def achievements():
            return self.gamification.achievements()

        @notes_router.get("")
        def list_notes(query: Optional[str] = None, mood: Optional[Mood] = None):
            return [n.model_dump(mode="json") for n in self.notes.search(query, mood)]

        @notes_router.get("/summary")
        def notes_summary():
            return self.notes_service.summary()

        @notes_router.get("/{day}")
        def get_note(day: datetime.date):
            note = self.notes.get_or_create(day)
            data = note.model_dump(mode="json")
            data["display_weight"] = self.notes_service.display_weight(note)
            return data

        @notes_router.put("/{day}")
        def update_note(day: datetime.date, changes: NoteUpdate = Body(...)):
            note = self.notes.get_or_create(day)
            try:
                updated = DailyNote.model_validate(
                    {**note.model_dump(), **changes.model_dump(exclude_unset=True)}
                )
            except ValidationError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return self.notes.upsert(updated).model_dump(mode="json")

        @notes_router.delete("/{day}")
        def delete_note(day: datetime.date):
            return {"deleted": self.notes.delete(day)}

        @settings_router.get("")
        def get_settings():
            data = self.settings.all_settings()
            data.pop("api_key", None)
            return data

        @settings_router.put("/units")
        def set_units(units: str):
            try:
                self.settings.set_units(units)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"units": self.settings.get_units().value}

        @self.app.post("/reset")
        def reset():
            self.reset_all_data()
            return {"status": "reset"}

        self.app.include_router(templates_router)
        self.app.include_router(history_router)
        self.app.include_router(session_router)
        self.app.include_router(stats_router)
        self.app.include_router(notes_router)
        self.app.include_router(settings_router)


def create_app(
    db_path: str = "zengym.db",
    yaml_path: str = "settings.yaml",
    start_timer: bool = True,
) -> FastAPI:
    api = ZenGymAPI(db_path=db_path, yaml_path=yaml_path, start_timer=start_timer)
    setup_logger(level=api.settings.get_text("log_level", "INFO"))
    return api.app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app())
