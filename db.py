import datetime
import sqlite3
import uuid
from contextlib import contextmanager
from typing import Callable, List, Optional, Tuple

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from algorithms import DurationEstimator
from config import YamlConfig
from models import (
    DailyNote,
    Exercise,
    MeasurementUnit,
    Mood,
    NoteList,
    SessionList,
    TemplateList,
    WorkoutDifficulty,
    WorkoutSession,
    WorkoutTemplate,
)
from settings_schema import SettingsSchema, default_settings, validate_settings
from template_catalog import default_templates


class Database:
    """Provides SQLite connection management and schema initialization."""

    _TABLE_DEFINITIONS = {
        "kv_store": (
            """CREATE TABLE kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );""",
            ["key", "value"],
        ),
    }

    def __init__(self, db_path: str = "zengym.db") -> None:
        self._db_path = db_path
        self._ensure_schema()

    @contextmanager
    def _connection(self):
        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                self._ensure_table(conn, table, sql, columns)

    def _ensure_table(
        self, conn: sqlite3.Connection, table: str, sql: str, columns: List[str]
    ) -> None:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if cur.fetchone() is None:
            conn.execute(sql)
            return

        cur = conn.execute(f"PRAGMA table_info({table});")
        existing_cols = [row[1] for row in cur.fetchall()]
        if existing_cols == columns:
            return

        logger.info(f"Rebuilding table {table} with columns {columns}")
        conn.execute(f"DROP TABLE IF EXISTS {table}_old;")
        conn.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        conn.execute(sql)
        common = [c for c in existing_cols if c in columns]
        if common:
            cols = ", ".join(common)
            conn.execute(f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {table}_old;")
        conn.execute(f"DROP TABLE {table}_old;")

    def vacuum(self) -> None:
        """Run SQLite VACUUM to reduce database size."""
        with self._connection() as conn:
            conn.execute("VACUUM;")


class BaseRepository(Database):
    """Base repository providing helper methods."""

    def execute(self, query: str, params: Tuple = ()) -> int:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.lastrowid

    def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.fetchall()

    def _delete_all(self, table: str) -> None:
        self.execute(f"DELETE FROM {table};")


class KeyValueStore(BaseRepository):
    """Whole-document key-value storage; every write replaces the value."""

    def get_text(self, key: str, default: str) -> str:
        rows = self.fetch_all("SELECT value FROM kv_store WHERE key = ?;", (key,))
        return rows[0][0] if rows else default

    def set_text(self, key: str, value: str) -> None:
        self.execute(
            "INSERT INTO kv_store (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
            (key, value),
        )

    def get_int(self, key: str, default: int) -> int:
        try:
            return int(float(self.get_text(key, str(default))))
        except ValueError:
            return default

    def get_float(self, key: str, default: float) -> float:
        try:
            return float(self.get_text(key, str(default)))
        except ValueError:
            return default

    def delete_key(self, key: str) -> None:
        self.execute("DELETE FROM kv_store WHERE key = ?;", (key,))

    def keys(self) -> List[str]:
        return [r[0] for r in self.fetch_all("SELECT key FROM kv_store ORDER BY key;")]

    def clear_all(self) -> None:
        """Remove every key in the store."""
        self._delete_all("kv_store")
        logger.info(f"Cleared all keys in {self._db_path}")

    def _load_collection(self, key: str, adapter: TypeAdapter) -> list:
        raw = self.get_text(key, "")
        if not raw:
            return []
        try:
            return adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Could not decode {key}, starting empty: {e}")
            return []

    def _save_collection(self, key: str, adapter: TypeAdapter, items: list) -> bool:
        try:
            self.set_text(key, adapter.dump_json(items).decode("utf-8"))
        except (sqlite3.Error, ValueError) as e:
            logger.error(f"Failed to save {key}: {e}")
            return False
        logger.debug(f"Saved {key}. Count: {len(items)}")
        return True


class WorkoutRepository(KeyValueStore):
    """Owns the template catalog and the history of workout sessions."""

    HISTORY_KEY = "WorkoutHistory"
    CUSTOM_TEMPLATES_KEY = "CustomWorkouts"

    def __init__(self, db_path: str = "zengym.db") -> None:
        super().__init__(db_path)
        self._listeners: list[Callable[[List[WorkoutSession]], None]] = []
        self.templates: List[WorkoutTemplate] = []
        self.history: List[WorkoutSession] = []
        self.load_templates()
        self.reload()

    def subscribe(self, listener: Callable[[List[WorkoutSession]], None]) -> None:
        """Call ``listener`` with the history after every change."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.fetch_history())

    # templates

    def load_templates(self) -> None:
        custom = self._load_collection(self.CUSTOM_TEMPLATES_KEY, TemplateList)
        self.templates = default_templates() + custom

    def fetch_templates(self) -> List[WorkoutTemplate]:
        return list(self.templates)

    def get_template(self, template_id: uuid.UUID) -> WorkoutTemplate:
        for template in self.templates:
            if template.id == template_id:
                return template
        raise ValueError("template not found")

    def search_templates(
        self,
        query: Optional[str] = None,
        difficulty: Optional[WorkoutDifficulty] = None,
    ) -> List[WorkoutTemplate]:
        results = self.fetch_templates()
        if difficulty is not None:
            results = [t for t in results if t.difficulty == difficulty]
        if query:
            needle = query.casefold()
            results = [
                t
                for t in results
                if needle in t.name.casefold()
                or needle in t.description.casefold()
                or any(needle in ex.name.casefold() for ex in t.exercises)
            ]
        return results

    def add_template(
        self,
        name: str,
        exercises: List[Exercise],
        description: str = "",
        difficulty: WorkoutDifficulty = WorkoutDifficulty.BEGINNER,
        estimated_duration: Optional[int] = None,
    ) -> WorkoutTemplate:
        if not name.strip():
            raise ValueError("name must not be empty")
        if not exercises:
            raise ValueError("template needs at least one exercise")
        template = WorkoutTemplate(
            name=name.strip(),
            description=description,
            exercises=[ex.fresh_copy() for ex in exercises],
            estimated_duration=(
                estimated_duration
                if estimated_duration is not None
                else DurationEstimator.estimate(exercises)
            ),
            difficulty=difficulty,
            is_custom=True,
        )
        self.templates.append(template)
        custom = [t for t in self.templates if t.is_custom]
        self._save_collection(self.CUSTOM_TEMPLATES_KEY, TemplateList, custom)
        return template

    # history

    def reload(self) -> None:
        self.history = self._load_collection(self.HISTORY_KEY, SessionList)
        logger.info(f"Workout history loaded. Count: {len(self.history)}")
        self._notify()

    def fetch_history(self) -> List[WorkoutSession]:
        return list(self.history)

    def get(self, session_id: uuid.UUID) -> Optional[WorkoutSession]:
        for session in self.history:
            if session.id == session_id:
                return session
        return None

    def append(self, session: WorkoutSession) -> None:
        self.history.append(session)
        self._save_collection(self.HISTORY_KEY, SessionList, self.history)
        logger.info(f"Added workout {session.name!r} to history. Count: {len(self.history)}")
        self._notify()

    def upsert(self, session: WorkoutSession) -> None:
        for idx, existing in enumerate(self.history):
            if existing.id == session.id:
                self.history[idx] = session
                break
        else:
            self.history.append(session)
        self._save_collection(self.HISTORY_KEY, SessionList, self.history)
        self._notify()

    def delete(self, session_id: uuid.UUID) -> bool:
        remaining = [s for s in self.history if s.id != session_id]
        if len(remaining) == len(self.history):
            logger.warning(f"No workout {session_id} in history")
            return False
        self.history = remaining
        self._save_collection(self.HISTORY_KEY, SessionList, self.history)
        self._notify()
        return True

    def reset_all(self) -> None:
        """Clear the history and custom templates, then reseed the catalog."""
        self.history = []
        self._save_collection(self.HISTORY_KEY, SessionList, self.history)
        self.delete_key(self.CUSTOM_TEMPLATES_KEY)
        self.templates = default_templates()
        self._notify()


class NoteRepository(KeyValueStore):
    """Owns one daily note per calendar day."""

    NOTES_KEY = "DailyNotes"

    def __init__(self, db_path: str = "zengym.db") -> None:
        super().__init__(db_path)
        self.notes: List[DailyNote] = self._load_collection(self.NOTES_KEY, NoteList)

    @staticmethod
    def _day(value: datetime.date) -> datetime.date:
        if isinstance(value, datetime.datetime):
            return value.date()
        return value

    def _save(self) -> bool:
        return self._save_collection(self.NOTES_KEY, NoteList, self.notes)

    def fetch_notes(self) -> List[DailyNote]:
        return list(self.notes)

    def get(self, day: datetime.date) -> Optional[DailyNote]:
        """Return the note for ``day`` without creating one."""
        day = self._day(day)
        for note in self.notes:
            if note.date == day:
                return note
        return None

    def get_or_create(self, day: datetime.date) -> DailyNote:
        existing = self.get(day)
        if existing is not None:
            return existing
        note = DailyNote(date=self._day(day))
        self.notes.append(note)
        self._save()
        return note

    def upsert(self, note: DailyNote) -> DailyNote:
        """Insert or replace ``note`` by identity, keeping one note per day."""
        kept = [n for n in self.notes if n.id == note.id or n.date != note.date]
        if len(kept) != len(self.notes):
            logger.info(f"Replacing note for {note.date} with a new identity")
        self.notes = kept
        for idx, existing in enumerate(self.notes):
            if existing.id == note.id:
                self.notes[idx] = note
                break
        else:
            self.notes.append(note)
        self._save()
        return note

    def delete(self, day: datetime.date) -> int:
        day = self._day(day)
        before = len(self.notes)
        self.notes = [n for n in self.notes if n.date != day]
        removed = before - len(self.notes)
        self._save()
        return removed

    def search(
        self, text: Optional[str] = None, mood: Optional[Mood] = None
    ) -> List[DailyNote]:
        notes = sorted(self.notes, key=lambda n: n.date, reverse=True)
        if text:
            notes = [n for n in notes if n.matches(text)]
        if mood is not None:
            notes = [n for n in notes if n.mood == mood]
        return notes

    def reset_all(self) -> None:
        self.notes = []
        self._save()


class SettingsRepository(KeyValueStore):
    """Scalar application settings synchronized with YAML."""

    def __init__(
        self, db_path: str = "zengym.db", yaml_path: str = "settings.yaml"
    ) -> None:
        super().__init__(db_path)
        self._yaml = YamlConfig(yaml_path)
        self._init_settings()
        self._sync_from_yaml()
        self._sync_to_yaml()

    def _init_settings(self) -> None:
        with self._connection() as conn:
            for key, value in default_settings().items():
                conn.execute(
                    "INSERT OR IGNORE INTO kv_store (key, value) VALUES (?, ?);",
                    (key, str(value)),
                )

    def _raw_all_settings(self) -> dict:
        names = tuple(SettingsSchema.model_fields)
        marks = ", ".join("?" for _ in names)
        rows = self.fetch_all(
            f"SELECT key, value FROM kv_store WHERE key IN ({marks}) ORDER BY key;",
            names,
        )
        raw = {**default_settings(), **dict(rows)}
        return SettingsSchema(**raw).model_dump(mode="json")

    def _sync_from_yaml(self) -> None:
        data = self._yaml.load()
        if not data:
            return
        validate_settings(data)
        with self._connection() as conn:
            for key, value in data.items():
                if key not in SettingsSchema.model_fields:
                    continue
                conn.execute(
                    "INSERT INTO kv_store (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
                    (key, str(value)),
                )

    def _sync_to_yaml(self) -> None:
        self._yaml.save(self._raw_all_settings())

    def get_text(self, key: str, default: str) -> str:
        self._sync_from_yaml()
        return super().get_text(key, default)

    def set_text(self, key: str, value: str) -> None:
        if key in SettingsSchema.model_fields:
            validate_settings({**self._raw_all_settings(), key: value})
        super().set_text(key, value)
        self._sync_to_yaml()

    def get_units(self) -> MeasurementUnit:
        try:
            return MeasurementUnit(self.get_text("units", MeasurementUnit.METRIC.value))
        except ValueError:
            return MeasurementUnit.METRIC

    def set_units(self, units: MeasurementUnit | str) -> None:
        self.set_text("units", MeasurementUnit(units).value)

    def all_settings(self) -> dict:
        self._sync_from_yaml()
        return self._raw_all_settings()

    def reset(self) -> None:
        """Restore every setting to its default value."""
        with self._connection() as conn:
            for key, value in default_settings().items():
                conn.execute(
                    "INSERT INTO kv_store (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value;",
                    (key, str(value)),
                )
        self._yaml.clear()
        self._sync_to_yaml()
