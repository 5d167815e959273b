"""SQLite repositories for food entries and goal settings."""

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from trackcal.domain.entries import FoodEntry
from trackcal.services.entries import EntryRepository
from trackcal.services.goals import GoalSettingsRepository

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS food_entries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        calories INTEGER NOT NULL,
        protein INTEGER NOT NULL,
        timestamp INTEGER NOT NULL,
        seq INTEGER NOT NULL
    );
    """,
    """
    CREATE INDEX IF NOT EXISTS food_entries_order
        ON food_entries (timestamp DESC, seq ASC);
    """,
    """
    CREATE TABLE IF NOT EXISTS goal_settings (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    );
    """,
)


def init_db(db_path: Path | str) -> None:
    """Create the tables if they do not exist yet."""
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    try:
        for statement in _SCHEMA:
            conn.execute(statement)
        conn.commit()
    finally:
        conn.close()


@dataclass
class SqliteDatabase:
    """Connection factory for a single SQLite file."""

    path: Path

    @classmethod
    def open(cls, db_path: Path | str) -> "SqliteDatabase":
        """Initialize the schema and return a database handle."""
        init_db(db_path)
        return cls(path=Path(db_path))

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection that commits on success and rolls back on error."""
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


@dataclass
class SqliteEntryRepository(EntryRepository):
    """SQLite implementation for food entries."""

    database: SqliteDatabase

    def upsert_entry(self, entry: FoodEntry) -> FoodEntry:
        """Insert or replace an entry, keeping its original insertion order."""
        with self.database.connect() as conn:
            if entry.needs_id:
                cursor = conn.execute(
                    """
                    INSERT INTO food_entries (name, calories, protein, timestamp, seq)
                    VALUES (?, ?, ?, ?,
                        (SELECT COALESCE(MAX(seq), 0) + 1 FROM food_entries))
                    """,
                    (entry.name, entry.calories, entry.protein, entry.timestamp),
                )
                return entry.with_id(int(cursor.lastrowid))
            conn.execute(
                """
                INSERT INTO food_entries (id, name, calories, protein, timestamp, seq)
                VALUES (?, ?, ?, ?, ?,
                    (SELECT COALESCE(MAX(seq), 0) + 1 FROM food_entries))
                ON CONFLICT (id) DO UPDATE SET
                    name = excluded.name,
                    calories = excluded.calories,
                    protein = excluded.protein,
                    timestamp = excluded.timestamp
                """,
                (entry.id, entry.name, entry.calories, entry.protein, entry.timestamp),
            )
            return entry

    def delete_entry(self, entry_id: int) -> None:
        """Delete an entry by id."""
        with self.database.connect() as conn:
            conn.execute("DELETE FROM food_entries WHERE id = ?", (entry_id,))

    def list_entries(self) -> list[FoodEntry]:
        """Return all entries, newest first."""
        with self.database.connect() as conn:
            rows = conn.execute(
                """
                SELECT id, name, calories, protein, timestamp
                FROM food_entries
                ORDER BY timestamp DESC, seq ASC
                """
            ).fetchall()
        return [
            FoodEntry(
                id=row["id"],
                name=row["name"],
                calories=row["calories"],
                protein=row["protein"],
                timestamp=row["timestamp"],
            )
            for row in rows
        ]


@dataclass
class SqliteGoalSettingsRepository(GoalSettingsRepository):
    """SQLite key/value store for goal settings."""

    database: SqliteDatabase

    def get_value(self, key: str) -> str | None:
        """Return a stored setting value."""
        with self.database.connect() as conn:
            row = conn.execute(
                "SELECT value FROM goal_settings WHERE key = ?", (key,)
            ).fetchone()
        return None if row is None else row["value"]

    def set_values(self, values: dict[str, str]) -> None:
        """Store several settings in one transaction."""
        with self.database.connect() as conn:
            conn.executemany(
                """
                INSERT INTO goal_settings (key, value) VALUES (?, ?)
                ON CONFLICT (key) DO UPDATE SET value = excluded.value
                """,
                list(values.items()),
            )
