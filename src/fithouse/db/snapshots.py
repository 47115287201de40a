"""Single-key snapshot storage.

The store persists its whole state as one JSON text under one key. Both
backends expose the same three methods so the store does not care where the
text ends up.
"""

from __future__ import annotations

from typing import Optional, Protocol

from fithouse.db.connection import DatabaseConnection

STORAGE_KEY = "fithouse_db"


class SnapshotStorage(Protocol):
    """Where the serialized state lives."""

    def load(self) -> Optional[str]: ...

    def save(self, text: str) -> None: ...

    def clear(self) -> None: ...


class SqliteSnapshotStorage:
    """Snapshot storage backed by the ``snapshots`` table."""

    def __init__(self, db: DatabaseConnection, key: str = STORAGE_KEY):
        self.db = db
        self.key = key
        if not db.table_exists("snapshots"):
            db.initialize_schema()

    def load(self) -> Optional[str]:
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT value FROM snapshots WHERE key = ?", (self.key,)
            ).fetchone()
        return row["value"] if row is not None else None

    def save(self, text: str) -> None:
        with self.db.get_connection() as conn:
            conn.execute(
                """
                INSERT INTO snapshots (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (self.key, text),
            )

    def clear(self) -> None:
        with self.db.get_connection() as conn:
            conn.execute("DELETE FROM snapshots WHERE key = ?", (self.key,))


class MemorySnapshotStorage:
    """In-process snapshot storage, for throwaway sessions and tests."""

    def __init__(self, text: Optional[str] = None):
        self.text = text
        self.writes = 0

    def load(self) -> Optional[str]:
        return self.text

    def save(self, text: str) -> None:
        self.text = text
        self.writes += 1

    def clear(self) -> None:
        self.text = None
