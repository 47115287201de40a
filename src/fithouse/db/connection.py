"""SQLite access for the snapshot database.

Each operation opens a short-lived connection; the tracker is single-process
and writes one small row per command, so there is no pooling.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from fithouse.db.schema import get_schema_sql


class DatabaseConnection:
    """Opens connections to one SQLite file."""

    def __init__(self, db_path: Path):
        """Point at ``db_path``, creating its parent directory if needed.

        Args:
            db_path: Path to the SQLite database file (created on first use)
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection, committing on success and rolling back on error.

        Example:
            with db.get_connection() as conn:
                conn.execute("DELETE FROM snapshots WHERE key = ?", (key,))
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize_schema(self) -> None:
        with self.get_connection() as conn:
            conn.executescript(get_schema_sql())

    def table_exists(self, table_name: str) -> bool:
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
                (table_name,),
            ).fetchone()
        return row is not None


# Process-wide connection, built from settings on first use
_db: Optional[DatabaseConnection] = None


def get_db() -> DatabaseConnection:
    """Return the process-wide database, opening the configured path if unset."""
    global _db
    if _db is None:
        from fithouse.config import get_settings

        _db = DatabaseConnection(get_settings().database.path)
    return _db


def set_db(db: Optional[DatabaseConnection]) -> None:
    """Replace the process-wide database; None makes ``get_db`` reload settings."""
    global _db
    _db = db
