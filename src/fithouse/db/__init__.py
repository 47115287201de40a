"""SQLite connection and snapshot storage."""

from __future__ import annotations

from fithouse.db.connection import DatabaseConnection, get_db, set_db
from fithouse.db.snapshots import (
    STORAGE_KEY,
    MemorySnapshotStorage,
    SnapshotStorage,
    SqliteSnapshotStorage,
)

__all__ = [
    "STORAGE_KEY",
    "DatabaseConnection",
    "MemorySnapshotStorage",
    "SnapshotStorage",
    "SqliteSnapshotStorage",
    "get_db",
    "set_db",
]
