"""Pytest fixtures for fithouse tests."""

from __future__ import annotations

import logging
import tempfile
from datetime import date, datetime
from pathlib import Path

import pytest

from fithouse.db.connection import DatabaseConnection
from fithouse.db.snapshots import MemorySnapshotStorage
from fithouse.models import AppState, DailyLog, LogItem, Profile
from fithouse.store import Store

FIXED_NOW = datetime(2026, 2, 1, 9, 30)


@pytest.fixture(autouse=True)
def restore_fithouse_logger():
    """Undo logger changes made by configure_logging between tests."""
    logger = logging.getLogger("fithouse")
    handlers = list(logger.handlers)
    propagate = logger.propagate
    level = logger.level

    yield

    logger.handlers[:] = handlers
    logger.propagate = propagate
    logger.setLevel(level)


@pytest.fixture
def temp_db():
    """Create a temporary database with schema."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    db = DatabaseConnection(db_path)
    db.initialize_schema()

    yield db

    # Cleanup
    db_path.unlink(missing_ok=True)


@pytest.fixture
def memory_storage():
    return MemorySnapshotStorage()


@pytest.fixture
def store(memory_storage):
    """A store on in-memory storage with the clock fixed at FIXED_NOW."""
    store = Store(memory_storage, clock=lambda: FIXED_NOW)
    store.init()
    return store


@pytest.fixture
def plan_profile():
    """A 30-day plan from 88 kg to 80 kg."""
    return Profile(
        age=30,
        height=175,
        base_weight=88.0,
        current_weight=88.0,
        target_weight=80.0,
        start_date=date(2026, 1, 1),
        target_date=date(2026, 1, 31),
        gender="male",
    )


@pytest.fixture
def plan_state(plan_profile):
    """State with two logs inside the plan window."""
    state = AppState(profile=plan_profile)
    state.logs = [
        DailyLog(
            id=1,
            date=date(2026, 1, 3),
            weight=87.5,
            items=[LogItem("Breakfast", 5), LogItem("Dinner", 10)],
            total_points=15,
        ),
        DailyLog(
            id=2,
            date=date(2026, 1, 5),
            weight=87.0,
            items=[LogItem("Manual Entry", 20)],
            total_points=20,
        ),
    ]
    return state
