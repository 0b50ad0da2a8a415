"""
Pytest configuration and shared fixtures.
"""

import sqlite3
import sys
import time
from datetime import datetime
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.config import CapacityConfig  # noqa: E402
from scripts.init_db import create_schema  # noqa: E402

# Wednesday afternoon
FIXED_NOW = datetime(2025, 5, 14, 15, 30)


class FakeQueries:
    """In-memory stand-in for the capacity queries, recording each call."""

    def __init__(self, engineers=None, logged=None, stats=None, tasks=None):
        self._engineers = engineers or []
        self._logged = logged or []
        self._stats = stats or []
        self._tasks = tasks or []
        self.calls: list[tuple] = []

    def engineers(self, user_id=None):
        self.calls.append(("engineers", user_id))
        if user_id:
            return [e for e in self._engineers if e["id"] == user_id]
        return list(self._engineers)

    def logged_hours(self, user_ids, start, end):
        self.calls.append(("logged_hours", tuple(user_ids), start, end))
        return [row for row in self._logged if row["user_id"] in user_ids]

    def task_stats(self, user_ids):
        self.calls.append(("task_stats", tuple(user_ids)))
        return [row for row in self._stats if row["user_id"] in user_ids]

    def active_tasks(self, user_ids):
        self.calls.append(("active_tasks", tuple(user_ids)))
        return [task for task in self._tasks if task["assigned_to"] in user_ids]


def make_engineer(user_id, first_name="Alice", last_name="Eng"):
    return {"id": user_id, "first_name": first_name, "last_name": last_name, "role": "engineer"}


def make_task(task_id, assigned_to, project_id=7, project_name="Airport Upgrade",
              estimated_hours=8, due_date=None, status="todo"):
    return {
        "id": task_id,
        "assigned_to": assigned_to,
        "project_id": project_id,
        "project_name": project_name,
        "estimated_hours": estimated_hours,
        "due_date": due_date,
        "status": status,
    }


@pytest.fixture
def config():
    """Default capacity configuration (40h weeks, 4-week months)."""
    return CapacityConfig()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def db_conn():
    """In-memory database with the full schema."""
    conn = sqlite3.connect(":memory:")
    create_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def db_file(tmp_path):
    """On-disk database with the full schema, for code that opens its own connection."""
    path = tmp_path / "timetracker.db"
    conn = sqlite3.connect(path)
    create_schema(conn)
    conn.close()
    return path


@pytest.fixture
def new_york_tz(monkeypatch):
    """Run with the process local time zone set to America/New_York."""
    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()
