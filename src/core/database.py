"""
SQLite read queries feeding the capacity engines.
"""

import sqlite3
from collections.abc import Sequence
from datetime import datetime, timedelta
from pathlib import Path

from core.config import ACTIVE_TASK_STATUSES, DB_PATH
from models.capacity import (
    ActiveTaskRow,
    EngineerRow,
    LoggedHoursRow,
    TaskStatsRow,
    to_local_naive,
)


def get_connection(db_path: Path | str = DB_PATH, read_only: bool = False) -> sqlite3.Connection:
    """
    Get a database connection.

    Read-only connections never create the file, so a missing database
    stays missing instead of turning into an empty one.
    """
    if read_only:
        return sqlite3.connect(f"{Path(db_path).resolve().as_uri()}?mode=ro", uri=True)
    return sqlite3.connect(db_path)


def _placeholders(values: Sequence) -> str:
    return ", ".join("?" for _ in values)


def fetch_engineers(conn: sqlite3.Connection, user_id: int | None = None) -> list[EngineerRow]:
    """Active users with the engineer role, optionally narrowed to one id."""
    sql = "SELECT id, first_name, last_name, role FROM users WHERE is_active = 1 AND role = 'engineer'"
    params: list = []
    if user_id:
        sql += " AND id = ?"
        params.append(user_id)
    sql += " ORDER BY id"

    cursor = conn.cursor()
    cursor.execute(sql, params)
    return [
        {"id": row[0], "first_name": row[1], "last_name": row[2], "role": row[3]}
        for row in cursor.fetchall()
    ]


def fetch_logged_hours(
    conn: sqlite3.Connection, user_ids: Sequence[int], start: datetime, end: datetime
) -> list[LoggedHoursRow]:
    """
    Sum approved duration_hours per user for entries starting within [start, end].

    start and end are naive local time. Stored start_time is ISO-8601 text that
    may carry a UTC offset, so SQL narrows by calendar day (one day of slack
    either side covers any offset) and the exact bounds are checked here after
    converting each timestamp to local time.
    """
    if not user_ids:
        return []

    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT user_id, start_time, duration_hours
        FROM time_entries
        WHERE user_id IN ({_placeholders(user_ids)})
          AND approval_status = 'approved'
          AND start_time >= ? AND start_time < ?
        ORDER BY user_id
        """,
        (
            *user_ids,
            (start - timedelta(days=1)).date().isoformat(),
            (end + timedelta(days=2)).date().isoformat(),
        ),
    )

    totals: dict[int, float] = {}
    for user_id, start_time, duration_hours in cursor.fetchall():
        try:
            started = to_local_naive(datetime.fromisoformat(start_time))
        except (TypeError, ValueError):
            continue
        if start <= started <= end:
            totals[user_id] = totals.get(user_id, 0.0) + float(duration_hours or 0)
    return [{"user_id": user_id, "hours": hours} for user_id, hours in totals.items()]


def fetch_task_stats(conn: sqlite3.Connection, user_ids: Sequence[int]) -> list[TaskStatsRow]:
    """Task count and distinct project count per assignee, any status."""
    if not user_ids:
        return []

    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT assigned_to, COUNT(*), COUNT(DISTINCT project_id)
        FROM tasks
        WHERE assigned_to IN ({_placeholders(user_ids)})
        GROUP BY assigned_to
        """,
        tuple(user_ids),
    )
    return [
        {"user_id": row[0], "task_count": row[1], "project_count": row[2]}
        for row in cursor.fetchall()
    ]


def fetch_active_tasks(conn: sqlite3.Connection, user_ids: Sequence[int]) -> list[ActiveTaskRow]:
    """Open tasks (todo, in_progress, review) assigned to the given users."""
    if not user_ids:
        return []

    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT t.id, t.assigned_to, t.project_id, p.name,
               t.estimated_hours, t.due_date, t.status
        FROM tasks t
        LEFT JOIN projects p ON t.project_id = p.id
        WHERE t.assigned_to IN ({_placeholders(user_ids)})
          AND t.status IN ({_placeholders(ACTIVE_TASK_STATUSES)})
        ORDER BY t.id
        """,
        (*user_ids, *ACTIVE_TASK_STATUSES),
    )
    return [
        {
            "id": row[0],
            "assigned_to": row[1],
            "project_id": row[2],
            "project_name": row[3],
            "estimated_hours": row[4],
            "due_date": row[5],
            "status": row[6],
        }
        for row in cursor.fetchall()
    ]


class SqliteCapacityQueries:
    """Binds the capacity queries to one open connection."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def engineers(self, user_id: int | None = None) -> list[EngineerRow]:
        return fetch_engineers(self.conn, user_id)

    def logged_hours(self, user_ids: Sequence[int], start: datetime, end: datetime) -> list[LoggedHoursRow]:
        return fetch_logged_hours(self.conn, user_ids, start, end)

    def task_stats(self, user_ids: Sequence[int]) -> list[TaskStatsRow]:
        return fetch_task_stats(self.conn, user_ids)

    def active_tasks(self, user_ids: Sequence[int]) -> list[ActiveTaskRow]:
        return fetch_active_tasks(self.conn, user_ids)
