"""Tests for the plain-text capacity report and its command-line script."""

import sqlite3
from datetime import date, datetime

from conftest import FakeQueries, make_engineer, make_task
from core.config import CapacityConfig
from scripts.capacity_report import build_parser, main
from services.capacity import ForecastEngine, SummaryEngine
from services.reports import (
    format_date_display,
    format_date_short,
    format_hours,
    render_forecast,
    render_summary,
    render_table,
)

NOW = datetime(2025, 5, 14, 15, 30)


def test_date_formats():
    assert format_date_display(date(2025, 5, 5)) == "5/5/2025"
    assert format_date_short(date(2025, 11, 7)) == "Nov 7"


def test_format_hours():
    assert format_hours(160) == "160h"
    assert format_hours(62.5) == "62.5h"
    assert format_hours(33.33) == "33.33h"
    assert format_hours(1200) == "1,200h"


def test_render_table_aligns_columns():
    lines = render_table(["Name", "Hours"], [["Alice", "8h"], ["Bartholomew", "120h"]])

    assert lines[0] == "Name         Hours"
    assert lines[1] == "-----------  -----"
    assert lines[2] == "Alice           8h"
    assert lines[3] == "Bartholomew   120h"


def test_render_summary():
    queries = FakeQueries(
        engineers=[make_engineer(1, "Alice", "Eng"), make_engineer(2, "Bob", "Builder")],
        logged=[{"user_id": 1, "hours": 176}, {"user_id": 2, "hours": 80}],
    )
    summary = SummaryEngine(CapacityConfig(), queries, lambda: NOW).summarize()
    lines = render_summary(summary)

    assert lines[0] == "Capacity summary 5/1/2025 - 5/31/2025"
    assert "CRITICAL" in lines[3]
    assert lines[3].startswith("Alice Eng")
    assert lines[4].endswith("normal")
    assert lines[-1] == "Team: 256h of 320h logged (80.0%)"


def test_render_summary_without_engineers():
    summary = SummaryEngine(CapacityConfig(), FakeQueries(), lambda: NOW).summarize()
    assert render_summary(summary)[-1] == "No active engineers found."


def test_render_forecast():
    queries = FakeQueries(
        engineers=[make_engineer(1, "Alice", "Eng")],
        tasks=[make_task(1, 1, project_name="Airport Upgrade", estimated_hours=38, due_date="2025-05-20")],
    )
    forecast = ForecastEngine(CapacityConfig(), queries, lambda: NOW).forecast(weeks=2, include_project_mix=True)
    lines = render_forecast(forecast)

    assert lines[0] == "Workload forecast: 2 week(s) from 5/19/2025"
    assert "May 19 – May 25  [tight]" in lines
    assert any(line.strip().startswith("Alice Eng") and "Airport Upgrade (38h)" in line for line in lines)
    assert lines[-1] == "  (no scheduled work)"


def test_script_prints_both_reports(db_file, capsys):
    conn = sqlite3.connect(db_file)
    conn.execute(
        "INSERT INTO users (id, email, first_name, last_name, role) VALUES (1, 'a@example.com', 'Alice', 'Eng', 'engineer')"
    )
    conn.execute(
        "INSERT INTO time_entries (user_id, project_id, start_time, duration_hours, approval_status) "
        "VALUES (1, 1, '2025-05-12T09:00:00', 8, 'approved')"
    )
    conn.commit()
    conn.close()

    args = build_parser().parse_args(
        ["--from", "2025-05-01", "--to", "2025-05-31", "--start", "2025-05-19", "--weeks", "2", "--db", str(db_file)]
    )
    main(args)
    output = capsys.readouterr().out

    assert "Capacity summary 5/1/2025 - 5/31/2025" in output
    assert "Alice Eng" in output
    assert "Workload forecast: 2 week(s) from 5/19/2025" in output


def test_script_summary_only(db_file, capsys):
    main(build_parser().parse_args(["--summary-only", "--db", str(db_file)]))
    output = capsys.readouterr().out

    assert "No active engineers found." in output
    assert "Workload forecast" not in output
