"""
Capacity Planning Service

Turns approved time entries and open task estimates into two views of the
engineering team's load:

- Summary: logged hours against a uniform monthly capacity for a date range,
  per engineer plus a capacity-weighted team rollup.
- Forecast: week-by-week projected hours from open tasks by due date, with a
  severity per allocation and a health rating per week.

Both engines are read-only and recompute everything from the queries they are
given on every call.
"""

import math
from collections import defaultdict
from collections.abc import Callable, Sequence
from contextlib import closing
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, localcontext
from pathlib import Path
from typing import Protocol

from core.config import (
    BALANCED_THRESHOLD,
    DB_PATH,
    DEFAULT_FORECAST_WEEKS,
    MAX_FORECAST_WEEKS,
    MAX_TOP_PROJECTS,
    CapacityConfig,
)
from core.database import SqliteCapacityQueries, get_connection
from models.capacity import (
    ActiveTaskRow,
    AlertLevel,
    Allocation,
    AllocationStatus,
    CapacityForecast,
    CapacityPeriod,
    CapacitySummary,
    EngineerRow,
    ForecastWindow,
    LoggedHoursRow,
    MemberSummary,
    ProjectHours,
    TaskStatsRow,
    TeamTotals,
    WeekBucket,
    to_local_naive,
)
from services.reports import format_date_short


# =============================================================================
# CONSTANTS
# =============================================================================

STATUS_RANK: dict[AllocationStatus, int] = {
    "light": 0,
    "balanced": 1,
    "tight": 2,
    "overbooked": 3,
}

END_OF_DAY = timedelta(hours=23, minutes=59, seconds=59, milliseconds=999)


class CapacityQueries(Protocol):
    """Read queries the engines need from the data-access layer."""

    def engineers(self, user_id: int | None = None) -> list[EngineerRow]: ...

    def logged_hours(self, user_ids: Sequence[int], start: datetime, end: datetime) -> list[LoggedHoursRow]: ...

    def task_stats(self, user_ids: Sequence[int]) -> list[TaskStatsRow]: ...

    def active_tasks(self, user_ids: Sequence[int]) -> list[ActiveTaskRow]: ...


# =============================================================================
# HELPERS
# =============================================================================


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round like a spreadsheet does (2.5 -> 3), not banker's rounding.

    Rounds the shortest decimal repr of the float, so 1.005 gives 1.01.
    """
    quantum = Decimal(1).scaleb(-digits)
    with localcontext() as ctx:
        # Enough digits for any float's integer part plus the fraction kept
        ctx.prec = 400 + digits
        return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def parse_date_or(value: str | date | None, fallback: datetime) -> datetime:
    """
    Parse an ISO-8601 date/datetime, or return fallback.

    Aware values are converted to naive local time so they can be compared
    with the naive period and week boundaries.
    """
    if not value:
        return fallback
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    else:
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return fallback
    return to_local_naive(parsed)


def default_period(now: datetime) -> CapacityPeriod:
    """First instant to last millisecond of the calendar month containing now."""
    first = datetime(now.year, now.month, 1)
    next_month = (first + timedelta(days=32)).replace(day=1)
    last_day = next_month - timedelta(days=1)
    return CapacityPeriod(start=first, end=last_day + END_OF_DAY)


def start_of_week(value: datetime) -> datetime:
    """Monday 00:00 of the week containing value."""
    monday = value.date() - timedelta(days=value.weekday())
    return datetime.combine(monday, datetime.min.time())


def end_of_week(week_start: datetime) -> datetime:
    """Sunday 23:59:59.999 of the week starting at week_start."""
    return start_of_week(week_start) + timedelta(days=6) + END_OF_DAY


def next_week_start(now: datetime) -> datetime:
    """
    Default forecast start.

    Monday mornings still plan the current week; any later point plans from
    the following Monday.
    """
    current = start_of_week(now)
    if now.weekday() == 0 and now.hour < 12:
        return current
    return current + timedelta(weeks=1)


def clamp_weeks(weeks: int | None) -> int:
    if weeks is None:
        weeks = DEFAULT_FORECAST_WEEKS
    return min(max(weeks, 1), MAX_FORECAST_WEEKS)


def ratio_to_alert(ratio: float, config: CapacityConfig) -> AlertLevel:
    if ratio >= config.critical_threshold:
        return "critical"
    if ratio >= config.warning_threshold:
        return "warning"
    return "normal"


def ratio_to_status(ratio: float, config: CapacityConfig) -> AllocationStatus:
    if ratio >= config.critical_threshold:
        return "overbooked"
    if ratio >= config.warning_threshold:
        return "tight"
    if ratio >= BALANCED_THRESHOLD:
        return "balanced"
    return "light"


def week_health(allocations: Sequence[Allocation]) -> AllocationStatus:
    """Most severe status in the week, light when nobody is booked."""
    return max(
        (allocation.status for allocation in allocations),
        key=STATUS_RANK.__getitem__,
        default="light",
    )


def week_label(week_start: datetime, week_end: datetime) -> str:
    """e.g. 'May 5 – May 11'."""
    return f"{format_date_short(week_start)} – {format_date_short(week_end)}"


def engineer_name(engineer: EngineerRow) -> str:
    return f"{engineer['first_name']} {engineer['last_name']}"


def parse_estimate(value, default: float) -> float:
    """Task estimate in hours; missing, unparseable or zero estimates use default."""
    try:
        estimate = float(value)
    except (TypeError, ValueError):
        return default
    if not estimate or math.isnan(estimate):
        return default
    return estimate


def parse_due_date(value) -> date | None:
    """Local calendar date of a due date; offset-stamped values are converted first."""
    if isinstance(value, datetime):
        return to_local_naive(value).date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).strip())
    except ValueError:
        return None
    return to_local_naive(parsed).date()


# =============================================================================
# SUMMARY ENGINE
# =============================================================================


class SummaryEngine:
    """Logged-hours utilization per engineer over a date range."""

    def __init__(
        self,
        config: CapacityConfig,
        queries: CapacityQueries,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config
        self.queries = queries
        self.clock = clock

    def resolve_period(self, date_from: str | None = None, date_to: str | None = None) -> CapacityPeriod:
        fallback = default_period(self.clock())
        return CapacityPeriod(
            start=parse_date_or(date_from, fallback.start),
            end=parse_date_or(date_to, fallback.end),
        )

    def summarize(
        self,
        date_from: str | None = None,
        date_to: str | None = None,
        user_id: int | None = None,
    ) -> CapacitySummary:
        period = self.resolve_period(date_from, date_to)

        engineers = self.queries.engineers(user_id)
        if not engineers:
            return CapacitySummary(
                period=period,
                team_totals=TeamTotals(capacity_hours=0, logged_hours=0, avg_utilization=0),
                members=(),
            )

        engineer_ids = [engineer["id"] for engineer in engineers]
        logged_by_user = {
            row["user_id"]: float(row["hours"] or 0)
            for row in self.queries.logged_hours(engineer_ids, period.start, period.end)
        }
        stats_by_user = {row["user_id"]: row for row in self.queries.task_stats(engineer_ids)}

        capacity = self.config.monthly_hours
        logged = [logged_by_user.get(engineer["id"], 0.0) for engineer in engineers]
        members = tuple(
            self._member(engineer, hours, stats_by_user.get(engineer["id"]), capacity)
            for engineer, hours in zip(engineers, logged)
        )

        total_capacity = capacity * len(members)
        total_logged = sum(logged)
        avg_utilization = (
            round_half_up(total_logged / total_capacity * 100, 1) if total_capacity else 0
        )

        return CapacitySummary(
            period=period,
            team_totals=TeamTotals(
                capacity_hours=total_capacity,
                logged_hours=round_half_up(total_logged, 2),
                avg_utilization=avg_utilization,
            ),
            members=members,
        )

    def _member(
        self,
        engineer: EngineerRow,
        logged: float,
        stats: TaskStatsRow | None,
        capacity: float,
    ) -> MemberSummary:
        ratio = logged / capacity
        return MemberSummary(
            user_id=engineer["id"],
            name=engineer_name(engineer),
            role=engineer["role"],
            projects=int(stats["project_count"] or 0) if stats else 0,
            tasks=int(stats["task_count"] or 0) if stats else 0,
            logged_hours=round_half_up(logged, 2),
            capacity_hours=capacity,
            utilization=round_half_up(ratio * 100, 1),
            alert=ratio_to_alert(ratio, self.config),
        )


# =============================================================================
# FORECAST ENGINE
# =============================================================================


class ForecastEngine:
    """Week-bucketed projected load from open task estimates."""

    def __init__(
        self,
        config: CapacityConfig,
        queries: CapacityQueries,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config
        self.queries = queries
        self.clock = clock

    def resolve_window(self, start: str | None = None, weeks: int | None = None) -> ForecastWindow:
        requested = parse_date_or(start, next_week_start(self.clock()))
        return ForecastWindow(start=start_of_week(requested), weeks=clamp_weeks(weeks))

    def forecast(
        self,
        start: str | None = None,
        weeks: int | None = None,
        user_id: int | None = None,
        include_project_mix: bool = False,
    ) -> CapacityForecast:
        window = self.resolve_window(start, weeks)

        engineers = self.queries.engineers(user_id)
        if not engineers:
            return CapacityForecast(window=window, weeks=())

        tasks_by_user: dict[int, list[ActiveTaskRow]] = defaultdict(list)
        for task in self.queries.active_tasks([engineer["id"] for engineer in engineers]):
            if task["assigned_to"]:
                tasks_by_user[task["assigned_to"]].append(task)

        buckets = tuple(
            self._week(index, window.start + timedelta(weeks=index), engineers, tasks_by_user, include_project_mix)
            for index in range(window.weeks)
        )
        return CapacityForecast(window=window, weeks=buckets)

    def _week(
        self,
        index: int,
        week_start: datetime,
        engineers: list[EngineerRow],
        tasks_by_user: dict[int, list[ActiveTaskRow]],
        include_project_mix: bool,
    ) -> WeekBucket:
        week_end = end_of_week(week_start)
        allocations = tuple(
            allocation
            for allocation in (
                self._allocation(
                    engineer, tasks_by_user.get(engineer["id"], []), index, week_start, week_end, include_project_mix
                )
                for engineer in engineers
            )
            if allocation is not None
        )
        return WeekBucket(
            id=f"week-{index}",
            label=week_label(week_start, week_end),
            start=week_start,
            end=week_end,
            health=week_health(allocations),
            allocations=allocations,
        )

    def _allocation(
        self,
        engineer: EngineerRow,
        tasks: list[ActiveTaskRow],
        index: int,
        week_start: datetime,
        week_end: datetime,
        include_project_mix: bool,
    ) -> Allocation | None:
        hours_by_project: dict[str, float] = defaultdict(float)
        for task in tasks:
            if not task_falls_within(task, index, week_start, week_end):
                continue
            project = task["project_name"] or f"Project #{task['project_id']}"
            hours_by_project[project] += parse_estimate(task["estimated_hours"], self.config.default_task_estimate)

        hours = sum(hours_by_project.values())
        if not hours:
            return None

        ratio = hours / self.config.weekly_hours
        return Allocation(
            user_id=engineer["id"],
            name=engineer_name(engineer),
            hours=round_half_up(hours, 1),
            utilization=int(round_half_up(ratio * 100)),
            status=ratio_to_status(ratio, self.config),
            top_projects=top_projects(hours_by_project) if include_project_mix else None,
        )


def task_falls_within(task: ActiveTaskRow, index: int, week_start: datetime, week_end: datetime) -> bool:
    """
    Whether a task's estimate lands in this week.

    Tasks without a usable due date are booked into the first forecast week
    only.
    """
    due = parse_due_date(task["due_date"])
    if due is None:
        return index == 0
    return week_start.date() <= due <= week_end.date()


def top_projects(hours_by_project: dict[str, float]) -> tuple[ProjectHours, ...]:
    """Heaviest projects first, at most MAX_TOP_PROJECTS entries."""
    entries = [
        ProjectHours(project=project, hours=round_half_up(hours, 1))
        for project, hours in hours_by_project.items()
    ]
    entries.sort(key=lambda entry: entry.hours, reverse=True)
    return tuple(entries[:MAX_TOP_PROJECTS])


# =============================================================================
# ENTRY POINTS
# =============================================================================


def get_capacity_summary(
    date_from: str | None = None,
    date_to: str | None = None,
    user_id: int | None = None,
    config: CapacityConfig | None = None,
    db_path: Path | str = DB_PATH,
) -> CapacitySummary:
    """Run the summary engine against the SQLite database."""
    with closing(get_connection(db_path, read_only=True)) as conn:
        engine = SummaryEngine(config or CapacityConfig.from_env(), SqliteCapacityQueries(conn))
        return engine.summarize(date_from, date_to, user_id)


def get_capacity_forecast(
    start: str | None = None,
    weeks: int | None = None,
    user_id: int | None = None,
    include_project_mix: bool = False,
    config: CapacityConfig | None = None,
    db_path: Path | str = DB_PATH,
) -> CapacityForecast:
    """Run the forecast engine against the SQLite database."""
    with closing(get_connection(db_path, read_only=True)) as conn:
        engine = ForecastEngine(config or CapacityConfig.from_env(), SqliteCapacityQueries(conn))
        return engine.forecast(start, weeks, user_id, include_project_mix)
