"""
Data models for capacity planning.

Rows coming back from the database are TypedDicts; computed results are
frozen dataclasses that render to the camelCase JSON shape used by the API.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Literal, TypedDict

AlertLevel = Literal["normal", "warning", "critical"]
AllocationStatus = Literal["light", "balanced", "tight", "overbooked"]


def format_timestamp(value: datetime) -> str:
    """ISO-8601 with millisecond precision, e.g. 2025-05-05T00:00:00.000."""
    return value.isoformat(timespec="milliseconds")


def to_local_naive(value: datetime) -> datetime:
    """Aware datetimes become naive local time; naive ones are already local."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


# =============================================================================
# DATABASE ROWS
# =============================================================================


class EngineerRow(TypedDict):
    """Active engineer from the users table."""
    id: int
    first_name: str
    last_name: str
    role: str


class LoggedHoursRow(TypedDict):
    """Approved hours for one user within a period."""
    user_id: int
    hours: float


class TaskStatsRow(TypedDict):
    """Assigned task and distinct project counts for one user."""
    user_id: int
    task_count: int
    project_count: int


class ActiveTaskRow(TypedDict):
    """Open task joined with its project name."""
    id: int
    assigned_to: int | None
    project_id: int
    project_name: str | None
    estimated_hours: float | str | None
    due_date: date | str | None
    status: str


# =============================================================================
# SUMMARY
# =============================================================================


@dataclass(frozen=True)
class CapacityPeriod:
    start: datetime
    end: datetime

    def to_dict(self) -> dict:
        return {"from": format_timestamp(self.start), "to": format_timestamp(self.end)}


@dataclass(frozen=True)
class MemberSummary:
    """Logged hours against monthly capacity for one engineer."""

    user_id: int
    name: str
    role: str
    projects: int
    tasks: int
    logged_hours: float
    capacity_hours: float
    utilization: float
    alert: AlertLevel

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "name": self.name,
            "role": self.role,
            "projects": self.projects,
            "tasks": self.tasks,
            "loggedHours": self.logged_hours,
            "capacityHours": self.capacity_hours,
            "utilization": self.utilization,
            "alert": self.alert,
        }


@dataclass(frozen=True)
class TeamTotals:
    capacity_hours: float
    logged_hours: float
    avg_utilization: float

    def to_dict(self) -> dict:
        return {
            "capacityHours": self.capacity_hours,
            "loggedHours": self.logged_hours,
            "avgUtilization": self.avg_utilization,
        }


@dataclass(frozen=True)
class CapacitySummary:
    period: CapacityPeriod
    team_totals: TeamTotals
    members: tuple[MemberSummary, ...]

    def to_dict(self) -> dict:
        return {
            "period": self.period.to_dict(),
            "teamTotals": self.team_totals.to_dict(),
            "members": [member.to_dict() for member in self.members],
        }


# =============================================================================
# FORECAST
# =============================================================================


@dataclass(frozen=True)
class ForecastWindow:
    start: datetime
    weeks: int
    week_starts_on: int = 1

    def to_dict(self) -> dict:
        return {
            "start": format_timestamp(self.start),
            "weeks": self.weeks,
            "weekStartsOn": self.week_starts_on,
        }


@dataclass(frozen=True)
class ProjectHours:
    project: str
    hours: float

    def to_dict(self) -> dict:
        return {"project": self.project, "hours": self.hours}


@dataclass(frozen=True)
class Allocation:
    """
    Projected load for one engineer in one week.

    top_projects is None when the project mix was not requested, and the
    key is left out of the JSON entirely in that case.
    """

    user_id: int
    name: str
    hours: float
    utilization: int
    status: AllocationStatus
    top_projects: tuple[ProjectHours, ...] | None = None

    def to_dict(self) -> dict:
        data = {
            "userId": self.user_id,
            "name": self.name,
            "hours": self.hours,
            "utilization": self.utilization,
            "status": self.status,
        }
        if self.top_projects is not None:
            data["topProjects"] = [entry.to_dict() for entry in self.top_projects]
        return data


@dataclass(frozen=True)
class WeekBucket:
    id: str
    label: str
    start: datetime
    end: datetime
    health: AllocationStatus
    allocations: tuple[Allocation, ...]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "start": format_timestamp(self.start),
            "end": format_timestamp(self.end),
            "health": self.health,
            "allocations": [allocation.to_dict() for allocation in self.allocations],
        }


@dataclass(frozen=True)
class CapacityForecast:
    window: ForecastWindow
    weeks: tuple[WeekBucket, ...]

    def to_dict(self) -> dict:
        return {
            "window": self.window.to_dict(),
            "weeks": [week.to_dict() for week in self.weeks],
        }
