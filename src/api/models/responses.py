"""Pydantic response models for API endpoints."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy" or "unhealthy"
    version: str
    database_available: bool
    timestamp: str  # ISO 8601 UTC
    error: str | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    details: list[str] = []


class ErrorCodes:
    """Error code constants."""

    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# CAPACITY SUMMARY
# =============================================================================


class PeriodModel(BaseModel):
    from_: str = Field(alias="from")
    to: str


class TeamTotalsModel(BaseModel):
    capacityHours: float
    loggedHours: float
    avgUtilization: float


class MemberSummaryModel(BaseModel):
    userId: int
    name: str
    role: str
    projects: int
    tasks: int
    loggedHours: float
    capacityHours: float
    utilization: float
    alert: str  # "normal" | "warning" | "critical"


class CapacitySummaryResponse(BaseModel):
    """Logged hours against capacity for a period."""

    period: PeriodModel
    teamTotals: TeamTotalsModel
    members: list[MemberSummaryModel]


# =============================================================================
# CAPACITY FORECAST
# =============================================================================


class WindowModel(BaseModel):
    start: str
    weeks: int
    weekStartsOn: int


class ProjectHoursModel(BaseModel):
    project: str
    hours: float


class AllocationModel(BaseModel):
    userId: int
    name: str
    hours: float
    utilization: int
    status: str  # "light" | "balanced" | "tight" | "overbooked"
    topProjects: list[ProjectHoursModel] | None = None


class WeekBucketModel(BaseModel):
    id: str
    label: str
    start: str
    end: str
    health: str
    allocations: list[AllocationModel]


class CapacityForecastResponse(BaseModel):
    """Projected weekly load from open tasks."""

    window: WindowModel
    weeks: list[WeekBucketModel]
