"""
Configuration constants and environment setup.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
DB_PATH = Path(os.environ.get("CAPACITY_DB_PATH", PROJECT_ROOT / "data" / "db" / "timetracker.db"))

# =============================================================================
# CAPACITY DEFAULTS
# =============================================================================

DEFAULT_WEEKLY_HOURS = float(os.environ.get("CAPACITY_DEFAULT_WEEKLY_HOURS", "40"))
DEFAULT_WEEKS_PER_MONTH = float(os.environ.get("CAPACITY_WEEKS_PER_MONTH", "4"))
DEFAULT_TASK_ESTIMATE = float(os.environ.get("CAPACITY_DEFAULT_TASK_ESTIMATE", "6"))
ALERT_WARNING_THRESHOLD = float(os.environ.get("CAPACITY_ALERT_WARNING", "0.9"))
ALERT_CRITICAL_THRESHOLD = float(os.environ.get("CAPACITY_ALERT_CRITICAL", "1.1"))
BALANCED_THRESHOLD = 0.5
MAX_FORECAST_WEEKS = 8
DEFAULT_FORECAST_WEEKS = 4
MAX_TOP_PROJECTS = 4

# Task statuses that still consume capacity
ACTIVE_TASK_STATUSES = ("todo", "in_progress", "review")

# Roles allowed to look at other people's capacity
VIEW_ALL_ROLES = {"admin", "supervisor"}

# =============================================================================
# API CONFIGURATION
# =============================================================================

CAPACITY_API_KEY = os.environ.get("CAPACITY_API_KEY", "")
API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
API_VERSION = "1.0.0"


@dataclass(frozen=True)
class CapacityConfig:
    """Numeric knobs shared by the summary and forecast engines."""

    weekly_hours: float = 40.0
    weeks_per_month: float = 4.0
    default_task_estimate: float = 6.0
    warning_threshold: float = 0.9
    critical_threshold: float = 1.1

    def __post_init__(self):
        if self.weekly_hours <= 0 or self.weeks_per_month <= 0:
            raise ValueError("Capacity hours must be positive")

    @property
    def monthly_hours(self) -> float:
        return self.weekly_hours * self.weeks_per_month

    @classmethod
    def from_env(cls) -> "CapacityConfig":
        """Build config from the CAPACITY_* environment variables."""
        return cls(
            weekly_hours=DEFAULT_WEEKLY_HOURS,
            weeks_per_month=DEFAULT_WEEKS_PER_MONTH,
            default_task_estimate=DEFAULT_TASK_ESTIMATE,
            warning_threshold=ALERT_WARNING_THRESHOLD,
            critical_threshold=ALERT_CRITICAL_THRESHOLD,
        )
