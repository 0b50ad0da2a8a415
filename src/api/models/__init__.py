"""API Pydantic models."""

from .responses import (
    CapacityForecastResponse,
    CapacitySummaryResponse,
    ErrorCodes,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "HealthResponse",
    "ErrorResponse",
    "ErrorCodes",
    "CapacitySummaryResponse",
    "CapacityForecastResponse",
]
