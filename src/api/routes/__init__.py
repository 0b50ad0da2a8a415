"""API route modules."""

from .capacity import router as capacity_router
from .health import router as health_router

__all__ = ["health_router", "capacity_router"]
