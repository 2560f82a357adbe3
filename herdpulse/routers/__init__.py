"""API routers for all endpoints."""

from herdpulse.routers import alerts, kpi

__all__ = [
    "alerts",
    "kpi",
]
