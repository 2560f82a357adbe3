"""
Business logic layer.
Services orchestrate Event Store reads and engine calculations, and are
the only callers of the engine from the HTTP layer.
"""

from .alerts import AlertService
from .breeding_kpi import BreedingKpiService
from .kpi_repository import KpiRepository

__all__ = [
    "AlertService",
    "BreedingKpiService",
    "KpiRepository",
]
