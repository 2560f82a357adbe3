"""
Breeding KPI router.

Wired to:
- BreedingKpiService for metrics, KPI snapshot, delta and trends
- KpiRepository over the configured StorageBackend
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from herdpulse.auth.dependencies import get_current_owner_id
from herdpulse.routers.responses import result_response
from herdpulse.services.breeding_kpi import BreedingKpiService
from herdpulse.services.kpi_repository import KpiRepository
from herdpulse.storage import get_storage
from herdpulse.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def get_breeding_kpi_service() -> BreedingKpiService:
    return BreedingKpiService(repository=KpiRepository(storage=get_storage()))


@router.get("/breeding/metrics")
async def get_breeding_metrics(
    from_date: Optional[datetime] = Query(None, description="Window start (ISO-8601)"),
    to_date: Optional[datetime] = Query(None, description="Window end (ISO-8601)"),
    owner_id: int = Depends(get_current_owner_id),
    service: BreedingKpiService = Depends(get_breeding_kpi_service),
):
    """
    Conception rate, days open, calving interval and AI per conception,
    with counts, insights and calculation details.
    """
    logger.info("breeding_metrics_requested", owner_id=owner_id)
    result = await service.calculate_breeding_metrics(
        owner_id, from_date=from_date, to_date=to_date
    )
    return result_response(result)


@router.get("/breeding")
async def get_breeding_kpi(
    from_date: Optional[datetime] = Query(None, description="Window start (ISO-8601)"),
    to_date: Optional[datetime] = Query(None, description="Window end (ISO-8601)"),
    owner_id: int = Depends(get_current_owner_id),
    service: BreedingKpiService = Depends(get_breeding_kpi_service),
):
    """KPI snapshot with event counts and a data-quality rating."""
    result = await service.get_breeding_kpi(
        owner_id, from_date=from_date, to_date=to_date
    )
    return result_response(result)


@router.get("/breeding/delta")
async def get_breeding_kpi_delta(
    from_date: Optional[datetime] = Query(None, description="Window start (ISO-8601)"),
    to_date: Optional[datetime] = Query(None, description="Window end (ISO-8601)"),
    owner_id: int = Depends(get_current_owner_id),
    service: BreedingKpiService = Depends(get_breeding_kpi_service),
):
    """KPI change against the preceding window of the same length."""
    result = await service.get_breeding_kpi_delta(
        owner_id, from_date=from_date, to_date=to_date
    )
    return result_response(result)


@router.get("/breeding/trends")
async def get_breeding_trends(
    to_month: Optional[str] = Query(None, alias="to", description="Last month, YYYY-MM"),
    from_month: Optional[str] = Query(None, alias="from", description="First month, YYYY-MM"),
    months: Optional[int] = Query(None, description="Months to analyze when 'from' is omitted"),
    owner_id: int = Depends(get_current_owner_id),
    service: BreedingKpiService = Depends(get_breeding_kpi_service),
):
    """Month-over-month trend series, deltas and overall direction."""
    logger.info(
        "breeding_trends_requested",
        owner_id=owner_id,
        to_month=to_month,
        from_month=from_month,
        months=months,
    )
    result = await service.get_breeding_trends(
        owner_id, to_month=to_month, from_month=from_month, months=months
    )
    return result_response(result)
