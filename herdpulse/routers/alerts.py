"""
Alerts router.

Wired to:
- AlertService, which evaluates the four alert rules against the
  configured StorageBackend
"""

from fastapi import APIRouter, Depends

from herdpulse.auth.dependencies import get_current_owner_id
from herdpulse.routers.responses import result_response
from herdpulse.services.alerts import AlertService
from herdpulse.storage import get_storage
from herdpulse.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def get_alert_service() -> AlertService:
    return AlertService(storage=get_storage())


@router.get("")
async def list_alerts(
    owner_id: int = Depends(get_current_owner_id),
    service: AlertService = Depends(get_alert_service),
):
    """
    Current alerts for the owner's herd, highest severity first.
    At most 50 alerts are returned; ``total`` counts every alert that fired.
    """
    logger.info("alerts_requested", owner_id=owner_id)
    result = await service.get_alerts(owner_id)
    return result_response(result)
