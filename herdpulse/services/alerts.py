"""
Alert service — the exposed ``get_alerts`` entry point.
"""

from datetime import datetime
from typing import Callable, Optional

import structlog

from herdpulse.config import Settings, get_settings
from herdpulse.engine.alert_evaluator import AlertRuleEvaluator
from herdpulse.models.alerts import AlertsResult
from herdpulse.models.errors import InfraError
from herdpulse.models.events import utc_now
from herdpulse.storage.base import StorageBackend
from herdpulse.utils.result import Err, Ok, Result


class AlertService:
    """
    Derives the current alert list for an owner.

    Any failure of a rule query fails the whole call with ``InfraError``;
    no partial alert list is ever returned.
    """

    def __init__(
        self,
        storage: StorageBackend,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        settings = settings or get_settings()
        self.evaluator = AlertRuleEvaluator(source=storage, limit=settings.alert_result_limit)
        self.clock = clock
        self.logger = structlog.get_logger()

    async def get_alerts(
        self, owner_id: int, now: Optional[datetime] = None
    ) -> Result[AlertsResult, InfraError]:
        """
        Args:
            owner_id: Herd owner
            now: Reference instant (default: the service clock)

        Returns:
            Ok(AlertsResult) sorted by severity then due date, capped
        """
        try:
            return Ok(await self.evaluator.evaluate(owner_id, now or self.clock()))
        except Exception as e:
            self.logger.error("get_alerts_failed", owner_id=owner_id, error=str(e), exc_info=True)
            return Err(InfraError(message="Failed to get alerts", cause=e))
