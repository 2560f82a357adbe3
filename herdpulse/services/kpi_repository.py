"""
KPI repository: Event Store reads wrapped as ``Result`` values.

Bridges ``StorageBackend`` (which raises ``StorageError``) and the engine
(which works on ``Ok`` / ``Err``). Also serves as the per-period data
source for the trend analyzer.
"""

from datetime import datetime
from typing import Callable, Optional

import structlog

from herdpulse.engine.correlator import correlate_events
from herdpulse.engine.normalizer import normalize_events
from herdpulse.engine.period_metrics import calculate_period_metrics
from herdpulse.models.errors import InfraError, KpiError
from herdpulse.models.events import BreedingEvent, RawBreedingEvent, utc_now
from herdpulse.models.metrics import BreedingEventCounts, BreedingMetrics, DateRange
from herdpulse.storage.base import StorageBackend
from herdpulse.storage.duckdb_storage import StorageError
from herdpulse.utils.result import Err, Ok, Result


class KpiRepository:
    """
    Read-side access to breeding events for one Event Store.

    Args:
        storage: Event Store implementation
        clock: Source of "now" for normalization checks
    """

    def __init__(
        self,
        storage: StorageBackend,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.storage = storage
        self.clock = clock
        self.logger = structlog.get_logger()

    def find_events_for_breeding_kpi(
        self,
        owner_id: int,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ) -> Result[list[RawBreedingEvent], InfraError]:
        try:
            return Ok(self.storage.find_events_for_breeding_kpi(owner_id, from_date, to_date))
        except StorageError as e:
            self.logger.error("breeding_kpi_events_fetch_failed", owner_id=owner_id, error=str(e))
            return Err(InfraError(message="Failed to find events for breeding KPI", cause=e))

    def load_breeding_events(
        self, owner_id: int, period: DateRange
    ) -> Result[list[BreedingEvent], KpiError]:
        """Fetch and normalize an owner's events for ``period``."""
        raw = self.find_events_for_breeding_kpi(owner_id, period.from_date, period.to_date)
        if not raw.ok:
            return raw
        return normalize_events(raw.value, now=self.clock())

    def calculate_breeding_metrics(
        self, owner_id: int, period: DateRange
    ) -> Result[BreedingMetrics, KpiError]:
        """
        Lenient metrics for one period (snapshot, delta, trend point).
        An empty period gives all-null metrics.
        """
        events = self.load_breeding_events(owner_id, period)
        if not events.ok:
            return events
        return calculate_period_metrics(events.value)

    def get_breeding_event_counts(
        self, owner_id: int, period: DateRange
    ) -> Result[BreedingEventCounts, KpiError]:
        events = self.load_breeding_events(owner_id, period)
        if not events.ok:
            return events
        return Ok(correlate_events(events.value).counts)

    def get_period_kpi(
        self, owner_id: int, period: DateRange
    ) -> Result[tuple[BreedingMetrics, BreedingEventCounts], KpiError]:
        """Metrics and counts for one period from a single store read."""
        events = self.load_breeding_events(owner_id, period)
        if not events.ok:
            return events
        metrics = calculate_period_metrics(events.value)
        if not metrics.ok:
            return metrics
        return Ok((metrics.value, correlate_events(events.value).counts))
