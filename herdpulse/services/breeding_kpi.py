"""
Breeding KPI service — the exposed KPI entry points.

Operations:
    calculate_breeding_metrics: full metrics report for a date window
    get_breeding_kpi:           metrics snapshot with data-quality summary
    get_breeding_kpi_delta:     window vs the equal-length window before it
    get_breeding_trends:        month-over-month trend analysis

Every operation returns a ``Result``. Errors from the repository and the
engine are forwarded unchanged; any unexpected exception is converted to
an ``InfraError`` with a fixed message for that operation.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Callable, Optional

import structlog

from herdpulse.config import Settings, get_settings
from herdpulse.engine.insights import evaluate_data_quality
from herdpulse.engine.kpi_delta import (
    calculate_metric_deltas,
    determine_improvement,
    identify_key_changes,
    previous_window,
)
from herdpulse.engine.metrics_calculator import calculate_breeding_metrics
from herdpulse.engine.trend_analyzer import TrendAnalyzer, resolve_month_range
from herdpulse.models.errors import InfraError, KpiError, ValidationError
from herdpulse.models.events import as_utc, utc_now
from herdpulse.models.metrics import (
    BreedingKpiDelta,
    BreedingKpiReport,
    BreedingMetricsReport,
    DateRange,
    DeltaSummary,
    KpiSummary,
    MonthPeriod,
)
from herdpulse.models.trends import TrendAnalysis
from herdpulse.utils.result import Err, Ok, Result

from .kpi_repository import KpiRepository


class BreedingKpiService:
    """
    Orchestrates repository reads and engine calculations for one request.

    Args:
        repository: Event Store access wrapped as results
        settings: Tunables (default windows, trend thresholds)
        clock: Source of "now"; injectable for deterministic tests
    """

    def __init__(
        self,
        repository: KpiRepository,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.repository = repository
        self.settings = settings or get_settings()
        self.clock = clock
        self.trend_analyzer = TrendAnalyzer(source=repository)
        self.logger = structlog.get_logger()

    def _resolve_window(
        self, from_date: Optional[datetime], to_date: Optional[datetime]
    ) -> Result[DateRange, ValidationError]:
        """Default the window bounds; naive bounds are taken to be UTC."""
        to_date = as_utc(to_date) or self.clock()
        from_date = as_utc(from_date) or to_date - timedelta(
            days=self.settings.default_window_days
        )
        if from_date > to_date:
            return Err(
                ValidationError(
                    message="from_date must be before or equal to to_date",
                    field="from_date",
                )
            )
        return Ok(DateRange(from_date=from_date, to_date=to_date))

    # =========================================================================
    # Metrics
    # =========================================================================

    async def calculate_breeding_metrics(
        self,
        owner_id: int,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ) -> Result[BreedingMetricsReport, KpiError]:
        """
        Metrics, counts, insights and calculation details for a window.

        Args:
            owner_id: Herd owner
            from_date: Window start (default: ``default_window_days`` before ``to_date``)
            to_date: Window end (default: now)

        Returns:
            Ok(BreedingMetricsReport), or Err(DataInsufficientError) for an
            empty window
        """
        try:
            window = self._resolve_window(from_date, to_date)
            if not window.ok:
                return window

            self.logger.info(
                "breeding_metrics_start", owner_id=owner_id, period=window.value.label()
            )
            events = await asyncio.to_thread(
                self.repository.load_breeding_events, owner_id, window.value
            )
            if not events.ok:
                return events

            report = calculate_breeding_metrics(events.value, window.value)
            if report.ok:
                self.logger.info(
                    "breeding_metrics_complete",
                    owner_id=owner_id,
                    total_events=report.value.counts.total_events,
                    reliability=report.value.calculation_details.reliability.value,
                )
            else:
                self.logger.info(
                    "breeding_metrics_unavailable", owner_id=owner_id, reason=report.error.type
                )
            return report

        except Exception as e:
            self.logger.error("breeding_metrics_failed", owner_id=owner_id, error=str(e), exc_info=True)
            return Err(InfraError(message="Failed to calculate breeding metrics", cause=e))

    async def get_breeding_kpi(
        self,
        owner_id: int,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ) -> Result[BreedingKpiReport, KpiError]:
        """Metrics snapshot; an empty window yields all-null metrics, not an error."""
        try:
            window = self._resolve_window(from_date, to_date)
            if not window.ok:
                return window
            period = window.value

            kpi = await asyncio.to_thread(self.repository.get_period_kpi, owner_id, period)
            if not kpi.ok:
                return kpi

            metrics, c = kpi.value
            report = BreedingKpiReport(
                metrics=metrics,
                counts={
                    "inseminations": c.inseminations,
                    "conceptions": c.conceptions,
                    "calvings": c.calvings,
                    "total_events": c.total_events,
                },
                period={
                    "from": period.from_date.isoformat(),
                    "to": period.to_date.isoformat(),
                },
                summary=KpiSummary(
                    total_events=c.total_events,
                    data_quality=evaluate_data_quality(
                        c.total_events, c.inseminations, c.calvings
                    ),
                    calculated_at=self.clock(),
                ),
            )
            self.logger.info(
                "breeding_kpi_complete",
                owner_id=owner_id,
                total_events=c.total_events,
                data_quality=report.summary.data_quality.value,
            )
            return Ok(report)

        except Exception as e:
            self.logger.error("breeding_kpi_failed", owner_id=owner_id, error=str(e), exc_info=True)
            return Err(InfraError(message="Failed to get breeding KPI", cause=e))

    async def get_breeding_kpi_delta(
        self,
        owner_id: int,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ) -> Result[BreedingKpiDelta, KpiError]:
        """Compare a window with the equal-length window ending at its start."""
        try:
            window = self._resolve_window(from_date, to_date)
            if not window.ok:
                return window
            current = window.value
            prev_from, prev_to = previous_window(current.from_date, current.to_date)
            previous = DateRange(from_date=prev_from, to_date=prev_to)

            current_metrics, previous_metrics = await asyncio.gather(
                asyncio.to_thread(self.repository.calculate_breeding_metrics, owner_id, current),
                asyncio.to_thread(self.repository.calculate_breeding_metrics, owner_id, previous),
            )
            if not current_metrics.ok:
                return current_metrics
            if not previous_metrics.ok:
                return previous_metrics

            deltas = calculate_metric_deltas(current_metrics.value, previous_metrics.value)
            delta = BreedingKpiDelta(
                metrics=deltas,
                period={
                    "from": current.from_date.isoformat(),
                    "to": current.to_date.isoformat(),
                    "previous_from": previous.from_date.isoformat(),
                    "previous_to": previous.to_date.isoformat(),
                },
                summary=DeltaSummary(
                    improvement=determine_improvement(deltas),
                    key_changes=identify_key_changes(deltas),
                    calculated_at=self.clock(),
                ),
            )
            self.logger.info(
                "breeding_kpi_delta_complete",
                owner_id=owner_id,
                improvement=delta.summary.improvement.value,
                key_changes=len(delta.summary.key_changes),
            )
            return Ok(delta)

        except Exception as e:
            self.logger.error("breeding_kpi_delta_failed", owner_id=owner_id, error=str(e), exc_info=True)
            return Err(InfraError(message="Failed to get breeding KPI delta", cause=e))

    # =========================================================================
    # Trends
    # =========================================================================

    async def get_breeding_trends(
        self,
        owner_id: int,
        to_month: Optional[str] = None,
        from_month: Optional[str] = None,
        months: Optional[int] = None,
    ) -> Result[TrendAnalysis, KpiError]:
        """
        Month-over-month trend analysis.

        Args:
            owner_id: Herd owner
            to_month: Last month ``YYYY-MM`` (default: current UTC month)
            from_month: First month ``YYYY-MM`` (default: ``months`` back from ``to_month``)
            months: Window length when ``from_month`` is omitted (default 12)

        Returns:
            Ok(TrendAnalysis), Err(ValidationError) for a malformed month or
            count, Err(PeriodError) when the range is reversed
        """
        try:
            bounds = resolve_month_range(
                to_month=to_month,
                from_month=from_month,
                months=months,
                current=MonthPeriod.containing(self.clock()),
                default_months=self.settings.default_trend_months,
            )
            if not bounds.ok:
                return bounds
            start, end = bounds.value

            self.logger.info(
                "breeding_trends_start", owner_id=owner_id, start=start.label(), end=end.label()
            )
            return await self.trend_analyzer.analyze(
                owner_id,
                start,
                end,
                min_data_points=self.settings.trend_min_data_points,
            )

        except Exception as e:
            self.logger.error("breeding_trends_failed", owner_id=owner_id, error=str(e), exc_info=True)
            return Err(InfraError(message="Failed to get breeding trends", cause=e))
