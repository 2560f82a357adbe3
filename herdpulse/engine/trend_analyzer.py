"""
Trend Analyzer — month-over-month breeding KPI trends.

Fetches one metrics + counts computation per month (fan-out), then diffs
consecutive months in ascending order (fan-in) and classifies each metric
as improving, declining or stable against a 5% relative-change threshold.

Overall direction tallies every slot of every delta:
    improving > declining -> improving
    declining > improving -> declining
    tie with any stable   -> stable
    otherwise             -> mixed
"""

import asyncio
from typing import Optional, Protocol, Union

import structlog

from herdpulse.models.enums import Confidence, MetricName, OverallTrendDirection, TrendDirection
from herdpulse.models.errors import DataInsufficientError, KpiError, PeriodError, ValidationError
from herdpulse.models.metrics import (
    BreedingEventCounts,
    BreedingMetrics,
    DateRange,
    MonthPeriod,
    month_range,
)
from herdpulse.models.trends import (
    MetricChanges,
    OverallTrend,
    TrendAnalysis,
    TrendDelta,
    TrendPoint,
)
from herdpulse.utils.result import Err, Ok, Result

from .insights import (
    generate_recommendations,
    generate_trend_insights,
    generate_trend_summary,
    insufficient_data_insight,
)

STABILITY_THRESHOLD_PERCENT = 5.0
CONFIDENCE_HIGH_POINTS = 12
CONFIDENCE_MEDIUM_POINTS = 6
MAX_TREND_MONTHS = 120


class PerPeriodMetricsSource(Protocol):
    """Per-month data source the analyzer delegates to."""

    def get_period_kpi(
        self, owner_id: int, period: DateRange
    ) -> Result[tuple[BreedingMetrics, BreedingEventCounts], KpiError]: ...


def compare_metric_values(
    current: Optional[float], previous: Optional[float], higher_is_better: bool
) -> TrendDirection:
    """
    Classify the change of one metric between two months.

    A missing value on either side is stable. A previous value of zero has
    no relative change: equal values are stable, any other move is outside
    the threshold.
    """
    if current is None or previous is None:
        return TrendDirection.STABLE

    change = current - previous
    if previous == 0:
        if change == 0:
            return TrendDirection.STABLE
    elif abs(change / previous) * 100 < STABILITY_THRESHOLD_PERCENT:
        return TrendDirection.STABLE

    if higher_is_better:
        return TrendDirection.IMPROVING if change > 0 else TrendDirection.DECLINING
    return TrendDirection.IMPROVING if change < 0 else TrendDirection.DECLINING


def compare_breeding_metrics(current: BreedingMetrics, previous: BreedingMetrics) -> MetricChanges:
    return MetricChanges(
        **{
            name.value: compare_metric_values(
                current.value_of(name.value),
                previous.value_of(name.value),
                name.higher_is_better,
            )
            for name in MetricName
        }
    )


def create_trend_point(
    period: MonthPeriod, metrics: BreedingMetrics, counts: BreedingEventCounts
) -> TrendPoint:
    return TrendPoint(
        period=period, metrics=metrics, counts=counts, period_string=period.label()
    )


def create_trend_delta(point: TrendPoint, previous: Optional[TrendPoint]) -> TrendDelta:
    """Delta of ``point`` against the preceding point; all-stable when there is none."""
    changes = (
        compare_breeding_metrics(point.metrics, previous.metrics)
        if previous is not None
        else MetricChanges()
    )
    return TrendDelta(
        period=point.period,
        previous_period=previous.period if previous is not None else None,
        metrics=point.metrics,
        period_string=point.period_string,
        changes=changes,
    )


def build_deltas(series: list[TrendPoint]) -> list[TrendDelta]:
    """One delta per point, each against the immediately preceding point."""
    ordered = sorted(series, key=lambda p: p.period.ordinal)
    return [
        create_trend_delta(point, ordered[i - 1] if i > 0 else None)
        for i, point in enumerate(ordered)
    ]


def calculate_confidence(series_count: int, comparable_delta_count: int) -> Confidence:
    total = series_count + comparable_delta_count
    if total >= CONFIDENCE_HIGH_POINTS:
        return Confidence.HIGH
    if total >= CONFIDENCE_MEDIUM_POINTS:
        return Confidence.MEDIUM
    return Confidence.LOW


def _tally(deltas: list[TrendDelta]) -> tuple[list[str], list[str], list[str]]:
    improving, declining, stable = [], [], []
    buckets = {
        TrendDirection.IMPROVING: improving,
        TrendDirection.DECLINING: declining,
        TrendDirection.STABLE: stable,
    }
    for delta in deltas:
        for metric_name, direction in delta.changes.slots():
            buckets[direction].append(metric_name)
    return improving, declining, stable


def calculate_overall_trend(
    series: list[TrendPoint],
    deltas: list[TrendDelta],
    min_data_points: int = 0,
) -> OverallTrend:
    improving, declining, stable = _tally(deltas)

    if len(improving) > len(declining):
        direction = OverallTrendDirection.IMPROVING
    elif len(declining) > len(improving):
        direction = OverallTrendDirection.DECLINING
    elif stable:
        direction = OverallTrendDirection.STABLE
    else:
        direction = OverallTrendDirection.MIXED

    comparable = sum(1 for d in deltas if d.previous_period is not None)
    confidence = calculate_confidence(len(series), comparable)

    key_insights = generate_trend_insights(improving, declining, stable)
    months_with_data = sum(1 for p in series if p.counts.total_events > 0)
    if months_with_data < min_data_points:
        key_insights.append(insufficient_data_insight(months_with_data, min_data_points))

    return OverallTrend(
        direction=direction,
        confidence=confidence,
        key_insights=key_insights,
        recommendations=generate_recommendations(direction, improving, declining),
    )


def create_trend_analysis(
    series: list[TrendPoint],
    deltas: list[TrendDelta],
    min_data_points: int = 0,
) -> Result[TrendAnalysis, DataInsufficientError]:
    """Assemble the final analysis; an empty series is an error."""
    if not series:
        return Err(
            DataInsufficientError(
                message="No data points available for trend analysis",
                required_data=["series"],
            )
        )

    ordered = sorted(series, key=lambda p: p.period.ordinal)
    overall = calculate_overall_trend(ordered, deltas, min_data_points)
    period_range = DateRange(
        from_date=ordered[0].period.start(), to_date=ordered[-1].period.end()
    )
    summary = generate_trend_summary(
        len(ordered), overall.direction, overall.confidence, overall.key_insights
    )
    return Ok(
        TrendAnalysis(
            series=ordered,
            deltas=deltas,
            overall_trend=overall,
            period_range=period_range,
            summary=summary,
        )
    )


class TrendAnalyzer:
    """
    Computes a ``TrendAnalysis`` for an inclusive month range.

    Per-month computations are independent and run concurrently in worker
    threads; deltas are derived only after every month has been fetched.
    """

    def __init__(self, source: PerPeriodMetricsSource):
        self.source = source
        self.logger = structlog.get_logger()

    async def analyze(
        self,
        owner_id: int,
        start: MonthPeriod,
        end: MonthPeriod,
        min_data_points: int = 3,
    ) -> Result[TrendAnalysis, KpiError]:
        """
        Args:
            owner_id: Herd owner
            start: First month (inclusive)
            end: Last month (inclusive)
            min_data_points: Months with events below which an extra
                insight flags the analysis as thin

        Returns:
            Ok(TrendAnalysis), Err(PeriodError) when ``start`` is after
            ``end``, or the first error reported by the data source
        """
        if start.ordinal > end.ordinal:
            return Err(
                PeriodError(
                    message="Start period must be before or equal to end period",
                    invalid_period=f"{start.label()} to {end.label()}",
                )
            )

        months = month_range(start, end)
        results = await asyncio.gather(*(self._fetch_point(owner_id, m) for m in months))

        series = []
        for result in results:
            if not result.ok:
                return result
            series.append(result.value)

        deltas = build_deltas(series)
        analysis = create_trend_analysis(series, deltas, min_data_points)

        if analysis.ok:
            self.logger.info(
                "trend_analysis_complete",
                owner_id=owner_id,
                start=start.label(),
                end=end.label(),
                months=len(series),
                direction=analysis.value.overall_trend.direction.value,
                confidence=analysis.value.overall_trend.confidence.value,
            )
        return analysis

    async def _fetch_point(
        self, owner_id: int, month: MonthPeriod
    ) -> Result[TrendPoint, KpiError]:
        kpi = await asyncio.to_thread(self.source.get_period_kpi, owner_id, month.to_date_range())
        if not kpi.ok:
            return kpi
        metrics, counts = kpi.value
        return Ok(create_trend_point(month, metrics, counts))


def resolve_month_range(
    to_month: Optional[str],
    from_month: Optional[str],
    months: Optional[int],
    current: MonthPeriod,
    default_months: int = 12,
) -> Result[tuple[MonthPeriod, MonthPeriod], Union[ValidationError, PeriodError]]:
    """
    Turn optional ``YYYY-MM`` bounds and a month count into (start, end).

    ``end`` defaults to ``current``; ``start`` defaults to ``months`` months
    ending at ``end`` inclusive.
    """
    if months is not None and months < 1:
        return Err(ValidationError(message="months must be at least 1", field="months"))

    try:
        end = MonthPeriod.parse(to_month) if to_month else current
        if from_month:
            start = MonthPeriod.parse(from_month)
        else:
            start = end.shift(-((months or default_months) - 1))
    except ValueError:
        return Err(ValidationError(message="Invalid period format", field="period"))

    if start.ordinal > end.ordinal:
        return Err(
            PeriodError(
                message="Start period must be before or equal to end period",
                invalid_period=f"{start.label()} to {end.label()}",
            )
        )
    if end.ordinal - start.ordinal + 1 > MAX_TREND_MONTHS:
        return Err(
            ValidationError(
                message=f"Trend window cannot exceed {MAX_TREND_MONTHS} months",
                field="months",
            )
        )
    return Ok((start, end))
