"""
Metrics Calculator — counts and paired data to validated BreedingMetrics.

Formulas:
    conception rate     = conceptions / inseminations * 100   (inseminations > 0)
    average days open   = mean(days-open pairs)               (pairs > 0)
    calving interval    = mean(consecutive calving gaps)      (calvings > 1)
    AI per conception   = inseminations / conceptions         (conceptions > 0)

A metric whose precondition fails is ``None``. Building the aggregate
short-circuits on the first metric that fails its own bounds.
"""

import math
from typing import Iterable, Optional, Union

import structlog

from herdpulse.models.enums import MetricName
from herdpulse.models.errors import (
    REQUIRED_BREEDING_DATA,
    CalculationError,
    DataInsufficientError,
    MetricError,
    ValidationError,
)
from herdpulse.models.events import BreedingEvent
from herdpulse.models.metrics import (
    BreedingMetrics,
    BreedingMetricsReport,
    CalculationDetails,
    DateRange,
    MetricValue,
)
from herdpulse.utils.result import Err, Ok, Result

from .correlator import CorrelationResult, correlate_events
from .insights import evaluate_reliability, generate_metric_insights

logger = structlog.get_logger()

UNIT_PERCENT = "%"
UNIT_DAYS = "days"
UNIT_AI = "AI"


def round_metric_value(value: float, decimals: int = 1) -> float:
    """Round half away from zero for non-negative values (2.25 -> 2.3, not 2.2)."""
    factor = 10**decimals
    return math.floor(value * factor + 0.5) / factor


def is_valid_metric_value(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value) and value >= 0


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _display(value: float, unit: str) -> str:
    if unit == UNIT_PERCENT:
        return f"{_format_number(value)}%"
    return f"{_format_number(value)} {unit}"


def _metric(value: float, unit: str) -> MetricValue:
    return MetricValue(value=value, unit=unit, display_value=_display(value, unit))


def create_conception_rate(value: float) -> Result[MetricValue, ValidationError]:
    if not is_valid_metric_value(value):
        return Err(
            ValidationError(
                message="Conception rate must be a valid positive number",
                field=MetricName.CONCEPTION_RATE.value,
            )
        )
    if value > 100:
        return Err(
            ValidationError(
                message="Conception rate cannot exceed 100%",
                field=MetricName.CONCEPTION_RATE.value,
            )
        )
    return Ok(_metric(round_metric_value(value, 1), UNIT_PERCENT))


def create_average_days_open(value: float) -> Result[MetricValue, ValidationError]:
    if not is_valid_metric_value(value):
        return Err(
            ValidationError(
                message="Average days open must be a valid positive number",
                field=MetricName.AVERAGE_DAYS_OPEN.value,
            )
        )
    return Ok(_metric(round_metric_value(value, 0), UNIT_DAYS))


def create_average_calving_interval(value: float) -> Result[MetricValue, ValidationError]:
    if not is_valid_metric_value(value):
        return Err(
            ValidationError(
                message="Average calving interval must be a valid positive number",
                field=MetricName.AVERAGE_CALVING_INTERVAL.value,
            )
        )
    return Ok(_metric(round_metric_value(value, 0), UNIT_DAYS))


def create_ai_per_conception(value: float) -> Result[MetricValue, ValidationError]:
    if not is_valid_metric_value(value):
        return Err(
            ValidationError(
                message="AI per conception must be a valid positive number",
                field=MetricName.AI_PER_CONCEPTION.value,
            )
        )
    if value < 1:
        return Err(
            ValidationError(
                message="AI per conception must be at least 1",
                field=MetricName.AI_PER_CONCEPTION.value,
            )
        )
    return Ok(_metric(round_metric_value(value, 1), UNIT_AI))


_BUILDERS = (
    (MetricName.CONCEPTION_RATE, create_conception_rate),
    (MetricName.AVERAGE_DAYS_OPEN, create_average_days_open),
    (MetricName.AVERAGE_CALVING_INTERVAL, create_average_calving_interval),
    (MetricName.AI_PER_CONCEPTION, create_ai_per_conception),
)


def create_breeding_metrics(
    conception_rate: Optional[float],
    average_days_open: Optional[float],
    average_calving_interval: Optional[float],
    ai_per_conception: Optional[float],
) -> Result[BreedingMetrics, ValidationError]:
    """
    Build the aggregate from raw (unrounded) values.

    ``None`` inputs stay ``None``. The first present value that fails its
    builder fails the whole aggregate with that builder's error.
    """
    raw = dict(
        zip(
            (name for name, _ in _BUILDERS),
            (conception_rate, average_days_open, average_calving_interval, ai_per_conception),
        )
    )
    built: dict[str, Optional[MetricValue]] = {}
    for name, builder in _BUILDERS:
        value = raw[name]
        if value is None:
            built[name.value] = None
            continue
        result = builder(value)
        if not result.ok:
            return result
        built[name.value] = result.value
    return Ok(BreedingMetrics(**built))


def validate_breeding_metrics(metrics: BreedingMetrics) -> Result[BreedingMetrics, MetricError]:
    """Re-check a built aggregate against every metric's bounds."""
    bounds = {
        MetricName.CONCEPTION_RATE: lambda v: 0 <= v <= 100,
        MetricName.AVERAGE_DAYS_OPEN: lambda v: v >= 0,
        MetricName.AVERAGE_CALVING_INTERVAL: lambda v: v >= 0,
        MetricName.AI_PER_CONCEPTION: lambda v: v >= 1,
    }
    for name, check in bounds.items():
        value = metrics.value_of(name.value)
        if value is not None and not (math.isfinite(value) and check(value)):
            return Err(
                MetricError(
                    message=f"Invalid {name.label} value: {value}",
                    metric_type=name.value,
                    value=value,
                )
            )
    return Ok(metrics)


def _mean(values: list[int]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def calculate_metrics_from_correlation(
    correlation: CorrelationResult,
) -> Result[BreedingMetrics, Union[ValidationError, CalculationError, MetricError]]:
    """Apply the four formulas to a correlated window and validate the result."""
    counts = correlation.counts

    negative = [v for v in correlation.days_open_values if v < 0] or [
        v for v in correlation.calving_intervals if v < 0
    ]
    if negative:
        return Err(
            CalculationError(
                message="Negative day difference in correlated events",
                cause=f"value={negative[0]}",
            )
        )

    conception_rate = (
        counts.conceptions / counts.inseminations * 100 if counts.inseminations > 0 else None
    )
    average_days_open = (
        _mean(correlation.days_open_values) if counts.pairs_for_days_open > 0 else None
    )
    average_calving_interval = (
        _mean(correlation.calving_intervals) if counts.calvings > 1 else None
    )
    ai_per_conception = (
        counts.inseminations / counts.conceptions if counts.conceptions > 0 else None
    )

    built = create_breeding_metrics(
        conception_rate, average_days_open, average_calving_interval, ai_per_conception
    )
    if not built.ok:
        return built
    return validate_breeding_metrics(built.value)


def calculate_breeding_metrics(
    events: Iterable[BreedingEvent],
    period: DateRange,
) -> Result[
    BreedingMetricsReport,
    Union[DataInsufficientError, ValidationError, CalculationError, MetricError],
]:
    """
    Compute the full metrics report for one window of normalized events.

    Args:
        events: Canonical events inside ``period``
        period: The analysed window, echoed back in the report

    Returns:
        Ok(BreedingMetricsReport), or Err(DataInsufficientError) when the
        window has no events at all
    """
    events = list(events)
    if not events:
        return Err(
            DataInsufficientError(
                message="No breeding events found in the specified period",
                required_data=list(REQUIRED_BREEDING_DATA),
            )
        )

    correlation = correlate_events(events)
    metrics = calculate_metrics_from_correlation(correlation)
    if not metrics.ok:
        return metrics

    logger.debug(
        "breeding_metrics_calculated",
        total_events=correlation.counts.total_events,
        total_cattle=correlation.total_cattle,
    )

    reliability = evaluate_reliability(
        total_events=correlation.counts.total_events,
        total_cattle=correlation.total_cattle,
        calvings=correlation.counts.calvings,
    )
    details = CalculationDetails(
        total_cattle=correlation.total_cattle,
        data_points=correlation.counts.total_events,
        reliability=reliability,
    )

    return Ok(
        BreedingMetricsReport(
            metrics=metrics.value,
            counts=correlation.counts,
            period=period,
            insights=generate_metric_insights(metrics.value, details),
            calculation_details=details,
        )
    )

