"""
Pydantic v2 data models for the breeding analytics engine.

Model Organization:
    - enums: Closed enumerations (event kinds, alert kinds, trend directions)
    - errors: Error kinds returned inside ``Err`` results
    - events: Raw and canonical breeding events, cattle and status records
    - metrics: KPI values, counts, periods and report envelopes
    - trends: Trend points, deltas and overall trend analysis
    - alerts: Alert rule rows and derived alerts

Usage:
    >>> from herdpulse.models import BreedingEvent, BreedingEventType
    >>> event = BreedingEvent(
    ...     cattle_id=101,
    ...     event_type=BreedingEventType.CALVING,
    ...     event_datetime=datetime(2025, 3, 1, tzinfo=timezone.utc),
    ... )
"""

from .alerts import AlertRuleRow, AlertsResult, AlertSummary, DerivedAlert
from .enums import (
    AlertType,
    BreedingEventType,
    CattleStatus,
    Confidence,
    ImprovementDirection,
    MetricName,
    OverallTrendDirection,
    Severity,
    TrendDirection,
)
from .errors import (
    CalculationError,
    DataInsufficientError,
    InfraError,
    KpiError,
    MetricError,
    PeriodError,
    ValidationError,
)
from .events import (
    BreedingEvent,
    BreedingStatusRecord,
    CattleRecord,
    RawBreedingEvent,
    as_utc,
    utc_now,
)
from .metrics import (
    BreedingEventCounts,
    BreedingKpiDelta,
    BreedingKpiReport,
    BreedingMetrics,
    BreedingMetricsReport,
    CalculationDetails,
    DateRange,
    MetricDeltas,
    MetricValue,
    MonthPeriod,
    month_range,
)
from .trends import MetricChanges, OverallTrend, TrendAnalysis, TrendDelta, TrendPoint

__all__ = [
    # Enumerations
    "AlertType",
    "BreedingEventType",
    "CattleStatus",
    "Confidence",
    "ImprovementDirection",
    "MetricName",
    "OverallTrendDirection",
    "Severity",
    "TrendDirection",
    # Errors
    "CalculationError",
    "DataInsufficientError",
    "InfraError",
    "KpiError",
    "MetricError",
    "PeriodError",
    "ValidationError",
    # Events
    "BreedingEvent",
    "BreedingStatusRecord",
    "CattleRecord",
    "RawBreedingEvent",
    "as_utc",
    "utc_now",
    # Metrics
    "BreedingEventCounts",
    "BreedingKpiDelta",
    "BreedingKpiReport",
    "BreedingMetrics",
    "BreedingMetricsReport",
    "CalculationDetails",
    "DateRange",
    "MetricDeltas",
    "MetricValue",
    "MonthPeriod",
    "month_range",
    # Trends
    "MetricChanges",
    "OverallTrend",
    "TrendAnalysis",
    "TrendDelta",
    "TrendPoint",
    # Alerts
    "AlertRuleRow",
    "AlertsResult",
    "AlertSummary",
    "DerivedAlert",
]
