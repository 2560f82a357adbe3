"""
Trend analysis models.

A trend series holds one ``TrendPoint`` and one ``TrendDelta`` per month,
in ascending period order. The first delta has no predecessor and reports
every metric as stable.
"""

from typing import Optional

from pydantic import BaseModel, Field

from .enums import Confidence, OverallTrendDirection, TrendDirection
from .metrics import BreedingEventCounts, BreedingMetrics, DateRange, MonthPeriod


class MetricChanges(BaseModel):
    """Qualitative change of each metric against the previous month."""

    conception_rate: TrendDirection = TrendDirection.STABLE
    average_days_open: TrendDirection = TrendDirection.STABLE
    average_calving_interval: TrendDirection = TrendDirection.STABLE
    ai_per_conception: TrendDirection = TrendDirection.STABLE

    def slots(self) -> list[tuple[str, TrendDirection]]:
        """(metric field name, direction) pairs in fixed metric order."""
        return [
            ("conception_rate", self.conception_rate),
            ("average_days_open", self.average_days_open),
            ("average_calving_interval", self.average_calving_interval),
            ("ai_per_conception", self.ai_per_conception),
        ]


class TrendPoint(BaseModel):
    """Verbatim metrics and counts for one month."""

    period: MonthPeriod
    metrics: BreedingMetrics
    counts: BreedingEventCounts
    period_string: str = Field(description="YYYY-MM")


class TrendDelta(BaseModel):
    """Change of one month against the immediately preceding month."""

    period: MonthPeriod
    previous_period: Optional[MonthPeriod] = Field(
        default=None, description="None for the first month of the series"
    )
    metrics: BreedingMetrics
    period_string: str
    changes: MetricChanges = Field(default_factory=MetricChanges)


class OverallTrend(BaseModel):
    direction: OverallTrendDirection
    confidence: Confidence
    key_insights: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class TrendAnalysis(BaseModel):
    """Result of ``get_breeding_trends``."""

    series: list[TrendPoint]
    deltas: list[TrendDelta]
    overall_trend: OverallTrend
    period_range: DateRange
    summary: str
