"""
Breeding KPI models.

Metric values are derived on every request and never stored. Each of the
four metrics is independently optional: a missing precondition yields
``None``, never a spurious zero.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .enums import Confidence, ImprovementDirection

_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


class MetricValue(BaseModel):
    """
    A single rounded KPI value.

    Attributes:
        value: Rounded numeric value (always >= 0)
        unit: Unit label ("%", "days", "AI")
        display_value: Value and unit rendered for display
    """

    model_config = ConfigDict(frozen=True)

    value: float = Field(ge=0)
    unit: str
    display_value: str


class BreedingMetrics(BaseModel):
    """The four core breeding KPIs for one window."""

    model_config = ConfigDict(frozen=True)

    conception_rate: Optional[MetricValue] = Field(default=None, description="Percent, 1 decimal")
    average_days_open: Optional[MetricValue] = Field(default=None, description="Days, integer")
    average_calving_interval: Optional[MetricValue] = Field(
        default=None, description="Days, integer"
    )
    ai_per_conception: Optional[MetricValue] = Field(
        default=None, description="Inseminations per conception, 1 decimal"
    )

    def value_of(self, metric_name: str) -> Optional[float]:
        """Raw value of a metric by field name, or None when absent."""
        metric = getattr(self, metric_name)
        return metric.value if metric is not None else None


class BreedingEventCounts(BaseModel):
    """
    Event tallies behind a metrics calculation.

    ``conceptions`` equals ``calvings``: every calving is taken as evidence
    of exactly one conception.
    """

    model_config = ConfigDict(frozen=True)

    inseminations: int = Field(default=0, ge=0)
    conceptions: int = Field(default=0, ge=0)
    calvings: int = Field(default=0, ge=0)
    pairs_for_days_open: int = Field(default=0, ge=0)
    total_events: int = Field(default=0, ge=0)


class DateRange(BaseModel):
    """Closed interval of instants, ``from_date <= to_date``."""

    model_config = ConfigDict(frozen=True)

    from_date: datetime
    to_date: datetime

    @model_validator(mode="after")
    def validate_order(self) -> "DateRange":
        if self.from_date > self.to_date:
            raise ValueError("from_date must be before or equal to to_date")
        return self

    def label(self) -> str:
        return f"{self.from_date.date().isoformat()} - {self.to_date.date().isoformat()}"


class MonthPeriod(BaseModel):
    """Calendar month used as the unit of trend aggregation."""

    model_config = ConfigDict(frozen=True)

    year: int = Field(ge=1)
    month: int = Field(ge=1, le=12)

    @classmethod
    def parse(cls, value: str) -> "MonthPeriod":
        """
        Parse a ``YYYY-MM`` string.

        Raises:
            ValueError: If the format or month number is invalid
        """
        match = _MONTH_PATTERN.match(value or "")
        if not match:
            raise ValueError("Invalid month period format. Expected YYYY-MM")
        year, month = int(match.group(1)), int(match.group(2))
        if not 1 <= month <= 12:
            raise ValueError("Month must be between 1 and 12")
        return cls(year=year, month=month)

    @classmethod
    def containing(cls, instant: datetime) -> "MonthPeriod":
        return cls(year=instant.year, month=instant.month)

    @property
    def ordinal(self) -> int:
        """Months since year 0; consecutive months differ by one."""
        return self.year * 12 + (self.month - 1)

    @classmethod
    def from_ordinal(cls, ordinal: int) -> "MonthPeriod":
        return cls(year=ordinal // 12, month=ordinal % 12 + 1)

    def shift(self, months: int) -> "MonthPeriod":
        return MonthPeriod.from_ordinal(self.ordinal + months)

    def label(self) -> str:
        return f"{self.year}-{self.month:02d}"

    def start(self) -> datetime:
        return datetime(self.year, self.month, 1, tzinfo=timezone.utc)

    def end(self) -> datetime:
        """Last microsecond of the month."""
        return self.shift(1).start() - timedelta(microseconds=1)

    def to_date_range(self) -> DateRange:
        return DateRange(from_date=self.start(), to_date=self.end())


def month_range(start: MonthPeriod, end: MonthPeriod) -> list[MonthPeriod]:
    """Inclusive ascending list of months from ``start`` to ``end``; empty if reversed."""
    return [MonthPeriod.from_ordinal(o) for o in range(start.ordinal, end.ordinal + 1)]


class CalculationDetails(BaseModel):
    """How much data backed a metrics calculation."""

    total_cattle: int = Field(ge=0)
    data_points: int = Field(ge=0)
    reliability: Confidence


class BreedingMetricsReport(BaseModel):
    """Result of ``calculate_breeding_metrics``."""

    metrics: BreedingMetrics
    counts: BreedingEventCounts
    period: DateRange
    insights: list[str] = Field(default_factory=list)
    calculation_details: CalculationDetails


class KpiSummary(BaseModel):
    total_events: int
    data_quality: Confidence
    calculated_at: datetime


class BreedingKpiReport(BaseModel):
    """Result of ``get_breeding_kpi``."""

    metrics: BreedingMetrics
    counts: dict[str, int]
    period: dict[str, str]
    summary: KpiSummary


class MetricDeltas(BaseModel):
    """Current minus previous value per metric; None when either side is absent."""

    conception_rate_delta: Optional[float] = None
    avg_days_open_delta: Optional[float] = None
    avg_calving_interval_delta: Optional[float] = None
    ai_per_conception_delta: Optional[float] = None


class DeltaSummary(BaseModel):
    improvement: ImprovementDirection
    key_changes: list[str] = Field(default_factory=list)
    calculated_at: datetime


class BreedingKpiDelta(BaseModel):
    """Result of ``get_breeding_kpi_delta``."""

    metrics: MetricDeltas
    period: dict[str, str]
    summary: DeltaSummary

    @field_validator("period")
    @classmethod
    def validate_period_keys(cls, v: dict[str, str]) -> dict[str, str]:
        required = {"from", "to", "previous_from", "previous_to"}
        missing = required - set(v)
        if missing:
            raise ValueError(f"period is missing keys: {', '.join(sorted(missing))}")
        return v
