"""
Enumeration types for the breeding analytics engine.

All enums inherit from str so they serialize to JSON unchanged. Each set is
closed: unknown values are rejected at the normalization boundary rather
than deep inside calculation logic.
"""

from enum import Enum


class BreedingEventType(str, Enum):
    """
    Breeding-related events recorded against an animal.

    Only these four kinds feed the KPI and alert calculations; any other
    event type coming from the event store is rejected by the normalizer.
    """

    INSEMINATION = "INSEMINATION"
    CALVING = "CALVING"
    PREGNANCY_CHECK = "PREGNANCY_CHECK"
    ESTRUS = "ESTRUS"


class CattleStatus(str, Enum):
    """Current health / reproductive status of an animal."""

    HEALTHY = "HEALTHY"
    PREGNANT = "PREGNANT"
    RESTING = "RESTING"
    TREATING = "TREATING"
    SCHEDULED_FOR_SHIPMENT = "SCHEDULED_FOR_SHIPMENT"
    SHIPPED = "SHIPPED"
    DEAD = "DEAD"


class AlertType(str, Enum):
    """
    The four fixed temporal alert rules.

    Values double as the prefix of the synthetic alert id
    (``"<ALERT_TYPE>:<cattle_id>"``).
    """

    OPEN_DAYS_OVER60_NO_AI = "OPEN_DAYS_OVER60_NO_AI"
    CALVING_WITHIN_60 = "CALVING_WITHIN_60"
    CALVING_OVERDUE = "CALVING_OVERDUE"
    ESTRUS_OVER20_NOT_PREGNANT = "ESTRUS_OVER20_NOT_PREGNANT"


class Severity(str, Enum):
    """Alert severity levels, ranked high > medium > low."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Numeric rank used for descending severity ordering."""
        return {"high": 3, "medium": 2, "low": 1}[self.value]


class MetricName(str, Enum):
    """The four core breeding KPIs."""

    CONCEPTION_RATE = "conception_rate"
    AVERAGE_DAYS_OPEN = "average_days_open"
    AVERAGE_CALVING_INTERVAL = "average_calving_interval"
    AI_PER_CONCEPTION = "ai_per_conception"

    @property
    def higher_is_better(self) -> bool:
        """Conception rate improves upward; every other KPI improves downward."""
        return self is MetricName.CONCEPTION_RATE

    @property
    def label(self) -> str:
        """Human-readable metric name used in insights."""
        return _METRIC_LABELS[self]


_METRIC_LABELS = {
    MetricName.CONCEPTION_RATE: "conception rate",
    MetricName.AVERAGE_DAYS_OPEN: "average days open",
    MetricName.AVERAGE_CALVING_INTERVAL: "average calving interval",
    MetricName.AI_PER_CONCEPTION: "AI per conception",
}


class TrendDirection(str, Enum):
    """Qualitative month-over-month change of a single metric."""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


class OverallTrendDirection(str, Enum):
    """Direction summarizing every metric slot across a trend series."""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    MIXED = "mixed"


class Confidence(str, Enum):
    """
    Confidence / reliability levels.

    Used for trend confidence, calculation reliability and KPI data quality.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ImprovementDirection(str, Enum):
    """Summary of a period-over-period KPI delta."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
