"""
Insight Generator — natural-language guidance from KPI thresholds.

Pure functions over already-computed metrics and trend tallies. Wording is
fixed; only the metric names and counts vary.
"""

from typing import Iterable

from herdpulse.models.enums import Confidence, MetricName, OverallTrendDirection
from herdpulse.models.metrics import BreedingMetrics, CalculationDetails

# Conception rate bands (%), best first
CONCEPTION_RATE_EXCELLENT = 80
CONCEPTION_RATE_GOOD = 60
CONCEPTION_RATE_AVERAGE = 40

# Days open bands (days), best first
DAYS_OPEN_EXCELLENT = 85
DAYS_OPEN_GOOD = 120

NO_TREND_CHANGE_INSIGHT = "No trend change detected"


def evaluate_reliability(total_events: int, total_cattle: int, calvings: int) -> Confidence:
    """Reliability of a metrics calculation from the volume of data behind it."""
    if total_events >= 100 and total_cattle >= 20 and calvings >= 10:
        return Confidence.HIGH
    if total_events >= 30 and total_cattle >= 5 and calvings >= 3:
        return Confidence.MEDIUM
    return Confidence.LOW


def evaluate_data_quality(total_events: int, inseminations: int, calvings: int) -> Confidence:
    """Data quality label attached to a KPI snapshot."""
    if total_events >= 50 and inseminations >= 10 and calvings >= 5:
        return Confidence.HIGH
    if total_events >= 20 and inseminations >= 5:
        return Confidence.MEDIUM
    return Confidence.LOW


def generate_metric_insights(
    metrics: BreedingMetrics, details: CalculationDetails
) -> list[str]:
    insights = []

    if metrics.conception_rate is not None:
        rate = metrics.conception_rate.value
        if rate >= CONCEPTION_RATE_EXCELLENT:
            insights.append("Conception rate is excellent (80% or higher)")
        elif rate >= CONCEPTION_RATE_GOOD:
            insights.append("Conception rate is good (60% or higher)")
        elif rate >= CONCEPTION_RATE_AVERAGE:
            insights.append("Conception rate is average (40% or higher)")
        else:
            insights.append("Conception rate needs improvement (below 40%)")

    if metrics.average_days_open is not None:
        days = metrics.average_days_open.value
        if days <= DAYS_OPEN_EXCELLENT:
            insights.append("Days open is excellent (85 days or fewer)")
        elif days <= DAYS_OPEN_GOOD:
            insights.append("Days open is good (120 days or fewer)")
        else:
            insights.append("Days open should be shortened (over 120 days)")

    if details.reliability == Confidence.LOW:
        insights.append("Data volume is low. Recording more events is recommended")

    if not insights:
        insights.append("Not enough data has been accumulated yet")

    return insights


def _unique_labels(metric_names: Iterable[str]) -> str:
    labels = []
    for name in metric_names:
        label = MetricName(name).label
        if label not in labels:
            labels.append(label)
    return ", ".join(labels)


def generate_trend_insights(
    improving: list[str], declining: list[str], stable: list[str]
) -> list[str]:
    """
    One sentence per non-empty bucket.

    Buckets hold one metric field name per classified slot; each metric is
    named once per sentence, in first-seen order.
    """
    insights = []
    if improving:
        insights.append(f"{_unique_labels(improving)} trending upward in performance")
    if declining:
        insights.append(f"{_unique_labels(declining)} trending downward in performance")
    if stable:
        insights.append(f"{_unique_labels(stable)} holding stable")
    if not insights:
        insights.append(NO_TREND_CHANGE_INSIGHT)
    return insights


def generate_recommendations(
    direction: OverallTrendDirection, improving: list[str], declining: list[str]
) -> list[str]:
    if direction == OverallTrendDirection.IMPROVING:
        recommendations = ["Continue current management practices"]
        if improving:
            recommendations.append(
                f"Analyze what is driving the improvement in {_unique_labels(improving)} "
                "and consider applying it elsewhere"
            )
        return recommendations
    if direction == OverallTrendDirection.DECLINING:
        recommendations = ["Review current management practices"]
        if declining:
            recommendations.append(
                f"Identify the causes of the decline in {_unique_labels(declining)} "
                "and take corrective action"
            )
        return recommendations
    if direction == OverallTrendDirection.STABLE:
        return [
            "Maintain the current level of management",
            "Consider new approaches for further improvement",
        ]
    return [
        "Analyze each metric individually",
        "Investigate why some metrics are improving while others are declining",
    ]


def insufficient_data_insight(months_with_data: int, min_data_points: int) -> str:
    return (
        f"Only {months_with_data} of the requested months contain breeding events "
        f"(at least {min_data_points} recommended)"
    )


def generate_trend_summary(
    period_count: int, direction: OverallTrendDirection, confidence: Confidence, key_insights: list[str]
) -> str:
    first_insight = key_insights[0] if key_insights else "Analyzing data"
    return (
        f"{period_count} months analysis: overall {direction.value} trend. "
        f"Confidence: {confidence.value}. {first_insight}"
    )
