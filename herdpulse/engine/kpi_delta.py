"""
Period-over-period KPI delta.

Compares a window against the equal-length window that ends where it
starts, and summarizes whether the herd got better or worse.
"""

from datetime import datetime
from typing import Optional

from herdpulse.models.enums import ImprovementDirection
from herdpulse.models.metrics import BreedingMetrics, MetricDeltas

from .metrics_calculator import round_metric_value

# Calving interval is judged by magnitude only (days)
CALVING_INTERVAL_STABLE_DELTA = 30
CALVING_INTERVAL_UNSTABLE_DELTA = 60

# Key-change reporting thresholds
CONCEPTION_RATE_KEY_DELTA = 5
DAYS_OPEN_KEY_DELTA = 10
AI_PER_CONCEPTION_KEY_DELTA = 0.5


def previous_window(from_date: datetime, to_date: datetime) -> tuple[datetime, datetime]:
    """Equal-length window ending at ``from_date``."""
    length = to_date - from_date
    return from_date - length, from_date


def calculate_delta(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    if current is None or previous is None:
        return None
    delta = current - previous
    if delta < 0:
        return -round_metric_value(-delta, 1)
    return round_metric_value(delta, 1)


def calculate_metric_deltas(current: BreedingMetrics, previous: BreedingMetrics) -> MetricDeltas:
    return MetricDeltas(
        conception_rate_delta=calculate_delta(
            current.value_of("conception_rate"), previous.value_of("conception_rate")
        ),
        avg_days_open_delta=calculate_delta(
            current.value_of("average_days_open"), previous.value_of("average_days_open")
        ),
        avg_calving_interval_delta=calculate_delta(
            current.value_of("average_calving_interval"),
            previous.value_of("average_calving_interval"),
        ),
        ai_per_conception_delta=calculate_delta(
            current.value_of("ai_per_conception"), previous.value_of("ai_per_conception")
        ),
    )


def determine_improvement(deltas: MetricDeltas) -> ImprovementDirection:
    positive = negative = 0

    if deltas.conception_rate_delta is not None:
        if deltas.conception_rate_delta > 0:
            positive += 1
        elif deltas.conception_rate_delta < 0:
            negative += 1

    if deltas.avg_days_open_delta is not None:
        if deltas.avg_days_open_delta < 0:
            positive += 1
        elif deltas.avg_days_open_delta > 0:
            negative += 1

    if deltas.avg_calving_interval_delta is not None:
        magnitude = abs(deltas.avg_calving_interval_delta)
        if magnitude < CALVING_INTERVAL_STABLE_DELTA:
            positive += 1
        elif magnitude > CALVING_INTERVAL_UNSTABLE_DELTA:
            negative += 1

    if deltas.ai_per_conception_delta is not None:
        if deltas.ai_per_conception_delta < 0:
            positive += 1
        elif deltas.ai_per_conception_delta > 0:
            negative += 1

    if positive > negative:
        return ImprovementDirection.POSITIVE
    if negative > positive:
        return ImprovementDirection.NEGATIVE
    return ImprovementDirection.NEUTRAL


def identify_key_changes(deltas: MetricDeltas) -> list[str]:
    changes = []

    rate = deltas.conception_rate_delta
    if rate is not None and abs(rate) > CONCEPTION_RATE_KEY_DELTA:
        verb = "improved" if rate > 0 else "dropped"
        changes.append(f"Conception rate {verb} ({abs(rate):.1f}%)")

    days = deltas.avg_days_open_delta
    if days is not None and abs(days) > DAYS_OPEN_KEY_DELTA:
        verb = "shortened" if days < 0 else "lengthened"
        changes.append(f"Average days open {verb} ({abs(days):.1f} days)")

    ai = deltas.ai_per_conception_delta
    if ai is not None and abs(ai) > AI_PER_CONCEPTION_KEY_DELTA:
        verb = "decreased" if ai < 0 else "increased"
        changes.append(f"AI per conception {verb} ({abs(ai):.1f} AI)")

    return changes
