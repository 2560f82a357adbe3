"""
Per-period metrics — the lenient calculation behind KPI snapshots, deltas
and monthly trend points.

A single month or window routinely holds calvings whose inseminations fell
in an earlier period. Rather than failing on such partial cycles, this
calculation:

- caps conception rate at 100%
- counts AI per conception per completed cycle (inseminations followed by
  a calving on the same animal), ignoring calvings with no prior AI
- keeps only plausible days-open values (1-364 days) and calving
  intervals (201-499 days)

The strict calculation with full validation lives in ``metrics_calculator``.
"""

from typing import Iterable, Optional

from herdpulse.models.enums import BreedingEventType
from herdpulse.models.errors import ValidationError
from herdpulse.models.events import BreedingEvent
from herdpulse.models.metrics import BreedingMetrics
from herdpulse.utils.result import Ok, Result

from .correlator import calving_intervals, days_open_pairs, group_by_cattle
from .metrics_calculator import create_breeding_metrics, round_metric_value

DAYS_OPEN_RANGE = (1, 364)
CALVING_INTERVAL_RANGE = (201, 499)


def _within(value: int, bounds: tuple[int, int]) -> bool:
    return bounds[0] <= value <= bounds[1]


def _mean(values: list[int]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def ai_counts_per_cycle(events: list[BreedingEvent]) -> list[int]:
    """Inseminations preceding each calving of one animal's sorted events."""
    counts = []
    pending = 0
    for event in events:
        if event.event_type == BreedingEventType.INSEMINATION:
            pending += 1
        elif event.event_type == BreedingEventType.CALVING and pending > 0:
            counts.append(pending)
            pending = 0
    return counts


def calculate_period_metrics(
    events: Iterable[BreedingEvent],
) -> Result[BreedingMetrics, ValidationError]:
    """Metrics for one period; an empty period gives all-null metrics."""
    events = list(events)
    if not events:
        return Ok(BreedingMetrics())

    inseminations = sum(1 for e in events if e.event_type == BreedingEventType.INSEMINATION)
    calvings = sum(1 for e in events if e.event_type == BreedingEventType.CALVING)

    days_open: list[int] = []
    intervals: list[int] = []
    cycles: list[int] = []
    for cattle_events in group_by_cattle(events).values():
        days_open += [d for d in days_open_pairs(cattle_events) if _within(d, DAYS_OPEN_RANGE)]
        intervals += [
            d for d in calving_intervals(cattle_events) if _within(d, CALVING_INTERVAL_RANGE)
        ]
        cycles += ai_counts_per_cycle(cattle_events)

    conception_rate = min(calvings / inseminations * 100, 100.0) if inseminations else None
    ai_per_conception = round_metric_value(_mean(cycles), 1) if cycles else None

    return create_breeding_metrics(
        conception_rate, _mean(days_open), _mean(intervals), ai_per_conception
    )
