"""
Per-Animal Correlator — groups breeding events by animal and derives
days-open pairs and calving intervals.

Within each animal the events are sorted ascending by timestamp before any
pairing runs. Day differences are whole days (floor division), so a gap of
69 days 23 hours counts as 69.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Optional

import structlog

from herdpulse.models.enums import BreedingEventType
from herdpulse.models.events import BreedingEvent
from herdpulse.models.metrics import BreedingEventCounts

logger = structlog.get_logger()

_ONE_DAY = timedelta(days=1)


def whole_days_between(earlier: datetime, later: datetime) -> int:
    """Floor of the day difference ``later - earlier``."""
    return (later - earlier) // _ONE_DAY


@dataclass
class CorrelationResult:
    """
    Output of :func:`correlate_events`.

    Attributes:
        counts: Event tallies for the window
        days_open_values: One entry per (calving, next insemination) pair
        calving_intervals: One entry per consecutive calving pair per animal
        groups: Events per animal id, sorted ascending by timestamp
    """

    counts: BreedingEventCounts
    days_open_values: list[int] = field(default_factory=list)
    calving_intervals: list[int] = field(default_factory=list)
    groups: dict[int, list[BreedingEvent]] = field(default_factory=dict)

    @property
    def total_cattle(self) -> int:
        return len(self.groups)


def group_by_cattle(events: Iterable[BreedingEvent]) -> dict[int, list[BreedingEvent]]:
    """Partition events by animal id, each partition sorted ascending by time."""
    groups: dict[int, list[BreedingEvent]] = defaultdict(list)
    for event in events:
        groups[event.cattle_id].append(event)
    for cattle_events in groups.values():
        cattle_events.sort(key=lambda e: e.event_datetime)
    return dict(groups)


def _next_insemination_after(
    events: list[BreedingEvent], calving: BreedingEvent
) -> Optional[BreedingEvent]:
    for event in events:
        if (
            event.event_type == BreedingEventType.INSEMINATION
            and event.event_datetime > calving.event_datetime
        ):
            return event
    return None


def days_open_pairs(events: list[BreedingEvent]) -> list[int]:
    """
    Days-open values for one animal's sorted events.

    Each calving pairs with the chronologically first insemination strictly
    after it, whether or not that insemination led to a conception.
    """
    values = []
    for event in events:
        if event.event_type != BreedingEventType.CALVING:
            continue
        insemination = _next_insemination_after(events, event)
        if insemination is not None:
            values.append(whole_days_between(event.event_datetime, insemination.event_datetime))
    return values


def calving_intervals(events: list[BreedingEvent]) -> list[int]:
    """Whole-day gaps between consecutive calvings of one animal."""
    calvings = [e.event_datetime for e in events if e.event_type == BreedingEventType.CALVING]
    return [whole_days_between(a, b) for a, b in zip(calvings, calvings[1:])]


def correlate_events(events: Iterable[BreedingEvent]) -> CorrelationResult:
    """
    Group, sort and pair a flat event window.

    Empty input yields all-zero counts and no pairs.
    """
    events = list(events)
    groups = group_by_cattle(events)

    days_open: list[int] = []
    intervals: list[int] = []
    for cattle_events in groups.values():
        days_open.extend(days_open_pairs(cattle_events))
        intervals.extend(calving_intervals(cattle_events))

    inseminations = sum(1 for e in events if e.event_type == BreedingEventType.INSEMINATION)
    calvings = sum(1 for e in events if e.event_type == BreedingEventType.CALVING)

    counts = BreedingEventCounts(
        inseminations=inseminations,
        conceptions=calvings,
        calvings=calvings,
        pairs_for_days_open=len(days_open),
        total_events=len(events),
    )

    logger.debug(
        "breeding_events_correlated",
        total_events=len(events),
        total_cattle=len(groups),
        days_open_pairs=len(days_open),
        calving_intervals=len(intervals),
    )

    return CorrelationResult(
        counts=counts,
        days_open_values=days_open,
        calving_intervals=intervals,
        groups=groups,
    )
