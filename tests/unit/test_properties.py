"""
Property-based tests using Hypothesis for the HerdPulse engine.

These tests check bounds and ordering invariants of the metric builders,
the correlator and the alert ranking across generated inputs.
"""

from datetime import timedelta

import hypothesis.strategies as st
from hypothesis import HealthCheck, given, settings

from herdpulse.engine.alert_evaluator import ALERT_RULES, build_alerts_result, create_alert, sort_alerts
from herdpulse.engine.correlator import correlate_events
from herdpulse.engine.metrics_calculator import (
    calculate_breeding_metrics,
    create_breeding_metrics,
    round_metric_value,
)
from herdpulse.engine.normalizer import normalize_events
from herdpulse.models.enums import BreedingEventType
from herdpulse.models.metrics import DateRange
from tests.conftest import NOW, days_before, make_alert_row, make_event

_WINDOW = DateRange(from_date=days_before(3650), to_date=NOW)

event_strategy = st.builds(
    lambda cattle_id, event_type, days_ago: make_event(cattle_id, event_type, days_ago=days_ago),
    cattle_id=st.integers(min_value=1, max_value=8),
    event_type=st.sampled_from(list(BreedingEventType)),
    days_ago=st.integers(min_value=0, max_value=3000),
)

alert_strategy = st.builds(
    lambda rule_index, cattle_id, due_offset: create_alert(
        ALERT_RULES[rule_index],
        make_alert_row(
            cattle_id, None if due_offset is None else NOW + timedelta(days=due_offset)
        ),
    ),
    rule_index=st.integers(min_value=0, max_value=len(ALERT_RULES) - 1),
    cattle_id=st.integers(min_value=1, max_value=500),
    due_offset=st.one_of(st.none(), st.integers(min_value=-400, max_value=400)),
)


# =============================================================================
# Metric Properties
# =============================================================================


@given(
    value=st.floats(min_value=0, max_value=10_000, allow_nan=False, allow_infinity=False),
    decimals=st.sampled_from([0, 1]),
)
def test_prop_rounding_is_idempotent(value: float, decimals: int):
    """Rounding an already rounded value changes nothing."""
    once = round_metric_value(value, decimals)
    assert round_metric_value(once, decimals) == once
    assert abs(once - value) <= 0.5 / 10**decimals + 1e-9


@given(
    inseminations=st.integers(min_value=1, max_value=500),
    conceptions=st.integers(min_value=0, max_value=500),
)
def test_prop_conception_rate_never_exceeds_100(inseminations: int, conceptions: int):
    """Either the rate is within [0, 100] or building the metrics fails."""
    rate = conceptions / inseminations * 100
    result = create_breeding_metrics(rate, None, None, None)
    if conceptions <= inseminations:
        assert result.ok
        assert 0 <= result.value.conception_rate.value <= 100
    else:
        assert not result.ok
        assert result.error.field == "conception_rate"


@given(events=st.lists(event_strategy, min_size=1, max_size=40))
@settings(max_examples=100, suppress_health_check=[HealthCheck.too_slow])
def test_prop_null_means_precondition_unmet(events):
    """A metric is None exactly when its precondition fails, never a spurious zero."""
    counts = correlate_events(events).counts
    result = calculate_breeding_metrics(events, _WINDOW)
    if not result.ok:
        # More calvings than inseminations pushes the rate above 100%
        assert counts.calvings > counts.inseminations
        return

    metrics = result.value.metrics
    assert (metrics.conception_rate is None) == (counts.inseminations == 0)
    assert (metrics.ai_per_conception is None) == (counts.conceptions == 0)
    assert (metrics.average_days_open is None) == (counts.pairs_for_days_open == 0)
    assert (metrics.average_calving_interval is None) == (
        len(correlate_events(events).calving_intervals) == 0
    )
    if metrics.ai_per_conception is not None:
        assert metrics.ai_per_conception.value >= 1


def _dump(result):
    payload = result.value if result.ok else result.error
    return result.ok, payload.model_dump(mode="json")


@given(events=st.lists(event_strategy, max_size=40))
@settings(max_examples=100, suppress_health_check=[HealthCheck.too_slow])
def test_prop_calculation_is_repeatable(events):
    """The same events give the same report (or error) every time, input untouched."""
    before = list(events)
    first = calculate_breeding_metrics(events, _WINDOW)
    second = calculate_breeding_metrics(events, _WINDOW)

    assert _dump(first) == _dump(second)
    assert events == before


@given(events=st.lists(event_strategy, max_size=40))
@settings(max_examples=100)
def test_prop_correlation_counts_are_consistent(events):
    """Counts are partitions of the input; conceptions always equal calvings."""
    result = correlate_events(events)
    assert result.counts.total_events == len(events)
    assert result.counts.conceptions == result.counts.calvings
    assert result.counts.pairs_for_days_open == len(result.days_open_values)
    assert result.counts.pairs_for_days_open <= result.counts.calvings
    assert all(v >= 0 for v in result.days_open_values + result.calving_intervals)


@given(events=st.lists(event_strategy, max_size=20))
def test_prop_normalization_round_trip_preserves_order(events):
    """Normalizing stored records keeps their order and assigns kpi-N ids."""
    raws = [
        {
            "cattle_id": e.cattle_id,
            "event_type": e.event_type.value,
            "event_datetime": e.event_datetime.isoformat(),
        }
        for e in events
    ]
    result = normalize_events(raws, now=NOW)
    assert result.ok
    assert [e.event_id for e in result.value] == [f"kpi-{i}" for i in range(len(events))]
    assert [e.event_datetime for e in result.value] == [e.event_datetime for e in events]


# =============================================================================
# Alert Properties
# =============================================================================


@given(alerts=st.lists(alert_strategy, max_size=60))
@settings(max_examples=100)
def test_prop_alerts_sorted_by_severity_then_due(alerts):
    """Adjacent alerts never violate severity-desc, due-asc, undated-last."""
    ranked = sort_alerts(alerts)
    for a, b in zip(ranked, ranked[1:]):
        assert a.severity.rank >= b.severity.rank
        if a.severity == b.severity:
            if a.due_at is None:
                assert b.due_at is None
            elif b.due_at is not None:
                assert a.due_at <= b.due_at


@given(row_count=st.integers(min_value=0, max_value=120), limit=st.integers(min_value=1, max_value=60))
def test_prop_cap_and_total(row_count: int, limit: int):
    """At most ``limit`` results; total and summary always cover every alert."""
    rows = [make_alert_row(i, days_before(i)) for i in range(row_count)]
    result = build_alerts_result([(ALERT_RULES[0], rows)], limit=limit)
    assert len(result.results) == min(row_count, limit)
    assert result.total == row_count
    assert result.summary.medium == row_count
