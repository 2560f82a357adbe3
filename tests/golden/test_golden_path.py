"""
Golden Path (End-to-End) Tests for the HerdPulse breeding engine.

Each scenario uses a fixed dataset and a fixed reference instant and checks
the exact numbers, orderings and messages a farmer would see.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from herdpulse.engine.alert_evaluator import ALERT_RULES, AlertRuleEvaluator, build_alerts_result
from herdpulse.engine.metrics_calculator import calculate_breeding_metrics
from herdpulse.engine.trend_analyzer import TrendAnalyzer, compare_metric_values
from herdpulse.models.enums import AlertType, BreedingEventType, Confidence, Severity, TrendDirection
from herdpulse.models.metrics import DateRange, MonthPeriod
from herdpulse.services.breeding_kpi import BreedingKpiService
from herdpulse.services.kpi_repository import KpiRepository
from tests.conftest import (
    NOW,
    OWNER_ID,
    MockStorage,
    days_before,
    make_alert_row,
    make_cattle,
    make_event,
)


def _clock():
    return NOW


# ============================================================================
# Scenario 1: Days open after a calving
# ============================================================================


def test_golden_days_open_single_cow(sample_window):
    """
    Cow 101 calves at T, is inseminated at T+70 and T+90.

    Days open is 70, counted to the first insemination after the calving.
    One calving against two inseminations gives a 50% conception rate.
    """
    t = days_before(200)
    events = [
        make_event(101, BreedingEventType.CALVING, at=t),
        make_event(101, BreedingEventType.INSEMINATION, at=t + timedelta(days=70)),
        make_event(101, BreedingEventType.INSEMINATION, at=t + timedelta(days=90)),
    ]

    report = calculate_breeding_metrics(events, sample_window).value

    assert report.metrics.average_days_open.value == 70
    assert report.metrics.average_days_open.display_value == "70 days"
    assert report.metrics.conception_rate.value == 50
    assert report.metrics.conception_rate.display_value == "50%"
    assert report.metrics.ai_per_conception.value == 2
    assert report.metrics.average_calving_interval is None


def test_golden_open_days_alert_fires_at_day_75(duckdb_storage):
    """
    Same cow, inseminated only before the calving: at T+75 the open-days
    alert fires. The earlier insemination belongs to the previous cycle.
    """
    calving_at = days_before(75)
    duckdb_storage.write_cattle([make_cattle(101)])
    duckdb_storage.write_breeding_events(
        [
            make_event(101, BreedingEventType.INSEMINATION, at=calving_at - timedelta(days=300)),
            make_event(101, BreedingEventType.CALVING, at=calving_at),
        ]
    )

    result = asyncio.run(AlertRuleEvaluator(duckdb_storage).evaluate(OWNER_ID, NOW))

    assert len(result.results) == 1
    alert = result.results[0]
    assert alert.type == AlertType.OPEN_DAYS_OVER60_NO_AI
    assert alert.alert_id == "OPEN_DAYS_OVER60_NO_AI:101"
    assert alert.severity == Severity.MEDIUM
    assert alert.due_at == calving_at
    assert alert.message == "60+ days since last calving with no insemination"

    # Not yet at day 59
    early = asyncio.run(
        AlertRuleEvaluator(duckdb_storage).evaluate(OWNER_ID, calving_at + timedelta(days=59))
    )
    assert early.total == 0


# ============================================================================
# Scenario 2: Calving interval
# ============================================================================


def test_golden_calving_interval_average():
    """Calvings 395 and 365 days apart average to 380 days."""
    events = [
        make_event(7, BreedingEventType.CALVING, days_ago=760),
        make_event(7, BreedingEventType.INSEMINATION, days_ago=700),
        make_event(7, BreedingEventType.CALVING, days_ago=365),
        make_event(7, BreedingEventType.INSEMINATION, days_ago=300),
        make_event(7, BreedingEventType.INSEMINATION, days_ago=280),
        make_event(7, BreedingEventType.CALVING, days_ago=0),
    ]
    report = calculate_breeding_metrics(
        events, DateRange(from_date=days_before(800), to_date=NOW)
    ).value

    assert report.metrics.average_calving_interval.value == 380
    assert report.metrics.average_calving_interval.display_value == "380 days"


# ============================================================================
# Scenario 3: Empty window
# ============================================================================


def test_golden_empty_window_reports_required_data():
    """No events in the window: the metrics call fails, the KPI snapshot does not."""
    storage = MockStorage()
    service = BreedingKpiService(KpiRepository(storage, clock=_clock), clock=_clock)

    metrics = asyncio.run(service.calculate_breeding_metrics(OWNER_ID))
    assert not metrics.ok
    assert metrics.error.type == "DataInsufficientError"
    assert metrics.error.message == "No breeding events found in the specified period"
    assert metrics.error.required_data == ["INSEMINATION", "CALVING", "PREGNANCY_CHECK"]

    kpi = asyncio.run(service.get_breeding_kpi(OWNER_ID))
    assert kpi.ok
    assert kpi.value.metrics.conception_rate is None
    assert kpi.value.summary.data_quality == Confidence.LOW


# ============================================================================
# Scenario 4: Trend stability threshold
# ============================================================================


@pytest.mark.parametrize(
    "previous,current,expected",
    [
        (100, 104, TrendDirection.STABLE),
        (100, 106, TrendDirection.DECLINING),
        (100, 94, TrendDirection.IMPROVING),
    ],
)
def test_golden_days_open_stability_threshold(previous, current, expected):
    """Days open 100 -> 104 is within 5%; 100 -> 106 is a decline."""
    assert compare_metric_values(current, previous, higher_is_better=False) == expected


# ============================================================================
# Scenario 5: Alert ordering and cap
# ============================================================================


def test_golden_alert_ordering():
    """high, then medium by due date, then medium without a date, then low."""
    t = NOW
    rules = {rule.type: rule for rule in ALERT_RULES}
    result = build_alerts_result(
        [
            (rules[AlertType.ESTRUS_OVER20_NOT_PREGNANT], [make_alert_row(4, t - timedelta(days=25))]),
            (rules[AlertType.OPEN_DAYS_OVER60_NO_AI], [make_alert_row(3, None)]),
            (rules[AlertType.CALVING_WITHIN_60], [make_alert_row(2, t + timedelta(days=5))]),
            (rules[AlertType.CALVING_OVERDUE], [make_alert_row(1, t - timedelta(days=2))]),
        ]
    )

    assert [(a.severity, a.cattle_id) for a in result.results] == [
        (Severity.HIGH, 1),
        (Severity.MEDIUM, 2),
        (Severity.MEDIUM, 3),
        (Severity.LOW, 4),
    ]
    assert result.summary.urgent == 1


def test_golden_alert_cap():
    """75 alerts fire, 50 are returned, the total still reports 75."""
    storage = MockStorage()
    storage.rule_rows["calving_overdue"] = [make_alert_row(i, days_before(i + 1)) for i in range(25)]
    storage.rule_rows["estrus"] = [make_alert_row(100 + i, days_before(21 + i)) for i in range(50)]

    result = asyncio.run(AlertRuleEvaluator(storage).evaluate(OWNER_ID, NOW))

    assert len(result.results) == 50
    assert result.total == 75
    assert result.summary.high == 25
    assert result.summary.low == 50
    # every high-severity alert survives the cap
    assert sum(1 for a in result.results if a.severity == Severity.HIGH) == 25


# ============================================================================
# Scenario 6: Trend confidence
# ============================================================================


def _steady_herd(months: int):
    """Two inseminations and one calving in each of the trailing months."""
    events = []
    end = MonthPeriod.containing(NOW)
    for offset in range(months):
        month = end.shift(-offset)
        at = datetime(month.year, month.month, 3, 9, 0, tzinfo=timezone.utc)
        events += [
            make_event(10, BreedingEventType.INSEMINATION, at=at),
            make_event(11, BreedingEventType.INSEMINATION, at=at),
            make_event(12, BreedingEventType.CALVING, at=at),
        ]
    return events


@pytest.mark.parametrize("months,expected", [(3, Confidence.LOW), (12, Confidence.HIGH)])
def test_golden_trend_confidence(months, expected):
    """3 months: 3 points + 2 comparisons = low. 12 months: 12 + 11 = high."""
    storage = MockStorage()
    storage.add_events(_steady_herd(months))
    analyzer = TrendAnalyzer(source=KpiRepository(storage, clock=_clock))
    end = MonthPeriod.containing(NOW)

    result = asyncio.run(analyzer.analyze(OWNER_ID, end.shift(-(months - 1)), end))

    assert result.ok
    analysis = result.value
    assert len(analysis.series) == months
    assert analysis.overall_trend.confidence == expected
    assert analysis.overall_trend.direction.value == "stable"
    assert all(p.metrics.conception_rate.value == 50 for p in analysis.series)
