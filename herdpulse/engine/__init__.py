"""
Breeding analytics engine core components.

This package turns an owner's raw breeding event log into KPI metrics,
month-over-month trends and ranked alerts:

- Normalization: raw event-store records → canonical BreedingEvents
- Correlation: per-animal grouping, days-open pairing, calving intervals
- Metrics: conception rate, days open, calving interval, AI per conception
- Period metrics: the lenient per-window variant behind snapshots and trends
- Trends: monthly fan-out, 5% stability threshold, overall direction
- Alerts: four temporal rules, severity ranking, fixed result cap
- Insights: natural-language guidance from KPI thresholds

Engine functions never raise across their boundary for domain failures;
they return ``Ok`` / ``Err`` results (see ``herdpulse.utils.result``).
"""

__version__ = "1.0.0"

__all__ = [
    "AlertRuleEvaluator",
    "TrendAnalyzer",
    "calculate_breeding_metrics",
    "calculate_period_metrics",
    "correlate_events",
    "normalize_events",
]

from herdpulse.engine.alert_evaluator import AlertRuleEvaluator
from herdpulse.engine.correlator import correlate_events
from herdpulse.engine.metrics_calculator import calculate_breeding_metrics
from herdpulse.engine.normalizer import normalize_events
from herdpulse.engine.period_metrics import calculate_period_metrics
from herdpulse.engine.trend_analyzer import TrendAnalyzer
