"""
Alert Rule Evaluator — four fixed temporal rules over an owner's herd.

Each rule is a read-only query returning ``AlertRuleRow`` rows as of a
reference instant. The four queries run concurrently; sorting and capping
happen only after all of them have returned. A failing query fails the
whole evaluation: partial alert lists are never returned.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Protocol

import structlog

from herdpulse.models.alerts import AlertRuleRow, AlertsResult, AlertSummary, DerivedAlert
from herdpulse.models.enums import AlertType, Severity

OPEN_DAYS_THRESHOLD_DAYS = 60
CALVING_WINDOW_DAYS = 60
ESTRUS_THRESHOLD_DAYS = 20
MAX_ALERTS = 50


class AlertRuleSource(Protocol):
    """The four rule queries, each evaluated as of ``now``."""

    def find_open_days_over60_no_ai(self, owner_id: int, now: datetime) -> list[AlertRuleRow]: ...

    def find_calving_within60(self, owner_id: int, now: datetime) -> list[AlertRuleRow]: ...

    def find_calving_overdue(self, owner_id: int, now: datetime) -> list[AlertRuleRow]: ...

    def find_estrus_over20_not_pregnant(
        self, owner_id: int, now: datetime
    ) -> list[AlertRuleRow]: ...


@dataclass(frozen=True)
class AlertRule:
    type: AlertType
    severity: Severity
    message: str
    query: Callable[[AlertRuleSource], Callable[[int, datetime], list[AlertRuleRow]]]


ALERT_RULES: tuple[AlertRule, ...] = (
    AlertRule(
        type=AlertType.OPEN_DAYS_OVER60_NO_AI,
        severity=Severity.MEDIUM,
        message="60+ days since last calving with no insemination",
        query=lambda source: source.find_open_days_over60_no_ai,
    ),
    AlertRule(
        type=AlertType.CALVING_WITHIN_60,
        severity=Severity.MEDIUM,
        message="Calving expected within 60 days (increase feed)",
        query=lambda source: source.find_calving_within60,
    ),
    AlertRule(
        type=AlertType.CALVING_OVERDUE,
        severity=Severity.HIGH,
        message="Expected calving date has passed",
        query=lambda source: source.find_calving_overdue,
    ),
    AlertRule(
        type=AlertType.ESTRUS_OVER20_NOT_PREGNANT,
        severity=Severity.LOW,
        message="20 days since estrus (check for return to heat)",
        query=lambda source: source.find_estrus_over20_not_pregnant,
    ),
)


def create_alert(rule: AlertRule, row: AlertRuleRow) -> DerivedAlert:
    return DerivedAlert(
        alert_id=f"{rule.type.value}:{row.cattle_id}",
        type=rule.type,
        severity=rule.severity,
        cattle_id=row.cattle_id,
        cattle_name=row.cattle_name,
        cattle_ear_tag_number=row.cattle_ear_tag_number,
        due_at=row.due_at,
        message=rule.message,
    )


def _sort_key(alert: DerivedAlert) -> tuple:
    # severity descending, then due_at ascending with missing dates last
    if alert.due_at is None:
        return (-alert.severity.rank, 1, 0.0)
    return (-alert.severity.rank, 0, alert.due_at.timestamp())


def sort_alerts(alerts: Iterable[DerivedAlert]) -> list[DerivedAlert]:
    """Stable sort by severity, then due date; undated alerts go last within a severity."""
    return sorted(alerts, key=_sort_key)


def summarize_alerts(alerts: Iterable[DerivedAlert]) -> AlertSummary:
    counts = {Severity.HIGH: 0, Severity.MEDIUM: 0, Severity.LOW: 0}
    for alert in alerts:
        counts[alert.severity] += 1
    return AlertSummary(
        high=counts[Severity.HIGH],
        medium=counts[Severity.MEDIUM],
        low=counts[Severity.LOW],
        urgent=counts[Severity.HIGH],
    )


def build_alerts_result(
    rows_per_rule: Iterable[tuple[AlertRule, list[AlertRuleRow]]],
    limit: int = MAX_ALERTS,
) -> AlertsResult:
    """Map rule rows to alerts, rank them, and keep the first ``limit``."""
    alerts = [create_alert(rule, row) for rule, rows in rows_per_rule for row in rows]
    ranked = sort_alerts(alerts)
    return AlertsResult(
        results=ranked[:limit],
        total=len(ranked),
        summary=summarize_alerts(ranked),
    )


class AlertRuleEvaluator:
    """
    Evaluates every alert rule for one owner as of a reference instant.

    Exceptions raised by the rule source propagate unchanged; callers
    decide how to classify them.
    """

    def __init__(self, source: AlertRuleSource, limit: int = MAX_ALERTS):
        self.source = source
        self.limit = limit
        self.logger = structlog.get_logger()

    async def evaluate(self, owner_id: int, now: datetime) -> AlertsResult:
        rows = await asyncio.gather(
            *(
                asyncio.to_thread(rule.query(self.source), owner_id, now)
                for rule in ALERT_RULES
            )
        )
        result = build_alerts_result(zip(ALERT_RULES, rows), limit=self.limit)

        self.logger.info(
            "alerts_evaluated",
            owner_id=owner_id,
            total=result.total,
            returned=len(result.results),
            high=result.summary.high,
            medium=result.summary.medium,
            low=result.summary.low,
        )
        return result
