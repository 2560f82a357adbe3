"""
Derived alert models.

Alerts are not stored: every request re-runs the four rule queries and
derives a fresh, ranked list.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import AlertType, Severity


class AlertRuleRow(BaseModel):
    """One row returned by an alert rule query."""

    model_config = ConfigDict(extra="ignore")

    cattle_id: int
    cattle_name: Optional[str] = None
    cattle_ear_tag_number: Optional[str] = None
    due_at: Optional[datetime] = Field(
        default=None, description="Triggering date: last calving, expected calving or last estrus"
    )


class DerivedAlert(BaseModel):
    """
    An actionable alert for one (animal, rule) pair.

    Attributes:
        alert_id: Deterministic id ``"<ALERT_TYPE>:<cattle_id>"``
        type: Rule that fired
        severity: Fixed per rule
        cattle_id: Animal the alert is about
        cattle_name: Display name, if any
        cattle_ear_tag_number: Ear tag, if any
        due_at: Triggering date, if any
        message: Fixed human message per rule
    """

    model_config = ConfigDict(frozen=True)

    alert_id: str
    type: AlertType
    severity: Severity
    cattle_id: int
    cattle_name: Optional[str] = None
    cattle_ear_tag_number: Optional[str] = None
    due_at: Optional[datetime] = None
    message: str


class AlertSummary(BaseModel):
    high: int = 0
    medium: int = 0
    low: int = 0
    urgent: int = Field(default=0, description="Alerts needing immediate action (high severity)")


class AlertsResult(BaseModel):
    """
    Result of ``get_alerts``.

    ``results`` is pre-sorted and capped; ``total`` and ``summary`` describe
    every alert that fired, before the cap.
    """

    results: list[DerivedAlert] = Field(default_factory=list)
    total: int = 0
    summary: AlertSummary = Field(default_factory=AlertSummary)
