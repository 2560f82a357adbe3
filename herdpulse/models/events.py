"""
Breeding event models.

``RawBreedingEvent`` is the record shape handed back by the event store;
``BreedingEvent`` is the canonical, validated value produced by the
normalizer and consumed by the correlator. Cattle and breeding-status
records describe the herd the alert rules run over.
"""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from .enums import BreedingEventType, CattleStatus


def utc_now() -> datetime:
    """Current instant as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Aware UTC datetime; naive values are taken to be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class RawBreedingEvent(BaseModel):
    """
    Breeding event exactly as returned by ``find_events_for_breeding_kpi``.

    Attributes:
        cattle_id: Animal the event belongs to
        event_type: Event kind as stored (not yet validated)
        event_datetime: ISO-8601 timestamp string
        metadata: Free-form payload, passed through untouched
    """

    model_config = ConfigDict(extra="ignore")

    cattle_id: Optional[int] = Field(default=None, description="Animal id")
    event_type: Optional[str] = Field(default=None, description="Raw event type string")
    event_datetime: Optional[str] = Field(default=None, description="ISO-8601 timestamp")
    metadata: Optional[dict[str, Any]] = Field(default=None, description="Opaque metadata")


class BreedingEvent(BaseModel):
    """
    Canonical breeding event.

    Invariants (enforced by the normalizer): ``event_type`` is one of the
    four breeding kinds and ``event_datetime`` is a UTC instant no later
    than now and no earlier than 30 years ago.
    """

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Synthetic identifier for this event instance",
    )
    cattle_id: int = Field(description="Animal the event belongs to")
    event_type: BreedingEventType = Field(description="Typed event kind")
    event_datetime: datetime = Field(description="When the event happened (UTC)")
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Opaque metadata, never inspected"
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class CattleRecord(BaseModel):
    """An animal in an owner's herd, with its display fields and status."""

    cattle_id: int
    owner_id: int
    name: Optional[str] = None
    ear_tag_number: Optional[str] = None
    status: Optional[CattleStatus] = None


class BreedingStatusRecord(BaseModel):
    """Per-animal breeding-status snapshot."""

    cattle_id: int
    expected_calving_date: Optional[datetime] = None
