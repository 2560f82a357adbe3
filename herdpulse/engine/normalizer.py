"""
Event Normalizer — raw event-store records to canonical BreedingEvents.

Validation happens here and only here: unknown event kinds, unparsable
timestamps and out-of-range dates are rejected before any calculation
runs. A batch is all-or-nothing; the first invalid record fails it.
"""

from datetime import datetime
from typing import Any, Iterable, Optional, Union

import structlog

from herdpulse.models.enums import BreedingEventType
from herdpulse.models.errors import ValidationError
from herdpulse.models.events import BreedingEvent, RawBreedingEvent, as_utc, utc_now
from herdpulse.utils.result import Err, Ok, Result

logger = structlog.get_logger()

MAX_EVENT_AGE_YEARS = 30


def parse_event_datetime(value: Union[str, datetime]) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are taken to be UTC. A trailing ``Z`` is accepted.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    return as_utc(parsed)


def _years_before(instant: datetime, years: int) -> datetime:
    try:
        return instant.replace(year=instant.year - years)
    except ValueError:
        # 29 February in a non-leap target year
        return instant.replace(year=instant.year - years, day=28)


def normalize_event(
    raw: Union[RawBreedingEvent, dict[str, Any]],
    now: Optional[datetime] = None,
    event_id: Optional[str] = None,
) -> Result[BreedingEvent, ValidationError]:
    """
    Convert one raw record into a ``BreedingEvent``.

    Args:
        raw: Event-store record (model or plain dict)
        now: Reference instant for the future / 30-year checks
        event_id: Optional id to assign to the canonical event

    Returns:
        Ok(BreedingEvent) or Err(ValidationError) naming the offending field
    """
    now = now or utc_now()
    if isinstance(raw, dict):
        raw = RawBreedingEvent.model_validate(raw)

    if raw.cattle_id is None:
        return Err(ValidationError(message="Cattle ID is required", field="cattle_id"))

    if not raw.event_type:
        return Err(ValidationError(message="Event type is required", field="event_type"))
    try:
        event_type = BreedingEventType(raw.event_type)
    except ValueError:
        return Err(
            ValidationError(
                message=f"Invalid event type: {raw.event_type}",
                field="event_type",
            )
        )

    if not raw.event_datetime:
        return Err(
            ValidationError(message="Event datetime is required", field="event_datetime")
        )
    try:
        event_datetime = parse_event_datetime(raw.event_datetime)
    except ValueError:
        return Err(
            ValidationError(
                message=f"Invalid event datetime: {raw.event_datetime}",
                field="event_datetime",
            )
        )

    if event_datetime > now:
        return Err(
            ValidationError(
                message="Event datetime cannot be in the future",
                field="event_datetime",
            )
        )
    if event_datetime < _years_before(now, MAX_EVENT_AGE_YEARS):
        return Err(
            ValidationError(
                message=f"Event datetime cannot be more than {MAX_EVENT_AGE_YEARS} years ago",
                field="event_datetime",
            )
        )

    fields: dict[str, Any] = dict(
        cattle_id=raw.cattle_id,
        event_type=event_type,
        event_datetime=event_datetime,
        metadata=dict(raw.metadata or {}),
        created_at=now,
        updated_at=now,
    )
    if event_id is not None:
        fields["event_id"] = event_id
    return Ok(BreedingEvent(**fields))


def normalize_events(
    raws: Iterable[Union[RawBreedingEvent, dict[str, Any]]],
    now: Optional[datetime] = None,
) -> Result[list[BreedingEvent], ValidationError]:
    """
    Normalize a batch of raw records, failing on the first invalid one.

    Events get sequential ids (``kpi-0``, ``kpi-1``, ...) in input order.
    """
    now = now or utc_now()
    events: list[BreedingEvent] = []
    for index, raw in enumerate(raws):
        result = normalize_event(raw, now=now, event_id=f"kpi-{index}")
        if not result.ok:
            logger.warning(
                "breeding_event_rejected",
                index=index,
                field=result.error.field,
                reason=result.error.message,
            )
            return result
        events.append(result.value)
    return Ok(events)
