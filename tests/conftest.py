"""
Pytest configuration and shared fixtures for the HerdPulse test suite.

Data factories, an in-memory storage double for unit tests, a DuckDB
storage on a temp file for rule-query tests, and an API client.
"""

import os
import tempfile
import uuid as _uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest
from fastapi.testclient import TestClient

# Set testing environment BEFORE importing app.
# Use a temp path (must not exist: DuckDB creates the file). :memory: gives
# every connection its own database, which breaks the threaded fan-out.
_test_db_path = os.path.join(
    tempfile.gettempdir(), f"herdpulse_test_{_uuid.uuid4().hex[:8]}.duckdb"
)
os.environ["TESTING"] = "true"
os.environ["DB_PATH"] = _test_db_path


# ---------------------------------------------------------------------------
# Model factories
# ---------------------------------------------------------------------------

from herdpulse.engine.metrics_calculator import create_breeding_metrics
from herdpulse.models.alerts import AlertRuleRow
from herdpulse.models.enums import BreedingEventType, CattleStatus
from herdpulse.models.events import (
    BreedingEvent,
    BreedingStatusRecord,
    CattleRecord,
    RawBreedingEvent,
)
from herdpulse.models.metrics import BreedingEventCounts, BreedingMetrics, DateRange
from herdpulse.storage.duckdb_storage import StorageError

# Fixed reference instant shared by unit and golden tests
NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)
OWNER_ID = 1


def days_before(days: float, reference: datetime = NOW) -> datetime:
    return reference - timedelta(days=days)


def make_event(
    cattle_id: int = 101,
    event_type: BreedingEventType = BreedingEventType.INSEMINATION,
    at: Optional[datetime] = None,
    days_ago: Optional[float] = None,
    **overrides,
) -> BreedingEvent:
    """Factory function for canonical BreedingEvent objects."""
    if at is None:
        at = days_before(days_ago if days_ago is not None else 30)
    defaults = dict(
        cattle_id=cattle_id,
        event_type=event_type,
        event_datetime=at,
        metadata={},
        created_at=NOW,
        updated_at=NOW,
    )
    defaults.update(overrides)
    return BreedingEvent(**defaults)


def make_raw_event(
    cattle_id: Optional[int] = 101,
    event_type: Optional[str] = "INSEMINATION",
    event_datetime: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> RawBreedingEvent:
    """Factory function for raw event-store records."""
    if event_datetime is None:
        event_datetime = days_before(30).isoformat()
    return RawBreedingEvent(
        cattle_id=cattle_id,
        event_type=event_type,
        event_datetime=event_datetime,
        metadata=metadata,
    )


def make_metrics(
    conception_rate: Optional[float] = None,
    average_days_open: Optional[float] = None,
    average_calving_interval: Optional[float] = None,
    ai_per_conception: Optional[float] = None,
) -> BreedingMetrics:
    """Build validated metrics; fails the test if the values are out of bounds."""
    result = create_breeding_metrics(
        conception_rate, average_days_open, average_calving_interval, ai_per_conception
    )
    assert result.ok, result
    return result.value


def make_cattle(
    cattle_id: int = 101,
    owner_id: int = OWNER_ID,
    status: Optional[CattleStatus] = CattleStatus.HEALTHY,
    **overrides,
) -> CattleRecord:
    defaults = dict(
        cattle_id=cattle_id,
        owner_id=owner_id,
        name=f"Cow {cattle_id}",
        ear_tag_number=f"JP{cattle_id:05d}",
        status=status,
    )
    defaults.update(overrides)
    return CattleRecord(**defaults)


def make_status(cattle_id: int = 101, expected_calving_date: Optional[datetime] = None):
    return BreedingStatusRecord(cattle_id=cattle_id, expected_calving_date=expected_calving_date)


def make_alert_row(cattle_id: int = 101, due_at: Optional[datetime] = None) -> AlertRuleRow:
    return AlertRuleRow(
        cattle_id=cattle_id,
        cattle_name=f"Cow {cattle_id}",
        cattle_ear_tag_number=f"JP{cattle_id:05d}",
        due_at=due_at,
    )


# ---------------------------------------------------------------------------
# Mock storage: reusable mock for pure unit tests
# ---------------------------------------------------------------------------

class MockStorage:
    """
    In-memory stand-in for StorageBackend.

    Events are returned by window like the real store. Alert rule queries
    return canned rows per rule. Setting ``fail_with`` makes every read
    raise it.
    """

    def __init__(self):
        self._raw_events: list[tuple[int, RawBreedingEvent]] = []
        self.rule_rows: dict[str, list[AlertRuleRow]] = {
            "open_days": [],
            "calving_within": [],
            "calving_overdue": [],
            "estrus": [],
        }
        self.fail_with: Optional[Exception] = None
        self.event_queries: list[tuple[int, Optional[datetime], Optional[datetime]]] = []

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    def add_events(self, events: list[BreedingEvent], owner_id: int = OWNER_ID):
        for e in events:
            self._raw_events.append(
                (
                    owner_id,
                    RawBreedingEvent(
                        cattle_id=e.cattle_id,
                        event_type=e.event_type.value,
                        event_datetime=e.event_datetime.isoformat(),
                        metadata=e.metadata,
                    ),
                )
            )

    def add_raw_events(self, raws: list[RawBreedingEvent], owner_id: int = OWNER_ID):
        self._raw_events.extend((owner_id, r) for r in raws)

    # --- Read methods ---
    def find_events_for_breeding_kpi(self, owner_id, from_date=None, to_date=None):
        self._check()
        self.event_queries.append((owner_id, from_date, to_date))
        results = []
        for owner, raw in self._raw_events:
            if owner != owner_id:
                continue
            try:
                at = datetime.fromisoformat(raw.event_datetime)
            except (TypeError, ValueError):
                results.append(raw)
                continue
            if from_date is not None and at < from_date:
                continue
            if to_date is not None and at > to_date:
                continue
            results.append(raw)
        return results

    def find_open_days_over60_no_ai(self, owner_id, now):
        self._check()
        return list(self.rule_rows["open_days"])

    def find_calving_within60(self, owner_id, now):
        self._check()
        return list(self.rule_rows["calving_within"])

    def find_calving_overdue(self, owner_id, now):
        self._check()
        return list(self.rule_rows["calving_overdue"])

    def find_estrus_over20_not_pregnant(self, owner_id, now):
        self._check()
        return list(self.rule_rows["estrus"])


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_storage():
    """Fresh MockStorage instance."""
    return MockStorage()


@pytest.fixture
def failing_storage():
    """MockStorage whose every read raises StorageError."""
    storage = MockStorage()
    storage.fail_with = StorageError("connection refused")
    return storage


@pytest.fixture
def duckdb_storage(tmp_path):
    """DuckDB storage on a per-test temp file."""
    from herdpulse.storage.duckdb_storage import DuckDBStorage

    return DuckDBStorage(db_path=str(tmp_path / "herd.duckdb"))


@pytest.fixture
def sample_window():
    """Trailing-year window ending at NOW."""
    return DateRange(from_date=days_before(365), to_date=NOW)


@pytest.fixture
def sample_herd_events():
    """
    Three animals over the trailing year.

    Cow 101: calving, inseminations 70 and 90 days later, pregnancy check, calving
    Cow 102: calving, inseminations 90 and 110 days later, calving
    Cow 103: two inseminations, no calving yet

    Expected: 11 events, 3 cattle, 6 inseminations, 4 calvings, days open
    70 and 90, calving intervals 350 and 345.
    """
    return [
        make_event(101, BreedingEventType.CALVING, days_ago=360),
        make_event(101, BreedingEventType.INSEMINATION, days_ago=290),
        make_event(101, BreedingEventType.INSEMINATION, days_ago=270),
        make_event(101, BreedingEventType.PREGNANCY_CHECK, days_ago=250),
        make_event(101, BreedingEventType.CALVING, days_ago=10),
        make_event(102, BreedingEventType.CALVING, days_ago=350),
        make_event(102, BreedingEventType.INSEMINATION, days_ago=260),
        make_event(102, BreedingEventType.INSEMINATION, days_ago=240),
        make_event(102, BreedingEventType.CALVING, days_ago=5),
        make_event(103, BreedingEventType.INSEMINATION, days_ago=100),
        make_event(103, BreedingEventType.INSEMINATION, days_ago=60),
    ]


@pytest.fixture
def empty_counts():
    return BreedingEventCounts()


@pytest.fixture
def client():
    """FastAPI test client for integration tests."""
    from herdpulse.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers():
    """Authenticated request headers for OWNER_ID."""
    from herdpulse.auth.jwt import create_access_token

    return {
        "Authorization": f"Bearer {create_access_token(owner_id=OWNER_ID)}",
        "X-Request-ID": str(_uuid.uuid4()),
    }
