"""
DuckDB storage implementation for the breeding analytics engine.

Provides a local Event Store backed by a DuckDB file with three tables:

- cattle: animals, their owner, display fields and current status
- breeding_events: append-only event log (any farm event kind)
- breeding_status: per-animal expected calving date snapshot

Timestamps are stored as naive UTC ``TIMESTAMP`` values and returned as
timezone-aware UTC datetimes. Alert rules are evaluated in SQL against a
caller-supplied reference instant, so results are reproducible in tests.

Key features:
- Thread-safe access with per-thread connections
- Automatic, idempotent schema creation
- JSON column for opaque event metadata
"""

import json
import os
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

import duckdb
import structlog

from herdpulse.engine.alert_evaluator import (
    CALVING_WINDOW_DAYS,
    ESTRUS_THRESHOLD_DAYS,
    OPEN_DAYS_THRESHOLD_DAYS,
)
from herdpulse.models.alerts import AlertRuleRow
from herdpulse.models.enums import BreedingEventType
from herdpulse.models.events import (
    BreedingEvent,
    BreedingStatusRecord,
    CattleRecord,
    RawBreedingEvent,
    utc_now,
)

from .base import StorageBackend

logger = structlog.get_logger(__name__)

_BREEDING_EVENT_TYPES = [t.value for t in BreedingEventType]
_DEFAULT_WINDOW = timedelta(days=365)


class StorageError(Exception):
    """Base exception for all storage operation failures."""

    pass


def _to_db(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetime -> naive UTC for binding; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _from_db(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc)


class DuckDBStorage(StorageBackend):
    """
    DuckDB implementation of the Event Store.

    Attributes:
        db_path: Path to the DuckDB database file
        _local: Thread-local storage for per-thread connections
        _lock: Thread lock for schema operations
        _initialized: Flag tracking whether schema is initialized
    """

    def __init__(self, db_path: str = "./data/herdpulse.duckdb"):
        """
        Initialize DuckDB storage backend.

        Args:
            db_path: Path to DuckDB database file (default: ./data/herdpulse.duckdb)
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # Thread-local storage for connections
        self._local = threading.local()
        self._lock = threading.Lock()
        self._initialized = False

        logger.info("duckdb_storage_initialized", db_path=str(self.db_path))

        self._initialize_schema()

    @contextmanager
    def _get_connection(self):
        """
        Get a thread-local DuckDB connection.

        Yields:
            DuckDB connection instance

        Raises:
            StorageError: If connection cannot be established
        """
        if not hasattr(self._local, "connection"):
            try:
                self._local.connection = duckdb.connect(str(self.db_path))
                logger.debug("duckdb_connection_created", thread_id=threading.get_ident())
            except Exception as e:
                logger.error("duckdb_connection_failed", error=str(e))
                raise StorageError(f"Failed to connect to DuckDB: {e}") from e

        yield self._local.connection

    def _initialize_schema(self):
        """
        Create tables and indexes. Idempotent.

        Raises:
            StorageError: If schema creation fails
        """
        if self._initialized:
            return

        with self._lock:
            if self._initialized:
                return

            try:
                with self._get_connection() as conn:
                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS cattle (
                            cattle_id BIGINT PRIMARY KEY,
                            owner_id BIGINT NOT NULL,
                            name VARCHAR,
                            ear_tag_number VARCHAR,
                            status VARCHAR
                        )
                    """)

                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS breeding_events (
                            event_id VARCHAR PRIMARY KEY,
                            cattle_id BIGINT NOT NULL,
                            event_type VARCHAR NOT NULL,
                            event_datetime TIMESTAMP NOT NULL,
                            metadata JSON,
                            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
                        )
                    """)

                    conn.execute("""
                        CREATE INDEX IF NOT EXISTS idx_breeding_events_cattle_time
                        ON breeding_events(cattle_id, event_datetime)
                    """)

                    conn.execute("""
                        CREATE TABLE IF NOT EXISTS breeding_status (
                            cattle_id BIGINT PRIMARY KEY,
                            expected_calving_date TIMESTAMP
                        )
                    """)

                self._initialized = True
                logger.info("duckdb_schema_initialized")

            except duckdb.Error as e:
                logger.error("duckdb_schema_initialization_failed", error=str(e))
                raise StorageError(f"Failed to initialize schema: {e}") from e

    def clear_for_testing(self) -> None:
        """
        Delete every row. For testing only: a no-op unless TESTING is set.
        """
        if not os.environ.get("TESTING"):
            return
        with self._get_connection() as conn:
            for table in ("breeding_events", "breeding_status", "cattle"):
                conn.execute(f"DELETE FROM {table}")

    # =========================================================================
    # Breeding Events
    # =========================================================================

    def find_events_for_breeding_kpi(
        self,
        owner_id: int,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ) -> list[RawBreedingEvent]:
        window_to = to_date or utc_now()
        window_from = from_date or (window_to - _DEFAULT_WINDOW)
        placeholders = ", ".join("?" for _ in _BREEDING_EVENT_TYPES)

        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    f"""
                    SELECT e.cattle_id, e.event_type, e.event_datetime, e.metadata
                    FROM breeding_events e
                    JOIN cattle c ON c.cattle_id = e.cattle_id
                    WHERE c.owner_id = ?
                      AND e.event_datetime >= ?
                      AND e.event_datetime <= ?
                      AND e.event_type IN ({placeholders})
                    ORDER BY e.cattle_id, e.event_datetime
                    """,
                    [owner_id, _to_db(window_from), _to_db(window_to), *_BREEDING_EVENT_TYPES],
                ).fetchall()

        except duckdb.Error as e:
            logger.error("find_events_for_breeding_kpi_failed", owner_id=owner_id, error=str(e))
            raise StorageError(f"Failed to find events for breeding KPI: {e}") from e

        events = [
            RawBreedingEvent(
                cattle_id=row[0],
                event_type=row[1],
                event_datetime=_from_db(row[2]).isoformat(),
                metadata=json.loads(row[3]) if row[3] else None,
            )
            for row in rows
        ]
        logger.debug("breeding_kpi_events_read", owner_id=owner_id, count=len(events))
        return events

    # =========================================================================
    # Alert Rule Queries
    # =========================================================================

    def _query_rule_rows(self, rule: str, sql: str, params: list[Any]) -> list[AlertRuleRow]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute(sql, params).fetchall()
        except duckdb.Error as e:
            logger.error("alert_rule_query_failed", rule=rule, error=str(e))
            raise StorageError(f"Failed to evaluate alert rule {rule}: {e}") from e

        return [
            AlertRuleRow(
                cattle_id=row[0],
                cattle_name=row[1],
                cattle_ear_tag_number=row[2],
                due_at=_from_db(row[3]),
            )
            for row in rows
        ]

    def find_open_days_over60_no_ai(self, owner_id: int, now: datetime) -> list[AlertRuleRow]:
        threshold = _to_db(now - timedelta(days=OPEN_DAYS_THRESHOLD_DAYS))
        return self._query_rule_rows(
            "OPEN_DAYS_OVER60_NO_AI",
            """
            WITH last_calving AS (
                SELECT cattle_id, MAX(event_datetime) AS last_calving_at
                FROM breeding_events
                WHERE event_type = 'CALVING'
                GROUP BY cattle_id
            )
            SELECT c.cattle_id, c.name, c.ear_tag_number, lc.last_calving_at
            FROM cattle c
            JOIN last_calving lc ON lc.cattle_id = c.cattle_id
            LEFT JOIN breeding_status bs ON bs.cattle_id = c.cattle_id
            WHERE c.owner_id = ?
              AND (c.status IS NULL OR c.status <> 'PREGNANT')
              AND lc.last_calving_at <= ?
              AND NOT EXISTS (
                  SELECT 1 FROM breeding_events i
                  WHERE i.cattle_id = c.cattle_id
                    AND i.event_type = 'INSEMINATION'
                    AND i.event_datetime > lc.last_calving_at
              )
              AND (
                  bs.expected_calving_date IS NULL
                  OR bs.expected_calving_date <= lc.last_calving_at
              )
            ORDER BY c.cattle_id
            """,
            [owner_id, threshold],
        )

    def find_calving_within60(self, owner_id: int, now: datetime) -> list[AlertRuleRow]:
        return self._query_rule_rows(
            "CALVING_WITHIN_60",
            """
            SELECT c.cattle_id, c.name, c.ear_tag_number, bs.expected_calving_date
            FROM cattle c
            JOIN breeding_status bs ON bs.cattle_id = c.cattle_id
            WHERE c.owner_id = ?
              AND bs.expected_calving_date IS NOT NULL
              AND bs.expected_calving_date >= ?
              AND bs.expected_calving_date <= ?
            ORDER BY c.cattle_id
            """,
            [owner_id, _to_db(now), _to_db(now + timedelta(days=CALVING_WINDOW_DAYS))],
        )

    def find_calving_overdue(self, owner_id: int, now: datetime) -> list[AlertRuleRow]:
        return self._query_rule_rows(
            "CALVING_OVERDUE",
            """
            SELECT c.cattle_id, c.name, c.ear_tag_number, bs.expected_calving_date
            FROM cattle c
            JOIN breeding_status bs ON bs.cattle_id = c.cattle_id
            WHERE c.owner_id = ?
              AND bs.expected_calving_date IS NOT NULL
              AND bs.expected_calving_date < ?
              AND (c.status IS NULL OR c.status <> 'RESTING')
            ORDER BY c.cattle_id
            """,
            [owner_id, _to_db(now)],
        )

    def find_estrus_over20_not_pregnant(
        self, owner_id: int, now: datetime
    ) -> list[AlertRuleRow]:
        threshold = _to_db(now - timedelta(days=ESTRUS_THRESHOLD_DAYS))
        return self._query_rule_rows(
            "ESTRUS_OVER20_NOT_PREGNANT",
            """
            WITH last_estrus AS (
                SELECT cattle_id, MAX(event_datetime) AS last_estrus_at
                FROM breeding_events
                WHERE event_type = 'ESTRUS'
                GROUP BY cattle_id
            )
            SELECT c.cattle_id, c.name, c.ear_tag_number, le.last_estrus_at
            FROM cattle c
            JOIN last_estrus le ON le.cattle_id = c.cattle_id
            WHERE c.owner_id = ?
              AND (c.status IS NULL OR c.status <> 'PREGNANT')
              AND le.last_estrus_at <= ?
            ORDER BY c.cattle_id
            """,
            [owner_id, threshold],
        )

    # =========================================================================
    # Seeding
    # =========================================================================

    def write_cattle(self, cattle: list[CattleRecord]) -> int:
        if not cattle:
            return 0

        try:
            with self._get_connection() as conn:
                for record in cattle:
                    conn.execute(
                        """
                        INSERT OR REPLACE INTO cattle (
                            cattle_id, owner_id, name, ear_tag_number, status
                        ) VALUES (?, ?, ?, ?, ?)
                        """,
                        [
                            record.cattle_id,
                            record.owner_id,
                            record.name,
                            record.ear_tag_number,
                            record.status.value if record.status else None,
                        ],
                    )
            logger.info("cattle_written", count=len(cattle))
            return len(cattle)

        except duckdb.Error as e:
            logger.error("write_cattle_failed", error=str(e))
            raise StorageError(f"Failed to write cattle: {e}") from e

    def write_breeding_events(self, events: list[BreedingEvent]) -> int:
        """Append events in one transaction, skipping ids that already exist."""
        if not events:
            return 0

        try:
            with self._get_connection() as conn:
                conn.execute("BEGIN TRANSACTION")
                try:
                    written = 0
                    for event in events:
                        exists = conn.execute(
                            "SELECT 1 FROM breeding_events WHERE event_id = ?",
                            [event.event_id],
                        ).fetchone()
                        if exists:
                            logger.debug("duplicate_event_skipped", event_id=event.event_id)
                            continue
                        conn.execute(
                            """
                            INSERT INTO breeding_events (
                                event_id, cattle_id, event_type, event_datetime,
                                metadata, created_at, updated_at
                            ) VALUES (?, ?, ?, ?, ?, ?, ?)
                            """,
                            [
                                event.event_id,
                                event.cattle_id,
                                event.event_type.value,
                                _to_db(event.event_datetime),
                                json.dumps(event.metadata),
                                _to_db(event.created_at),
                                _to_db(event.updated_at),
                            ],
                        )
                        written += 1
                    conn.execute("COMMIT")
                except duckdb.Error:
                    conn.execute("ROLLBACK")
                    raise

            logger.info("breeding_events_written", count=written)
            return written

        except duckdb.Error as e:
            logger.error("write_breeding_events_failed", error=str(e))
            raise StorageError(f"Failed to write breeding events: {e}") from e

    def write_breeding_status(self, statuses: list[BreedingStatusRecord]) -> int:
        if not statuses:
            return 0

        try:
            with self._get_connection() as conn:
                for status in statuses:
                    conn.execute(
                        """
                        INSERT OR REPLACE INTO breeding_status (
                            cattle_id, expected_calving_date
                        ) VALUES (?, ?)
                        """,
                        [status.cattle_id, _to_db(status.expected_calving_date)],
                    )
            logger.info("breeding_status_written", count=len(statuses))
            return len(statuses)

        except duckdb.Error as e:
            logger.error("write_breeding_status_failed", error=str(e))
            raise StorageError(f"Failed to write breeding status: {e}") from e
