"""
Abstract storage interface for the breeding analytics engine.

This module defines the Event Store contract the engine consumes. The
engine only ever reads: breeding events for a window, and the four alert
rule queries over cattle, events and breeding-status snapshots. Write
operations exist so that the store can be seeded (fixtures, imports,
demos) and are never called from the analytics path.

Implementations return plain records (``RawBreedingEvent``,
``AlertRuleRow``); interpreting them is the engine's job.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from herdpulse.models.alerts import AlertRuleRow
from herdpulse.models.events import BreedingEvent, BreedingStatusRecord, CattleRecord, RawBreedingEvent


class StorageBackend(ABC):
    """
    Abstract base class for all Event Store implementations.

    Storage implementations should ensure:
    - Thread safety for concurrent reads (rule queries and monthly
      computations are fanned out to worker threads)
    - Timezone-aware UTC datetimes on every returned record
    - Failures surfaced as ``StorageError``, never as partial results
    """

    # =========================================================================
    # Breeding Events
    # =========================================================================

    @abstractmethod
    def find_events_for_breeding_kpi(
        self,
        owner_id: int,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
    ) -> list[RawBreedingEvent]:
        """
        Return an owner's breeding events inside ``[from_date, to_date]``.

        Only the four breeding event kinds are returned; other farm events
        stored alongside them are filtered out.

        Args:
            owner_id: Herd owner
            from_date: Inclusive lower bound (default: one year before ``to_date``)
            to_date: Inclusive upper bound (default: now)

        Returns:
            Raw events ordered by cattle id, then event datetime

        Raises:
            StorageError: If the query fails
        """
        pass

    # =========================================================================
    # Alert Rule Queries
    # =========================================================================

    @abstractmethod
    def find_open_days_over60_no_ai(self, owner_id: int, now: datetime) -> list[AlertRuleRow]:
        """
        Animals whose last calving is 60+ days before ``now`` with no insemination since.

        Excludes pregnant animals and animals whose expected calving date is
        later than their last calving. ``due_at`` is the last calving.

        Raises:
            StorageError: If the query fails
        """
        pass

    @abstractmethod
    def find_calving_within60(self, owner_id: int, now: datetime) -> list[AlertRuleRow]:
        """
        Animals with an expected calving date in ``[now, now + 60 days]``.

        ``due_at`` is the expected calving date.

        Raises:
            StorageError: If the query fails
        """
        pass

    @abstractmethod
    def find_calving_overdue(self, owner_id: int, now: datetime) -> list[AlertRuleRow]:
        """
        Animals whose expected calving date is before ``now`` and that are not resting.

        ``due_at`` is the expected calving date.

        Raises:
            StorageError: If the query fails
        """
        pass

    @abstractmethod
    def find_estrus_over20_not_pregnant(
        self, owner_id: int, now: datetime
    ) -> list[AlertRuleRow]:
        """
        Non-pregnant animals whose last estrus is 20+ days before ``now``.

        ``due_at`` is the last estrus.

        Raises:
            StorageError: If the query fails
        """
        pass

    # =========================================================================
    # Seeding
    # =========================================================================

    @abstractmethod
    def write_cattle(self, cattle: list[CattleRecord]) -> int:
        """
        Insert or replace animals.

        Returns:
            Number of records written

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def write_breeding_events(self, events: list[BreedingEvent]) -> int:
        """
        Append breeding events; events whose id already exists are skipped.

        Returns:
            Number of events written

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def write_breeding_status(self, statuses: list[BreedingStatusRecord]) -> int:
        """
        Insert or replace per-animal breeding-status snapshots.

        Returns:
            Number of records written

        Raises:
            StorageError: If the write fails
        """
        pass
