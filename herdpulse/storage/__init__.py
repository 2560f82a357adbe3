"""
Data storage layer: the Event Store behind the analytics engine.

Holds cattle, the append-only breeding event log and breeding-status
snapshots. All storage uses DuckDB.
"""

from functools import lru_cache

from herdpulse.config import get_settings

from .base import StorageBackend
from .duckdb_storage import DuckDBStorage, StorageError


@lru_cache
def get_storage() -> StorageBackend:
    """
    Get cached storage backend instance (singleton).

    Returns:
        StorageBackend implementation instance
    """
    settings = get_settings()
    return DuckDBStorage(db_path=settings.db_path)


__all__ = [
    "StorageBackend",
    "DuckDBStorage",
    "StorageError",
    "get_storage",
]
