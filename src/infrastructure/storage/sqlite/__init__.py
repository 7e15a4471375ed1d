"""SQLite storage implementations."""

from src.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_pool,
)
from src.infrastructure.storage.sqlite.local_store import SQLiteLocalStore

# Singleton instance
_local_store: SQLiteLocalStore | None = None


async def get_local_store() -> SQLiteLocalStore:
    """Get singleton local store bound to the global pool."""
    global _local_store
    if _local_store is None:
        _local_store = SQLiteLocalStore(await get_pool())
    return _local_store


def reset_local_store() -> None:
    """Drop the singleton (for testing and shutdown)."""
    global _local_store
    _local_store = None


__all__ = [
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "SQLiteLocalStore",
    "get_local_store",
    "reset_local_store",
]
