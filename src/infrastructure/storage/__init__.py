"""Storage infrastructure implementations."""

from src.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteLocalStore,
    close_pool,
    get_local_store,
    get_pool,
)

__all__ = [
    "ConnectionPool",
    "SQLiteLocalStore",
    "close_pool",
    "get_local_store",
    "get_pool",
]
