"""Abstract interface for the remote (authoritative) store."""

from abc import ABC, abstractmethod
from typing import Any


class IRemoteStore(ABC):
    """
    Remote collections addressed by table name.

    Records travel as JSON-ready dicts. Upserts are keyed by ``id`` so a
    replayed queue entry leaves the remote in the same state as one write.
    """

    @abstractmethod
    async def upsert(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        """Insert or update by id; returns the stored row."""
        pass

    @abstractmethod
    async def delete(self, table: str, record_id: str) -> None:
        """Delete by id. Deleting a missing row is not an error."""
        pass

    @abstractmethod
    async def fetch_all(self, table: str) -> list[dict[str, Any]]:
        """Fetch the whole collection."""
        pass

    @abstractmethod
    async def find_item_by_sku(self, sku: str) -> dict[str, Any] | None:
        """Fetch the single item holding this SKU, if any."""
        pass

    @abstractmethod
    async def update(self, table: str, record_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        """Patch selected columns of one row; returns the stored row."""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Cheap reachability probe."""
        pass
