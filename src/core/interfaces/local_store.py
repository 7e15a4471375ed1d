"""Abstract interface for the on-device durable store."""

from abc import ABC, abstractmethod

from src.core.entities.inventory import Category, DeviceUser, InventoryItem, StockMovement
from src.core.entities.sync import OutboundQueueEntry, QueueSummary


class ILocalStore(ABC):
    """
    Keyed local storage for items, users, movements and the outbound queue.

    Pure storage: puts are upserts keyed by id, nothing is validated here,
    and an unavailable store raises instead of returning empty results.
    """

    # Inventory items
    @abstractmethod
    async def get_all_items(self) -> list[InventoryItem]:
        """Get every item, ordered by name."""
        pass

    @abstractmethod
    async def get_item(self, item_id: str) -> InventoryItem | None:
        """Get item by ID."""
        pass

    @abstractmethod
    async def get_item_by_sku(self, sku: str) -> InventoryItem | None:
        """Get item by exact SKU."""
        pass

    @abstractmethod
    async def save_item(self, item: InventoryItem) -> None:
        """Upsert an item. Raises DuplicateSkuError on a SKU clash."""
        pass

    @abstractmethod
    async def delete_item(self, item_id: str) -> None:
        """Delete an item if present."""
        pass

    @abstractmethod
    async def replace_items(self, items: list[InventoryItem]) -> int:
        """Bulk upsert where incoming rows win, even over SKU clashes."""
        pass

    # Device users
    @abstractmethod
    async def get_all_device_users(self) -> list[DeviceUser]:
        """Get every device user."""
        pass

    @abstractmethod
    async def get_device_user(self, user_id: str) -> DeviceUser | None:
        """Get device user by ID."""
        pass

    @abstractmethod
    async def save_device_user(self, user: DeviceUser) -> None:
        """Upsert a device user."""
        pass

    @abstractmethod
    async def replace_device_users(self, users: list[DeviceUser]) -> int:
        """Bulk upsert device users."""
        pass

    # Stock movements
    @abstractmethod
    async def get_all_movements(self) -> list[StockMovement]:
        """Get every movement, newest first."""
        pass

    @abstractmethod
    async def get_movements_by_item(self, item_id: str) -> list[StockMovement]:
        """Get movements for one item, newest first."""
        pass

    @abstractmethod
    async def save_movement(self, movement: StockMovement) -> None:
        """Upsert a movement."""
        pass

    @abstractmethod
    async def replace_movements(self, movements: list[StockMovement]) -> int:
        """Bulk upsert movements."""
        pass

    # Categories
    @abstractmethod
    async def get_all_categories(self) -> list[Category]:
        """Get every category."""
        pass

    @abstractmethod
    async def replace_categories(self, categories: list[Category]) -> int:
        """Bulk upsert categories."""
        pass

    # Atomic writes
    @abstractmethod
    async def save_adjustment(
        self,
        item: InventoryItem,
        movement: StockMovement,
        queue_entries: list[OutboundQueueEntry] | None = None,
    ) -> None:
        """Write an item, its movement and queue entries in one transaction."""
        pass

    @abstractmethod
    async def save_with_entry(
        self,
        record: InventoryItem | DeviceUser | StockMovement,
        entry: OutboundQueueEntry,
    ) -> None:
        """Write one record and its queue entry in one transaction."""
        pass

    @abstractmethod
    async def delete_item_with_entry(self, item_id: str, entry: OutboundQueueEntry) -> None:
        """Delete an item and append its queue entry in one transaction."""
        pass

    # Outbound queue
    @abstractmethod
    async def append_queue_entry(self, entry: OutboundQueueEntry) -> None:
        """Append a pending mutation."""
        pass

    @abstractmethod
    async def get_queue_entry(self, entry_id: str) -> OutboundQueueEntry | None:
        """Get queue entry by ID."""
        pass

    @abstractmethod
    async def get_unsynced_entries(self, include_poisoned: bool = False) -> list[OutboundQueueEntry]:
        """Get unsynced entries, oldest first."""
        pass

    @abstractmethod
    async def get_poisoned_entries(self) -> list[OutboundQueueEntry]:
        """Get entries parked for operator attention."""
        pass

    @abstractmethod
    async def mark_synced(self, entry_id: str) -> None:
        """Mark an entry synced and stamp synced_at."""
        pass

    @abstractmethod
    async def record_sync_failure(
        self, entry_id: str, error: str, poisoned: bool = False
    ) -> None:
        """Bump the attempt counter and keep the last error."""
        pass

    @abstractmethod
    async def requeue_entry(self, entry_id: str) -> bool:
        """Clear poison state and attempts. Returns False if missing."""
        pass

    @abstractmethod
    async def delete_queue_entry(self, entry_id: str) -> bool:
        """Delete one entry. Returns False if missing."""
        pass

    @abstractmethod
    async def clear_synced_entries(self) -> int:
        """Delete all synced entries; returns how many were removed."""
        pass

    @abstractmethod
    async def count_queue(self) -> QueueSummary:
        """Count entries by state."""
        pass

    # Client-local settings
    @abstractmethod
    async def get_setting(self, key: str) -> str | None:
        """Read a device setting."""
        pass

    @abstractmethod
    async def put_setting(self, key: str, value: str | None) -> None:
        """Write (or clear, with None) a device setting."""
        pass
