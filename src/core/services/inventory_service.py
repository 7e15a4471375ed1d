"""
Inventory Service.

Every mutation writes the local store first, in the same transaction as
the outbound queue entry that replays it. When the engine is online the
write is also pushed straight away; a successful push marks the entry
synced, a failed one leaves it for the next sync pass.
"""

from __future__ import annotations

from typing import Any

from src.config import get_logger
from src.core.entities.inventory import (
    Condition,
    ConditionBreakdown,
    DeviceUser,
    EntryMethod,
    InventoryItem,
    ItemDraft,
    MovementType,
    StockMovement,
    utcnow,
)
from src.core.entities.sync import OutboundQueueEntry, SyncAction, SyncTable
from src.core.exceptions import (
    DeviceUserNotFoundError,
    ItemNotFoundError,
    RemoteStoreError,
    ValidationError,
)
from src.core.interfaces.local_store import ILocalStore
from src.core.services.stock_ledger import apply_delta, condition_breakdown
from src.core.services.sync_engine import SyncEngine

logger = get_logger(__name__)

CURRENT_DEVICE_USER_KEY = "current_device_user_id"

# Fields an update may never touch
_IMMUTABLE_ITEM_FIELDS = frozenset({"id", "created_at", "updated_at"})


def _entry(action: SyncAction, table: SyncTable, record: dict[str, Any]) -> OutboundQueueEntry:
    return OutboundQueueEntry(action=action, table_name=table, record_data=record)


class InventoryService:
    """
    Local-first mutations and reads over items, movements and device users.

    Args:
        local_store: Durable local store.
        sync_engine: Engine used for the online write-through and sync requests.
        auto_sync: Request a background sync after each mutation.
    """

    def __init__(
        self,
        local_store: ILocalStore,
        sync_engine: SyncEngine,
        auto_sync: bool = True,
    ) -> None:
        self._local = local_store
        self._sync = sync_engine
        self.auto_sync = auto_sync

    def _after_mutation(self) -> None:
        if self.auto_sync:
            self._sync.request_sync()

    async def _write_through(self, entry: OutboundQueueEntry, push: Any) -> bool:
        """Push now if online; returns True when the entry was marked synced."""
        if not self._sync.is_online:
            return False
        try:
            await push()
        except RemoteStoreError as e:
            logger.warning(
                "write_through_failed",
                entry_id=entry.id,
                table=entry.table_name.value,
                error=e.message,
            )
            return False
        await self._local.mark_synced(entry.id)
        return True

    # Items

    async def add_item(self, draft: ItemDraft) -> InventoryItem:
        item = InventoryItem(**draft.model_dump())
        record = item.model_dump(mode="json")
        entry = _entry(SyncAction.INSERT, SyncTable.INVENTORY_ITEMS, record)
        await self._local.save_with_entry(item, entry)
        logger.info("item_added", item_id=item.id, sku=item.sku)
        self._after_mutation()
        return item

    async def update_item(self, item_id: str, changes: dict[str, Any]) -> InventoryItem | None:
        """
        Merge field changes into an item.

        Returns:
            The updated item, or None when no such item exists locally.
        """
        existing = await self._local.get_item(item_id)
        if existing is None:
            logger.info("item_update_skipped", item_id=item_id, reason="not_found")
            return None

        allowed = {k: v for k, v in changes.items() if k not in _IMMUTABLE_ITEM_FIELDS}
        item = InventoryItem.model_validate(
            {**existing.model_dump(), **allowed, "updated_at": utcnow()}
        )
        entry = _entry(SyncAction.UPDATE, SyncTable.INVENTORY_ITEMS, item.model_dump(mode="json"))
        await self._local.save_with_entry(item, entry)
        logger.info("item_updated", item_id=item_id, fields=sorted(allowed))
        self._after_mutation()
        return item

    async def update_quantity(
        self,
        item_id: str,
        quantity: int,
        movement_type: MovementType,
        device_user_id: str | None = None,
        entry_method: EntryMethod = EntryMethod.MANUAL,
        ai_confidence: float | None = None,
        notes: str | None = None,
        condition: Condition | None = None,
    ) -> InventoryItem | None:
        """
        Apply a stock movement to an item.

        The new quantity is not floored at zero. The item snapshot and the
        movement travel in one ``stock_adjustments`` queue entry so they are
        replayed together.

        Returns:
            The updated item, or None when no such item exists locally.
        """
        if quantity <= 0:
            raise ValidationError("quantity", "Quantity must be a positive integer", quantity)

        existing = await self._local.get_item(item_id)
        if existing is None:
            logger.info("quantity_update_skipped", item_id=item_id, reason="not_found")
            return None

        new_quantity = apply_delta(existing.current_quantity, quantity, movement_type)
        item = existing.model_copy(update={"current_quantity": new_quantity, "updated_at": utcnow()})
        movement = StockMovement(
            item_id=item_id,
            device_user_id=device_user_id,
            movement_type=movement_type,
            quantity=quantity,
            entry_method=entry_method,
            ai_confidence=ai_confidence,
            notes=notes,
            condition=condition,
        )
        item_record = item.model_dump(mode="json")
        movement_record = movement.model_dump(mode="json")
        entry = _entry(
            SyncAction.INSERT,
            SyncTable.STOCK_ADJUSTMENTS,
            {"item": item_record, "movement": movement_record},
        )
        await self._local.save_adjustment(item, movement, [entry])

        pushed = await self._write_through(
            entry, lambda: self._sync.push_adjustment(item_record, movement_record)
        )
        logger.info(
            "quantity_updated",
            item_id=item_id,
            movement_type=MovementType(movement_type).value,
            quantity=quantity,
            previous_quantity=existing.current_quantity,
            new_quantity=new_quantity,
            pushed=pushed,
        )
        if new_quantity < 0:
            logger.warning("negative_stock", item_id=item_id, quantity=new_quantity)

        self._after_mutation()
        return item

    async def add_stock_movement(
        self,
        item_id: str,
        quantity: int,
        movement_type: MovementType,
        device_user_id: str | None = None,
        entry_method: EntryMethod = EntryMethod.MANUAL,
        ai_confidence: float | None = None,
        notes: str | None = None,
        condition: Condition | None = None,
    ) -> StockMovement:
        """Record a movement without touching the item's quantity."""
        if quantity <= 0:
            raise ValidationError("quantity", "Quantity must be a positive integer", quantity)

        movement = StockMovement(
            item_id=item_id,
            device_user_id=device_user_id,
            movement_type=movement_type,
            quantity=quantity,
            entry_method=entry_method,
            ai_confidence=ai_confidence,
            notes=notes,
            condition=condition,
        )
        record = movement.model_dump(mode="json")
        entry = _entry(SyncAction.INSERT, SyncTable.STOCK_MOVEMENTS, record)
        await self._local.save_with_entry(movement, entry)
        await self._write_through(entry, lambda: self._sync.push_movement(record))
        logger.info("movement_recorded", movement_id=movement.id, item_id=item_id)
        self._after_mutation()
        return movement

    async def delete_item(self, item_id: str) -> None:
        """Delete locally and queue the remote delete. Missing items are not an error."""
        entry = _entry(SyncAction.DELETE, SyncTable.INVENTORY_ITEMS, {"id": item_id})
        await self._local.delete_item_with_entry(item_id, entry)
        logger.info("item_deleted", item_id=item_id)
        self._after_mutation()

    # Device users

    async def add_device_user(self, name: str) -> DeviceUser:
        user = DeviceUser(name=name)
        entry = _entry(SyncAction.INSERT, SyncTable.DEVICE_USERS, user.model_dump(mode="json"))
        await self._local.save_with_entry(user, entry)
        logger.info("device_user_added", user_id=user.id)
        self._after_mutation()
        return user

    async def rename_device_user(self, user_id: str, name: str) -> DeviceUser | None:
        existing = await self._local.get_device_user(user_id)
        if existing is None:
            return None
        user = existing.model_copy(update={"name": name})
        entry = _entry(SyncAction.UPDATE, SyncTable.DEVICE_USERS, user.model_dump(mode="json"))
        await self._local.save_with_entry(user, entry)
        logger.info("device_user_renamed", user_id=user_id)
        self._after_mutation()
        return user

    async def list_device_users(self) -> list[DeviceUser]:
        return await self._local.get_all_device_users()

    async def select_device_user(self, user_id: str | None) -> DeviceUser | None:
        """Remember which device user new movements are attributed to."""
        if user_id is None:
            await self._local.put_setting(CURRENT_DEVICE_USER_KEY, None)
            return None
        user = await self._local.get_device_user(user_id)
        if user is None:
            raise DeviceUserNotFoundError(user_id)
        await self._local.put_setting(CURRENT_DEVICE_USER_KEY, user_id)
        logger.info("device_user_selected", user_id=user_id)
        return user

    async def get_current_device_user(self) -> DeviceUser | None:
        user_id = await self._local.get_setting(CURRENT_DEVICE_USER_KEY)
        if not user_id:
            return None
        return await self._local.get_device_user(user_id)

    # Reads

    async def list_items(self) -> list[InventoryItem]:
        return await self._local.get_all_items()

    async def get_item(self, item_id: str) -> InventoryItem:
        item = await self._local.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id=item_id)
        return item

    async def list_movements(self, item_id: str | None = None) -> list[StockMovement]:
        if item_id is None:
            return await self._local.get_all_movements()
        return await self._local.get_movements_by_item(item_id)

    async def get_condition_breakdown(self, item_id: str) -> ConditionBreakdown:
        movements = await self._local.get_movements_by_item(item_id)
        return condition_breakdown(movements)

    async def list_low_stock_items(self) -> list[InventoryItem]:
        return [item for item in await self._local.get_all_items() if item.is_low_stock]

    async def list_negative_stock_items(self) -> list[InventoryItem]:
        return [item for item in await self._local.get_all_items() if item.is_negative]
