"""Tests for InventoryService."""

import pytest

from src.core.entities import (
    Condition,
    EntryMethod,
    ItemDraft,
    MovementType,
    SyncAction,
    SyncTable,
)
from src.core.exceptions import (
    DeviceUserNotFoundError,
    DuplicateSkuError,
    ItemNotFoundError,
    RemoteStoreError,
    ValidationError,
)
from src.core.services import CURRENT_DEVICE_USER_KEY, InventoryService


class TestItems:
    async def test_add_item_queues_insert(self, offline_service, local_store):
        item = await offline_service.add_item(ItemDraft(name="Hex Bolt M8", sku="BOLT-M8"))

        assert await local_store.get_item(item.id) == item
        [entry] = await local_store.get_unsynced_entries()
        assert entry.table_name == SyncTable.INVENTORY_ITEMS
        assert entry.action == SyncAction.INSERT
        assert entry.record_data["sku"] == "BOLT-M8"

    async def test_add_item_duplicate_sku(self, offline_service, local_store):
        await offline_service.add_item(ItemDraft(name="Hex Bolt M8", sku="BOLT-M8"))

        with pytest.raises(DuplicateSkuError):
            await offline_service.add_item(ItemDraft(name="Other", sku="BOLT-M8"))
        assert (await local_store.count_queue()).pending == 1

    async def test_update_item(self, offline_service, local_store):
        item = await offline_service.add_item(ItemDraft(name="Bolt", sku="B"))

        updated = await offline_service.update_item(
            item.id, {"name": "Hex Bolt", "id": "hijack", "low_stock_threshold": 1}
        )

        assert updated.id == item.id
        assert updated.name == "Hex Bolt"
        assert updated.low_stock_threshold == 1
        assert updated.updated_at >= item.updated_at
        entries = await local_store.get_unsynced_entries()
        assert [e.action for e in entries] == [SyncAction.INSERT, SyncAction.UPDATE]

    async def test_update_missing_item(self, offline_service, local_store):
        assert await offline_service.update_item("missing", {"name": "x"}) is None
        assert (await local_store.count_queue()).pending == 0

    async def test_delete_item(self, offline_service, local_store):
        item = await offline_service.add_item(ItemDraft(name="Bolt", sku="B"))

        await offline_service.delete_item(item.id)

        assert await local_store.get_item(item.id) is None
        entries = await local_store.get_unsynced_entries()
        assert entries[-1].action == SyncAction.DELETE
        assert entries[-1].record_data == {"id": item.id}

    async def test_get_item_missing(self, offline_service):
        with pytest.raises(ItemNotFoundError):
            await offline_service.get_item("missing")


class TestUpdateQuantity:
    async def test_over_removal_goes_negative(self, offline_service, local_store, bolt):
        await local_store.save_item(bolt)

        updated = await offline_service.update_quantity(bolt.id, 5, MovementType.REMOVE)

        assert updated.current_quantity == -2
        assert updated.is_negative
        assert (await local_store.get_item(bolt.id)).current_quantity == -2
        assert [i.id for i in await offline_service.list_negative_stock_items()] == [bolt.id]

    async def test_writes_movement_and_single_queue_entry(
        self, offline_service, local_store, bolt, dana
    ):
        await local_store.save_item(bolt)

        await offline_service.update_quantity(
            bolt.id,
            4,
            MovementType.ADD,
            device_user_id=dana.id,
            entry_method=EntryMethod.AI_ASSISTED,
            ai_confidence=0.9,
            notes="delivery",
            condition=Condition.NEW,
        )

        [movement] = await local_store.get_movements_by_item(bolt.id)
        assert movement.quantity == 4
        assert movement.device_user_id == dana.id
        assert movement.entry_method == EntryMethod.AI_ASSISTED
        [entry] = await local_store.get_unsynced_entries()
        assert entry.table_name == SyncTable.STOCK_ADJUSTMENTS
        assert entry.record_data["item"]["current_quantity"] == 7
        assert entry.record_data["movement"]["id"] == movement.id

    @pytest.mark.parametrize("quantity", [0, -3])
    async def test_rejects_non_positive_quantity(self, offline_service, local_store, bolt, quantity):
        await local_store.save_item(bolt)

        with pytest.raises(ValidationError):
            await offline_service.update_quantity(bolt.id, quantity, MovementType.ADD)
        assert await local_store.get_movements_by_item(bolt.id) == []

    async def test_missing_item(self, offline_service):
        assert await offline_service.update_quantity("missing", 1, MovementType.ADD) is None

    async def test_online_write_through(self, service, local_store, remote_store, bolt):
        await local_store.save_item(bolt)

        await service.update_quantity(bolt.id, 2, MovementType.ADD)

        assert remote_store.tables["inventory_items"][bolt.id]["current_quantity"] == 5
        assert len(remote_store.tables["stock_movements"]) == 1
        summary = await local_store.count_queue()
        assert (summary.pending, summary.synced) == (0, 1)

    async def test_failed_write_through_stays_queued(
        self, service, local_store, remote_store, bolt
    ):
        await local_store.save_item(bolt)
        remote_store.fail_next.append(RemoteStoreError("boom", status_code=500))

        updated = await service.update_quantity(bolt.id, 2, MovementType.REMOVE)

        assert updated.current_quantity == 1
        [entry] = await local_store.get_unsynced_entries()
        assert entry.attempts == 0

    async def test_auto_sync_requests_a_pass(self, local_store, engine, remote_store, bolt):
        service = InventoryService(local_store, engine, auto_sync=True)

        item = await service.add_item(ItemDraft(name="Bolt", sku="B"))
        await engine.wait_idle()

        assert item.id in remote_store.tables["inventory_items"]


class TestMovements:
    async def test_add_stock_movement_leaves_quantity(self, offline_service, local_store, bolt):
        await local_store.save_item(bolt)

        movement = await offline_service.add_stock_movement(bolt.id, 2, MovementType.REMOVE)

        assert (await local_store.get_item(bolt.id)).current_quantity == 3
        assert (await offline_service.list_movements(bolt.id))[0].id == movement.id
        [entry] = await local_store.get_unsynced_entries()
        assert entry.table_name == SyncTable.STOCK_MOVEMENTS

    async def test_condition_breakdown(self, offline_service, local_store, bolt):
        await local_store.save_item(bolt)
        await offline_service.update_quantity(bolt.id, 5, MovementType.ADD, condition=Condition.NEW)
        await offline_service.update_quantity(
            bolt.id, 2, MovementType.REMOVE, condition=Condition.NEW
        )
        await offline_service.update_quantity(bolt.id, 1, MovementType.ADD)

        breakdown = await offline_service.get_condition_breakdown(bolt.id)

        assert (breakdown.new, breakdown.good) == (3, 1)

    async def test_low_stock(self, offline_service, local_store, bolt):
        await local_store.save_item(bolt)
        await offline_service.add_item(ItemDraft(name="Nut", sku="NUT", current_quantity=50))

        low = await offline_service.list_low_stock_items()

        assert [i.sku for i in low] == ["BOLT-M8"]


class TestDeviceUsers:
    async def test_add_and_rename(self, offline_service, local_store):
        user = await offline_service.add_device_user("Dana")

        renamed = await offline_service.rename_device_user(user.id, "Dana K.")

        assert renamed.name == "Dana K."
        assert [u.name for u in await offline_service.list_device_users()] == ["Dana K."]
        entries = await local_store.get_unsynced_entries()
        assert [e.table_name for e in entries] == [SyncTable.DEVICE_USERS] * 2

    async def test_rename_missing(self, offline_service):
        assert await offline_service.rename_device_user("missing", "x") is None

    async def test_select_current(self, offline_service, local_store):
        user = await offline_service.add_device_user("Dana")

        await offline_service.select_device_user(user.id)

        assert await local_store.get_setting(CURRENT_DEVICE_USER_KEY) == user.id
        assert await offline_service.get_current_device_user() == user

        await offline_service.select_device_user(None)
        assert await offline_service.get_current_device_user() is None

    async def test_select_unknown(self, offline_service):
        with pytest.raises(DeviceUserNotFoundError):
            await offline_service.select_device_user("ghost")
