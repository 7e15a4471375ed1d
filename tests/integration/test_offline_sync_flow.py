"""Integration test: work offline, reconnect, converge with the remote."""

from src.core.entities import ItemDraft, MovementType, SyncState
from src.core.services import InventoryService, SyncEngine


class TestOfflineSyncFlow:
    """Offline writes → reconnect → remote and local agree, queue is empty."""

    async def test_offline_then_reconnect(self, local_store, remote_store):
        engine = SyncEngine(local_store, remote_store, state=SyncState(online=False))
        service = InventoryService(local_store, engine)

        # Step 1: record a morning's work with no connection
        item = await service.add_item(ItemDraft(name="Hex Bolt M8", sku="BOLT-M8"))
        dana = await service.add_device_user("Dana")
        await service.update_quantity(item.id, 5, MovementType.ADD, device_user_id=dana.id)
        # A user created on another tablet that never reached the remote
        await service.update_quantity(item.id, 7, MovementType.REMOVE, device_user_id="ghost")

        assert remote_store.calls == []
        assert (await engine.queue_summary()).pending == 4

        # Step 2: connectivity returns
        engine.set_online(True)
        await engine.wait_idle()

        # Step 3: remote holds the final state
        remote_item = remote_store.tables["inventory_items"][item.id]
        assert remote_item["current_quantity"] == -2
        movements = list(remote_store.tables["stock_movements"].values())
        assert len(movements) == 2
        by_user = {m.get("device_user_id") for m in movements}
        assert by_user == {dana.id, None}

        # Step 4: local store mirrors the remote and the queue is purged
        local_item = await service.get_item(item.id)
        assert local_item.current_quantity == -2
        assert local_item.is_negative is True
        assert len(await service.list_movements(item.id)) == 2
        summary = await engine.queue_summary()
        assert (summary.pending, summary.synced, summary.poisoned) == (0, 0, 0)
        assert engine.state.last_error is None

    async def test_outage_keeps_queue(self, local_store, remote_store):
        engine = SyncEngine(local_store, remote_store, state=SyncState(online=True))
        service = InventoryService(local_store, engine, auto_sync=False)
        remote_store.reachable = False

        item = await service.add_item(ItemDraft(name="Washer", sku="WASH-8"))
        await service.update_quantity(item.id, 3, MovementType.ADD)

        report = await engine.trigger_sync()

        assert report.pushed == 0
        assert engine.state.last_error == "remote unavailable"
        assert (await engine.queue_summary()).pending == 2

        remote_store.reachable = True
        report = await engine.trigger_sync()

        assert report.pushed == 2
        assert remote_store.tables["inventory_items"][item.id]["current_quantity"] == 3
