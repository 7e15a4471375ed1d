"""Fixtures for service tests: a migrated local store wired to an in-memory remote."""

import pytest

from src.core.entities import DeviceUser, InventoryItem, SyncState
from src.core.services import InventoryService, SyncEngine


@pytest.fixture
def engine(local_store, remote_store) -> SyncEngine:
    """Online engine; nothing runs until a test triggers it."""
    return SyncEngine(local_store, remote_store, state=SyncState(online=True), max_attempts=3)


@pytest.fixture
def offline_engine(local_store, remote_store) -> SyncEngine:
    return SyncEngine(local_store, remote_store, state=SyncState(online=False), max_attempts=3)


@pytest.fixture
def service(local_store, engine) -> InventoryService:
    return InventoryService(local_store, engine, auto_sync=False)


@pytest.fixture
def offline_service(local_store, offline_engine) -> InventoryService:
    return InventoryService(local_store, offline_engine, auto_sync=False)


@pytest.fixture
def bolt() -> InventoryItem:
    return InventoryItem(id="item-1", name="Hex Bolt M8", sku="BOLT-M8", current_quantity=3)


@pytest.fixture
def dana() -> DeviceUser:
    return DeviceUser(id="user-1", name="Dana")
