"""Pytest fixtures for SQLite storage tests."""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from src.core.entities import (
    Condition,
    DeviceUser,
    InventoryItem,
    MovementType,
    OutboundQueueEntry,
    StockMovement,
    SyncAction,
    SyncTable,
)
from src.infrastructure.storage.sqlite.migrations.migrator import initialize_database


@pytest.fixture
async def initialized_db(temp_db_path: Path) -> Path:
    """Temporary database with every migration applied."""
    await initialize_database(temp_db_path, create_backup_before=False)
    return temp_db_path


@pytest.fixture
def sample_item() -> InventoryItem:
    return InventoryItem(
        id="item-1",
        name="Hex Bolt M8",
        sku="BOLT-M8",
        current_quantity=10,
        condition=Condition.GOOD,
        low_stock_threshold=3,
    )


@pytest.fixture
def sample_user() -> DeviceUser:
    return DeviceUser(id="user-1", name="Dana")


@pytest.fixture
def sample_movement() -> StockMovement:
    return StockMovement(
        id="mov-1",
        item_id="item-1",
        device_user_id="user-1",
        movement_type=MovementType.ADD,
        quantity=4,
        condition=Condition.NEW,
    )


@pytest.fixture
def make_entry():
    """Build device-user queue entries whose created_at is offset from a fixed base time."""

    def _make(record_id: str, offset_seconds: int = 0) -> OutboundQueueEntry:
        return OutboundQueueEntry(
            action=SyncAction.INSERT,
            table_name=SyncTable.DEVICE_USERS,
            record_data={"id": record_id, "name": record_id},
            created_at=datetime(2025, 1, 1, tzinfo=UTC) + timedelta(seconds=offset_seconds),
        )

    return _make
