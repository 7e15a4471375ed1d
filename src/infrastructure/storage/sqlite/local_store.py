"""SQLite implementation of the on-device durable store."""

import json
from datetime import datetime
from enum import Enum
from typing import Any

import aiosqlite

from src.config import get_logger
from src.core.entities.inventory import (
    Category,
    DeviceUser,
    InventoryItem,
    StockMovement,
    utcnow,
)
from src.core.entities.sync import OutboundQueueEntry, QueueSummary
from src.core.exceptions import DuplicateSkuError
from src.core.interfaces.local_store import ILocalStore
from src.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool

logger = get_logger(__name__)

ITEM_COLUMNS = (
    "id", "name", "sku", "current_quantity", "category_id", "condition",
    "low_stock_threshold", "reference_image_url", "created_at", "updated_at",
)
MOVEMENT_COLUMNS = (
    "id", "item_id", "device_user_id", "movement_type", "quantity", "entry_method",
    "ai_confidence", "notes", "condition", "created_at",
)
USER_COLUMNS = ("id", "name", "created_at")
CATEGORY_COLUMNS = ("id", "name", "parent_id", "created_at", "updated_at")
QUEUE_COLUMNS = (
    "id", "action", "table_name", "record_data", "synced", "attempts",
    "last_error", "poisoned", "created_at", "synced_at",
)


def _upsert_sql(table: str, columns: tuple[str, ...], replace: bool = False) -> str:
    placeholders = ", ".join("?" for _ in columns)
    column_list = ", ".join(columns)
    if replace:
        # REPLACE also evicts rows that clash on other unique indexes (SKU)
        return f"INSERT OR REPLACE INTO {table} ({column_list}) VALUES ({placeholders})"
    updates = ", ".join(f"{c} = excluded.{c}" for c in columns if c != "id")
    return (
        f"INSERT INTO {table} ({column_list}) VALUES ({placeholders}) "
        f"ON CONFLICT(id) DO UPDATE SET {updates}"
    )


def _to_db(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Enum):
        return value.value
    return value


def _params(record: Any, columns: tuple[str, ...]) -> tuple:
    return tuple(_to_db(getattr(record, c)) for c in columns)


def _queue_params(entry: OutboundQueueEntry) -> tuple:
    values = []
    for column in QUEUE_COLUMNS:
        value = getattr(entry, column)
        if column == "record_data":
            value = json.dumps(value, default=str)
        values.append(_to_db(value))
    return tuple(values)


class SQLiteLocalStore(ILocalStore):
    """aiosqlite-backed store for items, users, movements and the sync queue."""

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    async def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = await get_pool()
        return self._pool

    async def _fetch_all(self, sql: str, params: tuple = ()) -> list[aiosqlite.Row]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(sql, params)
            return list(await cursor.fetchall())

    async def _fetch_one(self, sql: str, params: tuple = ()) -> aiosqlite.Row | None:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(sql, params)
            return await cursor.fetchone()

    # ------------------------------------------------------------------
    # Inventory items
    # ------------------------------------------------------------------

    async def get_all_items(self) -> list[InventoryItem]:
        """List every item, ordered by name."""
        rows = await self._fetch_all("SELECT * FROM inventory_items ORDER BY name, sku")
        return [InventoryItem.model_validate(dict(row)) for row in rows]

    async def get_item(self, item_id: str) -> InventoryItem | None:
        """Get an item by ID."""
        row = await self._fetch_one("SELECT * FROM inventory_items WHERE id = ?", (item_id,))
        return InventoryItem.model_validate(dict(row)) if row else None

    async def get_item_by_sku(self, sku: str) -> InventoryItem | None:
        """Get an item by SKU."""
        row = await self._fetch_one("SELECT * FROM inventory_items WHERE sku = ?", (sku,))
        return InventoryItem.model_validate(dict(row)) if row else None

    async def save_item(self, item: InventoryItem) -> None:
        """Insert or update an item."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            await self._put_item(conn, item)

    async def delete_item(self, item_id: str) -> None:
        """Delete an item; a missing ID is not an error."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            await conn.execute("DELETE FROM inventory_items WHERE id = ?", (item_id,))

    async def replace_items(self, items: list[InventoryItem]) -> int:
        """Upsert pulled items, evicting local rows that hold the same SKU."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            await conn.executemany(
                _upsert_sql("inventory_items", ITEM_COLUMNS, replace=True),
                [_params(item, ITEM_COLUMNS) for item in items],
            )
        return len(items)

    @staticmethod
    async def _put_item(conn: aiosqlite.Connection, item: InventoryItem) -> None:
        try:
            await conn.execute(
                _upsert_sql("inventory_items", ITEM_COLUMNS), _params(item, ITEM_COLUMNS)
            )
        except aiosqlite.IntegrityError as e:
            if "sku" in str(e).lower():
                raise DuplicateSkuError(item.sku) from e
            raise

    # ------------------------------------------------------------------
    # Device users
    # ------------------------------------------------------------------

    async def get_all_device_users(self) -> list[DeviceUser]:
        """List device users, ordered by name."""
        rows = await self._fetch_all("SELECT * FROM device_users ORDER BY name")
        return [DeviceUser.model_validate(dict(row)) for row in rows]

    async def get_device_user(self, user_id: str) -> DeviceUser | None:
        """Get a device user by ID."""
        row = await self._fetch_one("SELECT * FROM device_users WHERE id = ?", (user_id,))
        return DeviceUser.model_validate(dict(row)) if row else None

    async def save_device_user(self, user: DeviceUser) -> None:
        """Insert or update a device user."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            await conn.execute(
                _upsert_sql("device_users", USER_COLUMNS), _params(user, USER_COLUMNS)
            )

    async def replace_device_users(self, users: list[DeviceUser]) -> int:
        """Upsert pulled device users."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            await conn.executemany(
                _upsert_sql("device_users", USER_COLUMNS),
                [_params(user, USER_COLUMNS) for user in users],
            )
        return len(users)

    # ------------------------------------------------------------------
    # Stock movements
    # ------------------------------------------------------------------

    async def get_all_movements(self) -> list[StockMovement]:
        """List every movement, newest first."""
        rows = await self._fetch_all(
            "SELECT * FROM stock_movements ORDER BY created_at DESC, id DESC"
        )
        return [StockMovement.model_validate(dict(row)) for row in rows]

    async def get_movements_by_item(self, item_id: str) -> list[StockMovement]:
        """List an item's movements, newest first."""
        rows = await self._fetch_all(
            """
            SELECT * FROM stock_movements
            WHERE item_id = ?
            ORDER BY created_at DESC, id DESC
            """,
            (item_id,),
        )
        return [StockMovement.model_validate(dict(row)) for row in rows]

    async def save_movement(self, movement: StockMovement) -> None:
        """Record a stock movement."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            await conn.execute(
                _upsert_sql("stock_movements", MOVEMENT_COLUMNS),
                _params(movement, MOVEMENT_COLUMNS),
            )

    async def replace_movements(self, movements: list[StockMovement]) -> int:
        """Upsert pulled movements."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            await conn.executemany(
                _upsert_sql("stock_movements", MOVEMENT_COLUMNS),
                [_params(m, MOVEMENT_COLUMNS) for m in movements],
            )
        return len(movements)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def get_all_categories(self) -> list[Category]:
        """List categories, ordered by name."""
        rows = await self._fetch_all("SELECT * FROM categories ORDER BY name")
        return [Category.model_validate(dict(row)) for row in rows]

    async def replace_categories(self, categories: list[Category]) -> int:
        """Upsert pulled categories."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            await conn.executemany(
                _upsert_sql("categories", CATEGORY_COLUMNS),
                [_params(c, CATEGORY_COLUMNS) for c in categories],
            )
        return len(categories)

    # ------------------------------------------------------------------
    # Atomic multi-record writes
    # ------------------------------------------------------------------

    async def save_adjustment(
        self,
        item: InventoryItem,
        movement: StockMovement,
        queue_entries: list[OutboundQueueEntry] | None = None,
    ) -> None:
        """Write an item, its movement and their queue entries in one transaction."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            await self._put_item(conn, item)
            await conn.execute(
                _upsert_sql("stock_movements", MOVEMENT_COLUMNS),
                _params(movement, MOVEMENT_COLUMNS),
            )
            for entry in queue_entries or []:
                await self._put_queue_entry(conn, entry)
        logger.info(
            "stock_adjustment_saved",
            item_id=item.id,
            movement_id=movement.id,
            qty=item.current_quantity,
            queued=len(queue_entries or []),
        )

    async def save_with_entry(
        self,
        record: InventoryItem | DeviceUser | StockMovement,
        entry: OutboundQueueEntry,
    ) -> None:
        """Write one record and its queue entry in one transaction."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            if isinstance(record, InventoryItem):
                await self._put_item(conn, record)
            elif isinstance(record, DeviceUser):
                await conn.execute(
                    _upsert_sql("device_users", USER_COLUMNS), _params(record, USER_COLUMNS)
                )
            else:
                await conn.execute(
                    _upsert_sql("stock_movements", MOVEMENT_COLUMNS),
                    _params(record, MOVEMENT_COLUMNS),
                )
            await self._put_queue_entry(conn, entry)

    async def delete_item_with_entry(self, item_id: str, entry: OutboundQueueEntry) -> None:
        """Delete an item and queue the delete in one transaction."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            await conn.execute("DELETE FROM inventory_items WHERE id = ?", (item_id,))
            await self._put_queue_entry(conn, entry)

    # ------------------------------------------------------------------
    # Outbound queue
    # ------------------------------------------------------------------

    @staticmethod
    async def _put_queue_entry(conn: aiosqlite.Connection, entry: OutboundQueueEntry) -> None:
        await conn.execute(_upsert_sql("sync_queue", QUEUE_COLUMNS), _queue_params(entry))

    async def append_queue_entry(self, entry: OutboundQueueEntry) -> None:
        """Add an entry to the outbound queue."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            await self._put_queue_entry(conn, entry)
        logger.debug(
            "queue_entry_appended",
            entry_id=entry.id,
            table=entry.table_name.value,
            action=entry.action.value,
        )

    async def get_queue_entry(self, entry_id: str) -> OutboundQueueEntry | None:
        """Get a queue entry by ID."""
        row = await self._fetch_one("SELECT * FROM sync_queue WHERE id = ?", (entry_id,))
        return self._row_to_entry(row) if row else None

    async def get_unsynced_entries(self, include_poisoned: bool = False) -> list[OutboundQueueEntry]:
        """List unsynced entries, oldest first."""
        sql = "SELECT * FROM sync_queue WHERE synced = 0"
        if not include_poisoned:
            sql += " AND poisoned = 0"
        rows = await self._fetch_all(sql + " ORDER BY created_at, id")
        return [self._row_to_entry(row) for row in rows]

    async def get_poisoned_entries(self) -> list[OutboundQueueEntry]:
        """List poisoned entries awaiting an operator, oldest first."""
        rows = await self._fetch_all(
            "SELECT * FROM sync_queue WHERE synced = 0 AND poisoned = 1 ORDER BY created_at, id"
        )
        return [self._row_to_entry(row) for row in rows]

    async def mark_synced(self, entry_id: str) -> None:
        """Mark a queue entry as applied remotely."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            await conn.execute(
                "UPDATE sync_queue SET synced = 1, synced_at = ? WHERE id = ?",
                (utcnow().isoformat(), entry_id),
            )

    async def record_sync_failure(
        self, entry_id: str, error: str, poisoned: bool = False
    ) -> None:
        """Count a failed push and keep its error, optionally poisoning the entry."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            await conn.execute(
                """
                UPDATE sync_queue SET
                    attempts = attempts + 1,
                    last_error = ?,
                    poisoned = ?
                WHERE id = ?
                """,
                (error[:500], int(poisoned), entry_id),
            )

    async def requeue_entry(self, entry_id: str) -> bool:
        """Reset an unsynced entry's attempts and poison flag."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE sync_queue SET poisoned = 0, attempts = 0, last_error = NULL
                WHERE id = ? AND synced = 0
                """,
                (entry_id,),
            )
            return cursor.rowcount > 0

    async def delete_queue_entry(self, entry_id: str) -> bool:
        """Drop a queue entry."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            cursor = await conn.execute("DELETE FROM sync_queue WHERE id = ?", (entry_id,))
            return cursor.rowcount > 0

    async def clear_synced_entries(self) -> int:
        """Purge synced entries; returns how many went."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            cursor = await conn.execute("DELETE FROM sync_queue WHERE synced = 1")
            return cursor.rowcount

    async def count_queue(self) -> QueueSummary:
        """Count entries that are pending, synced and poisoned."""
        row = await self._fetch_one(
            """
            SELECT
                COALESCE(SUM(CASE WHEN synced = 0 AND poisoned = 0 THEN 1 ELSE 0 END), 0),
                COALESCE(SUM(CASE WHEN synced = 1 THEN 1 ELSE 0 END), 0),
                COALESCE(SUM(CASE WHEN synced = 0 AND poisoned = 1 THEN 1 ELSE 0 END), 0)
            FROM sync_queue
            """
        )
        return QueueSummary(pending=row[0], synced=row[1], poisoned=row[2])

    @staticmethod
    def _row_to_entry(row: aiosqlite.Row) -> OutboundQueueEntry:
        """
        Convert a queue row.

        Double-encoded payloads stay strings for the push to unwrap. Text
        that is not a JSON object is kept raw so the push can log and skip
        that one entry instead of failing the whole read.
        """
        data = dict(row)
        raw = data["record_data"]
        try:
            decoded = json.loads(raw)
        except ValueError:
            logger.warning("queue_entry_corrupt", entry_id=data["id"])
            decoded = raw
        if not isinstance(decoded, (dict, str)):
            decoded = raw
        data["record_data"] = decoded
        return OutboundQueueEntry.model_validate(data)

    # ------------------------------------------------------------------
    # Client-local settings
    # ------------------------------------------------------------------

    async def get_setting(self, key: str) -> str | None:
        """Get a client-local setting."""
        row = await self._fetch_one("SELECT value FROM device_settings WHERE key = ?", (key,))
        return row["value"] if row else None

    async def put_setting(self, key: str, value: str | None) -> None:
        """Set a client-local setting; None removes it."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            if value is None:
                await conn.execute("DELETE FROM device_settings WHERE key = ?", (key,))
            else:
                await conn.execute(
                    """
                    INSERT INTO device_settings (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, utcnow().isoformat()),
                )
