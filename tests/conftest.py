"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Generator
from copy import deepcopy
from pathlib import Path
from typing import Any

import pytest

from src.config import reset_settings
from src.core.exceptions import (
    ForeignKeyViolationError,
    RemoteStoreError,
    RemoteUnavailableError,
)
from src.core.interfaces.remote_store import IRemoteStore
from src.infrastructure.storage.sqlite import ConnectionPool, SQLiteLocalStore
from src.infrastructure.storage.sqlite.migrations.migrator import initialize_database

# (table, column) -> referenced table
FOREIGN_KEYS: dict[tuple[str, str], str] = {
    ("stock_movements", "item_id"): "inventory_items",
    ("stock_movements", "device_user_id"): "device_users",
}


class FakeRemoteStore(IRemoteStore):
    """
    In-memory remote with upsert-by-id, a unique SKU and foreign keys.

    Tests inject failures through ``fail_next`` (raised in order on the
    next calls), ``fail_tables`` (raised on every write to a table) or
    ``fail_fetch`` (raised when pulling a table).
    """

    def __init__(self) -> None:
        self.tables: dict[str, dict[str, dict[str, Any]]] = {
            "inventory_items": {},
            "stock_movements": {},
            "device_users": {},
            "categories": {},
        }
        self.calls: list[tuple[str, str, Any]] = []
        self.fail_next: list[Exception] = []
        self.fail_tables: dict[str, Exception] = {}
        self.fail_fetch: dict[str, Exception] = {}
        self.reachable = True

    def _check(self, op: str, table: str, payload: Any = None) -> None:
        self.calls.append((op, table, deepcopy(payload)))
        if not self.reachable:
            raise RemoteUnavailableError("connection refused")
        if self.fail_next:
            raise self.fail_next.pop(0)
        if op == "fetch_all" and table in self.fail_fetch:
            raise self.fail_fetch[table]
        if op != "fetch_all" and table in self.fail_tables:
            raise self.fail_tables[table]

    def _check_constraints(self, table: str, record: dict[str, Any]) -> None:
        for (fk_table, column), target in FOREIGN_KEYS.items():
            if fk_table != table or record.get(column) is None:
                continue
            if record[column] not in self.tables[target]:
                raise ForeignKeyViolationError(
                    f'insert or update on table "{table}" violates foreign key '
                    f'constraint "{table}_{column}_fkey"',
                    constraint=f"{table}_{column}_fkey",
                    column=column,
                    table=table,
                )
        if table == "inventory_items":
            for row in self.tables[table].values():
                if row["sku"] == record.get("sku") and row["id"] != record["id"]:
                    raise RemoteStoreError(
                        "duplicate key value violates unique constraint",
                        status_code=409,
                        pg_code="23505",
                        table=table,
                    )

    def seed(self, table: str, *records: dict[str, Any]) -> None:
        for record in records:
            self.tables[table][record["id"]] = deepcopy(record)

    def writes(self, table: str) -> list[Any]:
        return [p for op, t, p in self.calls if t == table and op in ("upsert", "update")]

    async def upsert(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        self._check("upsert", table, record)
        self._check_constraints(table, record)
        merged = {**self.tables[table].get(record["id"], {}), **deepcopy(record)}
        self.tables[table][record["id"]] = merged
        return deepcopy(merged)

    async def delete(self, table: str, record_id: str) -> None:
        self._check("delete", table, record_id)
        self.tables[table].pop(record_id, None)

    async def fetch_all(self, table: str) -> list[dict[str, Any]]:
        self._check("fetch_all", table)
        return [deepcopy(row) for row in self.tables[table].values()]

    async def find_item_by_sku(self, sku: str) -> dict[str, Any] | None:
        self._check("find_item_by_sku", "inventory_items", sku)
        for row in self.tables["inventory_items"].values():
            if row["sku"] == sku:
                return deepcopy(row)
        return None

    async def update(self, table: str, record_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        self._check("update", table, changes)
        if record_id not in self.tables[table]:
            raise RemoteStoreError(f"no {table} row with id {record_id}", status_code=404, table=table)
        self.tables[table][record_id].update(deepcopy(changes))
        return deepcopy(self.tables[table][record_id])

    async def ping(self) -> bool:
        return self.reachable


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Point settings at a temp data dir and drop cached singletons."""
    from src.application.services import reset_services
    from src.infrastructure.remote import reset_remote_store
    from src.infrastructure.storage.sqlite import reset_local_store

    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
    reset_settings()
    reset_services()
    reset_remote_store()
    reset_local_store()
    yield
    reset_services()
    reset_remote_store()
    reset_local_store()
    reset_settings()


@pytest.fixture
def remote_store() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
async def pool(temp_db_path: Path) -> AsyncGenerator[ConnectionPool, None]:
    """Migrated temporary database behind a single-connection pool."""
    await initialize_database(temp_db_path, create_backup_before=False)
    pool = ConnectionPool(temp_db_path, pool_size=1)
    await pool.initialize()
    yield pool
    await pool.close()


@pytest.fixture
async def local_store(pool: ConnectionPool) -> SQLiteLocalStore:
    return SQLiteLocalStore(pool)
