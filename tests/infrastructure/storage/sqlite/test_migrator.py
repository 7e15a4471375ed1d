"""Unit tests for database migrator."""

from pathlib import Path
from unittest.mock import patch

import aiosqlite
import pytest

from src.infrastructure.storage.sqlite.migrations.migrator import (
    MigrationInfo,
    create_backup,
    discover_migrations,
    get_applied_migrations,
    initialize_database,
    restore_backup,
)

MIGRATIONS_DIR = "src.infrastructure.storage.sqlite.migrations.migrator.MIGRATIONS_DIR"

EXPECTED_TABLES = {
    "schema_migrations",
    "categories",
    "inventory_items",
    "device_users",
    "stock_movements",
    "sync_queue",
    "device_settings",
}


async def _tables(db_path: Path) -> set[str]:
    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        return {row[0] for row in await cursor.fetchall()}


class TestMigrationInfo:
    def test_from_file_parses_filename(self, tmp_path: Path):
        migration_file = tmp_path / "v001_initial_schema.sql"
        migration_file.write_text("SELECT 1;")

        info = MigrationInfo.from_file(migration_file)

        assert info.version == "001"
        assert info.name == "initial_schema"
        assert info.path == migration_file
        assert len(info.checksum) == 16

    @pytest.mark.parametrize("name", ["initial.sql", "v001_initial.sql.bak", "vx_broken.sql"])
    def test_invalid_filename_raises(self, tmp_path: Path, name):
        bad_file = tmp_path / name
        bad_file.write_text("SELECT 1;")

        with pytest.raises(ValueError, match="Invalid migration filename"):
            MigrationInfo.from_file(bad_file)


class TestDiscoverMigrations:
    def test_bundled_migrations_in_order(self):
        versions = [m.version for m in discover_migrations()]
        assert versions[0] == "001"
        assert versions == sorted(versions, key=int)

    def test_numeric_order_and_skips_invalid(self, tmp_path: Path):
        (tmp_path / "v10_tenth.sql").write_text("SELECT 10;")
        (tmp_path / "v2_second.sql").write_text("SELECT 2;")
        (tmp_path / "vx_broken.sql").write_text("SELECT 3;")

        with patch(MIGRATIONS_DIR, tmp_path):
            migrations = discover_migrations()

        assert [m.name for m in migrations] == ["second", "tenth"]


class TestGetAppliedMigrations:
    async def test_returns_empty_when_no_table(self, tmp_path: Path):
        async with aiosqlite.connect(tmp_path / "empty.db") as conn:
            assert await get_applied_migrations(conn) == {}


class TestBackup:
    async def test_create_and_restore(self, tmp_path: Path):
        db_path = tmp_path / "store.db"
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("CREATE TABLE marker (value TEXT)")
            await conn.execute("INSERT INTO marker VALUES ('original')")
            await conn.commit()

        backup = await create_backup(db_path)
        assert backup.exists()
        assert "backup_" in backup.name

        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("UPDATE marker SET value = 'changed'")
            await conn.commit()

        await restore_backup(db_path, backup)

        async with aiosqlite.connect(db_path) as conn:
            cursor = await conn.execute("SELECT value FROM marker")
            assert (await cursor.fetchone())[0] == "original"

    async def test_backup_includes_wal_pages(self, tmp_path: Path):
        db_path = tmp_path / "store.db"
        async with aiosqlite.connect(db_path) as writer:
            await writer.execute("PRAGMA journal_mode=WAL")
            await writer.execute("CREATE TABLE marker (value TEXT)")
            await writer.execute("INSERT INTO marker VALUES ('in-wal')")
            await writer.commit()

            # Writer still open, so the insert has not been checkpointed
            backup = await create_backup(db_path)

        async with aiosqlite.connect(backup) as conn:
            cursor = await conn.execute("SELECT value FROM marker")
            assert (await cursor.fetchone())[0] == "in-wal"


class TestInitializeDatabase:
    async def test_creates_schema(self, tmp_path: Path):
        db_path = tmp_path / "nested" / "store.db"

        results = await initialize_database(db_path, create_backup_before=False)

        assert results
        assert all(r.success for r in results)
        assert EXPECTED_TABLES <= await _tables(db_path)

    async def test_skips_already_applied(self, tmp_path: Path):
        db_path = tmp_path / "store.db"
        await initialize_database(db_path, create_backup_before=False)

        assert await initialize_database(db_path, create_backup_before=True) == []
        assert list(tmp_path.glob("*.backup_*")) == []

    async def test_backup_removed_after_success(self, tmp_path: Path):
        migrations_dir = tmp_path / "migrations"
        migrations_dir.mkdir()
        (migrations_dir / "v001_first.sql").write_text("CREATE TABLE one (id TEXT);")
        db_path = tmp_path / "store.db"
        with patch(MIGRATIONS_DIR, migrations_dir):
            await initialize_database(db_path, create_backup_before=False)
            (migrations_dir / "v002_second.sql").write_text("CREATE TABLE two (id TEXT);")

            results = await initialize_database(db_path, create_backup_before=True)

        assert [r.version for r in results] == ["002"]
        assert list(tmp_path.glob("*.backup_*")) == []

    async def test_defaults_to_settings_path(self, tmp_path: Path):
        await initialize_database(create_backup_before=False)
        assert (tmp_path / "data" / "stockpad.db").exists()

    async def test_failed_migration_is_rolled_back(self, tmp_path: Path):
        migrations_dir = tmp_path / "migrations"
        migrations_dir.mkdir()
        (migrations_dir / "v001_good.sql").write_text("CREATE TABLE good (id TEXT);")
        (migrations_dir / "v002_broken.sql").write_text(
            "CREATE TABLE half_done (id TEXT);\nCREATE TABLE oops (;"
        )
        (migrations_dir / "v003_never.sql").write_text("CREATE TABLE never (id TEXT);")
        db_path = tmp_path / "store.db"

        with patch(MIGRATIONS_DIR, migrations_dir):
            results = await initialize_database(db_path, create_backup_before=False)

        assert [(r.version, r.success) for r in results] == [("001", True), ("002", False)]
        assert results[1].error
        tables = await _tables(db_path)
        assert "good" in tables
        assert "half_done" not in tables
        assert "never" not in tables
        async with aiosqlite.connect(db_path) as conn:
            assert set(await get_applied_migrations(conn)) == {"001"}

    async def test_changed_checksum_not_reapplied(self, tmp_path: Path):
        migrations_dir = tmp_path / "migrations"
        migrations_dir.mkdir()
        script = migrations_dir / "v001_first.sql"
        script.write_text("CREATE TABLE one (id TEXT);")
        db_path = tmp_path / "store.db"

        with patch(MIGRATIONS_DIR, migrations_dir):
            await initialize_database(db_path, create_backup_before=False)
            script.write_text("CREATE TABLE one (id TEXT, extra TEXT);")
            results = await initialize_database(db_path, create_backup_before=False)

        assert results == []
