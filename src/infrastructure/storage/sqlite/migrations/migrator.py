"""
Schema migrations for the on-device database.

Scripts named ``vNNN_name.sql`` sit beside this module. Each one runs in
its own transaction together with its ledger row, so a script that fails
halfway leaves the database exactly as it was. A snapshot taken with
SQLite's online backup API (which includes pages still in the WAL, where
unsynced queue entries may live) guards against everything else.
"""

import hashlib
import re
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import aiosqlite

from src.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

_FILENAME = re.compile(r"v(\d+)_(.+)\.sql")

_LEDGER_DDL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    checksum TEXT,
    applied_at TEXT DEFAULT (datetime('now')),
    execution_time_ms INTEGER
)
"""


@dataclass
class MigrationInfo:
    """A migration script on disk."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = _FILENAME.fullmatch(path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")
        digest = hashlib.sha256(path.read_bytes()).hexdigest()[:16]
        return cls(version=match.group(1), name=match.group(2), path=path, checksum=digest)


@dataclass
class MigrationResult:
    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


def discover_migrations() -> list[MigrationInfo]:
    """Migration scripts sorted by version; badly named files are skipped."""
    found = []
    for path in MIGRATIONS_DIR.glob("v*.sql"):
        try:
            found.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("migration_skipped", path=str(path), error=str(e))
    return sorted(found, key=lambda m: int(m.version))


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied versions mapped to the checksum they were applied with."""
    try:
        cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
    except aiosqlite.OperationalError:
        return {}
    return {row[0]: row[1] for row in await cursor.fetchall()}


async def apply_migration(conn: aiosqlite.Connection, migration: MigrationInfo) -> MigrationResult:
    """Run one script and record it, atomically."""
    started = time.perf_counter()

    def elapsed_ms() -> int:
        return int((time.perf_counter() - started) * 1000)

    try:
        # executescript commits anything pending, then leaves our BEGIN open
        await conn.executescript("BEGIN;\n" + migration.path.read_text(encoding="utf-8"))
        await conn.execute(
            "INSERT INTO schema_migrations (version, name, checksum, execution_time_ms) "
            "VALUES (?, ?, ?, ?)",
            (migration.version, migration.name, migration.checksum, elapsed_ms()),
        )
        await conn.commit()
    except aiosqlite.Error as e:
        await conn.rollback()
        logger.error(
            "migration_failed",
            version=migration.version,
            migration=migration.name,
            error=str(e),
        )
        return MigrationResult(
            migration.version, migration.name, False, elapsed_ms(), error=str(e)
        )

    logger.info(
        "migration_applied",
        version=migration.version,
        migration=migration.name,
        execution_time_ms=elapsed_ms(),
    )
    return MigrationResult(migration.version, migration.name, True, elapsed_ms())


async def _copy_database(source: Path, target: Path) -> None:
    async with aiosqlite.connect(source) as src, aiosqlite.connect(target) as dst:
        await src.backup(dst)


async def create_backup(db_path: Path) -> Path:
    """Snapshot the live database next to it and return the snapshot's path."""
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    backup_path = db_path.with_name(f"{db_path.stem}.backup_{stamp}{db_path.suffix}")
    await _copy_database(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


async def restore_backup(db_path: Path, backup_path: Path) -> None:
    """Overwrite the live database with a snapshot."""
    await _copy_database(backup_path, db_path)
    logger.warning("database_restored_from_backup", backup_path=str(backup_path))


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
) -> list[MigrationResult]:
    """
    Bring the database schema up to date.

    Stops at the first failing migration. Later migrations are not attempted.

    Args:
        db_path: Database file; defaults to the configured storage path.
        create_backup_before: Snapshot an existing database first when
            anything is pending. The snapshot is deleted once every
            migration succeeds, and restored if migrating raises.

    Returns:
        One result per migration attempted, empty when already current.
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    existed = db_path.exists()

    results: list[MigrationResult] = []
    backup_path: Path | None = None

    try:
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute(_LEDGER_DDL)
            await conn.commit()

            applied = await get_applied_migrations(conn)
            pending = []
            for migration in discover_migrations():
                if migration.version not in applied:
                    pending.append(migration)
                elif applied[migration.version] != migration.checksum:
                    logger.warning(
                        "migration_checksum_changed",
                        version=migration.version,
                        migration=migration.name,
                    )

            if not pending:
                logger.debug("schema_up_to_date", db_path=str(db_path))
                return results

            if create_backup_before and existed:
                backup_path = await create_backup(db_path)

            logger.info("migrating_database", db_path=str(db_path), pending=len(pending))
            for migration in pending:
                result = await apply_migration(conn, migration)
                results.append(result)
                if not result.success:
                    break
    except Exception as e:
        logger.error("database_initialization_failed", db_path=str(db_path), error=str(e))
        if backup_path is not None:
            await restore_backup(db_path, backup_path)
        raise

    if backup_path is not None and all(r.success for r in results):
        backup_path.unlink()
        logger.info("database_backup_removed", backup_path=str(backup_path))

    return results


# Entry point used by the app lifespan and manage.py
run_migrations = initialize_database
