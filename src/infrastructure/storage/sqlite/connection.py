"""
aiosqlite connections for the on-device store.

A local mutation and its outbound queue entry are written in a single
``BEGIN IMMEDIATE`` transaction. The write lock is taken before the first
statement, so a sync pass reading the queue never sees half of a change
and two writers never deadlock upgrading from a read lock.
"""

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from src.config import get_logger, get_settings
from src.core.exceptions import DatabaseError

logger = get_logger(__name__)


class ConnectionPool:
    """
    Bounded set of connections to one SQLite file.

    Connections are opened on demand up to ``pool_size``; callers beyond
    that wait for one to be released. Use ``acquire()`` for reads and
    ``transaction()`` for anything that writes.
    """

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        busy_timeout: int = 30000,
    ):
        self.db_path = Path(db_path)
        self.pool_size = max(1, pool_size)
        self.busy_timeout = busy_timeout

        self._idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue()
        self._opened: list[aiosqlite.Connection] = []
        self._open = False
        self._lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def opened_count(self) -> int:
        """Connections currently open, idle or checked out."""
        return len(self._opened)

    @property
    def idle_count(self) -> int:
        return self._idle.qsize()

    async def initialize(self) -> None:
        """Create the database directory and open the first connection."""
        async with self._lock:
            if self._open:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._idle.put_nowait(await self._connect())
            self._open = True
            logger.info(
                "connection_pool_opened",
                db_path=str(self.db_path),
                pool_size=self.pool_size,
            )

    async def _connect(self) -> aiosqlite.Connection:
        try:
            conn = await aiosqlite.connect(self.db_path)
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA synchronous=NORMAL")
            await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")
        except (aiosqlite.Error, OSError) as e:
            raise DatabaseError("open", str(e)) from e

        conn.row_factory = aiosqlite.Row
        self._opened.append(conn)
        return conn

    async def _checkout(self) -> aiosqlite.Connection:
        if not self._open:
            await self.initialize()

        try:
            return self._idle.get_nowait()
        except asyncio.QueueEmpty:
            pass

        async with self._lock:
            if len(self._opened) < self.pool_size:
                return await self._connect()
        return await self._idle.get()

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a connection, returning it to the pool afterwards.

        Usage:
            async with pool.acquire() as conn:
                await conn.execute(...)
        """
        conn = await self._checkout()
        try:
            yield conn
        finally:
            if conn in self._opened:
                self._idle.put_nowait(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a connection inside ``BEGIN IMMEDIATE``.

        Commits when the block exits cleanly, rolls back otherwise.

        Raises:
            DatabaseError: The write lock could not be taken within the busy timeout.
        """
        async with self.acquire() as conn:
            try:
                await conn.execute("BEGIN IMMEDIATE")
            except aiosqlite.Error as e:
                raise DatabaseError("begin", str(e)) from e
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            await conn.commit()

    async def ping(self) -> float:
        """Round-trip a trivial query; returns latency in milliseconds."""
        start = time.perf_counter()
        try:
            async with self.acquire() as conn:
                await conn.execute("SELECT 1")
        except aiosqlite.Error as e:
            raise DatabaseError("ping", str(e)) from e
        return (time.perf_counter() - start) * 1000

    async def close(self) -> None:
        """Close every connection; the pool can be reopened afterwards."""
        async with self._lock:
            opened, self._opened = self._opened, []
            for conn in opened:
                await conn.close()
            self._idle = asyncio.Queue()
            if self._open:
                logger.info("connection_pool_closed", closed=len(opened))
            self._open = False


# Process-wide pool
_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Get or create the process-wide pool at the configured database path."""
    global _pool
    if _pool is None:
        storage = get_settings().storage
        _pool = ConnectionPool(
            db_path=storage.db_path,
            pool_size=storage.pool_size,
            busy_timeout=storage.busy_timeout,
        )
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    """Close the process-wide pool, if one was opened."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
