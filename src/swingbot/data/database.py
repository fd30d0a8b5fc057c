"""Async SQLite database manager for candles, pair settings and trades.

Uses aiosqlite for non-blocking database operations with WAL mode
for concurrent read/write performance.
"""

import asyncio
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Self

import aiosqlite

from swingbot.exceptions import StoreNotInitializedError
from swingbot.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS candles (
    pair TEXT NOT NULL,
    time INTEGER NOT NULL,
    open TEXT NOT NULL,
    high TEXT NOT NULL,
    low TEXT NOT NULL,
    close TEXT NOT NULL,
    volume TEXT NOT NULL,
    PRIMARY KEY (pair, time)
);

CREATE TABLE IF NOT EXISTS pairs (
    pair TEXT PRIMARY KEY,
    max_invest_fiat TEXT NOT NULL,
    max_per_tx_fiat TEXT NOT NULL,
    take_profit_pct TEXT NOT NULL DEFAULT '0',
    stop_loss_pct TEXT NOT NULL DEFAULT '0'
);

CREATE TABLE IF NOT EXISTS trades (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    pair TEXT NOT NULL,
    side TEXT NOT NULL CHECK (side IN ('BUY', 'SELL')),
    entry_price TEXT NOT NULL,
    exit_price TEXT,
    amount TEXT NOT NULL,
    invested TEXT NOT NULL,
    stop_loss TEXT,
    take_profit TEXT,
    status TEXT NOT NULL CHECK (status IN ('OPEN', 'CLOSED')),
    opened_at INTEGER NOT NULL,
    closed_at INTEGER,
    pnl TEXT
);
"""

_CREATE_INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_trades_pair_status
    ON trades(pair, status);

CREATE UNIQUE INDEX IF NOT EXISTS idx_trades_one_open_per_pair
    ON trades(pair) WHERE status = 'OPEN';
"""


class Database:
    """Async SQLite connection manager.

    Manages database lifecycle including schema creation, WAL mode
    configuration, and clean resource cleanup.

    Usage:
        # Context manager (recommended)
        async with Database("/path/to/db") as db:
            await db.db.execute("SELECT ...")

        # Manual lifecycle
        db = Database("/path/to/db")
        await db.connect()
        try:
            await db.db.execute("SELECT ...")
        finally:
            await db.close()

    Pass create_schema=False to open an existing store without creating
    tables; require_tables() then reports a store that was never initialized.

    All writes go through transaction(), which serializes them on the single
    shared connection so two passes never interleave inside one transaction.
    """

    def __init__(self, db_path: str = "data/swingbot.db", create_schema: bool = True) -> None:
        self._db_path = db_path
        self._create_schema = create_schema
        self._connection: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    @property
    def db(self) -> aiosqlite.Connection:
        """Access the raw aiosqlite connection.

        Raises RuntimeError if not connected.
        """
        if self._connection is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    async def connect(self) -> None:
        """Open database connection, configure pragmas, and create schema.

        Creates the parent directory if it does not exist.
        Sets WAL journal mode and NORMAL synchronous for performance.
        """
        db_dir = os.path.dirname(self._db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self._connection = await aiosqlite.connect(self._db_path)

        await self._connection.execute("PRAGMA journal_mode=WAL")
        await self._connection.execute("PRAGMA synchronous=NORMAL")

        if self._create_schema:
            await self._create_tables()
            await self._ensure_schema_version()

        logger.info("db_connected", db_path=self._db_path)

    async def close(self) -> None:
        """Close the database connection if open."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("db_closed", db_path=self._db_path)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Run a block in one write transaction.

        Commits on success and rolls back on any exception. Not reentrant.

        Usage:
            async with database.transaction() as conn:
                await conn.execute("DELETE FROM ...")
        """
        async with self._write_lock:
            conn = self.db
            await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            await conn.commit()

    async def table_exists(self, table_name: str) -> bool:
        """Return True if the named table is present in sqlite_master."""
        cursor = await self.db.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
            (table_name,),
        )
        return await cursor.fetchone() is not None

    async def require_tables(self, *table_names: str) -> None:
        """Raise StoreNotInitializedError if any of the tables is missing."""
        for name in table_names:
            if not await self.table_exists(name):
                raise StoreNotInitializedError(
                    f'Table "{name}" not found in {self._db_path}. Initialize the store first.'
                )

    async def _create_tables(self) -> None:
        """Create all tables and indexes if they do not exist."""
        assert self._connection is not None
        await self._connection.executescript(_CREATE_TABLES_SQL)
        await self._connection.executescript(_CREATE_INDEXES_SQL)
        await self._connection.commit()

    async def _ensure_schema_version(self) -> None:
        """Insert schema version if not already set."""
        assert self._connection is not None
        cursor = await self._connection.execute(
            "SELECT version FROM schema_version LIMIT 1"
        )
        row = await cursor.fetchone()
        if row is None:
            await self._connection.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )
            await self._connection.commit()
            logger.info("schema_version_set", version=SCHEMA_VERSION)

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        """Async context manager exit."""
        await self.close()
