"""Async SQLite database manager for trade, funding and settings records.

Uses aiosqlite for non-blocking database operations with WAL mode.
Every row is scoped to a user_id supplied by the caller.
"""

import os
from typing import Self

import aiosqlite

from tradebook.exceptions import StoreError
from tradebook.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS trades (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    transaction_id TEXT,
    pair TEXT NOT NULL,
    side TEXT,
    margin_type TEXT,
    leverage TEXT,
    entry_price TEXT,
    exit_price TEXT,
    quantity TEXT,
    amount_symbol TEXT,
    open_fee TEXT,
    close_fee TEXT,
    funding_fee TEXT,
    status TEXT,
    open_time TEXT,
    close_time TEXT,
    copiers INTEGER NOT NULL DEFAULT 0,
    sharing INTEGER NOT NULL DEFAULT 0,
    month_key TEXT
);

CREATE TABLE IF NOT EXISTS funding_records (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    date TEXT,
    asset TEXT,
    amount TEXT,
    type TEXT,
    month_key TEXT
);

CREATE TABLE IF NOT EXISTS settings (
    user_id TEXT PRIMARY KEY,
    portfolio_size TEXT NOT NULL
);
"""

_CREATE_INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_trades_user_month
    ON trades(user_id, month_key);

CREATE INDEX IF NOT EXISTS idx_funding_user_date
    ON funding_records(user_id, date);
"""


class TradebookDatabase:
    """Async SQLite connection manager for the tradebook.

    Usage:
        async with TradebookDatabase("data/tradebook.db") as database:
            store = TradebookStore(database)
    """

    def __init__(self, db_path: str = "data/tradebook.db") -> None:
        self._db_path = db_path
        self._connection: aiosqlite.Connection | None = None

    @property
    def db(self) -> aiosqlite.Connection:
        """Access the raw aiosqlite connection.

        Raises StoreError if not connected.
        """
        if self._connection is None:
            raise StoreError("Database not connected. Call connect() first.")
        return self._connection

    async def connect(self) -> None:
        """Open the connection, configure pragmas, and create the schema."""
        db_dir = os.path.dirname(self._db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self._connection = await aiosqlite.connect(self._db_path)

        await self._connection.execute("PRAGMA journal_mode=WAL")
        await self._connection.execute("PRAGMA synchronous=NORMAL")

        await self._create_tables()
        await self._ensure_schema_version()

        logger.info("tradebook_db_connected", db_path=self._db_path)

    async def close(self) -> None:
        """Close the database connection if open."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("tradebook_db_closed", db_path=self._db_path)

    async def _create_tables(self) -> None:
        assert self._connection is not None
        await self._connection.executescript(_CREATE_TABLES_SQL)
        await self._connection.executescript(_CREATE_INDEXES_SQL)
        await self._connection.commit()

    async def _ensure_schema_version(self) -> None:
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
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()
