"""Typed read/write abstraction over the tradebook database.

All SQL is isolated behind TradebookStore. Decimal fields are stored as TEXT
and restored as Decimal on read. month_key columns are written from the
records' derived keys so month filtering can happen in SQL.

Identity: only 36-character UUID ids are kept on write. Anything else
(CSV-..., DUMP-..., FUND-..., NEW-...) is a locally generated placeholder
and gets a fresh UUID, i.e. the record is treated as new.
"""

import uuid
from decimal import Decimal

import aiosqlite

from tradebook.data.database import TradebookDatabase
from tradebook.exceptions import StoreError
from tradebook.logging import get_logger
from tradebook.models import (
    FundingRecord,
    MarginType,
    TradeRecord,
    TradeSide,
    TradeStatus,
    UserSettings,
)

logger = get_logger(__name__)

UUID_LENGTH = 36

_TRADE_COLUMNS = (
    "id, user_id, transaction_id, pair, side, margin_type, leverage, "
    "entry_price, exit_price, quantity, amount_symbol, open_fee, close_fee, "
    "funding_fee, status, open_time, close_time, copiers, sharing, month_key"
)
_FUNDING_COLUMNS = "id, user_id, date, asset, amount, type, month_key"


def stable_id(record_id: str | None) -> str:
    """Keep persisted UUIDs, replace placeholder ids with a new UUID."""
    if record_id and len(record_id) == UUID_LENGTH:
        return record_id
    return str(uuid.uuid4())


def _dec(value: str | None) -> Decimal:
    return Decimal(value) if value not in (None, "") else Decimal("0")


def _trade_row(trade: TradeRecord, user_id: str) -> tuple:
    return (
        stable_id(trade.id),
        user_id,
        trade.transaction_id,
        trade.pair,
        TradeSide(trade.side).value,
        MarginType(trade.margin_type).value,
        str(trade.leverage),
        str(trade.entry_price),
        str(trade.exit_price),
        str(trade.quantity),
        trade.amount_symbol,
        str(trade.open_fee),
        str(trade.close_fee),
        str(trade.funding_fee),
        TradeStatus(trade.status).value,
        trade.open_time,
        trade.close_time,
        trade.copiers,
        trade.sharing,
        trade.month_key,
    )


def _row_to_trade(row: tuple) -> TradeRecord:
    return TradeRecord(
        id=row[0],
        user_id=row[1],
        transaction_id=row[2],
        pair=row[3],
        side=TradeSide(row[4]) if row[4] else TradeSide.LONG,
        margin_type=MarginType(row[5]) if row[5] else MarginType.ISOLATED,
        leverage=_dec(row[6]),
        entry_price=_dec(row[7]),
        exit_price=_dec(row[8]),
        quantity=_dec(row[9]),
        amount_symbol=row[10],
        open_fee=_dec(row[11]),
        close_fee=_dec(row[12]),
        funding_fee=_dec(row[13]),
        status=TradeStatus(row[14]) if row[14] else TradeStatus.OPEN,
        open_time=row[15] or "",
        close_time=row[16],
        copiers=row[17] or 0,
        sharing=row[18] or 0,
    )


class TradebookStore:
    """Async SQLite store for trades, funding records and user settings.

    An empty user_id makes reads return nothing (or defaults) and writes
    do nothing.

    Args:
        database: Connected TradebookDatabase.
        default_portfolio_size: Returned by fetch_settings for users with no row.
    """

    def __init__(
        self,
        database: TradebookDatabase,
        default_portfolio_size: Decimal = Decimal("10000"),
    ) -> None:
        self._database = database
        self._default_portfolio_size = default_portfolio_size

    # ──────────────────────────────────────────────
    # Read methods
    # ──────────────────────────────────────────────

    async def fetch_trades(self, user_id: str, month_key: str | None = None) -> list[TradeRecord]:
        """Trades for a user, newest open time first, optionally for one month."""
        if not user_id:
            return []

        query = f"SELECT {_TRADE_COLUMNS} FROM trades WHERE user_id = ?"
        params: list = [user_id]
        if month_key and month_key != "ALL":
            query += " AND month_key = ?"
            params.append(month_key)
        query += " ORDER BY open_time DESC"

        cursor = await self._database.db.execute(query, params)
        rows = await cursor.fetchall()
        return [_row_to_trade(row) for row in rows]

    async def fetch_funding_records(self, user_id: str) -> list[FundingRecord]:
        """Funding records for a user, newest date first."""
        if not user_id:
            return []

        cursor = await self._database.db.execute(
            f"SELECT {_FUNDING_COLUMNS} FROM funding_records "
            "WHERE user_id = ? ORDER BY date DESC",
            (user_id,),
        )
        rows = await cursor.fetchall()
        return [
            FundingRecord(
                id=row[0],
                user_id=row[1],
                date=row[2] or "",
                asset=row[3] or "USDT",
                amount=_dec(row[4]),
                type=row[5] or "Funding Fee",
            )
            for row in rows
        ]

    async def fetch_settings(self, user_id: str) -> UserSettings:
        """Saved settings, or defaults when the user has none."""
        if not user_id:
            return UserSettings(portfolio_size=self._default_portfolio_size)

        cursor = await self._database.db.execute(
            "SELECT portfolio_size FROM settings WHERE user_id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return UserSettings(portfolio_size=self._default_portfolio_size)
        return UserSettings(portfolio_size=_dec(row[0]))

    # ──────────────────────────────────────────────
    # Write methods
    # ──────────────────────────────────────────────

    async def sync_trades(self, trades: list[TradeRecord], user_id: str) -> int:
        """Upsert trades for a user. Returns the number of rows written."""
        if not user_id or not trades:
            return 0
        try:
            await self._insert_trades(trades, user_id)
            await self._database.db.commit()
        except aiosqlite.Error as exc:
            raise StoreError(f"Failed to sync trades: {exc}") from exc

        logger.debug("trades_synced", count=len(trades))
        return len(trades)

    async def replace_trades(self, trades: list[TradeRecord], user_id: str) -> int:
        """Delete all of a user's trades and insert `trades` in one transaction."""
        if not user_id:
            return 0
        try:
            await self._database.db.execute("DELETE FROM trades WHERE user_id = ?", (user_id,))
            if trades:
                await self._insert_trades(trades, user_id)
            await self._database.db.commit()
        except aiosqlite.Error as exc:
            await self._database.db.rollback()
            raise StoreError(f"Failed to replace trades: {exc}") from exc

        logger.info("trades_replaced", count=len(trades))
        return len(trades)

    async def sync_funding(self, records: list[FundingRecord], user_id: str) -> int:
        """Upsert funding records for a user. Returns the number of rows written."""
        if not user_id or not records:
            return 0

        data = [
            (
                stable_id(r.id),
                user_id,
                r.date,
                r.asset,
                str(r.amount),
                r.type,
                r.month_key,
            )
            for r in records
        ]
        try:
            await self._database.db.executemany(
                f"INSERT OR REPLACE INTO funding_records ({_FUNDING_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                data,
            )
            await self._database.db.commit()
        except aiosqlite.Error as exc:
            raise StoreError(f"Failed to sync funding records: {exc}") from exc

        logger.debug("funding_synced", count=len(records))
        return len(records)

    async def update_settings(self, settings: UserSettings, user_id: str) -> None:
        """Insert or replace a user's settings row."""
        if not user_id:
            return
        await self._database.db.execute(
            "INSERT OR REPLACE INTO settings (user_id, portfolio_size) VALUES (?, ?)",
            (user_id, str(settings.portfolio_size)),
        )
        await self._database.db.commit()

    async def delete_all_trades(self, user_id: str) -> int:
        """Remove every trade of a user. Returns the number of deleted rows."""
        if not user_id:
            return 0
        cursor = await self._database.db.execute(
            "DELETE FROM trades WHERE user_id = ?",
            (user_id,),
        )
        await self._database.db.commit()
        logger.info("trades_deleted", count=cursor.rowcount)
        return cursor.rowcount

    async def _insert_trades(self, trades: list[TradeRecord], user_id: str) -> None:
        await self._database.db.executemany(
            f"INSERT OR REPLACE INTO trades ({_TRADE_COLUMNS}) "
            f"VALUES ({', '.join('?' * 20)})",
            [_trade_row(t, user_id) for t in trades],
        )
