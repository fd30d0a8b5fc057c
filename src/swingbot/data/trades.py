"""Trade ledger persisted in SQLite.

Owns the OPEN -> CLOSED lifecycle of trades. At most one OPEN trade per pair
is allowed; the partial unique index idx_trades_one_open_per_pair enforces it
and a violation surfaces as ConflictError.

CRITICAL: All monetary values stored as TEXT in SQLite, restored as Decimal on read.
"""

import time
from decimal import Decimal

import aiosqlite

from swingbot.data.database import Database
from swingbot.exceptions import ConflictError, NotFoundError
from swingbot.logging import get_logger
from swingbot.models import NewTrade, Trade, TradeSide, TradeStatus, compute_pnl

logger = get_logger(__name__)

_TRADE_COLUMNS = (
    "id, pair, side, entry_price, exit_price, amount, invested, "
    "stop_loss, take_profit, status, opened_at, closed_at, pnl"
)


def _dec(value: str | None) -> Decimal | None:
    return Decimal(value) if value is not None else None


def _str(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


def _row_to_trade(row: tuple) -> Trade:
    return Trade(
        id=row[0],
        pair=row[1],
        side=TradeSide(row[2]),
        entry_price=Decimal(row[3]),
        exit_price=_dec(row[4]),
        amount=Decimal(row[5]),
        invested=Decimal(row[6]),
        stop_loss=_dec(row[7]),
        take_profit=_dec(row[8]),
        status=TradeStatus(row[9]),
        opened_at=row[10],
        closed_at=row[11],
        pnl=_dec(row[12]),
    )


class TradeLedger:
    """Async SQLite ledger of opened and closed trades.

    Usage:
        ledger = TradeLedger(database)
        trade_id = await ledger.open_trade(NewTrade(...))
        closed = await ledger.close_trade(trade_id, exit_price=Decimal("21.5"))
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    async def open_trade(self, new_trade: NewTrade) -> int:
        """Insert an OPEN trade and return its id.

        Raises:
            ConflictError: If the pair already has an OPEN trade.
        """
        opened_at = new_trade.opened_at if new_trade.opened_at is not None else int(time.time())
        try:
            async with self._database.transaction() as conn:
                cursor = await conn.execute(
                    "INSERT INTO trades "
                    "(pair, side, entry_price, amount, invested, stop_loss, take_profit, status, opened_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, 'OPEN', ?)",
                    (
                        new_trade.pair,
                        new_trade.side.value,
                        str(new_trade.entry_price),
                        str(new_trade.amount),
                        str(new_trade.invested),
                        _str(new_trade.stop_loss),
                        _str(new_trade.take_profit),
                        opened_at,
                    ),
                )
                trade_id = cursor.lastrowid
        except aiosqlite.IntegrityError as e:
            raise ConflictError(
                f"Pair {new_trade.pair} already has an OPEN trade"
            ) from e

        logger.debug("trade_opened", trade_id=trade_id, pair=new_trade.pair)
        return trade_id

    async def get_trade(self, trade_id: int) -> Trade | None:
        cursor = await self._database.db.execute(
            f"SELECT {_TRADE_COLUMNS} FROM trades WHERE id = ?",
            (trade_id,),
        )
        row = await cursor.fetchone()
        return _row_to_trade(row) if row is not None else None

    async def list_trades(
        self,
        pair: str | None = None,
        status: TradeStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Trade]:
        """List trades newest first, optionally filtered by pair and status."""
        conditions: list[str] = []
        params: list = []

        if pair:
            conditions.append("pair = ?")
            params.append(pair)
        if status is not None:
            conditions.append("status = ?")
            params.append(status.value)
        params.extend([max(0, limit), max(0, offset)])

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        cursor = await self._database.db.execute(
            f"SELECT {_TRADE_COLUMNS} FROM trades {where} "
            f"ORDER BY opened_at DESC, id DESC LIMIT ? OFFSET ?",
            params,
        )
        rows = await cursor.fetchall()
        return [_row_to_trade(row) for row in rows]

    async def get_open_trades(self, pair: str | None = None) -> list[Trade]:
        return await self.list_trades(pair=pair, status=TradeStatus.OPEN, limit=1000)

    async def close_trade(
        self,
        trade_id: int,
        exit_price: Decimal,
        closed_at: int | None = None,
    ) -> Trade:
        """Close an OPEN trade, computing its P&L, and return the updated row.

        Raises:
            NotFoundError: If no trade has this id.
            ConflictError: If the trade is not OPEN.
        """
        trade = await self.get_trade(trade_id)
        if trade is None:
            raise NotFoundError(f"Trade not found id={trade_id}")
        if trade.status != TradeStatus.OPEN:
            raise ConflictError(f"Trade already closed id={trade_id}")

        pnl = compute_pnl(trade.side, trade.entry_price, exit_price, trade.amount)
        if closed_at is None:
            closed_at = int(time.time())

        async with self._database.transaction() as conn:
            cursor = await conn.execute(
                "UPDATE trades "
                "SET exit_price = ?, closed_at = ?, status = 'CLOSED', pnl = ? "
                "WHERE id = ? AND status = 'OPEN'",
                (str(exit_price), closed_at, str(pnl), trade_id),
            )
            if cursor.rowcount != 1:
                raise ConflictError(f"Trade id={trade_id} was not OPEN at update time")

        updated = await self.get_trade(trade_id)
        assert updated is not None
        logger.debug("trade_closed", trade_id=trade_id, pair=trade.pair, pnl=str(pnl))
        return updated

    async def delete_trade(self, trade_id: int) -> None:
        """Delete a trade row.

        Raises:
            NotFoundError: If no row was deleted.
        """
        async with self._database.transaction() as conn:
            cursor = await conn.execute("DELETE FROM trades WHERE id = ?", (trade_id,))
            if cursor.rowcount != 1:
                raise NotFoundError(f"Trade not found id={trade_id}")
