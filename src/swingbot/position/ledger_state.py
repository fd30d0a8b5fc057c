"""Ledger-backed position state for real mode.

The TradeLedger is the sole source of truth: every open/close is persisted
and ledger errors (NotFoundError, ConflictError) propagate unchanged.
"""

from decimal import Decimal

from swingbot.data.trades import TradeLedger
from swingbot.models import NewTrade, Trade
from swingbot.position.sizing import sum_invested_open
from swingbot.position.state import PositionState


class LedgerPositionState(PositionState):
    """Reads and writes position state through the TradeLedger."""

    def __init__(self, ledger: TradeLedger) -> None:
        self._ledger = ledger

    async def get_open(self, pair: str) -> Trade | None:
        # The ledger allows at most one OPEN trade per pair.
        open_trades = await self._ledger.get_open_trades(pair)
        return open_trades[0] if open_trades else None

    async def invested_open(self, pair: str) -> Decimal:
        return sum_invested_open(await self._ledger.get_open_trades(pair))

    async def open(self, new_trade: NewTrade) -> Trade:
        trade_id = await self._ledger.open_trade(new_trade)
        trade = await self._ledger.get_trade(trade_id)
        assert trade is not None
        return trade

    async def close(self, trade: Trade, exit_price: Decimal, closed_at: int) -> Trade:
        return await self._ledger.close_trade(trade.id, exit_price=exit_price, closed_at=closed_at)
