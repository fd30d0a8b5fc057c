"""Tests for the trade ledger lifecycle.

Tests verify:
- open_trade persists an OPEN row with Decimal fields
- A second OPEN trade for the same pair is rejected
- close_trade computes P&L once and refuses to close twice
- Unknown ids raise NotFoundError
"""

from decimal import Decimal

import pytest

from swingbot.data.trades import TradeLedger
from swingbot.exceptions import ConflictError, NotFoundError
from swingbot.models import NewTrade, TradeSide, TradeStatus


def _new_trade(pair: str = "XBT/EUR", opened_at: int | None = 14400) -> NewTrade:
    return NewTrade(
        pair=pair,
        side=TradeSide.BUY,
        entry_price=Decimal("20"),
        amount=Decimal("0.5"),
        invested=Decimal("10"),
        stop_loss=Decimal("19.4"),
        take_profit=None,
        opened_at=opened_at,
    )


class TestOpenTrade:
    @pytest.mark.asyncio
    async def test_open_persists(self, ledger: TradeLedger) -> None:
        trade_id = await ledger.open_trade(_new_trade())

        trade = await ledger.get_trade(trade_id)
        assert trade is not None
        assert trade.status == TradeStatus.OPEN
        assert trade.entry_price == Decimal("20")
        assert trade.amount == Decimal("0.5")
        assert trade.stop_loss == Decimal("19.4")
        assert trade.take_profit is None
        assert trade.pnl is None
        assert trade.opened_at == 14400

    @pytest.mark.asyncio
    async def test_opened_at_defaults_to_now(self, ledger: TradeLedger) -> None:
        trade_id = await ledger.open_trade(_new_trade(opened_at=None))
        trade = await ledger.get_trade(trade_id)
        assert trade is not None and trade.opened_at > 0

    @pytest.mark.asyncio
    async def test_second_open_for_pair_conflicts(self, ledger: TradeLedger) -> None:
        await ledger.open_trade(_new_trade())
        with pytest.raises(ConflictError):
            await ledger.open_trade(_new_trade())
        assert len(await ledger.get_open_trades("XBT/EUR")) == 1

    @pytest.mark.asyncio
    async def test_other_pair_can_open(self, ledger: TradeLedger) -> None:
        await ledger.open_trade(_new_trade("XBT/EUR"))
        await ledger.open_trade(_new_trade("ETH/EUR"))
        assert len(await ledger.get_open_trades()) == 2


class TestCloseTrade:
    @pytest.mark.asyncio
    async def test_close_computes_pnl(self, ledger: TradeLedger) -> None:
        trade_id = await ledger.open_trade(_new_trade())

        closed = await ledger.close_trade(trade_id, exit_price=Decimal("24"), closed_at=28800)

        assert closed.status == TradeStatus.CLOSED
        assert closed.exit_price == Decimal("24")
        assert closed.closed_at == 28800
        assert closed.pnl == Decimal("2.0")

    @pytest.mark.asyncio
    async def test_close_twice_conflicts(self, ledger: TradeLedger) -> None:
        trade_id = await ledger.open_trade(_new_trade())
        await ledger.close_trade(trade_id, exit_price=Decimal("21"))
        with pytest.raises(ConflictError):
            await ledger.close_trade(trade_id, exit_price=Decimal("22"))

    @pytest.mark.asyncio
    async def test_close_unknown_not_found(self, ledger: TradeLedger) -> None:
        with pytest.raises(NotFoundError):
            await ledger.close_trade(999, exit_price=Decimal("1"))

    @pytest.mark.asyncio
    async def test_reopen_after_close(self, ledger: TradeLedger) -> None:
        first = await ledger.open_trade(_new_trade())
        await ledger.close_trade(first, exit_price=Decimal("21"))
        second = await ledger.open_trade(_new_trade(opened_at=43200))
        assert second != first


class TestListAndDelete:
    @pytest.mark.asyncio
    async def test_list_filters_and_orders_newest_first(self, ledger: TradeLedger) -> None:
        first = await ledger.open_trade(_new_trade(opened_at=100))
        await ledger.close_trade(first, exit_price=Decimal("21"))
        second = await ledger.open_trade(_new_trade(opened_at=200))

        trades = await ledger.list_trades(pair="XBT/EUR")
        assert [t.id for t in trades] == [second, first]

        closed = await ledger.list_trades(status=TradeStatus.CLOSED)
        assert [t.id for t in closed] == [first]

    @pytest.mark.asyncio
    async def test_delete(self, ledger: TradeLedger) -> None:
        trade_id = await ledger.open_trade(_new_trade())
        await ledger.delete_trade(trade_id)
        assert await ledger.get_trade(trade_id) is None

    @pytest.mark.asyncio
    async def test_delete_unknown_not_found(self, ledger: TradeLedger) -> None:
        with pytest.raises(NotFoundError):
            await ledger.delete_trade(42)
