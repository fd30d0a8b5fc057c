"""Tests for the swing decision engine.

Windows are short=2 / long=3, so four candles are required per decision.

Tests verify:
- Too few candles hold with NOT_ENOUGH_HISTORY and touch no state
- FLAT: confirmed upward cross buys with budget-sized qty and SL/TP levels
- FLAT: no remaining budget holds with NO_BUDGET
- LONG: exit priority is stop-loss, take-profit, then downward cross
- Real mode records trades in the ledger
- Missing pair settings and ledger conflicts propagate
"""

from decimal import Decimal

import pytest
from conftest import make_candles

from swingbot.data.pairs import PairStore
from swingbot.data.trades import TradeLedger
from swingbot.exceptions import ConflictError, NotFoundError
from swingbot.models import NewTrade, PairSettings, TradeSide, TradeStatus
from swingbot.position.ledger_state import LedgerPositionState
from swingbot.position.simulated_state import SimulatedPositionState
from swingbot.strategy.models import Buy, Hold, HoldReason, Sell, SellReason, SwingParams
from swingbot.strategy.swing import SwingStrategy, is_stop_loss_hit, is_take_profit_hit

PAIR = "XBT/EUR"


@pytest.fixture
def params() -> SwingParams:
    return SwingParams(ma_short=2, ma_long=3, lookback=10, mode="simulation")


def _open_trade(
    stop_loss: str | None = "19.4",
    take_profit: str | None = "21.2",
) -> NewTrade:
    return NewTrade(
        pair=PAIR,
        side=TradeSide.BUY,
        entry_price=Decimal("20"),
        amount=Decimal("1"),
        invested=Decimal("20"),
        stop_loss=Decimal(stop_loss) if stop_loss is not None else None,
        take_profit=Decimal(take_profit) if take_profit is not None else None,
        opened_at=0,
    )


class TestSwingParams:
    def test_required_candles(self, params: SwingParams) -> None:
        assert params.required_candles == 4

    def test_lookback_below_required_rejected(self) -> None:
        from swingbot.exceptions import ValidationError

        with pytest.raises(ValidationError):
            SwingParams(ma_short=10, ma_long=42, lookback=20)


class TestNotEnoughHistory:
    @pytest.mark.asyncio
    async def test_holds_and_leaves_ledger_untouched(
        self, pair_store: PairStore, ledger: TradeLedger, params: SwingParams
    ) -> None:
        strategy = SwingStrategy(pair_store, LedgerPositionState(ledger), params)

        action = await strategy.decide(PAIR, make_candles([10, 10, 20]))

        assert action == Hold(HoldReason.NOT_ENOUGH_HISTORY)
        assert await ledger.list_trades() == []


class TestFlatState:
    """Entry path."""

    @pytest.mark.asyncio
    async def test_flat_market_no_signal(
        self, pair_store: PairStore, pair_settings: PairSettings, params: SwingParams
    ) -> None:
        await pair_store.upsert_pair_settings(pair_settings)
        strategy = SwingStrategy(pair_store, SimulatedPositionState(), params)

        action = await strategy.decide(PAIR, make_candles([10, 10, 10, 10]))

        assert action == Hold(HoldReason.NO_SIGNAL)

    @pytest.mark.asyncio
    async def test_cross_up_buys(
        self, pair_store: PairStore, pair_settings: PairSettings, params: SwingParams
    ) -> None:
        """max_invest=100, max_per_tx=20, close 20 -> qty 1, sl 19.4, tp 21.2."""
        await pair_store.upsert_pair_settings(pair_settings)
        state = SimulatedPositionState()
        strategy = SwingStrategy(pair_store, state, params)
        candles = make_candles([10, 10, 10, 20])

        action = await strategy.decide(PAIR, candles)

        assert isinstance(action, Buy)
        assert action.price == Decimal("20")
        assert action.invest == Decimal("20")
        assert action.qty == Decimal("1")
        assert action.sl == Decimal("19.4")
        assert action.tp == Decimal("21.2")
        assert action.ts == candles[-1].time
        assert state.current is not None
        assert state.current.opened_at == candles[-1].time

    @pytest.mark.asyncio
    async def test_zero_pct_disables_exits(
        self, pair_store: PairStore, params: SwingParams
    ) -> None:
        await pair_store.upsert_pair_settings(
            PairSettings(
                pair=PAIR,
                max_invest_fiat=Decimal("100"),
                max_per_tx_fiat=Decimal("20"),
                take_profit_pct=Decimal("0"),
                stop_loss_pct=Decimal("0"),
            )
        )
        strategy = SwingStrategy(pair_store, SimulatedPositionState(), params)

        action = await strategy.decide(PAIR, make_candles([10, 10, 10, 20]))

        assert isinstance(action, Buy)
        assert action.sl is None
        assert action.tp is None

    @pytest.mark.asyncio
    async def test_no_budget_holds(
        self, pair_store: PairStore, pair_settings: PairSettings, params: SwingParams
    ) -> None:
        """Capital already committed equals max_invest."""
        await pair_store.upsert_pair_settings(pair_settings)
        state = SimulatedPositionState(invested_baseline=Decimal("100"))
        strategy = SwingStrategy(pair_store, state, params)

        action = await strategy.decide(PAIR, make_candles([10, 10, 10, 20]))

        assert action == Hold(HoldReason.NO_BUDGET)
        assert state.current is None

    @pytest.mark.asyncio
    async def test_cross_up_on_zero_close_holds(
        self, pair_store: PairStore, pair_settings: PairSettings, params: SwingParams
    ) -> None:
        """short 5 > long 3.33 confirms the cross, but a zero close cannot be sized."""
        await pair_store.upsert_pair_settings(pair_settings)
        state = SimulatedPositionState()
        strategy = SwingStrategy(pair_store, state, params)

        action = await strategy.decide(PAIR, make_candles([10, 0, 10, 0]))

        assert action == Hold(HoldReason.NO_SIGNAL)
        assert state.current is None

    @pytest.mark.asyncio
    async def test_missing_settings_raises(
        self, pair_store: PairStore, params: SwingParams
    ) -> None:
        strategy = SwingStrategy(pair_store, SimulatedPositionState(), params)
        with pytest.raises(NotFoundError):
            await strategy.decide(PAIR, make_candles([10, 10, 10, 20]))

    @pytest.mark.asyncio
    async def test_missing_settings_not_read_without_signal(
        self, pair_store: PairStore, params: SwingParams
    ) -> None:
        strategy = SwingStrategy(pair_store, SimulatedPositionState(), params)
        action = await strategy.decide(PAIR, make_candles([10, 10, 10, 10]))
        assert action == Hold(HoldReason.NO_SIGNAL)


class TestLongState:
    """Exit path."""

    @pytest.mark.asyncio
    async def test_take_profit(self, pair_store: PairStore, params: SwingParams) -> None:
        state = SimulatedPositionState()
        await state.open(_open_trade())
        strategy = SwingStrategy(pair_store, state, params)

        action = await strategy.decide(PAIR, make_candles([10, 10, 20, 25]))

        assert isinstance(action, Sell)
        assert action.reason == SellReason.TP
        assert action.pnl == Decimal("5")
        assert state.current is None

    @pytest.mark.asyncio
    async def test_stop_loss_takes_priority_over_cross(
        self, pair_store: PairStore, params: SwingParams
    ) -> None:
        state = SimulatedPositionState()
        await state.open(_open_trade())
        strategy = SwingStrategy(pair_store, state, params)

        action = await strategy.decide(PAIR, make_candles([10, 10, 10, 0]))

        assert isinstance(action, Sell)
        assert action.reason == SellReason.SL
        assert action.pnl == Decimal("-20")

    @pytest.mark.asyncio
    async def test_cross_down_in_real_mode(
        self, pair_store: PairStore, ledger: TradeLedger
    ) -> None:
        """Close 25 is inside [sl, tp]; short MA drops below long MA."""
        params = SwingParams(ma_short=2, ma_long=3, lookback=10, mode="real")
        trade_id = await ledger.open_trade(_open_trade(take_profit="100"))
        strategy = SwingStrategy(pair_store, LedgerPositionState(ledger), params)
        candles = make_candles([30, 30, 30, 25])

        action = await strategy.decide(PAIR, candles)

        assert isinstance(action, Sell)
        assert action.reason == SellReason.CROSS
        assert action.pnl == Decimal("5")
        stored = await ledger.get_trade(trade_id)
        assert stored is not None
        assert stored.status == TradeStatus.CLOSED
        assert stored.exit_price == Decimal("25")
        assert stored.closed_at == candles[-1].time

    @pytest.mark.asyncio
    async def test_holds_inside_band(self, pair_store: PairStore, params: SwingParams) -> None:
        state = SimulatedPositionState()
        await state.open(_open_trade())
        strategy = SwingStrategy(pair_store, state, params)

        action = await strategy.decide(PAIR, make_candles([20, 20, 20, 20]))

        assert action == Hold(HoldReason.NO_SIGNAL)
        assert state.current is not None

    @pytest.mark.asyncio
    async def test_real_mode_buy_recorded(
        self, pair_store: PairStore, ledger: TradeLedger, pair_settings: PairSettings
    ) -> None:
        await pair_store.upsert_pair_settings(pair_settings)
        params = SwingParams(ma_short=2, ma_long=3, lookback=10, mode="real")
        strategy = SwingStrategy(pair_store, LedgerPositionState(ledger), params)

        action = await strategy.decide(PAIR, make_candles([10, 10, 10, 20]))

        assert isinstance(action, Buy)
        open_trades = await ledger.get_open_trades(PAIR)
        assert len(open_trades) == 1
        assert open_trades[0].invested == Decimal("20")


class TestConflictPropagation:
    @pytest.mark.asyncio
    async def test_open_conflict_propagates(
        self, pair_store: PairStore, pair_settings: PairSettings, params: SwingParams
    ) -> None:
        """A state that reports FLAT but refuses the open surfaces ConflictError."""

        class _RefusingState(SimulatedPositionState):
            async def open(self, new_trade: NewTrade):  # type: ignore[override]
                raise ConflictError("already open")

        await pair_store.upsert_pair_settings(pair_settings)
        strategy = SwingStrategy(pair_store, _RefusingState(), params)

        with pytest.raises(ConflictError):
            await strategy.decide(PAIR, make_candles([10, 10, 10, 20]))


class TestExitPredicates:
    def test_unset_levels_never_hit(self) -> None:
        from swingbot.models import Trade

        trade = Trade(
            id=1,
            pair=PAIR,
            side=TradeSide.BUY,
            entry_price=Decimal("20"),
            amount=Decimal("1"),
            invested=Decimal("20"),
            status=TradeStatus.OPEN,
            opened_at=0,
        )
        assert is_stop_loss_hit(trade, Decimal("0")) is False
        assert is_take_profit_hit(trade, Decimal("1000")) is False
