"""Swing strategy decision engine (SMA crossover with SL/TP exits).

Evaluates one pair at one candle close and returns a SwingAction.

State machine per pair:
  FLAT -> look for a confirmed upward crossover of MA(short) over MA(long);
          if found, the close is positive and budget allows, open a trade
          and emit Buy.
  LONG -> exit on stop-loss, then take-profit, then confirmed downward
          crossover (first true test names the reason); emit Sell.

Position state is read and written through the injected PositionState, so
the same code runs in simulation (in-memory slot) and real (ledger) mode.

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import Decimal

from swingbot.data.pairs import PairStore
from swingbot.logging import get_logger
from swingbot.models import Candle, NewTrade, Trade, TradeSide
from swingbot.position.sizing import compute_order_budget
from swingbot.position.state import PositionState
from swingbot.signals.crossover import is_cross_down_confirmed, is_cross_up_confirmed
from swingbot.signals.moving_average import sma
from swingbot.strategy.models import (
    Buy,
    Hold,
    HoldReason,
    Sell,
    SellReason,
    SwingAction,
    SwingParams,
)

logger = get_logger(__name__)


def is_stop_loss_hit(trade: Trade, close_price: Decimal) -> bool:
    """True when a stop-loss is set and the close is at or below it."""
    return trade.stop_loss is not None and close_price <= trade.stop_loss


def is_take_profit_hit(trade: Trade, close_price: Decimal) -> bool:
    """True when a take-profit is set and the close is at or above it."""
    return trade.take_profit is not None and close_price >= trade.take_profit


class SwingStrategy:
    """Decision engine for the swing strategy.

    Args:
        pair_store: Source of PairSettings (only read on the entry path).
        position_state: Where the open position lives (simulation or ledger).
        params: Default window sizes and mode; decide() may override per call.
    """

    def __init__(
        self,
        pair_store: PairStore,
        position_state: PositionState,
        params: SwingParams | None = None,
    ) -> None:
        self._pair_store = pair_store
        self._state = position_state
        self._params = params or SwingParams()

    @property
    def params(self) -> SwingParams:
        return self._params

    async def decide(
        self,
        pair: str,
        candles: list[Candle],
        params: SwingParams | None = None,
    ) -> SwingAction:
        """Run the strategy at the latest candle close for one pair.

        Candles must be sorted ascending by time; they are not re-sorted.

        Args:
            pair: Pair name, e.g. "XBT/EUR".
            candles: Lookback window ending at the current candle.
            params: Overrides the engine's default SwingParams.

        Returns:
            Hold, Buy or Sell.

        Raises:
            NotFoundError: Entry path only, when the pair has no settings.
            ConflictError: Propagated from the position state on open/close.
        """
        params = params or self._params
        need = params.required_candles
        if len(candles) < need:
            logger.warning(
                "swing_not_enough_history",
                pair=pair,
                need=need,
                have=len(candles),
            )
            return Hold(HoldReason.NOT_ENOUGH_HISTORY)

        closes = [c.close for c in candles]
        last_close = closes[-1]
        ts = candles[-1].time

        ma_short = sma(closes, params.ma_short)
        ma_long = sma(closes, params.ma_long)

        open_trade = await self._state.get_open(pair)
        if open_trade is None:
            return await self._try_enter(pair, params, ma_short, ma_long, last_close, ts)
        return await self._try_exit(pair, params, open_trade, ma_short, ma_long, last_close, ts)

    async def _try_enter(
        self,
        pair: str,
        params: SwingParams,
        ma_short: list[Decimal | None],
        ma_long: list[Decimal | None],
        last_close: Decimal,
        ts: int,
    ) -> SwingAction:
        if not is_cross_up_confirmed(ma_short, ma_long):
            logger.debug(
                "swing_no_entry_signal",
                pair=pair,
                ma_short=params.ma_short,
                ma_long=params.ma_long,
            )
            return Hold(HoldReason.NO_SIGNAL)

        if last_close <= 0:
            logger.warning("swing_non_positive_close", pair=pair, close=str(last_close))
            return Hold(HoldReason.NO_SIGNAL)

        settings = await self._pair_store.get_pair_settings(pair)
        budget = compute_order_budget(settings, await self._state.invested_open(pair))
        if budget <= 0:
            logger.warning("swing_no_budget", pair=pair, max_invest=str(settings.max_invest_fiat))
            return Hold(HoldReason.NO_BUDGET)

        qty = budget / last_close
        sl = last_close * (Decimal("1") - settings.stop_loss_pct) if settings.stop_loss_pct > 0 else None
        tp = last_close * (Decimal("1") + settings.take_profit_pct) if settings.take_profit_pct > 0 else None

        trade = await self._state.open(
            NewTrade(
                pair=pair,
                side=TradeSide.BUY,
                entry_price=last_close,
                amount=qty,
                invested=budget,
                stop_loss=sl,
                take_profit=tp,
                opened_at=ts,
            )
        )
        logger.info(
            "swing_buy",
            pair=pair,
            mode=params.mode,
            trade_id=trade.id,
            price=str(last_close),
            qty=str(qty),
            invest=str(budget),
            sl=str(sl) if sl is not None else None,
            tp=str(tp) if tp is not None else None,
        )
        return Buy(price=last_close, qty=qty, invest=budget, sl=sl, tp=tp, ts=ts)

    async def _try_exit(
        self,
        pair: str,
        params: SwingParams,
        open_trade: Trade,
        ma_short: list[Decimal | None],
        ma_long: list[Decimal | None],
        last_close: Decimal,
        ts: int,
    ) -> SwingAction:
        hit_sl = is_stop_loss_hit(open_trade, last_close)
        hit_tp = is_take_profit_hit(open_trade, last_close)
        cross_down = is_cross_down_confirmed(ma_short, ma_long)

        if not (hit_sl or hit_tp or cross_down):
            logger.debug("swing_hold_position", pair=pair, close=str(last_close))
            return Hold(HoldReason.NO_SIGNAL)

        if hit_sl:
            reason = SellReason.SL
        elif hit_tp:
            reason = SellReason.TP
        else:
            reason = SellReason.CROSS

        closed = await self._state.close(open_trade, exit_price=last_close, closed_at=ts)
        logger.info(
            "swing_sell",
            pair=pair,
            mode=params.mode,
            trade_id=open_trade.id,
            reason=reason.value,
            price=str(last_close),
            pnl=str(closed.pnl),
        )
        return Sell(price=last_close, reason=reason, pnl=closed.pnl, ts=ts)
