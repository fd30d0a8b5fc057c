"""Historical replay of the swing strategy.

Walks a pair's stored candles in chronological order and feeds each
lookback window to a SwingStrategy backed by a fresh SimulatedPositionState.
Only candles up to the current index are visible at each step, and no trade
is written to the ledger.

simulate_pair() handles a single pair; simulate_all() runs every configured
pair and isolates per-pair failures.
"""

import time
from dataclasses import dataclass, field, replace
from decimal import Decimal

from swingbot.data.candles import CandleStore
from swingbot.data.pairs import PairStore
from swingbot.data.trades import TradeLedger
from swingbot.logging import get_logger
from swingbot.position.simulated_state import SimulatedPositionState
from swingbot.position.sizing import sum_invested_open
from swingbot.strategy.models import Buy, Hold, Sell, SwingAction, SwingParams
from swingbot.strategy.swing import SwingStrategy

logger = get_logger(__name__)


@dataclass
class SimulationResult:
    """Outcome of replaying one pair."""

    pair: str
    actions: list[SwingAction] = field(default_factory=list)
    total_pnl: Decimal = Decimal("0")

    @property
    def buys(self) -> int:
        return sum(1 for a in self.actions if isinstance(a, Buy))

    @property
    def sells(self) -> int:
        return sum(1 for a in self.actions if isinstance(a, Sell))


async def simulate_pair(
    pair: str,
    candle_store: CandleStore,
    pair_store: PairStore,
    params: SwingParams,
    max_candles: int = 1000,
    ledger: TradeLedger | None = None,
) -> SimulationResult:
    """Replay the strategy over the latest ``max_candles`` candles of a pair.

    Args:
        pair: Pair to simulate.
        candle_store: Source of historical candles.
        pair_store: Source of PairSettings.
        params: Window sizes; mode is forced to simulation.
        max_candles: Number of most recent candles replayed.
        ledger: When given, fiat already invested in real OPEN trades for
            the pair is counted against the simulated budget.

    Returns:
        SimulationResult with every non-Hold action and the summed P&L.
    """
    result = SimulationResult(pair=pair)
    candles = await candle_store.get_candles(pair, limit=max_candles)
    if not candles:
        logger.warning("simulate_no_candles", pair=pair)
        return result

    baseline = Decimal("0")
    if ledger is not None:
        baseline = sum_invested_open(await ledger.get_open_trades(pair))

    state = SimulatedPositionState(invested_baseline=baseline)
    sim_params = replace(params, mode="simulation")
    strategy = SwingStrategy(pair_store, state, sim_params)

    start_time = time.monotonic()
    logger.info("simulate_starting", pair=pair, candles=len(candles))

    need = sim_params.required_candles
    for index in range(need - 1, len(candles)):
        window = candles[max(0, index - need + 1) : index + 1]
        action = await strategy.decide(pair, window)
        match action:
            case Hold():
                continue
            case Buy():
                result.actions.append(action)
            case Sell(pnl=pnl):
                result.actions.append(action)
                if pnl is not None:
                    result.total_pnl += pnl

    logger.info(
        "simulate_complete",
        pair=pair,
        buys=result.buys,
        sells=result.sells,
        total_pnl=str(result.total_pnl),
        still_open=state.current is not None,
        elapsed_seconds=round(time.monotonic() - start_time, 2),
    )
    return result


async def simulate_all(
    candle_store: CandleStore,
    pair_store: PairStore,
    params: SwingParams,
    max_candles: int = 1000,
    pairs: list[str] | None = None,
    ledger: TradeLedger | None = None,
) -> list[SimulationResult]:
    """Simulate every configured pair (or ``pairs``) one after another.

    Any error on one pair is logged and the remaining
    pairs are still simulated.
    """
    if pairs is None:
        pairs = await pair_store.list_pairs()
    if not pairs:
        logger.warning("simulate_no_pairs")
        return []

    results: list[SimulationResult] = []
    for pair in pairs:
        try:
            results.append(
                await simulate_pair(pair, candle_store, pair_store, params, max_candles, ledger)
            )
        except Exception as e:
            logger.error("simulate_pair_failed", pair=pair, error=str(e), exc_info=True)
    return results
