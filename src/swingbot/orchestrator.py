"""Orchestrator -- wires the stores, the engine and the background loops.

Three kinds of pass run against the shared database:

  1. FETCH: pull new 4h candles for every configured pair (CandleFetcher loop)
  2. EVALUATE: run the swing engine for every pair. In real mode trades are
     recorded in the ledger; in simulation mode each pair gets a throwaway
     in-memory position seeded with its real OPEN exposure
  3. PURGE: apply the retention policy to every pair's candle archive

Evaluation and purge passes share a lock so they never overlap. A failure on
one pair is logged and recorded, and the pass moves on to the next pair.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from swingbot.config import AppSettings
from swingbot.data.candles import CandleStore
from swingbot.data.pairs import PairStore
from swingbot.data.retention import RetentionDownsampler, RetentionReport
from swingbot.data.trades import TradeLedger
from swingbot.logging import get_logger
from swingbot.position.sizing import sum_invested_open
from swingbot.position.state import PositionState, create_position_state
from swingbot.strategy.models import Buy, Sell, SwingAction, SwingParams
from swingbot.strategy.swing import SwingStrategy

if TYPE_CHECKING:
    from swingbot.data.fetcher import CandleFetcher

logger = get_logger(__name__)


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of evaluating one pair; exactly one of action/error is set."""

    pair: str
    action: SwingAction | None = None
    error: str | None = None


class Orchestrator:
    """Runs evaluation, retention and fetch passes over all configured pairs.

    Args:
        settings: Application-wide settings.
        candle_store: Candle archive.
        pair_store: Pair settings (also the list of configured pairs).
        ledger: Trade ledger used by real-mode evaluation.
        downsampler: Retention policy runner.
        fetcher: Candle fetcher; only needed for run_fetch_loop().
    """

    def __init__(
        self,
        settings: AppSettings,
        candle_store: CandleStore,
        pair_store: PairStore,
        ledger: TradeLedger,
        downsampler: RetentionDownsampler,
        fetcher: CandleFetcher | None = None,
    ) -> None:
        self._settings = settings
        self._candle_store = candle_store
        self._pair_store = pair_store
        self._ledger = ledger
        self._downsampler = downsampler
        self._fetcher = fetcher
        self._pass_lock = asyncio.Lock()

        self._params = SwingParams.from_settings(settings.strategy)

    @property
    def params(self) -> SwingParams:
        return self._params

    async def _position_state(self, pair: str) -> PositionState:
        if self._params.mode == "real":
            return create_position_state("real", ledger=self._ledger)
        baseline = sum_invested_open(await self._ledger.get_open_trades(pair))
        return create_position_state("simulation", invested_baseline=baseline)

    async def evaluate_all(self, pairs: list[str] | None = None) -> list[EvaluationResult]:
        """One evaluation pass in the configured strategy mode.

        Args:
            pairs: Pairs to evaluate; defaults to every configured pair.

        Returns:
            One EvaluationResult per pair, in evaluation order.
        """
        async with self._pass_lock:
            if pairs is None:
                pairs = await self._pair_store.list_pairs()

            start_time = time.monotonic()
            results: list[EvaluationResult] = []
            for pair in pairs:
                try:
                    candles = await self._candle_store.get_candles(
                        pair, limit=self._params.lookback
                    )
                    strategy = SwingStrategy(
                        self._pair_store, await self._position_state(pair), self._params
                    )
                    action = await strategy.decide(pair, candles)
                except Exception as e:
                    logger.error("evaluate_pair_failed", pair=pair, error=str(e), exc_info=True)
                    results.append(EvaluationResult(pair=pair, error=str(e)))
                    continue
                results.append(EvaluationResult(pair=pair, action=action))

            logger.info(
                "evaluate_pass_complete",
                pairs=len(pairs),
                buys=sum(1 for r in results if isinstance(r.action, Buy)),
                sells=sum(1 for r in results if isinstance(r.action, Sell)),
                failed=sum(1 for r in results if r.error is not None),
                duration_seconds=round(time.monotonic() - start_time, 2),
            )
            return results

    async def purge(self, now: int | None = None) -> list[RetentionReport]:
        """One retention pass over every configured pair.

        Raises:
            StoreNotInitializedError: If the candles table is missing.
        """
        if now is None:
            now = int(time.time())
        async with self._pass_lock:
            pairs = await self._pair_store.list_pairs()
            return await self._downsampler.run(pairs, now)

    async def run_fetch_loop(self) -> None:
        """Run the candle fetch loop until stop() is called."""
        if self._fetcher is None:
            raise RuntimeError("Orchestrator has no CandleFetcher")
        await self._fetcher.run(self._pair_store.list_pairs)

    def stop(self) -> None:
        """Request a graceful stop of the fetch loop."""
        logger.info("orchestrator_stopping_gracefully")
        if self._fetcher is not None:
            self._fetcher.stop()
