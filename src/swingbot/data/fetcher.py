"""Periodic OHLC fetch pipeline with retry and graceful stop.

Each pass walks every configured pair: read the last stored candle time,
fetch OHLC since then, keep only candles strictly newer than what is stored,
and upsert them. A failure on one pair is logged and the pass moves on.

The loop sleeps ``interval_sec`` between passes. stop() lets the in-flight
pass finish and prevents any further pass from starting.
"""

import asyncio
import time
from collections.abc import Callable
from decimal import Decimal

import ccxt.async_support

from swingbot.config import FetchSettings
from swingbot.data.candles import CandleStore
from swingbot.exchange.client import ExchangeClient
from swingbot.logging import get_logger
from swingbot.models import Candle

logger = get_logger(__name__)

#: Shortest allowed pause between two passes.
_MIN_INTERVAL_SEC = 5


def _row_to_candle(row: list) -> Candle:
    """Convert a ccxt OHLCV list to a Candle (ms -> s, float -> Decimal)."""
    return Candle(
        time=int(row[0]) // 1000,
        open=Decimal(str(row[1])),
        high=Decimal(str(row[2])),
        low=Decimal(str(row[3])),
        close=Decimal(str(row[4])),
        volume=Decimal(str(row[5])),
    )


class CandleFetcher:
    """Fetches candles from the exchange and persists them via CandleStore.

    Usage:
        fetcher = CandleFetcher(exchange, store, settings)
        await fetcher.fetch_once(["XBT/EUR", "ETH/EUR"])
        await fetcher.run(pairs)  # until stop()
    """

    def __init__(
        self,
        exchange: ExchangeClient,
        store: CandleStore,
        settings: FetchSettings,
    ) -> None:
        self._exchange = exchange
        self._store = store
        self._settings = settings
        self._stop_event = asyncio.Event()

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Request a graceful stop; the in-flight pass is allowed to finish."""
        if not self._stop_event.is_set():
            logger.info("fetch_stop_requested")
        self._stop_event.set()

    async def run(self, pairs_fn: Callable) -> None:
        """Run fetch passes until stop() is called.

        Args:
            pairs_fn: Coroutine function returning the pairs to fetch. It is
                called before every pass so newly configured pairs are picked up.
        """
        interval = max(_MIN_INTERVAL_SEC, self._settings.interval_sec)
        logger.info(
            "fetch_loop_starting",
            interval_sec=interval,
            on_start=self._settings.on_start,
        )

        if self._settings.on_start and not self.stopping:
            await self.fetch_once(await pairs_fn())

        while not self.stopping:
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
            if self.stopping:
                break
            await self.fetch_once(await pairs_fn())

        logger.info("fetch_loop_stopped")

    async def fetch_once(self, pairs: list[str]) -> dict[str, int]:
        """One fetch pass over all pairs.

        Returns a mapping of pair -> number of candles written. Pairs that
        failed are absent from the mapping.
        """
        start_time = time.monotonic()
        try:
            server_time = await self._exchange.fetch_server_time()
            logger.debug("fetch_server_time", server_time_ms=server_time)
        except Exception as e:
            logger.warning("fetch_server_time_failed", error=str(e))

        written: dict[str, int] = {}
        for pair in pairs:
            try:
                written[pair] = await self._fetch_pair(pair)
            except Exception as e:
                logger.warning("fetch_pair_failed", pair=pair, error=str(e))

        logger.info(
            "fetch_pass_complete",
            pairs=len(pairs),
            new_candles=sum(written.values()),
            duration_seconds=round(time.monotonic() - start_time, 2),
        )
        return written

    async def _fetch_pair(self, pair: str) -> int:
        last = await self._store.get_last_candle_time(pair)
        since_ms = last * 1000 if last is not None else None

        rows = await self._fetch_with_retry(
            self._exchange.fetch_ohlcv,
            pair,
            timeframe=self._settings.timeframe,
            since_ms=since_ms,
        )
        candles = [_row_to_candle(r) for r in rows or []]
        new_candles = [c for c in candles if last is None or c.time > last]

        inserted = await self._store.upsert_candles(pair, new_candles)
        if inserted > 0:
            logger.info(
                "fetch_pair_new_candles",
                pair=pair,
                inserted=inserted,
                first_time=new_candles[0].time,
                last_time=new_candles[-1].time,
            )
        else:
            logger.debug("fetch_pair_no_new_candles", pair=pair, last=last)
        return inserted

    # ──────────────────────────────────────────────
    # Retry wrapper
    # ──────────────────────────────────────────────

    async def _fetch_with_retry(self, fetch_fn: Callable, *args, **kwargs):  # type: ignore[no-untyped-def]
        """Execute a fetch function with exponential backoff retry.

        Retries up to max_retries times with delays: 1s, 2s, 4s, 8s, ...
        Handles ccxt rate limit errors with a longer delay multiplier.
        Re-raises on final failure.
        """
        max_retries = self._settings.max_retries
        base_delay = self._settings.retry_base_delay

        for attempt in range(max_retries):
            try:
                return await fetch_fn(*args, **kwargs)
            except Exception as e:
                if attempt == max_retries - 1:
                    logger.error(
                        "fetch_failed_permanently",
                        error=str(e),
                        attempts=max_retries,
                    )
                    raise

                delay = base_delay * (2**attempt)

                if isinstance(e, ccxt.async_support.RateLimitExceeded):
                    delay *= 3
                    logger.warning(
                        "rate_limit_exceeded",
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        delay=delay,
                    )
                else:
                    logger.warning(
                        "fetch_retry",
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        delay=delay,
                        error=str(e),
                    )

                await asyncio.sleep(delay)

        return None
