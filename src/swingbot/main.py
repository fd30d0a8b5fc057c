"""Entry point for the swing trading bot.

Commands:
  simulate  replay the strategy over stored candles (no ledger writes)
  evaluate  run one real-mode evaluation pass over all configured pairs
  fetch     run the periodic candle fetch loop until SIGINT/SIGTERM
  purge     apply the retention policy to the candle archive

Component wiring order (in _build_components):
1. Database (schema created on connect)
2. CandleStore, PairStore, TradeLedger
3. RetentionDownsampler
4. KrakenClient + CandleFetcher (fetch command only)
5. Orchestrator
"""

import argparse
import asyncio
import signal
import sys
from dataclasses import replace
from typing import Any

from swingbot.config import AppSettings
from swingbot.data.candles import CandleStore
from swingbot.data.database import Database
from swingbot.data.pairs import PairStore
from swingbot.data.retention import RetentionDownsampler
from swingbot.data.trades import TradeLedger
from swingbot.exceptions import SwingBotError
from swingbot.logging import get_logger, setup_logging
from swingbot.orchestrator import Orchestrator
from swingbot.simulation.runner import simulate_all
from swingbot.strategy.models import SwingParams


def _build_components(
    settings: AppSettings, database: Database, with_fetcher: bool = False
) -> dict[str, Any]:
    """Build the component graph on top of a connected Database.

    The exchange client is only created when with_fetcher is True; it is
    not connected here.
    """
    candle_store = CandleStore(database, settings.retention.interval_seconds)
    pair_store = PairStore(database)
    ledger = TradeLedger(database)
    downsampler = RetentionDownsampler(database, settings.retention)

    exchange_client = None
    fetcher = None
    if with_fetcher:
        from swingbot.data.fetcher import CandleFetcher
        from swingbot.exchange.kraken_client import KrakenClient

        exchange_client = KrakenClient(settings.exchange)
        fetcher = CandleFetcher(exchange_client, candle_store, settings.fetch)

    orchestrator = Orchestrator(
        settings=settings,
        candle_store=candle_store,
        pair_store=pair_store,
        ledger=ledger,
        downsampler=downsampler,
        fetcher=fetcher,
    )
    return {
        "candle_store": candle_store,
        "pair_store": pair_store,
        "ledger": ledger,
        "downsampler": downsampler,
        "exchange_client": exchange_client,
        "fetcher": fetcher,
        "orchestrator": orchestrator,
    }


def _setup_signal_handlers(orchestrator: Orchestrator) -> None:
    """Register SIGINT/SIGTERM to stop the fetch loop gracefully.

    Must be called after the asyncio event loop is running.
    """
    logger = get_logger("swingbot.main")
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        orchestrator.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="swingbot", description="4h SMA swing trading bot")
    sub = parser.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", help="replay the strategy over stored candles")
    sim.add_argument("--pair", action="append", dest="pairs", help="pair to simulate (repeatable)")
    sim.add_argument("--candles", type=int, default=None, help="number of recent candles replayed")

    ev = sub.add_parser("evaluate", help="one real-mode evaluation pass")
    ev.add_argument("--pair", action="append", dest="pairs", help="pair to evaluate (repeatable)")

    sub.add_parser("fetch", help="run the candle fetch loop")
    sub.add_parser("purge", help="apply the retention policy once")
    return parser.parse_args(argv)


async def run(argv: list[str] | None = None) -> int:
    """Run one command and return the process exit code."""
    args = _parse_args(argv)

    # 1. Load settings
    settings = AppSettings()

    # 2. Setup logging
    setup_logging(settings.log_level, settings.logs)
    logger = get_logger("swingbot.main")

    if args.command == "fetch":
        settings.validate_live()

    async with Database(settings.storage.db_path) as database:
        components = _build_components(settings, database, with_fetcher=args.command == "fetch")
        orchestrator: Orchestrator = components["orchestrator"]

        if args.command == "simulate":
            params = replace(SwingParams.from_settings(settings.strategy), mode="simulation")
            results = await simulate_all(
                components["candle_store"],
                components["pair_store"],
                params,
                max_candles=args.candles or settings.strategy.sim_candles,
                pairs=args.pairs,
                ledger=components["ledger"],
            )
            for result in results:
                logger.info(
                    "simulation_result",
                    pair=result.pair,
                    buys=result.buys,
                    sells=result.sells,
                    total_pnl=str(result.total_pnl),
                    base_fiat=settings.base_fiat,
                )

        elif args.command == "evaluate":
            results = await orchestrator.evaluate_all(args.pairs)
            if any(r.error is not None for r in results):
                return 1

        elif args.command == "fetch":
            _setup_signal_handlers(orchestrator)
            exchange_client = components["exchange_client"]
            try:
                await exchange_client.connect()
                await orchestrator.run_fetch_loop()
            finally:
                await exchange_client.close()

        elif args.command == "purge":
            reports = await orchestrator.purge()
            logger.info("purge_complete", pairs=len(reports), removed=sum(r.removed for r in reports))

    logger.info("swingbot_stopped", command=args.command)
    return 0


def main() -> None:
    """Synchronous entry point."""
    try:
        code = asyncio.run(run())
    except SwingBotError as e:
        get_logger("swingbot.main").error("swingbot_failed", error=str(e))
        code = 2
    sys.exit(code)


if __name__ == "__main__":
    main()
