"""Kraken exchange client implementation via ccxt async.

Wraps ccxt.async_support.kraken with market loading and async cleanup.
Only public market-data endpoints are used.
"""

import ccxt.async_support as ccxt_async

from swingbot.config import ExchangeSettings
from swingbot.exchange.client import ExchangeClient
from swingbot.logging import get_logger

logger = get_logger(__name__)


class KrakenClient(ExchangeClient):
    """Concrete Kraken exchange client using ccxt async."""

    def __init__(self, settings: ExchangeSettings) -> None:
        self._settings = settings
        self._exchange = ccxt_async.kraken(
            {
                "apiKey": settings.api_key.get_secret_value(),
                "secret": settings.api_secret.get_secret_value(),
                "enableRateLimit": True,
            }
        )
        self._markets: dict = {}

    @property
    def exchange(self) -> ccxt_async.kraken:
        """Access the underlying ccxt exchange instance."""
        return self._exchange

    async def connect(self) -> None:
        """Initialize connection by loading markets."""
        logger.info("connecting_to_kraken")
        self._markets = await self._exchange.load_markets()
        logger.info("kraken_connected", market_count=len(self._markets))

    async def close(self) -> None:
        """Close the ccxt exchange session."""
        await self._exchange.close()
        logger.info("kraken_connection_closed")

    async def fetch_server_time(self) -> int:
        return await self._exchange.fetch_time()

    async def fetch_ohlcv(
        self,
        symbol: str,
        timeframe: str = "4h",
        since_ms: int | None = None,
        limit: int | None = None,
    ) -> list[list]:
        return await self._exchange.fetch_ohlcv(symbol, timeframe=timeframe, since=since_ms, limit=limit)
