"""Abstract exchange client interface.

Defines the contract for market-data access. Fetch code depends only on
this interface, keeping Kraken-specific details isolated in the concrete
implementation.
"""

from abc import ABC, abstractmethod


class ExchangeClient(ABC):
    """Abstract base class for exchange API clients."""

    @abstractmethod
    async def connect(self) -> None:
        """Initialize connection and load markets."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Clean up resources (CRITICAL for ccxt async)."""
        ...

    @abstractmethod
    async def fetch_server_time(self) -> int:
        """Return exchange server time in epoch milliseconds."""
        ...

    @abstractmethod
    async def fetch_ohlcv(
        self,
        symbol: str,
        timeframe: str = "4h",
        since_ms: int | None = None,
        limit: int | None = None,
    ) -> list[list]:
        """Fetch OHLCV rows as ccxt lists: [timestamp_ms, open, high, low, close, volume]."""
        ...
