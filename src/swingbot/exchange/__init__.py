"""Exchange client abstractions and the Kraken implementation."""

from swingbot.exchange.client import ExchangeClient
from swingbot.exchange.kraken_client import KrakenClient

__all__ = ["ExchangeClient", "KrakenClient"]
