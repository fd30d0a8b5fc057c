"""Persistence layer.

Provides SQLite database management, the candle store, pair settings store,
trade ledger, retention downsampler and the periodic candle fetcher.
"""

from swingbot.data.candles import CandleStore
from swingbot.data.database import Database
from swingbot.data.fetcher import CandleFetcher
from swingbot.data.pairs import PairStore
from swingbot.data.retention import RetentionDownsampler, RetentionReport
from swingbot.data.trades import TradeLedger

__all__ = [
    "CandleFetcher",
    "CandleStore",
    "Database",
    "PairStore",
    "RetentionDownsampler",
    "RetentionReport",
    "TradeLedger",
]
