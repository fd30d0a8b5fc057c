"""Shared test fixtures for the swing trading bot."""

from decimal import Decimal

import pytest
import pytest_asyncio

from swingbot.config import AppSettings, ExchangeSettings, RetentionSettings, StrategySettings
from swingbot.data.candles import CandleStore
from swingbot.data.database import Database
from swingbot.data.pairs import PairStore
from swingbot.data.trades import TradeLedger
from swingbot.models import FOUR_HOURS_SECS, Candle, PairSettings


def make_candles(closes: list, start: int = 0, interval: int = FOUR_HOURS_SECS) -> list[Candle]:
    """Build aligned candles whose OHLC all equal the given close."""
    candles = []
    for i, close in enumerate(closes):
        price = Decimal(str(close))
        candles.append(
            Candle(
                time=start + i * interval,
                open=price,
                high=price,
                low=price,
                close=price,
                volume=Decimal("1"),
            )
        )
    return candles


async def insert_unparseable_candles(database: Database, pair: str, count: int = 4) -> None:
    """Write candle rows whose close is not a number, bypassing CandleStore."""
    async with database.transaction() as conn:
        await conn.executemany(
            "INSERT INTO candles (pair, time, open, high, low, close, volume) "
            "VALUES (?, ?, '1', '1', '1', 'not-a-number', '1')",
            [(pair, i * FOUR_HOURS_SECS) for i in range(count)],
        )


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings in real mode with small windows (short=2, long=3) and dummy keys."""
    return AppSettings(
        log_level="DEBUG",
        exchange=ExchangeSettings(
            api_key="test-api-key",  # type: ignore[arg-type]
            api_secret="test-api-secret",  # type: ignore[arg-type]
        ),
        strategy=StrategySettings(ma_short=2, ma_long=3, lookback=10, mode="real"),
        retention=RetentionSettings(),
    )


@pytest.fixture
def pair_settings() -> PairSettings:
    """XBT/EUR: max_invest=100, max_per_tx=20, tp=6%, sl=3%."""
    return PairSettings(
        pair="XBT/EUR",
        max_invest_fiat=Decimal("100"),
        max_per_tx_fiat=Decimal("20"),
        take_profit_pct=Decimal("0.06"),
        stop_loss_pct=Decimal("0.03"),
    )


@pytest_asyncio.fixture
async def database():
    """Connected in-memory database with the full schema."""
    db = Database(":memory:")
    await db.connect()
    yield db
    await db.close()


@pytest.fixture
def candle_store(database: Database) -> CandleStore:
    return CandleStore(database)


@pytest.fixture
def pair_store(database: Database) -> PairStore:
    return PairStore(database)


@pytest.fixture
def ledger(database: Database) -> TradeLedger:
    return TradeLedger(database)
