"""Shared data models for the swing trading bot.

CRITICAL: All monetary values use Decimal. Never use float for prices, quantities, or budgets.
Timestamps are integer epoch seconds.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from swingbot.exceptions import ValidationError

#: 4h candle cadence in seconds.
FOUR_HOURS_SECS = 4 * 60 * 60


class TradeSide(str, Enum):
    """Trade direction."""

    BUY = "BUY"
    SELL = "SELL"


class TradeStatus(str, Enum):
    """Trade lifecycle status."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


@dataclass
class Candle:
    """A single OHLCV candle aligned on the candle interval."""

    time: int  # epoch seconds, multiple of the interval
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal


@dataclass(frozen=True)
class PairSettings:
    """Per-pair investment caps and exit triggers.

    A take_profit_pct or stop_loss_pct of 0 disables that exit trigger.
    """

    pair: str
    max_invest_fiat: Decimal
    max_per_tx_fiat: Decimal
    take_profit_pct: Decimal  # ex: 0.06 (6%)
    stop_loss_pct: Decimal  # ex: 0.03 (3%)

    def __post_init__(self) -> None:
        for name in ("max_invest_fiat", "max_per_tx_fiat", "take_profit_pct", "stop_loss_pct"):
            if getattr(self, name) < 0:
                raise ValidationError(f"{name} must be >= 0 for pair {self.pair}")


@dataclass
class NewTrade:
    """Fields required to open a trade."""

    pair: str
    side: TradeSide
    entry_price: Decimal
    amount: Decimal  # base asset quantity
    invested: Decimal  # fiat
    stop_loss: Decimal | None = None
    take_profit: Decimal | None = None
    opened_at: int | None = None  # defaults to now


@dataclass
class Trade:
    """A persisted position record.

    Created OPEN by an entry decision, transitions once to CLOSED.
    pnl is only set at close.
    """

    id: int
    pair: str
    side: TradeSide
    entry_price: Decimal
    amount: Decimal
    invested: Decimal
    status: TradeStatus
    opened_at: int
    stop_loss: Decimal | None = None
    take_profit: Decimal | None = None
    exit_price: Decimal | None = None
    closed_at: int | None = None
    pnl: Decimal | None = None


def compute_pnl(side: TradeSide, entry_price: Decimal, exit_price: Decimal, amount: Decimal) -> Decimal:
    """Realized P&L in fiat: (exit - entry) * amount for BUY, mirrored for SELL."""
    if side == TradeSide.BUY:
        return (exit_price - entry_price) * amount
    return (entry_price - exit_price) * amount
