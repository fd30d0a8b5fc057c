"""Decision engine parameters and output actions.

SwingAction is a closed union of Hold, Buy and Sell. Callers dispatch with
``match`` or isinstance checks and must handle every variant.

CRITICAL: All price and budget values use Decimal. Never use float.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Literal

from swingbot.config import StrategySettings
from swingbot.exceptions import ValidationError


class HoldReason(str, Enum):
    """Why the engine did not act."""

    NO_SIGNAL = "NO_SIGNAL"
    NO_BUDGET = "NO_BUDGET"
    NOT_ENOUGH_HISTORY = "NOT_ENOUGH_HISTORY"


class SellReason(str, Enum):
    """Which exit trigger closed the position."""

    SL = "SL"
    TP = "TP"
    CROSS = "CROSS"


@dataclass(frozen=True)
class Hold:
    reason: HoldReason


@dataclass(frozen=True)
class Buy:
    price: Decimal
    qty: Decimal
    invest: Decimal
    sl: Decimal | None
    tp: Decimal | None
    ts: int


@dataclass(frozen=True)
class Sell:
    price: Decimal
    reason: SellReason
    pnl: Decimal | None
    ts: int


SwingAction = Hold | Buy | Sell


@dataclass(frozen=True)
class SwingParams:
    """Strategy window sizes and run mode."""

    ma_short: int = 10
    ma_long: int = 42
    lookback: int = 300  # max candles loaded per decision
    mode: Literal["simulation", "real"] = "simulation"

    def __post_init__(self) -> None:
        if self.ma_short < 1 or self.ma_long < 1:
            raise ValidationError("moving-average windows must be >= 1")
        if self.lookback < self.required_candles:
            raise ValidationError(
                f"lookback={self.lookback} is below the {self.required_candles} candles needed"
            )

    @property
    def required_candles(self) -> int:
        """Minimum window length: max(ma_short, ma_long) + 1."""
        return max(self.ma_short, self.ma_long) + 1

    @classmethod
    def from_settings(cls, settings: StrategySettings) -> "SwingParams":
        return cls(
            ma_short=settings.ma_short,
            ma_long=settings.ma_long,
            lookback=settings.lookback,
            mode=settings.mode,
        )
