"""Abstract position-state interface.

Defines where the decision engine reads and writes its open position.
SimulatedPositionState keeps a single in-memory slot for one simulation run;
LedgerPositionState goes through the TradeLedger. The engine depends ONLY on
this interface, so its code is identical in both modes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Literal

from swingbot.models import NewTrade, Trade

if TYPE_CHECKING:
    from swingbot.data.trades import TradeLedger


class PositionState(ABC):
    """Abstract base class for position-state storage."""

    @abstractmethod
    async def get_open(self, pair: str) -> Trade | None:
        """Return the OPEN trade for the pair, or None when flat."""
        ...

    @abstractmethod
    async def invested_open(self, pair: str) -> Decimal:
        """Fiat currently committed in OPEN trades for the pair."""
        ...

    @abstractmethod
    async def open(self, new_trade: NewTrade) -> Trade:
        """Record a new OPEN trade and return it.

        Raises:
            ConflictError: If the pair already has an OPEN trade.
        """
        ...

    @abstractmethod
    async def close(self, trade: Trade, exit_price: Decimal, closed_at: int) -> Trade:
        """Close an OPEN trade and return it with exit_price and pnl set.

        Raises:
            ConflictError: If the trade is not OPEN.
        """
        ...


def create_position_state(
    mode: Literal["simulation", "real"],
    ledger: TradeLedger | None = None,
    invested_baseline: Decimal = Decimal("0"),
) -> PositionState:
    """Build the position state matching a strategy mode.

    Args:
        mode: "simulation" for an in-memory slot, "real" for the ledger.
        ledger: Required in real mode.
        invested_baseline: Capital already committed elsewhere, counted
            against the simulation budget.
    """
    if mode == "simulation":
        from swingbot.position.simulated_state import SimulatedPositionState

        return SimulatedPositionState(invested_baseline=invested_baseline)

    if ledger is None:
        raise ValueError("real mode requires a TradeLedger")
    from swingbot.position.ledger_state import LedgerPositionState

    return LedgerPositionState(ledger)
