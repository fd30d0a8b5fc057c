"""In-memory position state for simulation runs.

Holds exactly one slot: the currently open simulated trade, or None. Create
one instance per simulation run so independent runs never share state.
"""

from decimal import Decimal

from swingbot.exceptions import ConflictError
from swingbot.models import NewTrade, Trade, TradeStatus, compute_pnl
from swingbot.position.state import PositionState


class SimulatedPositionState(PositionState):
    """Single-slot position state living in the caller's process.

    Args:
        invested_baseline: Fiat already committed in real OPEN trades for the
            simulated pair, counted against the entry budget.
    """

    def __init__(self, invested_baseline: Decimal = Decimal("0")) -> None:
        self._invested_baseline = invested_baseline
        self._slot: Trade | None = None
        self._next_id = 1

    @property
    def current(self) -> Trade | None:
        return self._slot

    def reset(self) -> None:
        """Clear the slot; call between independent runs if the instance is reused."""
        self._slot = None
        self._next_id = 1

    async def get_open(self, pair: str) -> Trade | None:
        if self._slot is not None and self._slot.pair == pair:
            return self._slot
        return None

    async def invested_open(self, pair: str) -> Decimal:
        open_trade = await self.get_open(pair)
        held = open_trade.invested if open_trade is not None else Decimal("0")
        return self._invested_baseline + held

    async def open(self, new_trade: NewTrade) -> Trade:
        if self._slot is not None:
            raise ConflictError(
                f"Simulation already holds an OPEN trade for {self._slot.pair}"
            )
        self._slot = Trade(
            id=self._next_id,
            pair=new_trade.pair,
            side=new_trade.side,
            entry_price=new_trade.entry_price,
            amount=new_trade.amount,
            invested=new_trade.invested,
            status=TradeStatus.OPEN,
            opened_at=new_trade.opened_at or 0,
            stop_loss=new_trade.stop_loss,
            take_profit=new_trade.take_profit,
        )
        self._next_id += 1
        return self._slot

    async def close(self, trade: Trade, exit_price: Decimal, closed_at: int) -> Trade:
        if self._slot is None or self._slot.id != trade.id:
            raise ConflictError(f"Simulated trade id={trade.id} is not OPEN")
        closed = self._slot
        closed.exit_price = exit_price
        closed.closed_at = closed_at
        closed.status = TradeStatus.CLOSED
        closed.pnl = compute_pnl(closed.side, closed.entry_price, exit_price, closed.amount)
        self._slot = None
        return closed
