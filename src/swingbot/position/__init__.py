"""Position sizing and position-state storage."""

from swingbot.position.ledger_state import LedgerPositionState
from swingbot.position.simulated_state import SimulatedPositionState
from swingbot.position.sizing import compute_order_budget, sum_invested_open
from swingbot.position.state import PositionState, create_position_state

__all__ = [
    "LedgerPositionState",
    "PositionState",
    "SimulatedPositionState",
    "compute_order_budget",
    "create_position_state",
    "sum_invested_open",
]
