"""Swing strategy decision engine and its action types."""

from swingbot.strategy.models import (
    Buy,
    Hold,
    HoldReason,
    Sell,
    SellReason,
    SwingAction,
    SwingParams,
)
from swingbot.strategy.swing import SwingStrategy

__all__ = [
    "Buy",
    "Hold",
    "HoldReason",
    "Sell",
    "SellReason",
    "SwingAction",
    "SwingParams",
    "SwingStrategy",
]
