"""Signal computations for the swing strategy.

Provides the Simple Moving Average and the confirmed crossover detector
used by the decision engine.
"""

from swingbot.signals.crossover import (
    detect_crossover,
    is_cross_down_confirmed,
    is_cross_up_confirmed,
    last_two_defined_indices,
)
from swingbot.signals.models import CrossDirection
from swingbot.signals.moving_average import sma

__all__ = [
    "CrossDirection",
    "detect_crossover",
    "is_cross_down_confirmed",
    "is_cross_up_confirmed",
    "last_two_defined_indices",
    "sma",
]
