"""Confirmed crossover detection between a short and a long moving average.

Only the two most recent indices where BOTH series are defined are compared
(gaps where either side is None are skipped). The tie-break is asymmetric:

    upward   iff short[p] <= long[p] and short[c] >  long[c]
    downward iff short[p] >= long[p] and short[c] <  long[c]

Equality at the previous point counts as "not yet crossed", equality at the
current point never confirms, so a flat market produces no signal.
"""

from decimal import Decimal

from swingbot.signals.models import CrossDirection

Series = list[Decimal | None]


def last_two_defined_indices(short: Series, long: Series) -> tuple[int, int] | None:
    """Return (prev, cur), the two latest indices where both series are defined."""
    cur = -1
    for i in range(min(len(short), len(long)) - 1, -1, -1):
        if short[i] is None or long[i] is None:
            continue
        if cur == -1:
            cur = i
        else:
            return i, cur
    return None


def is_cross_up_confirmed(short: Series, long: Series) -> bool:
    """True if short moved from at-or-below to strictly above long."""
    idx = last_two_defined_indices(short, long)
    if idx is None:
        return False
    p, c = idx
    return short[p] <= long[p] and short[c] > long[c]  # type: ignore[operator]


def is_cross_down_confirmed(short: Series, long: Series) -> bool:
    """True if short moved from at-or-above to strictly below long."""
    idx = last_two_defined_indices(short, long)
    if idx is None:
        return False
    p, c = idx
    return short[p] >= long[p] and short[c] < long[c]  # type: ignore[operator]


def detect_crossover(short: Series, long: Series) -> CrossDirection | None:
    if is_cross_up_confirmed(short, long):
        return CrossDirection.UP
    if is_cross_down_confirmed(short, long):
        return CrossDirection.DOWN
    return None
