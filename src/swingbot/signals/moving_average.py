"""Simple Moving Average over close prices.

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import Decimal


def sma(values: list[Decimal], window: int) -> list[Decimal | None]:
    """Compute the trailing Simple Moving Average of ``values``.

    Uses a running sum so the whole series costs O(n):
        sum_i = sum_{i-1} + values[i] - values[i - window]
        SMA_i = sum_i / window

    Args:
        values: Ordered list of Decimal values (oldest first).
        window: Number of trailing values averaged at each index.

    Returns:
        List the same length as ``values``. Index i holds the mean of
        values[i - window + 1 : i + 1], or None while i < window - 1.
        A window <= 1 returns a copy of the input.
    """
    if window <= 1:
        return list(values)

    out: list[Decimal | None] = [None] * len(values)
    divisor = Decimal(window)
    running = Decimal("0")
    for i, value in enumerate(values):
        running += value
        if i >= window:
            running -= values[i - window]
        if i >= window - 1:
            out[i] = running / divisor
    return out
