"""Order budget calculation under per-pair investment caps.

All calculations use Decimal arithmetic exclusively -- no float conversions.

Budget flow:
1. remaining = max(0, max_invest_fiat - invested in OPEN trades)
2. budget = min(max_per_tx_fiat, remaining)
3. A budget <= 0 means no entry is allowed this cycle
"""

from decimal import Decimal

from swingbot.models import PairSettings, Trade, TradeStatus


def sum_invested_open(trades: list[Trade]) -> Decimal:
    """Sum the fiat invested across OPEN trades."""
    return sum(
        (t.invested for t in trades if t.status == TradeStatus.OPEN),
        Decimal("0"),
    )


def compute_order_budget(settings: PairSettings, invested_open: Decimal) -> Decimal:
    """Return the fiat amount available for a new entry.

    Args:
        settings: Pair caps (max_invest_fiat, max_per_tx_fiat).
        invested_open: Fiat already committed in OPEN trades for the pair.

    Returns:
        min(max_per_tx_fiat, max(0, max_invest_fiat - invested_open)).
    """
    remaining = max(Decimal("0"), settings.max_invest_fiat - invested_open)
    return min(settings.max_per_tx_fiat, remaining)
