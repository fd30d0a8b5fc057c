"""Pair settings storage.

Per-pair caps and exit percentages live in the ``pairs`` table. The set of
rows in that table is also the list of configured pairs.
"""

from decimal import Decimal

from swingbot.data.database import Database
from swingbot.exceptions import NotFoundError
from swingbot.models import PairSettings


class PairStore:
    """Read/write access to PairSettings."""

    def __init__(self, database: Database) -> None:
        self._database = database

    async def get_pair_settings(self, pair: str) -> PairSettings:
        """Load settings for a pair.

        Raises:
            NotFoundError: If the pair has no row in the pairs table.
        """
        cursor = await self._database.db.execute(
            "SELECT pair, max_invest_fiat, max_per_tx_fiat, take_profit_pct, stop_loss_pct "
            "FROM pairs WHERE pair = ?",
            (pair,),
        )
        row = await cursor.fetchone()
        if row is None:
            raise NotFoundError(f'No settings found for pair "{pair}"')
        return PairSettings(
            pair=row[0],
            max_invest_fiat=Decimal(row[1]),
            max_per_tx_fiat=Decimal(row[2]),
            take_profit_pct=Decimal(row[3]),
            stop_loss_pct=Decimal(row[4]),
        )

    async def list_pairs(self) -> list[str]:
        """Return every configured pair name, sorted."""
        cursor = await self._database.db.execute("SELECT pair FROM pairs ORDER BY pair ASC")
        rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def upsert_pair_settings(self, settings: PairSettings) -> None:
        async with self._database.transaction() as conn:
            await conn.execute(
                "INSERT OR REPLACE INTO pairs "
                "(pair, max_invest_fiat, max_per_tx_fiat, take_profit_pct, stop_loss_pct) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    settings.pair,
                    str(settings.max_invest_fiat),
                    str(settings.max_per_tx_fiat),
                    str(settings.take_profit_pct),
                    str(settings.stop_loss_pct),
                ),
            )
