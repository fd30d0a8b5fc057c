"""Age-tiered retention downsampling for the candle archive.

Three age boundaries are computed from ``now``:

    full_cut  = now - full_days
    half_cut  = now - half_days
    sixth_cut = now - sixth_days        (sixth_cut < half_cut < full_cut)

Per pair, in one transaction:

1. delete every candle older than sixth_cut;
2. in [sixth_cut, half_cut) keep only candles whose interval index is a multiple of 6;
3. in [half_cut, full_cut) keep only candles whose interval index is a multiple of 2;
4. leave candles at or after full_cut untouched.

The interval index is ``time / interval_seconds`` (integer division on aligned
times), so kept points sit on absolute interval boundaries and a second run
deletes nothing.
"""

from dataclasses import dataclass

import aiosqlite

from swingbot.config import RetentionSettings
from swingbot.data.database import Database
from swingbot.logging import get_logger

logger = get_logger(__name__)

_SECONDS_PER_DAY = 24 * 3600


@dataclass(frozen=True)
class RetentionReport:
    """Outcome of one retention run for a pair."""

    pair: str
    removed: int
    full_cut: int
    half_cut: int
    sixth_cut: int


class RetentionDownsampler:
    """Applies the age-tiered density policy directly against the candles table.

    Args:
        database: Connected database holding the candles table.
        settings: Day thresholds and candle interval.
    """

    def __init__(self, database: Database, settings: RetentionSettings) -> None:
        self._database = database
        self._settings = settings

    def cutoffs(self, now: int) -> tuple[int, int, int]:
        """Return (full_cut, half_cut, sixth_cut) in epoch seconds."""
        return (
            now - self._settings.full_days * _SECONDS_PER_DAY,
            now - self._settings.half_days * _SECONDS_PER_DAY,
            now - self._settings.sixth_days * _SECONDS_PER_DAY,
        )

    async def ensure_ready(self) -> None:
        """Fail fast if the candles table was never created.

        Raises:
            StoreNotInitializedError: If the candles table is missing.
        """
        await self._database.require_tables("candles")

    async def apply_for_pair(self, pair: str, now: int) -> RetentionReport:
        """Run the policy for one pair atomically.

        Any failure rolls back the whole pair so the store is either
        untouched or fully thinned for it.
        """
        full_cut, half_cut, sixth_cut = self.cutoffs(now)
        interval = self._settings.interval_seconds

        removed = 0
        async with self._database.transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM candles WHERE pair = ? AND time < ?",
                (pair, sixth_cut),
            )
            removed += cursor.rowcount
            cursor = await conn.execute(
                "DELETE FROM candles "
                "WHERE pair = ? AND time >= ? AND time < ? AND ((time / ?) % 6) != 0",
                (pair, sixth_cut, half_cut, interval),
            )
            removed += cursor.rowcount
            cursor = await conn.execute(
                "DELETE FROM candles "
                "WHERE pair = ? AND time >= ? AND time < ? AND ((time / ?) % 2) != 0",
                (pair, half_cut, full_cut, interval),
            )
            removed += cursor.rowcount

        report = RetentionReport(
            pair=pair,
            removed=removed,
            full_cut=full_cut,
            half_cut=half_cut,
            sixth_cut=sixth_cut,
        )
        logger.info(
            "retention_applied",
            pair=pair,
            deleted=removed,
            full_cut=full_cut,
            half_cut=half_cut,
            sixth_cut=sixth_cut,
        )
        return report

    async def run(self, pairs: list[str], now: int) -> list[RetentionReport]:
        """Apply the policy to every pair.

        A missing candles table is fatal. A failure on a single pair is
        logged at error level and left out of the returned reports; the
        remaining pairs are still processed.
        """
        await self.ensure_ready()

        logger.info(
            "retention_starting",
            pairs=len(pairs),
            full_days=self._settings.full_days,
            half_days=self._settings.half_days,
            sixth_days=self._settings.sixth_days,
        )
        reports: list[RetentionReport] = []
        for pair in pairs:
            try:
                reports.append(await self.apply_for_pair(pair, now))
            except aiosqlite.Error as e:
                logger.error("retention_pair_failed", pair=pair, error=str(e), exc_info=True)
        return reports
