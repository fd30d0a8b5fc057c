"""Typed SQLite read/write abstraction for OHLCV candles.

All SQL for the candles table is isolated behind CandleStore. Rows are keyed
by (pair, time); time is epoch seconds aligned on the candle interval.

CRITICAL: All price/volume values stored as TEXT in SQLite, restored as Decimal on read.
"""

import time
from decimal import Decimal

from swingbot.data.database import Database
from swingbot.logging import get_logger
from swingbot.models import FOUR_HOURS_SECS, Candle

logger = get_logger(__name__)

_UPSERT_SQL = (
    "INSERT OR REPLACE INTO candles "
    "(pair, time, open, high, low, close, volume) "
    "VALUES (?, ?, ?, ?, ?, ?, ?)"
)


def _row_to_candle(row: tuple) -> Candle:
    return Candle(
        time=row[0],
        open=Decimal(row[1]),
        high=Decimal(row[2]),
        low=Decimal(row[3]),
        close=Decimal(row[4]),
        volume=Decimal(row[5]),
    )


class CandleStore:
    """Async SQLite store for aligned OHLCV candles.

    Candles whose time is not a multiple of interval_seconds are dropped
    silently on write.

    Usage:
        async with Database("data/swingbot.db") as database:
            store = CandleStore(database)
            count = await store.upsert_candles("XBT/EUR", candles)
    """

    def __init__(self, database: Database, interval_seconds: int = FOUR_HOURS_SECS) -> None:
        self._database = database
        self._interval = interval_seconds

    @property
    def interval_seconds(self) -> int:
        return self._interval

    def is_aligned(self, candle_time: int) -> bool:
        """True if candle_time sits exactly on an interval boundary."""
        return candle_time % self._interval == 0

    # ──────────────────────────────────────────────
    # Write methods
    # ──────────────────────────────────────────────

    async def upsert_candles(self, pair: str, candles: list[Candle]) -> int:
        """Insert or replace candles in one transaction.

        Misaligned candles are skipped. Returns the number of rows inserted
        or replaced.
        """
        if not candles:
            return 0

        kept = [c for c in candles if self.is_aligned(c.time)]
        if not kept:
            logger.debug("upsert_candles_all_misaligned", pair=pair, total=len(candles))
            return 0

        data = [
            (pair, c.time, str(c.open), str(c.high), str(c.low), str(c.close), str(c.volume))
            for c in kept
        ]
        async with self._database.transaction() as conn:
            cursor = await conn.executemany(_UPSERT_SQL, data)
            written = cursor.rowcount

        logger.debug(
            "upserted_candles",
            pair=pair,
            total=len(candles),
            kept=len(kept),
            written=written,
        )
        return written

    async def upsert_candle(self, pair: str, candle: Candle) -> None:
        """Insert or replace a single candle; no-op when misaligned."""
        await self.upsert_candles(pair, [candle])

    # ──────────────────────────────────────────────
    # Read methods
    # ──────────────────────────────────────────────

    async def get_last_candle_time(self, pair: str) -> int | None:
        """Return the newest stored candle time for a pair, or None."""
        cursor = await self._database.db.execute(
            "SELECT MAX(time) FROM candles WHERE pair = ?",
            (pair,),
        )
        row = await cursor.fetchone()
        return row[0] if row is not None else None

    async def get_candles(
        self,
        pair: str,
        since: int | None = None,
        limit: int = 500,
    ) -> list[Candle]:
        """Return the latest ``limit`` candles (time >= since) ordered ascending."""
        conditions = ["pair = ?"]
        params: list = [pair]

        if since is not None:
            conditions.append("time >= ?")
            params.append(since)
        params.append(limit)

        where = " AND ".join(conditions)
        cursor = await self._database.db.execute(
            f"SELECT * FROM ("
            f"  SELECT time, open, high, low, close, volume FROM candles "
            f"  WHERE {where} ORDER BY time DESC LIMIT ?"
            f") ORDER BY time ASC",
            params,
        )
        rows = await cursor.fetchall()
        return [_row_to_candle(row) for row in rows]

    async def count_candles(
        self,
        pair: str,
        since: int | None = None,
        until: int | None = None,
    ) -> int:
        """Count candles for a pair with ``since`` inclusive and ``until`` exclusive."""
        conditions = ["pair = ?"]
        params: list = [pair]

        if since is not None:
            conditions.append("time >= ?")
            params.append(since)
        if until is not None:
            conditions.append("time < ?")
            params.append(until)

        where = " AND ".join(conditions)
        cursor = await self._database.db.execute(
            f"SELECT COUNT(*) FROM candles WHERE {where}",
            params,
        )
        return (await cursor.fetchone())[0]

    async def has_min_history(
        self,
        pair: str,
        needed: int = 42,
        now: int | None = None,
    ) -> bool:
        """Check for ``needed`` recent contiguous candles.

        42 candles is one week of 4h data. The newest candle must be at most
        two intervals old, and consecutive candles exactly one interval apart.
        """
        if now is None:
            now = int(time.time())

        rows = await self.get_candles(pair, limit=needed)
        if len(rows) < needed:
            logger.warning("min_history_too_few_candles", pair=pair, found=len(rows), needed=needed)
            return False

        for i in range(1, len(rows)):
            if rows[i].time - rows[i - 1].time != self._interval:
                logger.warning("min_history_gap", pair=pair, index=i)
                return False

        age = now - rows[-1].time
        if age > 2 * self._interval:
            logger.warning("min_history_stale", pair=pair, age_seconds=age)
            return False
        return True
