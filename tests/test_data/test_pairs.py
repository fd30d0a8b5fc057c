"""Tests for pair settings storage."""

from decimal import Decimal

import pytest

from swingbot.data.pairs import PairStore
from swingbot.exceptions import NotFoundError
from swingbot.models import PairSettings


class TestPairStore:
    @pytest.mark.asyncio
    async def test_missing_pair_not_found(self, pair_store: PairStore) -> None:
        with pytest.raises(NotFoundError):
            await pair_store.get_pair_settings("XBT/EUR")

    @pytest.mark.asyncio
    async def test_upsert_and_get(self, pair_store: PairStore, pair_settings: PairSettings) -> None:
        await pair_store.upsert_pair_settings(pair_settings)
        assert await pair_store.get_pair_settings("XBT/EUR") == pair_settings

    @pytest.mark.asyncio
    async def test_upsert_replaces(self, pair_store: PairStore, pair_settings: PairSettings) -> None:
        await pair_store.upsert_pair_settings(pair_settings)
        updated = PairSettings(
            pair="XBT/EUR",
            max_invest_fiat=Decimal("500"),
            max_per_tx_fiat=Decimal("50"),
            take_profit_pct=Decimal("0.1"),
            stop_loss_pct=Decimal("0"),
        )
        await pair_store.upsert_pair_settings(updated)
        assert await pair_store.get_pair_settings("XBT/EUR") == updated

    @pytest.mark.asyncio
    async def test_list_pairs_sorted(self, pair_store: PairStore, pair_settings: PairSettings) -> None:
        for name in ("XBT/EUR", "ADA/EUR", "ETH/EUR"):
            await pair_store.upsert_pair_settings(
                PairSettings(
                    pair=name,
                    max_invest_fiat=pair_settings.max_invest_fiat,
                    max_per_tx_fiat=pair_settings.max_per_tx_fiat,
                    take_profit_pct=pair_settings.take_profit_pct,
                    stop_loss_pct=pair_settings.stop_loss_pct,
                )
            )
        assert await pair_store.list_pairs() == ["ADA/EUR", "ETH/EUR", "XBT/EUR"]
