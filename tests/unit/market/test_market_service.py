"""Tests for MarketService resolution, validation and history fallback."""

import pytest

from cryptotrend.exceptions import NotFoundError, ValidationError
from cryptotrend.market.service import coingecko_id_for
from cryptotrend.market.synthetic import build_synthetic_series


class TestResolveCoin:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["90", "bitcoin", "BTC", " Bitcoin "])
    async def test_resolves_any_identifier(self, market, query):
        ticker = await market.resolve_coin(query)
        assert ticker.id == "90"

    @pytest.mark.asyncio
    async def test_unknown_coin(self, market):
        with pytest.raises(NotFoundError):
            await market.resolve_coin("dogecoin")

    @pytest.mark.asyncio
    async def test_empty_query(self, market):
        with pytest.raises(ValidationError):
            await market.resolve_coin("  ")

    @pytest.mark.asyncio
    async def test_resolution_is_cached(self, market, ticker_provider):
        await market.resolve_coin("sol")
        ticker_provider.tickers = [
            t.model_copy(update={"symbol": "RENAMED"}) if t.symbol == "SOL" else t
            for t in ticker_provider.tickers
        ]

        ticker = await market.resolve_coin("sol")
        assert ticker.id == "48543"
        assert ticker.symbol == "RENAMED"


class TestTickers:
    @pytest.mark.asyncio
    async def test_page(self, market):
        page = await market.get_tickers(start=1, limit=2)
        assert [coin.symbol for coin in page.coins] == ["ETH", "SOL"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("start", "limit"), [(-1, 10), (0, 0), (0, 101)])
    async def test_invalid_paging(self, market, start, limit):
        with pytest.raises(ValidationError):
            await market.get_tickers(start=start, limit=limit)


class TestHistory:
    @pytest.mark.asyncio
    async def test_falls_back_to_synthetic_series(self, market):
        history = await market.get_history("BTC", hours=24)

        assert history.synthetic is True
        assert len(history.points) == 24
        assert history.points[-1].price == pytest.approx(100000.0)

    @pytest.mark.asyncio
    async def test_hours_out_of_range(self, market):
        with pytest.raises(ValidationError):
            await market.get_history("BTC", hours=0)

    def test_synthetic_series_is_deterministic(self):
        first = build_synthetic_series(50.0, 12, 0.05, 1_700_000_000_000, seed="80")
        second = build_synthetic_series(50.0, 12, 0.05, 1_700_000_000_000, seed="80")

        assert first == second
        assert first[-1] == (1_700_000_000_000, 50.0)
        assert all(price > 0 for _, price in first)


def test_coingecko_id_mapping(sample_tickers):
    assert coingecko_id_for(sample_tickers[0]) == "bitcoin"
    assert coingecko_id_for(sample_tickers[2]) == "solana"


@pytest.mark.asyncio
async def test_get_prices_skips_empty_request(market):
    assert await market.get_prices([]) == {}
