"""Tests for the Coinlore ticker provider against a mocked transport."""

import httpx
import pytest

from cryptotrend.exceptions import ExternalServiceError, NotFoundError, RateLimitedError
from cryptotrend.market.providers.coinlore import CoinloreProvider

BTC_RAW = {
    "id": "90",
    "symbol": "BTC",
    "name": "Bitcoin",
    "nameid": "bitcoin",
    "rank": 1,
    "price_usd": "100000.50",
    "percent_change_24h": "2.10",
    "percent_change_1h": "0.05",
    "percent_change_7d": "-1.30",
    "market_cap_usd": "1990000000000.00",
    "volume24": 45000000000.12,
    "csupply": "19800000.00",
    "tsupply": "19800000",
}


def make_provider(handler, cache_ttl: int = 0) -> CoinloreProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CoinloreProvider(client=client, base_url="https://coinlore.test/api", cache_ttl=cache_ttl)


class TestCoinloreProvider:
    @pytest.mark.asyncio
    async def test_tickers_parse_string_numbers(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": [BTC_RAW], "info": {"coins_num": 1}})

        tickers = await make_provider(handler).get_tickers(start=0, limit=10)

        assert len(tickers) == 1
        btc = tickers[0]
        assert btc.price_usd == pytest.approx(100000.5)
        assert btc.percent_change_7d == pytest.approx(-1.3)
        assert btc.rank == 1
        assert seen[0].url.path == "/api/tickers/"
        assert seen[0].url.params["limit"] == "10"

    @pytest.mark.asyncio
    async def test_unknown_ticker(self):
        provider = make_provider(lambda request: httpx.Response(200, json=[]))
        with pytest.raises(NotFoundError):
            await provider.get_ticker("999999")

    @pytest.mark.asyncio
    async def test_global_stats(self):
        payload = [{"coins_count": 12000, "total_mcap": 3.5e12, "btc_d": "57.10", "eth_d": "13.20"}]
        stats = await make_provider(lambda request: httpx.Response(200, json=payload)).get_global()

        assert stats.coins_count == 12000
        assert stats.btc_d == pytest.approx(57.1)

    @pytest.mark.asyncio
    async def test_client_error_becomes_external_service_error(self):
        provider = make_provider(lambda request: httpx.Response(403))
        with pytest.raises(ExternalServiceError) as exc_info:
            await provider.get_global()

        assert exc_info.value.status_code == 403
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_responses_are_cached(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, json=[BTC_RAW])

        provider = make_provider(handler, cache_ttl=60)
        await provider.get_ticker("90")
        await provider.get_ticker("90")

        assert calls == 1


@pytest.mark.asyncio
async def test_rate_limit_is_not_retried():
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(429)

    with pytest.raises(RateLimitedError):
        await make_provider(handler).get_global()
    assert calls == 1
