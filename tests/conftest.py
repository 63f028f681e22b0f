"""Shared fixtures for cryptotrend tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from langchain_core.messages import AIMessage

from cryptotrend.database import close_database, get_db, init_database
from cryptotrend.event_store.service import EventStoreService
from cryptotrend.exceptions import ExternalServiceError, NotFoundError
from cryptotrend.market.providers.base import PriceProvider, TickerProvider
from cryptotrend.market.providers.coingecko import search_reference_coins
from cryptotrend.market.schemas import CoinPrice, CoinTicker, GlobalStats, MarketCoin
from cryptotrend.market.service import MarketService, clear_resolution_cache


class FakeTickerProvider(TickerProvider):
    """In-memory Coinlore stand-in."""

    def __init__(self, tickers: list[CoinTicker], global_stats: GlobalStats) -> None:
        self.tickers = tickers
        self.global_stats = global_stats

    async def get_tickers(self, start: int = 0, limit: int = 100) -> list[CoinTicker]:
        return self.tickers[start : start + limit]

    async def get_ticker(self, coin_id: str) -> CoinTicker:
        for ticker in self.tickers:
            if ticker.id == coin_id:
                return ticker
        raise NotFoundError("Coin", coin_id)

    async def get_global(self) -> GlobalStats:
        return self.global_stats


class FakePriceProvider(PriceProvider):
    """In-memory CoinGecko stand-in; price history is always unavailable."""

    def __init__(self, prices: dict[str, float], markets: list[MarketCoin]) -> None:
        self.prices = prices
        self.markets = markets

    async def get_prices(self, coin_ids: list[str]) -> dict[str, CoinPrice]:
        return {
            coin_id: CoinPrice(coin_id=coin_id, price_usd=self.prices[coin_id])
            for coin_id in coin_ids
            if coin_id in self.prices
        }

    async def search(self, query: str):
        return search_reference_coins(query)

    async def get_history(self, coin_id: str, days: int = 1):
        raise ExternalServiceError("coingecko", "history unavailable in tests")

    async def get_markets(self, per_page: int = 100) -> list[MarketCoin]:
        return self.markets[:per_page]


@pytest.fixture
def sample_tickers() -> list[CoinTicker]:
    return [
        CoinTicker(
            id="90",
            symbol="BTC",
            name="Bitcoin",
            nameid="bitcoin",
            rank=1,
            price_usd=100000.0,
            percent_change_1h=0.2,
            percent_change_24h=2.0,
            percent_change_7d=5.0,
            market_cap_usd=2.0e12,
            volume24=5.0e10,
        ),
        CoinTicker(
            id="80",
            symbol="ETH",
            name="Ethereum",
            nameid="ethereum",
            rank=2,
            price_usd=4000.0,
            percent_change_1h=-0.1,
            percent_change_24h=-6.0,
            percent_change_7d=-12.0,
            market_cap_usd=4.8e11,
            volume24=2.0e10,
        ),
        CoinTicker(
            id="48543",
            symbol="SOL",
            name="Solana",
            nameid="solana",
            rank=5,
            price_usd=200.0,
            percent_change_1h=0.5,
            percent_change_24h=8.0,
            percent_change_7d=15.0,
            market_cap_usd=9.0e10,
            volume24=4.0e9,
        ),
    ]


@pytest.fixture
def sample_global() -> GlobalStats:
    return GlobalStats(coins_count=12000, total_mcap=3.5e12, btc_d=57.0, eth_d=13.5, mcap_change=1.2)


@pytest.fixture
def sample_markets() -> list[MarketCoin]:
    return [
        MarketCoin(
            id="bitcoin",
            symbol="BTC",
            name="Bitcoin",
            current_price=100000.0,
            market_cap_rank=1,
            price_change_percentage_1h=0.2,
            price_change_percentage_24h=2.0,
            price_change_percentage_7d=5.0,
            price_change_percentage_30d=10.0,
        ),
        MarketCoin(
            id="ethereum",
            symbol="ETH",
            name="Ethereum",
            current_price=4000.0,
            market_cap_rank=2,
            price_change_percentage_1h=-0.1,
            price_change_percentage_24h=-6.0,
            price_change_percentage_7d=-12.0,
            price_change_percentage_30d=-20.0,
        ),
        MarketCoin(
            id="solana",
            symbol="SOL",
            name="Solana",
            current_price=200.0,
            market_cap_rank=5,
            price_change_percentage_1h=0.5,
            price_change_percentage_24h=8.0,
            price_change_percentage_7d=15.0,
            price_change_percentage_30d=30.0,
        ),
    ]


@pytest.fixture
def sample_prices() -> dict[str, float]:
    return {"bitcoin": 100000.0, "ethereum": 4000.0, "solana": 200.0}


@pytest.fixture(autouse=True)
def _clear_market_caches():
    clear_resolution_cache()
    yield
    clear_resolution_cache()


@pytest.fixture
def ticker_provider(sample_tickers, sample_global) -> FakeTickerProvider:
    return FakeTickerProvider(sample_tickers, sample_global)


@pytest.fixture
def price_provider(sample_prices, sample_markets) -> FakePriceProvider:
    return FakePriceProvider(sample_prices, sample_markets)


@pytest.fixture
def market(ticker_provider, price_provider) -> MarketService:
    return MarketService(ticker_provider, price_provider)


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory database with the full schema."""
    await init_database(":memory:")
    yield get_db()
    await close_database()


@pytest.fixture
def event_store(db) -> EventStoreService:
    return EventStoreService(db)


@pytest.fixture
def mock_llm():
    """Chat model whose replies are set per test via ``mock_llm.reply(...)``."""
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=AIMessage(content=""))

    def _reply(*contents: str) -> None:
        llm.ainvoke.side_effect = [AIMessage(content=content) for content in contents]

    llm.reply = _reply
    return llm
