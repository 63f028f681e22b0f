from abc import ABC, abstractmethod

from cryptotrend.market.schemas import (
    CoinPrice,
    CoinSearchResult,
    CoinTicker,
    GlobalStats,
    MarketCoin,
    PricePoint,
)


class TickerProvider(ABC):
    @abstractmethod
    async def get_tickers(self, start: int = 0, limit: int = 100) -> list[CoinTicker]: ...

    @abstractmethod
    async def get_ticker(self, coin_id: str) -> CoinTicker: ...

    @abstractmethod
    async def get_global(self) -> GlobalStats: ...


class PriceProvider(ABC):
    @abstractmethod
    async def get_prices(self, coin_ids: list[str]) -> dict[str, CoinPrice]: ...

    @abstractmethod
    async def search(self, query: str) -> list[CoinSearchResult]: ...

    @abstractmethod
    async def get_history(self, coin_id: str, days: int = 1) -> list[PricePoint]: ...

    @abstractmethod
    async def get_markets(self, per_page: int = 100) -> list[MarketCoin]: ...
