import asyncio
import math
import time

import structlog
from cachetools import TTLCache

from cryptotrend.exceptions import ExternalServiceError, NotFoundError, ValidationError
from cryptotrend.market.providers.base import PriceProvider, TickerProvider
from cryptotrend.market.providers.reference import COINLORE_TO_COINGECKO, NAMEID_TO_COINGECKO
from cryptotrend.market.schemas import (
    CoinHistory,
    CoinPrice,
    CoinSearchResult,
    CoinTicker,
    GlobalStats,
    MarketCoin,
    PricePoint,
    TickerPage,
)
from cryptotrend.market.synthetic import build_synthetic_series

logger = structlog.get_logger()

_RESOLVE_PAGE_SIZE = 100
_RESOLVE_PAGES = 3
_MAX_TICKER_LIMIT = 100
_MAX_HISTORY_HOURS = 24 * 30
_DEFAULT_SYNTHETIC_VOLATILITY = 0.02

# Resolved query -> Coinlore ticker id; shared across service instances.
_resolved_ids: TTLCache = TTLCache(maxsize=2048, ttl=60 * 60)


def clear_resolution_cache() -> None:
    _resolved_ids.clear()


def coingecko_id_for(ticker: CoinTicker) -> str:
    if ticker.id in COINLORE_TO_COINGECKO:
        return COINLORE_TO_COINGECKO[ticker.id]
    nameid = (ticker.nameid or ticker.name).strip().lower().replace(" ", "-")
    return NAMEID_TO_COINGECKO.get(nameid, nameid)


def _matches(ticker: CoinTicker, needle: str) -> bool:
    return needle in (
        ticker.id,
        (ticker.nameid or "").lower(),
        ticker.symbol.lower(),
        ticker.name.lower(),
    )


class MarketService:
    def __init__(self, tickers: TickerProvider, prices: PriceProvider) -> None:
        self._tickers = tickers
        self._prices = prices

    async def get_tickers(self, start: int = 0, limit: int = 50) -> TickerPage:
        if start < 0:
            raise ValidationError("start must be >= 0")
        if not 1 <= limit <= _MAX_TICKER_LIMIT:
            raise ValidationError(f"limit must be between 1 and {_MAX_TICKER_LIMIT}")

        coins = await self._tickers.get_tickers(start=start, limit=limit)
        logger.info("market_get_tickers", start=start, limit=limit, count=len(coins))
        return TickerPage(coins=coins, start=start, limit=limit)

    async def get_global(self) -> GlobalStats:
        return await self._tickers.get_global()

    async def resolve_coin(self, query: str) -> CoinTicker:
        """Resolve a numeric id, name id, symbol or name to a live ticker."""
        needle = query.strip().lower()
        if not needle:
            raise ValidationError("Coin identifier must not be empty")

        if needle.isdigit():
            return await self._tickers.get_ticker(needle)

        cached_id = _resolved_ids.get(needle)
        if cached_id is not None:
            return await self._tickers.get_ticker(cached_id)

        pages = await asyncio.gather(
            *(
                self._tickers.get_tickers(start=page * _RESOLVE_PAGE_SIZE, limit=_RESOLVE_PAGE_SIZE)
                for page in range(_RESOLVE_PAGES)
            )
        )
        for page in pages:
            for ticker in page:
                if _matches(ticker, needle):
                    _resolved_ids[needle] = ticker.id
                    logger.info("coin_resolved", query=query, coin_id=ticker.id)
                    return ticker

        raise NotFoundError("Coin", query)

    async def get_history(self, coin: str, hours: int = 24) -> CoinHistory:
        if not 1 <= hours <= _MAX_HISTORY_HOURS:
            raise ValidationError(f"hours must be between 1 and {_MAX_HISTORY_HOURS}")

        ticker = await self.resolve_coin(coin)
        gecko_id = coingecko_id_for(ticker)
        now_ms = int(time.time() * 1000)

        try:
            points = await self._prices.get_history(gecko_id, days=math.ceil(hours / 24))
        except ExternalServiceError as exc:
            logger.warning(
                "history_fallback_synthetic", coin_id=ticker.id, gecko_id=gecko_id, error=exc.message
            )
        else:
            window_start = now_ms - hours * 60 * 60 * 1000
            recent = [point for point in points if point.timestamp >= window_start] or points
            return CoinHistory(coin_id=ticker.id, hours=hours, synthetic=False, points=recent)

        volatility = (
            abs(ticker.percent_change_24h) / 100
            if ticker.percent_change_24h
            else _DEFAULT_SYNTHETIC_VOLATILITY
        )
        series = build_synthetic_series(
            price_now=ticker.price_usd or 0.0,
            points=hours,
            volatility=volatility,
            end_timestamp_ms=now_ms,
            seed=ticker.id,
        )
        return CoinHistory(
            coin_id=ticker.id,
            hours=hours,
            synthetic=True,
            points=[PricePoint(timestamp=ts, price=price) for ts, price in series],
        )

    async def search(self, query: str) -> list[CoinSearchResult]:
        return await self._prices.search(query)

    async def get_prices(self, coin_ids: list[str]) -> dict[str, CoinPrice]:
        if not coin_ids:
            return {}
        return await self._prices.get_prices(coin_ids)

    async def get_markets(self, per_page: int = 100) -> list[MarketCoin]:
        return await self._prices.get_markets(per_page=per_page)
