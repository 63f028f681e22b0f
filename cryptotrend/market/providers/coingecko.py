import httpx
import structlog
from cachetools import TTLCache

from cryptotrend.config import settings
from cryptotrend.exceptions import ExternalServiceError
from cryptotrend.http_client import fetch_json, get_http_client
from cryptotrend.market.providers.base import PriceProvider
from cryptotrend.market.providers.reference import REFERENCE_COINS, REFERENCE_PRICES
from cryptotrend.market.schemas import CoinPrice, CoinSearchResult, MarketCoin, PricePoint

logger = structlog.get_logger()

_SERVICE = "coingecko"
_SEARCH_LIMIT = 10


def search_reference_coins(query: str, limit: int = _SEARCH_LIMIT) -> list[CoinSearchResult]:
    """Rank the built-in coin list by exact, prefix, then substring match."""
    needle = query.strip().lower()
    if not needle:
        return [CoinSearchResult(**coin) for coin in REFERENCE_COINS[:limit]]

    def _rank(coin: dict) -> int | None:
        name, symbol = coin["name"].lower(), coin["symbol"].lower()
        if needle in (name, symbol):
            return 0
        if name.startswith(needle) or symbol.startswith(needle):
            return 1
        if needle in name or needle in symbol:
            return 2
        return None

    ranked = [(rank, coin) for coin in REFERENCE_COINS if (rank := _rank(coin)) is not None]
    ranked.sort(key=lambda item: item[0])
    return [CoinSearchResult(**coin) for _, coin in ranked[:limit]]


class CoinGeckoProvider(PriceProvider):
    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        cache_ttl: int | None = None,
    ) -> None:
        self._client = client
        self._base_url = (base_url or settings.coingecko_base_url).rstrip("/")
        ttl = settings.price_cache_seconds if cache_ttl is None else cache_ttl
        self._price_cache: TTLCache = TTLCache(maxsize=1024, ttl=max(ttl, 1))
        self._markets_cache: TTLCache = TTLCache(maxsize=4, ttl=max(ttl, 1))
        self._cache_enabled = ttl > 0

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or get_http_client()

    async def get_prices(self, coin_ids: list[str]) -> dict[str, CoinPrice]:
        ids = sorted({coin_id.strip().lower() for coin_id in coin_ids if coin_id.strip()})
        prices: dict[str, CoinPrice] = {}
        missing: list[str] = []
        for coin_id in ids:
            if self._cache_enabled and coin_id in self._price_cache:
                prices[coin_id] = self._price_cache[coin_id]
            else:
                missing.append(coin_id)

        if not missing:
            return prices

        try:
            payload = await fetch_json(
                self.client,
                _SERVICE,
                f"{self._base_url}/simple/price",
                params={
                    "ids": ",".join(missing),
                    "vs_currencies": "usd",
                    "include_24hr_change": "true",
                },
            )
        except ExternalServiceError as exc:
            logger.warning("coingecko_prices_fallback", ids=missing, error=exc.message)
            for coin_id in missing:
                if coin_id in REFERENCE_PRICES:
                    prices[coin_id] = CoinPrice(
                        coin_id=coin_id, price_usd=REFERENCE_PRICES[coin_id], source="reference"
                    )
            return prices

        if not isinstance(payload, dict):
            raise ExternalServiceError(_SERVICE, "unexpected price payload")

        for coin_id in missing:
            entry = payload.get(coin_id)
            if not isinstance(entry, dict) or entry.get("usd") is None:
                continue
            price = CoinPrice(
                coin_id=coin_id,
                price_usd=float(entry["usd"]),
                change_24h=entry.get("usd_24h_change"),
            )
            prices[coin_id] = price
            if self._cache_enabled:
                self._price_cache[coin_id] = price

        return prices

    async def search(self, query: str) -> list[CoinSearchResult]:
        query = query.strip()
        if not query:
            return search_reference_coins("")

        try:
            payload = await fetch_json(
                self.client, _SERVICE, f"{self._base_url}/search", params={"query": query}
            )
        except ExternalServiceError as exc:
            logger.warning("coingecko_search_fallback", query=query, error=exc.message)
            return search_reference_coins(query)

        coins = payload.get("coins", []) if isinstance(payload, dict) else []
        return [
            CoinSearchResult(
                id=coin["id"],
                symbol=str(coin.get("symbol", "")).upper(),
                name=coin.get("name", coin["id"]),
                market_cap_rank=coin.get("market_cap_rank"),
                thumb=coin.get("thumb"),
            )
            for coin in coins[:_SEARCH_LIMIT]
            if coin.get("id")
        ]

    async def get_history(self, coin_id: str, days: int = 1) -> list[PricePoint]:
        payload = await fetch_json(
            self.client,
            _SERVICE,
            f"{self._base_url}/coins/{coin_id}/market_chart",
            params={"vs_currency": "usd", "days": days},
        )
        raw_prices = payload.get("prices") if isinstance(payload, dict) else None
        if not isinstance(raw_prices, list) or not raw_prices:
            raise ExternalServiceError(_SERVICE, f"no price history for '{coin_id}'")

        return [
            PricePoint(timestamp=int(timestamp), price=float(price))
            for timestamp, price in raw_prices
            if price is not None
        ]

    async def get_markets(self, per_page: int = 100) -> list[MarketCoin]:
        if self._cache_enabled and per_page in self._markets_cache:
            return self._markets_cache[per_page]

        payload = await fetch_json(
            self.client,
            _SERVICE,
            f"{self._base_url}/coins/markets",
            params={
                "vs_currency": "usd",
                "order": "market_cap_desc",
                "per_page": per_page,
                "page": 1,
                "sparkline": "false",
                "price_change_percentage": "1h,24h,7d,30d",
            },
        )
        if not isinstance(payload, list):
            raise ExternalServiceError(_SERVICE, "unexpected markets payload")

        markets = [MarketCoin.from_coingecko(raw) for raw in payload if raw.get("id")]
        if self._cache_enabled:
            self._markets_cache[per_page] = markets
        logger.debug("coingecko_markets_fetched", count=len(markets))
        return markets
