import httpx
import structlog
from cachetools import TTLCache

from cryptotrend.config import settings
from cryptotrend.exceptions import ExternalServiceError, NotFoundError
from cryptotrend.http_client import fetch_json, get_http_client
from cryptotrend.market.providers.base import TickerProvider
from cryptotrend.market.schemas import CoinTicker, GlobalStats

logger = structlog.get_logger()

_SERVICE = "coinlore"


class CoinloreProvider(TickerProvider):
    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        cache_ttl: int | None = None,
    ) -> None:
        self._client = client
        self._base_url = (base_url or settings.coinlore_base_url).rstrip("/")
        ttl = settings.price_cache_seconds if cache_ttl is None else cache_ttl
        self._cache: TTLCache = TTLCache(maxsize=256, ttl=max(ttl, 1))
        self._cache_enabled = ttl > 0

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or get_http_client()

    async def _get(self, path: str, params: dict | None = None) -> dict | list:
        key = (path, tuple(sorted((params or {}).items())))
        if self._cache_enabled and key in self._cache:
            return self._cache[key]
        data = await fetch_json(self.client, _SERVICE, f"{self._base_url}{path}", params=params)
        if self._cache_enabled:
            self._cache[key] = data
        return data

    async def get_tickers(self, start: int = 0, limit: int = 100) -> list[CoinTicker]:
        payload = await self._get("/tickers/", {"start": start, "limit": limit})
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
            raise ExternalServiceError(_SERVICE, "unexpected tickers payload")

        tickers = [CoinTicker.from_coinlore(raw) for raw in payload["data"]]
        logger.debug("coinlore_tickers_fetched", start=start, limit=limit, count=len(tickers))
        return tickers

    async def get_ticker(self, coin_id: str) -> CoinTicker:
        payload = await self._get("/ticker/", {"id": coin_id})
        if not isinstance(payload, list) or not payload:
            raise NotFoundError("Coin", coin_id)
        return CoinTicker.from_coinlore(payload[0])

    async def get_global(self) -> GlobalStats:
        payload = await self._get("/global/")
        if not isinstance(payload, list) or not payload:
            raise ExternalServiceError(_SERVICE, "empty global stats payload")
        return GlobalStats.from_coinlore(payload[0])
