import time

import httpx
import structlog
from cachetools import TTLCache

from cryptotrend.config import settings
from cryptotrend.exceptions import ExternalServiceError, RateLimitedError
from cryptotrend.http_client import fetch_json, get_http_client
from cryptotrend.news.classify import (
    determine_category,
    determine_impact,
    determine_sentiment,
    is_crypto_relevant,
    truncate_description,
)
from cryptotrend.news.fallback import fallback_articles
from cryptotrend.news.schemas import NewsArticle, NewsFeed

logger = structlog.get_logger()

_SERVICE = "newsdata"
_FEED_QUERY = "bitcoin OR cryptocurrency OR ethereum OR blockchain OR crypto"
_SEARCH_SCOPE = "cryptocurrency OR bitcoin OR ethereum"
_REQUEST_SIZE = 10
_MAX_ARTICLES = 25
_MIN_ARTICLES = 5
_SUPPLEMENTED_SIZE = 15
_RATE_LIMIT_SECONDS = 60 * 60


def to_article(raw: dict, index: int) -> NewsArticle:
    title = raw.get("title") or "No title"
    text = f"{title} {raw.get('description') or ''}"
    return NewsArticle(
        id=str(raw.get("article_id") or index),
        title=title,
        description=truncate_description(raw.get("description")),
        url=raw.get("link") or "#",
        image_url=raw.get("image_url"),
        published_at=raw.get("pubDate") or "",
        source=raw.get("source_id") or "Unknown Source",
        sentiment=determine_sentiment(text),
        category=determine_category(text),
        impact=determine_impact(title),
    )


def _matches(article: NewsArticle, query: str) -> bool:
    needle = query.lower()
    return needle in article.title.lower() or needle in article.description.lower()


class NewsService:
    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        cache_minutes: int | None = None,
    ) -> None:
        self._client = client
        self._api_key = api_key if api_key is not None else settings.newsdata_api_key
        self._base_url = (base_url or settings.newsdata_base_url).rstrip("/")
        minutes = settings.news_cache_minutes if cache_minutes is None else cache_minutes
        self._cache: TTLCache = TTLCache(maxsize=1, ttl=max(minutes * 60, 1))
        self._rate_limited_until = 0.0

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or get_http_client()

    @property
    def rate_limited(self) -> bool:
        return time.monotonic() < self._rate_limited_until

    def clear_cache(self) -> None:
        self._cache.clear()
        self._rate_limited_until = 0.0

    async def _request(self, query: str) -> list[dict]:
        try:
            payload = await fetch_json(
                self.client,
                _SERVICE,
                f"{self._base_url}/latest",
                params={"apikey": self._api_key, "q": query, "language": "en", "size": _REQUEST_SIZE},
            )
        except RateLimitedError:
            self._rate_limited_until = time.monotonic() + _RATE_LIMIT_SECONDS
            logger.warning("news_rate_limited", retry_after_seconds=_RATE_LIMIT_SECONDS)
            raise

        if not isinstance(payload, dict) or payload.get("status") != "success":
            raise ExternalServiceError(_SERVICE, "unexpected response status")
        results = payload.get("results")
        return results if isinstance(results, list) else []

    async def get_feed(self) -> NewsFeed:
        cached = self._cache.get("feed")
        if cached is not None:
            return cached

        if not self._api_key:
            logger.info("news_fallback", reason="no_api_key")
            return NewsFeed(articles=fallback_articles(), fallback=True)
        if self.rate_limited:
            logger.info("news_fallback", reason="rate_limited")
            return NewsFeed(articles=fallback_articles(), fallback=True, rate_limited=True)

        try:
            results = await self._request(_FEED_QUERY)
        except ExternalServiceError as exc:
            logger.warning("news_fetch_failed", error=exc.message)
            return NewsFeed(articles=fallback_articles(), fallback=True, rate_limited=self.rate_limited)

        articles = [
            to_article(raw, index)
            for index, raw in enumerate(results)
            if is_crypto_relevant(
                f"{raw.get('title') or ''} {raw.get('description') or ''} {raw.get('content') or ''}"
            )
        ][:_MAX_ARTICLES]

        if len(articles) < _MIN_ARTICLES:
            articles += fallback_articles()[: _SUPPLEMENTED_SIZE - len(articles)]
        feed = NewsFeed(articles=articles, fallback=False)
        self._cache["feed"] = feed
        logger.info("news_fetched", count=len(articles))
        return feed

    async def search(self, query: str) -> list[NewsArticle]:
        query = query.strip()
        if not query:
            return (await self.get_feed()).articles

        if not self._api_key or self.rate_limited:
            return [article for article in fallback_articles() if _matches(article, query)]

        try:
            results = await self._request(f"{query} AND ({_SEARCH_SCOPE})")
        except ExternalServiceError as exc:
            logger.warning("news_search_failed", query=query, error=exc.message)
            return [article for article in fallback_articles() if _matches(article, query)]
        return [to_article(raw, index) for index, raw in enumerate(results)]
