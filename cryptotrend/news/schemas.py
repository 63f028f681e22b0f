from enum import StrEnum

from pydantic import BaseModel


class NewsSentiment(StrEnum):
    positive = "positive"
    negative = "negative"
    neutral = "neutral"


class NewsCategory(StrEnum):
    bitcoin = "bitcoin"
    ethereum = "ethereum"
    defi = "defi"
    nft = "nft"
    regulation = "regulation"
    general = "general"


class NewsImpact(StrEnum):
    high = "high"
    medium = "medium"
    low = "low"


class NewsArticle(BaseModel):
    id: str
    title: str
    description: str
    url: str
    image_url: str | None = None
    published_at: str
    source: str
    sentiment: NewsSentiment
    category: NewsCategory
    impact: NewsImpact


class NewsFeed(BaseModel):
    articles: list[NewsArticle]
    fallback: bool
    rate_limited: bool = False
