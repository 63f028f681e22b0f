"""Keyword heuristics used to tag news articles."""

from cryptotrend.news.schemas import NewsCategory, NewsImpact, NewsSentiment

MAX_DESCRIPTION_WORDS = 25

POSITIVE_KEYWORDS = (
    "surge",
    "rally",
    "bullish",
    "gains",
    "growth",
    "adoption",
    "breakthrough",
    "milestone",
    "success",
    "partnership",
    "investment",
    "institutional",
    "approval",
)

NEGATIVE_KEYWORDS = (
    "crash",
    "plunge",
    "bearish",
    "decline",
    "losses",
    "hack",
    "scam",
    "ban",
    "regulation",
    "crackdown",
    "warning",
    "risk",
    "volatility",
    "concern",
)

# Checked in order; the first category with a matching keyword wins.
CATEGORY_KEYWORDS: dict[NewsCategory, tuple[str, ...]] = {
    NewsCategory.bitcoin: ("bitcoin", "btc"),
    NewsCategory.ethereum: ("ethereum", "eth", "smart contract"),
    NewsCategory.defi: ("defi", "decentralized finance", "yield", "liquidity", "dex"),
    NewsCategory.nft: ("nft", "non-fungible", "opensea", "digital art", "collectible"),
    NewsCategory.regulation: ("regulation", "sec", "government", "legal", "compliance", "law"),
}

HIGH_IMPACT_KEYWORDS = ("breaking", "major", "massive", "record", "historic", "unprecedented")
MEDIUM_IMPACT_KEYWORDS = ("significant", "notable", "important", "key", "substantial")

RELEVANCE_KEYWORDS = (
    "bitcoin",
    "cryptocurrency",
    "crypto",
    "blockchain",
    "ethereum",
    "btc",
    "eth",
    "digital currency",
    "virtual currency",
    "altcoin",
    "defi",
    "nft",
    "web3",
    "metaverse",
    "digital asset",
    "virtual asset",
    "token",
    "mining",
    "wallet",
    "exchange",
)


def determine_sentiment(text: str) -> NewsSentiment:
    lowered = text.lower()
    positive = sum(1 for keyword in POSITIVE_KEYWORDS if keyword in lowered)
    negative = sum(1 for keyword in NEGATIVE_KEYWORDS if keyword in lowered)
    if positive > negative:
        return NewsSentiment.positive
    if negative > positive:
        return NewsSentiment.negative
    return NewsSentiment.neutral


def determine_category(text: str) -> NewsCategory:
    lowered = text.lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return category
    return NewsCategory.general


def determine_impact(title: str) -> NewsImpact:
    lowered = title.lower()
    if any(keyword in lowered for keyword in HIGH_IMPACT_KEYWORDS):
        return NewsImpact.high
    if any(keyword in lowered for keyword in MEDIUM_IMPACT_KEYWORDS):
        return NewsImpact.medium
    return NewsImpact.low


def truncate_description(text: str | None, max_words: int = MAX_DESCRIPTION_WORDS) -> str:
    if not text:
        return "No description available"
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words]) + "..."


def is_crypto_relevant(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in RELEVANCE_KEYWORDS)
