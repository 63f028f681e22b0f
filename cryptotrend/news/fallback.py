from datetime import UTC, datetime, timedelta

from cryptotrend.news.schemas import NewsArticle, NewsCategory, NewsImpact, NewsSentiment

# (title, description, source, sentiment, category, impact); article n is
# stamped n hours before "now".
_CURATED = [
    (
        "Bitcoin ETF Inflows Reach Record Highs as Institutional Adoption Accelerates",
        "Spot Bitcoin ETFs see unprecedented institutional demand from major pension funds "
        "and endowments allocating to digital assets.",
        "CoinDesk",
        "positive",
        "bitcoin",
        "high",
    ),
    (
        "Ethereum Layer 2 Solutions See 300% Growth in Transaction Volume",
        "Layer 2 scaling solutions experience massive growth as users seek lower fees and "
        "faster transactions.",
        "The Block",
        "positive",
        "ethereum",
        "medium",
    ),
    (
        "DeFi Total Value Locked Surpasses $100 Billion Milestone",
        "Decentralized Finance protocols reach new heights as institutional and retail "
        "investors embrace DeFi yields.",
        "DeFi Pulse",
        "positive",
        "defi",
        "high",
    ),
    (
        "Major Central Banks Accelerate CBDC Development Programs",
        "Multiple countries announce progress on Central Bank Digital Currencies, potentially "
        "reshaping global finance.",
        "Reuters",
        "neutral",
        "regulation",
        "high",
    ),
    (
        "NFT Market Shows Signs of Recovery with Blue-Chip Collections",
        "Premium NFT collections see renewed interest from collectors as the market "
        "stabilizes after downturn.",
        "NFT Now",
        "neutral",
        "nft",
        "medium",
    ),
    (
        "Solana Network Achieves Record Transaction Throughput",
        "Solana blockchain processes over 3,000 transactions per second during peak usage, "
        "demonstrating scalability improvements.",
        "Solana Labs",
        "positive",
        "general",
        "medium",
    ),
    (
        "Institutional Crypto Custody Solutions See 400% Growth",
        "Traditional financial institutions rapidly adopt cryptocurrency custody services to "
        "meet growing client demand.",
        "Coinbase Institutional",
        "positive",
        "general",
        "high",
    ),
    (
        "Web3 Gaming Tokens Rally as Metaverse Interest Resurges",
        "Gaming-focused cryptocurrencies experience significant price appreciation as major "
        "studios announce blockchain integration.",
        "GameFi News",
        "positive",
        "general",
        "medium",
    ),
    (
        "Ethereum Staking Yields Stabilize Around 4% as Network Matures",
        "Post-merge Ethereum staking rewards find equilibrium as validator participation "
        "reaches optimal levels.",
        "Ethereum Foundation",
        "positive",
        "ethereum",
        "medium",
    ),
    (
        "Crypto Market Volatility Drops to 6-Month Low",
        "Reduced volatility signals market maturation as institutional investors increase "
        "cryptocurrency allocations significantly.",
        "MarketWatch",
        "positive",
        "general",
        "medium",
    ),
    (
        "Polygon zkEVM Mainnet Launch Attracts Major DeFi Protocols",
        "Zero-knowledge Ethereum Virtual Machine goes live, enabling faster and cheaper "
        "transactions for DeFi.",
        "Polygon Labs",
        "positive",
        "ethereum",
        "high",
    ),
    (
        "Bitcoin Mining Difficulty Reaches All-Time High",
        "Network security strengthens as mining difficulty adjustment reflects increased "
        "computational power dedicated to Bitcoin.",
        "Bitcoin Magazine",
        "positive",
        "bitcoin",
        "medium",
    ),
    (
        "Chainlink Expands Cross-Chain Infrastructure with New Protocols",
        "Oracle network enhances interoperability solutions, connecting more blockchains for "
        "seamless data transfer.",
        "Chainlink Labs",
        "positive",
        "general",
        "medium",
    ),
    (
        "Uniswap V4 Introduces Customizable Liquidity Pools",
        "Next-generation DEX allows developers to create tailored automated market makers "
        "with advanced features.",
        "Uniswap Labs",
        "positive",
        "defi",
        "high",
    ),
    (
        "Crypto Regulatory Framework Gains Bipartisan Support",
        "Comprehensive digital asset legislation moves forward with support from both "
        "political parties.",
        "Congressional News",
        "positive",
        "regulation",
        "high",
    ),
]


def fallback_articles(now: datetime | None = None) -> list[NewsArticle]:
    now = now or datetime.now(UTC)
    return [
        NewsArticle(
            id=f"fallback-{index + 1}",
            title=title,
            description=description,
            url="#",
            image_url=None,
            published_at=(now - timedelta(hours=index)).isoformat(),
            source=source,
            sentiment=NewsSentiment(sentiment),
            category=NewsCategory(category),
            impact=NewsImpact(impact),
        )
        for index, (title, description, source, sentiment, category, impact) in enumerate(_CURATED)
    ]
