"""LangChain tools the assistant model can call.

Services and the calling user's id come from ``config["configurable"]``, set
by AssistantService for each chat request.
"""

from langchain_core.runnables import RunnableConfig
from langchain_core.tools import tool


def _configured(config: RunnableConfig, key: str):
    return (config.get("configurable") or {})[key]


@tool
async def get_coin_analysis(coin: str, config: RunnableConfig) -> dict:
    """Get live market data and the quantitative analysis for a cryptocurrency.

    Args:
        coin: Coin symbol, name or Coinlore id (e.g. BTC, ethereum, 90).
    """
    result = await _configured(config, "analysis").analyze_coin(coin)
    return result.model_dump(mode="json")


@tool
async def get_global_market(config: RunnableConfig) -> dict:
    """Get global crypto market statistics: total market cap, volume and BTC dominance."""
    stats = await _configured(config, "market").get_global()
    return stats.model_dump(mode="json")


@tool
async def get_portfolio_summary(config: RunnableConfig) -> list[dict]:
    """Get the value, invested amount and profit/loss of each of the user's portfolios."""
    service = _configured(config, "portfolios")
    summaries = await service.summarize_user(_configured(config, "user_id"))
    return [summary.model_dump(mode="json") for summary in summaries]


@tool
async def get_watchlist(config: RunnableConfig) -> list[dict]:
    """Get the coins on the user's watchlist with their last stored market snapshot."""
    service = _configured(config, "watchlist")
    items = await service.list_items(_configured(config, "user_id"))
    return [item.model_dump(mode="json") for item in items]


@tool
async def get_crypto_news(config: RunnableConfig, query: str = "") -> list[dict]:
    """Get recent crypto news headlines, optionally filtered by a search term.

    Args:
        query: Optional keyword to search for (e.g. "ETF", "solana").
    """
    articles = await _configured(config, "news").search(query)
    return [
        article.model_dump(mode="json", include={"title", "description", "source", "sentiment"})
        for article in articles[:8]
    ]


assistant_tools = [
    get_coin_analysis,
    get_global_market,
    get_portfolio_summary,
    get_watchlist,
    get_crypto_news,
]
