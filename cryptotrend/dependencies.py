from functools import lru_cache
from typing import Annotated

import aiosqlite
from fastapi import Depends
from langchain_core.language_models import BaseChatModel

from cryptotrend.alerts.repository import AlertRepository
from cryptotrend.alerts.service import AlertService
from cryptotrend.analysis.service import AnalysisService
from cryptotrend.assistant.service import AssistantService
from cryptotrend.auth import get_current_user_id
from cryptotrend.database import get_db
from cryptotrend.event_store.service import EventStoreService
from cryptotrend.llm.factory import LLMFactory
from cryptotrend.market.providers.coingecko import CoinGeckoProvider
from cryptotrend.market.providers.coinlore import CoinloreProvider
from cryptotrend.market.service import MarketService
from cryptotrend.news.service import NewsService
from cryptotrend.portfolios.repository import PortfolioRepository
from cryptotrend.portfolios.service import PortfolioService
from cryptotrend.simulator.service import SimulatorService
from cryptotrend.users.repository import UserRepository
from cryptotrend.users.service import UserService
from cryptotrend.watchlist.repository import WatchlistRepository
from cryptotrend.watchlist.service import WatchlistService

DBConn = Annotated[aiosqlite.Connection, Depends(get_db)]
CurrentUserId = Annotated[str, Depends(get_current_user_id)]


# Process-wide singletons: providers own their response caches, the news
# service its rate-limit window.


@lru_cache
def get_ticker_provider() -> CoinloreProvider:
    return CoinloreProvider()


@lru_cache
def get_price_provider() -> CoinGeckoProvider:
    return CoinGeckoProvider()


@lru_cache
def get_news_service() -> NewsService:
    return NewsService()


@lru_cache
def get_llm() -> BaseChatModel | None:
    return LLMFactory.try_create()


def get_event_store() -> EventStoreService:
    return EventStoreService(get_db())


def get_user_service() -> UserService:
    return UserService(get_event_store(), UserRepository(get_db()))


def get_market_service() -> MarketService:
    return MarketService(get_ticker_provider(), get_price_provider())


def get_analysis_service() -> AnalysisService:
    return AnalysisService(get_market_service(), get_llm())


def get_portfolio_service() -> PortfolioService:
    return PortfolioService(
        get_event_store(), PortfolioRepository(get_db()), get_market_service(), get_llm()
    )


def get_watchlist_service() -> WatchlistService:
    return WatchlistService(get_event_store(), WatchlistRepository(get_db()), get_market_service())


def get_alert_service() -> AlertService:
    return AlertService(
        get_event_store(),
        AlertRepository(get_db()),
        get_market_service(),
        PortfolioRepository(get_db()),
    )


def get_assistant_service() -> AssistantService:
    return AssistantService(
        market=get_market_service(),
        analysis=get_analysis_service(),
        portfolios=get_portfolio_service(),
        watchlist=get_watchlist_service(),
        news=get_news_service(),
        llm=get_llm(),
    )


def get_simulator_service() -> SimulatorService:
    return SimulatorService(get_market_service(), get_portfolio_service(), get_llm())


EventStoreDep = Annotated[EventStoreService, Depends(get_event_store)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
MarketServiceDep = Annotated[MarketService, Depends(get_market_service)]
AnalysisServiceDep = Annotated[AnalysisService, Depends(get_analysis_service)]
PortfolioServiceDep = Annotated[PortfolioService, Depends(get_portfolio_service)]
WatchlistServiceDep = Annotated[WatchlistService, Depends(get_watchlist_service)]
AlertServiceDep = Annotated[AlertService, Depends(get_alert_service)]
NewsServiceDep = Annotated[NewsService, Depends(get_news_service)]
AssistantServiceDep = Annotated[AssistantService, Depends(get_assistant_service)]
SimulatorServiceDep = Annotated[SimulatorService, Depends(get_simulator_service)]
