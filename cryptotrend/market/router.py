from fastapi import APIRouter, Query

from cryptotrend.dependencies import CurrentUserId, MarketServiceDep
from cryptotrend.market.schemas import (
    CoinHistory,
    CoinPrice,
    CoinSearchResult,
    CoinTicker,
    GlobalStats,
    TickerPage,
)

router = APIRouter()


@router.get("/tickers", response_model=TickerPage)
async def get_tickers(
    service: MarketServiceDep,
    _user: CurrentUserId,
    start: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> TickerPage:
    return await service.get_tickers(start=start, limit=limit)


@router.get("/global", response_model=GlobalStats)
async def get_global(service: MarketServiceDep, _user: CurrentUserId) -> GlobalStats:
    return await service.get_global()


@router.get("/search", response_model=list[CoinSearchResult])
async def search_coins(
    service: MarketServiceDep,
    _user: CurrentUserId,
    q: str = Query(default="", max_length=100),
) -> list[CoinSearchResult]:
    return await service.search(q)


@router.get("/prices", response_model=dict[str, CoinPrice])
async def get_prices(
    service: MarketServiceDep,
    _user: CurrentUserId,
    ids: str = Query(min_length=1, description="Comma-separated CoinGecko ids"),
) -> dict[str, CoinPrice]:
    return await service.get_prices([coin_id for coin_id in ids.split(",") if coin_id.strip()])


@router.get("/coins/{coin}", response_model=CoinTicker)
async def get_coin(coin: str, service: MarketServiceDep, _user: CurrentUserId) -> CoinTicker:
    return await service.resolve_coin(coin)


@router.get("/coins/{coin}/history", response_model=CoinHistory)
async def get_coin_history(
    coin: str,
    service: MarketServiceDep,
    _user: CurrentUserId,
    hours: int = Query(default=24, ge=1, le=720),
) -> CoinHistory:
    return await service.get_history(coin, hours=hours)
