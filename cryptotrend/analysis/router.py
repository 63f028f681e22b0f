from fastapi import APIRouter, Query

from cryptotrend.analysis.schemas import AnalysisResult, CoinAnalysis, CoinInsight, MarketData
from cryptotrend.dependencies import AnalysisServiceDep, CurrentUserId

router = APIRouter()


@router.post("", response_model=AnalysisResult)
async def analyze_snapshot(
    data: MarketData,
    service: AnalysisServiceDep,
    _user: CurrentUserId,
) -> AnalysisResult:
    """Score a posted market snapshot without fetching anything."""
    return service.analyze(data)


@router.get("/top", response_model=list[CoinAnalysis])
async def analyze_top(
    service: AnalysisServiceDep,
    _user: CurrentUserId,
    limit: int = Query(default=10, ge=1, le=100),
) -> list[CoinAnalysis]:
    return await service.analyze_top(limit=limit)


@router.get("/batch", response_model=list[CoinAnalysis])
async def analyze_batch(
    service: AnalysisServiceDep,
    _user: CurrentUserId,
    coins: str = Query(min_length=1, description="Comma-separated coin ids, symbols or names"),
) -> list[CoinAnalysis]:
    return await service.analyze_many([coin.strip() for coin in coins.split(",") if coin.strip()])


@router.get("/coins/{coin}", response_model=CoinAnalysis)
async def analyze_coin(
    coin: str, service: AnalysisServiceDep, _user: CurrentUserId
) -> CoinAnalysis:
    return await service.analyze_coin(coin)


@router.get("/coins/{coin}/insight", response_model=CoinInsight)
async def coin_insight(
    coin: str, service: AnalysisServiceDep, _user: CurrentUserId
) -> CoinInsight:
    return await service.get_insight(coin)
