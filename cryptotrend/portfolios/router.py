from fastapi import APIRouter

from cryptotrend.dependencies import CurrentUserId, PortfolioServiceDep
from cryptotrend.portfolios.schemas import (
    HoldingCreate,
    HoldingResponse,
    HoldingUpdate,
    PortfolioCreate,
    PortfolioInsights,
    PortfolioResponse,
    PortfolioSummary,
    PortfolioUpdate,
)

router = APIRouter()


@router.post("/", status_code=201, response_model=PortfolioResponse)
async def create_portfolio(
    data: PortfolioCreate,
    service: PortfolioServiceDep,
    user_id: CurrentUserId,
) -> PortfolioResponse:
    return await service.create(user_id, data)


@router.get("/", response_model=list[PortfolioResponse])
async def list_portfolios(
    service: PortfolioServiceDep,
    user_id: CurrentUserId,
) -> list[PortfolioResponse]:
    return await service.list_for_user(user_id)


@router.post("/sample", status_code=201, response_model=PortfolioResponse)
async def create_sample_portfolio(
    service: PortfolioServiceDep,
    user_id: CurrentUserId,
) -> PortfolioResponse:
    return await service.create_sample(user_id)


@router.get("/{portfolio_id}", response_model=PortfolioResponse)
async def get_portfolio(
    portfolio_id: str,
    service: PortfolioServiceDep,
    user_id: CurrentUserId,
) -> PortfolioResponse:
    return await service.get(user_id, portfolio_id)


@router.put("/{portfolio_id}", response_model=PortfolioResponse)
async def update_portfolio(
    portfolio_id: str,
    data: PortfolioUpdate,
    service: PortfolioServiceDep,
    user_id: CurrentUserId,
) -> PortfolioResponse:
    return await service.update(user_id, portfolio_id, data)


@router.delete("/{portfolio_id}", status_code=204)
async def delete_portfolio(
    portfolio_id: str,
    service: PortfolioServiceDep,
    user_id: CurrentUserId,
) -> None:
    await service.delete(user_id, portfolio_id)


@router.get("/{portfolio_id}/summary", response_model=PortfolioSummary)
async def get_portfolio_summary(
    portfolio_id: str,
    service: PortfolioServiceDep,
    user_id: CurrentUserId,
) -> PortfolioSummary:
    return await service.summarize(user_id, portfolio_id)


@router.get("/{portfolio_id}/insights", response_model=PortfolioInsights)
async def get_portfolio_insights(
    portfolio_id: str,
    service: PortfolioServiceDep,
    user_id: CurrentUserId,
) -> PortfolioInsights:
    return await service.get_insights(user_id, portfolio_id)


@router.post("/{portfolio_id}/holdings", status_code=201, response_model=HoldingResponse)
async def add_holding(
    portfolio_id: str,
    data: HoldingCreate,
    service: PortfolioServiceDep,
    user_id: CurrentUserId,
) -> HoldingResponse:
    return await service.add_holding(user_id, portfolio_id, data)


@router.put("/{portfolio_id}/holdings/{holding_id}", response_model=HoldingResponse)
async def update_holding(
    portfolio_id: str,
    holding_id: str,
    data: HoldingUpdate,
    service: PortfolioServiceDep,
    user_id: CurrentUserId,
) -> HoldingResponse:
    return await service.update_holding(user_id, portfolio_id, holding_id, data)


@router.delete("/{portfolio_id}/holdings/{holding_id}", status_code=204)
async def remove_holding(
    portfolio_id: str,
    holding_id: str,
    service: PortfolioServiceDep,
    user_id: CurrentUserId,
) -> None:
    await service.remove_holding(user_id, portfolio_id, holding_id)
