from fastapi import APIRouter

from cryptotrend.dependencies import CurrentUserId, WatchlistServiceDep
from cryptotrend.watchlist.schemas import RefreshResult, WatchlistAdd, WatchlistItem, WatchStatus

router = APIRouter()


@router.get("/", response_model=list[WatchlistItem])
async def list_watchlist(
    service: WatchlistServiceDep,
    user_id: CurrentUserId,
) -> list[WatchlistItem]:
    return await service.list_items(user_id)


@router.post("/", status_code=201, response_model=WatchlistItem)
async def add_to_watchlist(
    data: WatchlistAdd,
    service: WatchlistServiceDep,
    user_id: CurrentUserId,
) -> WatchlistItem:
    return await service.add(user_id, data.coin)


@router.post("/refresh", response_model=RefreshResult)
async def refresh_watchlist(
    service: WatchlistServiceDep,
    user_id: CurrentUserId,
) -> RefreshResult:
    return await service.refresh(user_id)


@router.get("/{coin_id}/status", response_model=WatchStatus)
async def watch_status(
    coin_id: str,
    service: WatchlistServiceDep,
    user_id: CurrentUserId,
) -> WatchStatus:
    return await service.is_watched(user_id, coin_id)


@router.delete("/{coin_id}", status_code=204)
async def remove_from_watchlist(
    coin_id: str,
    service: WatchlistServiceDep,
    user_id: CurrentUserId,
) -> None:
    await service.remove(user_id, coin_id)
