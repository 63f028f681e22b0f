import asyncio
from uuid import uuid4

import structlog

from cryptotrend.event_store.models import AggregateType, EventType
from cryptotrend.event_store.service import EventStoreService
from cryptotrend.exceptions import ConflictError, NotFoundError
from cryptotrend.market.schemas import CoinTicker
from cryptotrend.market.service import MarketService
from cryptotrend.watchlist.repository import WatchlistRepository
from cryptotrend.watchlist.schemas import RefreshResult, WatchlistItem, WatchStatus

logger = structlog.get_logger()


def _snapshot(ticker: CoinTicker) -> dict:
    return {
        "coin_name": ticker.name,
        "coin_symbol": ticker.symbol,
        "coin_nameid": ticker.nameid,
        "price_usd": ticker.price_usd,
        "percent_change_24h": ticker.percent_change_24h,
        "percent_change_7d": ticker.percent_change_7d,
        "market_cap_usd": ticker.market_cap_usd,
        "volume24": ticker.volume24,
        "rank": ticker.rank,
    }


class WatchlistService:
    def __init__(
        self,
        event_store: EventStoreService,
        repo: WatchlistRepository,
        market: MarketService,
    ) -> None:
        self._event_store = event_store
        self._repo = repo
        self._market = market

    async def list_items(self, user_id: str) -> list[WatchlistItem]:
        rows = await self._repo.list_by_user(user_id)
        return [WatchlistItem(**row) for row in rows]

    async def add(self, user_id: str, coin: str) -> WatchlistItem:
        ticker = await self._market.resolve_coin(coin)
        if await self._repo.get_by_coin(user_id, ticker.id):
            raise ConflictError(f"{ticker.name} is already in your watchlist")

        item_id = str(uuid4())
        await self._event_store.append_event(
            aggregate_type=AggregateType.watchlist_item,
            aggregate_id=item_id,
            event_type=EventType.watchlist_item_added,
            event_data={"user_id": user_id, "coin_id": ticker.id, **_snapshot(ticker)},
            user_id=user_id,
        )
        logger.info("watchlist_item_added", user_id=user_id, coin_id=ticker.id)

        row = await self._repo.get_by_coin(user_id, ticker.id)
        if row is None:
            raise NotFoundError("Watchlist item", item_id)
        return WatchlistItem(**row)

    async def remove(self, user_id: str, coin_id: str) -> None:
        row = await self._repo.get_by_coin(user_id, coin_id)
        if row is None:
            raise NotFoundError("Watchlist item", coin_id)

        await self._event_store.append_event(
            aggregate_type=AggregateType.watchlist_item,
            aggregate_id=row["id"],
            event_type=EventType.watchlist_item_removed,
            event_data={"coin_id": coin_id},
            user_id=user_id,
        )
        logger.info("watchlist_item_removed", user_id=user_id, coin_id=coin_id)

    async def is_watched(self, user_id: str, coin_id: str) -> WatchStatus:
        row = await self._repo.get_by_coin(user_id, coin_id)
        return WatchStatus(coin_id=coin_id, is_watched=row is not None)

    async def refresh(self, user_id: str) -> RefreshResult:
        """Re-fetch the live ticker for every watched coin and store the new snapshot."""
        rows = await self._repo.list_by_user(user_id)
        tickers = await asyncio.gather(
            *(self._market.resolve_coin(row["coin_id"]) for row in rows),
            return_exceptions=True,
        )

        refreshed = 0
        failed: list[str] = []
        for row, ticker in zip(rows, tickers, strict=True):
            if isinstance(ticker, Exception):
                logger.warning("watchlist_refresh_failed", coin_id=row["coin_id"], error=str(ticker))
                failed.append(row["coin_id"])
                continue
            await self._event_store.append_event(
                aggregate_type=AggregateType.watchlist_item,
                aggregate_id=row["id"],
                event_type=EventType.watchlist_item_refreshed,
                event_data=_snapshot(ticker),
                user_id=user_id,
            )
            refreshed += 1

        logger.info("watchlist_refreshed", user_id=user_id, refreshed=refreshed, failed=len(failed))
        return RefreshResult(refreshed=refreshed, failed=failed)
