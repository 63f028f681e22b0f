"""Tests for event versioning, idempotency and projection atomicity."""

import asyncio
import json

import pytest

from cryptotrend.event_store.models import AggregateType, EventType
from cryptotrend.exceptions import ConflictError
from cryptotrend.watchlist.repository import WatchlistRepository


def watchlist_payload(price: float, coin_id: str = "90", symbol: str = "BTC") -> dict:
    return {
        "user_id": "user-1",
        "coin_id": coin_id,
        "coin_name": symbol.title(),
        "coin_symbol": symbol,
        "price_usd": price,
    }


class TestEventStore:
    @pytest.mark.asyncio
    async def test_versions_increase_per_aggregate(self, event_store):
        await event_store.append_event(
            AggregateType.watchlist_item, "item-1", EventType.watchlist_item_added, watchlist_payload(1.0)
        )
        await event_store.append_event(
            AggregateType.watchlist_item,
            "item-1",
            EventType.watchlist_item_refreshed,
            {"price_usd": 2.0},
        )
        other = await event_store.append_event(
            AggregateType.watchlist_item,
            "item-2",
            EventType.watchlist_item_added,
            watchlist_payload(3.0, coin_id="80", symbol="ETH"),
        )

        history = await event_store.history(AggregateType.watchlist_item, "item-1")
        assert [event.version for event in history] == [1, 2]
        assert json.loads(history[1].event_data) == {"price_usd": 2.0}
        assert other.version == 1

    @pytest.mark.asyncio
    async def test_concurrent_appends_get_distinct_versions(self, db, event_store):
        await event_store.append_event(
            AggregateType.watchlist_item, "item-1", EventType.watchlist_item_added, watchlist_payload(1.0)
        )

        first, second = await asyncio.gather(
            event_store.append_event(
                AggregateType.watchlist_item,
                "item-1",
                EventType.watchlist_item_refreshed,
                {"price_usd": 2.0},
            ),
            event_store.append_event(
                AggregateType.watchlist_item,
                "item-1",
                EventType.watchlist_item_refreshed,
                {"price_usd": 3.0},
            ),
        )

        assert {first.version, second.version} == {2, 3}
        history = await event_store.history(AggregateType.watchlist_item, "item-1")
        assert [event.version for event in history] == [1, 2, 3]
        row = await WatchlistRepository(db).get_by_coin("user-1", "90")
        assert row["price_usd"] == json.loads(history[-1].event_data)["price_usd"]

    @pytest.mark.asyncio
    async def test_projection_conflict_raises_conflict_error(self, event_store):
        await event_store.append_event(
            AggregateType.watchlist_item, "item-1", EventType.watchlist_item_added, watchlist_payload(1.0)
        )

        with pytest.raises(ConflictError):
            await event_store.append_event(
                AggregateType.watchlist_item,
                "item-2",
                EventType.watchlist_item_added,
                watchlist_payload(2.0),
            )

        assert await event_store.history(AggregateType.watchlist_item, "item-2") == []

    @pytest.mark.asyncio
    async def test_projection_follows_events(self, db, event_store):
        await event_store.append_event(
            AggregateType.watchlist_item,
            "item-1",
            EventType.watchlist_item_added,
            watchlist_payload(1.0),
            user_id="user-1",
        )

        row = await WatchlistRepository(db).get_by_coin("user-1", "90")
        assert row["price_usd"] == 1.0

    @pytest.mark.asyncio
    async def test_duplicate_idempotency_key(self, event_store):
        args = (AggregateType.user, "u-1", EventType.user_registered)
        data = {"email": "a@example.com", "password_hash": "x"}
        await event_store.append_event(*args, data, idempotency_key="signup:a@example.com")

        with pytest.raises(ConflictError):
            await event_store.append_event(*args, data, idempotency_key="signup:a@example.com")

    @pytest.mark.asyncio
    async def test_failed_projection_rolls_back_event(self, event_store):
        with pytest.raises(KeyError):
            await event_store.append_event(
                AggregateType.user, "u-1", EventType.user_registered, {"email": "a@example.com"}
            )

        assert await event_store.history(AggregateType.user, "u-1") == []
