from dataclasses import dataclass
from enum import StrEnum


class AggregateType(StrEnum):
    user = "user"
    portfolio = "portfolio"
    holding = "holding"
    watchlist_item = "watchlist_item"
    alert = "alert"


class EventType(StrEnum):
    user_registered = "user_registered"
    portfolio_created = "portfolio_created"
    portfolio_updated = "portfolio_updated"
    portfolio_deleted = "portfolio_deleted"
    holding_added = "holding_added"
    holding_updated = "holding_updated"
    holding_removed = "holding_removed"
    watchlist_item_added = "watchlist_item_added"
    watchlist_item_refreshed = "watchlist_item_refreshed"
    watchlist_item_removed = "watchlist_item_removed"
    alert_created = "alert_created"
    alert_updated = "alert_updated"
    alert_toggled = "alert_toggled"
    alert_triggered = "alert_triggered"
    alert_expired = "alert_expired"
    alert_deleted = "alert_deleted"


@dataclass(frozen=True)
class Event:
    event_id: str
    aggregate_type: str
    aggregate_id: str
    event_type: str
    event_data: str
    metadata: str | None
    version: int
    created_at: str
