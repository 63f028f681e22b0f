import json

import aiosqlite
import structlog

from cryptotrend.event_store.models import Event, EventType

logger = structlog.get_logger()

_PORTFOLIO_FIELDS = ("name", "description", "is_public")
_HOLDING_FIELDS = ("amount", "purchase_price", "purchase_date", "notes")
_WATCHLIST_SNAPSHOT_FIELDS = (
    "coin_name",
    "coin_symbol",
    "coin_nameid",
    "price_usd",
    "percent_change_24h",
    "percent_change_7d",
    "market_cap_usd",
    "volume24",
    "rank",
)
_ALERT_FIELDS = (
    "name",
    "description",
    "type",
    "status",
    "priority",
    "is_enabled",
    "expires_at",
    "coin_id",
    "coin_symbol",
    "coin_name",
    "condition",
    "target_price",
    "target_percentage",
    "timeframe",
    "target_trend",
    "portfolio_value",
)
_BOOLEAN_FIELDS = frozenset({"is_public", "is_enabled"})


class ProjectionEngine:
    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def project(self, event: Event) -> None:
        handler = self._get_handler(event.event_type)
        if handler is not None:
            data = json.loads(event.event_data)
            await handler(event, data)
            logger.debug(
                "projection_applied",
                event_type=event.event_type,
                aggregate_id=event.aggregate_id,
            )

    def _get_handler(self, event_type: str):
        handlers = {
            EventType.user_registered: self._handle_user_registered,
            EventType.portfolio_created: self._handle_portfolio_created,
            EventType.portfolio_updated: self._handle_portfolio_updated,
            EventType.portfolio_deleted: self._handle_portfolio_deleted,
            EventType.holding_added: self._handle_holding_added,
            EventType.holding_updated: self._handle_holding_updated,
            EventType.holding_removed: self._handle_holding_removed,
            EventType.watchlist_item_added: self._handle_watchlist_item_added,
            EventType.watchlist_item_refreshed: self._handle_watchlist_item_refreshed,
            EventType.watchlist_item_removed: self._handle_watchlist_item_removed,
            EventType.alert_created: self._handle_alert_created,
            EventType.alert_updated: self._handle_alert_updated,
            EventType.alert_toggled: self._handle_alert_updated,
            EventType.alert_expired: self._handle_alert_updated,
            EventType.alert_triggered: self._handle_alert_triggered,
            EventType.alert_deleted: self._handle_alert_deleted,
        }
        return handlers.get(event_type)

    async def _update_fields(
        self, table: str, allowed: tuple[str, ...], event: Event, data: dict
    ) -> None:
        set_clauses: list[str] = []
        params: list = []

        for field in allowed:
            if field in data:
                set_clauses.append(f"{field} = ?")
                value = data[field]
                params.append((1 if value else 0) if field in _BOOLEAN_FIELDS else value)

        set_clauses.append("updated_at = ?")
        params.append(event.created_at)
        params.append(event.aggregate_id)

        await self._db.execute(
            f"UPDATE {table} SET {', '.join(set_clauses)} WHERE id = ?",
            params,
        )

    # -- users --------------------------------------------------------------

    async def _handle_user_registered(self, event: Event, data: dict) -> None:
        await self._db.execute(
            """
            INSERT INTO users_projection (
                id, email, display_name, password_hash, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                event.aggregate_id,
                data["email"],
                data.get("display_name"),
                data["password_hash"],
                event.created_at,
                event.created_at,
            ),
        )

    # -- portfolios ---------------------------------------------------------

    async def _handle_portfolio_created(self, event: Event, data: dict) -> None:
        await self._db.execute(
            """
            INSERT INTO portfolios_projection (
                id, user_id, name, description, is_public, is_deleted, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, 0, ?, ?)
            """,
            (
                event.aggregate_id,
                data["user_id"],
                data["name"],
                data.get("description"),
                1 if data.get("is_public") else 0,
                event.created_at,
                event.created_at,
            ),
        )

    async def _handle_portfolio_updated(self, event: Event, data: dict) -> None:
        await self._update_fields("portfolios_projection", _PORTFOLIO_FIELDS, event, data)

    async def _handle_portfolio_deleted(self, event: Event, data: dict) -> None:
        await self._db.execute(
            "UPDATE portfolios_projection SET is_deleted = 1, updated_at = ? WHERE id = ?",
            (event.created_at, event.aggregate_id),
        )
        await self._db.execute(
            """
            UPDATE holdings_projection
            SET is_deleted = 1, updated_at = ?
            WHERE portfolio_id = ? AND is_deleted = 0
            """,
            (event.created_at, event.aggregate_id),
        )

    # -- holdings -----------------------------------------------------------

    async def _handle_holding_added(self, event: Event, data: dict) -> None:
        await self._db.execute(
            """
            INSERT INTO holdings_projection (
                id, portfolio_id, coin_id, coin_symbol, coin_name, amount,
                purchase_price, purchase_date, notes, is_deleted, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
            """,
            (
                event.aggregate_id,
                data["portfolio_id"],
                data["coin_id"],
                data["coin_symbol"],
                data["coin_name"],
                data["amount"],
                data["purchase_price"],
                data["purchase_date"],
                data.get("notes"),
                event.created_at,
                event.created_at,
            ),
        )

    async def _handle_holding_updated(self, event: Event, data: dict) -> None:
        await self._update_fields("holdings_projection", _HOLDING_FIELDS, event, data)

    async def _handle_holding_removed(self, event: Event, data: dict) -> None:
        await self._db.execute(
            "UPDATE holdings_projection SET is_deleted = 1, updated_at = ? WHERE id = ?",
            (event.created_at, event.aggregate_id),
        )

    # -- watchlist ----------------------------------------------------------

    async def _handle_watchlist_item_added(self, event: Event, data: dict) -> None:
        await self._db.execute(
            """
            INSERT INTO watchlist_projection (
                id, user_id, coin_id, coin_name, coin_symbol, coin_nameid, price_usd,
                percent_change_24h, percent_change_7d, market_cap_usd, volume24, rank,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                event.aggregate_id,
                data["user_id"],
                data["coin_id"],
                data["coin_name"],
                data["coin_symbol"],
                data.get("coin_nameid"),
                data.get("price_usd"),
                data.get("percent_change_24h"),
                data.get("percent_change_7d"),
                data.get("market_cap_usd"),
                data.get("volume24"),
                data.get("rank"),
                event.created_at,
                event.created_at,
            ),
        )

    async def _handle_watchlist_item_refreshed(self, event: Event, data: dict) -> None:
        await self._update_fields("watchlist_projection", _WATCHLIST_SNAPSHOT_FIELDS, event, data)

    async def _handle_watchlist_item_removed(self, event: Event, data: dict) -> None:
        await self._db.execute(
            "DELETE FROM watchlist_projection WHERE id = ?",
            (event.aggregate_id,),
        )

    # -- alerts -------------------------------------------------------------

    async def _handle_alert_created(self, event: Event, data: dict) -> None:
        columns = ["id", "user_id", *(f for f in _ALERT_FIELDS if f in data)]
        values = [event.aggregate_id, data["user_id"]]
        for field in columns[2:]:
            value = data[field]
            values.append((1 if value else 0) if field in _BOOLEAN_FIELDS else value)
        columns += ["created_at", "updated_at"]
        values += [event.created_at, event.created_at]

        placeholders = ", ".join("?" for _ in columns)
        await self._db.execute(
            f"INSERT INTO alerts_projection ({', '.join(columns)}) VALUES ({placeholders})",
            values,
        )

    async def _handle_alert_updated(self, event: Event, data: dict) -> None:
        await self._update_fields("alerts_projection", _ALERT_FIELDS, event, data)

    async def _handle_alert_triggered(self, event: Event, data: dict) -> None:
        await self._db.execute(
            """
            INSERT INTO alert_triggers (
                id, alert_id, user_id, triggered_at, trigger_value, message, metadata
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                data["trigger_id"],
                event.aggregate_id,
                data["user_id"],
                event.created_at,
                data["trigger_value"],
                data["message"],
                json.dumps(data.get("metadata") or {}),
            ),
        )
        await self._db.execute(
            """
            INSERT INTO alert_notifications (
                id, alert_id, trigger_id, user_id, type, title, message, priority, sent_at, is_read
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 0)
            """,
            (
                data["notification_id"],
                event.aggregate_id,
                data["trigger_id"],
                data["user_id"],
                data.get("notification_type", "toast"),
                data["title"],
                data["message"],
                data.get("priority", "medium"),
                event.created_at,
            ),
        )
        await self._db.execute(
            """
            UPDATE alerts_projection
            SET trigger_count = trigger_count + 1,
                last_triggered = ?,
                status = COALESCE(?, status),
                updated_at = ?
            WHERE id = ?
            """,
            (
                event.created_at,
                data.get("status"),
                event.created_at,
                event.aggregate_id,
            ),
        )

    async def _handle_alert_deleted(self, event: Event, data: dict) -> None:
        await self._db.execute(
            """
            UPDATE alerts_projection
            SET is_deleted = 1, is_enabled = 0, updated_at = ?
            WHERE id = ?
            """,
            (event.created_at, event.aggregate_id),
        )
