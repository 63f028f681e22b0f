from collections import Counter
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import structlog

from cryptotrend.alerts.evaluator import (
    Evaluation,
    evaluate_market_alert,
    evaluate_portfolio,
    is_expired,
    notification_title,
    notification_type,
    portfolio_change,
)
from cryptotrend.alerts.models import ALLOWED_CONDITIONS, AlertStatus, AlertType
from cryptotrend.alerts.repository import AlertRepository
from cryptotrend.alerts.schemas import (
    AlertCheckResult,
    AlertCreate,
    AlertFilters,
    AlertNotificationResponse,
    AlertResponse,
    AlertStats,
    AlertTemplate,
    AlertTriggerResponse,
    AlertUpdate,
)
from cryptotrend.event_store.models import AggregateType, EventType
from cryptotrend.event_store.service import EventStoreService
from cryptotrend.exceptions import ConflictError, NotFoundError, ValidationError
from cryptotrend.market.service import MarketService
from cryptotrend.portfolios.repository import PortfolioRepository

logger = structlog.get_logger()

ALERT_TEMPLATES = [
    AlertTemplate(
        id="btc-price-alert",
        name="Bitcoin Price Alert",
        description="Get notified when Bitcoin reaches a specific price",
        type=AlertType.price_threshold,
        category="popular",
        template={
            "type": "price_threshold",
            "coin_id": "bitcoin",
            "coin_symbol": "BTC",
            "coin_name": "Bitcoin",
            "condition": "above",
            "priority": "medium",
        },
        popularity=95,
    ),
    AlertTemplate(
        id="eth-volatility-alert",
        name="Ethereum Volatility Alert",
        description="Track Ethereum price swings over 24 hours",
        type=AlertType.percentage_change,
        category="popular",
        template={
            "type": "percentage_change",
            "coin_id": "ethereum",
            "coin_symbol": "ETH",
            "coin_name": "Ethereum",
            "condition": "above",
            "target_percentage": 5,
            "timeframe": "24h",
            "priority": "medium",
        },
        popularity=85,
    ),
    AlertTemplate(
        id="portfolio-loss-alert",
        name="Portfolio Protection Alert",
        description="Get warned when your portfolio drops significantly",
        type=AlertType.portfolio_change,
        category="portfolio",
        template={
            "type": "portfolio_change",
            "condition": "below",
            "target_percentage": -10,
            "timeframe": "24h",
            "priority": "high",
        },
        popularity=75,
    ),
    AlertTemplate(
        id="trend-reversal-alert",
        name="Trend Reversal Alert",
        description="Detect when a coin changes from bearish to bullish",
        type=AlertType.trend_signal,
        category="advanced",
        template={"type": "trend_signal", "target_trend": "bullish", "priority": "medium"},
        popularity=60,
    ),
]


def _to_response(row: dict) -> AlertResponse:
    return AlertResponse(**{**row, "is_enabled": bool(row["is_enabled"])})


class AlertService:
    def __init__(
        self,
        event_store: EventStoreService,
        repo: AlertRepository,
        market: MarketService,
        portfolios: PortfolioRepository,
    ) -> None:
        self._event_store = event_store
        self._repo = repo
        self._market = market
        self._portfolios = portfolios

    async def _get_owned(self, user_id: str, alert_id: str) -> dict:
        row = await self._repo.get_by_id(alert_id)
        if row is None or row["user_id"] != user_id:
            raise NotFoundError("Alert", alert_id)
        return row

    # -- CRUD ---------------------------------------------------------------

    async def create(self, user_id: str, data: AlertCreate) -> AlertResponse:
        alert_id = str(uuid4())
        payload = data.model_dump(mode="json", exclude_none=True)
        if "coin_id" in payload:
            payload["coin_id"] = payload["coin_id"].strip().lower()
        if "coin_symbol" in payload:
            payload["coin_symbol"] = payload["coin_symbol"].strip().upper()

        await self._event_store.append_event(
            aggregate_type=AggregateType.alert,
            aggregate_id=alert_id,
            event_type=EventType.alert_created,
            event_data={
                **payload,
                "user_id": user_id,
                "status": AlertStatus.active,
                "is_enabled": True,
            },
            user_id=user_id,
        )
        logger.info("alert_created", alert_id=alert_id, user_id=user_id, type=data.type)
        return await self.get(user_id, alert_id)

    async def list_for_user(
        self, user_id: str, filters: AlertFilters | None = None
    ) -> list[AlertResponse]:
        rows = await self._repo.list_by_user(user_id, filters)
        return [_to_response(row) for row in rows]

    async def get(self, user_id: str, alert_id: str) -> AlertResponse:
        return _to_response(await self._get_owned(user_id, alert_id))

    async def update(self, user_id: str, alert_id: str, data: AlertUpdate) -> AlertResponse:
        row = await self._get_owned(user_id, alert_id)
        changes = data.model_dump(mode="json", exclude_unset=True)
        if not changes:
            raise ValidationError("No update fields provided")
        if "name" in changes and changes["name"] is None:
            raise ValidationError("Alert name cannot be empty")

        condition = data.condition
        if condition is not None and condition not in ALLOWED_CONDITIONS[AlertType(row["type"])]:
            raise ValidationError(f"condition '{condition}' is not valid for {row['type']} alerts")

        await self._event_store.append_event(
            aggregate_type=AggregateType.alert,
            aggregate_id=alert_id,
            event_type=EventType.alert_updated,
            event_data=changes,
            user_id=user_id,
        )
        logger.info("alert_updated", alert_id=alert_id, fields=sorted(changes))
        return await self.get(user_id, alert_id)

    async def delete(self, user_id: str, alert_id: str) -> None:
        await self._get_owned(user_id, alert_id)
        await self._event_store.append_event(
            aggregate_type=AggregateType.alert,
            aggregate_id=alert_id,
            event_type=EventType.alert_deleted,
            event_data={},
            user_id=user_id,
        )
        logger.info("alert_deleted", alert_id=alert_id)

    async def toggle(self, user_id: str, alert_id: str) -> AlertResponse:
        row = await self._get_owned(user_id, alert_id)
        enabled = not bool(row["is_enabled"])
        changes: dict = {"is_enabled": enabled}
        if row["status"] != AlertStatus.expired:
            changes["status"] = AlertStatus.active if enabled else AlertStatus.paused

        await self._event_store.append_event(
            aggregate_type=AggregateType.alert,
            aggregate_id=alert_id,
            event_type=EventType.alert_toggled,
            event_data=changes,
            user_id=user_id,
        )
        logger.info("alert_toggled", alert_id=alert_id, is_enabled=enabled)
        return await self.get(user_id, alert_id)

    # -- history and stats --------------------------------------------------

    async def list_triggers(
        self, user_id: str, alert_id: str, limit: int = 50
    ) -> list[AlertTriggerResponse]:
        await self._get_owned(user_id, alert_id)
        rows = await self._repo.list_triggers(alert_id, limit=limit)
        return [AlertTriggerResponse(**row) for row in rows]

    async def get_stats(self, user_id: str, now: datetime | None = None) -> AlertStats:
        rows = await self._repo.list_by_user(user_id)
        now = now or datetime.now(UTC)
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        week_ago = today - timedelta(days=7)

        def _triggered_since(row: dict, since: datetime) -> bool:
            if not row["last_triggered"]:
                return False
            return datetime.fromisoformat(row["last_triggered"]) >= since

        coin_counts: Counter[str] = Counter()
        for row in rows:
            if row["coin_symbol"] and row["trigger_count"] > 0:
                coin_counts[row["coin_symbol"]] += row["trigger_count"]
        most_common = coin_counts.most_common(1)

        return AlertStats(
            total_alerts=len(rows),
            active_alerts=sum(
                1 for row in rows if row["status"] == AlertStatus.active and row["is_enabled"]
            ),
            triggered_today=sum(1 for row in rows if _triggered_since(row, today)),
            triggered_this_week=sum(1 for row in rows if _triggered_since(row, week_ago)),
            most_triggered_coin=most_common[0][0] if most_common else "N/A",
        )

    @staticmethod
    def get_templates() -> list[AlertTemplate]:
        return sorted(ALERT_TEMPLATES, key=lambda template: template.popularity, reverse=True)

    # -- notifications ------------------------------------------------------

    async def list_notifications(
        self, user_id: str, unread_only: bool = False, limit: int = 50
    ) -> list[AlertNotificationResponse]:
        rows = await self._repo.list_notifications(user_id, unread_only=unread_only, limit=limit)
        return [AlertNotificationResponse(**{**row, "is_read": bool(row["is_read"])}) for row in rows]

    async def mark_notification_read(self, user_id: str, notification_id: str) -> None:
        row = await self._repo.get_notification(notification_id)
        if row is None or row["user_id"] != user_id:
            raise NotFoundError("Notification", notification_id)
        await self._repo.mark_notification_read(notification_id)

    # -- evaluation ---------------------------------------------------------

    async def check_alerts(self, user_id: str | None = None) -> AlertCheckResult:
        """Evaluate every enabled active alert, of one user or of all users."""
        alerts = [_to_response(row) for row in await self._repo.list_checkable(user_id)]
        if not alerts:
            return AlertCheckResult(checked=0, triggered=0, expired=0, skipped=0)

        markets = {coin.id: coin for coin in await self._market.get_markets(per_page=100)}
        checked = triggered = expired = skipped = 0
        now = datetime.now(UTC)

        for alert in alerts:
            evaluation = None
            try:
                if is_expired(alert, now):
                    await self._expire(alert)
                    expired += 1
                    continue

                evaluation = await self._evaluate(alert, markets)
                if evaluation is not None and evaluation.triggered:
                    await self._trigger(alert, evaluation)
                    triggered += 1
            except ConflictError as exc:
                # Another writer changed the alert since it was listed.
                logger.warning("alert_check_conflict", alert_id=alert.id, error=exc.message)
                skipped += 1
                continue

            if evaluation is None:
                skipped += 1
                continue
            checked += 1
            await self._repo.record_observation(alert.id, evaluation.observation)

        logger.info(
            "alerts_checked",
            user_id=user_id,
            checked=checked,
            triggered=triggered,
            expired=expired,
            skipped=skipped,
        )
        return AlertCheckResult(checked=checked, triggered=triggered, expired=expired, skipped=skipped)

    async def _evaluate(self, alert: AlertResponse, markets: dict) -> Evaluation | None:
        if alert.type == AlertType.portfolio_change:
            if alert.timeframe is None:
                return None
            holdings = await self._portfolios.list_user_holdings(alert.user_id)
            change, value = portfolio_change(holdings, markets, alert.timeframe)
            return evaluate_portfolio(alert, change, value)

        coin = markets.get(alert.coin_id or "")
        if coin is None:
            return None
        return evaluate_market_alert(alert, coin)

    async def _expire(self, alert: AlertResponse) -> None:
        await self._event_store.append_event(
            aggregate_type=AggregateType.alert,
            aggregate_id=alert.id,
            event_type=EventType.alert_expired,
            event_data={"status": AlertStatus.expired},
            user_id=alert.user_id,
        )
        logger.info("alert_expired", alert_id=alert.id)

    async def _trigger(self, alert: AlertResponse, evaluation: Evaluation) -> None:
        await self._event_store.append_event(
            aggregate_type=AggregateType.alert,
            aggregate_id=alert.id,
            event_type=EventType.alert_triggered,
            event_data={
                "trigger_id": str(uuid4()),
                "notification_id": str(uuid4()),
                "user_id": alert.user_id,
                "trigger_value": evaluation.trigger_value,
                "message": evaluation.message,
                "metadata": evaluation.metadata,
                "title": notification_title(alert),
                "notification_type": notification_type(alert.priority),
                "priority": alert.priority,
            },
            user_id=alert.user_id,
        )
        logger.info(
            "alert_triggered",
            alert_id=alert.id,
            user_id=alert.user_id,
            type=alert.type,
            trigger_value=evaluation.trigger_value,
        )
