"""Tests for AlertService against an in-memory database."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError as PydanticValidationError

from cryptotrend.alerts.models import AlertCondition, AlertStatus, AlertType
from cryptotrend.alerts.repository import AlertRepository
from cryptotrend.alerts.schemas import AlertCreate, AlertFilters, AlertUpdate
from cryptotrend.alerts.service import AlertService
from cryptotrend.exceptions import ConflictError, NotFoundError, ValidationError
from cryptotrend.portfolios.repository import PortfolioRepository
from cryptotrend.portfolios.service import PortfolioService

USER = "user-1"
OTHER_USER = "user-2"


@pytest.fixture
def alert_service(db, event_store, market) -> AlertService:
    return AlertService(event_store, AlertRepository(db), market, PortfolioRepository(db))


def price_alert(**overrides) -> AlertCreate:
    fields = {
        "name": "BTC above 95k",
        "type": AlertType.price_threshold,
        "coin_id": "Bitcoin",
        "coin_symbol": "btc",
        "coin_name": "Bitcoin",
        "condition": AlertCondition.above,
        "target_price": 95000,
    }
    fields.update(overrides)
    return AlertCreate(**fields)


class TestAlertCreateValidation:
    def test_price_alert_requires_target(self):
        with pytest.raises(PydanticValidationError, match="target_price"):
            AlertCreate(
                name="x",
                type=AlertType.price_threshold,
                coin_id="bitcoin",
                coin_symbol="BTC",
                coin_name="Bitcoin",
                condition=AlertCondition.above,
            )

    def test_condition_must_fit_type(self):
        with pytest.raises(PydanticValidationError, match="not valid"):
            AlertCreate(
                name="x",
                type=AlertType.portfolio_change,
                condition=AlertCondition.crosses_above,
                target_percentage=5,
                timeframe="24h",
            )

    def test_portfolio_alert_needs_no_coin(self):
        alert = AlertCreate(
            name="Portfolio drop",
            type=AlertType.portfolio_change,
            condition=AlertCondition.below,
            target_percentage=-10,
            timeframe="24h",
        )
        assert alert.coin_id is None


class TestAlertCrud:
    @pytest.mark.asyncio
    async def test_create_normalizes_coin_fields(self, alert_service):
        alert = await alert_service.create(USER, price_alert())

        assert alert.coin_id == "bitcoin"
        assert alert.coin_symbol == "BTC"
        assert alert.status is AlertStatus.active
        assert alert.is_enabled is True
        assert alert.trigger_count == 0

    @pytest.mark.asyncio
    async def test_other_users_alert_is_not_found(self, alert_service):
        alert = await alert_service.create(USER, price_alert())
        with pytest.raises(NotFoundError):
            await alert_service.get(OTHER_USER, alert.id)

    @pytest.mark.asyncio
    async def test_filters(self, alert_service):
        await alert_service.create(USER, price_alert())
        await alert_service.create(
            USER,
            AlertCreate(
                name="SOL trend",
                type=AlertType.trend_signal,
                coin_id="solana",
                coin_symbol="SOL",
                coin_name="Solana",
                target_trend="bullish",
            ),
        )

        trend_only = await alert_service.list_for_user(
            USER, AlertFilters(type=[AlertType.trend_signal])
        )
        assert [a.coin_id for a in trend_only] == ["solana"]
        assert len(await alert_service.list_for_user(USER)) == 2

    @pytest.mark.asyncio
    async def test_update_rejects_condition_for_type(self, alert_service):
        alert = await alert_service.create(
            USER,
            AlertCreate(
                name="ETH move",
                type=AlertType.percentage_change,
                coin_id="ethereum",
                coin_symbol="ETH",
                coin_name="Ethereum",
                condition=AlertCondition.above,
                target_percentage=5,
                timeframe="24h",
            ),
        )
        with pytest.raises(ValidationError):
            await alert_service.update(
                USER, alert.id, AlertUpdate(condition=AlertCondition.crosses_below)
            )

        updated = await alert_service.update(USER, alert.id, AlertUpdate(target_percentage=8))
        assert updated.target_percentage == 8

    @pytest.mark.asyncio
    async def test_toggle_pauses_and_resumes(self, alert_service):
        alert = await alert_service.create(USER, price_alert())

        paused = await alert_service.toggle(USER, alert.id)
        assert paused.is_enabled is False
        assert paused.status is AlertStatus.paused

        resumed = await alert_service.toggle(USER, alert.id)
        assert resumed.is_enabled is True
        assert resumed.status is AlertStatus.active

    @pytest.mark.asyncio
    async def test_delete_hides_alert(self, alert_service):
        alert = await alert_service.create(USER, price_alert())
        await alert_service.delete(USER, alert.id)

        with pytest.raises(NotFoundError):
            await alert_service.get(USER, alert.id)
        assert await alert_service.list_for_user(USER) == []


class TestCheckAlerts:
    @pytest.mark.asyncio
    async def test_trigger_records_history_and_notification(self, alert_service):
        alert = await alert_service.create(USER, price_alert())

        result = await alert_service.check_alerts(USER)

        assert result.checked == 1
        assert result.triggered == 1
        stored = await alert_service.get(USER, alert.id)
        assert stored.trigger_count == 1
        assert stored.current_price == 100000.0
        assert stored.last_triggered is not None
        # Threshold alerts stay active and fire again on the next check.
        assert stored.status is AlertStatus.active

        triggers = await alert_service.list_triggers(USER, alert.id)
        assert len(triggers) == 1
        assert triggers[0].metadata["target_price"] == 95000

        notifications = await alert_service.list_notifications(USER)
        assert len(notifications) == 1
        assert notifications[0].title == "BTC Price Alert"
        assert notifications[0].is_read is False

    @pytest.mark.asyncio
    async def test_crossing_fires_once(self, alert_service):
        await alert_service.create(
            USER, price_alert(condition=AlertCondition.crosses_above, target_price=95000)
        )
        first = await alert_service.check_alerts(USER)
        second = await alert_service.check_alerts(USER)

        assert first.triggered == 1
        assert second.triggered == 0

    @pytest.mark.asyncio
    async def test_unknown_coin_is_skipped(self, alert_service):
        await alert_service.create(USER, price_alert(coin_id="not-a-coin"))
        result = await alert_service.check_alerts(USER)

        assert result.skipped == 1
        assert result.triggered == 0

    @pytest.mark.asyncio
    async def test_conflicting_alert_does_not_stop_the_check(self, alert_service):
        first = await alert_service.create(USER, price_alert())
        second = await alert_service.create(USER, price_alert(name="BTC above 90k", target_price=90000))
        trigger = alert_service._trigger

        async def conflict_on_first(alert, evaluation):
            if alert.id == first.id:
                raise ConflictError(f"alert '{alert.id}' conflicts with stored data")
            await trigger(alert, evaluation)

        alert_service._trigger = AsyncMock(side_effect=conflict_on_first)

        result = await alert_service.check_alerts(USER)

        assert result.skipped == 1
        assert result.triggered == 1
        assert result.checked == 1
        assert (await alert_service.get(USER, second.id)).trigger_count == 1
        assert (await alert_service.get(USER, first.id)).trigger_count == 0

    @pytest.mark.asyncio
    async def test_expired_alert_is_marked(self, alert_service):
        past = (datetime.now(UTC) - timedelta(hours=1)).isoformat()
        alert = await alert_service.create(USER, price_alert(expires_at=past))

        result = await alert_service.check_alerts(USER)

        assert result.expired == 1
        assert (await alert_service.get(USER, alert.id)).status is AlertStatus.expired
        assert (await alert_service.check_alerts(USER)).expired == 0

    @pytest.mark.asyncio
    async def test_paused_alert_is_not_checked(self, alert_service):
        alert = await alert_service.create(USER, price_alert())
        await alert_service.toggle(USER, alert.id)

        result = await alert_service.check_alerts(USER)

        assert result.checked == 0

    @pytest.mark.asyncio
    async def test_portfolio_alert_uses_user_holdings(self, db, event_store, market, alert_service):
        portfolios = PortfolioService(event_store, PortfolioRepository(db), market)
        await portfolios.create_sample(USER)
        await alert_service.create(
            USER,
            AlertCreate(
                name="Portfolio rally",
                type=AlertType.portfolio_change,
                condition=AlertCondition.above,
                target_percentage=1,
                timeframe="7d",
            ),
        )

        result = await alert_service.check_alerts(USER)

        assert result.triggered == 1
        notifications = await alert_service.list_notifications(USER)
        assert notifications[0].title == "Portfolio Alert"


class TestStatsAndNotifications:
    @pytest.mark.asyncio
    async def test_stats(self, alert_service):
        await alert_service.create(USER, price_alert())
        await alert_service.create(USER, price_alert(name="never", target_price=500000))
        await alert_service.check_alerts(USER)

        stats = await alert_service.get_stats(USER)

        assert stats.total_alerts == 2
        assert stats.active_alerts == 2
        assert stats.triggered_today == 1
        assert stats.triggered_this_week == 1
        assert stats.most_triggered_coin == "BTC"

    @pytest.mark.asyncio
    async def test_stats_without_triggers(self, alert_service):
        stats = await alert_service.get_stats(USER)
        assert stats.most_triggered_coin == "N/A"

    @pytest.mark.asyncio
    async def test_mark_notification_read(self, alert_service):
        await alert_service.create(USER, price_alert())
        await alert_service.check_alerts(USER)
        notification = (await alert_service.list_notifications(USER))[0]

        with pytest.raises(NotFoundError):
            await alert_service.mark_notification_read(OTHER_USER, notification.id)

        await alert_service.mark_notification_read(USER, notification.id)
        assert await alert_service.list_notifications(USER, unread_only=True) == []

    def test_templates_sorted_by_popularity(self, alert_service):
        popularity = [template.popularity for template in alert_service.get_templates()]
        assert popularity == sorted(popularity, reverse=True)
