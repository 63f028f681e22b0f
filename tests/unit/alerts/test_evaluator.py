"""Tests for the pure alert rules."""

import math
from datetime import UTC, datetime, timedelta

import pytest

from cryptotrend.alerts.evaluator import (
    detect_trend,
    evaluate_market_alert,
    evaluate_percentage,
    evaluate_portfolio,
    evaluate_price,
    evaluate_trend,
    is_expired,
    notification_title,
    notification_type,
    portfolio_change,
    price_condition_met,
)
from cryptotrend.alerts.models import (
    AlertCondition,
    AlertPriority,
    AlertType,
    NotificationType,
    TrendDirection,
)
from cryptotrend.alerts.schemas import AlertResponse
from cryptotrend.market.schemas import MarketCoin


def make_alert(**overrides) -> AlertResponse:
    fields = {
        "id": "alert-1",
        "user_id": "user-1",
        "name": "Test alert",
        "type": AlertType.price_threshold,
        "status": "active",
        "priority": AlertPriority.medium,
        "is_enabled": True,
        "coin_id": "bitcoin",
        "coin_symbol": "BTC",
        "coin_name": "Bitcoin",
        "created_at": "2025-01-01T00:00:00+00:00",
        "updated_at": "2025-01-01T00:00:00+00:00",
    }
    fields.update(overrides)
    return AlertResponse(**fields)


@pytest.fixture
def btc(sample_markets) -> MarketCoin:
    return sample_markets[0]


class TestPriceConditions:
    @pytest.mark.parametrize(
        ("condition", "price", "previous", "expected"),
        [
            (AlertCondition.above, 101, None, True),
            (AlertCondition.above, 100, None, False),
            (AlertCondition.below, 99, None, True),
            (AlertCondition.crosses_above, 101, 99, True),
            (AlertCondition.crosses_above, 101, 100.5, False),
            (AlertCondition.crosses_above, 101, None, True),
            (AlertCondition.crosses_below, 99, 101, True),
            (AlertCondition.crosses_below, 99, 98, False),
            (AlertCondition.crosses_below, 99, None, True),
            (AlertCondition.equals, 100.4, None, True),
            (AlertCondition.equals, 100.6, None, False),
        ],
    )
    def test_condition(self, condition, price, previous, expected):
        assert price_condition_met(condition, price, 100, previous) is expected


class TestEvaluatePrice:
    def test_above_target_triggers(self, btc):
        alert = make_alert(condition=AlertCondition.above, target_price=95000)
        evaluation = evaluate_price(alert, btc)

        assert evaluation.triggered
        assert evaluation.trigger_value == 100000.0
        assert evaluation.observation == {"current_price": 100000.0}
        assert "BTC broke $95,000.00" in evaluation.message

    def test_crossing_uses_previous_observation(self, btc):
        alert = make_alert(
            condition=AlertCondition.crosses_above, target_price=95000, current_price=96000
        )
        assert not evaluate_price(alert, btc).triggered

    def test_missing_target_is_skipped(self, btc):
        assert evaluate_price(make_alert(condition=AlertCondition.above), btc) is None


class TestEvaluatePercentage:
    def test_above_uses_absolute_change(self, sample_markets):
        eth = sample_markets[1]
        alert = make_alert(
            type=AlertType.percentage_change,
            coin_id="ethereum",
            coin_symbol="ETH",
            condition=AlertCondition.above,
            target_percentage=5,
            timeframe="24h",
        )
        evaluation = evaluate_percentage(alert, eth)

        assert evaluation.triggered
        assert evaluation.trigger_value == -6.0
        assert "down 6.00%" in evaluation.message

    def test_below_fires_on_calm_market(self, btc):
        alert = make_alert(
            type=AlertType.percentage_change,
            condition=AlertCondition.below,
            target_percentage=1,
            timeframe="1h",
        )
        assert evaluate_percentage(alert, btc).triggered


class TestTrend:
    @pytest.mark.parametrize(
        ("c24", "c7", "expected"),
        [
            (6, 11, TrendDirection.bullish),
            (-6, -11, TrendDirection.bearish),
            (6, 5, TrendDirection.neutral),
            (None, None, TrendDirection.neutral),
        ],
    )
    def test_detect_trend(self, c24, c7, expected):
        assert detect_trend(c24, c7) is expected

    def test_fires_only_on_change_of_trend(self, sample_markets):
        sol = sample_markets[2]
        alert = make_alert(
            type=AlertType.trend_signal, coin_id="solana", target_trend=TrendDirection.bullish
        )
        first = evaluate_trend(alert, sol)
        assert first.triggered
        assert first.trigger_value == 1.0

        repeated = make_alert(
            type=AlertType.trend_signal,
            coin_id="solana",
            target_trend=TrendDirection.bullish,
            current_trend=TrendDirection.bullish,
        )
        assert not evaluate_trend(repeated, sol).triggered


class TestPortfolio:
    def test_value_weighted_change(self, sample_markets):
        markets = {coin.id: coin for coin in sample_markets}
        holdings = [
            {"coin_id": "bitcoin", "amount": 1},
            {"coin_id": "ethereum", "amount": 25},
            {"coin_id": "unknown", "amount": 100},
        ]
        change, value = portfolio_change(holdings, markets, "24h")

        assert value == 200000.0
        assert change == pytest.approx((100000 * 2.0 + 100000 * -6.0) / 200000)

    def test_empty_portfolio(self):
        assert portfolio_change([], {}, "24h") == (0.0, 0.0)

    def test_below_threshold_triggers(self):
        alert = make_alert(
            type=AlertType.portfolio_change,
            coin_id=None,
            coin_symbol=None,
            condition=AlertCondition.below,
            target_percentage=-1,
            timeframe="24h",
        )
        evaluation = evaluate_portfolio(alert, change=-2.0, value=200000.0)

        assert evaluation.triggered
        assert evaluation.observation == {"current_change": -2.0, "portfolio_value": 200000.0}


def test_market_alert_dispatches_on_type(btc):
    alert = make_alert(condition=AlertCondition.below, target_price=50000)
    evaluation = evaluate_market_alert(alert, btc)
    assert evaluation is not None
    assert not evaluation.triggered
    assert math.isfinite(evaluation.trigger_value)


class TestExpiry:
    def test_past_expiry(self):
        now = datetime(2025, 6, 1, tzinfo=UTC)
        alert = make_alert(expires_at=(now - timedelta(minutes=1)).isoformat())
        assert is_expired(alert, now)

    def test_naive_and_zulu_timestamps(self):
        now = datetime(2025, 6, 1, tzinfo=UTC)
        assert is_expired(make_alert(expires_at="2025-05-31T23:00:00Z"), now)
        assert not is_expired(make_alert(expires_at="2025-06-02T00:00:00"), now)

    def test_no_expiry_or_garbage(self):
        assert not is_expired(make_alert())
        assert not is_expired(make_alert(expires_at="next tuesday"))


class TestNotifications:
    def test_title_prefix_follows_priority(self):
        assert notification_title(make_alert()) == "BTC Price Alert"
        assert notification_title(make_alert(priority=AlertPriority.high)) == "Urgent: BTC Price Alert"
        critical = make_alert(type=AlertType.portfolio_change, priority=AlertPriority.critical)
        assert notification_title(critical) == "CRITICAL: Portfolio Alert"

    def test_type_follows_priority(self):
        assert notification_type(AlertPriority.low) is NotificationType.toast
        assert notification_type(AlertPriority.critical) is NotificationType.browser
