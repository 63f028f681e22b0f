"""Pure alert rules.

Each ``evaluate_*`` function takes the alert as stored (including the value
observed on the previous check) and the fresh market observation, and returns
an :class:`Evaluation`. Nothing here touches the database or the network, so
the monitor can persist observations and triggers however it likes.
"""

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime

from cryptotrend.alerts.models import (
    AlertCondition,
    AlertPriority,
    AlertType,
    NotificationType,
    TrendDirection,
)
from cryptotrend.alerts.schemas import AlertResponse
from cryptotrend.market.schemas import MarketCoin

EQUALS_TOLERANCE = 0.005
TREND_C24_THRESHOLD = 5.0
TREND_C7_THRESHOLD = 10.0

_TIMEFRAME_NAMES = {"1h": "1 hour", "24h": "24 hours", "7d": "7 days", "30d": "30 days"}


@dataclass(frozen=True)
class Evaluation:
    triggered: bool
    trigger_value: float
    message: str = ""
    # Written back to the alert row so the next check can detect crossings.
    observation: dict = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)


def detect_trend(change_24h: float | None, change_7d: float | None) -> TrendDirection:
    c24 = change_24h or 0.0
    c7 = change_7d or 0.0
    if c24 > TREND_C24_THRESHOLD and c7 > TREND_C7_THRESHOLD:
        return TrendDirection.bullish
    if c24 < -TREND_C24_THRESHOLD and c7 < -TREND_C7_THRESHOLD:
        return TrendDirection.bearish
    return TrendDirection.neutral


def is_expired(alert: AlertResponse, now: datetime | None = None) -> bool:
    if not alert.expires_at:
        return False
    try:
        expires = datetime.fromisoformat(alert.expires_at.replace("Z", "+00:00"))
    except ValueError:
        return False
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=UTC)
    return expires <= (now or datetime.now(UTC))


def _money(value: float) -> str:
    return f"${value:,.2f}" if value >= 1 else f"${value:.6f}"


def price_condition_met(
    condition: AlertCondition, price: float, target: float, previous: float | None
) -> bool:
    match condition:
        case AlertCondition.above:
            return price > target
        case AlertCondition.below:
            return price < target
        case AlertCondition.crosses_above:
            last = previous if previous is not None else 0.0
            return price > target and last <= target
        case AlertCondition.crosses_below:
            last = previous if previous is not None else math.inf
            return price < target and last >= target
        case AlertCondition.equals:
            return abs(price - target) <= target * EQUALS_TOLERANCE
    return False


def evaluate_price(alert: AlertResponse, coin: MarketCoin) -> Evaluation | None:
    if coin.current_price is None or alert.target_price is None or alert.condition is None:
        return None

    price = coin.current_price
    target = alert.target_price
    triggered = price_condition_met(alert.condition, price, target, alert.current_price)

    symbol = alert.coin_symbol or coin.symbol
    messages = {
        AlertCondition.above: f"{symbol} broke {_money(target)}, now at {_money(price)}",
        AlertCondition.below: f"{symbol} dropped below {_money(target)}, now at {_money(price)}",
        AlertCondition.crosses_above: f"{symbol} crossed above {_money(target)}",
        AlertCondition.crosses_below: f"{symbol} crossed below {_money(target)}",
        AlertCondition.equals: f"{symbol} reached {_money(target)}, now at {_money(price)}",
    }
    return Evaluation(
        triggered=triggered,
        trigger_value=price,
        message=messages[alert.condition],
        observation={"current_price": price},
        metadata={
            "current_price": price,
            "target_price": target,
            "previous_price": alert.current_price,
            "condition": str(alert.condition),
        },
    )


def evaluate_percentage(alert: AlertResponse, coin: MarketCoin) -> Evaluation | None:
    if alert.target_percentage is None or alert.condition is None or alert.timeframe is None:
        return None

    change = coin.change_for(alert.timeframe)
    magnitude = abs(change)
    symbol = alert.coin_symbol or coin.symbol
    period = _TIMEFRAME_NAMES.get(alert.timeframe, alert.timeframe)

    if alert.condition == AlertCondition.above:
        triggered = magnitude > alert.target_percentage
        direction = "up" if change > 0 else "down"
        message = f"{symbol} is {direction} {magnitude:.2f}% in the last {period}"
    else:
        triggered = magnitude < alert.target_percentage
        message = f"{symbol} volatility is low ({magnitude:.2f}%) in the last {period}"

    return Evaluation(
        triggered=triggered,
        trigger_value=change,
        message=message,
        observation={"current_change": change},
        metadata={
            "current_change": change,
            "target_percentage": alert.target_percentage,
            "timeframe": str(alert.timeframe),
        },
    )


def evaluate_trend(alert: AlertResponse, coin: MarketCoin) -> Evaluation | None:
    if alert.target_trend is None:
        return None

    trend = detect_trend(coin.price_change_percentage_24h, coin.price_change_percentage_7d)
    triggered = trend == alert.target_trend and trend != alert.current_trend
    symbol = alert.coin_symbol or coin.symbol
    return Evaluation(
        triggered=triggered,
        trigger_value={"bullish": 1.0, "bearish": -1.0}.get(trend, 0.0),
        message=f"{symbol} trend just turned {trend}",
        observation={"current_trend": str(trend)},
        metadata={
            "current_trend": str(trend),
            "previous_trend": alert.current_trend,
            "target_trend": str(alert.target_trend),
        },
    )


def portfolio_change(
    holdings: list[dict], markets: dict[str, MarketCoin], timeframe: str
) -> tuple[float, float]:
    """Value-weighted percentage change of the holdings over ``timeframe``.

    Returns ``(change_pct, current_value)``; holdings whose coin has no
    market quote are left out.
    """
    total_value = 0.0
    weighted = 0.0
    for holding in holdings:
        coin = markets.get(holding["coin_id"])
        if coin is None or coin.current_price is None:
            continue
        value = holding["amount"] * coin.current_price
        total_value += value
        weighted += value * coin.change_for(timeframe)

    if total_value <= 0:
        return 0.0, 0.0
    return weighted / total_value, total_value


def evaluate_portfolio(alert: AlertResponse, change: float, value: float) -> Evaluation | None:
    if alert.target_percentage is None or alert.condition is None or alert.timeframe is None:
        return None

    if alert.condition == AlertCondition.above:
        triggered = change > alert.target_percentage
        message = f"Your portfolio is up {change:.2f}% in the last {alert.timeframe}"
    else:
        triggered = change < alert.target_percentage
        message = f"Your portfolio changed {change:.2f}% in the last {alert.timeframe}"

    return Evaluation(
        triggered=triggered,
        trigger_value=change,
        message=message,
        observation={"current_change": change, "portfolio_value": value},
        metadata={
            "portfolio_change": change,
            "portfolio_value": value,
            "target_percentage": alert.target_percentage,
            "timeframe": str(alert.timeframe),
        },
    )


def evaluate_market_alert(alert: AlertResponse, coin: MarketCoin) -> Evaluation | None:
    match alert.type:
        case AlertType.price_threshold:
            return evaluate_price(alert, coin)
        case AlertType.percentage_change:
            return evaluate_percentage(alert, coin)
        case AlertType.trend_signal:
            return evaluate_trend(alert, coin)
    return None


def notification_title(alert: AlertResponse) -> str:
    match alert.type:
        case AlertType.price_threshold:
            title = f"{alert.coin_symbol} Price Alert"
        case AlertType.percentage_change:
            title = f"{alert.coin_symbol} Volatility Alert"
        case AlertType.trend_signal:
            title = f"{alert.coin_symbol} Trend Alert"
        case AlertType.portfolio_change:
            title = "Portfolio Alert"
        case _:
            title = "Smart Alert"

    if alert.priority == AlertPriority.critical:
        return f"CRITICAL: {title}"
    if alert.priority == AlertPriority.high:
        return f"Urgent: {title}"
    return title


def notification_type(priority: AlertPriority) -> NotificationType:
    if priority in (AlertPriority.high, AlertPriority.critical):
        return NotificationType.browser
    return NotificationType.toast
