from enum import StrEnum


class AlertType(StrEnum):
    price_threshold = "price_threshold"
    percentage_change = "percentage_change"
    trend_signal = "trend_signal"
    portfolio_change = "portfolio_change"


class AlertCondition(StrEnum):
    above = "above"
    below = "below"
    crosses_above = "crosses_above"
    crosses_below = "crosses_below"
    equals = "equals"


class AlertStatus(StrEnum):
    active = "active"
    triggered = "triggered"
    paused = "paused"
    expired = "expired"


class AlertPriority(StrEnum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class TrendDirection(StrEnum):
    bullish = "bullish"
    bearish = "bearish"
    neutral = "neutral"


class AlertTimeframe(StrEnum):
    one_hour = "1h"
    one_day = "24h"
    one_week = "7d"
    one_month = "30d"


class NotificationType(StrEnum):
    toast = "toast"
    browser = "browser"


# Conditions each alert type accepts; trend alerts have no condition.
ALLOWED_CONDITIONS: dict[AlertType, frozenset[AlertCondition]] = {
    AlertType.price_threshold: frozenset(AlertCondition),
    AlertType.percentage_change: frozenset({AlertCondition.above, AlertCondition.below}),
    AlertType.portfolio_change: frozenset({AlertCondition.above, AlertCondition.below}),
    AlertType.trend_signal: frozenset(),
}
