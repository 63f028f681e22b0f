from typing import Any

from pydantic import BaseModel, Field, model_validator

from cryptotrend.alerts.models import (
    ALLOWED_CONDITIONS,
    AlertCondition,
    AlertPriority,
    AlertStatus,
    AlertTimeframe,
    AlertType,
    TrendDirection,
)


class AlertCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    type: AlertType
    priority: AlertPriority = AlertPriority.medium
    expires_at: str | None = None
    coin_id: str | None = Field(default=None, max_length=100)
    coin_symbol: str | None = Field(default=None, max_length=20)
    coin_name: str | None = Field(default=None, max_length=100)
    condition: AlertCondition | None = None
    target_price: float | None = Field(default=None, gt=0)
    target_percentage: float | None = None
    timeframe: AlertTimeframe | None = None
    target_trend: TrendDirection | None = None

    @model_validator(mode="after")
    def check_type_fields(self) -> "AlertCreate":
        missing: list[str] = []
        coin_fields = ("coin_id", "coin_symbol", "coin_name")

        match self.type:
            case AlertType.price_threshold:
                required = (*coin_fields, "condition", "target_price")
            case AlertType.percentage_change:
                required = (*coin_fields, "condition", "target_percentage", "timeframe")
            case AlertType.trend_signal:
                required = (*coin_fields, "target_trend")
            case AlertType.portfolio_change:
                required = ("condition", "target_percentage", "timeframe")

        for field in required:
            value = getattr(self, field)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(field)
        if missing:
            raise ValueError(f"{self.type} alerts require: {', '.join(missing)}")

        if self.condition is not None and self.condition not in ALLOWED_CONDITIONS[self.type]:
            raise ValueError(f"condition '{self.condition}' is not valid for {self.type} alerts")
        return self


class AlertUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    priority: AlertPriority | None = None
    is_enabled: bool | None = None
    expires_at: str | None = None
    condition: AlertCondition | None = None
    target_price: float | None = Field(default=None, gt=0)
    target_percentage: float | None = None
    timeframe: AlertTimeframe | None = None
    target_trend: TrendDirection | None = None


class AlertFilters(BaseModel):
    type: list[AlertType] | None = None
    status: list[AlertStatus] | None = None
    priority: list[AlertPriority] | None = None
    coin_id: list[str] | None = None
    is_enabled: bool | None = None


class AlertResponse(BaseModel):
    id: str
    user_id: str
    name: str
    description: str | None = None
    type: AlertType
    status: AlertStatus
    priority: AlertPriority
    is_enabled: bool
    trigger_count: int = 0
    last_triggered: str | None = None
    expires_at: str | None = None
    coin_id: str | None = None
    coin_symbol: str | None = None
    coin_name: str | None = None
    condition: AlertCondition | None = None
    target_price: float | None = None
    current_price: float | None = None
    target_percentage: float | None = None
    timeframe: AlertTimeframe | None = None
    current_change: float | None = None
    target_trend: TrendDirection | None = None
    current_trend: TrendDirection | None = None
    portfolio_value: float | None = None
    created_at: str
    updated_at: str


class AlertTriggerResponse(BaseModel):
    id: str
    alert_id: str
    triggered_at: str
    trigger_value: float
    message: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class AlertNotificationResponse(BaseModel):
    id: str
    alert_id: str
    trigger_id: str | None = None
    type: str
    title: str
    message: str
    priority: AlertPriority
    sent_at: str
    is_read: bool


class AlertStats(BaseModel):
    total_alerts: int
    active_alerts: int
    triggered_today: int
    triggered_this_week: int
    most_triggered_coin: str


class AlertTemplate(BaseModel):
    id: str
    name: str
    description: str
    type: AlertType
    category: str
    template: dict[str, Any]
    popularity: int


class AlertCheckResult(BaseModel):
    checked: int
    triggered: int
    expired: int
    skipped: int
