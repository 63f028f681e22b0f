from datetime import date

from pydantic import BaseModel, Field


class PortfolioCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    is_public: bool = False


class PortfolioUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    is_public: bool | None = None


class HoldingCreate(BaseModel):
    coin_id: str = Field(min_length=1, max_length=100)
    coin_symbol: str = Field(min_length=1, max_length=20)
    coin_name: str = Field(min_length=1, max_length=100)
    amount: float = Field(gt=0)
    purchase_price: float = Field(gt=0)
    purchase_date: date
    notes: str | None = Field(default=None, max_length=500)


class HoldingUpdate(BaseModel):
    amount: float | None = Field(default=None, gt=0)
    purchase_price: float | None = Field(default=None, gt=0)
    purchase_date: date | None = None
    notes: str | None = Field(default=None, max_length=500)


class HoldingResponse(BaseModel):
    id: str
    portfolio_id: str
    coin_id: str
    coin_symbol: str
    coin_name: str
    amount: float
    purchase_price: float
    purchase_date: str
    notes: str | None = None
    created_at: str
    updated_at: str


class PortfolioResponse(BaseModel):
    id: str
    user_id: str
    name: str
    description: str | None = None
    is_public: bool
    created_at: str
    updated_at: str
    holdings: list[HoldingResponse] = Field(default_factory=list)


class Performer(BaseModel):
    symbol: str
    profit_loss_percentage: float


class HoldingValuation(BaseModel):
    holding_id: str
    coin_id: str
    coin_symbol: str
    amount: float
    purchase_price: float
    current_price: float
    current_value: float
    invested: float
    profit_loss: float
    profit_loss_percentage: float
    allocation_percentage: float
    price_source: str


class PortfolioSummary(BaseModel):
    portfolio_id: str
    total_value: float
    total_invested: float
    total_profit_loss: float
    profit_loss_percentage: float
    best_performer: Performer | None = None
    worst_performer: Performer | None = None
    holdings: list[HoldingValuation] = Field(default_factory=list)


class PortfolioInsights(BaseModel):
    portfolio_id: str
    overall_health: str
    diversification_score: int = Field(ge=0, le=100)
    risk_assessment: str
    recommendations: list[str]
    rebalancing_suggestions: list[str]
    ai_available: bool
