from enum import StrEnum

from pydantic import BaseModel, Field


class SimulationType(StrEnum):
    single = "single"
    portfolio = "portfolio"


class NewsSentimentScenario(StrEnum):
    positive = "positive"
    neutral = "neutral"
    negative = "negative"


class SimulationRequest(BaseModel):
    simulation_type: SimulationType
    asset_id: str = Field(min_length=1, max_length=100)
    btc_dominance: float = Field(ge=0, le=100)
    market_cap_change: float = Field(ge=-100, le=1000)
    news_sentiment: NewsSentimentScenario = NewsSentimentScenario.neutral


class HoldingSimulation(BaseModel):
    coin_id: str
    coin_symbol: str
    amount: float
    initial_value: float
    simulated_value: float
    news_effect: float
    priced: bool = True


class SimulationResult(BaseModel):
    initial_value: float
    simulated_value: float
    change_percentage: float
    asset_name: str
    review: str
    ai_available: bool = True
    current_btc_dominance: float | None = None
    holdings: list[HoldingSimulation] = Field(default_factory=list)
