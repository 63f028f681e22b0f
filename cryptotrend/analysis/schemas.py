from enum import StrEnum

from pydantic import BaseModel, Field

# Market APIs return numbers as JSON numbers or as strings; both are accepted
# and coerced by the scoring function.
NumberLike = float | int | str | None


class Sentiment(StrEnum):
    bullish = "bullish"
    bearish = "bearish"
    neutral = "neutral"


class Recommendation(StrEnum):
    buy = "buy"
    hold = "hold"
    sell = "sell"


class SignalStrength(StrEnum):
    strong = "strong"
    moderate = "moderate"
    weak = "weak"
    none = "none"


class RiskLevel(StrEnum):
    low = "low"
    medium = "medium"
    high = "high"


class Timeframe(StrEnum):
    short_term = "short-term"
    medium_term = "medium-term"
    long_term = "long-term"


class MarketData(BaseModel):
    price: NumberLike = None
    percent_change_24h: NumberLike = None
    percent_change_7d: NumberLike = None
    volume_24h: NumberLike = None
    market_cap: NumberLike = None
    rank: NumberLike = None


class ScoreComponents(BaseModel):
    momentum: int = 0
    price_action: int = 0
    position: int = 0
    liquidity: int = 0
    volatility_penalty: int = 0


class ConfidenceFactors(BaseModel):
    data_quality: float
    market_stability: float
    liquidity: float
    ranking: float
    volatility: float


class AnalysisMetrics(BaseModel):
    momentum: float
    volatility: float
    liquidity_ratio: float | None = None


class AnalysisResult(BaseModel):
    sentiment: Sentiment
    sentiment_strength: int = Field(ge=0, le=100)
    sentiment_signal: SignalStrength
    recommendation: Recommendation
    recommendation_strength: SignalStrength
    confidence: int = Field(ge=0, le=100)
    confidence_label: str
    risk_level: RiskLevel
    timeframe: Timeframe
    reasoning: list[str]
    score: int
    risk_adjusted_score: int
    components: ScoreComponents
    confidence_factors: ConfidenceFactors
    metrics: AnalysisMetrics
    flags: list[str] = Field(default_factory=list)
    degraded_fields: list[str] = Field(default_factory=list)


class CoinAnalysis(BaseModel):
    coin_id: str
    name: str
    symbol: str
    price_usd: float | None = None
    market_data: MarketData
    analysis: AnalysisResult
    analyzed_at: str


class CoinInsight(BaseModel):
    coin_id: str
    name: str
    symbol: str
    summary: str
    key_points: list[str]
    ai_available: bool
    analysis: AnalysisResult
    analyzed_at: str
