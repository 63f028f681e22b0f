"""Confidence score for a market analysis.

Confidence reflects how much the inputs can be trusted, not how bullish the
outlook is: complete data on a large, liquid, calm asset scores high even when
the recommendation is to hold.
"""

from cryptotrend.analysis.config import DEFAULT_SCORING_CONFIG, ScoringConfig
from cryptotrend.analysis.inputs import FIELD_NAMES, NormalizedMarketData
from cryptotrend.analysis.schemas import ConfidenceFactors


def _market_stability(volatility: float) -> float:
    if volatility <= 5:
        return 90.0
    if volatility <= 15:
        return 70.0
    if volatility <= 30:
        return 50.0
    return 25.0


def _liquidity_reliability(data: NormalizedMarketData) -> float:
    if not data.market_cap or not data.volume:
        return 20.0
    ratio = data.volume / data.market_cap * 100
    if ratio >= 10:
        return 95.0
    if ratio >= 5:
        return 80.0
    if ratio >= 1:
        return 60.0
    return 30.0


def _ranking_credibility(rank: int | None) -> float:
    if rank is None:
        return 25.0
    if rank <= 10:
        return 95.0
    if rank <= 50:
        return 85.0
    if rank <= 100:
        return 70.0
    if rank <= 500:
        return 50.0
    return 25.0


def confidence_factors(data: NormalizedMarketData, volatility: float) -> ConfidenceFactors:
    return ConfidenceFactors(
        data_quality=round(data.valid_field_count / len(FIELD_NAMES) * 100, 2),
        market_stability=_market_stability(volatility),
        liquidity=_liquidity_reliability(data),
        ranking=_ranking_credibility(data.rank),
        volatility=max(0.0, 100.0 - volatility * 2),
    )


def calculate_confidence(
    data: NormalizedMarketData,
    volatility: float,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> tuple[int, ConfidenceFactors]:
    factors = confidence_factors(data, volatility)
    weighted = (
        factors.data_quality * config.weight_data_quality
        + factors.market_stability * config.weight_market_stability
        + factors.liquidity * config.weight_liquidity
        + factors.ranking * config.weight_ranking
        + factors.volatility * config.weight_volatility
    )
    confidence = max(config.confidence_floor, min(config.confidence_ceiling, round(weighted)))
    return max(0, min(100, confidence)), factors


def describe_confidence(confidence: int) -> str:
    if confidence >= 85:
        return "Very High"
    if confidence >= 70:
        return "High"
    if confidence >= 55:
        return "Moderate"
    if confidence >= 40:
        return "Low"
    return "Very Low"
