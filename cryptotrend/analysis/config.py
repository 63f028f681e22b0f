"""Breakpoints for the market scoring heuristic.

Tier tuples are ordered from the most to the least extreme threshold; the
first matching tier wins.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoringConfig:
    momentum_weight_24h: float = 0.7
    momentum_weight_7d: float = 0.3

    # Momentum component: (momentum above, 24h above, 7d above, points).
    # Negative tiers mirror these with flipped signs.
    momentum_tiers: tuple[tuple[float, float | None, float | None, int], ...] = (
        (15.0, 5.0, 10.0, 15),
        (8.0, 3.0, None, 8),
        (3.0, None, None, 3),
    )

    # Price-action points per timeframe: (abs change above, points).
    price_action_24h_tiers: tuple[tuple[float, int], ...] = ((5.0, 20), (2.0, 10))
    price_action_7d_tiers: tuple[tuple[float, int], ...] = ((10.0, 15), (3.0, 8))
    # Price-action total mapped to the sentiment component: (abs total at least, points).
    price_action_component_tiers: tuple[tuple[int, int], ...] = ((20, 12), (8, 6))

    # Volatility: (above, penalty).
    volatility_penalty_tiers: tuple[tuple[float, int], ...] = ((25.0, 12), (20.0, 8), (10.0, 4))
    very_volatile_threshold: float = 25.0

    # Market position.
    top_rank: int = 10
    top_market_cap: float = 50e9
    top_points: int = 8
    major_rank: int = 50
    major_market_cap: float = 5e9
    major_points: int = 4
    rank_penalty_tiers: tuple[tuple[int, int], ...] = ((500, -8), (200, -6), (100, -3))
    market_cap_floor: float = 100e6
    market_cap_floor_penalty: int = -5
    missing_rank_sentinel: int = 9999

    # Liquidity ratio in percent of market cap.
    unusual_activity_ratio: float = 25.0
    unusual_activity_points: int = -2
    liquid_tiers: tuple[tuple[float, int], ...] = ((10.0, 4), (3.0, 2))
    illiquid_tiers: tuple[tuple[float, int], ...] = ((0.5, -4), (1.0, -2))

    # Labels.
    strong_sentiment: int = 20
    weak_sentiment: int = 8
    strong_recommendation: int = 30
    moderate_recommendation: int = 15
    max_buy_rank: int = 500
    short_term_momentum: float = 15.0

    # Risk points.
    risk_volatility_tiers: tuple[tuple[float, int], ...] = ((20.0, 3), (10.0, 2), (5.0, 1))
    risk_small_cap: float = 100e6
    risk_mid_cap: float = 1e9
    risk_rank_tiers: tuple[tuple[int, int], ...] = ((200, 2), (100, 1))
    high_risk_points: int = 5
    medium_risk_points: int = 3

    # Confidence.
    confidence_floor: int = 15
    confidence_ceiling: int = 95
    weight_data_quality: float = 0.25
    weight_market_stability: float = 0.20
    weight_liquidity: float = 0.20
    weight_ranking: float = 0.20
    weight_volatility: float = 0.15


DEFAULT_SCORING_CONFIG = ScoringConfig()
