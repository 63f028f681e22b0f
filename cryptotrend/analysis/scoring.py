"""Deterministic market scoring.

``analyze_market`` maps a single market snapshot to a sentiment, a
recommendation, a risk level and a confidence score. It is pure and total:
missing or garbled fields lower confidence and add a reasoning note, they
never raise.

The score is the sum of four components (momentum, price action, market
position, liquidity). A volatility penalty is then applied to positive
scores only, to get the risk-adjusted score the recommendation is read from.
"""

from dataclasses import dataclass

from cryptotrend.analysis.confidence import calculate_confidence, describe_confidence
from cryptotrend.analysis.config import DEFAULT_SCORING_CONFIG, ScoringConfig
from cryptotrend.analysis.inputs import MISSING, NormalizedMarketData, normalize_market_data
from cryptotrend.analysis.schemas import (
    AnalysisMetrics,
    AnalysisResult,
    MarketData,
    Recommendation,
    RiskLevel,
    ScoreComponents,
    Sentiment,
    SignalStrength,
    Timeframe,
)

FLAG_VERY_VOLATILE = "very_volatile"
FLAG_UNUSUAL_ACTIVITY = "unusual_activity"
FLAG_RISK_OVERRIDE = "risk_override"
FLAG_DEGRADED_INPUT = "degraded_input"

INSUFFICIENT_SIGNAL = "Insufficient signal: no momentum, volatility, position or liquidity factor stood out"


@dataclass(frozen=True)
class _Component:
    points: int
    reason: str | None = None


def format_usd(value: float) -> str:
    for divisor, suffix in ((1e12, "T"), (1e9, "B"), (1e6, "M")):
        if abs(value) >= divisor:
            return f"${value / divisor:.2f}{suffix}"
    return f"${value:,.2f}"


def compute_momentum(change_24h: float, change_7d: float, config: ScoringConfig) -> float:
    return config.momentum_weight_24h * change_24h + config.momentum_weight_7d * change_7d


def compute_volatility(change_24h: float, change_7d: float) -> float:
    return abs(change_24h) + abs(change_7d) / 2


def _momentum_component(
    momentum: float, c24: float, c7: float, config: ScoringConfig
) -> _Component:
    labels = ("Strong", "Moderate", "Mild")
    for sign, direction in ((1, "upward"), (-1, "downward")):
        for index, (threshold, c24_min, c7_min, points) in enumerate(config.momentum_tiers):
            if sign * momentum <= threshold:
                continue
            if c24_min is not None and sign * c24 <= c24_min:
                continue
            if c7_min is not None and sign * c7 <= c7_min:
                continue
            label = labels[min(index, len(labels) - 1)]
            return _Component(
                sign * points,
                f"{label} {direction} momentum: weighted change {momentum:+.2f}% "
                f"(24h {c24:+.2f}%, 7d {c7:+.2f}%)",
            )
    return _Component(0)


def _tier_points(change: float, tiers: tuple[tuple[float, int], ...]) -> int:
    for threshold, points in tiers:
        if change > threshold:
            return points
        if change < -threshold:
            return -points
    return 0


def _price_action_component(c24: float, c7: float, config: ScoringConfig) -> _Component:
    raw = _tier_points(c24, config.price_action_24h_tiers) + _tier_points(
        c7, config.price_action_7d_tiers
    )
    for threshold, points in config.price_action_component_tiers:
        if raw >= threshold:
            return _Component(points, f"Recent price action ({raw:+d} pts) leans bullish")
        if raw <= -threshold:
            return _Component(-points, f"Recent price action ({raw:+d} pts) leans bearish")
    return _Component(0)


def _volatility_penalty(volatility: float, score: int, config: ScoringConfig) -> _Component:
    """Penalty tier for ``volatility``; it only reduces a positive ``score``."""
    for threshold, penalty in config.volatility_penalty_tiers:
        if volatility > threshold:
            if volatility > config.very_volatile_threshold:
                reason = f"Very high volatility ({volatility:.1f}) makes price moves unreliable"
            else:
                reason = f"Elevated volatility ({volatility:.1f})"
            if score > 0:
                reason += f"; positive signals reduced by {penalty}"
            else:
                reason += "; no positive signal to reduce"
            return _Component(penalty, reason)
    return _Component(0)


def _position_components(data: NormalizedMarketData, config: ScoringConfig) -> list[_Component]:
    rank = data.effective_rank(config.missing_rank_sentinel)
    market_cap = data.market_cap
    components: list[_Component] = []

    if rank <= config.top_rank and market_cap is not None and market_cap > config.top_market_cap:
        components.append(
            _Component(
                config.top_points,
                f"Top-{config.top_rank} asset (rank #{rank}) with {format_usd(market_cap)} market cap",
            )
        )
    elif (
        rank <= config.major_rank
        and market_cap is not None
        and market_cap > config.major_market_cap
    ):
        components.append(
            _Component(
                config.major_points,
                f"Established asset (rank #{rank}) with {format_usd(market_cap)} market cap",
            )
        )
    else:
        for limit, points in config.rank_penalty_tiers:
            if rank > limit:
                if data.rank is None:
                    reason = "Market rank unavailable; treated as an unranked asset"
                else:
                    reason = f"Low market rank (#{rank}) weighs on the outlook"
                components.append(_Component(points, reason))
                break

    if market_cap is None:
        components.append(
            _Component(config.market_cap_floor_penalty, "Market cap unavailable; small-cap risk assumed")
        )
    elif market_cap < config.market_cap_floor:
        components.append(
            _Component(
                config.market_cap_floor_penalty,
                f"Market cap {format_usd(market_cap)} is below the "
                f"{format_usd(config.market_cap_floor)} floor",
            )
        )
    return components


def liquidity_ratio(data: NormalizedMarketData) -> float | None:
    if data.market_cap is None or data.market_cap <= 0 or data.volume is None:
        return None
    return data.volume / data.market_cap * 100


def _liquidity_component(ratio: float | None, config: ScoringConfig) -> _Component:
    if ratio is None:
        return _Component(0)
    if ratio > config.unusual_activity_ratio:
        return _Component(
            config.unusual_activity_points,
            f"Unusual trading activity: 24h volume is {ratio:.1f}% of market cap",
        )
    for threshold, points in config.liquid_tiers:
        if ratio > threshold:
            return _Component(points, f"Healthy liquidity: 24h volume is {ratio:.1f}% of market cap")
    for threshold, points in config.illiquid_tiers:
        if ratio < threshold:
            return _Component(points, f"Thin liquidity: 24h volume is {ratio:.2f}% of market cap")
    return _Component(0)


def _sentiment(score: int, config: ScoringConfig) -> tuple[Sentiment, SignalStrength, int]:
    magnitude = abs(score)
    if magnitude >= config.strong_sentiment:
        label = Sentiment.bullish if score > 0 else Sentiment.bearish
        return label, SignalStrength.strong, min(95, 65 + magnitude)
    if magnitude >= config.weak_sentiment:
        label = Sentiment.bullish if score > 0 else Sentiment.bearish
        return label, SignalStrength.weak, min(80, 55 + magnitude)
    return Sentiment.neutral, SignalStrength.none, max(40, 60 - 2 * magnitude)


def _recommendation(adjusted: int, config: ScoringConfig) -> tuple[Recommendation, SignalStrength]:
    if adjusted >= config.strong_recommendation:
        return Recommendation.buy, SignalStrength.strong
    if adjusted >= config.moderate_recommendation:
        return Recommendation.buy, SignalStrength.moderate
    if adjusted <= -config.strong_recommendation:
        return Recommendation.sell, SignalStrength.strong
    if adjusted <= -config.moderate_recommendation:
        return Recommendation.sell, SignalStrength.moderate
    return Recommendation.hold, SignalStrength.none


def _risk_level(data: NormalizedMarketData, volatility: float, config: ScoringConfig) -> RiskLevel:
    points = 0
    for threshold, tier_points in config.risk_volatility_tiers:
        if volatility > threshold:
            points += tier_points
            break

    if data.market_cap is None or data.market_cap < config.risk_small_cap:
        points += 2
    elif data.market_cap < config.risk_mid_cap:
        points += 1

    rank = data.effective_rank(config.missing_rank_sentinel)
    for limit, tier_points in config.risk_rank_tiers:
        if rank > limit:
            points += tier_points
            break

    if points >= config.high_risk_points:
        return RiskLevel.high
    if points >= config.medium_risk_points:
        return RiskLevel.medium
    return RiskLevel.low


def _degraded_note(field: str, issue: str) -> str:
    if issue == MISSING:
        return f"Degraded input: {field} was missing; confidence reduced"
    return f"Degraded input: {field} could not be parsed; confidence reduced"


def analyze_market(
    data: MarketData, config: ScoringConfig = DEFAULT_SCORING_CONFIG
) -> AnalysisResult:
    normalized = normalize_market_data(data)
    c24, c7 = normalized.change_24h, normalized.change_7d

    momentum = compute_momentum(c24, c7, config)
    volatility = compute_volatility(c24, c7)
    ratio = liquidity_ratio(normalized)
    very_volatile = volatility > config.very_volatile_threshold

    momentum_part = _momentum_component(momentum, c24, c7, config)
    price_action_part = _price_action_component(c24, c7, config)
    position_parts = _position_components(normalized, config)
    liquidity_part = _liquidity_component(ratio, config)

    position_points = sum(part.points for part in position_parts)
    score = momentum_part.points + price_action_part.points + position_points + liquidity_part.points
    penalty_part = _volatility_penalty(volatility, score, config)
    adjusted = max(0, score - penalty_part.points) if score > 0 else score

    sentiment, sentiment_signal, sentiment_strength = _sentiment(score, config)
    recommendation, recommendation_strength = _recommendation(adjusted, config)

    flags: list[str] = []
    if very_volatile:
        flags.append(FLAG_VERY_VOLATILE)
    if ratio is not None and ratio > config.unusual_activity_ratio:
        flags.append(FLAG_UNUSUAL_ACTIVITY)

    override_reasons: list[str] = []
    if recommendation is Recommendation.buy:
        if very_volatile:
            override_reasons.append("volatility is very high")
        if normalized.rank is None:
            override_reasons.append("market rank is unavailable")
        elif normalized.rank > config.max_buy_rank:
            override_reasons.append(f"rank #{normalized.rank} is outside the top {config.max_buy_rank}")
    if override_reasons:
        recommendation, recommendation_strength = Recommendation.hold, SignalStrength.none
        flags.append(FLAG_RISK_OVERRIDE)

    risk_level = _risk_level(normalized, volatility, config)

    if recommendation_strength is SignalStrength.strong and abs(momentum) > config.short_term_momentum:
        timeframe = Timeframe.short_term
    elif (
        recommendation is Recommendation.hold
        and risk_level is RiskLevel.low
        and normalized.effective_rank(config.missing_rank_sentinel) <= config.top_rank
    ):
        timeframe = Timeframe.long_term
    else:
        timeframe = Timeframe.medium_term

    reasoning = [
        part.reason
        for part in (momentum_part, price_action_part, penalty_part, *position_parts, liquidity_part)
        if part.reason
    ]
    if override_reasons:
        reasoning.append(f"Buy signal downgraded to hold: {' and '.join(override_reasons)}")
    if not reasoning:
        reasoning.append(INSUFFICIENT_SIGNAL)
    if normalized.issues:
        flags.append(FLAG_DEGRADED_INPUT)
        reasoning.extend(_degraded_note(field, issue) for field, issue in normalized.issues)

    confidence, factors = calculate_confidence(normalized, volatility, config)

    return AnalysisResult(
        sentiment=sentiment,
        sentiment_strength=sentiment_strength,
        sentiment_signal=sentiment_signal,
        recommendation=recommendation,
        recommendation_strength=recommendation_strength,
        confidence=confidence,
        confidence_label=describe_confidence(confidence),
        risk_level=risk_level,
        timeframe=timeframe,
        reasoning=reasoning,
        score=score,
        risk_adjusted_score=adjusted,
        components=ScoreComponents(
            momentum=momentum_part.points,
            price_action=price_action_part.points,
            position=position_points,
            liquidity=liquidity_part.points,
            volatility_penalty=penalty_part.points,
        ),
        confidence_factors=factors,
        metrics=AnalysisMetrics(
            momentum=round(momentum, 4),
            volatility=round(volatility, 4),
            liquidity_ratio=round(ratio, 4) if ratio is not None else None,
        ),
        flags=flags,
        degraded_fields=normalized.degraded_fields,
    )
