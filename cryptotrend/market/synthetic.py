import math
import random

_MIN_PRICE = 0.000001
_HOUR_MS = 60 * 60 * 1000


def build_synthetic_series(
    price_now: float,
    points: int,
    volatility: float,
    end_timestamp_ms: int,
    seed: str,
) -> list[tuple[int, float]]:
    """Build an hourly price series ending at ``price_now``.

    Used when no real history is available. The walk combines a slow trend, a
    shorter cycle and seeded noise scaled by ``volatility`` (a fraction, e.g.
    0.02), so the same inputs always produce the same series.
    """
    base = max(price_now, _MIN_PRICE)
    rng = random.Random(seed)
    walk: list[float] = []
    price = base
    for i in range(points - 1, -1, -1):
        trend = math.sin(i / 20) * 0.005 * base
        cycle = math.cos(i / 8) * 0.008 * base
        noise = (rng.random() - 0.5) * volatility * base
        price = max(_MIN_PRICE, price + trend + cycle + noise)
        walk.append(price)

    # Shift so the series closes at the current price.
    offset = base - walk[-1] if walk else 0.0
    series = []
    for index, value in enumerate(walk):
        timestamp = end_timestamp_ms - (points - 1 - index) * _HOUR_MS
        series.append((timestamp, round(max(_MIN_PRICE, value + offset), 6)))
    return series
