import math
from dataclasses import dataclass

from cryptotrend.analysis.schemas import MarketData, NumberLike

FIELD_NAMES = (
    "price",
    "percent_change_24h",
    "percent_change_7d",
    "volume_24h",
    "market_cap",
    "rank",
)

MISSING = "missing"
INVALID = "invalid"


def parse_number(value: NumberLike) -> float | None:
    """Parse a number or number-like string into a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    else:
        text = value.strip().replace(",", "").replace("$", "").rstrip("%")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class NormalizedMarketData:
    price: float | None
    change_24h: float
    change_7d: float
    volume: float | None
    market_cap: float | None
    rank: int | None
    issues: tuple[tuple[str, str], ...] = ()

    @property
    def degraded_fields(self) -> list[str]:
        return [name for name, _ in self.issues]

    @property
    def valid_field_count(self) -> int:
        return len(FIELD_NAMES) - len(self.issues)

    def effective_rank(self, sentinel: int) -> int:
        return self.rank if self.rank is not None else sentinel


def _issue(raw: NumberLike) -> str:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return MISSING
    return INVALID


def normalize_market_data(data: MarketData) -> NormalizedMarketData:
    issues: list[tuple[str, str]] = []

    price = parse_number(data.price)
    if price is None or price <= 0:
        issues.append(("price", _issue(data.price)))
        price = None

    change_24h = parse_number(data.percent_change_24h)
    if change_24h is None:
        issues.append(("percent_change_24h", _issue(data.percent_change_24h)))
        change_24h = 0.0

    change_7d = parse_number(data.percent_change_7d)
    if change_7d is None:
        issues.append(("percent_change_7d", _issue(data.percent_change_7d)))
        change_7d = 0.0

    volume = parse_number(data.volume_24h)
    if volume is None or volume < 0:
        issues.append(("volume_24h", _issue(data.volume_24h)))
        volume = None

    market_cap = parse_number(data.market_cap)
    if market_cap is None or market_cap < 0:
        issues.append(("market_cap", _issue(data.market_cap)))
        market_cap = None

    rank_value = parse_number(data.rank)
    rank: int | None = None
    if rank_value is None or rank_value < 1:
        issues.append(("rank", _issue(data.rank)))
    else:
        rank = int(rank_value)

    return NormalizedMarketData(
        price=price,
        change_24h=change_24h,
        change_7d=change_7d,
        volume=volume,
        market_cap=market_cap,
        rank=rank,
        issues=tuple(issues),
    )
