from pydantic import BaseModel, Field

from cryptotrend.analysis.inputs import parse_number
from cryptotrend.analysis.schemas import MarketData


class CoinTicker(BaseModel):
    id: str
    symbol: str
    name: str
    nameid: str | None = None
    rank: int | None = None
    price_usd: float | None = None
    percent_change_1h: float | None = None
    percent_change_24h: float | None = None
    percent_change_7d: float | None = None
    market_cap_usd: float | None = None
    volume24: float | None = None
    csupply: float | None = None
    tsupply: float | None = None

    @classmethod
    def from_coinlore(cls, raw: dict) -> "CoinTicker":
        rank = parse_number(raw.get("rank"))
        return cls(
            id=str(raw.get("id", "")),
            symbol=str(raw.get("symbol", "")).upper(),
            name=str(raw.get("name", "")),
            nameid=raw.get("nameid"),
            rank=int(rank) if rank is not None else None,
            price_usd=parse_number(raw.get("price_usd")),
            percent_change_1h=parse_number(raw.get("percent_change_1h")),
            percent_change_24h=parse_number(raw.get("percent_change_24h")),
            percent_change_7d=parse_number(raw.get("percent_change_7d")),
            market_cap_usd=parse_number(raw.get("market_cap_usd")),
            volume24=parse_number(raw.get("volume24")),
            csupply=parse_number(raw.get("csupply")),
            tsupply=parse_number(raw.get("tsupply")),
        )

    def to_market_data(self) -> MarketData:
        return MarketData(
            price=self.price_usd,
            percent_change_24h=self.percent_change_24h,
            percent_change_7d=self.percent_change_7d,
            volume_24h=self.volume24,
            market_cap=self.market_cap_usd,
            rank=self.rank,
        )


class TickerPage(BaseModel):
    coins: list[CoinTicker]
    start: int
    limit: int
    total_coins: int | None = None


class GlobalStats(BaseModel):
    coins_count: int | None = None
    active_markets: int | None = None
    total_mcap: float | None = None
    total_volume: float | None = None
    btc_d: float | None = None
    eth_d: float | None = None
    mcap_change: float | None = None
    volume_change: float | None = None
    avg_change_percent: float | None = None

    @classmethod
    def from_coinlore(cls, raw: dict) -> "GlobalStats":
        def _int(key: str) -> int | None:
            value = parse_number(raw.get(key))
            return int(value) if value is not None else None

        return cls(
            coins_count=_int("coins_count"),
            active_markets=_int("active_markets"),
            total_mcap=parse_number(raw.get("total_mcap")),
            total_volume=parse_number(raw.get("total_volume")),
            btc_d=parse_number(raw.get("btc_d")),
            eth_d=parse_number(raw.get("eth_d")),
            mcap_change=parse_number(raw.get("mcap_change")),
            volume_change=parse_number(raw.get("volume_change")),
            avg_change_percent=parse_number(raw.get("avg_change_percent")),
        )


class PricePoint(BaseModel):
    timestamp: int
    price: float


class CoinHistory(BaseModel):
    coin_id: str
    hours: int
    synthetic: bool
    points: list[PricePoint]


class CoinPrice(BaseModel):
    coin_id: str
    price_usd: float
    change_24h: float | None = None
    source: str = "coingecko"


class CoinSearchResult(BaseModel):
    id: str
    symbol: str
    name: str
    market_cap_rank: int | None = None
    thumb: str | None = None
    current_price: float | None = None


class MarketCoin(BaseModel):
    """A coin from the CoinGecko markets list, used by the alert monitor."""

    id: str
    symbol: str
    name: str
    current_price: float | None = None
    market_cap: float | None = None
    market_cap_rank: int | None = None
    total_volume: float | None = None
    price_change_percentage_1h: float | None = Field(default=None)
    price_change_percentage_24h: float | None = None
    price_change_percentage_7d: float | None = None
    price_change_percentage_30d: float | None = None

    @classmethod
    def from_coingecko(cls, raw: dict) -> "MarketCoin":
        rank = parse_number(raw.get("market_cap_rank"))
        return cls(
            id=str(raw.get("id", "")),
            symbol=str(raw.get("symbol", "")).upper(),
            name=str(raw.get("name", "")),
            current_price=parse_number(raw.get("current_price")),
            market_cap=parse_number(raw.get("market_cap")),
            market_cap_rank=int(rank) if rank is not None else None,
            total_volume=parse_number(raw.get("total_volume")),
            price_change_percentage_1h=parse_number(
                raw.get("price_change_percentage_1h_in_currency")
            ),
            price_change_percentage_24h=parse_number(raw.get("price_change_percentage_24h")),
            price_change_percentage_7d=parse_number(
                raw.get("price_change_percentage_7d_in_currency")
            ),
            price_change_percentage_30d=parse_number(
                raw.get("price_change_percentage_30d_in_currency")
            ),
        )

    def change_for(self, timeframe: str) -> float:
        changes = {
            "1h": self.price_change_percentage_1h,
            "24h": self.price_change_percentage_24h,
            "7d": self.price_change_percentage_7d,
            "30d": self.price_change_percentage_30d,
        }
        return changes.get(timeframe) or 0.0

    def to_market_data(self) -> MarketData:
        return MarketData(
            price=self.current_price,
            percent_change_24h=self.price_change_percentage_24h,
            percent_change_7d=self.price_change_percentage_7d,
            volume_24h=self.total_volume,
            market_cap=self.market_cap,
            rank=self.market_cap_rank,
        )
