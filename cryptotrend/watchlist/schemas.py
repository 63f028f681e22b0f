from pydantic import BaseModel, Field


class WatchlistAdd(BaseModel):
    coin: str = Field(min_length=1, max_length=100, description="Coinlore id, name id or symbol")


class WatchlistItem(BaseModel):
    id: str
    user_id: str
    coin_id: str
    coin_name: str
    coin_symbol: str
    coin_nameid: str | None = None
    price_usd: float | None = None
    percent_change_24h: float | None = None
    percent_change_7d: float | None = None
    market_cap_usd: float | None = None
    volume24: float | None = None
    rank: int | None = None
    created_at: str
    updated_at: str


class WatchStatus(BaseModel):
    coin_id: str
    is_watched: bool


class RefreshResult(BaseModel):
    refreshed: int
    failed: list[str] = Field(default_factory=list)
