from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "CT_", "env_file": ".env", "env_file_encoding": "utf-8"}

    jwt_secret: str = Field(default="change-me-change-me-change-me-change-me", min_length=32)
    jwt_expire_minutes: int = Field(default=1440)
    llm_provider: str = Field(default="gemini", pattern=r"^(gemini|openai|anthropic)$")
    llm_model: str = Field(default="gemini-1.5-flash")
    llm_temperature: float = Field(default=0.7, ge=0, le=2)
    gemini_api_key: str = Field(default="")
    openai_api_key: str = Field(default="")
    anthropic_api_key: str = Field(default="")
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)
    db_path: str = Field(default="cryptotrend.db")
    cors_origins: str = Field(default="http://localhost:3000")

    # Market data
    coinlore_base_url: str = Field(default="https://api.coinlore.net/api")
    coingecko_base_url: str = Field(default="https://api.coingecko.com/api/v3")
    http_timeout_seconds: float = Field(default=12.0, gt=0)
    price_cache_seconds: int = Field(default=60, ge=0)

    # News
    newsdata_api_key: str = Field(default="")
    newsdata_base_url: str = Field(default="https://newsdata.io/api/1")
    news_cache_minutes: int = Field(default=30, ge=0)

    # Alerts
    alert_monitor_enabled: bool = Field(default=True)
    alert_check_interval_seconds: int = Field(default=60, ge=5)


settings = Settings()
