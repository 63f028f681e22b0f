from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cryptotrend.alerts.monitor import AlertMonitor
from cryptotrend.alerts.router import router as alerts_router
from cryptotrend.analysis.router import router as analysis_router
from cryptotrend.assistant.router import router as assistant_router
from cryptotrend.auth_router import router as auth_router
from cryptotrend.config import settings
from cryptotrend.database import close_database, init_database
from cryptotrend.dependencies import get_alert_service
from cryptotrend.exception_handlers import register_exception_handlers
from cryptotrend.http_client import close_http_client
from cryptotrend.logging_config import setup_logging
from cryptotrend.market.router import router as market_router
from cryptotrend.news.router import router as news_router
from cryptotrend.portfolios.router import router as portfolios_router
from cryptotrend.simulator.router import router as simulator_router
from cryptotrend.watchlist.router import router as watchlist_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await init_database()

    monitor = AlertMonitor(get_alert_service, settings.alert_check_interval_seconds)
    if settings.alert_monitor_enabled:
        monitor.start()
    app.state.alert_monitor = monitor

    yield

    await monitor.stop()
    await close_http_client()
    await close_database()


app = FastAPI(
    title="CryptoTrend",
    description="Crypto market dashboard backend with trend analysis and an AI assistant",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])
app.include_router(market_router, prefix="/api/v1/market", tags=["market"])
app.include_router(analysis_router, prefix="/api/v1/analysis", tags=["analysis"])
app.include_router(portfolios_router, prefix="/api/v1/portfolios", tags=["portfolios"])
app.include_router(watchlist_router, prefix="/api/v1/watchlist", tags=["watchlist"])
app.include_router(alerts_router, prefix="/api/v1/alerts", tags=["alerts"])
app.include_router(news_router, prefix="/api/v1/news", tags=["news"])
app.include_router(assistant_router, prefix="/api/v1/assistant", tags=["assistant"])
app.include_router(simulator_router, prefix="/api/v1/simulator", tags=["simulator"])


@app.get("/api/v1/health")
async def health():
    from cryptotrend.database import check_health

    await check_health()
    return {"status": "healthy"}
