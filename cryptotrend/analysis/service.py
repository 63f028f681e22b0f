import asyncio
import json
from datetime import UTC, datetime

import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

from cryptotrend.analysis.config import DEFAULT_SCORING_CONFIG, ScoringConfig
from cryptotrend.analysis.schemas import AnalysisResult, CoinAnalysis, CoinInsight, MarketData
from cryptotrend.analysis.scoring import analyze_market, format_usd
from cryptotrend.exceptions import ValidationError
from cryptotrend.llm.parsing import message_text, parse_llm_json
from cryptotrend.market.schemas import CoinTicker
from cryptotrend.market.service import MarketService

logger = structlog.get_logger()

_MAX_BATCH = 20
_AI_FAILURE_CONFIDENCE_PENALTY = 30
_AI_FAILURE_CONFIDENCE_FLOOR = 15

_INSIGHT_PROMPT = (
    "Analyze this cryptocurrency and provide a market summary and key insights.\n\n"
    "Coin: {name} ({symbol})\n"
    "Current Price: {price}\n"
    "24h Change: {change_24h}%\n"
    "7d Change: {change_7d}%\n"
    "Market Cap: {market_cap}\n"
    "Volume (24h): {volume}\n"
    "Rank: #{rank}\n\n"
    "Quantitative analysis: {sentiment} sentiment, {recommendation} recommendation, "
    "{risk_level} risk, {timeframe} outlook.\n"
    "Signals: {reasoning}\n\n"
    "Return JSON with keys: summary (2-3 sentences on market position and trend), "
    "key_points (list of 3-4 specific insights). Be factual; do not contradict the "
    "quantitative analysis."
)


def _fmt(value: float | None, money: bool = False) -> str:
    if value is None:
        return "n/a"
    return format_usd(value) if money else f"{value:.2f}"


class AnalysisService:
    def __init__(
        self,
        market: MarketService,
        llm: BaseChatModel | None = None,
        config: ScoringConfig = DEFAULT_SCORING_CONFIG,
    ) -> None:
        self._market = market
        self._llm = llm
        self._config = config

    def analyze(self, data: MarketData) -> AnalysisResult:
        return analyze_market(data, self._config)

    def _analyze_ticker(self, ticker: CoinTicker) -> CoinAnalysis:
        market_data = ticker.to_market_data()
        return CoinAnalysis(
            coin_id=ticker.id,
            name=ticker.name,
            symbol=ticker.symbol,
            price_usd=ticker.price_usd,
            market_data=market_data,
            analysis=self.analyze(market_data),
            analyzed_at=datetime.now(UTC).isoformat(),
        )

    async def analyze_coin(self, coin: str) -> CoinAnalysis:
        ticker = await self._market.resolve_coin(coin)
        result = self._analyze_ticker(ticker)
        logger.info(
            "coin_analyzed",
            coin_id=ticker.id,
            recommendation=result.analysis.recommendation,
            confidence=result.analysis.confidence,
        )
        return result

    async def analyze_many(self, coins: list[str]) -> list[CoinAnalysis]:
        if len(coins) > _MAX_BATCH:
            raise ValidationError(f"Maximum {_MAX_BATCH} coins allowed per request")

        results = await asyncio.gather(
            *(self.analyze_coin(coin) for coin in coins), return_exceptions=True
        )
        analyses: list[CoinAnalysis] = []
        for coin, result in zip(coins, results, strict=True):
            if isinstance(result, Exception):
                logger.warning("coin_analysis_failed", coin=coin, error=str(result))
                continue
            analyses.append(result)
        return analyses

    async def analyze_top(self, limit: int = 10) -> list[CoinAnalysis]:
        page = await self._market.get_tickers(start=0, limit=limit)
        return [self._analyze_ticker(ticker) for ticker in page.coins]

    async def get_insight(self, coin: str) -> CoinInsight:
        ticker = await self._market.resolve_coin(coin)
        analysis = self.analyze(ticker.to_market_data())

        summary: str | None = None
        key_points: list[str] = []
        if self._llm is not None:
            try:
                summary, key_points = await self._generate_insight(ticker, analysis)
            except Exception as exc:
                logger.warning("coin_insight_llm_error", coin_id=ticker.id, error=str(exc))

        if summary is None:
            degraded = max(
                _AI_FAILURE_CONFIDENCE_FLOOR, analysis.confidence - _AI_FAILURE_CONFIDENCE_PENALTY
            )
            analysis = analysis.model_copy(update={"confidence": degraded})
            return CoinInsight(
                coin_id=ticker.id,
                name=ticker.name,
                symbol=ticker.symbol,
                summary=(
                    f"AI summary unavailable. {ticker.name} shows {analysis.sentiment} sentiment "
                    f"with a {analysis.recommendation} recommendation based on current market data."
                ),
                key_points=[
                    f"Market sentiment: {analysis.sentiment}",
                    f"Recommendation: {analysis.recommendation} ({analysis.timeframe})",
                    f"Risk level: {analysis.risk_level}",
                    *analysis.reasoning[:2],
                ],
                ai_available=False,
                analysis=analysis,
                analyzed_at=datetime.now(UTC).isoformat(),
            )

        return CoinInsight(
            coin_id=ticker.id,
            name=ticker.name,
            symbol=ticker.symbol,
            summary=summary,
            key_points=key_points,
            ai_available=True,
            analysis=analysis,
            analyzed_at=datetime.now(UTC).isoformat(),
        )

    async def _generate_insight(
        self, ticker: CoinTicker, analysis: AnalysisResult
    ) -> tuple[str, list[str]]:
        prompt = _INSIGHT_PROMPT.format(
            name=ticker.name,
            symbol=ticker.symbol,
            price=_fmt(ticker.price_usd, money=True),
            change_24h=_fmt(ticker.percent_change_24h),
            change_7d=_fmt(ticker.percent_change_7d),
            market_cap=_fmt(ticker.market_cap_usd, money=True),
            volume=_fmt(ticker.volume24, money=True),
            rank=ticker.rank or "n/a",
            sentiment=analysis.sentiment,
            recommendation=analysis.recommendation,
            risk_level=analysis.risk_level,
            timeframe=analysis.timeframe,
            reasoning="; ".join(analysis.reasoning),
        )
        response = await self._llm.ainvoke([HumanMessage(content=prompt)])
        data = parse_llm_json(message_text(response))

        summary = data.get("summary")
        if not isinstance(summary, str) or not summary.strip():
            raise json.JSONDecodeError("Missing summary", json.dumps(data), 0)
        points = data.get("key_points") or data.get("keyPoints") or []
        key_points = [str(point) for point in points if str(point).strip()][:4]
        return summary.strip(), key_points or analysis.reasoning[:4]
