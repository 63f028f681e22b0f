"""What-if simulator: reprices a coin or a portfolio under a hypothetical market."""

import asyncio
import re

import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

from cryptotrend.exceptions import NotFoundError
from cryptotrend.llm.parsing import message_text
from cryptotrend.market.schemas import CoinTicker
from cryptotrend.market.service import MarketService
from cryptotrend.portfolios.schemas import HoldingResponse
from cryptotrend.portfolios.service import PortfolioService
from cryptotrend.simulator.schemas import (
    HoldingSimulation,
    NewsSentimentScenario,
    SimulationRequest,
    SimulationResult,
    SimulationType,
)

logger = structlog.get_logger()

# Coins without a rank get no large-cap amplification.
_DEFAULT_RANK = 100
_MAX_NEWS_EFFECT = 1.0

_NEWS_EFFECT_PROMPT = (
    "Given a high-impact {sentiment} news story for {coin}, what is a plausible "
    "percentage price change over the next 24 hours? Respond with a single number."
)

_REVIEW_PROMPT = """As an AI financial analyst, provide a brief, insightful review of a cryptocurrency simulation.
The user simulated the following scenario for {asset} ({simulation_type}):
- Bitcoin dominance set to: {btc_dominance}% (currently {current_dominance})
- Change in total market cap: {market_cap_change}%
- News sentiment: {news_sentiment}

The simulation resulted in the following change:
- Initial value: ${initial_value:,.2f}
- Simulated value: ${simulated_value:,.2f}
- Percentage change: {change_percentage:.2f}%

Provide a 2-3 sentence review explaining why the value might have changed this way based on the inputs.
Be concise and easy to understand for a non-expert."""


def dominance_effect(target: float, current: float | None, is_btc: bool) -> float:
    """Relative move in BTC dominance; positive for Bitcoin, mirrored for everything else."""
    if not current or current <= 0:
        return 0.0
    effect = (target - current) / current
    return effect if is_btc else -effect


def market_cap_effect(market_cap_change: float, rank: int | None) -> float:
    rank = rank if rank is not None else _DEFAULT_RANK
    return market_cap_change / 100 * (1 + (100 - rank) / 100)


def simulate_price(
    price: float,
    rank: int | None,
    is_btc: bool,
    market_cap_change: float,
    target_dominance: float,
    current_dominance: float | None,
    news_effect: float = 0.0,
) -> float:
    return (
        price
        * (1 + market_cap_effect(market_cap_change, rank))
        * (1 + dominance_effect(target_dominance, current_dominance, is_btc))
        * (1 + news_effect)
    )


def change_percentage(initial: float, simulated: float) -> float:
    if initial == 0:
        return 0.0
    return (simulated - initial) / initial * 100


def parse_percentage(text: str) -> float:
    """First number in a model reply as a fraction, clamped to +/-100%; 0 when absent."""
    match = re.search(r"[-+]?\d+(?:\.\d+)?", text.replace(",", ""))
    if match is None:
        return 0.0
    effect = float(match.group()) / 100
    return max(-_MAX_NEWS_EFFECT, min(_MAX_NEWS_EFFECT, effect))


def fallback_review(request: SimulationRequest, result: SimulationResult) -> str:
    direction = "rise" if result.change_percentage >= 0 else "fall"
    drivers = [f"a {request.market_cap_change:+.1f}% move in total market cap"]
    if result.current_btc_dominance:
        drivers.append(
            f"Bitcoin dominance moving from {result.current_btc_dominance:.1f}% "
            f"to {request.btc_dominance:.1f}%"
        )
    if request.news_sentiment != NewsSentimentScenario.neutral:
        drivers.append(f"{request.news_sentiment} news")
    return (
        f"AI review unavailable. {result.asset_name} would {direction} "
        f"{abs(result.change_percentage):.2f}% in this scenario, driven by "
        f"{' and '.join(drivers)}. Larger coins amplify market cap moves, while "
        "altcoins move opposite to Bitcoin dominance."
    )


class SimulatorService:
    def __init__(
        self,
        market: MarketService,
        portfolios: PortfolioService,
        llm: BaseChatModel | None = None,
    ) -> None:
        self._market = market
        self._portfolios = portfolios
        self._llm = llm

    async def run(self, user_id: str, request: SimulationRequest) -> SimulationResult:
        stats = await self._market.get_global()
        current_dominance = stats.btc_d
        news_effects: dict[str, float] = {}

        if request.simulation_type == SimulationType.single:
            ticker = await self._market.resolve_coin(request.asset_id)
            news_effect = await self._news_effect(request, ticker.name, news_effects)
            initial = ticker.price_usd or 0.0
            simulated = self._reprice(request, ticker, current_dominance, news_effect)
            asset_name = ticker.name
            holdings: list[HoldingSimulation] = []
        else:
            portfolio = await self._portfolios.get(user_id, request.asset_id)
            asset_name = portfolio.name
            holdings = list(
                await asyncio.gather(
                    *(
                        self._simulate_holding(request, holding, current_dominance, news_effects)
                        for holding in portfolio.holdings
                    )
                )
            )
            initial = sum(h.initial_value for h in holdings)
            simulated = sum(h.simulated_value for h in holdings)

        result = SimulationResult(
            initial_value=initial,
            simulated_value=simulated,
            change_percentage=change_percentage(initial, simulated),
            asset_name=asset_name,
            review="",
            current_btc_dominance=current_dominance,
            holdings=holdings,
        )
        review, ai_available = await self._review(request, result)
        logger.info(
            "simulation_run",
            user_id=user_id,
            simulation_type=request.simulation_type,
            asset=asset_name,
            change_percentage=round(result.change_percentage, 2),
        )
        return result.model_copy(update={"review": review, "ai_available": ai_available})

    @staticmethod
    def _reprice(
        request: SimulationRequest,
        ticker: CoinTicker,
        current_dominance: float | None,
        news_effect: float,
    ) -> float:
        return simulate_price(
            price=ticker.price_usd or 0.0,
            rank=ticker.rank,
            is_btc=ticker.symbol == "BTC",
            market_cap_change=request.market_cap_change,
            target_dominance=request.btc_dominance,
            current_dominance=current_dominance,
            news_effect=news_effect,
        )

    async def _resolve_holding(self, holding: HoldingResponse) -> CoinTicker | None:
        for query in (holding.coin_id, holding.coin_symbol):
            try:
                return await self._market.resolve_coin(query)
            except NotFoundError:
                continue
        return None

    async def _simulate_holding(
        self,
        request: SimulationRequest,
        holding: HoldingResponse,
        current_dominance: float | None,
        news_effects: dict[str, float],
    ) -> HoldingSimulation:
        ticker = await self._resolve_holding(holding)
        if ticker is None or ticker.price_usd is None:
            logger.warning("simulation_holding_unpriced", coin_id=holding.coin_id)
            return HoldingSimulation(
                coin_id=holding.coin_id,
                coin_symbol=holding.coin_symbol,
                amount=holding.amount,
                initial_value=0.0,
                simulated_value=0.0,
                news_effect=0.0,
                priced=False,
            )

        news_effect = await self._news_effect(request, ticker.name, news_effects)
        simulated_price = self._reprice(request, ticker, current_dominance, news_effect)
        return HoldingSimulation(
            coin_id=holding.coin_id,
            coin_symbol=holding.coin_symbol,
            amount=holding.amount,
            initial_value=ticker.price_usd * holding.amount,
            simulated_value=simulated_price * holding.amount,
            news_effect=news_effect,
        )

    async def _news_effect(
        self, request: SimulationRequest, coin_name: str, cache: dict[str, float]
    ) -> float:
        if request.news_sentiment == NewsSentimentScenario.neutral or self._llm is None:
            return 0.0
        if coin_name in cache:
            return cache[coin_name]

        prompt = _NEWS_EFFECT_PROMPT.format(sentiment=request.news_sentiment, coin=coin_name)
        try:
            response = await self._llm.ainvoke([HumanMessage(content=prompt)])
            effect = parse_percentage(message_text(response))
        except Exception as exc:
            logger.warning("simulation_news_effect_error", coin=coin_name, error=str(exc))
            effect = 0.0
        cache[coin_name] = effect
        return effect

    async def _review(
        self, request: SimulationRequest, result: SimulationResult
    ) -> tuple[str, bool]:
        if self._llm is None:
            return fallback_review(request, result), False

        prompt = _REVIEW_PROMPT.format(
            asset=result.asset_name,
            simulation_type=request.simulation_type,
            btc_dominance=request.btc_dominance,
            current_dominance=(
                f"{result.current_btc_dominance:.2f}%"
                if result.current_btc_dominance is not None
                else "unknown"
            ),
            market_cap_change=request.market_cap_change,
            news_sentiment=request.news_sentiment,
            initial_value=result.initial_value,
            simulated_value=result.simulated_value,
            change_percentage=result.change_percentage,
        )
        try:
            response = await self._llm.ainvoke([HumanMessage(content=prompt)])
        except Exception as exc:
            logger.warning("simulation_review_error", asset=result.asset_name, error=str(exc))
            return fallback_review(request, result), False

        text = message_text(response).strip()
        if not text:
            return fallback_review(request, result), False
        return text, True
