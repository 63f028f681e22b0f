from datetime import date
from uuid import uuid4

import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage

from cryptotrend.event_store.models import AggregateType, EventType
from cryptotrend.event_store.service import EventStoreService
from cryptotrend.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from cryptotrend.llm.parsing import message_text, parse_llm_json
from cryptotrend.market.service import MarketService
from cryptotrend.portfolios.repository import PortfolioRepository
from cryptotrend.portfolios.schemas import (
    HoldingCreate,
    HoldingResponse,
    HoldingUpdate,
    PortfolioCreate,
    PortfolioInsights,
    PortfolioResponse,
    PortfolioSummary,
    PortfolioUpdate,
)
from cryptotrend.portfolios.valuation import diversification_score, summarize_holdings

logger = structlog.get_logger()

SAMPLE_PORTFOLIO_NAME = "Sample Crypto Portfolio"

_SAMPLE_HOLDINGS = [
    HoldingCreate(
        coin_id="bitcoin",
        coin_symbol="BTC",
        coin_name="Bitcoin",
        amount=0.5,
        purchase_price=98000,
        purchase_date=date(2024, 1, 15),
        notes="Long-term hold",
    ),
    HoldingCreate(
        coin_id="ethereum",
        coin_symbol="ETH",
        coin_name="Ethereum",
        amount=2.5,
        purchase_price=4500,
        purchase_date=date(2024, 1, 20),
        notes="DeFi exposure",
    ),
    HoldingCreate(
        coin_id="solana",
        coin_symbol="SOL",
        coin_name="Solana",
        amount=10,
        purchase_price=180,
        purchase_date=date(2024, 2, 1),
        notes="High growth potential",
    ),
]

_INSIGHTS_PROMPT = (
    "Analyze this cryptocurrency portfolio briefly.\n\n"
    "Holdings:\n{holdings}\n\n"
    "Total Value: ${total_value:,.2f}\n"
    "Total Invested: ${total_invested:,.2f}\n"
    "Total P&L: {pl_pct:.1f}%\n"
    "Number of Holdings: {count}\n"
    "Diversification Score: {score}/100\n\n"
    "Return JSON with keys: overall_health (1-2 sentences), risk_assessment "
    "(short), recommendations (3 short actionable items), rebalancing_suggestions "
    "(2 short items)."
)


class PortfolioService:
    def __init__(
        self,
        event_store: EventStoreService,
        repo: PortfolioRepository,
        market: MarketService,
        llm: BaseChatModel | None = None,
    ) -> None:
        self._event_store = event_store
        self._repo = repo
        self._market = market
        self._llm = llm

    # -- access -------------------------------------------------------------

    async def _get_readable(self, user_id: str, portfolio_id: str) -> dict:
        portfolio = await self._repo.get_by_id(portfolio_id)
        if portfolio is None or (portfolio["user_id"] != user_id and not portfolio["is_public"]):
            raise NotFoundError("Portfolio", portfolio_id)
        return portfolio

    async def _get_owned(self, user_id: str, portfolio_id: str) -> dict:
        portfolio = await self._get_readable(user_id, portfolio_id)
        if portfolio["user_id"] != user_id:
            raise ForbiddenError("Only the owner can modify this portfolio")
        return portfolio

    async def _get_owned_holding(self, user_id: str, portfolio_id: str, holding_id: str) -> dict:
        await self._get_owned(user_id, portfolio_id)
        holding = await self._repo.get_holding(holding_id)
        if holding is None or holding["portfolio_id"] != portfolio_id:
            raise NotFoundError("Holding", holding_id)
        return holding

    async def _build_response(self, portfolio: dict) -> PortfolioResponse:
        holdings = await self._repo.list_holdings(portfolio["id"])
        return PortfolioResponse(
            id=portfolio["id"],
            user_id=portfolio["user_id"],
            name=portfolio["name"],
            description=portfolio["description"],
            is_public=bool(portfolio["is_public"]),
            created_at=portfolio["created_at"],
            updated_at=portfolio["updated_at"],
            holdings=[HoldingResponse(**{k: h[k] for k in HoldingResponse.model_fields}) for h in holdings],
        )

    # -- portfolios ---------------------------------------------------------

    async def create(self, user_id: str, data: PortfolioCreate) -> PortfolioResponse:
        name = data.name.strip()
        if await self._repo.get_by_name(user_id, name):
            raise ConflictError(f"Portfolio '{name}' already exists")

        portfolio_id = str(uuid4())
        await self._event_store.append_event(
            aggregate_type=AggregateType.portfolio,
            aggregate_id=portfolio_id,
            event_type=EventType.portfolio_created,
            event_data={
                "user_id": user_id,
                "name": name,
                "description": data.description,
                "is_public": data.is_public,
            },
            user_id=user_id,
        )
        logger.info("portfolio_created", portfolio_id=portfolio_id, user_id=user_id)
        return await self.get(user_id, portfolio_id)

    async def list_for_user(self, user_id: str) -> list[PortfolioResponse]:
        portfolios = await self._repo.list_by_user(user_id)
        return [await self._build_response(portfolio) for portfolio in portfolios]

    async def get(self, user_id: str, portfolio_id: str) -> PortfolioResponse:
        portfolio = await self._get_readable(user_id, portfolio_id)
        return await self._build_response(portfolio)

    async def update(
        self, user_id: str, portfolio_id: str, data: PortfolioUpdate
    ) -> PortfolioResponse:
        portfolio = await self._get_owned(user_id, portfolio_id)
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("No update fields provided")

        if "name" in changes:
            if changes["name"] is None:
                raise ValidationError("Portfolio name cannot be empty")
            changes["name"] = changes["name"].strip()
            existing = await self._repo.get_by_name(user_id, changes["name"])
            if existing and existing["id"] != portfolio["id"]:
                raise ConflictError(f"Portfolio '{changes['name']}' already exists")

        await self._event_store.append_event(
            aggregate_type=AggregateType.portfolio,
            aggregate_id=portfolio_id,
            event_type=EventType.portfolio_updated,
            event_data=changes,
            user_id=user_id,
        )
        logger.info("portfolio_updated", portfolio_id=portfolio_id, fields=sorted(changes))
        return await self.get(user_id, portfolio_id)

    async def delete(self, user_id: str, portfolio_id: str) -> None:
        await self._get_owned(user_id, portfolio_id)
        await self._event_store.append_event(
            aggregate_type=AggregateType.portfolio,
            aggregate_id=portfolio_id,
            event_type=EventType.portfolio_deleted,
            event_data={},
            user_id=user_id,
        )
        logger.info("portfolio_deleted", portfolio_id=portfolio_id)

    async def create_sample(self, user_id: str) -> PortfolioResponse:
        existing = await self._repo.get_by_name(user_id, SAMPLE_PORTFOLIO_NAME)
        if existing:
            return await self._build_response(existing)

        portfolio = await self.create(
            user_id,
            PortfolioCreate(
                name=SAMPLE_PORTFOLIO_NAME,
                description="A sample portfolio with some popular cryptocurrencies",
            ),
        )
        for holding in _SAMPLE_HOLDINGS:
            await self.add_holding(user_id, portfolio.id, holding)
        return await self.get(user_id, portfolio.id)

    # -- holdings -----------------------------------------------------------

    async def add_holding(
        self, user_id: str, portfolio_id: str, data: HoldingCreate
    ) -> HoldingResponse:
        await self._get_owned(user_id, portfolio_id)

        holding_id = str(uuid4())
        await self._event_store.append_event(
            aggregate_type=AggregateType.holding,
            aggregate_id=holding_id,
            event_type=EventType.holding_added,
            event_data={
                "portfolio_id": portfolio_id,
                "coin_id": data.coin_id.strip().lower(),
                "coin_symbol": data.coin_symbol.strip().upper(),
                "coin_name": data.coin_name.strip(),
                "amount": data.amount,
                "purchase_price": data.purchase_price,
                "purchase_date": data.purchase_date.isoformat(),
                "notes": data.notes,
            },
            user_id=user_id,
        )
        logger.info("holding_added", portfolio_id=portfolio_id, coin_id=data.coin_id)

        holding = await self._repo.get_holding(holding_id)
        if holding is None:
            raise NotFoundError("Holding", holding_id)
        return HoldingResponse(**{k: holding[k] for k in HoldingResponse.model_fields})

    async def update_holding(
        self, user_id: str, portfolio_id: str, holding_id: str, data: HoldingUpdate
    ) -> HoldingResponse:
        await self._get_owned_holding(user_id, portfolio_id, holding_id)
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("No update fields provided")
        for field in ("amount", "purchase_price", "purchase_date"):
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be null")
        if "purchase_date" in changes:
            changes["purchase_date"] = changes["purchase_date"].isoformat()

        await self._event_store.append_event(
            aggregate_type=AggregateType.holding,
            aggregate_id=holding_id,
            event_type=EventType.holding_updated,
            event_data=changes,
            user_id=user_id,
        )
        logger.info("holding_updated", holding_id=holding_id, fields=sorted(changes))

        holding = await self._repo.get_holding(holding_id)
        if holding is None:
            raise NotFoundError("Holding", holding_id)
        return HoldingResponse(**{k: holding[k] for k in HoldingResponse.model_fields})

    async def remove_holding(self, user_id: str, portfolio_id: str, holding_id: str) -> None:
        await self._get_owned_holding(user_id, portfolio_id, holding_id)
        await self._event_store.append_event(
            aggregate_type=AggregateType.holding,
            aggregate_id=holding_id,
            event_type=EventType.holding_removed,
            event_data={"portfolio_id": portfolio_id},
            user_id=user_id,
        )
        logger.info("holding_removed", holding_id=holding_id)

    # -- valuation ----------------------------------------------------------

    async def summarize(self, user_id: str, portfolio_id: str) -> PortfolioSummary:
        await self._get_readable(user_id, portfolio_id)
        holdings = await self._repo.list_holdings(portfolio_id)
        prices = await self._market.get_prices([h["coin_id"] for h in holdings])
        return summarize_holdings(portfolio_id, holdings, prices)

    async def summarize_user(self, user_id: str) -> list[PortfolioSummary]:
        portfolios = await self._repo.list_by_user(user_id)
        return [await self.summarize(user_id, portfolio["id"]) for portfolio in portfolios]

    async def get_insights(self, user_id: str, portfolio_id: str) -> PortfolioInsights:
        summary = await self.summarize(user_id, portfolio_id)
        valued = [
            h for h in summary.holdings if h.current_price > 0 and h.amount > 0 and h.purchase_price > 0
        ]
        if not valued:
            return PortfolioInsights(
                portfolio_id=portfolio_id,
                overall_health=(
                    "The portfolio's health cannot be assessed: it has no holdings with valid prices."
                ),
                diversification_score=0,
                risk_assessment="Cannot assess risk without valid holding data.",
                recommendations=[
                    "Add cryptocurrency holdings to your portfolio",
                    "Ensure all holdings have valid amounts and prices",
                ],
                rebalancing_suggestions=["Complete portfolio setup first"],
                ai_available=False,
            )

        score = diversification_score([h.current_value for h in valued])
        if self._llm is not None:
            try:
                return await self._generate_insights(summary, valued, score)
            except Exception as exc:
                logger.warning("portfolio_insights_llm_error", portfolio_id=portfolio_id, error=str(exc))

        return self._fallback_insights(summary, valued, score)

    async def _generate_insights(
        self, summary: PortfolioSummary, valued: list, score: int
    ) -> PortfolioInsights:
        lines = "\n".join(
            f"- {h.coin_symbol}: ${h.current_value:,.2f} ({h.allocation_percentage:.1f}%) "
            f"P&L {h.profit_loss_percentage:.1f}%"
            for h in valued
        )
        prompt = _INSIGHTS_PROMPT.format(
            holdings=lines,
            total_value=summary.total_value,
            total_invested=summary.total_invested,
            pl_pct=summary.profit_loss_percentage,
            count=len(valued),
            score=score,
        )
        response = await self._llm.ainvoke([HumanMessage(content=prompt)])
        data = parse_llm_json(message_text(response))
        return PortfolioInsights(
            portfolio_id=summary.portfolio_id,
            overall_health=str(data.get("overall_health") or "No assessment provided."),
            diversification_score=score,
            risk_assessment=str(data.get("risk_assessment") or "No risk assessment provided."),
            recommendations=[str(item) for item in data.get("recommendations") or []][:5],
            rebalancing_suggestions=[str(item) for item in data.get("rebalancing_suggestions") or []][:5],
            ai_available=True,
        )

    @staticmethod
    def _fallback_insights(
        summary: PortfolioSummary, valued: list, score: int
    ) -> PortfolioInsights:
        largest = max(valued, key=lambda h: h.allocation_percentage)
        direction = "gain" if summary.profit_loss_percentage >= 0 else "loss"
        recommendations = ["Review positions regularly against your risk tolerance"]
        if score < 60:
            recommendations.insert(0, "Add more assets to improve diversification")
        if largest.allocation_percentage >= 50:
            recommendations.insert(0, f"Reduce concentration in {largest.coin_symbol}")
        return PortfolioInsights(
            portfolio_id=summary.portfolio_id,
            overall_health=(
                f"Portfolio shows a {abs(summary.profit_loss_percentage):.1f}% {direction} "
                f"across {len(valued)} holdings with a diversification score of {score}/100."
            ),
            diversification_score=score,
            risk_assessment=(
                f"Largest position is {largest.coin_symbol} at "
                f"{largest.allocation_percentage:.1f}% of portfolio value."
            ),
            recommendations=recommendations,
            rebalancing_suggestions=[
                f"Consider capping {largest.coin_symbol} below 40% of the portfolio",
                "Rebalance when any position drifts more than 10% from its target",
            ],
            ai_available=False,
        )
