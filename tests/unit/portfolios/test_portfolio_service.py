"""Tests for PortfolioService against an in-memory database."""

from datetime import date

import pytest

from cryptotrend.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from cryptotrend.portfolios.repository import PortfolioRepository
from cryptotrend.portfolios.schemas import (
    HoldingCreate,
    HoldingUpdate,
    PortfolioCreate,
    PortfolioUpdate,
)
from cryptotrend.portfolios.service import SAMPLE_PORTFOLIO_NAME, PortfolioService

OWNER = "owner"
VISITOR = "visitor"


@pytest.fixture
def portfolio_service(db, event_store, market) -> PortfolioService:
    return PortfolioService(event_store, PortfolioRepository(db), market)


def btc_holding(amount: float = 1.0) -> HoldingCreate:
    return HoldingCreate(
        coin_id="Bitcoin",
        coin_symbol="btc",
        coin_name="Bitcoin",
        amount=amount,
        purchase_price=50000,
        purchase_date=date(2024, 3, 1),
    )


class TestPortfolioCrud:
    @pytest.mark.asyncio
    async def test_create_and_list(self, portfolio_service):
        created = await portfolio_service.create(OWNER, PortfolioCreate(name="Long term"))

        listed = await portfolio_service.list_for_user(OWNER)
        assert [p.id for p in listed] == [created.id]
        assert created.is_public is False
        assert created.holdings == []

    @pytest.mark.asyncio
    async def test_duplicate_name_conflicts(self, portfolio_service):
        await portfolio_service.create(OWNER, PortfolioCreate(name="Main"))
        with pytest.raises(ConflictError):
            await portfolio_service.create(OWNER, PortfolioCreate(name="Main"))

        # Names are unique per user only.
        await portfolio_service.create(VISITOR, PortfolioCreate(name="Main"))

    @pytest.mark.asyncio
    async def test_private_portfolio_hidden_from_others(self, portfolio_service):
        created = await portfolio_service.create(OWNER, PortfolioCreate(name="Secret"))
        with pytest.raises(NotFoundError):
            await portfolio_service.get(VISITOR, created.id)

    @pytest.mark.asyncio
    async def test_public_portfolio_is_read_only_for_others(self, portfolio_service):
        created = await portfolio_service.create(
            OWNER, PortfolioCreate(name="Shared", is_public=True)
        )

        assert (await portfolio_service.get(VISITOR, created.id)).name == "Shared"
        with pytest.raises(ForbiddenError):
            await portfolio_service.update(VISITOR, created.id, PortfolioUpdate(name="Mine"))

    @pytest.mark.asyncio
    async def test_update_requires_fields(self, portfolio_service):
        created = await portfolio_service.create(OWNER, PortfolioCreate(name="Main"))
        with pytest.raises(ValidationError):
            await portfolio_service.update(OWNER, created.id, PortfolioUpdate())

        updated = await portfolio_service.update(
            OWNER, created.id, PortfolioUpdate(description="Core positions")
        )
        assert updated.description == "Core positions"

    @pytest.mark.asyncio
    async def test_delete(self, portfolio_service):
        created = await portfolio_service.create(OWNER, PortfolioCreate(name="Temp"))
        await portfolio_service.delete(OWNER, created.id)

        with pytest.raises(NotFoundError):
            await portfolio_service.get(OWNER, created.id)


class TestHoldings:
    @pytest.mark.asyncio
    async def test_add_update_remove(self, portfolio_service):
        portfolio = await portfolio_service.create(OWNER, PortfolioCreate(name="Main"))

        added = await portfolio_service.add_holding(OWNER, portfolio.id, btc_holding())
        assert added.coin_id == "bitcoin"
        assert added.coin_symbol == "BTC"
        assert added.purchase_date == "2024-03-01"

        updated = await portfolio_service.update_holding(
            OWNER, portfolio.id, added.id, HoldingUpdate(amount=2.5)
        )
        assert updated.amount == 2.5

        await portfolio_service.remove_holding(OWNER, portfolio.id, added.id)
        assert (await portfolio_service.get(OWNER, portfolio.id)).holdings == []

    @pytest.mark.asyncio
    async def test_holding_from_another_portfolio_not_found(self, portfolio_service):
        first = await portfolio_service.create(OWNER, PortfolioCreate(name="First"))
        second = await portfolio_service.create(OWNER, PortfolioCreate(name="Second"))
        holding = await portfolio_service.add_holding(OWNER, first.id, btc_holding())

        with pytest.raises(NotFoundError):
            await portfolio_service.remove_holding(OWNER, second.id, holding.id)

    @pytest.mark.asyncio
    async def test_sample_portfolio_is_idempotent(self, portfolio_service):
        sample = await portfolio_service.create_sample(OWNER)
        again = await portfolio_service.create_sample(OWNER)

        assert sample.name == SAMPLE_PORTFOLIO_NAME
        assert again.id == sample.id
        assert sorted(h.coin_symbol for h in sample.holdings) == ["BTC", "ETH", "SOL"]


class TestValuationAndInsights:
    @pytest.mark.asyncio
    async def test_summary_uses_live_prices(self, portfolio_service):
        portfolio = await portfolio_service.create(OWNER, PortfolioCreate(name="Main"))
        await portfolio_service.add_holding(OWNER, portfolio.id, btc_holding())

        summary = await portfolio_service.summarize(OWNER, portfolio.id)

        assert summary.total_value == 100000
        assert summary.total_invested == 50000
        assert summary.profit_loss_percentage == 100

    @pytest.mark.asyncio
    async def test_insights_without_holdings(self, portfolio_service):
        portfolio = await portfolio_service.create(OWNER, PortfolioCreate(name="Empty"))
        insights = await portfolio_service.get_insights(OWNER, portfolio.id)

        assert insights.diversification_score == 0
        assert insights.ai_available is False

    @pytest.mark.asyncio
    async def test_insights_fallback_without_llm(self, portfolio_service):
        sample = await portfolio_service.create_sample(OWNER)
        insights = await portfolio_service.get_insights(OWNER, sample.id)

        assert insights.ai_available is False
        assert insights.recommendations[0] == "Reduce concentration in BTC"

    @pytest.mark.asyncio
    async def test_insights_from_llm(self, db, event_store, market, mock_llm):
        mock_llm.reply(
            '```json\n{"overall_health": "Healthy", "risk_assessment": "Moderate", '
            '"recommendations": ["Hold"], "rebalancing_suggestions": ["Trim BTC"]}\n```'
        )
        service = PortfolioService(event_store, PortfolioRepository(db), market, mock_llm)
        sample = await service.create_sample(OWNER)

        insights = await service.get_insights(OWNER, sample.id)

        assert insights.ai_available is True
        assert insights.overall_health == "Healthy"
        assert insights.rebalancing_suggestions == ["Trim BTC"]

    @pytest.mark.asyncio
    async def test_insights_fall_back_on_bad_llm_output(self, db, event_store, market, mock_llm):
        mock_llm.reply("I cannot help with that.")
        service = PortfolioService(event_store, PortfolioRepository(db), market, mock_llm)
        sample = await service.create_sample(OWNER)

        insights = await service.get_insights(OWNER, sample.id)

        assert insights.ai_available is False
