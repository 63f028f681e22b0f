"""Tests for AssistantService: the graph run end to end with a mocked chat model."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage

from cryptotrend.analysis.service import AnalysisService
from cryptotrend.assistant.service import AssistantService

USER = "user-1"


def tool_calling_llm(*responses: AIMessage) -> MagicMock:
    bound = MagicMock()
    bound.ainvoke = AsyncMock(side_effect=list(responses))
    llm = MagicMock()
    llm.bind_tools = MagicMock(return_value=bound)
    return llm


@pytest.fixture
def make_assistant(market):
    def _make(llm=None) -> AssistantService:
        return AssistantService(
            market=market,
            analysis=AnalysisService(market),
            portfolios=MagicMock(),
            watchlist=MagicMock(),
            news=MagicMock(),
            llm=llm,
        )

    return _make


class TestChat:
    @pytest.mark.asyncio
    async def test_without_llm_answers_from_knowledge_base(self, make_assistant):
        response = await make_assistant().chat(USER, "What is DeFi?")

        assert response.ai_available is False
        assert response.response.startswith("DeFi (Decentralized Finance)")
        assert response.confidence == 45
        assert response.sources == ["CryptoTrend knowledge base"]

    @pytest.mark.asyncio
    async def test_coin_question_uses_live_context(self, make_assistant):
        llm = tool_calling_llm(AIMessage(content="Bitcoin is up 2% today."))
        response = await make_assistant(llm).chat(USER, "What is Bitcoin doing?")

        assert response.ai_available is True
        assert response.response == "Bitcoin is up 2% today."
        assert response.confidence == 85
        assert response.sources == [
            "CryptoTrend AI Analysis",
            "Live BTC market data (Coinlore)",
            "Global market statistics (Coinlore)",
        ]
        messages = llm.bind_tools.return_value.ainvoke.await_args.args[0]
        assert '"symbol": "BTC"' in messages[0].content

    @pytest.mark.asyncio
    async def test_tool_calls_are_executed(self, make_assistant):
        llm = tool_calling_llm(
            AIMessage(
                content="",
                tool_calls=[{"name": "get_global_market", "args": {}, "id": "call-1"}],
            ),
            AIMessage(content="BTC dominance is 57%."),
        )
        response = await make_assistant(llm).chat(USER, "How is the market today?")

        assert response.response == "BTC dominance is 57%."
        assert "Tool: get_global_market" in response.sources
        assert llm.bind_tools.return_value.ainvoke.await_count == 2

    @pytest.mark.asyncio
    async def test_model_failure_falls_back(self, make_assistant):
        bound = MagicMock()
        bound.ainvoke = AsyncMock(side_effect=RuntimeError("429 quota exceeded"))
        llm = MagicMock()
        llm.bind_tools = MagicMock(return_value=bound)

        response = await make_assistant(llm).chat(USER, "Should I buy ETH?")

        assert response.ai_available is False
        assert "temporarily at capacity" in response.response
        assert response.confidence == 15


class TestChatStream:
    @pytest.mark.asyncio
    async def test_stream_without_llm(self, make_assistant):
        events = [event async for event in make_assistant().chat_stream(USER, "What is NFT?")]

        assert [event["event"] for event in events] == ["status", "response", "done"]
        payload = json.loads(events[1]["data"])
        assert payload["ai_available"] is False
