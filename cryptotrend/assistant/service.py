"""Assistant service: a thin wrapper around the compiled assistant graph."""

import json
from collections.abc import AsyncGenerator

import structlog
from langchain_core.language_models import BaseChatModel

from cryptotrend.analysis.service import AnalysisService
from cryptotrend.assistant.confidence import (
    chat_confidence,
    classify_complexity,
    fallback_confidence,
)
from cryptotrend.assistant.graph import assistant_graph
from cryptotrend.assistant.knowledge import fallback_answer
from cryptotrend.assistant.schemas import ChatResponse, Complexity
from cryptotrend.market.service import MarketService
from cryptotrend.news.service import NewsService
from cryptotrend.portfolios.service import PortfolioService
from cryptotrend.watchlist.service import WatchlistService

logger = structlog.get_logger()

_RECURSION_LIMIT = 25
_PRIMARY_SOURCE = "CryptoTrend AI Analysis"
_FALLBACK_SOURCE = "CryptoTrend knowledge base"
_STREAMED_STEPS = frozenset(
    {"classify_question", "gather_context", "call_model", "tool_node", "extract_response"}
)


class AssistantService:
    """Provides sync and streaming chat over the assistant graph."""

    def __init__(
        self,
        market: MarketService,
        analysis: AnalysisService,
        portfolios: PortfolioService,
        watchlist: WatchlistService,
        news: NewsService,
        llm: BaseChatModel | None = None,
    ) -> None:
        self._market = market
        self._analysis = analysis
        self._portfolios = portfolios
        self._watchlist = watchlist
        self._news = news
        self._llm = llm

    def _config(self, user_id: str) -> dict:
        return {
            "recursion_limit": _RECURSION_LIMIT,
            "configurable": {
                "user_id": user_id,
                "llm": self._llm,
                "market": self._market,
                "analysis": self._analysis,
                "portfolios": self._portfolios,
                "watchlist": self._watchlist,
                "news": self._news,
            },
        }

    @staticmethod
    def _build_response(result: dict) -> ChatResponse:
        has_market_data = bool(result.get("coin_context") or result.get("market_context"))
        complexity = result.get("complexity", Complexity.moderate)
        sources = [_PRIMARY_SOURCE, *dict.fromkeys(result.get("sources", []))]
        return ChatResponse(
            response=result.get("response") or "I couldn't generate a response.",
            confidence=chat_confidence(complexity, has_market_data),
            sources=sources,
        )

    @staticmethod
    def _fallback(question: str, error: BaseException | None) -> ChatResponse:
        return ChatResponse(
            response=fallback_answer(question, error),
            confidence=fallback_confidence(classify_complexity(question)),
            sources=[_FALLBACK_SOURCE],
            ai_available=False,
        )

    async def chat(self, user_id: str, question: str) -> ChatResponse:
        if self._llm is None:
            logger.info("assistant_fallback", reason="no_llm")
            return self._fallback(question, None)

        try:
            result = await assistant_graph.ainvoke({"question": question}, self._config(user_id))
        except Exception as exc:
            logger.warning("assistant_chat_error", user_id=user_id, error=str(exc))
            return self._fallback(question, exc)
        return self._build_response(result)

    async def chat_stream(self, user_id: str, question: str) -> AsyncGenerator[dict, None]:
        """SSE streaming chat: yields status, token, response, error and done events."""
        yield {"event": "status", "data": json.dumps({"step": "starting"})}

        if self._llm is None:
            fallback = self._fallback(question, None)
            yield {"event": "response", "data": fallback.model_dump_json()}
            yield {"event": "done", "data": ""}
            return

        try:
            async for event in assistant_graph.astream_events(
                {"question": question},
                config=self._config(user_id),
                version="v2",
            ):
                kind = event.get("event")

                if kind == "on_chain_start" and event.get("name") in _STREAMED_STEPS:
                    yield {"event": "status", "data": json.dumps({"step": event["name"]})}
                elif kind == "on_chat_model_stream":
                    chunk = event.get("data", {}).get("chunk")
                    if chunk is not None and chunk.content:
                        content = chunk.content
                        yield {
                            "event": "token",
                            "data": content if isinstance(content, str) else str(content),
                        }
                elif kind == "on_chain_end" and event.get("name") == "LangGraph":
                    output = event.get("data", {}).get("output", {})
                    if output.get("response"):
                        yield {
                            "event": "response",
                            "data": self._build_response(output).model_dump_json(),
                        }
        except Exception as exc:
            logger.error("assistant_stream_error", user_id=user_id, error=str(exc))
            yield {"event": "error", "data": json.dumps({"error": str(exc)})}
            yield {"event": "response", "data": self._fallback(question, exc).model_dump_json()}

        yield {"event": "done", "data": ""}
