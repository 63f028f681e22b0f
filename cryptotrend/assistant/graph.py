"""Chat assistant graph.

Topology:
  START -> classify_question -> gather_context -> build_messages -> call_model
  call_model --(tool calls)--> tool_node -> call_model
  call_model --(final answer or 5 iterations)--> extract_response -> END

Services, the chat model and the user id are read from
``config["configurable"]``.
"""

import asyncio
import json
import re

import structlog
from langchain_core.messages import HumanMessage, SystemMessage, ToolMessage
from langchain_core.runnables import RunnableConfig
from langgraph.graph import END, START, StateGraph
from langgraph.prebuilt import ToolNode

from cryptotrend.assistant.confidence import classify_complexity
from cryptotrend.assistant.prompts import ASSISTANT_SYSTEM_PROMPT
from cryptotrend.assistant.schemas import AssistantState, QuestionKind
from cryptotrend.assistant.tools import assistant_tools
from cryptotrend.exceptions import AppError
from cryptotrend.llm.parsing import message_text
from cryptotrend.market.providers.reference import REFERENCE_COINS

logger = structlog.get_logger()

_MAX_TOOL_ITERATIONS = 5
_EMPTY_RESPONSE = "I couldn't generate a response at this time."

_PORTFOLIO_KEYWORDS = ("portfolio", "my holdings", "my coins", "watchlist", "my investments")
_MARKET_KEYWORDS = ("market", "dominance", "overall", "today", "sentiment", "trend")

_NOISE_WORDS = frozenset(
    {
        "I",
        "A",
        "AI",
        "THE",
        "AND",
        "OR",
        "FOR",
        "IN",
        "ON",
        "HOW",
        "IS",
        "IT",
        "MY",
        "ME",
        "DO",
        "CAN",
        "WHAT",
        "ABOUT",
        "OF",
        "TO",
        "USD",
        "NFT",
        "DEFI",
        "ETF",
        "DCA",
    }
)

# Lower-case symbols that are also common English words.
_AMBIGUOUS_SYMBOLS = frozenset({"link", "dot", "ton", "uni"})


def extract_symbol(question: str) -> str | None:
    """Find the coin a question is about: a known coin name first, then an
    upper-case ticker-like token."""
    lowered = question.lower()
    for coin in REFERENCE_COINS:
        if re.search(rf"\b{re.escape(coin['name'].lower())}\b", lowered):
            return coin["symbol"]
    for coin in REFERENCE_COINS:
        symbol = coin["symbol"].lower()
        if symbol not in _AMBIGUOUS_SYMBOLS and re.search(rf"\b{re.escape(symbol)}\b", lowered):
            return coin["symbol"]

    tokens = re.findall(r"\b([A-Z]{2,6})\b", question)
    candidates = [token for token in tokens if token not in _NOISE_WORDS]
    return candidates[0] if candidates else None


def classify_kind(question: str, symbol: str | None) -> QuestionKind:
    lowered = question.lower()
    if any(keyword in lowered for keyword in _PORTFOLIO_KEYWORDS):
        return QuestionKind.portfolio
    if symbol:
        return QuestionKind.coin
    if any(keyword in lowered for keyword in _MARKET_KEYWORDS):
        return QuestionKind.market_overview
    return QuestionKind.general


def _configured(config: RunnableConfig, key: str):
    return (config.get("configurable") or {}).get(key)


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


async def classify_question(state: AssistantState) -> dict:
    question = state.get("question", "")
    symbol = extract_symbol(question)
    kind = classify_kind(question, symbol)
    complexity = classify_complexity(question)
    logger.info("question_classified", kind=kind, complexity=complexity, symbol=symbol)
    return {"kind": kind, "complexity": complexity, "symbol": symbol}


async def gather_context(state: AssistantState, config: RunnableConfig) -> dict:
    """Fetch the coin analysis and global stats the question needs; failures leave gaps."""
    analysis = _configured(config, "analysis")
    market = _configured(config, "market")
    symbol = state.get("symbol")
    kind = state.get("kind", QuestionKind.general)

    want_coin = bool(symbol) and analysis is not None
    want_market = kind in (QuestionKind.coin, QuestionKind.market_overview) and market is not None

    async def _none() -> None:
        return None

    coin_result, market_result = await asyncio.gather(
        analysis.analyze_coin(symbol) if want_coin else _none(),
        market.get_global() if want_market else _none(),
        return_exceptions=True,
    )

    update: dict = {"coin_context": {}, "market_context": {}, "sources": []}
    if isinstance(coin_result, AppError):
        logger.warning("assistant_coin_context_failed", symbol=symbol, error=coin_result.message)
    elif isinstance(coin_result, BaseException):
        raise coin_result
    elif coin_result is not None:
        update["coin_context"] = coin_result.model_dump(mode="json", exclude={"market_data"})
        update["sources"].append(f"Live {coin_result.symbol} market data (Coinlore)")

    if isinstance(market_result, AppError):
        logger.warning("assistant_market_context_failed", error=market_result.message)
    elif isinstance(market_result, BaseException):
        raise market_result
    elif market_result is not None:
        update["market_context"] = market_result.model_dump(mode="json")
        update["sources"].append("Global market statistics (Coinlore)")

    return update


async def build_messages(state: AssistantState) -> dict:
    coin_context = state.get("coin_context") or {}
    market_context = state.get("market_context") or {}
    system_content = ASSISTANT_SYSTEM_PROMPT.format(
        kind=str(state.get("kind", QuestionKind.general)),
        coin_context=json.dumps(coin_context, indent=2) if coin_context else "Not available.",
        market_context=json.dumps(market_context, indent=2) if market_context else "Not available.",
    )
    return {
        "messages": [
            SystemMessage(content=system_content),
            HumanMessage(content=state.get("question", "")),
        ]
    }


async def call_model(state: AssistantState, config: RunnableConfig) -> dict:
    llm = _configured(config, "llm")
    if llm is None:
        raise AppError("No language model configured", code="LLM_CONFIG_ERROR")

    response = await llm.bind_tools(assistant_tools).ainvoke(state["messages"])
    iteration_count = state.get("iteration_count", 0) + 1
    logger.info("assistant_llm_called", iteration=iteration_count)
    return {"messages": [response], "iteration_count": iteration_count}


async def extract_response(state: AssistantState) -> dict:
    messages = state.get("messages", [])
    tools_used = sorted({m.name for m in messages if isinstance(m, ToolMessage) and m.name})
    sources = [f"Tool: {name}" for name in tools_used]
    if not messages:
        return {"response": _EMPTY_RESPONSE, "sources": sources}

    text = message_text(messages[-1]).strip()
    return {"response": text or _EMPTY_RESPONSE, "sources": sources}


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------


def should_continue(state: AssistantState) -> str:
    if state.get("iteration_count", 0) >= _MAX_TOOL_ITERATIONS:
        return "extract_response"

    messages = state.get("messages", [])
    if not messages:
        return "extract_response"

    last_message = messages[-1]
    if getattr(last_message, "tool_calls", None):
        return "tool_node"
    return "extract_response"


# ---------------------------------------------------------------------------
# Build the graph
# ---------------------------------------------------------------------------

workflow = StateGraph(AssistantState)

workflow.add_node("classify_question", classify_question)
workflow.add_node("gather_context", gather_context)
workflow.add_node("build_messages", build_messages)
workflow.add_node("call_model", call_model)
workflow.add_node("tool_node", ToolNode(assistant_tools))
workflow.add_node("extract_response", extract_response)

workflow.add_edge(START, "classify_question")
workflow.add_edge("classify_question", "gather_context")
workflow.add_edge("gather_context", "build_messages")
workflow.add_edge("build_messages", "call_model")
workflow.add_conditional_edges(
    "call_model",
    should_continue,
    {
        "tool_node": "tool_node",
        "extract_response": "extract_response",
    },
)
workflow.add_edge("tool_node", "call_model")
workflow.add_edge("extract_response", END)

assistant_graph = workflow.compile()
