"""Tests for coin detection and question routing in the assistant graph."""

import pytest

from cryptotrend.assistant.graph import classify_kind, extract_symbol, should_continue
from cryptotrend.assistant.schemas import QuestionKind


@pytest.mark.parametrize(
    ("question", "expected"),
    [
        ("Is Bitcoin a good store of value?", "BTC"),
        ("what do you think about solana", "SOL"),
        ("How volatile is ada this week?", "ADA"),
        ("Any news on PEPE?", "PEPE"),
        ("Is it a good time to buy?", None),
        ("Tell me how DeFi works", None),
    ],
)
def test_extract_symbol(question, expected):
    assert extract_symbol(question) == expected


def test_common_words_are_not_symbols():
    # "link" and "dot" are tickers but also ordinary words
    assert extract_symbol("share the link and dot the i") is None


@pytest.mark.parametrize(
    ("question", "symbol", "expected"),
    [
        ("How is my portfolio doing?", "BTC", QuestionKind.portfolio),
        ("Should I buy ETH?", "ETH", QuestionKind.coin),
        ("How is the market today?", None, QuestionKind.market_overview),
        ("What is a hardware wallet?", None, QuestionKind.general),
    ],
)
def test_classify_kind(question, symbol, expected):
    assert classify_kind(question, symbol) is expected


class TestShouldContinue:
    def test_stops_after_iteration_limit(self):
        class _Message:
            tool_calls = [{"name": "get_global_market"}]

        assert should_continue({"messages": [_Message()], "iteration_count": 5}) == "extract_response"
        assert should_continue({"messages": [_Message()], "iteration_count": 1}) == "tool_node"

    def test_no_messages(self):
        assert should_continue({}) == "extract_response"
