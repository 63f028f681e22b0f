"""Tests for question complexity and chat confidence."""

import pytest

from cryptotrend.assistant.confidence import (
    chat_confidence,
    classify_complexity,
    fallback_confidence,
)
from cryptotrend.assistant.schemas import Complexity


@pytest.mark.parametrize(
    ("question", "expected"),
    [
        ("What is a blockchain?", Complexity.simple),
        ("Explain staking to me", Complexity.simple),
        ("Should I buy ETH now?", Complexity.complex),
        ("Give me a price target for SOL", Complexity.complex),
        ("Compare Bitcoin and Litecoin fees", Complexity.moderate),
        # "what is" wins over the prediction keywords
        ("What is the prediction for BTC?", Complexity.simple),
    ],
)
def test_classify_complexity(question, expected):
    assert classify_complexity(question) is expected


def test_words_inside_other_words_do_not_count():
    assert classify_complexity("Willow and whenever") is Complexity.moderate


@pytest.mark.parametrize(
    ("complexity", "has_data", "expected"),
    [
        (Complexity.simple, True, 85),
        (Complexity.simple, False, 65),
        (Complexity.moderate, True, 70),
        (Complexity.complex, True, 55),
        (Complexity.complex, False, 35),
    ],
)
def test_chat_confidence(complexity, has_data, expected):
    assert chat_confidence(complexity, has_data) == expected


@pytest.mark.parametrize(
    ("complexity", "expected"),
    [(Complexity.simple, 45), (Complexity.moderate, 30), (Complexity.complex, 15)],
)
def test_fallback_confidence(complexity, expected):
    assert fallback_confidence(complexity) == expected
