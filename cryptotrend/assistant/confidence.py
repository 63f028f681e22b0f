import re

from cryptotrend.assistant.schemas import Complexity

_BASE_CONFIDENCE = {
    Complexity.simple: 85,
    Complexity.moderate: 70,
    Complexity.complex: 55,
}
_NO_MARKET_DATA_PENALTY = 20
_FALLBACK_PENALTY = 40
_MIN_CONFIDENCE = 25
_MAX_CONFIDENCE = 90
_MIN_FALLBACK_CONFIDENCE = 15

_SIMPLE_PATTERN = re.compile(r"\b(what is|what's|define|explain|how does)\b")
_COMPLEX_PATTERN = re.compile(
    r"\b(should i|predict|prediction|will|when|technical analysis|price target)\b"
)


def classify_complexity(question: str) -> Complexity:
    """Definitions are simple; predictions and personal advice are complex."""
    lowered = question.lower()
    if _SIMPLE_PATTERN.search(lowered):
        return Complexity.simple
    if _COMPLEX_PATTERN.search(lowered):
        return Complexity.complex
    return Complexity.moderate


def chat_confidence(complexity: Complexity, has_market_data: bool) -> int:
    confidence = _BASE_CONFIDENCE[complexity]
    if not has_market_data:
        confidence -= _NO_MARKET_DATA_PENALTY
    return max(_MIN_CONFIDENCE, min(_MAX_CONFIDENCE, confidence))


def fallback_confidence(complexity: Complexity) -> int:
    return max(_MIN_FALLBACK_CONFIDENCE, _BASE_CONFIDENCE[complexity] - _FALLBACK_PENALTY)
