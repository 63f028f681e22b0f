"""State and request/response models for the chat assistant graph."""

from enum import StrEnum
from operator import add
from typing import Annotated, TypedDict

from pydantic import BaseModel, Field


class QuestionKind(StrEnum):
    coin = "coin"
    portfolio = "portfolio"
    market_overview = "market_overview"
    general = "general"


class Complexity(StrEnum):
    simple = "simple"
    moderate = "moderate"
    complex = "complex"


class AssistantState(TypedDict, total=False):
    question: str
    kind: QuestionKind
    complexity: Complexity
    symbol: str | None
    coin_context: dict
    market_context: dict
    sources: Annotated[list[str], add]
    messages: Annotated[list, add]
    iteration_count: int
    response: str


class ChatRequest(BaseModel):
    question: str = Field(min_length=1, max_length=2000)


class ChatResponse(BaseModel):
    response: str
    confidence: int = Field(ge=0, le=100)
    sources: list[str] = Field(default_factory=list)
    ai_available: bool = True
