"""Chat model construction for the assistant, analysis and simulator features.

Gemini is the default provider; OpenAI and Anthropic are accepted so the
assistant can run against whichever key is configured.
"""

from enum import StrEnum

import structlog
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from cryptotrend.config import settings
from cryptotrend.exceptions import AppError

logger = structlog.get_logger()


class LLMProvider(StrEnum):
    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


def _api_key(provider: LLMProvider) -> str:
    return {
        LLMProvider.GEMINI: settings.gemini_api_key,
        LLMProvider.OPENAI: settings.openai_api_key,
        LLMProvider.ANTHROPIC: settings.anthropic_api_key,
    }[provider]


class LLMFactory:
    @staticmethod
    def create(
        provider: str | None = None,
        model: str | None = None,
        **kwargs: object,
    ) -> BaseChatModel:
        try:
            provider = LLMProvider(provider or settings.llm_provider)
        except ValueError:
            raise AppError(f"Unknown LLM provider: '{provider}'", code="LLM_CONFIG_ERROR") from None

        api_key = _api_key(provider)
        if not api_key:
            raise AppError(f"No API key configured for {provider}", code="LLM_CONFIG_ERROR")

        model = model or settings.llm_model
        kwargs.setdefault("temperature", settings.llm_temperature)
        match provider:
            case LLMProvider.GEMINI:
                return ChatGoogleGenerativeAI(model=model, google_api_key=api_key, **kwargs)  # type: ignore[arg-type]
            case LLMProvider.OPENAI:
                return ChatOpenAI(model=model, api_key=api_key, **kwargs)  # type: ignore[arg-type]
            case LLMProvider.ANTHROPIC:
                return ChatAnthropic(model=model, api_key=api_key, **kwargs)  # type: ignore[arg-type]

    @staticmethod
    def try_create(**kwargs: object) -> BaseChatModel | None:
        """Like ``create`` but returns None when the model cannot be configured.

        Callers fall back to rule-based output in that case.
        """
        try:
            return LLMFactory.create(**kwargs)  # type: ignore[arg-type]
        except AppError as exc:
            logger.warning("llm_unavailable", reason=exc.message)
            return None
