"""LLM provider factory — hot-swap via config, zero code changes.

Supported LLM providers:  google_genai | openai | anthropic | ollama

Provider packages are optional and imported only when selected.
"""

from __future__ import annotations

from langchain_core.language_models import BaseChatModel

from docrag.config import Settings, get_settings
from docrag.logger import get_logger

logger = get_logger(__name__)


def get_llm(settings: Settings | None = None) -> BaseChatModel:
    """Return a LangChain ChatModel based on config. Provider-agnostic."""
    settings = settings or get_settings()
    provider = settings.llm_provider

    logger.info(
        "Initialising LLM",
        provider=provider,
        model=settings.llm_model,
    )

    match provider:
        case "google_genai":
            from langchain_google_genai import ChatGoogleGenerativeAI

            return ChatGoogleGenerativeAI(
                model=settings.llm_model,
                google_api_key=settings.google_api_key,
                temperature=settings.llm_temperature,
                max_output_tokens=settings.llm_max_tokens,
            )

        case "openai":
            from langchain_openai import ChatOpenAI

            return ChatOpenAI(
                model=settings.llm_model,
                api_key=settings.openai_api_key,
                temperature=settings.llm_temperature,
                max_tokens=settings.llm_max_tokens,
            )

        case "anthropic":
            from langchain_anthropic import ChatAnthropic

            return ChatAnthropic(
                model=settings.llm_model,
                api_key=settings.anthropic_api_key,
                temperature=settings.llm_temperature,
                max_tokens=settings.llm_max_tokens,
            )

        case "ollama":
            from langchain_ollama import ChatOllama

            return ChatOllama(
                model=settings.llm_model,
                temperature=settings.llm_temperature,
            )

        case _:
            raise ValueError(f"Unsupported LLM provider: {provider}")
