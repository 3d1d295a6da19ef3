"""Answering collaborators: turn a question plus ranked context into text.

``TemplateAnswerer`` is the built-in placeholder; ``LLMAnswerer`` runs a
LangChain chain against any chat model from the provider factory.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import StrOutputParser

from docrag.answering.prompts import ANSWER_PROMPT
from docrag.config import Settings, get_settings
from docrag.logger import get_logger

logger = get_logger(__name__)


@runtime_checkable
class Answerer(Protocol):
    def answer(self, question: str, context: list[str]) -> str: ...


class TemplateAnswerer:
    """Echoes a templated summary of the retrieved context."""

    def __init__(self, summary_chars: int = 500) -> None:
        self._summary_chars = summary_chars

    def answer(self, question: str, context: list[str]) -> str:
        joined = "\n\n".join(context)
        summary = joined
        if len(joined) > self._summary_chars:
            summary = joined[: self._summary_chars] + "..."

        return (
            f'Answer to "{question}".\n\n'
            f"Found {len(context)} relevant passage(s) in the uploaded documents.\n\n"
            f"Relevant content:\n{summary}\n\n"
            "See the sources below for more detail."
        )


class LLMAnswerer:
    """LCEL chain: prompt → chat model → plain string."""

    def __init__(self, llm: BaseChatModel) -> None:
        self._chain = ANSWER_PROMPT | llm | StrOutputParser()

    def answer(self, question: str, context: list[str]) -> str:
        logger.debug("Invoking answer chain", context_parts=len(context))
        return self._chain.invoke(
            {"question": question, "context": "\n\n".join(context)}
        )


def get_answerer(settings: Settings | None = None) -> Answerer:
    """Return the configured Answering collaborator."""
    settings = settings or get_settings()

    match settings.answerer:
        case "template":
            return TemplateAnswerer(summary_chars=settings.answer_summary_chars)
        case "llm":
            from docrag.llm.factory import get_llm

            return LLMAnswerer(get_llm(settings))
        case _:
            raise ValueError(f"Unsupported answerer: {settings.answerer}")
