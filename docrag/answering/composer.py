"""Answer composer — ranked chunks → bounded context → Answering collaborator."""

from __future__ import annotations

from docrag.answering.answerers import Answerer, get_answerer
from docrag.config import Settings, get_settings
from docrag.exceptions import QuestionRequired
from docrag.logger import get_logger
from docrag.models.answer import AnswerResult, AnswerSource
from docrag.models.chunk import ScoredChunk
from docrag.retrieval.ranker import SearchRanker

logger = get_logger(__name__)

NO_INFORMATION_ANSWER = (
    "Sorry, no relevant information was found in the uploaded documents."
)


def excerpt(text: str, max_chars: int) -> str:
    """Leading ``max_chars`` characters, with an ellipsis when shortened."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."


def build_context(hits: list[ScoredChunk], char_cap: int) -> tuple[list[str], bool]:
    """Label hits by rank and cap their combined length.

    Entries are kept in rank order; the entry that crosses ``char_cap`` is cut
    to the remaining characters and everything after it is left out. Returns
    the entries and whether anything was cut.
    """
    context: list[str] = []
    used = 0
    for rank, hit in enumerate(hits, start=1):
        entry = f"[Document {rank}] {hit.chunk.content}"
        remaining = char_cap - used
        if len(entry) > remaining:
            if remaining > 0:
                context.append(entry[:remaining])
            return context, True
        context.append(entry)
        used += len(entry)
    return context, False


class AnswerComposer:
    """Answers questions from the top-ranked chunks."""

    def __init__(
        self,
        ranker: SearchRanker,
        answerer: Answerer | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._ranker = ranker
        self._answerer = answerer or get_answerer(self._settings)

    def answer(self, question: str, max_chunks: int | None = None) -> AnswerResult:
        """Retrieve up to ``max_chunks`` chunks and hand them to the answerer.

        Raises:
            QuestionRequired: ``question`` is empty or whitespace.
        """
        question = (question or "").strip()
        if not question:
            raise QuestionRequired()

        if max_chunks is None:
            max_chunks = self._settings.answer_max_chunks

        result = self._ranker.search(question, limit=max_chunks)
        if not result.hits:
            logger.info("No chunks found for question", question=question[:80])
            return AnswerResult(
                answer=NO_INFORMATION_ANSWER,
                sources=[],
                question=question,
                found_chunks=0,
            )

        context, truncated = build_context(result.hits, self._settings.answer_context_char_cap)
        if truncated:
            logger.warning(
                "Answer context truncated",
                cap=self._settings.answer_context_char_cap,
                kept_entries=len(context),
                hits=len(result.hits),
            )

        answer_text = self._answerer.answer(question, context)

        sources = [
            AnswerSource(
                file_name=hit.chunk.file_name,
                chunk_index=hit.chunk.chunk_index,
                score=hit.score,
                content_excerpt=excerpt(hit.chunk.content, self._settings.excerpt_chars),
            )
            for hit in result.hits
        ]

        logger.info(
            "Answer composed",
            question=question[:80],
            found_chunks=len(result.hits),
            truncated=truncated,
        )
        return AnswerResult(
            answer=answer_text,
            sources=sources,
            question=question,
            found_chunks=len(result.hits),
            context_truncated=truncated,
        )
