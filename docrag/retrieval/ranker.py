"""Search ranker — full-text query over the chunk store + context assembly."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from docrag.config import Settings, get_settings
from docrag.exceptions import QueryRequired
from docrag.logger import get_logger
from docrag.models.chunk import ScoredChunk
from docrag.store.chunk_store import ChunkStore

logger = get_logger(__name__)

_TERM_RE = re.compile(r"\w+", re.UNICODE)


def build_match_expression(query: str) -> str:
    """Turn free text into an FTS5 expression: every word term quoted, OR-ed.

    Quoting keeps user punctuation (``?``, ``-``, ``:``) away from the FTS
    query parser. Returns ``""`` when the query holds no word terms.
    """
    terms = dict.fromkeys(t.lower() for t in _TERM_RE.findall(query))
    return " OR ".join(f'"{t}"' for t in terms)


@dataclass
class SearchResult:
    """Ordered hits for one query."""

    query: str
    hits: list[ScoredChunk] = field(default_factory=list)

    @property
    def context_text(self) -> str:
        """Assemble hits into a single labelled context string."""
        parts: list[str] = []
        for hit in self.hits:
            c = hit.chunk
            parts.append(f"[File: {c.file_name} | Chunk: {c.chunk_index}]\n{c.content}")
        return "\n\n---\n\n".join(parts)


class SearchRanker:
    """Rank stored chunks against a free-text query."""

    def __init__(self, store: ChunkStore, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self._store = store

    def search(self, query: str, limit: int | None = None) -> SearchResult:
        """Return at most ``limit`` hits, best first.

        Raises:
            QueryRequired: ``query`` is empty or whitespace.
        """
        query = (query or "").strip()
        if not query:
            raise QueryRequired()

        if limit is None:
            limit = self._settings.search_default_limit
        limit = max(limit, 0)

        match_expression = build_match_expression(query)
        if limit == 0 or not match_expression:
            return SearchResult(query=query)

        hits = self._store.search(match_expression, limit)

        logger.info(
            "Search complete",
            query=query[:80],
            limit=limit,
            hits=len(hits),
        )
        return SearchResult(query=query, hits=hits)
