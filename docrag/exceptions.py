"""Exception hierarchy for the ingestion and retrieval core.

Every error carries a human-readable message plus a ``details`` dict that is
passed straight into structured log events and API error bodies.
"""

from __future__ import annotations

from typing import Any


class DocRagError(Exception):
    """Base exception for all docrag errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# ── Ingestion ────────────────────────────────────────────────────────────────


class UnsupportedFormat(DocRagError):
    """No extractor is registered for the declared media type."""

    def __init__(self, media_type: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["media_type"] = media_type
        self.media_type = media_type
        super().__init__(f"Unsupported media type: {media_type}", details)


class ExtractionFailure(DocRagError):
    """The file could not be read or parsed."""


class EmptyDocument(DocRagError):
    """Extraction succeeded but produced no usable text."""


class SplitFailure(DocRagError):
    """The splitter produced no chunks from non-empty text."""


class PersistenceFailure(DocRagError):
    """A chunk store read or write failed."""


class AlreadyIngested(DocRagError):
    """The file already owns a chunk set."""

    def __init__(self, file_id: str, chunk_count: int) -> None:
        super().__init__(
            f"File already ingested: {file_id}",
            {"file_id": file_id, "chunk_count": chunk_count},
        )


# ── Lookup / query ───────────────────────────────────────────────────────────


class NotFound(DocRagError):
    """A chunk or file could not be found."""


class QueryRequired(DocRagError):
    """Search was called with a blank query."""

    def __init__(self) -> None:
        super().__init__("Query required")


class QuestionRequired(DocRagError):
    """Answering was called with a blank question."""

    def __init__(self) -> None:
        super().__init__("Question required")
