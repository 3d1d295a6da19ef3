"""Pydantic response/request models for the API — provides typed contracts + OpenAPI docs.

Wire fields are camelCase; request bodies accept either spelling.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from docrag.models.answer import AnswerResult
from docrag.models.chunk import Chunk, ChunkPage


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Health ───────────────────────────────────────────────────────────────────


class HealthResponse(WireModel):
    status: str
    environment: str


# ── Chunks ───────────────────────────────────────────────────────────────────


class ChunkOut(WireModel):
    chunk_id: str | None = None
    file_id: str
    chunk_index: int
    start_char: int
    end_char: int
    file_name: str
    uploaded_by: str
    content: str
    score: float | None = None
    created_at: datetime | None = None

    @classmethod
    def from_chunk(cls, chunk: Chunk, score: float | None = None) -> ChunkOut:
        return cls(
            chunk_id=chunk.chunk_id,
            file_id=chunk.file_id,
            chunk_index=chunk.chunk_index,
            start_char=chunk.start_char,
            end_char=chunk.end_char,
            file_name=chunk.file_name,
            uploaded_by=chunk.uploaded_by,
            content=chunk.content,
            score=score,
            created_at=chunk.created_at,
        )


class PaginationOut(WireModel):
    current: int
    total_pages: int
    count: int


class ChunkListResponse(WireModel):
    chunks: list[ChunkOut]
    pagination: PaginationOut

    @classmethod
    def from_page(cls, page: ChunkPage) -> ChunkListResponse:
        return cls(
            chunks=[ChunkOut.from_chunk(c) for c in page.chunks],
            pagination=PaginationOut(**page.pagination.model_dump()),
        )


# ── Files ────────────────────────────────────────────────────────────────────


class IngestRequest(WireModel):
    file_id: str
    filename: str
    media_type: str
    byte_size: int = Field(default=0, ge=0)
    stored_path: str
    uploaded_by: str


class IngestResponse(WireModel):
    file_id: str
    filename: str
    chunk_count: int
    chunks: list[ChunkOut]


class DeleteResponse(WireModel):
    file_id: str
    deleted_count: int


# ── Search ───────────────────────────────────────────────────────────────────


class SearchResponse(WireModel):
    query: str
    results: list[ChunkOut]


# ── Answering ────────────────────────────────────────────────────────────────


class AskRequest(WireModel):
    question: str = ""
    max_chunks: int | None = None


class SourceOut(WireModel):
    file_name: str
    chunk_index: int
    score: float
    content_excerpt: str


class AskResponse(WireModel):
    answer: str
    sources: list[SourceOut]
    question: str
    found_chunks: int
    context_truncated: bool = False

    @classmethod
    def from_result(cls, result: AnswerResult) -> AskResponse:
        return cls(
            answer=result.answer,
            sources=[SourceOut(**s.model_dump()) for s in result.sources],
            question=result.question,
            found_chunks=result.found_chunks,
            context_truncated=result.context_truncated,
        )


# ── Documents ────────────────────────────────────────────────────────────────


class DocumentOut(WireModel):
    file_id: str
    file_name: str
    uploaded_by: str
    chunk_count: int
    last_updated: datetime


class DocumentListResponse(WireModel):
    documents: list[DocumentOut]
    total_documents: int


class PreviewEntryOut(WireModel):
    chunk_index: int
    content: str


class PreviewResponse(WireModel):
    file_name: str
    preview: list[PreviewEntryOut]
    total_chunks: int


# ── Errors ───────────────────────────────────────────────────────────────────


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: dict = Field(default_factory=dict)
