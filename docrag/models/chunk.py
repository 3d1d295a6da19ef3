"""Pydantic models for text chunks."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class SplitChunk(BaseModel):
    """A positioned slice of extracted text, before file metadata is attached."""

    chunk_index: int = Field(ge=0)
    start_char: int = Field(ge=0)
    end_char: int
    content: str = Field(min_length=1)

    @model_validator(mode="after")
    def _check_offsets(self) -> SplitChunk:
        if self.end_char <= self.start_char:
            raise ValueError("end_char must be greater than start_char")
        return self


class Chunk(BaseModel):
    """A persisted chunk owned by one file.

    ``chunk_id`` and ``created_at`` are assigned by the store on write.
    """

    chunk_id: str | None = None
    file_id: str
    content: str = Field(min_length=1)
    embedding: list[float] | None = None
    chunk_index: int = Field(ge=0)
    start_char: int = Field(ge=0)
    end_char: int
    file_name: str
    uploaded_by: str
    chunk_size: int = 1000
    overlap: int = 200
    created_at: datetime | None = None

    @classmethod
    def from_split(
        cls,
        split: SplitChunk,
        *,
        file_id: str,
        file_name: str,
        uploaded_by: str,
        chunk_size: int,
        overlap: int,
    ) -> Chunk:
        return cls(
            file_id=file_id,
            content=split.content,
            chunk_index=split.chunk_index,
            start_char=split.start_char,
            end_char=split.end_char,
            file_name=file_name,
            uploaded_by=uploaded_by,
            chunk_size=chunk_size,
            overlap=overlap,
        )


class ScoredChunk(BaseModel):
    """A chunk returned by a search together with its relevance score."""

    chunk: Chunk
    score: float


class Pagination(BaseModel):
    current: int
    total_pages: int
    count: int


class ChunkPage(BaseModel):
    """One page of a file's chunks, ordered by chunk index."""

    chunks: list[Chunk] = Field(default_factory=list)
    pagination: Pagination
