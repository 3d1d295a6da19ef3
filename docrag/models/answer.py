"""Pydantic models for composed answers."""

from __future__ import annotations

from pydantic import BaseModel, Field


class AnswerSource(BaseModel):
    """A cited chunk: enough to point at the source without a second lookup."""

    file_name: str
    chunk_index: int
    score: float
    content_excerpt: str


class AnswerResult(BaseModel):
    answer: str
    sources: list[AnswerSource] = Field(default_factory=list)
    question: str
    found_chunks: int = 0
    context_truncated: bool = False
