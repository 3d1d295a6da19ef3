"""Per-document views aggregated from stored chunks."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class DocumentSummary(BaseModel):
    """One ingested document as seen through its chunk set."""

    file_id: str
    file_name: str
    uploaded_by: str
    chunk_count: int
    last_updated: datetime


class PreviewEntry(BaseModel):
    chunk_index: int
    content: str


class DocumentPreview(BaseModel):
    """The leading chunks of a document, shortened for display."""

    file_name: str
    preview: list[PreviewEntry] = Field(default_factory=list)
    total_chunks: int = 0
