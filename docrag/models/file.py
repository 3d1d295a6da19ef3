"""File records consumed from the external File collaborator."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class MediaType(str, Enum):
    PLAIN_TEXT = "text/plain"
    MARKDOWN = "text/markdown"
    PDF = "application/pdf"
    DOC = "application/msword"
    DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class FileRecord(BaseModel):
    """Read-only view of an uploaded file; the pipeline never mutates it."""

    file_id: str
    filename: str
    media_type: str
    byte_size: int = Field(default=0, ge=0)
    stored_path: str
    uploaded_by: str
