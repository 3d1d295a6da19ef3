"""API v1 router — all /api/v1/* endpoints.

Callers are expected to be authenticated and authorised upstream; the
``uploadedBy`` of an ingest request is taken as given. Endpoints are plain
``def`` so FastAPI runs each request in its own worker thread.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from docrag.api.schemas import (
    AskRequest,
    AskResponse,
    ChunkListResponse,
    ChunkOut,
    DeleteResponse,
    DocumentListResponse,
    DocumentOut,
    IngestRequest,
    IngestResponse,
    PreviewEntryOut,
    PreviewResponse,
    SearchResponse,
)
from docrag.config import Settings, get_settings
from docrag.exceptions import UnsupportedFormat
from docrag.ingestion.extractor_factory import is_supported_media_type, normalize_media_type
from docrag.logger import get_logger
from docrag.models.file import FileRecord
from docrag.orchestration.pipeline import DocumentPipeline, FileRegistry

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["v1"])

_pipeline: DocumentPipeline | None = None


def configure_pipeline(
    settings: Settings | None = None,
    file_registry: FileRegistry | None = None,
) -> DocumentPipeline:
    """Build and install the process-wide pipeline.

    Call this at startup with the file service's registry; without one,
    ``DELETE /files/{id}`` and ingestion rollback only touch chunks.
    """
    global _pipeline
    settings = settings or get_settings()
    settings.ensure_dirs()
    _pipeline = DocumentPipeline(settings, file_registry=file_registry)
    return _pipeline


def get_pipeline() -> DocumentPipeline:
    """Process-wide pipeline, built without a file registry on first use."""
    if _pipeline is None:
        return configure_pipeline()
    return _pipeline


# ── Files ────────────────────────────────────────────────────────────────────


@router.post("/files/ingest", response_model=IngestResponse)
def ingest_file(body: IngestRequest, pipeline: DocumentPipeline = Depends(get_pipeline)):
    """Extract, split and index an already-stored file."""
    if not is_supported_media_type(body.media_type):
        raise UnsupportedFormat(normalize_media_type(body.media_type))

    chunks = pipeline.ingest(FileRecord(**body.model_dump()))
    return IngestResponse(
        file_id=body.file_id,
        filename=body.filename,
        chunk_count=len(chunks),
        chunks=[ChunkOut.from_chunk(c) for c in chunks],
    )


@router.delete("/files/{file_id}", response_model=DeleteResponse)
def delete_file(file_id: str, pipeline: DocumentPipeline = Depends(get_pipeline)):
    """Delete a file record together with its chunks."""
    deleted = pipeline.delete_file(file_id)
    return DeleteResponse(file_id=file_id, deleted_count=deleted)


@router.delete("/files/{file_id}/chunks", response_model=DeleteResponse)
def delete_file_chunks(file_id: str, pipeline: DocumentPipeline = Depends(get_pipeline)):
    deleted = pipeline.delete_file_chunks(file_id)
    return DeleteResponse(file_id=file_id, deleted_count=deleted)


@router.get("/files/{file_id}/chunks", response_model=ChunkListResponse)
def list_file_chunks(
    file_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    pipeline: DocumentPipeline = Depends(get_pipeline),
):
    """List a file's chunks in chunk-index order."""
    return ChunkListResponse.from_page(pipeline.list_chunks(file_id, page, limit))


@router.get("/chunks/{chunk_id}", response_model=ChunkOut)
def get_chunk(chunk_id: str, pipeline: DocumentPipeline = Depends(get_pipeline)):
    return ChunkOut.from_chunk(pipeline.get_chunk(chunk_id))


# ── Search ───────────────────────────────────────────────────────────────────


@router.get("/search", response_model=SearchResponse)
def search(
    query: str = "",
    limit: int | None = None,
    pipeline: DocumentPipeline = Depends(get_pipeline),
):
    """Full-text search over all chunks."""
    result = pipeline.search(query, limit)
    return SearchResponse(
        query=result.query,
        results=[ChunkOut.from_chunk(h.chunk, h.score) for h in result.hits],
    )


# ── Question answering ───────────────────────────────────────────────────────


@router.post("/rag/ask", response_model=AskResponse)
def ask(body: AskRequest, pipeline: DocumentPipeline = Depends(get_pipeline)):
    """Answer a question from the uploaded documents."""
    return AskResponse.from_result(pipeline.answer_question(body.question, body.max_chunks))


@router.get("/rag/documents", response_model=DocumentListResponse)
def list_documents(pipeline: DocumentPipeline = Depends(get_pipeline)):
    """Documents available for answering, most recent first."""
    documents = [DocumentOut(**d.model_dump()) for d in pipeline.list_documents()]
    return DocumentListResponse(documents=documents, total_documents=len(documents))


@router.get("/rag/documents/{file_name}/preview", response_model=PreviewResponse)
def preview_document(
    file_name: str,
    limit: int = Query(3, ge=1, le=20),
    pipeline: DocumentPipeline = Depends(get_pipeline),
):
    preview = pipeline.preview_document(file_name, limit)
    return PreviewResponse(
        file_name=preview.file_name,
        preview=[PreviewEntryOut(**p.model_dump()) for p in preview.preview],
        total_chunks=preview.total_chunks,
    )
