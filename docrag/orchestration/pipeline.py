"""Document pipeline: Ingest (Extract → Split → Persist), delete, list, search, answer.

Every operation on a single file id runs under that file's lock, so a delete
issued while the same file is being ingested waits for the ingestion to finish
and then removes the chunks it wrote. Reads take no locks.
"""

from __future__ import annotations

import math
import threading
import time
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Iterator, Protocol

from pydantic import BaseModel, Field

from docrag.answering.answerers import Answerer
from docrag.answering.composer import AnswerComposer, excerpt
from docrag.config import Settings, get_settings
from docrag.exceptions import (
    AlreadyIngested,
    DocRagError,
    EmptyDocument,
    NotFound,
    PersistenceFailure,
    SplitFailure,
)
from docrag.ingestion.extractor_factory import extract_text
from docrag.logger import get_logger
from docrag.models.answer import AnswerResult
from docrag.models.chunk import Chunk, ChunkPage, Pagination
from docrag.models.document import DocumentPreview, DocumentSummary, PreviewEntry
from docrag.models.file import FileRecord
from docrag.preprocessing.chunker import ChunkSplitter
from docrag.retrieval.ranker import SearchRanker, SearchResult
from docrag.store.chunk_store import ChunkStore

logger = get_logger(__name__)


class FileRegistry(Protocol):
    """The external File collaborator, as far as this pipeline needs it."""

    def remove(self, file_id: str) -> None: ...


class PipelineStage(str, Enum):
    PENDING = "pending"
    EXTRACTION = "extraction"
    SPLITTING = "splitting"
    PERSISTENCE = "persistence"
    COMPLETED = "completed"
    FAILED = "failed"


class IngestionState(BaseModel):
    """Tracks one ingestion run."""

    file_id: str = ""
    filename: str = ""
    stage: PipelineStage = PipelineStage.PENDING
    chunk_count: int = 0
    errors: list[str] = Field(default_factory=list)
    stage_times: dict[str, float] = Field(default_factory=dict)


class _FileLocks:
    """One lock per file id, dropped once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, tuple[threading.Lock, int]] = {}

    @contextmanager
    def hold(self, file_id: str) -> Iterator[None]:
        with self._guard:
            lock, users = self._locks.get(file_id, (None, 0))
            lock = lock or threading.Lock()
            self._locks[file_id] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._guard:
                lock, users = self._locks[file_id]
                if users == 1:
                    del self._locks[file_id]
                else:
                    self._locks[file_id] = (lock, users - 1)


class DocumentPipeline:
    """Wires extractor, splitter, store, ranker and composer together."""

    def __init__(
        self,
        settings: Settings | None = None,
        store: ChunkStore | None = None,
        answerer: Answerer | None = None,
        file_registry: FileRegistry | None = None,
        on_progress: Callable[[IngestionState], None] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._store = store or ChunkStore(self._settings.db_path)
        self._splitter = ChunkSplitter(settings=self._settings)
        self._ranker = SearchRanker(self._store, self._settings)
        self._composer = AnswerComposer(self._ranker, answerer, self._settings)
        self._file_registry = file_registry
        self._on_progress = on_progress
        self._locks = _FileLocks()

    @property
    def store(self) -> ChunkStore:
        return self._store

    def _emit(self, state: IngestionState, stage: PipelineStage) -> None:
        state.stage = stage
        if self._on_progress:
            self._on_progress(state)

    # ── Ingestion ────────────────────────────────────────────────

    def ingest(self, file: FileRecord) -> list[Chunk]:
        """Extract, split and persist one uploaded file.

        On any failure nothing is left in the store, the file record is
        removed through the file registry (when one is configured) and the
        error is re-raised.

        Raises:
            AlreadyIngested: the file id already owns chunks (no rollback).
            UnsupportedFormat, ExtractionFailure, EmptyDocument, SplitFailure,
            PersistenceFailure: ingestion aborted and rolled back.
        """
        state = IngestionState(file_id=file.file_id, filename=file.filename)

        with self._locks.hold(file.file_id):
            existing = self._store.count_for_file(file.file_id)
            if existing:
                raise AlreadyIngested(file.file_id, existing)

            logger.info(
                "Ingesting file",
                file_id=file.file_id,
                filename=file.filename,
                media_type=file.media_type,
                uploaded_by=file.uploaded_by,
            )
            try:
                committed = self._run_ingestion(file, state)
            except Exception as exc:
                state.errors.append(str(exc))
                self._emit(state, PipelineStage.FAILED)
                logger.error(
                    "Ingestion failed",
                    file_id=file.file_id,
                    stage=state.stage.value,
                    error=str(exc),
                )
                self._rollback_file(file.file_id)
                raise

        state.chunk_count = len(committed)
        self._emit(state, PipelineStage.COMPLETED)
        logger.info(
            "Ingestion complete",
            file_id=file.file_id,
            chunks=len(committed),
            stage_times=state.stage_times,
        )
        return committed

    def _run_ingestion(self, file: FileRecord, state: IngestionState) -> list[Chunk]:
        # ── Stage 1: Extraction ──────────────────────────────────
        self._emit(state, PipelineStage.EXTRACTION)
        t0 = time.time()
        text = extract_text(file.stored_path, file.media_type)
        state.stage_times["extraction"] = time.time() - t0
        if not text.strip():
            raise EmptyDocument(
                "No text could be extracted from the file",
                {"file_id": file.file_id, "filename": file.filename},
            )

        # ── Stage 2: Splitting ───────────────────────────────────
        self._emit(state, PipelineStage.SPLITTING)
        t0 = time.time()
        splits = self._splitter.split(text)
        state.stage_times["splitting"] = time.time() - t0
        if not splits:
            raise SplitFailure(
                "Splitter produced no chunks from non-empty text",
                {"file_id": file.file_id, "chars": len(text)},
            )

        # ── Stage 3: Persistence ─────────────────────────────────
        self._emit(state, PipelineStage.PERSISTENCE)
        t0 = time.time()
        records = [
            Chunk.from_split(
                split,
                file_id=file.file_id,
                file_name=file.filename,
                uploaded_by=file.uploaded_by,
                chunk_size=self._splitter.chunk_size,
                overlap=self._splitter.overlap,
            )
            for split in splits
        ]
        try:
            committed = self._store.save_all(file.file_id, records)
        except PersistenceFailure:
            self._discard_partial(file.file_id)
            raise
        state.stage_times["persistence"] = time.time() - t0
        return committed

    def _discard_partial(self, file_id: str) -> None:
        """Remove whatever a failed batch write may have left behind."""
        try:
            removed = self._store.delete_all_for_file(file_id)
        except DocRagError as exc:
            logger.error("Cleanup after failed write also failed", file_id=file_id, error=str(exc))
            return
        if removed:
            logger.warning("Removed partial chunk set", file_id=file_id, count=removed)

    def _rollback_file(self, file_id: str) -> None:
        if self._file_registry is None:
            return
        try:
            self._file_registry.remove(file_id)
        except Exception as exc:
            logger.error("File record rollback failed", file_id=file_id, error=str(exc))
        else:
            logger.info("File record rolled back", file_id=file_id)

    # ── Delete ───────────────────────────────────────────────────

    def delete_file_chunks(self, file_id: str) -> int:
        """Delete every chunk of ``file_id``; idempotent, returns the count removed."""
        with self._locks.hold(file_id):
            return self._store.delete_all_for_file(file_id)

    def delete_file(self, file_id: str) -> int:
        """Delete a file's chunks and its file record as one operation.

        The file record is removed inside the chunk-delete transaction; if the
        registry raises, the chunks are restored and the error propagates.
        """
        with self._locks.hold(file_id):
            if self._file_registry is None:
                logger.warning("No file registry configured; deleting chunks only", file_id=file_id)
                return self._store.delete_all_for_file(file_id)

            registry = self._file_registry
            deleted = self._store.delete_all_for_file(
                file_id, on_deleted=lambda _count: registry.remove(file_id)
            )
        logger.info("File deleted", file_id=file_id, chunks=deleted)
        return deleted

    # ── Read ─────────────────────────────────────────────────────

    def list_chunks(self, file_id: str, page: int = 1, page_size: int = 10) -> ChunkPage:
        page = max(page, 1)
        page_size = max(page_size, 1)
        total = self._store.count_for_file(file_id)
        chunks = self._store.find_by_file(file_id, page, page_size)
        return ChunkPage(
            chunks=chunks,
            pagination=Pagination(
                current=page,
                total_pages=math.ceil(total / page_size),
                count=total,
            ),
        )

    def get_chunk(self, chunk_id: str) -> Chunk:
        return self._store.get(chunk_id)

    def search(self, query: str, limit: int | None = None) -> SearchResult:
        return self._ranker.search(query, limit)

    def answer_question(self, question: str, max_chunks: int | None = None) -> AnswerResult:
        return self._composer.answer(question, max_chunks)

    def list_documents(self) -> list[DocumentSummary]:
        return self._store.list_documents()

    def preview_document(self, file_name: str, limit: int = 3) -> DocumentPreview:
        """First ``limit`` chunks of a document, shortened for display.

        Raises:
            NotFound: no stored chunk carries ``file_name``.
        """
        chunks = self._store.find_by_file_name(file_name, limit)
        if not chunks:
            raise NotFound(f"Document not found: {file_name}", {"file_name": file_name})
        return DocumentPreview(
            file_name=file_name,
            preview=[
                PreviewEntry(
                    chunk_index=c.chunk_index,
                    content=excerpt(c.content, self._settings.preview_chars),
                )
                for c in chunks
            ],
            total_chunks=self._store.count_for_file_name(file_name),
        )
