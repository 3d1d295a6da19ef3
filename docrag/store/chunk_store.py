"""Chunk store — SQLite table plus an FTS5 index over chunk content.

The FTS table is an external-content index kept in sync by triggers, so every
committed insert or delete is visible to the very next search.
"""

from __future__ import annotations

import json
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterator

from docrag.exceptions import NotFound, PersistenceFailure
from docrag.logger import get_logger
from docrag.models.chunk import Chunk, ScoredChunk
from docrag.models.document import DocumentSummary

logger = get_logger(__name__)

_CREATE_SCHEMA = """\
CREATE TABLE IF NOT EXISTS chunks (
    seq          INTEGER PRIMARY KEY,
    chunk_id     TEXT NOT NULL UNIQUE,
    file_id      TEXT NOT NULL,
    chunk_index  INTEGER NOT NULL,
    content      TEXT NOT NULL,
    embedding    TEXT,
    start_char   INTEGER NOT NULL,
    end_char     INTEGER NOT NULL,
    file_name    TEXT NOT NULL,
    uploaded_by  TEXT NOT NULL,
    chunk_size   INTEGER NOT NULL,
    overlap      INTEGER NOT NULL,
    created_at   TEXT NOT NULL,
    UNIQUE (file_id, chunk_index)
);

CREATE INDEX IF NOT EXISTS idx_chunks_file_name ON chunks(file_name);
CREATE INDEX IF NOT EXISTS idx_chunks_uploaded_by ON chunks(uploaded_by);

CREATE VIRTUAL TABLE IF NOT EXISTS chunks_fts USING fts5(
    content,
    content='chunks',
    content_rowid='seq',
    tokenize='porter unicode61'
);

CREATE TRIGGER IF NOT EXISTS chunks_ai AFTER INSERT ON chunks BEGIN
    INSERT INTO chunks_fts(rowid, content) VALUES (new.seq, new.content);
END;

CREATE TRIGGER IF NOT EXISTS chunks_ad AFTER DELETE ON chunks BEGIN
    INSERT INTO chunks_fts(chunks_fts, rowid, content) VALUES ('delete', old.seq, old.content);
END;
"""

_INSERT = """
INSERT INTO chunks (
    chunk_id, file_id, chunk_index, content, embedding, start_char, end_char,
    file_name, uploaded_by, chunk_size, overlap, created_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

_SELECT_COLUMNS = """
c.chunk_id, c.file_id, c.chunk_index, c.content, c.embedding, c.start_char,
c.end_char, c.file_name, c.uploaded_by, c.chunk_size, c.overlap, c.created_at
"""


def _row_to_chunk(row: sqlite3.Row) -> Chunk:
    embedding = row["embedding"]
    return Chunk(
        chunk_id=row["chunk_id"],
        file_id=row["file_id"],
        content=row["content"],
        embedding=json.loads(embedding) if embedding else None,
        chunk_index=row["chunk_index"],
        start_char=row["start_char"],
        end_char=row["end_char"],
        file_name=row["file_name"],
        uploaded_by=row["uploaded_by"],
        chunk_size=row["chunk_size"],
        overlap=row["overlap"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class ChunkStore:
    """SQLite-backed chunk persistence with full-text search."""

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._write_lock = threading.Lock()
        self._init_db()

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.executescript(_CREATE_SCHEMA)
        logger.debug("Chunk store initialised", path=self._db_path)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._db_path, timeout=30)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    # ── Write ────────────────────────────────────────────────────

    def save_all(self, file_id: str, chunks: list[Chunk]) -> list[Chunk]:
        """Persist a file's whole chunk set in one transaction.

        Assigns ``chunk_id`` and ``created_at``. Nothing is written if any
        chunk is rejected or the insert fails.
        """
        if not chunks:
            raise PersistenceFailure("Refusing to save an empty chunk set", {"file_id": file_id})

        foreign = [c.chunk_index for c in chunks if c.file_id != file_id]
        if foreign:
            raise PersistenceFailure(
                "Chunks belong to another file", {"file_id": file_id, "chunk_indexes": foreign}
            )

        indexes = [c.chunk_index for c in chunks]
        if indexes != list(range(len(chunks))):
            raise PersistenceFailure(
                "Chunk indexes must be contiguous from 0", {"file_id": file_id}
            )

        created_at = datetime.now(timezone.utc)
        committed = [
            c.model_copy(update={"chunk_id": uuid.uuid4().hex, "created_at": created_at})
            for c in chunks
        ]
        rows = [
            (
                c.chunk_id,
                c.file_id,
                c.chunk_index,
                c.content,
                json.dumps(c.embedding) if c.embedding is not None else None,
                c.start_char,
                c.end_char,
                c.file_name,
                c.uploaded_by,
                c.chunk_size,
                c.overlap,
                created_at.isoformat(),
            )
            for c in committed
        ]

        try:
            with self._write_lock, self._connect() as conn, conn:
                conn.executemany(_INSERT, rows)
        except sqlite3.Error as exc:
            logger.error("Chunk batch write failed", file_id=file_id, error=str(exc))
            raise PersistenceFailure(
                f"Failed to save chunks: {exc}", {"file_id": file_id, "count": len(rows)}
            ) from exc

        logger.info("Chunks stored", file_id=file_id, count=len(committed))
        return committed

    # ── Delete ───────────────────────────────────────────────────

    def delete_all_for_file(
        self,
        file_id: str,
        on_deleted: Callable[[int], None] | None = None,
    ) -> int:
        """Remove every chunk owned by ``file_id``; returns the number removed.

        ``on_deleted`` runs inside the transaction, before commit. If it
        raises, the deletion is rolled back and the exception propagates.
        """
        try:
            with self._write_lock, self._connect() as conn, conn:
                deleted = conn.execute("DELETE FROM chunks WHERE file_id = ?", (file_id,)).rowcount
                if on_deleted is not None:
                    on_deleted(deleted)
        except sqlite3.Error as exc:
            logger.error("Chunk delete failed", file_id=file_id, error=str(exc))
            raise PersistenceFailure(
                f"Failed to delete chunks: {exc}", {"file_id": file_id}
            ) from exc

        logger.info("Deleted chunks for file", file_id=file_id, count=deleted)
        return deleted

    # ── Read ─────────────────────────────────────────────────────

    def count_for_file(self, file_id: str) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) FROM chunks WHERE file_id = ?", (file_id,)).fetchone()
        return row[0]

    def count_for_file_name(self, file_name: str) -> int:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM chunks WHERE file_name = ?", (file_name,)
            ).fetchone()
        return row[0]

    def get(self, chunk_id: str) -> Chunk:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_SELECT_COLUMNS} FROM chunks c WHERE c.chunk_id = ?", (chunk_id,)
            ).fetchone()
        if row is None:
            raise NotFound(f"Chunk not found: {chunk_id}", {"chunk_id": chunk_id})
        return _row_to_chunk(row)

    def find_by_file(self, file_id: str, page: int = 1, page_size: int = 10) -> list[Chunk]:
        """Return one page of a file's chunks ordered by ``chunk_index``."""
        if page < 1 or page_size < 1:
            raise ValueError(f"page and page_size must be >= 1, got {page}/{page_size}")
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_SELECT_COLUMNS} FROM chunks c WHERE c.file_id = ? "
                "ORDER BY c.chunk_index LIMIT ? OFFSET ?",
                (file_id, page_size, (page - 1) * page_size),
            ).fetchall()
        return [_row_to_chunk(r) for r in rows]

    def find_by_file_name(self, file_name: str, limit: int) -> list[Chunk]:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_SELECT_COLUMNS} FROM chunks c WHERE c.file_name = ? "
                "ORDER BY c.chunk_index, c.seq LIMIT ?",
                (file_name, max(limit, 0)),
            ).fetchall()
        return [_row_to_chunk(r) for r in rows]

    def list_documents(self) -> list[DocumentSummary]:
        """One summary per file that owns chunks, most recently stored first."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT file_id,
                       MIN(file_name)   AS file_name,
                       MIN(uploaded_by) AS uploaded_by,
                       COUNT(*)         AS chunk_count,
                       MAX(created_at)  AS last_updated
                FROM chunks
                GROUP BY file_id
                ORDER BY last_updated DESC, file_id
                """
            ).fetchall()
        return [
            DocumentSummary(
                file_id=r["file_id"],
                file_name=r["file_name"],
                uploaded_by=r["uploaded_by"],
                chunk_count=r["chunk_count"],
                last_updated=datetime.fromisoformat(r["last_updated"]),
            )
            for r in rows
        ]

    def search(self, match_expression: str, limit: int) -> list[ScoredChunk]:
        """Run an FTS5 MATCH and return hits by descending score.

        The score is the negated bm25 rank, so better matches score higher and
        every match scores above zero. Ties fall back to ``chunk_index`` and
        then insertion order.
        """
        if limit <= 0:
            return []
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    f"""
                    SELECT {_SELECT_COLUMNS}, -bm25(chunks_fts) AS score
                    FROM chunks_fts
                    JOIN chunks c ON c.seq = chunks_fts.rowid
                    WHERE chunks_fts MATCH ?
                    ORDER BY score DESC, c.chunk_index ASC, c.seq ASC
                    LIMIT ?
                    """,
                    (match_expression, limit),
                ).fetchall()
        except sqlite3.Error as exc:
            logger.error("Chunk search failed", query=match_expression[:80], error=str(exc))
            raise PersistenceFailure(
                f"Search failed: {exc}", {"match": match_expression}
            ) from exc
        return [ScoredChunk(chunk=_row_to_chunk(r), score=r["score"]) for r in rows]

    @property
    def chunk_count(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM chunks").fetchone()[0]
