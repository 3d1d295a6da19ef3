"""Test configuration and shared fixtures."""

import os
import sys
from pathlib import Path

import pytest

# Ensure the project root is on PYTHONPATH
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_PROJECT_ROOT))

# Set test environment variables before anything else imports config
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("ANSWERER", "template")

from docrag.config import Settings  # noqa: E402
from docrag.models.file import FileRecord, MediaType  # noqa: E402
from docrag.store.chunk_store import ChunkStore  # noqa: E402


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(db_path=str(tmp_path / "db" / "chunks.db"), answerer="template")


@pytest.fixture
def store(settings) -> ChunkStore:
    return ChunkStore(settings.db_path)


@pytest.fixture
def make_file(tmp_path):
    """Write ``text`` to disk and return a matching FileRecord."""

    def _make(
        text: str,
        file_id: str = "file-a",
        filename: str = "a.txt",
        media_type: str = MediaType.PLAIN_TEXT.value,
        uploaded_by: str = "admin@example.com",
    ) -> FileRecord:
        path = tmp_path / "uploads" / f"{file_id}_{filename}"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return FileRecord(
            file_id=file_id,
            filename=filename,
            media_type=media_type,
            byte_size=path.stat().st_size,
            stored_path=str(path),
            uploaded_by=uploaded_by,
        )

    return _make
