"""Extractor factory — routes files to the correct format-specific extractor.

Routing is by declared media type, not by file extension: the File
collaborator stores uploads under opaque names.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from docrag.exceptions import DocRagError, ExtractionFailure, UnsupportedFormat
from docrag.ingestion.docx_extractor import extract_docx
from docrag.ingestion.pdf_extractor import extract_pdf
from docrag.logger import get_logger
from docrag.models.file import MediaType

logger = get_logger(__name__)


def extract_plain(file_path: str | Path) -> str:
    """Read a plain-text or markdown file verbatim."""
    file_path = Path(file_path)
    try:
        return file_path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ExtractionFailure(
            f"File is not valid UTF-8: {exc}", {"path": str(file_path)}
        ) from exc


SUPPORTED_MEDIA_TYPES: frozenset[MediaType] = frozenset(MediaType)

# Legacy DOC is accepted at upload but has no extractor yet.
_EXTRACTOR_MAP: dict[MediaType, Callable[[Path], str]] = {
    MediaType.PLAIN_TEXT: extract_plain,
    MediaType.MARKDOWN: extract_plain,
    MediaType.PDF: extract_pdf,
    MediaType.DOCX: extract_docx,
}


def normalize_media_type(media_type: str) -> str:
    """Lower-case and drop parameters: ``Text/Plain; charset=UTF-8`` -> ``text/plain``."""
    return media_type.split(";", 1)[0].strip().lower()


def detect_media_type(media_type: str) -> MediaType:
    """Map a declared media type onto a supported one."""
    normalized = normalize_media_type(media_type)
    try:
        return MediaType(normalized)
    except ValueError:
        raise UnsupportedFormat(normalized) from None


def is_supported_media_type(media_type: str) -> bool:
    """Pre-ingestion check used at the upload boundary."""
    return normalize_media_type(media_type) in {m.value for m in SUPPORTED_MEDIA_TYPES}


def extract_text(file_path: str | Path, media_type: str) -> str:
    """Extract raw text from a stored file.

    Raises:
        UnsupportedFormat: no extractor exists for ``media_type``.
        ExtractionFailure: the file is missing, unreadable or corrupt.
    """
    file_path = Path(file_path)
    fmt = detect_media_type(media_type)

    extractor = _EXTRACTOR_MAP.get(fmt)
    if extractor is None:
        logger.warning("No extractor registered", media_type=fmt.value)
        raise UnsupportedFormat(fmt.value, {"reason": "no extractor available"})

    if not file_path.is_file():
        raise ExtractionFailure(f"File not found: {file_path}", {"path": str(file_path)})

    logger.info("Starting extraction", file=file_path.name, media_type=fmt.value)
    try:
        text = extractor(file_path)
    except DocRagError:
        raise
    except Exception as exc:
        logger.error("Extraction failed", file=file_path.name, error=str(exc))
        raise ExtractionFailure(
            f"Extraction failed: {exc}", {"path": str(file_path), "media_type": fmt.value}
        ) from exc

    if not text.strip():
        logger.warning("Extraction yielded no text", file=file_path.name)

    return text
