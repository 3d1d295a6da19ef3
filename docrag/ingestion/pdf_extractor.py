"""PDF text extraction using PyMuPDF (fitz)."""

from __future__ import annotations

from pathlib import Path

import fitz  # PyMuPDF

from docrag.exceptions import ExtractionFailure
from docrag.logger import get_logger

logger = get_logger(__name__)


def extract_pdf(file_path: str | Path) -> str:
    """Extract the text of every page; pages are separated by a blank line."""
    file_path = Path(file_path)
    logger.info("Extracting PDF", path=str(file_path))

    try:
        doc = fitz.open(str(file_path))
    except Exception as exc:
        logger.error("Failed to open PDF", path=str(file_path), error=str(exc))
        raise ExtractionFailure(
            f"Failed to open PDF: {exc}", {"path": str(file_path)}
        ) from exc

    page_texts: list[str] = []
    try:
        for page_num, page in enumerate(doc, start=1):
            try:
                page_texts.append(page.get_text("text") or "")
            except Exception as exc:
                logger.error("Error extracting page", page=page_num, error=str(exc))
                raise ExtractionFailure(
                    f"Page {page_num}: {exc}",
                    {"path": str(file_path), "page": page_num},
                ) from exc
    finally:
        doc.close()

    text = "\n\n".join(t.strip("\n") for t in page_texts)
    logger.info(
        "PDF extraction complete",
        pages=len(page_texts),
        words=len(text.split()),
    )
    return text
