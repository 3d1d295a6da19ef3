"""DOCX text extraction using python-docx."""

from __future__ import annotations

from pathlib import Path

from docx import Document as DocxDocument

from docrag.exceptions import ExtractionFailure
from docrag.logger import get_logger

logger = get_logger(__name__)


def extract_docx(file_path: str | Path) -> str:
    """Extract paragraph text followed by any tables, one row per line."""
    file_path = Path(file_path)
    logger.info("Extracting DOCX", path=str(file_path))

    try:
        doc = DocxDocument(str(file_path))
    except Exception as exc:
        logger.error("Failed to open DOCX", path=str(file_path), error=str(exc))
        raise ExtractionFailure(
            f"Failed to open DOCX: {exc}", {"path": str(file_path)}
        ) from exc

    parts: list[str] = [para.text.strip() for para in doc.paragraphs]

    for i, table in enumerate(doc.tables):
        try:
            rows_text: list[str] = []
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells]
                rows_text.append(" | ".join(cells))
        except Exception as exc:
            raise ExtractionFailure(
                f"Table {i + 1}: {exc}", {"path": str(file_path), "table": i + 1}
            ) from exc
        parts.append(f"\n[Table {i + 1}]\n" + "\n".join(rows_text))

    text = "\n".join(parts)
    logger.info(
        "DOCX extraction complete",
        paragraphs=len(doc.paragraphs),
        tables=len(doc.tables),
        words=len(text.split()),
    )
    return text
