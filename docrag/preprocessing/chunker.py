"""Recursive boundary-search chunking with character offsets and overlap.

Text is cut at the coarsest boundary available (paragraph, line, word) and
only falls back to a hard character cut when a single word is longer than the
budget. Every chunk records ``start_char``/``end_char`` into the original text
and its content is exactly ``text[start_char:end_char]``.
"""

from __future__ import annotations

from docrag.config import Settings, get_settings
from docrag.logger import get_logger
from docrag.models.chunk import SplitChunk

logger = get_logger(__name__)

# Coarsest first; "" means hard cut.
SEPARATORS: tuple[str, ...] = ("\n\n", "\n", " ", "")

Span = tuple[int, int]


def _pick_separator(
    text: str, start: int, end: int, separators: tuple[str, ...]
) -> tuple[str, tuple[str, ...]]:
    """Return the coarsest separator present in the span and the finer ones."""
    for i, sep in enumerate(separators):
        if not sep or text.find(sep, start, end) != -1:
            return sep, separators[i + 1 :]
    return "", ()


def _partition(text: str, start: int, end: int, separator: str) -> list[Span]:
    """Cut ``[start, end)`` after every occurrence of ``separator``.

    The separator stays with the preceding piece, so pieces tile the span.
    """
    pieces: list[Span] = []
    pos = start
    while pos < end:
        idx = text.find(separator, pos, end)
        if idx == -1:
            break
        cut = idx + len(separator)
        pieces.append((pos, cut))
        pos = cut
    if pos < end:
        pieces.append((pos, end))
    return pieces


def _split_span(
    text: str,
    start: int,
    end: int,
    separators: tuple[str, ...],
    budget: int,
) -> list[Span]:
    """Split ``[start, end)`` into contiguous source spans of at most ``budget`` chars."""
    if end - start <= budget:
        return [(start, end)]

    separator, finer = _pick_separator(text, start, end, separators)
    if not separator:
        return [(i, min(i + budget, end)) for i in range(start, end, budget)]

    spans: list[Span] = []
    run_start: int | None = None
    run_end = start

    for piece_start, piece_end in _partition(text, start, end, separator):
        if piece_end - piece_start > budget:
            if run_start is not None:
                spans.append((run_start, run_end))
                run_start = None
            spans.extend(_split_span(text, piece_start, piece_end, finer, budget))
            continue

        if run_start is not None and piece_end - run_start > budget:
            spans.append((run_start, run_end))
            run_start = None

        if run_start is None:
            run_start = piece_start
        run_end = piece_end

    if run_start is not None:
        spans.append((run_start, run_end))
    return spans


def check_chunk_config(chunk_size: int, overlap: int) -> None:
    """Reject sizes that cannot produce overlapping, strictly advancing chunks.

    With overlap, each source span needs at least two characters: a
    one-character span forces the next chunk to start at the previous end.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0 or overlap >= chunk_size:
        raise ValueError(
            f"overlap must be in [0, chunk_size), got {overlap} for chunk_size {chunk_size}"
        )
    if overlap > 0 and chunk_size - overlap < 2:
        raise ValueError(
            f"chunk_size must exceed overlap by at least 2, got {chunk_size}/{overlap}"
        )


def split_text(text: str, chunk_size: int, overlap: int) -> list[SplitChunk]:
    """Split ``text`` into ordered, overlapping chunks of at most ``chunk_size`` chars.

    Source spans are packed to ``chunk_size - overlap`` so that prepending the
    overlap never pushes a chunk past ``chunk_size``. A text that already fits
    is returned as a single chunk.
    """
    check_chunk_config(chunk_size, overlap)
    if not text:
        return []

    if len(text) <= chunk_size:
        spans = [(0, len(text))]
    else:
        spans = _split_span(text, 0, len(text), SEPARATORS, chunk_size - overlap)

    # Interior whitespace runs are kept so consecutive chunks always overlap.
    while spans and not text[spans[0][0] : spans[0][1]].strip():
        spans.pop(0)
    while spans and not text[spans[-1][0] : spans[-1][1]].strip():
        spans.pop()

    chunks: list[SplitChunk] = []
    prev_src_start = prev_start = 0
    for src_start, src_end in spans:
        start = src_start
        if chunks:
            # Overlap comes from the previous source span only, and starts
            # must strictly increase.
            start = max(src_start - overlap, prev_src_start, prev_start + 1)
        chunks.append(
            SplitChunk(
                chunk_index=len(chunks),
                start_char=start,
                end_char=src_end,
                content=text[start:src_end],
            )
        )
        prev_src_start, prev_start = src_start, start

    return chunks


class ChunkSplitter:
    """Splitter bound to a chunk size and overlap (defaults from settings)."""

    def __init__(
        self,
        chunk_size: int | None = None,
        overlap: int | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.chunk_size = chunk_size if chunk_size is not None else settings.chunk_size
        self.overlap = overlap if overlap is not None else settings.chunk_overlap
        check_chunk_config(self.chunk_size, self.overlap)

    def split(self, text: str) -> list[SplitChunk]:
        logger.info(
            "Chunking text",
            chars=len(text),
            chunk_size=self.chunk_size,
            overlap=self.overlap,
        )
        chunks = split_text(text, self.chunk_size, self.overlap)
        logger.info("Chunking complete", total_chunks=len(chunks))
        return chunks
