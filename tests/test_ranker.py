"""Tests for query parsing and the search ranker."""

from __future__ import annotations

import pytest

from docrag.exceptions import QueryRequired
from docrag.models.chunk import Chunk
from docrag.retrieval.ranker import SearchRanker, SearchResult, build_match_expression


def _save(store, file_id: str, contents: list[str], file_name: str = "a.txt") -> None:
    store.save_all(
        file_id,
        [
            Chunk(
                file_id=file_id,
                content=text,
                chunk_index=i,
                start_char=i * 100,
                end_char=i * 100 + len(text),
                file_name=file_name,
                uploaded_by="admin@example.com",
            )
            for i, text in enumerate(contents)
        ],
    )


@pytest.fixture
def ranker(store, settings) -> SearchRanker:
    return SearchRanker(store, settings)


class TestBuildMatchExpression:
    def test_terms_are_quoted_and_ored(self):
        assert build_match_expression("Refund policy") == '"refund" OR "policy"'

    def test_punctuation_is_dropped(self):
        assert build_match_expression("what's the refund-policy?") == (
            '"what" OR "s" OR "the" OR "refund" OR "policy"'
        )

    def test_duplicates_collapse(self):
        assert build_match_expression("tax TAX Tax") == '"tax"'

    def test_fts_operators_are_plain_words(self):
        assert build_match_expression("NOT refund AND") == '"not" OR "refund" OR "and"'

    def test_no_terms(self):
        assert build_match_expression("?!? --") == ""


class TestSearchRanker:
    @pytest.mark.parametrize("query", ["", "   ", "\n\t", None])
    def test_blank_query_rejected(self, ranker, query):
        with pytest.raises(QueryRequired):
            ranker.search(query)

    def test_single_matching_chunk(self, ranker, store):
        _save(
            store,
            "file-a",
            ["Opening hours are nine to five.", "Contact support by email.", "A refund takes ten days."],
        )
        _save(store, "file-b", ["Shipping is free over fifty euros."], file_name="b.txt")

        result = ranker.search("refund", 10)
        assert len(result.hits) == 1
        hit = result.hits[0]
        assert hit.chunk.file_id == "file-a"
        assert hit.chunk.chunk_index == 2
        assert hit.score > 0

    def test_absent_term(self, ranker, store):
        _save(store, "file-a", ["nothing relevant here"])
        assert ranker.search("zebra", 10).hits == []

    def test_results_bounded_and_ordered(self, ranker, store):
        _save(store, "file-a", [f"invoice number {i} " + "filler " * i for i in range(8)])
        hits = ranker.search("invoice", 5).hits
        assert len(hits) == 5
        scores = [h.score for h in hits]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.parametrize("limit", [0, -3])
    def test_non_positive_limit(self, ranker, store, limit):
        _save(store, "file-a", ["invoice"])
        assert ranker.search("invoice", limit).hits == []

    def test_default_limit_from_settings(self, store, settings):
        settings.search_default_limit = 2
        _save(store, "file-a", ["tax one", "tax two", "tax three"])
        assert len(SearchRanker(store, settings).search("tax").hits) == 2

    def test_punctuation_only_query(self, ranker, store):
        _save(store, "file-a", ["anything"])
        result = ranker.search("???")
        assert result.query == "???"
        assert result.hits == []

    def test_query_with_operator_characters(self, ranker, store):
        _save(store, "file-a", ["refund window is thirty days"])
        assert len(ranker.search('refund: "window* -(days)', 10).hits) == 1

    def test_query_is_trimmed(self, ranker, store):
        _save(store, "file-a", ["refund"])
        assert ranker.search("  refund  ").query == "refund"


class TestSearchResult:
    def test_context_text(self, ranker, store):
        _save(store, "file-a", ["alpha first", "alpha second"], file_name="notes.md")
        text = ranker.search("alpha", 10).context_text
        assert "[File: notes.md | Chunk: 0]\nalpha first" in text
        assert "[File: notes.md | Chunk: 1]\nalpha second" in text
        assert "\n\n---\n\n" in text

    def test_empty_context(self):
        assert SearchResult(query="x").context_text == ""
