"""Tests for the SQLite/FTS5 chunk store."""

from __future__ import annotations

import threading

import pytest

from docrag.exceptions import NotFound, PersistenceFailure
from docrag.models.chunk import Chunk
from docrag.store.chunk_store import ChunkStore


def _chunk(file_id: str, index: int, content: str, file_name: str | None = None) -> Chunk:
    return Chunk(
        file_id=file_id,
        content=content,
        chunk_index=index,
        start_char=index * 800,
        end_char=index * 800 + len(content),
        file_name=file_name or f"{file_id}.txt",
        uploaded_by="admin@example.com",
    )


def _chunks(file_id: str, contents: list[str], file_name: str | None = None) -> list[Chunk]:
    return [_chunk(file_id, i, text, file_name) for i, text in enumerate(contents)]


class TestSaveAll:
    def test_assigns_ids_and_timestamps(self, store: ChunkStore):
        saved = store.save_all("f1", _chunks("f1", ["alpha", "beta"]))
        assert len(saved) == 2
        assert all(c.chunk_id for c in saved)
        assert saved[0].chunk_id != saved[1].chunk_id
        assert all(c.created_at is not None for c in saved)
        assert store.count_for_file("f1") == 2

    def test_round_trips_fields(self, store: ChunkStore):
        saved = store.save_all("f1", _chunks("f1", ["first chunk body"], file_name="Handbook.pdf"))
        loaded = store.get(saved[0].chunk_id)
        assert loaded.file_id == "f1"
        assert loaded.file_name == "Handbook.pdf"
        assert loaded.content == "first chunk body"
        assert loaded.start_char == 0
        assert loaded.end_char == len("first chunk body")
        assert loaded.chunk_size == 1000
        assert loaded.overlap == 200
        assert loaded.embedding is None

    def test_empty_set_rejected(self, store: ChunkStore):
        with pytest.raises(PersistenceFailure):
            store.save_all("f1", [])

    def test_foreign_chunk_rejected(self, store: ChunkStore):
        chunks = [_chunk("f1", 0, "mine"), _chunk("f2", 1, "not mine")]
        with pytest.raises(PersistenceFailure, match="another file"):
            store.save_all("f1", chunks)
        assert store.chunk_count == 0

    def test_gapped_indexes_rejected(self, store: ChunkStore):
        chunks = [_chunk("f1", 0, "zero"), _chunk("f1", 2, "two")]
        with pytest.raises(PersistenceFailure):
            store.save_all("f1", chunks)
        assert store.count_for_file("f1") == 0

    def test_duplicate_batch_is_all_or_nothing(self, store: ChunkStore):
        store.save_all("f1", _chunks("f1", ["original"]))
        with pytest.raises(PersistenceFailure):
            store.save_all("f1", _chunks("f1", ["replacement", "extra"]))
        assert store.count_for_file("f1") == 1
        assert store.search('"replacement"', 10) == []

    def test_concurrent_writers(self, store: ChunkStore):
        errors: list[Exception] = []

        def _write(n: int) -> None:
            try:
                store.save_all(f"file-{n}", _chunks(f"file-{n}", [f"body {n}", "shared tail"]))
            except Exception as exc:  # pragma: no cover - reported below
                errors.append(exc)

        threads = [threading.Thread(target=_write, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert store.chunk_count == 16


class TestDelete:
    def test_delete_returns_count(self, store: ChunkStore):
        store.save_all("f1", _chunks("f1", ["a", "b", "c"]))
        store.save_all("f2", _chunks("f2", ["d"]))
        assert store.delete_all_for_file("f1") == 3
        assert store.count_for_file("f1") == 0
        assert store.count_for_file("f2") == 1

    def test_delete_is_idempotent(self, store: ChunkStore):
        store.save_all("f1", _chunks("f1", ["a"]))
        assert store.delete_all_for_file("f1") == 1
        assert store.delete_all_for_file("f1") == 0

    def test_deleted_chunks_leave_the_index(self, store: ChunkStore):
        store.save_all("f1", _chunks("f1", ["warranty terms"]))
        store.delete_all_for_file("f1")
        assert store.search('"warranty"', 10) == []

    def test_callback_sees_count(self, store: ChunkStore):
        store.save_all("f1", _chunks("f1", ["a", "b"]))
        seen: list[int] = []
        store.delete_all_for_file("f1", on_deleted=seen.append)
        assert seen == [2]

    def test_failing_callback_rolls_back(self, store: ChunkStore):
        store.save_all("f1", _chunks("f1", ["warranty terms", "more text"]))

        def _fail(_count: int) -> None:
            raise RuntimeError("file registry unavailable")

        with pytest.raises(RuntimeError):
            store.delete_all_for_file("f1", on_deleted=_fail)
        assert store.count_for_file("f1") == 2
        assert len(store.search('"warranty"', 10)) == 1


class TestReads:
    def test_get_missing_raises(self, store: ChunkStore):
        with pytest.raises(NotFound):
            store.get("does-not-exist")

    def test_find_by_file_pages_in_order(self, store: ChunkStore):
        store.save_all("f1", _chunks("f1", [f"chunk {i}" for i in range(25)]))
        first = store.find_by_file("f1", page=1, page_size=10)
        third = store.find_by_file("f1", page=3, page_size=10)
        assert [c.chunk_index for c in first] == list(range(10))
        assert [c.chunk_index for c in third] == list(range(20, 25))
        assert store.find_by_file("f1", page=4, page_size=10) == []

    def test_find_by_file_rejects_bad_paging(self, store: ChunkStore):
        with pytest.raises(ValueError):
            store.find_by_file("f1", page=0)
        with pytest.raises(ValueError):
            store.find_by_file("f1", page=1, page_size=0)

    def test_find_by_file_name(self, store: ChunkStore):
        store.save_all("f1", _chunks("f1", ["a", "b", "c", "d"], file_name="guide.md"))
        found = store.find_by_file_name("guide.md", 3)
        assert [c.chunk_index for c in found] == [0, 1, 2]
        assert store.count_for_file_name("guide.md") == 4
        assert store.find_by_file_name("other.md", 3) == []

    def test_list_documents(self, store: ChunkStore):
        store.save_all("f1", _chunks("f1", ["a", "b"], file_name="one.txt"))
        store.save_all("f2", _chunks("f2", ["c"], file_name="two.txt"))
        docs = store.list_documents()
        assert [d.file_id for d in docs] == ["f2", "f1"]
        assert docs[1].file_name == "one.txt"
        assert docs[1].chunk_count == 2
        assert docs[1].uploaded_by == "admin@example.com"

    def test_reopen_sees_committed_chunks(self, store: ChunkStore, settings):
        store.save_all("f1", _chunks("f1", ["persisted"]))
        assert ChunkStore(settings.db_path).count_for_file("f1") == 1


class TestSearch:
    def test_scores_positive_and_descending(self, store: ChunkStore):
        store.save_all(
            "f1",
            _chunks(
                "f1",
                [
                    "refund refund refund policy",
                    "a refund may be issued after review of the whole order history",
                    "shipping times vary",
                ],
            ),
        )
        hits = store.search('"refund"', 10)
        assert [h.chunk.chunk_index for h in hits] == [0, 1]
        assert all(h.score > 0 for h in hits)
        assert hits[0].score >= hits[1].score

    def test_stemmed_match(self, store: ChunkStore):
        store.save_all("f1", _chunks("f1", ["Refunds are processed weekly"]))
        assert len(store.search('"refund"', 10)) == 1

    def test_ties_break_on_chunk_index_then_insertion(self, store: ChunkStore):
        store.save_all("fa", _chunks("fa", ["gamma delta", "alpha beta"]))
        store.save_all("fb", _chunks("fb", ["alpha beta"]))
        store.save_all("fc", _chunks("fc", ["alpha beta"]))
        hits = store.search('"alpha"', 10)
        assert [(h.chunk.file_id, h.chunk.chunk_index) for h in hits] == [
            ("fb", 0),
            ("fc", 0),
            ("fa", 1),
        ]

    def test_limit(self, store: ChunkStore):
        store.save_all("f1", _chunks("f1", [f"policy {i}" for i in range(6)]))
        assert len(store.search('"policy"', 4)) == 4
        assert store.search('"policy"', 0) == []

    def test_read_after_write(self, store: ChunkStore):
        assert store.search('"invoice"', 10) == []
        store.save_all("f1", _chunks("f1", ["invoice attached"]))
        assert len(store.search('"invoice"', 10)) == 1

    def test_bad_expression_raises_persistence_failure(self, store: ChunkStore):
        with pytest.raises(PersistenceFailure):
            store.search('"unterminated', 10)
