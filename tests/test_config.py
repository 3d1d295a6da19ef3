"""Tests for the config module."""

import pytest
from pydantic import ValidationError

from docrag.config import Settings, get_settings


class TestSettings:
    def test_defaults(self):
        s = Settings()
        assert s.chunk_size == 1000
        assert s.chunk_overlap == 200
        assert s.search_default_limit == 10
        assert s.answer_max_chunks == 5
        assert s.answer_context_char_cap == 4000
        assert s.excerpt_chars == 200
        assert s.preview_chars == 300
        assert s.llm_provider == "google_genai"
        assert s.llm_temperature == 0.0

    def test_environment_default(self):
        s = Settings()
        assert s.environment in ("development", "staging", "production")

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("CHUNK_SIZE", "500")
        monkeypatch.setenv("ANSWERER", "llm")
        s = Settings()
        assert s.chunk_size == 500
        assert s.answerer == "llm"

    def test_unknown_answerer_rejected(self):
        with pytest.raises(ValidationError):
            Settings(answerer="magic")

    def test_ensure_dirs_creates_db_folder(self, tmp_path):
        s = Settings(db_path=str(tmp_path / "nested" / "db" / "chunks.db"))
        s.ensure_dirs()
        assert (tmp_path / "nested" / "db").is_dir()

    def test_get_settings_returns_instance(self):
        s = get_settings()
        assert isinstance(s, Settings)
