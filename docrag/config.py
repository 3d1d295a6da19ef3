"""Central configuration — loads from .env and environment variables."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


_BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment / .env file."""

    model_config = SettingsConfigDict(
        env_file=str(_BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Environment ──────────────────────────────────────────────
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"

    # ── Chunk store ──────────────────────────────────────────────
    db_path: str = str(_BASE_DIR / "data" / "chunks.db")

    # ── Chunking ─────────────────────────────────────────────────
    chunk_size: int = 1000
    chunk_overlap: int = 200

    # ── Retrieval ────────────────────────────────────────────────
    search_default_limit: int = 10

    # ── Answering ────────────────────────────────────────────────
    answerer: Literal["template", "llm"] = "template"
    answer_max_chunks: int = 5
    answer_context_char_cap: int = 4000
    answer_summary_chars: int = 500
    excerpt_chars: int = 200
    preview_chars: int = 300

    # ── LLM (only used when answerer == "llm") ───────────────────
    llm_provider: str = "google_genai"
    llm_model: str = "gemini-2.5-flash"
    llm_temperature: float = 0.0
    llm_max_tokens: int = 1024

    # ── API Keys (provider-specific) ─────────────────────────────
    google_api_key: str = ""
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    # ── API ──────────────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # ── Helpers ──────────────────────────────────────────────────
    def ensure_dirs(self) -> None:
        """Create the directory holding the chunk database."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)


def get_settings() -> Settings:
    """Return a fresh Settings instance."""
    return Settings()


if __name__ == "__main__":
    s = get_settings()
    s.ensure_dirs()
    print(f"Environment : {s.environment}")
    print(f"Chunk store : {s.db_path}")
    print(f"Chunking    : size={s.chunk_size} overlap={s.chunk_overlap}")
    print(f"Answerer    : {s.answerer}")
    print("✓ Config loaded successfully")
