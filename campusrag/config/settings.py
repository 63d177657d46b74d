"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ─────────────────────────────────────────────────
#
# Values are read from two sources (in priority order):
#
#   1. **Environment variables** -- e.g. OPENAI_API_KEY=sk-abc123
#   2. **.env file** -- key=value lines in the working directory's .env
#
# Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``.  List fields
# such as ``course_programs`` take JSON: COURSE_PROGRAMS='["MBI","MGM"]'.
# ──────────────────────────────────────────────────────────────────────
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """campusrag settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === OpenAI ===
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint; empty = api.openai.com
    openai_embedding_model: str = "text-embedding-3-small"
    openai_chat_model: str = "gpt-4o"

    # === Vector store ===
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "campusrag"
    embedding_dimension: int = 1536

    # === Ingestion ===
    chunk_size: int = 1000
    chunk_overlap: int = 200
    ingest_batch_size: int = 5
    duplicate_policy: Literal["skip", "update"] = "update"
    course_base_path: str = "./data/courses"
    course_programs: list[str] = ["macfin", "MBI", "MGM", "MiMM"]
    faq_csv_path: str = "./data/faq.csv"
    thesis_sheet_path: str = "./data/theses.xlsx"

    # === Retrieval ===
    retrieval_limit: int = 10
    retrieval_per_channel_limit: int = 5
    system_prompt_path: str = ""  # optional file replacing the built-in system prompt

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"
