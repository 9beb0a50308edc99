"""Shared configuration loaded from environment / .env."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for a compatible server)")
    llm_model_name: str = Field(default="gpt-4o", description="Chat model used to draft review replies")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for an OpenAI-compatible API. Leave empty to use OpenAI cloud, "
            "e.g. 'http://localhost:8001/v1' for a local vLLM server."
        ),
    )
    llm_temperature: float = 0.5
    llm_timeout_seconds: float = 60.0
    llm_max_retries: int = 2

    # Embedding
    embedding_backend: str = Field(default="openai", description="'openai' or 'huggingface'")
    embedding_model: str = "text-embedding-ada-002"
    embedding_timeout_seconds: float = 30.0
    embedding_concurrency: int = 8

    # Content store
    context_db_path: str = "data/context-db.json"
    upload_dir: str = "uploads"

    # Ingestion
    max_embedding_tokens: int = Field(default=8000, description="Token estimate above which text is chunked")
    chunk_size: int = 4000
    chunk_overlap: int = 200

    # Retrieval / prompt assembly
    retrieval_k: int = 5
    prompt_context_tokens: int = 4000

    # Web scraping
    scrape_timeout_seconds: float = 10.0
    scrape_max_retries: int = 2
    scrape_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    )
    min_static_content_chars: int = Field(
        default=500,
        description="Static scrapes shorter than this are retried with the dynamic renderer",
    )
    min_meaningful_paragraphs: int = 5
    meaningful_paragraph_chars: int = 20

    # Dynamic rendering (needs the `browser` extra)
    dynamic_rendering_enabled: bool = True
    render_timeout_seconds: float = 30.0
    render_settle_seconds: float = 2.0

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Module-level singleton; import `settings` wherever needed.
settings = Settings()
