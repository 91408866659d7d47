"""Application configuration management."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """repochat application settings loaded from environment variables."""

    # Credentials
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    github_token: str = ""

    # Project
    repochat_project_name: str = "Streamyfin"

    # Embedding
    repochat_embedding_provider: str = "sentence-transformers"
    repochat_embedding_model: str = "all-MiniLM-L6-v2"
    repochat_embedding_dimension: int | None = None

    # LLM
    repochat_llm_provider: str = "anthropic"
    repochat_llm_model: str = "claude-sonnet-4-5-20250929"

    # Storage
    repochat_chroma_path: str = "./data/chroma"
    repochat_collection: str = "code_chunks"
    repochat_history_url: str = "sqlite:///./data/history.db"
    repochat_history_size: int = 100

    # Ingestion
    repochat_chunk_size: int = 2000
    repochat_chunk_overlap: int = 200
    repochat_fetch_batch_size: int = 10
    repochat_fetch_delay: float = 0.1
    repochat_embed_batch_size: int = 100

    # Retrieval
    repochat_feedback_weight: float = 0.2
    repochat_search_threshold: float = 0.1

    @property
    def chroma_path(self) -> Path:
        return Path(self.repochat_chroma_path)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
