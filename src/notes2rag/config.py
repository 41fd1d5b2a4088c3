"""Configuration management for the retrieval layer."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Retrieval configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    vault_dir: Path = Field(default=Path("./vault"))
    index_path: Path = Field(default=Path("./.notes2rag/rag_index.json"))
    chats_dir: str = Field(default="LLMChats", description="Vault-relative folder for saved chats")
    log_dir: Path = Field(default=Path("./logs"))

    # Embeddings (OpenAI)
    openai_api_key: str = Field(default="")
    openai_base_url: str = Field(default="https://api.openai.com/v1")
    embedding_model: str = Field(default="text-embedding-3-small")
    embedding_max_retries: int = Field(default=1)
    retry_delay_seconds: float = Field(default=2.0)

    # Chat completion (Groq, OpenAI-compatible)
    groq_api_key: str = Field(default="")
    groq_base_url: str = Field(default="https://api.groq.com/openai/v1")
    chat_model: str = Field(default="llama-3.1-8b-instant")
    chat_temperature: float = Field(default=0.3)
    chat_max_tokens: int = Field(default=4000)

    # Segmentation
    chunk_size: int = Field(default=2000, description="Max characters per body chunk")
    chunk_overlap: int = Field(default=250, description="Characters carried over from previous chunk")
    lead_chars: int = Field(default=6000, description="Length of the lead (intro) chunk")

    # Retrieval
    top_k: int = Field(default=6)
    mmr_lambda: float = Field(default=0.8)

    # Prompt assembly
    prompt_budget_chars: int = Field(default=12000)
    metadata_prompt_budget_chars: int = Field(default=4000)
    min_block_chars: int = Field(default=200)

    # Summaries and related papers
    summary_chunk_chars: int = Field(default=16000)
    summary_embed_chars: int = Field(default=2500)
    related_min_score: float = Field(default=0.78)
    related_limit: int = Field(default=10)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "text", "both"] = Field(default="both")


def get_settings() -> Settings:
    """Get settings instance."""
    return Settings()


# Default singleton
settings = Settings()
