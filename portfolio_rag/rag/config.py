"""
RAG System Configuration

Centralized configuration for all retrieval components including:
- Embedding API settings
- Persistent embedding cache settings
- Indexing (batching, concurrency, cache validation)
- Retrieval and context budgets
"""

import os
from typing import Literal, Optional
from pydantic import Field
from pydantic_settings import BaseSettings


class RAGConfig(BaseSettings):
    """Configuration for RAG system."""

    # Embedding API (OpenAI-compatible /embeddings endpoint)
    embedding_api_key: Optional[str] = Field(
        default=None,
        description="API key for the embedding endpoint"
    )
    embedding_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the embedding API"
    )
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model identifier"
    )
    embedding_dimension: int = Field(
        default=1536,
        description=(
            "Dimension of embedding vectors (text-embedding-3-small = 1536); "
            "cached vectors of another dimension are regenerated"
        )
    )
    embedding_batch_size: int = Field(
        default=50,
        ge=1,
        description="Texts per embedding request"
    )
    embedding_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Embedding request timeout in seconds"
    )
    embedding_max_workers: int = Field(
        default=1,
        ge=1,
        description="Embedding batches issued concurrently during indexing"
    )

    # Persistent cache
    cache_url: str = Field(
        default="sqlite:///data/cache/embeddings.db",
        description="SQLAlchemy URL of the embedding cache"
    )
    cache_store_name: str = Field(
        default="vectors",
        description="Key of this index inside the cache tables"
    )
    cache_staleness_tolerance: int = Field(
        default=5,
        ge=1,
        description="Cache is reused while |cached - expected| is below this"
    )
    cache_validation: Literal["count", "hash"] = Field(
        default="count",
        description="'count' compares row counts only, 'hash' also compares content fingerprints"
    )
    cache_clear_before_save: bool = Field(
        default=True,
        description="Purge cached rows before writing a freshly generated index"
    )

    # Retrieval
    top_k: int = Field(
        default=20,
        description="Number of similar records to retrieve"
    )
    context_max_rows: int = Field(
        default=20,
        ge=0,
        description="Maximum record lines in the assembled context"
    )
    context_max_funds: int = Field(
        default=10,
        ge=0,
        description="Maximum fund lines in the fund overview sent with each question"
    )
    history_turns: int = Field(
        default=4,
        ge=0,
        description="Prior conversation turns sent with each question"
    )

    class Config:
        env_prefix = "RAG_"
        case_sensitive = False


def get_rag_config() -> RAGConfig:
    """Get RAG configuration from environment."""
    config = RAGConfig()
    # Fall back to the provider's standard variable for the key
    if config.embedding_api_key is None and os.getenv("OPENAI_API_KEY"):
        config = config.model_copy(update={"embedding_api_key": os.getenv("OPENAI_API_KEY")})
    return config
