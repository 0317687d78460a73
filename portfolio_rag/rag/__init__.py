"""
RAG (Retrieval Augmented Generation) System

This module provides semantic search over portfolio holdings and trades.

Components:
- documents: Turns records into short descriptive sentences
- embedding_service: Generates vector embeddings through a hosted API
- vector_store: In-memory store of embedded sentences
- cache: Persists embeddings across restarts (SQLAlchemy)
- indexer: Loads the index from cache or builds it in batches
- search: Cosine-similarity top-K retrieval
- context: Assembles statistics and retrieved rows for the model
"""

from .config import RAGConfig, get_rag_config
from .errors import (
    RAGError,
    ProviderError,
    CacheUnavailable,
    NotIndexedError,
    DimensionMismatchError,
    BatchFailure,
)
from .documents import EmbeddedItem, build_documents
from .vector_store import VectorStore
from .cache import EmbeddingCache
from .embedding_service import EmbeddingService
from .indexer import Indexer, IndexState, IndexStatus, IndexBuildReport
from .search import SimilaritySearch, SearchResult, cosine_similarity
from .context import build_context

__all__ = [
    "RAGConfig",
    "get_rag_config",
    "RAGError",
    "ProviderError",
    "CacheUnavailable",
    "NotIndexedError",
    "DimensionMismatchError",
    "BatchFailure",
    "EmbeddedItem",
    "build_documents",
    "VectorStore",
    "EmbeddingCache",
    "EmbeddingService",
    "Indexer",
    "IndexState",
    "IndexStatus",
    "IndexBuildReport",
    "SimilaritySearch",
    "SearchResult",
    "cosine_similarity",
    "build_context",
]
