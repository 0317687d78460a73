"""
Similarity Search

Ranks every stored record sentence against a query by cosine similarity.

Scoring rules:
- Full vectors, no pre-normalization, float64 accumulation
- A zero-length vector on either side scores NaN and ranks after every
  defined score
- Ties keep insertion order (stable sort)

The store is scanned in full; fine for the low thousands of records a
portfolio export holds.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .documents import EmbeddedItem
from .embedding_service import EmbeddingService
from .errors import DimensionMismatchError, NotIndexedError
from .vector_store import VectorStore

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    """A stored item with its similarity to the query."""
    item: EmbeddedItem
    score: float

    @property
    def text(self) -> str:
        return self.item.text


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Calculate cosine similarity between two vectors.

    Args:
        vec_a: First vector
        vec_b: Second vector, same length

    Returns:
        Similarity in [-1, 1], or NaN if either vector has zero norm
    """
    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)

    if a.shape != b.shape:
        raise DimensionMismatchError(f"Cannot compare vectors of shape {a.shape} and {b.shape}")

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return float("nan")

    return float(np.dot(a, b) / (norm_a * norm_b))


def rank(
    query_vector: Sequence[float],
    items: Sequence[EmbeddedItem],
    top_k: int
) -> List[SearchResult]:
    """
    Score ``items`` against ``query_vector`` and return the best ``top_k``.

    Args:
        query_vector: Query embedding
        items: Stored items, in insertion order
        top_k: Maximum number of results; <= 0 returns nothing

    Returns:
        Results sorted by non-increasing score, NaN scores last
    """
    if top_k <= 0 or not items:
        return []

    query = np.asarray(query_vector, dtype=np.float64)
    matrix = np.asarray([item.embedding for item in items], dtype=np.float64)

    if matrix.shape[1] != query.shape[0]:
        raise DimensionMismatchError(
            f"Query has dimension {query.shape[0]}, store holds {matrix.shape[1]}"
        )

    item_norms = np.linalg.norm(matrix, axis=1)
    query_norm = np.linalg.norm(query)

    with np.errstate(divide="ignore", invalid="ignore"):
        scores = (matrix @ query) / (item_norms * query_norm)
    scores[(item_norms == 0) | (query_norm == 0)] = np.nan

    # NaN sorts after -1.0, the lowest defined score
    sort_keys = np.where(np.isnan(scores), np.inf, -scores)
    order = np.argsort(sort_keys, kind="stable")[:top_k]

    return [SearchResult(item=items[i], score=float(scores[i])) for i in order]


class SimilaritySearch:
    """Embeds queries and ranks the vector store against them."""

    def __init__(self, embedding_service: EmbeddingService, vector_store: VectorStore):
        """
        Initialize similarity search.

        Args:
            embedding_service: Service used to embed queries
            vector_store: Store to scan
        """
        self.embedding_service = embedding_service
        self.vector_store = vector_store

    def search(self, query: str, top_k: int) -> List[SearchResult]:
        """
        Find the records most similar to ``query``.

        Args:
            query: Natural language query
            top_k: Number of results to return

        Returns:
            Up to ``top_k`` results, best first

        Raises:
            ProviderError: If the query cannot be embedded
            NotIndexedError: If nothing has been indexed yet
        """
        query_vector = self.embedding_service.get_query_embedding(query)

        items = self.vector_store.snapshot()
        if not items:
            raise NotIndexedError("Vector store is empty; build the index first")

        results = rank(query_vector, items, top_k)
        logger.info(f"Search returned {len(results)} of {len(items)} records (top_k={top_k})")
        return results
