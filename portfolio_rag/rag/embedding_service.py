"""
Embedding Service

Generates vector embeddings for text through an OpenAI-compatible
``/embeddings`` endpoint.

Model: text-embedding-3-small
- 1536-dimensional embeddings
- Batched requests (many inputs per call) to amortize rate limits

No retries happen here; callers decide what a failed call means.
"""

import logging
from typing import List, Optional

import httpx

from .config import RAGConfig
from .errors import ProviderError

logger = logging.getLogger(__name__)


class EmbeddingService:
    """Service for generating text embeddings."""

    def __init__(self, config: RAGConfig, client: Optional[httpx.Client] = None):
        """
        Initialize embedding service.

        Args:
            config: RAG configuration
            client: HTTP client (optional, created from config if not provided)
        """
        self.config = config
        self.model_name = config.embedding_model
        self.batch_size = config.embedding_batch_size
        self.dimension = config.embedding_dimension

        self.client = client or httpx.Client(
            base_url=config.embedding_base_url,
            timeout=config.embedding_timeout
        )

        logger.info(f"Embedding model: {self.model_name} at {config.embedding_base_url}")

    def _request(self, payload_input) -> List[List[float]]:
        """POST one embeddings request and return vectors aligned with the input."""
        if not self.config.embedding_api_key:
            raise ProviderError("Missing embedding API key")

        expected = 1 if isinstance(payload_input, str) else len(payload_input)

        try:
            response = self.client.post(
                "/embeddings",
                json={"input": payload_input, "model": self.model_name},
                headers={"Authorization": f"Bearer {self.config.embedding_api_key}"}
            )
        except httpx.HTTPError as e:
            raise ProviderError(f"Embedding request failed: {e}") from e

        if not response.is_success:
            raise ProviderError(
                f"Embedding API Error: {response.status_code} {response.text[:200]}",
                status_code=response.status_code
            )

        try:
            data = response.json()["data"]
            # Providers may return items out of order; "index" aligns them
            if all("index" in entry for entry in data):
                data = sorted(data, key=lambda entry: entry["index"])
            vectors = [[float(x) for x in entry["embedding"]] for entry in data]
        except (ValueError, KeyError, TypeError) as e:
            raise ProviderError(f"Malformed embedding response: {e}") from e

        if len(vectors) != expected:
            raise ProviderError(
                f"Embedding API returned {len(vectors)} vectors for {expected} inputs"
            )

        return vectors

    def embed_text(self, text: str) -> List[float]:
        """
        Generate embedding for a single text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector as list of floats

        Raises:
            ProviderError: On missing key, non-2xx status or malformed response
        """
        return self._request(text)[0]

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """
        Generate embeddings for multiple texts in one request.

        Callers chunk large inputs; this sends everything it is given.

        Args:
            texts: List of texts to embed

        Returns:
            List of embedding vectors, same order as ``texts``
        """
        if not texts:
            return []

        logger.debug(f"Embedding batch of {len(texts)} texts")
        return self._request(list(texts))

    def get_query_embedding(self, query: str) -> List[float]:
        """
        Generate embedding for a search query.

        Args:
            query: Search query text

        Returns:
            Query embedding vector
        """
        # Queries and records are embedded the same way
        return self.embed_text(query)

    def close(self):
        self.client.close()


def get_embedding_service(config: Optional[RAGConfig] = None) -> EmbeddingService:
    """
    Get embedding service instance.

    Args:
        config: RAG configuration (optional, will load from env if not provided)

    Returns:
        EmbeddingService instance
    """
    if config is None:
        from .config import get_rag_config
        config = get_rag_config()

    return EmbeddingService(config)
