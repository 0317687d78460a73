"""
Persistent Embedding Cache

Stores the embedded record sentences in a SQL database (SQLite by default)
so a restarted process can skip regenerating embeddings.

Features:
- Upsert by id (does not remove unrelated rows)
- Ordered reload with validation of every row
- Optional content fingerprint for staleness checks
- Explicit clear for purging rows left by a differently-sized dataset
"""

import logging
from typing import List, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy import Integer, cast, delete, func, inspect, select
from sqlalchemy.exc import SQLAlchemyError

from ..db import (
    Base,
    CachedEmbedding,
    CacheFingerprint,
    create_cache_engine,
    create_session_factory,
)
from .config import RAGConfig
from .documents import EmbeddedItem
from .errors import CacheUnavailable

logger = logging.getLogger(__name__)


class EmbeddingCache:
    """Durable key-value store of embedded items, keyed by store name."""

    def __init__(self, database_url: str, store_name: str = "vectors"):
        """
        Initialize embedding cache.

        Args:
            database_url: SQLAlchemy URL of the cache database
            store_name: Identifier of this index inside the database
        """
        self.database_url = database_url
        self.store_name = store_name

        try:
            self.engine = create_cache_engine(database_url)
        except (SQLAlchemyError, OSError) as e:
            raise CacheUnavailable(f"Cannot open embedding cache: {e}") from e

        self.SessionLocal = create_session_factory(self.engine)

        logger.info(f"Using embedding cache store '{store_name}'")

    def _tables_exist(self) -> bool:
        return inspect(self.engine).has_table(CachedEmbedding.__tablename__)

    def load_all(self) -> List[EmbeddedItem]:
        """
        Load every cached item of this store, ordered by id.

        Returns:
            List of EmbeddedItem (possibly empty)

        Raises:
            CacheUnavailable: Database unreachable, table missing, corrupt rows,
                or rows with mixed embedding dimensions
        """
        try:
            if not self._tables_exist():
                raise CacheUnavailable("Embedding cache has not been created yet")

            with self.SessionLocal() as session:
                rows = session.scalars(
                    select(CachedEmbedding)
                    .where(CachedEmbedding.store == self.store_name)
                    .order_by(cast(CachedEmbedding.id, Integer))
                ).all()

                items = [
                    EmbeddedItem(
                        id=row.id,
                        text=row.text,
                        embedding=row.embedding,
                        metadata=row.record_metadata
                    )
                    for row in rows
                ]
        except SQLAlchemyError as e:
            raise CacheUnavailable(f"Failed to read embedding cache: {e}") from e
        except ValidationError as e:
            raise CacheUnavailable(f"Corrupt embedding cache entry: {e}") from e

        dimensions = {item.dimension for item in items}
        if len(dimensions) > 1:
            raise CacheUnavailable(f"Embedding cache mixes dimensions {sorted(dimensions)}")

        logger.info(f"Loaded {len(items)} cached embeddings")
        return items

    def save_all(self, items: Sequence[EmbeddedItem], fingerprint: Optional[str] = None):
        """
        Upsert items by id. Rows not in ``items`` are left untouched.

        Args:
            items: Items to persist
            fingerprint: Content fingerprint of the indexed data (optional)

        Raises:
            CacheUnavailable: On any database error
        """
        try:
            Base.metadata.create_all(self.engine)

            with self.SessionLocal() as session:
                for item in items:
                    session.merge(CachedEmbedding(
                        store=self.store_name,
                        id=item.id,
                        text=item.text,
                        embedding=list(item.embedding),
                        record_metadata=item.metadata.model_dump(mode="json", by_alias=True)
                    ))

                if fingerprint is not None:
                    session.merge(CacheFingerprint(
                        store=self.store_name,
                        fingerprint=fingerprint
                    ))

                session.commit()
        except SQLAlchemyError as e:
            raise CacheUnavailable(f"Failed to write embedding cache: {e}") from e

        logger.info(f"Saved {len(items)} embeddings to cache")

    def clear(self):
        """Delete every cached row and the fingerprint of this store."""
        try:
            if not self._tables_exist():
                return

            with self.SessionLocal() as session:
                session.execute(
                    delete(CachedEmbedding).where(CachedEmbedding.store == self.store_name)
                )
                session.execute(
                    delete(CacheFingerprint).where(CacheFingerprint.store == self.store_name)
                )
                session.commit()
        except SQLAlchemyError as e:
            raise CacheUnavailable(f"Failed to clear embedding cache: {e}") from e

        logger.warning(f"Cleared embedding cache store '{self.store_name}'")

    def load_fingerprint(self) -> Optional[str]:
        """Fingerprint saved with the last index, or None."""
        try:
            if not self._tables_exist():
                return None

            with self.SessionLocal() as session:
                row = session.get(CacheFingerprint, self.store_name)
                return row.fingerprint if row else None
        except SQLAlchemyError as e:
            raise CacheUnavailable(f"Failed to read cache fingerprint: {e}") from e

    def count(self) -> int:
        """
        Count cached rows of this store.

        Returns:
            Number of rows, 0 if the cache does not exist or cannot be read
        """
        try:
            if not self._tables_exist():
                return 0

            with self.SessionLocal() as session:
                return session.scalar(
                    select(func.count())
                    .select_from(CachedEmbedding)
                    .where(CachedEmbedding.store == self.store_name)
                ) or 0
        except SQLAlchemyError:
            return 0

    def close(self):
        self.engine.dispose()


def get_embedding_cache(config: Optional[RAGConfig] = None) -> EmbeddingCache:
    """
    Get embedding cache instance.

    Args:
        config: RAG configuration (optional)

    Returns:
        EmbeddingCache instance
    """
    if config is None:
        from .config import get_rag_config
        config = get_rag_config()

    return EmbeddingCache(config.cache_url, store_name=config.cache_store_name)
