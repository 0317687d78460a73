"""SQLAlchemy models for the persistent embedding cache."""

from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import JSON, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class CachedEmbedding(Base):
    """
    One embedded record sentence.

    Rows are keyed by (store, id) so several indexes can share a database.
    """
    __tablename__ = "embedding_cache"

    store: Mapped[str] = mapped_column(String(100), primary_key=True)
    id: Mapped[str] = mapped_column(String(20), primary_key=True)

    text: Mapped[str] = mapped_column(Text, nullable=False)
    embedding: Mapped[List[float]] = mapped_column(JSON, nullable=False)
    # "metadata" is reserved on declarative classes
    record_metadata: Mapped[Dict[str, Any]] = mapped_column("metadata", JSON, nullable=False)

    def __repr__(self) -> str:
        return f"<CachedEmbedding(store={self.store}, id={self.id}, dims={len(self.embedding)})>"


class CacheFingerprint(Base):
    """Content fingerprint of the last index written to a store."""
    __tablename__ = "embedding_cache_meta"

    store: Mapped[str] = mapped_column(String(100), primary_key=True)
    fingerprint: Mapped[str] = mapped_column(String(64), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<CacheFingerprint(store={self.store}, fingerprint={self.fingerprint[:12]})>"
