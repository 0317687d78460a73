"""Database module for the persistent embedding cache."""

from .base import Base
from .session import create_cache_engine, create_session_factory
from .models import CachedEmbedding, CacheFingerprint

__all__ = [
    "Base",
    "create_cache_engine",
    "create_session_factory",
    "CachedEmbedding",
    "CacheFingerprint",
]
