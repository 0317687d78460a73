"""Pytest configuration and shared fixtures."""

import hashlib
import threading

import pytest
from pathlib import Path

from portfolio_rag.models import HoldingRecord, TradeRecord
from portfolio_rag.rag.config import RAGConfig
from portfolio_rag.rag.errors import ProviderError

DIMENSION = 8


def fake_vector(text: str, dimension: int = DIMENSION):
    """Deterministic, strictly positive vector for a text."""
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    return [digest[i] / 255.0 + 0.01 for i in range(dimension)]


class FakeEmbeddingService:
    """
    Stand-in for EmbeddingService.

    Fails the batch calls whose 1-based number is in ``fail_on_calls``.
    """

    def __init__(self, fail_on_calls=(), dimension: int = DIMENSION, query_vector=None):
        self.fail_on_calls = set(fail_on_calls)
        self.dimension = dimension
        self.query_vector = query_vector
        self.batch_calls = []
        self.query_calls = []
        self._lock = threading.Lock()

    def embed_batch(self, texts):
        with self._lock:
            self.batch_calls.append(list(texts))
            call_number = len(self.batch_calls)
        if call_number in self.fail_on_calls:
            raise ProviderError("Embedding API Error: 500", status_code=500)
        return [fake_vector(t, self.dimension) for t in texts]

    def embed_text(self, text):
        return fake_vector(text, self.dimension)

    def get_query_embedding(self, query):
        self.query_calls.append(query)
        if self.query_vector is not None:
            return list(self.query_vector)
        return self.embed_text(query)


def make_holdings(count: int, funds=("Alpha Fund", "Beta Fund", "Gamma Fund")):
    return [
        HoldingRecord(
            portfolio_name=funds[i % len(funds)],
            short_name=f"F{i % len(funds)}",
            security_type_name="Equity" if i % 2 == 0 else "Bond",
            sec_name=f"SECURITY {i}",
            qty=100 + i,
            price=10.5,
            mv_base=1000.0 * (i + 1),
            pl_ytd=float(i - 5),
        )
        for i in range(count)
    ]


def make_trades(count: int, funds=("Alpha Fund", "Beta Fund")):
    return [
        TradeRecord(
            portfolio_name=funds[i % len(funds)],
            trade_type_name="Buy" if i % 2 == 0 else "Sell",
            name=f"SECURITY {i}",
            trade_date=f"2024-01-{(i % 28) + 1:02d}",
            quantity=10 * (i + 1),
            price=99.5,
        )
        for i in range(count)
    ]


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def fake_embeddings():
    return FakeEmbeddingService()


@pytest.fixture
def embeddings_factory():
    """Build FakeEmbeddingService instances with custom failures."""
    return FakeEmbeddingService


@pytest.fixture
def vector_for():
    return fake_vector


@pytest.fixture
def holdings_factory():
    return make_holdings


@pytest.fixture
def trades_factory():
    return make_trades


@pytest.fixture
def rag_config(tmp_path):
    """Config with a throwaway SQLite cache and a dummy API key."""
    return RAGConfig(
        embedding_api_key="test-key",
        cache_url=f"sqlite:///{tmp_path / 'cache' / 'embeddings.db'}",
        embedding_batch_size=50,
    )


@pytest.fixture
def holdings():
    return make_holdings(120)


@pytest.fixture
def trades():
    return make_trades(30)
