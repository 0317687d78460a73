"""Unit tests for the in-memory vector store."""

import threading

import pytest

from portfolio_rag.rag.documents import build_documents
from portfolio_rag.rag.errors import DimensionMismatchError
from portfolio_rag.rag.vector_store import VectorStore


@pytest.fixture
def items(holdings_factory, vector_for):
    return [d.with_embedding(vector_for(d.text)) for d in build_documents(holdings_factory(5), [])]


class TestVectorStore:
    """Tests for VectorStore operations."""

    def test_starts_empty(self):
        store = VectorStore()
        assert store.is_empty()
        assert len(store) == 0
        assert store.snapshot() == ()
        assert store.dimension is None

    def test_insert_appends_in_order(self, items):
        """Test insert keeps insertion order and allows duplicates."""
        store = VectorStore()
        for item in items:
            store.insert(item)
        store.insert(items[0])

        assert [i.id for i in store.snapshot()] == ["0", "1", "2", "3", "4", "0"]
        assert store.dimension == 8

    def test_insert_rejects_other_dimension(self, items):
        store = VectorStore()
        store.insert(items[0])
        short = items[1].model_copy(update={"embedding": [1.0, 2.0]})

        with pytest.raises(DimensionMismatchError):
            store.insert(short)
        assert len(store) == 1

    def test_replace_all(self, items):
        """Test wholesale replacement."""
        store = VectorStore()
        store.replace_all(items[:2])
        store.replace_all(items[2:])

        assert [i.id for i in store.snapshot()] == ["2", "3", "4"]

    def test_replace_all_mixed_dimensions_keeps_old_contents(self, items):
        """Test that a corrupt replacement is rejected without partial state."""
        store = VectorStore()
        store.replace_all(items[:2])
        mixed = [items[2], items[3].model_copy(update={"embedding": [1.0]})]

        with pytest.raises(DimensionMismatchError):
            store.replace_all(mixed)

        assert [i.id for i in store.snapshot()] == ["0", "1"]

    def test_snapshot_is_not_affected_by_later_writes(self, items):
        store = VectorStore()
        store.replace_all(items[:2])
        snapshot = store.snapshot()

        store.replace_all(items)

        assert len(snapshot) == 2
        assert len(store) == 5

    def test_clear(self, items):
        store = VectorStore()
        store.replace_all(items)
        store.clear()
        assert store.is_empty()
        assert store.dimension is None

    def test_readers_never_see_mixed_snapshots(self, items):
        """Test concurrent readers only observe complete old or new contents."""
        store = VectorStore()
        old, new = items[:2], items[2:]
        store.replace_all(old)
        valid = {tuple(i.id for i in old), tuple(i.id for i in new)}
        seen = set()
        stop = threading.Event()

        def reader():
            while not stop.is_set():
                seen.add(tuple(i.id for i in store.snapshot()))

        thread = threading.Thread(target=reader)
        thread.start()
        for _ in range(200):
            store.replace_all(new)
            store.replace_all(old)
        stop.set()
        thread.join()

        assert seen <= valid
