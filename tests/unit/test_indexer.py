"""Unit tests for the knowledge base indexer."""

from unittest.mock import MagicMock

import pytest

from portfolio_rag.rag.cache import EmbeddingCache
from portfolio_rag.rag.documents import build_documents
from portfolio_rag.rag.errors import CacheUnavailable
from portfolio_rag.rag.indexer import Indexer, IndexState, progress_percent
from portfolio_rag.rag.vector_store import VectorStore


@pytest.fixture
def cache(rag_config):
    return EmbeddingCache(rag_config.cache_url, store_name=rag_config.cache_store_name)


@pytest.fixture
def seed_cache(cache, holdings_factory, trades_factory, vector_for):
    """Write ``holdings_count`` holdings plus 30 trades into the cache."""
    def seed(holdings_count):
        documents = build_documents(holdings_factory(holdings_count), trades_factory(30))
        cache.save_all([d.with_embedding(vector_for(d.text)) for d in documents])
    return seed


def make_indexer(embeddings, cache, config, store=None):
    return Indexer(embeddings, store if store is not None else VectorStore(), cache, config)


class TestProgressPercent:
    """Tests for progress_percent."""

    def test_rounding(self):
        assert progress_percent(50, 150) == 33
        assert progress_percent(100, 150) == 67
        assert progress_percent(150, 150) == 100

    def test_half_rounds_up(self):
        assert progress_percent(1, 200) == 1

    def test_nothing_to_do(self):
        assert progress_percent(0, 0) == 100


class TestCacheFastPath:
    """Tests for loading the index from the persistent cache."""

    def test_exact_count_skips_api(self, rag_config, cache, seed_cache, fake_embeddings, holdings, trades):
        seed_cache(120)
        store = VectorStore()
        progress = []

        report = make_indexer(fake_embeddings, cache, rag_config, store).build_index(
            holdings, trades, on_progress=progress.append
        )

        assert report.source == "cache"
        assert fake_embeddings.batch_calls == []
        assert len(store) == 150
        assert progress == [100]

    @pytest.mark.parametrize("holdings_count", [116, 124])
    def test_within_tolerance_is_reused(
        self, rag_config, cache, seed_cache, fake_embeddings, holdings, trades, holdings_count
    ):
        """Test that a cache off by four records is still accepted."""
        seed_cache(holdings_count)
        store = VectorStore()

        report = make_indexer(fake_embeddings, cache, rag_config, store).build_index(holdings, trades)

        assert report.source == "cache"
        assert len(store) == holdings_count + 30
        assert fake_embeddings.batch_calls == []

    @pytest.mark.parametrize("holdings_count", [114, 126])
    def test_outside_tolerance_regenerates(
        self, rag_config, cache, seed_cache, fake_embeddings, holdings, trades, holdings_count
    ):
        """Test that a cache off by six records is rebuilt and overwritten."""
        seed_cache(holdings_count)
        store = VectorStore()

        report = make_indexer(fake_embeddings, cache, rag_config, store).build_index(holdings, trades)

        assert report.source == "embeddings"
        assert len(fake_embeddings.batch_calls) == 3
        assert len(store) == 150
        assert cache.count() == 150

    def test_other_dimension_regenerates(
        self, rag_config, cache, seed_cache, embeddings_factory, holdings, trades
    ):
        """Test that vectors from a different embedding model are not reused."""
        seed_cache(120)
        embeddings = embeddings_factory(dimension=16)
        store = VectorStore()

        report = make_indexer(embeddings, cache, rag_config, store).build_index(holdings, trades)

        assert report.source == "embeddings"
        assert len(embeddings.batch_calls) == 3
        assert store.dimension == 16
        assert {item.dimension for item in cache.load_all()} == {16}

    def test_residue_kept_without_clear(
        self, rag_config, cache, seed_cache, fake_embeddings, holdings, trades
    ):
        """Test that upsert-only saving leaves rows of a larger old dataset."""
        seed_cache(170)
        config = rag_config.model_copy(update={"cache_clear_before_save": False})

        make_indexer(fake_embeddings, cache, config).build_index(holdings, trades)

        assert cache.count() == 200

    def test_hash_validation_detects_changed_content(
        self, rag_config, cache, fake_embeddings, holdings, trades, trades_factory, vector_for
    ):
        """Test that same-sized but different data is regenerated in hash mode."""
        other = build_documents(holdings, trades_factory(30, funds=("Delta Fund",)))
        cache.save_all([d.with_embedding(vector_for(d.text)) for d in other], fingerprint="stale")
        config = rag_config.model_copy(update={"cache_validation": "hash"})

        report = make_indexer(fake_embeddings, cache, config).build_index(holdings, trades)

        assert report.source == "embeddings"
        assert cache.load_fingerprint() != "stale"

    def test_hash_validation_accepts_matching_content(self, rag_config, cache, embeddings_factory, holdings, trades):
        config = rag_config.model_copy(update={"cache_validation": "hash"})
        make_indexer(embeddings_factory(), cache, config).build_index(holdings, trades)
        embeddings = embeddings_factory()

        report = make_indexer(embeddings, cache, config).build_index(holdings, trades)

        assert report.source == "cache"
        assert embeddings.batch_calls == []

    def test_unreadable_cache_falls_back_to_generation(self, rag_config, fake_embeddings, holdings, trades):
        cache = MagicMock(spec=EmbeddingCache)
        cache.load_all.side_effect = CacheUnavailable("disk gone")
        cache.save_all.side_effect = CacheUnavailable("disk gone")

        indexer = make_indexer(fake_embeddings, cache, rag_config)
        report = indexer.build_index(holdings, trades)

        assert report.source == "embeddings"
        assert report.cache_saved is False
        assert indexer.status.state == IndexState.READY


class TestGeneration:
    """Tests for embedding generation."""

    def test_builds_all_batches(self, rag_config, cache, fake_embeddings, holdings, trades):
        store = VectorStore()
        progress = []

        report = make_indexer(fake_embeddings, cache, rag_config, store).build_index(
            holdings, trades, on_progress=progress.append
        )

        assert [len(call) for call in fake_embeddings.batch_calls] == [50, 50, 50]
        assert progress == [33, 67, 100]
        assert [item.id for item in store.snapshot()] == [str(i) for i in range(150)]
        assert report.complete
        assert report.cache_saved
        assert cache.count() == 150

    def test_failed_batch_is_skipped(self, rag_config, cache, embeddings_factory, holdings, trades):
        """Test that batch two failing leaves ids 50-99 out and the build carries on."""
        embeddings = embeddings_factory(fail_on_calls={2})
        store = VectorStore()
        progress = []
        indexer = make_indexer(embeddings, cache, rag_config, store)

        report = indexer.build_index(holdings, trades, on_progress=progress.append)

        ids = {item.id for item in store.snapshot()}
        assert len(ids) == 100
        assert not ids & {str(i) for i in range(50, 100)}
        assert progress[-1] == 100
        assert len(report.failed_batches) == 1
        assert report.failed_batches[0].ids == [str(i) for i in range(50, 100)]
        assert not report.complete
        assert indexer.status.state == IndexState.READY

    def test_all_batches_fail(self, rag_config, cache, embeddings_factory, holdings, trades):
        embeddings = embeddings_factory(fail_on_calls={1, 2, 3})
        store = VectorStore()
        indexer = make_indexer(embeddings, cache, rag_config, store)

        report = indexer.build_index(holdings, trades)

        assert report.indexed_count == 0
        assert report.cache_saved is False
        assert store.is_empty()
        assert indexer.status.state == IndexState.FAILED
        assert indexer.status.error
        assert cache.count() == 0

    def test_failed_build_can_be_retried(self, rag_config, cache, embeddings_factory, holdings, trades):
        """Test that a FAILED indexer accepts another build_index call."""
        indexer = make_indexer(embeddings_factory(fail_on_calls={1, 2, 3}), cache, rag_config)
        indexer.build_index(holdings, trades)
        indexer.embedding_service = embeddings_factory()

        report = indexer.build_index(holdings, trades)

        assert report is not None
        assert indexer.is_ready

    def test_concurrent_batches(self, rag_config, cache, fake_embeddings, holdings, trades):
        """Test that parallel batches keep progress monotonic and ids ordered."""
        config = rag_config.model_copy(update={"embedding_batch_size": 10, "embedding_max_workers": 4})
        store = VectorStore()
        progress = []

        make_indexer(fake_embeddings, cache, config, store).build_index(
            holdings, trades, on_progress=progress.append
        )

        assert len(fake_embeddings.batch_calls) == 15
        assert progress == sorted(progress)
        assert progress[-1] == 100
        assert [item.id for item in store.snapshot()] == [str(i) for i in range(150)]

    def test_no_records(self, rag_config, fake_embeddings):
        progress = []
        indexer = make_indexer(fake_embeddings, None, rag_config)

        report = indexer.build_index([], [], on_progress=progress.append)

        assert report.indexed_count == 0
        assert progress == [100]
        assert indexer.status.state == IndexState.READY
        assert fake_embeddings.batch_calls == []

    def test_unexpected_error_marks_failed(self, rag_config, fake_embeddings, holdings, trades):
        store = MagicMock(spec=VectorStore)
        store.replace_all.side_effect = RuntimeError("boom")
        indexer = make_indexer(fake_embeddings, None, rag_config, store)

        with pytest.raises(RuntimeError):
            indexer.build_index(holdings, trades)

        assert indexer.status.state == IndexState.FAILED
        assert indexer.status.error == "boom"


class TestBuildState:
    """Tests for the once-only build guard."""

    def test_starts_uninitialized(self, rag_config, fake_embeddings):
        status = make_indexer(fake_embeddings, None, rag_config).status
        assert status.state == IndexState.UNINITIALIZED
        assert status.progress == 0

    def test_second_call_is_noop(self, rag_config, cache, fake_embeddings, holdings, trades):
        indexer = make_indexer(fake_embeddings, cache, rag_config)
        indexer.build_index(holdings, trades)

        assert indexer.build_index(holdings, trades) is None
        assert len(fake_embeddings.batch_calls) == 3

    def test_call_during_build_is_noop(self, rag_config, fake_embeddings, holdings, trades):
        """Test that a build started while another is running does nothing."""
        indexer = make_indexer(fake_embeddings, None, rag_config)
        nested = []

        def on_progress(percent):
            nested.append(indexer.build_index(holdings, trades))
            assert indexer.status.state == IndexState.BUILDING

        indexer.build_index(holdings, trades, on_progress=on_progress)

        assert nested == [None, None, None]
        assert len(fake_embeddings.batch_calls) == 3

    def test_reset_during_build_raises(self, rag_config, fake_embeddings, holdings, trades):
        indexer = make_indexer(fake_embeddings, None, rag_config)
        errors = []

        def on_progress(percent):
            with pytest.raises(RuntimeError):
                indexer.reset()
            errors.append(percent)

        indexer.build_index(holdings, trades, on_progress=on_progress)

        assert errors == [33, 67, 100]

    def test_reset_allows_rebuild(self, rag_config, cache, embeddings_factory, holdings, trades):
        """Test that after reset the next build reloads from the saved cache."""
        embeddings = embeddings_factory()
        indexer = make_indexer(embeddings, cache, rag_config)
        indexer.build_index(holdings, trades)

        indexer.reset()
        assert indexer.status.state == IndexState.UNINITIALIZED

        report = indexer.build_index(holdings, trades)
        assert report.source == "cache"
        assert len(embeddings.batch_calls) == 3
