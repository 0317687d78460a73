"""
Knowledge Base Indexer

Builds the in-memory vector store from holdings and trades:

1. Synthesize one sentence per record (holdings first, then trades)
2. Reuse the persistent cache when it matches the dataset (no API calls)
3. Otherwise embed the sentences in fixed-size batches; a failed batch is
   logged and skipped, the build carries on
4. Publish the result to the vector store in one replacement
5. Write the new index back to the cache (failures are not fatal)

Each Indexer owns its build state, so several indexes can coexist.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from ..models import HoldingRecord, TradeRecord
from .cache import EmbeddingCache
from .config import RAGConfig
from .documents import EmbeddedItem, RecordDocument, build_documents, content_fingerprint
from .embedding_service import EmbeddingService
from .errors import BatchFailure, CacheUnavailable, ProviderError
from .vector_store import VectorStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class IndexState(str, Enum):
    UNINITIALIZED = "uninitialized"
    BUILDING = "building"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class IndexStatus:
    """Snapshot of an indexer's build state."""
    state: IndexState = IndexState.UNINITIALIZED
    progress: int = 0
    error: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.state == IndexState.READY


@dataclass
class IndexBuildReport:
    """Outcome of one build_index run."""
    source: str  # "cache" or "embeddings"
    expected_count: int
    indexed_count: int
    failed_batches: List[BatchFailure] = field(default_factory=list)
    cache_saved: bool = False
    elapsed_ms: int = 0

    @property
    def complete(self) -> bool:
        return self.indexed_count == self.expected_count and not self.failed_batches


def progress_percent(done: int, total: int) -> int:
    """Whole percent of ``done`` out of ``total``, rounded half up, capped at 100."""
    if total <= 0:
        return 100
    return min(100, (200 * done + total) // (2 * total))


class Indexer:
    """Loads or generates the record index, at most once until reset."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_store: VectorStore,
        cache: Optional[EmbeddingCache],
        config: RAGConfig
    ):
        """
        Initialize indexer.

        Args:
            embedding_service: Service used to embed record sentences
            vector_store: Store the index is published to
            cache: Persistent cache (None disables persistence)
            config: RAG configuration
        """
        self.embedding_service = embedding_service
        self.vector_store = vector_store
        self.cache = cache
        self.config = config

        self._lock = threading.Lock()
        self._status = IndexStatus()

    @property
    def status(self) -> IndexStatus:
        with self._lock:
            return self._status

    @property
    def is_ready(self) -> bool:
        return self.status.is_ready

    def reset(self):
        """
        Allow the next build_index call to rebuild from scratch.

        Raises:
            RuntimeError: If a build is in progress
        """
        with self._lock:
            if self._status.state == IndexState.BUILDING:
                raise RuntimeError("Cannot reset indexer while a build is running")
            self._status = IndexStatus()

    def build_index(
        self,
        holdings: Sequence[HoldingRecord],
        trades: Sequence[TradeRecord],
        on_progress: Optional[ProgressCallback] = None
    ) -> Optional[IndexBuildReport]:
        """
        Build the index from cache or by embedding every record.

        A call while a build is running or after one succeeded does nothing.

        Args:
            holdings: All holdings, in export order
            trades: All trades, in export order
            on_progress: Called with 0-100 after each step, ends at 100

        Returns:
            IndexBuildReport, or None if the call was a no-op
        """
        with self._lock:
            if self._status.state in (IndexState.BUILDING, IndexState.READY):
                logger.info(f"Index build skipped: indexer is {self._status.state.value}")
                return None
            self._status = IndexStatus(state=IndexState.BUILDING)

        start_time = time.time()

        try:
            documents = build_documents(holdings, trades)
            fingerprint = content_fingerprint([doc.text for doc in documents])

            report = self._load_from_cache(documents, fingerprint, on_progress)
            if report is None:
                report = self._generate(documents, fingerprint, on_progress)
        except Exception as e:
            logger.error(f"Index build failed: {e}", exc_info=True)
            with self._lock:
                self._status = IndexStatus(
                    state=IndexState.FAILED,
                    progress=self._status.progress,
                    error=str(e)
                )
            raise

        report.elapsed_ms = int((time.time() - start_time) * 1000)

        with self._lock:
            if report.indexed_count == 0 and report.expected_count > 0:
                self._status = IndexStatus(
                    state=IndexState.FAILED,
                    progress=self._status.progress,
                    error="No embedding batch succeeded"
                )
            else:
                self._status = IndexStatus(state=IndexState.READY, progress=100)

        self._log_summary(report)
        return report

    def _report_progress(self, percent: int, on_progress: Optional[ProgressCallback]):
        with self._lock:
            percent = max(percent, self._status.progress)
            self._status = IndexStatus(state=self._status.state, progress=percent)
        if on_progress is not None:
            on_progress(percent)

    def _load_from_cache(
        self,
        documents: List[RecordDocument],
        fingerprint: str,
        on_progress: Optional[ProgressCallback]
    ) -> Optional[IndexBuildReport]:
        """Fast path: publish the cached index if it matches the dataset."""
        if self.cache is None:
            return None

        expected_count = len(documents)

        try:
            cached = self.cache.load_all()
        except CacheUnavailable as e:
            logger.warning(f"Failed to load cache: {e}")
            return None

        if not cached or abs(len(cached) - expected_count) >= self.config.cache_staleness_tolerance:
            logger.info(
                f"Cache holds {len(cached)} embeddings, expected {expected_count}; regenerating"
            )
            return None

        expected_dimension = self.embedding_service.dimension
        if cached[0].dimension != expected_dimension:
            logger.info(
                f"Cached embeddings have dimension {cached[0].dimension}, "
                f"provider returns {expected_dimension}; regenerating"
            )
            return None

        if self.config.cache_validation == "hash":
            try:
                stored = self.cache.load_fingerprint()
            except CacheUnavailable as e:
                logger.warning(f"Failed to load cache fingerprint: {e}")
                return None
            if stored != fingerprint:
                logger.info("Cache fingerprint does not match the current records; regenerating")
                return None

        self.vector_store.replace_all(cached)
        self._report_progress(100, on_progress)

        logger.info("Loaded embeddings from cache. Skipping API calls.")
        return IndexBuildReport(
            source="cache",
            expected_count=expected_count,
            indexed_count=len(cached),
            cache_saved=True
        )

    def _embed_batch(self, batch: List[RecordDocument]) -> List[EmbeddedItem]:
        vectors = self.embedding_service.embed_batch([doc.text for doc in batch])
        if len(vectors) != len(batch):
            raise ProviderError(f"Got {len(vectors)} embeddings for {len(batch)} texts")
        return [doc.with_embedding(vector) for doc, vector in zip(batch, vectors)]

    def _generate(
        self,
        documents: List[RecordDocument],
        fingerprint: str,
        on_progress: Optional[ProgressCallback]
    ) -> IndexBuildReport:
        """Slow path: embed every document in batches."""
        self.vector_store.clear()

        total = len(documents)
        batch_size = self.config.embedding_batch_size
        batches = [documents[i:i + batch_size] for i in range(0, total, batch_size)]

        logger.info(
            f"Embedding {total} records in {len(batches)} batches of {batch_size} "
            f"({self.config.embedding_max_workers} concurrent)"
        )

        embedded: Dict[int, List[EmbeddedItem]] = {}
        failures: List[BatchFailure] = []
        done = 0

        if not batches:
            self._report_progress(100, on_progress)

        with ThreadPoolExecutor(max_workers=self.config.embedding_max_workers) as executor:
            futures = {
                executor.submit(self._embed_batch, batch): batch_index
                for batch_index, batch in enumerate(batches)
            }

            # Completions are handled on this thread, so progress stays serialized
            for future in as_completed(futures):
                batch_index = futures[future]
                batch_start = batch_index * batch_size
                batch_len = len(batches[batch_index])

                try:
                    embedded[batch_index] = future.result()
                except Exception as e:
                    failure = BatchFailure(batch_index, batch_start, batch_start + batch_len, str(e))
                    logger.error(f"Batch embedding failed: {failure}")
                    failures.append(failure)

                done += batch_len
                self._report_progress(progress_percent(done, total), on_progress)

        items = [item for batch_index in sorted(embedded) for item in embedded[batch_index]]
        self.vector_store.replace_all(items)

        return IndexBuildReport(
            source="embeddings",
            expected_count=total,
            indexed_count=len(items),
            failed_batches=sorted(failures, key=lambda f: f.batch_index),
            cache_saved=self._save_to_cache(items, fingerprint)
        )

    def _save_to_cache(self, items: List[EmbeddedItem], fingerprint: str) -> bool:
        if self.cache is None:
            return False

        if not items:
            logger.warning("No embeddings generated; leaving cache untouched")
            return False

        try:
            if self.config.cache_clear_before_save:
                self.cache.clear()
            self.cache.save_all(items, fingerprint=fingerprint)
        except CacheUnavailable as e:
            logger.error(f"Failed to save to cache: {e}")
            return False

        logger.info("Saved embeddings to cache.")
        return True

    def _log_summary(self, report: IndexBuildReport):
        logger.info("=" * 60)
        logger.info("INDEX BUILD SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Source:           {report.source}")
        logger.info(f"Records expected: {report.expected_count}")
        logger.info(f"Records indexed:  {report.indexed_count}")
        logger.info(f"Failed batches:   {len(report.failed_batches)}")
        logger.info(f"Cache saved:      {report.cache_saved}")
        logger.info(f"Elapsed:          {report.elapsed_ms} ms")
        logger.info("=" * 60)


def get_indexer(config: Optional[RAGConfig] = None) -> Indexer:
    """
    Get indexer wired to the default embedding service, store and cache.

    Args:
        config: RAG configuration (optional)

    Returns:
        Indexer instance
    """
    from .embedding_service import get_embedding_service
    from .cache import get_embedding_cache
    from .vector_store import get_vector_store

    if config is None:
        from .config import get_rag_config
        config = get_rag_config()

    try:
        cache = get_embedding_cache(config)
    except CacheUnavailable as e:
        logger.warning(f"Embedding cache disabled: {e}")
        cache = None

    return Indexer(
        embedding_service=get_embedding_service(config),
        vector_store=get_vector_store(),
        cache=cache,
        config=config
    )
