"""Error types raised by the retrieval subsystem."""

from typing import Optional


class RAGError(Exception):
    """Base class for retrieval errors."""


class ProviderError(RAGError):
    """Remote embedding or completion call failed (credentials, status, payload)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CacheUnavailable(RAGError):
    """Persistent embedding cache could not be opened or read back."""


class NotIndexedError(RAGError):
    """Search attempted before any index has been built or loaded."""


class DimensionMismatchError(RAGError, ValueError):
    """Embeddings of different lengths were mixed in one store."""


class BatchFailure(RAGError):
    """
    One embedding batch failed during an index build.

    Recorded on the build report instead of being raised; the items in
    ``[start, end)`` are absent from the resulting index.
    """

    def __init__(self, batch_index: int, start: int, end: int, reason: str):
        super().__init__(f"Batch {batch_index} (items {start}-{end - 1}) failed: {reason}")
        self.batch_index = batch_index
        self.start = start
        self.end = end
        self.reason = reason

    @property
    def ids(self) -> list:
        return [str(i) for i in range(self.start, self.end)]
