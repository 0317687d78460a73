"""
In-Memory Vector Store

Holds the embedded record sentences for the lifetime of the process.

Features:
- Append and wholesale replacement
- Immutable snapshots for persistence and scanning
- Single embedding dimensionality enforced across all items
- Thread-safe: readers see either the old or the new contents, never a mix
"""

import logging
import threading
from typing import Iterable, List, Optional, Tuple

from .documents import EmbeddedItem
from .errors import DimensionMismatchError

logger = logging.getLogger(__name__)


def _common_dimension(items: List[EmbeddedItem]) -> Optional[int]:
    """Return the shared dimensionality of ``items`` or raise on a mix."""
    if not items:
        return None
    dimension = items[0].dimension
    for item in items:
        if item.dimension != dimension:
            raise DimensionMismatchError(
                f"Item {item.id} has dimension {item.dimension}, expected {dimension}"
            )
    return dimension


class VectorStore:
    """Ordered collection of embedded items, in indexing order."""

    def __init__(self):
        self._lock = threading.Lock()
        self._items: Tuple[EmbeddedItem, ...] = ()
        self._dimension: Optional[int] = None

    def insert(self, item: EmbeddedItem):
        """
        Append one item. No de-duplication is done.

        Raises:
            DimensionMismatchError: If the item's length differs from the store's
        """
        with self._lock:
            if self._dimension is not None and item.dimension != self._dimension:
                raise DimensionMismatchError(
                    f"Item {item.id} has dimension {item.dimension}, "
                    f"store holds {self._dimension}"
                )
            self._items = self._items + (item,)
            self._dimension = item.dimension

    def replace_all(self, items: Iterable[EmbeddedItem]):
        """
        Atomically replace the whole contents.

        Args:
            items: New contents, in indexing order

        Raises:
            DimensionMismatchError: If the new items mix dimensionalities
        """
        new_items = list(items)
        dimension = _common_dimension(new_items)

        with self._lock:
            self._items = tuple(new_items)
            self._dimension = dimension

        logger.info(f"Vector store now holds {len(new_items)} items")

    def snapshot(self) -> Tuple[EmbeddedItem, ...]:
        """Read-only view of the current contents."""
        with self._lock:
            return self._items

    def clear(self):
        self.replace_all([])

    def is_empty(self) -> bool:
        return len(self) == 0

    @property
    def dimension(self) -> Optional[int]:
        with self._lock:
            return self._dimension

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


def get_vector_store() -> VectorStore:
    """
    Get vector store instance.

    Returns:
        Empty VectorStore
    """
    return VectorStore()
