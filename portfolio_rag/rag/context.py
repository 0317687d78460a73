"""
Context Assembly

Builds the text block handed to the completion model: global statistics
followed by the retrieved record sentences, best match first.
"""

from typing import Optional, Sequence

from ..analysis.stats import GlobalStats, format_global_stats
from .search import SearchResult

RECORDS_HEADER = "RELEVANT RECORDS:"
NOT_INDEXED_LINE = "- Record retrieval is unavailable: the knowledge base is still being indexed."


def build_context(
    stats: GlobalStats,
    results: Optional[Sequence[SearchResult]],
    max_rows: Optional[int] = None
) -> str:
    """
    Assemble the model context.

    Args:
        stats: Global statistics for the whole dataset
        results: Ranked search results, or None when nothing is indexed yet
        max_rows: Cap on record lines (optional)

    Returns:
        Context text
    """
    lines = [format_global_stats(stats), "", RECORDS_HEADER]

    if results is None:
        lines.append(NOT_INDEXED_LINE)
    else:
        if max_rows is not None:
            results = results[:max(0, max_rows)]
        lines.extend(f"- {result.item.text}" for result in results)

    return "\n".join(lines)
