"""
Build the Portfolio Record Index

This script:
1. Loads holdings and trades from JSON exports
2. Reuses cached embeddings when they match the records
3. Otherwise embeds every record in batches through the embedding API
4. Saves the embeddings to the persistent cache

Usage:
    # Build (or load from cache)
    python scripts/build_index.py --holdings data/holdings.json --trades data/trades.json

    # Ignore the cache and regenerate everything
    python scripts/build_index.py --holdings data/holdings.json --trades data/trades.json --rebuild

    # Embed 4 batches at a time
    python scripts/build_index.py --holdings data/holdings.json --trades data/trades.json --workers 4
"""

import sys
import logging
import argparse
from pathlib import Path

from dotenv import load_dotenv
from tqdm import tqdm

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from portfolio_rag.analysis import get_best_performing_funds, get_fund_summaries
from portfolio_rag.models import load_records
from portfolio_rag.rag.config import get_rag_config
from portfolio_rag.rag.indexer import get_indexer

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Load environment
load_dotenv()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Build the embedding index for portfolio holdings and trades"
    )
    parser.add_argument(
        "--holdings",
        type=Path,
        required=True,
        help="JSON file with holding rows"
    )
    parser.add_argument(
        "--trades",
        type=Path,
        required=True,
        help="JSON file with trade rows"
    )
    parser.add_argument(
        "--rebuild",
        action="store_true",
        help="Clear the embedding cache before building"
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Embedding batches to run concurrently"
    )

    args = parser.parse_args()

    config = get_rag_config()
    if args.workers:
        config = config.model_copy(update={"embedding_max_workers": args.workers})

    if not config.embedding_api_key:
        logger.error("RAG_EMBEDDING_API_KEY / OPENAI_API_KEY not found in environment")
        sys.exit(1)

    try:
        holdings, trades = load_records(args.holdings, args.trades)
    except Exception as e:
        logger.error(f"Failed to load records: {e}")
        sys.exit(1)

    indexer = get_indexer(config)

    if args.rebuild and indexer.cache is not None:
        logger.info("Clearing embedding cache...")
        indexer.cache.clear()

    try:
        with tqdm(total=100, unit="%", desc="Indexing") as bar:
            def on_progress(percent: int):
                bar.update(percent - bar.n)

            report = indexer.build_index(holdings, trades, on_progress=on_progress)
    except KeyboardInterrupt:
        logger.info("\nIndexing interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"\nIndexing failed: {e}", exc_info=True)
        sys.exit(1)

    summaries = get_fund_summaries(holdings, trades)
    logger.info(f"Funds: {len(summaries)}")
    for summary in get_best_performing_funds(holdings)[:5]:
        logger.info(
            f"  {summary.name}: {summary.total_holdings} holdings, "
            f"YTD P&L {summary.total_pl_ytd:,.2f}"
        )

    if report is not None:
        for failure in report.failed_batches:
            logger.warning(f"Missing from index: {failure}")

    if not indexer.is_ready:
        logger.error(f"Index not ready: {indexer.status.error}")
        sys.exit(1)

    logger.info("\nIndex built successfully!")
    sys.exit(0)


if __name__ == "__main__":
    main()
