"""
Ask a Question About the Portfolio

Loads (or builds) the record index, then answers one question.

Usage:
    python scripts/ask.py --holdings data/holdings.json --trades data/trades.json \
        "Which fund has the best YTD P&L?"
"""

import sys
import logging
import argparse
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from portfolio_rag.agent import PortfolioAssistant, get_llm_client
from portfolio_rag.models import load_records
from portfolio_rag.rag.config import get_rag_config
from portfolio_rag.rag.indexer import get_indexer
from portfolio_rag.rag.search import SimilaritySearch

logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

load_dotenv()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Ask a question about portfolio data")
    parser.add_argument("question", help="Natural language question")
    parser.add_argument("--holdings", type=Path, required=True, help="JSON file with holding rows")
    parser.add_argument("--trades", type=Path, required=True, help="JSON file with trade rows")
    parser.add_argument("--top-k", type=int, help="Records to retrieve")

    args = parser.parse_args()

    config = get_rag_config()
    if args.top_k:
        config = config.model_copy(update={"top_k": args.top_k})

    holdings, trades = load_records(args.holdings, args.trades)

    indexer = get_indexer(config)
    indexer.build_index(holdings, trades)

    assistant = PortfolioAssistant(
        indexer=indexer,
        search=SimilaritySearch(indexer.embedding_service, indexer.vector_store),
        llm_client=get_llm_client(),
        holdings=holdings,
        trades=trades,
        config=config
    )

    result = assistant.ask(args.question)
    print(result["answer"])

    if not result["success"]:
        logger.error(result.get("error"))
        sys.exit(1)


if __name__ == "__main__":
    main()
