"""
Portfolio Assistant.

Answers natural language questions about holdings and trades:

1. Make sure the record index is ready (otherwise ask the user to wait)
2. Retrieve the most similar records for the question
3. Combine them with global statistics and per-fund totals into the system prompt
4. Send system prompt + recent conversation + question to the LLM
"""

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from ..analysis.funds import format_fund_overview
from ..analysis.stats import calculate_global_stats
from ..models import HoldingRecord, TradeRecord
from ..rag.config import RAGConfig
from ..rag.context import build_context
from ..rag.errors import DimensionMismatchError, NotIndexedError, ProviderError, RAGError
from ..rag.indexer import Indexer, IndexState
from ..rag.search import SimilaritySearch
from .llm_config import LLMClient
from .prompts import get_system_prompt

logger = logging.getLogger(__name__)

_RATE_LIMIT_PHRASES = ("rate_limit_error", "rate limit", "too many requests", "quota exceeded")
_TOKEN_LIMIT_PHRASES = (
    "maximum context length",
    "token limit",
    "context_length_exceeded",
    "too many tokens",
)


def describe_llm_error(error: Exception) -> str:
    """User-facing message for a failed completion call."""
    error_str = str(error).lower()
    if any(phrase in error_str for phrase in _RATE_LIMIT_PHRASES):
        return "The assistant is receiving too many requests right now. Please try again in a moment."
    if any(phrase in error_str for phrase in _TOKEN_LIMIT_PHRASES):
        return "That question needs more data than the assistant can read at once. Please ask something narrower."
    return f"I encountered an error while processing your question: {error}"


def recent_turns(
    conversation_history: Optional[Sequence[Dict[str, str]]],
    max_turns: int
) -> List[Dict[str, str]]:
    """Last ``max_turns`` user/assistant messages; system messages are dropped."""
    if not conversation_history or max_turns <= 0:
        return []
    turns = [
        {"role": msg["role"], "content": msg["content"]}
        for msg in conversation_history
        if msg.get("role") in ("user", "assistant")
    ]
    return turns[-max_turns:]


class PortfolioAssistant:
    """
    Retrieval-grounded question answering over one portfolio dataset.

    Never calls the LLM without grounding context: an unbuilt index or a
    failed query embedding ends the request with an explanatory answer.
    """

    def __init__(
        self,
        indexer: Indexer,
        search: SimilaritySearch,
        llm_client: LLMClient,
        holdings: Sequence[HoldingRecord],
        trades: Sequence[TradeRecord],
        config: RAGConfig
    ):
        self.indexer = indexer
        self.search = search
        self.llm_client = llm_client
        self.holdings = holdings
        self.trades = trades
        self.config = config

    def _not_ready(self, start_time: float) -> Dict[str, Any]:
        status = self.indexer.status

        if status.state == IndexState.FAILED:
            error = "IndexFailed"
            answer = (
                "I couldn't prepare the portfolio data because indexing failed. "
                "Please try again later."
            )
        elif status.state == IndexState.READY:
            # Build finished but produced nothing to search
            error = "NoRecords"
            answer = "There are no holdings or trades loaded, so there is nothing to search yet."
        else:
            error = "NotIndexed"
            answer = (
                f"I'm still preparing the portfolio data ({status.progress}% indexed). "
                "Please ask again once indexing has finished."
            )

        return {
            "success": False,
            "error": error,
            "answer": answer,
            "retrieved_count": 0,
            "execution_time_ms": int((time.time() - start_time) * 1000),
        }

    def ask(
        self,
        question: str,
        conversation_history: Optional[List[Dict[str, str]]] = None
    ) -> Dict[str, Any]:
        """
        Answer a question about the portfolio.

        Args:
            question: User's natural language question
            conversation_history: Previous messages ({"role", "content"}), oldest first

        Returns:
            Response dict with:
            - success: bool
            - answer: Text to show the user (always present)
            - error: Error description when success is False
            - retrieved_count: Records placed in the context
            - execution_time_ms: int
        """
        start_time = time.time()

        if not question or not question.strip():
            return {
                "success": False,
                "error": "Question cannot be empty",
                "answer": "Please type a question about the holdings or trades.",
                "retrieved_count": 0,
                "execution_time_ms": 0,
            }

        if not self.indexer.is_ready:
            return self._not_ready(start_time)

        try:
            results = self.search.search(question, self.config.top_k)
        except NotIndexedError:
            return self._not_ready(start_time)
        except ProviderError as e:
            logger.error(f"Query embedding failed: {e}")
            return {
                "success": False,
                "error": f"ProviderError: {e}",
                "answer": "I couldn't search the portfolio data right now. Please try again shortly.",
                "retrieved_count": 0,
                "execution_time_ms": int((time.time() - start_time) * 1000),
            }
        except RAGError as e:
            logger.error(f"Record search failed: {e}", exc_info=True)
            return {
                "success": False,
                "error": f"{type(e).__name__}: {e}",
                "answer": (
                    "The portfolio index doesn't match the current embedding model. "
                    "Please rebuild the index and ask again."
                    if isinstance(e, DimensionMismatchError)
                    else "I couldn't search the portfolio data right now. Please try again shortly."
                ),
                "retrieved_count": 0,
                "execution_time_ms": int((time.time() - start_time) * 1000),
            }

        stats = calculate_global_stats(self.holdings, self.trades)
        context = build_context(stats, results, max_rows=self.config.context_max_rows)
        retrieved_count = min(len(results), self.config.context_max_rows)

        fund_overview = format_fund_overview(
            self.holdings, self.trades, limit=self.config.context_max_funds
        )

        messages = [{"role": "system", "content": get_system_prompt(context, fund_overview)}]
        messages.extend(recent_turns(conversation_history, self.config.history_turns))
        messages.append({"role": "user", "content": question})

        logger.info(
            f"Asking LLM with {retrieved_count} records "
            f"(~{self.llm_client.count_tokens(messages)} tokens)"
        )

        try:
            answer = self.llm_client.complete_text(messages)
        except Exception as e:
            logger.error(f"LLM call failed: {e}", exc_info=True)
            return {
                "success": False,
                "error": f"LLM Error: {e}",
                "answer": describe_llm_error(e),
                "retrieved_count": retrieved_count,
                "execution_time_ms": int((time.time() - start_time) * 1000),
            }

        return {
            "success": True,
            "answer": answer,
            "retrieved_count": retrieved_count,
            "execution_time_ms": int((time.time() - start_time) * 1000),
        }
