"""Aggregate statistics over portfolio records."""

from .stats import GlobalStats, calculate_global_stats, format_global_stats
from .funds import (
    FundSummary,
    get_fund_summaries,
    get_unique_funds,
    get_best_performing_funds,
    get_worst_performing_funds,
    get_security_type_breakdown,
    get_trade_type_breakdown,
    format_fund_overview,
)

__all__ = [
    "GlobalStats",
    "calculate_global_stats",
    "format_global_stats",
    "FundSummary",
    "get_fund_summaries",
    "get_unique_funds",
    "get_best_performing_funds",
    "get_worst_performing_funds",
    "get_security_type_breakdown",
    "get_trade_type_breakdown",
    "format_fund_overview",
]
