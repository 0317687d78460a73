"""Per-fund summaries and type breakdowns over the loaded records."""

from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..models import HoldingRecord, TradeRecord
from .stats import format_currency, format_number


@dataclass
class FundSummary:
    name: str
    total_holdings: int = 0
    total_trades: int = 0
    total_pl_ytd: float = 0.0
    total_mv_base: float = 0.0


def get_fund_summaries(
    holdings: Sequence[HoldingRecord],
    trades: Sequence[TradeRecord]
) -> List[FundSummary]:
    """
    Summarize holdings and trades per fund, in first-seen order.

    Records without a fund name are skipped.
    """
    summaries: Dict[str, FundSummary] = {}

    for holding in holdings:
        name = holding.fund_name
        if not name:
            continue
        summary = summaries.setdefault(name, FundSummary(name=name))
        summary.total_holdings += 1
        summary.total_pl_ytd += holding.pl_ytd
        summary.total_mv_base += holding.mv_base

    for trade in trades:
        name = trade.fund_name
        if not name:
            continue
        summaries.setdefault(name, FundSummary(name=name)).total_trades += 1

    return list(summaries.values())


def get_unique_funds(
    holdings: Sequence[HoldingRecord],
    trades: Sequence[TradeRecord]
) -> List[str]:
    """Sorted fund names across holdings and trades."""
    funds = {h.fund_name for h in holdings} | {t.fund_name for t in trades}
    return sorted(f for f in funds if f)


def get_best_performing_funds(holdings: Sequence[HoldingRecord]) -> List[FundSummary]:
    """Funds ranked by summed YTD P&L, best first."""
    summaries = get_fund_summaries(holdings, [])
    return sorted(summaries, key=lambda s: s.total_pl_ytd, reverse=True)


def get_worst_performing_funds(holdings: Sequence[HoldingRecord]) -> List[FundSummary]:
    """Funds ranked by summed YTD P&L, worst first."""
    return list(reversed(get_best_performing_funds(holdings)))


def get_security_type_breakdown(holdings: Sequence[HoldingRecord]) -> Dict[str, int]:
    """Holding counts per security type; blanks count as 'Unknown'."""
    return dict(Counter(h.security_type_name or "Unknown" for h in holdings))


def get_trade_type_breakdown(trades: Sequence[TradeRecord]) -> Dict[str, int]:
    """Trade counts per trade type; blanks count as 'Unknown'."""
    return dict(Counter(t.trade_type_name or "Unknown" for t in trades))


def format_fund_overview(
    holdings: Sequence[HoldingRecord],
    trades: Sequence[TradeRecord],
    limit: Optional[int] = None
) -> str:
    """
    Render per-fund totals and type breakdowns as a text block for the model.

    Funds are listed best YTD P&L first; funds with only trades come last.

    Args:
        holdings: All holdings
        trades: All trades
        limit: Maximum fund lines (optional)

    Returns:
        Multi-line text block
    """
    summaries = sorted(
        get_fund_summaries(holdings, trades),
        key=lambda s: (s.total_holdings == 0, -s.total_pl_ytd)
    )
    if limit is not None:
        summaries = summaries[:max(0, limit)]

    lines = ["FUND OVERVIEW:"]
    lines.extend(
        f"- {s.name}: {format_number(s.total_holdings)} holdings, "
        f"{format_number(s.total_trades)} trades, "
        f"MV {format_currency(s.total_mv_base)}, YTD P&L {format_currency(s.total_pl_ytd)}"
        for s in summaries
    )

    security_types = get_security_type_breakdown(holdings)
    if security_types:
        lines.append("- Holdings by security type: " + ", ".join(
            f"{name} {count}" for name, count in security_types.items()
        ))
    trade_types = get_trade_type_breakdown(trades)
    if trade_types:
        lines.append("- Trades by type: " + ", ".join(
            f"{name} {count}" for name, count in trade_types.items()
        ))

    return "\n".join(lines)
