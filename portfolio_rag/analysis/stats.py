"""
Global Portfolio Statistics

Aggregates computed over the full record set and sent with every question,
so the model can answer totals that top-K retrieval alone cannot.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence, Tuple

from ..models import HoldingRecord, TradeRecord

# Formats seen in trade exports, tried in order
_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%Y/%m/%d", "%d-%b-%Y")


@dataclass
class GlobalStats:
    total_holdings: int
    total_trades: int
    total_market_value: float
    total_pl: float
    unique_funds_count: int
    date_range: Optional[Tuple[date, date]]
    top_fund_by_pl: str
    top_fund_by_mv: str


def parse_trade_date(value: str) -> Optional[date]:
    """
    Parse an exported trade date.

    Accepts ISO dates (optionally with a time part) and a few common
    day/month layouts.

    Returns:
        date, or None if the value is empty or unrecognised
    """
    value = (value or "").strip()
    if not value:
        return None

    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        pass

    # Date part only: drop a " 10:30" or "T10:30:00Z" time suffix
    head = value.split()[0]
    candidates = (head, head.partition("T")[0])

    for fmt in _DATE_FORMATS:
        for candidate in candidates:
            try:
                return datetime.strptime(candidate, fmt).date()
            except ValueError:
                continue
    return None


def calculate_global_stats(
    holdings: Sequence[HoldingRecord],
    trades: Sequence[TradeRecord]
) -> GlobalStats:
    """
    Compute portfolio-wide aggregates.

    Top funds are the funds of the single holding with the largest YTD P&L
    and the largest market value; the first one wins on ties.

    Args:
        holdings: All holdings
        trades: All trades

    Returns:
        GlobalStats
    """
    unique_funds = {h.portfolio_name for h in holdings} | {t.portfolio_name for t in trades}

    dates = [d for d in (parse_trade_date(t.trade_date) for t in trades) if d is not None]
    date_range = (min(dates), max(dates)) if dates else None

    top_by_pl = max(holdings, key=lambda h: h.pl_ytd, default=None)
    top_by_mv = max(holdings, key=lambda h: h.mv_base, default=None)

    return GlobalStats(
        total_holdings=len(holdings),
        total_trades=len(trades),
        total_market_value=sum(h.mv_base for h in holdings),
        total_pl=sum(h.pl_ytd for h in holdings),
        unique_funds_count=len(unique_funds),
        date_range=date_range,
        top_fund_by_pl=top_by_pl.portfolio_name if top_by_pl and top_by_pl.portfolio_name else "N/A",
        top_fund_by_mv=top_by_mv.portfolio_name if top_by_mv and top_by_mv.portfolio_name else "N/A",
    )


def format_currency(value: float) -> str:
    """US dollar formatting: $1,234.50 / -$1,234.50."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_number(value) -> str:
    return f"{value:,}"


def format_date(value: date) -> str:
    """Month/day/year without zero padding (1/5/2024)."""
    return f"{value.month}/{value.day}/{value.year}"


def format_global_stats(stats: GlobalStats) -> str:
    """
    Render stats as the labeled block placed at the top of the model context.

    Args:
        stats: Computed statistics

    Returns:
        Multi-line text block
    """
    if stats.date_range:
        activity = f"{format_date(stats.date_range[0])} to {format_date(stats.date_range[1])}"
    else:
        activity = "N/A"

    lines = [
        "GLOBAL PORTFOLIO STATS:",
        f"- Total Funds: {format_number(stats.unique_funds_count)}",
        f"- Total Holdings Records: {format_number(stats.total_holdings)}",
        f"- Total Trade Records: {format_number(stats.total_trades)}",
        f"- Total Market Value: {format_currency(stats.total_market_value)}",
        f"- Total YTD P&L: {format_currency(stats.total_pl)}",
        f"- Best Performing Fund (YTD): {stats.top_fund_by_pl}",
        f"- Largest Holding (MV): {stats.top_fund_by_mv}",
        f"- Trading Activity Range: {activity}",
    ]
    return "\n".join(lines)
