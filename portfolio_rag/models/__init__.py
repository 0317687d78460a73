"""Pydantic data models for portfolio records."""

from .holding import HoldingRecord
from .trade import TradeRecord
from .loader import load_records

__all__ = ["HoldingRecord", "TradeRecord", "load_records"]
