"""Load exported holdings and trades from JSON files."""

import logging
from pathlib import Path
from typing import List, Tuple

from pydantic import TypeAdapter

from .holding import HoldingRecord
from .trade import TradeRecord

logger = logging.getLogger(__name__)

_holdings_adapter = TypeAdapter(List[HoldingRecord])
_trades_adapter = TypeAdapter(List[TradeRecord])


def load_records(
    holdings_path: Path,
    trades_path: Path
) -> Tuple[List[HoldingRecord], List[TradeRecord]]:
    """
    Load holdings and trades exported as JSON arrays of row objects.

    Args:
        holdings_path: JSON file with holding rows
        trades_path: JSON file with trade rows

    Returns:
        Tuple of (holdings, trades)

    Raises:
        FileNotFoundError: If either file is missing
        pydantic.ValidationError: If a row does not match the record model
    """
    missing = [str(p) for p in (holdings_path, trades_path) if not Path(p).exists()]
    if missing:
        raise FileNotFoundError(f"Missing record files: {', '.join(missing)}")

    holdings = _holdings_adapter.validate_json(Path(holdings_path).read_bytes())
    trades = _trades_adapter.validate_json(Path(trades_path).read_bytes())

    logger.info(f"Loaded {len(holdings)} holdings and {len(trades)} trades")
    return holdings, trades
