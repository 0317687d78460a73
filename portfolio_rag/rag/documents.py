"""
Record Documents for RAG

Turns holdings and trades into short descriptive sentences that are
embedded and later quoted back verbatim in the model context.

Strategy:
- One sentence per record, holdings first, then trades
- Only the fields a question is likely to mention (fund, type, values, date)
- Sequential string ids in indexing order
- Original record kept as tagged metadata
"""

import hashlib
from dataclasses import dataclass
from typing import Annotated, List, Literal, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from ..models import HoldingRecord, TradeRecord


class HoldingMetadata(BaseModel):
    type: Literal["holding"] = "holding"
    original: HoldingRecord


class TradeMetadata(BaseModel):
    type: Literal["trade"] = "trade"
    original: TradeRecord


RecordMetadata = Annotated[
    Union[HoldingMetadata, TradeMetadata],
    Field(discriminator="type")
]


class EmbeddedItem(BaseModel):
    """A record sentence with its embedding, as stored and cached."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    embedding: List[float]
    metadata: RecordMetadata

    @property
    def dimension(self) -> int:
        return len(self.embedding)


@dataclass
class RecordDocument:
    """A synthesized record sentence waiting to be embedded."""
    id: str
    text: str
    metadata: Union[HoldingMetadata, TradeMetadata]

    def with_embedding(self, embedding: List[float]) -> EmbeddedItem:
        return EmbeddedItem(
            id=self.id,
            text=self.text,
            embedding=embedding,
            metadata=self.metadata
        )


def _fmt(value) -> str:
    """Render numbers the way they read in the export (no trailing .0)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def holding_text(holding: HoldingRecord) -> str:
    return (
        f"Holding Fund: {holding.portfolio_name}, "
        f"Security: {holding.security_type_name}, "
        f"MV: {_fmt(holding.mv_base)}, "
        f"PL: {_fmt(holding.pl_ytd)}"
    )


def trade_text(trade: TradeRecord) -> str:
    return (
        f"Trade Fund: {trade.portfolio_name}, "
        f"Type: {trade.trade_type_name}, "
        f"Date: {trade.trade_date}, "
        f"Qty: {_fmt(trade.quantity)}, "
        f"Price: {_fmt(trade.price)}"
    )


def build_documents(
    holdings: Sequence[HoldingRecord],
    trades: Sequence[TradeRecord]
) -> List[RecordDocument]:
    """
    Synthesize one document per record.

    Args:
        holdings: Holdings in export order
        trades: Trades in export order

    Returns:
        Holdings documents followed by trade documents, ids "0".."N-1"
    """
    documents = []

    for holding in holdings:
        documents.append(RecordDocument(
            id=str(len(documents)),
            text=holding_text(holding),
            metadata=HoldingMetadata(original=holding)
        ))

    for trade in trades:
        documents.append(RecordDocument(
            id=str(len(documents)),
            text=trade_text(trade),
            metadata=TradeMetadata(original=trade)
        ))

    return documents


def content_fingerprint(texts: Sequence[str]) -> str:
    """SHA-256 over the synthesized texts, used to detect changed data."""
    digest = hashlib.sha256()
    for text in texts:
        digest.update(text.encode("utf-8"))
        digest.update(b"\n")
    return digest.hexdigest()
