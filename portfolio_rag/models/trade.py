"""Pydantic models for executed trades."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class TradeRecord(BaseModel):
    """
    Single trade allocation.

    The trade date is kept exactly as exported; it is only parsed when
    computing date ranges.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "TradeTypeName": "Buy",
                "PortfolioName": "Global Growth Fund",
                "Name": "APPLE INC",
                "SecurityType": "Equity",
                "TradeDate": "2024-02-14",
                "Quantity": 500,
                "Price": 184.15,
            }
        },
    )

    trade_type_name: str = Field(default="", alias="TradeTypeName", description="Buy, Sell, ...")
    portfolio_name: str = Field(default="", alias="PortfolioName", description="Fund name")
    name: str = Field(default="", alias="Name", description="Security name")
    security_type: str = Field(default="", alias="SecurityType")
    ticker: Optional[str] = Field(None, alias="Ticker")
    trade_date: str = Field(default="", alias="TradeDate", description="Trade date as exported")
    settle_date: str = Field(default="", alias="SettleDate")
    quantity: float = Field(default=0.0, alias="Quantity")
    price: float = Field(default=0.0, alias="Price")
    principal: float = Field(default=0.0, alias="Principal")
    total_cash: float = Field(default=0.0, alias="TotalCash")
    counterparty: Optional[str] = Field(None, alias="Counterparty")

    @property
    def fund_name(self) -> str:
        return self.portfolio_name
