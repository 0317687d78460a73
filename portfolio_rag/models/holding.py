"""Pydantic models for portfolio holdings."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class HoldingRecord(BaseModel):
    """
    Single position held by a fund on the as-of date.

    Field aliases match the column names of the holdings export, so records
    can be validated straight from exported rows or built by field name.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "AsOfDate": "2024-03-28",
                "ShortName": "GROWTH",
                "PortfolioName": "Global Growth Fund",
                "SecurityTypeName": "Equity",
                "SecName": "APPLE INC",
                "Qty": 1500,
                "Price": 171.48,
                "MV_Base": 257220.0,
                "PL_YTD": 12850.5,
            }
        },
    )

    as_of_date: str = Field(default="", alias="AsOfDate", description="Position date as exported")
    short_name: str = Field(default="", alias="ShortName", description="Short fund code")
    portfolio_name: str = Field(default="", alias="PortfolioName", description="Fund name")
    security_type_name: str = Field(
        default="",
        alias="SecurityTypeName",
        description="Security type (e.g., 'Equity', 'Bond', 'Option')"
    )
    sec_name: str = Field(default="", alias="SecName", description="Security name")
    direction_name: Optional[str] = Field(None, alias="DirectionName", description="Long or short")
    custodian_name: Optional[str] = Field(None, alias="CustodianName")
    qty: float = Field(default=0.0, alias="Qty", description="Current quantity")
    price: float = Field(default=0.0, alias="Price", description="Current price")
    mv_base: float = Field(default=0.0, alias="MV_Base", description="Market value in base currency")
    pl_dtd: float = Field(default=0.0, alias="PL_DTD", description="Day-to-date P&L")
    pl_mtd: float = Field(default=0.0, alias="PL_MTD", description="Month-to-date P&L")
    pl_qtd: float = Field(default=0.0, alias="PL_QTD", description="Quarter-to-date P&L")
    pl_ytd: float = Field(default=0.0, alias="PL_YTD", description="Year-to-date P&L")

    @property
    def fund_name(self) -> str:
        """Fund the position belongs to, falling back to the short code."""
        return self.portfolio_name or self.short_name
