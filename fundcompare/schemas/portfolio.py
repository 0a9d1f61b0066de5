# fundcompare/schemas/portfolio.py
"""
Pydantic schemas for the multi-fund SIP API.

Numeric values are strings (Decimal precision), percentages in percent units.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from fundcompare.schemas.comparison import RiskResponse


class FundAllocationRequest(BaseModel):
    """One fund in a multi-fund SIP."""

    instrument_id: str = Field(..., min_length=1)
    allocation: Decimal = Field(..., description="Percent of the monthly amount")
    category: str | None = Field(
        default=None,
        description="Fund category; derived from name when omitted"
    )
    name: str | None = Field(default=None, description="Scheme name")


class PortfolioSipRequest(BaseModel):
    """Split one monthly amount across several funds."""

    funds: list[FundAllocationRequest] = Field(..., min_length=1)
    monthly_amount: Decimal = Field(..., examples=["10000"])
    start_date: date
    end_date: date
    as_of: date | None = Field(default=None, description="Valuation date (default: today)")


class FundResultResponse(BaseModel):
    """Per-fund outcome."""

    instrument_id: str
    category: str
    allocation: str
    monthly_amount: str
    invested: str
    current_value: str
    units: str
    absolute_return_pct: str | None
    annualized_return_pct: str | None
    risk: RiskResponse | None = None


class PortfolioResponse(BaseModel):
    """Aggregate outcome of a multi-fund SIP."""

    total_invested: str
    current_value: str
    absolute_return: str
    absolute_return_pct: str | None
    annualized_return_pct: str | None = Field(None, description="Portfolio XIRR; null under one year")
    approximate: bool = False
    risk: RiskResponse
    funds: list[FundResultResponse]
    category_breakdown: dict[str, str] = Field(..., description="Category -> allocation percent")
    recommendations: list[str]
