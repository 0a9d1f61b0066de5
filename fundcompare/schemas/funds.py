# fundcompare/schemas/funds.py
"""
Pydantic schemas for the fund and benchmark catalog APIs.
"""

from datetime import date

from pydantic import BaseModel, Field


class FundDetailsResponse(BaseModel):
    """One instrument as served by the price source."""

    instrument_id: str
    name: str | None = Field(None, description="Scheme name, when the source provides one")
    category: str | None = Field(
        None,
        description="Category derived from the name; pass it in `categories` to get risk"
    )
    latest_price: str | None = Field(None, description="Most recent NAV")
    latest_date: date | None = None
    observations: int = Field(..., description="Number of price observations")


class BenchmarkInfoResponse(BaseModel):
    """One benchmark index."""

    key: str
    name: str
    available: bool = Field(..., description="Whether the configured source has data for it")
    proxy_for: list[str] = Field(
        default_factory=list,
        description="Categories using this index as their volatility proxy"
    )


class BenchmarkListResponse(BaseModel):
    """All known benchmark indices."""

    benchmarks: list[BenchmarkInfoResponse]
