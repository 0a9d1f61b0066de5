# fundcompare/schemas/comparison.py
"""
Pydantic schemas for the comparison and benchmark APIs.

Design decisions:
- All numeric values are serialized as STRINGS to preserve Decimal precision
- Percentages are in percent units ("14.47" = 14.47%)
- Null is returned when a metric is undefined (e.g., annualized return
  under one year, Sharpe ratio with zero volatility)
- Business validation (positive amount, SIP window, known mode) happens in
  the engine and surfaces as 400, not as schema errors
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# REQUEST
# =============================================================================

class CompareRequest(BaseModel):
    """Compare two instruments (and optionally a benchmark)."""

    current_fund: str = Field(..., min_length=1, description="Instrument currently held")
    comparison_fund: str = Field(..., min_length=1, description="Alternative instrument")
    mode: str = Field(
        ...,
        description="'lump_sum' or 'sip'",
        examples=["sip"],
    )
    amount: Decimal = Field(
        ...,
        description="Lump sum amount, or monthly amount for SIP",
        examples=["5000"],
    )
    start_date: date = Field(..., description="Investment date / first SIP month")
    end_date: date | None = Field(
        default=None,
        description="Last SIP month (required for SIP, ignored for lump sum)"
    )
    benchmark: str | None = Field(
        default=None,
        description="Benchmark key (e.g., 'nifty50'); omitted = no benchmark"
    )
    categories: dict[str, str] | None = Field(
        default=None,
        description="Instrument id -> category (e.g., 'Large Cap'); enables risk metrics"
    )
    as_of: date | None = Field(
        default=None,
        description="Valuation date (default: today)"
    )


# =============================================================================
# RESPONSE
# =============================================================================

class RiskResponse(BaseModel):
    """Risk figures of an instrument or portfolio."""

    model_config = ConfigDict(from_attributes=True)

    risk_score: str = Field(..., description="Score from 1 (lowest) to 10 (highest)")
    risk_level: str = Field(..., description="Low, Moderate, High or Very High")
    volatility_pct: str = Field(..., description="Annualized volatility (percent)")
    sharpe_ratio: str | None = Field(None, description="Null when volatility is zero")
    risk_free_rate_pct: str | None = Field(None, description="Risk-free rate used (percent)")


class ScenarioResponse(BaseModel):
    """Outcome of one participant."""

    model_config = ConfigDict(from_attributes=True)

    label: str = Field(..., description="current, comparison or benchmark")
    instrument_id: str
    invested: str = Field(..., description="Total capital contributed")
    current_value: str = Field(..., description="Units held × latest price")
    units: str
    valuation_price: str = Field(..., description="Latest available price")
    valuation_date: date
    absolute_return: str
    absolute_return_pct: str | None
    annualized_return_pct: str | None = Field(
        None,
        description="CAGR (lump sum) or XIRR (SIP); null under one year"
    )
    annualized_method: str = Field(..., description="'cagr' or 'xirr'")
    approximate: bool = Field(False, description="True if XIRR did not fully converge")
    contributions: int = Field(..., description="Purchases executed")
    skipped_months: list[str] = Field(default_factory=list, description="YYYY-MM months without data")
    risk: RiskResponse | None = None


class ChartPointResponse(BaseModel):
    """Running values at one month."""

    period: str = Field(..., description="YYYY-MM")
    invested: str
    current: str
    comparison: str
    benchmark: str | None = None


class ComparisonResponse(BaseModel):
    """Full comparison result."""

    mode: str
    start_date: date
    end_date: date
    as_of: date
    current: ScenarioResponse
    comparison: ScenarioResponse
    benchmark: ScenarioResponse | None = None
    difference: str = Field(..., description="comparison value - current value")
    percentage_difference: str = Field(..., description="difference / invested × 100")
    best_performer: str = Field(..., description="Label of the participant with the highest value")
    chart_data: list[ChartPointResponse] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class BenchmarkStatsResponse(BaseModel):
    """Benchmark statistics over a trailing period."""

    model_config = ConfigDict(from_attributes=True)

    key: str
    period: str
    annualized_volatility_pct: str
    annualized_return_pct: str | None = Field(None, description="Null under one year of data")
    total_return_pct: str
    max_drawdown_pct: str
    data_points: int
    start_date: date
    end_date: date
