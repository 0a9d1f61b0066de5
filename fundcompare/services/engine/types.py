# fundcompare/services/engine/types.py
"""
Data types for the Return Calculation Engine.

This module defines the data structures flowing between the engine
components. All monetary values and percentages use Decimal for precision;
percentages are in percent units (14.47 = 14.47%).

Architecture:
    - PricePoint / PriceSeries: Immutable per-instrument price history
    - InvestmentRequest: What to simulate (lump sum or monthly SIP)
    - SimulationResult: Units bought, capital contributed, value now
    - CashFlow / XirrResult: Inputs and output of the XIRR solver
    - ReturnMetrics: Absolute and annualized returns
    - RiskMetrics / BenchmarkStats: Volatility-derived risk figures
    - FundDetails / BenchmarkInfo: Catalog lookups
    - ScenarioResult / ComparisonResult: Comparator output
    - FundAllocation / PortfolioResult: Multi-fund SIP output
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from fundcompare.services.exceptions import InvalidRequestError
from fundcompare.utils.date_utils import YearMonth


# =============================================================================
# PRICE DATA
# =============================================================================

@dataclass(frozen=True)
class PricePoint:
    """
    A single per-unit price observation (NAV or index level).

    Frozen so a series can be shared between threads without copying.

    Attributes:
        date: Observation date (no time component)
        price: Per-unit price, strictly positive
    """
    date: date
    price: Decimal

    def __post_init__(self) -> None:
        if self.price <= 0:
            raise InvalidRequestError(
                f"price must be positive, got {self.price} on {self.date}",
                field="price",
            )


# Ascending by date, one entry per date
PriceSeries = tuple[PricePoint, ...]


# =============================================================================
# REQUEST TYPES
# =============================================================================

class InvestmentMode(str, Enum):
    """
    Investment mode.

    Attributes:
        LUMP_SUM: One purchase on the start date
        SIP: Fixed monthly purchase from start date to end date (inclusive)
    """
    LUMP_SUM = "lump_sum"
    SIP = "sip"

    @classmethod
    def parse(cls, value: "str | InvestmentMode") -> "InvestmentMode":
        """Accept the enum or its common spellings ("lump", "lumpsum", "sip")."""
        if isinstance(value, InvestmentMode):
            return value
        normalized = str(value).strip().lower().replace("-", "_")
        aliases = {
            "lump": cls.LUMP_SUM,
            "lumpsum": cls.LUMP_SUM,
            "lump_sum": cls.LUMP_SUM,
            "sip": cls.SIP,
        }
        if normalized not in aliases:
            raise InvalidRequestError(
                f"Unknown investment mode: '{value}'. Valid options: lump_sum, sip",
                field="mode",
            )
        return aliases[normalized]


@dataclass(frozen=True)
class InvestmentRequest:
    """
    What to simulate against a price series.

    Attributes:
        mode: LUMP_SUM or SIP
        amount: Purchase amount (per purchase for LUMP_SUM, per month for SIP)
        start_date: Investment date (LUMP_SUM) or first schedule month (SIP)
        end_date: Last schedule month (required for SIP, ignored for LUMP_SUM)
    """
    mode: InvestmentMode
    amount: Decimal
    start_date: date
    end_date: date | None = None


# =============================================================================
# SIMULATION OUTPUT
# =============================================================================

@dataclass(frozen=True)
class Contribution:
    """One executed purchase."""
    date: date
    amount: Decimal
    price: Decimal
    units: Decimal


@dataclass(frozen=True)
class ValuePoint:
    """
    Holding value at one monthly period.

    Attributes:
        period: (year, month) bucket
        date: Observation date used to price the period
        invested: Capital contributed up to and including this period
        units: Units held at this period
        value: units × period price
    """
    period: YearMonth
    date: date
    invested: Decimal
    units: Decimal
    value: Decimal


@dataclass
class SimulationResult:
    """
    Outcome of replaying a request against one series.

    Attributes:
        mode: Investment mode that produced this result
        total_contributed: Sum of all executed purchases
        units_held: Accumulated units (>= 0)
        valuation_price: Last price on or before the valuation date
        valuation_date: Date of valuation_price
        current_value: units_held × valuation_price
        contributions: Executed purchases in chronological order
        skipped_months: Schedule months without any price observation
        trajectory: Monthly value trajectory for charting
    """
    mode: InvestmentMode
    total_contributed: Decimal
    units_held: Decimal
    valuation_price: Decimal
    valuation_date: date
    current_value: Decimal
    contributions: list[Contribution] = field(default_factory=list)
    skipped_months: list[YearMonth] = field(default_factory=list)
    trajectory: list[ValuePoint] = field(default_factory=list)


# =============================================================================
# RETURN TYPES
# =============================================================================

@dataclass(frozen=True)
class CashFlow:
    """
    A dated cash flow for XIRR.

    Attributes:
        date: When the cash flow occurred
        amount: Negative = contribution (money in), positive = valuation/withdrawal (money out)
    """
    date: date
    amount: Decimal


@dataclass(frozen=True)
class XirrResult:
    """
    Output of the XIRR solver.

    Attributes:
        rate_pct: Annualized rate in percent
        approximate: True when the solver stopped without meeting the tolerance
        iterations: Newton-Raphson iterations performed
    """
    rate_pct: Decimal
    approximate: bool = False
    iterations: int = 0


@dataclass
class ReturnMetrics:
    """
    Return-based metrics for one simulation.

    Attributes:
        absolute_return: current_value - total_contributed
        absolute_return_pct: absolute_return / total_contributed × 100
        annualized_return_pct: CAGR (lump sum) or XIRR (SIP); None under a year
        annualized_method: "cagr" or "xirr"
        approximate: True if the XIRR solver hit its iteration cap
        elapsed_days: Days from first contribution to the valuation date ("now")
    """
    absolute_return: Decimal
    absolute_return_pct: Decimal | None
    annualized_return_pct: Decimal | None = None
    annualized_method: str = "cagr"
    approximate: bool = False
    elapsed_days: int = 0


# =============================================================================
# RISK TYPES
# =============================================================================

class RiskLevel(str, Enum):
    """Risk label derived from a 1-10 score."""
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    VERY_HIGH = "Very High"


@dataclass(frozen=True)
class BenchmarkStats:
    """
    Statistics derived from a benchmark index series.

    Attributes:
        key: Benchmark key (e.g., "nifty50")
        period: Trailing period the stats cover (e.g., "1y")
        annualized_volatility_pct: std(daily returns) × √252 × 100
        annualized_return_pct: CAGR over the covered calendar days
        total_return_pct: (last / first - 1) × 100
        max_drawdown_pct: Largest peak-to-trough decline, positive percent
        data_points: Observations used
        start_date: First observation date
        end_date: Last observation date
    """
    key: str
    period: str
    annualized_volatility_pct: Decimal
    annualized_return_pct: Decimal | None
    total_return_pct: Decimal
    max_drawdown_pct: Decimal
    data_points: int
    start_date: date
    end_date: date


# =============================================================================
# CATALOG
# =============================================================================

@dataclass(frozen=True)
class FundDetails:
    """
    What is known about one instrument before any simulation.

    Attributes:
        instrument_id: Instrument identifier (scheme code)
        name: Display name, if the source provides one
        category: Category derived from the name (None without a name)
        latest_price: Most recent price (None for an empty series)
        latest_date: Date of latest_price
        observations: Number of price observations
    """
    instrument_id: str
    name: str | None
    category: str | None
    latest_price: Decimal | None
    latest_date: date | None
    observations: int


@dataclass(frozen=True)
class BenchmarkInfo:
    """
    One benchmark index the API knows about.

    Attributes:
        key: Benchmark key (e.g., "nifty50")
        name: Display name
        available: Whether the configured source serves data for it
        proxy_for: Categories that use it as their volatility proxy
    """
    key: str
    name: str
    available: bool
    proxy_for: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class InstrumentRiskProfile:
    """
    Per-instrument risk inputs resolved from its category.

    Attributes:
        category: Instrument category (e.g., "Small Cap")
        benchmark_key: Proxy benchmark, None for unbenchmarked categories
        volatility_pct: Proxy annualized volatility (0 when unbenchmarked)
        risk_score: Score in [1, 10] after category adjustment
    """
    category: str
    benchmark_key: str | None
    volatility_pct: Decimal
    risk_score: Decimal


@dataclass
class RiskMetrics:
    """
    Risk figures for one instrument or a portfolio.

    Attributes:
        risk_score: Score in [1, 10]
        risk_level: Banded label of risk_score
        volatility_pct: Annualized volatility (>= 0)
        sharpe_ratio: (annualized return - risk free) / volatility; None if undefined
        risk_free_rate_pct: Risk-free rate used for sharpe_ratio
    """
    risk_score: Decimal
    risk_level: RiskLevel
    volatility_pct: Decimal
    sharpe_ratio: Decimal | None = None
    risk_free_rate_pct: Decimal | None = None


# =============================================================================
# COMPARISON TYPES
# =============================================================================

@dataclass
class ScenarioResult:
    """
    One participant of a comparison.

    Attributes:
        label: "current", "comparison" or "benchmark"
        instrument_id: Instrument or benchmark key simulated
        simulation: Simulator output
        returns: Return solver output
        risk: Risk figures when category metadata was supplied
    """
    label: str
    instrument_id: str
    simulation: SimulationResult
    returns: ReturnMetrics
    risk: RiskMetrics | None = None

    @property
    def invested(self) -> Decimal:
        return self.simulation.total_contributed

    @property
    def current_value(self) -> Decimal:
        return self.simulation.current_value


@dataclass(frozen=True)
class ChartPoint:
    """
    Running values of every participant at one monthly period.

    Attributes:
        period: (year, month) bucket
        invested: Capital contributed so far (shared by all participants)
        current: Value of the current instrument
        comparison: Value of the comparison instrument
        benchmark: Value of the benchmark, None if absent for this period
    """
    period: YearMonth
    invested: Decimal
    current: Decimal
    comparison: Decimal
    benchmark: Decimal | None = None

    @property
    def label(self) -> str:
        return f"{self.period[0]:04d}-{self.period[1]:02d}"


@dataclass
class ComparisonResult:
    """
    Reconciled outcome of current vs comparison (vs benchmark).

    Attributes:
        mode: Investment mode used for all participants
        start_date: Window start
        end_date: Window end (as_of for lump sum)
        as_of: Valuation date ("now")
        current: Current instrument scenario
        comparison: Comparison instrument scenario
        benchmark: Benchmark scenario, None when not requested or unavailable
        difference: comparison value - current value
        percentage_difference: difference / invested × 100
        best_performer: Label of the participant with the largest value
        chart_data: Up to the most recent N shared periods
        warnings: Degradations (e.g., benchmark unavailable, skipped months)
    """
    mode: InvestmentMode
    start_date: date
    end_date: date
    as_of: date
    current: ScenarioResult
    comparison: ScenarioResult
    benchmark: ScenarioResult | None = None
    difference: Decimal = Decimal("0")
    percentage_difference: Decimal = Decimal("0")
    best_performer: str = "current"
    chart_data: list[ChartPoint] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


# =============================================================================
# PORTFOLIO TYPES
# =============================================================================

@dataclass(frozen=True)
class FundAllocation:
    """
    One fund in a multi-fund SIP.

    Attributes:
        instrument_id: Instrument identifier (scheme code)
        allocation: Percent of the monthly amount (0 < allocation <= 100)
        category: Category; derived from name when omitted
        name: Display name, used for categorization when category is omitted
    """
    instrument_id: str
    allocation: Decimal
    category: str | None = None
    name: str | None = None


@dataclass
class FundSipResult:
    """Per-fund outcome inside a multi-fund SIP."""
    instrument_id: str
    category: str
    allocation: Decimal
    monthly_amount: Decimal
    scenario: ScenarioResult


@dataclass
class PortfolioResult:
    """
    Aggregate outcome of a multi-fund SIP.

    Attributes:
        total_invested: Sum of contributions across funds
        current_value: Sum of current values across funds
        absolute_return: current_value - total_invested
        absolute_return_pct: absolute_return / total_invested × 100
        annualized_return_pct: XIRR over all funds' merged cash flows
        approximate: True if the portfolio XIRR hit its iteration cap
        risk: Capital-weighted risk aggregate
        funds: Per-fund results
        category_breakdown: Category -> allocation percent
        recommendations: Plain-language suggestions
    """
    total_invested: Decimal
    current_value: Decimal
    absolute_return: Decimal
    absolute_return_pct: Decimal | None
    annualized_return_pct: Decimal | None
    approximate: bool
    risk: RiskMetrics
    funds: list[FundSipResult] = field(default_factory=list)
    category_breakdown: dict[str, Decimal] = field(default_factory=dict)
    recommendations: list[str] = field(default_factory=list)
