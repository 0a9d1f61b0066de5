# fundcompare/services/constants.py
"""
Centralized constants for the Fund Comparison services.

Single source of truth for calendar conventions, solver settings, risk
banding and cache lifetimes. Percentages are expressed in percent units
(12.5 = 12.5%) unless the name says otherwise.

Usage:
    from fundcompare.services.constants import (
        CALENDAR_DAYS_PER_YEAR,
        XIRR_MAX_ITERATIONS,
        CATEGORY_BENCHMARKS,
    )
"""

from decimal import Decimal


# =============================================================================
# FINANCIAL CALENDAR CONSTANTS
# =============================================================================

# Trading days per year, used to annualize daily volatility
TRADING_DAYS_PER_YEAR: int = 252

# Calendar days per year, used for CAGR and XIRR year fractions
CALENDAR_DAYS_PER_YEAR: int = 365

# Returns over less than a year are reported but not annualized
MIN_DAYS_FOR_ANNUALIZATION: int = 365


# =============================================================================
# XIRR CALCULATION SETTINGS
# =============================================================================

# Newton-Raphson iteration cap. Hitting it yields an approximate result.
XIRR_MAX_ITERATIONS: int = 100

# Convergence tolerance on |NPV| (currency units)
XIRR_TOLERANCE: float = 1e-4

# Initial guess (10% annual)
XIRR_INITIAL_GUESS: float = 0.10

# Rate bounds keep (1 + r) positive and the iteration finite
XIRR_MIN_RATE: float = -0.99
XIRR_MAX_RATE: float = 10.0


# =============================================================================
# RISK SCORING
# =============================================================================

MIN_RISK_SCORE: Decimal = Decimal("1")
MAX_RISK_SCORE: Decimal = Decimal("10")

# Fixed score for categories without an equity benchmark (pure debt)
UNBENCHMARKED_RISK_SCORE: Decimal = Decimal("1")

# Volatility bands (annualized %, lower bound) -> (score at lower bound, slope)
# Continuous piecewise-linear mapping:
#   <10%   -> 1..2
#   10-20% -> 2..4
#   20-30% -> 4..6
#   >30%   -> 6..10 (reaches the cap at 50%)
VOLATILITY_SCORE_BANDS: tuple[tuple[Decimal, Decimal, Decimal], ...] = (
    (Decimal("0"), Decimal("1"), Decimal("0.1")),
    (Decimal("10"), Decimal("2"), Decimal("0.2")),
    (Decimal("20"), Decimal("4"), Decimal("0.2")),
    (Decimal("30"), Decimal("6"), Decimal("0.2")),
)

# Risk level upper bounds (inclusive); anything above is "Very High"
RISK_LEVEL_LOW_MAX: Decimal = Decimal("2")
RISK_LEVEL_MODERATE_MAX: Decimal = Decimal("4")
RISK_LEVEL_HIGH_MAX: Decimal = Decimal("6")

# A sample standard deviation needs two daily returns, i.e. three observations
MIN_OBSERVATIONS_FOR_VOLATILITY: int = 3

# Trailing window used for benchmark volatility lookups
RISK_VOLATILITY_PERIOD: str = "1y"

# Annual risk-free rate in percent (long-duration government bond yield proxy)
DEFAULT_RISK_FREE_RATE_PCT: Decimal = Decimal("7.1")


# =============================================================================
# CATEGORIES & BENCHMARKS
# =============================================================================

# Category -> benchmark index key used as a volatility proxy.
# None means the category is scored without a benchmark.
CATEGORY_BENCHMARKS: dict[str, str | None] = {
    "Large Cap": "nifty50",
    "Index": "nifty50",
    "Hybrid": "nifty50",
    "Flexi Cap": "nifty500",
    "ELSS": "nifty500",
    "Equity": "nifty500",
    "Sectoral/Thematic": "nifty500",
    "Mid Cap": "niftymidcap",
    "Small Cap": "niftysmallcap",
    "Debt": None,
}

# Fixed per-category adjustment applied after volatility banding
CATEGORY_RISK_ADJUSTMENTS: dict[str, Decimal] = {
    "Small Cap": Decimal("2"),
    "Sectoral/Thematic": Decimal("2"),
    "Mid Cap": Decimal("1"),
    "Hybrid": Decimal("-1"),
}

# Scheme-name keywords -> category, first match wins; anything else is "Equity"
CATEGORY_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("large cap", "bluechip"), "Large Cap"),
    (("mid cap",), "Mid Cap"),
    (("small cap",), "Small Cap"),
    (("flexi cap", "multi cap"), "Flexi Cap"),
    (("index",), "Index"),
    (("debt", "bond", "income"), "Debt"),
    (("hybrid",), "Hybrid"),
    (("sector", "thematic"), "Sectoral/Thematic"),
    (("elss",), "ELSS"),
)
DEFAULT_CATEGORY: str = "Equity"

# Supported benchmark index keys
BENCHMARK_KEYS: tuple[str, ...] = (
    "nifty50",
    "sensex",
    "nifty500",
    "niftymidcap",
    "niftysmallcap",
    "niftybank",
    "niftyit",
)

BENCHMARK_NAMES: dict[str, str] = {
    "nifty50": "Nifty 50",
    "sensex": "Sensex",
    "nifty500": "Nifty 500",
    "niftymidcap": "Nifty Midcap 50",
    "niftysmallcap": "Nifty Smallcap 50",
    "niftybank": "Nifty Bank",
    "niftyit": "Nifty IT",
}

# Trailing period label -> calendar days ("max" = whole series)
BENCHMARK_PERIOD_DAYS: dict[str, int | None] = {
    "1mo": 30,
    "3mo": 90,
    "6mo": 180,
    "1y": 365,
    "2y": 2 * 365,
    "3y": 3 * 365,
    "5y": 5 * 365,
    "10y": 10 * 365,
    "max": None,
}


# =============================================================================
# COMPARISON / PORTFOLIO
# =============================================================================

# Most recent chart points kept in a comparison
CHART_MAX_POINTS: int = 24

# Allocation percentages must sum to 100 within this tolerance
ALLOCATION_TOLERANCE: Decimal = Decimal("0.01")

# Recommendation thresholds (annualized %)
LOW_RETURN_THRESHOLD: Decimal = Decimal("10")
HIGH_RETURN_THRESHOLD: Decimal = Decimal("18")
MIN_CATEGORY_DIVERSITY: int = 3
MAX_FUNDS_BEFORE_OVERLAP: int = 7


# =============================================================================
# CACHE SETTINGS
# =============================================================================

# Provider-side cache lifetimes in seconds
PRICE_CACHE_TTL_SECONDS: int = 300
BENCHMARK_CACHE_TTL_SECONDS: int = 1800

# Maximum entries per provider cache
PROVIDER_CACHE_MAX_SIZE: int = 500


# =============================================================================
# FETCHING
# =============================================================================

# Seconds to wait for one series fetch before giving up on it
FETCH_TIMEOUT_SECONDS: float = 15.0

# Concurrent series fetches per service
FETCH_MAX_WORKERS: int = 8


# =============================================================================
# DECIMAL PRECISION CONSTANTS
# =============================================================================

CURRENCY_PRECISION: Decimal = Decimal("0.01")
UNIT_PRECISION: Decimal = Decimal("0.0001")
PERCENTAGE_PRECISION: Decimal = Decimal("0.01")
RATE_PRECISION: Decimal = Decimal("0.00000001")


# =============================================================================
# UTILITY CONSTANTS
# =============================================================================

ZERO: Decimal = Decimal("0")
ONE_HUNDRED: Decimal = Decimal("100")


# =============================================================================
# RATE LIMITING CONSTANTS
# =============================================================================

RATE_LIMIT_DEFAULT: str = "100/minute"

# Comparison endpoints are CPU-bound over long series
RATE_LIMIT_COMPARE: str = "30/minute"

RATE_LIMIT_HEALTH: str = "300/minute"
