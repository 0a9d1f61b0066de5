# fundcompare/routers/comparison.py
"""
Comparison API endpoints.

Endpoints:
- POST /compare: Current vs comparison instrument (optionally vs a benchmark)
- GET /benchmarks/{key}/stats: Benchmark volatility, return and drawdown

All calculations are delegated to ComparisonService; this layer only maps
schemas. Service exceptions are turned into HTTP responses by the global
handlers in main.py.
"""

import logging

from fastapi import APIRouter, Depends, Path, Query, Request

from fundcompare.dependencies import get_comparison_service
from fundcompare.middleware.rate_limit import (
    RATE_LIMIT_COMPARE,
    RATE_LIMIT_DEFAULT,
    limiter,
)
from fundcompare.routers.mappers import map_benchmark_stats, map_comparison
from fundcompare.schemas.comparison import (
    BenchmarkStatsResponse,
    CompareRequest,
    ComparisonResponse,
)
from fundcompare.services.comparison_service import ComparisonService
from fundcompare.services.constants import RISK_VOLATILITY_PERIOD
from fundcompare.services.engine.types import InvestmentMode, InvestmentRequest

logger = logging.getLogger(__name__)

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(tags=["Comparison"])


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post(
    "/compare",
    response_model=ComparisonResponse,
    summary="Compare two instruments",
    response_description="Per-participant returns, risk and a shared chart"
)
@limiter.limit(RATE_LIMIT_COMPARE)
def compare_instruments(
        request: Request,  # Required for rate limiting
        body: CompareRequest,
        service: ComparisonService = Depends(get_comparison_service),
) -> ComparisonResponse:
    """
    Replay one lump sum or monthly SIP against two instruments.

    **Modes:**
    - `lump_sum`: `amount` invested once at `start_date`
    - `sip`: `amount` invested every month from `start_date` to `end_date`

    **Annualized return:**
    - CAGR for lump sum, XIRR for SIP
    - `null` when less than a year has elapsed

    **Benchmark:**
    - Optional. When it cannot be loaded the comparison still succeeds
      with `benchmark: null` and an entry in `warnings`.

    **Risk:**
    - Only computed for instruments listed in `categories`
    """
    investment = InvestmentRequest(
        mode=InvestmentMode.parse(body.mode),
        amount=body.amount,
        start_date=body.start_date,
        end_date=body.end_date,
    )

    result = service.compare(
        body.current_fund,
        body.comparison_fund,
        investment,
        benchmark_key=body.benchmark,
        categories=body.categories,
        as_of=body.as_of,
    )

    return map_comparison(result)


@router.get(
    "/benchmarks/{key}/stats",
    response_model=BenchmarkStatsResponse,
    summary="Get benchmark statistics",
    response_description="Volatility, return and drawdown over a trailing period"
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_benchmark_stats(
        request: Request,  # Required for rate limiting
        key: str = Path(..., description="Benchmark key (e.g., 'nifty50')"),
        period: str = Query(
            default=RISK_VOLATILITY_PERIOD,
            description="Trailing period: 1mo, 3mo, 6mo, 1y, 2y, 3y, 5y, 10y or max"
        ),
        service: ComparisonService = Depends(get_comparison_service),
) -> BenchmarkStatsResponse:
    """Statistics of one benchmark index over a trailing period."""
    return map_benchmark_stats(service.get_benchmark_stats(key, period))
