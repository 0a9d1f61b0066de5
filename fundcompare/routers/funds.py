# fundcompare/routers/funds.py
"""
Catalog endpoints.

Endpoints:
- GET /funds/{instrument_id}: Name, derived category and latest NAV of a fund
- GET /benchmarks: Supported benchmark indices and whether data is available

These let clients discover the category and benchmark keys that
POST /compare accepts.
"""

import logging

from fastapi import APIRouter, Depends, Path, Request

from fundcompare.dependencies import get_comparison_service
from fundcompare.middleware.rate_limit import RATE_LIMIT_DEFAULT, limiter
from fundcompare.routers.mappers import map_benchmark_list, map_fund_details
from fundcompare.schemas.funds import BenchmarkListResponse, FundDetailsResponse
from fundcompare.services.comparison_service import ComparisonService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Catalog"])


@router.get(
    "/funds/{instrument_id}",
    response_model=FundDetailsResponse,
    summary="Get fund details",
    response_description="Scheme name, derived category, latest NAV and record count"
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_fund_details(
        request: Request,  # Required for rate limiting
        instrument_id: str = Path(..., description="Scheme code (e.g., '120503')"),
        service: ComparisonService = Depends(get_comparison_service),
) -> FundDetailsResponse:
    """
    Look up one fund.

    `category` is derived from the scheme name and can be passed back in the
    `categories` map of POST /compare to get risk metrics. It is `null`
    when the source has no name for the fund.
    """
    return map_fund_details(service.get_fund_details(instrument_id))


@router.get(
    "/benchmarks",
    response_model=BenchmarkListResponse,
    summary="List benchmark indices",
    response_description="Benchmark keys, names and availability"
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def list_benchmarks(
        request: Request,  # Required for rate limiting
        service: ComparisonService = Depends(get_comparison_service),
) -> BenchmarkListResponse:
    """Supported benchmark keys first, then any extra keys the data source serves."""
    return map_benchmark_list(service.list_benchmarks())
