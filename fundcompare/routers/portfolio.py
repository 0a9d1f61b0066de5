# fundcompare/routers/portfolio.py
"""
Multi-fund SIP endpoint.

POST /portfolio/sip splits one monthly amount across several funds by
allocation percentage and reports per-fund and aggregate outcomes.
"""

import logging

from fastapi import APIRouter, Depends, Request

from fundcompare.dependencies import get_comparison_service
from fundcompare.middleware.rate_limit import RATE_LIMIT_COMPARE, limiter
from fundcompare.routers.mappers import map_portfolio
from fundcompare.schemas.portfolio import PortfolioResponse, PortfolioSipRequest
from fundcompare.services.comparison_service import ComparisonService
from fundcompare.services.engine.types import FundAllocation

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/portfolio",
    tags=["Portfolio"],
)


@router.post(
    "/sip",
    response_model=PortfolioResponse,
    summary="Analyze a multi-fund SIP",
    response_description="Per-fund results, portfolio XIRR, risk and recommendations"
)
@limiter.limit(RATE_LIMIT_COMPARE)
def analyze_sip_portfolio(
        request: Request,  # Required for rate limiting
        body: PortfolioSipRequest,
        service: ComparisonService = Depends(get_comparison_service),
) -> PortfolioResponse:
    """
    Analyze a SIP split across funds.

    Allocations are percentages of `monthly_amount` and must sum to 100.
    A fund's category is taken from `category`, or derived from `name`
    when omitted. Risk is weighted by invested capital.
    """
    holdings = [
        FundAllocation(
            instrument_id=fund.instrument_id,
            allocation=fund.allocation,
            category=fund.category,
            name=fund.name,
        )
        for fund in body.funds
    ]

    result = service.analyze_portfolio(
        holdings,
        body.monthly_amount,
        body.start_date,
        body.end_date,
        as_of=body.as_of,
    )

    return map_portfolio(result)
