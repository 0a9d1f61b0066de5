# fundcompare/schemas/__init__.py
"""
Pydantic request/response schemas for the HTTP API.
"""

from fundcompare.schemas.comparison import (
    BenchmarkStatsResponse,
    ChartPointResponse,
    CompareRequest,
    ComparisonResponse,
    RiskResponse,
    ScenarioResponse,
)
from fundcompare.schemas.errors import ErrorDetail, ValidationErrorDetail
from fundcompare.schemas.funds import (
    BenchmarkInfoResponse,
    BenchmarkListResponse,
    FundDetailsResponse,
)
from fundcompare.schemas.portfolio import (
    FundAllocationRequest,
    FundResultResponse,
    PortfolioResponse,
    PortfolioSipRequest,
)

__all__ = [
    # Errors
    "ErrorDetail",
    "ValidationErrorDetail",
    # Comparison
    "CompareRequest",
    "ComparisonResponse",
    "ScenarioResponse",
    "ChartPointResponse",
    "RiskResponse",
    "BenchmarkStatsResponse",
    # Catalog
    "FundDetailsResponse",
    "BenchmarkInfoResponse",
    "BenchmarkListResponse",
    # Portfolio
    "FundAllocationRequest",
    "PortfolioSipRequest",
    "FundResultResponse",
    "PortfolioResponse",
]
