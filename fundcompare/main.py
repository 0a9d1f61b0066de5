# fundcompare/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application
- Registers global exception handlers
- Registers all routers
- Defines global endpoints (health checks)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from fundcompare.config import settings
from fundcompare.middleware import (
    RATE_LIMIT_HEALTH,
    CorrelationIdMiddleware,
    SlowAPIMiddleware,
    limiter,
    rate_limit_exceeded_handler,
)
from fundcompare.routers import comparison_router, funds_router, portfolio_router
from fundcompare.schemas.errors import ErrorDetail, ValidationErrorDetail
from fundcompare.services.exceptions import (
    InstrumentNotFoundError,
    InsufficientDataError,
    RiskDataUnavailableError,
    ServiceError,
    UpstreamDataError,
    ValidationError,
)
from fundcompare.utils import setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()


# =============================================================================
# LIFESPAN
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Only close the service if a request ever created it
    from fundcompare.dependencies import get_comparison_service
    if get_comparison_service.cache_info().currsize:
        get_comparison_service().close()
        logger.info("ComparisonService closed")


# =============================================================================
# APPLICATION SETUP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Lump sum and SIP return comparison between funds and benchmarks",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# CORS MIDDLEWARE
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


# =============================================================================
# MIDDLEWARE (order matters: last added = first executed)
# =============================================================================

# Attach limiter to app state (required by slowapi)
app.state.limiter = limiter

app.add_middleware(SlowAPIMiddleware)

# Correlation IDs wrap everything else so every log line carries one
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# Service-layer exceptions carry no HTTP knowledge; they are mapped here.
# The most specific registered class wins.
# =============================================================================

app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle malformed requests rejected by the engine (400)."""
    logger.warning(f"Invalid request: {exc}")
    return JSONResponse(
        status_code=400,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details={"field": exc.field} if exc.field else None,
        ).model_dump(),
    )


@app.exception_handler(InstrumentNotFoundError)
async def instrument_not_found_handler(
    request: Request, exc: InstrumentNotFoundError
) -> JSONResponse:
    """Handle unknown instruments (404)."""
    logger.warning(f"Instrument not found: {exc.instrument_id}")
    return JSONResponse(
        status_code=404,
        content=ErrorDetail(
            error="InstrumentNotFoundError",
            message=str(exc),
            details={"instrument_id": exc.instrument_id},
        ).model_dump(),
    )


@app.exception_handler(InsufficientDataError)
async def insufficient_data_handler(
    request: Request, exc: InsufficientDataError
) -> JSONResponse:
    """Handle data gaps that make a calculation impossible (422)."""
    logger.warning(f"Insufficient data: {exc}")
    details = {}
    if exc.instrument_id:
        details["instrument_id"] = exc.instrument_id
    if exc.requested_date:
        details["requested_date"] = exc.requested_date.isoformat()
    return JSONResponse(
        status_code=422,
        content=ErrorDetail(
            error="InsufficientDataError",
            message=str(exc),
            details=details or None,
        ).model_dump(),
    )


@app.exception_handler(UpstreamDataError)
async def upstream_data_handler(request: Request, exc: UpstreamDataError) -> JSONResponse:
    """Handle provider failures (502)."""
    logger.error(f"Upstream data error: {exc}")
    return JSONResponse(
        status_code=502,
        content=ErrorDetail(
            error="UpstreamDataError",
            message=str(exc),
            details={"provider": exc.provider},
        ).model_dump(),
    )


@app.exception_handler(RiskDataUnavailableError)
async def risk_unavailable_handler(
    request: Request, exc: RiskDataUnavailableError
) -> JSONResponse:
    """Handle risk metrics that cannot be computed from real data (503)."""
    logger.error(f"Risk data unavailable: {exc}")
    return JSONResponse(
        status_code=503,
        content=ErrorDetail(
            error="RiskDataUnavailableError",
            message=str(exc),
            details={
                "category": exc.category,
                "benchmark_key": exc.benchmark_key,
            },
        ).model_dump(),
    )


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle generic service errors (500)."""
    logger.error(f"Service error: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorDetail(
            error="ServiceError",
            message=str(exc),
            details=None,
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Handle all HTTPExceptions with consistent error format.

    Converts FastAPI's default {"detail": "..."} format to ErrorDetail.
    """
    error_types = {
        400: "BadRequestError",
        404: "NotFoundError",
        405: "MethodNotAllowedError",
        422: "ValidationError",
        429: "RateLimitError",
        500: "InternalServerError",
        503: "ServiceUnavailableError",
    }
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorDetail(
            error=error_types.get(exc.status_code, "HTTPError"),
            message=str(exc.detail) if exc.detail else "An error occurred",
            details=None,
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert schema validation failures to ValidationErrorDetail (422)."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    return JSONResponse(
        status_code=422,
        content=ValidationErrorDetail(details=errors).model_dump(),
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

app.include_router(comparison_router)  # /compare, /benchmarks/*
app.include_router(portfolio_router)  # /portfolio/*
app.include_router(funds_router)  # /funds/*, /benchmarks


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def root(request: Request):
    """API root - returns basic application info."""
    return {
        "message": f"Welcome to {settings.app_name}!",
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(request: Request):
    """
    Health check endpoint.

    Reports whether the dataset loaded and how many instruments and
    benchmarks it serves. Returns HTTP 503 if the dataset cannot be loaded.
    """
    from fundcompare.dependencies import get_data_sources

    try:
        prices, benchmarks = get_data_sources()
    except ServiceError as e:
        logger.error(f"Dataset health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "checks": {"dataset": {"status": "unhealthy", "error": str(e)}},
            },
        )

    return {
        "status": "healthy",
        "checks": {
            "dataset": {
                "status": "healthy",
                "instruments": len(prices.instrument_ids()),
                "benchmarks": len(benchmarks.keys()),
            },
        },
    }


@app.get("/health/live", tags=["Health"])
@limiter.limit(RATE_LIMIT_HEALTH)
def liveness_check(request: Request):
    """Liveness probe. Always succeeds while the process is alive."""
    return {"status": "alive"}
