# fundcompare/middleware/__init__.py
"""
ASGI middleware:
- Correlation ID tracking for request tracing
- Rate limiting for API protection

Usage:
    from fundcompare.middleware import CorrelationIdMiddleware, limiter

    app.add_middleware(CorrelationIdMiddleware)
    app.state.limiter = limiter
"""

from fundcompare.middleware.correlation import CorrelationIdMiddleware
from fundcompare.middleware.rate_limit import (
    RATE_LIMIT_COMPARE,
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_HEALTH,
    SlowAPIMiddleware,
    limiter,
    rate_limit_exceeded_handler,
)

__all__ = [
    "CorrelationIdMiddleware",
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_COMPARE",
    "RATE_LIMIT_HEALTH",
]
