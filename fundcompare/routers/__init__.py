# fundcompare/routers/__init__.py
"""
API routers.
"""

from fundcompare.routers.comparison import router as comparison_router
from fundcompare.routers.funds import router as funds_router
from fundcompare.routers.portfolio import router as portfolio_router

__all__ = [
    "comparison_router",
    "funds_router",
    "portfolio_router",
]
