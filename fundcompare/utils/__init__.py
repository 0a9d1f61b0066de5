# fundcompare/utils/__init__.py
"""
Cross-cutting utilities:
- logging: Logging setup with correlation ID support
- context: Request context (correlation ID)
- date_utils: Calendar-month arithmetic

Usage:
    from fundcompare.utils import setup_logging, get_logger
    from fundcompare.utils import get_correlation_id, set_correlation_id
    from fundcompare.utils.date_utils import iter_months
"""

from fundcompare.utils.context import (
    clear_correlation_id,
    get_correlation_id,
    run_in_context,
    set_correlation_id,
)
from fundcompare.utils.logging import get_logger, setup_logging

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "run_in_context",
]
