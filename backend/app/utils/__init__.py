# backend/app/utils/__init__.py
"""
Cross-cutting utilities for the Asset Ledger.

- logging: Logging configuration with correlation ID support
- context: Correlation ID storage (contextvars) and thread propagation
- date_utils: Calendar-day ranges for snapshots

Usage:
    from app.utils import setup_logging, get_logger
    from app.utils import get_correlation_id, set_correlation_id
    from app.utils.date_utils import iter_days
"""

from app.utils.context import (
    bind_current_context,
    clear_correlation_id,
    correlation_scope,
    get_correlation_id,
    set_correlation_id,
)
from app.utils.logging import get_logger, setup_logging

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "correlation_scope",
    "bind_current_context",
]
