# backend/app/middleware/__init__.py
"""
Middleware components for the Asset Ledger API.

- Correlation ID tracking for request tracing

Usage:
    from app.middleware import CorrelationIdMiddleware

    app.add_middleware(CorrelationIdMiddleware)
"""

from app.middleware.correlation import CorrelationIdMiddleware

__all__ = [
    "CorrelationIdMiddleware",
]
