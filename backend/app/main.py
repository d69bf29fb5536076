# backend/app/main.py
"""
FastAPI application entry point.

This file:
- Configures application-wide logging
- Creates the FastAPI application
- Registers global exception handlers (domain error → HTTP status)
- Registers all routers
- Defines the health check
"""

import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.database import get_db
from app.middleware import CorrelationIdMiddleware
from app.routers import (
    assets_router,
    holdings_router,
    portfolio_router,
    snapshots_router,
    trades_router,
    transactions_router,
    valuation_router,
)
from app.schemas.errors import ErrorDetail, ValidationErrorDetail
from app.services.exceptions import (
    MarketDataError,
    NotFoundError,
    PersistenceError,
    ServiceError,
    UpstreamUnavailableError,
    ValidationError,
)
from app.utils import setup_logging

logger = logging.getLogger(__name__)

# =============================================================================
# LOGGING SETUP (must be before app creation)
# =============================================================================

setup_logging()

# =============================================================================
# APPLICATION SETUP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Asset ledger: transactions, holdings, valuation replay and daily snapshots",
    version="0.1.0",
)

# Correlation ID tracking for request tracing
app.add_middleware(CorrelationIdMiddleware)


# =============================================================================
# GLOBAL EXCEPTION HANDLERS
# =============================================================================
# Services raise domain exceptions only. Starlette picks the handler of the
# most specific class in the exception's MRO, so ServiceError is the
# fallback for anything without its own handler.
# =============================================================================

def _error_response(status_code: int, exc: ServiceError, details: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorDetail(
            error=type(exc).__name__,
            message=str(exc),
            details=details,
        ).model_dump(),
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Rejected mutation, nothing written (400)."""
    logger.info(f"Validation failed: {exc}")
    return _error_response(400, exc, {"field": exc.field} if exc.field else None)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    """Unknown transaction, trade, asset or holding (404)."""
    logger.info(f"Not found: {exc}")
    return _error_response(
        404,
        exc,
        {"resource_type": exc.resource_type, "resource_id": exc.resource_id},
    )


@app.exception_handler(UpstreamUnavailableError)
async def upstream_unavailable_handler(request: Request, exc: UpstreamUnavailableError) -> JSONResponse:
    """Price source down and no fallback applied (503)."""
    logger.error(f"Upstream unavailable: {exc}")
    return _error_response(503, exc, {"provider": exc.provider})


@app.exception_handler(MarketDataError)
async def market_data_error_handler(request: Request, exc: MarketDataError) -> JSONResponse:
    logger.warning(f"Market data error: {exc}")
    return _error_response(400, exc, {"provider": exc.provider})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    """Storage failure; the write was rolled back (500)."""
    logger.error(f"Persistence error: {exc}")
    return _error_response(500, exc, {"operation": exc.operation})


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    logger.warning(f"Service error: {exc}")
    return _error_response(400, exc)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorDetail(
            error="HTTPError",
            message=str(exc.detail),
        ).model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request schema failures (422), one entry per invalid field."""
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

app.include_router(transactions_router)  # /transactions/*
app.include_router(trades_router)  # /trades/*
app.include_router(holdings_router)  # /holdings/*
app.include_router(portfolio_router)  # /portfolio/*
app.include_router(valuation_router)  # /valuation/*
app.include_router(snapshots_router)  # /snapshots/*
app.include_router(assets_router)  # /assets/*


# =============================================================================
# GLOBAL ENDPOINTS
# =============================================================================

@app.get("/health", tags=["Health"])
def health_check(db: Session = Depends(get_db)):
    """
    Health check.

    - 200: database reachable
    - 503: database unreachable
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "checks": {"database": {"status": "unhealthy", "error": str(e)}}},
        )

    return {
        "status": "healthy",
        "checks": {"database": {"status": "healthy", "backend": "sqlite" if settings.is_sqlite else "postgresql"}},
    }
