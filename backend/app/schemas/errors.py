# backend/app/schemas/errors.py
"""
Pydantic schemas for error responses.

Every error the API returns has the same shape, produced by the global
exception handlers in main.py.
"""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standard error body for domain errors (400/404/500/503)."""

    error: str = Field(
        ...,
        description="Error type (e.g., 'TransactionNotFoundError')"
    )
    message: str = Field(
        ...,
        description="Human-readable error message"
    )
    details: dict | None = Field(
        default=None,
        description="Additional context, e.g. the offending field"
    )


class ValidationErrorDetail(BaseModel):
    """Error body for request schema failures (422)."""

    error: str = Field(default="ValidationError")
    message: str = Field(default="Request validation failed")
    details: list[dict] = Field(
        ...,
        description="One entry per invalid field"
    )
