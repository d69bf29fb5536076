# backend/app/schemas/validators.py
"""
Reusable validation functions for Pydantic schemas.

- Symbol validation and normalization
- Exchange normalization
- Date range validation

Business rules (price required for buy/sell, etc.) are checked by the
services; these helpers only reject malformed input.
"""

import re
from datetime import date

# Symbol: 1-20 chars, alphanumeric plus '.', '-' and a leading caret (^GSPC, BRK.B)
SYMBOL_PATTERN = re.compile(r'^[\^]?[A-Z0-9][A-Z0-9.\-]{0,19}$')
SYMBOL_MAX_LENGTH = 20

EXCHANGE_MAX_LENGTH = 50

# Reasonable bounds for daily snapshot ranges
MIN_VALID_DATE = date(1970, 1, 1)
MAX_RANGE_DAYS = 366 * 10


def validate_symbol(value: str) -> str:
    """
    Validate and normalize an asset symbol.

    Returns:
        Normalized symbol (uppercase, trimmed)

    Raises:
        ValueError: If the symbol format is invalid
    """
    if not value or not value.strip():
        raise ValueError("Symbol cannot be empty")

    normalized = value.strip().upper()

    if len(normalized) > SYMBOL_MAX_LENGTH:
        raise ValueError(f"Symbol cannot exceed {SYMBOL_MAX_LENGTH} characters")

    if not SYMBOL_PATTERN.match(normalized):
        raise ValueError(
            f"Invalid symbol format: '{normalized}'. "
            "Symbol must be alphanumeric, may include '.' or '-', or start with '^'"
        )

    return normalized


def normalize_exchange(value: str) -> str:
    """Trim an exchange name; case is kept ("Binance", "NASDAQ")."""
    if not value or not value.strip():
        raise ValueError("Exchange cannot be empty")
    normalized = value.strip()
    if len(normalized) > EXCHANGE_MAX_LENGTH:
        raise ValueError(f"Exchange cannot exceed {EXCHANGE_MAX_LENGTH} characters")
    return normalized


def validate_date_range(start_date: date, end_date: date) -> tuple[date, date]:
    """
    Validate an inclusive date range.

    Raises:
        ValueError: If the range is reversed, too old or too long
    """
    if start_date < MIN_VALID_DATE:
        raise ValueError(f"start_date cannot be before {MIN_VALID_DATE}")

    if start_date > end_date:
        raise ValueError("start_date must be before or equal to end_date")

    if (end_date - start_date).days + 1 > MAX_RANGE_DAYS:
        raise ValueError(f"Date range cannot exceed {MAX_RANGE_DAYS} days")

    return start_date, end_date
