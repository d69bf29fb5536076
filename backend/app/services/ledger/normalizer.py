# backend/app/services/ledger/normalizer.py
"""
Trade normalizer: turns an asset-for-asset swap into two ledger legs.

A trade "give qty_from of A, receive qty_to of B" becomes:

    trade_out  A  qty_from   fees/2
    trade_in   B  qty_to     fees/2

Both legs carry price_per_unit = 0 and total_amount = 0 (a swap has no
fiat reference price), the same occurred_at, and a shared trade_group_id.
Splitting the fee evenly between the legs is an accounting convention;
no exchange actually charges half a fee on each side.

The normalizer validates and builds the legs. It does not persist them;
LedgerService inserts both in one commit.
"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session

from app.models import AssetCategory, Transaction, TransactionKind
from app.services.asset_registry import AssetRegistry, normalize_symbol
from app.services.exceptions import ValidationError

logger = logging.getLogger(__name__)

TWO = Decimal("2")


# =============================================================================
# INPUT HELPERS
# =============================================================================

def to_decimal(value, field: str) -> Decimal:
    """Coerce user input to Decimal, rejecting NaN/Infinity and garbage."""
    if isinstance(value, float):
        value = str(value)
    try:
        result = value if isinstance(value, Decimal) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number, got {value!r}", field=field)
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number", field=field)
    return result


def require_positive(value, field: str) -> Decimal:
    if value is None:
        raise ValidationError(f"{field} is required", field=field)
    result = to_decimal(value, field)
    if result <= 0:
        raise ValidationError(f"{field} must be greater than 0", field=field)
    return result


def require_non_negative(value, field: str) -> Decimal:
    result = to_decimal(value if value is not None else 0, field)
    if result < 0:
        raise ValidationError(f"{field} cannot be negative", field=field)
    return result


def require_text(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} cannot be empty", field=field)
    return value.strip()


def normalize_occurred_at(value: datetime | None) -> datetime:
    """Ledger timestamps are stored naive, in local time."""
    if value is None:
        return datetime.now()
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


# =============================================================================
# NORMALIZER
# =============================================================================

class TradeNormalizer:
    """
    Builds the two legs of a trade.

    Attributes:
        _registry: Asset registry used to create stubs for unknown symbols
        _stub_category: Category given to stubs created by a trade
    """

    def __init__(
            self,
            registry: AssetRegistry | None = None,
            stub_category: AssetCategory = AssetCategory.CRYPTO,
    ) -> None:
        self._registry = registry or AssetRegistry()
        self._stub_category = stub_category

    def normalize_trade(
            self,
            db: Session,
            asset_from: str,
            qty_from,
            asset_to: str,
            qty_to,
            exchange: str,
            fees=0,
            notes: str | None = None,
            occurred_at: datetime | None = None,
    ) -> tuple[Transaction, Transaction]:
        """
        Validate a trade and build its (trade_out, trade_in) legs.

        Ensures both assets exist in the registry (stub with price 0 if
        absent). The returned Transaction objects are not added to the
        session.

        Raises:
            ValidationError: Missing/non-positive symbol or quantity, empty
                exchange, negative fees, or a trade of an asset for itself
        """
        symbol_from = normalize_symbol(require_text(asset_from, "asset_from"))
        symbol_to = normalize_symbol(require_text(asset_to, "asset_to"))
        quantity_from = require_positive(qty_from, "qty_from")
        quantity_to = require_positive(qty_to, "qty_to")
        exchange = require_text(exchange, "exchange")
        total_fees = require_non_negative(fees, "fees")

        if symbol_from == symbol_to:
            raise ValidationError("Cannot trade an asset for itself", field="asset_to")

        self._registry.ensure(db, symbol_from, category=self._stub_category)
        self._registry.ensure(db, symbol_to, category=self._stub_category)

        when = normalize_occurred_at(occurred_at)
        leg_fees = total_fees / TWO
        group_id = str(uuid.uuid4())

        note = f"Trade: {quantity_from} {symbol_from} → {quantity_to} {symbol_to}"
        if notes and notes.strip():
            note = f"{note} | {notes.strip()}"

        leg_out = Transaction(
            kind=TransactionKind.TRADE_OUT,
            asset_symbol=symbol_from,
            exchange=exchange,
            quantity=quantity_from,
            price_per_unit=Decimal(0),
            total_amount=Decimal(0),
            fees=leg_fees,
            notes=note,
            occurred_at=when,
            trade_group_id=group_id,
        )
        leg_in = Transaction(
            kind=TransactionKind.TRADE_IN,
            asset_symbol=symbol_to,
            exchange=exchange,
            quantity=quantity_to,
            price_per_unit=Decimal(0),
            total_amount=Decimal(0),
            fees=leg_fees,
            notes=note,
            occurred_at=when,
            trade_group_id=group_id,
        )

        logger.debug(f"Normalized trade {group_id}: {note}")
        return leg_out, leg_in
