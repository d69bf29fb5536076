# backend/app/services/asset_registry.py
"""
Asset registry service.

Every symbol the ledger references has exactly one Asset row. Rows are
created on first use ("stubs") with whatever metadata the caller has:

1. Check if the asset exists in the database
2. If found → return it
3. If not found → create it with the given (or default) category, commit

Creation commits on its own so a registry entry never depends on the
ledger write that triggered it. A concurrent creator losing the unique
constraint race re-reads the winner's row.

Usage:
    from app.services.asset_registry import AssetRegistry

    registry = AssetRegistry()
    asset = registry.ensure(db, "BTC", category=AssetCategory.CRYPTO)
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.models import Asset, AssetCategory
from app.services.exceptions import AssetNotFoundError

logger = logging.getLogger(__name__)


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


def is_unique_constraint_violation(integrity_error: IntegrityError) -> bool:
    """
    Check if an IntegrityError is caused by a unique constraint violation.

    Args:
        integrity_error: The SQLAlchemy IntegrityError to check

    Returns:
        True if this is a unique constraint violation, False otherwise
    """
    # PostgreSQL error code 23505 = unique_violation
    if hasattr(integrity_error.orig, 'pgcode'):
        return integrity_error.orig.pgcode == '23505'
    # SQLite and others only expose the message
    return 'unique constraint' in str(integrity_error.orig).lower()


class AssetRegistry:
    """
    Lookup and on-demand creation of Asset rows.

    Attributes:
        _default_category: Category for stubs created without one
    """

    def __init__(self, default_category: AssetCategory | None = None) -> None:
        self._default_category = default_category or AssetCategory(settings.default_asset_category)

    def get(self, db: Session, symbol: str) -> Asset | None:
        return db.scalar(select(Asset).where(Asset.symbol == normalize_symbol(symbol)))

    def get_or_raise(self, db: Session, symbol: str) -> Asset:
        asset = self.get(db, symbol)
        if asset is None:
            raise AssetNotFoundError(normalize_symbol(symbol))
        return asset

    def list_symbols(self, db: Session) -> list[str]:
        return list(db.scalars(select(Asset.symbol).order_by(Asset.symbol)).all())

    def ensure(
            self,
            db: Session,
            symbol: str,
            name: str | None = None,
            category: AssetCategory | None = None,
            api_source: str | None = None,
            api_id: str | None = None,
    ) -> Asset:
        """
        Return the asset for symbol, creating a stub if it does not exist.

        Existing rows are returned unchanged; metadata is only used on
        creation.

        Raises:
            IntegrityError: On constraint failures other than a lost race
        """
        symbol = normalize_symbol(symbol)
        asset = self.get(db, symbol)
        if asset is not None:
            return asset

        asset = Asset(
            symbol=symbol,
            name=name or symbol,
            category=category or self._default_category,
            api_source=api_source,
            api_id=api_id,
        )
        db.add(asset)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if not is_unique_constraint_violation(e):
                raise
            logger.debug(f"Asset {symbol} created concurrently, using existing row")
            return self.get_or_raise(db, symbol)

        db.refresh(asset)
        logger.info(f"Registered asset {symbol} ({asset.category.value})")
        return asset
