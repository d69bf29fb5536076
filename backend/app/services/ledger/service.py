# backend/app/services/ledger/service.py
"""
Ledger service: the only writer of the transaction ledger.

Every mutation follows the same cycle, under the per-asset lock:

    validate → write ledger rows → commit → reproject holdings

The ledger write is the source of truth. If the reprojection that follows
fails, the failure is logged and the write stands; the next mutation (or
a price refresh) rebuilds the Holding row from the full ledger anyway.

Trades are written as two legs in one commit (see normalizer.py). Deleting
one leg of a trade does not touch its sibling: the remaining leg is
logged as orphaned. delete_trade() removes both legs together.

Usage:
    service = LedgerService(price_service=price_service)

    service.record_transaction(
        db, kind="buy", asset_symbol="BTC", quantity="0.5",
        exchange="Kraken", price_per_unit="60000", fees="10",
    )
    service.record_trade(db, "ETH", "2", "BTC", "0.1", exchange="Binance")
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import AssetCategory, Transaction, TransactionKind
from app.services.asset_registry import AssetRegistry, normalize_symbol
from app.services.exceptions import (
    PersistenceError,
    TradeNotFoundError,
    TransactionNotFoundError,
    ValidationError,
)
from app.services.ledger.normalizer import (
    TradeNormalizer,
    normalize_occurred_at,
    require_non_negative,
    require_positive,
    require_text,
    to_decimal,
)
from app.services.locks import AssetLockRegistry, asset_locks
from app.services.protocols import LastKnownPriceSource
from app.services.valuation.holdings_projector import HoldingsProjector

logger = logging.getLogger(__name__)

FIAT_PRICED_KINDS = (TransactionKind.BUY, TransactionKind.SELL)


class LedgerService:
    """
    Records and deletes ledger entries, keeping holdings in step.

    Attributes:
        _price_service: Source of the last known market price
        _registry: Asset registry (stub creation)
        _normalizer: Trade → two legs
        _projector: Holdings recomputation after each mutation
        _locks: Per-asset locks
    """

    def __init__(
            self,
            price_service: LastKnownPriceSource,
            registry: AssetRegistry | None = None,
            normalizer: TradeNormalizer | None = None,
            projector: HoldingsProjector | None = None,
            locks: AssetLockRegistry | None = None,
    ) -> None:
        self._price_service = price_service
        self._registry = registry or AssetRegistry()
        self._normalizer = normalizer or TradeNormalizer(registry=self._registry)
        self._locks = locks or asset_locks
        self._projector = projector or HoldingsProjector(locks=self._locks)

    # =========================================================================
    # WRITES
    # =========================================================================

    def record_transaction(
            self,
            db: Session,
            kind: TransactionKind | str,
            asset_symbol: str,
            quantity,
            exchange: str,
            price_per_unit=None,
            fees=0,
            notes: str | None = None,
            occurred_at: datetime | None = None,
            asset_name: str | None = None,
            category: AssetCategory | str | None = None,
            api_source: str | None = None,
            api_id: str | None = None,
    ) -> Transaction:
        """
        Record a single ledger entry and reproject the asset's holding.

        Buy/sell entries need a positive unit price, which also becomes the
        asset's last known price. Standalone trade legs carry no price.

        Raises:
            ValidationError: Invalid input (nothing is written)
            PersistenceError: The ledger write failed (rolled back)
        """
        kind = _parse_kind(kind)
        symbol = normalize_symbol(require_text(asset_symbol, "asset_symbol"))
        exchange = require_text(exchange, "exchange")
        quantity = require_positive(quantity, "quantity")
        fees = require_non_negative(fees, "fees")
        category = _parse_category(category)

        if kind in FIAT_PRICED_KINDS:
            price = require_positive(price_per_unit, "price_per_unit")
            total_amount = quantity * price
        else:
            price = to_decimal(price_per_unit if price_per_unit is not None else 0, "price_per_unit")
            if price != 0:
                raise ValidationError(
                    f"{kind.value} entries carry no fiat price",
                    field="price_per_unit",
                )
            total_amount = Decimal(0)

        with self._locks.hold(symbol):
            asset = self._registry.ensure(
                db, symbol,
                name=asset_name,
                category=category,
                api_source=api_source,
                api_id=api_id,
            )

            txn = Transaction(
                kind=kind,
                asset_symbol=symbol,
                exchange=exchange,
                quantity=quantity,
                price_per_unit=price,
                total_amount=total_amount,
                fees=fees,
                notes=notes.strip() if notes else "",
                occurred_at=normalize_occurred_at(occurred_at),
            )
            db.add(txn)
            if kind in FIAT_PRICED_KINDS:
                self._price_service.update_last_known_price(db, asset, price)
            self._commit(db, "record_transaction")
            db.refresh(txn)

            logger.info(
                f"Recorded {kind.value} {quantity} {symbol} on {exchange} "
                f"(id={txn.id})"
            )
            self._reproject(db, symbol)
            return txn

    def record_trade(
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
        Record an asset-for-asset trade as two legs in one commit.

        Returns:
            (trade_out leg, trade_in leg)
        """
        lock_symbols = [normalize_symbol(s) for s in (asset_from, asset_to) if s]

        with self._locks.hold(*lock_symbols):
            leg_out, leg_in = self._normalizer.normalize_trade(
                db,
                asset_from=asset_from,
                qty_from=qty_from,
                asset_to=asset_to,
                qty_to=qty_to,
                exchange=exchange,
                fees=fees,
                notes=notes,
                occurred_at=occurred_at,
            )
            db.add_all([leg_out, leg_in])
            self._commit(db, "record_trade")
            db.refresh(leg_out)
            db.refresh(leg_in)

            logger.info(f"Recorded trade {leg_out.trade_group_id}: {leg_out.notes}")
            self._reproject(db, leg_out.asset_symbol)
            self._reproject(db, leg_in.asset_symbol)
            return leg_out, leg_in

    def delete_transaction(self, db: Session, transaction_id: int) -> None:
        """
        Delete one ledger entry and reproject its asset.

        A trade leg is deleted alone; its sibling stays in the ledger.

        Raises:
            TransactionNotFoundError: No entry with this id
        """
        txn = db.get(Transaction, transaction_id)
        if txn is None:
            raise TransactionNotFoundError(transaction_id)

        symbol = txn.asset_symbol
        with self._locks.hold(symbol):
            if txn.trade_group_id is not None:
                sibling_ids = db.scalars(
                    select(Transaction.id).where(
                        Transaction.trade_group_id == txn.trade_group_id,
                        Transaction.id != txn.id,
                    )
                ).all()
                if sibling_ids:
                    logger.warning(
                        f"Deleting trade leg {txn.id} leaves sibling(s) {list(sibling_ids)} "
                        f"of trade {txn.trade_group_id} orphaned"
                    )

            db.delete(txn)
            self._commit(db, "delete_transaction")
            logger.info(f"Deleted transaction {transaction_id} ({symbol})")
            self._reproject(db, symbol)

    def delete_trade(self, db: Session, trade_group_id: str) -> int:
        """
        Delete every leg of a trade and reproject the affected assets.

        Returns:
            Number of legs deleted

        Raises:
            TradeNotFoundError: No leg carries this trade_group_id
        """
        legs = db.scalars(
            select(Transaction).where(Transaction.trade_group_id == trade_group_id)
        ).all()
        if not legs:
            raise TradeNotFoundError(trade_group_id)

        symbols = sorted({leg.asset_symbol for leg in legs})
        with self._locks.hold(*symbols):
            for leg in legs:
                db.delete(leg)
            self._commit(db, "delete_trade")
            logger.info(f"Deleted trade {trade_group_id} ({len(legs)} legs)")
            for symbol in symbols:
                self._reproject(db, symbol)
        return len(legs)

    # =========================================================================
    # READS
    # =========================================================================

    def get_transaction(self, db: Session, transaction_id: int) -> Transaction:
        txn = db.get(Transaction, transaction_id)
        if txn is None:
            raise TransactionNotFoundError(transaction_id)
        return txn

    def list_transactions(self, db: Session, asset_symbol: str) -> list[Transaction]:
        """All entries of one asset in ledger order (occurred_at, id)."""
        return list(db.scalars(
            select(Transaction)
            .where(Transaction.asset_symbol == normalize_symbol(asset_symbol))
            .order_by(Transaction.occurred_at, Transaction.id)
        ).all())

    def list_recent(self, db: Session, days: int = 3, limit: int = 10) -> list[Transaction]:
        """Entries that occurred in the last `days` days, newest first."""
        since = datetime.now() - timedelta(days=days)
        return list(db.scalars(
            select(Transaction)
            .where(Transaction.occurred_at >= since)
            .order_by(Transaction.occurred_at.desc(), Transaction.id.desc())
            .limit(limit)
        ).all())

    def list_all(
            self,
            db: Session,
            limit: int = 50,
            offset: int = 0,
    ) -> tuple[list[Transaction], int]:
        """
        One page of the whole ledger, newest first.

        Returns:
            (entries on this page, total number of entries)
        """
        total = db.scalar(select(func.count()).select_from(Transaction)) or 0
        items = db.scalars(
            select(Transaction)
            .order_by(Transaction.occurred_at.desc(), Transaction.id.desc())
            .limit(limit)
            .offset(offset)
        ).all()
        return list(items), total

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _commit(self, db: Session, operation: str) -> None:
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"{operation} failed: {e}")
            raise PersistenceError(operation, str(e)) from e

    def _reproject(self, db: Session, symbol: str) -> None:
        """Recompute the holding after a committed write. Never raises."""
        try:
            price = self._price_service.latest_known_price(db, symbol)
            self._projector.project(db, symbol, price)
        except Exception:
            db.rollback()
            logger.exception(f"Holding projection failed for {symbol}; ledger write kept")


def _parse_kind(kind: TransactionKind | str) -> TransactionKind:
    if isinstance(kind, TransactionKind):
        return kind
    try:
        return TransactionKind(str(kind).strip().lower())
    except ValueError:
        allowed = ", ".join(k.value for k in TransactionKind)
        raise ValidationError(f"Unknown transaction kind {kind!r} (expected one of {allowed})", field="kind")


def _parse_category(category: AssetCategory | str | None) -> AssetCategory | None:
    if category is None or isinstance(category, AssetCategory):
        return category
    try:
        return AssetCategory(str(category).strip().lower())
    except ValueError:
        allowed = ", ".join(c.value for c in AssetCategory)
        raise ValidationError(f"Unknown asset category {category!r} (expected one of {allowed})", field="category")
