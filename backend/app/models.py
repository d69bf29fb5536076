# backend/app/models.py
import enum
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, ForeignKey, Enum, Numeric, UniqueConstraint, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# Enums help enforce data integrity at the database level
class TransactionKind(str, enum.Enum):
    """
    Closed set of ledger movements.

    Every record moves exactly one asset. A user-level trade between two
    assets is stored as a TRADE_OUT leg and a TRADE_IN leg.
    """
    BUY = "buy"
    SELL = "sell"
    TRADE_IN = "trade_in"
    TRADE_OUT = "trade_out"


class AssetCategory(str, enum.Enum):
    STOCKS = "stocks"
    ETFS = "etfs"
    CRYPTO = "crypto"
    FIAT = "fiat"


class PriceSource(str, enum.Enum):
    """Where the price stored on a DailySnapshot came from."""
    HISTORY = "history"  # PriceHistory row (provider data)
    ESTIMATE = "estimate"  # Random walk anchored to the current price


class Asset(Base):
    """
    Registry of every asset the ledger has ever referenced.

    current_price is the last known market price. It is refreshed by the
    price service and by buy/sell transactions (their unit price).
    """
    __tablename__ = "assets"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    symbol: Mapped[str] = mapped_column(String, unique=True, index=True)  # e.g. "BTC", "AAPL"
    name: Mapped[str] = mapped_column(String)
    category: Mapped[AssetCategory] = mapped_column(Enum(AssetCategory), index=True)
    api_source: Mapped[str | None] = mapped_column(String, nullable=True)  # e.g. "yahoo", "manual"
    api_id: Mapped[str | None] = mapped_column(String, nullable=True)
    current_price: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))
    price_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    transactions: Mapped[list["Transaction"]] = relationship(back_populates="asset")


class Transaction(Base):
    """
    One ledger leg. Immutable once committed: corrections are delete + re-insert.

    Trade legs carry price_per_unit = 0 and total_amount = 0; the two legs of
    one trade share trade_group_id and occurred_at.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        # Replay reads "all records for asset X up to date Y"
        Index('ix_transaction_asset_occurred', 'asset_symbol', 'occurred_at'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    kind: Mapped[TransactionKind] = mapped_column(Enum(TransactionKind), index=True)
    asset_symbol: Mapped[str] = mapped_column(ForeignKey("assets.symbol"), index=True)
    exchange: Mapped[str] = mapped_column(String)

    # Numeric(18, 8) covers crypto precision (8 decimal places)
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    price_per_unit: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))
    fees: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))

    notes: Mapped[str] = mapped_column(String, default="")
    occurred_at: Mapped[datetime] = mapped_column(DateTime, index=True)
    trade_group_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))  # When it was recorded

    asset: Mapped["Asset"] = relationship(back_populates="transactions")


class Holding(Base):
    """
    Current position for one asset, derived from the ledger.

    Not authoritative: rewritten by the holdings projector after every
    ledger mutation and deleted once the position is closed.
    """
    __tablename__ = "holdings"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    asset_symbol: Mapped[str] = mapped_column(ForeignKey("assets.symbol"), unique=True, index=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    avg_cost: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    invested: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    market_value: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))
    unrealized_pnl: Mapped[Decimal] = mapped_column(Numeric(18, 8), default=Decimal(0))
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    asset: Mapped["Asset"] = relationship()


class DailySnapshot(Base):
    """
    Valuation of one asset on one calendar day.

    Written once by the backfill service and never updated. A changed
    historical price means deleting the row and regenerating it.
    """
    __tablename__ = "daily_snapshots"
    __table_args__ = (
        # The store enforces one row per cell; concurrent backfills rely on it
        UniqueConstraint('asset_symbol', 'snapshot_date', name='uq_snapshot_asset_date'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    asset_symbol: Mapped[str] = mapped_column(ForeignKey("assets.symbol"), index=True)
    snapshot_date: Mapped[date] = mapped_column(Date, index=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    price_per_unit: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    price_source: Mapped[PriceSource] = mapped_column(Enum(PriceSource), default=PriceSource.ESTIMATE)
    total_value: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    unrealized_pnl: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class PriceHistory(Base):
    """
    Daily closing prices fetched from a market data provider.

    Authoritative for backfill: a row here always wins over an estimate.
    """
    __tablename__ = "price_history"
    __table_args__ = (
        UniqueConstraint('asset_symbol', 'price_date', name='uq_price_asset_date'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    asset_symbol: Mapped[str] = mapped_column(ForeignKey("assets.symbol"), index=True)
    price_date: Mapped[date] = mapped_column(Date, index=True)  # Daily data - no time component
    price: Mapped[Decimal] = mapped_column(Numeric(18, 8))
    source: Mapped[str] = mapped_column(String(50), default="yahoo")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc)
    )
