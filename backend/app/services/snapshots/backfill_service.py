# backend/app/services/snapshots/backfill_service.py
"""
Snapshot backfill: fills the (asset × day) matrix of DailySnapshot rows.

Each cell goes through:

    Pending → exists? → Skip
                      → price (history, else estimate) → replay → insert → Done

Backfill only ever adds missing rows. Existing rows are never rewritten,
so a run can be interrupted and simply re-invoked. The unique constraint
on (asset_symbol, snapshot_date) makes the insert the final arbiter: a
cell inserted by a concurrent run in between the existence check and the
insert is counted as skipped.

Failures are isolated. An asset that fails for any reason is
reported and the run moves on to the next asset; a cell that fails is
reported and the asset moves on to the next day.

Execution:
    max_workers == 1  → assets one after another, pacing_seconds apart
                        (keeps a rate-limited price API happy)
    max_workers  > 1  → bounded thread pool, one session per worker.
                        Needs a database that supports concurrent
                        connections (not in-memory SQLite).
"""

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.config import settings
from app.database import SessionLocal
from app.models import DailySnapshot, PriceSource, Transaction
from app.services.asset_registry import AssetRegistry, is_unique_constraint_violation, normalize_symbol
from app.services.exceptions import ValidationError
from app.services.protocols import BackfillPriceSource
from app.services.valuation.estimator import RandomWalkEstimator
from app.services.valuation.holdings_projector import load_ledger
from app.services.valuation.replay import ValuationReplayEngine
from app.services.valuation.types import ZERO, LedgerEntry
from app.utils.context import bind_current_context
from app.utils.date_utils import days_in_range, iter_days

logger = logging.getLogger(__name__)

ALL_ASSETS = "all"


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass(frozen=True)
class BackfillError:
    """One failure: a whole asset (snapshot_date None) or a single cell."""

    asset_symbol: str
    snapshot_date: date | None
    message: str


@dataclass
class BackfillReport:
    created: int = 0
    skipped: int = 0
    errors: list[BackfillError] = field(default_factory=list)
    assets_processed: int = 0

    def merge(self, other: "BackfillReport") -> None:
        self.created += other.created
        self.skipped += other.skipped
        self.errors.extend(other.errors)
        self.assets_processed += other.assets_processed


@dataclass(frozen=True)
class PortfolioHistoryPoint:
    snapshot_date: date
    total_value: Decimal
    unrealized_pnl: Decimal
    assets: int


# =============================================================================
# SERVICE
# =============================================================================

class SnapshotBackfillService:
    """
    Generates missing DailySnapshot rows and reads them back.

    Attributes:
        _price_service: Anchor price (live, degrading) and price history
        _replay: Valuation of a position on a past date
        _estimator: Prices for days without history
        _session_factory: Session per worker in parallel mode
        _pacing_seconds: Delay between assets in sequential mode
        _max_workers: Assets processed concurrently
        _sleep / _clock: Injectable for tests
    """

    def __init__(
            self,
            price_service: BackfillPriceSource,
            replay_engine: ValuationReplayEngine | None = None,
            estimator: RandomWalkEstimator | None = None,
            registry: AssetRegistry | None = None,
            session_factory: sessionmaker | Callable[[], Session] | None = None,
            pacing_seconds: float | None = None,
            max_workers: int | None = None,
            sleep: Callable[[float], None] = time.sleep,
            clock: Callable[[], date] = date.today,
    ) -> None:
        self._price_service = price_service
        self._replay = replay_engine or ValuationReplayEngine()
        self._estimator = estimator or RandomWalkEstimator(
            daily_volatility=settings.estimate_daily_volatility,
            max_drift=settings.estimate_max_drift,
        )
        self._registry = registry or AssetRegistry()
        self._session_factory = session_factory
        self._pacing_seconds = (
            settings.backfill_pacing_seconds if pacing_seconds is None else pacing_seconds
        )
        self._max_workers = max(1, settings.backfill_max_workers if max_workers is None else max_workers)
        self._sleep = sleep
        self._clock = clock

    # =========================================================================
    # BACKFILL
    # =========================================================================

    def backfill(
            self,
            db: Session,
            asset_symbol: str,
            start_date: date,
            end_date: date,
            sync_history: bool = False,
    ) -> BackfillReport:
        """
        Create every missing snapshot for the asset(s) in [start_date, end_date].

        Args:
            db: Session used for validation and for sequential runs
            asset_symbol: A registered symbol, or "all" for every ledger asset
            start_date: First day (inclusive)
            end_date: Last day (inclusive)
            sync_history: Pull provider history into PriceHistory first

        Raises:
            ValidationError: start_date is after end_date
            AssetNotFoundError: A named asset is not registered
        """
        if start_date > end_date:
            raise ValidationError(
                f"start_date {start_date} is after end_date {end_date}",
                field="start_date",
            )

        symbols = self._resolve_symbols(db, asset_symbol)
        logger.info(
            f"Backfill started: {len(symbols)} asset(s), {start_date}..{end_date} "
            f"({days_in_range(start_date, end_date)} days), "
            f"workers={self._max_workers}"
        )

        report = BackfillReport()
        if self._max_workers > 1 and len(symbols) > 1:
            report = self._run_parallel(symbols, start_date, end_date, sync_history)
        else:
            for index, symbol in enumerate(symbols):
                if index > 0 and self._pacing_seconds > 0:
                    self._sleep(self._pacing_seconds)
                report.merge(self._backfill_asset(db, symbol, start_date, end_date, sync_history))

        logger.info(
            f"Backfill finished: created={report.created}, skipped={report.skipped}, "
            f"errors={len(report.errors)}, assets={report.assets_processed}"
        )
        return report

    def _resolve_symbols(self, db: Session, asset_symbol: str) -> list[str]:
        if asset_symbol.strip().lower() == ALL_ASSETS:
            return list(db.scalars(
                select(Transaction.asset_symbol).distinct().order_by(Transaction.asset_symbol)
            ).all())
        return [self._registry.get_or_raise(db, asset_symbol).symbol]

    def _run_parallel(
            self,
            symbols: list[str],
            start_date: date,
            end_date: date,
            sync_history: bool,
    ) -> BackfillReport:
        session_factory = self._session_factory or SessionLocal

        def work(symbol: str) -> BackfillReport:
            with session_factory() as session:
                return self._backfill_asset(session, symbol, start_date, end_date, sync_history)

        report = BackfillReport()
        workers = min(self._max_workers, len(symbols))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="backfill") as pool:
            for asset_report in pool.map(bind_current_context(work), symbols):
                report.merge(asset_report)
        return report

    def _backfill_asset(
            self,
            db: Session,
            symbol: str,
            start_date: date,
            end_date: date,
            sync_history: bool,
    ) -> BackfillReport:
        """Fill one asset's row of the matrix. Never raises."""
        report = BackfillReport(assets_processed=1)
        try:
            existing = set(db.scalars(
                select(DailySnapshot.snapshot_date).where(
                    DailySnapshot.asset_symbol == symbol,
                    DailySnapshot.snapshot_date >= start_date,
                    DailySnapshot.snapshot_date <= end_date,
                )
            ).all())
            missing = [day for day in iter_days(start_date, end_date) if day not in existing]
            report.skipped += len(existing)
            if not missing:
                logger.debug(f"{symbol}: all snapshots present, nothing to do")
                return report

            anchor_price = self._price_service.fetch_price(db, symbol) or ZERO
            if sync_history:
                self._price_service.sync_price_history(db, symbol, missing[0], missing[-1])

            history = self._price_service.historical_prices(db, symbol, missing[0], missing[-1])
            estimates = self._estimator.estimate(
                symbol,
                anchor_price,
                self._clock(),
                [day for day in missing if day not in history],
            )
            ledger = load_ledger(db, symbol)

            for day in missing:
                if day in history:
                    price, source = history[day], PriceSource.HISTORY
                else:
                    price, source = estimates[day], PriceSource.ESTIMATE

                try:
                    created = self._persist_cell(db, symbol, ledger, day, price, source)
                except SQLAlchemyError as e:
                    db.rollback()
                    logger.error(f"{symbol} {day}: snapshot failed: {e}")
                    report.errors.append(BackfillError(symbol, day, str(e)))
                    continue

                if created:
                    report.created += 1
                else:
                    report.skipped += 1

        except Exception as e:
            db.rollback()
            logger.exception(f"Backfill failed for {symbol}")
            report.errors.append(BackfillError(symbol, None, str(e)))

        logger.info(
            f"{symbol}: created={report.created}, skipped={report.skipped}, "
            f"errors={len(report.errors)}"
        )
        return report

    def _persist_cell(
            self,
            db: Session,
            symbol: str,
            ledger: list[LedgerEntry],
            day: date,
            price: Decimal,
            source: PriceSource,
    ) -> bool:
        """
        Replay and insert one snapshot, committing it alone.

        Returns:
            True if inserted, False if another writer got there first

        Raises:
            IntegrityError: On constraint failures other than a lost race
        """
        valuation = self._replay.replay(symbol, ledger, day, price)
        db.add(DailySnapshot(
            asset_symbol=symbol,
            snapshot_date=day,
            quantity=valuation.quantity,
            price_per_unit=valuation.price_per_unit,
            price_source=source,
            total_value=valuation.total_value,
            unrealized_pnl=valuation.unrealized_pnl,
        ))
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if not is_unique_constraint_violation(e):
                raise
            logger.warning(f"{symbol} {day}: snapshot already written concurrently, skipped")
            return False
        return True

    # =========================================================================
    # READS
    # =========================================================================

    def list_snapshots(
            self,
            db: Session,
            asset_symbol: str,
            start_date: date | None = None,
            end_date: date | None = None,
    ) -> list[DailySnapshot]:
        query = select(DailySnapshot).where(DailySnapshot.asset_symbol == normalize_symbol(asset_symbol))
        if start_date is not None:
            query = query.where(DailySnapshot.snapshot_date >= start_date)
        if end_date is not None:
            query = query.where(DailySnapshot.snapshot_date <= end_date)
        return list(db.scalars(query.order_by(DailySnapshot.snapshot_date)).all())

    def portfolio_history(
            self,
            db: Session,
            start_date: date,
            end_date: date,
    ) -> list[PortfolioHistoryPoint]:
        """Per-day totals across every asset that has a snapshot that day."""
        if start_date > end_date:
            raise ValidationError(
                f"start_date {start_date} is after end_date {end_date}",
                field="start_date",
            )

        rows = db.execute(
            select(
                DailySnapshot.snapshot_date,
                func.sum(DailySnapshot.total_value),
                func.sum(DailySnapshot.unrealized_pnl),
                func.count(DailySnapshot.id),
            )
            .where(
                DailySnapshot.snapshot_date >= start_date,
                DailySnapshot.snapshot_date <= end_date,
            )
            .group_by(DailySnapshot.snapshot_date)
            .order_by(DailySnapshot.snapshot_date)
        ).all()

        return [
            PortfolioHistoryPoint(
                snapshot_date=snapshot_date,
                total_value=Decimal(str(total_value or 0)),
                unrealized_pnl=Decimal(str(unrealized_pnl or 0)),
                assets=assets,
            )
            for snapshot_date, total_value, unrealized_pnl, assets in rows
        ]
