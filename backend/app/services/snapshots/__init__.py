# backend/app/services/snapshots/__init__.py
"""Daily snapshot generation and history reads."""

from app.services.snapshots.backfill_service import (
    ALL_ASSETS,
    BackfillError,
    BackfillReport,
    PortfolioHistoryPoint,
    SnapshotBackfillService,
)

__all__ = [
    "ALL_ASSETS",
    "BackfillError",
    "BackfillReport",
    "PortfolioHistoryPoint",
    "SnapshotBackfillService",
]
