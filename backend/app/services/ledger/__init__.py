# backend/app/services/ledger/__init__.py
"""
Ledger Package.

    ledger/
    ├── normalizer.py    # Trade → (trade_out, trade_in) legs, input checks
    └── service.py       # LedgerService: record/delete/list + reprojection
"""

from app.services.ledger.normalizer import TradeNormalizer
from app.services.ledger.service import LedgerService

__all__ = [
    "LedgerService",
    "TradeNormalizer",
]
