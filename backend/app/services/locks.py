# backend/app/services/locks.py
"""
Per-asset mutual exclusion.

Two mutations of the same asset must not interleave their
read → recompute → write cycles. Callers wrap that cycle in
`asset_locks.hold(symbol)`; unrelated assets never block each other.

Usage:
    from app.services.locks import asset_locks

    with asset_locks.hold("BTC", "ETH"):
        ...
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class AssetLockRegistry:
    """
    Thread-safe registry of re-entrant locks keyed by asset symbol.

    Locks are re-entrant so a service holding a symbol can call another
    service that takes the same symbol.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def _lock_for(self, symbol: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(symbol)
            if lock is None:
                lock = threading.RLock()
                self._locks[symbol] = lock
            return lock

    @contextmanager
    def hold(self, *symbols: str) -> Iterator[None]:
        """
        Hold the locks of all given symbols.

        Symbols are acquired in sorted order so two callers locking the
        same pair cannot deadlock.
        """
        locks = [self._lock_for(symbol) for symbol in sorted(set(symbols))]
        for lock in locks:
            lock.acquire()
        try:
            yield
        finally:
            for lock in reversed(locks):
                lock.release()


# Process-wide registry shared by the ledger and the projector
asset_locks = AssetLockRegistry()
