# backend/app/services/valuation/estimator.py
"""
Synthetic price series for dates with no recorded history.

Backfill needs a price for every calendar day in its range. When the
PriceHistory table has nothing for a date, the estimator supplies a
bounded random walk that ends at a real anchor price:

    p(anchor)   = anchor price
    p(d - 1)    = clamp(p(d) × (1 + u), anchor × [1 - drift, 1 + drift])
    u           ~ Uniform(-volatility, +volatility)

The generator is seeded from (symbol, anchor_date), so re-running a
backfill produces the same series for the same inputs. Estimated prices
are flagged as such on the snapshots that use them.
"""

import logging
import random
from collections.abc import Iterable
from datetime import date, timedelta
from decimal import Decimal

from app.services.valuation.types import ZERO

logger = logging.getLogger(__name__)

PRICE_QUANTUM = Decimal("0.00000001")


class RandomWalkEstimator:
    """
    Deterministic bounded random walk anchored on a known price.

    Attributes:
        daily_volatility: Max relative move between consecutive days
        max_drift: Max relative distance from the anchor price
    """

    def __init__(self, daily_volatility: float = 0.03, max_drift: float = 0.5) -> None:
        if daily_volatility < 0:
            raise ValueError("daily_volatility must be >= 0")
        if not 0 <= max_drift < 1:
            raise ValueError("max_drift must be in [0, 1)")
        self.daily_volatility = daily_volatility
        self.max_drift = max_drift

    def estimate(
            self,
            symbol: str,
            anchor_price: Decimal,
            anchor_date: date,
            dates: Iterable[date],
    ) -> dict[date, Decimal]:
        """
        Estimated price for each requested date.

        Dates on or after anchor_date get the anchor price. A zero anchor
        yields zeros everywhere.
        """
        wanted = sorted(set(dates))
        if not wanted:
            return {}

        if anchor_price <= ZERO:
            return {d: ZERO for d in wanted}

        result = {d: anchor_price for d in wanted if d >= anchor_date}
        earliest = wanted[0]
        if earliest >= anchor_date:
            return result

        drift = Decimal(str(self.max_drift))
        floor = anchor_price * (1 - drift)
        ceiling = anchor_price * (1 + drift)
        wanted_set = set(wanted)

        rng = random.Random(f"{symbol}:{anchor_date.isoformat()}")
        price = anchor_price
        current = anchor_date
        while current > earliest:
            current -= timedelta(days=1)
            step = Decimal(str(rng.uniform(-self.daily_volatility, self.daily_volatility)))
            price = min(max(price * (1 + step), floor), ceiling)
            if current in wanted_set:
                result[current] = price.quantize(PRICE_QUANTUM)

        logger.debug(
            f"Estimated {len(wanted)} prices for {symbol} "
            f"anchored at {anchor_price} on {anchor_date}"
        )
        return result
