# backend/app/utils/date_utils.py
"""
Date helpers shared by the backfill and snapshot services.

Snapshots are daily and cover every calendar day (crypto trades on
weekends), so ranges here never skip weekends.

Usage:
    from app.utils.date_utils import iter_days

    for day in iter_days(start_date, end_date):
        ...
"""

from collections.abc import Iterator
from datetime import date, timedelta


def iter_days(start_date: date, end_date: date) -> Iterator[date]:
    """
    Yield every calendar day from start_date to end_date (both inclusive).

    Yields nothing when start_date is after end_date.

    Example:
        >>> list(iter_days(date(2024, 1, 30), date(2024, 2, 1)))
        [date(2024, 1, 30), date(2024, 1, 31), date(2024, 2, 1)]
    """
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def days_in_range(start_date: date, end_date: date) -> int:
    """Number of calendar days in an inclusive range (0 if reversed)."""
    return max(0, (end_date - start_date).days + 1)
