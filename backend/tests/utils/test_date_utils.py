# backend/tests/utils/test_date_utils.py
"""
Tests for date range helpers.
"""

from datetime import date

from app.utils.date_utils import days_in_range, iter_days


class TestIterDays:
    def test_inclusive_and_crosses_month(self):
        days = list(iter_days(date(2024, 1, 30), date(2024, 2, 1)))
        assert days == [date(2024, 1, 30), date(2024, 1, 31), date(2024, 2, 1)]

    def test_includes_weekends(self):
        # 2024-01-06 is a Saturday
        assert len(list(iter_days(date(2024, 1, 5), date(2024, 1, 8)))) == 4

    def test_leap_day(self):
        assert date(2024, 2, 29) in list(iter_days(date(2024, 2, 28), date(2024, 3, 1)))

    def test_reversed_range_is_empty(self):
        assert list(iter_days(date(2024, 2, 1), date(2024, 1, 1))) == []


class TestDaysInRange:
    def test_single_day(self):
        assert days_in_range(date(2024, 1, 1), date(2024, 1, 1)) == 1

    def test_full_year(self):
        assert days_in_range(date(2024, 1, 1), date(2024, 12, 31)) == 366

    def test_reversed(self):
        assert days_in_range(date(2024, 1, 2), date(2024, 1, 1)) == 0
