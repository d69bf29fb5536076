# tests/schemas/test_pagination.py
"""
Tests for the pagination metadata schema.
"""

import pytest
from pydantic import ValidationError

from app.schemas.pagination import PaginationMeta


class TestPaginationMeta:
    """Tests for PaginationMeta class."""

    def test_create_basic(self):
        meta = PaginationMeta.create(total=100, skip=0, limit=10)

        assert meta.total == 100
        assert meta.skip == 0
        assert meta.limit == 10

    @pytest.mark.parametrize("skip,expected_page", [
        (0, 1),
        (10, 2),
        (50, 6),
        (15, 2),
    ])
    def test_page_calculation(self, skip, expected_page):
        meta = PaginationMeta.create(total=100, skip=skip, limit=10)
        assert meta.page == expected_page

    def test_pages_rounds_up(self):
        meta = PaginationMeta.create(total=101, skip=0, limit=10)
        assert meta.pages == 11

    def test_empty_result_has_one_page(self):
        """An empty ledger still reports page 1 of 1."""
        meta = PaginationMeta.create(total=0, skip=0, limit=50)

        assert meta.pages == 1
        assert meta.has_next is False
        assert meta.has_previous is False

    def test_has_next(self):
        assert PaginationMeta.create(total=25, skip=10, limit=10).has_next is True
        assert PaginationMeta.create(total=20, skip=10, limit=10).has_next is False

    def test_has_previous(self):
        assert PaginationMeta.create(total=25, skip=0, limit=10).has_previous is False
        assert PaginationMeta.create(total=25, skip=1, limit=10).has_previous is True

    def test_computed_fields_serialized(self):
        data = PaginationMeta.create(total=30, skip=10, limit=10).model_dump()

        assert data == {
            "total": 30,
            "skip": 10,
            "limit": 10,
            "page": 2,
            "pages": 3,
            "has_next": True,
            "has_previous": True,
        }

    @pytest.mark.parametrize("kwargs", [
        {"total": -1, "skip": 0, "limit": 10},
        {"total": 10, "skip": -1, "limit": 10},
        {"total": 10, "skip": 0, "limit": 0},
    ])
    def test_rejects_invalid_values(self, kwargs):
        with pytest.raises(ValidationError):
            PaginationMeta.create(**kwargs)
