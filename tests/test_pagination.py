"""Tests for the pagination helpers."""

import pytest

from common.errors import ValidationError
from common.pagination import build_page, paginate, validate_pagination


def test_defaults():
    assert validate_pagination() == (1, 10)


def test_numeric_strings_accepted():
    assert validate_pagination("2", "25") == (2, 25)


@pytest.mark.parametrize("page,page_size", [
    (0, 10), (-1, 10), (1, 0), (1, 101), ("abc", 10), (1, "ten"), (True, 10), (1.5, 10)
])
def test_invalid_values(page, page_size):
    with pytest.raises(ValidationError):
        validate_pagination(page, page_size)


def test_bounds_inclusive():
    assert validate_pagination(1, 1) == (1, 1)
    assert validate_pagination(1, 100) == (1, 100)


def test_paginate_metadata():
    page = paginate(list(range(7)), 2, 3)

    assert page.items == [3, 4, 5]
    assert page.current_page == 2
    assert page.page_size == 3
    assert page.total_items == 7
    assert page.total_pages == 3
    assert page.has_next is True
    assert page.has_prev is True


def test_page_past_end_is_empty():
    page = paginate([1, 2], 5, 10)

    assert page.items == []
    assert page.total_pages == 1
    assert page.has_next is False
    assert page.has_prev is True


def test_empty_page():
    page = build_page([], 0, 1, 10)

    assert page.total_pages == 0
    assert page.has_next is False
    assert page.has_prev is False
