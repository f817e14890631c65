import pytest

from pagination import (
    absolute_row_index,
    calculate_total_pages,
    clamp_page,
    has_next_page,
    has_prev_page,
    normalize_page_size,
    page_offset,
    page_row_range,
)


@pytest.mark.parametrize(
    "total, per_page, expected",
    [
        (0, 10, 0),
        (1, 10, 1),
        (10, 10, 1),
        (11, 10, 2),
        (5, 2, 3),
        (5, 0, 0),
        (5, -3, 0),
    ],
)
def test_total_pages(total, per_page, expected):
    assert calculate_total_pages(total, per_page) == expected


def test_normalize_page_size_falls_back_to_minimum():
    assert normalize_page_size(0) == 10
    assert normalize_page_size(-4) == 10
    assert normalize_page_size(None) == 10
    assert normalize_page_size(25) == 25


def test_page_navigation_bounds():
    # 5 rows at 2 per page: pages 0, 1, 2
    assert has_next_page(0, 5, 2)
    assert has_next_page(1, 5, 2)
    assert not has_next_page(2, 5, 2)
    assert not has_prev_page(0)
    assert has_prev_page(2)


def test_clamp_page():
    assert clamp_page(5, 5, 2) == 2
    assert clamp_page(-1, 5, 2) == 0
    assert clamp_page(3, 0, 10) == 0


def test_offsets_and_row_ranges():
    assert page_offset(2, 25) == 50
    assert page_offset(-1, 25) == 0
    assert absolute_row_index(2, 25, 3) == 53
    assert page_row_range(0, 2, 2) == (1, 2)
    assert page_row_range(2, 2, 1) == (5, 5)
    assert page_row_range(0, 10, 0) == (0, 0)
