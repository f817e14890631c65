MIN_PAGE_SIZE = 10


def calculate_total_pages(total_rows: int, items_per_page: int) -> int:
    if items_per_page <= 0:
        return 0
    total_rows = max(0, total_rows)
    return (total_rows + items_per_page - 1) // items_per_page


def normalize_page_size(page_size: int) -> int:
    if page_size is None or page_size <= 0:
        return MIN_PAGE_SIZE
    return page_size


def page_offset(page_index: int, items_per_page: int) -> int:
    return max(0, page_index) * max(0, items_per_page)


def has_next_page(page_index: int, total_rows: int, items_per_page: int) -> bool:
    return page_index < calculate_total_pages(total_rows, items_per_page) - 1


def has_prev_page(page_index: int) -> bool:
    return page_index > 0


def clamp_page(page_index: int, total_rows: int, items_per_page: int) -> int:
    max_page = max(0, calculate_total_pages(total_rows, items_per_page) - 1)
    return max(0, min(page_index, max_page))


def absolute_row_index(page_index: int, items_per_page: int, cursor: int) -> int:
    return page_offset(page_index, items_per_page) + max(0, cursor)


def page_row_range(page_index: int, items_per_page: int, rows_on_page: int):
    """Return the 1-based (first, last) row numbers shown on a page, or (0, 0)."""
    if rows_on_page <= 0:
        return 0, 0
    start = page_offset(page_index, items_per_page)
    return start + 1, start + rows_on_page
