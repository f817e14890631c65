"""Column widths, horizontal packing and cell truncation for the grid.

Everything here is a pure function of the rows it is given, so the same
page always lays out the same way.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import pandas as pd

from cell_format import sanitize_for_display
from viewport import NULL_MARKER, ViewportState

MIN_COL_WIDTH = 6
MAX_COL_WIDTH = 60
COLUMN_GAP = 3
MIN_AVAILABLE_WIDTH = 20
SAMPLE_SIZE = 50
LONG_TEXT_LENGTH = 50
ELLIPSIS = "…"

_BOOLEAN_WORDS = {"true", "false", "t", "f", "yes", "no", "y", "n", "1", "0"}


def _column_values(rows, index) -> pd.Series:
    cells = [row[index] for row in rows if index < len(row)]
    values = pd.Series(cells, dtype="object")
    values = values[values.notna() & (values != NULL_MARKER)]
    return values.astype(str)


def _looks_like_dates(sample: pd.Series) -> bool:
    lengths = sample.str.len()
    shaped = (
        (lengths >= 8)
        & sample.str.contains("-", regex=False)
        & (sample.str.contains(":", regex=False) | (lengths >= 10))
    )
    if not shaped.all():
        return False
    parsed = pd.to_datetime(sample, errors="coerce", format="mixed", utc=True)
    return bool(parsed.notna().all())


def classify_column(values: pd.Series) -> str:
    """Return one of empty, numeric, date, boolean, text or string."""
    sample = values[values.str.strip() != ""].head(SAMPLE_SIZE).str.strip()
    if sample.empty:
        return "empty"
    if pd.to_numeric(sample, errors="coerce").notna().all():
        return "numeric"
    if _looks_like_dates(sample):
        return "date"
    if sample.str.lower().isin(_BOOLEAN_WORDS).all():
        return "boolean"
    if sample.str.len().max() > LONG_TEXT_LENGTH:
        return "text"
    return "string"


def width_for(title: str, kind: str, max_len: int, avg_len: int) -> int:
    header = len(title)
    if kind == "boolean":
        width = min(max(8, header + 2), 10)
    elif kind == "numeric":
        width = min(max(10, max_len + 1), 15)
    elif kind == "date":
        width = min(max(12, max_len), 20)
    elif kind == "empty":
        width = max(8, header + 2)
    elif kind == "text":
        width = min(max(avg_len // 2 + 10, header + 2, 20), 45)
    else:
        width = min(max(avg_len + 3, header + 2, 12), 35)
    # room for the header and its sort arrow
    width = max(width, header + 2)
    return max(MIN_COL_WIDTH, min(width, MAX_COL_WIDTH))


def compute_column_widths(columns: Sequence[str], rows: Sequence[Sequence[str]]) -> List[int]:
    widths = []
    for i, title in enumerate(columns):
        title = str(title)
        values = _column_values(rows, i)
        lengths = values.str.len()
        max_len = max(len(title), int(lengths.max()) if not lengths.empty else 0)
        avg_len = int(lengths.mean()) if not lengths.empty else 0
        widths.append(width_for(title, classify_column(values), max_len, avg_len))
    return widths


def pack_visible_columns(widths: Sequence[int], scroll_offset: int, available_width: int) -> int:
    """How many columns starting at scroll_offset fit in available_width."""
    start = max(0, scroll_offset)
    if start >= len(widths):
        return 0
    available = max(MIN_AVAILABLE_WIDTH, available_width)
    used = 0
    count = 0
    for w in widths[start:]:
        step = w + COLUMN_GAP
        if used + step > available:
            break
        used += step
        count += 1
    return max(1, count)


def truncate_cell(text: str, width: int, ellipsis: str = ELLIPSIS) -> str:
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    keep = max(0, width - len(ellipsis))
    truncated = text[:keep]
    if width > 15:
        last_space = truncated.rfind(" ")
        if last_space > width // 2:
            truncated = truncated[:last_space]
    return (truncated + ellipsis)[:width]


@dataclass(frozen=True)
class GridLayout:
    headers: Tuple[Tuple[str, int], ...]
    rows: Tuple[Tuple[str, ...], ...]
    widths: Tuple[int, ...]
    visible_count: int


def header_title(state: ViewportState, column: str) -> str:
    active = state.active_sort
    if active and active[0] == column:
        return f"{column} {active[1].glyph}"
    return column


def layout_viewport(state: ViewportState, available_width: int, widths=None) -> GridLayout:
    columns = state.all_columns
    if widths is None:
        widths = compute_column_widths(columns, state.all_rows)
    start = state.scroll_offset
    visible = pack_visible_columns(widths, start, available_width)
    stop = start + visible

    headers = tuple(
        (header_title(state, columns[i]), widths[i]) for i in range(start, stop)
    )
    grid = tuple(
        tuple(
            truncate_cell(sanitize_for_display(row[i]), widths[i])
            for i in range(start, stop)
        )
        for row in state.all_rows
    )
    return GridLayout(headers=headers, rows=grid, widths=tuple(widths), visible_count=visible)
