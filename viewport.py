from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Sequence, Tuple

from pagination import (
    absolute_row_index,
    calculate_total_pages,
    has_next_page,
    page_offset,
    page_row_range,
)

NULL_MARKER = "NULL"
DEFAULT_ITEMS_PER_PAGE = 25


class SortDirection(Enum):
    OFF = "off"
    ASCENDING = "ascending"
    DESCENDING = "descending"

    def next(self) -> "SortDirection":
        if self is SortDirection.OFF:
            return SortDirection.ASCENDING
        if self is SortDirection.ASCENDING:
            return SortDirection.DESCENDING
        return SortDirection.OFF

    @property
    def sql_keyword(self) -> Optional[str]:
        if self is SortDirection.ASCENDING:
            return "ASC"
        if self is SortDirection.DESCENDING:
            return "DESC"
        return None

    @property
    def glyph(self) -> str:
        if self is SortDirection.ASCENDING:
            return "↑"
        if self is SortDirection.DESCENDING:
            return "↓"
        return ""


@dataclass(frozen=True)
class ViewportState:
    schema: Optional[str] = None
    table: Optional[str] = None
    all_columns: Tuple[str, ...] = ()
    all_rows: Tuple[Tuple[str, ...], ...] = ()
    total_row_count: int = 0
    current_page: int = 0
    items_per_page: int = DEFAULT_ITEMS_PER_PAGE
    scroll_offset: int = 0
    visible_column_count: int = 0
    sort_column: Optional[str] = None
    sort_direction: SortDirection = SortDirection.OFF
    filter_value: Optional[str] = None
    # latest fetch generation issued for this viewport
    generation: int = 0
    loading: bool = False
    error: Optional[str] = None

    @property
    def total_pages(self) -> int:
        return calculate_total_pages(self.total_row_count, self.items_per_page)

    @property
    def offset(self) -> int:
        return page_offset(self.current_page, self.items_per_page)

    @property
    def has_next_page(self) -> bool:
        return has_next_page(self.current_page, self.total_row_count, self.items_per_page)

    @property
    def row_range(self):
        return page_row_range(self.current_page, self.items_per_page, len(self.all_rows))

    @property
    def active_sort(self):
        """(column, direction) when a sort is in effect, else None."""
        if self.sort_column and self.sort_direction is not SortDirection.OFF:
            return self.sort_column, self.sort_direction
        return None

    def with_page(self, columns: Sequence[str], rows: Sequence[Sequence[str]], total: int):
        columns = tuple(str(c) for c in columns)
        width = len(columns)
        normalized = []
        for row in rows:
            cells = tuple(row[:width])
            if len(cells) < width:
                cells = cells + (NULL_MARKER,) * (width - len(cells))
            normalized.append(cells)

        same_columns = columns == self.all_columns
        scroll = self.scroll_offset if same_columns else 0
        scroll = max(0, min(scroll, len(columns)))
        return replace(
            self,
            all_columns=columns,
            all_rows=tuple(normalized),
            total_row_count=max(0, total),
            scroll_offset=scroll,
            visible_column_count=self.visible_column_count if same_columns else 0,
            loading=False,
            error=None,
        )


@dataclass(frozen=True)
class SelectedRow:
    values: Tuple[str, ...]
    absolute_index: int

    @classmethod
    def from_viewport(cls, state: ViewportState, cursor: int) -> Optional["SelectedRow"]:
        if cursor < 0 or cursor >= len(state.all_rows):
            return None
        return cls(
            values=tuple(state.all_rows[cursor]),
            absolute_index=absolute_row_index(state.current_page, state.items_per_page, cursor),
        )

    def with_value(self, index: int, value: str) -> "SelectedRow":
        if index < 0 or index >= len(self.values):
            return self
        values = list(self.values)
        values[index] = value
        return replace(self, values=tuple(values))


@dataclass(frozen=True)
class EditSession:
    field_name: str
    field_index: int
    original_value: str
    pending_value: str

    @classmethod
    def start(cls, columns: Sequence[str], row: SelectedRow, field_index: int) -> "EditSession":
        value = row.values[field_index] if field_index < len(row.values) else NULL_MARKER
        return cls(
            field_name=columns[field_index],
            field_index=field_index,
            original_value=value,
            pending_value=value,
        )

    def with_pending(self, text: str) -> "EditSession":
        return replace(self, pending_value=text)

    @property
    def changed(self) -> bool:
        return self.pending_value != self.original_value
