from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from viewport import SortDirection


# ---------- effects (work the render loop asks a worker to do) ----------
@dataclass(frozen=True)
class FetchRequest:
    generation: int
    schema: Optional[str]
    table: str
    columns: Tuple[str, ...]
    page_size: int
    page_offset: int
    sort_column: Optional[str] = None
    sort_direction: SortDirection = SortDirection.OFF
    filter_value: Optional[str] = None
    include_count: bool = True
    known_total: int = 0


@dataclass(frozen=True)
class EditRequest:
    schema: Optional[str]
    table: str
    columns: Tuple[str, ...]
    row_values: Tuple[str, ...]
    field_name: str
    field_index: int
    new_value: str


@dataclass(frozen=True)
class ProbeRequest:
    kind: str
    dsn: str
    timeout: float = 10.0


@dataclass(frozen=True)
class QueryRequest:
    sql: str
    max_rows: int = 1000


# ---------- results (posted back onto the render loop's queue) ----------
@dataclass
class FetchResult:
    generation: int = 0
    columns: List[str] = field(default_factory=list)
    rows: List[List[str]] = field(default_factory=list)
    total_row_count: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class EditResult:
    success: bool
    new_value: Optional[str] = None
    field_index: int = -1
    error: Optional[str] = None
    # zero affected rows: the statement ran but matched nothing
    soft_failure: bool = False
    affected_rows: int = 0
    # set when the update landed but touched more than one row
    warning: Optional[str] = None


@dataclass
class ProbeResult:
    success: bool
    error: Optional[str] = None


@dataclass
class QueryResult:
    sql: str
    columns: List[str] = field(default_factory=list)
    rows: List[List[str]] = field(default_factory=list)
    message: str = ""
    error: Optional[str] = None
    # more rows were available than max_rows
    truncated: bool = False
    # rows changed by a statement that returns no result set
    affected_rows: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def has_rows(self) -> bool:
        return bool(self.columns)
