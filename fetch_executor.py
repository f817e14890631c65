import logging
from dataclasses import replace

from errors import describe_query_error
from messages import FetchRequest, FetchResult
from viewport import NULL_MARKER

logger = logging.getLogger(__name__)


def cell_to_text(value) -> str:
    if value is None:
        return NULL_MARKER
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def materialize(cursor):
    """Column names plus every remaining row of the cursor as display text."""
    columns = [str(d[0]) for d in (cursor.description or [])]
    rows = [[cell_to_text(v) for v in row] for row in cursor.fetchall()]
    return columns, rows


class FetchExecutor:
    """Runs count/page queries for one viewport against a live connection.

    Called from worker threads. Each call opens and closes its own cursor, so
    nothing is held between calls; errors come back inside the FetchResult.
    """

    def __init__(self, dialect, connection):
        self.dialect = dialect
        self.connection = connection

    def _query(self, sql):
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql)
            return materialize(cursor)
        finally:
            cursor.close()

    def with_columns(self, request: FetchRequest) -> FetchRequest:
        """Fill in the column list when a filter arrives before the first page has."""
        if request.columns or not request.filter_value:
            return request
        sql = self.dialect.column_names_sql(request.schema, request.table)
        logger.debug("columns: %s", sql)
        columns, _ = self._query(sql)
        return replace(request, columns=tuple(columns))

    def count(self, request: FetchRequest) -> int:
        sql = self.dialect.row_count_sql(
            request.schema, request.table, request.columns, request.filter_value
        )
        logger.debug("count: %s", sql)
        _, rows = self._query(sql)
        if not rows or not rows[0]:
            return 0
        return int(rows[0][0])

    def fetch_page(self, request: FetchRequest):
        sql = self.dialect.select_page_sql(
            request.schema,
            request.table,
            request.page_size,
            request.page_offset,
            columns=request.columns,
            filter_text=request.filter_value,
            sort_column=request.sort_column,
            sort_direction=request.sort_direction,
        )
        logger.debug("page: %s", sql)
        return self._query(sql)

    def execute(self, request: FetchRequest) -> FetchResult:
        try:
            request = self.with_columns(request)
            total = request.known_total
            if request.include_count:
                total = self.count(request)
            columns, rows = self.fetch_page(request)
        except Exception as e:
            logger.warning(
                "fetch failed for %s (generation %d): %s",
                request.table,
                request.generation,
                e,
            )
            return FetchResult(generation=request.generation, error=describe_query_error(e))

        logger.info(
            "fetched %d rows of %d from %s at offset %d (generation %d)",
            len(rows),
            total,
            request.table,
            request.page_offset,
            request.generation,
        )
        return FetchResult(
            generation=request.generation,
            columns=columns,
            rows=rows,
            total_row_count=total,
        )
