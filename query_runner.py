"""Free-form SQL typed at the query prompt, and the history of what was run.

A statement that produces a result set is read up to `max_rows` rows; any
other statement reports how many rows it touched. Both run on the session's
shared autocommit connection.
"""

import logging
import time
from dataclasses import dataclass
from typing import List, Optional

from errors import describe_query_error
from fetch_executor import cell_to_text
from messages import QueryRequest, QueryResult

logger = logging.getLogger(__name__)

MAX_QUERY_ROWS = 1000
HISTORY_LIMIT = 100


def summarize(result: QueryResult, max_rows: int) -> str:
    if result.affected_rows is not None:
        return f"Query executed successfully. {result.affected_rows} rows affected."
    if not result.rows:
        return "Query executed successfully. No rows returned."
    if result.truncated:
        return (
            f"Query executed successfully. Showing first {max_rows} rows "
            "out of more results."
        )
    return f"Query executed successfully. Returned {len(result.rows)} rows."


class QueryRunner:
    def __init__(self, dialect, connection):
        self.dialect = dialect
        self.connection = connection

    def execute(self, request: QueryRequest) -> QueryResult:
        sql = request.sql.strip()
        if not sql:
            return QueryResult(sql=request.sql, error="empty query")
        limit = max(1, request.max_rows)

        logger.debug("query: %s", sql)
        cursor = self.dialect.query_cursor(self.connection)
        try:
            cursor.execute(sql)
            if cursor.description is None:
                result = QueryResult(sql=sql, affected_rows=max(0, cursor.rowcount))
            else:
                columns = [str(d[0]) for d in cursor.description]
                # one extra row tells us whether the result was cut off
                fetched = cursor.fetchmany(limit + 1)
                result = QueryResult(
                    sql=sql,
                    columns=columns,
                    rows=[[cell_to_text(v) for v in row] for row in fetched[:limit]],
                    truncated=len(fetched) > limit,
                )
        except Exception as e:
            logger.warning("query failed: %s", e)
            return QueryResult(sql=sql, error=describe_query_error(e))
        finally:
            cursor.close()

        result.message = summarize(result, limit)
        logger.info("query ran: %s", result.message)
        return result


@dataclass(frozen=True)
class QueryHistoryEntry:
    query: str
    timestamp: float
    success: bool
    row_count: int = 0

    def label(self) -> str:
        when = time.strftime("%H:%M:%S", time.localtime(self.timestamp))
        outcome = f"{self.row_count} rows" if self.success else "failed"
        first_line = " ".join(self.query.split())
        return f"{when}  {outcome:>10}  {first_line}"


class QueryHistory:
    """Queries run this session, newest first."""

    def __init__(self, limit=HISTORY_LIMIT):
        self.limit = limit
        self.entries: List[QueryHistoryEntry] = []

    def __len__(self):
        return len(self.entries)

    def record(self, result: QueryResult, now: Optional[float] = None) -> QueryHistoryEntry:
        if result.affected_rows is not None:
            count = result.affected_rows
        else:
            count = len(result.rows)
        entry = QueryHistoryEntry(
            query=result.sql.strip(),
            timestamp=time.time() if now is None else now,
            success=result.ok,
            row_count=count if result.ok else 0,
        )
        self.entries.insert(0, entry)
        del self.entries[self.limit :]
        return entry

    def get(self, index) -> Optional[QueryHistoryEntry]:
        if 0 <= index < len(self.entries):
            return self.entries[index]
        return None
