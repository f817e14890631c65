"""Single-field edits against a table whose key has to be guessed.

The key value bound into the UPDATE is the one held in the row snapshot, not
a fresh read; if another client changed the key since the page was fetched
the update simply matches nothing and comes back as a soft failure.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple

from errors import PrimaryKeyNotFound, describe_query_error
from messages import EditRequest, EditResult
from viewport import EditSession, SelectedRow

logger = logging.getLogger(__name__)

NO_ROWS_UPDATED = "no rows were updated - record may not exist"
UPDATE_TIMEOUT_SECONDS = 10.0


class KeyStrategy(ABC):
    @abstractmethod
    def find_key(self, columns: Sequence[str], row_values: Sequence[str]) -> Tuple[str, str]:
        """Return (key_column, key_value) or raise PrimaryKeyNotFound."""


class NamingKeyStrategy(KeyStrategy):
    """`id` (any case) first, then the first column whose name ends in `id`."""

    def find_key(self, columns, row_values):
        for i, col in enumerate(columns):
            if col.lower() == "id" and i < len(row_values):
                return col, row_values[i]
        for i, col in enumerate(columns):
            if col.lower().endswith("id") and i < len(row_values):
                return col, row_values[i]
        raise PrimaryKeyNotFound(len(columns))


class EditReconciler:
    def __init__(
        self,
        dialect,
        connection,
        key_strategy: Optional[KeyStrategy] = None,
        timeout: float = UPDATE_TIMEOUT_SECONDS,
    ):
        self.dialect = dialect
        self.connection = connection
        self.key_strategy = key_strategy or NamingKeyStrategy()
        self.timeout = timeout

    def _run_update(self, sql, params, outcome):
        try:
            outcome.append(self.dialect.execute_update(self.connection, sql, params))
        except Exception as e:
            outcome.append(e)

    def _execute_bounded(self, sql, params) -> Optional[int]:
        """Affected row count, or None when the statement outlives the timeout."""
        outcome = []
        t = threading.Thread(
            target=self._run_update, args=(sql, params, outcome), name="mirador-update", daemon=True
        )
        t.start()
        t.join(self.timeout)
        if not outcome:
            return None
        if isinstance(outcome[0], Exception):
            raise outcome[0]
        return outcome[0]

    def save(self, request: EditRequest) -> EditResult:
        try:
            key_column, key_value = self.key_strategy.find_key(
                request.columns, request.row_values
            )
        except PrimaryKeyNotFound as e:
            return EditResult(success=False, field_index=request.field_index, error=str(e))

        sql = self.dialect.update_sql(
            request.schema, request.table, request.field_name, key_column
        )
        logger.debug("update: %s (key %s=%r)", sql, key_column, key_value)
        try:
            affected = self._execute_bounded(sql, (request.new_value, key_value))
        except Exception as e:
            logger.warning("update of %s.%s failed: %s", request.table, request.field_name, e)
            return EditResult(
                success=False,
                field_index=request.field_index,
                error=f"failed to update field: {describe_query_error(e)}",
            )

        if affected is None:
            logger.warning(
                "update of %s.%s timed out after %ss", request.table, request.field_name, self.timeout
            )
            return EditResult(
                success=False,
                field_index=request.field_index,
                error=f"failed to update field: update timeout after {self.timeout:g}s",
            )

        if affected == 0:
            return EditResult(
                success=False,
                field_index=request.field_index,
                error=NO_ROWS_UPDATED,
                soft_failure=True,
            )

        result = EditResult(
            success=True,
            new_value=request.new_value,
            field_index=request.field_index,
            affected_rows=affected,
        )
        if affected > 1:
            result.warning = (
                f"{affected} rows updated - {key_column} is not unique in {request.table}"
            )
            logger.warning(result.warning)
        else:
            logger.info("updated %s.%s where %s=%s", request.table, request.field_name, key_column, key_value)
        return result


def build_edit_request(state, row: SelectedRow, session: EditSession) -> EditRequest:
    return EditRequest(
        schema=state.schema,
        table=state.table,
        columns=tuple(state.all_columns),
        row_values=tuple(row.values),
        field_name=session.field_name,
        field_index=session.field_index,
        new_value=session.pending_value,
    )


def apply_edit_result(row: SelectedRow, session: Optional[EditSession], result: EditResult):
    """Patch the snapshot and end the session on success; leave both alone otherwise."""
    if not result.success:
        return row, session
    return row.with_value(result.field_index, result.new_value), None
