import time
import unittest

import pytest

from dialects import SQLiteDialect
from edit_reconciler import (
    NO_ROWS_UPDATED,
    EditReconciler,
    KeyStrategy,
    NamingKeyStrategy,
    apply_edit_result,
    build_edit_request,
)
from errors import PrimaryKeyNotFound
from messages import EditRequest, EditResult
from viewport import EditSession, SelectedRow, ViewportState


@pytest.mark.parametrize(
    "columns, values, expected",
    [
        (["id", "name"], ["7", "Ann"], ("id", "7")),
        (["name", "ID"], ["Ann", "7"], ("ID", "7")),
        (["userid", "id"], ["3", "9"], ("id", "9")),
        (["name", "user_id"], ["Ann", "4"], ("user_id", "4")),
    ],
)
def test_naming_key_strategy(columns, values, expected):
    assert NamingKeyStrategy().find_key(columns, values) == expected


def test_naming_key_strategy_fails_without_id_columns():
    with pytest.raises(PrimaryKeyNotFound) as info:
        NamingKeyStrategy().find_key(["name", "email"], ["Ann", "a@x"])
    assert str(info.value) == "no primary key column found in 2 columns"


class EditReconcilerTests(unittest.TestCase):
    def setUp(self):
        self.dialect = SQLiteDialect()
        self.conn = self.dialect.connect(":memory:")
        self.conn.execute("CREATE TABLE people (id INTEGER PRIMARY KEY, name TEXT)")
        self.conn.executemany(
            "INSERT INTO people (id, name) VALUES (?, ?)", [(1, "Ann"), (2, "Bob")]
        )
        self.reconciler = EditReconciler(self.dialect, self.conn)

    def tearDown(self):
        self.conn.close()

    def _request(self, row_values, new_value="Anna", columns=("id", "name"), table="people"):
        return EditRequest(
            schema=None,
            table=table,
            columns=columns,
            row_values=row_values,
            field_name="name",
            field_index=1,
            new_value=new_value,
        )

    def _name_of(self, row_id):
        return self.conn.execute("SELECT name FROM people WHERE id = ?", (row_id,)).fetchone()[0]

    def test_single_row_update_succeeds(self):
        result = self.reconciler.save(self._request(("1", "Ann")))
        self.assertTrue(result.success)
        self.assertEqual(result.new_value, "Anna")
        self.assertEqual(result.affected_rows, 1)
        self.assertIsNone(result.warning)
        self.assertEqual(self._name_of(1), "Anna")

    def test_zero_rows_is_a_soft_failure(self):
        result = self.reconciler.save(self._request(("99", "Ghost")))
        self.assertFalse(result.success)
        self.assertTrue(result.soft_failure)
        self.assertEqual(result.error, NO_ROWS_UPDATED)

    def test_missing_key_fails_before_any_statement(self):
        self.conn.execute("CREATE TABLE notes (title TEXT, body TEXT)")
        self.conn.execute("INSERT INTO notes VALUES ('a', 'b')")
        result = self.reconciler.save(
            EditRequest(None, "notes", ("title", "body"), ("a", "b"), "body", 1, "c")
        )
        self.assertFalse(result.success)
        self.assertFalse(result.soft_failure)
        self.assertEqual(result.error, "no primary key column found in 2 columns")
        self.assertEqual(self.conn.execute("SELECT body FROM notes").fetchone()[0], "b")

    def test_non_unique_key_updates_and_warns(self):
        self.conn.execute("CREATE TABLE tags (id INTEGER, name TEXT)")
        self.conn.executemany("INSERT INTO tags VALUES (?, ?)", [(1, "a"), (1, "b")])
        result = self.reconciler.save(self._request(("1", "a"), new_value="z", table="tags"))
        self.assertTrue(result.success)
        self.assertEqual(result.affected_rows, 2)
        self.assertIn("not unique", result.warning)
        names = [r[0] for r in self.conn.execute("SELECT name FROM tags")]
        self.assertEqual(names, ["z", "z"])

    def test_query_errors_are_reported(self):
        result = self.reconciler.save(
            EditRequest(None, "people", ("id", "nope"), ("1", "x"), "nope", 1, "y")
        )
        self.assertFalse(result.success)
        self.assertTrue(result.error.startswith("failed to update field"))

    def test_custom_key_strategy(self):
        class NameKey(KeyStrategy):
            def find_key(self, columns, row_values):
                return "name", row_values[1]

        reconciler = EditReconciler(self.dialect, self.conn, NameKey())
        result = reconciler.save(
            EditRequest(None, "people", ("id", "name"), ("2", "Bob"), "id", 0, "20")
        )
        self.assertTrue(result.success)
        self.assertEqual(self._name_of(20), "Bob")

    def test_stalled_update_times_out(self):
        class StalledDialect(SQLiteDialect):
            def execute_update(self, connection, sql, params):
                time.sleep(1)
                return 1

        reconciler = EditReconciler(StalledDialect(), self.conn, timeout=0.05)
        started = time.time()
        result = reconciler.save(self._request(("1", "Ann")))

        self.assertLess(time.time() - started, 0.9)
        self.assertFalse(result.success)
        self.assertFalse(result.soft_failure)
        self.assertEqual(result.field_index, 1)
        self.assertEqual(result.error, "failed to update field: update timeout after 0.05s")
        self.assertEqual(self._name_of(1), "Ann")


def test_build_edit_request_uses_snapshot_values():
    state = ViewportState(table="people", all_columns=("id", "name"), all_rows=(("1", "Ann"),))
    row = SelectedRow.from_viewport(state, 0)
    session = EditSession.start(state.all_columns, row, 1).with_pending("Anna")
    request = build_edit_request(state, row, session)
    assert request.row_values == ("1", "Ann")
    assert request.field_name == "name"
    assert request.new_value == "Anna"


def test_apply_success_patches_row_and_ends_session():
    row = SelectedRow(values=("1", "Ann"), absolute_index=0)
    session = EditSession("name", 1, "Ann", "Anna")
    new_row, new_session = apply_edit_result(
        row, session, EditResult(success=True, new_value="Anna", field_index=1)
    )
    assert new_row.values == ("1", "Anna")
    assert new_session is None


def test_apply_zero_rows_keeps_snapshot_and_session():
    row = SelectedRow(values=("1", "Ann"), absolute_index=0)
    session = EditSession("name", 1, "Ann", "Anna")
    failure = EditResult(success=False, field_index=1, error=NO_ROWS_UPDATED, soft_failure=True)
    assert apply_edit_result(row, session, failure) == (row, session)
