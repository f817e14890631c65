import curses
import unittest

from sort_filter import SortFilterController
from viewport import SortDirection, ViewportState
from viewport_reducer import ApplyFilter, ApplySort


def _state(**kw):
    fields = dict(table="people", all_columns=("id", "name", "email"))
    fields.update(kw)
    return ViewportState(**fields)


class FilterPromptTests(unittest.TestCase):
    def setUp(self):
        self.messages = []
        self.ctl = SortFilterController(lambda m, _: self.messages.append(m))

    def _type(self, text, state):
        for ch in text:
            self.assertIsNone(self.ctl.handle_key(ord(ch), state))

    def test_enter_applies_trimmed_filter(self):
        state = _state()
        self.ctl.start_filter(state)
        self.assertTrue(self.ctl.active)
        self._type("  ann ", state)

        event = self.ctl.handle_key(10, state)

        self.assertEqual(event, ApplyFilter("ann"))
        self.assertFalse(self.ctl.active)
        self.assertEqual(self.messages[-1], "Filter: ann")

    def test_empty_filter_clears(self):
        state = _state(filter_value="bob")
        self.ctl.start_filter(state)
        self.assertEqual(self.ctl.buffer, "bob")
        self.ctl.handle_key(21, state)  # Ctrl+U

        event = self.ctl.handle_key(13, state)

        self.assertEqual(event, ApplyFilter(None))
        self.assertEqual(self.messages[-1], "Filter cleared")

    def test_escape_cancels_without_event(self):
        state = _state()
        self.ctl.start_filter(state)
        self._type("x", state)
        self.assertIsNone(self.ctl.handle_key(27, state))
        self.assertFalse(self.ctl.active)
        self.assertEqual(self.messages, [])

    def test_cursor_editing(self):
        state = _state()
        self.ctl.start_filter(state)
        self._type("ac", state)
        self.ctl.handle_key(curses.KEY_LEFT, state)
        self._type("b", state)
        self.assertEqual(self.ctl.buffer, "abc")

        self.ctl.handle_key(1, state)  # Ctrl+A
        self.ctl.handle_key(curses.KEY_BACKSPACE, state)
        self.assertEqual(self.ctl.buffer, "abc")

        self.ctl.handle_key(5, state)  # Ctrl+E
        self.ctl.handle_key(127, state)
        self.assertEqual(self.ctl.buffer, "ab")


class SortMenuTests(unittest.TestCase):
    def setUp(self):
        self.messages = []
        self.ctl = SortFilterController(lambda m, _: self.messages.append(m))

    def test_no_columns_refuses_to_open(self):
        self.assertFalse(self.ctl.start_sort(ViewportState(table="t")))
        self.assertFalse(self.ctl.active)
        self.assertEqual(self.messages, ["No columns to sort"])

    def test_enter_on_new_column_sorts_ascending(self):
        state = _state()
        self.assertTrue(self.ctl.start_sort(state))
        self.ctl.handle_key(ord("j"), state)

        event = self.ctl.handle_key(10, state)

        self.assertEqual(event, ApplySort("name", SortDirection.ASCENDING))
        self.assertEqual(self.messages[-1], "Sorted by name ASC")
        self.assertFalse(self.ctl.active)

    def test_direction_cycles_on_the_sorted_column(self):
        state = _state(sort_column="name", sort_direction=SortDirection.ASCENDING)
        self.ctl.start_sort(state)
        self.assertEqual(self.ctl.candidate, 1)
        self.assertEqual(self.ctl.handle_key(10, state), ApplySort("name", SortDirection.DESCENDING))

        state = _state(sort_column="name", sort_direction=SortDirection.DESCENDING)
        self.ctl.start_sort(state)
        self.assertEqual(self.ctl.handle_key(10, state), ApplySort(None, SortDirection.OFF))
        self.assertEqual(self.messages[-1], "Sort cleared")

    def test_candidate_is_clamped(self):
        state = _state()
        self.ctl.start_sort(state)
        self.ctl.handle_key(ord("k"), state)
        self.assertEqual(self.ctl.candidate, 0)
        for _ in range(10):
            self.ctl.handle_key(ord("j"), state)
        self.assertEqual(self.ctl.candidate, 2)

    def test_menu_lines_mark_candidate_and_sort(self):
        state = _state(sort_column="email", sort_direction=SortDirection.DESCENDING)
        self.ctl.start_sort(state)
        lines = self.ctl.sort_menu_lines(state)
        self.assertEqual(lines[2:], ["   id", "   name", " > email ↓"])


if __name__ == "__main__":
    unittest.main()
