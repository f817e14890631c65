import unittest

from grid_pane import GridPane
from viewport import SortDirection, ViewportState


class DummyWin:
    def __init__(self, h=24, w=120):
        self._h = h
        self._w = w
        self.calls = []
        self.refreshed = 0

    def getmaxyx(self):
        return self._h, self._w

    def erase(self):
        self.calls = []

    def refresh(self):
        self.refreshed += 1

    def addnstr(self, y, x, text, n, attr=0):
        self.calls.append((y, x, text[:n]))

    def line(self, y):
        return [text for (row, _, text) in self.calls if row == y]


def _state(**kw):
    fields = dict(
        table="people",
        all_columns=("id", "name"),
        all_rows=(("1", "Ann"), ("2", "Bob")),
        total_row_count=12,
        items_per_page=10,
    )
    fields.update(kw)
    return ViewportState(**fields)


class GridPaneNavigationTests(unittest.TestCase):
    def test_cursor_stays_on_page(self):
        grid = GridPane()
        grid.move_up()
        self.assertEqual(grid.cursor, 0)
        grid.move_down(3)
        grid.move_down(3)
        grid.move_down(3)
        self.assertEqual(grid.cursor, 2)
        grid.clamp(1)
        self.assertEqual(grid.cursor, 0)
        grid.move_bottom(5)
        self.assertEqual(grid.cursor, 4)
        grid.move_top()
        self.assertEqual(grid.cursor, 0)

    def test_empty_page_keeps_cursor_at_zero(self):
        grid = GridPane()
        grid.move_down(0)
        grid.move_bottom(0)
        self.assertEqual(grid.cursor, 0)


class GridPaneDrawTests(unittest.TestCase):
    def test_draws_headers_and_absolute_row_labels(self):
        grid = GridPane()
        win = DummyWin()
        state = _state(current_page=1, sort_column="name", sort_direction=SortDirection.ASCENDING)

        layout = grid.draw(win, state)

        self.assertEqual(layout.visible_count, 2)
        headers = "".join(win.line(0))
        self.assertIn("id", headers)
        self.assertIn("name ↑", headers)
        self.assertEqual(win.line(2)[0], " 11")
        self.assertEqual(win.line(3)[0], " 12")
        self.assertIn("Bob", win.line(3)[1])
        self.assertIn(GridPane.SEPARATOR, win.line(2)[1])
        self.assertEqual(win.refreshed, 1)

    def test_loading_without_columns(self):
        grid = GridPane()
        win = DummyWin()
        grid.draw(win, ViewportState(table="t", loading=True))
        self.assertEqual(win.line(0), ["Loading…"])

    def test_empty_page_says_no_rows(self):
        grid = GridPane()
        win = DummyWin()
        grid.draw(win, _state(all_rows=(), total_row_count=0))
        self.assertIn("No rows", win.line(2))

    def test_widths_are_cached_per_page(self):
        grid = GridPane()
        state = _state()
        first = grid.widths_for(state)
        self.assertIs(grid.widths_for(state), first)
        changed = grid.widths_for(_state(all_rows=(("1", "x" * 40),)))
        self.assertNotEqual(changed, first)

    def test_narrow_window_limits_visible_columns(self):
        grid = GridPane()
        win = DummyWin(10, 30)
        state = _state(all_columns=("a", "b", "c", "d"), all_rows=(("1", "2", "3", "4"),))
        layout = grid.draw(win, state)
        self.assertLess(layout.visible_count, 4)
        self.assertGreaterEqual(layout.visible_count, 1)


if __name__ == "__main__":
    unittest.main()
