import curses

from column_layout import COLUMN_GAP, compute_column_widths, layout_viewport, truncate_cell
from viewport import ViewportState


class GridPane:
    PAIR_CELL_TEXT = 1
    PAIR_HEADER = 2
    PAIR_CURSOR = 3
    SEPARATOR = " │ "

    def __init__(self):
        try:
            curses.start_color()
            curses.use_default_colors()
            curses.init_pair(self.PAIR_CELL_TEXT, curses.COLOR_WHITE, -1)
            curses.init_pair(self.PAIR_HEADER, curses.COLOR_CYAN, -1)
            curses.init_pair(self.PAIR_CURSOR, curses.COLOR_BLACK, curses.COLOR_WHITE)
        except curses.error:
            pass

        self.cursor = 0  # row within the loaded page
        self.last_layout = None

        # widths only change when the loaded rows do
        self._widths_key = None
        self._widths = []

    # ---------- navigation ----------
    def move_up(self):
        self.cursor = max(0, self.cursor - 1)

    def move_down(self, rows_on_page):
        self.cursor = max(0, min(rows_on_page - 1, self.cursor + 1))

    def move_top(self):
        self.cursor = 0

    def move_bottom(self, rows_on_page):
        self.cursor = max(0, rows_on_page - 1)

    def clamp(self, rows_on_page):
        self.cursor = max(0, min(self.cursor, rows_on_page - 1))

    # ---------- geometry ----------
    @staticmethod
    def row_label_width(state: ViewportState) -> int:
        last = state.offset + max(1, len(state.all_rows))
        return max(3, len(str(last)))

    def available_width(self, win, state: ViewportState) -> int:
        _, w = win.getmaxyx()
        return w - (self.row_label_width(state) + 1)

    def widths_for(self, state: ViewportState):
        key = (state.all_columns, state.all_rows)
        if key != self._widths_key:
            self._widths = compute_column_widths(state.all_columns, state.all_rows)
            self._widths_key = key
        return self._widths

    @staticmethod
    def _attr(pair, extra=0):
        try:
            return curses.color_pair(pair) | extra
        except curses.error:
            return extra

    @staticmethod
    def _put(win, y, x, text, n, attr=0):
        if n <= 0:
            return
        try:
            win.addnstr(y, x, text, n, attr)
        except curses.error:
            pass

    # ---------- rendering ----------
    def draw(self, win, state: ViewportState):
        """Render the visible slice of `state`; returns the GridLayout used."""
        win.erase()
        h, w = win.getmaxyx()
        label_w = self.row_label_width(state)
        x0 = label_w + 1

        layout = layout_viewport(
            state, self.available_width(win, state), self.widths_for(state)
        )
        self.last_layout = layout

        if not state.all_columns:
            text = "Loading…" if state.loading else "No columns"
            self._put(win, 0, x0, text, w - x0)
            win.refresh()
            return layout

        # header
        x = x0
        header_attr = self._attr(self.PAIR_HEADER, curses.A_BOLD)
        for title, cw in layout.headers:
            if x >= w:
                break
            self._put(win, 0, x, truncate_cell(title, cw).ljust(cw), min(cw, w - x), header_attr)
            x += cw + COLUMN_GAP
        self._put(win, 1, 0, "─" * w, w - 1, curses.A_DIM)

        if not layout.rows:
            self._put(win, 2, x0, "No rows" if not state.loading else "Loading…", w - x0)
            win.refresh()
            return layout

        self.clamp(len(layout.rows))
        body_h = max(0, h - 2)
        # keep the cursor row on screen when the page is taller than the pane
        top = max(0, self.cursor - body_h + 1)
        for i, row in enumerate(layout.rows[top : top + body_h]):
            idx = top + i
            y = 2 + i
            selected = idx == self.cursor
            attr = self._attr(self.PAIR_CURSOR if selected else self.PAIR_CELL_TEXT)
            if selected:
                attr |= curses.A_REVERSE
            label = str(state.offset + idx + 1).rjust(label_w)
            self._put(win, y, 0, label, label_w, curses.A_DIM)
            line = self.SEPARATOR.join(
                cell.ljust(cw) for cell, (_, cw) in zip(row, layout.headers)
            )
            self._put(win, y, x0, line, w - x0 - 1, attr)

        win.refresh()
        return layout
