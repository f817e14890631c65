import curses
from dataclasses import replace
from typing import Callable, List, Optional

from grid_pane import GridPane
from messages import QueryRequest, QueryResult
from query_runner import MAX_QUERY_ROWS, QueryHistory
from viewport import ViewportState
from viewport_reducer import ScrollLeft, ScrollRight, VisibleColumnsMeasured, reduce

_ENTER = (10, 13, curses.KEY_ENTER)


def result_view(result: QueryResult) -> ViewportState:
    """A one-page viewport holding a query's rows, so GridPane can draw them."""
    state = ViewportState(table="query").with_page(result.columns, result.rows, len(result.rows))
    return replace(state, items_per_page=max(1, len(state.all_rows)))


class QueryPane:
    """SQL prompt, the result grid of the last query, and the history picker."""

    MODE_CLOSED = "closed"
    MODE_INPUT = "input"
    MODE_RESULT = "result"
    MODE_HISTORY = "history"

    def __init__(
        self,
        set_status_cb: Callable[[str, int], None],
        history: Optional[QueryHistory] = None,
        max_rows: int = MAX_QUERY_ROWS,
    ):
        self._set_status = set_status_cb
        self.history = history if history is not None else QueryHistory()
        self.max_rows = max_rows

        self.mode = self.MODE_CLOSED
        self.buffer = ""
        self.cursor = 0
        self.hscroll = 0
        # -1 while editing a fresh query, else the history entry shown by Up/Down
        self.recall = -1
        self._draft = ""
        self.candidate = 0

        self.running = False
        self.result: Optional[QueryResult] = None
        self.view = ViewportState()
        self.grid = GridPane()

    @property
    def active(self) -> bool:
        return self.mode != self.MODE_CLOSED

    # ---------- public API ----------
    def open_prompt(self, text=""):
        self.mode = self.MODE_INPUT
        self.buffer = text
        self.cursor = len(text)
        self.hscroll = 0
        self.recall = -1
        self._draft = text

    def open_history(self) -> bool:
        if not len(self.history):
            self._set_status("No queries run yet", 3)
            return False
        self.mode = self.MODE_HISTORY
        self.candidate = 0
        return True

    def close(self):
        self.mode = self.MODE_CLOSED

    def apply_result(self, result: QueryResult):
        self.running = False
        self.history.record(result)
        self.result = result
        self.view = result_view(result)
        self.grid.move_top()

    def handle_key(self, ch) -> Optional[QueryRequest]:
        """Feed one key; returns a QueryRequest when a query is submitted."""
        if self.mode == self.MODE_INPUT:
            return self._handle_input_key(ch)
        if self.mode == self.MODE_RESULT:
            self._handle_result_key(ch)
        elif self.mode == self.MODE_HISTORY:
            self._handle_history_key(ch)
        return None

    def history_lines(self) -> List[str]:
        lines = [" Query history (j/k move, Enter load, Esc close)", ""]
        for i, entry in enumerate(self.history.entries):
            marker = ">" if i == self.candidate else " "
            lines.append(f" {marker} {entry.label()}")
        return lines

    # ---------- drawing ----------
    def draw_prompt(self, win):
        prompt = "SQL: "
        _, w = win.getmaxyx()
        text_w = max(1, w - len(prompt) - 1)

        if self.cursor < self.hscroll:
            self.hscroll = self.cursor
        elif self.cursor > self.hscroll + text_w:
            self.hscroll = self.cursor - text_w

        visible = self.buffer[self.hscroll : self.hscroll + text_w]
        try:
            win.erase()
            win.addnstr(0, 0, prompt, len(prompt))
            win.addnstr(0, len(prompt), visible, text_w)
            win.move(0, len(prompt) + (self.cursor - self.hscroll))
        except curses.error:
            pass
        win.refresh()

    def draw_result(self, win):
        result = self.result
        if result is not None and result.ok and result.has_rows:
            layout = self.grid.draw(win, self.view)
            if layout.visible_count != self.view.visible_column_count:
                self.view, _ = reduce(self.view, VisibleColumnsMeasured(layout.visible_count))
            return

        if result is None:
            lines = ["Running query…"]
        elif not result.ok:
            lines = ["Query failed:", "", result.error]
        else:
            lines = [result.message]
        lines += ["", result.sql if result is not None else ""]

        win.erase()
        _, w = win.getmaxyx()
        for y, line in enumerate(lines):
            try:
                win.addnstr(y, 1, line, max(0, w - 2))
            except curses.error:
                pass
        win.refresh()

    # ---------- internals ----------
    def _handle_input_key(self, ch) -> Optional[QueryRequest]:
        if ch in _ENTER:
            sql = self.buffer.strip()
            if not sql:
                self._set_status("empty query", 3)
                return None
            if self.running:
                self._set_status("A query is already running", 3)
                return None
            self.running = True
            self.result = None
            self.mode = self.MODE_RESULT
            return QueryRequest(sql, self.max_rows)

        if ch == 27:  # Esc
            self.close()
            return None

        if ch == curses.KEY_UP:
            self._recall(self.recall + 1)
        elif ch == curses.KEY_DOWN:
            self._recall(self.recall - 1)
        elif ch in (curses.KEY_BACKSPACE, 127, 8):
            if self.cursor > 0:
                self.buffer = self.buffer[: self.cursor - 1] + self.buffer[self.cursor :]
                self.cursor -= 1
        elif ch == curses.KEY_LEFT:
            self.cursor = max(0, self.cursor - 1)
        elif ch == curses.KEY_RIGHT:
            self.cursor = min(len(self.buffer), self.cursor + 1)
        elif ch in (curses.KEY_HOME, 1):  # Ctrl+A
            self.cursor = 0
        elif ch in (curses.KEY_END, 5):  # Ctrl+E
            self.cursor = len(self.buffer)
        elif ch == 21:  # Ctrl+U
            self.buffer = self.buffer[self.cursor :]
            self.cursor = 0
        elif isinstance(ch, int) and 32 <= ch <= 126:
            self.buffer = self.buffer[: self.cursor] + chr(ch) + self.buffer[self.cursor :]
            self.cursor += 1
        return None

    def _recall(self, index):
        if index >= len(self.history) or index < -1:
            return
        if self.recall == -1:
            self._draft = self.buffer
        self.recall = index
        entry = self.history.get(index)
        self.buffer = entry.query if entry is not None else self._draft
        self.cursor = len(self.buffer)

    def _handle_result_key(self, ch):
        rows = len(self.view.all_rows)
        if ch in (27, ord("q")):
            self.close()
        elif ch in (ord("j"), curses.KEY_DOWN):
            self.grid.move_down(rows)
        elif ch in (ord("k"), curses.KEY_UP):
            self.grid.move_up()
        elif ch == ord("g"):
            self.grid.move_top()
        elif ch == ord("G"):
            self.grid.move_bottom(rows)
        elif ch == ord("h"):
            self.view, _ = reduce(self.view, ScrollLeft())
        elif ch == ord("l"):
            self.view, _ = reduce(self.view, ScrollRight())
        elif ch == ord(":"):
            self.open_prompt(self.result.sql if self.result is not None else "")
        elif ch == ord("H"):
            self.open_history()

    def _handle_history_key(self, ch):
        if ch in (curses.KEY_UP, ord("k")):
            self.candidate = max(0, self.candidate - 1)
        elif ch in (curses.KEY_DOWN, ord("j")):
            self.candidate = min(len(self.history) - 1, self.candidate + 1)
        elif ch in (27, ord("q")):
            self.close()
        elif ch in _ENTER:
            entry = self.history.get(self.candidate)
            self.open_prompt(entry.query if entry is not None else "")
