import curses
from typing import Callable, List, Optional

from viewport import SortDirection, ViewportState
from viewport_reducer import ApplyFilter, ApplySort


class SortFilterController:
    MODE_NORMAL = "normal"
    MODE_FILTERING = "filtering"
    MODE_SORTING = "sorting"

    def __init__(self, set_status_cb: Callable[[str, int], None]):
        self._set_status = set_status_cb

        self.mode = self.MODE_NORMAL
        self.buffer = ""
        self.cursor = 0
        self.hscroll = 0
        self.candidate = 0
        self.columns: List[str] = []

    @property
    def active(self) -> bool:
        return self.mode != self.MODE_NORMAL

    # ---------- public API ----------
    def start_filter(self, state: ViewportState):
        self.mode = self.MODE_FILTERING
        self.buffer = state.filter_value or ""
        self.cursor = len(self.buffer)
        self.hscroll = 0

    def start_sort(self, state: ViewportState) -> bool:
        if not state.all_columns:
            self._set_status("No columns to sort", 3)
            return False
        self.mode = self.MODE_SORTING
        self.columns = list(state.all_columns)
        self.candidate = 0
        if state.sort_column in self.columns:
            self.candidate = self.columns.index(state.sort_column)
        return True

    def handle_key(self, ch, state: ViewportState):
        """Feed one key; returns an ApplyFilter/ApplySort event when one is confirmed."""
        if self.mode == self.MODE_FILTERING:
            return self._handle_filter_key(ch)
        if self.mode == self.MODE_SORTING:
            return self._handle_sort_key(ch, state)
        return None

    def sort_menu_lines(self, state: ViewportState) -> List[str]:
        lines = [" Sort by (j/k move, Enter cycle, Esc cancel)", ""]
        for i, col in enumerate(self.columns):
            marker = ">" if i == self.candidate else " "
            glyph = ""
            if col == state.sort_column and state.sort_direction is not SortDirection.OFF:
                glyph = f" {state.sort_direction.glyph}"
            lines.append(f" {marker} {col}{glyph}")
        return lines

    def draw(self, win):
        if self.mode != self.MODE_FILTERING:
            return

        prompt = "Filter: "
        h, w = win.getmaxyx()
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

    # ---------- internals ----------
    def _handle_filter_key(self, ch) -> Optional[ApplyFilter]:
        if ch in (10, 13, curses.KEY_ENTER):
            text = self.buffer.strip()
            self._reset()
            if text:
                self._set_status(f"Filter: {text}", 3)
            else:
                self._set_status("Filter cleared", 3)
            return ApplyFilter(text or None)

        if ch == 27:  # Esc
            self._reset()
            return None

        if ch in (curses.KEY_BACKSPACE, 127, 8):
            if self.cursor > 0:
                self.buffer = self.buffer[: self.cursor - 1] + self.buffer[self.cursor :]
                self.cursor -= 1
            return None

        if ch == curses.KEY_LEFT:
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

    def _handle_sort_key(self, ch, state: ViewportState) -> Optional[ApplySort]:
        if not self.columns:
            self._reset()
            return None

        if ch in (curses.KEY_UP, ord("k")):
            self.candidate = max(0, self.candidate - 1)
            return None

        if ch in (curses.KEY_DOWN, ord("j")):
            self.candidate = min(len(self.columns) - 1, self.candidate + 1)
            return None

        if ch == 27:
            self._reset()
            return None

        if ch in (10, 13, curses.KEY_ENTER):
            column = self.columns[self.candidate]
            current = state.sort_direction if column == state.sort_column else SortDirection.OFF
            direction = current.next()
            self._reset()
            if direction is SortDirection.OFF:
                self._set_status("Sort cleared", 3)
                return ApplySort(None, SortDirection.OFF)
            self._set_status(f"Sorted by {column} {direction.sql_keyword}", 3)
            return ApplySort(column, direction)

        return None

    def _reset(self):
        self.mode = self.MODE_NORMAL
        self.buffer = ""
        self.cursor = 0
        self.hscroll = 0
        self.candidate = 0
        self.columns = []
