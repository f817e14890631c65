import curses
from typing import List, Optional

HELP = "help"
MENU = "menu"

# key -> (direction, step) where step None means a half page
_SCROLL_KEYS = {
    ord("j"): (1, 1),
    curses.KEY_DOWN: (1, 1),
    ord("k"): (-1, 1),
    curses.KEY_UP: (-1, 1),
    curses.KEY_NPAGE: (1, None),
    curses.KEY_PPAGE: (-1, None),
}
_CLOSE_KEYS = (27, ord("q"), 10, 13, curses.KEY_ENTER, ord("?"))


class OverlayView:
    """Boxed modal panel over the table area.

    Two uses: the full-height help screen, and menus (sort, query history)
    sized to their entries, whose keys are handled by their owners.
    """

    def __init__(self, layout):
        self.layout = layout
        self.visible = False
        self.lines: List[str] = []
        self.scroll = 0
        self.win = None
        self.mode: Optional[str] = None

    def open_help(self, lines: List[str]):
        self._open(lines, HELP)

    def open_menu(self, lines: List[str]):
        self._open(lines, MENU)

    def set_lines(self, lines: List[str]):
        self.lines = list(lines or [])

    def _open(self, lines, mode):
        self.mode = mode
        self.set_lines(lines)
        self.scroll = 0
        self.win = self.layout.panel(len(self.lines), full_height=mode == HELP)
        self.visible = True

    def close(self):
        self.visible = False
        self.mode = None
        self.win = None
        self.lines = []
        self.scroll = 0

    @property
    def rows(self) -> int:
        if self.win is None:
            return 0
        h, _ = self.win.getmaxyx()
        return max(0, h - 2)

    @property
    def max_scroll(self) -> int:
        return max(0, len(self.lines) - self.rows)

    def scroll_to(self, line_index: int):
        """Scroll just enough to bring line_index into view."""
        rows = self.rows
        if rows <= 0:
            return
        if line_index < self.scroll:
            self.scroll = line_index
        elif line_index >= self.scroll + rows:
            self.scroll = line_index - rows + 1

    def handle_key(self, ch):
        if not self.visible or ch == -1:
            return
        if ch in _CLOSE_KEYS:
            self.close()
            return
        if ch == curses.KEY_HOME:
            self.scroll = 0
        elif ch == curses.KEY_END:
            self.scroll = self.max_scroll
        elif ch in _SCROLL_KEYS:
            direction, step = _SCROLL_KEYS[ch]
            if step is None:
                step = max(1, self.rows // 2)
            self.scroll = max(0, min(self.max_scroll, self.scroll + direction * step))

    def draw(self):
        if not self.visible or self.win is None:
            return
        win = self.win
        win.erase()
        _, w = win.getmaxyx()
        try:
            win.box()
        except curses.error:
            pass
        for y, line in enumerate(self.lines[self.scroll : self.scroll + self.rows], start=1):
            try:
                win.addnstr(y, 1, line, max(0, w - 2))
            except curses.error:
                pass
        win.refresh()


HELP_LINES = [
    " mirador - keys",
    "",
    " Grid",
    "   j/k, Up/Down     move the row cursor",
    "   Left/Right       previous / next page",
    "   h/l              scroll columns left / right",
    "   Enter            open the row detail view",
    "   /                filter (Enter apply, empty Enter clears, Esc cancel)",
    "   s                sort menu (j/k move, Enter cycles off/asc/desc, Esc)",
    "   r                reload: re-count and re-fetch the current page",
    "   :                run SQL (Enter run, Up/Down recall, Esc cancel)",
    "   H                query history (j/k move, Enter load into the prompt)",
    "   ?                this help",
    "   q, Ctrl+C        quit",
    "",
    " Row detail",
    "   j/k              select field",
    "   e, Enter         edit the selected field",
    "   Esc              back to the grid",
    "",
    " Editing",
    "   Ctrl+S           save",
    "   Ctrl+K           clear the value",
    "   Esc              cancel",
    "",
    " Query result",
    "   j/k, h/l         move rows, scroll columns",
    "   :                edit the query again",
    "   Esc, q           back to the table",
    "",
    " Esc or q closes this panel.",
]
