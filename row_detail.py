import curses
from typing import Callable, List, Optional

from cell_format import format_field_value, infer_field_type, sanitize_for_display
from column_layout import truncate_cell
from edit_reconciler import apply_edit_result
from messages import EditResult
from viewport import EditSession, SelectedRow


class RowDetailPane:
    """Field-by-field view of one row with single-field editing."""

    KEY_SAVE = 19  # Ctrl+S
    KEY_CLEAR = 11  # Ctrl+K
    KEY_ESC = 27

    def __init__(self, set_status_cb: Callable[[str, int], None]):
        self._set_status = set_status_cb
        self.columns: List[str] = []
        self.row: Optional[SelectedRow] = None
        self.selected = 0
        self.scroll = 0
        self.session: Optional[EditSession] = None
        self.cursor = 0
        self.saving = False

    @property
    def active(self) -> bool:
        return self.row is not None

    @property
    def editing(self) -> bool:
        return self.session is not None

    def open(self, columns, row: SelectedRow):
        self.columns = list(columns)
        self.row = row
        self.selected = 0
        self.scroll = 0
        self.session = None
        self.cursor = 0
        self.saving = False

    def close(self):
        self.row = None
        self.columns = []
        self.session = None
        self.saving = False

    def start_edit(self):
        if self.row is None or not self.columns:
            return
        self.session = EditSession.start(self.columns, self.row, self.selected)
        self.cursor = len(self.session.pending_value)

    def apply_result(self, result: EditResult):
        self.saving = False
        if self.row is None:
            return
        self.row, self.session = apply_edit_result(self.row, self.session, result)

    # ---------- keys ----------
    def handle_key(self, ch):
        """Returns "back", "save" or None."""
        if self.row is None:
            return None
        if self.session is not None:
            return self._handle_edit_key(ch)

        if ch == self.KEY_ESC or ch == ord("q"):
            return "back"
        if ch in (ord("j"), curses.KEY_DOWN):
            self.selected = min(len(self.columns) - 1, self.selected + 1)
        elif ch in (ord("k"), curses.KEY_UP):
            self.selected = max(0, self.selected - 1)
        elif ch in (ord("g"), curses.KEY_HOME):
            self.selected = 0
        elif ch in (ord("G"), curses.KEY_END):
            self.selected = max(0, len(self.columns) - 1)
        elif ch in (ord("e"), 10, 13, curses.KEY_ENTER):
            self.start_edit()
        return None

    def _handle_edit_key(self, ch):
        if self.saving:
            return None
        text = self.session.pending_value

        if ch == self.KEY_SAVE:
            if not self.session.changed:
                self._set_status("No changes", 3)
                self.session = None
                return None
            self.saving = True
            return "save"

        if ch == self.KEY_ESC:
            self.session = None
            self._set_status("Edit canceled", 3)
            return None

        if ch == self.KEY_CLEAR:
            self.session = self.session.with_pending("")
            self.cursor = 0
            return None

        if ch in (curses.KEY_BACKSPACE, 127, 8):
            if self.cursor > 0:
                text = text[: self.cursor - 1] + text[self.cursor :]
                self.cursor -= 1
        elif ch == curses.KEY_DC:
            text = text[: self.cursor] + text[self.cursor + 1 :]
        elif ch == curses.KEY_LEFT:
            self.cursor = max(0, self.cursor - 1)
        elif ch == curses.KEY_RIGHT:
            self.cursor = min(len(text), self.cursor + 1)
        elif ch == curses.KEY_HOME:
            self.cursor = 0
        elif ch == curses.KEY_END:
            self.cursor = len(text)
        elif ch in (10, 13, curses.KEY_ENTER):
            text = text[: self.cursor] + "\n" + text[self.cursor :]
            self.cursor += 1
        elif isinstance(ch, int) and 32 <= ch <= 126:
            text = text[: self.cursor] + chr(ch) + text[self.cursor :]
            self.cursor += 1
        self.session = self.session.with_pending(text)
        return None

    # ---------- rendering ----------
    def field_line(self, index: int, width: int) -> str:
        name = self.columns[index]
        value = self.row.values[index] if index < len(self.row.values) else ""
        badge = f"[{infer_field_type(value)}]"
        name_part = f"{name}: "
        budget = max(0, width - len(name_part) - 1 - len(badge))
        return f"{name_part}{truncate_cell(sanitize_for_display(value), budget)} {badge}"

    def draw(self, win, title=""):
        win.erase()
        h, w = win.getmaxyx()
        if self.row is None:
            win.refresh()
            return

        header = f" Row {self.row.absolute_index + 1}"
        if title:
            header += f" of {title}"
        self._put(win, 0, 0, header, w - 1, curses.A_BOLD)

        list_h = max(1, (h - 2) // 2)
        if self.selected < self.scroll:
            self.scroll = self.selected
        elif self.selected >= self.scroll + list_h:
            self.scroll = self.selected - list_h + 1

        for i in range(self.scroll, min(len(self.columns), self.scroll + list_h)):
            y = 1 + i - self.scroll
            marker = "> " if i == self.selected else "  "
            attr = curses.A_REVERSE if i == self.selected else 0
            self._put(win, y, 0, marker + self.field_line(i, w - 3), w - 1, attr)

        y = 2 + list_h
        if y >= h:
            win.refresh()
            return
        self._put(win, y - 1, 0, "─" * w, w - 1, curses.A_DIM)

        if self.session is not None:
            label = f" Editing {self.session.field_name} (Ctrl+S save, Esc cancel, Ctrl+K clear)"
            self._put(win, y, 0, label, w - 1, curses.A_BOLD)
            body = self.session.pending_value
        elif self.columns:
            self._put(win, y, 0, f" {self.columns[self.selected]}", w - 1, curses.A_BOLD)
            body = format_field_value(self.row.values[self.selected])
        else:
            body = ""

        for j, line in enumerate(body.split("\n")[: max(0, h - y - 1)]):
            self._put(win, y + 1 + j, 1, line, w - 2)
        win.refresh()

    @staticmethod
    def _put(win, y, x, text, n, attr=0):
        if n <= 0:
            return
        try:
            win.addnstr(y, x, text, n, attr)
        except curses.error:
            pass
