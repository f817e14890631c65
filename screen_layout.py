import curses

STATUS_LINES = 1
PROMPT_LINES = 1


class ScreenLayout:
    """Window geometry: table area on top, then the status line, then the prompt line."""

    def __init__(self, stdscr):
        self.stdscr = stdscr
        self.H, self.W = stdscr.getmaxyx()
        self.table_h = max(1, self.H - STATUS_LINES - PROMPT_LINES)

        self.table_win = self._window(self.table_h, 0, leave_cursor=True)
        self.status_win = self._window(STATUS_LINES, self.table_h, leave_cursor=True)
        # filter entry draws its cursor here
        self.prompt_win = self._window(PROMPT_LINES, self.table_h + STATUS_LINES)

        self.overlay_h = max(3, min(10, self.H - 2))

    def _window(self, height, top, leave_cursor=False):
        win = curses.newwin(height, self.W, top, 0)
        if leave_cursor:
            win.leaveok(True)
        return win

    def panel_geometry(self, line_count, full_height=False):
        """(height, top) of a boxed panel over the table area holding line_count lines."""
        if full_height:
            return max(3, self.table_h), 0
        height = max(3, min(line_count + 2, self.table_h))
        return height, max(0, (self.table_h - height) // 2)

    def panel(self, line_count, full_height=False):
        height, top = self.panel_geometry(line_count, full_height)
        self.overlay_h = height
        return self._window(height, top, leave_cursor=True)
