import curses
import logging
import threading
import time

import config_paths
from dispatcher import Dispatcher
from edit_reconciler import EditReconciler, build_edit_request
from fetch_executor import FetchExecutor
from grid_pane import GridPane
from messages import EditRequest, EditResult, FetchRequest, FetchResult, QueryRequest, QueryResult
from overlay import HELP_LINES, OverlayView
from query_pane import QueryPane
from query_runner import QueryRunner
from row_detail import RowDetailPane
from screen_layout import ScreenLayout
from sort_filter import SortFilterController
from status_bar import render_status
from viewport import SelectedRow, ViewportState
from viewport_reducer import (
    FetchCompleted,
    NextPage,
    OpenTable,
    PrevPage,
    Reload,
    ScrollLeft,
    ScrollRight,
    VisibleColumnsMeasured,
    reduce,
)

logger = logging.getLogger(__name__)


class ViewportSession:
    """Owns the ViewportState for one table and the workers feeding it.

    Everything here runs on the render thread except the dispatcher's
    workers, whose results only come back through pump().
    """

    def __init__(
        self,
        dialect,
        connection,
        table,
        schema=None,
        config=None,
        set_status_cb=None,
        key_strategy=None,
    ):
        self.config = config or config_paths.load_config()
        self.table = table
        self.schema = schema if schema is not None else dialect.default_schema
        self.set_status = set_status_cb or (lambda msg, seconds=3: None)

        self.fetcher = FetchExecutor(dialect, connection)
        self.reconciler = EditReconciler(dialect, connection, key_strategy)
        self.queries = QueryRunner(dialect, connection)
        self.dispatcher = Dispatcher(
            {
                FetchRequest: self.fetcher.execute,
                EditRequest: self.reconciler.save,
                QueryRequest: self.queries.execute,
            },
            # one connection serves every worker
            lock=threading.Lock(),
        )
        self.state = ViewportState()
        self.discard_stale = bool(
            self.config.get("DISCARD_STALE_RESULTS", config_paths.DISCARD_STALE_RESULTS_DEFAULT)
        )
        self.edit_listeners = []
        self.last_edit_result = None
        self.query_listeners = []
        self.last_query_result = None

    def open(self):
        ipp = self.config.get("ITEMS_PER_PAGE", config_paths.ITEMS_PER_PAGE_DEFAULT)
        return self.dispatch(OpenTable(self.table, self.schema, ipp))

    def dispatch(self, event):
        self.state, effects = reduce(self.state, event, self.discard_stale)
        return self.dispatcher.submit_all(effects)

    def save_edit(self, row: SelectedRow, session):
        request = build_edit_request(self.state, row, session)
        return self.dispatcher.submit(request)

    def run_query(self, request: QueryRequest):
        return self.dispatcher.submit(request)

    def selected_row(self, cursor):
        return SelectedRow.from_viewport(self.state, cursor)

    def pump(self):
        """Apply every queued worker message; returns how many were applied."""
        messages = self.dispatcher.drain()
        for msg in messages:
            if isinstance(msg, FetchResult):
                self.dispatch(FetchCompleted(msg))
                if msg.error and msg.generation == self.state.generation:
                    self.set_status(msg.error, self._status_seconds())
            elif isinstance(msg, EditResult):
                self._apply_edit_result(msg)
            elif isinstance(msg, QueryResult):
                self._apply_query_result(msg)
        return len(messages)

    def _apply_edit_result(self, result: EditResult):
        self.last_edit_result = result
        for listener in self.edit_listeners:
            listener(result)
        if result.success:
            self.set_status(result.warning or "Saved", self._status_seconds())
            # show the committed value in the grid
            self.dispatch(Reload(recount=False))

    def _apply_query_result(self, result: QueryResult):
        self.last_query_result = result
        for listener in self.query_listeners:
            listener(result)
        if not result.ok:
            return
        self.set_status(result.message, self._status_seconds())
        if result.affected_rows is not None:
            # the statement may have changed the table on screen
            self.dispatch(Reload())

    def _status_seconds(self):
        return self.config.get("STATUS_SECONDS", config_paths.STATUS_SECONDS_DEFAULT)


class Orchestrator:
    def __init__(self, stdscr, session: ViewportSession):
        self.stdscr = stdscr
        curses.curs_set(0)
        curses.raw()
        self.stdscr.nodelay(False)
        self.stdscr.timeout(100)

        self.session = session
        self.session.set_status = self._set_status
        self.session.edit_listeners.append(self._on_edit_result)
        self.session.query_listeners.append(self._on_query_result)

        self.layout = ScreenLayout(stdscr)
        self.grid = GridPane()
        self.overlay = OverlayView(self.layout)
        self.sort_filter = SortFilterController(self._set_status)
        self.row_detail = RowDetailPane(self._set_status)
        self.query = QueryPane(self._set_status)

        # ---- status ----
        self.status_msg = None
        self.status_msg_until = 0
        # failed edits and queries stay up until the next key press
        self.sticky_error = None

        self.exit_requested = False

    @property
    def state(self) -> ViewportState:
        return self.session.state

    # ---------------- helpers ----------------

    def _set_status(self, msg, seconds=3):
        self.status_msg = msg
        self.status_msg_until = time.time() + seconds

    def _on_edit_result(self, result: EditResult):
        self.row_detail.apply_result(result)
        if not result.success:
            self.sticky_error = result.error
            self.status_msg = None

    def _on_query_result(self, result: QueryResult):
        self.query.apply_result(result)
        if not result.ok:
            self.sticky_error = result.error
            self.status_msg = None

    def _sync_history_menu(self):
        if self.query.mode == QueryPane.MODE_HISTORY:
            if not self.overlay.visible:
                self.overlay.open_menu(self.query.history_lines())
        elif self.overlay.mode == "menu":
            self.overlay.close()

    def _mode(self):
        if self.query.mode == QueryPane.MODE_INPUT:
            return "QUERY"
        if self.query.mode == QueryPane.MODE_RESULT:
            return "RESULT"
        if self.query.mode == QueryPane.MODE_HISTORY:
            return "HISTORY"
        if self.row_detail.editing:
            return "EDIT"
        if self.row_detail.active:
            return "DETAIL"
        if self.sort_filter.mode == SortFilterController.MODE_FILTERING:
            return "FILTER"
        if self.sort_filter.mode == SortFilterController.MODE_SORTING:
            return "SORT"
        return "GRID"

    # ---------------- UI ----------------

    def redraw(self):
        if self.query.mode == QueryPane.MODE_RESULT:
            self.query.draw_result(self.layout.table_win)
        elif self.row_detail.active:
            self.row_detail.draw(self.layout.table_win, title=self.state.table or "")
        else:
            layout = self.grid.draw(self.layout.table_win, self.state)
            if layout.visible_count != self.state.visible_column_count:
                self.session.dispatch(VisibleColumnsMeasured(layout.visible_count))

        sw = self.layout.status_win
        sw.erase()
        _, w = sw.getmaxyx()
        text = render_status(
            {
                "status_msg": self.status_msg,
                "status_until": self.status_msg_until,
                "sticky_error": self.sticky_error,
                "mode": self._mode(),
                "state": self.state,
            },
            w,
        )
        try:
            sw.addnstr(0, 0, text, w - 1, curses.A_REVERSE)
        except curses.error:
            pass
        sw.refresh()

        pw = self.layout.prompt_win
        typing_sql = self.query.mode == QueryPane.MODE_INPUT
        if typing_sql or self.sort_filter.mode == SortFilterController.MODE_FILTERING:
            try:
                curses.curs_set(1)
            except curses.error:
                pass
            if typing_sql:
                self.query.draw_prompt(pw)
            else:
                self.sort_filter.draw(pw)
        else:
            try:
                curses.curs_set(0)
            except curses.error:
                pass
            pw.erase()
            hints = " ? help  / filter  s sort  : sql  H history  r reload  q quit"
            try:
                pw.addnstr(0, 0, hints, w - 1, curses.A_DIM)
            except curses.error:
                pass
            pw.refresh()

        if self.overlay.visible:
            if self.overlay.mode == "menu" and self.query.mode == QueryPane.MODE_HISTORY:
                self.overlay.set_lines(self.query.history_lines())
                self.overlay.scroll_to(self.query.candidate + 2)
            elif self.overlay.mode == "menu":
                self.overlay.set_lines(self.sort_filter.sort_menu_lines(self.state))
                # two header lines precede the column entries
                self.overlay.scroll_to(self.sort_filter.candidate + 2)
            self.overlay.draw()

    # ---------------- keys ----------------

    def handle_key(self, ch):
        if ch == -1:
            return
        self.sticky_error = None

        if self.overlay.visible and self.overlay.mode == "help":
            self.overlay.handle_key(ch)
            return

        if self.query.active:
            request = self.query.handle_key(ch)
            self._sync_history_menu()
            if request is not None:
                self.session.run_query(request)
                self._set_status("Running query…", 10)
            return

        if self.sort_filter.active:
            event = self.sort_filter.handle_key(ch, self.state)
            if not self.sort_filter.active and self.overlay.mode == "menu":
                self.overlay.close()
            if event is not None:
                self.grid.move_top()
                self.session.dispatch(event)
            return

        if self.row_detail.active:
            action = self.row_detail.handle_key(ch)
            if action == "back":
                self.row_detail.close()
            elif action == "save":
                self.session.save_edit(self.row_detail.row, self.row_detail.session)
                self._set_status("Saving…", 10)
            return

        self._handle_grid_key(ch)

    def _handle_grid_key(self, ch):
        rows = len(self.state.all_rows)
        if ch == ord("q"):
            self.exit_requested = True
        elif ch in (ord("j"), curses.KEY_DOWN):
            self.grid.move_down(rows)
        elif ch in (ord("k"), curses.KEY_UP):
            self.grid.move_up()
        elif ch == ord("g"):
            self.grid.move_top()
        elif ch == ord("G"):
            self.grid.move_bottom(rows)
        elif ch == curses.KEY_RIGHT:
            if self.state.has_next_page:
                self.grid.move_top()
                self.session.dispatch(NextPage())
        elif ch == curses.KEY_LEFT:
            if self.state.current_page > 0:
                self.grid.move_top()
                self.session.dispatch(PrevPage())
        elif ch == ord("h"):
            self.session.dispatch(ScrollLeft())
        elif ch == ord("l"):
            self.session.dispatch(ScrollRight())
        elif ch == ord("r"):
            self.session.dispatch(Reload())
            self._set_status("Reloading…", 2)
        elif ch == ord("/"):
            self.sort_filter.start_filter(self.state)
        elif ch == ord("s"):
            if self.sort_filter.start_sort(self.state):
                self.overlay.open_menu(self.sort_filter.sort_menu_lines(self.state))
        elif ch == ord(":"):
            self.query.open_prompt()
        elif ch == ord("H"):
            if self.query.open_history():
                self._sync_history_menu()
        elif ch == ord("?"):
            self.overlay.open_help(HELP_LINES)
        elif ch in (10, 13, curses.KEY_ENTER):
            row = self.session.selected_row(self.grid.cursor)
            if row is not None:
                self.row_detail.open(self.state.all_columns, row)

    # ---------------- main loop ----------------

    def run(self):
        self.stdscr.clear()
        self.stdscr.refresh()
        self.session.open()
        self.redraw()

        while not self.exit_requested:
            ch = self.stdscr.getch()

            if ch in (3, 24):  # Ctrl+C / Ctrl+X
                break

            if ch == curses.KEY_RESIZE:
                self.layout = ScreenLayout(self.stdscr)
                self.overlay.layout = self.layout
                self.overlay.close()
                self.sort_filter.handle_key(27, self.state)
                if self.query.mode == QueryPane.MODE_HISTORY:
                    self.query.close()
            else:
                self.handle_key(ch)

            self.session.pump()
            self.redraw()
