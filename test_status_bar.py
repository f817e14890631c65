import pytest

from status_bar import page_summary, render_status
from viewport import SortDirection, ViewportState


def _state(**kw):
    fields = dict(
        table="orders",
        all_columns=("id",),
        all_rows=(("3",), ("4",)),
        total_row_count=5,
        items_per_page=2,
        current_page=1,
    )
    fields.update(kw)
    return ViewportState(**fields)


def test_page_summary():
    assert page_summary(_state()) == "Page 2/3 rows 3-4 of 5"


def test_page_summary_on_empty_table():
    assert page_summary(_state(all_rows=(), total_row_count=0, current_page=0)) == "Page 1/1 rows 0-0 of 0"


def test_summary_line_lists_active_view_settings():
    state = _state(
        schema="sales",
        sort_column="id",
        sort_direction=SortDirection.DESCENDING,
        filter_value="ann",
        loading=True,
    )
    text = render_status({"mode": "GRID", "state": state}, 200, now=0)
    assert text.rstrip() == (
        " GRID | sales.orders | Page 2/3 rows 3-4 of 5 | sort id DESC | filter 'ann' | loading…"
    )
    assert len(text) == 200


def test_transient_message_expires():
    ctx = {"status_msg": "Saved", "status_until": 10, "state": _state(), "mode": "GRID"}
    assert render_status(ctx, 40, now=5).strip() == "Saved"
    assert render_status(ctx, 40, now=11).startswith(" GRID | orders")


def test_sticky_error_shows_after_transient_message():
    ctx = {
        "status_msg": "Saving…",
        "status_until": 10,
        "sticky_error": "no rows were updated",
        "state": _state(),
    }
    assert render_status(ctx, 60, now=1).strip() == "Saving…"
    assert render_status(ctx, 60, now=20).strip() == "ERROR: no rows were updated"


@pytest.mark.parametrize("width", [0, 5, 80])
def test_output_is_exactly_width(width):
    assert len(render_status({"mode": "GRID", "state": _state()}, width, now=0)) == width


def test_no_table_yet_shows_mode():
    assert render_status({"mode": "GRID", "state": ViewportState()}, 10, now=0) == " GRID     "


def test_fetch_error_stays_in_summary_after_message_expires():
    state = _state(error="table or column does not exist")
    ctx = {"status_msg": state.error, "status_until": 3, "state": state, "mode": "GRID"}
    assert render_status(ctx, 120, now=1).strip() == "table or column does not exist"
    assert render_status(ctx, 120, now=4).rstrip() == (
        " GRID | orders | error: table or column does not exist | Page 2/3 rows 3-4 of 5"
    )
