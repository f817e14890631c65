import time


def page_summary(state) -> str:
    total_pages = max(1, state.total_pages)
    first, last = state.row_range
    return (
        f"Page {state.current_page + 1}/{total_pages} "
        f"rows {first}-{last} of {state.total_row_count}"
    )


def render_status(context, width, now=None):
    """
    context keys: status_msg, status_until, sticky_error, mode, state
    A live transient message wins, then a sticky error, then the summary line,
    which carries the last fetch error until a fetch succeeds.
    """
    now = time.time() if now is None else now
    state = context.get("state")
    if context.get("status_msg") and now < context.get("status_until", 0):
        text = f" {context['status_msg']}"
    elif context.get("sticky_error"):
        text = f" ERROR: {context['sticky_error']}"
    elif state is None or state.table is None:
        text = f" {context.get('mode', 'GRID')}"
    else:
        parts = [context.get("mode", "GRID")]
        table = state.table
        if state.schema:
            table = f"{state.schema}.{table}"
        parts.append(table)
        if state.error:
            parts.append(f"error: {state.error}")
        parts.append(page_summary(state))
        active = state.active_sort
        if active:
            parts.append(f"sort {active[0]} {active[1].sql_keyword}")
        if state.filter_value:
            parts.append(f"filter '{state.filter_value}'")
        if state.loading:
            parts.append("loading…")
        text = " " + " | ".join(parts)

    return text.ljust(width)[:width]
