"""Pure state transitions for the data viewport.

reduce(state, event) returns the next ViewportState plus a tuple of effects
(FetchRequest instances) for the dispatcher to run. Nothing in here touches a
connection, the screen or the clock.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from messages import FetchRequest, FetchResult
from pagination import clamp_page, has_prev_page, normalize_page_size
from viewport import SortDirection, ViewportState

logger = logging.getLogger(__name__)


# ---------- events ----------
@dataclass(frozen=True)
class OpenTable:
    table: str
    schema: Optional[str] = None
    items_per_page: Optional[int] = None


@dataclass(frozen=True)
class NextPage:
    pass


@dataclass(frozen=True)
class PrevPage:
    pass


@dataclass(frozen=True)
class ScrollLeft:
    pass


@dataclass(frozen=True)
class ScrollRight:
    pass


@dataclass(frozen=True)
class VisibleColumnsMeasured:
    count: int


@dataclass(frozen=True)
class Reload:
    # False re-reads the current page and keeps the known row count
    recount: bool = True


@dataclass(frozen=True)
class ApplyFilter:
    text: Optional[str]


@dataclass(frozen=True)
class ApplySort:
    column: Optional[str]
    direction: SortDirection


@dataclass(frozen=True)
class FetchCompleted:
    result: FetchResult


def _fetch(state: ViewportState, include_count: bool) -> Tuple[ViewportState, FetchRequest]:
    generation = state.generation + 1
    active = state.active_sort
    request = FetchRequest(
        generation=generation,
        schema=state.schema,
        table=state.table,
        columns=state.all_columns,
        page_size=state.items_per_page,
        page_offset=state.offset,
        sort_column=active[0] if active else None,
        sort_direction=active[1] if active else SortDirection.OFF,
        filter_value=state.filter_value,
        include_count=include_count,
        known_total=state.total_row_count,
    )
    return replace(state, generation=generation, loading=True, error=None), request


def _with_fetch(state, include_count):
    state, request = _fetch(state, include_count)
    return state, (request,)


def reduce(state: ViewportState, event, discard_stale: bool = True):
    if isinstance(event, OpenTable):
        state = ViewportState(
            schema=event.schema,
            table=event.table,
            items_per_page=normalize_page_size(event.items_per_page or state.items_per_page),
            generation=state.generation,
        )
        return _with_fetch(state, include_count=True)

    if state.table is None:
        return state, ()

    if isinstance(event, NextPage):
        if not state.has_next_page:
            return state, ()
        return _with_fetch(replace(state, current_page=state.current_page + 1), False)

    if isinstance(event, PrevPage):
        if not has_prev_page(state.current_page):
            return state, ()
        return _with_fetch(replace(state, current_page=state.current_page - 1), False)

    if isinstance(event, ScrollLeft):
        if state.scroll_offset <= 0:
            return state, ()
        return replace(state, scroll_offset=state.scroll_offset - 1), ()

    if isinstance(event, ScrollRight):
        if state.scroll_offset + state.visible_column_count >= len(state.all_columns):
            return state, ()
        return replace(state, scroll_offset=state.scroll_offset + 1), ()

    if isinstance(event, VisibleColumnsMeasured):
        count = max(0, event.count)
        if count == state.visible_column_count:
            return state, ()
        return replace(state, visible_column_count=count), ()

    if isinstance(event, Reload):
        return _with_fetch(state, include_count=event.recount)

    if isinstance(event, ApplyFilter):
        text = event.text or None
        return _with_fetch(replace(state, filter_value=text, current_page=0), True)

    if isinstance(event, ApplySort):
        direction = event.direction
        column = event.column if direction is not SortDirection.OFF else None
        if column is None:
            direction = SortDirection.OFF
        state = replace(state, sort_column=column, sort_direction=direction, current_page=0)
        return _with_fetch(state, include_count=False)

    if isinstance(event, FetchCompleted):
        return _apply_result(state, event.result, discard_stale)

    raise TypeError(f"unknown viewport event: {event!r}")


def _apply_result(state: ViewportState, result: FetchResult, discard_stale: bool):
    latest = result.generation == state.generation
    if not latest and discard_stale:
        logger.debug(
            "dropping stale result generation %d (latest %d)",
            result.generation,
            state.generation,
        )
        return state, ()

    if not result.ok:
        # keep the last good page on screen
        return replace(state, loading=not latest and state.loading, error=result.error), ()

    state = state.with_page(result.columns, result.rows, result.total_row_count)
    if not latest:
        # a newer request is still in flight
        state = replace(state, loading=True)
        return state, ()

    page = clamp_page(state.current_page, state.total_row_count, state.items_per_page)
    if page != state.current_page:
        # the table shrank under us; fetch the last page that still exists
        return _with_fetch(replace(state, current_page=page), False)
    return state, ()
