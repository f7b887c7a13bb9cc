"""Pure next-state functions for view intents.

Every function takes the latest ViewState (or sort spec) plus an intent and
returns a new value. The controller applies them synchronously, so two intents
fired in the same tick compose instead of overwriting each other.
"""

from typing import Callable, Optional, Tuple, TypeVar, Union

from .view_state import ColumnDef, Pagination, SortEntry, ViewState

T = TypeVar("T")
Updater = Union[T, Callable[[T], T]]
SortSpec = Tuple[SortEntry, ...]


def apply_updater(current: T, updater: Updater) -> T:
    """Resolve a table-style updater: a new value, or a function of the previous one."""
    if callable(updater):
        return updater(current)
    return updater


def with_page_index(state: ViewState, page_index: int, page_count: Optional[int] = None) -> ViewState:
    """
    Move to a page, clamped to the valid range.

    Args:
        state: Latest view state
        page_index: Requested zero-based page
        page_count: Known page count, or None while unknown (no upper bound)
    """
    index = max(0, int(page_index))
    if page_count is not None:
        index = min(index, max(page_count - 1, 0))
    if index == state.page_index:
        return state
    return state.model_copy(update={"page_index": index})


def with_page_size(state: ViewState, page_size: int) -> ViewState:
    """Change page size while keeping the current top row on screen."""
    size = max(1, int(page_size))
    if size == state.page_size:
        return state
    top_row_index = state.page_index * state.page_size
    return state.model_copy(update={"page_size": size, "page_index": top_row_index // size})


def with_pagination(state: ViewState, pagination: Pagination) -> ViewState:
    if pagination == state.pagination:
        return state
    return state.model_copy(
        update={"page_index": pagination.page_index, "page_size": pagination.page_size}
    )


def with_search_text(state: ViewState, text: str) -> ViewState:
    text = text or ""
    if text == state.search_text:
        return state
    return state.model_copy(update={"search_text": text})


def with_filter_text(state: ViewState, text: str) -> ViewState:
    text = text or ""
    if text == state.filter_text:
        return state
    return state.model_copy(update={"filter_text": text})


def with_sort_spec(state: ViewState, sort_spec: SortSpec) -> ViewState:
    sort_spec = tuple(sort_spec)
    if sort_spec == state.sort_spec:
        return state
    return state.model_copy(update={"sort_spec": sort_spec})


def _next_direction(column: ColumnDef, current: Optional[SortEntry]) -> Optional[bool]:
    """Return the next `descending` flag for a column, or None to stop sorting it."""
    first = column.sort_desc_first
    if current is None:
        return first
    if current.descending == first:
        return not first
    return None


def toggle_sort(sort_spec: SortSpec, column: ColumnDef, multi: bool = False) -> SortSpec:
    """
    Cycle a column through first direction, opposite direction, unsorted.

    Without `multi` the column replaces the whole sort specification. With
    `multi` the other entries keep their order and a newly sorted column is
    appended at the end.
    """
    current = next((entry for entry in sort_spec if entry.column_id == column.id), None)
    descending = _next_direction(column, current)

    if not multi:
        if descending is None:
            return ()
        return (SortEntry(column_id=column.id, descending=descending),)

    if descending is None:
        return tuple(entry for entry in sort_spec if entry.column_id != column.id)
    replacement = SortEntry(column_id=column.id, descending=descending)
    if current is None:
        return tuple(sort_spec) + (replacement,)
    return tuple(replacement if entry.column_id == column.id else entry for entry in sort_spec)
