"""View API: snapshot of a controller for renderers."""

from typing import Optional, Tuple

from ..controller.fetch_controller import DebouncedFetchController
from ..query.view_state import Pagination, SortEntry
from .models import ListViewSnapshot


def sort_direction(controller: DebouncedFetchController, column_id: str) -> Optional[str]:
    """Return "asc", "desc" or None for a column header indicator."""
    entry: Optional[SortEntry] = next(
        (e for e in controller.sort_spec if e.column_id == column_id), None
    )
    if entry is None:
        return None
    return "desc" if entry.descending else "asc"


def row_range(pagination: Pagination, total_count: int) -> Tuple[int, int]:
    """1-based (first, last) rows shown on the current page; (0, 0) when nothing is shown."""
    first = pagination.page_index * pagination.page_size + 1
    if total_count <= 0 or first > total_count:
        return 0, 0
    last = min((pagination.page_index + 1) * pagination.page_size, total_count)
    return first, last


def build_snapshot(controller: DebouncedFetchController) -> ListViewSnapshot:
    """Compose the controller's view and display state into one read model."""
    display = controller.display
    pagination = controller.pagination
    page_count = controller.current_page_count

    first_row = last_row = None
    range_label = None
    if display.total_count is not None:
        first_row, last_row = row_range(pagination, display.total_count)
        range_label = f"Showing {first_row} to {last_row} of {display.total_count} entries"

    return ListViewSnapshot(
        rows=controller.rows,
        loading=display.loading,
        page_count=display.page_count if page_count is None else page_count,
        total_count=display.total_count,
        error=display.error,
        search_text=controller.search_text,
        filter_text=controller.filter_text,
        pagination=pagination,
        sort_spec=list(controller.sort_spec),
        columns=list(controller.columns),
        phase=controller.phase.value,
        can_previous_page=pagination.page_index > 0,
        can_next_page=page_count is None or pagination.page_index + 1 < page_count,
        first_row=first_row,
        last_row=last_row,
        range_label=range_label,
    )
