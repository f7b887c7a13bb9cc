"""Composition DTOs for the rendering surface.

Reuse the query models directly; do not duplicate their fields.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from ..query.view_state import ColumnDef, Pagination, SortEntry


class ListViewSnapshot(BaseModel):
    """Everything a renderer needs for one frame of the list view."""
    rows: List[Dict[str, Any]]
    loading: bool
    page_count: int
    total_count: Optional[int] = None  # None until the first successful fetch
    error: Optional[str] = None
    search_text: str
    filter_text: str
    pagination: Pagination
    sort_spec: List[SortEntry]
    columns: List[ColumnDef]
    phase: str
    can_previous_page: bool
    can_next_page: bool
    first_row: Optional[int] = None  # 1-based, None until the first successful fetch
    last_row: Optional[int] = None
    range_label: Optional[str] = None
