"""Data currently rendered by the list view."""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def compute_page_count(total_count: int, page_size: int) -> int:
    """ceil(total / size); 95 rows at 10 per page is 10 pages."""
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")
    return math.ceil(max(total_count, 0) / page_size)


@dataclass(frozen=True)
class DisplayState:
    """
    Rendered rows plus request bookkeeping.

    `total_count` stays None until the first successful fetch; until then the
    page count is unknown rather than zero.
    """

    rows: List[Dict[str, Any]] = field(default_factory=list)
    total_count: Optional[int] = None
    page_count: int = 0
    loading: bool = False
    error: Optional[str] = None
    last_request_seq: int = 0
    last_settled_seq: int = 0
